from __future__ import annotations

import pytest

from tiltboard.clients.contracts import FetchResult, FetchState
from tiltboard.services.dashboard import DashboardContext, Theme


class FakeSessionClient:
    def __init__(self, user_result: FetchResult) -> None:
        self.user_result = user_result
        self.logout_calls = 0

    async def get_current_user(self) -> FetchResult:
        return self.user_result

    async def logout(self) -> FetchResult:
        self.logout_calls += 1
        return FetchResult(state=FetchState.FAILED, status_code=500, error="boom")


@pytest.mark.asyncio
async def test_initialize_loads_user_and_teardown_clears_it() -> None:
    client = FakeSessionClient(
        FetchResult(state=FetchState.OK, data={"userSub": "u-1", "email": "brewer@example.com", "name": "Sam"})
    )
    context = DashboardContext(theme=Theme.DARK)

    await context.initialize(client)

    assert context.initialized
    assert context.to_dict() == {
        "theme": "dark",
        "authenticated": True,
        "user": {"userSub": "u-1", "email": "brewer@example.com", "name": "Sam"},
    }

    await context.teardown(client)

    assert client.logout_calls == 1
    assert not context.is_authenticated
    assert not context.initialized


@pytest.mark.asyncio
async def test_unauthenticated_session() -> None:
    context = DashboardContext()

    await context.initialize(FakeSessionClient(FetchResult(state=FetchState.FAILED, status_code=401)))

    assert context.initialized
    assert context.user is None
    assert context.to_dict()["authenticated"] is False


def test_set_theme_accepts_known_values_only() -> None:
    context = DashboardContext()

    context.set_theme("light")
    assert context.theme == Theme.LIGHT

    with pytest.raises(ValueError):
        context.set_theme("sepia")
