"""Explicit per-application view context (theme and signed-in user)."""

from __future__ import annotations

from dataclasses import dataclass, field
import enum
import logging
from typing import Any, Optional

from tiltboard.clients.contracts import FetchState
from tiltboard.config.settings import settings

logger = logging.getLogger(__name__)


class Theme(str, enum.Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


@dataclass(frozen=True, slots=True)
class AuthUser:
    user_sub: str
    email: str
    name: str

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "AuthUser":
        return cls(
            user_sub=str(payload.get("userSub") or ""),
            email=str(payload.get("email") or ""),
            name=str(payload.get("name") or ""),
        )


@dataclass(slots=True)
class DashboardContext:
    """Handed to the rendering layer at construction time.

    `initialize` loads the current user; `teardown` logs out, clears it and
    leaves the context to be reloaded on the next session read. Nothing here
    is module-global.
    """

    theme: Theme = field(default_factory=lambda: Theme(getattr(settings, "DEFAULT_THEME", Theme.SYSTEM.value)))
    user: Optional[AuthUser] = None
    initialized: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    async def initialize(self, client: Any) -> None:
        result = await client.get_current_user()
        if result.state == FetchState.OK and isinstance(result.data, dict):
            self.user = AuthUser.from_payload(result.data)
        elif result.status_code == 401:
            self.user = None
        else:
            logger.warning("Could not load current user: %s", result.error)
        self.initialized = True

    async def teardown(self, client: Any) -> None:
        result = await client.logout()
        if result.state == FetchState.FAILED:
            logger.info("Logout call failed, clearing local session anyway: %s", result.error)
        self.user = None
        self.initialized = False

    def set_theme(self, theme: str | Theme) -> None:
        self.theme = Theme(theme)

    def to_dict(self) -> dict[str, Any]:
        return {
            "theme": self.theme.value,
            "authenticated": self.is_authenticated,
            "user": (
                {"userSub": self.user.user_sub, "email": self.user.email, "name": self.user.name}
                if self.user
                else None
            ),
        }
