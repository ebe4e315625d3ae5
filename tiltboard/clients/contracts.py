"""Typed fetch contracts returned by the fermentation API client."""

from __future__ import annotations

from dataclasses import dataclass
import enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class FetchState(str, enum.Enum):
    OK = "ok"
    EMPTY = "empty"
    UNCHANGED = "unchanged"
    FAILED = "failed"


@dataclass(slots=True)
class FetchResult(Generic[T]):
    """Outcome of one API call; failures are values, not exceptions."""

    state: FetchState
    data: Optional[T] = None
    etag: Optional[str] = None
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.state in (FetchState.OK, FetchState.EMPTY, FetchState.UNCHANGED)

    @property
    def failed(self) -> bool:
        return self.state == FetchState.FAILED
