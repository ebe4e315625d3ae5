"""Dashboard screen composition."""

from tiltboard.services.dashboard.context import AuthUser, DashboardContext, Theme
from tiltboard.services.dashboard.service import DashboardService, UpstreamError

__all__ = [
    "AuthUser",
    "DashboardContext",
    "Theme",
    "DashboardService",
    "UpstreamError",
]
