"""HTTP clients for the external fermentation API."""

from tiltboard.clients.api_client import FermentationApiClient, sanitize_for_log, sanitize_log_extra
from tiltboard.clients.cache import QueryCache, make_query_key
from tiltboard.clients.contracts import FetchResult, FetchState

__all__ = [
    "FermentationApiClient",
    "sanitize_for_log",
    "sanitize_log_extra",
    "QueryCache",
    "make_query_key",
    "FetchResult",
    "FetchState",
]
