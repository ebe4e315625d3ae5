"""Resilient async client for the fermentation REST API."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Callable, Optional, TypeVar

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from tiltboard.clients.cache import QueryCache, make_query_key
from tiltboard.clients.contracts import FetchResult, FetchState
from tiltboard.config.settings import settings
from tiltboard.models.brew import Brew, BrewCreate, BrewStatus, BrewUpdate
from tiltboard.models.hydrometer import Hydrometer, HydrometerCreate, HydrometerUpdate
from tiltboard.models.reading import Reading, ReadingsQuery

logger = logging.getLogger(__name__)

T = TypeVar("T")

ENTITY_BREWS = "brews"
ENTITY_HYDROMETERS = "hydrometers"
ENTITY_READINGS = "readings"

_REDACTED_VALUE = "***REDACTED***"
_SENSITIVE_KEYS = (
    "authorization",
    "token",
    "api_key",
    "apikey",
    "secret",
    "password",
    "cookie",
    "session",
)
_PAYLOAD_KEYS = ("body", "raw", "payload", "response", "notes")
_TOKEN_PATTERNS = (
    re.compile(r"(?i)(bearer\s+)[^\s,;]+"),
    re.compile(r"(?i)(token\s*[=:]\s*)[^\s,;]+"),
    re.compile(r"(?i)(api[_-]?key\s*[=:]\s*)[^\s,;]+"),
    re.compile(r"(?i)(cookie\s*[=:]\s*)[^\s,;]+"),
    re.compile(r"(?i)(session\s*[=:]\s*)[^\s,;]+"),
)
_RETRYABLE_STATUS_CODES = (429, 503)


def sanitize_for_log(value: Any, *, key: Optional[str] = None) -> Any:
    """Return a recursively sanitized copy of log payloads."""

    if isinstance(value, dict):
        sanitized: dict[str, Any] = {}
        for raw_key, raw_value in value.items():
            field = str(raw_key)
            if _contains_keyword(field, _SENSITIVE_KEYS):
                sanitized[field] = _REDACTED_VALUE
                continue
            if _contains_keyword(field, _PAYLOAD_KEYS) and isinstance(raw_value, str):
                sanitized[field] = _redact_payload(raw_value)
                continue
            sanitized[field] = sanitize_for_log(raw_value, key=field)
        return sanitized

    if isinstance(value, (list, tuple, set)):
        return [sanitize_for_log(item, key=key) for item in value]

    if isinstance(value, str):
        redacted = _redact_text(value)
        if key and _contains_keyword(key, _PAYLOAD_KEYS):
            return _redact_payload(redacted)
        return redacted

    return value


def sanitize_log_extra(**kwargs: Any) -> dict[str, Any]:
    """Helper for `extra=` payloads in structured logging."""

    return {key: sanitize_for_log(value, key=key) for key, value in kwargs.items()}


def _contains_keyword(field_name: str, keywords: tuple[str, ...]) -> bool:
    lowered = field_name.lower()
    return any(keyword in lowered for keyword in keywords)


def _redact_payload(raw: str) -> str:
    trimmed = raw.strip()
    if not trimmed:
        return ""
    return f"<redacted payload ({len(raw)} chars)>"


def _redact_text(raw: str) -> str:
    redacted = raw
    for pattern in _TOKEN_PATTERNS:
        redacted = pattern.sub(rf"\1{_REDACTED_VALUE}", redacted)
    return redacted


class _RetryableStatusError(Exception):
    """Retryable throttling/unavailable signal for tenacity."""


class FermentationApiClient:
    """Typed client for brews, hydrometers and readings with cached queries."""

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff_base_seconds: Optional[float] = None,
        backoff_max_seconds: Optional[float] = None,
        cache: Optional[QueryCache] = None,
        transport: Optional[Any] = None,
    ) -> None:
        self._base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self._api_key = api_key or settings.API_KEY
        self._timeout_seconds = timeout_seconds or getattr(settings, "API_TIMEOUT_SECONDS", 10.0)
        self._max_retries = max_retries or getattr(settings, "API_MAX_RETRIES", 3)
        self._backoff_base_seconds = backoff_base_seconds or getattr(settings, "API_BACKOFF_BASE_SECONDS", 0.5)
        self._backoff_max_seconds = backoff_max_seconds or getattr(settings, "API_BACKOFF_MAX_SECONDS", 8.0)
        self._cache = cache if cache is not None else QueryCache(
            ttl_seconds=getattr(settings, "CACHE_TTL_SECONDS", 30.0),
            max_entries=getattr(settings, "CACHE_MAX_ENTRIES", 256),
        )
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "FermentationApiClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def cache(self) -> QueryCache:
        return self._cache

    # Brews

    async def list_brews(self, status: Optional[BrewStatus] = None) -> FetchResult[list[Brew]]:
        params = {"status": status.value} if status else None
        return await self._query(ENTITY_BREWS, "/brews", params=params, parse=_parse_list(Brew.from_payload))

    async def get_brew(self, brew_id: str) -> FetchResult[Brew]:
        return await self._query(ENTITY_BREWS, f"/brews/{brew_id}", parse=Brew.from_payload)

    async def create_brew(self, brew: BrewCreate) -> FetchResult[Brew]:
        return await self._mutate("POST", "/brews", ENTITY_BREWS, payload=brew.to_payload(), parse=Brew.from_payload)

    async def update_brew(self, brew_id: str, update: BrewUpdate) -> FetchResult[Brew]:
        return await self._mutate(
            "PUT", f"/brews/{brew_id}", ENTITY_BREWS, payload=update.to_payload(), parse=Brew.from_payload
        )

    async def delete_brew(self, brew_id: str) -> FetchResult[None]:
        return await self._mutate("DELETE", f"/brews/{brew_id}", ENTITY_BREWS)

    # Hydrometers

    async def list_hydrometers(self) -> FetchResult[list[Hydrometer]]:
        return await self._query(ENTITY_HYDROMETERS, "/hydrometers", parse=_parse_list(Hydrometer.from_payload))

    async def get_hydrometer(self, hydrometer_id: str) -> FetchResult[Hydrometer]:
        return await self._query(ENTITY_HYDROMETERS, f"/hydrometers/{hydrometer_id}", parse=Hydrometer.from_payload)

    async def create_hydrometer(self, hydrometer: HydrometerCreate) -> FetchResult[Hydrometer]:
        return await self._mutate(
            "POST", "/hydrometers", ENTITY_HYDROMETERS, payload=hydrometer.to_payload(), parse=Hydrometer.from_payload
        )

    async def update_hydrometer(self, hydrometer_id: str, update: HydrometerUpdate) -> FetchResult[Hydrometer]:
        return await self._mutate(
            "PUT",
            f"/hydrometers/{hydrometer_id}",
            ENTITY_HYDROMETERS,
            payload=update.to_payload(),
            parse=Hydrometer.from_payload,
        )

    async def delete_hydrometer(self, hydrometer_id: str) -> FetchResult[None]:
        return await self._mutate("DELETE", f"/hydrometers/{hydrometer_id}", ENTITY_HYDROMETERS)

    # Readings

    async def list_readings(self, query: Optional[ReadingsQuery] = None) -> FetchResult[list[Reading]]:
        params = (query or ReadingsQuery()).to_params()
        return await self._query(ENTITY_READINGS, "/readings", params=params, parse=_parse_list(Reading.from_payload))

    # Session (identity lives with the external provider)

    async def get_current_user(self) -> FetchResult[dict[str, Any]]:
        response = await self._request("GET", "/auth/me")
        if response.state == FetchState.OK and not isinstance(response.data, dict):
            return FetchResult(state=FetchState.EMPTY, data=None, status_code=response.status_code)
        return response

    async def logout(self) -> FetchResult[None]:
        response = await self._request("POST", "/auth/logout", json={})
        self._cache.invalidate()
        return response

    async def _query(
        self,
        entity: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        parse: Callable[[Any], T],
    ) -> FetchResult[T]:
        key = make_query_key(entity, {"path": path, **(params or {})})
        cached = self._cache.get(key)
        if cached and self._cache.is_fresh(cached):
            return FetchResult(state=_state_for(cached.data), data=cached.data, etag=cached.etag)

        response = await self._request("GET", path, params=params, etag=cached.etag if cached else None)

        if response.state == FetchState.UNCHANGED and cached:
            self._cache.touch(key)
            return FetchResult(
                state=FetchState.UNCHANGED,
                data=cached.data,
                etag=cached.etag,
                status_code=response.status_code,
            )

        if response.state != FetchState.OK:
            return FetchResult(
                state=FetchState.FAILED if response.state == FetchState.UNCHANGED else response.state,
                etag=response.etag,
                status_code=response.status_code,
                error=response.error or "Unexpected 304 without cached payload",
            )

        try:
            parsed = parse(response.data)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning(
                "Malformed API payload",
                extra=sanitize_log_extra(path=path, params=params, error=str(exc)),
            )
            return FetchResult(
                state=FetchState.FAILED,
                error=f"Malformed payload from {path}: {exc}",
                status_code=response.status_code,
            )

        self._cache.store(key, parsed, response.etag)
        return FetchResult(
            state=_state_for(parsed),
            data=parsed,
            etag=response.etag,
            status_code=response.status_code,
        )

    async def _mutate(
        self,
        method: str,
        path: str,
        entity: str,
        *,
        payload: Optional[dict[str, Any]] = None,
        parse: Optional[Callable[[Any], T]] = None,
    ) -> FetchResult[T]:
        response = await self._request(method, path, json=payload)
        if response.state == FetchState.FAILED:
            return response

        removed = self._cache.invalidate(entity)
        logger.debug("Invalidated %d cached %s queries after %s %s", removed, entity, method, path)

        if parse is None or response.data is None:
            return FetchResult(state=FetchState.OK, data=None, status_code=response.status_code)

        try:
            return FetchResult(state=FetchState.OK, data=parse(response.data), status_code=response.status_code)
        except (KeyError, TypeError, ValueError) as exc:
            return FetchResult(
                state=FetchState.FAILED,
                error=f"Malformed payload from {path}: {exc}",
                status_code=response.status_code,
            )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Optional[Any] = None,
        etag: Optional[str] = None,
    ) -> FetchResult[Any]:
        client = await self._ensure_client()
        headers = {"If-None-Match": etag} if etag else {}
        last_retryable_status: Optional[int] = None

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._max_retries),
                wait=wait_exponential(multiplier=self._backoff_base_seconds, max=self._backoff_max_seconds),
                retry=retry_if_exception_type(_RetryableStatusError),
                reraise=True,
            ):
                with attempt:
                    response = await client.request(method, path, params=params, json=json, headers=headers)

                    if response.status_code == 304:
                        return FetchResult(
                            state=FetchState.UNCHANGED,
                            data=None,
                            etag=response.headers.get("etag", etag),
                            status_code=response.status_code,
                        )

                    if response.status_code in _RETRYABLE_STATUS_CODES:
                        last_retryable_status = response.status_code
                        wait_seconds = self._compute_retry_after(response.headers)
                        logger.warning(
                            "Fermentation API asked us to back off",
                            extra=sanitize_log_extra(
                                method=method,
                                path=path,
                                params=params,
                                status_code=response.status_code,
                                retry_after_seconds=wait_seconds,
                            ),
                        )
                        if wait_seconds > 0:
                            await asyncio.sleep(wait_seconds)
                        raise _RetryableStatusError(
                            f"Fermentation API unavailable ({response.status_code})"
                        )

                    response.raise_for_status()
                    return FetchResult(
                        state=FetchState.OK,
                        data=response.json() if response.content else None,
                        etag=response.headers.get("etag"),
                        status_code=response.status_code,
                    )
        except _RetryableStatusError as exc:
            logger.warning(
                "Fermentation API request failed after retries",
                extra=sanitize_log_extra(method=method, path=path, params=params, error=str(exc)),
            )
            return FetchResult(state=FetchState.FAILED, error=str(exc), etag=etag, status_code=last_retryable_status)
        except httpx.HTTPError as exc:
            status_code = getattr(getattr(exc, "response", None), "status_code", None)
            logger.warning(
                "Fermentation API request failed",
                extra=sanitize_log_extra(
                    method=method,
                    path=path,
                    params=params,
                    error=str(exc),
                    status_code=status_code,
                ),
            )
            return FetchResult(state=FetchState.FAILED, error=str(exc), etag=etag, status_code=status_code)
        except ValueError as exc:
            logger.warning(
                "Fermentation API returned invalid JSON",
                extra=sanitize_log_extra(method=method, path=path, params=params, error=str(exc)),
            )
            return FetchResult(state=FetchState.FAILED, error=f"Invalid JSON from {path}: {exc}", etag=etag)

        return FetchResult(state=FetchState.FAILED, error="Unknown fermentation API failure", etag=etag)

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client:
            return self._client

        headers = {
            "Accept": "application/json",
            "User-Agent": settings.USER_AGENT,
        }
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=self._timeout_seconds,
            transport=self._transport,
        )
        return self._client

    @staticmethod
    def _compute_retry_after(headers: httpx.Headers) -> float:
        retry_after = headers.get("retry-after")
        if retry_after is not None:
            try:
                return max(float(retry_after), 0.0)
            except ValueError:
                pass
        return 0.0


def _parse_list(item_parser: Callable[[dict[str, Any]], T]) -> Callable[[Any], list[T]]:
    def parse(payload: Any) -> list[T]:
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise TypeError(f"Expected a JSON array, got {type(payload).__name__}")
        return [item_parser(item) for item in payload]

    return parse


def _state_for(data: Any) -> FetchState:
    if isinstance(data, (list, dict)) and len(data) == 0:
        return FetchState.EMPTY
    return FetchState.OK
