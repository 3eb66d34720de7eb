"""
AsyncRestClient — Shared async HTTP transport for every REST connector.

Features:
- httpx.AsyncClient with HTTP/2 and connection pooling
- Automatic retry with exponential backoff on HTTP 429 and 5xx
- Typed TransportError family instead of raw httpx exceptions
- Structured logging + Prometheus metrics for every API call
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from connectkit.config import ConnectKitSettings, get_settings
from connectkit.errors import TransportAuthError, TransportError, TransportRateLimitError
from connectkit.observability import record_request

logger = structlog.get_logger(__name__)


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, TransportError) and exc.retryable


class AsyncRestClient:
    """
    Production-grade async JSON API client bound to one base URL.

    Paths passed to the request methods are relative to `base_url`
    (absolute URLs are used as-is, the way httpx merges them).
    """

    retry_wait = wait_exponential(multiplier=1, min=2, max=30)

    def __init__(
        self,
        base_url: str,
        *,
        connector_name: str,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        settings: ConnectKitSettings | None = None,
    ):
        settings = settings or get_settings()
        self.connector_name = connector_name
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self._max_retries = settings.max_retries
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            http2=True,
            headers={"Accept": "application/json", **dict(headers or {})},
            params=dict(params or {}),
            timeout=httpx.Timeout(
                settings.http_timeout_seconds,
                connect=settings.http_connect_timeout_seconds,
            ),
            limits=httpx.Limits(
                max_connections=20,
                max_keepalive_connections=10,
                keepalive_expiry=30.0,
            ),
        )

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """Execute one API request with error handling."""
        start = time.monotonic()
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.ConnectError as e:
            record_request(self.connector_name, method, "connect_error", time.monotonic() - start)
            raise TransportError(
                f"Connection failed: {e}", connector_name=self.connector_name
            ) from e
        except httpx.TimeoutException as e:
            record_request(self.connector_name, method, "timeout", time.monotonic() - start)
            raise TransportError(
                f"Request timed out: {e}", connector_name=self.connector_name
            ) from e
        except httpx.HTTPError as e:
            record_request(self.connector_name, method, "http_error", time.monotonic() - start)
            raise TransportError(
                f"HTTP error: {e}", connector_name=self.connector_name
            ) from e

        latency_s = time.monotonic() - start
        record_request(self.connector_name, method, resp.status_code, latency_s)

        if resp.status_code == 429:
            logger.warning(
                "connector_rate_limited",
                connector=self.connector_name,
                path=path,
                latency_ms=round(latency_s * 1000),
            )
            raise TransportRateLimitError(
                "Rate limit exceeded", status_code=429, connector_name=self.connector_name
            )
        if resp.status_code in (401, 403):
            raise TransportAuthError(
                f"Authentication failed ({resp.status_code}), check the access token",
                status_code=resp.status_code,
                connector_name=self.connector_name,
            )
        if resp.status_code >= 400:
            raise TransportError(
                f"API error: {resp.status_code} {resp.text}",
                status_code=resp.status_code,
                detail=str(resp.status_code),
                connector_name=self.connector_name,
            )

        logger.debug(
            "connector_request",
            connector=self.connector_name,
            method=method,
            path=path,
            status=resp.status_code,
            latency_ms=round(latency_s * 1000),
            http_version=resp.http_version,
        )

        if resp.status_code == 204:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(
                f"Response from {path} is not valid JSON",
                status_code=resp.status_code,
                connector_name=self.connector_name,
            ) from e

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json: Any = None,
    ) -> Any:
        """Request with retry on rate limits and server errors."""
        kwargs: dict[str, Any] = {}
        if params:
            kwargs["params"] = dict(params)
        if json is not None:
            kwargs["json"] = json

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_retries),
            wait=self.retry_wait,
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        ):
            with attempt:
                return await self._request(method.upper(), path, **kwargs)

    async def get(self, path: str, params: Mapping[str, str] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None, params: Mapping[str, str] | None = None) -> Any:
        return await self.request("POST", path, params=params, json=json)

    async def put(self, path: str, json: Any = None, params: Mapping[str, str] | None = None) -> Any:
        return await self.request("PUT", path, params=params, json=json)

    async def patch(self, path: str, json: Any = None, params: Mapping[str, str] | None = None) -> Any:
        return await self.request("PATCH", path, params=params, json=json)

    async def delete(self, path: str, params: Mapping[str, str] | None = None) -> Any:
        return await self.request("DELETE", path, params=params)

    async def close(self) -> None:
        """Close the underlying HTTP/2 connection pool."""
        await self._client.aclose()
