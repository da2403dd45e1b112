"""
HTTP API Client

This module provides the async HTTP collaborator that route-spec actions run
on top of. It handles:
- Session management (async context manager, or lazy session)
- URL, query string and JSON body construction
- A ``sign_request`` hook for connectors with private endpoints
- Retry with linear backoff on rate limits (429, 418, 503)
- Keeping the decoded JSON of the most recent response

The route-spec engine only relies on two things here: the verb coroutines
(``get``, ``post``, ...) called as ``verb(path, data, headers, events)`` and
the ``json_response`` property.

Usage:
    async with HttpApiClient(base_url="https://api.kucoin.com") as client:
        await client.get("/api/v1/market/stats", {"symbol": "XRP-USDC"})
        print(client.json_response)
"""

import asyncio
import json
import time
from typing import Any, Dict, Optional

import aiohttp
from pydantic import BaseModel, Field

from crypto_api.core.config import settings
from crypto_api.core.errors import HttpRequestError
from crypto_api.core.logging import get_logger, log_api_request, log_api_response
from crypto_api.core.schemas import EventHooks

# Methods whose payload travels in the query string
QUERY_METHODS = ("get", "delete")

RETRY_STATUSES = (429, 418, 503)

_UNSET = object()


class PreparedRequest(BaseModel):
    """
    A fully built request, before it is sent.

    Returned as is when ``events.test_request_object`` is set, which lets
    tests inspect what would go over the wire.
    """

    method: str
    url: str
    path: str
    params: Dict[str, str] = Field(default_factory=dict)
    body: Optional[str] = None
    headers: Dict[str, str] = Field(default_factory=dict)


class ResponseSnapshot(BaseModel):
    """Status, headers and decoded body of a completed call."""

    status: int
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Any = None


def _query_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class HttpApiClient:
    """
    Async HTTP collaborator for exchange REST APIs.

    Attributes:
        base_url: Root URL prepended to relative paths
        exchange: Short name used in log lines
        timeout: Total timeout per attempt (seconds)
        max_retries: Attempts made when rate limited
        session: aiohttp ClientSession (created lazily if not given)

    Example:
        >>> async with HttpApiClient(base_url="https://api.binance.com") as client:
        ...     snapshot = await client.get("/api/v3/ping")
        ...     print(snapshot.status)
    """

    base_url: str = ""
    exchange: str = "http"

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None
    ):
        if base_url is not None:
            self.base_url = base_url
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.max_retries = max_retries if max_retries is not None else settings.max_retries
        self.session = session
        self._owns_session = session is None
        self._json_response = _UNSET
        self.logger = get_logger(f"{type(self).__module__}.{type(self).__name__}")

    # ============================================
    # Context Manager for Session Management
    # ============================================

    async def __aenter__(self):
        """Enter async context - creates HTTP session if none was given."""
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context - closes the session we own."""
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
            self._owns_session = True
            self.logger.debug(f"{self.exchange} session created")
        return self.session

    async def close(self) -> None:
        if self.session is not None and self._owns_session and not self.session.closed:
            await self.session.close()
            self.logger.debug(f"{self.exchange} session closed")

    # ============================================
    # Verb Methods
    # ============================================

    async def get(self, path: str, data: Optional[Dict[str, Any]] = None,
                  headers: Optional[Dict[str, Any]] = None, events: Optional[EventHooks] = None):
        return await self.send("get", path, data, headers, events)

    async def post(self, path: str, data: Optional[Dict[str, Any]] = None,
                   headers: Optional[Dict[str, Any]] = None, events: Optional[EventHooks] = None):
        return await self.send("post", path, data, headers, events)

    async def put(self, path: str, data: Optional[Dict[str, Any]] = None,
                  headers: Optional[Dict[str, Any]] = None, events: Optional[EventHooks] = None):
        return await self.send("put", path, data, headers, events)

    async def patch(self, path: str, data: Optional[Dict[str, Any]] = None,
                    headers: Optional[Dict[str, Any]] = None, events: Optional[EventHooks] = None):
        return await self.send("patch", path, data, headers, events)

    async def delete(self, path: str, data: Optional[Dict[str, Any]] = None,
                     headers: Optional[Dict[str, Any]] = None, events: Optional[EventHooks] = None):
        return await self.send("delete", path, data, headers, events)

    # ============================================
    # Request Construction
    # ============================================

    def build_url(self, path: str) -> str:
        """Absolute URLs pass through, relative paths are joined to base_url."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def prepare_request(
        self,
        method: str,
        path: str,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, Any]] = None,
        events: Optional[EventHooks] = None
    ) -> PreparedRequest:
        """
        Build the PreparedRequest for a call.

        Fields listed by ``events.keys()`` come first, in that order, so
        signatures computed over the parameters are stable.

        Args:
            method: Lowercase HTTP verb
            path: Relative path or absolute URL
            data: Payload keyed by destination field names
            headers: Extra headers from the route spec
            events: Per-call hooks

        Returns:
            PreparedRequest: query params for GET/DELETE, JSON body otherwise
        """
        data = dict(data or {})

        if events is not None and callable(events.keys):
            ordered = {k: data[k] for k in events.keys() if k in data}
            ordered.update((k, v) for k, v in data.items() if k not in ordered)
            data = ordered

        request_headers = {"User-Agent": settings.user_agent}
        request_headers.update({k: str(v) for k, v in (headers or {}).items() if v is not None})

        request = PreparedRequest(
            method=method.lower(),
            url=self.build_url(path),
            path=path,
            headers=request_headers
        )

        if request.method in QUERY_METHODS:
            request.params = {k: _query_value(v) for k, v in data.items()}
        else:
            request.body = json.dumps(data, separators=(",", ":"))
            request.headers.setdefault("Content-Type", "application/json")

        return request

    def sign_request(self, request: PreparedRequest, events: EventHooks) -> None:
        """
        Add authentication to a prepared request. No-op by default.

        Connectors with private endpoints override this and typically use
        ``events.keys()`` to decide whether and what to sign.
        """

    # ============================================
    # HTTP Request Handler with Retry Logic
    # ============================================

    async def send(
        self,
        method: str,
        path: str,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, Any]] = None,
        events: Optional[EventHooks] = None
    ):
        """
        Send a request and keep its decoded JSON body.

        Returns:
            PreparedRequest when events.test_request_object is set, otherwise
            a ResponseSnapshot of the successful response

        Raises:
            HttpRequestError: Non-retryable status, or retries exhausted

        Rate Limit Handling:
            429, 418 and 503 are retried after retry_backoff * attempt seconds.
        """
        events = events or EventHooks()
        request = self.prepare_request(method, path, data, headers, events)
        self.sign_request(request, events)

        if events.test_request_object:
            return request

        session = self._ensure_session()
        log_api_request(self.exchange, request.method.upper(), request.path, request.params or request.body)

        for attempt in range(self.max_retries):
            started = time.monotonic()
            try:
                async with session.request(
                    request.method.upper(),
                    request.url,
                    params=request.params or None,
                    data=request.body,
                    headers=request.headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as resp:
                    log_api_response(self.exchange, request.path, resp.status, time.monotonic() - started)

                    if 200 <= resp.status < 300:
                        body = await resp.json(content_type=None)
                        self._json_response = body
                        return ResponseSnapshot(status=resp.status, headers=dict(resp.headers), body=body)

                    elif resp.status in RETRY_STATUSES:
                        delay = settings.retry_backoff * (attempt + 1)
                        self.logger.warning(
                            f"Rate limited (HTTP {resp.status}) on {request.path}. "
                            f"Retrying in {delay:.1f}s... (attempt {attempt + 1}/{self.max_retries})"
                        )
                        await asyncio.sleep(delay)
                        continue

                    else:
                        text = await resp.text()
                        self.logger.error(f"HTTP {resp.status} on {request.path}: {text}")
                        raise HttpRequestError(
                            f"HTTP {resp.status} on {request.path}: {text}",
                            status=resp.status,
                            url=request.url
                        )

            except asyncio.TimeoutError:
                self.logger.error(f"Timeout on {request.path} (attempt {attempt + 1}/{self.max_retries})")
                await asyncio.sleep(settings.retry_backoff * (attempt + 1))

            except aiohttp.ClientError as e:
                self.logger.error(f"Request failed on {request.path}: {e} (attempt {attempt + 1}/{self.max_retries})")
                await asyncio.sleep(settings.retry_backoff * (attempt + 1))

        raise HttpRequestError(
            f"Failed to fetch {request.url} after {self.max_retries} attempts",
            url=request.url
        )

    @property
    def json_response(self) -> Any:
        """Decoded JSON body of the most recent successful call."""
        if self._json_response is _UNSET:
            raise HttpRequestError("No response received yet")
        return self._json_response
