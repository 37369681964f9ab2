from __future__ import annotations
import asyncio
import logging
from threading import Lock
from typing import Dict, Optional, Tuple

import httpx

logger = logging.getLogger("ai_response.http")

DEFAULT_TIMEOUT = httpx.Timeout(10.0, connect=5.0)
RETRY_BACKOFF: Tuple[int, ...] = (1, 2, 4)  # seconds
RETRYABLE_STATUS = (408, 429, 500, 502, 503, 504)
RETRYABLE_EXC = (httpx.ConnectError, httpx.ReadTimeout, httpx.RemoteProtocolError)


class HttpClient:
    """
    httpx.AsyncClient wrapper with retries and backoff.

    One underlying AsyncClient is shared per base_url so connection pools are
    reused across model calls.
    """

    _shared_clients: Dict[str, httpx.AsyncClient] = {}
    _lock = Lock()

    def __init__(
        self,
        timeout: httpx.Timeout | float = DEFAULT_TIMEOUT,
        retries: int = 3,
        backoff: Tuple[int, ...] = RETRY_BACKOFF,
        base_url: Optional[str] = None,
        headers: Optional[dict] = None,
    ) -> None:
        if not isinstance(timeout, httpx.Timeout):
            timeout = httpx.Timeout(timeout)
        self.timeout = timeout
        self.retries = retries
        self.backoff = backoff

        key = f"{base_url}"
        with HttpClient._lock:
            existing = HttpClient._shared_clients.get(key)
            if existing is None or existing.is_closed:
                self._client = httpx.AsyncClient(
                    timeout=self.timeout,
                    base_url=base_url or "",
                    headers=headers or {},
                    http2=True,
                )
                HttpClient._shared_clients[key] = self._client
            else:
                self._client = existing

    async def close(self) -> None:
        await self._client.aclose()

    @classmethod
    async def close_all(cls) -> None:
        with cls._lock:
            clients = list(cls._shared_clients.values())
            cls._shared_clients.clear()
        for shared in clients:
            await shared.aclose()

    async def _request(self, method: str, url: str, *, name: Optional[str] = None, **kwargs) -> httpx.Response:
        name = name or method.upper()
        if "timeout" not in kwargs:
            kwargs["timeout"] = self.timeout

        retries = max(1, kwargs.pop("retries", self.retries))

        for attempt in range(retries - 1):
            try:
                resp = await self._client.request(method, url, **kwargs)
                resp.raise_for_status()
                return resp
            except httpx.HTTPStatusError as e:
                if e.response.status_code not in RETRYABLE_STATUS:
                    raise
            except RETRYABLE_EXC:
                pass

            delay = self.backoff[min(attempt, len(self.backoff) - 1)]
            logger.warning("Retrying %s attempt=%d delay=%ss url=%s", name, attempt + 1, delay, url)
            await asyncio.sleep(delay)

        # Last attempt propagates whatever goes wrong
        resp = await self._client.request(method, url, **kwargs)
        resp.raise_for_status()
        return resp

    async def get(self, url: str, **kwargs) -> httpx.Response:
        return await self._request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> httpx.Response:
        return await self._request("POST", url, **kwargs)


__all__ = ["HttpClient", "DEFAULT_TIMEOUT", "RETRY_BACKOFF"]
