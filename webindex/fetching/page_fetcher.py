from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

import httpx
from loguru import logger

from webindex.errors import FetchError
from webindex.monitoring.metrics_server import FETCH_LATENCY
from webindex.utils.config_loader import DEFAULT_USER_AGENT

DEFAULT_TIMEOUT = 10.0


@dataclass
class FetchResult:
    url: str
    status_code: int
    content: str
    content_type: str


class PageFetcher:
    """Single GET per URL with the crawler identity and a hard timeout; no retries."""

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
        *,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.user_agent = user_agent
        self.timeout = timeout
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout=timeout),
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> "PageFetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def fetch(self, url: str) -> FetchResult:
        start = time.perf_counter()
        try:
            resp = await self.client.get(
                url,
                headers={
                    "User-Agent": self.user_agent,
                    "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
                },
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise FetchError(url, f"Timed out after {self.timeout:g}s") from e
        except httpx.HTTPError as e:
            raise FetchError(url, f"Request failed: {e}") from e
        finally:
            FETCH_LATENCY.observe(time.perf_counter() - start)

        if not resp.is_success:
            raise FetchError(
                url,
                f"HTTP {resp.status_code}: {resp.reason_phrase}",
                status_code=resp.status_code,
            )

        logger.debug(f"Fetched {url} (status={resp.status_code}, {len(resp.content)} bytes)")
        return FetchResult(
            url=url,
            status_code=resp.status_code,
            content=resp.text or "",
            content_type=(resp.headers.get("Content-Type") or "").lower(),
        )
