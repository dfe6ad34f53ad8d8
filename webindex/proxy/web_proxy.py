from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx
from loguru import logger

from webindex.errors import ProxyError
from webindex.monitoring.metrics_server import PROXY_REQUESTS
from webindex.proxy.html_rewriter import rewrite_html
from webindex.utils.config_loader import DEFAULT_PROXY_USER_AGENT

DEFAULT_CONTENT_TYPE = "text/html"
REWRITTEN_CONTENT_TYPE = "text/html; charset=utf-8"

# sent on every proxy response, success or error
FRAME_PERMISSIVE_HEADERS = {
    "X-Frame-Options": "ALLOWALL",
    "Content-Security-Policy": "frame-ancestors *",
}


@dataclass
class ProxyResult:
    url: str
    body: bytes
    content_type: str
    rewritten: bool


class WebProxy:
    """Fetch a page the way a browser would and prepare it for framed display."""

    def __init__(
        self,
        user_agent: str = DEFAULT_PROXY_USER_AGENT,
        timeout: float = 15.0,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.user_agent = user_agent
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> dict:
        return {
            "User-Agent": self.user_agent,
            "Accept": (
                "text/html,application/xhtml+xml,application/xml;q=0.9,"
                "image/avif,image/webp,image/apng,*/*;q=0.8"
            ),
            "Accept-Language": "en-US,en;q=0.9",
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
        }

    async def fetch(self, url: str) -> ProxyResult:
        logger.info(f"Proxying URL: {url}")

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(timeout=self.timeout),
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                resp = await client.get(url, headers=self._headers())
        except httpx.TimeoutException as e:
            PROXY_REQUESTS.labels(outcome="upstream_error").inc()
            raise ProxyError(504, f"Failed to fetch: timed out after {self.timeout:g}s") from e
        except httpx.HTTPError as e:
            PROXY_REQUESTS.labels(outcome="upstream_error").inc()
            raise ProxyError(502, f"Failed to fetch: {e}") from e

        if not resp.is_success:
            PROXY_REQUESTS.labels(outcome="upstream_error").inc()
            logger.error(f"Failed to fetch {url}: {resp.status_code} {resp.reason_phrase}")
            raise ProxyError(
                resp.status_code if resp.status_code >= 400 else 502,
                f"Failed to fetch: {resp.status_code} {resp.reason_phrase}",
            )

        content_type = resp.headers.get("Content-Type") or DEFAULT_CONTENT_TYPE

        if "text/html" not in content_type.lower():
            PROXY_REQUESTS.labels(outcome="passthrough").inc()
            return ProxyResult(url=url, body=resp.content, content_type=content_type, rewritten=False)

        html = rewrite_html(resp.text, url)
        PROXY_REQUESTS.labels(outcome="rewritten").inc()
        logger.info(f"Successfully proxied URL: {url}")
        return ProxyResult(
            url=url,
            body=html.encode("utf-8"),
            content_type=REWRITTEN_CONTENT_TYPE,
            rewritten=True,
        )
