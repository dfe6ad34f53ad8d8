from __future__ import annotations

import json
from typing import Any, Dict
from urllib.parse import urlparse

from aiohttp import web
from loguru import logger

from webindex.errors import PersistenceError, ProxyError, SetupError
from webindex.fetching.page_fetcher import PageFetcher
from webindex.monitoring.metrics_server import PROXY_REQUESTS
from webindex.orchestrator import CrawlOrchestrator
from webindex.proxy.web_proxy import FRAME_PERMISSIVE_HEADERS, WebProxy
from webindex.storage.models.queue_model import CrawlQueue
from webindex.storage.postgres.postgres_queue_manager import CrawlQueueManager

CONFIG_KEY = web.AppKey("config", object)
TRANSPORT_KEY = web.AppKey("transport", object)


class BadRequest(Exception):
    pass


async def _read_json(request: web.Request) -> Dict[str, Any]:
    if not request.body_exists:
        return {}
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise BadRequest("Request body must be valid JSON") from e
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise BadRequest("Request body must be a JSON object")
    return body


def _validate_url(url: Any, *, required: bool = True) -> str | None:
    if url is None or (isinstance(url, str) and not url.strip()):
        if required:
            raise BadRequest("URL is required")
        return None
    if not isinstance(url, str):
        raise BadRequest("Invalid URL format")

    url = url.strip()
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise BadRequest("Invalid URL format") from e
    if not parsed.scheme or not parsed.netloc:
        raise BadRequest("Invalid URL format")
    if parsed.scheme not in ("http", "https"):
        raise BadRequest("Only HTTP and HTTPS URLs are allowed")
    return url


def _positive_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or int(value) != value or value < 1:
        raise BadRequest(f"{name} must be a positive integer")
    return int(value)


def _entry_to_dict(entry: CrawlQueue) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "url": entry.url,
        "status": entry.status,
        "priority": entry.priority,
        "retry_count": entry.retry_count,
        "error_message": entry.error_message,
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
        "processed_at": entry.processed_at.isoformat() if entry.processed_at else None,
    }


# -------------------------
# POST /crawl
# -------------------------

async def crawl_handler(request: web.Request) -> web.Response:
    config = request.app[CONFIG_KEY]

    try:
        body = await _read_json(request)
        url = _validate_url(body.get("url"), required=False)
        max_urls = _positive_int(body.get("maxUrls", config.default_max_urls), "maxUrls")
    except BadRequest as e:
        return web.json_response({"error": str(e)}, status=400)

    max_urls = min(max_urls, config.max_batch_urls)

    async with PageFetcher(
        config.crawler_user_agent,
        config.request_timeout,
        transport=request.app[TRANSPORT_KEY],
    ) as fetcher:
        orchestrator = CrawlOrchestrator.from_config(config, fetcher)
        try:
            report = await orchestrator.run(url=url, max_urls=max_urls)
        except SetupError as e:
            logger.error(f"Crawl setup failed: {e}")
            return web.json_response(
                {"error": "Failed to fetch crawl queue", "details": str(e)},
                status=500,
            )

    return web.json_response(report.to_dict())


# -------------------------
# POST /submit-url
# -------------------------

async def submit_url_handler(request: web.Request) -> web.Response:
    config = request.app[CONFIG_KEY]

    try:
        body = await _read_json(request)
        url = _validate_url(body.get("url"))
        priority = body.get("priority", config.submit_priority)
        if isinstance(priority, bool) or not isinstance(priority, (int, float)):
            raise BadRequest("priority must be a number")
    except BadRequest as e:
        return web.json_response({"error": str(e)}, status=400)

    logger.info(f"Submit URL request: {url} (priority={priority})")

    try:
        entry, created = await CrawlQueueManager().submit_url(url, int(priority))
    except PersistenceError as e:
        logger.error(f"Error submitting {url}: {e}")
        return web.json_response(
            {"error": "Failed to add URL to queue", "details": e.message},
            status=500,
        )

    if created:
        return web.json_response(
            {"success": True, "message": "URL added to crawl queue", "data": _entry_to_dict(entry)},
            status=201,
        )
    return web.json_response(
        {"success": True, "message": "URL already in queue, updated priority", "data": _entry_to_dict(entry)},
    )


# -------------------------
# POST /web-proxy
# -------------------------

async def web_proxy_handler(request: web.Request) -> web.Response:
    config = request.app[CONFIG_KEY]

    try:
        body = await _read_json(request)
        url = _validate_url(body.get("url"))
    except BadRequest as e:
        return web.json_response({"error": str(e)}, status=400, headers=FRAME_PERMISSIVE_HEADERS)

    proxy = WebProxy(
        config.proxy_user_agent,
        config.proxy_timeout,
        transport=request.app[TRANSPORT_KEY],
    )

    try:
        result = await proxy.fetch(url)
    except ProxyError as e:
        return web.json_response(
            {"error": e.message},
            status=e.status_code,
            headers=FRAME_PERMISSIVE_HEADERS,
        )
    except Exception as e:
        logger.exception(f"Proxy error for {url}")
        PROXY_REQUESTS.labels(outcome="error").inc()
        return web.json_response(
            {"error": str(e) or "Failed to proxy request"},
            status=500,
            headers=FRAME_PERMISSIVE_HEADERS,
        )

    return web.Response(
        body=result.body,
        headers={"Content-Type": result.content_type, **FRAME_PERMISSIVE_HEADERS},
    )
