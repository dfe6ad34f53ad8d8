from __future__ import annotations

from typing import Optional

import httpx
from aiohttp import web
from loguru import logger

from webindex.api.handlers import (
    CONFIG_KEY,
    TRANSPORT_KEY,
    crawl_handler,
    submit_url_handler,
    web_proxy_handler,
)
from webindex.monitoring.metrics_server import metrics_handler
from webindex.utils.config_loader import Config

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


@web.middleware
async def cors_middleware(request: web.Request, handler):
    if request.method == "OPTIONS":
        return web.Response(headers=CORS_HEADERS)

    response = await handler(request)
    response.headers.update(CORS_HEADERS)
    return response


@web.middleware
async def error_middleware(request: web.Request, handler):
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unhandled error in {request.method} {request.path}")
        return web.json_response(
            {"error": "Internal server error", "details": str(e)},
            status=500,
        )


def create_app(config: Config, *, transport: Optional[httpx.AsyncBaseTransport] = None) -> web.Application:
    app = web.Application(middlewares=[cors_middleware, error_middleware])
    app[CONFIG_KEY] = config
    app[TRANSPORT_KEY] = transport

    app.router.add_post("/crawl", crawl_handler)
    app.router.add_post("/submit-url", submit_url_handler)
    app.router.add_post("/web-proxy", web_proxy_handler)
    app.router.add_get("/metrics", metrics_handler)
    return app


async def start_http_server(app: web.Application, host: str, port: int):
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    logger.info(f"HTTP server listening on {host}:{port}")

    return runner, site
