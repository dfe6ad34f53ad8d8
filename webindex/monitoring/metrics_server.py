from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    generate_latest,
    Counter,
    Gauge,
    Histogram,
)

# -------------------------
# Crawl Metrics
# -------------------------

CRAWL_BATCHES = Counter(
    "webindex_crawl_batches_total",
    "Crawl orchestrator invocations",
)

# outcome = success / fetch_error / parse_error / persistence_error / claim_lost / unexpected
CRAWLED_PAGES = Counter(
    "webindex_crawl_pages_total",
    "Pages attempted by the crawl orchestrator",
    ["outcome"],
)

DISCOVERED_LINKS = Counter(
    "webindex_discovered_links_total",
    "New URLs added to the frontier by link discovery",
)

FETCH_LATENCY = Histogram(
    "webindex_fetch_latency_seconds",
    "Time to fetch a page",
)

# -------------------------
# Queue Metrics
# -------------------------

QUEUE_PENDING = Gauge(
    "webindex_queue_pending",
    "Number of URLs waiting in queue"
)

# -------------------------
# Proxy Metrics
# -------------------------

# outcome = rewritten / passthrough / upstream_error / error
PROXY_REQUESTS = Counter(
    "webindex_proxy_requests_total",
    "Rewrite proxy requests",
    ["outcome"],
)


# -------------------------
# /metrics endpoint
# -------------------------

async def metrics_handler(request):
    data = generate_latest()

    # the exposition content type must go out without its charset parameter
    ctype = CONTENT_TYPE_LATEST.split(";")[0]

    return web.Response(
        body=data,
        content_type=ctype
    )
