import sys
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from tortoise import connections

from webindex.storage.postgres.postgres_init import init_postgres


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep tests on the built-in defaults unless they override values explicitly."""

    for key in [
        "DATABASE_URL",
        "POSTGRES_USER",
        "POSTGRES_PASSWORD",
        "POSTGRES_HOST",
        "POSTGRES_PORT",
        "POSTGRES_DB",
        "CRAWLER_USER_AGENT",
        "REQUEST_TIMEOUT",
        "MAX_LINKS_PER_PAGE",
        "CRAWL_INTERVAL_SECONDS",
        "PROXY_TIMEOUT",
        "PROXY_USER_AGENT",
        "HTTP_PORT",
        "WEBINDEX_CONFIG",
    ]:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
async def db(anyio_backend):
    """Fresh in-memory SQLite database with the crawl_queue / indexed_pages schema."""
    await init_postgres("sqlite://:memory:")
    yield
    await connections.close_all()
