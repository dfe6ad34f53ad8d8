from loguru import logger
from tortoise import Tortoise

MODEL_MODULES = [
    "webindex.storage.models.queue_model",
    "webindex.storage.models.page_model",
]


def to_tortoise_url(url: str) -> str:
    """Convert a PostgreSQL DSN to the ``asyncpg://`` scheme understood by Tortoise.

    SQLAlchemy-style ``postgresql+psycopg2://`` URLs have their driver part
    stripped first. Other schemes (``sqlite://``, ``asyncpg://``) pass through.
    """

    if url.startswith("postgresql+"):
        url = "postgresql://" + url.split("://", 1)[1]
    if url.startswith("postgresql://"):
        return "asyncpg://" + url[len("postgresql://") :]
    if url.startswith("postgres://"):
        return "asyncpg://" + url[len("postgres://") :]
    return url


async def init_postgres(database_url: str) -> None:
    """
    Connect the ORM and create or verify the crawl_queue / indexed_pages tables.
    """
    db_url = to_tortoise_url(database_url)

    logger.info("Initializing database and ORM models...")

    await Tortoise.init(
        db_url=db_url,
        modules={"models": MODEL_MODULES},
    )

    await Tortoise.generate_schemas(safe=True)
    logger.info("Database tables created or verified.")
