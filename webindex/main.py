import asyncio
import signal
from loguru import logger

# -------------------------------
# UVLOOP (used when installed)
# -------------------------------
try:
    import uvloop
    uvloop.install()
except ImportError:
    logger.warning("uvloop not available, using default asyncio loop.")

# -------------------------------
# INTERNAL IMPORTS
# -------------------------------
from tortoise import connections

from webindex.api.app import create_app, start_http_server
from webindex.fetching.page_fetcher import PageFetcher
from webindex.orchestrator import CrawlOrchestrator, CrawlReport
from webindex.scheduler import CrawlScheduler
from webindex.storage.postgres.postgres_init import init_postgres
from webindex.utils.config_loader import Config, load_config, load_environment
from webindex.utils.logger import setup_logger


def scheduled_batch(config: Config):
    async def run_batch(max_urls: int) -> CrawlReport:
        async with PageFetcher(config.crawler_user_agent, config.request_timeout) as fetcher:
            return await CrawlOrchestrator.from_config(config, fetcher).run(max_urls=max_urls)

    return run_batch


# -------------------------------
# MAIN APPLICATION
# -------------------------------
async def main() -> None:
    load_environment()
    config = load_config()
    setup_logger(config.log_level, config.log_path)

    logger.info("Starting webindex...")

    # ---- Database ----
    await init_postgres(config.database_url)

    # ---- HTTP API ----
    app = create_app(config)
    runner, _site = await start_http_server(app, config.http_host, config.http_port)

    # ---- Scheduled trigger ----
    scheduler_task = None
    if config.crawl_interval_seconds:
        scheduler = CrawlScheduler(
            scheduled_batch(config),
            interval_seconds=config.crawl_interval_seconds,
            max_urls=config.default_max_urls,
        )
        scheduler_task = asyncio.create_task(scheduler.run())

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown_event.set)

    logger.info("webindex started successfully.")

    try:
        await shutdown_event.wait()
    except asyncio.CancelledError:
        pass
    finally:
        if scheduler_task is not None:
            scheduler_task.cancel()
            await asyncio.gather(scheduler_task, return_exceptions=True)

        await runner.shutdown()
        await runner.cleanup()
        await connections.close_all()


# -------------------------------
# ENTRYPOINT
# -------------------------------
def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
