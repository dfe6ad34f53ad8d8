import asyncio
from typing import Awaitable, Callable

from loguru import logger

from webindex.errors import SetupError
from webindex.orchestrator import CrawlReport


class CrawlScheduler:
    """Periodic crawl trigger: runs one batch every ``interval_seconds``."""

    def __init__(
        self,
        run_batch: Callable[[int], Awaitable[CrawlReport]],
        interval_seconds: int,
        max_urls: int = 5,
    ):
        self.run_batch = run_batch
        self.interval_seconds = interval_seconds
        self.max_urls = max_urls

    async def tick(self) -> None:
        try:
            report = await self.run_batch(self.max_urls)
            logger.info(f"Scheduled crawl: {report.message}")
        except SetupError as e:
            logger.error(f"Scheduled crawl could not start: {e}")
        except Exception:
            logger.exception("Scheduled crawl failed")

    async def run(self) -> None:
        logger.info(f"Scheduler started (every {self.interval_seconds}s, max_urls={self.max_urls})")
        while True:
            await self.tick()
            await asyncio.sleep(self.interval_seconds)
