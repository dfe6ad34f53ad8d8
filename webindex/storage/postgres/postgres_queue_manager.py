from __future__ import annotations

from typing import Iterable, List, Tuple

from loguru import logger
from tortoise import timezone
from tortoise.exceptions import BaseORMException
from tortoise.expressions import F

from webindex.errors import PersistenceError, SetupError
from webindex.storage.models.queue_model import (
    MAX_ERROR_MESSAGE_LENGTH,
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_PENDING,
    STATUS_PROCESSING,
    CrawlQueue,
)

MIN_PRIORITY = 1
MAX_PRIORITY = 10


def clamp_priority(priority: int) -> int:
    return max(MIN_PRIORITY, min(MAX_PRIORITY, int(priority)))


class CrawlQueueManager:
    """Persisted crawl frontier: priority ordering, atomic claims and retry bookkeeping."""

    async def select_pending(self, limit: int) -> List[CrawlQueue]:
        """Pending entries, highest priority first, oldest first within a priority."""
        try:
            return await (
                CrawlQueue.filter(status=STATUS_PENDING)
                .order_by("-priority", "created_at", "id")
                .limit(limit)
            )
        except BaseORMException as e:
            raise SetupError(f"Failed to fetch crawl queue: {e}") from e

    async def submit_url(self, url: str, priority: int) -> Tuple[CrawlQueue, bool]:
        """Insert an explicit submission, or reset an existing entry to pending in place.

        An entry another run is currently processing keeps its status.
        """
        priority = clamp_priority(priority)
        try:
            entry, created = await CrawlQueue.get_or_create(
                url=url,
                defaults={"priority": priority, "status": STATUS_PENDING},
            )
            if not created:
                await CrawlQueue.filter(url=url).exclude(status=STATUS_PROCESSING).update(
                    priority=priority,
                    status=STATUS_PENDING,
                )
                await entry.refresh_from_db()
        except BaseORMException as e:
            raise PersistenceError(url, f"Failed to add URL to queue: {e}") from e

        logger.debug(f"Submitted URL: {url} (priority={priority}, created={created})")
        return entry, created

    async def claim(self, url: str) -> bool:
        """Move an entry pending -> processing; False if another run already claimed it."""
        try:
            updated = await CrawlQueue.filter(url=url, status=STATUS_PENDING).update(
                status=STATUS_PROCESSING,
                processed_at=timezone.now(),
            )
        except BaseORMException as e:
            raise PersistenceError(url, f"Failed to claim queue entry: {e}") from e
        return updated == 1

    async def mark_completed(self, url: str) -> None:
        try:
            await CrawlQueue.filter(url=url).update(
                status=STATUS_COMPLETED,
                error_message=None,
                processed_at=timezone.now(),
            )
        except BaseORMException as e:
            raise PersistenceError(url, f"Failed to mark entry completed: {e}") from e

    async def mark_failed(self, url: str, error_message: str) -> None:
        await CrawlQueue.filter(url=url).update(
            status=STATUS_FAILED,
            error_message=(error_message or "")[:MAX_ERROR_MESSAGE_LENGTH],
            retry_count=F("retry_count") + 1,
            processed_at=timezone.now(),
        )
        logger.debug(f"Marked failed: {url}")

    async def enqueue_discovered(self, urls: Iterable[str], priority: int) -> int:
        """Insert every URL not already in the frontier; returns how many were new."""
        inserted = 0
        for url in urls:
            try:
                _, created = await CrawlQueue.get_or_create(
                    url=url,
                    defaults={
                        "priority": priority,
                        "status": STATUS_PENDING,
                        "retry_count": 0,
                    },
                )
            except BaseORMException as e:
                logger.warning(f"Skipping discovered URL {url[:200]}: {e}")
                continue
            if created:
                inserted += 1
                logger.debug(f"Enqueued discovered URL: {url}")
        return inserted

    async def count_pending(self) -> int:
        return await CrawlQueue.filter(status=STATUS_PENDING).count()
