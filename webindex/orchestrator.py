from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from loguru import logger
from tortoise.exceptions import BaseORMException

from webindex.errors import CrawlError, FetchError, ParseError, PersistenceError, SetupError
from webindex.fetching.page_fetcher import PageFetcher
from webindex.monitoring.metrics_server import (
    CRAWL_BATCHES,
    CRAWLED_PAGES,
    DISCOVERED_LINKS,
    QUEUE_PENDING,
)
from webindex.parsing.html_extractor import MAX_CONTENT_CHARS, extract_page
from webindex.parsing.link_discovery import MAX_LINKS_PER_PAGE, discover_links
from webindex.ranking import compute_page_rank
from webindex.storage.postgres.page_store import PageStore
from webindex.storage.postgres.postgres_queue_manager import CrawlQueueManager

NO_URLS_MESSAGE = "No URLs to crawl"
CLAIM_LOST_MESSAGE = "URL is already being processed by another crawl run"

DEFAULT_MAX_URLS = 5
DISCOVERED_PRIORITY = 3
SUBMIT_PRIORITY = 5


@dataclass
class CrawlResult:
    url: str
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.error is None:
            data.pop("error")
        return data


@dataclass
class CrawlReport:
    crawled: int
    message: str
    results: List[CrawlResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": True,
            "message": self.message,
            "crawled": self.crawled,
        }
        if self.crawled:
            data["results"] = [r.to_dict() for r in self.results]
        return data


def _outcome(exc: Exception) -> str:
    if isinstance(exc, FetchError):
        return "fetch_error"
    if isinstance(exc, ParseError):
        return "parse_error"
    if isinstance(exc, PersistenceError):
        return "persistence_error"
    return "unexpected"


class CrawlOrchestrator:
    """
    Drives fetch -> extract -> rank -> store -> discover for one batch of URLs.

    URLs of a batch are processed one after another; a failing URL is recorded
    on its queue entry and never aborts the rest of the batch.
    """

    def __init__(
        self,
        queue: CrawlQueueManager,
        pages: PageStore,
        fetcher: PageFetcher,
        *,
        discovered_priority: int = DISCOVERED_PRIORITY,
        submit_priority: int = SUBMIT_PRIORITY,
        max_links_per_page: int = MAX_LINKS_PER_PAGE,
        max_content_chars: int = MAX_CONTENT_CHARS,
    ):
        self.queue = queue
        self.pages = pages
        self.fetcher = fetcher
        self.discovered_priority = discovered_priority
        self.submit_priority = submit_priority
        self.max_links_per_page = max_links_per_page
        self.max_content_chars = max_content_chars

    @classmethod
    def from_config(cls, config, fetcher: PageFetcher) -> "CrawlOrchestrator":
        return cls(
            CrawlQueueManager(),
            PageStore(),
            fetcher,
            discovered_priority=config.discovered_priority,
            submit_priority=config.submit_priority,
            max_links_per_page=config.max_links_per_page,
            max_content_chars=config.max_content_chars,
        )

    # --------------------------
    #  Batch selection
    # --------------------------
    async def _select_batch(self, url: Optional[str], max_urls: int) -> List[str]:
        if url:
            try:
                await self.queue.submit_url(url, self.submit_priority)
            except PersistenceError as e:
                raise SetupError(e.message) from e
            return [url]

        entries = await self.queue.select_pending(max_urls)
        return [entry.url for entry in entries]

    # --------------------------
    #  Main processing
    # --------------------------
    async def run(self, url: Optional[str] = None, max_urls: int = DEFAULT_MAX_URLS) -> CrawlReport:
        CRAWL_BATCHES.inc()
        logger.info(f"Crawl request: url={url} max_urls={max_urls}")

        batch = await self._select_batch(url, max_urls)
        if not batch:
            logger.info(NO_URLS_MESSAGE)
            return CrawlReport(crawled=0, message=NO_URLS_MESSAGE)

        logger.info(f"Starting crawl for {len(batch)} URLs")
        results = [await self.process_url(target) for target in batch]

        await self._refresh_queue_gauge()

        succeeded = sum(1 for r in results if r.success)
        logger.info(f"Crawl finished: {succeeded}/{len(batch)} succeeded")
        return CrawlReport(
            crawled=len(batch),
            message=f"Crawled {len(batch)} URLs",
            results=results,
        )

    async def process_url(self, url: str) -> CrawlResult:
        try:
            claimed = await self.queue.claim(url)
        except PersistenceError as e:
            CRAWLED_PAGES.labels(outcome="persistence_error").inc()
            logger.error(f"Could not claim {url}: {e}")
            return CrawlResult(url=url, success=False, error=e.message)

        if not claimed:
            CRAWLED_PAGES.labels(outcome="claim_lost").inc()
            logger.warning(f"Skipping {url}: {CLAIM_LOST_MESSAGE}")
            return CrawlResult(url=url, success=False, error=CLAIM_LOST_MESSAGE)

        try:
            # --------------------------
            # 1) Fetch stage
            # --------------------------
            fetched = await self.fetcher.fetch(url)

            # --------------------------
            # 2) Parsing + ranking stage
            # --------------------------
            page = extract_page(
                fetched.content,
                url,
                fetched.content_type,
                max_content_chars=self.max_content_chars,
            )
            page_rank = compute_page_rank(page.content, page.title, page.domain)

            # --------------------------
            # 3) Storage stage
            # --------------------------
            await self.pages.upsert_page(page, page_rank)
            await self.queue.mark_completed(url)
        except Exception as e:
            await self._record_failure(url, e)
            return CrawlResult(url=url, success=False, error=str(e) or type(e).__name__)

        CRAWLED_PAGES.labels(outcome="success").inc()
        logger.info(f"Crawled: {url} (title={page.title!r}, rank={page_rank})")

        # --------------------------
        # 4) Link enqueue stage
        # --------------------------
        await self._enqueue_links(page.document, url)

        return CrawlResult(url=url, success=True)

    async def _record_failure(self, url: str, exc: Exception) -> None:
        CRAWLED_PAGES.labels(outcome=_outcome(exc)).inc()
        if isinstance(exc, CrawlError):
            logger.error(f"Error crawling {url}: {exc}")
        else:
            logger.exception(f"Unexpected error crawling {url}")

        try:
            await self.queue.mark_failed(url, str(exc) or type(exc).__name__)
        except BaseORMException as db_exc:
            logger.error(f"Could not record failure for {url}: {db_exc}")

    async def _enqueue_links(self, document, url: str) -> None:
        if document is None:
            return

        links = discover_links(document, url, limit=self.max_links_per_page)
        if not links:
            return

        try:
            added = await self.queue.enqueue_discovered(links, self.discovered_priority)
        except BaseORMException as e:
            logger.warning(f"Failed to enqueue links discovered on {url}: {e}")
            return

        DISCOVERED_LINKS.inc(added)
        logger.debug(f"Discovered {len(links)} links on {url}, {added} new")

    async def _refresh_queue_gauge(self) -> None:
        try:
            QUEUE_PENDING.set(await self.queue.count_pending())
        except BaseORMException as e:
            logger.debug(f"Queue gauge not refreshed: {e}")
