from loguru import logger
from tortoise import timezone
from tortoise.exceptions import BaseORMException, IntegrityError
from tortoise.transactions import in_transaction

from webindex.errors import PersistenceError
from webindex.parsing.html_extractor import ExtractedPage
from webindex.storage.models.page_model import IndexedPage


class PageStore:
    """Upsert-by-URL storage for extracted pages."""

    async def upsert_page(self, page: ExtractedPage, page_rank: float) -> IndexedPage:
        fields = {
            "title": page.title,
            "description": page.description,
            "content": page.content,
            "domain": page.domain,
            "language": page.language,
            "page_rank": page_rank,
            "last_crawled_at": timezone.now(),
        }

        try:
            try:
                async with in_transaction() as conn:
                    return await self._write(conn, page.url, fields)
            except IntegrityError:
                # a concurrent run inserted the row first; overwrite it
                async with in_transaction() as conn:
                    return await self._write(conn, page.url, fields)
        except BaseORMException as e:
            logger.error(f"Failed to store page {page.url}: {e}")
            raise PersistenceError(page.url, f"Failed to store page: {e}") from e

    async def _write(self, conn, url: str, fields: dict) -> IndexedPage:
        existing = await IndexedPage.filter(url=url).using_db(conn).first()
        if existing is None:
            return await IndexedPage.create(url=url, using_db=conn, **fields)

        existing.update_from_dict(fields)
        await existing.save(using_db=conn)
        return existing

    async def get_page(self, url: str):
        return await IndexedPage.filter(url=url).first()
