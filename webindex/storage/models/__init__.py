from .queue_model import CrawlQueue
from .page_model import IndexedPage

__all__ = [
    "CrawlQueue",
    "IndexedPage",
]
