"""Error kinds raised by the crawl pipeline and the rewrite proxy."""
from typing import Optional


class CrawlError(Exception):
    """Per-URL failure; recorded on the queue entry, never fatal to a batch."""

    def __init__(self, url: str, message: str):
        super().__init__(message)
        self.url = url
        self.message = message


class FetchError(CrawlError):
    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        super().__init__(url, message)
        self.status_code = status_code


class ParseError(CrawlError):
    pass


class PersistenceError(CrawlError):
    pass


class SetupError(Exception):
    """The work batch could not be read; aborts the whole invocation."""


class ProxyError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
