from __future__ import annotations

from typing import List, Union
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup

from webindex.utils.url_utils import MAX_URL_LENGTH, get_hostname

MAX_LINKS_PER_PAGE = 10


def discover_links(
    document: Union[BeautifulSoup, str],
    source_url: str,
    limit: int = MAX_LINKS_PER_PAGE,
) -> List[str]:
    """
    Same-host links of a crawled page, absolute, de-duplicated and capped at ``limit``.

    Fragments are dropped, so ``/a#top`` and ``/a#end`` both queue as ``/a`` and
    the queued URL can differ from the href as written. Links longer than
    ``MAX_URL_LENGTH`` are skipped.
    """
    soup = document if isinstance(document, BeautifulSoup) else BeautifulSoup(document, "lxml")
    source_host = get_hostname(source_url)
    if not source_host:
        return []

    links: List[str] = []
    seen: set[str] = set()

    for tag in soup.find_all("a", href=True):
        href = tag["href"].strip()
        if not href:
            continue

        try:
            absolute, _ = urldefrag(urljoin(source_url, href))
            host = urlparse(absolute).hostname
        except ValueError:
            continue

        # never expand across hosts, subdomains included
        if host != source_host:
            continue

        if len(absolute) > MAX_URL_LENGTH:
            continue

        if absolute not in seen:
            seen.add(absolute)
            links.append(absolute)

    return links[:limit]
