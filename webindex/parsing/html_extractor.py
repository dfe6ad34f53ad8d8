from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from bs4 import BeautifulSoup

from webindex.errors import ParseError
from webindex.utils.url_utils import get_domain

UNTITLED_PAGE = "Untitled Page"
DEFAULT_LANGUAGE = "en"
MAX_CONTENT_CHARS = 10_000

# page chrome that should never end up in the indexed text
BOILERPLATE_TAGS = ["script", "style", "nav", "footer", "header"]

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


@dataclass
class ExtractedPage:
    url: str
    title: str
    description: str
    content: str
    domain: str
    language: str
    document: Optional[BeautifulSoup] = field(default=None, repr=False, compare=False)


def is_html_content_type(content_type: str | None) -> bool:
    if not content_type:
        return True
    content_type = content_type.lower()
    return any(ct in content_type for ct in HTML_CONTENT_TYPES)


def parse_html(html: str, url: str, content_type: str | None = None) -> BeautifulSoup:
    """Parse a fetched document, rejecting anything that is not really HTML."""
    if not is_html_content_type(content_type):
        raise ParseError(url, f"Unsupported content type: {content_type}")
    if not html or not html.strip():
        raise ParseError(url, "Empty document")
    if "\x00" in html:
        raise ParseError(url, "Binary content is not HTML")

    try:
        soup = BeautifulSoup(html, "lxml")
    except Exception as e:
        raise ParseError(url, f"Failed to parse HTML: {e}") from e

    if soup.find() is None:
        raise ParseError(url, "Failed to parse HTML")
    return soup


def _collapse(text: str) -> str:
    return " ".join(text.split())


def extract_title(soup: BeautifulSoup) -> str:
    if soup.title is not None:
        title = _collapse(soup.title.get_text())
        if title:
            return title

    h1 = soup.find("h1")
    if h1 is not None:
        heading = _collapse(h1.get_text(separator=" "))
        if heading:
            return heading

    return UNTITLED_PAGE


def extract_description(soup: BeautifulSoup) -> str:
    for attrs in ({"name": "description"}, {"property": "og:description"}):
        tag = soup.find("meta", attrs=attrs)
        if tag is not None and tag.get("content"):
            return tag["content"].strip()
    return ""


def extract_language(soup: BeautifulSoup) -> str:
    html_tag = soup.find("html")
    if html_tag is None:
        return DEFAULT_LANGUAGE
    lang = (html_tag.get("lang") or "").strip()
    return lang[:2] or DEFAULT_LANGUAGE


def strip_boilerplate(soup: BeautifulSoup) -> None:
    for tag in soup(BOILERPLATE_TAGS):
        tag.decompose()


def extract_text(soup: BeautifulSoup, max_chars: int = MAX_CONTENT_CHARS) -> str:
    """
    Body text with whitespace collapsed, truncated to ``max_chars``.
    """
    body = soup.body
    if body is None:
        return ""
    return _collapse(body.get_text(separator=" "))[:max_chars]


def extract_page(
    html: str,
    url: str,
    content_type: str | None = None,
    *,
    max_content_chars: int = MAX_CONTENT_CHARS,
) -> ExtractedPage:
    soup = parse_html(html, url, content_type)

    # title and description are read before the page chrome is removed
    title = extract_title(soup)
    description = extract_description(soup)
    language = extract_language(soup)

    strip_boilerplate(soup)
    content = extract_text(soup, max_content_chars)

    return ExtractedPage(
        url=url,
        title=title,
        description=description,
        content=content,
        domain=get_domain(url),
        language=language,
        document=soup,
    )
