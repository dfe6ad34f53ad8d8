"""Rewrite third-party HTML so it renders correctly inside a frame.

The document is parsed into a tree and only real attribute nodes and real CSS
(``style`` attributes and ``<style>`` elements) are touched, so text that
merely looks like markup (e.g. ``"src="`` inside a script string) is left alone.
"""
from __future__ import annotations

import re

from bs4 import BeautifulSoup

from webindex.utils.url_utils import get_base_url

REWRITTEN_ATTRIBUTES = ("src", "href", "action", "data-src", "poster")

# references that already resolve on their own
_ABSOLUTE_REF_RE = re.compile(r"^(?:https?://|//|data:|javascript:|#|mailto:)", re.IGNORECASE)

_CSS_URL_RE = re.compile(
    r"""url\(\s*(['"]?)(?!https?://|data:)([^'")\s][^'")]*?)\1\s*\)""",
    re.IGNORECASE,
)

FRAME_ANCESTORS_POLICY = "frame-ancestors *;"

NAVIGATION_SCRIPT = """
(function() {
  document.addEventListener('click', function(e) {
    var link = e.target && e.target.closest ? e.target.closest('a') : null;
    if (link && link.getAttribute('href')) {
      e.preventDefault();
      window.parent.postMessage({ type: 'navigate', url: link.href }, '*');
    }
  });
})();
"""


def _absolute(base_url: str, path: str) -> str:
    return f"{base_url}/{path[1:] if path.startswith('/') else path}"


def rewrite_attribute_value(value: str, base_url: str) -> str:
    if not value or _ABSOLUTE_REF_RE.match(value):
        return value
    return _absolute(base_url, value)


def rewrite_css_urls(css: str, base_url: str) -> str:
    return _CSS_URL_RE.sub(
        lambda m: f"url('{_absolute(base_url, m.group(2).strip())}')",
        css,
    )


def _rewrite_references(soup: BeautifulSoup, base_url: str) -> None:
    for tag in soup.find_all(True):
        for attr in REWRITTEN_ATTRIBUTES:
            value = tag.get(attr)
            if isinstance(value, str):
                tag[attr] = rewrite_attribute_value(value, base_url)

        style = tag.get("style")
        if isinstance(style, str):
            tag["style"] = rewrite_css_urls(style, base_url)

    for style_tag in soup.find_all("style"):
        if style_tag.string:
            style_tag.string = rewrite_css_urls(str(style_tag.string), base_url)


def _inject_frame_support(soup: BeautifulSoup, base_url: str) -> None:
    base = soup.new_tag("base", href=f"{base_url}/", target="_self")
    meta = soup.new_tag(
        "meta",
        attrs={"http-equiv": "Content-Security-Policy", "content": FRAME_ANCESTORS_POLICY},
    )
    script = soup.new_tag("script")
    script.string = NAVIGATION_SCRIPT

    head = soup.find("head")
    if head is not None:
        head.insert(0, base)
    else:
        soup.insert(0, base)

    base.insert_after(meta)
    meta.insert_after(script)


def rewrite_html(html: str, target_url: str) -> str:
    """Return ``html`` rewritten for framed display of ``target_url``."""
    base_url = get_base_url(target_url)
    soup = BeautifulSoup(html, "html.parser")

    _rewrite_references(soup, base_url)
    _inject_frame_support(soup, base_url)

    return str(soup)
