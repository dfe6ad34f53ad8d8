from webindex.parsing.link_discovery import discover_links


def _page(*hrefs):
    anchors = "".join(f"<a href='{href}'>link</a>" for href in hrefs)
    return f"<html><body>{anchors}</body></html>"


def test_only_same_host_links_are_kept():
    html = _page(
        "https://a.example.com/q",
        "https://b.example.com/r",
        "https://other.com/s",
    )

    assert discover_links(html, "https://a.example.com/p") == ["https://a.example.com/q"]


def test_relative_links_are_resolved_and_deduplicated():
    html = _page("/about", "about#team", "../contact", "/about", "mailto:me@example.com")

    links = discover_links(html, "https://example.com/base/page")

    assert links == [
        "https://example.com/about",
        "https://example.com/base/about",
        "https://example.com/contact",
    ]


def test_malformed_hrefs_are_skipped():
    html = _page("http://[broken", "/ok")

    assert discover_links(html, "https://example.com/") == ["https://example.com/ok"]


def test_links_are_capped_per_page():
    html = _page(*[f"/page-{i}" for i in range(25)])

    links = discover_links(html, "https://example.com/")

    assert len(links) == 10
    assert links[0] == "https://example.com/page-0"
    assert len(discover_links(html, "https://example.com/", limit=3)) == 3


def test_links_too_long_to_store_are_skipped():
    html = _page("/track?id=" + "x" * 3000, "/next")

    assert discover_links(html, "https://example.com/") == ["https://example.com/next"]
