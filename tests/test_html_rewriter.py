from bs4 import BeautifulSoup

from webindex.proxy.html_rewriter import (
    FRAME_ANCESTORS_POLICY,
    rewrite_attribute_value,
    rewrite_css_urls,
    rewrite_html,
)

TARGET = "https://example.com/dir/page.html"


def test_relative_src_becomes_absolute():
    out = rewrite_html('<html><head></head><body><img src="/logo.png"></body></html>', TARGET)

    assert 'src="https://example.com/logo.png"' in out


def test_css_url_in_style_element_is_rewritten():
    html = "<html><head><style>body { background: url(bg.jpg) }</style></head><body></body></html>"

    assert "url('https://example.com/bg.jpg')" in rewrite_html(html, TARGET)


def test_css_url_in_style_attribute_is_rewritten():
    html = """<div style="background-image: url('/img/a.png')">x</div>"""

    assert "url('https://example.com/img/a.png')" in rewrite_html(html, TARGET)


def test_absolute_links_are_untouched():
    out = rewrite_html('<html><head></head><body><a href="https://other.com">x</a></body></html>', TARGET)

    assert 'href="https://other.com"' in out


def test_excluded_prefixes_are_left_alone():
    for value in (
        "http://a.com/x",
        "HTTPS://a.com/x",
        "//cdn.example.net/lib.js",
        "data:image/png;base64,AAAA",
        "javascript:void(0)",
        "#section",
        "mailto:me@example.com",
        "",
    ):
        assert rewrite_attribute_value(value, "https://example.com") == value

    assert rewrite_attribute_value("img/a.png", "https://example.com") == "https://example.com/img/a.png"


def test_css_rewrite_skips_absolute_and_data_urls():
    css = "a{background:url(\"https://cdn.com/x.png\")} b{background:url(data:image/gif;base64,R0)}"

    assert rewrite_css_urls(css, "https://example.com") == css
    assert rewrite_css_urls('i{background:url( "/a b.png" )}', "https://example.com") == (
        "i{background:url('https://example.com/a b.png')}"
    )


def test_all_listed_attributes_are_rewritten():
    html = (
        '<form action="submit"></form><img data-src="lazy.png">'
        '<video poster="/poster.jpg"></video><link href="style.css">'
    )

    out = rewrite_html(html, TARGET)

    assert 'action="https://example.com/submit"' in out
    assert 'data-src="https://example.com/lazy.png"' in out
    assert 'poster="https://example.com/poster.jpg"' in out
    assert 'href="https://example.com/style.css"' in out


def test_base_meta_and_script_are_injected_first_in_head():
    html = "<HTML><HEAD><TITLE>t</TITLE></HEAD><BODY></BODY></HTML>"

    soup = BeautifulSoup(rewrite_html(html, TARGET), "html.parser")
    children = [c for c in soup.head.children if getattr(c, "name", None)]

    assert [c.name for c in children[:4]] == ["base", "meta", "script", "title"]
    assert children[0]["href"] == "https://example.com/"
    assert children[0]["target"] == "_self"
    assert children[1]["http-equiv"] == "Content-Security-Policy"
    assert children[1]["content"] == FRAME_ANCESTORS_POLICY
    assert "postMessage" in children[2].string
    assert "'navigate'" in children[2].string


def test_document_without_head_gets_base_prepended():
    out = rewrite_html("<p>fragment</p>", TARGET)

    assert out.startswith('<base href="https://example.com/" target="_self"/>')
    assert out.endswith("<p>fragment</p>")


def test_script_text_that_looks_like_an_attribute_is_preserved():
    html = """<html><head></head><body><script>var s = 'src="x.png"'; var u = "url(y.png)";</script></body></html>"""

    out = rewrite_html(html, TARGET)

    assert """var s = 'src="x.png"'; var u = "url(y.png)";""" in out
