import pytest

from webindex.errors import ParseError
from webindex.parsing.html_extractor import UNTITLED_PAGE, extract_page


URL = "https://www.example.com/articles/intro"


def test_extract_page_reads_all_fields():
    html = (
        "<html lang='de-DE'><head><title>  Sample   Page  </title>"
        "<meta name='description' content='A short summary'></head>"
        "<body><p>Hello</p><p>world</p></body></html>"
    )

    page = extract_page(html, URL)

    assert page.url == URL
    assert page.title == "Sample Page"
    assert page.description == "A short summary"
    assert page.content == "Hello world"
    assert page.language == "de"
    assert page.domain == "example.com"


def test_title_falls_back_to_h1_then_placeholder():
    with_h1 = "<html><head></head><body><header><h1>Site Name</h1></header></body></html>"
    bare = "<html><head></head><body><p>text</p></body></html>"

    assert extract_page(with_h1, URL).title == "Site Name"
    assert extract_page(bare, URL).title == UNTITLED_PAGE


def test_description_falls_back_to_open_graph():
    html = (
        "<html><head><meta name='description' content=''>"
        "<meta property='og:description' content='OG summary'></head><body></body></html>"
    )
    assert extract_page(html, URL).description == "OG summary"

    no_meta = "<html><head></head><body></body></html>"
    assert extract_page(no_meta, URL).description == ""


def test_boilerplate_is_stripped_from_content():
    html = (
        "<html><head><style>.x{}</style></head><body>"
        "<header>Top bar</header><nav>Menu</nav>"
        "<main><p>Real   content\n here</p></main>"
        "<script>var x = 1;</script><footer>Copyright</footer>"
        "</body></html>"
    )

    assert extract_page(html, URL).content == "Real content here"


def test_content_is_truncated():
    html = "<html><body><p>" + "a" * 20_000 + "</p></body></html>"

    assert len(extract_page(html, URL).content) == 10_000
    assert len(extract_page(html, URL, max_content_chars=50).content) == 50


def test_language_defaults_to_en():
    assert extract_page("<html><body>x</body></html>", URL).language == "en"


@pytest.mark.parametrize(
    "html,content_type",
    [
        ("", None),
        ("   \n ", None),
        ("\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR", None),
        ("<html><body>fine</body></html>", "application/pdf"),
    ],
)
def test_unparseable_documents_raise_parse_error(html, content_type):
    with pytest.raises(ParseError) as exc_info:
        extract_page(html, URL, content_type)

    assert exc_info.value.url == URL
