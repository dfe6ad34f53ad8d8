from webindex.storage.postgres.postgres_init import to_tortoise_url
from webindex.utils.url_utils import (
    get_base_url,
    get_domain,
    get_hostname,
    is_same_or_subdomain,
)


def test_get_domain_strips_leading_www_only():
    assert get_domain("https://www.Example.com/page") == "example.com"
    assert get_domain("https://docs.www.example.com") == "docs.www.example.com"
    assert get_domain("not-a-url") == ""


def test_get_hostname_drops_port():
    assert get_hostname("https://Sub.Example.com:8443/x") == "sub.example.com"


def test_get_base_url_keeps_scheme_and_host():
    assert get_base_url("https://example.com/dir/page.html?q=1") == "https://example.com"
    assert get_base_url("http://localhost:3000/a") == "http://localhost:3000"



def test_is_same_or_subdomain():
    assert is_same_or_subdomain("en.wikipedia.org", "wikipedia.org")
    assert is_same_or_subdomain("github.com", "github.com")
    assert not is_same_or_subdomain("notgithub.com", "github.com")


def test_to_tortoise_url_normalizes_postgres_variants():
    assert to_tortoise_url("postgresql://u:p@h:5432/db") == "asyncpg://u:p@h:5432/db"
    assert to_tortoise_url("postgres://u:p@h/db") == "asyncpg://u:p@h/db"
    assert to_tortoise_url("postgresql+psycopg2://u:p@h/db") == "asyncpg://u:p@h/db"
    assert to_tortoise_url("sqlite://:memory:") == "sqlite://:memory:"
