from urllib.parse import urlparse

# longest URL the crawl frontier and page index can store
MAX_URL_LENGTH = 2048


def get_hostname(url: str) -> str:
    """Lower-cased hostname without port, or '' if the URL has none."""
    try:
        return urlparse(url).hostname or ""
    except ValueError:
        return ""


def get_domain(url: str) -> str:
    """Hostname with a leading ``www.`` stripped."""
    hostname = get_hostname(url)
    if hostname.startswith("www."):
        return hostname[len("www."):]
    return hostname


def get_base_url(url: str) -> str:
    """``scheme://host[:port]`` of the URL."""
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def is_same_or_subdomain(hostname: str, domain: str) -> bool:
    hostname = hostname.lower()
    return hostname == domain or hostname.endswith("." + domain)
