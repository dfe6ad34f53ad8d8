"""Heuristic page rank used as an ordering signal for indexed pages.

The score is additive and fully deterministic so that re-crawling an
unchanged page always yields the same value.
"""
import math

from webindex.utils.url_utils import is_same_or_subdomain

REPUTABLE_DOMAINS = ("wikipedia.org", "mozilla.org", "github.com", "stackoverflow.com")

MAX_CONTENT_SCORE = 5.0
TITLE_BONUS = 2.0
REPUTATION_BONUS = 10.0
HTTPS_BONUS = 1.0


def compute_page_rank(content: str, title: str, domain: str) -> float:
    rank = min(len(content or "") / 1000, MAX_CONTENT_SCORE)

    if title and len(title) > 10:
        rank += TITLE_BONUS

    if domain and any(is_same_or_subdomain(domain, d) for d in REPUTABLE_DOMAINS):
        rank += REPUTATION_BONUS

    # only http(s) URLs reach the crawler, so this is a flat term
    rank += HTTPS_BONUS

    return math.floor(rank * 10 + 0.5) / 10
