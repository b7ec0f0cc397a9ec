"""Down-selection of raw search results before synthesis."""
from __future__ import annotations

import logging
import re
from typing import Sequence
from urllib.parse import urlparse

from .schemas import Intent, SearchResult

logger = logging.getLogger(__name__)

MAX_SELECTED_RESULTS = 5

# Video, social, app-store and news hosts rarely carry usable page structure.
LOW_VALUE_DOMAINS = frozenset(
    {
        "youtube.com",
        "m.youtube.com",
        "apps.apple.com",
        "play.google.com",
        "cnn.com",
        "bbc.com",
        "twitter.com",
        "facebook.com",
        "instagram.com",
    }
)

_TRANSACTIONAL_RE = re.compile(r"(order|menu|coupon|deal|delivery|near|price|store|offer)", re.IGNORECASE)
_INFORMATIONAL_RE = re.compile(r"(guide|how|learn|tutorial|tips|best|ideas)", re.IGNORECASE)


def result_domain(url: str) -> str | None:
    try:
        host = urlparse(url).hostname
    except ValueError:
        return None
    if not host:
        return None
    return host[4:] if host.startswith("www.") else host


def is_low_value(url: str) -> bool:
    """Unparseable URLs count as low value."""

    domain = result_domain(url)
    return domain is None or domain in LOW_VALUE_DOMAINS


def _preference_pattern(intent: Intent) -> re.Pattern[str]:
    if intent is Intent.TRANSACTIONAL:
        return _TRANSACTIONAL_RE
    return _INFORMATIONAL_RE


def select_top_results(results: Sequence[SearchResult], intent: Intent) -> list[SearchResult]:
    """Rank results by intent fit and drop low-value hosts.

    A result earns +1 when its title or snippet matches the intent vocabulary
    and -2 when it lives on a low-value host. Results scoring -2 or less are
    dropped; at most ``MAX_SELECTED_RESULTS`` are returned.
    """

    pattern = _preference_pattern(intent)
    scored: list[tuple[int, SearchResult]] = []
    for result in results:
        text = f"{result.title} {result.snippet or ''}"
        score = 1 if pattern.search(text) else 0
        if is_low_value(result.url):
            score -= 2
        scored.append((score, result))

    scored.sort(key=lambda item: item[0], reverse=True)
    selected = [result for score, result in scored if score > -2][:MAX_SELECTED_RESULTS]
    logger.debug(
        "Selected %d of %d search results for intent %s",
        len(selected),
        len(results),
        intent.value,
    )
    return selected
