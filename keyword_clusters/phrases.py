"""Weighted n-gram phrase ranking over harvested page text."""
from __future__ import annotations

import re
from collections import Counter
from typing import Iterable, Sequence
from urllib.parse import urlparse

from .clustering import tokenize
from .schemas import Heading, PageExtract

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "of", "for", "to", "in", "on", "with",
        "by", "from", "at", "how", "what", "why", "vs", "&", "you", "your",
    }
)

TITLE_WEIGHT = 4
META_WEIGHT = 3
SNIPPET_WEIGHT = 2
HEADING_WEIGHT = 2
KEYWORD_WEIGHT = 2

# Separators that split a page title from its site name, e.g. "Best Pizza | Site".
_TITLE_SEPARATOR_RE = re.compile(r"\s[-|–—:·•]\s")


def split_title(title: str | None) -> str:
    if not title:
        return ""
    head = _TITLE_SEPARATOR_RE.split(title, maxsplit=1)[0]
    return (head or title).strip()


def _site_name(url: str) -> str:
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return ""
    if host.startswith("www."):
        host = host[4:]
    return host.split(".")[0]


def clean_serp_title(title: str | None, url: str) -> str:
    """Return the title text before its site separator, minus the site name."""

    base = split_title(title)
    site = _site_name(url)
    if not site:
        return base
    stripped = re.sub(re.escape(site), "", base, count=1, flags=re.IGNORECASE).strip()
    return stripped or base


def _content_words(text: str | None) -> list[str]:
    return [word for word in tokenize(text) if len(word) > 2 and word not in STOP_WORDS]


def ngrams(words: Sequence[str], size: int) -> list[str]:
    return [" ".join(words[idx : idx + size]) for idx in range(len(words) - size + 1)]


class PhraseCounter:
    """Accumulates n-gram weights; longer phrases count for more."""

    def __init__(self) -> None:
        self._counts: Counter[str] = Counter()

    def add_text(self, text: str | None, weight: int) -> None:
        words = _content_words(text)
        for size in (3, 2, 1):
            for phrase in ngrams(words, size):
                self._counts[phrase] += size * weight

    def ranked(self) -> list[str]:
        # most_common keeps first-insertion order among equal weights.
        return [phrase for phrase, _ in self._counts.most_common()]


def rank_phrases(
    pages: Sequence[PageExtract],
    headings: Iterable[Heading],
    keywords: Iterable[str],
) -> list[str]:
    counter = PhraseCounter()
    for page in pages:
        counter.add_text(clean_serp_title(page.title, page.url), TITLE_WEIGHT)
        counter.add_text(page.meta, META_WEIGHT)
        counter.add_text(page.snippet, SNIPPET_WEIGHT)
    for heading in headings:
        counter.add_text(heading.text, HEADING_WEIGHT)
    for keyword in keywords:
        counter.add_text(keyword, KEYWORD_WEIGHT)
    return counter.ranked()
