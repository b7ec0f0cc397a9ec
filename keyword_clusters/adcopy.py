"""Search ad copy assembled from harvested titles, descriptions and headings."""
from __future__ import annotations

import logging
import re
from typing import Iterable, Sequence

from .clustering import FALLBACK_LABEL
from .phrases import clean_serp_title, rank_phrases
from .schemas import AdCopy, Heading, Intent, PageExtract, RsaSuggestion

logger = logging.getLogger(__name__)

HEADLINE_MAX_CHARS = 30
HEADLINE_MIN_CHARS = 8
MAX_HEADLINES = 6
DESCRIPTION_MAX_CHARS = 90
MAX_DESCRIPTIONS = 4
RSA_HEADLINES = 3
RSA_DESCRIPTIONS = 2
PATH_MAX_CHARS = 15
ELLIPSIS = "…"

CTAS_BY_INTENT: dict[Intent, tuple[str, ...]] = {
    Intent.TRANSACTIONAL: ("Shop Now", "Get Quote"),
    Intent.INFORMATIONAL: ("Learn More", "Start Now"),
}
DEFAULT_CTAS = ("Compare Now", "See Options")

_WORD_RE = re.compile(r"\w\S*")
_PATH_STRIP_RE = re.compile(r"[^a-z0-9\-\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def _unique(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(value for value in values if value))


def truncate(text: str, limit: int) -> str:
    """Cut ``text`` to at most ``limit`` characters, ending with an ellipsis."""

    if len(text) <= limit:
        return text
    return text[: limit - 1].rstrip() + ELLIPSIS


def title_case(text: str) -> str:
    return _WORD_RE.sub(lambda match: match.group(0)[0].upper() + match.group(0)[1:], text)


def path_fragment(text: str) -> str:
    cleaned = _PATH_STRIP_RE.sub("", (text or "").lower()).strip()
    return _WHITESPACE_RE.sub("-", cleaned)[:PATH_MAX_CHARS]


def _first_word(text: str) -> str:
    parts = text.split(" ")
    return parts[0] if parts else ""


def build_headlines(
    label: str,
    keywords: Sequence[str],
    headings: Sequence[Heading],
    pages: Sequence[PageExtract],
) -> list[str]:
    cleaned_titles = _unique(clean_serp_title(page.title, page.url) for page in pages)
    candidates = cleaned_titles + rank_phrases(pages, headings, keywords)
    headlines = [
        truncate(titled, HEADLINE_MAX_CHARS)
        for titled in (title_case(candidate) for candidate in candidates)
        if len(titled) >= HEADLINE_MIN_CHARS
    ]
    headlines = _unique(headlines)[:MAX_HEADLINES]
    if not headlines:
        headlines = [truncate(title_case(label or FALLBACK_LABEL), HEADLINE_MAX_CHARS)]
    return headlines


def build_descriptions(label: str, pages: Sequence[PageExtract]) -> list[str]:
    texts = [page.meta or page.snippet for page in pages]
    descriptions = _unique(texts) or [f"Overview and key points for {label}."]
    return descriptions[:MAX_DESCRIPTIONS]


def synthesize_ad_copy(
    label: str,
    keywords: Sequence[str],
    headings: Sequence[Heading],
    pages: Sequence[PageExtract],
    intent: Intent,
) -> AdCopy:
    """Build headlines, descriptions, CTAs and an RSA suggestion for a cluster.

    Headlines are never empty: with no usable source text the cluster label
    itself becomes the only headline. Every headline fits in 30 characters and
    every RSA description in 90.
    """

    headlines = build_headlines(label, keywords, headings, pages)
    descriptions = build_descriptions(label, pages)
    short_descriptions = [truncate(text, DESCRIPTION_MAX_CHARS) for text in descriptions]
    ctas = CTAS_BY_INTENT.get(intent, DEFAULT_CTAS)

    top_keyword = _first_word(keywords[0] if keywords else label) or label
    second_keyword = _first_word(keywords[1]) if len(keywords) > 1 else ""
    rsa = RsaSuggestion(
        headlines=tuple(headlines[:RSA_HEADLINES]),
        descriptions=tuple(short_descriptions[:RSA_DESCRIPTIONS]),
        path1=path_fragment(top_keyword),
        path2=path_fragment(second_keyword),
        final_url=pages[0].url if pages else "",
    )
    logger.debug(
        "Built %d headlines and %d descriptions for %s (intent=%s)",
        len(headlines),
        len(descriptions),
        label,
        intent.value,
    )
    return AdCopy(
        headlines=tuple(headlines),
        descriptions=tuple(descriptions),
        ctas=ctas,
        rsa=rsa,
    )
