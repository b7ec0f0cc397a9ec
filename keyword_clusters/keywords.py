"""Keyword parsing and normalisation for pasted text and CSV uploads."""
from __future__ import annotations

import re
from typing import Iterable

_MENTION_RE = re.compile(r"<@[^>]+>")
_SPLIT_RE = re.compile(r"\n|,|;|\t")
_WHITESPACE_RE = re.compile(r"\s+")


def _unique(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(values))


def parse_and_clean_keywords(text: str | None) -> list[str]:
    """Split free text into lower-cased, de-duplicated keywords.

    Chat mentions (``<@U123>``) are removed first. Keywords keep the order in
    which they first appear.
    """

    if not text:
        return []
    stripped = _MENTION_RE.sub("", text)
    parts = [part.strip().lower() for part in _SPLIT_RE.split(stripped)]
    unique = _unique(part for part in parts if part)
    return _unique(_WHITESPACE_RE.sub(" ", part) for part in unique)


def format_keyword_list(keywords: Iterable[str]) -> str:
    return "\n".join(keywords)
