"""Content outlines built from the heading structure of top-ranked pages."""
from __future__ import annotations

import logging
import re
from collections import Counter
from typing import Iterable, Sequence

from .schemas import Heading, Outline, OutlineSection, OutlineSource, PageExtract

logger = logging.getLogger(__name__)

MAX_SECTIONS = 5
MAX_BULLETS = 5
MAX_SOURCES = 5
INTRO_SOURCE_TITLES = 3

_HEADING_WEIGHTS = {2: 3, 3: 2}
_WHITESPACE_RE = re.compile(r"\s+")

CONCLUSION = "Key takeaways compiled from the sources above."


def merge_headings(pages: Iterable[PageExtract]) -> list[Heading]:
    merged: list[Heading] = []
    for page in pages:
        merged.extend(page.headings)
    return merged


def pick_sections(headings: Sequence[Heading]) -> list[OutlineSection]:
    """Group headings into sections: H2s open sections, H3s become bullets.

    An H1 only opens a section when nothing is open yet, so a page title can
    head the outline without splitting every page into its own section.
    """

    sections: list[tuple[str, list[str]]] = []
    current: list[str] | None = None
    for heading in headings:
        if heading.level == 2 or (heading.level == 1 and current is None):
            current = []
            sections.append((heading.text, current))
        elif heading.level == 3 and current is not None:
            current.append(heading.text)
    return [
        OutlineSection(title=title, bullets=tuple(bullets[:MAX_BULLETS]))
        for title, bullets in sections[:MAX_SECTIONS]
    ]


def sections_from_heading_frequency(headings: Sequence[Heading]) -> list[OutlineSection]:
    """Fallback: the most frequent heading texts, H2s weighted above H3s."""

    weights: Counter[str] = Counter()
    for heading in headings:
        text = heading.text.strip()
        if len(text) < 3 or len(text) > 100:
            continue
        weights[text.lower()] += _HEADING_WEIGHTS.get(heading.level, 1)

    titles: list[str] = []
    for text, _ in weights.most_common():
        normalised = _WHITESPACE_RE.sub(" ", text).strip()
        if normalised and normalised not in titles:
            titles.append(normalised)
        if len(titles) == MAX_SECTIONS:
            break
    return [OutlineSection(title=title[0].upper() + title[1:]) for title in titles]


def build_intro(label: str, pages: Sequence[PageExtract]) -> str:
    titles = "; ".join(page.title for page in pages[:INTRO_SOURCE_TITLES])
    return f"Overview of {label}. Based on top-ranked sources: {titles}."


def synthesize_outline(
    label: str,
    keywords: Sequence[str],
    pages: Sequence[PageExtract],
) -> Outline:
    """Build an outline for a cluster. Never raises on thin input.

    ``keywords`` is accepted for parity with the ad copy synthesizer; the
    outline is derived from page structure alone.
    """

    headings = merge_headings(pages)
    sections = pick_sections(headings)
    if not sections:
        sections = sections_from_heading_frequency(headings)
        logger.debug("No H1/H2 structure for %s; using %d frequent headings", label, len(sections))

    sources = tuple(
        OutlineSource(title=page.title, url=page.url, meta=page.meta or "")
        for page in pages[:MAX_SOURCES]
    )
    return Outline(
        title=f"{label} – Outline",
        intro=build_intro(label, pages),
        sections=tuple(sections),
        conclusion=CONCLUSION,
        sources=sources,
    )
