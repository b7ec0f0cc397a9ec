"""Bundle outline, post idea and ad copy for one cluster."""
from __future__ import annotations

from typing import Sequence

from .adcopy import synthesize_ad_copy
from .intent import DEFAULT_CLASSIFIER, IntentClassifier
from .outline import merge_headings, synthesize_outline
from .schemas import ClusterContent, PageExtract


def post_idea(label: str) -> str:
    return (
        f"Create a concise explainer on {label} that mirrors common headings across top results, "
        "highlighting what users care about most."
    )


def synthesize(
    label: str,
    keywords: Sequence[str],
    pages: Sequence[PageExtract],
    classifier: IntentClassifier | None = None,
) -> ClusterContent:
    intent = (classifier or DEFAULT_CLASSIFIER).classify(keywords)
    outline = synthesize_outline(label, keywords, pages)
    ad = synthesize_ad_copy(label, keywords, merge_headings(pages), pages, intent)
    return ClusterContent(outline=outline, idea=post_idea(label), ad=ad)
