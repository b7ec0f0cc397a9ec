"""Intent classification strategies for keyword clusters."""
from __future__ import annotations

from typing import Protocol, Sequence

from .schemas import Intent


class IntentClassifier(Protocol):
    def classify(self, keywords: Sequence[str]) -> Intent:
        ...


class ContentBasedClassifier:
    """Always derive copy from page content rather than a purchase/learn split."""

    def classify(self, keywords: Sequence[str]) -> Intent:
        return Intent.CONTENT_BASED


DEFAULT_CLASSIFIER: IntentClassifier = ContentBasedClassifier()
