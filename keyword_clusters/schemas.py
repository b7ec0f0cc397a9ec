"""Shared data structures used across modules."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class Intent(str, Enum):
    TRANSACTIONAL = "transactional"
    INFORMATIONAL = "informational"
    CONTENT_BASED = "content_based"


@dataclass(frozen=True, slots=True)
class ClusterConfig:
    threshold: float = 0.75


@dataclass(frozen=True, slots=True)
class DisplayConfig:
    max_clusters_to_show: int = 8
    max_items_per_cluster: int = 20


@dataclass(frozen=True, slots=True)
class Cluster:
    label: str
    members: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class SearchResult:
    url: str
    title: str
    snippet: str = ""


@dataclass(frozen=True, slots=True)
class Heading:
    level: int
    text: str


@dataclass(frozen=True, slots=True)
class PageExtract:
    url: str = ""
    title: str = ""
    meta: str = ""
    headings: tuple[Heading, ...] = ()
    snippet: str = ""


@dataclass(frozen=True, slots=True)
class OutlineSection:
    title: str
    bullets: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class OutlineSource:
    title: str
    url: str
    meta: str


@dataclass(frozen=True, slots=True)
class Outline:
    title: str
    intro: str
    sections: tuple[OutlineSection, ...]
    conclusion: str
    sources: tuple[OutlineSource, ...]


@dataclass(frozen=True, slots=True)
class RsaSuggestion:
    """Responsive search ad fields sized to search-engine character limits."""

    headlines: tuple[str, ...]
    descriptions: tuple[str, ...]
    path1: str
    path2: str
    final_url: str


@dataclass(frozen=True, slots=True)
class AdCopy:
    headlines: tuple[str, ...]
    descriptions: tuple[str, ...]
    ctas: tuple[str, ...]
    rsa: RsaSuggestion


@dataclass(frozen=True, slots=True)
class ClusterContent:
    outline: Outline
    idea: str
    ad: AdCopy


@dataclass(frozen=True, slots=True)
class DisplayBlock:
    """Platform-neutral display unit: a text section, a context line or a divider."""

    type: str
    text: str | None = None


@dataclass(slots=True)
class HarvestedCluster:
    """A cluster together with the sources harvested for it."""

    cluster: Cluster
    results: List[SearchResult] = field(default_factory=list)
    pages: List[PageExtract] = field(default_factory=list)
    content: ClusterContent | None = None
