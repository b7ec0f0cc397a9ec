"""Similarity-graph clustering of keyword embeddings.

Keywords are nodes; an edge joins two keywords whose embeddings have a cosine
similarity at or above the threshold. Each connected component is a cluster.
Every pair is compared, so the cost grows quadratically with the batch. That
is fine for the few hundred keywords a batch usually holds; larger batches
should be pre-bucketed by the caller.
"""
from __future__ import annotations

import logging
import math
import re
from collections import Counter, deque
from typing import Sequence

from .schemas import Cluster, ClusterConfig, DisplayBlock, DisplayConfig

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"[a-z0-9]+")
FALLBACK_LABEL = "misc"


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the cosine similarity of two equal-length vectors.

    Zero vectors have no direction and compare as 0. Vectors of different
    lengths raise ``ValueError``.
    """

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for av, bv in zip(a, b, strict=True):
        dot += av * bv
        norm_a += av * av
        norm_b += bv * bv
    if norm_a == 0 or norm_b == 0:
        return 0.0
    value = dot / (math.sqrt(norm_a) * math.sqrt(norm_b))
    # Rounding can push parallel vectors a hair past the bounds.
    return max(-1.0, min(1.0, value))


def tokenize(text: str | None) -> list[str]:
    return _TOKEN_RE.findall((text or "").lower())


def label_for_cluster(keywords: Sequence[str]) -> str:
    """Join the two most frequent tokens across ``keywords``.

    Ties keep the order in which tokens were first seen.
    """

    counts: Counter[str] = Counter()
    for keyword in keywords:
        counts.update(tokenize(keyword))
    top = [token for token, _ in counts.most_common(2)]
    return " ".join(top) or FALLBACK_LABEL


def _adjacency(vectors: Sequence[Sequence[float]], threshold: float) -> list[list[int]]:
    size = len(vectors)
    adjacency: list[list[int]] = [[] for _ in range(size)]
    for i in range(size):
        for j in range(i + 1, size):
            if cosine_similarity(vectors[i], vectors[j]) >= threshold:
                adjacency[i].append(j)
                adjacency[j].append(i)
    return adjacency


def cluster_keywords(
    keywords: Sequence[str],
    vectors: Sequence[Sequence[float]],
    config: ClusterConfig | None = None,
) -> list[Cluster]:
    """Partition ``keywords`` into connected components of the similarity graph.

    Clusters are returned largest first; clusters of equal size keep the order
    in which they were discovered (by their lowest keyword index).
    """

    config = config or ClusterConfig()
    if not keywords or not vectors:
        return []
    if len(keywords) != len(vectors):
        logger.warning(
            "Cannot cluster %d keywords with %d vectors; returning no clusters",
            len(keywords),
            len(vectors),
        )
        return []

    adjacency = _adjacency(vectors, config.threshold)
    visited = [False] * len(keywords)
    clusters: list[Cluster] = []

    for start in range(len(keywords)):
        if visited[start]:
            continue
        visited[start] = True
        queue: deque[int] = deque([start])
        members = [start]
        while queue:
            node = queue.popleft()
            for neighbour in adjacency[node]:
                if not visited[neighbour]:
                    visited[neighbour] = True
                    queue.append(neighbour)
                    members.append(neighbour)
        member_keywords = tuple(keywords[idx] for idx in members)
        clusters.append(Cluster(label=label_for_cluster(member_keywords), members=member_keywords))

    clusters.sort(key=lambda cluster: len(cluster.members), reverse=True)
    logger.debug(
        "Clustered %d keywords into %d clusters (threshold=%.2f)",
        len(keywords),
        len(clusters),
        config.threshold,
    )
    return clusters


def format_clusters_for_display(
    clusters: Sequence[Cluster], config: DisplayConfig | None = None
) -> list[DisplayBlock]:
    """Render clusters as numbered plain-text sections separated by dividers."""

    config = config or DisplayConfig()
    shown = list(clusters)[: config.max_clusters_to_show]
    blocks: list[DisplayBlock] = []
    for index, cluster in enumerate(shown, start=1):
        items = "\n".join(
            f"{position}. {keyword}"
            for position, keyword in enumerate(cluster.members[: config.max_items_per_cluster], start=1)
        )
        hidden = len(cluster.members) - config.max_items_per_cluster
        more = f"\n… and {hidden} more" if hidden > 0 else ""
        blocks.append(DisplayBlock(type="section", text=f"Cluster {index}: {cluster.label}\n{items}{more}"))
        if index != len(shown):
            blocks.append(DisplayBlock(type="divider"))
    return blocks
