"""Report assembly for previously submitted keyword batches."""
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import List

from openai import OpenAIError
from sqlalchemy.orm import Session

from .batches import fetch_embeddings
from .clustering import cluster_keywords
from .embeddings import embed_strings
from .intent import IntentClassifier
from .pipeline import EMBEDDING_FAILED, Embedder, Extractor, Searcher, cluster_threshold, harvest_clusters
from .schemas import Cluster, ClusterConfig, HarvestedCluster
from .scrape import extract_page
from .search import search_top_results

logger = logging.getLogger(__name__)

REPORT_TITLE = "Keyword Processing Report"
REPORT_CLUSTERS = 3


@dataclass(slots=True)
class Report:
    title: str
    batch_id: str
    user: str
    created_at: str
    keywords: List[str]
    clusters: List[Cluster]
    outlines: List[HarvestedCluster] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def _batch_vectors(
    stored: list[tuple[str, list[float] | None]], embed: Embedder
) -> tuple[list[str], list[list[float]]]:
    keywords = [keyword for keyword, _ in stored]
    vectors = [vector for _, vector in stored]
    if all(vectors):
        return keywords, vectors  # type: ignore[return-value]
    logger.info("Re-embedding %d keywords with missing stored vectors", len(keywords))
    return keywords, embed(keywords)


def build_report(
    session: Session,
    batch_id: str,
    user: str = "",
    embed: Embedder = embed_strings,
    search: Searcher = search_top_results,
    extract: Extractor = extract_page,
    classifier: IntentClassifier | None = None,
) -> Report | None:
    """Re-cluster a stored batch and build outlines/ads for its largest clusters.

    Returns ``None`` when the batch has no keywords.
    """

    stored = fetch_embeddings(session, batch_id)
    if not stored:
        return None

    try:
        keywords, vectors = _batch_vectors(stored, embed)
    except OpenAIError as exc:
        logger.warning("Embedding failed for report on batch %s: %s", batch_id, exc)
        keywords = [keyword for keyword, _ in stored]
        clusters, outlines, warnings = [], [], [f"{EMBEDDING_FAILED}: {exc}"]
    else:
        clusters = cluster_keywords(keywords, vectors, ClusterConfig(threshold=cluster_threshold()))
        outlines, warnings = harvest_clusters(
            clusters[:REPORT_CLUSTERS], search=search, extract=extract, classifier=classifier
        )
    logger.info("Built report for batch %s with %d outlines", batch_id, len(outlines))
    return Report(
        title=REPORT_TITLE,
        batch_id=batch_id,
        user=user,
        created_at=dt.datetime.now().strftime("%Y-%m-%d %H:%M"),
        keywords=keywords,
        clusters=clusters,
        outlines=outlines,
        warnings=warnings,
    )
