"""Keyword workflow: embed, persist, cluster, harvest sources and synthesise content."""
from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Sequence

from openai import OpenAIError
from sqlalchemy.orm import Session

from .batches import create_batch, insert_keywords
from .clustering import cluster_keywords, format_clusters_for_display
from .embeddings import embed_strings
from .intent import DEFAULT_CLASSIFIER, IntentClassifier
from .schemas import (
    Cluster,
    ClusterConfig,
    DisplayBlock,
    DisplayConfig,
    HarvestedCluster,
    PageExtract,
    SearchResult,
)
from .scrape import extract_page
from .search import SearchConfigurationError, SearchProviderError, search_top_results
from .selection import select_top_results
from .synthesis import synthesize

logger = logging.getLogger(__name__)

Embedder = Callable[[Sequence[str]], List[List[float]]]
Searcher = Callable[[str, int], List[SearchResult]]
Extractor = Callable[[str, str], PageExtract]

SEARCH_LIMIT = 3
HARVESTED_CLUSTERS = 2
EXTRACT_WORKERS = 5
WORKFLOW_DISPLAY = DisplayConfig(max_clusters_to_show=5, max_items_per_cluster=10)
OUTLINE_TEXT_LIMIT = 2800
DEBUG_SNIPPET_CHARS = 180
EMBEDDING_FAILED = "Embedding failed; showing cleaned keywords without clusters"


def cluster_threshold() -> float:
    default_threshold = ClusterConfig().threshold
    raw = os.getenv("CLUSTER_THRESHOLD")
    if not raw:
        return default_threshold
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid CLUSTER_THRESHOLD value %s; falling back to %s", raw, default_threshold)
        return default_threshold
    if not -1.0 <= value <= 1.0:
        logger.warning("CLUSTER_THRESHOLD %s outside [-1, 1]; falling back to %s", raw, default_threshold)
        return default_threshold
    return value


def serp_debug_enabled() -> bool:
    return os.getenv("SERP_DEBUG", "") == "1"


@dataclass(slots=True)
class WorkflowResult:
    batch_id: str
    keywords: List[str]
    clusters: List[Cluster]
    cluster_blocks: List[DisplayBlock]
    harvested: List[HarvestedCluster] = field(default_factory=list)
    content_blocks: List[DisplayBlock] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def harvest_cluster(
    cluster: Cluster,
    search: Searcher = search_top_results,
    extract: Extractor = extract_page,
    classifier: IntentClassifier | None = None,
) -> HarvestedCluster:
    """Search for the cluster's lead keyword and synthesise content from the results.

    Search errors propagate; page extraction degrades to empty extracts.
    """

    classifier = classifier or DEFAULT_CLASSIFIER
    query = cluster.members[0] if cluster.members else cluster.label
    results = search(query, SEARCH_LIMIT)
    selected = select_top_results(results, classifier.classify(cluster.members))

    start = time.perf_counter()
    pages: list[PageExtract] = []
    if selected:
        with ThreadPoolExecutor(max_workers=min(EXTRACT_WORKERS, len(selected))) as executor:
            # map() yields in submission order, keeping the selector's ranking.
            pages = list(executor.map(lambda result: extract(result.url, result.snippet), selected))
    logger.info(
        "Harvested %d pages for cluster %s in %.2fs",
        len(pages),
        cluster.label,
        time.perf_counter() - start,
    )

    content = synthesize(cluster.label, cluster.members, pages, classifier)
    return HarvestedCluster(cluster=cluster, results=selected, pages=pages, content=content)


def harvest_clusters(
    clusters: Sequence[Cluster],
    search: Searcher = search_top_results,
    extract: Extractor = extract_page,
    classifier: IntentClassifier | None = None,
) -> tuple[list[HarvestedCluster], list[str]]:
    """Harvest each cluster in turn, collecting provider problems as warnings.

    A missing search configuration stops harvesting altogether; a failing
    provider only skips the affected cluster.
    """

    harvested: list[HarvestedCluster] = []
    warnings: list[str] = []
    for cluster in clusters:
        try:
            harvested.append(harvest_cluster(cluster, search=search, extract=extract, classifier=classifier))
        except SearchConfigurationError as exc:
            logger.warning("Skipping content generation: %s", exc)
            warnings.append(str(exc))
            break
        except SearchProviderError as exc:
            logger.warning("Search failed for cluster %s: %s", cluster.label, exc)
            warnings.append(f"Search failed for cluster '{cluster.label}': {exc}")
    return harvested, warnings


def _outline_text(item: HarvestedCluster) -> str:
    lines = []
    for section in item.content.outline.sections:
        lines.append(f"• {section.title}")
        lines.extend(f"   - {bullet}" for bullet in section.bullets)
    return "\n".join(lines)[:OUTLINE_TEXT_LIMIT]


def content_blocks(harvested: Sequence[HarvestedCluster], debug: bool = False) -> list[DisplayBlock]:
    """Render outlines, ideas and ad copy as plain display blocks."""

    blocks: list[DisplayBlock] = []
    for item in harvested:
        if item.content is None:
            continue
        outline, ad = item.content.outline, item.content.ad
        blocks.extend(
            [
                DisplayBlock(type="divider"),
                DisplayBlock(type="section", text=f"Outline: {outline.title}"),
                DisplayBlock(type="section", text=_outline_text(item)),
                DisplayBlock(type="section", text=f"Post Idea: {item.content.idea}"),
                DisplayBlock(type="section", text="Ad Headlines\n• " + "\n• ".join(ad.headlines)),
                DisplayBlock(type="section", text="Ad Descriptions (full)\n• " + "\n• ".join(ad.descriptions)),
                DisplayBlock(type="context", text="CTAs: " + " | ".join(ad.ctas)),
                DisplayBlock(
                    type="section",
                    text=(
                        "Search Ad Suggestion\n"
                        f"Headlines: {' | '.join(ad.rsa.headlines)}\n"
                        f"Descriptions: {' | '.join(ad.rsa.descriptions)}\n"
                        f"Paths: {ad.rsa.path1}/{ad.rsa.path2}"
                    ),
                ),
            ]
        )
        if debug:
            blocks.append(DisplayBlock(type="divider"))
            blocks.append(DisplayBlock(type="section", text="Sources (SERP)"))
            for result in item.results:
                snippet = (result.snippet or "")[:DEBUG_SNIPPET_CHARS]
                blocks.append(DisplayBlock(type="section", text=f"• {result.title} ({result.url})\n{snippet}"))
            blocks.append(DisplayBlock(type="section", text="Extracted Headings"))
            for page in item.pages[:2]:
                headings = "\n".join(f"- {heading.text}" for heading in page.headings[:5])
                blocks.append(DisplayBlock(type="section", text=f"{page.title}\n{headings}"))
    return blocks


def process_keywords(
    session: Session,
    keywords: Sequence[str],
    user_id: str,
    channel_id: str | None,
    embed: Embedder = embed_strings,
    search: Searcher = search_top_results,
    extract: Extractor = extract_page,
    classifier: IntentClassifier | None = None,
) -> WorkflowResult:
    """Run the full keyword workflow for already-cleaned keywords."""

    start = time.perf_counter()
    keyword_list = list(keywords)
    batch_id = create_batch(session, user_id, channel_id)
    try:
        vectors = embed(keyword_list)
    except OpenAIError as exc:
        # Keep the batch so a later report can embed it; the caller still gets the cleaned list.
        logger.warning("Embedding failed for batch %s: %s", batch_id, exc)
        insert_keywords(session, batch_id, keyword_list)
        return WorkflowResult(
            batch_id=batch_id,
            keywords=keyword_list,
            clusters=[],
            cluster_blocks=[],
            warnings=[f"{EMBEDDING_FAILED}: {exc}"],
        )
    insert_keywords(session, batch_id, keyword_list, vectors)

    threshold = cluster_threshold()
    clusters = cluster_keywords(keyword_list, vectors, ClusterConfig(threshold=threshold))
    logger.info(
        "Batch %s: %d keywords in %d clusters (threshold=%.2f)",
        batch_id,
        len(keyword_list),
        len(clusters),
        threshold,
    )

    harvested, warnings = harvest_clusters(
        clusters[:HARVESTED_CLUSTERS], search=search, extract=extract, classifier=classifier
    )
    result = WorkflowResult(
        batch_id=batch_id,
        keywords=keyword_list,
        clusters=clusters,
        cluster_blocks=format_clusters_for_display(clusters, WORKFLOW_DISPLAY),
        harvested=harvested,
        content_blocks=content_blocks(harvested, debug=serp_debug_enabled()),
        warnings=warnings,
    )
    logger.info("Keyword workflow for batch %s completed in %.2fs", batch_id, time.perf_counter() - start)
    return result
