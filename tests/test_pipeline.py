import pytest

from keyword_clusters import models  # noqa: F401
from keyword_clusters import pipeline
from keyword_clusters.batches import fetch_embeddings
from keyword_clusters.db import Base, SessionLocal, engine
from keyword_clusters.schemas import Cluster, Heading, PageExtract, SearchResult
from keyword_clusters.search import SearchConfigurationError, SearchProviderError

VECTORS = {
    "pizza delivery": [1.0, 0.0, 0.0],
    "pizza near me": [0.95, 0.05, 0.0],
    "best laptop 2024": [0.0, 0.0, 1.0],
    "laptop deals": [0.0, 0.1, 0.9],
    "garden hose": [0.0, 1.0, 0.0],
}


def fake_embed(texts):
    return [VECTORS[text] for text in texts]


def fake_search(query, limit):
    return [
        SearchResult(url=f"https://{query.split()[0]}.example.com/guide", title=f"{query.title()} Guide | Example", snippet="A guide"),
        SearchResult(url="https://www.youtube.com/watch?v=1", title="Video", snippet=""),
    ]


def fake_extract(url, snippet):
    return PageExtract(
        url=url,
        title="Ultimate Buying Guide | Example",
        meta="Everything you need to know.",
        headings=(Heading(level=2, text="How to choose"), Heading(level=3, text="Budget")),
        snippet=snippet,
    )


@pytest.fixture(autouse=True)
def clean_database():
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def test_process_keywords_runs_full_workflow(session, monkeypatch):
    monkeypatch.delenv("CLUSTER_THRESHOLD", raising=False)
    monkeypatch.delenv("SERP_DEBUG", raising=False)
    keywords = list(VECTORS)

    result = pipeline.process_keywords(
        session, keywords, "U1", "C1", embed=fake_embed, search=fake_search, extract=fake_extract
    )
    session.commit()

    assert [keyword for keyword, _ in fetch_embeddings(session, result.batch_id)] == keywords
    assert [cluster.members for cluster in result.clusters] == [
        ("pizza delivery", "pizza near me"),
        ("best laptop 2024", "laptop deals"),
        ("garden hose",),
    ]
    assert len(result.harvested) == 2
    first = result.harvested[0]
    # The low-value video result is dropped before extraction.
    assert [page.url for page in first.pages] == ["https://pizza.example.com/guide"]
    assert first.content.outline.sections[0].title == "How to choose"
    assert result.cluster_blocks[0].text.startswith("Cluster 1: pizza delivery")
    assert any(block.text and block.text.startswith("Outline: ") for block in result.content_blocks)
    assert result.warnings == []


def test_process_keywords_reports_missing_search_configuration(session):
    calls = []

    def unconfigured(query, limit):
        calls.append(query)
        raise SearchConfigurationError("No search provider configured")

    result = pipeline.process_keywords(
        session, ["pizza delivery", "garden hose"], "U1", None, embed=fake_embed, search=unconfigured, extract=fake_extract
    )

    assert len(result.clusters) == 2
    assert result.harvested == []
    assert result.content_blocks == []
    assert result.warnings == ["No search provider configured"]
    assert len(calls) == 1


def test_harvest_clusters_skips_only_failing_cluster():
    clusters = [Cluster(label="a", members=("alpha",)), Cluster(label="b", members=("beta",))]

    def flaky(query, limit):
        if query == "alpha":
            raise SearchProviderError("serpapi HTTP 500")
        return fake_search(query, limit)

    harvested, warnings = pipeline.harvest_clusters(clusters, search=flaky, extract=fake_extract)

    assert [item.cluster.label for item in harvested] == ["b"]
    assert "serpapi HTTP 500" in warnings[0]


def test_harvest_cluster_preserves_selected_order():
    cluster = Cluster(label="pizza", members=("pizza",))
    results = [SearchResult(url=f"https://site{idx}.com", title=f"Site {idx}") for idx in range(4)]

    harvested = pipeline.harvest_cluster(cluster, search=lambda query, limit: results, extract=fake_extract)

    assert [page.url for page in harvested.pages] == [result.url for result in results]


def test_content_blocks_include_debug_sources():
    cluster = Cluster(label="pizza", members=("pizza",))
    harvested = pipeline.harvest_cluster(cluster, search=fake_search, extract=fake_extract)

    plain = pipeline.content_blocks([harvested])
    debug = pipeline.content_blocks([harvested], debug=True)

    assert len(debug) > len(plain)
    assert any(block.text == "Sources (SERP)" for block in debug)


def test_cluster_threshold_reads_environment(monkeypatch):
    monkeypatch.setenv("CLUSTER_THRESHOLD", "0.9")
    assert pipeline.cluster_threshold() == 0.9
    monkeypatch.setenv("CLUSTER_THRESHOLD", "high")
    assert pipeline.cluster_threshold() == 0.75
    monkeypatch.setenv("CLUSTER_THRESHOLD", "4")
    assert pipeline.cluster_threshold() == 0.75
