import threading
from types import SimpleNamespace

import pytest

from keyword_clusters import embeddings


class _FakeEmbeddingsApi:
    def __init__(self, dims=None):
        self.calls: list[list[str]] = []
        self.dims = dims

    def create(self, model, input):
        self.calls.append(list(input))
        data = []
        for text in input:
            dim = self.dims(text) if self.dims else 3
            data.append(SimpleNamespace(embedding=[float(len(text))] * dim))
        return SimpleNamespace(data=data)


@pytest.fixture(autouse=True)
def reset_client(monkeypatch):
    monkeypatch.setattr(embeddings, "_client", None)
    yield


def _install_fake_client(monkeypatch, api):
    monkeypatch.setattr(embeddings, "_client", SimpleNamespace(embeddings=api))


def test_client_is_created_once_across_threads(monkeypatch):
    created = []

    class FakeOpenAI:
        def __init__(self, api_key):
            created.append(api_key)

    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(embeddings, "OpenAI", FakeOpenAI)

    clients = []
    threads = [threading.Thread(target=lambda: clients.append(embeddings.get_embedding_client())) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert created == ["sk-test"]
    assert all(client is clients[0] for client in clients)


def test_missing_api_key_raises(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    with pytest.raises(RuntimeError):
        embeddings.get_embedding_client()


def test_embed_strings_batches_and_preserves_order(monkeypatch):
    api = _FakeEmbeddingsApi()
    _install_fake_client(monkeypatch, api)
    monkeypatch.setenv("OPENAI_EMBEDDING_BATCH_SIZE", "2")

    vectors = embeddings.embed_strings(["a", "bb", "ccc", "dddd", "eeeee"])

    assert api.calls == [["a", "bb"], ["ccc", "dddd"], ["eeeee"]]
    assert [vector[0] for vector in vectors] == [1.0, 2.0, 3.0, 4.0, 5.0]


def test_embed_strings_empty_input_skips_client(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    assert embeddings.embed_strings([]) == []


def test_embed_strings_rejects_inconsistent_dimensions(monkeypatch):
    api = _FakeEmbeddingsApi(dims=lambda text: 2 if text == "odd" else 3)
    _install_fake_client(monkeypatch, api)

    with pytest.raises(ValueError):
        embeddings.embed_strings(["fine", "odd"])


def test_invalid_batch_size_falls_back(monkeypatch):
    monkeypatch.setenv("OPENAI_EMBEDDING_BATCH_SIZE", "many")
    assert embeddings._embedding_batch_size() == 100
