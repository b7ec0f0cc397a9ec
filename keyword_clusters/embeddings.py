"""OpenAI embedding helpers for keyword vectors."""
from __future__ import annotations

import logging
import os
import threading
import time
from typing import List, Sequence

from openai import APIError, OpenAI, RateLimitError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"

_client: OpenAI | None = None
_client_lock = threading.Lock()


def get_embedding_client() -> OpenAI:
    """Return the process-wide OpenAI client, creating it on first use.

    The client lives for the lifetime of the process; concurrent first calls
    construct it once.
    """

    global _client
    if _client is not None:
        return _client
    with _client_lock:
        if _client is None:
            api_key = os.getenv("OPENAI_API_KEY")
            if not api_key:
                raise RuntimeError("OPENAI_API_KEY is not configured.")
            logger.info("Initialising OpenAI embedding client")
            _client = OpenAI(api_key=api_key)
    return _client


def _embedding_model() -> str:
    return os.getenv("OPENAI_EMBEDDING_MODEL", DEFAULT_EMBEDDING_MODEL).strip()


def _embedding_batch_size() -> int:
    default_size = 100
    raw = os.getenv("OPENAI_EMBEDDING_BATCH_SIZE")
    if not raw:
        return default_size
    try:
        value = int(raw)
    except ValueError:
        logger.warning(
            "Invalid OPENAI_EMBEDDING_BATCH_SIZE value %s; falling back to %s",
            raw,
            default_size,
        )
        return default_size
    return max(1, min(value, 2048))


@retry(
    reraise=True,
    stop=stop_after_attempt(4),
    wait=wait_exponential(multiplier=2, min=1, max=16),
    retry=retry_if_exception_type((RateLimitError, APIError)),
)
def _embed_batch(batch: Sequence[str], model: str) -> List[List[float]]:
    response = get_embedding_client().embeddings.create(model=model, input=list(batch))
    return [list(item.embedding) for item in response.data]


def embed_strings(texts: Sequence[str]) -> List[List[float]]:
    """Embed ``texts`` in order, one vector per input string.

    Raises ``ValueError`` if the API returns vectors of differing dimensions
    or a different number of vectors than inputs.
    """

    if not texts:
        return []

    model = _embedding_model()
    batch_size = _embedding_batch_size()
    start = time.perf_counter()
    vectors: List[List[float]] = []
    for offset in range(0, len(texts), batch_size):
        batch = texts[offset : offset + batch_size]
        logger.debug("Embedding batch [%d:%d] with %s", offset, offset + len(batch), model)
        vectors.extend(_embed_batch(batch, model))

    if len(vectors) != len(texts):
        raise ValueError(f"Expected {len(texts)} embeddings, received {len(vectors)}")
    dimension = len(vectors[0])
    for index, vector in enumerate(vectors):
        if len(vector) != dimension:
            raise ValueError(
                f"Inconsistent embedding dimension at index {index}: expected {dimension}, got {len(vector)}"
            )

    logger.info(
        "Generated %d embeddings (dim=%d) in %.2fs",
        len(vectors),
        dimension,
        time.perf_counter() - start,
    )
    return vectors
