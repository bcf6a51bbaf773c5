"""Shared pytest fixtures for the HR assistant test suite.

Upstream clients (OpenAI, Qdrant) are replaced with mocks that return
objects shaped like the real SDK responses.
"""

from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.agent.runtime import AssistantRuntime
from src.core.config import Settings
from src.rag.chunking import SlidingWindowChunker
from src.rag.embedder import Embedder
from src.rag.extractors import DocumentExtractor
from src.rag.processor import DocumentProcessor, UploadedFile
from src.rag.retriever import Retriever
from src.rag.vector_store import VectorStore

from tests.helpers import TEST_DIMENSIONS, completion_response, fake_embeddings_create


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from the environment, with pacing disabled."""
    return Settings(
        _env_file=None,
        openai_api_key="sk-test",
        qdrant_url="http://localhost:6333",
        vector_index_name="hrdocs-test",
        embedding_dimensions=TEST_DIMENSIONS,
        upload_dir=tmp_path / "uploads",
        embedding_batch_delay_ms=0,
        embedding_large_batch_delay_ms=0,
        upsert_batch_delay_ms=0,
    )


# ---------------------------------------------------------------------------
# Client mocks
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_openai_client() -> MagicMock:
    """OpenAI client mock serving embeddings and chat completions."""
    client = MagicMock()
    client.embeddings.create = AsyncMock(side_effect=fake_embeddings_create)
    client.chat.completions.create = AsyncMock(return_value=completion_response())
    client.close = AsyncMock()
    return client


@pytest.fixture
def mock_qdrant_client() -> AsyncMock:
    """AsyncQdrantClient mock with an empty collection."""
    client = AsyncMock()
    client.collection_exists.return_value = True
    client.query_points.return_value = SimpleNamespace(points=[])
    client.get_collection.return_value = SimpleNamespace(
        points_count=0,
        config=SimpleNamespace(params=SimpleNamespace(vectors=SimpleNamespace(size=TEST_DIMENSIONS))),
    )
    return client


# ---------------------------------------------------------------------------
# Components wired to the mocks
# ---------------------------------------------------------------------------


@pytest.fixture
def embedder(mock_openai_client: MagicMock) -> Embedder:
    return Embedder(
        client=mock_openai_client,
        dimensions=TEST_DIMENSIONS,
        batch_delay=0,
        large_batch_delay=0,
    )


@pytest.fixture
def vector_store(mock_qdrant_client: AsyncMock) -> VectorStore:
    return VectorStore(
        client=mock_qdrant_client,
        collection_name="hrdocs-test",
        embedding_dim=TEST_DIMENSIONS,
        batch_delay=0,
    )


@pytest.fixture
def runtime(mock_openai_client: MagicMock) -> AssistantRuntime:
    return AssistantRuntime(client=mock_openai_client)


@pytest.fixture
def processor(embedder: Embedder, vector_store: VectorStore) -> DocumentProcessor:
    return DocumentProcessor(
        extractor=DocumentExtractor(),
        chunker=SlidingWindowChunker(chunk_size=2000, overlap=400),
        embedder=embedder,
        vector_store=vector_store,
    )


@pytest.fixture
def retriever(
    embedder: Embedder, vector_store: VectorStore, runtime: AssistantRuntime
) -> Retriever:
    return Retriever(vector_store=vector_store, embedder=embedder, runtime=runtime)


# ---------------------------------------------------------------------------
# Uploaded files
# ---------------------------------------------------------------------------


@pytest.fixture
def make_upload(tmp_path: Path):
    """Factory writing content to disk and describing it as an upload."""

    def _make(
        name: str = "policy.txt",
        content: bytes = b"Employees accrue vacation monthly. " * 20,
        mime_type: str = "text/plain",
    ) -> UploadedFile:
        stored_name = f"1700000000000-42-{name}"
        path = tmp_path / stored_name
        path.write_bytes(content)
        return UploadedFile(
            path=path,
            original_name=name,
            stored_name=stored_name,
            mime_type=mime_type,
            size=len(content),
        )

    return _make
