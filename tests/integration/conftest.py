"""Fixtures wiring the FastAPI app to mocked upstream clients."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from src.api.main import app
from src.core.config import Settings, get_settings
from src.core.rate_limiting import get_rate_limiter
from src.rag.embedder import Embedder, get_embedder
from src.rag.processor import DocumentProcessor, get_processor
from src.rag.retriever import Retriever, get_retriever
from src.rag.vector_store import VectorStore, get_vector_store


@pytest.fixture
def client(
    settings: Settings,
    processor: DocumentProcessor,
    retriever: Retriever,
    embedder: Embedder,
    vector_store: VectorStore,
):
    """TestClient over the real routes; lifespan is not run."""
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_processor] = lambda: processor
    app.dependency_overrides[get_retriever] = lambda: retriever
    app.dependency_overrides[get_embedder] = lambda: embedder
    app.dependency_overrides[get_vector_store] = lambda: vector_store
    app.dependency_overrides[get_rate_limiter] = lambda: MagicMock()

    yield TestClient(app, raise_server_exceptions=False)

    app.dependency_overrides.clear()
