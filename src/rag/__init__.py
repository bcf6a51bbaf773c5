"""RAG (Retrieval-Augmented Generation) package.

Components:
- VectorStore: Qdrant client for vector operations
- Embedder: OpenAI embedding service
- Chunker: Sliding-window document chunking
- Retriever: Tiered semantic search and grounded answers
- Processor: Document ingestion pipeline
- Extractor: Text extraction from PDF, DOC, DOCX, TXT
"""

from src.rag.chunking import Chunk, SlidingWindowChunker, get_chunker
from src.rag.embedder import Embedder, get_embedder
from src.rag.extractors import DocumentExtractor, get_extractor
from src.rag.processor import (
    DocumentProcessor,
    FileResult,
    IngestionReport,
    UploadedFile,
    get_processor,
)
from src.rag.retriever import QueryAnswer, RetrievedChunk, Retriever, get_retriever
from src.rag.vector_store import VectorStore, get_vector_store

__all__ = [
    "Chunk",
    "DocumentExtractor",
    "DocumentProcessor",
    "Embedder",
    "FileResult",
    "IngestionReport",
    "QueryAnswer",
    "RetrievedChunk",
    "Retriever",
    "SlidingWindowChunker",
    "UploadedFile",
    "VectorStore",
    "get_chunker",
    "get_embedder",
    "get_extractor",
    "get_processor",
    "get_retriever",
    "get_vector_store",
]
