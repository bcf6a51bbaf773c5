"""Document processor for RAG ingestion.

Handles validation, extraction, chunking, embedding, and storage of
uploaded files.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from src.core.config import get_settings
from src.core.exceptions import (
    EmbeddingError,
    EmptyContentError,
    FileTooLargeError,
    InvalidRequestError,
    UnsupportedTypeError,
)
from src.observability.metrics import CHUNKS_INDEXED, DOCUMENTS_PROCESSED
from src.rag.chunking import Chunk, SlidingWindowChunker, get_chunker
from src.rag.embedder import Embedder, get_embedder
from src.rag.extractors import DocumentExtractor, get_extractor
from src.rag.vector_store import VectorRecord, VectorStore, generate_vector_id, get_vector_store

logger = logging.getLogger(__name__)

DEFAULT_DEPARTMENT = "general"


@dataclass
class UploadedFile:
    """An uploaded file saved to a temporary location on disk."""

    path: Path
    original_name: str
    stored_name: str  # doubles as the file id in vector metadata
    mime_type: str
    size: int


@dataclass
class FileResult:
    """Outcome of processing one uploaded file."""

    filename: str
    status: str  # success, error
    file_size: int | None = None
    chunks: int | None = None
    vectors: int | None = None
    message: str | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.status == "success"


@dataclass
class IngestionReport:
    """Per-file results plus aggregate counts."""

    results: list[FileResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return self.total - self.successful


class DocumentProcessor:
    """Processes uploaded documents for RAG ingestion.

    Pipeline per file:
    1. Validate media type and size
    2. Extract text from document
    3. Split into chunks
    4. Generate embeddings
    5. Store in vector database

    Files run one after another; a failure is recorded against that file
    and never stops the rest. The temporary upload is always removed.
    """

    def __init__(
        self,
        extractor: DocumentExtractor,
        chunker: SlidingWindowChunker,
        embedder: Embedder,
        vector_store: VectorStore,
        max_file_size: int = 10 * 1024 * 1024,
        file_batch_size: int = 3,
    ):
        self.extractor = extractor
        self.chunker = chunker
        self.embedder = embedder
        self.vector_store = vector_store
        self.max_file_size = max_file_size
        self.file_batch_size = file_batch_size

    def validate(self, file: UploadedFile) -> None:
        """Check the declared media type and the size limit."""
        if not self.extractor.supports(file.mime_type):
            raise UnsupportedTypeError(file.mime_type, self.extractor.supported_types())
        if file.size > self.max_file_size:
            raise FileTooLargeError(file.size, self.max_file_size)

    async def process_files(
        self,
        files: list[UploadedFile],
        department: str = DEFAULT_DEPARTMENT,
    ) -> IngestionReport:
        """Process a batch of uploaded files.

        Args:
            files: Files saved by the upload endpoint
            department: Department tag stored with every chunk

        Returns:
            IngestionReport with one result per file
        """
        if not files:
            raise InvalidRequestError("No files uploaded")

        department = department or DEFAULT_DEPARTMENT
        report = IngestionReport()
        total_batches = (len(files) + self.file_batch_size - 1) // self.file_batch_size
        logger.info(f"[Processor] Processing {len(files)} files in {total_batches} batches")

        # Batches only bound how much is held in memory; files stay sequential
        for batch_start in range(0, len(files), self.file_batch_size):
            batch = files[batch_start : batch_start + self.file_batch_size]
            logger.info(
                f"[Processor] Batch {batch_start // self.file_batch_size + 1}/{total_batches} ({len(batch)} files)"
            )
            for file in batch:
                report.results.append(await self.process_file(file, department))

        logger.info(
            f"[Processor] Processing complete: {report.successful} successful, {report.failed} failed"
        )
        return report

    async def process_file(
        self,
        file: UploadedFile,
        department: str = DEFAULT_DEPARTMENT,
    ) -> FileResult:
        """Run the ingestion pipeline for one file and always clean it up."""
        start_time = datetime.now(UTC)
        logger.info(f"[Processor] Processing file: {file.original_name}")

        try:
            self.validate(file)

            text = await asyncio.to_thread(self.extractor.extract, file.path, file.mime_type)
            if not text or not text.strip():
                raise EmptyContentError("No text content found in file")

            texts = self.chunker.chunk(text)
            if not texts:
                raise EmptyContentError("Failed to create text chunks from file content")

            chunks = [
                Chunk(
                    index=i,
                    text=chunk_text,
                    filename=file.original_name,
                    file_id=file.stored_name,
                    department=department,
                )
                for i, chunk_text in enumerate(texts)
            ]
            logger.info(f"[Processor] Generated {len(chunks)} chunks")

            embeddings = await self.embedder.embed_texts([c.text for c in chunks])
            if len(embeddings) != len(chunks):
                raise EmbeddingError(
                    f"Embedding count mismatch: expected {len(chunks)}, got {len(embeddings)}"
                )

            records = self.build_records(file, chunks, embeddings)
            await self.vector_store.upsert(records)

        except Exception as e:
            logger.error(f"[Processor] Error processing file {file.original_name}: {e}", exc_info=True)
            DOCUMENTS_PROCESSED.labels(status="error").inc()
            return FileResult(filename=file.original_name, status="error", error=str(e))

        finally:
            self.cleanup(file)

        processing_time = int((datetime.now(UTC) - start_time).total_seconds() * 1000)
        logger.info(
            f"[Processor] Stored {len(records)} vectors for {file.original_name} in {processing_time}ms"
        )
        DOCUMENTS_PROCESSED.labels(status="success").inc()
        CHUNKS_INDEXED.inc(len(records))

        return FileResult(
            filename=file.original_name,
            status="success",
            file_size=file.size,
            chunks=len(chunks),
            vectors=len(records),
            message=f"Successfully processed and stored {len(chunks)} text chunks",
        )

    @staticmethod
    def build_records(
        file: UploadedFile,
        chunks: list[Chunk],
        embeddings: list[list[float]],
    ) -> list[VectorRecord]:
        """Pair chunks with embeddings under freshly generated ids."""
        upload_date = datetime.now(UTC).isoformat()
        return [
            VectorRecord(
                id=generate_vector_id(chunk.file_id, chunk.index),
                vector=embedding,
                metadata={
                    "filename": chunk.filename,
                    "file_id": chunk.file_id,
                    "chunk_index": chunk.index,
                    "text": chunk.text,
                    "file_type": file.mime_type,
                    "file_size": file.size,
                    "upload_date": upload_date,
                    "department": chunk.department,
                    "chunk_length": chunk.length,
                },
            )
            for chunk, embedding in zip(chunks, embeddings, strict=True)
        ]

    @staticmethod
    def cleanup(file: UploadedFile) -> None:
        """Delete the temporary upload."""
        try:
            file.path.unlink(missing_ok=True)
            logger.debug(f"[Processor] Cleaned up temporary file: {file.stored_name}")
        except OSError as e:
            logger.error(f"[Processor] Error cleaning up file {file.stored_name}: {e}")


# Singleton instance
_processor: DocumentProcessor | None = None


def get_processor() -> DocumentProcessor:
    """Get or create the global DocumentProcessor instance."""
    global _processor

    if _processor is None:
        settings = get_settings()
        _processor = DocumentProcessor(
            extractor=get_extractor(),
            chunker=get_chunker(settings),
            embedder=get_embedder(),
            vector_store=get_vector_store(),
            max_file_size=settings.max_file_size,
            file_batch_size=settings.file_batch_size,
        )

    return _processor
