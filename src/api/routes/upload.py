"""Document upload endpoints."""

import logging
import os
import random
import re
import time
from pathlib import Path

from fastapi import APIRouter, File, Form, UploadFile, status
from fastapi.responses import JSONResponse

from src.api.deps import AppSettings, EmbedderDep, ProcessorDep, VectorStoreDep
from src.api.schemas import CamelModel, error_response, utc_timestamp
from src.rag.processor import DEFAULT_DEPARTMENT, FileResult, UploadedFile

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Response Models
# ============================================


class UploadSummary(CamelModel):
    total: int
    successful: int
    failed: int


class FileResultResponse(CamelModel):
    """Outcome for one uploaded file."""

    filename: str
    status: str
    file_size: int | None = None
    chunks: int | None = None
    vectors: int | None = None
    message: str | None = None
    error: str | None = None

    @classmethod
    def from_result(cls, result: FileResult) -> "FileResultResponse":
        return cls(
            filename=result.filename,
            status=result.status,
            file_size=result.file_size,
            chunks=result.chunks,
            vectors=result.vectors,
            message=result.message,
            error=result.error,
        )


class UploadResponse(CamelModel):
    message: str
    summary: UploadSummary
    results: list[FileResultResponse]


class UploadServices(CamelModel):
    openai: str
    pinecone: str
    upload_dir: str


class UploadHealthResponse(CamelModel):
    status: str
    services: UploadServices
    timestamp: str


class IndexStatsResponse(CamelModel):
    total_vectors: int
    dimension: int
    index_name: str


class StatsResponse(CamelModel):
    message: str
    pinecone: IndexStatsResponse
    timestamp: str


# ============================================
# Helpers
# ============================================


def sanitize_filename(filename: str) -> str:
    """Sanitize filename to prevent path traversal attacks."""
    # Remove any directory components
    filename = os.path.basename(filename.replace("\\", "/"))
    # Remove potentially dangerous characters
    filename = re.sub(r"[^\w\-.]", "_", filename)
    # Ensure it doesn't start with a dot
    filename = filename.lstrip(".")
    return filename[:200] or "unnamed"


def stored_filename(original_name: str) -> str:
    """Unique on-disk name: epoch millis, a random number and the sanitized name."""
    unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"{unique_suffix}-{sanitize_filename(original_name)}"


async def save_upload(upload: UploadFile, upload_dir: Path, max_size: int) -> UploadedFile:
    """Write an upload to the temp directory and describe it for processing.

    Files over ``max_size`` are never written; the processor reports them
    as too large.
    """
    original_name = upload.filename or "unnamed"
    stored_name = stored_filename(original_name)
    path = upload_dir / stored_name

    if upload.size is not None and upload.size > max_size:
        size = upload.size
    else:
        content = await upload.read()
        size = len(content)
        if size <= max_size:
            upload_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)

    return UploadedFile(
        path=path,
        original_name=original_name,
        stored_name=stored_name,
        mime_type=upload.content_type or "application/octet-stream",
        size=size,
    )


# ============================================
# Upload Endpoints
# ============================================


@router.post("/upload", response_model=UploadResponse, response_model_exclude_none=True)
async def upload_files(
    processor: ProcessorDep,
    settings: AppSettings,
    files: list[UploadFile] | None = File(None),
    department: str = Form(DEFAULT_DEPARTMENT),
):
    """Upload documents and index them for the assistant.

    Each file is extracted, chunked, embedded and stored. A failing file
    is reported in its own result and never stops the others.
    """
    files = [f for f in files or [] if f.filename]

    if not files:
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "No files uploaded",
            "Please select at least one file to upload",
        )

    if len(files) > settings.max_files_per_upload:
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "Too many files",
            f"Maximum {settings.max_files_per_upload} files per upload",
        )

    logger.info(f"[Upload] Received {len(files)} files (department: {department})")

    saved: list[UploadedFile] = []
    try:
        for upload in files:
            saved.append(await save_upload(upload, settings.upload_dir, settings.max_file_size))

        report = await processor.process_files(saved, department=department or DEFAULT_DEPARTMENT)
    except Exception as e:
        logger.error(f"[Upload] Upload processing error: {e}", exc_info=True)
        for file in saved:
            processor.cleanup(file)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            "Failed to process uploaded files",
            details=str(e),
        )

    return UploadResponse(
        message=f"Processed {report.total} files",
        summary=UploadSummary(
            total=report.total,
            successful=report.successful,
            failed=report.failed,
        ),
        results=[FileResultResponse.from_result(r) for r in report.results],
    )


@router.get("/upload/health", response_model=UploadHealthResponse)
async def upload_health(
    embedder: EmbedderDep,
    vector_store: VectorStoreDep,
    settings: AppSettings,
):
    """Check that the embedding API and vector index are reachable.

    Returns 200 when both are, otherwise 503.
    """
    openai_ok = await embedder.test_connection()
    store_ok = await vector_store.test_connection()
    healthy = openai_ok and store_ok

    body = UploadHealthResponse(
        status="healthy" if healthy else "unhealthy",
        services=UploadServices(
            openai="connected" if openai_ok else "disconnected",
            pinecone="connected" if store_ok else "disconnected",
            upload_dir="exists" if settings.upload_dir.is_dir() else "missing",
        ),
        timestamp=utc_timestamp(),
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body.model_dump(by_alias=True),
    )


@router.get("/upload/stats", response_model=StatsResponse)
async def upload_stats(vector_store: VectorStoreDep, settings: AppSettings):
    """Vector index statistics."""
    try:
        stats = await vector_store.stats()
    except Exception as e:
        logger.error(f"[Upload] Error getting stats: {e}")
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to get statistics",
            getattr(e, "message", str(e)),
        )

    return StatsResponse(
        message="Upload system statistics",
        pinecone=IndexStatsResponse(
            total_vectors=stats.count,
            dimension=stats.dimension,
            index_name=settings.vector_index_name,
        ),
        timestamp=utc_timestamp(),
    )
