"""FastAPI dependency injection.

Provides common dependencies for API routes.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from src.core.config import Settings, get_settings
from src.core.rate_limiting import RateLimitExceeded, RequestRateLimiter, get_rate_limiter
from src.rag.embedder import Embedder, get_embedder
from src.rag.processor import DocumentProcessor, get_processor
from src.rag.retriever import Retriever, get_retriever
from src.rag.vector_store import VectorStore, get_vector_store

# Type aliases for cleaner signatures
AppSettings = Annotated[Settings, Depends(get_settings)]
EmbedderDep = Annotated[Embedder, Depends(get_embedder)]
VectorStoreDep = Annotated[VectorStore, Depends(get_vector_store)]
ProcessorDep = Annotated[DocumentProcessor, Depends(get_processor)]
RetrieverDep = Annotated[Retriever, Depends(get_retriever)]
RateLimiterDep = Annotated[RequestRateLimiter, Depends(get_rate_limiter)]


def get_client_id(request: Request) -> str:
    """Identify the caller for rate limiting (first forwarded hop, else peer address)."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


async def enforce_rate_limit(
    request: Request, settings: AppSettings, limiter: RateLimiterDep
) -> None:
    """Apply the per-client request limit to API routes when enabled."""
    if not settings.rate_limit_enabled:
        return

    try:
        await limiter.check_and_increment(get_client_id(request))
    except RateLimitExceeded as e:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests from this IP, please try again later.",
            headers={
                "Retry-After": str(e.retry_after),
                "X-RateLimit-Limit": str(e.limit),
                "X-RateLimit-Remaining": str(e.remaining),
            },
        ) from None
