"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from src.agent.runtime import shutdown_runtime
from src.api.deps import enforce_rate_limit
from src.api.routes import chat, health, upload
from src.api.schemas import error_response
from src.core.config import get_settings
from src.core.exceptions import HRAssistantError
from src.core.logging import configure_logging
from src.core.rate_limiting import shutdown_rate_limiter
from src.rag.embedder import shutdown_embedder
from src.rag.vector_store import get_vector_store, shutdown_vector_store

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    # Startup
    configure_logging(settings)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(
        f"Environment: {settings.environment} "
        f"(OPENAI_API_KEY: {'set' if settings.openai_configured else 'missing'}, "
        f"vector index: {settings.vector_index_name if settings.vector_store_configured else 'disabled'})"
    )
    if not settings.openai_configured:
        logger.warning("Missing OPENAI_API_KEY; embedding and chat requests will fail until it is set")

    settings.upload_dir.mkdir(parents=True, exist_ok=True)

    vector_store = get_vector_store()
    if vector_store.enabled:
        try:
            created = await vector_store.ensure_index()
            if created:
                logger.info(f"Created vector index '{settings.vector_index_name}'")
        except Exception as e:
            # Index may come up later; health endpoints report it
            logger.warning(f"Vector index initialization skipped: {e}")

    logger.info(f"Startup complete - ready to accept requests on port {settings.api_port}")

    yield

    # Shutdown
    logger.info("Shutting down...")
    await shutdown_runtime()
    await shutdown_embedder()
    await shutdown_vector_store()
    await shutdown_rate_limiter()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="HR Assistant document ingestion and question answering API",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as 400 with a flat error body."""
    details = "; ".join(
        f"{'.'.join(str(loc) for loc in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    )
    return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request", details)


@app.exception_handler(HRAssistantError)
async def assistant_exception_handler(request: Request, exc: HRAssistantError):
    logger.error(f"Unhandled {type(exc).__name__} on {request.url.path}: {exc}")
    return error_response(exc.status_code, type(exc).__name__, exc.message)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        "An unexpected error occurred",
    )


# Liveness (not rate limited)
app.include_router(health.router, tags=["Health"])

# API routes
api_dependencies = [Depends(enforce_rate_limit)]
app.include_router(
    upload.router, prefix=settings.api_prefix, tags=["Upload"], dependencies=api_dependencies
)
app.include_router(
    chat.router, prefix=settings.api_prefix, tags=["Chat"], dependencies=api_dependencies
)

# Prometheus metrics endpoint
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs" if settings.debug else None,
        "health": "/health",
    }


def run() -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    uvicorn.run(
        "src.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
