"""Chat endpoints for employee questions."""

import logging
from typing import Literal

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import Field

from src.agent.runtime import ChatMessage
from src.api.deps import EmbedderDep, RetrieverDep, VectorStoreDep
from src.api.schemas import CamelModel, error_response, utc_timestamp
from src.core.exceptions import (
    InvalidRequestError,
    NoRelevantContentError,
    SearchError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class ChatMessageInput(CamelModel):
    """A single prior conversation turn."""

    role: Literal["user", "assistant"] = Field(..., description="Message role: user or assistant")
    content: str = Field(..., description="Message content")


class ChatRequest(CamelModel):
    """Chat request from the employee portal."""

    message: str = Field("", description="Employee question", max_length=32000)
    department: str | None = Field(
        None, description="Department to search, or 'all' for every department"
    )
    conversation_history: list[ChatMessageInput] = Field(
        default_factory=list, description="Previous conversation messages, oldest first"
    )


class SourceResponse(CamelModel):
    filename: str
    score: float
    department: str


class ChatResponse(CamelModel):
    """Grounded answer with its source documents."""

    response: str
    sources: list[SourceResponse]
    context_used: bool
    relevant_chunks: int
    total_search_results: int
    confidence_level: str


class IndexStatsSummary(CamelModel):
    total_vectors: int
    dimension: int


class ChatServices(CamelModel):
    openai: str
    pinecone: str
    index_stats: IndexStatsSummary | None = None
    chat_system_ready: bool


class ChatHealthResponse(CamelModel):
    status: str
    timestamp: str
    services: ChatServices


@router.post("/chat", response_model=ChatResponse)
async def chat(body: ChatRequest, retriever: RetrieverDep):
    """Answer a question from company documents.

    The assistant will:
    1. Embed the question
    2. Search the document index (filtered by department if given)
    3. Keep the best confidence tier of matches
    4. Generate an answer grounded in those matches
    5. Return the answer with source citations
    """
    history = [ChatMessage(role=m.role, content=m.content) for m in body.conversation_history]

    try:
        answer = await retriever.answer(body.message, department=body.department, history=history)
    except InvalidRequestError:
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "No message provided",
            "Please provide a message to process",
        )
    except NoRelevantContentError as e:
        return error_response(
            status.HTTP_404_NOT_FOUND,
            "No relevant information found",
            e.message,
            searchResults=e.search_results,
            relevantResults=0,
        )
    except SearchError as e:
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Document search failed",
            "Unable to search company documents. Please check system configuration.",
            pineconeError=e.message,
        )
    except Exception as e:
        logger.error(f"[Chat] Error processing chat query: {e}", exc_info=True)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Chat processing failed",
            "Unable to process your request. Please try again.",
            details=getattr(e, "message", str(e)),
        )

    logger.info(
        f"[Chat] Response completed ({len(answer.sources)} sources, confidence: {answer.confidence_level.value})"
    )

    return ChatResponse(
        response=answer.response,
        sources=[
            SourceResponse(filename=s.filename, score=s.score, department=s.department)
            for s in answer.sources
        ],
        context_used=answer.context_used,
        relevant_chunks=answer.relevant_chunks,
        total_search_results=answer.total_search_results,
        confidence_level=answer.confidence_level.value,
    )


@router.get("/chat/health", response_model=ChatHealthResponse)
async def chat_health(embedder: EmbedderDep, vector_store: VectorStoreDep):
    """Check that the chat pipeline's upstream services are reachable.

    Returns 200 when both the embedding API and the vector index respond,
    otherwise 503. Index statistics are included when available.
    """
    openai_ok = await embedder.test_connection()
    store_ok = await vector_store.test_connection()

    index_stats = None
    if store_ok:
        try:
            stats = await vector_store.stats()
            index_stats = IndexStatsSummary(total_vectors=stats.count, dimension=stats.dimension)
        except Exception as e:
            logger.warning(f"[Chat] Could not retrieve index stats: {e}")

    healthy = openai_ok and store_ok
    body = ChatHealthResponse(
        status="healthy" if healthy else "unhealthy",
        timestamp=utc_timestamp(),
        services=ChatServices(
            openai="connected" if openai_ok else "disconnected",
            pinecone="connected" if store_ok else "disconnected",
            index_stats=index_stats,
            chat_system_ready=healthy,
        ),
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body.model_dump(by_alias=True),
    )
