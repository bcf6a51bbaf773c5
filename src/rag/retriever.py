"""RAG Retriever - answers employee questions from indexed HR documents.

Embeds the question, searches the vector index, keeps only the best
confidence tier of matches and asks the chat model for a grounded answer.
"""

import logging
from dataclasses import dataclass, field

from src.agent.prompts import ConfidenceLevel
from src.agent.runtime import AssistantRuntime, ChatMessage, get_runtime
from src.core.config import get_settings
from src.core.exceptions import (
    InvalidRequestError,
    NoRelevantContentError,
    SearchError,
)
from src.observability.metrics import CHAT_QUERIES
from src.rag.embedder import Embedder, get_embedder
from src.rag.vector_store import SimilarityMatch, VectorStore, get_vector_store

logger = logging.getLogger(__name__)

# Lower bounds (exclusive) of each tier; a score must be strictly greater
HIGH_THRESHOLD = 0.7
MEDIUM_THRESHOLD = 0.5
LOW_THRESHOLD = 0.3

ALL_DEPARTMENTS = "all"


@dataclass
class RetrievedChunk:
    """A chunk retrieved from vector search."""

    text: str
    filename: str
    score: float
    department: str

    @classmethod
    def from_match(cls, match: SimilarityMatch) -> "RetrievedChunk":
        metadata = match.metadata or {}
        return cls(
            text=metadata.get("text", ""),
            filename=metadata.get("filename", "unknown"),
            score=match.score or 0.0,
            department=metadata.get("department", "general"),
        )


@dataclass
class Source:
    filename: str
    score: float
    department: str


@dataclass
class QueryAnswer:
    """Grounded answer with the sources it was built from."""

    response: str
    confidence_level: ConfidenceLevel
    sources: list[Source] = field(default_factory=list)
    context_used: bool = False
    relevant_chunks: int = 0
    total_search_results: int = 0


def tier_matches(
    chunks: list[RetrievedChunk],
) -> tuple[ConfidenceLevel | None, list[RetrievedChunk]]:
    """Pick the best non-empty confidence tier.

    Tiers are high (> 0.7), medium (0.5, 0.7] and low (0.3, 0.5]; anything
    at or below 0.3 is discarded. Tiers are never blended and chunks keep
    the store's ranking order.

    Returns:
        (level, chunks) for the selected tier, or (None, []) if all are empty
    """
    high = [c for c in chunks if c.score > HIGH_THRESHOLD]
    medium = [c for c in chunks if MEDIUM_THRESHOLD < c.score <= HIGH_THRESHOLD]
    low = [c for c in chunks if LOW_THRESHOLD < c.score <= MEDIUM_THRESHOLD]

    logger.debug(
        f"[Retriever] Tiers: high={len(high)}, medium={len(medium)}, low={len(low)}"
    )

    for level, tier in (
        (ConfidenceLevel.HIGH, high),
        (ConfidenceLevel.MEDIUM, medium),
        (ConfidenceLevel.LOW, low),
    ):
        if tier:
            return level, tier
    return None, []


def format_context(chunks: list[RetrievedChunk]) -> str:
    """Format retrieved chunks as grounding context, each tagged with its source."""
    return "\n\n".join(f"[{chunk.filename}] {chunk.text}" for chunk in chunks)


class Retriever:
    """Query orchestration over the vector index and the chat model."""

    def __init__(
        self,
        vector_store: VectorStore,
        embedder: Embedder,
        runtime: AssistantRuntime,
        top_k: int = 5,
        history_turns: int = 6,
    ):
        self.vector_store = vector_store
        self.embedder = embedder
        self.runtime = runtime
        self.top_k = top_k
        self.history_turns = history_turns

    async def search(
        self,
        query_vector: list[float],
        department: str | None = None,
    ) -> list[SimilarityMatch]:
        """Search the index, optionally restricted to one department."""
        metadata_filter = None
        if department and department != ALL_DEPARTMENTS:
            metadata_filter = {"department": department}

        try:
            return await self.vector_store.query(
                query_vector, top_k=self.top_k, metadata_filter=metadata_filter
            )
        except Exception as e:
            logger.error(f"[Retriever] Vector search failed: {e}")
            raise SearchError(getattr(e, "message", str(e))) from e

    async def answer(
        self,
        message: str,
        department: str | None = None,
        history: list[ChatMessage] | None = None,
    ) -> QueryAnswer:
        """Answer a question from the indexed documents.

        Args:
            message: The employee's question
            department: Restrict the search to this department ("all" or None for every department)
            history: Prior conversation turns, oldest first

        Returns:
            QueryAnswer with the generated response and its sources

        Raises:
            InvalidRequestError: If the message is blank
            EmbeddingError: If the question cannot be embedded
            SearchError: If the vector search fails
            NoRelevantContentError: If no match clears the similarity floor
            CompletionError: If answer generation fails
        """
        if not message or not message.strip():
            raise InvalidRequestError("No message provided")

        history = history or []
        logger.info(
            f"[Retriever] Question received (department: {department or ALL_DEPARTMENTS}, "
            f"history: {len(history)} messages)"
        )

        query_vector = await self.embedder.embed_query(message)

        matches = await self.search(query_vector, department)
        chunks = [RetrievedChunk.from_match(m) for m in matches]
        logger.info(
            f"[Retriever] Similarity scores: {', '.join(f'{c.score:.3f}' for c in chunks) or 'none'}"
        )

        confidence_level, relevant = tier_matches(chunks)
        if confidence_level is None:
            logger.info("[Retriever] No relevant documents found above the similarity floor")
            CHAT_QUERIES.labels(confidence_level="none").inc()
            raise NoRelevantContentError(search_results=len(matches))

        context = format_context(relevant)

        messages = list(history[-self.history_turns :]) if self.history_turns else []
        messages.append(ChatMessage(role="user", content=message))

        completion = await self.runtime.chat(messages, context, confidence_level)
        CHAT_QUERIES.labels(confidence_level=confidence_level.value).inc()

        return QueryAnswer(
            response=completion.content,
            confidence_level=confidence_level,
            sources=[
                Source(
                    filename=chunk.filename,
                    score=round(chunk.score, 2),
                    department=chunk.department,
                )
                for chunk in relevant
            ],
            context_used=bool(context),
            relevant_chunks=len(relevant),
            total_search_results=len(matches),
        )


# Singleton instance
_retriever: Retriever | None = None


def get_retriever() -> Retriever:
    """Get or create the global Retriever instance."""
    global _retriever

    if _retriever is None:
        settings = get_settings()
        _retriever = Retriever(
            vector_store=get_vector_store(),
            embedder=get_embedder(),
            runtime=get_runtime(),
            top_k=settings.query_top_k,
            history_turns=settings.history_turns,
        )

    return _retriever
