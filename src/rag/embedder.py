"""Embedding service using OpenAI.

Generates vector embeddings for text chunks and queries.
"""

import asyncio
import logging

from openai import AsyncOpenAI

from src.core.config import get_settings
from src.core.exceptions import EmbeddingError
from src.core.openai_client import build_openai_client
from src.observability.metrics import track_latency

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "OpenAI client not initialized. Please check your OPENAI_API_KEY."


class Embedder:
    """OpenAI embedding service.

    Uses text-embedding-3-large reduced to the configured dimensions.
    A client of ``None`` puts the embedder in a disabled state where every
    call fails fast.
    """

    DEFAULT_MODEL = "text-embedding-3-large"

    def __init__(
        self,
        client: AsyncOpenAI | None,
        model: str = DEFAULT_MODEL,
        dimensions: int = 2048,
        batch_size: int = 50,
        batch_delay: float = 0.1,
        large_batch_delay: float = 0.2,
        large_input_threshold: int = 100,
    ):
        self.client = client
        self.model = model
        self.dimensions = dimensions
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.large_batch_delay = large_batch_delay
        self.large_input_threshold = large_input_threshold

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def _create(self, inputs: str | list[str]) -> list[list[float]]:
        if self.client is None:
            raise EmbeddingError(NOT_CONFIGURED)

        with track_latency("openai", "embeddings"):
            response = await self.client.embeddings.create(
                input=inputs,
                model=self.model,
                dimensions=self.dimensions,
                encoding_format="float",
            )
        return [item.embedding for item in response.data]

    async def embed_text(self, text: str) -> list[float]:
        """Generate embedding for a single text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector
        """
        if not text or not text.strip():
            raise EmbeddingError("Cannot embed empty text")

        logger.debug(f"[Embedder] Creating embedding for text of {len(text)} characters")
        try:
            embeddings = await self._create(text)
        except EmbeddingError:
            raise
        except Exception as e:
            logger.error(f"[Embedder] Error creating embedding: {e}")
            raise EmbeddingError(f"Failed to create embedding: {e}") from e

        return embeddings[0]

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for multiple texts in sequential, paced batches.

        Args:
            texts: List of texts to embed

        Returns:
            One embedding vector per input text, in input order
        """
        if not texts:
            return []

        batch_size = min(self.batch_size, len(texts))
        total_batches = (len(texts) + batch_size - 1) // batch_size
        delay = self.large_batch_delay if len(texts) > self.large_input_threshold else self.batch_delay

        logger.info(f"[Embedder] Creating embeddings for {len(texts)} texts in {total_batches} batches")

        embeddings: list[list[float]] = []
        for batch_start in range(0, len(texts), batch_size):
            batch = texts[batch_start : batch_start + batch_size]
            batch_num = batch_start // batch_size + 1
            logger.debug(f"[Embedder] Batch {batch_num}/{total_batches} ({len(batch)} texts)")

            try:
                batch_embeddings = await self._create(batch)
            except EmbeddingError:
                raise
            except Exception as e:
                logger.error(f"[Embedder] Batch {batch_num}/{total_batches} failed: {e}")
                raise EmbeddingError(f"Failed to create embeddings: {e}") from e

            if len(batch_embeddings) != len(batch):
                raise EmbeddingError(
                    f"Embedding count mismatch: expected {len(batch)}, got {len(batch_embeddings)}"
                )
            embeddings.extend(batch_embeddings)

            if batch_start + batch_size < len(texts):
                await asyncio.sleep(delay)

        logger.info(f"[Embedder] Created {len(embeddings)} embeddings")
        return embeddings

    async def embed_query(self, query: str) -> list[float]:
        """Embed a user question for similarity search."""
        return await self.embed_text(query)

    async def test_connection(self) -> bool:
        """Check that the embedding API is reachable."""
        if self.client is None:
            logger.warning("[Embedder] OpenAI client not initialized")
            return False

        try:
            await self._create("test")
            return True
        except Exception as e:
            logger.error(f"[Embedder] OpenAI connection failed: {e}")
            return False

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()


# Singleton instance
_embedder: Embedder | None = None


def get_embedder() -> Embedder:
    """Get or create the global Embedder instance."""
    global _embedder

    if _embedder is None:
        settings = get_settings()
        client = build_openai_client(settings)
        if client is None:
            logger.warning("[Embedder] OPENAI_API_KEY not configured; embeddings disabled")
        else:
            logger.info(
                f"Initializing embedder with model '{settings.embedding_model}' "
                f"({settings.embedding_dimensions} dimensions)"
            )

        _embedder = Embedder(
            client=client,
            model=settings.embedding_model,
            dimensions=settings.embedding_dimensions,
            batch_size=settings.embedding_batch_size,
            batch_delay=settings.embedding_batch_delay_ms / 1000,
            large_batch_delay=settings.embedding_large_batch_delay_ms / 1000,
            large_input_threshold=settings.embedding_large_input_threshold,
        )

    return _embedder


async def shutdown_embedder() -> None:
    """Close the global embedder's client."""
    global _embedder
    if _embedder is not None:
        await _embedder.close()
        _embedder = None
