"""Qdrant vector store client.

Stores one point per document chunk in a single collection (the
"index"). Each point's payload carries the chunk text and the upload
metadata used for citations and department filtering.
"""

import asyncio
import logging
import random
import string
import time
from dataclasses import dataclass, field
from numbers import Real
from uuid import NAMESPACE_URL, uuid5

from qdrant_client import AsyncQdrantClient
from qdrant_client.http import models as qdrant_models
from qdrant_client.http.models import Distance, PayloadSchemaType, VectorParams

from src.core.config import get_settings
from src.core.exceptions import StoreError
from src.observability.metrics import track_latency

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "Vector store client not initialized. Please check your QDRANT_URL."
ID_ALPHABET = string.ascii_lowercase + string.digits


@dataclass
class VectorRecord:
    """A chunk embedding plus its citation metadata."""

    id: str
    vector: list[float]
    metadata: dict = field(default_factory=dict)


@dataclass
class SimilarityMatch:
    """A scored search hit. Vector values are never returned."""

    id: str
    score: float
    metadata: dict


@dataclass
class IndexStats:
    count: int
    dimension: int


def generate_vector_id(file_id: str, chunk_index: int) -> str:
    """Build a record id unique across re-uploads of the same file name."""
    timestamp = int(time.time() * 1000)
    suffix = "".join(random.choices(ID_ALPHABET, k=6))
    return f"{file_id}-chunk-{chunk_index}-{timestamp}-{suffix}"


def point_id(record_id: str) -> str:
    """Map a record id to the UUID Qdrant requires as a point id."""
    return str(uuid5(NAMESPACE_URL, record_id))


class VectorStore:
    """Qdrant vector store for HR document embeddings.

    Payload per point: filename, file_id, chunk_index, text, file_type,
    file_size, upload_date, department, chunk_length, vector_id.
    """

    def __init__(
        self,
        client: AsyncQdrantClient | None,
        collection_name: str = "hrdocs",
        embedding_dim: int = 2048,
        batch_size: int = 100,
        batch_delay: float = 0.1,
    ):
        self.client = client
        self.collection_name = collection_name
        self.embedding_dim = embedding_dim
        self.batch_size = batch_size
        self.batch_delay = batch_delay

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def _require_client(self) -> AsyncQdrantClient:
        if self.client is None:
            raise StoreError(NOT_CONFIGURED)
        return self.client

    async def ensure_index(self) -> bool:
        """Create the collection and payload indexes if missing.

        Returns:
            True if created, False if it already existed
        """
        client = self._require_client()

        if await client.collection_exists(self.collection_name):
            return False

        logger.info(
            f"[VectorStore] Creating collection '{self.collection_name}' ({self.embedding_dim} dimensions)"
        )
        await client.create_collection(
            collection_name=self.collection_name,
            vectors_config=VectorParams(
                size=self.embedding_dim,
                distance=Distance.COSINE,
            ),
            # Store large text payloads on disk to save RAM
            on_disk_payload=True,
        )

        # Payload indexes for the metadata filters used at query time
        for field_name in ("department", "file_id"):
            await client.create_payload_index(
                collection_name=self.collection_name,
                field_name=field_name,
                field_schema=PayloadSchemaType.KEYWORD,
            )

        return True

    async def upsert(self, records: list[VectorRecord]) -> int:
        """Insert or update vector records in ordered batches.

        A failed batch aborts the remaining ones; batches already written
        stay in the index.

        Returns:
            Number of records upserted
        """
        client = self._require_client()

        if not records:
            return 0

        logger.info(
            f"[VectorStore] Upserting {len(records)} vectors to collection '{self.collection_name}'"
        )

        points = [
            qdrant_models.PointStruct(
                id=point_id(record.id),
                vector=record.vector,
                payload={**record.metadata, "vector_id": record.id},
            )
            for record in records
        ]

        total_batches = (len(points) + self.batch_size - 1) // self.batch_size
        total_upserted = 0

        for i in range(0, len(points), self.batch_size):
            batch = points[i : i + self.batch_size]
            batch_num = i // self.batch_size + 1
            logger.debug(
                f"[VectorStore] Upserting batch {batch_num}/{total_batches} ({len(batch)} points)"
            )
            try:
                with track_latency("qdrant", "upsert"):
                    await client.upsert(
                        collection_name=self.collection_name,
                        points=batch,
                        wait=True,
                    )
            except Exception as e:
                logger.error(f"[VectorStore] Batch {batch_num}/{total_batches} failed: {e}")
                raise StoreError(f"Failed to store vectors: {e}") from e

            total_upserted += len(batch)

            if i + self.batch_size < len(points):
                await asyncio.sleep(self.batch_delay)

        logger.info(f"[VectorStore] Successfully upserted {total_upserted} vectors")
        return total_upserted

    async def query(
        self,
        vector: list[float],
        top_k: int = 5,
        metadata_filter: dict | None = None,
    ) -> list[SimilarityMatch]:
        """Search for the most similar chunks.

        Args:
            vector: Query embedding
            top_k: Maximum results
            metadata_filter: Metadata equality predicates, e.g. {"department": "sales"}

        Returns:
            Matches ordered by descending similarity
        """
        client = self._require_client()

        if (
            not isinstance(vector, list)
            or not vector
            or not all(isinstance(v, Real) for v in vector)
        ):
            raise StoreError(
                f"Invalid query vector: expected non-empty list of numbers, got {type(vector).__name__}"
            )

        query_filter = None
        if metadata_filter:
            query_filter = qdrant_models.Filter(
                must=[
                    qdrant_models.FieldCondition(
                        key=key,
                        match=qdrant_models.MatchValue(value=value),
                    )
                    for key, value in metadata_filter.items()
                ]
            )

        logger.debug(f"[VectorStore] Querying top {top_k} (filter: {metadata_filter or 'none'})")
        try:
            with track_latency("qdrant", "query"):
                results = await client.query_points(
                    collection_name=self.collection_name,
                    query=vector,
                    limit=top_k,
                    query_filter=query_filter,
                    with_payload=True,
                    with_vectors=False,
                )
        except Exception as e:
            logger.error(f"[VectorStore] Query failed: {e}")
            raise StoreError(f"Vector query failed: {e}") from e

        matches = []
        for point in results.points:
            payload = dict(point.payload or {})
            record_id = payload.pop("vector_id", None) or str(point.id)
            matches.append(SimilarityMatch(id=record_id, score=point.score, metadata=payload))

        logger.info(f"[VectorStore] Found {len(matches)} matching vectors")
        return matches

    async def delete(self, ids: list[str]) -> None:
        """Delete records by id."""
        client = self._require_client()

        if not ids:
            return

        logger.info(f"[VectorStore] Deleting {len(ids)} vectors")
        try:
            await client.delete(
                collection_name=self.collection_name,
                points_selector=qdrant_models.PointIdsList(
                    points=[point_id(record_id) for record_id in ids]
                ),
                wait=True,
            )
        except Exception as e:
            raise StoreError(f"Failed to delete vectors: {e}") from e

    async def stats(self) -> IndexStats:
        """Get collection statistics."""
        client = self._require_client()

        try:
            with track_latency("qdrant", "stats"):
                info = await client.get_collection(self.collection_name)
        except Exception as e:
            raise StoreError(f"Failed to get index stats: {e}") from e

        # Named-vector collections expose a dict instead of VectorParams
        vectors = info.config.params.vectors
        dimension = getattr(vectors, "size", None) or self.embedding_dim

        return IndexStats(count=info.points_count or 0, dimension=dimension)

    async def test_connection(self) -> bool:
        """Check that the index is reachable."""
        if self.client is None:
            logger.warning("[VectorStore] Client not initialized")
            return False

        try:
            await self.stats()
            return True
        except Exception as e:
            logger.error(f"[VectorStore] Connection failed: {e}")
            return False

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()


# Singleton instance
_vector_store: VectorStore | None = None


def get_vector_store() -> VectorStore:
    """Get or create the global VectorStore instance."""
    global _vector_store

    if _vector_store is None:
        settings = get_settings()
        client = None
        if settings.vector_store_configured:
            # Default 5s is too short for batched upserts
            client = AsyncQdrantClient(
                url=settings.qdrant_url,
                api_key=settings.qdrant_api_key or None,
                timeout=60,
            )
        else:
            logger.warning("[VectorStore] QDRANT_URL not configured; vector store disabled")

        _vector_store = VectorStore(
            client,
            collection_name=settings.vector_index_name,
            embedding_dim=settings.embedding_dimensions,
            batch_size=settings.upsert_batch_size,
            batch_delay=settings.upsert_batch_delay_ms / 1000,
        )

    return _vector_store


async def shutdown_vector_store() -> None:
    """Close the global vector store's client."""
    global _vector_store
    if _vector_store is not None:
        await _vector_store.close()
        _vector_store = None
