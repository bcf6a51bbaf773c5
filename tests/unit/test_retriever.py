"""Unit tests for tiered retrieval and answer generation."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.agent.prompts import ConfidenceLevel
from src.agent.runtime import ChatMessage
from src.core.exceptions import (
    CompletionError,
    EmbeddingError,
    InvalidRequestError,
    NoRelevantContentError,
    SearchError,
)
from src.rag.retriever import RetrievedChunk, Retriever, format_context, tier_matches

from tests.helpers import scored_point


def _chunk(score: float, filename: str = "handbook.pdf") -> RetrievedChunk:
    return RetrievedChunk(text=f"text {score}", filename=filename, score=score, department="general")


class TestTierMatches:
    def test_high_tier_wins(self) -> None:
        chunks = [_chunk(0.9), _chunk(0.6), _chunk(0.4)]

        level, selected = tier_matches(chunks)

        assert level == ConfidenceLevel.HIGH
        assert [c.score for c in selected] == [0.9]

    def test_medium_when_no_high(self) -> None:
        level, selected = tier_matches([_chunk(0.65), _chunk(0.55), _chunk(0.35)])

        assert level == ConfidenceLevel.MEDIUM
        assert [c.score for c in selected] == [0.65, 0.55]

    def test_low_when_only_low(self) -> None:
        level, selected = tier_matches([_chunk(0.45), _chunk(0.1)])

        assert level == ConfidenceLevel.LOW
        assert [c.score for c in selected] == [0.45]

    @pytest.mark.parametrize(
        ("score", "expected"),
        [
            (0.7, ConfidenceLevel.MEDIUM),
            (0.5, ConfidenceLevel.LOW),
            (0.3, None),
            (0.7000001, ConfidenceLevel.HIGH),
        ],
    )
    def test_boundaries(self, score: float, expected) -> None:
        level, _ = tier_matches([_chunk(score)])
        assert level == expected

    def test_nothing_above_floor(self) -> None:
        assert tier_matches([_chunk(0.2), _chunk(0.29)]) == (None, [])
        assert tier_matches([]) == (None, [])


class TestFormatContext:
    def test_tags_and_separates_chunks(self) -> None:
        chunks = [
            RetrievedChunk(text="Vacation is 20 days.", filename="a.pdf", score=0.9, department="hr"),
            RetrievedChunk(text="Sick leave is 10 days.", filename="b.docx", score=0.8, department="hr"),
        ]

        assert format_context(chunks) == "[a.pdf] Vacation is 20 days.\n\n[b.docx] Sick leave is 10 days."


class TestAnswer:
    @pytest.mark.asyncio
    async def test_blank_message(self, retriever: Retriever) -> None:
        with pytest.raises(InvalidRequestError):
            await retriever.answer("   ")

    @pytest.mark.asyncio
    async def test_high_confidence_answer(
        self, retriever: Retriever, mock_qdrant_client: AsyncMock, mock_openai_client: MagicMock
    ) -> None:
        mock_qdrant_client.query_points.return_value = SimpleNamespace(
            points=[scored_point(0.8234, department="hr"), scored_point(0.41)]
        )

        answer = await retriever.answer("How many vacation days do I get?")

        assert answer.confidence_level == ConfidenceLevel.HIGH
        assert answer.relevant_chunks == 1
        assert answer.total_search_results == 2
        assert answer.context_used is True
        assert [(s.filename, s.score, s.department) for s in answer.sources] == [
            ("handbook.pdf", 0.82, "hr")
        ]
        assert answer.response == "You get 20 days of paid vacation per year."

        messages = mock_openai_client.chat.completions.create.await_args.kwargs["messages"]
        assert messages[0]["role"] == "system"
        assert "[handbook.pdf] Employees accrue 20 vacation days per year." in messages[0]["content"]
        assert messages[-1] == {"role": "user", "content": "How many vacation days do I get?"}

    @pytest.mark.asyncio
    async def test_no_relevant_content(self, retriever: Retriever, mock_qdrant_client: AsyncMock) -> None:
        mock_qdrant_client.query_points.return_value = SimpleNamespace(
            points=[scored_point(0.25), scored_point(0.1)]
        )

        with pytest.raises(NoRelevantContentError) as exc_info:
            await retriever.answer("What is the dress code?")

        assert exc_info.value.search_results == 2

    @pytest.mark.asyncio
    async def test_department_filter(self, retriever: Retriever, mock_qdrant_client: AsyncMock) -> None:
        mock_qdrant_client.query_points.return_value = SimpleNamespace(points=[scored_point(0.9)])

        await retriever.answer("Commission rates?", department="sales")
        query_filter = mock_qdrant_client.query_points.await_args.kwargs["query_filter"]
        assert query_filter.must[0].match.value == "sales"

        await retriever.answer("Commission rates?", department="all")
        assert mock_qdrant_client.query_points.await_args.kwargs["query_filter"] is None

    @pytest.mark.asyncio
    async def test_history_limited_to_last_six_turns(
        self, retriever: Retriever, mock_qdrant_client: AsyncMock, mock_openai_client: MagicMock
    ) -> None:
        mock_qdrant_client.query_points.return_value = SimpleNamespace(points=[scored_point(0.9)])
        history = [
            ChatMessage(role="user" if i % 2 == 0 else "assistant", content=f"turn {i}")
            for i in range(10)
        ]

        await retriever.answer("And after that?", history=history)

        messages = mock_openai_client.chat.completions.create.await_args.kwargs["messages"]
        # system + 6 history turns + new question
        assert len(messages) == 8
        assert messages[1]["content"] == "turn 4"
        assert messages[6]["content"] == "turn 9"

    @pytest.mark.asyncio
    async def test_search_failure(self, retriever: Retriever, mock_qdrant_client: AsyncMock) -> None:
        mock_qdrant_client.query_points.side_effect = ConnectionError("qdrant unreachable")

        with pytest.raises(SearchError) as exc_info:
            await retriever.answer("Question?")

        assert "qdrant unreachable" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_embedding_failure_propagates(
        self, retriever: Retriever, mock_openai_client: MagicMock, mock_qdrant_client: AsyncMock
    ) -> None:
        mock_openai_client.embeddings.create.side_effect = RuntimeError("bad key")

        with pytest.raises(EmbeddingError):
            await retriever.answer("Question?")

        mock_qdrant_client.query_points.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_completion_failure(
        self, retriever: Retriever, mock_qdrant_client: AsyncMock, mock_openai_client: MagicMock
    ) -> None:
        mock_qdrant_client.query_points.return_value = SimpleNamespace(points=[scored_point(0.6)])
        mock_openai_client.chat.completions.create.side_effect = RuntimeError("model overloaded")

        with pytest.raises(CompletionError):
            await retriever.answer("Question?")
