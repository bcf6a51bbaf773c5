"""Unit tests for prompts and the assistant runtime."""

from unittest.mock import MagicMock

import pytest

from src.agent.prompts import PROMPTS, ConfidenceLevel, build_system_prompt
from src.agent.runtime import AssistantRuntime, ChatMessage
from src.core.exceptions import CompletionError


class TestPrompts:
    def test_one_prompt_per_tier(self) -> None:
        assert set(PROMPTS) == set(ConfidenceLevel)

    @pytest.mark.parametrize("level", list(ConfidenceLevel))
    def test_context_is_embedded(self, level: ConfidenceLevel) -> None:
        prompt = build_system_prompt("[a.pdf] Vacation is 20 days.", level)
        assert prompt.endswith("[a.pdf] Vacation is 20 days.")

    def test_tier_instructions_differ(self) -> None:
        assert "contacting HR directly" in build_system_prompt("ctx", ConfidenceLevel.MEDIUM)
        assert "rephrasing" in build_system_prompt("ctx", ConfidenceLevel.LOW)
        assert "authority" in build_system_prompt("ctx", ConfidenceLevel.HIGH)


class TestAssistantRuntime:
    @pytest.mark.asyncio
    async def test_request_parameters(
        self, runtime: AssistantRuntime, mock_openai_client: MagicMock
    ) -> None:
        result = await runtime.chat(
            [ChatMessage(role="user", content="How much PTO?")],
            context="[a.pdf] 20 days",
            confidence_level=ConfidenceLevel.MEDIUM,
        )

        kwargs = mock_openai_client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-3.5-turbo"
        assert kwargs["max_tokens"] == 500
        assert kwargs["temperature"] == 0.7
        assert kwargs["messages"][0] == {
            "role": "system",
            "content": build_system_prompt("[a.pdf] 20 days", ConfidenceLevel.MEDIUM),
        }
        assert kwargs["messages"][1] == {"role": "user", "content": "How much PTO?"}
        assert result.prompt_tokens == 120
        assert result.completion_tokens == 15

    @pytest.mark.asyncio
    async def test_api_error_wrapped(
        self, runtime: AssistantRuntime, mock_openai_client: MagicMock
    ) -> None:
        mock_openai_client.chat.completions.create.side_effect = RuntimeError("context length exceeded")

        with pytest.raises(CompletionError, match="context length exceeded"):
            await runtime.chat([ChatMessage(role="user", content="hi")], context="ctx")

    @pytest.mark.asyncio
    async def test_disabled_without_client(self) -> None:
        with pytest.raises(CompletionError, match="OPENAI_API_KEY"):
            await AssistantRuntime(client=None).chat([], context="ctx")

    @pytest.mark.asyncio
    async def test_tracing_failure_does_not_break_chat(self, mock_openai_client: MagicMock) -> None:
        langfuse = MagicMock()
        langfuse.start_generation.side_effect = RuntimeError("langfuse down")
        runtime = AssistantRuntime(client=mock_openai_client, langfuse=langfuse)

        result = await runtime.chat([ChatMessage(role="user", content="hi")], context="ctx")

        assert result.content

    @pytest.mark.asyncio
    async def test_generation_traced(self, mock_openai_client: MagicMock) -> None:
        langfuse = MagicMock()
        runtime = AssistantRuntime(client=mock_openai_client, langfuse=langfuse)

        await runtime.chat([ChatMessage(role="user", content="hi")], context="ctx")

        generation = langfuse.start_generation.return_value
        generation.update.assert_called_once()
        assert generation.update.call_args.kwargs["usage_details"] == {"input": 120, "output": 15}
        generation.end.assert_called_once()

    @pytest.mark.asyncio
    async def test_generation_update_failure_keeps_answer(
        self, mock_openai_client: MagicMock
    ) -> None:
        langfuse = MagicMock()
        langfuse.start_generation.return_value.update.side_effect = RuntimeError("langfuse down")
        runtime = AssistantRuntime(client=mock_openai_client, langfuse=langfuse)

        result = await runtime.chat([ChatMessage(role="user", content="hi")], context="ctx")

        assert result.content == "You get 20 days of paid vacation per year."

    @pytest.mark.asyncio
    async def test_generation_end_failure_keeps_completion_error(
        self, mock_openai_client: MagicMock
    ) -> None:
        mock_openai_client.chat.completions.create.side_effect = RuntimeError("rate limited")
        langfuse = MagicMock()
        langfuse.start_generation.return_value.end.side_effect = RuntimeError("langfuse down")
        runtime = AssistantRuntime(client=mock_openai_client, langfuse=langfuse)

        with pytest.raises(CompletionError, match="rate limited"):
            await runtime.chat([ChatMessage(role="user", content="hi")], context="ctx")
