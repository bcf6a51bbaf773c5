"""Assistant runtime for LLM interactions.

Handles chat completions with OpenAI, including:
- Confidence-tiered system prompts with retrieved context
- Conversation history replay
- Optional Langfuse observability
"""

import logging
import time
from dataclasses import dataclass

from langfuse import Langfuse
from openai import AsyncOpenAI

from src.agent.prompts import ConfidenceLevel, build_system_prompt
from src.core.config import Settings, get_settings
from src.core.exceptions import CompletionError
from src.observability.metrics import TOKENS_TOTAL, track_latency
from src.core.openai_client import build_openai_client

logger = logging.getLogger(__name__)


@dataclass
class ChatMessage:
    """A message in a conversation."""

    role: str  # user, assistant
    content: str


@dataclass
class ChatCompletion:
    """Response from a chat completion."""

    content: str
    model: str
    prompt_tokens: int
    completion_tokens: int
    latency_ms: float


class AssistantRuntime:
    """Runtime for HR assistant answers.

    Wraps a single OpenAI client; a client of ``None`` means no API key
    is configured and every call fails fast with a CompletionError.
    """

    def __init__(
        self,
        client: AsyncOpenAI | None,
        model: str = "gpt-3.5-turbo",
        max_tokens: int = 500,
        temperature: float = 0.7,
        langfuse: Langfuse | None = None,
    ):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._langfuse = langfuse

    async def chat(
        self,
        messages: list[ChatMessage],
        context: str,
        confidence_level: ConfidenceLevel = ConfidenceLevel.HIGH,
    ) -> ChatCompletion:
        """Send a chat completion request.

        Args:
            messages: Conversation history ending with the user's question
            context: Retrieved document context
            confidence_level: Tier the context came from; selects the instructions

        Returns:
            ChatCompletion with content and usage info
        """
        if self.client is None:
            raise CompletionError("OpenAI client not initialized. Please check your OPENAI_API_KEY.")

        api_messages = [
            {"role": "system", "content": build_system_prompt(context, confidence_level)}
        ]
        api_messages.extend({"role": m.role, "content": m.content} for m in messages)

        logger.info(
            f"[Runtime] Generating response (context: {len(context)} chars, confidence: {confidence_level.value})"
        )

        generation = None
        if self._langfuse:
            try:
                generation = self._langfuse.start_generation(
                    name="hr-answer",
                    model=self.model,
                    input=api_messages,
                    metadata={"confidence_level": confidence_level.value},
                )
            except Exception as e:
                # Tracing errors shouldn't break the chat flow
                logger.warning(f"[Runtime] Langfuse generation start failed: {e}")

        start_time = time.perf_counter()

        try:
            with track_latency("openai", "chat"):
                response = await self.client.chat.completions.create(
                    model=self.model,
                    messages=api_messages,
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                )
        except Exception as e:
            self._end_generation(generation, level="ERROR", status_message=str(e))
            logger.error(f"[Runtime] Chat completion failed: {e}")
            raise CompletionError(f"Failed to generate response: {e}") from e

        latency_ms = (time.perf_counter() - start_time) * 1000

        choice = response.choices[0]
        usage = response.usage
        prompt_tokens = usage.prompt_tokens if usage else 0
        completion_tokens = usage.completion_tokens if usage else 0

        TOKENS_TOTAL.labels(model=self.model, token_type="input").inc(prompt_tokens)
        TOKENS_TOTAL.labels(model=self.model, token_type="output").inc(completion_tokens)

        result = ChatCompletion(
            content=choice.message.content or "",
            model=response.model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            latency_ms=latency_ms,
        )

        self._end_generation(
            generation,
            output=result.content,
            usage_details={"input": prompt_tokens, "output": completion_tokens},
            metadata={"finish_reason": choice.finish_reason, "latency_ms": latency_ms},
        )

        logger.info(f"[Runtime] Generated response ({len(result.content)} chars, {latency_ms:.0f}ms)")
        return result

    @staticmethod
    def _end_generation(generation, **fields) -> None:
        if generation is None:
            return
        try:
            generation.update(**fields)
            generation.end()
        except Exception as e:
            logger.warning(f"[Runtime] Langfuse generation update failed: {e}")

    async def shutdown(self) -> None:
        """Cleanup resources."""
        if self._langfuse:
            self._langfuse.flush()

        if self.client is not None:
            await self.client.close()


def build_langfuse(settings: Settings) -> Langfuse | None:
    """Initialize Langfuse when both keys are configured."""
    if settings.langfuse_public_key and settings.langfuse_secret_key:
        return Langfuse(
            public_key=settings.langfuse_public_key,
            secret_key=settings.langfuse_secret_key,
            host=settings.langfuse_host,
        )
    return None


# Global runtime instance
_runtime: AssistantRuntime | None = None


def get_runtime() -> AssistantRuntime:
    """Get or create the global assistant runtime."""
    global _runtime
    if _runtime is None:
        settings = get_settings()
        _runtime = AssistantRuntime(
            client=build_openai_client(settings),
            model=settings.chat_model,
            max_tokens=settings.chat_max_tokens,
            temperature=settings.chat_temperature,
            langfuse=build_langfuse(settings),
        )
    return _runtime


async def shutdown_runtime() -> None:
    """Shutdown the global runtime."""
    global _runtime
    if _runtime:
        await _runtime.shutdown()
        _runtime = None
