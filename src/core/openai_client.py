"""Shared OpenAI client construction."""

import httpx
from openai import AsyncOpenAI

from src.core.config import Settings


def build_openai_client(settings: Settings) -> AsyncOpenAI | None:
    """Create an OpenAI client, or None when no key is configured."""
    if not settings.openai_configured:
        return None

    # Longer timeout for large batch embedding operations
    return AsyncOpenAI(
        api_key=settings.openai_api_key,
        timeout=httpx.Timeout(120.0, connect=30.0),
    )
