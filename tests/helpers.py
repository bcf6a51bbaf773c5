"""Builders for objects shaped like OpenAI and Qdrant SDK responses."""

from types import SimpleNamespace

TEST_DIMENSIONS = 8


def embedding_response(count: int, dimensions: int = TEST_DIMENSIONS) -> SimpleNamespace:
    """Shape of ``client.embeddings.create(...)``."""
    return SimpleNamespace(
        data=[SimpleNamespace(embedding=[0.1] * dimensions) for _ in range(count)]
    )


def completion_response(
    content: str = "You get 20 days of paid vacation per year.",
    prompt_tokens: int = 120,
    completion_tokens: int = 15,
) -> SimpleNamespace:
    """Shape of ``client.chat.completions.create(...)``."""
    return SimpleNamespace(
        model="gpt-3.5-turbo",
        choices=[
            SimpleNamespace(message=SimpleNamespace(content=content), finish_reason="stop")
        ],
        usage=SimpleNamespace(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens),
    )


def scored_point(
    score: float,
    text: str = "Employees accrue 20 vacation days per year.",
    filename: str = "handbook.pdf",
    department: str = "general",
    vector_id: str = "handbook.pdf-chunk-0-1700000000000-abc123",
) -> SimpleNamespace:
    """Shape of one entry in ``query_points(...).points``."""
    return SimpleNamespace(
        id="00000000-0000-0000-0000-000000000000",
        score=score,
        payload={
            "text": text,
            "filename": filename,
            "department": department,
            "vector_id": vector_id,
        },
    )


def fake_embeddings_create(input, model, dimensions, encoding_format):
    count = 1 if isinstance(input, str) else len(input)
    return embedding_response(count, dimensions)

