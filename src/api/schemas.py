"""Shared API response helpers.

The front end reads camelCase keys, so response models serialize by alias.
"""

from datetime import UTC, datetime

from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def utc_timestamp() -> str:
    """Current UTC time as an ISO-8601 string with a Z suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def error_response(status_code: int, error: str, message: str, **extra) -> JSONResponse:
    """Build a flat ``{error, message, ...}`` JSON error body."""
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message, **extra},
    )
