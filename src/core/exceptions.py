"""Exception hierarchy for the HR assistant.

Every error carries a short ``message`` and, when an external service was
involved, the ``service`` name ("openai", "qdrant", ...). ``status_code``
is the HTTP status the API layer maps the error class to.

    HRAssistantError
    +-- ValidationError            400  bad request input
    |   +-- InvalidRequestError
    |   +-- UnsupportedTypeError
    |   +-- FileTooLargeError
    +-- NoRelevantContentError     404  search ran, nothing above the floor
    +-- IngestionError             per-file ingestion failures
    |   +-- ExtractionError
    |   +-- EmptyContentError
    +-- UpstreamServiceError       500  external call failed
        +-- EmbeddingError
        +-- StoreError
        +-- SearchError
        +-- CompletionError
"""


class HRAssistantError(Exception):
    """Base exception for all HR assistant errors."""

    status_code: int = 500

    def __init__(self, message: str = "An unexpected error occurred", service: str | None = None):
        self.message = message
        self.service = service
        super().__init__(message)

    def __str__(self) -> str:
        if self.service:
            return f"[{self.service}] {self.message}"
        return self.message


# ============================================
# Request validation
# ============================================


class ValidationError(HRAssistantError):
    """Raised for bad input: missing message, no files, bad type or size."""

    status_code = 400


class InvalidRequestError(ValidationError):
    """Raised when a request is missing required content."""


class UnsupportedTypeError(ValidationError):
    """Raised when a file's media type is outside the allow-list."""

    def __init__(self, mime_type: str, supported: list[str] | None = None):
        self.mime_type = mime_type
        message = f"Unsupported file type: {mime_type}"
        if supported:
            message += f". Supported types: {', '.join(supported)}"
        super().__init__(message)


class FileTooLargeError(ValidationError):
    """Raised when an uploaded file exceeds the configured size limit."""

    def __init__(self, size: int, max_size: int):
        self.size = size
        self.max_size = max_size
        super().__init__(f"File too large: {size} bytes (max: {max_size} bytes)")


# ============================================
# Retrieval
# ============================================


class NoRelevantContentError(HRAssistantError):
    """Raised when a search succeeded but no match clears the similarity floor."""

    status_code = 404

    def __init__(self, search_results: int = 0):
        self.search_results = search_results
        super().__init__(
            "No company documents contain information relevant to your question. "
            "Please contact HR directly or try rephrasing your question."
        )


# ============================================
# Ingestion
# ============================================


class IngestionError(HRAssistantError):
    """Base class for failures reported against a single uploaded file."""

    status_code = 422


class ExtractionError(IngestionError):
    """Raised when text extraction fails."""


class EmptyContentError(IngestionError):
    """Raised when a document yields no usable text or chunks."""


# ============================================
# Upstream services
# ============================================


class UpstreamServiceError(HRAssistantError):
    """Raised when an embedding, completion or vector index call fails."""

    status_code = 500


class EmbeddingError(UpstreamServiceError):
    """Raised when the embedding API call fails."""

    def __init__(self, message: str = "Embedding request failed", service: str | None = "openai"):
        super().__init__(message, service)


class StoreError(UpstreamServiceError):
    """Raised when a vector index operation fails."""

    def __init__(self, message: str = "Vector store request failed", service: str | None = "qdrant"):
        super().__init__(message, service)


class SearchError(UpstreamServiceError):
    """Raised when the similarity search step of a query fails."""

    def __init__(self, message: str = "Document search failed", service: str | None = "qdrant"):
        super().__init__(message, service)


class CompletionError(UpstreamServiceError):
    """Raised when the chat completion call fails."""

    def __init__(self, message: str = "Chat completion failed", service: str | None = "openai"):
        super().__init__(message, service)
