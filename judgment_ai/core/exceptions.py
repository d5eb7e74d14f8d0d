"""Exception hierarchy for the extraction pipeline."""

from enum import Enum
from typing import Optional


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.original_error = original_error


class ModelErrorKind(str, Enum):
    """Failure categories reported by the model-invocation client."""

    TIMEOUT = "timeout"
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    TRANSPORT = "transport"
    EMPTY_RESPONSE = "empty_response"


class ModelError(AppError):
    """Raised when the language-model call itself fails.

    Attributes:
        kind: Failure category
        task: Extraction task the failure is attributed to, once known
    """

    def __init__(
        self,
        message: str,
        kind: ModelErrorKind = ModelErrorKind.TRANSPORT,
        task: Optional[str] = None,
        original_error: Exception = None,
    ):
        super().__init__(message, original_error=original_error)
        self.kind = ModelErrorKind(kind)
        self.task = task

    def for_task(self, task: str) -> "ModelError":
        """Attribute this error to an extraction task and return it."""
        self.task = task
        return self

    def __str__(self) -> str:
        message = super().__str__()
        if self.task:
            return f"[{self.task}/{self.kind.value}] {message}"
        return f"[{self.kind.value}] {message}"


class MalformedResponseError(AppError):
    """Raised when a model response holds no parseable JSON payload."""
    pass


class SchemaDefinitionError(AppError):
    """Raised when a canonical schema is internally inconsistent."""
    pass


class ValidationError(AppError):
    """Raised when input validation fails."""
    pass


class EmptyDocumentError(ValidationError):
    """Raised when the judgment text is empty or whitespace-only."""
    pass


class ConfigurationError(AppError):
    """Raised when configuration is invalid or missing."""
    pass
