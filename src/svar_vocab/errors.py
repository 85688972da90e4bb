"""Error types for svar-vocab.

Unmatched words are not errors: they pass through the correction pipeline
unchanged. Exceptions are reserved for bad vocabulary input, bad settings
and persistence failures.
"""

from __future__ import annotations

from enum import Enum


class ErrorCategory(str, Enum):
    """Categories of errors for handling decisions."""

    VALIDATION = "validation"  # Bad entry or argument - fix the input
    CONFIGURATION = "configuration"  # Bad settings file or value
    RESOURCE = "resource"  # Vocabulary file missing, unreadable or corrupt
    INTERNAL = "internal"  # Bug in code


class SvarVocabError(Exception):
    """Base exception for svar-vocab errors.

    Attributes:
        message: Human-readable error message
        category: Error category for handling
        context: Additional context information
        recoverable: Whether the caller can carry on after the error
    """

    category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        context: dict | None = None,
        recoverable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} (context: {self.context})"
        return self.message


class ValidationError(SvarVocabError):
    """Input validation error.

    Examples: empty canonical word, unknown entry id.
    """

    category = ErrorCategory.VALIDATION

    def __init__(self, message: str, context: dict | None = None):
        super().__init__(message, context, recoverable=True)


class EntryNotFoundError(ValidationError):
    """No vocabulary entry with the requested id or word."""


class DuplicateEntryError(ValidationError):
    """An entry with the same id is already in the store."""


class ConfigurationError(SvarVocabError):
    """Configuration error.

    Examples: settings file is not valid JSON, negative threshold.
    """

    category = ErrorCategory.CONFIGURATION

    def __init__(self, message: str, context: dict | None = None):
        super().__init__(message, context, recoverable=False)


class ResourceError(SvarVocabError):
    """Resource not found or unavailable."""

    category = ErrorCategory.RESOURCE

    def __init__(self, message: str, context: dict | None = None):
        super().__init__(message, context, recoverable=False)


class StorageError(ResourceError):
    """Reading or writing the vocabulary file failed."""


def format_error_for_display(error: Exception) -> str:
    """Format an error message for user display.

    Args:
        error: Error to format

    Returns:
        Human-readable error message
    """
    if isinstance(error, SvarVocabError):
        category = error.category.value
        base_message = error.message

        if error.context:
            context_str = ", ".join(f"{k}={v}" for k, v in error.context.items())
            return f"[{category}] {base_message} ({context_str})"

        return f"[{category}] {base_message}"

    return f"[error] {type(error).__name__}: {error}"
