"""
Error hierarchy for catalog-sync.

Every failure raised by the core carries a machine-readable error code and a
context dictionary so the orchestrator can log it and attach it to the
per-language result without string parsing.
"""

from typing import Any, Dict, Optional


class CatalogSyncError(Exception):
    """
    Base exception for all catalog-sync errors.

    Provides error context and categorization so failures can be reported
    per language at the end of a run.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        previous_error: Optional[BaseException] = None,
    ):
        super().__init__(message)

        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}
        self.previous_error = previous_error


class ConfigurationError(CatalogSyncError):
    """Invalid or incomplete process configuration."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            context={"config_key": config_key},
            **kwargs
        )


class SourceMissingError(CatalogSyncError):
    """The source catalog cannot be read, so nothing can be computed."""

    def __init__(self, message: str, language: Optional[str] = None, path: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            context={"language": language, "path": path},
            **kwargs
        )


class TargetUnreadableError(CatalogSyncError):
    """A target catalog exists but does not parse as a catalog tree."""

    def __init__(self, message: str, language: Optional[str] = None, path: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            context={"language": language, "path": path},
            **kwargs
        )


class CatalogFormatError(CatalogSyncError):
    """Raw catalog data does not have an object at its root."""

    def __init__(self, message: str, found_type: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            context={"found_type": found_type},
            **kwargs
        )


class ShapeConflictError(CatalogSyncError):
    """A path write collides with a node of a different kind."""

    def __init__(self, message: str, path: Optional[str] = None, segment: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            context={"path": path, "segment": segment},
            **kwargs
        )


class TranslationError(CatalogSyncError):
    """The translation provider failed for a leaf."""

    def __init__(
        self,
        message: str,
        language: Optional[str] = None,
        key: Optional[str] = None,
        is_temporary: bool = False,
        **kwargs
    ):
        super().__init__(
            message,
            context={
                "language": language,
                "key": key,
                "is_temporary": is_temporary,
            },
            **kwargs
        )

    def is_retryable(self) -> bool:
        """Provider errors are retryable if they're rate limit/connection/timeout related."""
        return self.context.get("is_temporary", False)


class PersistError(CatalogSyncError):
    """Writing a catalog back to storage failed."""

    def __init__(self, message: str, language: Optional[str] = None, path: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            context={"language": language, "path": path},
            **kwargs
        )


def describe_error(error: BaseException) -> str:
    """One-line description used in failure reports."""
    if isinstance(error, CatalogSyncError):
        return f"{error.error_code}: {error.message}"
    return f"{error.__class__.__name__}: {error}"
