"""
Error handling for catalog-sync.

- Structured error hierarchy
- Error context for per-language reporting
"""

from .exceptions import (
    CatalogSyncError,
    ConfigurationError,
    SourceMissingError,
    TargetUnreadableError,
    CatalogFormatError,
    ShapeConflictError,
    TranslationError,
    PersistError,
    describe_error,
)

__all__ = [
    "CatalogSyncError",
    "ConfigurationError",
    "SourceMissingError",
    "TargetUnreadableError",
    "CatalogFormatError",
    "ShapeConflictError",
    "TranslationError",
    "PersistError",
    "describe_error",
]
