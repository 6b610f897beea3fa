"""Utility functions for prismgl."""

from prismgl.utils.helpers import (
    atomic_copy_file,
    atomic_copy_stream,
    atomic_write_bytes,
    atomic_write_text,
    ensure_dir,
    open_read_only,
)
from prismgl.utils.exceptions import (
    PrismGLError,
    ValidationError,
    MalformedManifestError,
    ArtifactMissingError,
    NotFoundError,
    NotInitializedError,
    ReadOnlyError,
    ErrorCategory,
    classify_exception,
    sanitize_error_message,
    recover,
)

__all__ = [
    "atomic_copy_file",
    "atomic_copy_stream",
    "atomic_write_bytes",
    "atomic_write_text",
    "ensure_dir",
    "open_read_only",
    "PrismGLError",
    "ValidationError",
    "MalformedManifestError",
    "ArtifactMissingError",
    "NotFoundError",
    "NotInitializedError",
    "ReadOnlyError",
    "ErrorCategory",
    "classify_exception",
    "sanitize_error_message",
    "recover",
]
