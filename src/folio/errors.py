"""Error types raised by the parsing pipeline and the reader service."""

from __future__ import annotations


class ReaderError(Exception):
    """Base class for failures scoped to a single request."""


class OpenError(ReaderError):
    """Source file is missing, unreadable, or structurally invalid."""


class ReadError(OpenError):
    """Plain text file could not be read or decoded."""


class UnsupportedFormat(ReaderError, ValueError):
    """File extension is missing or not one of the supported formats."""


class DocumentNotFound(ReaderError, LookupError):
    """No library entry exists for the requested id or path."""


class CacheWriteFailure(ReaderError):
    """Persisting the chapter index failed."""
