"""
Custom exception hierarchy for catalog search.

Exceptions are categorized as:
- FatalError: the source or a required index cannot be read; propagate, never retry
- PersistenceError: writing the index failed; the previous index is left in place
- IndexLoadError: an existing index is missing or unreadable; callers decide
  whether that means "rebuild" or "fatal"

Rows that fail validation during ingestion are not exceptions: they are
counted in IngestionMetrics.rejected_count and skipped.
"""


class CatalogSearchException(Exception):
    """Base exception for catalog search."""
    pass


# ============================================
# FATAL ERRORS - Propagate immediately
# ============================================
class FatalError(CatalogSearchException):
    """
    Base class for errors that abort the current operation.

    Nothing can be served or built until the cause is fixed:
    - Source catalog missing or unreadable
    - Index unavailable in a read-only deployment
    """
    pass


class IngestionError(FatalError):
    """Catalog ingestion could not complete."""
    pass


class SourceNotFoundError(IngestionError):
    """The source catalog file does not exist."""
    def __init__(self, path: str):
        self.path = str(path)
        super().__init__(f"Source catalog not found: {self.path}")


class SourceReadError(IngestionError):
    """
    The source catalog could not be opened or streamed.

    Raised for I/O and decoding failures, not for malformed rows.
    """
    def __init__(self, path: str, message: str):
        self.path = str(path)
        super().__init__(f"Failed reading source catalog {self.path}: {message}")


class IndexUnavailableError(FatalError):
    """
    No usable index in read-only mode.

    There is nowhere to rebuild from; the build step must ship a valid index.
    """
    def __init__(self, path: str, message: str = "search index not found or invalid"):
        self.path = str(path)
        super().__init__(
            f"{message}: {self.path}. "
            "Please ensure the build process completed successfully."
        )


# ============================================
# PERSISTENCE ERRORS
# ============================================
class PersistenceError(CatalogSearchException):
    """Writing the index artifact failed; the canonical file was not replaced."""
    def __init__(self, path: str, message: str):
        self.path = str(path)
        super().__init__(f"Failed to save search index {self.path}: {message}")


class IndexValidationError(PersistenceError):
    """The freshly written temp file did not pass structural validation."""
    pass


# ============================================
# LOAD ERRORS - Rebuild when writable
# ============================================
class IndexLoadError(CatalogSearchException):
    """Base class for failures reading an existing index."""
    def __init__(self, path: str, message: str):
        self.path = str(path)
        super().__init__(f"{message}: {self.path}")


class IndexNotFoundError(IndexLoadError):
    """The index file does not exist."""
    def __init__(self, path: str):
        super().__init__(path, "Search index not found")


class IndexCorruptError(IndexLoadError):
    """The index file exists but is not a valid artifact."""
    def __init__(self, path: str, reason: str):
        self.reason = reason
        super().__init__(path, f"Invalid search index format ({reason})")


# ============================================
# QUERY ERRORS
# ============================================
class InvalidSearchRequestError(CatalogSearchException):
    """Search parameters outside their valid range (page, limit)."""
    pass
