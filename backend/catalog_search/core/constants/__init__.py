"""
Constants package — re-exports from domain-specific modules.

Centralized constants for catalog search.

Re-exports all constants from domain-specific modules for convenience.

Usage:
    from catalog_search.core.constants.search import FIELD_WEIGHTS
    from catalog_search.core.constants.index import MIN_INDEX_BYTES
    # or import everything:
    from catalog_search.core.constants import ingestion, index, search
Version: 1.0.0
"""

from catalog_search.core.constants import ingestion, index, search
from catalog_search.core.constants.ingestion import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_IMAGES,
    DEFAULT_MAX_DESCRIPTION_LENGTH,
    INGEST_PROFILES,
)
from catalog_search.core.constants.index import (
    DEFAULT_SOURCE_PATH,
    DEFAULT_INDEX_PATH,
    DEFAULT_MAX_AGE_HOURS,
    MIN_INDEX_BYTES,
)
from catalog_search.core.constants.search import (
    FIELD_WEIGHTS,
    DEFAULT_MATCH_THRESHOLD,
    MIN_MATCH_CHAR_LENGTH,
    DEFAULT_PAGE_LIMIT,
    DEFAULT_SUGGESTION_LIMIT,
    SORT_OPTIONS,
)

__all__ = [
    "ingestion",
    "index",
    "search",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_MAX_IMAGES",
    "DEFAULT_MAX_DESCRIPTION_LENGTH",
    "INGEST_PROFILES",
    "DEFAULT_SOURCE_PATH",
    "DEFAULT_INDEX_PATH",
    "DEFAULT_MAX_AGE_HOURS",
    "MIN_INDEX_BYTES",
    "FIELD_WEIGHTS",
    "DEFAULT_MATCH_THRESHOLD",
    "MIN_MATCH_CHAR_LENGTH",
    "DEFAULT_PAGE_LIMIT",
    "DEFAULT_SUGGESTION_LIMIT",
    "SORT_OPTIONS",
]
