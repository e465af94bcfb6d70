"""
Index resolver — decide whether to load the persisted index or rebuild it.

Rebuild when any of these hold (checked in order):
- forced by the caller
- the index file is missing
- the source catalog was modified after the index
- the index is older than max_age_hours
- the index is smaller than min_index_bytes
- the index exists but fails to load

A missing source catalog never triggers a rebuild on its own: the existing
index is loaded instead. Read-only mode never rebuilds.
Version: 1.0.0
"""
import logging
import time
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Union

from catalog_search.core.constants.index import DEFAULT_MAX_AGE_HOURS, MIN_INDEX_BYTES
from catalog_search.core.exceptions import IndexLoadError, IndexUnavailableError
from catalog_search.db.index_store import IndexStore
from catalog_search.schemas.products import ProductRecord
from catalog_search.services.index_builder import BuildResult, IndexBuilder

logger = logging.getLogger("index_resolver")


class StalenessReason(str, Enum):
    FORCED = "forced"
    MISSING = "missing"
    SOURCE_NEWER = "source_newer"
    EXPIRED = "expired"
    TOO_SMALL = "too_small"
    CORRUPT = "corrupt"


class IndexResolver:
    def __init__(
        self,
        store: IndexStore,
        builder: IndexBuilder,
        source_path: Union[str, Path],
        max_age_hours: float = DEFAULT_MAX_AGE_HOURS,
        min_index_bytes: int = MIN_INDEX_BYTES,
        read_only: bool = False,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._builder = builder
        self._source_path = Path(source_path)
        self._max_age_seconds = max_age_hours * 3600
        self._min_index_bytes = min_index_bytes
        self._read_only = read_only
        self._clock = clock
        self.last_build: Optional[BuildResult] = None

    def staleness_reason(self, force: bool = False) -> Optional[StalenessReason]:
        """First rebuild trigger that applies, or None when the index looks fresh."""
        if force:
            return StalenessReason.FORCED

        try:
            index_stat = self._store.paths.canonical.stat()
        except FileNotFoundError:
            return StalenessReason.MISSING

        try:
            source_mtime: Optional[float] = self._source_path.stat().st_mtime
        except FileNotFoundError:
            source_mtime = None

        if source_mtime is not None and index_stat.st_mtime < source_mtime:
            return StalenessReason.SOURCE_NEWER
        if self._clock() - index_stat.st_mtime > self._max_age_seconds:
            return StalenessReason.EXPIRED
        if index_stat.st_size < self._min_index_bytes:
            return StalenessReason.TOO_SMALL
        return None

    def resolve(self, force: bool = False) -> List[ProductRecord]:
        """
        Return the product collection to serve.

        Raises:
            IndexUnavailableError: nothing can be loaded and nothing can be built
            SourceNotFoundError: a forced rebuild without a source catalog
            SourceReadError / PersistenceError: from a rebuild
        """
        logger.info("Starting search index initialization...")

        if self._read_only:
            logger.info("Read-only mode: loading existing index without regeneration")
            return self._load_existing()

        reason = self.staleness_reason(force)
        source_available = self._source_path.is_file()

        if reason is not None and not force and not source_available:
            logger.warning(
                f"Index is stale ({reason.value}) but CSV file not found: {self._source_path}; "
                "using existing index"
            )
            return self._load_existing()

        if reason is None:
            try:
                artifact = self._store.load()
            except IndexLoadError as e:
                if not source_available:
                    raise IndexUnavailableError(str(self._store.paths.canonical), str(e)) from e
                logger.warning(f"Existing index unusable, regenerating: {e}")
                reason = StalenessReason.CORRUPT
            else:
                logger.info(f"Search index is up to date ({len(artifact.products):,} products)")
                return artifact.products

        logger.info(f"Regenerating search index ({reason.value})...")
        result = self._builder.build()
        self.last_build = result
        return result.artifact.products

    def _load_existing(self) -> List[ProductRecord]:
        try:
            return self._store.load().products
        except IndexLoadError as e:
            logger.error(f"Failed to load search index: {e}")
            raise IndexUnavailableError(str(self._store.paths.canonical), str(e)) from e
