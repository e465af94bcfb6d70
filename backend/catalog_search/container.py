"""
Lazy service container — build-or-get access to the store, pipeline and engine.

Every collaborator is created on first use from one Settings object. The
search engine is built once per container; `reload()` swaps its collection
after a rebuild.
Version: 1.0.0
"""
import logging
import threading
from functools import cached_property
from typing import Optional

from catalog_search.core.config import Settings, get_settings
from catalog_search.db.index_store import IndexStore
from catalog_search.schemas.ingestion import IngestionOptions
from catalog_search.services.index_builder import IndexBuilder
from catalog_search.services.index_resolver import IndexResolver
from catalog_search.services.ingestion_service import IngestionService
from catalog_search.services.search_engine import SearchEngine

LOG_FORMAT = "%(levelname)s:%(name)s:%(message)s"

logger = logging.getLogger(__name__)


class CatalogContainer:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._engine: Optional[SearchEngine] = None
        self._engine_lock = threading.Lock()

    # -- Index ---------------------------------------------------------------

    @cached_property
    def index_store(self) -> IndexStore:
        return IndexStore.for_path(self.settings.index_path, read_only=self.settings.read_only_mode)

    # -- Ingestion -----------------------------------------------------------

    @cached_property
    def ingestion_options(self) -> IngestionOptions:
        return IngestionOptions.for_profile(self.settings.ingest_profile, **self.settings.ingest_overrides)

    @cached_property
    def ingestion_service(self) -> IngestionService:
        return IngestionService(self.ingestion_options, workers=self.settings.ingest_workers)

    @cached_property
    def index_builder(self) -> IndexBuilder:
        return IndexBuilder(self.ingestion_service, self.index_store, self.settings.catalog_csv_path)

    @cached_property
    def index_resolver(self) -> IndexResolver:
        return IndexResolver(
            store=self.index_store,
            builder=self.index_builder,
            source_path=self.settings.catalog_csv_path,
            max_age_hours=self.settings.index_max_age_hours,
            min_index_bytes=self.settings.index_min_bytes,
            read_only=self.settings.read_only_mode,
        )

    # -- Search --------------------------------------------------------------

    def get_search_engine(self) -> SearchEngine:
        """Return the engine, resolving the index on first call."""
        if self._engine is not None:
            return self._engine
        with self._engine_lock:
            if self._engine is None:
                products = self.index_resolver.resolve(force=self.settings.force_rebuild)
                self._engine = SearchEngine(products, threshold=self.settings.search_threshold)
        return self._engine

    def reload(self, force: bool = False) -> SearchEngine:
        """Re-run index resolution and swap the engine's collection."""
        with self._engine_lock:
            products = self.index_resolver.resolve(force=force)
            if self._engine is None:
                self._engine = SearchEngine(products, threshold=self.settings.search_threshold)
            else:
                self._engine.replace_collection(products)
        return self._engine


def create_container(settings: Optional[Settings] = None) -> CatalogContainer:
    """Entry point: configure logging once and return a fresh container."""
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)
    logger.info(
        f"Catalog search container created (environment={settings.environment}, "
        f"read_only={settings.read_only_mode})"
    )
    return CatalogContainer(settings)
