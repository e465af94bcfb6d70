"""
Index builder — ingest the source catalog and persist the resulting artifact.
Version: 1.0.0
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from catalog_search.db.index_store import IndexStore
from catalog_search.schemas.index import IndexArtifact
from catalog_search.schemas.ingestion import IngestionMetrics
from catalog_search.services.ingestion_service import IngestionService

logger = logging.getLogger("index_builder")


@dataclass(frozen=True)
class BuildResult:
    artifact: IndexArtifact
    metrics: IngestionMetrics
    # False when the store is read-only and nothing was written
    persisted: bool


class IndexBuilder:
    def __init__(
        self,
        ingestion: IngestionService,
        store: IndexStore,
        source_path: Union[str, Path],
    ) -> None:
        self._ingestion = ingestion
        self._store = store
        self._source_path = Path(source_path)

    @property
    def source_path(self) -> Path:
        return self._source_path

    def build(self) -> BuildResult:
        """
        Run a full ingestion and persist the artifact.

        Raises:
            SourceNotFoundError / SourceReadError: from ingestion
            PersistenceError: the artifact could not be written
        """
        logger.info(f"Building search index from {self._source_path}")
        artifact, metrics = self._ingestion.build_artifact(self._source_path)

        written = self._store.persist(artifact)
        size = written if written is not None else len(self._store.serialize(artifact))
        metrics = metrics.model_copy(update={"artifact_size_bytes": size})

        logger.info(
            f"Search index built: {metrics.accepted_count:,} products, "
            f"{metrics.rejected_count:,} rejected rows, "
            f"{metrics.throughput_per_sec:,.0f} products/second, "
            f"peak memory {metrics.peak_memory_mb:.1f} MB, "
            f"{size / 1024 / 1024:.2f} MB"
        )
        return BuildResult(artifact=artifact, metrics=metrics, persisted=written is not None)
