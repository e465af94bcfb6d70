"""
Unit tests for the index resolver and builder.

Tests cover:
- staleness_reason for each rule of the decision table
- resolve: load fresh index, rebuild stale/missing/corrupt index
- Missing source: existing index used, fatal when nothing is loadable
- Forced rebuild without a source
- Read-only mode never rebuilds
- IndexBuilder metrics and read-only builds

Version: 1.0.0
"""
import os
import time
from unittest.mock import MagicMock

import pytest

from catalog_search.core.exceptions import IndexUnavailableError, SourceNotFoundError
from catalog_search.db.index_store import IndexStore
from catalog_search.schemas.ingestion import IngestionMetrics, IngestionOptions
from catalog_search.services.index_builder import BuildResult, IndexBuilder
from catalog_search.services.index_resolver import IndexResolver, StalenessReason
from catalog_search.services.ingestion_service import IngestionService

HOUR = 3600


def set_mtime(path, timestamp):
    os.utime(path, (timestamp, timestamp))


@pytest.fixture
def source(catalog_csv):
    set_mtime(catalog_csv, time.time() - HOUR)
    return catalog_csv


@pytest.fixture
def builder(index_store, source):
    return IndexBuilder(IngestionService(IngestionOptions(chunk_size=10)), index_store, source)


@pytest.fixture
def mock_builder(sample_artifact):
    mock = MagicMock(spec=IndexBuilder)
    mock.build.return_value = BuildResult(artifact=sample_artifact, metrics=IngestionMetrics(), persisted=True)
    return mock


@pytest.fixture
def fresh_index(index_store, sample_artifact, source):
    """Persisted index newer than the source."""
    index_store.persist(sample_artifact)
    return index_store.paths.canonical


def make_resolver(store, builder, source, **kwargs):
    kwargs.setdefault("min_index_bytes", 100)
    return IndexResolver(store, builder, source, **kwargs)


@pytest.mark.unit
class TestStalenessReason:

    def test_forced(self, index_store, mock_builder, source, fresh_index):
        resolver = make_resolver(index_store, mock_builder, source)
        assert resolver.staleness_reason(force=True) is StalenessReason.FORCED

    def test_missing(self, index_store, mock_builder, source):
        assert make_resolver(index_store, mock_builder, source).staleness_reason() is StalenessReason.MISSING

    def test_source_newer(self, index_store, mock_builder, source, fresh_index):
        set_mtime(source, time.time() + HOUR)
        resolver = make_resolver(index_store, mock_builder, source)
        assert resolver.staleness_reason() is StalenessReason.SOURCE_NEWER

    def test_expired(self, index_store, mock_builder, source, fresh_index):
        index_mtime = fresh_index.stat().st_mtime
        resolver = make_resolver(index_store, mock_builder, source, clock=lambda: index_mtime + 25 * HOUR)
        assert resolver.staleness_reason() is StalenessReason.EXPIRED

    def test_custom_max_age(self, index_store, mock_builder, source, fresh_index):
        index_mtime = fresh_index.stat().st_mtime
        resolver = make_resolver(
            index_store, mock_builder, source, max_age_hours=48, clock=lambda: index_mtime + 25 * HOUR
        )
        assert resolver.staleness_reason() is None

    def test_too_small(self, index_store, mock_builder, source, fresh_index):
        resolver = make_resolver(index_store, mock_builder, source, min_index_bytes=10**7)
        assert resolver.staleness_reason() is StalenessReason.TOO_SMALL

    def test_fresh(self, index_store, mock_builder, source, fresh_index):
        assert make_resolver(index_store, mock_builder, source).staleness_reason() is None

    def test_missing_source_is_not_a_reason(self, index_store, mock_builder, tmp_path, fresh_index):
        resolver = make_resolver(index_store, mock_builder, tmp_path / "gone.csv")
        assert resolver.staleness_reason() is None


@pytest.mark.unit
class TestResolve:

    def test_fresh_index_is_loaded(self, index_store, mock_builder, source, fresh_index):
        resolver = make_resolver(index_store, mock_builder, source)

        products = resolver.resolve()

        assert [p.id for p in products] == ["1", "2", "3", "4"]
        mock_builder.build.assert_not_called()
        assert resolver.last_build is None

    def test_missing_index_is_built(self, index_store, builder, source):
        resolver = make_resolver(index_store, builder, source)

        products = resolver.resolve()

        assert len(products) == 25
        assert index_store.exists()
        assert resolver.last_build.metrics.accepted_count == 25

    def test_stale_index_is_rebuilt(self, index_store, builder, source, fresh_index):
        set_mtime(source, time.time() + HOUR)
        resolver = make_resolver(index_store, builder, source)

        products = resolver.resolve()

        assert len(products) == 25
        assert len(index_store.load().products) == 25

    def test_forced_rebuild(self, index_store, mock_builder, source, fresh_index):
        resolver = make_resolver(index_store, mock_builder, source)
        resolver.resolve(force=True)
        mock_builder.build.assert_called_once()

    def test_corrupt_index_is_rebuilt(self, index_store, mock_builder, source):
        index_store.paths.canonical.parent.mkdir(parents=True)
        index_store.paths.canonical.write_text("{" * 2000)
        resolver = make_resolver(index_store, mock_builder, source)

        products = resolver.resolve()

        mock_builder.build.assert_called_once()
        assert len(products) == 4
        assert resolver.last_build is mock_builder.build.return_value

    def test_missing_source_uses_existing_index(self, index_store, mock_builder, tmp_path, fresh_index):
        resolver = make_resolver(
            index_store, mock_builder, tmp_path / "gone.csv", min_index_bytes=10**7
        )

        products = resolver.resolve()

        assert len(products) == 4
        mock_builder.build.assert_not_called()

    def test_missing_source_and_index_is_fatal(self, index_store, mock_builder, tmp_path):
        resolver = make_resolver(index_store, mock_builder, tmp_path / "gone.csv")
        with pytest.raises(IndexUnavailableError):
            resolver.resolve()
        mock_builder.build.assert_not_called()

    def test_missing_source_and_corrupt_index_is_fatal(self, index_store, mock_builder, tmp_path):
        index_store.paths.canonical.parent.mkdir(parents=True)
        index_store.paths.canonical.write_text("{" * 2000)
        resolver = make_resolver(index_store, mock_builder, tmp_path / "gone.csv")
        with pytest.raises(IndexUnavailableError):
            resolver.resolve()

    def test_forced_rebuild_without_source(self, index_store, tmp_path, fresh_index):
        missing = tmp_path / "gone.csv"
        builder = IndexBuilder(IngestionService(), index_store, missing)
        resolver = make_resolver(index_store, builder, missing)
        with pytest.raises(SourceNotFoundError):
            resolver.resolve(force=True)


@pytest.mark.unit
class TestReadOnly:

    def test_loads_without_rebuilding(self, index_path, mock_builder, source, sample_artifact):
        IndexStore.for_path(index_path).persist(sample_artifact)
        set_mtime(source, time.time() + HOUR)
        store = IndexStore.for_path(index_path, read_only=True)
        resolver = make_resolver(store, mock_builder, source, read_only=True)

        products = resolver.resolve(force=True)

        assert len(products) == 4
        mock_builder.build.assert_not_called()

    def test_missing_index_is_fatal(self, index_path, mock_builder, source):
        store = IndexStore.for_path(index_path, read_only=True)
        resolver = make_resolver(store, mock_builder, source, read_only=True)
        with pytest.raises(IndexUnavailableError):
            resolver.resolve()


@pytest.mark.unit
class TestIndexBuilder:

    def test_metrics_include_artifact_size(self, builder, index_store):
        result = builder.build()

        assert result.persisted is True
        assert result.metrics.artifact_size_bytes == index_store.paths.canonical.stat().st_size
        assert result.artifact.metadata.total_products == 25

    def test_read_only_build_keeps_artifact_in_memory(self, index_path, source):
        store = IndexStore.for_path(index_path, read_only=True)
        builder = IndexBuilder(IngestionService(), store, source)

        result = builder.build()

        assert result.persisted is False
        assert result.metrics.artifact_size_bytes == len(store.serialize(result.artifact))
        assert not index_path.exists()
