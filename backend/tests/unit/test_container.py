"""
Unit tests for the service container.
Version: 1.0.0
"""
import pytest
from unittest.mock import patch

from catalog_search.container import CatalogContainer, create_container
from catalog_search.core.config import Settings
from catalog_search.services.search_engine import SearchEngine


@pytest.fixture
def settings(catalog_csv, index_path):
    return Settings(
        catalog_csv_path=str(catalog_csv),
        index_path=str(index_path),
        read_only_mode=False,
        force_rebuild=False,
        ingest_profile="minimal",
        ingest_workers=1,
        ingest_chunk_size=None,
        ingest_max_images=None,
        ingest_max_description_length=None,
    )


@pytest.mark.unit
class TestCatalogContainer:
    """Tests for lazy construction and build-or-get access."""

    def test_builds_engine_on_first_call(self, settings, index_path):
        container = CatalogContainer(settings)

        engine = container.get_search_engine()

        assert isinstance(engine, SearchEngine)
        assert len(engine) == 25
        assert index_path.exists()

    def test_same_engine_on_repeated_calls(self, settings):
        container = CatalogContainer(settings)
        assert container.get_search_engine() is container.get_search_engine()

    def test_resolves_index_once(self, settings):
        container = CatalogContainer(settings)
        with patch.object(container.index_resolver, "resolve", wraps=container.index_resolver.resolve) as resolve:
            container.get_search_engine()
            container.get_search_engine()
        resolve.assert_called_once_with(force=False)

    def test_collaborators_are_cached(self, settings):
        container = CatalogContainer(settings)
        assert container.index_store is container.index_store
        assert container.index_builder is container.index_builder
        assert container.index_resolver is container.index_resolver

    def test_profile_and_overrides(self, settings):
        container = CatalogContainer(settings.model_copy(update={"ingest_chunk_size": 7}))
        options = container.ingestion_options
        assert options.chunk_size == 7
        assert options.max_images == 1

    def test_read_only_flag_reaches_store(self, settings):
        container = CatalogContainer(settings.model_copy(update={"read_only_mode": True}))
        assert container.index_store.read_only is True

    def test_reload_swaps_collection(self, settings, write_csv, row_factory):
        container = CatalogContainer(settings)
        engine = container.get_search_engine()

        write_csv([row_factory(100)])
        reloaded = container.reload(force=True)

        assert reloaded is engine
        assert [p.id for p in engine.products] == ["gid://shopify/Product/100"]


@pytest.mark.unit
class TestCreateContainer:

    def test_uses_given_settings(self, settings):
        container = create_container(settings)
        assert isinstance(container, CatalogContainer)
        assert container.settings is settings

    def test_defaults_to_cached_settings(self):
        with patch("catalog_search.container.get_settings") as mock_get_settings:
            mock_get_settings.return_value = Settings(log_level="WARNING")
            container = create_container()
        assert container.settings.log_level == "WARNING"
