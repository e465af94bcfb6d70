import os
from typing import Optional
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel

from catalog_search.core.constants.index import (
    DEFAULT_INDEX_PATH,
    DEFAULT_MAX_AGE_HOURS,
    DEFAULT_SOURCE_PATH,
    MIN_INDEX_BYTES,
)
from catalog_search.core.constants.ingestion import TRUTHY_VALUES
from catalog_search.core.constants.search import DEFAULT_MATCH_THRESHOLD


load_dotenv()


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in TRUTHY_VALUES


def _env_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    return int(raw) if raw else None


_ENVIRONMENT = os.getenv("ENVIRONMENT", "development")


class Settings(BaseModel):
    environment: str = _ENVIRONMENT

    # Read-only deployments (serverless bundles) can load but never write the index.
    # Defaults to on for production and Vercel builds.
    read_only_mode: bool = _env_flag(
        "READ_ONLY_MODE",
        default=_ENVIRONMENT.lower() == "production" or bool(os.getenv("VERCEL")),
    )

    # Source catalog and index artifact
    catalog_csv_path: str = os.getenv("CATALOG_CSV_PATH", DEFAULT_SOURCE_PATH)
    index_path: str = os.getenv("SEARCH_INDEX_PATH", DEFAULT_INDEX_PATH)
    index_max_age_hours: float = float(os.getenv("INDEX_MAX_AGE_HOURS", str(DEFAULT_MAX_AGE_HOURS)))
    index_min_bytes: int = int(os.getenv("INDEX_MIN_BYTES", str(MIN_INDEX_BYTES)))
    force_rebuild: bool = _env_flag("FORCE_REBUILD_INDEX")

    # Ingestion
    ingest_profile: str = os.getenv("INGEST_PROFILE", "production")
    ingest_workers: int = int(os.getenv("INGEST_WORKERS", "1"))
    # Optional per-field overrides on top of the profile
    ingest_chunk_size: Optional[int] = _env_int("INGEST_CHUNK_SIZE")
    ingest_max_images: Optional[int] = _env_int("INGEST_MAX_IMAGES")
    ingest_max_description_length: Optional[int] = _env_int("INGEST_MAX_DESCRIPTION_LENGTH")

    # Search
    search_threshold: float = float(os.getenv("SEARCH_THRESHOLD", str(DEFAULT_MATCH_THRESHOLD)))

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def ingest_overrides(self) -> dict:
        """Profile overrides that were explicitly configured."""
        overrides = {
            "chunk_size": self.ingest_chunk_size,
            "max_images": self.ingest_max_images,
            "max_description_length": self.ingest_max_description_length,
        }
        return {key: value for key, value in overrides.items() if value is not None}


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = Settings()
