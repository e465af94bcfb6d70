"""
Ingestion schemas — processing options and run metrics.
Version: 1.0.0
"""
from pydantic import BaseModel, ConfigDict, Field

from catalog_search.core.constants.ingestion import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_DESCRIPTION_LENGTH,
    DEFAULT_MAX_IMAGES,
    INGEST_PROFILES,
)


class IngestionOptions(BaseModel):
    """Per-run transform and batching options."""
    model_config = ConfigDict(frozen=True)

    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, ge=1)
    max_images: int = Field(default=DEFAULT_MAX_IMAGES, ge=0)
    max_description_length: int = Field(default=DEFAULT_MAX_DESCRIPTION_LENGTH, ge=0)
    enable_progress: bool = True
    enable_metrics: bool = True

    @classmethod
    def for_profile(cls, profile: str = "default", **overrides) -> "IngestionOptions":
        """
        Build options from a named preset.

        Args:
            profile: One of "default", "development", "production", "minimal"
            **overrides: Field values that replace the preset's

        Raises:
            ValueError: Unknown profile name
        """
        try:
            preset = INGEST_PROFILES[profile]
        except KeyError:
            raise ValueError(
                f"Unknown ingest profile '{profile}'. "
                f"Expected one of: {', '.join(sorted(INGEST_PROFILES))}"
            ) from None
        return cls(**{**preset, **overrides})


class IngestionMetrics(BaseModel):
    """Summary of one ingestion run. Never written into the index."""
    model_config = ConfigDict(frozen=True)

    duration_ms: float = 0.0
    throughput_per_sec: float = 0.0
    peak_memory_mb: float = 0.0
    accepted_count: int = 0
    rejected_count: int = 0
    artifact_size_bytes: int = 0
