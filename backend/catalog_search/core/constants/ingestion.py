"""
Ingestion constants — chunk sizes, caps, CSV column names, profiles.

Catalog ingestion defaults.

Column names are matched case-insensitively against the CSV header.
Version: 1.0.0
"""

DEFAULT_CHUNK_SIZE: int = 2000
DEFAULT_MAX_IMAGES: int = 3
DEFAULT_MAX_DESCRIPTION_LENGTH: int = 500

# Log a progress line every N accepted records
PROGRESS_LOG_INTERVAL: int = 10_000

# Chunks allowed in flight per worker when transforming in parallel
MAX_PENDING_CHUNKS_PER_WORKER: int = 2

DEFAULT_STATUS: str = "active"

TRUTHY_VALUES: frozenset = frozenset({"true", "1", "yes"})

URL_SCHEMES: tuple = ("http://", "https://")

# Source columns, first non-empty value wins
ID_COLUMNS: tuple = ("ID",)
TITLE_COLUMNS: tuple = ("TITLE",)
VENDOR_COLUMNS: tuple = ("VENDOR",)
PRODUCT_TYPE_COLUMNS: tuple = ("PRODUCT_TYPE",)
DESCRIPTION_COLUMNS: tuple = ("DESCRIPTION", "BODY_HTML", "DESCRIPTION_HTML")
HANDLE_COLUMNS: tuple = ("HANDLE",)
STATUS_COLUMNS: tuple = ("STATUS",)
PRICE_RANGE_COLUMNS: tuple = ("PRICE_RANGE_V2", "PRICE_RANGE")
IMAGE_COLUMNS: tuple = ("IMAGES", "IMAGE", "FEATURED_IMAGE")
TAGS_COLUMNS: tuple = ("TAGS",)
CREATED_AT_COLUMNS: tuple = ("CREATED_AT",)
UPDATED_AT_COLUMNS: tuple = ("UPDATED_AT",)
PUBLISHED_AT_COLUMNS: tuple = ("PUBLISHED_AT",)
TOTAL_INVENTORY_COLUMNS: tuple = ("TOTAL_INVENTORY",)
OUT_OF_STOCK_COLUMNS: tuple = ("HAS_OUT_OF_STOCK_VARIANTS",)
GIFT_CARD_COLUMNS: tuple = ("IS_GIFT_CARD",)
FEATURED_IMAGE_COLUMNS: tuple = ("FEATURED_IMAGE",)

# Processor presets: chunk size, caps, and whether progress/metrics are on
INGEST_PROFILES: dict = {
    "default": {
        "chunk_size": DEFAULT_CHUNK_SIZE,
        "max_images": DEFAULT_MAX_IMAGES,
        "max_description_length": DEFAULT_MAX_DESCRIPTION_LENGTH,
        "enable_progress": True,
        "enable_metrics": True,
    },
    "development": {
        "chunk_size": 1000,
        "max_images": DEFAULT_MAX_IMAGES,
        "max_description_length": DEFAULT_MAX_DESCRIPTION_LENGTH,
        "enable_progress": True,
        "enable_metrics": False,
    },
    "production": {
        "chunk_size": 5000,
        "max_images": 5,
        "max_description_length": DEFAULT_MAX_DESCRIPTION_LENGTH,
        "enable_progress": False,
        "enable_metrics": True,
    },
    "minimal": {
        "chunk_size": 500,
        "max_images": 1,
        "max_description_length": 200,
        "enable_progress": False,
        "enable_metrics": False,
    },
}
