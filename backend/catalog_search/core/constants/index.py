"""
Index constants — artifact file names and staleness thresholds.

Search index artifact constants.
Version: 1.0.0
"""

DEFAULT_SOURCE_PATH: str = "public/products.csv"
DEFAULT_INDEX_PATH: str = "data/search-index.json"

# Sibling files derived from the canonical index name
BACKUP_SUFFIX: str = ".backup"
OLD_SUFFIX: str = ".old"
TEMP_SUFFIX: str = ".temp"

# Rebuild when the index is older than this
DEFAULT_MAX_AGE_HOURS: float = 24.0

# Anything smaller is treated as an empty or truncated index
MIN_INDEX_BYTES: int = 1000
