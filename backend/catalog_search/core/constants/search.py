"""
Search constants — field weights, fuzzy threshold, paging defaults.

Query engine tuning.

Every ranking knob lives here. When relevance changes, update ONE file.
Version: 1.0.0
"""

# Relative contribution of each field to the match score
FIELD_WEIGHTS: dict = {
    "title": 0.4,
    "description": 0.3,
    "vendor": 0.2,
    "product_type": 0.1,
    "tags": 0.1,
}

# 0.0 = exact only, 1.0 = anything matches
DEFAULT_MATCH_THRESHOLD: float = 0.3

MIN_MATCH_CHAR_LENGTH: int = 2

# A query token further than this from every field token counts as a miss (1.0)
MAX_TOKEN_DISTANCE: float = 0.5

# Floor for a perfect field score so weights still order multi-field hits
PERFECT_MATCH_SCORE: float = 0.001

DEFAULT_PAGE: int = 1
DEFAULT_PAGE_LIMIT: int = 20

DEFAULT_SUGGESTION_LIMIT: int = 5
MIN_SUGGESTION_QUERY_LENGTH: int = 2

SORT_RELEVANCE: str = "relevance"
SORT_PRICE_ASC: str = "price-asc"
SORT_PRICE_DESC: str = "price-desc"
SORT_NAME_ASC: str = "name-asc"
SORT_NAME_DESC: str = "name-desc"
SORT_NEWEST: str = "newest"

SORT_OPTIONS: tuple = (
    SORT_RELEVANCE,
    SORT_PRICE_ASC,
    SORT_PRICE_DESC,
    SORT_NAME_ASC,
    SORT_NAME_DESC,
    SORT_NEWEST,
)
