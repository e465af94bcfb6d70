"""
Search schemas — filters, paginated results, and catalog aggregates.
Version: 1.0.0
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from catalog_search.schemas.products import ProductRecord


class SearchFilters(BaseModel):
    """Optional filters, applied together. Accepts camelCase or snake_case keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    vendor: Optional[str] = None
    product_type: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    in_stock: Optional[bool] = None


class SearchResult(BaseModel):
    """One page of matches plus totals for the whole result set."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    items: List[ProductRecord]
    total: int
    page: int
    limit: int
    total_pages: int
    elapsed_ms: float


class PriceSummary(BaseModel):
    min: float = 0.0
    max: float = 0.0


class CatalogStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_products: int
    unique_vendors: int
    unique_product_types: int
    price_range: PriceSummary
    avg_price: float


class CatalogMetadata(BaseModel):
    """Filter options and stats for the current collection."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    vendors: List[str]
    product_types: List[str]
    price_range: PriceSummary
    stats: CatalogStats
