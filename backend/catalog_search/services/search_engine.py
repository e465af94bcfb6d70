"""
Search engine — fuzzy search, filtering, sorting, pagination and aggregates.

Search engine over one in-memory product collection.

The engine holds an immutable snapshot (records + fuzzy index + cached
aggregates). Queries read the snapshot reference once and never lock;
`replace_collection` builds a new snapshot and swaps the reference.
Version: 1.0.0
"""
import logging
import math
import threading
import time
from functools import cached_property
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from catalog_search.core.constants.search import (
    DEFAULT_MATCH_THRESHOLD,
    DEFAULT_PAGE,
    DEFAULT_PAGE_LIMIT,
    DEFAULT_SUGGESTION_LIMIT,
    MIN_SUGGESTION_QUERY_LENGTH,
    SORT_NAME_ASC,
    SORT_NAME_DESC,
    SORT_NEWEST,
    SORT_PRICE_ASC,
    SORT_PRICE_DESC,
    SORT_RELEVANCE,
)
from catalog_search.core.exceptions import InvalidSearchRequestError
from catalog_search.schemas.products import ProductRecord
from catalog_search.schemas.search import (
    CatalogMetadata,
    CatalogStats,
    PriceSummary,
    SearchFilters,
    SearchResult,
)
from catalog_search.utils.fuzzy_match import FuzzyIndex

logger = logging.getLogger("search_engine")

FiltersInput = Union[SearchFilters, Mapping[str, Any], None]


# --------------------------------------------------------------------------
# Effective prices
# --------------------------------------------------------------------------

def effective_price(product: ProductRecord) -> float:
    """Price used by the minimum-price filter and the aggregates."""
    return product.price or product.price_range.max or 0.0


def _ceiling_price(product: ProductRecord) -> float:
    """Price used by the maximum-price filter."""
    return product.price or product.price_range.min or 0.0


def _ascending_sort_price(product: ProductRecord) -> Optional[float]:
    return product.price or product.price_range.min or product.price_range.max or None


def _descending_sort_price(product: ProductRecord) -> Optional[float]:
    return product.price or product.price_range.max or product.price_range.min or None


# --------------------------------------------------------------------------
# Filtering and sorting
# --------------------------------------------------------------------------

def apply_filters(products: Iterable[ProductRecord], filters: SearchFilters) -> List[ProductRecord]:
    """Keep records matching every filter that is set."""
    vendor = filters.vendor.lower() if filters.vendor else None
    product_type = filters.product_type.lower() if filters.product_type else None

    results = []
    for product in products:
        if vendor and vendor not in product.vendor.lower():
            continue
        if product_type and product_type not in product.product_type.lower():
            continue
        if filters.min_price is not None and effective_price(product) < filters.min_price:
            continue
        if filters.max_price is not None and _ceiling_price(product) > filters.max_price:
            continue
        if filters.in_stock and (product.total_inventory <= 0 or product.has_out_of_stock_variants):
            continue
        results.append(product)
    return results


def _sort_by_price(
    products: Sequence[ProductRecord],
    price_of: Callable[[ProductRecord], Optional[float]],
    descending: bool,
) -> List[ProductRecord]:
    priced = [p for p in products if price_of(p) is not None]
    priceless = [p for p in products if price_of(p) is None]
    return sorted(priced, key=price_of, reverse=descending) + priceless


def apply_sorting(products: Sequence[ProductRecord], sort_by: str) -> List[ProductRecord]:
    """
    Order records by sort_by. All sorts are stable.

    Records without any price go last for both price sorts. Name sorts
    compare case-folded titles. Unknown sort values keep the incoming
    (relevance) order.
    """
    if sort_by == SORT_PRICE_ASC:
        return _sort_by_price(products, _ascending_sort_price, descending=False)
    if sort_by == SORT_PRICE_DESC:
        return _sort_by_price(products, _descending_sort_price, descending=True)
    if sort_by == SORT_NAME_ASC:
        return sorted(products, key=lambda p: p.title.casefold())
    if sort_by == SORT_NAME_DESC:
        return sorted(products, key=lambda p: p.title.casefold(), reverse=True)
    if sort_by == SORT_NEWEST:
        return sorted(products, key=lambda p: p.created_at, reverse=True)
    if sort_by != SORT_RELEVANCE:
        logger.debug(f"Unknown sort option '{sort_by}', keeping relevance order")
    return list(products)


def _coerce_filters(filters: FiltersInput) -> SearchFilters:
    if filters is None:
        return SearchFilters()
    if isinstance(filters, SearchFilters):
        return filters
    return SearchFilters.model_validate(dict(filters))


# --------------------------------------------------------------------------
# Snapshot
# --------------------------------------------------------------------------

class CatalogSnapshot:
    """Records plus everything derived from them. Never mutated."""

    def __init__(self, products: Sequence[ProductRecord], threshold: float) -> None:
        self.products: Tuple[ProductRecord, ...] = tuple(products)
        self.fuzzy = FuzzyIndex(self.products, threshold=threshold)

    @cached_property
    def vendors(self) -> List[str]:
        return sorted({p.vendor for p in self.products if p.vendor})

    @cached_property
    def product_types(self) -> List[str]:
        return sorted({p.product_type for p in self.products if p.product_type})

    @cached_property
    def price_summary(self) -> PriceSummary:
        prices = [price for price in map(effective_price, self.products) if price > 0]
        if not prices:
            return PriceSummary()
        return PriceSummary(min=min(prices), max=max(prices))

    @cached_property
    def stats(self) -> CatalogStats:
        total = len(self.products)
        avg_price = sum(map(effective_price, self.products)) / total if total else 0.0
        return CatalogStats(
            total_products=total,
            unique_vendors=len(self.vendors),
            unique_product_types=len(self.product_types),
            price_range=self.price_summary,
            avg_price=avg_price,
        )


# --------------------------------------------------------------------------
# Engine
# --------------------------------------------------------------------------

class SearchEngine:
    def __init__(
        self,
        products: Iterable[ProductRecord],
        threshold: float = DEFAULT_MATCH_THRESHOLD,
    ) -> None:
        self._threshold = threshold
        self._replace_lock = threading.Lock()
        self._snapshot = CatalogSnapshot(tuple(products), threshold)
        logger.info(f"Search engine initialized with {len(self._snapshot.products):,} products")

    def __len__(self) -> int:
        return len(self._snapshot.products)

    @property
    def products(self) -> Tuple[ProductRecord, ...]:
        return self._snapshot.products

    def search(
        self,
        query: str = "",
        filters: FiltersInput = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_PAGE_LIMIT,
        sort_by: str = SORT_RELEVANCE,
    ) -> SearchResult:
        """
        Search the collection.

        Args:
            query: Free text; blank returns the whole collection in order
            filters: SearchFilters or a mapping with camelCase/snake_case keys
            page: 1-based page number
            limit: Page size
            sort_by: One of SORT_OPTIONS; anything else keeps relevance order

        Raises:
            InvalidSearchRequestError: page or limit below 1
        """
        started = time.perf_counter()
        if page < 1 or limit < 1:
            raise InvalidSearchRequestError(f"page and limit must be >= 1 (got page={page}, limit={limit})")

        search_filters = _coerce_filters(filters)
        snapshot = self._snapshot

        if query and query.strip():
            results = [snapshot.products[match.position] for match in snapshot.fuzzy.search(query)]
        else:
            results = list(snapshot.products)

        results = apply_filters(results, search_filters)
        results = apply_sorting(results, sort_by)

        total = len(results)
        offset = (page - 1) * limit
        items = results[offset:offset + limit]
        elapsed_ms = (time.perf_counter() - started) * 1000

        logger.debug(f"search query={query!r} sort={sort_by} total={total} page={page} ({elapsed_ms:.1f} ms)")
        return SearchResult(
            items=items,
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit),
            elapsed_ms=elapsed_ms,
        )

    def suggest(self, query: str, limit: int = DEFAULT_SUGGESTION_LIMIT) -> List[str]:
        """
        Titles, then vendors, then product types containing query.

        The query is matched as typed (lowercased, whitespace kept). Blank
        queries and queries shorter than MIN_SUGGESTION_QUERY_LENGTH get no
        suggestions.
        """
        if not query or not query.strip() or len(query) < MIN_SUGGESTION_QUERY_LENGTH or limit <= 0:
            return []
        needle = query.lower()

        suggestions: Dict[str, None] = {}
        products = self._snapshot.products
        for field in ("title", "vendor", "product_type"):
            for product in products:
                value = getattr(product, field)
                if value and needle in value.lower():
                    suggestions.setdefault(value, None)
                    if len(suggestions) >= limit:
                        return list(suggestions)
        return list(suggestions)

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def unique_vendors(self) -> List[str]:
        return list(self._snapshot.vendors)

    def unique_product_types(self) -> List[str]:
        return list(self._snapshot.product_types)

    def price_range(self) -> PriceSummary:
        return self._snapshot.price_summary

    def stats(self) -> CatalogStats:
        return self._snapshot.stats

    def metadata(self) -> CatalogMetadata:
        snapshot = self._snapshot
        return CatalogMetadata(
            vendors=list(snapshot.vendors),
            product_types=list(snapshot.product_types),
            price_range=snapshot.price_summary,
            stats=snapshot.stats,
        )

    def replace_collection(self, products: Iterable[ProductRecord]) -> None:
        """Swap in a new collection; queries already running keep the old one."""
        with self._replace_lock:
            snapshot = CatalogSnapshot(tuple(products), self._threshold)
            self._snapshot = snapshot
        logger.info(f"Search collection replaced ({len(snapshot.products):,} products)")
