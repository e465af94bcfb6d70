"""
Pytest configuration and shared fixtures for catalog search tests.

Provides sample product records, CSV writers, and index store helpers.
Version: 1.0.0
"""
import csv
import json

import pytest

from catalog_search.db.index_store import IndexStore
from catalog_search.schemas.index import IndexArtifact
from catalog_search.schemas.products import PriceRange, ProductRecord


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

def make_product(**overrides) -> ProductRecord:
    """Build a ProductRecord with sensible defaults."""
    data = {
        "id": "gid://shopify/Product/1",
        "title": "Test Product",
        "vendor": "Test Vendor",
        "product_type": "Widget",
        "description": "A product used in tests",
        "price_range": PriceRange(min=10.0, max=20.0),
        "total_inventory": 5,
        "created_at": "2023-01-01T00:00:00Z",
    }
    data.update(overrides)
    return ProductRecord(**data)


@pytest.fixture
def sample_products():
    """Four products covering phones, a laptop and a gift card."""
    return [
        make_product(
            id="1",
            title="iPhone 14 Pro",
            vendor="Apple",
            product_type="Smartphone",
            description="Latest iPhone with advanced camera system",
            price_range=PriceRange(min=999, max=1199),
            total_inventory=50,
            tags=("electronics", "phone", "apple"),
            created_at="2023-01-01T00:00:00Z",
        ),
        make_product(
            id="2",
            title="Samsung Galaxy S23",
            vendor="Samsung",
            product_type="Smartphone",
            description="Flagship Android phone with excellent display",
            price_range=PriceRange(min=799, max=999),
            total_inventory=0,
            has_out_of_stock_variants=True,
            tags=("electronics", "phone", "android"),
            created_at="2023-02-01T00:00:00Z",
        ),
        make_product(
            id="3",
            title='MacBook Pro 16"',
            vendor="Apple",
            product_type="Laptop",
            description="Professional laptop for creative work",
            price_range=PriceRange(min=2499, max=3999),
            total_inventory=25,
            tags=("electronics", "laptop", "apple"),
            created_at="2023-03-01T00:00:00Z",
        ),
        make_product(
            id="4",
            title="Gift Card $50",
            vendor="Store",
            product_type="Gift Card",
            description="Digital gift card for online purchases",
            price_range=PriceRange(min=50, max=50),
            total_inventory=100,
            is_gift_card=True,
            tags=("gift", "digital"),
            created_at="2023-04-01T00:00:00Z",
        ),
    ]


@pytest.fixture
def sample_artifact(sample_products):
    return IndexArtifact.from_products(sample_products, processed_at="2024-01-01T00:00:00+00:00")


# ---------------------------------------------------------------------------
# CSV sources
# ---------------------------------------------------------------------------

CSV_COLUMNS = [
    "ID", "TITLE", "VENDOR", "PRODUCT_TYPE", "BODY_HTML", "HANDLE", "STATUS",
    "PRICE_RANGE_V2", "IMAGES", "TAGS", "CREATED_AT", "TOTAL_INVENTORY",
    "HAS_OUT_OF_STOCK_VARIANTS", "IS_GIFT_CARD", "FEATURED_IMAGE",
]


def csv_row(index: int, **overrides) -> dict:
    """A complete source row for product number index."""
    row = {
        "ID": f"gid://shopify/Product/{index}",
        "TITLE": f"Product {index}",
        "VENDOR": f"Vendor {index % 3}",
        "PRODUCT_TYPE": "Widget",
        "BODY_HTML": f"<p>Description for <b>product {index}</b></p>",
        "HANDLE": f"product-{index}",
        "STATUS": "ACTIVE",
        "PRICE_RANGE_V2": json.dumps({
            "min_variant_price": {"amount": 10.0 + index, "currency_code": "GBP"},
            "max_variant_price": {"amount": 20.0 + index, "currency_code": "GBP"},
        }),
        "IMAGES": json.dumps([{"url": f"https://cdn.example.com/{index}.jpg"}]),
        "TAGS": "alpha, beta",
        "CREATED_AT": "2023-01-01T00:00:00Z",
        "TOTAL_INVENTORY": "7",
        "HAS_OUT_OF_STOCK_VARIANTS": "false",
        "IS_GIFT_CARD": "false",
        "FEATURED_IMAGE": json.dumps({"url": f"https://cdn.example.com/{index}.jpg"}),
    }
    row.update(overrides)
    return row


@pytest.fixture
def write_csv(tmp_path):
    """Write rows to a CSV file under tmp_path and return its path."""
    def _write(rows, name="products.csv", columns=None, encoding="utf-8"):
        path = tmp_path / name
        with open(path, "w", encoding=encoding, newline="") as f:
            writer = csv.DictWriter(f, fieldnames=columns or CSV_COLUMNS)
            writer.writeheader()
            writer.writerows(rows)
        return path
    return _write


@pytest.fixture
def catalog_csv(write_csv):
    """A valid 25-row catalog."""
    return write_csv([csv_row(i) for i in range(1, 26)])


# ---------------------------------------------------------------------------
# Index store
# ---------------------------------------------------------------------------

@pytest.fixture
def index_path(tmp_path):
    return tmp_path / "data" / "search-index.json"


@pytest.fixture
def index_store(index_path):
    return IndexStore.for_path(index_path)


@pytest.fixture
def product_factory():
    return make_product


@pytest.fixture
def row_factory():
    return csv_row
