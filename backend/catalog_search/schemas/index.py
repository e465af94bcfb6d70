"""
Index schemas — search index artifact, metadata, and file info.

On disk the artifact is {"products": [...], "metadata": {...}} with
camelCase keys.
Version: 1.0.0
"""
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from catalog_search.schemas.products import ProductRecord


class IndexMetadata(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_products: int = 0
    vendors: List[str] = []
    product_types: List[str] = []
    processed_at: Optional[str] = None


class IndexArtifact(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    products: List[ProductRecord]
    metadata: IndexMetadata

    @classmethod
    def from_products(cls, products: List[ProductRecord], processed_at: Optional[str] = None) -> "IndexArtifact":
        """Build an artifact, deriving distinct vendors and product types."""
        vendors = list(dict.fromkeys(p.vendor for p in products if p.vendor))
        product_types = list(dict.fromkeys(p.product_type for p in products if p.product_type))
        return cls(
            products=products,
            metadata=IndexMetadata(
                total_products=len(products),
                vendors=vendors,
                product_types=product_types,
                processed_at=processed_at or datetime.now(timezone.utc).isoformat(),
            ),
        )


class IndexInfo(BaseModel):
    """What is currently on disk at the canonical index path."""
    exists: bool
    size_bytes: Optional[int] = None
    modified_at: Optional[datetime] = None
    product_count: Optional[int] = None
    metadata: Optional[IndexMetadata] = None
    error: Optional[str] = None
