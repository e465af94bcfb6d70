"""
Product schemas — canonical catalog record and row rejection.

ProductRecord instances are created by the transform step (or validated
when an index is loaded) and never mutated afterwards.
Version: 1.0.0
"""
from typing import Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class PriceRange(BaseModel):
    """Lowest and highest variant price. {0, 0} means unknown."""
    model_config = ConfigDict(frozen=True)

    min: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    max: float = Field(default=0.0, ge=0, allow_inf_nan=False)

    @model_validator(mode="after")
    def _check_order(self) -> "PriceRange":
        if self.min > self.max:
            raise ValueError(f"price range min {self.min} exceeds max {self.max}")
        return self

    @property
    def is_unknown(self) -> bool:
        return not self.min and not self.max


class ProductRecord(BaseModel):
    """One catalog item as stored in the search index."""
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    vendor: str = ""
    product_type: str = ""
    description: str = ""
    status: str = "active"
    handle: str = ""
    tags: Tuple[str, ...] = ()
    images: Tuple[str, ...] = ()
    featured_image_url: str = Field(
        default="",
        validation_alias=AliasChoices("featuredImageUrl", "featuredImage", "featured_image_url"),
    )
    price_range: PriceRange = PriceRange()
    # Explicit single price; only present in indexes produced by other tools
    price: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    total_inventory: int = Field(default=0, ge=0)
    has_out_of_stock_variants: bool = False
    is_gift_card: bool = False
    created_at: str = ""
    updated_at: str = ""
    published_at: str = ""


class RowRejection(BaseModel):
    """A source row that could not become a ProductRecord."""
    model_config = ConfigDict(frozen=True)

    reason: str
    row_number: Optional[int] = None
