import json
import logging
import re
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from catalog_search.core.constants import ingestion as cols
from catalog_search.schemas.ingestion import IngestionOptions
from catalog_search.schemas.products import PriceRange, ProductRecord, RowRejection
from catalog_search.utils.type_converters import (
    is_url,
    non_negative,
    to_bool,
    to_float,
    to_int,
)


logger = logging.getLogger("catalog_normalize")

_MARKUP_TAG = re.compile(r"<[^>]*>")
_NUMBER = re.compile(r"\d+(?:\.\d+)?")
# "1,199.00" -> "1199.00"
_THOUSANDS_SEP = re.compile(r"(?<=\d),(?=\d{3}(?!\d))")

_DEFAULT_OPTIONS = IngestionOptions()


def _normalize_row(row: Mapping[Any, Any]) -> Dict[str, Any]:
    """Upper-case header names and trim string values."""
    normalized: Dict[str, Any] = {}
    for key, value in row.items():
        # csv.DictReader files surplus cells under a None key
        if key is None:
            continue
        if isinstance(value, str):
            value = value.strip()
        normalized[str(key).strip().upper()] = value
    return normalized


def _first(fields: Mapping[str, Any], names: Iterable[str]) -> Any:
    for name in names:
        value = fields.get(name)
        if value not in (None, ""):
            return value
    return None


def _text(fields: Mapping[str, Any], names: Iterable[str], default: str = "") -> str:
    value = _first(fields, names)
    return default if value is None else str(value)


def _decode_json(value: Any) -> Any:
    """Parse JSON-looking strings; anything else comes back unchanged."""
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        return value


def strip_markup(text: str) -> str:
    return _MARKUP_TAG.sub("", text or "")


# --------------------------------------------------------------------------
# Price range: structured variant prices -> structured min/max -> free text
# --------------------------------------------------------------------------

def _make_range(low: Optional[float], high: Optional[float]) -> PriceRange:
    if low is None and high is None:
        return PriceRange()
    if low is None:
        low = high
    if high is None:
        high = low
    low, high = non_negative(low), non_negative(high)
    if low > high:
        low, high = high, low
    return PriceRange(min=low, max=high)


def _amount(value: Any) -> Optional[float]:
    if isinstance(value, Mapping):
        return to_float(value.get("amount"))
    return to_float(value)


def _price_from_variant_prices(parsed: Any) -> Optional[PriceRange]:
    # {"min_variant_price": {"amount": 18.55, "currency_code": "GBP"}, "max_variant_price": {...}}
    # Older exports put the bare amount under the same keys.
    if not isinstance(parsed, Mapping):
        return None
    low, high = parsed.get("min_variant_price"), parsed.get("max_variant_price")
    if low is None and high is None:
        return None
    return _make_range(_amount(low), _amount(high))


def _price_from_min_max(parsed: Any) -> Optional[PriceRange]:
    # {"min": 18.55, "max": 20}
    if not isinstance(parsed, Mapping):
        return None
    if "min" not in parsed and "max" not in parsed:
        return None
    return _make_range(to_float(parsed.get("min")), to_float(parsed.get("max")))


def _price_from_text(raw: Any) -> Optional[PriceRange]:
    # "£18.55 - £20.00", "18.55"
    tokens = _NUMBER.findall(_THOUSANDS_SEP.sub("", str(raw)))
    # Digit runs too long for a float overflow to inf and count as missing
    low = to_float(tokens[0]) if tokens else None
    high = to_float(tokens[1]) if len(tokens) >= 2 else None
    if low is None and high is None:
        return None
    return _make_range(low, high)


def parse_price_range(value: Any) -> PriceRange:
    """
    Parse a price range cell.

    Tries, in order, a structured object with nested variant price amounts,
    a structured object with direct min/max, then the first two numbers in
    free text. Returns {0, 0} when nothing matches.
    """
    if value in (None, ""):
        return PriceRange()

    parsed = _decode_json(value)
    for attempt in (_price_from_variant_prices, _price_from_min_max):
        price = attempt(parsed)
        if price is not None:
            return price

    # A structured object without a known shape is not free text
    if not isinstance(parsed, Mapping):
        price = _price_from_text(value)
        if price is not None:
            return price

    return PriceRange()


# --------------------------------------------------------------------------
# Remaining field parsers
# --------------------------------------------------------------------------

def parse_images(value: Any, max_images: int) -> Tuple[str, ...]:
    if not value or max_images <= 0:
        return ()

    parsed = _decode_json(value)
    if isinstance(parsed, list):
        urls = []
        for item in parsed:
            if isinstance(item, Mapping):
                item = item.get("url")
            if isinstance(item, str) and item.strip():
                urls.append(item.strip())
        return tuple(urls[:max_images])
    if is_url(parsed):
        return (parsed,)
    return ()


def parse_tags(value: Any) -> Tuple[str, ...]:
    if not value:
        return ()

    parsed = _decode_json(value)
    if isinstance(parsed, list):
        return tuple(str(tag).strip() for tag in parsed if tag is not None and str(tag).strip())
    if isinstance(value, str):
        return tuple(tag.strip() for tag in value.split(",") if tag.strip())
    return ()


def parse_inventory(value: Any) -> int:
    inventory = to_int(value)
    return inventory if inventory is not None and inventory > 0 else 0


def parse_featured_image(value: Any) -> str:
    if not value:
        return ""

    parsed = _decode_json(value)
    if isinstance(parsed, Mapping):
        url = parsed.get("url")
        return url if isinstance(url, str) else ""
    if is_url(parsed):
        return parsed
    return ""


def extract_description(fields: Mapping[str, Any], max_length: int) -> str:
    return strip_markup(_text(fields, cols.DESCRIPTION_COLUMNS))[:max_length]


def transform_row(
    row: Mapping[Any, Any],
    options: Optional[IngestionOptions] = None,
    row_number: Optional[int] = None,
) -> Union[ProductRecord, RowRejection]:
    """
    Map one raw CSV row to a ProductRecord.

    Only a missing id or title rejects the row; every other field falls
    back to its default when it cannot be parsed.
    """
    options = options or _DEFAULT_OPTIONS
    fields = _normalize_row(row)

    product_id = _text(fields, cols.ID_COLUMNS)
    title = _text(fields, cols.TITLE_COLUMNS)
    if not product_id:
        return RowRejection(reason="missing id", row_number=row_number)
    if not title:
        return RowRejection(reason="missing title", row_number=row_number)

    try:
        return ProductRecord(
            id=product_id,
            title=title,
            vendor=_text(fields, cols.VENDOR_COLUMNS),
            product_type=_text(fields, cols.PRODUCT_TYPE_COLUMNS),
            description=extract_description(fields, options.max_description_length),
            handle=_text(fields, cols.HANDLE_COLUMNS),
            status=_text(fields, cols.STATUS_COLUMNS, default=cols.DEFAULT_STATUS),
            price_range=parse_price_range(_first(fields, cols.PRICE_RANGE_COLUMNS)),
            images=parse_images(_first(fields, cols.IMAGE_COLUMNS), options.max_images),
            tags=parse_tags(_first(fields, cols.TAGS_COLUMNS)),
            created_at=_text(fields, cols.CREATED_AT_COLUMNS),
            updated_at=_text(fields, cols.UPDATED_AT_COLUMNS),
            published_at=_text(fields, cols.PUBLISHED_AT_COLUMNS),
            total_inventory=parse_inventory(_first(fields, cols.TOTAL_INVENTORY_COLUMNS)),
            has_out_of_stock_variants=to_bool(_first(fields, cols.OUT_OF_STOCK_COLUMNS)),
            is_gift_card=to_bool(_first(fields, cols.GIFT_CARD_COLUMNS)),
            featured_image_url=parse_featured_image(_first(fields, cols.FEATURED_IMAGE_COLUMNS)),
        )
    except ValidationError as e:
        logger.debug(f"Row {row_number} rejected: {e}")
        return RowRejection(reason=f"invalid record: {e.error_count()} error(s)", row_number=row_number)
