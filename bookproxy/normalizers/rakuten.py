"""
Explicit normalization layer for Rakuten Books search responses.
Handles both formatVersion=1 ({"Item": {...}} wrappers) and formatVersion=2 (bare items).
"""
import math
from typing import Any, Dict, List, Optional

from bookproxy.models.book import UNKNOWN_TITLE, RakutenBook


def to_number(value: Any) -> Optional[float]:
    """
    Coerce an upstream numeric field.

    Numbers pass through, numeric strings are parsed, everything else
    (including booleans, NaN and infinities) is treated as absent.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            parsed = float(text)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


class RakutenNormalizer:
    """
    Normalizes raw Rakuten Books items into RakutenBook.
    """

    @staticmethod
    def normalize_item(raw_item: Dict[str, Any]) -> RakutenBook:
        title = _as_str(raw_item.get("title"))
        return RakutenBook(
            title=UNKNOWN_TITLE if title is None else title,
            author=_as_str(raw_item.get("author")),
            publisher_name=_as_str(raw_item.get("publisherName")),
            sales_date=_as_str(raw_item.get("salesDate")),
            isbn=_as_str(raw_item.get("isbn")),
            item_caption=_as_str(raw_item.get("itemCaption")),
            small_image_url=_as_str(raw_item.get("smallImageUrl")),
            medium_image_url=_as_str(raw_item.get("mediumImageUrl")),
            large_image_url=_as_str(raw_item.get("largeImageUrl")),
            item_url=_as_str(raw_item.get("itemUrl")),
            item_price=to_number(raw_item.get("itemPrice")),
            review_average=to_number(raw_item.get("reviewAverage")),
            review_count=to_number(raw_item.get("reviewCount")),
        )

    @staticmethod
    def unwrap_items(data: Any) -> List[Dict[str, Any]]:
        """Return the raw item objects from a response body, skipping junk entries."""
        raw_items = data.get("Items") if isinstance(data, dict) else None
        if not isinstance(raw_items, list):
            return []

        unwrapped = []
        for entry in raw_items:
            if isinstance(entry, dict) and "Item" in entry:
                entry = entry["Item"]
            if isinstance(entry, dict):
                unwrapped.append(entry)
        return unwrapped

    @staticmethod
    def normalize_batch(data: Any) -> List[RakutenBook]:
        return [RakutenNormalizer.normalize_item(raw) for raw in RakutenNormalizer.unwrap_items(data)]
