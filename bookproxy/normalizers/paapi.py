"""
Explicit normalization layer for Amazon PA-API 5 responses.
Converts raw SearchItems/GetItems output into the internal PaapiBook model.
Mapping never raises: anything missing or malformed becomes an absent field.
"""
from typing import Any, Dict, List, Optional

from bookproxy.models.book import UNKNOWN_TITLE, ImageUrls, ListPrice, PaapiBook

# Resources requested from PA-API for every book lookup
RESOURCES = [
    "Images.Primary.Small",
    "Images.Primary.Medium",
    "Images.Primary.Large",
    "ItemInfo.ByLineInfo",
    "ItemInfo.Classifications",
    "ItemInfo.ContentInfo",
    "ItemInfo.ProductInfo",
    "ItemInfo.Title",
    "Offers.Listings.Price",
    "CustomerReviews.Count",
    "CustomerReviews.StarRating",
    "BrowseNodeInfo.WebsiteSalesRank",
]


def _dig(data: Any, *path: str) -> Any:
    """Walk nested objects, returning None as soon as a level is not a dict."""
    current = data
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    return value if isinstance(value, (int, float)) else None


class PaapiNormalizer:
    """
    Normalizes raw PA-API items into PaapiBook.
    """

    @staticmethod
    def normalize_item(raw_item: Any) -> PaapiBook:
        item_info = _dig(raw_item, "ItemInfo")
        by_line = _dig(item_info, "ByLineInfo")
        content = _dig(item_info, "ContentInfo")
        primary = _dig(raw_item, "Images", "Primary")
        title = _as_str(_dig(item_info, "Title", "DisplayValue"))

        return PaapiBook(
            asin=_as_str(_dig(raw_item, "ASIN")) or "",
            title=UNKNOWN_TITLE if title is None else title,
            authors=PaapiNormalizer._contributors(_dig(by_line, "Contributors")),
            publisher=_as_str(_dig(by_line, "Manufacturer", "DisplayValue")),
            publication_date=(
                _as_str(_dig(content, "PublicationDate", "DisplayValue"))
                or _as_str(_dig(item_info, "ProductInfo", "ReleaseDate", "DisplayValue"))
            ),
            page_count=_as_number(_dig(content, "PagesCount", "DisplayValue")),
            image_urls=ImageUrls(
                small=_as_str(_dig(primary, "Small", "URL")),
                medium=_as_str(_dig(primary, "Medium", "URL")),
                large=_as_str(_dig(primary, "Large", "URL")),
            ),
            average_rating=_as_number(_dig(raw_item, "CustomerReviews", "StarRating", "AverageRating")),
            is_kindle=_dig(item_info, "Classifications", "Binding", "DisplayValue") == "Kindle",
            amazon_url=_as_str(_dig(raw_item, "DetailPageURL")),
            sales_rank=_as_number(_dig(raw_item, "BrowseNodeInfo", "WebsiteSalesRank", "SalesRank")),
            list_price=PaapiNormalizer._list_price(_dig(raw_item, "Offers", "Listings")),
        )

    @staticmethod
    def _contributors(raw_contributors: Any) -> List[str]:
        if not isinstance(raw_contributors, list):
            return []
        names = (_as_str(_dig(contributor, "Name")) for contributor in raw_contributors)
        return [name for name in names if name]

    @staticmethod
    def _list_price(raw_listings: Any) -> Optional[ListPrice]:
        if not isinstance(raw_listings, list) or not raw_listings:
            return None
        price = _dig(raw_listings[0], "Price")
        if not isinstance(price, dict):
            return None
        return ListPrice(
            amount=_as_number(price.get("Amount")) or 0,
            currency=_as_str(price.get("Currency")) or "",
        )

    @staticmethod
    def extract_items(data: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Pull raw items out of a SearchItems or GetItems response."""
        items = _dig(data, "SearchResult", "Items")
        if items is None:
            items = _dig(data, "ItemsResult", "Items")
        if not isinstance(items, list):
            return []
        return items

    @staticmethod
    def extract_request_id(data: Dict[str, Any]) -> Optional[str]:
        return _as_str(_dig(data, "RequestId")) or _as_str(
            _dig(data, "SearchResult", "SearchCompletedRequestId")
        )

    @staticmethod
    def extract_error_message(data: Any) -> Optional[str]:
        errors = _dig(data, "Errors")
        if isinstance(errors, list) and errors:
            return _as_str(_dig(errors[0], "Message"))
        return None

    @staticmethod
    def normalize_batch(raw_items: List[Any]) -> List[PaapiBook]:
        return [PaapiNormalizer.normalize_item(raw) for raw in raw_items]
