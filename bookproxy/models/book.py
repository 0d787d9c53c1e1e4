"""
Canonical internal data contract.
Inbound search requests, normalized book items and search outcomes.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from bookproxy.errors import RequestValidationError

UNKNOWN_TITLE = "タイトル不明"

DEFAULT_HITS = 20
MAX_HITS = 30
DEFAULT_PAGE = 1
MAX_PAGE = 100

DEFAULT_MAX_RESULTS = 10
MAX_ITEM_COUNT = 20
MAX_ITEM_PAGE = 10


class SearchType(str, Enum):
    ISBN = "isbn"
    KEYWORDS = "keywords"


class SearchMode(str, Enum):
    """Strategy that actually produced a result set."""
    ISBN = "isbn"
    AUTHOR = "author"
    KEYWORD = "keyword"
    TITLE_FALLBACK = "title-fallback"


def _clamp_int(raw: Any, default: int, upper: int) -> int:
    """Coerce a loosely-typed number into [1, upper], truncating fractions."""
    if raw is None or isinstance(raw, bool):
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(value):
        return default
    return min(max(int(value), 1), upper)


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop absent fields so they do not appear in the response body."""
    return {key: value for key, value in data.items() if value is not None}


@dataclass(frozen=True)
class SearchRequest:
    """
    Validated search request.
    hits/page are clamped, query is trimmed and never empty.
    """
    query: str
    search_type: SearchType = SearchType.KEYWORDS
    hits: int = DEFAULT_HITS
    page: int = DEFAULT_PAGE

    @property
    def is_isbn(self) -> bool:
        return self.search_type is SearchType.ISBN

    @classmethod
    def from_payload(cls, payload: Any, hits_field: str = "hits",
                     default_hits: int = DEFAULT_HITS, max_hits: int = MAX_HITS) -> "SearchRequest":
        """
        Build a request from a decoded JSON body.

        Args:
            payload: Decoded JSON body
            hits_field: Body field carrying the page size ("hits" or "maxResults")
            default_hits: Page size when the field is absent or not numeric
            max_hits: Upper bound for the page size

        Raises:
            RequestValidationError: If the body is not an object or has no query
        """
        if not isinstance(payload, dict):
            raise RequestValidationError("Request body must be a JSON object")

        raw_query = payload.get("query")
        query = raw_query.strip() if isinstance(raw_query, str) else ""
        if not query:
            raise RequestValidationError("Query is required")

        search_type = SearchType.ISBN if payload.get("searchType") == "isbn" else SearchType.KEYWORDS

        return cls(
            query=query,
            search_type=search_type,
            hits=_clamp_int(payload.get(hits_field), default_hits, max_hits),
            page=_clamp_int(payload.get("page"), DEFAULT_PAGE, MAX_PAGE),
        )


@dataclass(frozen=True)
class ImageUrls:
    small: Optional[str] = None
    medium: Optional[str] = None
    large: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({"small": self.small, "medium": self.medium, "large": self.large})


@dataclass(frozen=True)
class ListPrice:
    amount: float = 0
    currency: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"amount": self.amount, "currency": self.currency}


@dataclass(frozen=True)
class PaapiBook:
    """Normalized Amazon PA-API item."""
    asin: str = ""
    title: str = UNKNOWN_TITLE
    authors: List[str] = field(default_factory=list)
    publisher: Optional[str] = None
    publication_date: Optional[str] = None
    page_count: Optional[int] = None
    image_urls: ImageUrls = field(default_factory=ImageUrls)
    average_rating: Optional[float] = None
    is_kindle: bool = False
    amazon_url: Optional[str] = None
    sales_rank: Optional[int] = None
    list_price: Optional[ListPrice] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "asin": self.asin,
            "title": self.title,
            "authors": list(self.authors),
            "publisher": self.publisher,
            "publicationDate": self.publication_date,
            "pageCount": self.page_count,
            "imageUrls": self.image_urls.to_dict(),
            "averageRating": self.average_rating,
            "isKindle": self.is_kindle,
            "amazonUrl": self.amazon_url,
            "salesRank": self.sales_rank,
            "listPrice": self.list_price.to_dict() if self.list_price else None,
        })


@dataclass(frozen=True)
class RakutenBook:
    """Normalized Rakuten Books item."""
    title: str = UNKNOWN_TITLE
    author: Optional[str] = None
    publisher_name: Optional[str] = None
    sales_date: Optional[str] = None
    isbn: Optional[str] = None
    item_caption: Optional[str] = None
    small_image_url: Optional[str] = None
    medium_image_url: Optional[str] = None
    large_image_url: Optional[str] = None
    item_url: Optional[str] = None
    item_price: Optional[float] = None
    review_average: Optional[float] = None
    review_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "title": self.title,
            "author": self.author,
            "publisherName": self.publisher_name,
            "salesDate": self.sales_date,
            "isbn": self.isbn,
            "itemCaption": self.item_caption,
            "smallImageUrl": self.small_image_url,
            "mediumImageUrl": self.medium_image_url,
            "largeImageUrl": self.large_image_url,
            "itemUrl": self.item_url,
            "itemPrice": self.item_price,
            "reviewAverage": self.review_average,
            "reviewCount": self.review_count,
        })


@dataclass(frozen=True)
class SearchOutcome:
    """Result of the Rakuten search state machine."""
    items: List[RakutenBook]
    count: float
    hits: float
    page: float
    search_mode: SearchMode
    page_count: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "Items": [item.to_dict() for item in self.items],
            "count": self.count,
            "hits": self.hits,
            "page": self.page,
            "pageCount": self.page_count,
            "searchMode": self.search_mode.value,
        })


@dataclass(frozen=True)
class PaapiOutcome:
    """Result of a signed PA-API request."""
    items: List[PaapiBook]
    search_type: SearchType
    request_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "items": [item.to_dict() for item in self.items],
            "requestId": self.request_id,
            "searchType": self.search_type.value,
        })
