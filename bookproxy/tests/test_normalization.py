"""
Test normalization behavior.
Ensures raw upstream data is safely normalized and never raises.
"""
import pytest

from bookproxy.models.book import UNKNOWN_TITLE
from bookproxy.normalizers.paapi import PaapiNormalizer
from bookproxy.normalizers.rakuten import RakutenNormalizer, to_number


PAAPI_ITEM = {
    "ASIN": "4101001618",
    "DetailPageURL": "https://www.amazon.co.jp/dp/4101001618",
    "Images": {
        "Primary": {
            "Small": {"URL": "https://m.media-amazon.com/images/I/s.jpg"},
            "Medium": {"URL": "https://m.media-amazon.com/images/I/m.jpg"},
            "Large": {"URL": "https://m.media-amazon.com/images/I/l.jpg"},
        }
    },
    "ItemInfo": {
        "Title": {"DisplayValue": "人間失格"},
        "ByLineInfo": {
            "Contributors": [{"Name": "太宰 治", "Role": "著"}, {"Role": "編集"}],
            "Manufacturer": {"DisplayValue": "新潮社"},
        },
        "ContentInfo": {
            "PublicationDate": {"DisplayValue": "1952-10-30"},
            "PagesCount": {"DisplayValue": 185},
        },
        "Classifications": {"Binding": {"DisplayValue": "文庫"}},
    },
    "CustomerReviews": {"StarRating": {"AverageRating": 4.3}},
    "BrowseNodeInfo": {"WebsiteSalesRank": {"SalesRank": 1520}},
    "Offers": {"Listings": [{"Price": {"Amount": 407, "Currency": "JPY"}}]},
}


def test_normalize_paapi_item():
    """Test normalization of a complete PA-API item."""
    book = PaapiNormalizer.normalize_item(PAAPI_ITEM)

    assert book.asin == "4101001618"
    assert book.title == "人間失格"
    assert book.authors == ["太宰 治"]
    assert book.publisher == "新潮社"
    assert book.publication_date == "1952-10-30"
    assert book.page_count == 185
    assert book.image_urls.large == "https://m.media-amazon.com/images/I/l.jpg"
    assert book.average_rating == 4.3
    assert book.is_kindle is False
    assert book.amazon_url == "https://www.amazon.co.jp/dp/4101001618"
    assert book.sales_rank == 1520
    assert book.list_price.amount == 407
    assert book.list_price.currency == "JPY"


def test_normalize_paapi_item_release_date_and_kindle():
    raw = {
        "ASIN": "B00KINDLE1",
        "ItemInfo": {
            "ProductInfo": {"ReleaseDate": {"DisplayValue": "2014-01-01"}},
            "Classifications": {"Binding": {"DisplayValue": "Kindle"}},
        },
    }
    book = PaapiNormalizer.normalize_item(raw)

    assert book.publication_date == "2014-01-01"
    assert book.is_kindle is True
    assert book.title == UNKNOWN_TITLE


def test_normalize_paapi_item_minimal_serialization():
    """Absent fields are dropped from the response body."""
    body = PaapiNormalizer.normalize_item({}).to_dict()

    assert body == {
        "asin": "",
        "title": UNKNOWN_TITLE,
        "authors": [],
        "imageUrls": {},
        "isKindle": False,
    }


@pytest.mark.parametrize("garbage", [
    None,
    "not an item",
    42,
    [],
    {"ItemInfo": "broken"},
    {"ItemInfo": {"Title": ["x"], "ByLineInfo": {"Contributors": "nobody"}}},
    {"Offers": {"Listings": [None]}},
    {"Offers": {"Listings": [{"Price": {"Amount": "12", "Currency": 5}}]}},
])
def test_normalize_paapi_item_never_raises(garbage):
    book = PaapiNormalizer.normalize_item(garbage)
    assert book.title == UNKNOWN_TITLE


def test_paapi_extract_items_and_request_id():
    search = {"SearchResult": {"Items": [PAAPI_ITEM], "SearchCompletedRequestId": "search-req"}}
    get_items = {"ItemsResult": {"Items": [PAAPI_ITEM, PAAPI_ITEM]}, "RequestId": "get-req"}

    assert len(PaapiNormalizer.extract_items(search)) == 1
    assert len(PaapiNormalizer.extract_items(get_items)) == 2
    assert PaapiNormalizer.extract_items({}) == []
    assert PaapiNormalizer.extract_request_id(search) == "search-req"
    assert PaapiNormalizer.extract_request_id(get_items) == "get-req"
    assert PaapiNormalizer.extract_request_id({}) is None


def test_paapi_extract_error_message():
    data = {"Errors": [{"Code": "InvalidParameterValue", "Message": "The ItemId is invalid."}]}
    assert PaapiNormalizer.extract_error_message(data) == "The ItemId is invalid."
    assert PaapiNormalizer.extract_error_message({"Errors": []}) is None
    assert PaapiNormalizer.extract_error_message(None) is None


def test_normalize_rakuten_item():
    raw = {
        "title": "走れメロス",
        "author": "太宰 治",
        "publisherName": "新潮社",
        "salesDate": "2005年10月",
        "isbn": "9784101006062",
        "itemCaption": "表題作ほか",
        "smallImageUrl": "https://thumbnail.image.rakuten.co.jp/s.jpg",
        "mediumImageUrl": "https://thumbnail.image.rakuten.co.jp/m.jpg",
        "largeImageUrl": "https://thumbnail.image.rakuten.co.jp/l.jpg",
        "itemUrl": "https://books.rakuten.co.jp/rb/123/",
        "itemPrice": 539,
        "reviewAverage": "4.25",
        "reviewCount": 87,
    }
    book = RakutenNormalizer.normalize_item(raw)

    assert book.title == "走れメロス"
    assert book.author == "太宰 治"
    assert book.isbn == "9784101006062"
    assert book.item_price == 539
    assert book.review_average == 4.25
    assert book.to_dict()["publisherName"] == "新潮社"


def test_normalize_rakuten_item_defaults_title():
    body = RakutenNormalizer.normalize_item({"isbn": 9784101006062}).to_dict()
    assert body == {"title": UNKNOWN_TITLE}


def test_empty_title_is_kept_as_is():
    assert RakutenNormalizer.normalize_item({"title": ""}).title == ""
    raw = {"ASIN": "4101001618", "ItemInfo": {"Title": {"DisplayValue": ""}}}
    assert PaapiNormalizer.normalize_item(raw).title == ""


def test_rakuten_unwrap_both_format_versions():
    v1 = {"Items": [{"Item": {"title": "A"}}, {"Item": None}, "junk", {"Item": {"title": "B"}}]}
    v2 = {"Items": [{"title": "A"}, None, {"title": "B"}]}

    assert [b.title for b in RakutenNormalizer.normalize_batch(v1)] == ["A", "B"]
    assert [b.title for b in RakutenNormalizer.normalize_batch(v2)] == ["A", "B"]
    assert RakutenNormalizer.normalize_batch({"Items": "nope"}) == []
    assert RakutenNormalizer.normalize_batch({}) == []
    assert RakutenNormalizer.normalize_batch(None) == []


@pytest.mark.parametrize("value,expected", [
    (30, 30),
    (2.5, 2.5),
    ("120", 120),
    (" 4.5 ", 4.5),
    ("", None),
    ("abc", None),
    (None, None),
    (True, None),
    (float("nan"), None),
    ("inf", None),
    ([1], None),
])
def test_to_number(value, expected):
    assert to_number(value) == expected
