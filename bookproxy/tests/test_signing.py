"""
Test the PA-API signature v4 signing protocol.
"""
import hashlib
import re
from datetime import datetime, timedelta, timezone

import pytest

from bookproxy.errors import SigningError
from bookproxy.utils.signing import (
    ALGORITHM,
    SIGNED_HEADERS,
    SigningContext,
    derive_signing_key,
    format_amz_date,
    sign_request,
)

FIXED_NOW = datetime(2024, 3, 9, 7, 5, 3, tzinfo=timezone.utc)
BODY = '{"Keywords":"村上春樹","SearchIndex":"Books"}'.encode("utf-8")


def _sign(**overrides):
    params = dict(
        body=BODY,
        host="webservices.amazon.co.jp",
        region="us-west-2",
        operation="SearchItems",
        access_key="AKIDEXAMPLE",
        secret_key="secret-example",
        now=FIXED_NOW,
    )
    params.update(overrides)
    return sign_request(**params)


def test_derive_signing_key_matches_published_example():
    """Key derivation example from the AWS signature v4 documentation."""
    key = derive_signing_key(
        "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY", "20120215", "us-east-1", "iam"
    )
    assert key.hex() == "f4780e2d9f65fa895f9c67b32ce1baf0b0d8a43505a000a1a9e090d414db404d"


def test_derive_signing_key_is_deterministic():
    first = derive_signing_key("secret", "20240309", "us-west-2", "ProductAdvertisingAPI")
    second = derive_signing_key("secret", "20240309", "us-west-2", "ProductAdvertisingAPI")
    assert first == second
    assert len(first) == 32


@pytest.mark.parametrize("args", [
    ("other-secret", "20240309", "us-west-2", "ProductAdvertisingAPI"),
    ("secret", "20240310", "us-west-2", "ProductAdvertisingAPI"),
    ("secret", "20240309", "eu-west-1", "ProductAdvertisingAPI"),
    ("secret", "20240309", "us-west-2", "iam"),
])
def test_derive_signing_key_changes_with_any_input(args):
    baseline = derive_signing_key("secret", "20240309", "us-west-2", "ProductAdvertisingAPI")
    assert derive_signing_key(*args) != baseline


def test_format_amz_date():
    assert format_amz_date(FIXED_NOW) == ("20240309T070503Z", "20240309")


def test_format_amz_date_converts_to_utc():
    tokyo = timezone(timedelta(hours=9))
    local = datetime(2024, 3, 9, 16, 5, 3, tzinfo=tokyo)
    assert format_amz_date(local) == ("20240309T070503Z", "20240309")


def test_canonical_request_layout():
    context = SigningContext.build(BODY, "webservices.amazon.co.jp", "us-west-2", "SearchItems", now=FIXED_NOW)
    lines = context.canonical_request.split("\n")

    assert lines[0] == "POST"
    assert lines[1] == "/paapi5/searchitems"
    assert lines[2] == ""  # empty query string
    assert lines[3:8] == [
        "content-encoding:amz-1.0",
        "content-type:application/json; charset=utf-8",
        "host:webservices.amazon.co.jp",
        "x-amz-date:20240309T070503Z",
        "x-amz-target:com.amazon.paapi5.v1.ProductAdvertisingAPIv1.SearchItems",
    ]
    assert lines[8] == ""  # canonical headers block ends with a newline
    assert lines[9] == SIGNED_HEADERS
    assert lines[10] == hashlib.sha256(BODY).hexdigest()

    header_names = [line.split(":", 1)[0] for line in lines[3:8]]
    assert header_names == sorted(header_names)
    assert ";".join(header_names) == SIGNED_HEADERS


def test_string_to_sign_and_scope():
    context = SigningContext.build(BODY, "webservices.amazon.co.jp", "us-west-2", "GetItems", now=FIXED_NOW)

    assert context.credential_scope == "20240309/us-west-2/ProductAdvertisingAPI/aws4_request"
    assert context.string_to_sign.split("\n") == [
        ALGORITHM,
        "20240309T070503Z",
        "20240309/us-west-2/ProductAdvertisingAPI/aws4_request",
        hashlib.sha256(context.canonical_request.encode("utf-8")).hexdigest(),
    ]


def test_wire_headers_match_canonical_headers():
    signed = _sign()
    canonical = signed.context.canonical_headers.strip("\n").split("\n")
    for line in canonical:
        name, value = line.split(":", 1)
        assert signed.headers[name] == value


def test_sign_request_builds_endpoint_and_authorization():
    signed = _sign(operation="GetItems")

    assert signed.url == "https://webservices.amazon.co.jp/paapi5/getitems"
    assert signed.body == BODY
    assert re.fullmatch(
        r"AWS4-HMAC-SHA256 Credential=AKIDEXAMPLE/20240309/us-west-2/ProductAdvertisingAPI/aws4_request, "
        r"SignedHeaders=content-encoding;content-type;host;x-amz-date;x-amz-target, "
        r"Signature=[0-9a-f]{64}",
        signed.headers["Authorization"],
    )


def test_sign_request_is_reproducible():
    assert _sign().headers["Authorization"] == _sign().headers["Authorization"]


@pytest.mark.parametrize("overrides", [
    {"secret_key": "another-secret"},
    {"region": "eu-west-1"},
    {"now": FIXED_NOW + timedelta(days=1)},
    {"body": BODY + b" "},
    {"host": "webservices.amazon.com"},
    {"operation": "GetItems"},
])
def test_signature_changes_with_any_input(overrides):
    baseline = _sign().headers["Authorization"].rsplit("Signature=", 1)[1]
    changed = _sign(**overrides).headers["Authorization"].rsplit("Signature=", 1)[1]
    assert changed != baseline


@pytest.mark.parametrize("overrides", [
    {"secret_key": ""},
    {"access_key": ""},
    {"region": ""},
    {"host": ""},
])
def test_sign_request_refuses_missing_inputs(overrides):
    with pytest.raises(SigningError):
        _sign(**overrides)


def test_sign_request_wraps_encoding_failures():
    """Lone surrogates cannot be UTF-8 encoded."""
    with pytest.raises(SigningError) as exc_info:
        _sign(secret_key="bad-\ud800")

    assert "bad-" not in str(exc_info.value)
