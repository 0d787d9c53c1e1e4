"""
AWS Signature Version 4 signing for the Product Advertising API.

The signing key is derived by a four-stage HMAC-SHA256 chain:

    kDate    = HMAC("AWS4" + secret, date_stamp)
    kRegion  = HMAC(kDate, region)
    kService = HMAC(kRegion, service)
    kSigning = HMAC(kService, "aws4_request")

and the final signature is HMAC_HEX(kSigning, string_to_sign), where the
string to sign binds the timestamp, credential scope and a hash of the
canonical request.
"""
import hashlib
import hmac
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple, Union

from bookproxy.errors import SigningError

ALGORITHM = "AWS4-HMAC-SHA256"
SERVICE = "ProductAdvertisingAPI"
TERMINATOR = "aws4_request"
API_PREFIX = "paapi5"
TARGET_PREFIX = "com.amazon.paapi5.v1.ProductAdvertisingAPIv1"
CONTENT_ENCODING = "amz-1.0"
CONTENT_TYPE = "application/json; charset=utf-8"
SIGNED_HEADERS = "content-encoding;content-type;host;x-amz-date;x-amz-target"


def sha256_hex(data: Union[str, bytes]) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def hmac_sha256(key: bytes, message: str) -> bytes:
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()


def derive_signing_key(secret_key: str, date_stamp: str, region: str, service: str = SERVICE) -> bytes:
    """Run the HMAC chain; each stage's digest keys the next stage."""
    k_date = hmac_sha256(("AWS4" + secret_key).encode("utf-8"), date_stamp)
    k_region = hmac_sha256(k_date, region)
    k_service = hmac_sha256(k_region, service)
    return hmac_sha256(k_service, TERMINATOR)


def format_amz_date(now: datetime) -> Tuple[str, str]:
    """Return (amz_date, date_stamp), e.g. ("20240131T235959Z", "20240131")."""
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime("%Y%m%dT%H%M%SZ"), now.strftime("%Y%m%d")


@dataclass(frozen=True)
class SigningContext:
    """Everything derived from one request that goes into its signature."""
    operation: str
    host: str
    region: str
    amz_date: str
    date_stamp: str
    canonical_uri: str
    canonical_headers: str
    payload_hash: str
    signed_headers: str = SIGNED_HEADERS
    service: str = SERVICE

    @classmethod
    def build(cls, body: bytes, host: str, region: str, operation: str,
              now: Optional[datetime] = None) -> "SigningContext":
        amz_date, date_stamp = format_amz_date(now or datetime.now(timezone.utc))
        canonical_headers = (
            f"content-encoding:{CONTENT_ENCODING}\n"
            f"content-type:{CONTENT_TYPE}\n"
            f"host:{host}\n"
            f"x-amz-date:{amz_date}\n"
            f"x-amz-target:{TARGET_PREFIX}.{operation}\n"
        )
        return cls(
            operation=operation,
            host=host,
            region=region,
            amz_date=amz_date,
            date_stamp=date_stamp,
            canonical_uri=f"/{API_PREFIX}/{operation.lower()}",
            canonical_headers=canonical_headers,
            payload_hash=sha256_hex(body),
        )

    @property
    def target(self) -> str:
        return f"{TARGET_PREFIX}.{self.operation}"

    @property
    def credential_scope(self) -> str:
        return f"{self.date_stamp}/{self.region}/{self.service}/{TERMINATOR}"

    @property
    def canonical_request(self) -> str:
        # Empty line stands in for the (unused) query string
        return "\n".join([
            "POST",
            self.canonical_uri,
            "",
            self.canonical_headers,
            self.signed_headers,
            self.payload_hash,
        ])

    @property
    def string_to_sign(self) -> str:
        return "\n".join([
            ALGORITHM,
            self.amz_date,
            self.credential_scope,
            sha256_hex(self.canonical_request),
        ])

    def wire_headers(self) -> Dict[str, str]:
        """Headers sent with the request; must match canonical_headers byte for byte."""
        return {
            "content-encoding": CONTENT_ENCODING,
            "content-type": CONTENT_TYPE,
            "host": self.host,
            "x-amz-date": self.amz_date,
            "x-amz-target": self.target,
        }


@dataclass(frozen=True)
class SignedRequest:
    url: str
    headers: Dict[str, str]
    body: bytes
    context: SigningContext


def sign_request(body: bytes, host: str, region: str, operation: str,
                 access_key: str, secret_key: str,
                 now: Optional[datetime] = None) -> SignedRequest:
    """
    Sign a PA-API request body.

    Args:
        body: Serialized JSON payload, exactly as it will be sent
        host: PA-API host, e.g. webservices.amazon.co.jp
        region: Signing region, e.g. us-west-2
        operation: PA-API operation name (SearchItems, GetItems)
        access_key: Access key id placed in the credential
        secret_key: Secret used to derive the signing key
        now: Signing time, defaults to the current UTC time

    Returns:
        SignedRequest with the endpoint, headers (including Authorization) and body

    Raises:
        SigningError: If any input is missing or a cryptographic step fails
    """
    if not secret_key or not access_key:
        raise SigningError("Cannot sign request without PA-API credentials")
    if not host or not region or not operation:
        raise SigningError("Cannot sign request without host, region and operation")

    try:
        context = SigningContext.build(body, host, region, operation, now=now)
        signing_key = derive_signing_key(secret_key, context.date_stamp, region, context.service)
        signature = hmac.new(
            signing_key, context.string_to_sign.encode("utf-8"), hashlib.sha256
        ).hexdigest()
    except (TypeError, ValueError) as e:
        raise SigningError(f"Failed to sign PA-API request: {type(e).__name__}") from e

    authorization = (
        f"{ALGORITHM} Credential={access_key}/{context.credential_scope}, "
        f"SignedHeaders={context.signed_headers}, Signature={signature}"
    )

    headers = context.wire_headers()
    headers["Authorization"] = authorization

    return SignedRequest(
        url=f"https://{host}{context.canonical_uri}",
        headers=headers,
        body=body,
        context=context,
    )
