"""
Wrapper for the Amazon Product Advertising API 5.
Signs, sends and validates one request; translates failures into domain errors.
All network logic for the signed pipeline is isolated here.
"""
import aiohttp
import asyncio
import json
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from bookproxy.config import Config, config as default_config
from bookproxy.errors import ConfigError, ExternalServiceError, NetworkError
from bookproxy.logger import logger
from bookproxy.normalizers.paapi import PaapiNormalizer
from bookproxy.sentry import capture_upstream_failure
from bookproxy.utils.signing import sign_request


class PaapiService:
    """
    Wrapper for PA-API calls.
    Business logic never calls Amazon directly.
    """

    def __init__(self, cfg: Optional[Config] = None, clock: Optional[Callable[[], datetime]] = None):
        cfg = cfg or default_config
        self.access_key = cfg.PAAPI_ACCESS_KEY
        self.secret_key = cfg.PAAPI_SECRET_KEY
        self.partner_tag = cfg.PAAPI_PARTNER_TAG
        self.region = cfg.PAAPI_REGION
        self.host = cfg.PAAPI_HOST
        self.timeout = cfg.REQUEST_TIMEOUT
        self.clock = clock
        self.session: Optional[aiohttp.ClientSession] = None
        self.is_available = cfg.has_paapi_credentials

    def __repr__(self) -> str:
        return f"PaapiService(host={self.host!r}, region={self.region!r}, available={self.is_available})"

    async def initialize(self):
        """Initialize HTTP session (called after startup)."""
        if not self.is_available:
            logger.warning("PA-API service not configured")
            return

        self.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout)
        )
        logger.info(f"PA-API service initialized for host: {self.host}")

    async def close(self):
        """Close HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None

    @staticmethod
    def serialize(payload: Dict[str, Any]) -> bytes:
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")

    async def execute(self, operation: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Sign and send one PA-API operation.

        Args:
            operation: SearchItems or GetItems
            payload: Request body (without credentials)

        Returns:
            Decoded response body

        Raises:
            ConfigError: If credentials are missing
            SigningError: If the request cannot be signed
            ExternalServiceError: If PA-API answers with a non-2xx status (status mirrored)
            NetworkError: If the call fails at the transport level or times out
        """
        if not self.is_available:
            raise ConfigError("Missing Amazon PA-API credentials")

        if self.session is None:
            await self.initialize()

        body = self.serialize(payload)
        signed = sign_request(
            body,
            host=self.host,
            region=self.region,
            operation=operation,
            access_key=self.access_key,
            secret_key=self.secret_key,
            now=self.clock() if self.clock else None,
        )

        logger.debug(f"Sending PA-API {operation} request to {signed.url}")

        try:
            response = await self.session.post(signed.url, data=signed.body, headers=signed.headers)
            text = await response.text()
        except asyncio.TimeoutError as e:
            logger.error(f"Timeout calling PA-API {operation} after {self.timeout}s")
            raise NetworkError(f"Timeout calling PA-API {operation}", status_code=504) from e
        except aiohttp.ClientError as e:
            logger.error(f"Network error calling PA-API {operation}: {e}")
            raise NetworkError(f"Network error calling PA-API {operation}: {e}") from e

        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            data = None

        if not 200 <= response.status < 300:
            message = PaapiNormalizer.extract_error_message(data) or f"Amazon PA-API error: {response.status}"
            logger.error(f"PA-API {operation} error {response.status}: {message}")
            capture_upstream_failure("paapi", response.status, message)
            raise ExternalServiceError(message, status_code=response.status, detail=text[:500])

        if not isinstance(data, dict):
            logger.error(f"Invalid JSON response from PA-API {operation}")
            raise ExternalServiceError(f"Invalid JSON response from PA-API {operation}", detail=text[:500])

        return data
