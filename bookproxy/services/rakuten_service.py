"""
Wrapper for the Rakuten Books search API.
Includes timeout, response validation, error translation.
All network logic for the orchestration pipeline is isolated here.
"""
import aiohttp
import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from bookproxy.config import Config, config as default_config
from bookproxy.errors import ConfigError, ExternalServiceError, NetworkError
from bookproxy.logger import logger
from bookproxy.models.book import RakutenBook
from bookproxy.normalizers.rakuten import RakutenNormalizer
from bookproxy.sentry import capture_upstream_failure

RAKUTEN_BOOKS_URL = "https://app.rakuten.co.jp/services/api/BooksBook/Search/20170404"


@dataclass(frozen=True)
class RakutenPage:
    """One upstream response: the raw body plus its normalized items."""
    data: Dict[str, Any]
    items: List[RakutenBook] = field(default_factory=list)


class RakutenService:
    """
    Wrapper for Rakuten Books API calls.
    Business logic never calls Rakuten directly.
    """

    def __init__(self, cfg: Optional[Config] = None):
        cfg = cfg or default_config
        self.application_id = cfg.RAKUTEN_APPLICATION_ID
        self.base_url = RAKUTEN_BOOKS_URL
        self.timeout = cfg.REQUEST_TIMEOUT
        self.session: Optional[aiohttp.ClientSession] = None
        self.is_available = bool(self.application_id)

    async def initialize(self):
        """Initialize HTTP session (called after startup)."""
        if not self.is_available:
            logger.warning("Rakuten service not configured")
            return

        self.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout)
        )
        logger.info("Rakuten service initialized")

    async def close(self):
        """Close HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None

    def base_params(self, hits: int, page: int) -> Dict[str, str]:
        return {
            "applicationId": self.application_id,
            "format": "json",
            "formatVersion": "2",
            "hits": str(hits),
            "page": str(page),
        }

    async def search_books(self, filters: Dict[str, str], hits: int, page: int) -> RakutenPage:
        """
        Run one BooksBook/Search call.

        Args:
            filters: Search filters (isbn, author, keyword, title, sort, orFlag)
            hits: Page size
            page: Page number

        Returns:
            RakutenPage with the raw body and normalized items

        Raises:
            ConfigError: If no application id is configured
            ExternalServiceError: If Rakuten returns a non-2xx status or invalid JSON
            NetworkError: If the call fails at the transport level or times out
        """
        if not self.is_available:
            raise ConfigError("Missing Rakuten API credentials")

        if self.session is None:
            await self.initialize()

        params = self.base_params(hits, page)
        params.update(filters)

        logger.debug(f"Calling Rakuten Books API with filters {sorted(filters)}")

        try:
            response = await self.session.get(self.base_url, params=params)
            body = await response.text()
        except asyncio.TimeoutError as e:
            logger.error(f"Timeout calling Rakuten Books API after {self.timeout}s")
            raise NetworkError("Timeout calling Rakuten Books API", status_code=504) from e
        except aiohttp.ClientError as e:
            logger.error(f"Network error calling Rakuten Books API: {e}")
            raise NetworkError(f"Network error calling Rakuten Books API: {e}") from e

        if not 200 <= response.status < 300:
            logger.error(f"Rakuten Books API error {response.status}: {body[:200]}")
            capture_upstream_failure("rakuten", response.status, body[:200])
            raise ExternalServiceError(
                f"Rakuten Books API returned status {response.status}",
                detail=body[:500]
            )

        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON response from Rakuten Books API: {e}")
            raise ExternalServiceError("Invalid JSON response from Rakuten Books API", detail=body[:500]) from e

        if not isinstance(data, dict):
            logger.warning(f"Unexpected response format: {type(data).__name__}")
            data = {}

        items = RakutenNormalizer.normalize_batch(data)
        logger.info(f"Rakuten Books API returned {len(items)} items for filters {sorted(filters)}")
        return RakutenPage(data=data, items=items)
