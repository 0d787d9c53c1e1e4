"""
Amazon PA-API search agent.
Builds the operation payload for a search request, executes it and maps the result.
"""
from typing import Any, Dict, Tuple

from bookproxy.logger import logger
from bookproxy.models.book import MAX_ITEM_COUNT, MAX_ITEM_PAGE, PaapiOutcome, SearchRequest
from bookproxy.normalizers.paapi import RESOURCES, PaapiNormalizer
from bookproxy.services.paapi_service import PaapiService
from bookproxy.utils.query import normalize_query

SEARCH_INDEX = "Books"
PARTNER_TYPE = "Associates"


class AmazonAgent:
    """Agent for handling Amazon book lookups."""

    def __init__(self, service: PaapiService):
        self.service = service

    def build_operation(self, request: SearchRequest) -> Tuple[str, Dict[str, Any]]:
        """Choose GetItems for ISBN lookups, SearchItems otherwise."""
        common = {
            "SearchIndex": SEARCH_INDEX,
            "Resources": list(RESOURCES),
            "PartnerTag": self.service.partner_tag,
            "PartnerType": PARTNER_TYPE,
        }

        if request.is_isbn:
            return "GetItems", {
                "ItemIds": [normalize_query(request.query, isbn=True)],
                "IdType": "ISBN",
                **common,
            }

        return "SearchItems", {
            "Keywords": normalize_query(request.query),
            "ItemCount": min(request.hits, MAX_ITEM_COUNT),
            "ItemPage": min(request.page, MAX_ITEM_PAGE),
            **common,
        }

    async def search_products(self, request: SearchRequest) -> PaapiOutcome:
        operation, payload = self.build_operation(request)
        logger.info(f"Searching Amazon ({operation}) for: '{request.query}'")

        data = await self.service.execute(operation, payload)

        items = PaapiNormalizer.normalize_batch(PaapiNormalizer.extract_items(data))
        logger.info(f"Amazon {operation} returned {len(items)} items")

        return PaapiOutcome(
            items=items,
            search_type=request.search_type,
            request_id=PaapiNormalizer.extract_request_id(data),
        )
