"""
Rakuten Books search agent.

Runs the search strategies as a small state machine:

    ISBN ──────────────► DONE
    AUTHOR ─found──────► DONE
    AUTHOR ─empty/fail─► KEYWORD
    KEYWORD ─found─────► DONE
    KEYWORD ─empty─────► TITLE_FALLBACK ─► DONE

Every state makes exactly one upstream call. A failure is absorbed only
where the table has an entry for it; anywhere else it propagates.
"""
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional, Tuple

from bookproxy.errors import ExternalServiceError
from bookproxy.logger import logger
from bookproxy.models.book import SearchMode, SearchOutcome, SearchRequest
from bookproxy.normalizers.rakuten import to_number
from bookproxy.services.rakuten_service import RakutenPage
from bookproxy.utils.query import is_likely_author_query, normalize_query

DEFAULT_SORT = "standard"

SearchFn = Callable[[Dict[str, str], int, int], Awaitable[RakutenPage]]


class SearchState(str, Enum):
    ISBN = "isbn"
    AUTHOR = "author"
    KEYWORD = "keyword"
    TITLE_FALLBACK = "title-fallback"
    DONE = "done"


class CallOutcome(str, Enum):
    FOUND = "found"
    EMPTY = "empty"
    FAILED = "failed"


TRANSITIONS: Dict[Tuple[SearchState, CallOutcome], SearchState] = {
    (SearchState.ISBN, CallOutcome.FOUND): SearchState.DONE,
    (SearchState.ISBN, CallOutcome.EMPTY): SearchState.DONE,
    (SearchState.AUTHOR, CallOutcome.FOUND): SearchState.DONE,
    (SearchState.AUTHOR, CallOutcome.EMPTY): SearchState.KEYWORD,
    (SearchState.AUTHOR, CallOutcome.FAILED): SearchState.KEYWORD,
    (SearchState.KEYWORD, CallOutcome.FOUND): SearchState.DONE,
    (SearchState.KEYWORD, CallOutcome.EMPTY): SearchState.TITLE_FALLBACK,
    (SearchState.TITLE_FALLBACK, CallOutcome.FOUND): SearchState.DONE,
    (SearchState.TITLE_FALLBACK, CallOutcome.EMPTY): SearchState.DONE,
}

SEARCH_MODES = {
    SearchState.ISBN: SearchMode.ISBN,
    SearchState.AUTHOR: SearchMode.AUTHOR,
    SearchState.KEYWORD: SearchMode.KEYWORD,
    SearchState.TITLE_FALLBACK: SearchMode.TITLE_FALLBACK,
}


def initial_state(request: SearchRequest, normalized_query: str) -> SearchState:
    if request.is_isbn:
        return SearchState.ISBN
    if is_likely_author_query(normalized_query):
        return SearchState.AUTHOR
    return SearchState.KEYWORD


def next_state(state: SearchState, outcome: CallOutcome) -> Optional[SearchState]:
    """Look up the transition; None means the outcome is not absorbed in this state."""
    return TRANSITIONS.get((state, outcome))


def filters_for(state: SearchState, query: str) -> Dict[str, str]:
    if state is SearchState.ISBN:
        return {"isbn": query}
    if state is SearchState.AUTHOR:
        return {"author": query, "sort": DEFAULT_SORT}
    if state is SearchState.KEYWORD:
        return {"keyword": query, "orFlag": "1", "sort": DEFAULT_SORT}
    if state is SearchState.TITLE_FALLBACK:
        return {"title": query}
    raise ValueError(f"No upstream call for state {state.value}")


class RakutenSearchAgent:
    """
    Agent for Rakuten book searches.
    Strategies run strictly one after another; the next one starts only
    after the previous call has completed.
    """

    def __init__(self, search_fn: SearchFn):
        self.search_fn = search_fn

    async def search_products(self, request: SearchRequest) -> SearchOutcome:
        query = normalize_query(request.query, isbn=request.is_isbn)
        state = initial_state(request, query)
        logger.info(f"Searching Rakuten for: '{query}' (initial strategy: {state.value})")

        last_state = state
        last_page: Optional[RakutenPage] = None

        while state is not SearchState.DONE:
            try:
                page = await self.search_fn(filters_for(state, query), request.hits, request.page)
            except ExternalServiceError as e:
                successor = next_state(state, CallOutcome.FAILED)
                if successor is None:
                    raise
                logger.warning(
                    f"{state.value} search failed, falling back to {successor.value} search: {e}",
                    extra={"context": {"strategy": state.value, "error_detail": e.detail}}
                )
                state = successor
                continue

            outcome = CallOutcome.FOUND if page.items else CallOutcome.EMPTY
            last_state, last_page = state, page
            state = next_state(state, outcome)

        return self._build_outcome(request, last_page, SEARCH_MODES[last_state])

    @staticmethod
    def _build_outcome(request: SearchRequest, page: RakutenPage, mode: SearchMode) -> SearchOutcome:
        count = to_number(page.data.get("count"))
        hits = to_number(page.data.get("hits"))
        page_number = to_number(page.data.get("page"))

        return SearchOutcome(
            items=page.items,
            count=count if count is not None else len(page.items),
            hits=hits if hits is not None else request.hits,
            page=page_number if page_number is not None else request.page,
            page_count=to_number(page.data.get("pageCount")),
            search_mode=mode,
        )
