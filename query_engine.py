"""
Query engine: filter, tally facets, sort, and paginate the in-memory catalog.

Everything here is a pure function of (items, state). Nothing is cached.
"""
import math
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from config import DAYS_PER_YEAR, RECENCY_WINDOW_YEARS
from data_models import FACET_DIMENSIONS, LABEL_FIELDS, ContentItem, QueryState

SECONDS_PER_YEAR = DAYS_PER_YEAR * 24 * 60 * 60


@dataclass
class QueryResult:
    """Read-only views derived from one catalog and one query state"""
    filtered: List[ContentItem]
    facets: Dict[str, Dict[str, int]]
    sorted_items: List[ContentItem]
    page_items: List[ContentItem]
    total: int
    page: int
    page_count: int
    page_size: int


# ========================================
# Filtering
# ========================================

def matches_text(item: ContentItem, term: str) -> bool:
    if not term:
        return True
    return term.lower() in item.search_text().lower()


def facet_values(item: ContentItem, dimension: str) -> Sequence[str]:
    """Labels an item exhibits for a facet dimension."""
    if dimension == 'type':
        return (item.content_type or 'content',)
    if dimension == 'stage':
        return (item.funnel_stage,)
    if dimension == 'year':
        return (item.year,)
    return item.labels(dimension)


def passes_filters(item: ContentItem, state: QueryState) -> bool:
    """True when the item satisfies the term and every active facet selection.

    Type, stage and year match any selected value; label facets need all of them.
    """
    if not matches_text(item, state.trimmed_term):
        return False
    if state.type and item.content_type not in state.type:
        return False
    for dimension in LABEL_FIELDS:
        selected = state.selected(dimension)
        if selected:
            labels = item.labels(dimension)
            if not all(value in labels for value in selected):
                return False
    if state.stage and item.funnel_stage not in state.stage:
        return False
    if state.year and (not item.year or item.year not in state.year):
        return False
    return True


def filter_items(items: Iterable[ContentItem], state: QueryState) -> List[ContentItem]:
    return [item for item in items if passes_filters(item, state)]


# ========================================
# Facet tally
# ========================================

def tally_facets(filtered: Iterable[ContentItem]) -> Dict[str, Dict[str, int]]:
    """Count labels per dimension over the filtered set.

    A dimension's own selection is not excluded, so selecting a value never
    changes its own count.
    """
    counters = {dimension: Counter() for dimension in FACET_DIMENSIONS}
    for item in filtered:
        for dimension in FACET_DIMENSIONS:
            counters[dimension].update(facet_values(item, dimension))
    return {dimension: dict(counter) for dimension, counter in counters.items()}


# ========================================
# Sorting
# ========================================

def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def age_in_years(item: ContentItem, now: Optional[datetime] = None) -> float:
    return (_now(now).timestamp() - item.release_timestamp) / SECONDS_PER_YEAR


def relevance_score(item: ContentItem, term: str, now: Optional[datetime] = None) -> float:
    """Keyword hits plus a small recency bonus.

    Per token: +5 in the title, +2 in the summary, +1 anywhere in the
    searchable text. The three checks add up independently.
    """
    title = item.title.lower()
    summary = item.summary.lower()
    text = item.search_text().lower()

    score = 0.0
    for token in term.lower().split():
        if token in title:
            score += 5
        if token in summary:
            score += 2
        if token in text:
            score += 1
    score += max(0.0, RECENCY_WINDOW_YEARS - age_in_years(item, now))
    return score


def sort_items(
    filtered: Iterable[ContentItem],
    sort: str,
    term: str = '',
    now: Optional[datetime] = None,
) -> List[ContentItem]:
    """Order the filtered set for a sort mode; relevance without a term means newest"""
    items = list(filtered)
    term = term.strip()

    if sort == 'oldest':
        return sorted(items, key=lambda item: item.release_timestamp)
    if sort == 'shortest':
        return sorted(items, key=lambda item: (item.sort_read_time, -item.release_timestamp))
    if sort == 'longest':
        return sorted(items, key=lambda item: (-item.sort_read_time, -item.release_timestamp))
    if sort == 'relevance' and term:
        now = _now(now)
        scores = {id(item): relevance_score(item, term, now) for item in items}
        return sorted(items, key=lambda item: scores[id(item)], reverse=True)
    return sorted(items, key=lambda item: item.release_timestamp, reverse=True)


# ========================================
# Pagination
# ========================================

def page_count(total: int, page_size: int) -> int:
    return max(1, math.ceil(total / page_size))


def clamp_page(page: int, pages: int) -> int:
    return max(1, min(pages, page))


def paginate(sorted_items: Sequence[ContentItem], page: int, page_size: int):
    """Return (page_items, page, page_count) with the page clamped into range."""
    pages = page_count(len(sorted_items), page_size)
    page = clamp_page(page, pages)
    start = (page - 1) * page_size
    return list(sorted_items[start:start + page_size]), page, pages


# ========================================
# Pipeline
# ========================================

def run_query(
    items: Iterable[ContentItem],
    state: QueryState,
    now: Optional[datetime] = None,
) -> QueryResult:
    """catalog x state -> filtered set, facet counts, sorted list, and page slice"""
    filtered = filter_items(items, state)
    facets = tally_facets(filtered)
    ordered = sort_items(filtered, state.sort, state.trimmed_term, now)
    page_items, page, pages = paginate(ordered, state.page, state.page_size)
    return QueryResult(
        filtered=filtered,
        facets=facets,
        sorted_items=ordered,
        page_items=page_items,
        total=len(ordered),
        page=page,
        page_count=pages,
        page_size=state.page_size,
    )
