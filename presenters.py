"""
View models for the library page: facet panels, result cards, and the pager.
"""
from typing import Any, Dict, List, Optional

from data_models import ContentItem, QueryState
from query_engine import QueryResult
from query_state import active_chips, state_to_dict

FACET_TITLES = {
    'type': 'Type',
    'industries': 'Industries',
    'personas': 'Personas',
    'topics': 'Topics',
    'tags': 'Tags',
    'year': 'Year',
    'stage': 'Funnel Stage',
}

# Panel order on the page differs from the filter order: year comes before stage
FACET_PANEL_ORDER = ('type', 'industries', 'personas', 'topics', 'tags', 'year', 'stage')


def format_date(item: ContentItem) -> str:
    if item.released_at is None:
        return item.release_date
    released = item.released_at
    return f"{released:%b} {released.day}, {released.year}"


def media_for(item: ContentItem) -> Dict[str, Any]:
    if item.is_video:
        return {'kind': 'video', 'src': item.file_url, 'poster': item.cover_url}
    if item.cover_url:
        return {'kind': 'image', 'src': item.cover_url}
    return {'kind': 'none'}


def present_card(item: ContentItem) -> Dict[str, Any]:
    """Everything a result card shows, already formatted"""
    return {
        'id': item.id,
        'title': item.title,
        'summary': item.summary,
        'date': format_date(item),
        'duration': f"{item.display_minutes} min",
        'version': f"v{item.version}",
        'content_type': item.content_type,
        'topics': list(item.topics[:3]),
        'media': media_for(item),
        'cta': {
            'label': 'Open Video' if item.is_video else 'View PDF',
            'href': item.file_url,
        },
    }


def present_facet(dimension: str, counts: Dict[str, int], selected) -> Dict[str, Any]:
    """One facet panel, most common labels first, ties alphabetical."""
    entries = sorted(counts.items(), key=lambda entry: (-entry[1], entry[0]))
    return {
        'dimension': dimension,
        'title': FACET_TITLES[dimension],
        'values': [
            {'label': label, 'count': count, 'selected': label in selected}
            for label, count in entries
        ],
    }


def present_pager(result: QueryResult) -> Dict[str, Any]:
    return {
        'page': result.page,
        'page_count': result.page_count,
        'page_size': result.page_size,
        'visible': result.page_count > 1,
        'prev_enabled': result.page > 1,
        'next_enabled': result.page < result.page_count,
        'label': f"Page {result.page} of {result.page_count}",
    }


def present_result(
    result: QueryResult,
    state: QueryState,
    warning: Optional[str] = None,
    loading: bool = False,
) -> Dict[str, Any]:
    """Full payload for one render of the library page"""
    facets: List[Dict[str, Any]] = [
        present_facet(dimension, result.facets.get(dimension, {}), state.selected(dimension))
        for dimension in FACET_PANEL_ORDER
    ]
    return {
        'state': state_to_dict(state),
        'total': result.total,
        'facets': facets,
        'chips': active_chips(state),
        'cards': [present_card(item) for item in result.page_items],
        'pager': present_pager(result),
        'warning': warning,
        'loading': loading,
    }
