"""
Query state reducer: (state, action) -> state, plus conversions to and from request data.
"""
from dataclasses import asdict, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

from config import PAGE_SIZE_OPTIONS
from data_models import FACET_DIMENSIONS, SORT_MODES, QueryState


class InvalidActionError(ValueError):
    """Raised for actions or state values the reducer can't apply"""


def _check_dimension(dimension: Any) -> str:
    if dimension not in FACET_DIMENSIONS:
        raise InvalidActionError(f"Unknown facet dimension: {dimension!r}")
    return dimension


def _check_sort(sort: Any) -> str:
    if sort not in SORT_MODES:
        raise InvalidActionError(f"Unknown sort mode: {sort!r}")
    return sort


def _to_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise InvalidActionError(f"{name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidActionError(f"{name} must be an integer, got {value!r}")


def _check_page_size(value: Any) -> int:
    page_size = _to_int(value, 'page_size')
    if page_size not in PAGE_SIZE_OPTIONS:
        raise InvalidActionError(f"page_size must be one of {list(PAGE_SIZE_OPTIONS)}")
    return page_size


def _toggled(selected: Tuple[str, ...], value: str) -> Tuple[str, ...]:
    if value in selected:
        return tuple(v for v in selected if v != value)
    return selected + (value,)


def reduce(state: QueryState, action: Mapping[str, Any]) -> QueryState:
    """Apply one UI action and return the next state.

    Term, facet and page-size changes go back to page 1. The page itself is
    clamped later, once the result count is known.
    """
    action_type = action.get('type')

    if action_type == 'set_term':
        return replace(state, term=str(action.get('value') or ''), page=1)

    if action_type == 'toggle_facet':
        dimension = _check_dimension(action.get('dimension'))
        value = action.get('value')
        if value is None or value == '':
            raise InvalidActionError("toggle_facet needs a value")
        selected = _toggled(state.selected(dimension), str(value))
        return replace(state, **{dimension: selected, 'page': 1})

    if action_type == 'clear_facet':
        dimension = _check_dimension(action.get('dimension'))
        return replace(state, **{dimension: (), 'page': 1})

    if action_type == 'set_sort':
        return replace(state, sort=_check_sort(action.get('value')))

    if action_type == 'set_page_size':
        return replace(state, page_size=_check_page_size(action.get('value')), page=1)

    if action_type == 'set_page':
        return replace(state, page=max(1, _to_int(action.get('value'), 'page')))

    if action_type == 'next_page':
        return replace(state, page=state.page + 1)

    if action_type == 'prev_page':
        return replace(state, page=max(1, state.page - 1))

    if action_type == 'reset':
        return QueryState(page_size=state.page_size)

    raise InvalidActionError(f"Unknown action type: {action_type!r}")


def with_page(state: QueryState, page: int) -> QueryState:
    """Pin the state to the page the engine actually served."""
    if page == state.page:
        return state
    return replace(state, page=page)


def active_chips(state: QueryState) -> List[Dict[str, str]]:
    """Active selections in facet order; removing one is a toggle_facet action."""
    return [
        {'dimension': dimension, 'value': value}
        for dimension in FACET_DIMENSIONS
        for value in state.selected(dimension)
    ]


def _values(raw: Any, dimension: str) -> Tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        raw = [raw]
    elif not isinstance(raw, (list, tuple)):
        raise InvalidActionError(f"{dimension} must be a string or a list of strings")
    values = []
    for entry in raw:
        value = str(entry).strip()
        if value and value not in values:
            values.append(value)
    return tuple(values)


def state_from_dict(data: Optional[Mapping[str, Any]]) -> QueryState:
    """Build a state from a JSON object; missing keys take their defaults"""
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise InvalidActionError("State must be a JSON object")
    state = QueryState()
    fields: Dict[str, Any] = {
        dimension: _values(data.get(dimension), dimension) for dimension in FACET_DIMENSIONS
    }
    fields['term'] = str(data.get('term') or data.get('q') or '')
    fields['sort'] = _check_sort(data.get('sort') or state.sort)
    fields['page'] = max(1, _to_int(data.get('page', state.page), 'page'))
    fields['page_size'] = _check_page_size(data.get('page_size', state.page_size))
    return QueryState(**fields)


def state_from_args(args) -> QueryState:
    """Build a state from request arguments (repeated or comma-separated facets)."""
    data: Dict[str, Any] = {}
    for key in ('term', 'q', 'sort', 'page', 'page_size'):
        if key in args:
            data[key] = args.get(key)
    for dimension in FACET_DIMENSIONS:
        if dimension in args:
            data[dimension] = [
                value for entry in args.getlist(dimension) for value in entry.split(',')
            ]
    return state_from_dict(data)


def state_to_dict(state: QueryState) -> Dict[str, Any]:
    data = asdict(state)
    for dimension in FACET_DIMENSIONS:
        data[dimension] = list(data[dimension])
    return data

