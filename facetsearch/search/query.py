# Compile free text, hybrid settings and filter selections into a SearchRequest.
# Everything here is pure: no I/O, no validation of ratio or embedder.

from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from .filters import FilterSelectionState
from .types import ALL_FACETS, ATTRIBUTES_TO_RETRIEVE, FacetDimension, SearchRequest

FilterSpec = Sequence[Tuple[str, Sequence[str]]]


def quote_filter_value(value: str) -> str:
    """
    Render a facet value as a double-quoted filter literal.
    Double quotes are escaped so a value cannot close the literal early and
    smuggle in filter syntax. The backend unescapes only the quote, so
    backslashes are left as they are.
    """
    escaped = value.replace('"', '\\"')
    return f'"{escaped}"'


def build_filter_clause(dimension: str, values: Iterable[str]) -> Optional[str]:
    """One clause per dimension: equality for one value, IN [...] for several."""
    vals = list(values)
    if not vals:
        return None
    if len(vals) == 1:
        return f"{dimension} = {quote_filter_value(vals[0])}"
    return f"{dimension} IN [{', '.join(quote_filter_value(v) for v in vals)}]"


def build_filter_clauses(filters: FilterSpec) -> List[str]:
    """Clauses are separate list entries; the backend ANDs them."""
    clauses = []
    for dimension, values in filters:
        clause = build_filter_clause(dimension, values)
        if clause is not None:
            clauses.append(clause)
    return clauses


def normalize_filters(selection: FilterSelectionState | FilterSpec | Mapping | None) -> Tuple[Tuple[str, Tuple[str, ...]], ...]:
    if selection is None:
        return ()
    if isinstance(selection, FilterSelectionState):
        return selection.snapshot()
    if isinstance(selection, Mapping):
        selection = list(selection.items())
    by_dim = {FacetDimension.coerce(dim): set(values) for dim, values in selection}
    return tuple(
        (dim.value, tuple(sorted(by_dim[dim])))
        for dim in FacetDimension
        if by_dim.get(dim)
    )


def build_search_request(
    query: str,
    semantic_ratio: float,
    embedder: str,
    selection: FilterSelectionState | FilterSpec | Mapping | None = None,
    limit: Optional[int] = None,
) -> SearchRequest:
    return SearchRequest(
        query=query,
        semantic_ratio=semantic_ratio,
        embedder=embedder,
        filters=normalize_filters(selection),
        facets=ALL_FACETS,
        attributes_to_retrieve=ATTRIBUTES_TO_RETRIEVE,
        limit=limit,
    )


def build_universe_request() -> SearchRequest:
    """Empty query, no filters, every facet, zero documents."""
    return SearchRequest(
        query="",
        facets=ALL_FACETS,
        attributes_to_retrieve=(),
        limit=0,
    )
