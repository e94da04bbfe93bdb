# Makes the folder importable as a package.
# Exports the session, its building blocks and the backend clients.

from .client import MeiliSearchClient
from .errors import SearchBackendError, SearchError
from .facets import FacetUniverse, merge_facet_distributions
from .filters import FilterSelectionState
from .memory_client import InMemorySearchClient
from .query import build_search_request, build_universe_request, quote_filter_value
from .sequencer import SearchRequestSequencer
from .session import SearchSession
from .types import (
    EMBEDDERS,
    FacetDimension,
    FacetOption,
    ResultProjection,
    SearchFailure,
    SearchRequest,
    SearchResponse,
)

__all__ = [
    "MeiliSearchClient",
    "InMemorySearchClient",
    "SearchError",
    "SearchBackendError",
    "FacetUniverse",
    "merge_facet_distributions",
    "FilterSelectionState",
    "build_search_request",
    "build_universe_request",
    "quote_filter_value",
    "SearchRequestSequencer",
    "SearchSession",
    "EMBEDDERS",
    "FacetDimension",
    "FacetOption",
    "ResultProjection",
    "SearchFailure",
    "SearchRequest",
    "SearchResponse",
]
