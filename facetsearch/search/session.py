# One search session: selection, free text, hybrid settings, universe,
# sequencer and the latest projection. Every state change funnels into
# recompute(trigger).

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from facetsearch.log import get_logger

from .facets import FacetUniverse
from .filters import FilterSelectionState
from .query import build_search_request
from .sequencer import SearchRequestSequencer
from .types import EMBEDDERS, FacetDimension, FacetOption, ResultProjection, SearchFailure, SearchRequest

logger = get_logger("facetsearch.session")


class SearchSession:
    def __init__(
        self,
        client: Any,
        embedder: str = "default",
        semantic_ratio: float = 1.0,
        debounce_seconds: float = 0.3,
        limit: Optional[int] = None,
        owns_client: bool = True,
    ):
        self.client = client
        self.limit = limit
        self.owns_client = owns_client
        self._query = ""
        self._embedder = self._check_embedder(embedder)
        self._semantic_ratio = self._check_ratio(semantic_ratio)

        self.universe = FacetUniverse()
        self.selection = FilterSelectionState(on_change=self.recompute)
        self.sequencer = SearchRequestSequencer(
            client=client,
            build_request=self.build_request,
            universe=self.universe,
            on_result=self._publish,
            on_error=self._report,
            debounce_seconds=debounce_seconds,
        )

        self._projection = ResultProjection()
        self.last_error: Optional[SearchFailure] = None
        self._result_listeners: List[Callable[[ResultProjection], None]] = []
        self._error_listeners: List[Callable[[SearchFailure], None]] = []

    # -------------------------
    # Lifecycle
    # -------------------------
    async def start(self) -> None:
        """Load the facet universe, then schedule the first search."""
        failure = await self.universe.load(self.client)
        if failure is not None:
            self._report(failure)
        logger.info("Search session started (embedder=%s, ratio=%.1f)", self._embedder, self._semantic_ratio)
        self.recompute("universe")

    async def settle(self) -> None:
        await self.sequencer.settle()

    def close(self) -> None:
        self.sequencer.close()
        if not self.owns_client:
            return
        close = getattr(self.client, "close", None)
        if callable(close):
            close()

    async def shutdown(self) -> None:
        """Drop the pending trigger, let in-flight requests land, then close."""
        self.sequencer.close()
        await self.sequencer.settle()
        self.close()

    # -------------------------
    # Change bus
    # -------------------------
    def recompute(self, trigger: str) -> None:
        self.sequencer.schedule(trigger)

    def build_request(self) -> SearchRequest:
        return build_search_request(
            query=self._query,
            semantic_ratio=self._semantic_ratio,
            embedder=self._embedder,
            selection=self.selection,
            limit=self.limit,
        )

    def subscribe(
        self,
        on_result: Optional[Callable[[ResultProjection], None]] = None,
        on_error: Optional[Callable[[SearchFailure], None]] = None,
    ) -> None:
        if on_result is not None:
            self._result_listeners.append(on_result)
        if on_error is not None:
            self._error_listeners.append(on_error)

    def _publish(self, projection: ResultProjection) -> None:
        self._projection = projection
        self.last_error = None
        for listener in list(self._result_listeners):
            try:
                listener(projection)
            except Exception:
                logger.exception("Result subscriber %r failed on #%d", listener, projection.sequence)

    def _report(self, failure: SearchFailure) -> None:
        self.last_error = failure
        for listener in list(self._error_listeners):
            try:
                listener(failure)
            except Exception:
                logger.exception("Error subscriber %r failed on %s failure", listener, failure.kind)

    # -------------------------
    # Accessors
    # -------------------------
    @property
    def projection(self) -> ResultProjection:
        return self._projection

    @property
    def query(self) -> str:
        return self._query

    @query.setter
    def query(self, value: str) -> None:
        self._query = value
        self.recompute("query")

    @property
    def embedder(self) -> str:
        return self._embedder

    @embedder.setter
    def embedder(self, value: str) -> None:
        self._embedder = self._check_embedder(value)
        self.recompute("embedder")

    @property
    def semantic_ratio(self) -> float:
        return self._semantic_ratio

    @semantic_ratio.setter
    def semantic_ratio(self, value: float) -> None:
        self._semantic_ratio = self._check_ratio(value)
        self.recompute("semantic_ratio")

    def toggle(self, dimension: FacetDimension | str, value: str, selected: bool) -> None:
        self.selection.toggle(dimension, value, selected)

    def clear(self, dimension: FacetDimension | str) -> None:
        self.selection.clear(dimension)

    def clear_all(self) -> None:
        self.selection.clear_all()

    def facet_options(self, dimension: FacetDimension | str) -> List[FacetOption]:
        return self._projection.facet_options(dimension, self.selection.selected(dimension))

    def state(self) -> Dict[str, Any]:
        return {
            "query": self._query,
            "embedder": self._embedder,
            "semantic_ratio": self._semantic_ratio,
            "filters": self.selection.as_dict(),
        }

    # -------------------------
    # Validation (UI-side concerns)
    # -------------------------
    @staticmethod
    def _check_embedder(value: str) -> str:
        if value not in EMBEDDERS:
            raise ValueError(f"Unknown embedder {value!r}; expected one of {', '.join(EMBEDDERS)}")
        return value

    @staticmethod
    def _check_ratio(value: float) -> float:
        ratio = float(value)
        if not 0.0 <= ratio <= 1.0:
            raise ValueError(f"Semantic ratio must be within [0, 1], got {value}")
        return round(ratio, 1)
