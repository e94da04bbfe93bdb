# Request sequencing for the search session.
#  - debounce: every trigger restarts a quiet-period timer
#  - sequence numbers: only the latest dispatched request may publish
#  - failures go to the error callback, never up through the trigger

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional, Set

from facetsearch.log import get_logger

from .errors import SearchBackendError, SearchError
from .facets import FacetUniverse, merge_facet_distributions
from .types import ResultProjection, SearchFailure, SearchRequest

logger = get_logger("facetsearch.sequencer")

RequestBuilder = Callable[[], SearchRequest]
ResultCallback = Callable[[ResultProjection], None]
FailureCallback = Callable[[SearchFailure], None]


class SearchRequestSequencer:
    def __init__(
        self,
        client: Any,
        build_request: RequestBuilder,
        universe: FacetUniverse,
        on_result: ResultCallback,
        on_error: Optional[FailureCallback] = None,
        debounce_seconds: float = 0.3,
    ):
        self.client = client
        self.debounce_seconds = debounce_seconds
        self._build_request = build_request
        self._universe = universe
        self._on_result = on_result
        self._on_error = on_error

        self._sequence = 0
        self._pending: Optional[asyncio.Task] = None
        self._inflight: Set[asyncio.Task] = set()
        self._active = 0
        self._idle = asyncio.Event()
        self._idle.set()

        self.dispatched = 0
        self.discarded = 0

    @property
    def has_pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    # -------------------------
    # Debounce
    # -------------------------
    def schedule(self, trigger: str = "manual") -> None:
        """Restart the quiet period. Must be called from the event loop."""
        self._cancel_pending()
        self._pending = asyncio.get_running_loop().create_task(self._fire_after_quiet_period(trigger))
        logger.debug("Scheduled search in %.0fms (trigger=%s)", self.debounce_seconds * 1000, trigger)

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def _fire_after_quiet_period(self, trigger: str) -> None:
        try:
            await asyncio.sleep(self.debounce_seconds)
        except asyncio.CancelledError:
            return
        # Detach before dispatching so a later schedule() cannot cancel the request itself.
        self._pending = None
        task = asyncio.get_running_loop().create_task(self.dispatch(trigger))
        self._inflight.add(task)
        task.add_done_callback(self._on_dispatch_done)

    def _on_dispatch_done(self, task: asyncio.Task) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Debounced search task failed: %s", exc, exc_info=exc)

    # -------------------------
    # Dispatch
    # -------------------------
    async def dispatch(self, trigger: str = "manual") -> Optional[ResultProjection]:
        """
        Send the request for the current state right away.
        Returns the published projection, or None if the response was
        superseded or the request failed.
        """
        self._sequence += 1
        sequence = self._sequence
        self.dispatched += 1
        self._active += 1
        self._idle.clear()
        try:
            return await self._run(sequence, trigger)
        finally:
            self._active -= 1
            if not self._active:
                self._idle.set()

    async def _run(self, sequence: int, trigger: str) -> Optional[ResultProjection]:
        request = self._build_request()
        logger.debug("Dispatching search #%d (trigger=%s, filter=%s)", sequence, trigger, request.filter_expression)

        try:
            response = await asyncio.to_thread(self.client.search, request)
        except SearchError as e:
            return self._fail(sequence, e)
        except Exception as e:
            logger.exception("Unexpected error from search client (#%d)", sequence)
            return self._fail(sequence, SearchBackendError(str(e)))

        if sequence != self._sequence:
            self.discarded += 1
            logger.debug("Discarding stale response #%d (latest is #%d)", sequence, self._sequence)
            return None

        projection = ResultProjection(
            hits=tuple(response.hits),
            facet_counts=merge_facet_distributions(response.facet_distribution, self._universe.distribution),
            facet_stats=response.facet_stats,
            sequence=sequence,
            query=request.query,
        )
        self._on_result(projection)
        return projection

    def _fail(self, sequence: int, error: SearchError) -> None:
        if sequence != self._sequence:
            self.discarded += 1
            logger.debug("Ignoring failure of superseded search #%d: %s", sequence, error)
            return None
        logger.warning("Search #%d failed, keeping previous results: %s", sequence, error)
        if self._on_error is not None:
            self._on_error(SearchFailure(kind="query", error=error, sequence=sequence))
        return None

    # -------------------------
    # Lifecycle
    # -------------------------
    async def settle(self) -> None:
        """Wait until no timer is pending and no request is in flight."""
        while self.has_pending or self._inflight or self._active:
            if self.has_pending or self._inflight:
                waiting = set(self._inflight)
                if self.has_pending:
                    waiting.add(self._pending)
                await asyncio.wait(waiting)
            else:
                await self._idle.wait()

    def close(self) -> None:
        self._cancel_pending()
