# Facet reconciliation: keep every known facet value visible, even at zero.
#  - FacetUniverse: all values seen with an empty query, loaded once per session
#  - merge_facet_distributions: live counts laid over the universe

from __future__ import annotations

import asyncio
from typing import Any, Optional

from facetsearch.log import get_logger

from .errors import SearchBackendError, SearchError
from .query import build_universe_request
from .types import FacetDistribution, SearchFailure

logger = get_logger("facetsearch.facets")


def merge_facet_distributions(live: FacetDistribution, universe: FacetDistribution) -> FacetDistribution:
    """
    Union of dimensions and values from both inputs.
    Count comes from `live` when present there, otherwise 0.
    """
    merged: FacetDistribution = {}
    for dim in {**dict.fromkeys(live), **dict.fromkeys(universe)}:
        live_values = live.get(dim) or {}
        all_values = {**dict.fromkeys(live_values), **dict.fromkeys(universe.get(dim) or {})}
        merged[dim] = {value: live_values.get(value) or 0 for value in all_values}
    return merged


class FacetUniverse:
    """Every facet value obtainable with no query and no filters."""

    def __init__(self, distribution: Optional[FacetDistribution] = None):
        self._distribution: FacetDistribution = distribution or {}
        self._loaded = distribution is not None
        self.error: Optional[SearchFailure] = None

    @property
    def distribution(self) -> FacetDistribution:
        return self._distribution

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def load(self, client: Any) -> Optional[SearchFailure]:
        """
        Fetch the universe once. A failure leaves it empty and is returned
        (and kept on `.error`) instead of raised.
        """
        if self._loaded:
            return None
        self._loaded = True
        try:
            response = await asyncio.to_thread(client.search, build_universe_request())
        except SearchError as e:
            self.error = SearchFailure(kind="universe", error=e)
        except Exception as e:
            logger.exception("Unexpected error while loading facet universe")
            self.error = SearchFailure(kind="universe", error=SearchBackendError(str(e)))
        else:
            self._distribution = response.facet_distribution
            logger.info(
                "Facet universe loaded: %s",
                ", ".join(f"{dim}={len(vals)}" for dim, vals in self._distribution.items()) or "(empty)",
            )
            return None

        logger.warning("Facet universe unavailable, showing live facet values only: %s", self.error.message)
        return self.error
