# In-memory search backend for local dev and tests without a Meilisearch server.
# Same interface as MeiliSearchClient: search(request) -> SearchResponse.
#  - text: every query term must appear somewhere in the record (case-insensitive)
#  - filters: OR within a dimension, AND across dimensions; dotted paths walk arrays
#  - facets: per-document counts over the matching records
# The hybrid block is accepted and ignored; there are no embeddings here.

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Set

import yaml

from .types import FacetDistribution, ProfessionalRecord, SearchRequest, SearchResponse

DEFAULT_LIMIT = 20

_WORD = re.compile(r"[0-9A-Za-z_]+")


def values_at(record: Any, path: str) -> Iterator[str]:
    """Yield the scalar values found at a dotted path, flattening arrays."""
    head, _, rest = path.partition(".")
    node = record.get(head) if isinstance(record, dict) else None
    if node is None:
        return
    items = node if isinstance(node, list) else [node]
    for item in items:
        if rest:
            yield from values_at(item, rest)
        elif item is not None and not isinstance(item, (dict, list)):
            yield str(item)


def _text_of(node: Any) -> Iterator[str]:
    if isinstance(node, dict):
        for v in node.values():
            yield from _text_of(v)
    elif isinstance(node, list):
        for v in node:
            yield from _text_of(v)
    elif node is not None:
        yield str(node)


class InMemorySearchClient:
    def __init__(self, records: Sequence[ProfessionalRecord]):
        self.records: List[ProfessionalRecord] = list(records)
        self.requests: List[SearchRequest] = []

    @classmethod
    def from_yaml(cls, path: str | Path) -> "InMemorySearchClient":
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"Seed data not found at {p}")
        with open(p, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        records = data.get("professionals", []) if isinstance(data, dict) else data
        return cls(records)

    # -------------------------
    # Matching
    # -------------------------
    @staticmethod
    def _matches_text(record: ProfessionalRecord, terms: List[str]) -> bool:
        if not terms:
            return True
        haystack = set(_WORD.findall(" ".join(_text_of(record)).lower()))
        return all(t in haystack for t in terms)

    @staticmethod
    def _matches_filters(record: ProfessionalRecord, request: SearchRequest) -> bool:
        for dimension, wanted in request.filters:
            if not set(wanted) & set(values_at(record, dimension)):
                return False
        return True

    # -------------------------
    # Public API
    # -------------------------
    def search(self, request: SearchRequest) -> SearchResponse:
        self.requests.append(request)
        terms = [t.lower() for t in _WORD.findall(request.query)]
        matched = [
            r for r in self.records
            if self._matches_text(r, terms) and self._matches_filters(r, request)
        ]

        distribution: FacetDistribution = {}
        for dimension in request.facets:
            counts: Dict[str, int] = {}
            for r in matched:
                seen: Set[str] = set(values_at(r, dimension))
                for value in seen:
                    counts[value] = counts.get(value, 0) + 1
            distribution[dimension] = dict(sorted(counts.items()))

        limit = DEFAULT_LIMIT if request.limit is None else request.limit
        hits = [self._project(r, request.attributes_to_retrieve) for r in matched[:limit]]
        return SearchResponse(
            hits=hits,
            facet_distribution=distribution,
            estimated_total_hits=len(matched),
            processing_time_ms=0,
        )

    @staticmethod
    def _project(record: ProfessionalRecord, attributes: Optional[Sequence[str]]) -> ProfessionalRecord:
        if not attributes:
            return dict(record)
        return {k: record[k] for k in attributes if k in record}
