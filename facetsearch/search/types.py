# Data models for the search layer.
# These types describe what goes to the backend, what comes back,
# and what the presentation layer gets to render.

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

ProfessionalRecord = Dict[str, Any]
FacetDistribution = Dict[str, Dict[str, int]]
FacetStats = Dict[str, Dict[str, float]]

ID_FIELD = "_id"

EMBEDDERS: Tuple[str, ...] = ("default", "text-1", "text-2")

ATTRIBUTES_TO_RETRIEVE: Tuple[str, ...] = (
    "_id",
    "FirstName",
    "LastName",
    "Suffix",
    "Title",
    "ExpertiseName",
    "OfficeLocation",
    "EducationRecords",
    "Overview",
    "OverviewReadMore",
    "Capabilities",
    "StateLicenses",
)


class FacetDimension(str, Enum):
    """Facetable attributes of a professional record, in display order."""
    OFFICE_LOCATION = "OfficeLocation"
    EXPERTISE_NAME = "ExpertiseName"
    CAPABILITY_NAME = "Capabilities.CapabilityName"
    LICENSE_STATE = "StateLicenses.State"
    LICENSE_TITLE = "StateLicenses.LicenseTitle"

    @classmethod
    def coerce(cls, dimension: "FacetDimension | str") -> "FacetDimension":
        if isinstance(dimension, cls):
            return dimension
        try:
            return cls(dimension)
        except ValueError:
            raise ValueError(f"Unknown facet dimension: {dimension!r}") from None


ALL_FACETS: Tuple[str, ...] = tuple(d.value for d in FacetDimension)


@dataclass(frozen=True)
class SearchRequest:
    """One backend query. Built fresh for every dispatch."""
    query: str
    semantic_ratio: Optional[float] = None
    embedder: Optional[str] = None
    filters: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()
    facets: Tuple[str, ...] = ALL_FACETS
    attributes_to_retrieve: Tuple[str, ...] = ATTRIBUTES_TO_RETRIEVE
    limit: Optional[int] = None

    @property
    def filter_expression(self) -> List[str]:
        from .query import build_filter_clauses
        return build_filter_clauses(self.filters)

    def to_payload(self) -> Dict[str, Any]:
        """Render the JSON body the search backend expects."""
        payload: Dict[str, Any] = {"q": self.query}
        if self.embedder is not None:
            payload["hybrid"] = {
                "embedder": self.embedder,
                "semanticRatio": self.semantic_ratio,
            }
        payload["facets"] = list(self.facets)
        payload["filter"] = self.filter_expression
        if self.attributes_to_retrieve:
            payload["attributesToRetrieve"] = list(self.attributes_to_retrieve)
        if self.limit is not None:
            payload["limit"] = self.limit
        return payload


@dataclass
class SearchResponse:
    """Parsed backend answer. Missing keys become empty values."""
    hits: List[ProfessionalRecord] = field(default_factory=list)
    facet_distribution: FacetDistribution = field(default_factory=dict)
    facet_stats: FacetStats = field(default_factory=dict)
    estimated_total_hits: Optional[int] = None
    processing_time_ms: Optional[int] = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "SearchResponse":
        distribution = {
            str(dim): {str(value): int(count) for value, count in (values or {}).items()}
            for dim, values in (data.get("facetDistribution") or {}).items()
        }
        return cls(
            hits=list(data.get("hits") or []),
            facet_distribution=distribution,
            facet_stats=dict(data.get("facetStats") or {}),
            estimated_total_hits=data.get("estimatedTotalHits"),
            processing_time_ms=data.get("processingTimeMs"),
        )


@dataclass(frozen=True)
class FacetOption:
    value: str
    count: int
    selected: bool = False


@dataclass(frozen=True)
class ResultProjection:
    """Reconciled results exposed to the presentation layer."""
    hits: Tuple[ProfessionalRecord, ...] = ()
    facet_counts: FacetDistribution = field(default_factory=dict)
    facet_stats: FacetStats = field(default_factory=dict)
    sequence: int = 0
    query: str = ""

    def get(self, record_id: str) -> Optional[ProfessionalRecord]:
        for hit in self.hits:
            if str(hit.get(ID_FIELD)) == str(record_id):
                return hit
        return None

    def facet_options(
        self,
        dimension: "FacetDimension | str",
        selected: Iterable[str] = (),
    ) -> List[FacetOption]:
        """Values of one dimension, highest count first (ties keep distribution order).

        Selected values missing from the counts are appended at zero so a
        checked box never disappears.
        """
        dim = FacetDimension.coerce(dimension)
        chosen = set(selected)
        counts = dict(self.facet_counts.get(dim.value, {}))
        for value in sorted(chosen):
            counts.setdefault(value, 0)
        ordered = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
        return [FacetOption(value=v, count=c, selected=v in chosen) for v, c in ordered]


@dataclass(frozen=True)
class SearchFailure:
    """Event published on the error channel."""
    kind: str  # "universe" | "query"
    error: Exception
    sequence: Optional[int] = None

    @property
    def message(self) -> str:
        return str(self.error)
