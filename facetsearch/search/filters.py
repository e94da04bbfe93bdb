# Multi-select filter state: which values are checked in each facet dimension.
# Mutated only by explicit user actions; every mutation notifies the listener.

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Set, Tuple

from .types import FacetDimension

ChangeListener = Callable[[str], None]


class FilterSelectionState:
    def __init__(self, on_change: Optional[ChangeListener] = None):
        self._selected: Dict[FacetDimension, Set[str]] = {d: set() for d in FacetDimension}
        self._on_change = on_change

    def _notify(self, trigger: str) -> None:
        if self._on_change is not None:
            self._on_change(trigger)

    # -------------------------
    # Mutations
    # -------------------------
    def toggle(self, dimension: FacetDimension | str, value: str, selected: bool) -> None:
        dim = FacetDimension.coerce(dimension)
        if selected:
            self._selected[dim].add(value)
        else:
            self._selected[dim].discard(value)
        self._notify(f"filter:{dim.value}")

    def clear(self, dimension: FacetDimension | str) -> None:
        dim = FacetDimension.coerce(dimension)
        self._selected[dim].clear()
        self._notify(f"filter:{dim.value}")

    def clear_all(self) -> None:
        for values in self._selected.values():
            values.clear()
        self._notify("filter:*")

    # -------------------------
    # Reads
    # -------------------------
    def selected(self, dimension: FacetDimension | str) -> Set[str]:
        return set(self._selected[FacetDimension.coerce(dimension)])

    def is_selected(self, dimension: FacetDimension | str, value: str) -> bool:
        return value in self._selected[FacetDimension.coerce(dimension)]

    def snapshot(self) -> Tuple[Tuple[str, Tuple[str, ...]], ...]:
        """Non-empty dimensions in enum order, values sorted."""
        return tuple(
            (dim.value, tuple(sorted(values)))
            for dim, values in self._selected.items()
            if values
        )

    def as_dict(self) -> Dict[str, List[str]]:
        return {dim.value: sorted(values) for dim, values in self._selected.items()}

    def __bool__(self) -> bool:
        return any(self._selected.values())

    def __repr__(self) -> str:
        return f"FilterSelectionState({dict(self.snapshot())!r})"
