# ===============================================
# tests/test_filters.py
# Filter selection bookkeeping.
# ===============================================
import pytest

from facetsearch.search import FacetDimension, FilterSelectionState


def test_toggle_is_idempotent():
    once = FilterSelectionState()
    once.toggle(FacetDimension.OFFICE_LOCATION, "NYC", True)

    twice = FilterSelectionState()
    twice.toggle(FacetDimension.OFFICE_LOCATION, "NYC", True)
    twice.toggle(FacetDimension.OFFICE_LOCATION, "NYC", True)

    assert once.as_dict() == twice.as_dict()
    assert twice.selected("OfficeLocation") == {"NYC"}

    twice.toggle("OfficeLocation", "NYC", False)
    twice.toggle("OfficeLocation", "NYC", False)
    assert twice.selected("OfficeLocation") == set()


def test_dimensions_are_independent():
    state = FilterSelectionState()
    state.toggle("OfficeLocation", "NYC", True)
    state.toggle("ExpertiseName", "Tax", True)
    state.clear("OfficeLocation")

    assert state.selected("OfficeLocation") == set()
    assert state.is_selected("ExpertiseName", "Tax")


def test_clear_all_empties_everything():
    state = FilterSelectionState()
    state.toggle("Capabilities.CapabilityName", "Healthcare", True)
    state.toggle("StateLicenses.LicenseTitle", "CPA", True)
    assert state

    state.clear_all()
    assert not state
    assert all(v == [] for v in state.as_dict().values())


def test_every_mutation_notifies():
    triggers = []
    state = FilterSelectionState(on_change=triggers.append)
    state.toggle("OfficeLocation", "NYC", True)
    state.toggle("OfficeLocation", "NYC", True)
    state.clear("ExpertiseName")
    state.clear_all()
    assert triggers == ["filter:OfficeLocation", "filter:OfficeLocation", "filter:ExpertiseName", "filter:*"]


def test_values_are_kept_verbatim():
    state = FilterSelectionState()
    state.toggle("OfficeLocation", " new york ", True)
    assert state.snapshot() == (("OfficeLocation", (" new york ",)),)


def test_unknown_dimension_is_rejected():
    with pytest.raises(ValueError):
        FilterSelectionState().toggle("Salary", "100k", True)
