# ===============================================
# tests/test_clients.py
# Meilisearch client (fake HTTP session) and the in-memory backend.
# ===============================================
from pathlib import Path

import pytest
import requests

from facetsearch.search import (
    FilterSelectionState,
    InMemorySearchClient,
    MeiliSearchClient,
    SearchBackendError,
    build_search_request,
    build_universe_request,
)
from facetsearch.search.memory_client import values_at

ROOT = Path(__file__).resolve().parent.parent


class FakeResponse:
    def __init__(self, status_code=200, payload=None, bad_json=False):
        self.status_code = status_code
        self._payload = payload or {}
        self._bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        if self._bad_json:
            raise ValueError("Expecting value")
        return self._payload


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []
        self.closed = False

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        return self.response

    def close(self):
        self.closed = True


# -------------------------
# MeiliSearchClient
# -------------------------
def test_meili_posts_payload_with_bearer_key():
    body = {
        "hits": [{"_id": "1"}],
        "facetDistribution": {"OfficeLocation": {"NYC": 3}},
        "facetStats": {},
        "estimatedTotalHits": 1,
        "processingTimeMs": 4,
    }
    session = FakeSession(FakeResponse(payload=body))
    client = MeiliSearchClient("http://meili:7700/", api_key="secret", index="professionals", timeout=5, session=session)
    request = build_search_request("tax", 0.5, "default", {"OfficeLocation": ["NYC"]})

    response = client.search(request)

    call = session.calls[0]
    assert call["url"] == "http://meili:7700/indexes/professionals/search"
    assert call["headers"]["Authorization"] == "Bearer secret"
    assert call["json"] == request.to_payload()
    assert call["timeout"] == 5
    assert response.hits == [{"_id": "1"}]
    assert response.facet_distribution == {"OfficeLocation": {"NYC": 3}}
    assert response.estimated_total_hits == 1


def test_meili_without_key_sends_no_auth_header():
    session = FakeSession(FakeResponse(payload={}))
    response = MeiliSearchClient("http://meili:7700", session=session).search(build_universe_request())
    assert "Authorization" not in session.calls[0]["headers"]
    assert response.hits == [] and response.facet_distribution == {}


def test_meili_http_error_carries_status():
    client = MeiliSearchClient("http://meili:7700", session=FakeSession(FakeResponse(status_code=401)))
    with pytest.raises(SearchBackendError) as info:
        client.search(build_universe_request())
    assert info.value.status_code == 401


def test_meili_transport_error_is_wrapped():
    session = FakeSession(exc=requests.ConnectionError("refused"))
    with pytest.raises(SearchBackendError, match="unreachable"):
        MeiliSearchClient("http://meili:7700", session=session).search(build_universe_request())


def test_meili_bad_json_is_wrapped():
    session = FakeSession(FakeResponse(bad_json=True))
    with pytest.raises(SearchBackendError, match="Malformed"):
        MeiliSearchClient("http://meili:7700", session=session).search(build_universe_request())


def test_meili_close_closes_session():
    session = FakeSession()
    MeiliSearchClient("http://meili:7700", session=session).close()
    assert session.closed


# -------------------------
# InMemorySearchClient
# -------------------------
def test_values_at_walks_nested_arrays(seed_records):
    assert sorted(values_at(seed_records[0], "StateLicenses.State")) == ["NJ", "NY"]
    assert list(values_at(seed_records[2], "StateLicenses.State")) == []
    assert list(values_at(seed_records[0], "OfficeLocation")) == ["NYC"]


def test_memory_universe_counts_documents(seed_records):
    response = InMemorySearchClient(seed_records).search(build_universe_request())
    assert response.hits == []
    assert response.facet_distribution["OfficeLocation"] == {"Chicago": 1, "NYC": 2}
    # two licenses with the same title on one record count once
    assert response.facet_distribution["StateLicenses.LicenseTitle"] == {"CPA": 2}
    assert response.estimated_total_hits == 3


def test_memory_filters_or_within_and_across(seed_records):
    client = InMemorySearchClient(seed_records)
    selection = FilterSelectionState()
    selection.toggle("OfficeLocation", "NYC", True)
    selection.toggle("OfficeLocation", "Chicago", True)
    selection.toggle("StateLicenses.LicenseTitle", "CPA", True)

    response = client.search(build_search_request("", 1.0, "default", selection))

    assert [h["_id"] for h in response.hits] == ["a", "b"]
    assert response.facet_distribution["ExpertiseName"] == {"Audit": 1, "Tax": 1}


def test_memory_text_terms_must_all_match(seed_records):
    client = InMemorySearchClient(seed_records)
    assert [h["_id"] for h in client.search(build_search_request("private equity", 0.5, "default")).hits] == ["a"]
    assert client.search(build_search_request("private audit", 0.5, "default")).hits == []


def test_memory_projects_attributes_and_honours_limit(seed_records):
    client = InMemorySearchClient(seed_records)
    response = client.search(build_search_request("", 1.0, "default", limit=1))
    assert len(response.hits) == 1
    assert "Overview" in response.hits[0]
    assert set(response.hits[0]) <= set(client.requests[-1].attributes_to_retrieve)


def test_memory_from_yaml_loads_seed_data():
    client = InMemorySearchClient.from_yaml(ROOT / "data" / "professionals.yaml")
    assert len(client.records) == 5
    assert all("_id" in r for r in client.records)


def test_memory_from_yaml_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        InMemorySearchClient.from_yaml(tmp_path / "nope.yaml")
