# ===============================================
# tests/conftest.py
# Shared backend doubles. No network anywhere.
# ===============================================
import asyncio
import threading
from typing import Callable, Dict, List, Optional

import pytest

from facetsearch.search import SearchRequest, SearchResponse

P1 = {"_id": "P1", "FirstName": "Ada", "OfficeLocation": "NYC"}
P2 = {"_id": "P2", "FirstName": "Bo", "OfficeLocation": "NYC"}


class ScriptedClient:
    """
    Records every request and answers through `responder`.
    gate(n) returns an Event the n-th call (1-based) blocks on until set,
    which lets a test hold a response in flight.
    """

    def __init__(self, responder: Optional[Callable[[SearchRequest], SearchResponse]] = None):
        self.responder = responder or (lambda req: SearchResponse())
        self.requests: List[SearchRequest] = []
        self.gates: Dict[int, threading.Event] = {}
        self._lock = threading.Lock()

    def gate(self, n: int) -> threading.Event:
        ev = threading.Event()
        self.gates[n] = ev
        return ev

    def search(self, request: SearchRequest) -> SearchResponse:
        with self._lock:
            self.requests.append(request)
            n = len(self.requests)
        gate = self.gates.get(n)
        if gate is not None:
            gate.wait(timeout=5)
        return self.responder(request)

    @property
    def live_requests(self) -> List[SearchRequest]:
        return [r for r in self.requests if r.limit != 0]


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def seed_records():
    return [
        {
            "_id": "a",
            "FirstName": "Dana",
            "LastName": "Whitaker",
            "ExpertiseName": "Tax",
            "OfficeLocation": "NYC",
            "Overview": "Partnership tax for private equity funds",
            "Capabilities": [{"CapabilityName": "Private Equity"}, {"CapabilityName": "Partnership Tax"}],
            "StateLicenses": [
                {"State": "NY", "LicenseTitle": "CPA"},
                {"State": "NJ", "LicenseTitle": "CPA"},
            ],
        },
        {
            "_id": "b",
            "FirstName": "Marcus",
            "LastName": "Oyelaran",
            "ExpertiseName": "Audit",
            "OfficeLocation": "Chicago",
            "Overview": "Bank audits",
            "Capabilities": [{"CapabilityName": "Financial Services"}],
            "StateLicenses": [{"State": "IL", "LicenseTitle": "CPA"}],
        },
        {
            "_id": "c",
            "FirstName": "Priya",
            "LastName": "Raman",
            "ExpertiseName": "Advisory",
            "OfficeLocation": "NYC",
            "Overview": "Healthcare revenue cycle",
            "Capabilities": [{"CapabilityName": "Healthcare"}],
            "StateLicenses": [],
        },
    ]
