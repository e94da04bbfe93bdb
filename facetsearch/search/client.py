# Client for a Meilisearch index.
# Exposes search(request) -> SearchResponse; every failure surfaces as SearchBackendError.

from __future__ import annotations

from typing import Dict, Optional

import requests

from .errors import SearchBackendError
from .types import SearchRequest, SearchResponse


class MeiliSearchClient:
    def __init__(
        self,
        host: str,
        api_key: Optional[str] = None,
        index: str = "professionals",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.host = host.rstrip("/")
        self.api_key = api_key
        self.index = index
        self.timeout = timeout
        self._session = session or requests.Session()

    @property
    def search_url(self) -> str:
        return f"{self.host}/indexes/{self.index}/search"

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def search(self, request: SearchRequest) -> SearchResponse:
        try:
            resp = self._session.post(
                self.search_url,
                json=request.to_payload(),
                headers=self._headers(),
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise SearchBackendError(f"Search backend returned HTTP {status}: {e}", status_code=status) from e
        except requests.RequestException as e:
            raise SearchBackendError(f"Search backend unreachable: {e}") from e

        try:
            data = resp.json()
            return SearchResponse.from_payload(data)
        except (ValueError, TypeError, AttributeError) as e:
            raise SearchBackendError(f"Malformed search response: {e}", status_code=resp.status_code) from e

    def close(self) -> None:
        self._session.close()
