# Exceptions raised by the search layer.

from __future__ import annotations

from typing import Optional


class SearchError(Exception):
    """Base class for search layer failures."""


class SearchBackendError(SearchError):
    """The backend could not be reached, refused the query, or sent garbage."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
