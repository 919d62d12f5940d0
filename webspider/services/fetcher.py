from __future__ import annotations

import logging
from typing import Protocol
from urllib.parse import urlsplit

from webspider.domain.http_response import FetchOutcome
from webspider.exceptions import HttpFetchError

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")


class Fetcher(Protocol):
    """Fetch a URL and report either its body or why it could not be fetched.

    Implementations never raise for per-page problems; executors drop the
    task on any failure outcome.
    """

    def fetch(self, url: str) -> FetchOutcome: ...


class PageFetcher:
    def __init__(self, http_service):
        self._http_service = http_service

    def fetch(self, url: str) -> FetchOutcome:
        try:
            parts = urlsplit(url)
        except ValueError as e:
            return FetchOutcome.failure(f"unparsable url: {e}")
        if parts.scheme.lower() not in ALLOWED_SCHEMES or not parts.netloc:
            return FetchOutcome.failure(f"scheme not allowed: {parts.scheme or '<none>'}")

        try:
            response = self._http_service.fetch(url)
        except HttpFetchError as e:
            return FetchOutcome.failure(str(e.original))
        except (UnicodeError, ValueError) as e:
            return FetchOutcome.failure(f"could not decode response: {e}")

        try:
            sc = int(response.status_code)
        except (TypeError, ValueError):
            return FetchOutcome.failure(f"invalid status code: {response.status_code!r}")
        if sc < 200 or sc >= 300:
            return FetchOutcome.failure(f"HTTP status {sc}")
        return FetchOutcome.success(response.text or "")
