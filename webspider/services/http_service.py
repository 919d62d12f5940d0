import requests
from typing import Callable

from webspider.domain.http_response import HttpResponse
from webspider.exceptions import HttpFetchError


class HttpService:
    """
    HTTP client wrapper for fetching web pages.

    Requires http_client callable for dependency injection. This enables
    testing without patching and allows swapping HTTP libraries.
    """

    def __init__(self, user_agent: str, http_client: Callable, timeout: int = 10):
        self.user_agent = user_agent
        self.timeout = timeout
        self.http_client = http_client

    def fetch(self, url: str) -> HttpResponse:
        """Fetch URL and return response with status code and body text."""
        headers = {"User-Agent": self.user_agent}
        try:
            resp = self.http_client(url, headers=headers, timeout=self.timeout)
            text = resp.text
        except requests.exceptions.RequestException as e:
            raise HttpFetchError(url, e) from e

        return HttpResponse(resp.status_code, text)
