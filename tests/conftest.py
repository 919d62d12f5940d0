import threading
import time

import pytest

from webspider.domain.http_response import FetchOutcome
from webspider.services.crawl_executor import SequentialCrawlExecutor
from webspider.services.crawl_policy import CrawlPolicy
from webspider.services.link_processor import LinkProcessor
from webspider.services.parallel_crawl_executor import ParallelCrawlExecutor


class FakeFetcher:
    """Serves pages from a dict; unknown URLs fail like an unreachable host."""

    def __init__(self, pages, delay: float = 0.0):
        self.pages = dict(pages)
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def fetch(self, url):
        with self._lock:
            self.calls.append(url)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            body = self.pages.get(url.split("#")[0])
            if body is None:
                return FetchOutcome.failure("not found")
            return FetchOutcome.success(body)
        finally:
            with self._lock:
                self.in_flight -= 1


class GatedFetcher(FakeFetcher):
    """Blocks every fetch until `gate` is set."""

    def __init__(self, pages):
        super().__init__(pages)
        self.gate = threading.Event()

    def fetch(self, url):
        self.gate.wait(5)
        return super().fetch(url)


@pytest.fixture
def sequential_factory():
    def make(fetcher, **kwargs):
        return SequentialCrawlExecutor(
            fetcher=fetcher,
            crawl_policy=CrawlPolicy(),
            link_processor=LinkProcessor(),
            **kwargs,
        )
    return make


@pytest.fixture
def parallel_factory():
    def make(fetcher, **kwargs):
        kwargs.setdefault("poll_interval", 0.005)
        return ParallelCrawlExecutor(
            fetcher=fetcher,
            crawl_policy=CrawlPolicy(),
            link_processor=kwargs.pop("link_processor", LinkProcessor()),
            **kwargs,
        )
    return make


@pytest.fixture
def make_fetcher():
    def make(pages, delay: float = 0.0):
        return FakeFetcher(pages, delay=delay)
    return make


@pytest.fixture
def make_gated_fetcher():
    fetchers = []

    def make(pages):
        fetcher = GatedFetcher(pages)
        fetchers.append(fetcher)
        return fetcher
    yield make
    # never leave worker threads blocked behind a gate
    for fetcher in fetchers:
        fetcher.gate.set()
