"""Protocol (interface) definitions for services."""

from typing import Protocol

from webspider.domain.crawl_result import CrawlResult


class CrawlResultSink(Protocol):
    """Receives a completed crawl result for persistence/reporting.

    Only ever called with the result of a run that reached quiescence.
    """

    def save_crawl_result(self, result: CrawlResult) -> None:
        ...
