"""Custom exceptions for WebSpider services."""


class HttpFetchError(Exception):
    """Raised when an HTTP fetch fails due to network/transport errors."""

    def __init__(self, url: str, original: Exception):
        self.url = url
        self.original = original
        super().__init__(f"HTTP fetch failed for {url}: {original}")


class InvalidWorkerCountError(ValueError):
    """Raised when the worker cap is set outside [1, maximum]."""

    def __init__(self, value, maximum: int):
        self.value = value
        self.maximum = maximum
        super().__init__(f"Worker count must be between 1 and {maximum}, got {value!r}")


class CrawlBusyError(Exception):
    """Raised when a parallel crawl is requested while another one is still active."""

    def __init__(self, active_workers: int):
        self.active_workers = active_workers
        super().__init__(f"A parallel crawl is already running ({active_workers} active workers); wait for it to finish")


class CrawlFailedError(Exception):
    """Raised when a parallel crawl hit an unexpected internal error.

    The partial result of a failed run is never exposed.
    """

    def __init__(self, crawl_id, original: BaseException):
        self.crawl_id = crawl_id
        self.original = original
        super().__init__(f"Crawl {crawl_id} failed: {original}")


class SeedFileError(Exception):
    """Raised when a seeds file cannot be read or contains invalid entries."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Seed file '{path}': {reason}")
