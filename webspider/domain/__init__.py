"""Domain objects for WebSpider - explicit re-exports to satisfy linters."""
from .starting_point import StartingPoint as StartingPoint
from .crawl_task import CrawlTask as CrawlTask
from .crawl_result import CrawlResult as CrawlResult
from .crawl_result import KeywordUrls as KeywordUrls
from .crawl_result import UrlKeywords as UrlKeywords
from .frontier import Frontier as Frontier
from .http_response import FetchOutcome as FetchOutcome
from .http_response import HttpResponse as HttpResponse
from .crawl_session import CrawlSession as CrawlSession

__all__ = [
    "StartingPoint",
    "CrawlTask",
    "CrawlResult",
    "KeywordUrls",
    "UrlKeywords",
    "Frontier",
    "FetchOutcome",
    "HttpResponse",
    "CrawlSession",
]
