"""Dependency injection container for the application."""
from dependency_injector import containers, providers
import requests

from webspider import config as env
from webspider.services.crawl_coordinator import CrawlCoordinator
from webspider.services.crawl_executor import SequentialCrawlExecutor
from webspider.services.crawl_policy import CrawlPolicy
from webspider.services.crawl_registry import InMemoryCrawlRegistry
from webspider.services.fetcher import PageFetcher
from webspider.services.http_service import HttpService
from webspider.services.link_processor import LinkProcessor
from webspider.services.parallel_crawl_executor import ParallelCrawlExecutor


# Environment variables used by the container (read via `webspider.config` helpers).
#
# USER_AGENT (str, default: "WebSpider/0.1")
#   User-Agent header for outbound HTTP requests.
#
# HTTP_TIMEOUT (int seconds, default: 10)
#   Timeout for outbound HTTP requests. The only timeout a crawl has.
#
# WEBSPIDER_MAX_WORKERS (int, default: 1)
#   Initial worker cap. 1 runs the sequential executor.
#
# WEBSPIDER_MAX_ALLOWED_WORKERS (int, default: 99)
#   Hard ceiling for the worker cap.
#
# WEBSPIDER_POLL_INTERVAL (float seconds, default: 0.01)
#   Longest time the parallel supervisor waits between quiescence checks.
ENV = {
    "USER_AGENT": env.get_str_env("USER_AGENT", "WebSpider/0.1"),
    "HTTP_TIMEOUT": env.get_int_env("HTTP_TIMEOUT", 10),
    "WEBSPIDER_MAX_WORKERS": env.max_workers(),
    "WEBSPIDER_MAX_ALLOWED_WORKERS": env.max_allowed_workers(),
    "WEBSPIDER_POLL_INTERVAL": env.poll_interval_seconds(),
}


class Container(containers.DeclarativeContainer):
    """Dependency injection container for WebSpider."""

    config = providers.Configuration(default=ENV)

    crawl_registry = providers.Singleton(
        InMemoryCrawlRegistry
    )

    http_service = providers.Singleton(
        HttpService,
        user_agent=config.USER_AGENT.as_(str),
        http_client=providers.Object(requests.get),
        timeout=config.HTTP_TIMEOUT.as_(int)
    )

    page_fetcher = providers.Singleton(
        PageFetcher,
        http_service=http_service,
    )

    crawl_policy = providers.Singleton(
        CrawlPolicy
    )

    link_processor = providers.Singleton(
        LinkProcessor
    )

    sequential_executor = providers.Factory(
        SequentialCrawlExecutor,
        fetcher=page_fetcher,
        crawl_policy=crawl_policy,
        link_processor=link_processor,
        crawl_registry=crawl_registry,
    )

    parallel_executor = providers.Factory(
        ParallelCrawlExecutor,
        fetcher=page_fetcher,
        crawl_policy=crawl_policy,
        link_processor=link_processor,
        max_allowed_workers=config.WEBSPIDER_MAX_ALLOWED_WORKERS.as_(int),
        poll_interval=config.WEBSPIDER_POLL_INTERVAL.as_(float),
        crawl_registry=crawl_registry,
    )

    result_sink = providers.Object(None)

    crawl_coordinator = providers.Singleton(
        CrawlCoordinator,
        sequential_executor=sequential_executor,
        parallel_executor=parallel_executor,
        max_workers=config.WEBSPIDER_MAX_WORKERS.as_(int),
        max_allowed_workers=config.WEBSPIDER_MAX_ALLOWED_WORKERS.as_(int),
        result_sink=result_sink,
    )
