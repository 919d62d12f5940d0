import logging
from typing import Iterable, Optional

from webspider.domain.crawl_result import CrawlResult
from webspider.domain.crawl_task import CrawlTask
from webspider.domain.frontier import Frontier
from webspider.domain.starting_point import StartingPoint
from webspider.services.keyword_matcher import KeywordMatcher
from webspider.services.link_classifier import without_fragment

logger = logging.getLogger(__name__)


class SequentialCrawlExecutor:
    """Executes a crawl on the calling thread.

    This class owns the crawl control-flow (frontier draining, admission
    checks, fetching, keyword tagging and link expansion). It does NOT
    construct its collaborators; that stays in the DI layer.
    """

    def __init__(
        self,
        *,
        fetcher,
        crawl_policy,
        link_processor,
        crawl_registry=None,
    ):
        self.fetcher = fetcher
        self.crawl_policy = crawl_policy
        self.link_processor = link_processor
        self.crawl_registry = crawl_registry

    def start_tracking(self, starting_points) -> Optional[str]:
        """Open a registry record for a run that has not started yet."""
        if self.crawl_registry is None:
            return None
        return self.crawl_registry.start(mode="sequential", seeds=[sp.name for sp in starting_points])

    def _update_registry_progress(self, crawl_id: Optional[str], pages_fetched: int, current_url: str) -> None:
        if self.crawl_registry is not None and crawl_id is not None:
            self.crawl_registry.update(crawl_id, pages_fetched=pages_fetched, current_url=current_url)

    def crawl(self, starting_points: Iterable[StartingPoint], keywords: Iterable[str], crawl_id: Optional[str] = None) -> CrawlResult:
        """Crawl from every starting point until the frontier is exhausted.

        Pass `crawl_id` to report into a registry record the caller already started.
        """
        starting_points = list(starting_points)
        matcher = KeywordMatcher(keywords)
        frontier = Frontier.seeded(starting_points)
        result = CrawlResult()
        if crawl_id is None:
            crawl_id = self.start_tracking(starting_points)

        logger.info("Sequential crawl started: %d starting point(s), %d keyword(s)", len(starting_points), len(matcher.keywords))
        pages_fetched = 0
        while frontier:
            task = frontier.pop()
            try:
                fetched = self.process_task(task, result, matcher, frontier)
            except Exception as e:
                logger.error("Error while processing %s, dropping it: %s", task.url, e, exc_info=True)
                continue
            if fetched:
                pages_fetched += 1
                self._update_registry_progress(crawl_id, pages_fetched, task.url)

        if self.crawl_registry is not None and crawl_id is not None:
            self.crawl_registry.finish(crawl_id, status="finished")
        logger.info("Sequential crawl finished: %s", result.summary())
        return result

    def process_task(self, task: CrawlTask, result: CrawlResult, matcher: KeywordMatcher, frontier: Frontier) -> bool:
        """Run one task through the pipeline. Returns True if the page was fetched."""
        if self.crawl_policy.should_skip_non_relevant(task):
            logger.debug("    Remaining links: %d", len(frontier))
            return False

        key = without_fragment(task.url)
        if result.is_visited(key):
            logger.debug("Already visited link, skip it: %s", task.url)
            logger.debug("    Remaining links: %d", len(frontier))
            return False

        if self.crawl_policy.should_skip_due_to_base_url(task):
            logger.debug("    Remaining links: %d", len(frontier))
            return False

        logger.info("Crawling: %s", task.url)
        result.mark_visited(key)

        outcome = self.fetcher.fetch(task.url)
        if not outcome.ok:
            logger.warning("    Page could not be fetched, skip it: %s (%s)", task.url, outcome.reason)
            return False
        logger.debug("Fetched %s: %d characters", task.url, len(outcome.body))

        found = matcher.find(outcome.body)
        if found:
            logger.info("    Keywords found: %s", ", ".join(sorted(found)))
            result.record_keywords(key, found, task.origin)

        expansion = self.link_processor.process(task, outcome.body, result.is_visited)
        for child in expansion.children:
            frontier.push(child)
        if expansion.children:
            logger.info(
                "    New links added: %d (internal: %d, external: %d)",
                len(expansion.children),
                expansion.internal,
                expansion.external,
            )

        logger.info("    Remaining links: %d", len(frontier))
        logger.debug("    Remaining internal depth: %d", task.internal_left)
        logger.debug("    Remaining external depth: %d", task.external_left)
        return True
