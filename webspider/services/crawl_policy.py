import logging

from webspider.domain.crawl_task import CrawlTask
from webspider.services.link_classifier import is_non_relevant, matches_base_url

logger = logging.getLogger(__name__)


class CrawlPolicy:
    """Encapsulates the admission rules a dequeued task must pass before it is fetched.

    Separates policy decisions from crawl orchestration logic. The visited
    check is not here: it has to be atomic with marking, so each executor
    performs it against its own result state.
    """

    def should_skip_non_relevant(self, task: CrawlTask) -> bool:
        if is_non_relevant(task.url):
            logger.debug("Non-relevant content for keyword extraction, skip it: %s", task.url)
            return True
        return False

    def should_skip_due_to_base_url(self, task: CrawlTask) -> bool:
        if not matches_base_url(task.url, task.base_url):
            logger.debug("URL doesn't match base URL %s, skip it: %s", task.base_url, task.url)
            return True
        return False
