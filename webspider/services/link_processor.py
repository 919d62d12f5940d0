import logging
from typing import Callable, Iterable, List, NamedTuple, Optional

from webspider.domain.crawl_task import CrawlTask
from webspider.services.link_classifier import (
    base_domain,
    extract_links,
    is_non_relevant,
    matches_base_url,
    without_fragment,
)

logger = logging.getLogger(__name__)


class LinkExpansion(NamedTuple):
    """Child tasks discovered on one page."""
    children: List[CrawlTask]
    internal: int
    external: int


class LinkProcessor:
    """Turns the links of a fetched page into child crawl tasks.

    Internal/external classification always anchors to the domain of the
    task's starting point (`task.root_url`), never to the referring page.
    """

    def __init__(self, extract_links_fn: Optional[Callable[[str, str], Iterable[str]]] = None):
        self.extract_links_fn = extract_links_fn or extract_links

    def process(self, task: CrawlTask, body: str, is_visited: Callable[[str], bool]) -> LinkExpansion:
        """Classify every link on the page and build the tasks worth enqueueing.

        `is_visited` receives fragment-stripped URLs; links already visited are
        dropped here, and the executor re-checks on dequeue.
        """
        children: List[CrawlTask] = []
        internal = external = 0
        root_domain = base_domain(task.root_url)

        for link in self.extract_links_fn(body, task.url):
            if is_non_relevant(link):
                logger.debug("    Non-relevant content for keyword extraction, skip it: %s", link)
                continue
            if is_visited(without_fragment(link)):
                logger.debug("    Already visited link found, skip it: %s", link)
                continue

            if base_domain(link) == root_domain:
                if task.internal_left <= 0:
                    logger.debug("    New internal link found, but skipped (too far from the starting point): %s", link)
                elif not matches_base_url(link, task.base_url):
                    logger.debug("    New internal link found, but skipped (URL doesn't match base URL %s): %s", task.base_url, link)
                else:
                    logger.debug("    New internal link found and added: %s", link)
                    children.append(task.child_internal(link))
                    internal += 1
            elif task.external_left > 0:
                logger.debug("    New external link found and added: %s", link)
                children.append(task.child_external(link))
                external += 1
            else:
                logger.debug("    New external link found, but skipped (too far from the starting point): %s", link)

        return LinkExpansion(children=children, internal=internal, external=external)
