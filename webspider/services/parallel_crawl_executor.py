import logging
import threading
from typing import Callable, Iterable

from webspider.domain.crawl_result import CrawlResult
from webspider.domain.crawl_session import CrawlSession
from webspider.domain.crawl_task import CrawlTask
from webspider.domain.starting_point import StartingPoint
from webspider.exceptions import CrawlFailedError
from webspider.services.keyword_matcher import KeywordMatcher
from webspider.services.link_classifier import without_fragment

logger = logging.getLogger(__name__)


class ParallelCrawlExecutor:
    """Drains a shared `CrawlSession` with an elastic pool of worker threads.

    A supervisor (the calling thread) starts workers while the frontier has
    work and fewer than `max_workers` are active, and returns once the
    frontier is empty and no worker is left, both read under `session.state`,
    then joins the worker threads before reporting.
    Workers signal the condition whenever they enqueue children or retire, so
    `poll_interval` only bounds how long the supervisor sleeps between checks
    if a signal is missed.

    Network I/O never happens under a session lock.
    """

    def __init__(
        self,
        *,
        fetcher,
        crawl_policy,
        link_processor,
        max_allowed_workers: int = 99,
        poll_interval: float = 0.01,
        crawl_registry=None,
        thread_factory: Callable[..., threading.Thread] = threading.Thread,
    ):
        self.fetcher = fetcher
        self.crawl_policy = crawl_policy
        self.link_processor = link_processor
        self.max_allowed_workers = int(max_allowed_workers)
        self.poll_interval = float(poll_interval)
        self.crawl_registry = crawl_registry
        self.thread_factory = thread_factory

    def new_session(self, starting_points: Iterable[StartingPoint], keywords: Iterable[str]) -> CrawlSession:
        return CrawlSession(starting_points, keywords, registry=self.crawl_registry)

    def crawl(self, starting_points: Iterable[StartingPoint], keywords: Iterable[str], max_workers: int) -> CrawlResult:
        return self.run(self.new_session(starting_points, keywords), max_workers)

    def run(self, session: CrawlSession, max_workers: int) -> CrawlResult:
        """Drive `session` to quiescence and return its result.

        Raises `CrawlFailedError` if any worker hit an unexpected error; the
        partial result is not returned in that case.
        """
        if session.crawl_id is None:
            session.start_tracking("parallel")
        cap = max(1, min(int(max_workers), self.max_allowed_workers))
        matcher = KeywordMatcher(session.keywords)

        logger.info(
            "Parallel crawl %s started: %d starting point(s), %d keyword(s), up to %d workers",
            session.crawl_id,
            len(session.starting_points),
            len(matcher.keywords),
            cap,
        )
        try:
            self._supervise(session, matcher, cap)
        except Exception as e:
            logger.exception("Supervisor of parallel crawl %s crashed", session.crawl_id)
            session.record_failure(e)
        self._join_workers(session)

        if session.error is not None:
            logger.error("Parallel crawl %s failed: %s", session.crawl_id, session.error)
            session.finish_tracking(status="failed", error=str(session.error))
            raise CrawlFailedError(session.crawl_id, session.error)

        session.finish_tracking(status="finished")
        logger.info("Parallel crawl %s finished: %s", session.crawl_id, session.result.summary())
        return session.result

    def _supervise(self, session: CrawlSession, matcher: KeywordMatcher, cap: int) -> None:
        with session.state:
            while not session.is_quiescent():
                # one new worker per queued task at most; extra workers would retire at once
                wanted = min(cap - session.active_workers, len(session.frontier))
                for _ in range(max(0, wanted)):
                    session.active_workers += 1
                    if not self._spawn_worker(session, matcher):
                        session.active_workers -= 1
                        break

                if session.frontier and session.active_workers == 0:
                    # nothing is left that could drain the frontier
                    session.record_failure(RuntimeError("no crawl worker could be started"))
                    break

                session.state.wait(timeout=self.poll_interval)

    def _join_workers(self, session: CrawlSession) -> None:
        with session.state:
            workers = list(session.workers)
            session.workers.clear()
        for thread in workers:
            thread.join()

    def _spawn_worker(self, session: CrawlSession, matcher: KeywordMatcher) -> bool:
        try:
            thread = self.thread_factory(
                target=self._worker,
                args=(session, matcher),
                name=f"webspider-worker-{session.active_workers}",
                daemon=True,
            )
            thread.start()
        except Exception as e:
            logger.error("Could not start crawl worker: %s", e)
            return False
        session.workers.append(thread)
        logger.debug("Worker started, active workers: %d", session.active_workers)
        return True

    def _worker(self, session: CrawlSession, matcher: KeywordMatcher) -> None:
        retired = False
        try:
            while True:
                task = session.next_task_or_retire()
                if task is None:
                    retired = True
                    return
                try:
                    self.process_task(session, task, matcher)
                except Exception as e:
                    logger.exception("Unexpected error in crawl worker while processing %s", task.url)
                    session.record_failure(e)
        finally:
            if not retired:
                with session.state:
                    session.active_workers -= 1
                    session.state.notify_all()

    def process_task(self, session: CrawlSession, task: CrawlTask, matcher: KeywordMatcher) -> bool:
        """Run one task through the pipeline. Returns True if the page was fetched."""
        if self.crawl_policy.should_skip_non_relevant(task):
            return False
        if self.crawl_policy.should_skip_due_to_base_url(task):
            return False
        key = without_fragment(task.url)
        if not session.claim_url(key):
            logger.debug("Already visited link, skip it: %s", task.url)
            return False

        logger.info("Crawling: %s", task.url)
        outcome = self.fetcher.fetch(task.url)
        if not outcome.ok:
            logger.warning("    Page could not be fetched, skip it: %s (%s)", task.url, outcome.reason)
            return False

        found = matcher.find(outcome.body)
        if found:
            logger.info("    Keywords found on %s: %s", task.url, ", ".join(sorted(found)))
        session.record_page(key, found, task.origin)

        expansion = self.link_processor.process(task, outcome.body, session.is_visited)
        pushed = session.push_tasks(expansion.children)
        if pushed:
            logger.info(
                "    New links added from %s: %d (internal: %d, external: %d)",
                task.url,
                pushed,
                expansion.internal,
                expansion.external,
            )
        session.update_progress(current_url=task.url)
        return True
