import logging
import threading
from typing import Iterable, Optional, Tuple

from webspider.domain.crawl_result import CrawlResult
from webspider.domain.crawl_session import CrawlSession
from webspider.domain.starting_point import StartingPoint
from webspider.exceptions import CrawlBusyError, CrawlFailedError, InvalidWorkerCountError
from webspider.services.protocols import CrawlResultSink

logger = logging.getLogger(__name__)


class CrawlCoordinator:
    """Entry point for running crawls.

    Owns the mutable worker cap (1 means sequential), allows at most one
    parallel or background run at a time and hands finished results to the
    result sink.

    Lock order: `self._lock` before any `CrawlSession.state`.
    """

    def __init__(
        self,
        *,
        sequential_executor,
        parallel_executor,
        max_workers: int = 1,
        max_allowed_workers: int = 99,
        result_sink: Optional[CrawlResultSink] = None,
    ):
        if max_allowed_workers < 1:
            raise ValueError("max_allowed_workers must be >= 1")
        self.sequential_executor = sequential_executor
        self.parallel_executor = parallel_executor
        self.max_allowed_workers = int(max_allowed_workers)
        self.result_sink = result_sink

        self._lock = threading.Lock()
        self._max_workers = 1
        self._session: Optional[CrawlSession] = None
        self._thread: Optional[threading.Thread] = None
        self._done = False
        self._pending_result: Optional[CrawlResult] = None
        self._pending_error: Optional[CrawlFailedError] = None

        self.set_max_workers(max_workers)

    @property
    def max_workers(self) -> int:
        with self._lock:
            return self._max_workers

    def set_max_workers(self, value: int) -> None:
        """Change the worker cap; rejected while a parallel run owns it."""
        if isinstance(value, bool) or not isinstance(value, int) or value < 1 or value > self.max_allowed_workers:
            raise InvalidWorkerCountError(value, self.max_allowed_workers)
        with self._lock:
            if self._session is not None:
                raise CrawlBusyError(self._session.get_active_workers())
            self._max_workers = value
        logger.info("Maximum number of crawl workers set to %d", value)

    def is_active(self) -> Tuple[bool, int]:
        """Return (run active or result not yet taken, current active workers)."""
        with self._lock:
            if self._session is None:
                return (False, 0)
            return (True, self._session.get_active_workers())

    def crawl(self, starting_points: Iterable[StartingPoint], keywords: Iterable[str]) -> CrawlResult:
        """Run a crawl to completion on the calling thread.

        Uses the sequential executor when the cap is 1, otherwise a parallel
        run that blocks until quiescence.
        """
        starting_points = list(starting_points)
        keywords = list(keywords)
        with self._lock:
            if self._session is not None:
                raise CrawlBusyError(self._session.get_active_workers())
            workers = self._max_workers
            if workers > 1:
                session = self.parallel_executor.new_session(starting_points, keywords)
                self._session = session

        if workers == 1:
            result = self.sequential_executor.crawl(starting_points, keywords)
        else:
            try:
                result = self.parallel_executor.run(session, workers)
            finally:
                with self._lock:
                    self._session = None

        self._hand_off(result)
        return result

    def start(self, starting_points: Iterable[StartingPoint], keywords: Iterable[str]) -> Optional[str]:
        """Start a crawl in the background and return its crawl id.

        The engine follows the worker cap as in `crawl()`. Poll `take_result()`
        to collect it. Raises `CrawlBusyError` while a previous run is still
        active or its result has not been taken.
        """
        starting_points = list(starting_points)
        keywords = list(keywords)
        with self._lock:
            if self._session is not None:
                raise CrawlBusyError(self._session.get_active_workers())
            workers = self._max_workers
            if workers == 1:
                crawl_id = self.sequential_executor.start_tracking(starting_points)
                session = CrawlSession(starting_points, keywords, crawl_id=crawl_id)
            else:
                session = self.parallel_executor.new_session(starting_points, keywords)
                session.start_tracking("parallel")
            self._session = session
            self._done = False
            self._pending_result = None
            self._pending_error = None
            self._thread = threading.Thread(
                target=self._run_in_background,
                args=(session, workers),
                name="webspider-supervisor",
                daemon=True,
            )
            self._thread.start()
        logger.info("Background crawl %s started with up to %d workers", session.crawl_id, workers)
        return session.crawl_id

    def _run_sequential(self, session: CrawlSession) -> CrawlResult:
        with session.state:
            session.active_workers = 1
        try:
            return self.sequential_executor.crawl(session.starting_points, session.keywords, crawl_id=session.crawl_id)
        finally:
            with session.state:
                session.active_workers = 0

    def _run_in_background(self, session: CrawlSession, workers: int) -> None:
        result = None
        error = None
        try:
            if workers == 1:
                result = self._run_sequential(session)
            else:
                result = self.parallel_executor.run(session, workers)
        except CrawlFailedError as e:
            error = e
        except Exception as e:
            logger.exception("Background crawl %s crashed", session.crawl_id)
            error = CrawlFailedError(session.crawl_id, e)
        with self._lock:
            self._pending_result = result
            self._pending_error = error
            self._done = True

    def take_result(self) -> Optional[CrawlResult]:
        """Collect the result of a background run once it is quiescent.

        Returns None while the run is active or when nothing was started.
        Raises `CrawlFailedError` (once) if the run failed.
        """
        with self._lock:
            if self._session is None or not self._done:
                return None
            result, error = self._pending_result, self._pending_error
            self._session = None
            self._thread = None
            self._done = False
            self._pending_result = None
            self._pending_error = None

        if error is not None:
            raise error
        self._hand_off(result)
        return result

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the background run (if any) has finished. True when it has."""
        with self._lock:
            thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def _hand_off(self, result: CrawlResult) -> None:
        if self.result_sink is not None:
            self.result_sink.save_crawl_result(result)
