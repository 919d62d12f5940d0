import threading
from typing import Iterable, List, Optional

from webspider.domain.crawl_result import CrawlResult
from webspider.domain.crawl_task import CrawlTask
from webspider.domain.frontier import Frontier
from webspider.domain.starting_point import StartingPoint


class CrawlSession:
    """
    Shared state of a single crawl execution.

    Owns the frontier, the result being built, the active-worker counter and
    the failure slot, so that worker threads only ever receive a handle to
    the session instead of touching module-level state.

    Locking:
    - `state` (a Condition) guards `frontier`, `active_workers` and `workers`.
    - `result_lock` guards `result` and `pages_fetched`.
    Code that needs both always takes `state` first.
    """

    def __init__(
        self,
        starting_points: Iterable[StartingPoint] = (),
        keywords: Iterable[str] = (),
        crawl_id: Optional[str] = None,
        registry=None,
    ):
        self.crawl_id = crawl_id
        self._registry = registry

        self.starting_points: List[StartingPoint] = list(starting_points)
        self.keywords: List[str] = list(keywords)

        self.state = threading.Condition()
        self.frontier = Frontier.seeded(self.starting_points)
        self.active_workers: int = 0
        self.workers: List[threading.Thread] = []

        self.result_lock = threading.Lock()
        self.result = CrawlResult()
        self.pages_fetched: int = 0

        self.error: Optional[BaseException] = None

    def start_tracking(self, mode: str) -> None:
        """Create a registry record for this run if a registry is configured."""
        if self._registry is not None:
            self.crawl_id = self._registry.start(
                mode=mode,
                seeds=[sp.name for sp in self.starting_points],
            )

    def update_progress(self, current_url: Optional[str] = None) -> None:
        if self._registry is not None and self.crawl_id is not None:
            self._registry.update(
                self.crawl_id,
                pages_fetched=self.pages_fetched,
                active_workers=self.active_workers,
                current_url=current_url,
            )

    def finish_tracking(self, status: str = "finished", error: Optional[str] = None) -> None:
        if self._registry is not None and self.crawl_id is not None:
            self._registry.finish(self.crawl_id, status=status, error=error)

    def next_task_or_retire(self) -> Optional[CrawlTask]:
        """Pop the next task; when none is left, retire the calling worker.

        Retiring decrements `active_workers` in the same critical section as
        the empty check, then wakes the supervisor.
        """
        with self.state:
            task = self.frontier.pop()
            if task is None:
                self.active_workers -= 1
                self.state.notify_all()
            return task

    def push_tasks(self, tasks: Iterable[CrawlTask]) -> int:
        pushed = 0
        with self.state:
            for task in tasks:
                self.frontier.push(task)
                pushed += 1
            if pushed:
                self.state.notify_all()
        return pushed

    def is_quiescent(self) -> bool:
        with self.state:
            return not self.frontier and self.active_workers == 0

    def get_active_workers(self) -> int:
        with self.state:
            return self.active_workers

    def claim_url(self, key: str) -> bool:
        """Atomically check-and-mark `key` as visited. True if this caller won it."""
        with self.result_lock:
            if self.result.is_visited(key):
                return False
            self.result.mark_visited(key)
            return True

    def is_visited(self, key: str) -> bool:
        with self.result_lock:
            return self.result.is_visited(key)

    def record_page(self, url: str, keywords: Iterable[str], origin: str) -> None:
        with self.result_lock:
            self.pages_fetched += 1
            self.result.record_keywords(url, keywords, origin)

    def record_failure(self, exc: BaseException) -> None:
        """Remember the first unexpected worker error; the run is failed as a whole."""
        with self.result_lock:
            if self.error is None:
                self.error = exc

    @property
    def failed(self) -> bool:
        with self.result_lock:
            return self.error is not None
