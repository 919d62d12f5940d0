from collections import deque
from typing import Deque, Iterable, Optional

from webspider.domain.crawl_task import CrawlTask


class Frontier:
    """FIFO of pending crawl tasks.

    Plain container; callers that share it across threads hold
    `CrawlSession.state` around every call.
    """

    def __init__(self, tasks: Optional[Iterable[CrawlTask]] = None):
        self._tasks: Deque[CrawlTask] = deque(tasks or ())

    def push(self, task: CrawlTask) -> None:
        self._tasks.append(task)

    def pop(self) -> Optional[CrawlTask]:
        if not self._tasks:
            return None
        return self._tasks.popleft()

    def __len__(self) -> int:
        return len(self._tasks)

    def __bool__(self) -> bool:
        return bool(self._tasks)

    @classmethod
    def seeded(cls, starting_points) -> "Frontier":
        """Build a frontier holding one root task per starting point."""
        return cls(CrawlTask.from_starting_point(sp) for sp in starting_points)
