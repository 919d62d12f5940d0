from __future__ import annotations

import threading
import uuid
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Deque, Dict, List, Optional


@dataclass
class CrawlRecord:
    id: str
    mode: str
    seeds: List[str]
    status: str
    started_at: datetime
    last_seen: datetime
    finished_at: Optional[datetime] = None
    pages_fetched: int = 0
    active_workers: int = 0
    current_url: Optional[str] = None
    error: Optional[str] = None
    recent_urls: Deque[str] = field(default_factory=lambda: deque(maxlen=20))


class InMemoryCrawlRegistry:
    """Thread-safe in-memory registry for active and recent crawls.

    Ephemeral and single-process. Completed records are retained up to
    `max_completed_records`, oldest evicted first.
    """

    def __init__(self, *, max_completed_records: int = 1000):
        if max_completed_records < 0:
            raise ValueError("max_completed_records must be >= 0")
        self._lock = threading.Lock()
        self._records: Dict[str, CrawlRecord] = {}
        self._max_completed_records = max_completed_records
        self._completed_order: Deque[str] = deque()

    def start(self, mode: str, seeds: Optional[List[str]] = None) -> str:
        with self._lock:
            cid = str(uuid.uuid4())
            now = datetime.utcnow()
            self._records[cid] = CrawlRecord(
                id=cid,
                mode=mode,
                seeds=list(seeds or []),
                status="running",
                started_at=now,
                last_seen=now,
            )
            return cid

    def update(
        self,
        crawl_id: str,
        *,
        pages_fetched: Optional[int] = None,
        active_workers: Optional[int] = None,
        current_url: Optional[str] = None,
    ) -> bool:
        with self._lock:
            rec = self._records.get(crawl_id)
            if not rec:
                return False
            if pages_fetched is not None:
                rec.pages_fetched = pages_fetched
            if active_workers is not None:
                rec.active_workers = active_workers
            if current_url is not None:
                rec.current_url = current_url
                if current_url and current_url not in rec.recent_urls:
                    rec.recent_urls.append(current_url)
            rec.last_seen = datetime.utcnow()
            return True

    def finish(self, crawl_id: str, *, status: str = "finished", error: Optional[str] = None) -> bool:
        with self._lock:
            rec = self._records.get(crawl_id)
            if not rec:
                return False
            now = datetime.utcnow()
            rec.status = status
            rec.finished_at = now
            rec.last_seen = now
            rec.active_workers = 0
            if error:
                rec.error = error
            self._completed_order.append(crawl_id)
            self._evict_completed_overflow()
            return True

    def _evict_completed_overflow(self) -> None:
        while len(self._completed_order) > self._max_completed_records:
            oldest = self._completed_order.popleft()
            self._records.pop(oldest, None)

    def get(self, crawl_id: str) -> Optional[Dict]:
        with self._lock:
            rec = self._records.get(crawl_id)
            return asdict(rec) if rec else None

    def list_active(self) -> List[Dict]:
        with self._lock:
            return [asdict(r) for r in self._records.values() if r.status == "running"]
