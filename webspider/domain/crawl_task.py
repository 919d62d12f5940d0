from __future__ import annotations

from dataclasses import dataclass

from webspider.domain.starting_point import StartingPoint


@dataclass(frozen=True)
class CrawlTask:
    """One pending fetch in the frontier.

    Budgets only ever shrink: children are new tasks built through
    `child_internal` / `child_external`.
    """

    url: str
    internal_left: int
    external_left: int
    origin: str
    base_url: str
    root_url: str

    def __post_init__(self):
        if self.internal_left < 0 or self.external_left < 0:
            raise ValueError(
                f"Negative crawl budget for {self.url}: internal={self.internal_left}, external={self.external_left}"
            )

    @classmethod
    def from_starting_point(cls, sp: StartingPoint) -> "CrawlTask":
        return cls(
            url=sp.url,
            internal_left=sp.internal_depth,
            external_left=sp.external_depth,
            origin=sp.name,
            base_url=sp.base_url or "",
            root_url=sp.url,
        )

    def child_internal(self, link: str) -> "CrawlTask":
        return CrawlTask(
            url=link,
            internal_left=self.internal_left - 1,
            external_left=self.external_left,
            origin=self.origin,
            base_url=self.base_url,
            root_url=self.root_url,
        )

    def child_external(self, link: str) -> "CrawlTask":
        # external subtrees are never held to the seed's base URL
        return CrawlTask(
            url=link,
            internal_left=self.internal_left,
            external_left=self.external_left - 1,
            origin=self.origin,
            base_url="",
            root_url=self.root_url,
        )
