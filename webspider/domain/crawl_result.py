"""Crawl result data model."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Set


@dataclass
class UrlKeywords:
    """Keywords found on one page, tagged with the starting point that reached it."""
    keywords: Set[str]
    origin: str


@dataclass
class KeywordUrls:
    """Pages containing one keyword, tagged with the starting point that first found it."""
    urls: Set[str]
    origin: str


@dataclass
class CrawlResult:
    """Everything one crawl run produced.

    Not thread-safe on its own; the parallel executor serializes access
    through its `CrawlSession`.
    """

    visited_urls: Set[str] = field(default_factory=set)
    url_to_keywords: Dict[str, UrlKeywords] = field(default_factory=dict)
    keyword_to_urls: Dict[str, KeywordUrls] = field(default_factory=dict)

    def is_visited(self, url: str) -> bool:
        return url in self.visited_urls

    def mark_visited(self, url: str) -> None:
        self.visited_urls.add(url)

    def record_keywords(self, url: str, keywords: Iterable[str], origin: str) -> None:
        found = set(keywords)
        if not found:
            return
        self.url_to_keywords[url] = UrlKeywords(keywords=found, origin=origin)
        for keyword in found:
            entry = self.keyword_to_urls.get(keyword)
            if entry is None:
                entry = KeywordUrls(urls=set(), origin=origin)
                self.keyword_to_urls[keyword] = entry
            entry.urls.add(url)

    def summary(self) -> Dict[str, int]:
        return {
            "visited": len(self.visited_urls),
            "pages_with_keywords": len(self.url_to_keywords),
            "keywords_found": len(self.keyword_to_urls),
        }
