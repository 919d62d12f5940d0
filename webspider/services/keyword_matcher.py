import re
from typing import Iterable, List, Set, Tuple


class KeywordMatcher:
    """Whole-word, case-insensitive keyword search.

    Patterns are compiled once and reused for every page of a run. Results
    keep each keyword's original casing.
    """

    def __init__(self, keywords: Iterable[str]):
        self._patterns: List[Tuple[str, re.Pattern]] = []
        seen = set()
        for keyword in keywords:
            if keyword is None or not keyword.strip() or keyword in seen:
                continue
            seen.add(keyword)
            self._patterns.append((keyword, re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE)))

    @property
    def keywords(self) -> List[str]:
        return [k for k, _ in self._patterns]

    def find(self, page_body: str) -> Set[str]:
        if not page_body:
            return set()
        return {keyword for keyword, pattern in self._patterns if pattern.search(page_body)}


def find_keywords(page_body: str, keywords: Iterable[str]) -> Set[str]:
    return KeywordMatcher(keywords).find(page_body)
