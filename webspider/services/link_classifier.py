"""URL classification helpers shared by both crawl executors.

Everything here is pure and safe to call from any worker thread.
"""
import logging
from typing import Iterator, Optional
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

# binary documents, images, audio/video, archives/installers, scripts/styles
NON_RELEVANT_EXTENSIONS = (
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".ico",
    ".mp3", ".wav", ".mp4", ".avi",
    ".zip", ".rar", ".exe", ".msi",
    ".js", ".css",
)

NON_RELEVANT_PREFIXES = ("#", "javascript:", "mailto:")


def _strip_query_and_fragment(url: str) -> str:
    cut = len(url)
    for sep in ("?", "#"):
        idx = url.find(sep)
        if idx >= 0:
            cut = min(cut, idx)
    return url[:cut]


def is_non_relevant(url: Optional[str]) -> bool:
    """True when the content behind `url` is useless for keyword search."""
    if url is None:
        return True
    url = url.strip().lower()
    if url.startswith(NON_RELEVANT_PREFIXES):
        return True
    return _strip_query_and_fragment(url).endswith(NON_RELEVANT_EXTENSIONS)


def base_domain(url: Optional[str]) -> str:
    """Return the lower-cased host of `url`, e.g. https://Example.com/a -> example.com."""
    if url is None:
        return ""
    if not url.lower().startswith("http"):
        url = "http://" + url
    try:
        host = urlsplit(url).hostname
    except ValueError:
        return ""
    return (host or "").lower()


def without_fragment(url: Optional[str]) -> str:
    """Drop the `#fragment` part but keep any query string."""
    if url is None:
        return ""
    idx = url.find("#")
    return url[:idx] if idx >= 0 else url


def matches_base_url(url: str, base_url: str) -> bool:
    if not base_url:
        return True
    return url.lower().startswith(base_url.lower())


def _is_absolute(url: str) -> bool:
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return bool(parts.scheme and parts.netloc)


def extract_links(page_body: str, base_url: str) -> Iterator[str]:
    """Yield every href on the page resolved against `base_url`.

    Unresolvable hrefs are skipped. Nothing is yielded when `base_url`
    itself is not an absolute URL.
    """
    if not page_body or not _is_absolute(base_url):
        return
    soup = BeautifulSoup(page_body, "html.parser")
    for tag in soup.find_all(href=True):
        href = tag.get("href")
        if not isinstance(href, str):
            continue
        href = href.strip()
        if not href:
            continue
        try:
            yield urljoin(base_url, href)
        except ValueError:
            logger.debug("Skipping malformed href %r on %s", href, base_url)
