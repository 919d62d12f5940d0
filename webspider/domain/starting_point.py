from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlsplit


def _default_base_url(url: str) -> str:
    try:
        parts = urlsplit(url)
    except ValueError:
        return ""
    if not parts.scheme or not parts.netloc:
        return ""
    return f"{parts.scheme}://{parts.netloc}"


@dataclass(frozen=True)
class StartingPoint:
    """A named crawl origin with its own depth budgets.

    `base_url=None` scopes internal links to the seed's own `scheme://host`;
    an explicit empty string leaves internal links unconstrained.
    """

    name: str
    url: str
    internal_depth: int = 0
    external_depth: int = 0
    base_url: Optional[str] = field(default=None)

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Name must be specified")
        if not self.url or not self.url.strip():
            raise ValueError("URL must be specified")
        if int(self.internal_depth) < 0:
            raise ValueError("Internal depth value must be non-negative")
        if int(self.external_depth) < 0:
            raise ValueError("External depth value must be non-negative")
        object.__setattr__(self, "internal_depth", int(self.internal_depth))
        object.__setattr__(self, "external_depth", int(self.external_depth))
        if self.base_url is None:
            object.__setattr__(self, "base_url", _default_base_url(self.url))

    @property
    def key(self) -> str:
        """Case-insensitive identity used for uniqueness checks."""
        return self.name.strip().lower()
