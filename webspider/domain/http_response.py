from typing import NamedTuple, Optional


class HttpResponse(NamedTuple):
    """Response from HTTP fetch operation."""
    status_code: int
    text: str


class FetchOutcome(NamedTuple):
    """Either a fetched page body or the reason it could not be fetched."""
    body: Optional[str]
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.body is not None

    @classmethod
    def success(cls, body: str) -> "FetchOutcome":
        return cls(body=body)

    @classmethod
    def failure(cls, reason: str) -> "FetchOutcome":
        return cls(body=None, reason=reason)
