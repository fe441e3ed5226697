"""Provider-agnostic classification of upstream LLM failures."""

from __future__ import annotations

from enum import Enum


class UpstreamErrorKind(str, Enum):
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXCEEDED = "quota_exceeded"
    AUTH = "auth"
    UNAVAILABLE = "unavailable"


class UpstreamError(Exception):
    """A failed exchange with the LLM provider, reduced to an opaque kind."""

    def __init__(
        self,
        kind: UpstreamErrorKind,
        message: str,
        *,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.retry_after = retry_after


_QUOTA_MARKERS = ("insufficient_quota", "quota", "usage limit", "billing")
_RATE_LIMIT_MARKERS = ("rate limit", "rate_limit", "ratelimit", "too many requests", "429")
_TIMEOUT_MARKERS = ("timed out", "timeout")
_AUTH_MARKERS = ("401", "403", "unauthorized", "authentication", "invalid api key")


def classify_upstream_error(exc: BaseException) -> UpstreamErrorKind:
    """Map an arbitrary client exception to an `UpstreamErrorKind`.

    Only the exception type name, an optional `status_code` attribute and the
    message text are inspected, so no provider SDK is imported here.
    """

    if isinstance(exc, UpstreamError):
        return exc.kind
    if isinstance(exc, TimeoutError):
        return UpstreamErrorKind.TIMEOUT

    status = getattr(exc, "status_code", None)
    text = f"{type(exc).__name__} {exc}".lower()

    if status == 429 or any(marker in text for marker in _RATE_LIMIT_MARKERS):
        if any(marker in text for marker in _QUOTA_MARKERS):
            return UpstreamErrorKind.QUOTA_EXCEEDED
        return UpstreamErrorKind.RATE_LIMITED
    if any(marker in text for marker in _QUOTA_MARKERS):
        return UpstreamErrorKind.QUOTA_EXCEEDED
    if status in (401, 403) or any(marker in text for marker in _AUTH_MARKERS):
        return UpstreamErrorKind.AUTH
    if status == 408 or any(marker in text for marker in _TIMEOUT_MARKERS):
        return UpstreamErrorKind.TIMEOUT
    return UpstreamErrorKind.UNAVAILABLE
