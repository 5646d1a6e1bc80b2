"""
Failure types raised by the hours engine.

Page resolution and extraction raise these; only the hours cache turns one
into a degraded (stale) success.
"""

from typing import Optional


class HoursError(Exception):
    """Base class for every failure the engine reports."""


class FetchFailure(HoursError):
    """
    Network or HTTP failure while resolving a place page.

    `permanent` separates "this link is bad" (4xx, short link that never
    redirects, redirect loop) from "try later" (timeouts, 5xx, rate limiting).
    """

    def __init__(
        self,
        url: str,
        reason: str,
        status_code: Optional[int] = None,
        permanent: bool = False
    ):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        self.permanent = permanent
        status = f" (HTTP {status_code})" if status_code else ""
        super().__init__(f"Fetch failed for {url}{status}: {reason}")


class InsufficientData(HoursError):
    """No extraction strategy found enough weekdays to trust."""

    def __init__(self, url: str, best_days: int = 0, min_days: int = 3):
        self.url = url
        self.best_days = best_days
        self.min_days = min_days
        super().__init__(
            f"Insufficient hours data for {url}: best strategy found "
            f"{best_days} day(s), need {min_days}"
        )


class MalformedSchedule(HoursError):
    """A normalized schedule broke the 7-day invariant."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Malformed schedule: {detail}")


class UnauthorizedRefresh(HoursError):
    """Admin refresh attempted without the shared secret."""
