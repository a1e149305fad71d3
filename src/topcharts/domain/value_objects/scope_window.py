"""Scope key parsing into concrete time windows.

Hey future me - scope keys are the time-window tokens that are part of every cache
key ("all-time", "30d", "year:1995"). This module turns them into a lower time bound
for the listening-history query.

Grammar (case-sensitive):
    "all-time"          -> no lower bound
    "<N>d"              -> now - N days (UTC, re-evaluated on EVERY call)
    "year:<YYYY>"       -> January 1st of YYYY, 00:00 UTC
    anything else       -> no lower bound (same as "all-time")

The last rule is a PERMISSIVE FALLBACK: "30days" or "year:95" silently behave like
"all-time". resolve_scope() never raises.

Examples:
    >>> resolve_scope("all-time").since is None
    True
    >>> resolve_scope("year:1995").since
    datetime.datetime(1995, 1, 1, 0, 0, tzinfo=datetime.timezone.utc)
"""

import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

ALL_TIME = "all-time"

DAYS_PATTERN = re.compile(r"^(?P<days>\d+)d$")
YEAR_PATTERN = re.compile(r"^year:(?P<year>\d{4})$")


@dataclass(frozen=True)
class ScopeWindow:
    """Lower time bound resolved from a scope key."""

    since: datetime | None = None

    @property
    def is_bounded(self) -> bool:
        return self.since is not None


def resolve_scope(scope_key: str, now: datetime | None = None) -> ScopeWindow:
    """Resolve a scope key into a time window.

    Args:
        scope_key: Scope token, e.g. "all-time", "7d", "year:2024"
        now: Reference time for relative windows (defaults to current UTC time)

    Returns:
        ScopeWindow with since=None when the window is unbounded or unparsable
    """
    if scope_key == ALL_TIME:
        return ScopeWindow()

    days_match = DAYS_PATTERN.match(scope_key)
    if days_match:
        reference = now if now is not None else datetime.now(UTC)
        try:
            return ScopeWindow(
                since=reference - timedelta(days=int(days_match.group("days")))
            )
        except OverflowError:
            # "99999999d" reaches before year 1
            return ScopeWindow()

    year_match = YEAR_PATTERN.match(scope_key)
    if year_match:
        try:
            return ScopeWindow(
                since=datetime(int(year_match.group("year")), 1, 1, tzinfo=UTC)
            )
        except ValueError:
            # year:0000
            return ScopeWindow()

    return ScopeWindow()
