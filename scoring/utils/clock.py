"""
Time source helpers.

Scoring reads the wall clock through a callable so tests can pin "now".
"""
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Get current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


def ensure_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class FixedClock:
    """Callable clock that always returns the same instant."""

    def __init__(self, moment: datetime):
        self.moment = ensure_utc(moment)

    def __call__(self) -> datetime:
        return self.moment
