"""Test helpers shared across modules."""

from datetime import datetime, timezone

from teamtasks.dates import as_zone

NOW = datetime(2024, 1, 2, 12, 0, tzinfo=timezone.utc)


class FixedClock:
    """Callable clock whose time tests can move."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def same_instant(a: datetime, b: datetime) -> bool:
    """Compare timestamps that may come back naive (UTC) from SQLite."""
    return as_zone(a, timezone.utc) == as_zone(b, timezone.utc)
