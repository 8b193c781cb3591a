"""Timezone-aware UTC helpers.

Every timestamp the identity service stores or compares (lockout windows,
reset-token expiry, membership joined_at, JWT claims) is aware UTC.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Normalize a value read back from storage.

    SQLite hands back naive datetimes; those are taken to be UTC. Aware
    values are converted.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def from_timestamp_utc(timestamp: float) -> datetime:
    """Aware UTC datetime from epoch seconds (e.g. a JWT ``exp`` claim)."""
    return datetime.fromtimestamp(timestamp, tz=UTC)
