"""Timestamp rules behind the feed's total order."""

from __future__ import annotations

from datetime import UTC, datetime


def truncate_to_millis(value: datetime) -> datetime:
    """Drop sub-millisecond precision and normalise to UTC.

    BSON dates only keep milliseconds; truncating before a post is stored keeps
    the in-process value, the persisted value and any cursor built from them equal.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


class MonotonicTimestamps:
    """Hand out creation timestamps that never decrease in write order.

    A wall clock may step backwards; a post written later must never sort
    before one written earlier by the same repository instance.
    """

    def __init__(self) -> None:
        self._last: datetime | None = None

    def next(self, now: datetime) -> datetime:
        stamp = truncate_to_millis(now)
        if self._last is not None and stamp < self._last:
            stamp = self._last
        self._last = stamp
        return stamp
