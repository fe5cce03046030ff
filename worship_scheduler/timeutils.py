"""Naive-UTC timestamp helpers shared by the slot workflow."""

from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    # Stored timestamps are naive UTC; SQLite drops tzinfo on round-trip.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def resolve_now(now: datetime | None) -> datetime:
    return utcnow() if now is None else to_utc_naive(now)
