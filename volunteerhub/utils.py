"""Utility functions for the application."""

from __future__ import annotations

import datetime
from typing import Any


def utc_now() -> datetime.datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.datetime.now(datetime.timezone.utc)


def as_datetime(value: Any) -> datetime.datetime | None:
    """Coerce a stored timestamp into an aware datetime.

    Firestore returns ``DatetimeWithNanoseconds`` (a datetime subclass); older
    documents written by the mobile client sometimes hold ISO strings or
    epoch milliseconds instead.
    """
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=datetime.timezone.utc)
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime(
            value.year, value.month, value.day, tzinfo=datetime.timezone.utc
        )
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.datetime.fromtimestamp(value / 1000, tz=datetime.timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return as_datetime(parsed)
    return None


def delete_in_batches(db: Any, query: Any, page_size: int = 500) -> tuple[int, int]:
    """Delete every document matched by ``query``, one batch per page.

    Returns:
        tuple[int, int]: Documents deleted and batches committed.
    """
    deleted = 0
    batches = 0
    while True:
        page = list(query.limit(page_size).stream())
        if not page:
            break
        batch = db.batch()
        for doc in page:
            batch.delete(doc.reference)
        batch.commit()
        deleted += len(page)
        batches += 1
        if len(page) < page_size:
            break
    return deleted, batches
