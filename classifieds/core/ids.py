"""Identifier and timestamp issuance for the marketplace store.

This module defines the **id contract** shared by every storage backend:

Identifiers
-----------
Each entity kind (``user``, ``listing``, ``conversation``, ``message``,
``favorite``) has its own counter.  Counters start at ``1``, only ever grow,
and are never rewound, so an id is unique within its kind and is **never
reused**, not even after the record it named has been deleted.  Two kinds
may share a numeric value (listing ``1`` and user ``1`` are unrelated).

Timestamps
----------
Ordering guarantees in the store (listings newest-first, messages
oldest-first, inbox by last activity) are expressed in terms of timestamps.
Two records created within one wall-clock tick would otherwise compare
equal, so :class:`MonotonicClock` nudges each reading forward by one
microsecond when needed: every value it returns is strictly greater than the
previous one.

Typical usage::

    from classifieds.core.ids import EntityKind, IdAllocator, MonotonicClock

    ids = IdAllocator()
    clock = MonotonicClock()

    listing_id = ids.next(EntityKind.LISTING)     # 1, 2, 3, …
    created_at = clock.now()                      # strictly increasing
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from enum import StrEnum

__all__ = [
    "EntityKind",
    "IdAllocator",
    "MonotonicClock",
]

logger = logging.getLogger(__name__)

#: Smallest step the clock advances by when the wall clock has not moved.
CLOCK_RESOLUTION: timedelta = timedelta(microseconds=1)


class EntityKind(StrEnum):
    """Entity kinds that receive identifiers."""

    USER = "user"
    LISTING = "listing"
    CONVERSATION = "conversation"
    MESSAGE = "message"
    FAVORITE = "favorite"


class IdAllocator:
    """Per-kind monotonically increasing integer counters.

    Example::

        ids = IdAllocator()
        assert ids.next(EntityKind.USER) == 1
        assert ids.next(EntityKind.USER) == 2
        assert ids.next(EntityKind.LISTING) == 1
    """

    def __init__(self) -> None:
        self._last: dict[EntityKind, int] = {kind: 0 for kind in EntityKind}

    def next(self, kind: EntityKind) -> int:  # noqa: A003
        """Issue the next identifier for *kind*."""
        self._last[kind] += 1
        return self._last[kind]


class MonotonicClock:
    """Timezone-aware UTC clock whose readings strictly increase.

    Args:
        source: Zero-argument callable returning an aware ``datetime``.
            Defaults to ``datetime.now(UTC)``.  Tests inject a frozen or
            stepping source here.
    """

    def __init__(self, source: Callable[[], datetime] | None = None) -> None:
        self._source = source or (lambda: datetime.now(UTC))
        self._last: datetime | None = None

    def now(self) -> datetime:
        """Return a reading strictly later than every earlier reading."""
        current = self._source()
        if self._last is not None and current <= self._last:
            current = self._last + CLOCK_RESOLUTION
        self._last = current
        return current
