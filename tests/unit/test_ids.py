"""Unit tests for identifier and timestamp issuance."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from classifieds.core.ids import CLOCK_RESOLUTION, EntityKind, IdAllocator, MonotonicClock


class TestIdAllocator:
    def test_counters_start_at_one(self) -> None:
        ids = IdAllocator()
        assert ids.next(EntityKind.LISTING) == 1
        assert ids.next(EntityKind.LISTING) == 2

    def test_kinds_are_independent(self) -> None:
        ids = IdAllocator()
        ids.next(EntityKind.USER)
        ids.next(EntityKind.USER)
        assert ids.next(EntityKind.FAVORITE) == 1
        assert ids.next(EntityKind.USER) == 3


class TestMonotonicClock:
    def test_frozen_source_still_increases(self) -> None:
        frozen = datetime(2026, 1, 1, tzinfo=UTC)
        clock = MonotonicClock(source=lambda: frozen)
        first, second, third = clock.now(), clock.now(), clock.now()
        assert first == frozen
        assert second == frozen + CLOCK_RESOLUTION
        assert third == frozen + 2 * CLOCK_RESOLUTION

    def test_backwards_source_does_not_go_backwards(self) -> None:
        readings = iter(
            [
                datetime(2026, 1, 1, 12, tzinfo=UTC),
                datetime(2026, 1, 1, 11, tzinfo=UTC),
            ]
        )
        clock = MonotonicClock(source=lambda: next(readings))
        first = clock.now()
        assert clock.now() == first + CLOCK_RESOLUTION

    def test_advancing_source_is_passed_through(self) -> None:
        start = datetime(2026, 1, 1, tzinfo=UTC)
        readings = iter([start, start + timedelta(seconds=5)])
        clock = MonotonicClock(source=lambda: next(readings))
        clock.now()
        assert clock.now() == start + timedelta(seconds=5)

    def test_default_source_is_timezone_aware(self) -> None:
        assert MonotonicClock().now().tzinfo is not None
