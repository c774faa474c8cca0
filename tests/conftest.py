"""Shared fixtures: a hand-driven tick scheduler and a fixed clock."""

from datetime import datetime, timedelta, timezone

import pytest


class ManualHandle:
    def __init__(self, callback):
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Collects scheduled callbacks; tests fire them one second at a time."""

    def __init__(self, clock=None):
        self.handles: list[ManualHandle] = []
        self.clock = clock

    def call_every(self, interval, callback):
        handle = ManualHandle(callback)
        self.handles.append(handle)
        return handle

    @property
    def active(self) -> list[ManualHandle]:
        return [h for h in self.handles if not h.cancelled]

    def fire(self, seconds: int = 1) -> None:
        for _ in range(seconds):
            if self.clock is not None:
                self.clock.advance(1)
            for handle in self.active:
                handle.callback()


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def scheduler(clock):
    return ManualScheduler(clock)
