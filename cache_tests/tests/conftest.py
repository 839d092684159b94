from datetime import datetime, timedelta, timezone

import pytest


class FakeClock:
    """Controllable stand-in for the cache's wall clock."""

    def __init__(self, start: datetime) -> None:
        self.now = start
        self.calls = 0

    def __call__(self) -> datetime:
        self.calls += 1
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc))
