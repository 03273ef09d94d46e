from datetime import UTC, datetime, timedelta


class SystemClock:
    def now_utc(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """Clock pinned to one instant; advance it explicitly."""

    def __init__(self, now: datetime) -> None:
        self._now = now

    def now_utc(self) -> datetime:
        return self._now

    def advance(self, seconds: float = 0, minutes: float = 0) -> None:
        self._now = self._now + timedelta(seconds=seconds, minutes=minutes)
