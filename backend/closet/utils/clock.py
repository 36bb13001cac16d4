from datetime import datetime, timedelta, timezone

RESOLUTION = timedelta(microseconds=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MonotonicClock:
    """UTC clock whose readings never repeat or go backwards."""

    def __init__(self) -> None:
        self._last: datetime | None = None

    def now(self, after: datetime | None = None) -> datetime:
        current = utc_now()
        floor = self._last
        if after is not None and (floor is None or after > floor):
            floor = after
        if floor is not None and current <= floor:
            current = floor + RESOLUTION
        self._last = current
        return current
