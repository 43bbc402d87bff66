from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo


def day_ordinal(d: date) -> int:
    """Days elapsed since 0001-01-01 (proleptic Gregorian, day 1)."""
    return d.toordinal()


def weekday_number(d: date) -> int:
    """Sunday=1 ... Saturday=7."""
    return d.isoweekday() % 7 + 1


def date_key(d: date) -> str:
    return d.isoformat()


class Clock:
    def __init__(self, timezone: Optional[str] = None):
        self._tz = ZoneInfo(timezone) if timezone else None

    def now(self) -> datetime:
        return datetime.now(self._tz)

    def today(self) -> date:
        return self.now().date()

    def weekday(self) -> int:
        return weekday_number(self.today())

    def day_ordinal(self) -> int:
        return day_ordinal(self.today())

    def date_key(self) -> str:
        return date_key(self.today())


class FixedClock(Clock):
    """Clock pinned to a given moment; ``set`` moves it."""

    def __init__(self, moment: datetime):
        super().__init__()
        self._moment = moment

    def set(self, moment: datetime) -> None:
        self._moment = moment

    def now(self) -> datetime:
        return self._moment
