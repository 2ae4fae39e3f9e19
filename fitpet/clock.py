# backend/fitpet/clock.py
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)


class Clock:
    """
    Source of "now" for every date calculation in the app.

    One instance lives on the Flask app (``app.clock``). Services receive it
    as an argument instead of calling ``datetime.now()`` themselves, so tests
    and the debug endpoints can pin or move time per app.
    """

    def __init__(self, tz_name: Optional[str] = None):
        self._tz = ZoneInfo(tz_name) if tz_name else None
        self._fake_now: Optional[datetime] = None

    def _real_now(self) -> datetime:
        if self._tz is None:
            return datetime.now()
        # stored timestamps are naive, in the configured zone
        return datetime.now(self._tz).replace(tzinfo=None)

    def now(self) -> datetime:
        return self._fake_now if self._fake_now is not None else self._real_now()

    def today(self) -> date:
        return self.now().date()

    @property
    def is_faked(self) -> bool:
        return self._fake_now is not None

    # --- test / debug controls ---
    def set_fake_date(self, value: Union[datetime, date, str, None]) -> None:
        if value is None:
            self._fake_now = None
        elif isinstance(value, str):
            self._fake_now = datetime.fromisoformat(value).replace(tzinfo=None)
        elif isinstance(value, datetime):
            self._fake_now = value.replace(tzinfo=None)
        else:
            self._fake_now = datetime.combine(value, time(hour=12))
        logger.info("Fake date set to: %s", self._fake_now)

    def advance_days(self, days: int) -> None:
        base = self._fake_now if self._fake_now is not None else self._real_now()
        self._fake_now = base + timedelta(days=days)
        logger.info("Fake date advanced by %s days to: %s", days, self._fake_now)

    def reset(self) -> None:
        self._fake_now = None
        logger.info("Fake date reset.")


def utcnow() -> datetime:
    """Naive UTC timestamp for audit columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max)
