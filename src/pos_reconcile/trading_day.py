"""Trading-day windows: a branch-local calendar day expressed in UTC."""

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

ODATA_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


@dataclass(frozen=True)
class TradingDayWindow:
    """Inclusive UTC bounds of one trading day."""

    trading_date: date
    start: datetime
    end: datetime

    @property
    def start_filter(self) -> str:
        return self.start.strftime(ODATA_TIMESTAMP_FORMAT)

    @property
    def end_filter(self) -> str:
        return self.end.strftime(ODATA_TIMESTAMP_FORMAT)


def trading_day_window(trading_date: date, timezone: str) -> TradingDayWindow:
    """Compute the UTC window covering a local trading day.

    The window runs from local midnight to one second before the next
    local midnight, so a day that crosses a daylight saving change is
    23 or 25 hours long.

    Args:
        trading_date: Calendar date in the branch's time zone.
        timezone: IANA zone name, e.g. "Australia/Sydney".

    Returns:
        Window with UTC-aware start and end.
    """
    tz = ZoneInfo(timezone)
    local_start = datetime.combine(trading_date, time.min, tzinfo=tz)
    local_next = datetime.combine(trading_date + timedelta(days=1), time.min, tzinfo=tz)
    return TradingDayWindow(
        trading_date=trading_date,
        start=local_start.astimezone(UTC),
        end=(local_next - timedelta(seconds=1)).astimezone(UTC),
    )


def today_in(timezone: str) -> date:
    """Return the current calendar date in the given zone."""
    return datetime.now(ZoneInfo(timezone)).date()
