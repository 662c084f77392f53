from datetime import date, datetime, time, timedelta, tzinfo
import logging
from zoneinfo import ZoneInfo

from referral_dispatch.schemas import TimeWindow


logger = logging.getLogger(__name__)


def day_window(day: date, tz: tzinfo) -> TimeWindow:
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return TimeWindow(start=start, end=end)


def resolve_window(
    month: str | None,
    day: str | None,
    *,
    timezone: str = "UTC",
    today: date | None = None,
) -> tuple[TimeWindow, str | None]:
    """Build the batch window from an optional month/day override.

    Both values are needed for an override and apply to the current year.
    A partial or malformed override falls back to today's window; the
    returned warning says why so callers can surface it.
    """
    tz = ZoneInfo(timezone)
    today = today or datetime.now(tz).date()
    default = day_window(today, tz)

    month = (month or "").strip()
    day = (day or "").strip()
    if not month and not day:
        return default, None

    if not month or not day:
        given = "month" if month else "day"
        missing = "day" if month else "month"
        warning = f"--{given} given without --{missing}; using today's window {default.label}"
        logger.warning("partial window override ignored", extra={"month": month, "day": day})
        return default, warning

    try:
        override = date(today.year, int(month), int(day))
    except ValueError:
        warning = f"invalid date month={month!r} day={day!r}; using today's window {default.label}"
        logger.warning("malformed window override ignored", extra={"month": month, "day": day})
        return default, warning

    return day_window(override, tz), None
