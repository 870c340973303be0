"""Civil-day classification in the fixed target timezone.

Every "is it today?" question in Briefly is answered against the wall clock of
a single IANA zone. Instants are converted through the tz database; if the
zone cannot be loaded we raise instead of falling back to UTC or to the host's
local time.

Naive datetimes are treated as floating wall-clock times in the target zone,
which is how iCalendar and Todoist both define them.
"""

from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from briefly.errors import TimezoneUnavailable

TARGET_TIMEZONE = "America/Sao_Paulo"


@lru_cache(maxsize=8)
def _load_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise TimezoneUnavailable(f"Timezone {name!r} is not available: {e}") from e


def target_zone() -> ZoneInfo:
    """The target zone. Raises TimezoneUnavailable if the tz database lacks it."""
    return _load_zone(TARGET_TIMEZONE)


def to_target(instant: datetime) -> datetime:
    """Express an instant in the target zone."""
    zone = target_zone()
    if instant.tzinfo is None:
        return instant.replace(tzinfo=zone)
    return instant.astimezone(zone)


def to_target_civil_datetime(instant: datetime) -> tuple[int, int, int, int, int, int]:
    """Wall-clock (year, month, day, hour, minute, second) of an instant in the target zone."""
    local = to_target(instant)
    return (local.year, local.month, local.day, local.hour, local.minute, local.second)


def civil_date(instant: datetime) -> date:
    """Calendar date of an instant in the target zone."""
    return to_target(instant).date()


def is_same_civil_day(a: datetime, b: datetime) -> bool:
    return civil_date(a) == civil_date(b)


def day_start(day: date) -> datetime:
    """First instant of a civil date in the target zone.

    When midnight falls in a DST gap the wall clock skips it, so the day starts
    at the first wall-clock time that exists. The UTC round trip resolves that.
    """
    zone = target_zone()
    naive_midnight = datetime.combine(day, time(0, 0), tzinfo=zone)
    return naive_midnight.astimezone(timezone.utc).astimezone(zone)


def start_of_civil_day(instant: datetime) -> datetime:
    """00:00:00 of the instant's civil day, as an aware datetime."""
    return day_start(civil_date(instant))


def end_of_civil_day(instant: datetime) -> datetime:
    """Last representable instant of the instant's civil day."""
    next_day = civil_date(instant) + timedelta(days=1)
    return day_start(next_day) - timedelta(microseconds=1)


def now_in_target(now: datetime | None = None) -> datetime:
    """Current time in the target zone, or `now` re-expressed there."""
    if now is None:
        return datetime.now(target_zone())
    return to_target(now)


def as_instant(value: date | datetime) -> datetime:
    """Normalize a DATE or DATE-TIME value to an aware datetime.

    Dates become midnight in the target zone; floating times are read as
    target-zone wall clock.
    """
    if not isinstance(value, datetime):
        return day_start(value)
    return to_target(value) if value.tzinfo is None else value
