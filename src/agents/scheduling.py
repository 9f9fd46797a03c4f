"""Visit date resolution and business-hours status in the office timezone.

Everything here is a pure function of its inputs: callers pass the reference
instant explicitly so the behaviour is reproducible in tests. Reference
instants may be in any timezone; they are converted to the civil timezone
before any calendar arithmetic happens.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "America/New_York"
DEFAULT_VISIT_TIME = time(10, 0)
VISIT_DURATION = timedelta(hours=1)

# Scan order matters when a phrase names several days; first match wins.
WEEKDAY_NAMES: tuple[str, ...] = (
    "sunday",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
)

# Python weekday() numbering: Monday=0 .. Sunday=6.
_PY_WEEKDAY = {name: (index - 1) % 7 for index, name in enumerate(WEEKDAY_NAMES)}

_TIME_PATTERN = re.compile(r"(\d{1,2})(?::(\d{2}))?\s*(am|pm)?", re.IGNORECASE)

# Opening hours as (open_hour, close_hour); None means closed all day.
WEEKDAY_HOURS: tuple[int, int] = (9, 18)
SATURDAY_HOURS: tuple[int, int] = (10, 16)
SUNDAY_HOURS: tuple[int, int] | None = None


@dataclass(frozen=True)
class VisitWindow:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class BusinessStatus:
    is_open: bool
    message: str
    current_time: str
    current_day: str

    def as_dict(self) -> dict[str, object]:
        return {
            "isOpen": self.is_open,
            "message": self.message,
            "currentTime": self.current_time,
            "currentDay": self.current_day,
        }


@dataclass(frozen=True)
class TimeContext:
    day_name: str
    time_string: str
    date_string: str


def now_in(tz_name: str = DEFAULT_TIMEZONE) -> datetime:
    return datetime.now(ZoneInfo(tz_name))


def _localize(reference: datetime, tz_name: str) -> datetime:
    tz = ZoneInfo(tz_name)
    if reference.tzinfo is None:
        return reference.replace(tzinfo=tz)
    return reference.astimezone(tz)


def resolve_day_offset(day_phrase: str | None, reference_weekday: int) -> int:
    """Return the number of days between the reference date and the target date.

    ``reference_weekday`` uses ``datetime.weekday()`` numbering. A named
    weekday equal to the reference weekday means the same day next week.
    Phrases naming nothing we recognise resolve to today.
    """

    phrase = (day_phrase or "").strip().lower()
    if "tomorrow" in phrase:
        return 1
    if "today" in phrase:
        return 0
    for name in WEEKDAY_NAMES:
        if name in phrase:
            offset = (_PY_WEEKDAY[name] - reference_weekday) % 7
            return offset or 7
    return 0


def parse_visit_time(time_phrase: str | None) -> time:
    """Parse a loose ``H[:MM][am|pm]`` phrase, falling back to 10:00."""

    if not time_phrase:
        return DEFAULT_VISIT_TIME
    match = _TIME_PATTERN.search(time_phrase.replace(".", ""))
    if match is None:
        return DEFAULT_VISIT_TIME

    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    meridiem = (match.group(3) or "").lower()
    if meridiem == "pm" and hour < 12:
        hour += 12
    elif meridiem == "am" and hour == 12:
        hour = 0

    if hour > 23 or minute > 59:
        return DEFAULT_VISIT_TIME
    return time(hour, minute)


def resolve_visit_window(
    day_phrase: str | None,
    time_phrase: str | None,
    reference: datetime,
    *,
    tz_name: str = DEFAULT_TIMEZONE,
) -> VisitWindow:
    local = _localize(reference, tz_name)
    target_date = local.date() + timedelta(days=resolve_day_offset(day_phrase, local.weekday()))
    start = datetime.combine(target_date, parse_visit_time(time_phrase), tzinfo=local.tzinfo)
    return VisitWindow(start=start, end=start + VISIT_DURATION)


def format_clock(moment: datetime) -> str:
    hour12 = moment.hour % 12 or 12
    meridiem = "PM" if moment.hour >= 12 else "AM"
    return f"{hour12}:{moment.minute:02d} {meridiem}"


def format_hour(hour: int) -> str:
    hour12 = hour % 12 or 12
    return f"{hour12} {'PM' if hour >= 12 else 'AM'}"


def format_visit_date(moment: datetime) -> str:
    """Render a date the way it is stored in the visits table."""

    return f"{moment:%A}, {moment:%B} {moment.day}, {moment.year}"


def _hours_for(weekday: int) -> tuple[int, int] | None:
    if weekday == 6:
        return SUNDAY_HOURS
    if weekday == 5:
        return SATURDAY_HOURS
    return WEEKDAY_HOURS


def _format_range(hours: tuple[int, int] | None) -> str:
    if hours is None:
        return "Closed"
    return f"{format_hour(hours[0])}-{format_hour(hours[1])}"


def hours_table() -> dict[str, str]:
    return {
        "weekdays": f"{_format_range(WEEKDAY_HOURS)} (Mon-Fri)",
        "saturday": _format_range(SATURDAY_HOURS),
        "sunday": _format_range(SUNDAY_HOURS),
    }


def business_status(reference: datetime, *, tz_name: str = DEFAULT_TIMEZONE) -> BusinessStatus:
    local = _localize(reference, tz_name)
    day_name = f"{local:%A}"
    clock = format_clock(local)
    hours = _hours_for(local.weekday())

    if hours is None:
        return BusinessStatus(
            is_open=False,
            message=(
                f"We're closed on {day_name}s, but I can still help you "
                "and schedule something for the week."
            ),
            current_time=clock,
            current_day=day_name,
        )

    label = "Saturday" if local.weekday() == 5 else "Weekday"
    is_open = hours[0] <= local.hour < hours[1]
    if is_open:
        message = f"We're open! {label} hours {_format_range(hours)}. It's {clock}."
    else:
        message = (
            f"{label} hours are {_format_range(hours)}. "
            "Currently closed, but I can still schedule a visit."
        )
    return BusinessStatus(is_open=is_open, message=message, current_time=clock, current_day=day_name)


def time_context(reference: datetime, *, tz_name: str = DEFAULT_TIMEZONE) -> TimeContext:
    local = _localize(reference, tz_name)
    return TimeContext(
        day_name=f"{local:%A}",
        time_string=format_clock(local),
        date_string=format_visit_date(local),
    )
