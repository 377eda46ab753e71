from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from dance_studio_bot.database import SessionSlot

WEEKS_FORWARD = 4

# Callback code -> short Russian label, in Monday-first order.
WEEKDAYS: dict[str, str] = {
    "mon": "Пн",
    "tue": "Вт",
    "wed": "Ср",
    "thu": "Чт",
    "fri": "Пт",
    "sat": "Сб",
    "sun": "Вс",
}

# Short label -> ``date.weekday()`` index.
WEEKDAY_INDEX: dict[str, int] = {label: index for index, label in enumerate(WEEKDAYS.values())}

TIME_RE = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")
START_DATE_RE = re.compile(r"^(\d{2})\.(\d{2})\.(\d{2}|\d{4})$")
RANGE_SEPARATORS = ("–", "-")


@dataclass(slots=True)
class ScheduleEntry:
    """One weekly slot of a recurring schedule."""

    day: str
    time: str
    duration: int

    def label(self) -> str:
        return f"{self.day} {add_duration(self.time, self.duration)} ({self.duration} мин)"


def normalise_time(value: str) -> str:
    """Return ``value`` as zero padded ``HH:MM``; raise ``ValueError`` if invalid."""
    match = TIME_RE.match(value.strip())
    if not match:
        raise ValueError(f"Invalid time: {value!r}")
    return f"{int(match.group(1)):02d}:{match.group(2)}"


def add_duration(time: str, minutes: int) -> str:
    """Turn a start time into an ``HH:MM–HH:MM`` range.

    Values that already contain a range separator are returned unchanged, as
    are values that are not a recognisable time.
    """
    if not time:
        return ""
    if any(separator in time for separator in RANGE_SEPARATORS):
        return time
    match = TIME_RE.match(time.strip())
    if not match:
        return time
    hours, mins = int(match.group(1)), int(match.group(2))
    end_total = hours * 60 + mins + minutes
    end_hours = (end_total // 60) % 24
    end_minutes = end_total % 60
    return f"{hours:02d}:{mins:02d}–{end_hours:02d}:{end_minutes:02d}"


def parse_start_date(value: str) -> date:
    """Parse ``ДД.ММ.ГГ`` or ``ДД.ММ.ГГГГ`` into a date."""
    match = START_DATE_RE.match(value.strip())
    if not match:
        raise ValueError(f"Invalid date format: {value!r}")
    day, month, year = match.groups()
    if len(year) == 2:
        year = "20" + year
    return date(int(year), int(month), int(day))


def next_date_for_day(start: date, day: str, week_offset: int = 0) -> Optional[date]:
    """First date on or after ``start + week_offset weeks`` falling on ``day``."""
    target = WEEKDAY_INDEX.get(day)
    if target is None:
        return None
    result = start + timedelta(weeks=week_offset)
    return result + timedelta(days=(target - result.weekday()) % 7)


def sessions_from_details(
    start: date, entries: Iterable[ScheduleEntry], weeks: int = WEEKS_FORWARD
) -> list[SessionSlot]:
    entries = list(entries)
    slots: list[SessionSlot] = []
    for week in range(weeks):
        for entry in entries:
            session_date = next_date_for_day(start, entry.day, week)
            if session_date is None:
                continue
            slots.append(SessionSlot(session_date, entry.time, entry.duration))
    slots.sort(key=lambda slot: (slot.session_date, slot.session_time))
    return slots


def sessions_from_rules(start: date, schedule: str, weeks: int = WEEKS_FORWARD) -> list[SessionSlot]:
    """Expand a ``"Вт 20:30, Пт 20:00"`` rule string over ``weeks`` weeks."""
    rules: list[tuple[int, str]] = []
    for part in schedule.split(","):
        tokens = part.strip().split()
        if len(tokens) < 2 or tokens[0] not in WEEKDAY_INDEX:
            continue
        rules.append((WEEKDAY_INDEX[tokens[0]], tokens[1]))

    slots: list[SessionSlot] = []
    for offset in range(weeks * 7):
        current = start + timedelta(days=offset)
        for weekday, time in rules:
            if current.weekday() == weekday:
                slots.append(SessionSlot(current, time))
    return slots


def intensive_sessions(
    start: date, times: list[str], duration: Optional[int] = None
) -> list[SessionSlot]:
    return [
        SessionSlot(start + timedelta(days=index), time, duration)
        for index, time in enumerate(times)
    ]


def today_local() -> date:
    return datetime.now().date()


__all__ = [
    "WEEKS_FORWARD",
    "WEEKDAYS",
    "WEEKDAY_INDEX",
    "ScheduleEntry",
    "normalise_time",
    "add_duration",
    "parse_start_date",
    "next_date_for_day",
    "sessions_from_details",
    "sessions_from_rules",
    "intensive_sessions",
    "today_local",
]
