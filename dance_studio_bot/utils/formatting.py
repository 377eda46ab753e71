from __future__ import annotations

from datetime import date
from html import escape
from typing import Optional

from dance_studio_bot.database import Application, Program, ProgramSession
from dance_studio_bot.messages import (
    APPLICATION_ROW,
    PROGRAM_TYPE_LABELS,
    SCHEDULE_UNKNOWN,
)

MONTHS_GENITIVE = (
    "января",
    "февраля",
    "марта",
    "апреля",
    "мая",
    "июня",
    "июля",
    "августа",
    "сентября",
    "октября",
    "ноября",
    "декабря",
)
WEEKDAYS_SHORT = ("Пн", "Вт", "Ср", "Чт", "Пт", "Сб", "Вс")
WEEKDAYS_LONG = (
    "понедельник",
    "вторник",
    "среда",
    "четверг",
    "пятница",
    "суббота",
    "воскресенье",
)


def format_currency(amount: Optional[int]) -> str:
    if amount is None:
        return "—"
    return f"{amount:,}".replace(",", " ") + " ₽"


def format_day_month(value: date) -> str:
    return f"{value.day} {MONTHS_GENITIVE[value.month - 1]}"


def format_short_date(value: date) -> str:
    """``"10 февраля (Вт)"``."""
    return f"{format_day_month(value)} ({WEEKDAYS_SHORT[value.weekday()]})"


def format_long_date(value: date) -> str:
    """``"вторник, 10 февраля"``."""
    return f"{WEEKDAYS_LONG[value.weekday()]}, {format_day_month(value)}"


def format_session(session: ProgramSession) -> str:
    return f"{format_short_date(session.session_date)} — {session.session_time}"


def format_schedule(schedule: Optional[str]) -> str:
    if not schedule:
        return SCHEDULE_UNKNOWN
    if "•" in schedule:
        return schedule
    return "\n".join(f"• {part.strip()}" for part in schedule.split(",") if part.strip())


def format_duration(minutes: Optional[int]) -> str:
    if minutes == 60:
        return "1 час"
    if minutes == 90:
        return "1,5 часа"
    return f"{minutes} мин" if minutes else "—"


def format_program(program: Program) -> str:
    lines = [
        f"💃 <b>{escape(program.title)}</b>",
        f"<i>{PROGRAM_TYPE_LABELS.get(program.type, 'Занятие')}</i>",
        "",
    ]
    if program.description:
        lines.extend([escape(program.description), ""])
    if program.start_date:
        lines.append(f"📅 <b>Старт:</b> {format_day_month(program.start_date)}")
    if program.schedule:
        lines.append(f"⏰ <b>Расписание:</b>\n{escape(format_schedule(program.schedule))}")
    lines.append(f"💰 <b>Стоимость:</b> {format_currency(program.price)}")
    if program.single_price:
        lines.append(f"🎫 <b>Разовое занятие:</b> {format_currency(program.single_price)}")
    if program.type != "individual":
        spots = program.free_spots
        spots_text = f"{spots} свободно" if spots > 0 else "мест нет"
        lines.append(
            f"👥 <b>Места:</b> {program.current_participants}/{program.max_participants} ({spots_text})"
        )
    return "\n".join(lines)


def format_application_row(application: Application, title: Optional[str]) -> str:
    return APPLICATION_ROW.format(
        id=application.application_id,
        program=escape(title or "?"),
        name=escape(application.user_name),
        phone=escape(application.user_phone),
        amount=format_currency(application.amount),
    )


__all__ = [
    "format_currency",
    "format_day_month",
    "format_short_date",
    "format_long_date",
    "format_session",
    "format_schedule",
    "format_duration",
    "format_program",
    "format_application_row",
]
