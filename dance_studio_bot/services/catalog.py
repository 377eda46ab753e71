from __future__ import annotations

import logging
from html import escape
from typing import Callable

from telegram import Bot
from telegram import User as TelegramUser

from dance_studio_bot import messages
from dance_studio_bot.config import BotConfig
from dance_studio_bot.database import PROGRAM_TYPES, Booking, Database, Program
from dance_studio_bot.keyboards.user import (
    main_menu_keyboard,
    my_bookings_keyboard,
    program_details_keyboard,
    programs_keyboard,
    schedule_keyboard,
)
from dance_studio_bot.utils.formatting import (
    format_currency,
    format_day_month,
    format_duration,
    format_program,
    format_session,
)
from dance_studio_bot.utils.messaging import send_html
from dance_studio_bot.utils.schedule import today_local

LOGGER = logging.getLogger(__name__)

SCHEDULE_PREVIEW_SESSIONS = 3
PASS_PREVIEW_SESSIONS = 4


class CatalogService:
    """Main menu, the public list of programs and the per-user views."""

    def __init__(
        self, database: Database, bot: Bot, config: BotConfig, today: Callable = today_local
    ) -> None:
        self.database = database
        self.bot = bot
        self.config = config
        self._today = today

    async def welcome(self, chat_id: int, user: TelegramUser) -> None:
        self.database.upsert_user(user.id, user.username, user.first_name, user.last_name)
        await send_html(self.bot, chat_id, messages.WELCOME_MESSAGE)
        await self.show_menu(chat_id)

    async def show_menu(self, chat_id: int) -> None:
        await send_html(
            self.bot, chat_id, messages.MAIN_MENU_TEXT, main_menu_keyboard(self.config.contact_url)
        )

    async def show_programs(self, chat_id: int) -> None:
        programs = self.database.list_active_programs()
        if not programs:
            await send_html(
                self.bot, chat_id, messages.NO_PROGRAMS, main_menu_keyboard(self.config.contact_url)
            )
            return
        await send_html(self.bot, chat_id, messages.PROGRAMS_HEADER, programs_keyboard(programs))

    async def show_program(self, chat_id: int, program_id: int) -> None:
        program = self.database.get_program(program_id)
        if program is None:
            LOGGER.info("Chat %s asked for missing program %s", chat_id, program_id)
            await send_html(self.bot, chat_id, messages.PROGRAM_NOT_FOUND)
            return
        await send_html(self.bot, chat_id, format_program(program), program_details_keyboard(program_id))

    # Schedule ------------------------------------------------------------
    def _schedule_entry(self, position: int, program: Program) -> list[str]:
        lines = [f"{position}. <b>{escape(program.title)}</b>"]
        if program.type == "intensive" and program.start_date:
            period = format_day_month(program.start_date)
            if program.end_date and program.end_date != program.start_date:
                period = f"{period} – {format_day_month(program.end_date)}"
            lines.append(f"   📅 {period}")
        lines.append(f"   🕘 Длительность: {format_duration(program.duration_minutes)}")
        if program.type == "open_group" and program.single_price:
            lines.append(f"   💰 Разовое: {format_currency(program.single_price)}")
            lines.append(f"   💳 Абонемент (4 занятия): {format_currency(program.price)}")
        else:
            lines.append(f"   💰 Цена: {format_currency(program.price)}")

        upcoming = []
        if program.type != "individual":
            upcoming = self.database.get_upcoming_sessions(program.program_id, self._today())
        if upcoming:
            lines.append(f"   {messages.SCHEDULE_UPCOMING}")
            lines.extend(
                f"   • {escape(format_session(session))}"
                for session in upcoming[:SCHEDULE_PREVIEW_SESSIONS]
            )
        elif program.schedule:
            lines.append(f"   📅 Расписание: {escape(program.schedule)}")
        return lines

    async def show_schedule(self, chat_id: int) -> None:
        programs = self.database.list_active_programs()
        if not programs:
            await send_html(self.bot, chat_id, messages.SCHEDULE_EMPTY, schedule_keyboard())
            return

        lines = [messages.SCHEDULE_HEADER, messages.SCHEDULE_DIVIDER]
        for program_type in PROGRAM_TYPES:
            group = [program for program in programs if program.type == program_type]
            if not group:
                continue
            lines.extend(["", messages.SCHEDULE_SECTIONS[program_type], ""])
            for position, program in enumerate(group, start=1):
                lines.extend(self._schedule_entry(position, program))
                lines.append("")
            lines.append(messages.SCHEDULE_DIVIDER)
        await send_html(self.bot, chat_id, "\n".join(lines), schedule_keyboard())

    # My bookings ---------------------------------------------------------
    def _booking_dates(self, booking: Booking, program: Program) -> list[str]:
        if booking.session_id is not None:
            session = self.database.get_session(booking.session_id)
            if session is None:
                return [messages.MY_BOOKINGS_DATE_UNKNOWN]
            return [f"📅 {escape(format_session(session))}"]

        session_ids = self.database.get_booking_session_ids(booking.booking_id)
        sessions = [session for session in map(self.database.get_session, session_ids) if session is not None]
        if not sessions:
            sessions = self.database.get_upcoming_sessions(program.program_id, self._today())
        if not sessions:
            return [f"📅 {escape(program.schedule or messages.SCHEDULE_UNKNOWN)}"]
        lines = [messages.MY_BOOKINGS_PASS_DATES]
        lines.extend(f"• {escape(format_session(session))}" for session in sessions[:PASS_PREVIEW_SESSIONS])
        if len(sessions) > PASS_PREVIEW_SESSIONS:
            lines.append(f"• и ещё {len(sessions) - PASS_PREVIEW_SESSIONS}")
        return lines

    async def show_my_bookings(self, chat_id: int, user: TelegramUser) -> None:
        record = self.database.get_user_by_telegram_id(user.id)
        bookings = self.database.list_user_bookings(record.user_id) if record else []
        pending = self.database.list_pending_applications_for_user(record.user_id) if record else []
        if not bookings and not pending:
            await send_html(self.bot, chat_id, messages.MY_BOOKINGS_EMPTY, schedule_keyboard())
            return

        lines = [messages.MY_BOOKINGS_HEADER, ""]
        for booking in bookings:
            program = self.database.get_program(booking.program_id)
            if program is None:
                continue
            lines.append(f"💃 <b>{escape(program.title)}</b>")
            if program.group_link:
                lines.append(messages.MY_BOOKINGS_GROUP_LINK.format(link=escape(program.group_link)))
            lines.extend(self._booking_dates(booking, program))
            lines.extend([messages.MY_BOOKINGS_PAID.format(amount=format_currency(booking.amount)), ""])

        if pending:
            lines.extend([messages.MY_BOOKINGS_PENDING_HEADER, ""])
            for application in pending:
                program = self.database.get_program(application.program_id)
                lines.append(
                    messages.MY_BOOKINGS_PENDING_ROW.format(
                        title=escape(program.title if program else "Занятие"),
                        amount=format_currency(application.amount),
                        application_id=application.application_id,
                    )
                )
                lines.append("")

        lines.append(messages.MY_BOOKINGS_FOOTER)
        await send_html(self.bot, chat_id, "\n".join(lines), my_bookings_keyboard(self.config.contact_url))


__all__ = ["CatalogService"]
