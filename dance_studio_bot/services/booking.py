from __future__ import annotations

import logging
import re
import sqlite3
from html import escape
from typing import Callable, Optional

from telegram import Bot, ReplyKeyboardRemove
from telegram import User as TelegramUser
from telegram.error import TelegramError

from dance_studio_bot import messages
from dance_studio_bot.config import BotConfig
from dance_studio_bot.database import ApplicationRequest, Database, Program, ProgramSession
from dance_studio_bot.errors import CapacityError
from dance_studio_bot.keyboards.user import (
    contact_admin_keyboard,
    contact_request_keyboard,
    full_pass_keyboard,
    notes_keyboard,
    open_group_option_keyboard,
    payment_keyboard,
    single_date_keyboard,
    summary_keyboard,
)
from dance_studio_bot.services.notifications import AdminNotifier
from dance_studio_bot.sessions import PASS_SIZE, BookingSession, BookingStep, SessionStore
from dance_studio_bot.utils.formatting import format_currency, format_schedule, format_session
from dance_studio_bot.utils.messaging import ReplyMarkup, edit_html, send_html
from dance_studio_bot.utils.schedule import today_local

LOGGER = logging.getLogger(__name__)

SESSION_CAPACITY = 10
PHONE_RE = re.compile(r"^[+]?[0-9\s\-()]{10,20}$")


def normalise_phone(raw: str) -> str:
    digits = re.sub(r"\D", "", raw)
    return f"+{digits}" if raw.strip().startswith("+") else digits


def booking_amount(program: Program, option: Optional[str]) -> int:
    """Amount due for ``program``; the single price applies only to single visits."""
    if option == "single" and program.single_price:
        return program.single_price
    return program.price


class BookingService:
    """Drives a user from program selection to a submitted application."""

    def __init__(
        self,
        database: Database,
        bot: Bot,
        store: SessionStore,
        notifier: AdminNotifier,
        config: BotConfig,
        today: Callable = today_local,
    ) -> None:
        self.database = database
        self.bot = bot
        self.store = store
        self.notifier = notifier
        self.config = config
        self._today = today

    async def _send(self, chat_id: int, text: str, reply_markup: Optional[ReplyMarkup] = None):
        return await send_html(self.bot, chat_id, text, reply_markup)

    async def _require(self, chat_id: int, step: BookingStep) -> Optional[BookingSession]:
        session = self.store.get_booking(chat_id)
        if session is None:
            await self._send(chat_id, messages.BOOKING_NOT_ACTIVE)
            return None
        if session.step is not step:
            LOGGER.info(
                "Chat %s sent input for %s while booking is at %s", chat_id, step.value, session.step.value
            )
            await self._send(chat_id, messages.BOOKING_STEP_MISMATCH)
            return None
        return session

    # Entry ---------------------------------------------------------------
    async def start_booking(self, chat_id: int, program_id: int, user: TelegramUser) -> Optional[BookingSession]:
        self.store.clear_booking(chat_id)

        program = self.database.get_program(program_id)
        if program is None:
            await self._send(chat_id, messages.PROGRAM_NOT_FOUND)
            return None
        if program.type == "individual":
            await self._show_individual(chat_id, program)
            return None
        if program.free_spots <= 0:
            LOGGER.info("Program %s is full, booking refused for chat %s", program_id, chat_id)
            await self._send(chat_id, messages.PROGRAM_FULL)
            return None

        self.database.upsert_user(user.id, user.username, user.first_name, user.last_name)

        if program.type == "open_group" and program.single_price:
            session = self.store.start_booking(chat_id, program_id, BookingStep.CHOOSE_OPTION, user.id)
            await self._send(
                chat_id,
                messages.OPEN_GROUP_OPTIONS.format(
                    full_price=format_currency(program.price),
                    single_price=format_currency(program.single_price),
                ),
                open_group_option_keyboard(program_id),
            )
        else:
            session = self.store.start_booking(chat_id, program_id, BookingStep.CONTACT, user.id)
            await self._ask_contact(chat_id, program, session)
        LOGGER.info("Booking started for chat %s on program %s at %s", chat_id, program_id, session.step.value)
        return session

    async def _show_individual(self, chat_id: int, program: Program) -> None:
        upcoming = self.database.get_upcoming_sessions(program.program_id, self._today())
        if upcoming:
            slots = "\n".join(f"• {format_session(item)}" for item in upcoming)
        elif program.schedule:
            slots = escape(format_schedule(program.schedule))
        else:
            slots = messages.INDIVIDUAL_NO_SLOTS
        await self._send(
            chat_id,
            messages.INDIVIDUAL_INFO.format(slots=slots, price=format_currency(program.price)),
            contact_admin_keyboard(self.config.contact_url),
        )

    async def _ask_contact(self, chat_id: int, program: Program, session: BookingSession) -> None:
        amount = booking_amount(program, session.data.selected_option)
        await self._send(
            chat_id,
            messages.CONTACT_PROMPT.format(title=escape(program.title), price=format_currency(amount)),
            contact_request_keyboard(),
        )

    # Open group option -------------------------------------------------
    async def choose_option(self, chat_id: int, option: str, program_id: int) -> None:
        session = await self._require(chat_id, BookingStep.CHOOSE_OPTION)
        if session is None:
            return
        if session.program_id != program_id:
            await self._send(chat_id, messages.BOOKING_NOT_ACTIVE)
            return
        program = self.database.get_program(program_id)
        if program is None:
            await self._send(chat_id, messages.PROGRAM_NOT_FOUND)
            return

        session.data.selected_option = option
        if option == "single":
            await self._show_single_dates(session, program)
        else:
            await self._show_full_picker(session, program)

    async def _show_single_dates(self, session: BookingSession, program: Program) -> None:
        today = self._today()
        sessions = self.database.get_program_sessions(program.program_id)
        if not sessions:
            await self._send(session.chat_id, messages.NO_SESSIONS)
            return
        anchor = program.start_date or today
        available = [
            item
            for item in sessions
            if item.session_date.year == anchor.year
            and item.session_date.month == anchor.month
            and item.session_date >= today
        ]
        if not available:
            await self._send(session.chat_id, messages.NO_SESSIONS_THIS_MONTH)
            return
        session.step = BookingStep.CHOOSE_DATE
        await self._send(session.chat_id, messages.SINGLE_DATE_PROMPT, single_date_keyboard(available))

    async def choose_single_date(self, chat_id: int, session_id: int) -> None:
        session = await self._require(chat_id, BookingStep.CHOOSE_DATE)
        if session is None:
            return
        chosen = self._find_session(session.program_id, session_id)
        if chosen is None:
            await self._send(chat_id, messages.SESSION_NOT_FOUND)
            return

        try:
            self._check_capacity(session_id)
        except CapacityError as exc:
            LOGGER.info("Single visit refused: %s", exc)
            await self._send(chat_id, messages.SESSION_FULL.format(limit=SESSION_CAPACITY))
            return

        session.data.session_id = session_id
        session.step = BookingStep.NOTES
        await self._ask_notes(chat_id)

    def _check_capacity(self, session_id: int) -> None:
        taken = self.database.count_confirmed_participants_for_session(session_id)
        if taken >= SESSION_CAPACITY:
            raise CapacityError(f"session {session_id} is full ({taken} bookings)")

    def _find_session(self, program_id: int, session_id: int) -> Optional[ProgramSession]:
        for item in self.database.get_program_sessions(program_id):
            if item.session_id == session_id:
                return item
        return None

    # Full pass picker --------------------------------------------------
    def _picker_text(self, session: BookingSession) -> str:
        return "\n\n".join(
            [
                messages.FULL_PICKER_HEADER.format(required=PASS_SIZE),
                messages.FULL_PICKER_COUNTER.format(
                    selected=len(session.data.selected_sessions), required=PASS_SIZE
                ),
            ]
        )

    async def _show_full_picker(self, session: BookingSession, program: Program) -> None:
        upcoming = self.database.get_upcoming_sessions(program.program_id, self._today())
        if not upcoming:
            await self._send(session.chat_id, messages.NO_SESSIONS)
            return
        session.step = BookingStep.CHOOSE_DATES_FULL
        session.data.selected_sessions = []
        message = await self._send(
            session.chat_id,
            self._picker_text(session),
            full_pass_keyboard(upcoming, session.data.selected_sessions, PASS_SIZE),
        )
        session.picker_message_id = message.message_id

    async def toggle_full_session(self, chat_id: int, session_id: int) -> Optional[str]:
        """Toggle one pass session; returns a notice for the callback answer, if any."""
        session = await self._require(chat_id, BookingStep.CHOOSE_DATES_FULL)
        if session is None:
            return None
        upcoming = self.database.get_upcoming_sessions(session.program_id, self._today())
        if not any(item.session_id == session_id for item in upcoming):
            return messages.SESSION_NOT_FOUND
        if not session.toggle_session(session_id):
            return messages.FULL_PICKER_LIMIT.format(required=PASS_SIZE)

        text = self._picker_text(session)
        keyboard = full_pass_keyboard(upcoming, session.data.selected_sessions, PASS_SIZE)
        if session.picker_message_id is None:
            message = await self._send(chat_id, text, keyboard)
            session.picker_message_id = message.message_id
        else:
            await edit_html(self.bot, chat_id, session.picker_message_id, text, keyboard)
        return None

    async def finish_full_selection(self, chat_id: int) -> None:
        session = await self._require(chat_id, BookingStep.CHOOSE_DATES_FULL)
        if session is None:
            return
        if not session.pass_complete:
            await self._send(chat_id, messages.FULL_PICKER_INCOMPLETE.format(required=PASS_SIZE))
            return
        if session.picker_message_id is not None:
            try:
                await self.bot.edit_message_reply_markup(
                    chat_id=chat_id, message_id=session.picker_message_id, reply_markup=None
                )
            except TelegramError:
                LOGGER.warning("Could not close pass picker in chat %s", chat_id, exc_info=True)
        session.step = BookingStep.NOTES
        await self._ask_notes(chat_id)

    # Contact, notes, payment ------------------------------------------
    async def provide_contact(self, chat_id: int, raw_phone: str, shared: bool = False) -> None:
        session = await self._require(chat_id, BookingStep.CONTACT)
        if session is None:
            return
        if not shared and not PHONE_RE.match(raw_phone.strip()):
            await self._send(chat_id, messages.CONTACT_INVALID)
            return

        phone = normalise_phone(raw_phone)
        try:
            if not self.database.update_user_phone(session.data.user_id, phone):
                LOGGER.warning("No user row for telegram id %s, phone not stored", session.data.user_id)
        except sqlite3.Error:
            LOGGER.exception("Failed to store phone for chat %s", chat_id)

        session.step = BookingStep.NOTES
        await self._send(chat_id, messages.CONTACT_SAVED, ReplyKeyboardRemove())
        await self._ask_notes(chat_id)

    async def _ask_notes(self, chat_id: int) -> None:
        await self._send(chat_id, messages.NOTES_PROMPT, notes_keyboard())

    async def provide_notes(self, chat_id: int, text: str) -> None:
        session = await self._require(chat_id, BookingStep.NOTES)
        if session is None:
            return
        notes = text.strip()
        session.data.notes = "" if notes.lower() == messages.NOTES_NONE_TOKEN else notes
        session.step = BookingStep.PAYMENT
        await self._send(chat_id, messages.PAYMENT_PROMPT, payment_keyboard())

    async def skip_notes(self, chat_id: int) -> None:
        await self.provide_notes(chat_id, messages.NOTES_NONE_TOKEN)

    async def choose_payment(self, chat_id: int, method: str) -> None:
        session = await self._require(chat_id, BookingStep.PAYMENT)
        if session is None:
            return
        if method not in messages.PAYMENT_METHODS:
            LOGGER.warning("Unknown payment method %r from chat %s", method, chat_id)
            return
        program = self.database.get_program(session.program_id)
        if program is None:
            await self._send(chat_id, messages.PROGRAM_NOT_FOUND)
            return
        session.data.payment_method = method
        session.step = BookingStep.SUMMARY
        await self._send(chat_id, self._summary(session, program), summary_keyboard())

    def _summary(self, session: BookingSession, program: Program) -> str:
        data = session.data
        user = self.database.get_user_by_telegram_id(data.user_id) if data.user_id else None
        lines = [messages.SUMMARY_HEADER, "", f"<b>Программа:</b> {escape(program.title)}"]
        if data.selected_option:
            lines.append(f"<b>Вариант:</b> {messages.SUMMARY_OPTION_LABELS[data.selected_option]}")
        dates = self._chosen_sessions(session)
        if dates:
            lines.append("<b>Даты:</b>")
            lines.extend(f"• {format_session(item)}" for item in dates)
        phone = escape(user.phone) if user and user.phone else messages.NOT_SPECIFIED
        lines.append(f"<b>Телефон:</b> {phone}")
        lines.append(f"<b>Способ оплаты:</b> {messages.PAYMENT_METHODS[data.payment_method]}")
        lines.append(f"<b>Заметки:</b> {escape(data.notes) if data.notes else messages.NOT_SPECIFIED}")
        lines.append(f"<b>Сумма:</b> {format_currency(booking_amount(program, data.selected_option))}")
        return "\n".join(lines)

    def _chosen_sessions(self, session: BookingSession) -> list[ProgramSession]:
        data = session.data
        wanted = [data.session_id] if data.session_id is not None else list(data.selected_sessions)
        if not wanted:
            return []
        by_id = {item.session_id: item for item in self.database.get_program_sessions(session.program_id)}
        return [by_id[session_id] for session_id in wanted if session_id in by_id]

    # Confirmation ------------------------------------------------------
    async def confirm(self, chat_id: int) -> None:
        session = await self._require(chat_id, BookingStep.SUMMARY)
        if session is None:
            return
        data = session.data
        program = self.database.get_program(session.program_id)
        if program is None:
            await self._send(chat_id, messages.PROGRAM_NOT_FOUND)
            return
        user = self.database.get_user_by_telegram_id(data.user_id) if data.user_id else None
        if user is None:
            await self._send(chat_id, messages.USER_NOT_FOUND)
            return
        if not user.phone:
            LOGGER.info("Chat %s confirmed without a phone, returning to contact step", chat_id)
            session.step = BookingStep.CONTACT
            await self._ask_contact(chat_id, program, session)
            return

        request = ApplicationRequest(
            program_id=program.program_id,
            user_id=user.user_id,
            user_name=user.display_name or user.username or str(user.telegram_id),
            user_phone=user.phone,
            amount=booking_amount(program, data.selected_option),
            notes=data.notes,
            payment_method=data.payment_method,
        )
        if data.selected_option == "single":
            request.session_id = data.session_id
        elif data.selected_option == "full":
            request.session_ids = list(data.selected_sessions)

        application = self.database.create_application(request)
        if application is None:
            await self._send(chat_id, messages.APPLICATION_FAILED)
            return

        LOGGER.info(
            "Application %s created for program %s by chat %s",
            application.application_id,
            program.program_id,
            chat_id,
        )
        await self.notifier.new_application(application, program, user)
        self.store.clear_booking(chat_id)
        await self._send(
            chat_id,
            messages.BOOKING_CONFIRMED.format(
                title=escape(program.title), application_id=application.application_id
            ),
        )

    async def cancel(self, chat_id: int) -> None:
        if self.store.clear_booking(chat_id):
            LOGGER.info("Booking cancelled in chat %s", chat_id)
        await self._send(chat_id, messages.BOOKING_CANCELLED, ReplyKeyboardRemove())

    async def handle_text(self, chat_id: int, text: str) -> None:
        session = self.store.get_booking(chat_id)
        if session is None:
            return
        if session.step is BookingStep.CONTACT:
            await self.provide_contact(chat_id, text)
        elif session.step is BookingStep.NOTES:
            await self.provide_notes(chat_id, text)


__all__ = ["BookingService", "SESSION_CAPACITY", "booking_amount", "normalise_phone"]
