"""Routes inbound text, contacts and button presses to the right flow.

Free text goes, in order, to: a wizard step waiting for typed input, a
pending admin broadcast, a booking step waiting for typed input, and
finally the main menu. Every entry point turns unexpected failures into a
generic reply and leaves the conversation state untouched.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from telegram import Bot
from telegram import User as TelegramUser
from telegram.error import TelegramError

from dance_studio_bot import messages
from dance_studio_bot.callbacks import (
    Action,
    AdminMenu,
    BroadcastCancel,
    BroadcastConfirm,
    BroadcastSegment,
    CancelBooking,
    ChooseOption,
    ChoosePayment,
    ConfirmBooking,
    DeleteProgram,
    FinishPass,
    Navigate,
    OpenProgram,
    PickSingleDate,
    ReviewApplication,
    SkipNotes,
    StartBooking,
    TogglePassSession,
    WizardCancel,
    WizardConfirm,
    WizardDay,
    WizardDuration,
    WizardIndividualDay,
    WizardIndividualDaysDone,
    WizardIndividualTime,
    WizardIntensiveDays,
    WizardIntensiveTime,
    WizardScheduleDone,
    WizardScheduleMore,
    WizardSkipGroupLink,
    WizardTime,
    WizardType,
    parse_action,
)
from dance_studio_bot.config import BotConfig
from dance_studio_bot.database import Database
from dance_studio_bot.services.admin import AdminPanel
from dance_studio_bot.services.applications import ApplicationReviewService
from dance_studio_bot.services.booking import BookingService
from dance_studio_bot.services.broadcast import BroadcastService
from dance_studio_bot.services.catalog import CatalogService
from dance_studio_bot.services.notifications import AdminNotifier
from dance_studio_bot.services.program_wizard import ProgramWizard
from dance_studio_bot.sessions import BookingStep, SessionStore
from dance_studio_bot.utils.messaging import send_html
from dance_studio_bot.utils.schedule import today_local

LOGGER = logging.getLogger(__name__)


class Dispatcher:
    def __init__(
        self,
        config: BotConfig,
        database: Database,
        bot: Bot,
        store: Optional[SessionStore] = None,
        today: Callable = today_local,
    ) -> None:
        self.config = config
        self.database = database
        self.bot = bot
        self.store = store if store is not None else SessionStore()
        self.notifier = AdminNotifier(bot, config.admin_ids)
        self.booking = BookingService(database, bot, self.store, self.notifier, config, today)
        self.wizard = ProgramWizard(database, bot, self.store)
        self.reviewer = ApplicationReviewService(database, self.notifier)
        self.admin = AdminPanel(database, bot, self.store, self.reviewer, BroadcastService(database, bot))
        self.catalog = CatalogService(database, bot, config, today)

    def _is_admin(self, user: Optional[TelegramUser]) -> bool:
        return user is not None and self.config.is_admin(user.id)

    async def _report_failure(self, chat_id: int) -> None:
        try:
            await send_html(self.bot, chat_id, messages.GENERIC_ERROR)
        except TelegramError:
            LOGGER.warning("Could not deliver error notice to chat %s", chat_id, exc_info=True)

    # Commands ------------------------------------------------------------
    async def on_start(self, chat_id: int, user: TelegramUser) -> None:
        try:
            await self.catalog.welcome(chat_id, user)
        except Exception:
            LOGGER.exception("Failed to handle /start in chat %s", chat_id)
            await self._report_failure(chat_id)

    async def on_programs(self, chat_id: int) -> None:
        try:
            await self.catalog.show_programs(chat_id)
        except Exception:
            LOGGER.exception("Failed to list programs in chat %s", chat_id)
            await self._report_failure(chat_id)

    async def on_admin(self, chat_id: int, user: Optional[TelegramUser]) -> None:
        try:
            if not self._is_admin(user):
                LOGGER.warning("Non-admin %s requested the admin panel", user.id if user else None)
                await send_html(self.bot, chat_id, messages.NOT_ALLOWED)
                return
            await self.admin.show_panel(chat_id)
        except Exception:
            LOGGER.exception("Failed to open admin panel in chat %s", chat_id)
            await self._report_failure(chat_id)

    # Free text -------------------------------------------------------------
    async def on_text(self, chat_id: int, text: str, user: Optional[TelegramUser] = None) -> None:
        try:
            await self._route_text(chat_id, text, user)
        except Exception:
            LOGGER.exception("Failed to handle text in chat %s", chat_id)
            await self._report_failure(chat_id)

    async def _route_text(self, chat_id: int, text: str, user: Optional[TelegramUser]) -> None:
        wizard = self.store.get_wizard(chat_id)
        if wizard is not None and wizard.step.awaits_text:
            await self.wizard.handle_text(chat_id, text)
            return
        if self.store.is_broadcasting(chat_id) and self._is_admin(user):
            await self.admin.preview_broadcast(chat_id, text)
            return
        booking = self.store.get_booking(chat_id)
        if booking is not None and booking.step.awaits_text:
            await self.booking.handle_text(chat_id, text)
            return
        await self.catalog.show_menu(chat_id)

    async def on_contact(self, chat_id: int, phone: str, user: Optional[TelegramUser] = None) -> None:
        try:
            booking = self.store.get_booking(chat_id)
            if booking is None or booking.step is not BookingStep.CONTACT:
                LOGGER.info("Contact from chat %s outside of the contact step", chat_id)
                await self.catalog.show_menu(chat_id)
                return
            await self.booking.provide_contact(chat_id, phone, shared=True)
        except Exception:
            LOGGER.exception("Failed to handle contact in chat %s", chat_id)
            await self._report_failure(chat_id)

    # Buttons -----------------------------------------------------------------
    async def on_callback(
        self,
        chat_id: int,
        token: str,
        user: Optional[TelegramUser],
        callback_id: Optional[str] = None,
        message_id: Optional[int] = None,
    ) -> None:
        notice: Optional[str] = None
        try:
            action = parse_action(token)
            if action is None:
                LOGGER.warning("Unknown callback token %r from chat %s", token, chat_id)
            elif action.admin_only and not self._is_admin(user):
                LOGGER.warning("Non-admin %s sent admin action %r", user.id if user else None, token)
                notice = messages.NOT_ALLOWED
            else:
                notice = await self._dispatch(chat_id, action, user, message_id)
        except Exception:
            LOGGER.exception("Failed to handle callback %r in chat %s", token, chat_id)
            await self._report_failure(chat_id)

        if callback_id is not None:
            try:
                await self.bot.answer_callback_query(callback_query_id=callback_id, text=notice)
            except TelegramError:
                LOGGER.warning("Could not answer callback %s", callback_id, exc_info=True)

    async def _dispatch(
        self, chat_id: int, action: Action, user: Optional[TelegramUser], message_id: Optional[int]
    ) -> Optional[str]:
        if isinstance(action, ReviewApplication):
            await self._review(chat_id, action)
        elif isinstance(action, DeleteProgram):
            await self.admin.delete_program(chat_id, action.program_id)
        elif isinstance(action, AdminMenu):
            await self._admin_menu(chat_id, action.section)
        elif isinstance(action, BroadcastSegment):
            await self.admin.choose_broadcast_segment(chat_id, action.segment, action.program_id)
        elif isinstance(action, BroadcastConfirm):
            await self.admin.confirm_broadcast(chat_id)
        elif isinstance(action, BroadcastCancel):
            await self.admin.cancel_broadcast(chat_id)
        elif isinstance(action, WizardType):
            await self.wizard.choose_type(chat_id, action.program_type)
        elif isinstance(action, WizardDuration):
            await self.wizard.choose_duration(chat_id, action.minutes)
        elif isinstance(action, WizardIntensiveDays):
            await self.wizard.choose_intensive_days(chat_id, action.days)
        elif isinstance(action, WizardDay):
            await self.wizard.choose_day(chat_id, action.code)
        elif isinstance(action, WizardTime):
            await self.wizard.choose_time(chat_id, action.time)
        elif isinstance(action, WizardScheduleMore):
            await self.wizard.schedule_more(chat_id)
        elif isinstance(action, WizardScheduleDone):
            await self.wizard.schedule_done(chat_id)
        elif isinstance(action, WizardIntensiveTime):
            await self.wizard.choose_intensive_time(chat_id, action.time)
        elif isinstance(action, WizardIndividualDay):
            await self.wizard.toggle_individual_day(chat_id, action.code, message_id)
        elif isinstance(action, WizardIndividualDaysDone):
            await self.wizard.individual_days_done(chat_id)
        elif isinstance(action, WizardIndividualTime):
            await self.wizard.choose_individual_time(chat_id, action.time)
        elif isinstance(action, WizardSkipGroupLink):
            await self.wizard.skip_group_link(chat_id)
        elif isinstance(action, WizardConfirm):
            await self.wizard.confirm(chat_id)
        elif isinstance(action, WizardCancel):
            await self.wizard.cancel(chat_id)
        elif isinstance(action, StartBooking):
            if user is None:
                LOGGER.warning("Booking request without a sender in chat %s", chat_id)
                return None
            await self.booking.start_booking(chat_id, action.program_id, user)
        elif isinstance(action, ChooseOption):
            await self.booking.choose_option(chat_id, action.option, action.program_id)
        elif isinstance(action, PickSingleDate):
            await self.booking.choose_single_date(chat_id, action.session_id)
        elif isinstance(action, TogglePassSession):
            return await self.booking.toggle_full_session(chat_id, action.session_id)
        elif isinstance(action, FinishPass):
            await self.booking.finish_full_selection(chat_id)
        elif isinstance(action, SkipNotes):
            await self.booking.skip_notes(chat_id)
        elif isinstance(action, ChoosePayment):
            await self.booking.choose_payment(chat_id, action.method)
        elif isinstance(action, ConfirmBooking):
            await self.booking.confirm(chat_id)
        elif isinstance(action, CancelBooking):
            await self.booking.cancel(chat_id)
        elif isinstance(action, Navigate):
            if action.target == "programs":
                await self.catalog.show_programs(chat_id)
            elif action.target == "schedule":
                await self.catalog.show_schedule(chat_id)
            elif action.target == "my_bookings" and user is not None:
                await self.catalog.show_my_bookings(chat_id, user)
            else:
                await self.catalog.show_menu(chat_id)
        elif isinstance(action, OpenProgram):
            await self.catalog.show_program(chat_id, action.program_id)
        else:
            LOGGER.warning("No handler for action %r", action)
        return None

    async def _review(self, chat_id: int, action: ReviewApplication) -> None:
        if action.decision == "confirm":
            await self.admin.confirm_payment(chat_id, action.application_id)
        elif action.decision == "approve":
            await self.admin.approve(chat_id, action.application_id)
        elif action.decision == "reject":
            await self.admin.reject(chat_id, action.application_id)
        else:
            await self.admin.show_contact(chat_id, action.application_id)

    async def _admin_menu(self, chat_id: int, section: str) -> None:
        if section == "applications":
            await self.admin.show_applications(chat_id)
        elif section == "add_program":
            await self.wizard.start(chat_id)
        elif section == "programs":
            await self.admin.show_programs(chat_id)
        elif section == "broadcast":
            await self.admin.show_broadcast_segments(chat_id)
        else:
            await self.admin.show_panel(chat_id)


__all__ = ["Dispatcher"]
