from __future__ import annotations

import logging
from html import escape
from typing import Optional

from telegram import Bot

from dance_studio_bot import messages
from dance_studio_bot.database import Database
from dance_studio_bot.errors import DuplicateBookingError, InvalidTransitionError, NotFoundError
from dance_studio_bot.keyboards.admin import (
    admin_menu_keyboard,
    application_keyboard,
    back_to_panel_keyboard,
    broadcast_cancel_keyboard,
    broadcast_confirm_keyboard,
    broadcast_segment_keyboard,
    programs_admin_keyboard,
)
from dance_studio_bot.services.applications import ApplicationReviewService
from dance_studio_bot.services.broadcast import BroadcastService
from dance_studio_bot.services.notifications import format_username
from dance_studio_bot.sessions import BroadcastDraft, SessionStore
from dance_studio_bot.utils.formatting import format_application_row
from dance_studio_bot.utils.messaging import send_html

LOGGER = logging.getLogger(__name__)


class AdminPanel:
    """Admin-facing screens: applications, programs and broadcasts."""

    def __init__(
        self,
        database: Database,
        bot: Bot,
        store: SessionStore,
        reviewer: ApplicationReviewService,
        broadcaster: BroadcastService,
    ) -> None:
        self.database = database
        self.bot = bot
        self.store = store
        self.reviewer = reviewer
        self.broadcaster = broadcaster

    async def show_panel(self, chat_id: int) -> None:
        await send_html(self.bot, chat_id, messages.ADMIN_PANEL_TITLE, admin_menu_keyboard())

    async def show_applications(self, chat_id: int) -> None:
        pending = self.database.list_pending_applications()
        if not pending:
            await send_html(self.bot, chat_id, messages.NO_APPLICATIONS, back_to_panel_keyboard())
            return
        titles: dict[int, str] = {}
        for application in pending:
            if application.program_id not in titles:
                program = self.database.get_program(application.program_id)
                titles[application.program_id] = program.title if program else "?"
        await send_html(self.bot, chat_id, messages.APPLICATIONS_HEADER)
        for application in pending:
            await send_html(
                self.bot,
                chat_id,
                format_application_row(application, titles[application.program_id]),
                application_keyboard(application.application_id),
            )

    # Application review ------------------------------------------------
    async def approve(self, chat_id: int, application_id: int) -> None:
        try:
            self.reviewer.approve(application_id)
        except (NotFoundError, InvalidTransitionError) as exc:
            await self._report_review_error(chat_id, application_id, exc)
            return
        await send_html(
            self.bot, chat_id, messages.APPLICATION_APPROVED_ADMIN.format(application_id=application_id)
        )

    async def reject(self, chat_id: int, application_id: int) -> None:
        try:
            await self.reviewer.reject(application_id)
        except (NotFoundError, InvalidTransitionError) as exc:
            await self._report_review_error(chat_id, application_id, exc)
            return
        await send_html(
            self.bot, chat_id, messages.APPLICATION_REJECTED_ADMIN.format(application_id=application_id)
        )

    async def confirm_payment(self, chat_id: int, application_id: int) -> None:
        try:
            await self.reviewer.confirm_payment(application_id)
        except DuplicateBookingError:
            LOGGER.warning("Duplicate booking refused for application %s", application_id)
            await send_html(self.bot, chat_id, messages.DUPLICATE_BOOKING)
            return
        except (NotFoundError, InvalidTransitionError) as exc:
            await self._report_review_error(chat_id, application_id, exc)
            return
        await send_html(
            self.bot, chat_id, messages.APPLICATION_PAID_ADMIN.format(application_id=application_id)
        )

    async def show_contact(self, chat_id: int, application_id: int) -> None:
        application = self.database.get_application(application_id)
        if application is None:
            await send_html(
                self.bot, chat_id, messages.APPLICATION_NOT_FOUND.format(application_id=application_id)
            )
            return
        user = self.database.get_user(application.user_id)
        await send_html(
            self.bot,
            chat_id,
            messages.APPLICANT_CONTACT.format(
                application_id=application_id,
                name=escape(application.user_name),
                phone=escape(application.user_phone),
                username=format_username(user),
            ),
        )

    async def _report_review_error(self, chat_id: int, application_id: int, exc: Exception) -> None:
        LOGGER.info("Review of application %s refused: %s", application_id, exc)
        if isinstance(exc, InvalidTransitionError):
            text = messages.APPLICATION_BAD_TRANSITION.format(
                application_id=application_id, status=exc.current
            )
        else:
            text = messages.APPLICATION_NOT_FOUND.format(application_id=application_id)
        await send_html(self.bot, chat_id, text)

    # Programs ------------------------------------------------------------
    async def show_programs(self, chat_id: int) -> None:
        programs = self.database.list_active_programs()
        if not programs:
            await send_html(self.bot, chat_id, messages.NO_ACTIVE_PROGRAMS, back_to_panel_keyboard())
            return
        await send_html(
            self.bot, chat_id, messages.ADMIN_PROGRAMS_HEADER, programs_admin_keyboard(programs)
        )

    async def delete_program(self, chat_id: int, program_id: int) -> None:
        program = self.database.get_program(program_id)
        if program is None or not self.database.soft_delete_program(program_id):
            await send_html(self.bot, chat_id, messages.PROGRAM_NOT_FOUND)
            return
        LOGGER.info("Program %s deleted by chat %s", program_id, chat_id)
        await send_html(
            self.bot,
            chat_id,
            messages.PROGRAM_DELETED.format(title=escape(program.title)),
            back_to_panel_keyboard(),
        )

    # Broadcast -----------------------------------------------------------
    async def show_broadcast_segments(self, chat_id: int) -> None:
        self.store.clear_broadcast(chat_id)
        programs = self.database.list_active_programs()
        await send_html(
            self.bot, chat_id, messages.BROADCAST_SEGMENT_PROMPT, broadcast_segment_keyboard(programs)
        )

    def _audience(self, draft: BroadcastDraft) -> str:
        if draft.segment != "program":
            return messages.BROADCAST_AUDIENCE[draft.segment]
        program = self.database.get_program(draft.program_id) if draft.program_id else None
        title = program.title if program else f"#{draft.program_id}"
        return messages.BROADCAST_AUDIENCE["program"].format(title=escape(title))

    async def choose_broadcast_segment(
        self, chat_id: int, segment: str, program_id: Optional[int] = None
    ) -> None:
        draft = self.store.start_broadcast(chat_id, segment, program_id)
        LOGGER.info("Broadcast to %s (program %s) started in chat %s", segment, program_id, chat_id)
        await send_html(
            self.bot,
            chat_id,
            messages.BROADCAST_PROMPT.format(audience=self._audience(draft)),
            broadcast_cancel_keyboard(),
        )

    async def preview_broadcast(self, chat_id: int, text: str) -> None:
        draft = self.store.get_broadcast(chat_id)
        if draft is None:
            return
        if not text.strip():
            await send_html(self.bot, chat_id, messages.BROADCAST_EMPTY)
            return
        count = len(self.broadcaster.recipients(draft.segment, draft.program_id))
        if count == 0:
            self.store.clear_broadcast(chat_id)
            await send_html(self.bot, chat_id, messages.BROADCAST_NO_RECIPIENTS, back_to_panel_keyboard())
            return
        draft.text = text
        await send_html(
            self.bot,
            chat_id,
            messages.BROADCAST_PREVIEW.format(text=escape(text), audience=self._audience(draft), count=count),
            broadcast_confirm_keyboard(count),
        )

    async def confirm_broadcast(self, chat_id: int) -> None:
        draft = self.store.get_broadcast(chat_id)
        if draft is None or draft.text is None:
            LOGGER.info("Broadcast confirm without a prepared text in chat %s", chat_id)
            await send_html(self.bot, chat_id, messages.BROADCAST_NOTHING_TO_SEND, back_to_panel_keyboard())
            return
        self.store.clear_broadcast(chat_id)
        recipients = self.broadcaster.recipients(draft.segment, draft.program_id)
        sent, failed = await self.broadcaster.send_broadcast(draft.text, recipients)
        await send_html(
            self.bot,
            chat_id,
            messages.BROADCAST_DONE.format(sent=sent, failed=failed),
            back_to_panel_keyboard(),
        )

    async def cancel_broadcast(self, chat_id: int) -> None:
        if self.store.clear_broadcast(chat_id):
            LOGGER.info("Broadcast cancelled in chat %s", chat_id)
        await send_html(self.bot, chat_id, messages.BROADCAST_CANCELLED, back_to_panel_keyboard())


__all__ = ["AdminPanel"]
