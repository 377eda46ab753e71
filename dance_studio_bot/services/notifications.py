from __future__ import annotations

import logging
from html import escape
from typing import Iterable, Optional

from telegram import Bot
from telegram.error import TelegramError

from dance_studio_bot import messages
from dance_studio_bot.database import Application, Program, User
from dance_studio_bot.keyboards.admin import application_keyboard
from dance_studio_bot.utils.formatting import format_currency
from dance_studio_bot.utils.messaging import ReplyMarkup, send_html

LOGGER = logging.getLogger(__name__)


def format_username(user: Optional[User]) -> str:
    if user is None or not user.username:
        return messages.NOT_SPECIFIED
    return f"@{escape(user.username)}"


class AdminNotifier:
    """Delivers messages to the studio administrators and to applicants.

    Delivery failures are logged and swallowed: a notification is never
    allowed to break the flow that triggered it.
    """

    def __init__(self, bot: Bot, admin_ids: Iterable[int]) -> None:
        self.bot = bot
        self.admin_ids = list(admin_ids)

    async def new_application(self, application: Application, program: Program, user: User) -> int:
        text = messages.NEW_APPLICATION.format(
            application_id=application.application_id,
            title=escape(program.title),
            name=escape(application.user_name),
            phone=escape(application.user_phone),
            username=format_username(user),
            amount=format_currency(application.amount),
            payment=messages.PAYMENT_METHODS.get(application.payment_method or "", messages.NOT_SPECIFIED),
            notes=escape(application.user_notes) if application.user_notes else messages.NOT_SPECIFIED,
        )
        delivered = 0
        for admin_id in self.admin_ids:
            if await self._deliver(admin_id, text, application_keyboard(application.application_id)):
                delivered += 1
        LOGGER.info(
            "Application %s announced to %s of %s admins",
            application.application_id,
            delivered,
            len(self.admin_ids),
        )
        return delivered

    async def notify_user(self, telegram_id: int, text: str) -> bool:
        return await self._deliver(telegram_id, text)

    async def _deliver(self, chat_id: int, text: str, reply_markup: Optional[ReplyMarkup] = None) -> bool:
        try:
            await send_html(self.bot, chat_id, text, reply_markup)
        except TelegramError:
            LOGGER.warning("Failed to deliver notification to %s", chat_id, exc_info=True)
            return False
        return True


__all__ = ["AdminNotifier", "format_username"]
