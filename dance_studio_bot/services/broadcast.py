from __future__ import annotations

import logging
from html import escape
from typing import Iterable, Optional

from telegram import Bot
from telegram.error import TelegramError

from dance_studio_bot.database import Database
from dance_studio_bot.utils.messaging import send_html

LOGGER = logging.getLogger(__name__)


class BroadcastService:
    def __init__(self, database: Database, bot: Bot) -> None:
        self.database = database
        self.bot = bot

    def recipients(self, segment: str, program_id: Optional[int] = None) -> list[int]:
        """Telegram ids addressed by ``segment``.

        ``all`` is every known user, ``active`` is everyone with a confirmed
        booking and ``program`` narrows that to one program.
        """
        if segment == "all":
            return self.database.get_user_telegram_ids()
        if segment == "active":
            return self.database.get_booked_telegram_ids()
        if segment == "program" and program_id is not None:
            return self.database.get_booked_telegram_ids(program_id)
        LOGGER.warning("Unknown broadcast segment %r (program %s)", segment, program_id)
        return []

    async def send_broadcast(self, text: str, recipients: Iterable[int]) -> tuple[int, int]:
        """Send ``text`` as plain text to ``recipients``; returns ``(sent, failed)``."""
        body = escape(text)
        sent = failed = 0
        for telegram_id in recipients:
            try:
                await send_html(self.bot, telegram_id, body)
                sent += 1
            except TelegramError:
                LOGGER.warning("Broadcast to %s failed", telegram_id, exc_info=True)
                failed += 1
        LOGGER.info("Broadcast finished: %s sent, %s failed", sent, failed)
        return sent, failed


__all__ = ["BroadcastService"]
