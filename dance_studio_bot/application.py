from __future__ import annotations

import logging
from typing import Optional

from telegram import Update
from telegram.ext import (
    AIORateLimiter,
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from dance_studio_bot.config import BotConfig
from dance_studio_bot.database import Database
from dance_studio_bot.router import Dispatcher

LOGGER = logging.getLogger(__name__)


class TelegramHandlers:
    """Thin adapters from python-telegram-bot updates to the dispatcher."""

    def __init__(self, dispatcher: Dispatcher) -> None:
        self.dispatcher = dispatcher

    async def start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if update.effective_chat is None or update.effective_user is None:
            return
        await self.dispatcher.on_start(update.effective_chat.id, update.effective_user)

    async def programs(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if update.effective_chat is None:
            return
        await self.dispatcher.on_programs(update.effective_chat.id)

    async def admin(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if update.effective_chat is None:
            return
        await self.dispatcher.on_admin(update.effective_chat.id, update.effective_user)

    async def text(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.effective_message
        if message is None or message.text is None:
            return
        await self.dispatcher.on_text(message.chat_id, message.text, update.effective_user)

    async def contact(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.effective_message
        if message is None or message.contact is None:
            return
        await self.dispatcher.on_contact(
            message.chat_id, message.contact.phone_number, update.effective_user
        )

    async def callback(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        query = update.callback_query
        if query is None:
            return
        message = query.message
        chat_id = message.chat.id if message is not None else query.from_user.id
        await self.dispatcher.on_callback(
            chat_id,
            query.data or "",
            query.from_user,
            callback_id=query.id,
            message_id=message.message_id if message is not None else None,
        )

    async def error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        LOGGER.error("Unhandled error while processing %r", update, exc_info=context.error)


def _build_rate_limiter() -> Optional[AIORateLimiter]:
    try:
        return AIORateLimiter()
    except RuntimeError as exc:
        LOGGER.warning("Failed to initialise the AIORateLimiter: %s. Running without a rate limiter.", exc)
        return None


def build_application(config: BotConfig, database: Database) -> Application:
    """Create the python-telegram-bot application with every handler attached."""
    builder = Application.builder().token(config.token)
    rate_limiter = _build_rate_limiter()
    if rate_limiter is not None:
        builder = builder.rate_limiter(rate_limiter)
    application = builder.build()

    dispatcher = Dispatcher(config, database, application.bot)
    application.bot_data["dispatcher"] = dispatcher
    handlers = TelegramHandlers(dispatcher)

    application.add_handler(CommandHandler("start", handlers.start))
    application.add_handler(CommandHandler("programs", handlers.programs))
    application.add_handler(CommandHandler("admin", handlers.admin))
    application.add_handler(CallbackQueryHandler(handlers.callback))
    application.add_handler(MessageHandler(filters.CONTACT, handlers.contact))
    application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handlers.text))
    application.add_error_handler(handlers.error)
    return application


__all__ = ["TelegramHandlers", "build_application"]
