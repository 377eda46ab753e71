"""Entrypoint for the dance studio booking bot.

Runs in webhook mode when ``BOT_WEBHOOK_URL`` is configured and falls back
to long polling otherwise.
"""

from __future__ import annotations

import logging
from urllib.parse import urlparse

from telegram import Update
from telegram.error import InvalidToken, NetworkError, TimedOut

from dance_studio_bot.application import build_application
from dance_studio_bot.config import BotConfig
from dance_studio_bot.database import Database

LOGGER = logging.getLogger(__name__)


def main() -> None:  # pragma: no cover - thin wrapper
    try:
        config = BotConfig.load()
    except RuntimeError as exc:
        logging.basicConfig(level=logging.INFO)
        LOGGER.error("%s", exc)
        raise SystemExit(1) from exc

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("telegram.ext").setLevel(logging.WARNING)

    database = Database(config.database_path)
    application = build_application(config, database)

    try:
        if config.webhook_url:
            url_path = urlparse(config.webhook_url).path.lstrip("/")
            LOGGER.info("Starting webhook on port %s", config.webhook_port)
            application.run_webhook(
                listen="0.0.0.0",
                port=config.webhook_port,
                url_path=url_path,
                webhook_url=config.webhook_url,
                allowed_updates=Update.ALL_TYPES,
            )
        else:
            LOGGER.info("Starting long polling")
            application.run_polling(allowed_updates=Update.ALL_TYPES)
    except InvalidToken as exc:
        LOGGER.error("Telegram rejected the bot token. Check BOT_TOKEN.")
        raise SystemExit(1) from exc
    except TimedOut as exc:
        LOGGER.error("Timed out connecting to Telegram (%s). Check the network or proxy settings.", exc)
        raise SystemExit(1) from exc
    except NetworkError as exc:
        LOGGER.error("Network failure while talking to Telegram: %s", exc)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
