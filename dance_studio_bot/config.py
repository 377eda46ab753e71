from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv


@dataclass(slots=True)
class BotConfig:
    """Configuration container for the dance studio booking bot."""

    token: str
    admin_ids: List[int] = field(default_factory=list)
    database_path: Path = field(default=Path("data/studio.sqlite"))
    webhook_url: Optional[str] = None
    webhook_port: int = 8080
    contact_username: str = "anv_karelina"
    log_level: str = "INFO"

    @property
    def contact_url(self) -> str:
        return f"https://t.me/{self.contact_username}"

    def is_admin(self, telegram_id: Optional[int]) -> bool:
        return telegram_id is not None and telegram_id in self.admin_ids

    @classmethod
    def load(cls, env_path: str | os.PathLike[str] | None = ".env") -> "BotConfig":
        """Load configuration from environment variables."""
        if env_path is not None:
            load_dotenv(env_path)

        raw_admins = os.getenv("BOT_ADMIN_IDS", "")
        admin_ids = [
            int(value)
            for chunk in raw_admins.split(",")
            if (value := chunk.strip()).lstrip("-").isdigit()
        ]

        token = os.getenv("BOT_TOKEN")
        if not token:
            raise RuntimeError(
                "BOT_TOKEN is not defined. Please add it to your .env file before running the bot."
            )

        database_path = Path(os.getenv("BOT_DATABASE", "data/studio.sqlite")).expanduser()
        webhook_url = os.getenv("BOT_WEBHOOK_URL") or None
        webhook_port = int(os.getenv("BOT_WEBHOOK_PORT", "8080"))
        contact_username = os.getenv("BOT_CONTACT_USERNAME", "anv_karelina").lstrip("@")
        log_level = os.getenv("BOT_LOG_LEVEL", "INFO").upper()
        return cls(
            token=token,
            admin_ids=admin_ids,
            database_path=database_path,
            webhook_url=webhook_url,
            webhook_port=webhook_port,
            contact_username=contact_username,
            log_level=log_level,
        )


__all__ = ["BotConfig"]
