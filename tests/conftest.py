from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

import pytest
from telegram import User
from telegram.error import Forbidden

from dance_studio_bot.config import BotConfig
from dance_studio_bot.database import ApplicationRequest, Database, NewProgram, Program, SessionSlot
from dance_studio_bot.router import Dispatcher

TODAY = date(2026, 3, 2)  # a Monday
ADMIN_ID = 900
USER_CHAT = 42


@dataclass
class SentMessage:
    chat_id: int
    text: str
    reply_markup: Any = None
    message_id: int = 0


@dataclass
class FakeBot:
    """Records every outbound call instead of talking to Telegram."""

    failing_chats: set[int] = field(default_factory=set)
    sent: list[SentMessage] = field(default_factory=list)
    edits: list[dict] = field(default_factory=list)
    markup_edits: list[dict] = field(default_factory=list)
    answers: list[dict] = field(default_factory=list)
    next_id: int = 100

    async def send_message(self, chat_id, text, parse_mode=None, reply_markup=None):
        if chat_id in self.failing_chats:
            raise Forbidden("bot was blocked by the user")
        self.next_id += 1
        message = SentMessage(chat_id, text, reply_markup, self.next_id)
        self.sent.append(message)
        return message

    async def edit_message_text(self, text, chat_id=None, message_id=None, parse_mode=None, reply_markup=None):
        self.edits.append(
            {"chat_id": chat_id, "message_id": message_id, "text": text, "reply_markup": reply_markup}
        )

    async def edit_message_reply_markup(self, chat_id=None, message_id=None, reply_markup=None):
        self.markup_edits.append({"chat_id": chat_id, "message_id": message_id, "reply_markup": reply_markup})

    async def answer_callback_query(self, callback_query_id, text=None):
        self.answers.append({"id": callback_query_id, "text": text})

    def texts(self, chat_id: int) -> list[str]:
        return [message.text for message in self.sent if message.chat_id == chat_id]

    def last_text(self, chat_id: int) -> Optional[str]:
        texts = self.texts(chat_id)
        return texts[-1] if texts else None


def make_user(user_id: int = USER_CHAT, first_name: str = "Маша", username: Optional[str] = "masha") -> User:
    return User(id=user_id, first_name=first_name, is_bot=False, username=username)


def make_program(database: Database, **overrides: Any) -> Program:
    fields: dict[str, Any] = {
        "type": "group",
        "title": "Хилс с нуля",
        "description": "Базовый курс",
        "price": 6000,
        "max_participants": 10,
        "start_date": TODAY,
        "schedule": "Вт 19:00",
    }
    fields.update(overrides)
    return database.create_program(NewProgram(**fields))


def add_sessions(database: Database, program_id: int, *slots: tuple[date, str]):
    database.create_sessions(program_id, [SessionSlot(day, time, 60) for day, time in slots])
    return database.get_program_sessions(program_id)


def fill_session(database: Database, program_id: int, session_id: int, count: int) -> None:
    """Create ``count`` confirmed single-visit bookings for one session."""
    for index in range(count):
        user = database.upsert_user(5000 + index, None, f"Гость {index}", None)
        application = database.create_application(
            ApplicationRequest(
                program_id=program_id,
                user_id=user.user_id,
                user_name=f"Гость {index}",
                user_phone="+79000000000",
                amount=2000,
                session_id=session_id,
            )
        )
        assert application is not None
        database.create_booking_from_application(application)


@pytest.fixture
def database(tmp_path) -> Database:
    return Database(tmp_path / "studio.sqlite")


@pytest.fixture
def bot() -> FakeBot:
    return FakeBot()


@pytest.fixture
def config() -> BotConfig:
    return BotConfig(token="123:test", admin_ids=[ADMIN_ID], contact_username="studio_admin")


@pytest.fixture
def dispatcher(config, database, bot) -> Dispatcher:
    return Dispatcher(config, database, bot, today=lambda: TODAY)
