"""In-memory conversation state keyed by chat id.

Sessions are volatile: a process restart drops every in-flight booking and
program draft. There is no locking, so two overlapping events for the same
chat resolve last-write-wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

from dance_studio_bot.database import NewProgram
from dance_studio_bot.errors import DraftIncompleteError
from dance_studio_bot.utils.schedule import ScheduleEntry

LOGGER = logging.getLogger(__name__)

PASS_SIZE = 4


class BookingStep(str, Enum):
    CHOOSE_OPTION = "choose_option"
    CONTACT = "contact"
    NOTES = "notes"
    PAYMENT = "payment"
    SUMMARY = "summary"
    CHOOSE_DATE = "choose_date"
    CHOOSE_DATES_FULL = "choose_dates_full"

    @property
    def awaits_text(self) -> bool:
        return self in (BookingStep.CONTACT, BookingStep.NOTES)


class WizardStep(str, Enum):
    TYPE = "type"
    DURATION_CHOICE = "duration_choice"
    INTENSIVE_DAYS = "intensive_days"
    TITLE = "title"
    DESCRIPTION = "description"
    START_DATE = "start_date"
    SCHEDULE_DAY = "schedule_day"
    SCHEDULE_TIME = "schedule_time"
    SCHEDULE_DURATION = "schedule_duration"
    SCHEDULE_MORE = "schedule_more"
    INTENSIVE_TIME = "intensive_time"
    INDIVIDUAL_DAYS = "individual_days"
    INDIVIDUAL_TIME = "individual_time"
    PRICE = "price"
    SINGLE_PRICE = "single_price"
    MAX_PARTICIPANTS = "max_participants"
    GROUP_LINK = "group_link"
    CONFIRM = "confirm"

    @property
    def awaits_text(self) -> bool:
        return self in _TEXT_WIZARD_STEPS


_TEXT_WIZARD_STEPS = frozenset(
    {
        WizardStep.INTENSIVE_DAYS,
        WizardStep.TITLE,
        WizardStep.DESCRIPTION,
        WizardStep.START_DATE,
        WizardStep.SCHEDULE_TIME,
        WizardStep.INTENSIVE_TIME,
        WizardStep.INDIVIDUAL_TIME,
        WizardStep.PRICE,
        WizardStep.SINGLE_PRICE,
        WizardStep.MAX_PARTICIPANTS,
        WizardStep.GROUP_LINK,
    }
)


@dataclass(slots=True)
class BookingData:
    user_id: Optional[int] = None
    notes: Optional[str] = None
    payment_method: Optional[str] = None
    selected_option: Optional[str] = None
    session_id: Optional[int] = None
    selected_sessions: list[int] = field(default_factory=list)


@dataclass(slots=True)
class BookingSession:
    chat_id: int
    program_id: int
    step: BookingStep
    data: BookingData = field(default_factory=BookingData)
    picker_message_id: Optional[int] = None

    def toggle_session(self, session_id: int) -> bool:
        """Add or remove ``session_id`` from the pass selection.

        Returns ``False`` when the selection is already full and the session
        was not added.
        """
        selected = self.data.selected_sessions
        if session_id in selected:
            selected.remove(session_id)
            return True
        if len(selected) >= PASS_SIZE:
            return False
        selected.append(session_id)
        return True

    @property
    def pass_complete(self) -> bool:
        return len(self.data.selected_sessions) == PASS_SIZE


@dataclass(slots=True)
class ProgramDraft:
    type: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration_minutes: Optional[int] = None
    schedule: Optional[str] = None
    price: Optional[int] = None
    single_price: Optional[int] = None
    max_participants: Optional[int] = None
    group_link: Optional[str] = None
    schedule_details: list[ScheduleEntry] = field(default_factory=list)

    def to_new_program(self) -> NewProgram:
        missing = [
            name
            for name in ("type", "title", "price", "max_participants")
            if getattr(self, name) is None
        ]
        if self.type is not None and self.type != "individual" and self.start_date is None:
            missing.append("start_date")
        if missing:
            raise DraftIncompleteError(missing)
        return NewProgram(
            type=self.type,
            title=self.title,
            description=self.description or "",
            price=self.price,
            max_participants=self.max_participants,
            start_date=self.start_date,
            end_date=self.end_date,
            duration_minutes=self.duration_minutes,
            schedule=self.schedule,
            single_price=self.single_price,
            group_link=self.group_link,
        )


@dataclass(slots=True)
class WizardState:
    """A program draft together with every piece of per-chat wizard state."""

    chat_id: int
    step: WizardStep = WizardStep.TYPE
    draft: ProgramDraft = field(default_factory=ProgramDraft)
    chosen_days: list[str] = field(default_factory=list)
    day_cursor: int = 0
    intensive_day_count: Optional[int] = None
    intensive_times: list[str] = field(default_factory=list)
    intensive_cursor: int = 0
    temp_day: Optional[str] = None
    temp_time: Optional[str] = None


@dataclass(slots=True)
class BroadcastDraft:
    """Audience of a pending broadcast and, once typed, its text."""

    segment: str = "all"
    program_id: Optional[int] = None
    text: Optional[str] = None

    @property
    def awaits_text(self) -> bool:
        return self.text is None


class SessionStore:
    """Owns every per-chat conversation record."""

    def __init__(self) -> None:
        self._bookings: dict[int, BookingSession] = {}
        self._wizards: dict[int, WizardState] = {}
        self._broadcasts: dict[int, BroadcastDraft] = {}

    # Booking sessions ----------------------------------------------------
    def start_booking(
        self, chat_id: int, program_id: int, step: BookingStep, user_id: Optional[int] = None
    ) -> BookingSession:
        if chat_id in self._bookings:
            LOGGER.info("Discarding previous booking session for chat %s", chat_id)
        session = BookingSession(
            chat_id=chat_id, program_id=program_id, step=step, data=BookingData(user_id=user_id)
        )
        self._bookings[chat_id] = session
        return session

    def get_booking(self, chat_id: int) -> Optional[BookingSession]:
        return self._bookings.get(chat_id)

    def clear_booking(self, chat_id: int) -> bool:
        return self._bookings.pop(chat_id, None) is not None

    # Program wizard ------------------------------------------------------
    def start_wizard(self, chat_id: int) -> WizardState:
        state = WizardState(chat_id=chat_id)
        self._wizards[chat_id] = state
        return state

    def get_wizard(self, chat_id: int) -> Optional[WizardState]:
        return self._wizards.get(chat_id)

    def clear_wizard(self, chat_id: int) -> bool:
        return self._wizards.pop(chat_id, None) is not None

    # Broadcast -----------------------------------------------------------
    def start_broadcast(
        self, chat_id: int, segment: str = "all", program_id: Optional[int] = None
    ) -> BroadcastDraft:
        draft = BroadcastDraft(segment=segment, program_id=program_id)
        self._broadcasts[chat_id] = draft
        return draft

    def get_broadcast(self, chat_id: int) -> Optional[BroadcastDraft]:
        return self._broadcasts.get(chat_id)

    def is_broadcasting(self, chat_id: int) -> bool:
        """True while a broadcast is waiting for its text."""
        draft = self._broadcasts.get(chat_id)
        return draft is not None and draft.awaits_text

    def clear_broadcast(self, chat_id: int) -> bool:
        return self._broadcasts.pop(chat_id, None) is not None

    def clear_chat(self, chat_id: int) -> None:
        self.clear_booking(chat_id)
        self.clear_wizard(chat_id)
        self.clear_broadcast(chat_id)

    def holds(self, chat_id: int) -> bool:
        return chat_id in self._bookings or chat_id in self._wizards or chat_id in self._broadcasts


__all__ = [
    "PASS_SIZE",
    "BookingStep",
    "WizardStep",
    "BookingData",
    "BookingSession",
    "ProgramDraft",
    "WizardState",
    "BroadcastDraft",
    "SessionStore",
]
