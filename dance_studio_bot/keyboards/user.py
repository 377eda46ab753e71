from __future__ import annotations

from typing import Iterable, Sequence

from telegram import (
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    KeyboardButton,
    ReplyKeyboardMarkup,
)

from dance_studio_bot import messages
from dance_studio_bot.database import Program, ProgramSession
from dance_studio_bot.utils.formatting import format_session


def main_menu_keyboard(contact_url: str) -> InlineKeyboardMarkup:
    buttons = [
        [InlineKeyboardButton(messages.MENU_LABELS["programs"], callback_data="nav:programs")],
        [InlineKeyboardButton(messages.MENU_LABELS["schedule"], callback_data="nav:schedule")],
        [InlineKeyboardButton(messages.MENU_LABELS["my_bookings"], callback_data="nav:my_bookings")],
        [InlineKeyboardButton(messages.MENU_LABELS["contact"], url=contact_url)],
    ]
    return InlineKeyboardMarkup(buttons)


def programs_keyboard(programs: Iterable[Program]) -> InlineKeyboardMarkup:
    buttons = [
        [InlineKeyboardButton(program.title, callback_data=f"program:{program.program_id}")]
        for program in programs
    ]
    buttons.append([InlineKeyboardButton(messages.MENU_LABELS["start"], callback_data="nav:start")])
    return InlineKeyboardMarkup(buttons)


def program_details_keyboard(program_id: int) -> InlineKeyboardMarkup:
    buttons = [
        [InlineKeyboardButton(messages.BOOK_BUTTON, callback_data=f"book:{program_id}")],
        [InlineKeyboardButton(messages.MENU_LABELS["programs"], callback_data="nav:programs")],
    ]
    return InlineKeyboardMarkup(buttons)


def schedule_keyboard() -> InlineKeyboardMarkup:
    buttons = [
        [InlineKeyboardButton(messages.MENU_LABELS["programs"], callback_data="nav:programs")],
        [InlineKeyboardButton(messages.MENU_LABELS["start"], callback_data="nav:start")],
    ]
    return InlineKeyboardMarkup(buttons)


def my_bookings_keyboard(contact_url: str) -> InlineKeyboardMarkup:
    buttons = [
        [InlineKeyboardButton(messages.MY_BOOKINGS_MORE_BUTTON, callback_data="nav:programs")],
        [InlineKeyboardButton(messages.MENU_LABELS["contact"], url=contact_url)],
        [InlineKeyboardButton(messages.MENU_LABELS["start"], callback_data="nav:start")],
    ]
    return InlineKeyboardMarkup(buttons)


def contact_admin_keyboard(contact_url: str) -> InlineKeyboardMarkup:
    buttons = [
        [InlineKeyboardButton(messages.MENU_LABELS["contact"], url=contact_url)],
        [InlineKeyboardButton(messages.MENU_LABELS["programs"], callback_data="nav:programs")],
    ]
    return InlineKeyboardMarkup(buttons)


def open_group_option_keyboard(program_id: int) -> InlineKeyboardMarkup:
    buttons = [
        [InlineKeyboardButton(messages.OPTION_FULL_BUTTON, callback_data=f"option:full:{program_id}")],
        [InlineKeyboardButton(messages.OPTION_SINGLE_BUTTON, callback_data=f"option:single:{program_id}")],
        [InlineKeyboardButton(messages.CANCEL_BUTTON, callback_data="booking_cancel")],
    ]
    return InlineKeyboardMarkup(buttons)


def contact_request_keyboard() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        [[KeyboardButton(messages.CONTACT_BUTTON, request_contact=True)]],
        resize_keyboard=True,
        one_time_keyboard=True,
    )


def notes_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [[InlineKeyboardButton(messages.NOTES_SKIP_BUTTON, callback_data="notes_skip")]]
    )


def payment_keyboard() -> InlineKeyboardMarkup:
    buttons = [
        [InlineKeyboardButton(label, callback_data=f"payment:{method}")]
        for method, label in messages.PAYMENT_METHODS.items()
    ]
    buttons.append([InlineKeyboardButton(messages.CANCEL_BUTTON, callback_data="booking_cancel")])
    return InlineKeyboardMarkup(buttons)


def summary_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton(messages.SUMMARY_CONFIRM_BUTTON, callback_data="booking_confirm"),
                InlineKeyboardButton(messages.SUMMARY_CANCEL_BUTTON, callback_data="booking_cancel"),
            ]
        ]
    )


def single_date_keyboard(sessions: Iterable[ProgramSession]) -> InlineKeyboardMarkup:
    buttons = [
        [InlineKeyboardButton(format_session(session), callback_data=f"single_date:{session.session_id}")]
        for session in sessions
    ]
    buttons.append([InlineKeyboardButton(messages.CANCEL_BUTTON, callback_data="booking_cancel")])
    return InlineKeyboardMarkup(buttons)


def full_pass_keyboard(
    sessions: Iterable[ProgramSession], selected: Sequence[int], required: int
) -> InlineKeyboardMarkup:
    buttons = []
    for session in sessions:
        mark = "✅ " if session.session_id in selected else ""
        buttons.append(
            [
                InlineKeyboardButton(
                    f"{mark}{format_session(session)}",
                    callback_data=f"toggle_full:{session.session_id}",
                )
            ]
        )
    if len(selected) == required:
        buttons.append([InlineKeyboardButton(messages.FULL_PICKER_DONE_BUTTON, callback_data="full_done")])
    buttons.append([InlineKeyboardButton(messages.CANCEL_BUTTON, callback_data="booking_cancel")])
    return InlineKeyboardMarkup(buttons)


__all__ = [
    "main_menu_keyboard",
    "programs_keyboard",
    "program_details_keyboard",
    "schedule_keyboard",
    "my_bookings_keyboard",
    "contact_admin_keyboard",
    "open_group_option_keyboard",
    "contact_request_keyboard",
    "notes_keyboard",
    "payment_keyboard",
    "summary_keyboard",
    "single_date_keyboard",
    "full_pass_keyboard",
]
