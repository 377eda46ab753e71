from __future__ import annotations

from typing import Iterable, Sequence

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from dance_studio_bot import messages
from dance_studio_bot.database import Program
from dance_studio_bot.utils.schedule import WEEKDAYS

SCHEDULE_TIMES = ("18:00", "19:00", "20:00")
INTENSIVE_TIMES = ("18:00", "19:00", "19:30", "20:00", "20:30", "21:00", "21:30")
INDIVIDUAL_TIMES = ("18:00", "19:00", "20:00", "21:00")
INTENSIVE_DAY_CHOICES = range(2, 8)
DURATION_CHOICES = {60: "1 час (60 мин)", 90: "1,5 часа (90 мин)"}

_CANCEL_ROW = [InlineKeyboardButton(messages.CANCEL_BUTTON, callback_data="add:cancel")]


def admin_menu_keyboard() -> InlineKeyboardMarkup:
    buttons = [
        [InlineKeyboardButton(label, callback_data=f"admin:{key}")]
        for key, label in messages.ADMIN_MENU_LABELS.items()
    ]
    return InlineKeyboardMarkup(buttons)


def back_to_panel_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [[InlineKeyboardButton(messages.ADMIN_PANEL_BUTTON, callback_data="admin:panel")]]
    )


def application_keyboard(application_id: int) -> InlineKeyboardMarkup:
    buttons = [
        [
            InlineKeyboardButton(
                messages.ADMIN_CONFIRM_BUTTON, callback_data=f"admin:confirm:{application_id}"
            )
        ],
        [
            InlineKeyboardButton(
                messages.ADMIN_APPROVE_BUTTON, callback_data=f"admin:approve:{application_id}"
            ),
            InlineKeyboardButton(
                messages.ADMIN_REJECT_BUTTON, callback_data=f"admin:reject:{application_id}"
            ),
        ],
        [InlineKeyboardButton(messages.ADMIN_CALL_BUTTON, callback_data=f"admin:call:{application_id}")],
    ]
    return InlineKeyboardMarkup(buttons)


def programs_admin_keyboard(programs: Iterable[Program]) -> InlineKeyboardMarkup:
    buttons = [
        [
            InlineKeyboardButton(
                messages.DELETE_PROGRAM_BUTTON.format(title=program.title),
                callback_data=f"admin:delete:{program.program_id}",
            )
        ]
        for program in programs
    ]
    buttons.append([InlineKeyboardButton(messages.ADMIN_PANEL_BUTTON, callback_data="admin:panel")])
    return InlineKeyboardMarkup(buttons)


# Broadcast --------------------------------------------------------------------
_BROADCAST_CANCEL = InlineKeyboardButton(messages.CANCEL_BUTTON, callback_data="broadcast:cancel")


def broadcast_segment_keyboard(programs: Iterable[Program]) -> InlineKeyboardMarkup:
    buttons = [
        [
            InlineKeyboardButton(
                messages.BROADCAST_PROGRAM_BUTTON.format(title=program.title),
                callback_data=f"broadcast:program:{program.program_id}",
            )
        ]
        for program in programs
    ]
    buttons.extend(
        [InlineKeyboardButton(label, callback_data=f"broadcast:{segment}")]
        for segment, label in messages.BROADCAST_SEGMENT_BUTTONS.items()
    )
    buttons.append([_BROADCAST_CANCEL])
    return InlineKeyboardMarkup(buttons)


def broadcast_cancel_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[_BROADCAST_CANCEL]])


def broadcast_confirm_keyboard(count: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton(
                    messages.BROADCAST_CONFIRM_BUTTON.format(count=count), callback_data="broadcast:confirm"
                ),
                _BROADCAST_CANCEL,
            ]
        ]
    )


# Program wizard ---------------------------------------------------------------
def wizard_type_keyboard() -> InlineKeyboardMarkup:
    buttons = [
        [InlineKeyboardButton(label, callback_data=f"add:type:{program_type}")]
        for program_type, label in messages.WIZARD_TYPE_BUTTONS.items()
    ]
    buttons.append(_CANCEL_ROW)
    return InlineKeyboardMarkup(buttons)


def wizard_duration_keyboard() -> InlineKeyboardMarkup:
    buttons = [
        [InlineKeyboardButton(label, callback_data=f"add:duration:{minutes}")]
        for minutes, label in DURATION_CHOICES.items()
    ]
    buttons.append(_CANCEL_ROW)
    return InlineKeyboardMarkup(buttons)


def wizard_intensive_days_keyboard() -> InlineKeyboardMarkup:
    choices = [
        InlineKeyboardButton(f"{days} дн.", callback_data=f"add:intensive_days:{days}")
        for days in INTENSIVE_DAY_CHOICES
    ]
    buttons = [choices[:3], choices[3:]]
    buttons.append(
        [InlineKeyboardButton(messages.WIZARD_MANUAL_BUTTON, callback_data="add:intensive_days:manual")]
    )
    buttons.append(_CANCEL_ROW)
    return InlineKeyboardMarkup(buttons)


def wizard_day_keyboard(can_finish: bool) -> InlineKeyboardMarkup:
    days = [
        InlineKeyboardButton(label, callback_data=f"add:day:{code}") for code, label in WEEKDAYS.items()
    ]
    buttons = [days[:3], days[3:6], days[6:]]
    if can_finish:
        buttons.append(
            [InlineKeyboardButton(messages.WIZARD_FINISH_SCHEDULE_BUTTON, callback_data="add:schedule:done")]
        )
    buttons.append(_CANCEL_ROW)
    return InlineKeyboardMarkup(buttons)


def wizard_time_keyboard(prefix: str, presets: Sequence[str]) -> InlineKeyboardMarkup:
    """Preset start times for ``add:<prefix>:<HH:MM>`` plus a manual entry button."""
    row: list[InlineKeyboardButton] = []
    buttons: list[list[InlineKeyboardButton]] = []
    for time in presets:
        row.append(InlineKeyboardButton(time, callback_data=f"add:{prefix}:{time}"))
        if len(row) == 2:
            buttons.append(row)
            row = []
    if row:
        buttons.append(row)
    buttons.append(
        [InlineKeyboardButton(messages.WIZARD_MANUAL_BUTTON, callback_data=f"add:{prefix}:manual")]
    )
    buttons.append(_CANCEL_ROW)
    return InlineKeyboardMarkup(buttons)


def wizard_schedule_more_keyboard() -> InlineKeyboardMarkup:
    buttons = [
        [InlineKeyboardButton(messages.WIZARD_ADD_MORE_BUTTON, callback_data="add:schedule:more")],
        [InlineKeyboardButton(messages.WIZARD_DONE_BUTTON, callback_data="add:schedule:done")],
        _CANCEL_ROW,
    ]
    return InlineKeyboardMarkup(buttons)


def wizard_individual_days_keyboard(selected: Sequence[str]) -> InlineKeyboardMarkup:
    buttons = []
    for code, label in WEEKDAYS.items():
        mark = "✅ " if label in selected else ""
        buttons.append([InlineKeyboardButton(f"{mark}{label}", callback_data=f"add:ind_day:{code}")])
    buttons.append(
        [InlineKeyboardButton(messages.WIZARD_DAYS_DONE_BUTTON, callback_data="add:ind_days:done")]
    )
    buttons.append(_CANCEL_ROW)
    return InlineKeyboardMarkup(buttons)


def wizard_group_link_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [
            [InlineKeyboardButton(messages.WIZARD_SKIP_BUTTON, callback_data="add:group_link:skip")],
            _CANCEL_ROW,
        ]
    )


def wizard_cancel_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([_CANCEL_ROW])


def wizard_confirm_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton(messages.WIZARD_CREATE_BUTTON, callback_data="add:confirm"),
                InlineKeyboardButton(messages.CANCEL_BUTTON, callback_data="add:cancel"),
            ]
        ]
    )


__all__ = [
    "SCHEDULE_TIMES",
    "INTENSIVE_TIMES",
    "INDIVIDUAL_TIMES",
    "DURATION_CHOICES",
    "admin_menu_keyboard",
    "back_to_panel_keyboard",
    "application_keyboard",
    "programs_admin_keyboard",
    "broadcast_segment_keyboard",
    "broadcast_cancel_keyboard",
    "broadcast_confirm_keyboard",
    "wizard_type_keyboard",
    "wizard_duration_keyboard",
    "wizard_intensive_days_keyboard",
    "wizard_day_keyboard",
    "wizard_time_keyboard",
    "wizard_schedule_more_keyboard",
    "wizard_individual_days_keyboard",
    "wizard_group_link_keyboard",
    "wizard_cancel_keyboard",
    "wizard_confirm_keyboard",
]
