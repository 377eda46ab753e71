"""Typed callback actions parsed from inline button data.

Patterns are tried in order and the first match wins, so per-item admin
tokens such as ``admin:confirm:12`` are listed before the generic
``admin:<section>`` menu token.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, ClassVar, Optional


@dataclass(frozen=True)
class Action:
    admin_only: ClassVar[bool] = False


@dataclass(frozen=True)
class AdminAction(Action):
    admin_only: ClassVar[bool] = True


# Navigation -------------------------------------------------------------------
@dataclass(frozen=True)
class Navigate(Action):
    target: str


@dataclass(frozen=True)
class OpenProgram(Action):
    program_id: int


# Booking ------------------------------------------------------------------------
@dataclass(frozen=True)
class StartBooking(Action):
    program_id: int


@dataclass(frozen=True)
class ChooseOption(Action):
    option: str
    program_id: int


@dataclass(frozen=True)
class PickSingleDate(Action):
    session_id: int


@dataclass(frozen=True)
class TogglePassSession(Action):
    session_id: int


@dataclass(frozen=True)
class FinishPass(Action):
    pass


@dataclass(frozen=True)
class SkipNotes(Action):
    pass


@dataclass(frozen=True)
class ChoosePayment(Action):
    method: str


@dataclass(frozen=True)
class ConfirmBooking(Action):
    pass


@dataclass(frozen=True)
class CancelBooking(Action):
    pass


# Admin ------------------------------------------------------------------------
@dataclass(frozen=True)
class ReviewApplication(AdminAction):
    decision: str
    application_id: int


@dataclass(frozen=True)
class DeleteProgram(AdminAction):
    program_id: int


@dataclass(frozen=True)
class AdminMenu(AdminAction):
    section: str


# Broadcast ----------------------------------------------------------------------
@dataclass(frozen=True)
class BroadcastSegment(AdminAction):
    segment: str
    program_id: Optional[int] = None


@dataclass(frozen=True)
class BroadcastConfirm(AdminAction):
    pass


@dataclass(frozen=True)
class BroadcastCancel(AdminAction):
    pass


# Program wizard -----------------------------------------------------------------
@dataclass(frozen=True)
class WizardType(AdminAction):
    program_type: str


@dataclass(frozen=True)
class WizardDuration(AdminAction):
    minutes: int


@dataclass(frozen=True)
class WizardIntensiveDays(AdminAction):
    days: Optional[int]


@dataclass(frozen=True)
class WizardDay(AdminAction):
    code: str


@dataclass(frozen=True)
class WizardTime(AdminAction):
    time: Optional[str]


@dataclass(frozen=True)
class WizardScheduleMore(AdminAction):
    pass


@dataclass(frozen=True)
class WizardScheduleDone(AdminAction):
    pass


@dataclass(frozen=True)
class WizardIntensiveTime(AdminAction):
    time: Optional[str]


@dataclass(frozen=True)
class WizardIndividualDay(AdminAction):
    code: str


@dataclass(frozen=True)
class WizardIndividualDaysDone(AdminAction):
    pass


@dataclass(frozen=True)
class WizardIndividualTime(AdminAction):
    time: Optional[str]


@dataclass(frozen=True)
class WizardSkipGroupLink(AdminAction):
    pass


@dataclass(frozen=True)
class WizardConfirm(AdminAction):
    pass


@dataclass(frozen=True)
class WizardCancel(AdminAction):
    pass


_DAY = r"(mon|tue|wed|thu|fri|sat|sun)"
_TIME = r"(\d{1,2}:\d{2}|manual)"


def _time(value: str) -> Optional[str]:
    return None if value == "manual" else value


_PATTERNS: list[tuple[re.Pattern[str], Callable[[re.Match[str]], Action]]] = [
    # admin: per-item tokens before the generic menu token
    (re.compile(r"^admin:(confirm|approve|reject|call):(\d+)$"), lambda m: ReviewApplication(m[1], int(m[2]))),
    (re.compile(r"^admin:delete:(\d+)$"), lambda m: DeleteProgram(int(m[1]))),
    (re.compile(r"^admin:(panel|applications|add_program|programs|broadcast)$"), lambda m: AdminMenu(m[1])),
    # broadcast
    (re.compile(r"^broadcast:(all|active)$"), lambda m: BroadcastSegment(m[1])),
    (re.compile(r"^broadcast:program:(\d+)$"), lambda m: BroadcastSegment("program", int(m[1]))),
    (re.compile(r"^broadcast:confirm$"), lambda m: BroadcastConfirm()),
    (re.compile(r"^broadcast:cancel$"), lambda m: BroadcastCancel()),
    # wizard
    (re.compile(r"^add:type:(group|intensive|open_group|individual)$"), lambda m: WizardType(m[1])),
    (re.compile(r"^add:duration:(\d+)$"), lambda m: WizardDuration(int(m[1]))),
    (
        re.compile(r"^add:intensive_days:(\d+|manual)$"),
        lambda m: WizardIntensiveDays(None if m[1] == "manual" else int(m[1])),
    ),
    (re.compile(rf"^add:day:{_DAY}$"), lambda m: WizardDay(m[1])),
    (re.compile(rf"^add:time:{_TIME}$"), lambda m: WizardTime(_time(m[1]))),
    (re.compile(r"^add:schedule:more$"), lambda m: WizardScheduleMore()),
    (re.compile(r"^add:schedule:done$"), lambda m: WizardScheduleDone()),
    (re.compile(rf"^add:int_time:{_TIME}$"), lambda m: WizardIntensiveTime(_time(m[1]))),
    (re.compile(rf"^add:ind_day:{_DAY}$"), lambda m: WizardIndividualDay(m[1])),
    (re.compile(r"^add:ind_days:done$"), lambda m: WizardIndividualDaysDone()),
    (re.compile(rf"^add:ind_time:{_TIME}$"), lambda m: WizardIndividualTime(_time(m[1]))),
    (re.compile(r"^add:group_link:skip$"), lambda m: WizardSkipGroupLink()),
    (re.compile(r"^add:confirm$"), lambda m: WizardConfirm()),
    (re.compile(r"^add:cancel$"), lambda m: WizardCancel()),
    # booking
    (re.compile(r"^book:(\d+)$"), lambda m: StartBooking(int(m[1]))),
    (re.compile(r"^option:(single|full):(\d+)$"), lambda m: ChooseOption(m[1], int(m[2]))),
    (re.compile(r"^single_date:(\d+)$"), lambda m: PickSingleDate(int(m[1]))),
    (re.compile(r"^toggle_full:(\d+)$"), lambda m: TogglePassSession(int(m[1]))),
    (re.compile(r"^full_done$"), lambda m: FinishPass()),
    (re.compile(r"^notes_skip$"), lambda m: SkipNotes()),
    (re.compile(r"^payment:(\w+)$"), lambda m: ChoosePayment(m[1])),
    (re.compile(r"^booking_confirm$"), lambda m: ConfirmBooking()),
    (re.compile(r"^booking_cancel$"), lambda m: CancelBooking()),
    # navigation
    (re.compile(r"^nav:(start|programs|schedule|my_bookings)$"), lambda m: Navigate(m[1])),
    (re.compile(r"^program:(\d+)$"), lambda m: OpenProgram(int(m[1]))),
]


def parse_action(token: str) -> Optional[Action]:
    """Return the action encoded in ``token`` or ``None`` when unrecognised."""
    for pattern, build in _PATTERNS:
        match = pattern.match(token)
        if match:
            return build(match)
    return None


__all__ = [
    "Action",
    "AdminAction",
    "Navigate",
    "OpenProgram",
    "StartBooking",
    "ChooseOption",
    "PickSingleDate",
    "TogglePassSession",
    "FinishPass",
    "SkipNotes",
    "ChoosePayment",
    "ConfirmBooking",
    "CancelBooking",
    "ReviewApplication",
    "DeleteProgram",
    "AdminMenu",
    "BroadcastSegment",
    "BroadcastConfirm",
    "BroadcastCancel",
    "WizardType",
    "WizardDuration",
    "WizardIntensiveDays",
    "WizardDay",
    "WizardTime",
    "WizardScheduleMore",
    "WizardScheduleDone",
    "WizardIntensiveTime",
    "WizardIndividualDay",
    "WizardIndividualDaysDone",
    "WizardIndividualTime",
    "WizardSkipGroupLink",
    "WizardConfirm",
    "WizardCancel",
    "parse_action",
]
