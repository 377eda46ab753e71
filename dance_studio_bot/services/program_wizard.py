"""Admin wizard that assembles a program draft and persists it on confirm.

The path through the wizard depends on the program type:

* ``group`` / ``open_group``: title, description, start date, a weekly
  schedule built day by day, prices, capacity, group link.
* ``intensive``: lesson duration, number of days, title, description, start
  date, one start time per day, price, capacity, group link.
* ``individual``: lesson duration, weekdays, one start time per weekday, price.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from html import escape
from typing import Optional

from telegram import Bot

from dance_studio_bot import messages
from dance_studio_bot.database import Database, SessionSlot
from dance_studio_bot.errors import DraftIncompleteError
from dance_studio_bot.keyboards.admin import (
    INDIVIDUAL_TIMES,
    INTENSIVE_TIMES,
    SCHEDULE_TIMES,
    back_to_panel_keyboard,
    wizard_cancel_keyboard,
    wizard_confirm_keyboard,
    wizard_day_keyboard,
    wizard_duration_keyboard,
    wizard_group_link_keyboard,
    wizard_individual_days_keyboard,
    wizard_intensive_days_keyboard,
    wizard_schedule_more_keyboard,
    wizard_time_keyboard,
    wizard_type_keyboard,
)
from dance_studio_bot.sessions import SessionStore, WizardState, WizardStep
from dance_studio_bot.utils.formatting import (
    format_currency,
    format_day_month,
    format_duration,
    format_schedule,
    format_short_date,
)
from dance_studio_bot.utils.messaging import ReplyMarkup, edit_html, send_html
from dance_studio_bot.utils.schedule import (
    WEEKDAYS,
    ScheduleEntry,
    add_duration,
    intensive_sessions,
    normalise_time,
    parse_start_date,
    sessions_from_details,
    sessions_from_rules,
)

LOGGER = logging.getLogger(__name__)

MAX_INTENSIVE_DAYS = 30
DEFAULT_DURATION = 60


def _positive_int(text: str) -> Optional[int]:
    value = text.strip().replace(" ", "")
    if not value.isdigit():
        return None
    number = int(value)
    return number if number > 0 else None


def _joined_schedule(entries: list[ScheduleEntry]) -> str:
    return ", ".join(f"{entry.day} {add_duration(entry.time, entry.duration)}" for entry in entries)


class ProgramWizard:
    def __init__(self, database: Database, bot: Bot, store: SessionStore) -> None:
        self.database = database
        self.bot = bot
        self.store = store

    async def _send(self, chat_id: int, text: str, reply_markup: Optional[ReplyMarkup] = None):
        return await send_html(self.bot, chat_id, text, reply_markup)

    def _state(self, chat_id: int, *steps: WizardStep) -> Optional[WizardState]:
        state = self.store.get_wizard(chat_id)
        if state is None:
            return None
        if steps and state.step not in steps:
            LOGGER.info("Stale wizard action in chat %s at step %s", chat_id, state.step.value)
            return None
        return state

    async def start(self, chat_id: int) -> WizardState:
        state = self.store.start_wizard(chat_id)
        LOGGER.info("Program wizard started in chat %s", chat_id)
        await self._send(chat_id, messages.WIZARD_START, wizard_type_keyboard())
        return state

    async def cancel(self, chat_id: int) -> None:
        if self.store.clear_wizard(chat_id):
            LOGGER.info("Program wizard cancelled in chat %s", chat_id)
        await self._send(chat_id, messages.WIZARD_CANCELLED, back_to_panel_keyboard())

    # Type and duration ---------------------------------------------------
    async def choose_type(self, chat_id: int, program_type: str) -> None:
        state = self._state(chat_id, WizardStep.TYPE)
        if state is None:
            return
        state.draft.type = program_type
        if program_type in ("intensive", "individual"):
            state.step = WizardStep.DURATION_CHOICE
            await self._send(chat_id, messages.WIZARD_ASK_DURATION, wizard_duration_keyboard())
        else:
            state.step = WizardStep.TITLE
            await self._send(chat_id, messages.WIZARD_ASK_TITLE, wizard_cancel_keyboard())

    async def choose_duration(self, chat_id: int, minutes: int) -> None:
        state = self._state(chat_id, WizardStep.DURATION_CHOICE, WizardStep.SCHEDULE_DURATION)
        if state is None:
            return
        if state.step is WizardStep.SCHEDULE_DURATION:
            await self._add_schedule_entry(state, minutes)
            return

        state.draft.duration_minutes = minutes
        await self._send(chat_id, messages.WIZARD_DURATION_SET.format(duration=format_duration(minutes)))
        if state.draft.type == "intensive":
            state.step = WizardStep.INTENSIVE_DAYS
            await self._send(chat_id, messages.WIZARD_ASK_INTENSIVE_DAYS, wizard_intensive_days_keyboard())
        else:
            state.step = WizardStep.INDIVIDUAL_DAYS
            await self._send(
                chat_id,
                messages.WIZARD_ASK_INDIVIDUAL_DAYS.format(selected="—"),
                wizard_individual_days_keyboard(state.chosen_days),
            )

    async def choose_intensive_days(self, chat_id: int, days: Optional[int]) -> None:
        state = self._state(chat_id, WizardStep.INTENSIVE_DAYS)
        if state is None:
            return
        if days is None:
            await self._send(chat_id, messages.WIZARD_ASK_INTENSIVE_DAYS_MANUAL)
            return
        await self._set_intensive_days(state, days)

    async def _set_intensive_days(self, state: WizardState, days: int) -> None:
        state.intensive_day_count = days
        state.step = WizardStep.TITLE
        await self._send(state.chat_id, messages.WIZARD_ASK_INTENSIVE_TITLE, wizard_cancel_keyboard())

    # Recurring schedule --------------------------------------------------
    async def _ask_day(self, state: WizardState) -> None:
        state.step = WizardStep.SCHEDULE_DAY
        await self._send(
            state.chat_id,
            messages.WIZARD_ASK_DAY,
            wizard_day_keyboard(can_finish=bool(state.draft.schedule_details)),
        )

    async def choose_day(self, chat_id: int, code: str) -> None:
        state = self._state(chat_id, WizardStep.SCHEDULE_DAY)
        if state is None or code not in WEEKDAYS:
            return
        state.temp_day = WEEKDAYS[code]
        state.step = WizardStep.SCHEDULE_TIME
        await self._send(
            chat_id,
            messages.WIZARD_ASK_TIME.format(day=state.temp_day),
            wizard_time_keyboard("time", SCHEDULE_TIMES),
        )

    async def choose_time(self, chat_id: int, time: Optional[str]) -> None:
        state = self._state(chat_id, WizardStep.SCHEDULE_TIME)
        if state is None:
            return
        if time is None:
            await self._send(chat_id, messages.WIZARD_ASK_TIME_MANUAL)
            return
        await self._text_schedule_time(state, time)

    async def _stage_time(self, state: WizardState, time: str) -> None:
        state.temp_time = time
        state.step = WizardStep.SCHEDULE_DURATION
        await self._send(state.chat_id, messages.WIZARD_ASK_DAY_DURATION, wizard_duration_keyboard())

    async def _add_schedule_entry(self, state: WizardState, minutes: int) -> None:
        if state.temp_day is None or state.temp_time is None:
            await self._ask_day(state)
            return
        entry = ScheduleEntry(day=state.temp_day, time=state.temp_time, duration=minutes)
        state.draft.schedule_details.append(entry)
        state.temp_day = state.temp_time = None
        state.step = WizardStep.SCHEDULE_MORE
        await self._send(
            state.chat_id,
            messages.WIZARD_SCHEDULE_ADDED.format(entry=entry.label()),
            wizard_schedule_more_keyboard(),
        )

    async def schedule_more(self, chat_id: int) -> None:
        state = self._state(chat_id, WizardStep.SCHEDULE_MORE)
        if state is None:
            return
        await self._ask_day(state)

    async def schedule_done(self, chat_id: int) -> None:
        state = self._state(chat_id, WizardStep.SCHEDULE_MORE, WizardStep.SCHEDULE_DAY)
        if state is None:
            return
        details = state.draft.schedule_details
        if not details:
            await self._send(chat_id, messages.WIZARD_SCHEDULE_EMPTY)
            return
        state.draft.schedule = _joined_schedule(details)
        if state.draft.duration_minutes is None:
            state.draft.duration_minutes = details[0].duration
        state.step = WizardStep.PRICE
        await self._send(chat_id, messages.WIZARD_ASK_PRICE, wizard_cancel_keyboard())

    # Intensive day-by-day times -------------------------------------------
    def _intensive_day(self, state: WizardState) -> Optional[date]:
        if state.draft.start_date is None or not state.intensive_day_count:
            LOGGER.warning("Intensive time step without start date or day count in chat %s", state.chat_id)
            return None
        return state.draft.start_date + timedelta(days=state.intensive_cursor)

    async def _ask_intensive_time(self, state: WizardState) -> None:
        day_date = self._intensive_day(state)
        if day_date is None:
            return
        await self._send(
            state.chat_id,
            messages.WIZARD_ASK_INTENSIVE_TIME.format(
                day=state.intensive_cursor + 1,
                total=state.intensive_day_count,
                date=format_short_date(day_date),
            ),
            wizard_time_keyboard("int_time", INTENSIVE_TIMES),
        )

    async def choose_intensive_time(self, chat_id: int, time: Optional[str]) -> None:
        state = self._state(chat_id, WizardStep.INTENSIVE_TIME)
        if state is None:
            return
        if time is None:
            await self._send(chat_id, messages.WIZARD_ASK_TIME_MANUAL)
            return
        await self._text_intensive_time(state, time)

    async def _save_intensive_time(self, state: WizardState, time: str) -> None:
        day_date = self._intensive_day(state)
        if day_date is None:
            return
        state.intensive_times.append(time)
        state.intensive_cursor += 1
        await self._send(
            state.chat_id,
            messages.WIZARD_INTENSIVE_TIME_SAVED.format(
                day=state.intensive_cursor, date=format_short_date(day_date), time=time
            ),
        )
        if state.intensive_cursor < state.intensive_day_count:
            await self._ask_intensive_time(state)
            return

        duration = state.draft.duration_minutes or DEFAULT_DURATION
        rows = [
            f"{format_short_date(state.draft.start_date + timedelta(days=index))} {add_duration(value, duration)}"
            for index, value in enumerate(state.intensive_times)
        ]
        state.draft.schedule = ", ".join(rows)
        state.step = WizardStep.PRICE
        await self._send(
            state.chat_id,
            "\n".join([messages.WIZARD_INTENSIVE_SCHEDULE_HEADER, *(f"• {row}" for row in rows)]),
        )
        await self._send(state.chat_id, messages.WIZARD_ASK_INTENSIVE_PRICE, wizard_cancel_keyboard())

    # Individual weekdays and times ---------------------------------------
    async def toggle_individual_day(self, chat_id: int, code: str, message_id: Optional[int] = None) -> None:
        state = self._state(chat_id, WizardStep.INDIVIDUAL_DAYS)
        if state is None or code not in WEEKDAYS:
            return
        label = WEEKDAYS[code]
        if label in state.chosen_days:
            state.chosen_days.remove(label)
        else:
            state.chosen_days.append(label)
        text = messages.WIZARD_ASK_INDIVIDUAL_DAYS.format(selected=", ".join(state.chosen_days) or "—")
        keyboard = wizard_individual_days_keyboard(state.chosen_days)
        if message_id is None:
            await self._send(chat_id, text, keyboard)
        else:
            await edit_html(self.bot, chat_id, message_id, text, keyboard)

    async def individual_days_done(self, chat_id: int) -> None:
        state = self._state(chat_id, WizardStep.INDIVIDUAL_DAYS)
        if state is None:
            return
        if not state.chosen_days:
            await self._send(chat_id, messages.WIZARD_INDIVIDUAL_DAYS_EMPTY)
            return
        state.day_cursor = 0
        state.step = WizardStep.INDIVIDUAL_TIME
        await self._ask_individual_time(state)

    async def _ask_individual_time(self, state: WizardState) -> None:
        day = state.chosen_days[state.day_cursor]
        await self._send(
            state.chat_id,
            messages.WIZARD_ASK_INDIVIDUAL_TIME.format(day=day),
            wizard_time_keyboard("ind_time", INDIVIDUAL_TIMES),
        )

    async def choose_individual_time(self, chat_id: int, time: Optional[str]) -> None:
        state = self._state(chat_id, WizardStep.INDIVIDUAL_TIME)
        if state is None:
            return
        if time is None:
            await self._send(chat_id, messages.WIZARD_ASK_TIME_MANUAL)
            return
        await self._text_individual_time(state, time)

    async def _save_individual_time(self, state: WizardState, time: str) -> None:
        draft = state.draft
        entry = ScheduleEntry(
            day=state.chosen_days[state.day_cursor],
            time=time,
            duration=draft.duration_minutes or DEFAULT_DURATION,
        )
        draft.schedule_details.append(entry)
        state.day_cursor += 1
        await self._send(
            state.chat_id, messages.WIZARD_INDIVIDUAL_TIME_SAVED.format(day=entry.day, entry=entry.label())
        )
        if state.day_cursor < len(state.chosen_days):
            await self._ask_individual_time(state)
            return

        draft.schedule = _joined_schedule(draft.schedule_details)
        draft.title = messages.WIZARD_INDIVIDUAL_TITLE
        draft.description = messages.WIZARD_INDIVIDUAL_DESCRIPTION
        state.step = WizardStep.PRICE
        await self._send(
            state.chat_id,
            messages.WIZARD_INDIVIDUAL_SCHEDULE_DONE.format(schedule=escape(format_schedule(draft.schedule))),
            wizard_cancel_keyboard(),
        )

    # Group link and preview ----------------------------------------------
    async def skip_group_link(self, chat_id: int) -> None:
        state = self._state(chat_id, WizardStep.GROUP_LINK)
        if state is None:
            return
        state.draft.group_link = None
        await self._preview(state)

    def _preview_text(self, state: WizardState) -> str:
        draft = state.draft
        lines = [
            f"🆕 <b>{escape(draft.title or '')}</b>",
            f"<i>{messages.PROGRAM_TYPE_LABELS.get(draft.type or '', '')}</i>",
            "",
        ]
        if draft.description:
            lines.extend([escape(draft.description), ""])
        if draft.start_date:
            period = format_day_month(draft.start_date)
            if draft.end_date and draft.end_date != draft.start_date:
                period = f"{period} – {format_day_month(draft.end_date)}"
            lines.append(f"📅 <b>Даты:</b> {period}")
        if draft.schedule:
            lines.append(f"⏰ <b>Расписание:</b>\n{escape(format_schedule(draft.schedule))}")
        if draft.duration_minutes:
            lines.append(f"⏱ <b>Длительность:</b> {format_duration(draft.duration_minutes)}")
        lines.append(f"💰 <b>Цена:</b> {format_currency(draft.price)}")
        if draft.single_price and draft.type != "individual":
            lines.append(f"🎫 <b>Разовое:</b> {format_currency(draft.single_price)}")
        lines.append(f"👥 <b>Мест:</b> {draft.max_participants}")
        if draft.group_link:
            lines.append(f"🔗 {escape(draft.group_link)}")
        lines.extend(["", messages.WIZARD_PREVIEW_FOOTER])
        return "\n".join(lines)

    async def _preview(self, state: WizardState) -> None:
        state.step = WizardStep.CONFIRM
        await self._send(state.chat_id, self._preview_text(state), wizard_confirm_keyboard())

    # Confirmation ----------------------------------------------------------
    def _session_slots(self, state: WizardState) -> list[SessionSlot]:
        draft = state.draft
        if draft.start_date is None or draft.type == "individual":
            return []
        if draft.type == "intensive":
            return intensive_sessions(draft.start_date, state.intensive_times, draft.duration_minutes)
        if draft.schedule_details:
            return sessions_from_details(draft.start_date, draft.schedule_details)
        if draft.schedule:
            return sessions_from_rules(draft.start_date, draft.schedule)
        return []

    async def confirm(self, chat_id: int) -> None:
        if self.store.get_wizard(chat_id) is None:
            await self._send(chat_id, messages.WIZARD_DRAFT_LOST, back_to_panel_keyboard())
            return
        state = self._state(chat_id, WizardStep.CONFIRM)
        if state is None:
            return
        try:
            new_program = state.draft.to_new_program()
        except DraftIncompleteError as exc:
            LOGGER.warning("Discarding incomplete draft in chat %s: %s", chat_id, exc)
            self.store.clear_wizard(chat_id)
            await self._send(chat_id, messages.WIZARD_DRAFT_LOST, back_to_panel_keyboard())
            return

        program, created = self.database.create_program_with_sessions(new_program, self._session_slots(state))
        self.store.clear_wizard(chat_id)
        LOGGER.info("Program %s confirmed in chat %s", program.program_id, chat_id)
        await self._send(chat_id, messages.WIZARD_CREATED.format(sessions=created), back_to_panel_keyboard())

    # Free text -------------------------------------------------------------
    async def handle_text(self, chat_id: int, text: str) -> None:
        state = self.store.get_wizard(chat_id)
        if state is None or not state.step.awaits_text:
            return
        value = text.strip()
        handler = getattr(self, f"_text_{state.step.value}")
        await handler(state, value)

    async def _text_intensive_days(self, state: WizardState, value: str) -> None:
        days = _positive_int(value)
        if days is None or days > MAX_INTENSIVE_DAYS:
            await self._send(state.chat_id, messages.WIZARD_BAD_INTENSIVE_DAYS)
            return
        await self._set_intensive_days(state, days)

    async def _text_title(self, state: WizardState, value: str) -> None:
        if not value:
            await self._send(state.chat_id, messages.WIZARD_ASK_TITLE)
            return
        state.draft.title = value
        state.step = WizardStep.DESCRIPTION
        await self._send(state.chat_id, messages.WIZARD_ASK_DESCRIPTION, wizard_cancel_keyboard())

    async def _text_description(self, state: WizardState, value: str) -> None:
        state.draft.description = value
        state.step = WizardStep.START_DATE
        await self._send(state.chat_id, messages.WIZARD_ASK_START_DATE, wizard_cancel_keyboard())

    async def _text_start_date(self, state: WizardState, value: str) -> None:
        try:
            start = parse_start_date(value)
        except ValueError:
            await self._send(state.chat_id, messages.WIZARD_BAD_DATE)
            return
        state.draft.start_date = start

        if state.draft.type != "intensive":
            await self._ask_day(state)
            return

        days = state.intensive_day_count or 1
        state.draft.end_date = start + timedelta(days=days - 1)
        state.intensive_times = []
        state.intensive_cursor = 0
        state.step = WizardStep.INTENSIVE_TIME
        await self._send(
            state.chat_id,
            messages.WIZARD_INTENSIVE_PLAN.format(
                days=days,
                start=format_short_date(start),
                end=format_short_date(state.draft.end_date),
            ),
        )
        await self._ask_intensive_time(state)

    async def _text_schedule_time(self, state: WizardState, value: str) -> None:
        try:
            time = normalise_time(value)
        except ValueError:
            await self._send(state.chat_id, messages.WIZARD_BAD_TIME)
            return
        await self._stage_time(state, time)

    async def _text_intensive_time(self, state: WizardState, value: str) -> None:
        try:
            time = normalise_time(value)
        except ValueError:
            await self._send(state.chat_id, messages.WIZARD_BAD_TIME)
            await self._ask_intensive_time(state)
            return
        await self._save_intensive_time(state, time)

    async def _text_individual_time(self, state: WizardState, value: str) -> None:
        try:
            time = normalise_time(value)
        except ValueError:
            await self._send(state.chat_id, messages.WIZARD_BAD_TIME)
            return
        await self._save_individual_time(state, time)

    async def _text_price(self, state: WizardState, value: str) -> None:
        price = _positive_int(value)
        if price is None:
            await self._send(state.chat_id, messages.WIZARD_BAD_PRICE)
            return
        draft = state.draft
        draft.price = price
        if draft.type == "individual":
            draft.single_price = price
            draft.max_participants = 1
            await self._preview(state)
        elif draft.type == "open_group":
            state.step = WizardStep.SINGLE_PRICE
            await self._send(state.chat_id, messages.WIZARD_ASK_SINGLE_PRICE, wizard_cancel_keyboard())
        else:
            state.step = WizardStep.MAX_PARTICIPANTS
            await self._send(state.chat_id, messages.WIZARD_ASK_MAX, wizard_cancel_keyboard())

    async def _text_single_price(self, state: WizardState, value: str) -> None:
        price = _positive_int(value)
        if price is None:
            await self._send(state.chat_id, messages.WIZARD_BAD_PRICE)
            return
        state.draft.single_price = price
        state.step = WizardStep.MAX_PARTICIPANTS
        await self._send(state.chat_id, messages.WIZARD_ASK_MAX, wizard_cancel_keyboard())

    async def _text_max_participants(self, state: WizardState, value: str) -> None:
        limit = _positive_int(value)
        if limit is None:
            await self._send(state.chat_id, messages.WIZARD_BAD_NUMBER)
            return
        state.draft.max_participants = limit
        state.step = WizardStep.GROUP_LINK
        await self._send(state.chat_id, messages.WIZARD_ASK_GROUP_LINK, wizard_group_link_keyboard())

    async def _text_group_link(self, state: WizardState, value: str) -> None:
        if value == "-":
            state.draft.group_link = None
        elif value.startswith("http"):
            state.draft.group_link = value
        else:
            await self._send(state.chat_id, messages.WIZARD_BAD_GROUP_LINK)
            return
        await self._preview(state)


__all__ = ["ProgramWizard", "MAX_INTENSIVE_DAYS"]
