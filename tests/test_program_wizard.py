import asyncio
import sqlite3
from datetime import date

from conftest import ADMIN_ID, USER_CHAT, make_user
from dance_studio_bot import messages
from dance_studio_bot.sessions import WizardStep

ADMIN = make_user(ADMIN_ID, first_name="Аня", username="studio_admin")
GROUP_UNTIL_PREVIEW = (
    "admin:add_program",
    "add:type:group",
    ">Хилс",
    ">Описание",
    ">02.03.26",
    "add:day:tue",
    "add:time:19:00",
    "add:duration:60",
    "add:schedule:done",
    ">6000",
    ">10",
    "add:group_link:skip",
)


def run(dispatcher, *events):
    """Feed admin events in order: entries starting with ``>`` are typed text, the rest are button tokens."""

    async def scenario():
        for event in events:
            if event.startswith(">"):
                await dispatcher.on_text(ADMIN_ID, event[1:], ADMIN)
            else:
                await dispatcher.on_callback(ADMIN_ID, event, ADMIN)

    asyncio.run(scenario())


def test_intensive_collects_one_time_per_day(dispatcher, database, bot):
    run(
        dispatcher,
        "admin:add_program",
        "add:type:intensive",
        "add:duration:90",
        "add:intensive_days:3",
        ">Весенний интенсив",
        ">Три вечера хилс",
        ">02.03.26",
        ">18:00",
    )
    state = dispatcher.store.get_wizard(ADMIN_ID)
    assert state.draft.end_date == date(2026, 3, 4)
    assert state.intensive_cursor == 1

    run(dispatcher, ">25:99")

    assert state.step is WizardStep.INTENSIVE_TIME
    assert state.intensive_cursor == 1
    assert state.intensive_times == ["18:00"]
    assert "День 2 из 3" in bot.last_text(ADMIN_ID)

    run(dispatcher, ">19:00", "add:int_time:20:00")

    assert state.step is WizardStep.PRICE
    assert state.intensive_times == ["18:00", "19:00", "20:00"]

    run(dispatcher, ">5000", ">12", ">-", "add:confirm")

    [program] = database.list_active_programs()
    assert program.type == "intensive"
    assert program.start_date == date(2026, 3, 2)
    assert program.end_date == date(2026, 3, 4)
    assert program.group_link is None
    sessions = database.get_program_sessions(program.program_id)
    assert [(item.session_date.day, item.session_time) for item in sessions] == [
        (2, "18:00"),
        (3, "19:00"),
        (4, "20:00"),
    ]
    assert {item.duration_minutes for item in sessions} == {90}
    assert not dispatcher.store.holds(ADMIN_ID)


def test_manual_intensive_day_count_is_validated(dispatcher, bot):
    run(dispatcher, "admin:add_program", "add:type:intensive", "add:duration:60", "add:intensive_days:manual", ">45")

    state = dispatcher.store.get_wizard(ADMIN_ID)
    assert state.step is WizardStep.INTENSIVE_DAYS
    assert bot.last_text(ADMIN_ID) == messages.WIZARD_BAD_INTENSIVE_DAYS

    run(dispatcher, ">4")

    assert state.intensive_day_count == 4
    assert state.step is WizardStep.TITLE


def test_individual_program_gets_single_price_and_one_seat(dispatcher, database, bot):
    run(
        dispatcher,
        "admin:add_program",
        "add:type:individual",
        "add:duration:60",
        "add:ind_day:wed",
        "add:ind_day:mon",
        "add:ind_days:done",
        "add:ind_time:18:00",
        ">19:30",
        ">1500",
    )
    state = dispatcher.store.get_wizard(ADMIN_ID)
    assert state.step is WizardStep.CONFIRM
    assert state.draft.max_participants == 1
    assert state.draft.single_price == 1500
    assert state.draft.schedule == "Ср 18:00–19:00, Пн 19:30–20:30"

    run(dispatcher, "add:confirm")

    [program] = database.list_active_programs()
    assert program.title == messages.WIZARD_INDIVIDUAL_TITLE
    assert program.max_participants == 1
    assert program.single_price == 1500
    assert database.get_program_sessions(program.program_id) == []
    assert bot.last_text(ADMIN_ID) == messages.WIZARD_CREATED.format(sessions=0)


def test_open_group_schedule_produces_four_weeks_of_sessions(dispatcher, database, bot):
    run(
        dispatcher,
        "admin:add_program",
        "add:type:open_group",
        ">Open Heels",
        ">Открытая группа по хилс",
        ">2026-03-02",
    )
    assert bot.last_text(ADMIN_ID) == messages.WIZARD_BAD_DATE
    assert dispatcher.store.get_wizard(ADMIN_ID).step is WizardStep.START_DATE

    run(
        dispatcher,
        ">02.03.2026",
        "add:day:mon",
        "add:time:18:00",
        "add:duration:60",
        "add:schedule:more",
        "add:day:wed",
        "add:time:manual",
        ">19:00",
        "add:duration:90",
        "add:schedule:done",
        ">6000",
        ">2000",
        ">10",
        ">https://t.me/+heels",
        "add:confirm",
    )

    [program] = database.list_active_programs()
    assert program.schedule == "Пн 18:00–19:00, Ср 19:00–20:30"
    assert program.single_price == 2000
    assert program.group_link == "https://t.me/+heels"
    sessions = database.get_program_sessions(program.program_id)
    assert len(sessions) == 8
    assert sessions[0].session_date == date(2026, 3, 2)
    assert sessions[-1].session_date == date(2026, 3, 25)
    assert sessions[-1].duration_minutes == 90


def test_cancel_clears_every_piece_of_wizard_state(dispatcher, bot):
    run(
        dispatcher,
        "admin:add_program",
        "add:type:intensive",
        "add:duration:90",
        "add:intensive_days:2",
        ">Интенсив",
        ">Описание",
        ">02.03.26",
        ">18:00",
        "add:cancel",
    )

    assert dispatcher.store.get_wizard(ADMIN_ID) is None
    assert not dispatcher.store.holds(ADMIN_ID)

    run(dispatcher, "admin:add_program")

    state = dispatcher.store.get_wizard(ADMIN_ID)
    assert state.step is WizardStep.TYPE
    assert state.intensive_times == []
    assert state.intensive_cursor == 0
    assert state.draft.title is None


def test_confirm_without_a_draft_asks_to_start_over(dispatcher, bot):
    run(dispatcher, "add:confirm")

    assert bot.last_text(ADMIN_ID) == messages.WIZARD_DRAFT_LOST


def test_confirm_with_an_incomplete_draft_discards_it(dispatcher, database, bot):
    run(dispatcher, "admin:add_program", "add:type:group", ">Хилс")
    dispatcher.store.get_wizard(ADMIN_ID).step = WizardStep.CONFIRM

    run(dispatcher, "add:confirm")

    assert bot.last_text(ADMIN_ID) == messages.WIZARD_DRAFT_LOST
    assert dispatcher.store.get_wizard(ADMIN_ID) is None
    assert database.list_active_programs() == []


def test_confirm_before_the_preview_is_ignored(dispatcher, database, bot):
    run(dispatcher, *GROUP_UNTIL_PREVIEW[:-1])
    state = dispatcher.store.get_wizard(ADMIN_ID)
    assert state.step is WizardStep.GROUP_LINK
    sent = len(bot.sent)

    run(dispatcher, "add:confirm")

    assert database.list_active_programs() == []
    assert dispatcher.store.get_wizard(ADMIN_ID) is state
    assert state.step is WizardStep.GROUP_LINK
    assert len(bot.sent) == sent


def test_failed_session_write_leaves_no_program_behind(dispatcher, database, bot, monkeypatch):
    run(dispatcher, *GROUP_UNTIL_PREVIEW)
    assert dispatcher.store.get_wizard(ADMIN_ID).step is WizardStep.CONFIRM
    insert_sessions = database._insert_sessions
    calls = []

    def flaky_insert(conn, program_id, slots):
        calls.append(program_id)
        if len(calls) == 1:
            raise sqlite3.OperationalError("disk I/O error")
        return insert_sessions(conn, program_id, slots)

    monkeypatch.setattr(database, "_insert_sessions", flaky_insert)

    run(dispatcher, "add:confirm")

    assert bot.last_text(ADMIN_ID) == messages.GENERIC_ERROR
    assert database.list_active_programs() == []
    assert dispatcher.store.get_wizard(ADMIN_ID).step is WizardStep.CONFIRM

    run(dispatcher, "add:confirm")

    [program] = database.list_active_programs()
    assert len(database.get_program_sessions(program.program_id)) == 4
    assert bot.last_text(ADMIN_ID) == messages.WIZARD_CREATED.format(sessions=4)
    assert dispatcher.store.get_wizard(ADMIN_ID) is None


def test_out_of_range_button_times_are_rejected(dispatcher, bot):
    run(
        dispatcher,
        "admin:add_program",
        "add:type:intensive",
        "add:duration:60",
        "add:intensive_days:2",
        ">Интенсив",
        ">Описание",
        ">02.03.26",
        "add:int_time:25:99",
    )

    state = dispatcher.store.get_wizard(ADMIN_ID)
    assert state.step is WizardStep.INTENSIVE_TIME
    assert state.intensive_times == []
    assert messages.WIZARD_BAD_TIME in bot.texts(ADMIN_ID)
    assert "День 1 из 2" in bot.last_text(ADMIN_ID)

    run(dispatcher, "add:int_time:9:30")

    assert state.intensive_times == ["09:30"]


def test_out_of_range_schedule_button_keeps_the_time_step(dispatcher, bot):
    run(dispatcher, "admin:add_program", "add:type:group", ">Хилс", ">Описание", ">02.03.26", "add:day:tue")

    run(dispatcher, "add:time:24:00")

    state = dispatcher.store.get_wizard(ADMIN_ID)
    assert state.step is WizardStep.SCHEDULE_TIME
    assert state.temp_time is None
    assert bot.last_text(ADMIN_ID) == messages.WIZARD_BAD_TIME


def test_invalid_price_keeps_the_step(dispatcher, bot):
    run(
        dispatcher,
        "admin:add_program",
        "add:type:group",
        ">Хилс",
        ">Описание",
        ">02.03.26",
        "add:day:tue",
        "add:time:19:00",
        "add:duration:60",
        "add:schedule:done",
        ">бесплатно",
    )

    assert dispatcher.store.get_wizard(ADMIN_ID).step is WizardStep.PRICE
    assert bot.last_text(ADMIN_ID) == messages.WIZARD_BAD_PRICE


def test_regular_users_cannot_drive_the_wizard(dispatcher, bot):
    user = make_user()

    async def scenario():
        await dispatcher.on_callback(USER_CHAT, "admin:add_program", user, callback_id="q1")
        await dispatcher.on_callback(USER_CHAT, "add:type:group", user, callback_id="q2")

    asyncio.run(scenario())

    assert dispatcher.store.get_wizard(USER_CHAT) is None
    assert [answer["text"] for answer in bot.answers] == [messages.NOT_ALLOWED, messages.NOT_ALLOWED]
    assert bot.texts(USER_CHAT) == []
