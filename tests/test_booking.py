import asyncio
from datetime import date

from conftest import (
    ADMIN_ID,
    TODAY,
    USER_CHAT,
    add_sessions,
    fill_session,
    make_program,
    make_user,
)
from dance_studio_bot import messages
from dance_studio_bot.services.booking import SESSION_CAPACITY, normalise_phone
from dance_studio_bot.router import Dispatcher
from dance_studio_bot.sessions import BookingStep

USER = make_user()


def open_group(database):
    program = make_program(
        database, type="open_group", title="Open Heels", price=6000, single_price=2000, max_participants=10
    )
    for _ in range(3):
        database.increment_participants(program.program_id)
    sessions = add_sessions(
        database,
        program.program_id,
        (date(2026, 2, 24), "19:00"),
        (date(2026, 3, 3), "19:00"),
        (date(2026, 3, 10), "19:00"),
        (date(2026, 3, 17), "19:00"),
        (date(2026, 3, 24), "19:00"),
        (date(2026, 3, 31), "19:00"),
        (date(2026, 4, 7), "19:00"),
    )
    return program, sessions


def register_with_phone(database, phone="+79151234567"):
    database.upsert_user(USER.id, USER.username, USER.first_name, USER.last_name)
    database.update_user_phone(USER.id, phone)
    return database.get_user_by_telegram_id(USER.id)


def applications_of(database, user_id):
    return [app for app in database.list_pending_applications() if app.user_id == user_id]


def test_single_visit_is_accepted_as_the_tenth_booking(dispatcher, database, bot):
    program, sessions = open_group(database)
    target = sessions[1]
    fill_session(database, program.program_id, target.session_id, SESSION_CAPACITY - 1)
    user = register_with_phone(database)

    async def scenario():
        await dispatcher.on_callback(USER_CHAT, f"book:{program.program_id}", USER)
        await dispatcher.on_callback(USER_CHAT, f"option:single:{program.program_id}", USER)
        await dispatcher.on_callback(USER_CHAT, f"single_date:{target.session_id}", USER)
        await dispatcher.on_text(USER_CHAT, "нет", USER)
        await dispatcher.on_callback(USER_CHAT, "payment:tinkoff", USER)
        await dispatcher.on_callback(USER_CHAT, "booking_confirm", USER)

    asyncio.run(scenario())

    [application] = applications_of(database, user.user_id)
    assert application.session_id == target.session_id
    assert application.session_ids is None
    assert application.amount == 2000
    assert application.user_notes == ""
    assert application.payment_method == "tinkoff"
    assert dispatcher.store.get_booking(USER_CHAT) is None
    assert str(application.application_id) in bot.last_text(USER_CHAT)
    assert any("Новая заявка" in text for text in bot.texts(ADMIN_ID))


def test_single_visit_is_refused_when_the_session_is_full(dispatcher, database, bot):
    program, sessions = open_group(database)
    target = sessions[1]
    fill_session(database, program.program_id, target.session_id, SESSION_CAPACITY)
    user = register_with_phone(database)

    async def scenario():
        await dispatcher.on_callback(USER_CHAT, f"book:{program.program_id}", USER)
        await dispatcher.on_callback(USER_CHAT, f"option:single:{program.program_id}", USER)
        await dispatcher.on_callback(USER_CHAT, f"single_date:{target.session_id}", USER)

    asyncio.run(scenario())

    session = dispatcher.store.get_booking(USER_CHAT)
    assert session.step is BookingStep.CHOOSE_DATE
    assert session.data.session_id is None
    assert bot.last_text(USER_CHAT) == messages.SESSION_FULL.format(limit=SESSION_CAPACITY)
    assert applications_of(database, user.user_id) == []


def test_single_date_picker_lists_only_upcoming_dates_of_the_start_month(dispatcher, database, bot):
    program, sessions = open_group(database)

    async def scenario():
        await dispatcher.on_callback(USER_CHAT, f"book:{program.program_id}", USER)
        await dispatcher.on_callback(USER_CHAT, f"option:single:{program.program_id}", USER)

    asyncio.run(scenario())

    picker = bot.sent[-1].reply_markup
    tokens = [row[0].callback_data for row in picker.inline_keyboard]
    expected = [f"single_date:{item.session_id}" for item in sessions if item.session_date.month == 3]
    assert tokens == expected + ["booking_cancel"]


def test_pass_booking_collects_exactly_four_sessions(dispatcher, database, bot):
    program, sessions = open_group(database)
    upcoming = [item for item in sessions if item.session_date >= TODAY]
    user = register_with_phone(database)

    async def scenario():
        await dispatcher.on_callback(USER_CHAT, f"book:{program.program_id}", USER)
        await dispatcher.on_callback(USER_CHAT, f"option:full:{program.program_id}", USER)
        picker_id = bot.sent[-1].message_id
        for item in upcoming[:4]:
            await dispatcher.on_callback(USER_CHAT, f"toggle_full:{item.session_id}", USER, callback_id="cb")
        await dispatcher.on_callback(USER_CHAT, f"toggle_full:{upcoming[4].session_id}", USER, callback_id="cb5")
        await dispatcher.on_callback(USER_CHAT, "full_done", USER)
        await dispatcher.on_text(USER_CHAT, "Колено побаливает", USER)
        await dispatcher.on_callback(USER_CHAT, "payment:cash", USER)
        await dispatcher.on_callback(USER_CHAT, "booking_confirm", USER)
        return picker_id

    picker_id = asyncio.run(scenario())

    assert len(bot.edits) == 4
    assert {edit["message_id"] for edit in bot.edits} == {picker_id}
    assert bot.answers[-1] == {"id": "cb5", "text": messages.FULL_PICKER_LIMIT.format(required=4)}
    assert bot.markup_edits == [{"chat_id": USER_CHAT, "message_id": picker_id, "reply_markup": None}]

    [application] = applications_of(database, user.user_id)
    assert application.session_id is None
    assert application.session_ids == [item.session_id for item in upcoming[:4]]
    assert application.amount == 6000
    assert application.user_notes == "Колено побаливает"


def test_done_is_offered_only_with_four_sessions(dispatcher, database, bot):
    program, sessions = open_group(database)
    upcoming = [item for item in sessions if item.session_date >= TODAY]

    async def scenario():
        await dispatcher.on_callback(USER_CHAT, f"book:{program.program_id}", USER)
        await dispatcher.on_callback(USER_CHAT, f"option:full:{program.program_id}", USER)
        for item in upcoming[:3]:
            await dispatcher.on_callback(USER_CHAT, f"toggle_full:{item.session_id}", USER)
        await dispatcher.on_callback(USER_CHAT, "full_done", USER)

    asyncio.run(scenario())

    tokens = [row[0].callback_data for row in bot.edits[-1]["reply_markup"].inline_keyboard]
    assert "full_done" not in tokens
    assert bot.last_text(USER_CHAT) == messages.FULL_PICKER_INCOMPLETE.format(required=4)
    assert dispatcher.store.get_booking(USER_CHAT).step is BookingStep.CHOOSE_DATES_FULL


def test_group_booking_through_contact_notes_and_payment(dispatcher, database, bot):
    program = make_program(database, price=7000)

    async def scenario():
        await dispatcher.on_callback(USER_CHAT, f"book:{program.program_id}", USER)
        assert dispatcher.store.get_booking(USER_CHAT).step is BookingStep.CONTACT
        await dispatcher.on_text(USER_CHAT, "позвоните мне", USER)
        assert bot.last_text(USER_CHAT) == messages.CONTACT_INVALID
        await dispatcher.on_text(USER_CHAT, "+7 (915) 123-45-67", USER)
        await dispatcher.on_callback(USER_CHAT, "notes_skip", USER)
        await dispatcher.on_callback(USER_CHAT, "payment:tinkoff", USER)
        assert dispatcher.store.get_booking(USER_CHAT).step is BookingStep.SUMMARY
        await dispatcher.on_callback(USER_CHAT, "booking_confirm", USER)

    asyncio.run(scenario())

    user = database.get_user_by_telegram_id(USER.id)
    assert user.phone == "+79151234567"
    [application] = applications_of(database, user.user_id)
    assert application.amount == 7000
    assert application.session_id is None and application.session_ids is None


def test_confirm_without_phone_returns_to_contact_step(dispatcher, database, bot):
    program, sessions = open_group(database)

    async def scenario():
        await dispatcher.on_callback(USER_CHAT, f"book:{program.program_id}", USER)
        await dispatcher.on_callback(USER_CHAT, f"option:single:{program.program_id}", USER)
        await dispatcher.on_callback(USER_CHAT, f"single_date:{sessions[1].session_id}", USER)
        await dispatcher.on_callback(USER_CHAT, "notes_skip", USER)
        await dispatcher.on_callback(USER_CHAT, "payment:cash", USER)
        await dispatcher.on_callback(USER_CHAT, "booking_confirm", USER)

    asyncio.run(scenario())

    session = dispatcher.store.get_booking(USER_CHAT)
    assert session.step is BookingStep.CONTACT
    assert session.data.session_id == sessions[1].session_id
    assert database.list_pending_applications() == []

    async def share_contact():
        await dispatcher.on_contact(USER_CHAT, "79151234567", USER)

    asyncio.run(share_contact())

    assert session.step is BookingStep.NOTES
    assert database.get_user_by_telegram_id(USER.id).phone == "79151234567"


def test_full_program_never_starts_a_session(dispatcher, database, bot):
    program = make_program(database, max_participants=1)
    database.increment_participants(program.program_id)

    asyncio.run(dispatcher.on_callback(USER_CHAT, f"book:{program.program_id}", USER))

    assert dispatcher.store.get_booking(USER_CHAT) is None
    assert bot.last_text(USER_CHAT) == messages.PROGRAM_FULL


def test_individual_program_shows_contact_instructions(dispatcher, database, bot):
    program = make_program(database, type="individual", title="Индивидуально", max_participants=1, start_date=None)
    add_sessions(database, program.program_id, (date(2026, 3, 5), "18:00"))

    asyncio.run(dispatcher.on_callback(USER_CHAT, f"book:{program.program_id}", USER))

    assert dispatcher.store.get_booking(USER_CHAT) is None
    assert "5 марта" in bot.last_text(USER_CHAT)
    button = bot.sent[-1].reply_markup.inline_keyboard[0][0]
    assert button.url == "https://t.me/studio_admin"


def test_missing_program_is_reported(dispatcher, bot):
    asyncio.run(dispatcher.on_callback(USER_CHAT, "book:404", USER))

    assert bot.last_text(USER_CHAT) == messages.PROGRAM_NOT_FOUND
    assert not dispatcher.store.holds(USER_CHAT)


def test_cancel_clears_the_session(dispatcher, database, bot):
    program = make_program(database)

    async def scenario():
        await dispatcher.on_callback(USER_CHAT, f"book:{program.program_id}", USER)
        await dispatcher.on_callback(USER_CHAT, "booking_cancel", USER)

    asyncio.run(scenario())

    assert not dispatcher.store.holds(USER_CHAT)
    assert bot.last_text(USER_CHAT) == messages.BOOKING_CANCELLED


def test_failed_application_keeps_the_session(dispatcher, database, bot, monkeypatch):
    program = make_program(database)
    register_with_phone(database)
    monkeypatch.setattr(database, "create_application", lambda request: None)

    async def scenario():
        await dispatcher.on_callback(USER_CHAT, f"book:{program.program_id}", USER)
        await dispatcher.on_contact(USER_CHAT, "+79151234567", USER)
        await dispatcher.on_text(USER_CHAT, "нет", USER)
        await dispatcher.on_callback(USER_CHAT, "payment:cash", USER)
        await dispatcher.on_callback(USER_CHAT, "booking_confirm", USER)

    asyncio.run(scenario())

    assert bot.last_text(USER_CHAT) == messages.APPLICATION_FAILED
    assert dispatcher.store.get_booking(USER_CHAT).step is BookingStep.SUMMARY


def test_unreachable_admin_does_not_break_the_booking(config, database, bot):
    bot.failing_chats.add(ADMIN_ID)
    dispatcher = Dispatcher(config, database, bot, today=lambda: TODAY)
    program = make_program(database)
    user = register_with_phone(database)

    async def scenario():
        await dispatcher.on_callback(USER_CHAT, f"book:{program.program_id}", USER)
        await dispatcher.on_contact(USER_CHAT, "+79151234567", USER)
        await dispatcher.on_text(USER_CHAT, "нет", USER)
        await dispatcher.on_callback(USER_CHAT, "payment:cash", USER)
        await dispatcher.on_callback(USER_CHAT, "booking_confirm", USER)

    asyncio.run(scenario())

    assert len(applications_of(database, user.user_id)) == 1
    assert dispatcher.store.get_booking(USER_CHAT) is None


def test_normalise_phone():
    assert normalise_phone("+7 (915) 123-45-67") == "+79151234567"
    assert normalise_phone("8 915 123 45 67") == "89151234567"
