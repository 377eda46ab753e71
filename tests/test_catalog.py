import asyncio
from datetime import date

from conftest import add_sessions, make_program, make_user
from dance_studio_bot import messages
from dance_studio_bot.database import ApplicationRequest
from dance_studio_bot.utils.formatting import format_session

STUDENT_ID = 77
STUDENT = make_user(STUDENT_ID, first_name="Оля", username="dancer")


def press(dispatcher, token, chat_id=STUDENT_ID, user=STUDENT):
    asyncio.run(dispatcher.on_callback(chat_id, token, user))


def apply(database, program, **overrides):
    user = database.upsert_user(STUDENT_ID, "dancer", "Оля", None)
    fields = {
        "program_id": program.program_id,
        "user_id": user.user_id,
        "user_name": "Оля",
        "user_phone": "+79001234567",
        "amount": program.price,
    }
    fields.update(overrides)
    return database.create_application(ApplicationRequest(**fields))


def book(database, program, **overrides):
    return database.create_booking_from_application(apply(database, program, **overrides))


def test_main_menu_links_the_personal_views(dispatcher, bot):
    press(dispatcher, "nav:start")

    [message] = bot.sent
    tokens = [row[0].callback_data for row in message.reply_markup.inline_keyboard]
    assert "nav:schedule" in tokens
    assert "nav:my_bookings" in tokens


def test_schedule_without_programs(dispatcher, bot):
    press(dispatcher, "nav:schedule")

    assert bot.texts(STUDENT_ID) == [messages.SCHEDULE_EMPTY]


def test_schedule_groups_programs_by_type(dispatcher, database, bot):
    individual = make_program(database, type="individual", title="Индивидуально", schedule="Ср 18:00–19:00")
    group = make_program(database, title="Хилс с нуля", duration_minutes=90)
    sessions = add_sessions(
        database,
        group.program_id,
        (date(2026, 3, 1), "19:00"),
        (date(2026, 3, 3), "19:00"),
        (date(2026, 3, 5), "19:00"),
        (date(2026, 3, 10), "19:00"),
        (date(2026, 3, 12), "19:00"),
    )
    make_program(database, type="open_group", title="Open Heels", price=6000, single_price=2000)
    deleted = make_program(database, title="Архив")
    database.soft_delete_program(deleted.program_id)

    press(dispatcher, "nav:schedule")

    [text] = bot.texts(STUDENT_ID)
    assert text.startswith(messages.SCHEDULE_HEADER)
    positions = [text.index(messages.SCHEDULE_SECTIONS[kind]) for kind in ("group", "open_group", "individual")]
    assert positions == sorted(positions)
    assert messages.SCHEDULE_SECTIONS["intensive"] not in text
    assert "1,5 часа" in text
    assert format_session(sessions[0]) not in text
    assert all(format_session(session) in text for session in sessions[1:4])
    assert format_session(sessions[4]) not in text
    assert "Разовое: 2 000 ₽" in text
    assert individual.schedule in text
    assert "Архив" not in text


def test_my_bookings_for_an_unknown_user(dispatcher, bot):
    press(dispatcher, "nav:my_bookings")

    [message] = bot.sent
    assert message.text == messages.MY_BOOKINGS_EMPTY
    assert message.reply_markup.inline_keyboard[0][0].callback_data == "nav:programs"


def test_my_bookings_lists_bookings_and_pending_applications(dispatcher, database, bot):
    open_group = make_program(
        database, type="open_group", title="Open Heels", single_price=2000, group_link="https://t.me/+heels"
    )
    sessions = add_sessions(
        database,
        open_group.program_id,
        (date(2026, 3, 3), "19:00"),
        (date(2026, 3, 5), "19:00"),
        (date(2026, 3, 10), "19:00"),
        (date(2026, 3, 12), "19:00"),
    )
    book(database, open_group, amount=2000, session_id=sessions[1].session_id)
    strip = make_program(database, title="Стрип")
    pass_sessions = add_sessions(
        database, strip.program_id, (date(2026, 3, 4), "20:00"), (date(2026, 3, 11), "20:00")
    )
    book(database, strip, session_ids=[session.session_id for session in pass_sessions])
    archived = make_program(database, title="Архив")
    book(database, archived)
    database.soft_delete_program(archived.program_id)
    pending = apply(database, make_program(database, title="Растяжка", price=3000))

    press(dispatcher, "nav:my_bookings")

    [text] = bot.texts(STUDENT_ID)
    assert text.startswith(messages.MY_BOOKINGS_HEADER)
    assert "Open Heels" in text
    assert 'href="https://t.me/+heels"' in text
    assert f"📅 {format_session(sessions[1])}" in text
    assert format_session(sessions[0]) not in text
    assert messages.MY_BOOKINGS_PASS_DATES in text
    assert all(format_session(session) in text for session in pass_sessions)
    assert "Архив" not in text
    assert messages.MY_BOOKINGS_PENDING_HEADER in text
    assert f"Заявка #{pending.application_id}" in text
    assert "3 000 ₽" in text


def test_my_bookings_without_a_sender_shows_the_menu(dispatcher, bot):
    asyncio.run(dispatcher.on_callback(STUDENT_ID, "nav:my_bookings", None))

    assert bot.texts(STUDENT_ID) == [messages.MAIN_MENU_TEXT]
