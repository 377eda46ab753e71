import asyncio
from datetime import date

import pytest

from conftest import ADMIN_ID, add_sessions, make_program, make_user
from dance_studio_bot import messages
from dance_studio_bot.database import ApplicationRequest
from dance_studio_bot.errors import InvalidTransitionError

ADMIN = make_user(ADMIN_ID, first_name="Аня", username="studio_admin")
STUDENT_ID = 77


def submit(database, program, telegram_id=STUDENT_ID, **overrides):
    user = database.upsert_user(telegram_id, "dancer", "Оля", None)
    fields = {
        "program_id": program.program_id,
        "user_id": user.user_id,
        "user_name": "Оля",
        "user_phone": "+79001234567",
        "amount": program.price,
        "payment_method": "transfer",
    }
    fields.update(overrides)
    application = database.create_application(ApplicationRequest(**fields))
    assert application is not None
    return application


def press(dispatcher, token):
    asyncio.run(dispatcher.on_callback(ADMIN_ID, token, ADMIN))


def test_second_approval_reports_the_current_status(dispatcher, database, bot):
    application = submit(database, make_program(database))

    press(dispatcher, f"admin:approve:{application.application_id}")
    press(dispatcher, f"admin:approve:{application.application_id}")

    assert database.get_application(application.application_id).status == "approved"
    assert bot.texts(ADMIN_ID) == [
        messages.APPLICATION_APPROVED_ADMIN.format(application_id=application.application_id),
        messages.APPLICATION_BAD_TRANSITION.format(
            application_id=application.application_id, status="approved"
        ),
    ]


def test_rejection_notifies_the_applicant(dispatcher, database, bot):
    application = submit(database, make_program(database, title="Стрип"))

    press(dispatcher, f"admin:reject:{application.application_id}")

    assert database.get_application(application.application_id).status == "rejected"
    assert bot.texts(STUDENT_ID) == [messages.USER_APPLICATION_REJECTED.format(title="Стрип")]


def test_paying_for_a_pass_books_every_chosen_session(dispatcher, database, bot):
    program = make_program(database, type="open_group", single_price=2000, group_link="https://t.me/+heels")
    sessions = add_sessions(
        database,
        program.program_id,
        (date(2026, 3, 3), "19:00"),
        (date(2026, 3, 5), "19:00"),
        (date(2026, 3, 10), "19:00"),
        (date(2026, 3, 12), "19:00"),
    )
    chosen = [session.session_id for session in sessions]
    application = submit(database, program, session_ids=chosen)

    press(dispatcher, f"admin:confirm:{application.application_id}")

    assert database.get_application(application.application_id).status == "paid"
    assert database.get_program(program.program_id).current_participants == 1
    assert all(database.count_confirmed_participants_for_session(session_id) == 1 for session_id in chosen)
    [booking] = database.list_user_bookings(application.user_id)
    assert database.get_booking_session_ids(booking.booking_id) == chosen
    [notice] = bot.texts(STUDENT_ID)
    assert "https://t.me/+heels" in notice
    assert bot.last_text(ADMIN_ID) == messages.APPLICATION_PAID_ADMIN.format(
        application_id=application.application_id
    )


def test_duplicate_booking_leaves_the_application_pending(dispatcher, database, bot):
    program = make_program(database)
    first = submit(database, program)
    second = submit(database, program)
    press(dispatcher, f"admin:confirm:{first.application_id}")

    press(dispatcher, f"admin:confirm:{second.application_id}")

    assert bot.last_text(ADMIN_ID) == messages.DUPLICATE_BOOKING
    assert database.get_application(second.application_id).status == "pending"
    assert database.get_program(program.program_id).current_participants == 1


def test_rejected_application_cannot_be_paid(dispatcher, database):
    application = submit(database, make_program(database))
    asyncio.run(dispatcher.reviewer.reject(application.application_id))

    with pytest.raises(InvalidTransitionError) as excinfo:
        asyncio.run(dispatcher.reviewer.confirm_payment(application.application_id))

    assert excinfo.value.current == "rejected"
    assert database.get_application(application.application_id).status == "rejected"


def test_unknown_application_is_reported(dispatcher, bot):
    press(dispatcher, "admin:approve:999")

    assert bot.last_text(ADMIN_ID) == messages.APPLICATION_NOT_FOUND.format(application_id=999)


def test_pending_applications_are_listed_one_per_message(dispatcher, database, bot):
    program = make_program(database)
    submit(database, program, telegram_id=77)
    submit(database, program, telegram_id=78)

    press(dispatcher, "admin:applications")

    texts = bot.texts(ADMIN_ID)
    assert texts[0] == messages.APPLICATIONS_HEADER
    assert len(texts) == 3
    assert all(message.reply_markup is not None for message in bot.sent[1:])


def test_deleted_program_leaves_the_catalogue(dispatcher, database, bot):
    program = make_program(database, title="Стрип")

    press(dispatcher, f"admin:delete:{program.program_id}")

    assert database.list_active_programs() == []
    assert bot.last_text(ADMIN_ID) == messages.PROGRAM_DELETED.format(title="Стрип")


def book(dispatcher, database, program, telegram_id):
    application = submit(database, program, telegram_id=telegram_id)
    press(dispatcher, f"admin:confirm:{application.application_id}")
    return application


def type_text(dispatcher, text):
    asyncio.run(dispatcher.on_text(ADMIN_ID, text, ADMIN))


def test_broadcast_menu_offers_every_active_program(dispatcher, database, bot):
    program = make_program(database, title="Стрип")

    press(dispatcher, "admin:broadcast")

    [message] = bot.sent
    assert message.text == messages.BROADCAST_SEGMENT_PROMPT
    tokens = [row[0].callback_data for row in message.reply_markup.inline_keyboard]
    assert tokens == [
        f"broadcast:program:{program.program_id}",
        "broadcast:active",
        "broadcast:all",
        "broadcast:cancel",
    ]
    assert dispatcher.store.get_broadcast(ADMIN_ID) is None


def test_broadcast_counts_failed_deliveries(dispatcher, database, bot):
    for telegram_id in (10, 11, 12):
        database.upsert_user(telegram_id, None, "Ученица", None)
    bot.failing_chats.add(11)

    press(dispatcher, "admin:broadcast")
    press(dispatcher, "broadcast:all")
    type_text(dispatcher, "Завтра занятие переносится на 20:00")

    assert "(3 чел.)" in bot.last_text(ADMIN_ID)
    assert bot.texts(10) == []

    press(dispatcher, "broadcast:confirm")

    assert bot.last_text(ADMIN_ID) == messages.BROADCAST_DONE.format(sent=2, failed=1)
    assert bot.texts(10) == ["Завтра занятие переносится на 20:00"]
    assert dispatcher.store.get_broadcast(ADMIN_ID) is None


def test_empty_broadcast_keeps_waiting(dispatcher, bot):
    press(dispatcher, "admin:broadcast")
    press(dispatcher, "broadcast:all")
    type_text(dispatcher, "   ")

    assert bot.last_text(ADMIN_ID) == messages.BROADCAST_EMPTY
    assert dispatcher.store.is_broadcasting(ADMIN_ID)


def test_active_segment_reaches_only_students_with_bookings(dispatcher, database, bot):
    program = make_program(database)
    book(dispatcher, database, program, telegram_id=77)
    submit(database, program, telegram_id=78)
    database.upsert_user(79, None, "Гость", None)

    press(dispatcher, "broadcast:active")
    type_text(dispatcher, "Напоминание о занятии")
    press(dispatcher, "broadcast:confirm")

    assert bot.last_text(77) == "Напоминание о занятии"
    assert bot.texts(78) == []
    assert bot.texts(79) == []
    assert bot.last_text(ADMIN_ID) == messages.BROADCAST_DONE.format(sent=1, failed=0)


def test_program_segment_reaches_only_that_program(dispatcher, database, bot):
    heels = make_program(database, title="Хилс")
    strip = make_program(database, title="Стрип")
    book(dispatcher, database, heels, telegram_id=77)
    book(dispatcher, database, strip, telegram_id=78)

    press(dispatcher, f"broadcast:program:{strip.program_id}")
    assert "«Стрип»" in bot.last_text(ADMIN_ID)
    type_text(dispatcher, "Стрип переносится")
    press(dispatcher, "broadcast:confirm")

    assert bot.last_text(78) == "Стрип переносится"
    assert "Стрип переносится" not in bot.texts(77)


def test_segment_without_recipients_is_dropped(dispatcher, database, bot):
    database.upsert_user(10, None, "Ученица", None)

    press(dispatcher, "broadcast:active")
    type_text(dispatcher, "Всем привет")

    assert bot.last_text(ADMIN_ID) == messages.BROADCAST_NO_RECIPIENTS
    assert dispatcher.store.get_broadcast(ADMIN_ID) is None
    assert bot.texts(10) == []


def test_cancelled_broadcast_cannot_be_confirmed(dispatcher, database, bot):
    database.upsert_user(10, None, "Ученица", None)
    press(dispatcher, "broadcast:all")
    type_text(dispatcher, "Черновик")

    press(dispatcher, "broadcast:cancel")
    press(dispatcher, "broadcast:confirm")

    assert bot.texts(ADMIN_ID)[-2:] == [messages.BROADCAST_CANCELLED, messages.BROADCAST_NOTHING_TO_SEND]
    assert bot.texts(10) == []


def test_broadcast_text_is_sent_as_plain_text(dispatcher, database, bot):
    database.upsert_user(10, None, "Ученица", None)
    press(dispatcher, "broadcast:all")
    type_text(dispatcher, "Скидка <50% & подарок")

    assert "Скидка &lt;50% &amp; подарок" in bot.last_text(ADMIN_ID)

    press(dispatcher, "broadcast:confirm")

    assert bot.texts(10) == ["Скидка &lt;50% &amp; подарок"]
