from __future__ import annotations

WELCOME_MESSAGE = (
    "💃 Привет! Это бот студии танцев Let's dance.\n\n"
    "Здесь можно посмотреть программы, записаться на занятие "
    "и узнать всё о студии."
)

MAIN_MENU_TEXT = "Выберите действие:"
GENERIC_ERROR = "❌ Что-то пошло не так. Попробуйте ещё раз чуть позже."
NOT_ALLOWED = "⛔ Эта функция доступна только администратору."

MENU_LABELS = {
    "programs": "💃 Записаться",
    "schedule": "📅 Расписание",
    "my_bookings": "📋 Мои занятия",
    "start": "🏠 В начало",
    "contact": "💬 Написать Ане",
}

ADMIN_PANEL_TITLE = "🛠 <b>Админ-панель</b>"

ADMIN_MENU_LABELS = {
    "applications": "📋 Заявки",
    "add_program": "➕ Добавить занятие",
    "programs": "🗂 Программы",
    "broadcast": "📢 Рассылка",
}

PROGRAM_TYPE_LABELS = {
    "group": "👥 Групповое занятие",
    "intensive": "🔥 Интенсив",
    "open_group": "🎪 Открытая группа",
    "individual": "👤 Индивидуальное занятие",
}

SCHEDULE_UNKNOWN = "Расписание уточняется"
PROGRAMS_HEADER = "💃 <b>Наши программы</b>\n\nВыберите занятие:"
NO_PROGRAMS = "Сейчас нет открытых программ. Загляните позже 💫"
PROGRAM_NOT_FOUND = "❌ Программа не найдена"
BOOK_BUTTON = "✅ Записаться"
CANCEL_BUTTON = "❌ Отмена"

# Schedule and my bookings -----------------------------------------------------
SCHEDULE_HEADER = "<b>📅 РАСПИСАНИЕ ЗАНЯТИЙ</b>"
SCHEDULE_EMPTY = "😢 Пока нет активных занятий, но скоро появятся!"
SCHEDULE_DIVIDER = "──────────────"
SCHEDULE_SECTIONS = {
    "group": "👥 <b>ГРУППОВЫЕ ЗАНЯТИЯ</b>",
    "intensive": "🔥 <b>ИНТЕНСИВЫ</b>",
    "open_group": "🚪 <b>ОТКРЫТЫЕ ГРУППЫ</b>",
    "individual": "👤 <b>ИНДИВИДУАЛЬНЫЕ ЗАНЯТИЯ</b>",
}
SCHEDULE_UPCOMING = "📅 <b>Ближайшие:</b>"

MY_BOOKINGS_EMPTY = "📭 <b>У тебя пока нет записей</b>\n\nХочешь записаться?"
MY_BOOKINGS_HEADER = "📅 <b>Мои занятия</b>"
MY_BOOKINGS_GROUP_LINK = '🔗 <b>Чат группы:</b> <a href="{link}">перейти</a>'
MY_BOOKINGS_DATE_UNKNOWN = "📅 Дата занятия уточняется"
MY_BOOKINGS_PASS_DATES = "📅 <b>Ваши занятия:</b>"
MY_BOOKINGS_PAID = "💰 <b>Оплачено:</b> {amount}"
MY_BOOKINGS_PENDING_HEADER = "⏳ <b>Ожидают подтверждения:</b>"
MY_BOOKINGS_PENDING_ROW = "🎫 <b>{title}</b>\n💰 {amount}\n🆔 Заявка #{application_id}"
MY_BOOKINGS_FOOTER = "💛 Если есть вопросы, просто напиши Ане"
MY_BOOKINGS_MORE_BUTTON = "💃 Записаться ещё"

# Booking flow ---------------------------------------------------------------
PROGRAM_FULL = "😔 Все места заняты. Вы можете записаться на другую программу"

OPEN_GROUP_OPTIONS = (
    "🎪 <b>Открытая группа</b>\n\n"
    "Выберите вариант участия:\n\n"
    "1. <b>4 занятия (полный цикл)</b>\n"
    "   • Стоимость: {full_price}\n\n"
    "2. <b>Разовое посещение</b>\n"
    "   • Стоимость: {single_price}"
)
OPTION_FULL_BUTTON = "✅ 4 занятия"
OPTION_SINGLE_BUTTON = "🎫 Разовое"

CONTACT_PROMPT = (
    "📝 <b>Запись на программу</b>\n\n"
    "<b>{title}</b>\n"
    "💰 <b>Стоимость:</b> {price}\n\n"
    "Для продолжения укажите ваш телефон:"
)
CONTACT_BUTTON = "📱 Отправить телефон"
CONTACT_INVALID = "❌ Не похоже на номер телефона. Пример: +7 915 123-45-67"
CONTACT_SAVED = "✅ Спасибо, телефон сохранён."

NOTES_PROMPT = (
    "📝 <b>Пара нюансов</b>\n\n"
    "Будет круто, если напишешь:\n"
    "🩹 травмы или ограничения\n"
    "🎯 цель на занятие\n\n"
    "👇 это не обязательно, но очень помогает 💛"
)
NOTES_SKIP_BUTTON = "✅ Нет, всё отлично"
NOTES_NONE_TOKEN = "нет"

PAYMENT_PROMPT = (
    "💳 <b>Как оплатить занятие</b>\n\n"
    "Оплатить можно переводом по реквизитам ниже 👇\n\n"
    "<b>Получатель:</b> Анна Карелина\n"
    "📞 <b>По номеру телефона:</b> +7 915 673-28-91 (ТБанк)\n\n"
    "Администратор проверит оплату и подтвердит запись.\n"
    "⏳ Обычно это занимает до <b>24 часов</b>.\n\n"
    "Выберите способ оплаты:"
)
PAYMENT_METHODS = {
    "tinkoff": "Перевод на ТБанк",
    "cash": "Наличными в студии",
}

SUMMARY_HEADER = "📋 <b>Проверьте данные заявки:</b>"
SUMMARY_OPTION_LABELS = {"single": "Разовое", "full": "4 занятия"}
SUMMARY_CONFIRM_BUTTON = "✅ Да, отправить"
SUMMARY_CANCEL_BUTTON = "❌ Нет, отменить"
NOT_SPECIFIED = "<i>не указан</i>"

BOOKING_CONFIRMED = (
    "🎉 <b>Заявка отправлена!</b>\n\n"
    "<b>Программа:</b> {title}\n"
    "<b>ID заявки:</b> {application_id}\n\n"
    "<b>Что дальше:</b>\n"
    "1. Аня проверит вашу заявку\n"
    "2. Подтвердит оплату\n"
    "3. Отправит подтверждение записи\n\n"
    "<b>Обычно это занимает до 24 часов.</b>"
)
BOOKING_CANCELLED = "❌ Запись отменена\n\nЕсли передумаете — всегда можно начать заново! 💫"
BOOKING_NOT_ACTIVE = "⚠️ Запись не найдена. Начните заново из списка программ."
BOOKING_STEP_MISMATCH = "⚠️ Сначала завершите текущий шаг записи."
USER_NOT_FOUND = "❌ Ошибка: пользователь не найден"
APPLICATION_FAILED = "❌ Ошибка при создании заявки. Попробуйте ещё раз."

SINGLE_DATE_PROMPT = "🎫 <b>Разовое занятие</b>\n\nВыберите дату занятия:"
NO_SESSIONS = "⚠️ Для этой группы пока не заведены даты занятий."
NO_SESSIONS_THIS_MONTH = "⚠️ В этом месяце больше нет доступных занятий."
SESSION_FULL = "😔 На эту дату уже нет мест ({limit} человек).\nВыберите другую."
SESSION_NOT_FOUND = "❌ Не удалось найти занятие"

FULL_PICKER_HEADER = "📅 <b>Выберите ровно {required} занятия:</b>"
FULL_PICKER_COUNTER = "Выбрано: <b>{selected}/{required}</b>"
FULL_PICKER_LIMIT = "Можно выбрать только {required} занятия"
FULL_PICKER_INCOMPLETE = "⚠️ Нужно выбрать ровно {required} занятия."
FULL_PICKER_DONE_BUTTON = "➡️ Продолжить"

INDIVIDUAL_INFO = (
    "👤 <b>Индивидуальное занятие с Аней</b>\n\n"
    "✨ <i>Персональные тренировки требуют обсуждения деталей</i>\n\n"
    "📅 <b>Свободные слоты:</b>\n"
    "{slots}\n\n"
    "💰 <b>Стоимость:</b> {price}\n\n"
    "👇 <b>Нажми кнопку, чтобы написать Ане:</b>"
)
INDIVIDUAL_NO_SLOTS = "🗓️ Расписание уточняется\nНапиши Ане, чтобы согласовать удобное время 💫"

# Admin: applications -------------------------------------------------------
NEW_APPLICATION = (
    "🆕 <b>Новая заявка #{application_id}</b>\n\n"
    "<b>Программа:</b> {title}\n"
    "<b>Имя:</b> {name}\n"
    "<b>Телефон:</b> {phone}\n"
    "<b>Telegram:</b> {username}\n"
    "<b>Сумма:</b> {amount}\n"
    "<b>Способ оплаты:</b> {payment}\n"
    "<b>Заметки:</b> {notes}"
)
APPLICATION_ROW = "#{id} · {program}\n👤 {name} · 📞 {phone}\n💰 {amount}"
APPLICATIONS_HEADER = "📄 <b>Заявки на проверку:</b>"
NO_APPLICATIONS = "Новых заявок нет."
NO_ACTIVE_PROGRAMS = "Активных программ нет."
APPLICATION_NOT_FOUND = "❌ Заявка #{application_id} не найдена"
APPLICATION_APPROVED_ADMIN = "✅ Заявка #{application_id} одобрена."
APPLICATION_PAID_ADMIN = "✅ Оплата по заявке #{application_id} подтверждена, запись создана."
APPLICATION_REJECTED_ADMIN = "🚫 Заявка #{application_id} отклонена."
APPLICATION_BAD_TRANSITION = "⚠️ Заявка #{application_id} уже в статусе «{status}»."
DUPLICATE_BOOKING = "⚠️ У пользователя уже есть подтверждённая запись на эту программу."
APPLICANT_CONTACT = (
    "📞 <b>Контакт по заявке #{application_id}</b>\n\n"
    "<b>Имя:</b> {name}\n"
    "<b>Телефон:</b> {phone}\n"
    "<b>Telegram:</b> {username}"
)
USER_PAYMENT_CONFIRMED = (
    "🎉 <b>Запись подтверждена!</b>\n\n"
    "💃 <b>{title}</b>\n"
    "Оплата получена, ждём вас на занятии 💛"
)
USER_GROUP_LINK = "\n\n🔗 Чат группы: {link}"
USER_APPLICATION_REJECTED = (
    "😔 <b>Заявка отклонена</b>\n\n"
    "💃 <b>{title}</b>\n"
    "К сожалению, ваша заявка была отклонена.\n\n"
    "💛 Если есть вопросы, напишите Ане напрямую."
)
ADMIN_CONFIRM_BUTTON = "✅ Оплата получена"
ADMIN_APPROVE_BUTTON = "👍 Одобрить"
ADMIN_REJECT_BUTTON = "🚫 Отклонить"
ADMIN_CALL_BUTTON = "📞 Контакт"
PROGRAM_DELETED = "🗑 Программа «{title}» удалена."
DELETE_PROGRAM_BUTTON = "🗑 {title}"
ADMIN_PROGRAMS_HEADER = "🗂 <b>Активные программы</b>\n\nНажмите, чтобы удалить:"

# Admin: broadcast ----------------------------------------------------------
BROADCAST_SEGMENT_PROMPT = "📢 Кому отправить сообщение?"
BROADCAST_SEGMENT_BUTTONS = {
    "active": "📌 Всем активным ученикам",
    "all": "👥 Всем вообще",
}
BROADCAST_PROGRAM_BUTTON = "💃 {title}"
BROADCAST_AUDIENCE = {
    "all": "всем ученикам",
    "active": "всем активным ученикам (с подтверждёнными записями)",
    "program": "участникам программы «{title}»",
}
BROADCAST_PROMPT = (
    "✍️ <b>Текст рассылки</b>\n"
    "────────────────\n"
    "<i>Кому:</i> <b>{audience}</b>\n\n"
    "👇 Пиши ниже:"
)
BROADCAST_PREVIEW = (
    "👀 <b>Предпросмотр рассылки:</b>\n\n{text}\n\n"
    "📊 <b>Получатели:</b> {audience} ({count} чел.)\n\n"
    "Отправляем сообщение?"
)
BROADCAST_CONFIRM_BUTTON = "✅ Да, отправить ({count})"
BROADCAST_NO_RECIPIENTS = (
    "❌ <b>Нет получателей!</b>\n\n"
    "Для выбранного сегмента не найдено ни одного пользователя."
)
BROADCAST_CANCELLED = "🚫 Рассылка отменена."
BROADCAST_NOTHING_TO_SEND = "⚠️ Нет подготовленной рассылки. Начните заново из админ-панели."
BROADCAST_DONE = "📢 Рассылка завершена: доставлено {sent}, ошибок {failed}."
BROADCAST_EMPTY = "⚠️ Пустое сообщение не отправлено. Напишите текст рассылки."

# Admin: program wizard -----------------------------------------------------
WIZARD_START = "➕ <b>Добавим новое занятие!</b>\nВыбери формат:"
WIZARD_TYPE_BUTTONS = {
    "group": "👥 Группа",
    "intensive": "🔥 Интенсив",
    "open_group": "🎪 Открытая группа",
    "individual": "👠 Индивидуальные",
}
WIZARD_ASK_TITLE = "✏️ Напиши название занятия:"
WIZARD_ASK_INTENSIVE_TITLE = "✏️ Напиши название интенсива:"
WIZARD_ASK_DESCRIPTION = "📝 Добавь описание занятия:"
WIZARD_ASK_DURATION = "⏱ Сколько будет длиться занятие?"
WIZARD_DURATION_SET = "✅ Длительность установлена: {duration}"
WIZARD_ASK_START_DATE = "📅 Введи дату старта в формате ДД.ММ.ГГ (например 03.03.26):"
WIZARD_BAD_DATE = "❌ Формат даты неверный.\nПример: 03.03.26"
WIZARD_ASK_INTENSIVE_DAYS = "🔥 Сколько дней длится интенсив?"
WIZARD_ASK_INTENSIVE_DAYS_MANUAL = "✍️ Введите число дней (например 3):"
WIZARD_BAD_INTENSIVE_DAYS = "❌ Введите корректное число (1-30)."
WIZARD_INTENSIVE_PLAN = (
    "📅 <b>Интенсив на {days} дн.:</b>\n"
    "• Начало: {start}\n"
    "• Окончание: {end}\n\n"
    "⏰ Теперь укажи время для каждого дня:"
)
WIZARD_ASK_INTENSIVE_TIME = (
    "⏰ <b>День {day} из {total}</b>\n"
    "📅 Дата: {date}\n"
    "Выберите время начала занятия:"
)
WIZARD_INTENSIVE_TIME_SAVED = "✅ День {day} ({date}) — время {time} сохранено!"
WIZARD_INTENSIVE_SCHEDULE_HEADER = "📆 <b>Расписание интенсива:</b>"
WIZARD_ASK_DAY = "🗓 Выбери день недели:"
WIZARD_ASK_TIME = "⏰ Время для <b>{day}</b>:"
WIZARD_ASK_TIME_MANUAL = "✍️ Введите время (например 19:30):"
WIZARD_BAD_TIME = "❌ Неправильный формат времени. Пример: 19:00 или 09:30"
WIZARD_ASK_DAY_DURATION = "🕘 Выбери длительность занятия для этого дня:"
WIZARD_SCHEDULE_ADDED = "✅ Добавлено: <b>{entry}</b>\nДобавим ещё?"
WIZARD_SCHEDULE_EMPTY = "⚠️ Добавь хотя бы один день."
WIZARD_ASK_INDIVIDUAL_DAYS = (
    "🗓 <b>Выбери дни недели, когда доступны индивидуальные занятия:</b>\n\n"
    "Можно выбрать несколько дней.\n"
    "📋 <b>Выбранные дни:</b> {selected}"
)
WIZARD_INDIVIDUAL_DAYS_EMPTY = "❌ Нужно выбрать хотя бы один день"
WIZARD_ASK_INDIVIDUAL_TIME = (
    "⏰ <b>Укажи время для {day}:</b>\n\n"
    "Пример: 19:00 или 20:30\n"
    "Это время начала индивидуального занятия"
)
WIZARD_INDIVIDUAL_TIME_SAVED = "✅ Время для {day} сохранено: {entry}"
WIZARD_INDIVIDUAL_TITLE = "Индивидуальное занятие с Аней"
WIZARD_INDIVIDUAL_DESCRIPTION = (
    "🎯 Отличная возможность улучшить свои навыки!\n\n"
    "• Персональный подход и внимание к деталям\n"
    "• Работа над техникой и выразительностью\n"
    "• Подбор материала по вашим целям\n"
    "• Гибкое расписание и удобное время"
)
WIZARD_INDIVIDUAL_SCHEDULE_DONE = (
    "📋 <b>Расписание создано:</b>\n{schedule}\n\n"
    "💰 <b>Теперь установите цену за индивидуальное занятие:</b>"
)
WIZARD_ASK_PRICE = "💰 Введи цену курса (например 6000):"
WIZARD_ASK_INTENSIVE_PRICE = "💰 Теперь введи цену интенсива:"
WIZARD_BAD_PRICE = "❌ Цена должна быть положительным числом."
WIZARD_ASK_SINGLE_PRICE = "💳 Теперь введи цену разового занятия:"
WIZARD_ASK_MAX = "👥 Максимум участников?"
WIZARD_BAD_NUMBER = "❌ Введите положительное число."
WIZARD_ASK_GROUP_LINK = (
    "🔗 Введи ссылку на Telegram-группу для участников (например, https://t.me/joinchat/...)\n"
    "Если ссылки пока нет, отправь '-' чтобы пропустить."
)
WIZARD_BAD_GROUP_LINK = (
    "❌ Ссылка должна начинаться с http:// или https://. Отправь '-' чтобы пропустить."
)
WIZARD_PREVIEW_FOOTER = "Создать занятие?"
WIZARD_CREATED = "🎉 Занятие создано! Сессий в расписании: {sessions}"
WIZARD_CANCELLED = "❌ Создание отменено."
WIZARD_DRAFT_LOST = (
    "❌ Данные программы потеряны (возможно, бот перезагрузился). "
    "Пожалуйста, создайте занятие заново."
)
WIZARD_MANUAL_BUTTON = "✍️ Ввести вручную"
WIZARD_SKIP_BUTTON = "⏩ Пропустить"
WIZARD_CREATE_BUTTON = "✅ Создать"
WIZARD_DONE_BUTTON = "✅ Готово"
WIZARD_DAYS_DONE_BUTTON = "✅ Выбрано"
WIZARD_FINISH_SCHEDULE_BUTTON = "✅ Завершить расписание"
WIZARD_ADD_MORE_BUTTON = "➕ Добавить ещё"
ADMIN_PANEL_BUTTON = "🏠 В админку"

__all__ = [name for name in dir() if name.isupper()]
