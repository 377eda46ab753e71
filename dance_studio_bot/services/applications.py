from __future__ import annotations

import logging
from html import escape

from dance_studio_bot import messages
from dance_studio_bot.database import Application, Booking, Database
from dance_studio_bot.errors import InvalidTransitionError, NotFoundError
from dance_studio_bot.services.notifications import AdminNotifier

LOGGER = logging.getLogger(__name__)

TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"approved", "rejected"}),
    "approved": frozenset({"paid"}),
}


class ApplicationReviewService:
    """Moves applications through pending -> approved|rejected, approved -> paid."""

    def __init__(self, database: Database, notifier: AdminNotifier) -> None:
        self.database = database
        self.notifier = notifier

    def get(self, application_id: int) -> Application:
        application = self.database.get_application(application_id)
        if application is None:
            raise NotFoundError(f"application {application_id}")
        return application

    def _move(self, application: Application, target: str) -> None:
        if target not in TRANSITIONS.get(application.status, frozenset()):
            raise InvalidTransitionError(application.status, target)
        self.database.update_application_status(application.application_id, target)
        LOGGER.info(
            "Application %s moved %s -> %s", application.application_id, application.status, target
        )
        application.status = target

    def approve(self, application_id: int) -> Application:
        application = self.get(application_id)
        self._move(application, "approved")
        return application

    async def reject(self, application_id: int) -> Application:
        application = self.get(application_id)
        self._move(application, "rejected")
        program = self.database.get_program(application.program_id)
        title = program.title if program else "?"
        await self._notify_applicant(
            application, messages.USER_APPLICATION_REJECTED.format(title=escape(title))
        )
        return application

    async def confirm_payment(self, application_id: int) -> Booking:
        """Mark the application paid and create the booking.

        Raises ``DuplicateBookingError`` before any status change when the
        user already holds a confirmed booking for the program.
        """
        application = self.get(application_id)
        if application.status not in ("pending", "approved"):
            raise InvalidTransitionError(application.status, "paid")

        booking = self.database.create_booking_from_application(application)
        if application.status == "pending":
            self._move(application, "approved")
        self._move(application, "paid")
        self.database.increment_participants(application.program_id)

        program = self.database.get_program(application.program_id)
        text = messages.USER_PAYMENT_CONFIRMED.format(title=escape(program.title if program else "?"))
        if program and program.group_link:
            text += messages.USER_GROUP_LINK.format(link=escape(program.group_link))
        await self._notify_applicant(application, text)
        return booking

    async def _notify_applicant(self, application: Application, text: str) -> None:
        user = self.database.get_user(application.user_id)
        if user is None:
            LOGGER.warning("Applicant of application %s is gone", application.application_id)
            return
        await self.notifier.notify_user(user.telegram_id, text)


__all__ = ["ApplicationReviewService", "TRANSITIONS"]
