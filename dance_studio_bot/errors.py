from __future__ import annotations


class StudioBotError(Exception):
    """Base class for errors raised by the booking core."""


class NotFoundError(StudioBotError):
    pass


class ValidationError(StudioBotError):
    pass


class CapacityError(StudioBotError):
    pass


class DuplicateBookingError(StudioBotError):
    """The user already has a confirmed booking for the program."""

    def __init__(self, user_id: int, program_id: int) -> None:
        super().__init__(f"user {user_id} already booked program {program_id}")
        self.user_id = user_id
        self.program_id = program_id


class InvalidTransitionError(StudioBotError):
    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"cannot move application from {current} to {target}")
        self.current = current
        self.target = target


class DraftIncompleteError(StudioBotError):
    """A program draft is missing fields required to persist it."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__("draft is missing: " + ", ".join(missing))
        self.missing = missing


__all__ = [
    "StudioBotError",
    "NotFoundError",
    "ValidationError",
    "CapacityError",
    "DuplicateBookingError",
    "InvalidTransitionError",
    "DraftIncompleteError",
]
