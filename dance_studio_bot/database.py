from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence

from dance_studio_bot.errors import DuplicateBookingError, ValidationError

LOGGER = logging.getLogger(__name__)

PROGRAM_TYPES = ("group", "intensive", "open_group", "individual")
APPLICATION_STATUSES = ("pending", "approved", "rejected", "paid")


@dataclass(slots=True)
class User:
    user_id: int
    telegram_id: int
    username: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
    phone: Optional[str]

    @property
    def display_name(self) -> str:
        parts = [self.first_name or "", self.last_name or ""]
        return " ".join(part for part in parts if part).strip()


@dataclass(slots=True)
class Program:
    program_id: int
    type: str
    title: str
    description: str
    start_date: Optional[date]
    end_date: Optional[date]
    duration_minutes: Optional[int]
    schedule: Optional[str]
    price: int
    single_price: Optional[int]
    max_participants: int
    current_participants: int
    group_link: Optional[str]
    status: str

    @property
    def free_spots(self) -> int:
        return self.max_participants - self.current_participants


@dataclass(slots=True)
class ProgramSession:
    session_id: int
    program_id: int
    session_date: date
    session_time: str
    duration_minutes: Optional[int]


@dataclass(slots=True)
class Application:
    application_id: int
    program_id: int
    user_id: int
    user_name: str
    user_phone: str
    user_notes: Optional[str]
    payment_method: Optional[str]
    amount: int
    status: str
    session_id: Optional[int]
    session_ids: Optional[list[int]]
    admin_notes: Optional[str]
    created_at: datetime


@dataclass(slots=True)
class Booking:
    booking_id: int
    application_id: int
    program_id: int
    user_id: int
    user_name: str
    user_phone: str
    amount: int
    session_id: Optional[int]
    status: str
    created_at: datetime


@dataclass(slots=True)
class NewProgram:
    """Validated program fields ready to be inserted."""

    type: str
    title: str
    description: str
    price: int
    max_participants: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration_minutes: Optional[int] = None
    schedule: Optional[str] = None
    single_price: Optional[int] = None
    group_link: Optional[str] = None


@dataclass(slots=True)
class SessionSlot:
    session_date: date
    session_time: str
    duration_minutes: Optional[int] = None


@dataclass(slots=True)
class ApplicationRequest:
    program_id: int
    user_id: int
    user_name: str
    user_phone: str
    amount: int
    notes: Optional[str] = None
    payment_method: Optional[str] = None
    session_id: Optional[int] = None
    session_ids: Optional[list[int]] = field(default=None)


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(value)


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value)


class Database:
    """SQLite storage for programs, sessions, applications and bookings."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._initialise()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _initialise(self) -> None:
        with self._connection() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    user_id INTEGER PRIMARY KEY,
                    telegram_id INTEGER UNIQUE NOT NULL,
                    username TEXT,
                    first_name TEXT,
                    last_name TEXT,
                    phone TEXT,
                    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                );

                CREATE TABLE IF NOT EXISTS programs (
                    program_id INTEGER PRIMARY KEY,
                    type TEXT NOT NULL,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    start_date TEXT,
                    end_date TEXT,
                    duration_minutes INTEGER,
                    schedule TEXT,
                    price INTEGER NOT NULL,
                    single_price INTEGER,
                    max_participants INTEGER NOT NULL,
                    current_participants INTEGER NOT NULL DEFAULT 0,
                    group_link TEXT,
                    status TEXT NOT NULL DEFAULT 'active',
                    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                );

                CREATE TABLE IF NOT EXISTS program_sessions (
                    session_id INTEGER PRIMARY KEY,
                    program_id INTEGER NOT NULL REFERENCES programs(program_id) ON DELETE CASCADE,
                    session_date TEXT NOT NULL,
                    session_time TEXT NOT NULL,
                    duration_minutes INTEGER
                );

                CREATE TABLE IF NOT EXISTS applications (
                    application_id INTEGER PRIMARY KEY,
                    program_id INTEGER NOT NULL REFERENCES programs(program_id),
                    user_id INTEGER NOT NULL REFERENCES users(user_id),
                    user_name TEXT NOT NULL,
                    user_phone TEXT NOT NULL,
                    user_notes TEXT,
                    payment_method TEXT,
                    amount INTEGER NOT NULL,
                    status TEXT NOT NULL DEFAULT 'pending',
                    session_id INTEGER REFERENCES program_sessions(session_id),
                    admin_notes TEXT,
                    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
                    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                );

                CREATE TABLE IF NOT EXISTS application_sessions (
                    application_id INTEGER NOT NULL REFERENCES applications(application_id) ON DELETE CASCADE,
                    session_id INTEGER NOT NULL REFERENCES program_sessions(session_id),
                    position INTEGER NOT NULL,
                    PRIMARY KEY (application_id, session_id)
                );

                CREATE TABLE IF NOT EXISTS bookings (
                    booking_id INTEGER PRIMARY KEY,
                    application_id INTEGER UNIQUE NOT NULL REFERENCES applications(application_id),
                    program_id INTEGER NOT NULL REFERENCES programs(program_id),
                    user_id INTEGER NOT NULL REFERENCES users(user_id),
                    user_name TEXT NOT NULL,
                    user_phone TEXT NOT NULL,
                    amount INTEGER NOT NULL,
                    session_id INTEGER REFERENCES program_sessions(session_id),
                    status TEXT NOT NULL DEFAULT 'confirmed',
                    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                );

                CREATE TABLE IF NOT EXISTS booking_sessions (
                    booking_id INTEGER NOT NULL REFERENCES bookings(booking_id) ON DELETE CASCADE,
                    session_id INTEGER NOT NULL REFERENCES program_sessions(session_id),
                    PRIMARY KEY (booking_id, session_id)
                );
                """
            )

    # User helpers ---------------------------------------------------------
    def upsert_user(
        self,
        telegram_id: int,
        username: Optional[str],
        first_name: Optional[str],
        last_name: Optional[str],
    ) -> User:
        with self._connection() as conn:
            row = conn.execute(
                """
                INSERT INTO users (telegram_id, username, first_name, last_name)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(telegram_id) DO UPDATE SET
                    username = excluded.username,
                    first_name = excluded.first_name,
                    last_name = excluded.last_name
                RETURNING user_id, telegram_id, username, first_name, last_name, phone
                """,
                (telegram_id, username, first_name, last_name),
            ).fetchone()
        return self._user_from_row(row)

    def get_user_by_telegram_id(self, telegram_id: int) -> Optional[User]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE telegram_id = ?", (telegram_id,)
            ).fetchone()
        return self._user_from_row(row) if row else None

    def get_user(self, user_id: int) -> Optional[User]:
        with self._connection() as conn:
            row = conn.execute("SELECT * FROM users WHERE user_id = ?", (user_id,)).fetchone()
        return self._user_from_row(row) if row else None

    def update_user_phone(self, telegram_id: int, phone: str) -> bool:
        with self._connection() as conn:
            cursor = conn.execute(
                "UPDATE users SET phone = ? WHERE telegram_id = ?", (phone, telegram_id)
            )
            return cursor.rowcount > 0

    def get_user_telegram_ids(self) -> list[int]:
        with self._connection() as conn:
            rows = conn.execute("SELECT telegram_id FROM users").fetchall()
        return [int(row[0]) for row in rows]

    @staticmethod
    def _user_from_row(row: sqlite3.Row) -> User:
        return User(
            user_id=int(row["user_id"]),
            telegram_id=int(row["telegram_id"]),
            username=row["username"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            phone=row["phone"],
        )

    # Program helpers -----------------------------------------------------
    def create_program(self, program: NewProgram) -> Program:
        with self._connection() as conn:
            row = self._insert_program(conn, program)
        LOGGER.info("Program %s (%s) created", row["program_id"], program.type)
        return self._program_from_row(row)

    def create_program_with_sessions(
        self, program: NewProgram, slots: Iterable[SessionSlot]
    ) -> tuple[Program, int]:
        """Insert a program and its sessions in one transaction."""
        with self._connection() as conn:
            row = self._insert_program(conn, program)
            created = self._insert_sessions(conn, int(row["program_id"]), slots)
        LOGGER.info("Program %s (%s) created with %s sessions", row["program_id"], program.type, created)
        return self._program_from_row(row), created

    @staticmethod
    def _insert_program(conn: sqlite3.Connection, program: NewProgram) -> sqlite3.Row:
        if program.type not in PROGRAM_TYPES:
            raise ValidationError(f"Unknown program type: {program.type}")
        return conn.execute(
            """
            INSERT INTO programs (
                type, title, description, start_date, end_date, duration_minutes,
                schedule, price, single_price, max_participants, group_link
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            RETURNING *
            """,
            (
                program.type,
                program.title,
                program.description,
                program.start_date.isoformat() if program.start_date else None,
                program.end_date.isoformat() if program.end_date else None,
                program.duration_minutes,
                program.schedule,
                program.price,
                program.single_price,
                program.max_participants,
                program.group_link,
            ),
        ).fetchone()

    def get_program(self, program_id: int) -> Optional[Program]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM programs WHERE program_id = ? AND status != 'deleted'",
                (program_id,),
            ).fetchone()
        return self._program_from_row(row) if row else None

    def list_active_programs(self) -> list[Program]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM programs WHERE status = 'active' ORDER BY start_date, program_id"
            ).fetchall()
        return [self._program_from_row(row) for row in rows]

    def soft_delete_program(self, program_id: int) -> bool:
        with self._connection() as conn:
            cursor = conn.execute(
                "UPDATE programs SET status = 'deleted' WHERE program_id = ? AND status != 'deleted'",
                (program_id,),
            )
            return cursor.rowcount > 0

    def increment_participants(self, program_id: int) -> None:
        with self._connection() as conn:
            conn.execute(
                """
                UPDATE programs SET current_participants = current_participants + 1
                WHERE program_id = ? AND current_participants < max_participants
                """,
                (program_id,),
            )

    @staticmethod
    def _program_from_row(row: sqlite3.Row) -> Program:
        return Program(
            program_id=int(row["program_id"]),
            type=str(row["type"]),
            title=str(row["title"]),
            description=str(row["description"] or ""),
            start_date=_parse_date(row["start_date"]),
            end_date=_parse_date(row["end_date"]),
            duration_minutes=row["duration_minutes"],
            schedule=row["schedule"],
            price=int(row["price"]),
            single_price=row["single_price"],
            max_participants=int(row["max_participants"]),
            current_participants=int(row["current_participants"]),
            group_link=row["group_link"],
            status=str(row["status"]),
        )

    # Session helpers -----------------------------------------------------
    def create_sessions(self, program_id: int, slots: Iterable[SessionSlot]) -> int:
        with self._connection() as conn:
            return self._insert_sessions(conn, program_id, slots)

    @staticmethod
    def _insert_sessions(conn: sqlite3.Connection, program_id: int, slots: Iterable[SessionSlot]) -> int:
        payload = [
            (program_id, slot.session_date.isoformat(), slot.session_time, slot.duration_minutes)
            for slot in slots
        ]
        if payload:
            conn.executemany(
                """
                INSERT INTO program_sessions (program_id, session_date, session_time, duration_minutes)
                VALUES (?, ?, ?, ?)
                """,
                payload,
            )
        return len(payload)

    def get_session(self, session_id: int) -> Optional[ProgramSession]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM program_sessions WHERE session_id = ?", (session_id,)
            ).fetchone()
        return self._session_from_row(row) if row else None

    def get_program_sessions(self, program_id: int) -> list[ProgramSession]:
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM program_sessions WHERE program_id = ?
                ORDER BY session_date, session_time
                """,
                (program_id,),
            ).fetchall()
        return [self._session_from_row(row) for row in rows]

    def get_upcoming_sessions(self, program_id: int, today: date) -> list[ProgramSession]:
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM program_sessions WHERE program_id = ? AND session_date >= ?
                ORDER BY session_date, session_time
                """,
                (program_id, today.isoformat()),
            ).fetchall()
        return [self._session_from_row(row) for row in rows]

    def count_confirmed_participants_for_session(self, session_id: int) -> int:
        with self._connection() as conn:
            single = conn.execute(
                "SELECT COUNT(*) FROM bookings WHERE session_id = ? AND status = 'confirmed'",
                (session_id,),
            ).fetchone()[0]
            passes = conn.execute(
                """
                SELECT COUNT(*) FROM booking_sessions bs
                JOIN bookings b ON b.booking_id = bs.booking_id
                WHERE bs.session_id = ? AND b.status = 'confirmed'
                """,
                (session_id,),
            ).fetchone()[0]
        return int(single) + int(passes)

    @staticmethod
    def _session_from_row(row: sqlite3.Row) -> ProgramSession:
        return ProgramSession(
            session_id=int(row["session_id"]),
            program_id=int(row["program_id"]),
            session_date=date.fromisoformat(row["session_date"]),
            session_time=str(row["session_time"]),
            duration_minutes=row["duration_minutes"],
        )

    # Application helpers -------------------------------------------------
    def create_application(self, request: ApplicationRequest) -> Optional[Application]:
        """Insert a pending application, or return ``None`` if the write fails."""
        try:
            with self._connection() as conn:
                row = conn.execute(
                    """
                    INSERT INTO applications (
                        program_id, user_id, user_name, user_phone, user_notes,
                        payment_method, amount, session_id
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    RETURNING application_id
                    """,
                    (
                        request.program_id,
                        request.user_id,
                        request.user_name,
                        request.user_phone,
                        request.notes,
                        request.payment_method,
                        request.amount,
                        request.session_id,
                    ),
                ).fetchone()
                application_id = int(row[0])
                if request.session_ids:
                    conn.executemany(
                        """
                        INSERT INTO application_sessions (application_id, session_id, position)
                        VALUES (?, ?, ?)
                        """,
                        [
                            (application_id, session_id, position)
                            for position, session_id in enumerate(request.session_ids)
                        ],
                    )
        except sqlite3.Error:
            LOGGER.exception("Failed to create application for program %s", request.program_id)
            return None
        return self.get_application(application_id)

    def get_application(self, application_id: int) -> Optional[Application]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM applications WHERE application_id = ?", (application_id,)
            ).fetchone()
            if row is None:
                return None
            session_ids = self._application_session_ids(conn, application_id)
        return self._application_from_row(row, session_ids)

    def list_pending_applications(self) -> list[Application]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM applications WHERE status = 'pending' ORDER BY created_at, application_id"
            ).fetchall()
            return [
                self._application_from_row(
                    row, self._application_session_ids(conn, int(row["application_id"]))
                )
                for row in rows
            ]

    def list_pending_applications_for_user(self, user_id: int) -> list[Application]:
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM applications WHERE user_id = ? AND status = 'pending'
                ORDER BY created_at, application_id
                """,
                (user_id,),
            ).fetchall()
            return [
                self._application_from_row(
                    row, self._application_session_ids(conn, int(row["application_id"]))
                )
                for row in rows
            ]

    def update_application_status(
        self, application_id: int, status: str, admin_notes: Optional[str] = None
    ) -> bool:
        if status not in APPLICATION_STATUSES:
            raise ValueError(f"Unknown application status: {status}")
        with self._connection() as conn:
            cursor = conn.execute(
                """
                UPDATE applications
                SET status = ?, admin_notes = COALESCE(?, admin_notes), updated_at = CURRENT_TIMESTAMP
                WHERE application_id = ?
                """,
                (status, admin_notes, application_id),
            )
            return cursor.rowcount > 0

    @staticmethod
    def _application_session_ids(conn: sqlite3.Connection, application_id: int) -> list[int]:
        rows = conn.execute(
            "SELECT session_id FROM application_sessions WHERE application_id = ? ORDER BY position",
            (application_id,),
        ).fetchall()
        return [int(row[0]) for row in rows]

    @staticmethod
    def _application_from_row(row: sqlite3.Row, session_ids: Sequence[int]) -> Application:
        return Application(
            application_id=int(row["application_id"]),
            program_id=int(row["program_id"]),
            user_id=int(row["user_id"]),
            user_name=str(row["user_name"]),
            user_phone=str(row["user_phone"]),
            user_notes=row["user_notes"],
            payment_method=row["payment_method"],
            amount=int(row["amount"]),
            status=str(row["status"]),
            session_id=row["session_id"],
            session_ids=list(session_ids) or None,
            admin_notes=row["admin_notes"],
            created_at=_parse_timestamp(row["created_at"]),
        )

    # Booking helpers -----------------------------------------------------
    def has_confirmed_booking(self, user_id: int, program_id: int) -> bool:
        with self._connection() as conn:
            row = conn.execute(
                """
                SELECT 1 FROM bookings
                WHERE user_id = ? AND program_id = ? AND status = 'confirmed'
                LIMIT 1
                """,
                (user_id, program_id),
            ).fetchone()
        return row is not None

    def create_booking_from_application(self, application: Application) -> Booking:
        if self.has_confirmed_booking(application.user_id, application.program_id):
            raise DuplicateBookingError(application.user_id, application.program_id)
        with self._connection() as conn:
            row = conn.execute(
                """
                INSERT INTO bookings (
                    application_id, program_id, user_id, user_name, user_phone, amount, session_id
                )
                VALUES (?, ?, ?, ?, ?, ?, ?)
                RETURNING *
                """,
                (
                    application.application_id,
                    application.program_id,
                    application.user_id,
                    application.user_name,
                    application.user_phone,
                    application.amount,
                    application.session_id,
                ),
            ).fetchone()
            if application.session_ids:
                conn.executemany(
                    "INSERT INTO booking_sessions (booking_id, session_id) VALUES (?, ?)",
                    [(int(row["booking_id"]), session_id) for session_id in application.session_ids],
                )
        return self._booking_from_row(row)

    def list_user_bookings(self, user_id: int) -> list[Booking]:
        """Confirmed bookings of a user for programs that are still active."""
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT b.* FROM bookings b
                JOIN programs p ON p.program_id = b.program_id
                WHERE b.user_id = ? AND b.status = 'confirmed' AND p.status = 'active'
                ORDER BY b.created_at DESC, b.booking_id DESC
                """,
                (user_id,),
            ).fetchall()
        return [self._booking_from_row(row) for row in rows]

    def get_booking_session_ids(self, booking_id: int) -> list[int]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT session_id FROM booking_sessions WHERE booking_id = ? ORDER BY session_id",
                (booking_id,),
            ).fetchall()
        return [int(row[0]) for row in rows]

    def get_booked_telegram_ids(self, program_id: Optional[int] = None) -> list[int]:
        """Telegram ids of users holding a confirmed booking, optionally for one program."""
        query = """
            SELECT DISTINCT u.telegram_id FROM bookings b
            JOIN users u ON u.user_id = b.user_id
            WHERE b.status = 'confirmed'
        """
        params: tuple = ()
        if program_id is not None:
            query += " AND b.program_id = ?"
            params = (program_id,)
        with self._connection() as conn:
            rows = conn.execute(query + " ORDER BY u.telegram_id", params).fetchall()
        return [int(row[0]) for row in rows]

    @staticmethod
    def _booking_from_row(row: sqlite3.Row) -> Booking:
        return Booking(
            booking_id=int(row["booking_id"]),
            application_id=int(row["application_id"]),
            program_id=int(row["program_id"]),
            user_id=int(row["user_id"]),
            user_name=str(row["user_name"]),
            user_phone=str(row["user_phone"]),
            amount=int(row["amount"]),
            session_id=row["session_id"],
            status=str(row["status"]),
            created_at=_parse_timestamp(row["created_at"]),
        )


__all__ = [
    "Database",
    "User",
    "Program",
    "ProgramSession",
    "Application",
    "Booking",
    "NewProgram",
    "SessionSlot",
    "ApplicationRequest",
    "PROGRAM_TYPES",
    "APPLICATION_STATUSES",
]
