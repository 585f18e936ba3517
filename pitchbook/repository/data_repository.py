"""Repository layer responsible for all database access."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence

from pitchbook.domain.models import (
    HOLDING_STATUSES,
    BookedInterval,
    BookingStatus,
    ClosureInterval,
    OperatingWindow,
    Pitch,
)
from pitchbook.utils.config import Settings, get_settings
from pitchbook.utils.logger import get_logger
from pitchbook.utils.timeutils import format_hhmm, from_storage, parse_hhmm, to_storage


logger = get_logger(__name__)


@dataclass(frozen=True)
class ClosureRecord:
    """Closure projection including its descriptive fields."""

    closure_id: int
    pitch_id: int
    title: str
    description: Optional[str]
    start: datetime
    end: datetime

    def to_interval(self) -> ClosureInterval:
        return ClosureInterval(start=self.start, end=self.end)


@dataclass(frozen=True)
class BookingRecord:
    booking_id: int
    pitch_id: int
    start: datetime
    end: datetime
    status: BookingStatus
    organizer_name: str
    organizer_email: str
    notes: Optional[str]
    total_amount_pence: int
    currency: str
    source: str
    confirmed_at: Optional[datetime]
    cancelled_at: Optional[datetime]
    cancellation_reason: Optional[str]
    created_at: datetime

    def to_interval(self) -> BookedInterval:
        return BookedInterval(start=self.start, end=self.end)


def _optional_date(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    return date.fromisoformat(value)


def _optional_timestamp(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return from_storage(value)


class DataRepository:
    """Encapsulates SQLite access so business logic stays storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._db_path)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Pitches (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        name TEXT NOT NULL,
                        price_per_hour INTEGER NOT NULL CHECK (price_per_hour >= 0),
                        is_active INTEGER NOT NULL DEFAULT 1 CHECK (is_active IN (0,1)),
                        timezone TEXT NOT NULL,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS PitchSchedules (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        pitch_id INTEGER NOT NULL,
                        day_of_week INTEGER NOT NULL CHECK (day_of_week BETWEEN 0 AND 6),
                        start_time TEXT NOT NULL,
                        end_time TEXT NOT NULL,
                        valid_from TEXT,
                        valid_until TEXT,
                        FOREIGN KEY (pitch_id) REFERENCES Pitches(id) ON DELETE CASCADE
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS PitchClosures (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        pitch_id INTEGER NOT NULL,
                        title TEXT NOT NULL,
                        description TEXT,
                        start_date TEXT NOT NULL,
                        end_date TEXT NOT NULL,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                        FOREIGN KEY (pitch_id) REFERENCES Pitches(id) ON DELETE CASCADE
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Bookings (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        pitch_id INTEGER NOT NULL,
                        start_time TEXT NOT NULL,
                        end_time TEXT NOT NULL,
                        status TEXT NOT NULL DEFAULT 'PENDING'
                            CHECK (status IN ('PENDING','CONFIRMED','CANCELLED','COMPLETED')),
                        organizer_name TEXT NOT NULL,
                        organizer_email TEXT NOT NULL,
                        notes TEXT,
                        total_amount_pence INTEGER NOT NULL,
                        currency TEXT NOT NULL,
                        source TEXT NOT NULL DEFAULT 'ONLINE',
                        confirmed_at TEXT,
                        cancelled_at TEXT,
                        cancellation_reason TEXT,
                        created_at TEXT NOT NULL,
                        FOREIGN KEY (pitch_id) REFERENCES Pitches(id) ON DELETE CASCADE
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_schedules_pitch_day
                    ON PitchSchedules(pitch_id, day_of_week);
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_closures_pitch_range
                    ON PitchClosures(pitch_id, start_date, end_date);
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_bookings_pitch_status_range
                    ON Bookings(pitch_id, status, start_time, end_time);
                    """
                )
                conn.commit()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    def seed_demo_data(self) -> int:
        """Seed demo pitches with weekly schedules only when no pitch exists."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()

                cursor.execute("SELECT COUNT(*) AS count FROM Pitches;")
                if int(cursor.fetchone()["count"]) > 0:
                    logger.info("Demo data already present; skipping seed")
                    return 0

                price = self._settings.demo_price_per_hour
                pitches = [
                    ("5-a-side Astro 1", price, 1),
                    ("5-a-side Astro 2", price, 1),
                    ("7-a-side Grass", int(price * 1.5), 1),
                    ("Indoor Court", price, 0),
                ]
                schedule_rows = []
                for name, pitch_price, is_active in pitches:
                    cursor.execute(
                        """
                        INSERT INTO Pitches (name, price_per_hour, is_active, timezone)
                        VALUES (?, ?, ?, ?);
                        """,
                        (name, pitch_price, is_active, self._settings.default_timezone),
                    )
                    pitch_id = int(cursor.lastrowid)
                    for weekday in range(7):
                        # Sunday (0) and Saturday (6) open shorter hours.
                        if weekday in (0, 6):
                            hours = ("08:00", "20:00")
                        else:
                            hours = ("09:00", "22:00")
                        schedule_rows.append((pitch_id, weekday, *hours))

                cursor.executemany(
                    """
                    INSERT INTO PitchSchedules (pitch_id, day_of_week, start_time, end_time)
                    VALUES (?, ?, ?, ?);
                    """,
                    schedule_rows,
                )
                conn.commit()
            logger.info("Demo seed completed with %s pitches", len(pitches))
            return len(pitches)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Demo data seeding failed: {exc}") from exc

    # --- Pitches ---

    @staticmethod
    def _row_to_pitch(row: sqlite3.Row) -> Pitch:
        return Pitch(
            pitch_id=int(row["id"]),
            name=str(row["name"]),
            price_per_hour=int(row["price_per_hour"]),
            is_active=bool(row["is_active"]),
            timezone=str(row["timezone"]),
        )

    def create_pitch(
        self,
        name: str,
        price_per_hour: int,
        timezone_name: str,
        is_active: bool = True,
    ) -> int:
        """Insert pitch row and return the created id."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO Pitches (name, price_per_hour, is_active, timezone)
                VALUES (?, ?, ?, ?);
                """,
                (name, price_per_hour, int(is_active), timezone_name),
            )
            conn.commit()
            return int(cursor.lastrowid)

    def get_pitch(self, pitch_id: int) -> Optional[Pitch]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT id, name, price_per_hour, is_active, timezone
                FROM Pitches
                WHERE id = ?;
                """,
                (pitch_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return self._row_to_pitch(row)

    def list_pitches(self, active_only: bool = False) -> List[Pitch]:
        query = "SELECT id, name, price_per_hour, is_active, timezone FROM Pitches"
        if active_only:
            query += " WHERE is_active = 1"
        query += " ORDER BY id ASC;"
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(query)
            return [self._row_to_pitch(row) for row in cursor.fetchall()]

    def set_pitch_active(self, pitch_id: int, is_active: bool) -> None:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE Pitches SET is_active = ? WHERE id = ?;",
                (int(is_active), pitch_id),
            )
            conn.commit()

    def update_pitch(self, pitch: Pitch) -> None:
        """Overwrite the mutable columns of an existing pitch row."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE Pitches
                SET name = ?, price_per_hour = ?, is_active = ?, timezone = ?
                WHERE id = ?;
                """,
                (
                    pitch.name,
                    pitch.price_per_hour,
                    int(pitch.is_active),
                    pitch.timezone,
                    pitch.pitch_id,
                ),
            )
            conn.commit()

    # --- Schedules ---

    @staticmethod
    def _row_to_window(row: sqlite3.Row) -> OperatingWindow:
        return OperatingWindow(
            weekday=int(row["day_of_week"]),
            start_time=parse_hhmm(str(row["start_time"])),
            end_time=parse_hhmm(str(row["end_time"])),
            valid_from=_optional_date(row["valid_from"]),
            valid_until=_optional_date(row["valid_until"]),
        )

    def replace_schedules(
        self,
        pitch_id: int,
        windows: Sequence[OperatingWindow],
    ) -> None:
        """Swap the weekly schedule of a pitch in a single transaction."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM PitchSchedules WHERE pitch_id = ?;",
                (pitch_id,),
            )
            cursor.executemany(
                """
                INSERT INTO PitchSchedules (
                    pitch_id,
                    day_of_week,
                    start_time,
                    end_time,
                    valid_from,
                    valid_until
                )
                VALUES (?, ?, ?, ?, ?, ?);
                """,
                [
                    (
                        pitch_id,
                        window.weekday,
                        format_hhmm(window.start_time),
                        format_hhmm(window.end_time),
                        window.valid_from.isoformat() if window.valid_from else None,
                        window.valid_until.isoformat() if window.valid_until else None,
                    )
                    for window in windows
                ],
            )
            conn.commit()

    def list_schedules(
        self,
        pitch_id: int,
        weekday: Optional[int] = None,
    ) -> List[OperatingWindow]:
        query = """
            SELECT day_of_week, start_time, end_time, valid_from, valid_until
            FROM PitchSchedules
            WHERE pitch_id = ?
        """
        params: list[object] = [pitch_id]
        if weekday is not None:
            query += " AND day_of_week = ?"
            params.append(weekday)
        query += " ORDER BY day_of_week ASC, start_time ASC;"
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(query, tuple(params))
            return [self._row_to_window(row) for row in cursor.fetchall()]

    # --- Closures ---

    @staticmethod
    def _row_to_closure(row: sqlite3.Row) -> ClosureRecord:
        return ClosureRecord(
            closure_id=int(row["id"]),
            pitch_id=int(row["pitch_id"]),
            title=str(row["title"]),
            description=row["description"],
            start=from_storage(str(row["start_date"])),
            end=from_storage(str(row["end_date"])),
        )

    def create_closure(
        self,
        pitch_id: int,
        title: str,
        description: Optional[str],
        start: datetime,
        end: datetime,
    ) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO PitchClosures (pitch_id, title, description, start_date, end_date)
                VALUES (?, ?, ?, ?, ?);
                """,
                (pitch_id, title, description, to_storage(start), to_storage(end)),
            )
            conn.commit()
            return int(cursor.lastrowid)

    def get_closure(self, closure_id: int) -> Optional[ClosureRecord]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT id, pitch_id, title, description, start_date, end_date
                FROM PitchClosures
                WHERE id = ?;
                """,
                (closure_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return self._row_to_closure(row)

    def delete_closure(self, closure_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM PitchClosures WHERE id = ?;",
                (closure_id,),
            )
            conn.commit()
            return cursor.rowcount > 0

    def list_closures(
        self,
        pitch_id: int,
        range_start: Optional[datetime] = None,
        range_end: Optional[datetime] = None,
    ) -> List[ClosureRecord]:
        """Return closures of a pitch, optionally those intersecting a range."""
        query = """
            SELECT id, pitch_id, title, description, start_date, end_date
            FROM PitchClosures
            WHERE pitch_id = ?
        """
        params: list[object] = [pitch_id]
        if range_end is not None:
            query += " AND start_date < ?"
            params.append(to_storage(range_end))
        if range_start is not None:
            query += " AND end_date > ?"
            params.append(to_storage(range_start))
        query += " ORDER BY start_date ASC, id ASC;"
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(query, tuple(params))
            return [self._row_to_closure(row) for row in cursor.fetchall()]

    # --- Bookings ---

    @staticmethod
    def _row_to_booking(row: sqlite3.Row) -> BookingRecord:
        return BookingRecord(
            booking_id=int(row["id"]),
            pitch_id=int(row["pitch_id"]),
            start=from_storage(str(row["start_time"])),
            end=from_storage(str(row["end_time"])),
            status=BookingStatus(str(row["status"])),
            organizer_name=str(row["organizer_name"]),
            organizer_email=str(row["organizer_email"]),
            notes=row["notes"],
            total_amount_pence=int(row["total_amount_pence"]),
            currency=str(row["currency"]),
            source=str(row["source"]),
            confirmed_at=_optional_timestamp(row["confirmed_at"]),
            cancelled_at=_optional_timestamp(row["cancelled_at"]),
            cancellation_reason=row["cancellation_reason"],
            created_at=from_storage(str(row["created_at"])),
        )

    def create_booking(
        self,
        pitch_id: int,
        start: datetime,
        end: datetime,
        organizer_name: str,
        organizer_email: str,
        notes: Optional[str],
        total_amount_pence: int,
        currency: str,
        status: BookingStatus = BookingStatus.PENDING,
        source: str = "ONLINE",
    ) -> int:
        """Insert booking row and return the created id."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO Bookings (
                    pitch_id,
                    start_time,
                    end_time,
                    status,
                    organizer_name,
                    organizer_email,
                    notes,
                    total_amount_pence,
                    currency,
                    source,
                    created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    pitch_id,
                    to_storage(start),
                    to_storage(end),
                    status.value,
                    organizer_name,
                    organizer_email,
                    notes,
                    total_amount_pence,
                    currency,
                    source,
                    to_storage(datetime.now(timezone.utc)),
                ),
            )
            conn.commit()
            return int(cursor.lastrowid)

    def get_booking(self, booking_id: int) -> Optional[BookingRecord]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM Bookings WHERE id = ?;", (booking_id,))
            row = cursor.fetchone()
            if row is None:
                return None
            return self._row_to_booking(row)

    def list_bookings(
        self,
        pitch_id: Optional[int] = None,
        statuses: Optional[Sequence[BookingStatus]] = None,
        range_start: Optional[datetime] = None,
        range_end: Optional[datetime] = None,
        newest_first: bool = True,
    ) -> List[BookingRecord]:
        """Return bookings filtered by pitch, status and intersecting range."""
        clauses: list[str] = []
        params: list[object] = []
        if pitch_id is not None:
            clauses.append("pitch_id = ?")
            params.append(pitch_id)
        if statuses:
            placeholders = ",".join("?" for _ in statuses)
            clauses.append(f"status IN ({placeholders})")
            params.extend(status.value for status in statuses)
        if range_end is not None:
            clauses.append("start_time < ?")
            params.append(to_storage(range_end))
        if range_start is not None:
            clauses.append("end_time > ?")
            params.append(to_storage(range_start))

        query = "SELECT * FROM Bookings"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        order = "DESC" if newest_first else "ASC"
        query += f" ORDER BY start_time {order}, id {order};"
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(query, tuple(params))
            return [self._row_to_booking(row) for row in cursor.fetchall()]

    def list_holding_bookings(
        self,
        pitch_id: int,
        range_start: datetime,
        range_end: datetime,
    ) -> List[BookingRecord]:
        """Return pending/confirmed bookings intersecting `[range_start, range_end)`."""
        return self.list_bookings(
            pitch_id=pitch_id,
            statuses=HOLDING_STATUSES,
            range_start=range_start,
            range_end=range_end,
            newest_first=False,
        )

    def update_booking_status(
        self,
        booking_id: int,
        status: BookingStatus,
        confirmed_at: Optional[datetime] = None,
        cancelled_at: Optional[datetime] = None,
        cancellation_reason: Optional[str] = None,
        clear_cancellation: bool = False,
    ) -> None:
        assignments = ["status = ?"]
        params: list[object] = [status.value]
        if clear_cancellation:
            assignments.append("cancelled_at = NULL")
            assignments.append("cancellation_reason = NULL")
        if confirmed_at is not None:
            assignments.append("confirmed_at = ?")
            params.append(to_storage(confirmed_at))
        if cancelled_at is not None:
            assignments.append("cancelled_at = ?")
            params.append(to_storage(cancelled_at))
        if cancellation_reason is not None:
            assignments.append("cancellation_reason = ?")
            params.append(cancellation_reason)
        params.append(booking_id)
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"UPDATE Bookings SET {', '.join(assignments)} WHERE id = ?;",
                tuple(params),
            )
            conn.commit()

    def count_bookings(self) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) AS count FROM Bookings;")
            return int(cursor.fetchone()["count"])
