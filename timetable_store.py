"""SQLite storage for subjects and weekly class schedule entries."""

from __future__ import annotations

import collections
import dataclasses
import json
import sqlite3
from pathlib import Path

from planner_logging import get_logger
from timetable_grid import (
    ScheduleEntry,
    Subject,
    TimetableError,
    day_name,
    parse_hex_color,
    parse_time_to_minutes,
)

log = get_logger(__name__)

DEFAULT_SUBJECT_COLOR = "#3498db"

SCHEDULE_COLUMNS = [
    "id",
    "day_of_week",
    "subject",
    "subject_name",
    "start_time",
    "end_time",
    "location",
    "instructor",
]


class StoreError(TimetableError):
    """Raised when planner data is invalid or cannot be imported or exported."""


def init_db(db_path: Path | str) -> sqlite3.Connection:
    conn = sqlite3.connect(str(db_path))
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS subjects (
            id INTEGER PRIMARY KEY,
            code TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL,
            instructor TEXT,
            credits INTEGER DEFAULT 3,
            color TEXT DEFAULT '#3498db'
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS schedule (
            id INTEGER PRIMARY KEY,
            day_of_week INTEGER NOT NULL,
            subject TEXT NOT NULL,
            subject_name TEXT,
            start_time TEXT NOT NULL,
            end_time TEXT NOT NULL,
            location TEXT,
            instructor TEXT
        )
        """
    )
    conn.execute("CREATE INDEX IF NOT EXISTS idx_schedule_day ON schedule(day_of_week)")
    conn.commit()
    return conn


def row_to_entry(row: tuple) -> ScheduleEntry:
    return ScheduleEntry(
        id=row[0],
        day_of_week=row[1],
        subject_code=row[2] or "",
        subject_display_name=row[3] or "",
        start_time=row[4],
        end_time=row[5],
        location=row[6],
        instructor=row[7],
    )


def get_subject(conn: sqlite3.Connection, code: str) -> Subject | None:
    row = conn.execute(
        "SELECT code, name, color, instructor, credits FROM subjects WHERE code = ?",
        (code,),
    ).fetchone()
    if row is None:
        return None
    return Subject(code=row[0], name=row[1], color=row[2], instructor=row[3], credits=row[4])


def get_subjects(conn: sqlite3.Connection) -> dict[str, Subject]:
    rows = conn.execute(
        "SELECT code, name, color, instructor, credits FROM subjects ORDER BY id"
    ).fetchall()
    subjects: dict[str, Subject] = {}
    for row in rows:
        subjects.setdefault(
            row[0],
            Subject(code=row[0], name=row[1], color=row[2], instructor=row[3], credits=row[4]),
        )
    return subjects


def upsert_subject(
    conn: sqlite3.Connection,
    code: str | None,
    name: str | None = None,
    instructor: str | None = None,
) -> Subject | None:
    """Create the subject for ``code`` or fill in its missing details.

    Returns None when there is no code to key the subject on.
    """
    if not code or not code.strip():
        return None
    code = code.strip()
    existing = get_subject(conn, code)
    if existing is None:
        conn.execute(
            "INSERT INTO subjects (code, name, instructor, color) VALUES (?, ?, ?, ?)",
            (code, name or code, instructor, DEFAULT_SUBJECT_COLOR),
        )
    else:
        if name and name.strip() and existing.name == existing.code:
            conn.execute("UPDATE subjects SET name = ? WHERE code = ?", (name, code))
        if instructor and not existing.instructor:
            conn.execute("UPDATE subjects SET instructor = ? WHERE code = ?", (instructor, code))
    conn.commit()
    return get_subject(conn, code)


def update_subject(
    conn: sqlite3.Connection,
    code: str,
    name: str | None = None,
    color: str | None = None,
) -> Subject:
    code = (code or "").strip()
    if not code:
        raise StoreError("Subject code must not be blank")
    if color and parse_hex_color(color) is None:
        raise StoreError(f"Invalid subject color: {color!r} (expected #RRGGBB or #RGB)")
    if get_subject(conn, code) is None:
        upsert_subject(conn, code, name)
    if name and name.strip():
        conn.execute("UPDATE subjects SET name = ? WHERE code = ?", (name.strip(), code))
    if color:
        conn.execute("UPDATE subjects SET color = ? WHERE code = ?", (color.strip(), code))
    conn.commit()
    return get_subject(conn, code)


def _apply_subject(conn: sqlite3.Connection, entry: ScheduleEntry) -> None:
    subject = upsert_subject(
        conn, entry.subject_code, entry.subject_display_name, entry.instructor
    )
    if subject is None:
        return
    entry.subject_code = subject.code
    entry.subject_display_name = subject.name
    if not entry.instructor or not entry.instructor.strip():
        entry.instructor = subject.instructor


def _entry_values(entry: ScheduleEntry) -> tuple:
    return (
        entry.day_of_week,
        entry.subject_code or "",
        entry.subject_display_name,
        entry.start_time,
        entry.end_time,
        entry.location,
        entry.instructor,
    )


def add_entry(conn: sqlite3.Connection, entry: ScheduleEntry) -> int:
    _apply_subject(conn, entry)
    cursor = conn.execute(
        """
        INSERT INTO schedule (
            day_of_week,
            subject,
            subject_name,
            start_time,
            end_time,
            location,
            instructor
        )
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        _entry_values(entry),
    )
    conn.commit()
    entry.id = cursor.lastrowid
    return entry.id


def update_entry(conn: sqlite3.Connection, entry: ScheduleEntry) -> None:
    _apply_subject(conn, entry)
    conn.execute(
        """
        UPDATE schedule
        SET day_of_week = ?, subject = ?, subject_name = ?, start_time = ?,
            end_time = ?, location = ?, instructor = ?
        WHERE id = ?
        """,
        (*_entry_values(entry), entry.id),
    )
    conn.commit()


def delete_entry(conn: sqlite3.Connection, entry_id: int) -> bool:
    cursor = conn.execute("DELETE FROM schedule WHERE id = ?", (entry_id,))
    conn.commit()
    return cursor.rowcount > 0


def get_entry(conn: sqlite3.Connection, entry_id: int) -> ScheduleEntry | None:
    row = conn.execute(
        f"SELECT {', '.join(SCHEDULE_COLUMNS)} FROM schedule WHERE id = ?",
        (entry_id,),
    ).fetchone()
    return row_to_entry(row) if row else None


def get_all_entries(conn: sqlite3.Connection) -> list[ScheduleEntry]:
    rows = conn.execute(
        f"SELECT {', '.join(SCHEDULE_COLUMNS)} FROM schedule ORDER BY id"
    ).fetchall()
    return [row_to_entry(row) for row in rows]


def start_order(entry: ScheduleEntry) -> tuple:
    start = parse_time_to_minutes(entry.start_time)
    return (start is None, start or 0, entry.id)


def load_entries_by_day(conn: sqlite3.Connection) -> dict[int, list[ScheduleEntry]]:
    """Group entries by day, each day ordered by parsed start time then id.

    This order decides which entry wins a shared slot in the grid, so
    "9:00" and "09:00" must sort the same. Unparseable times go last.
    """
    rows = conn.execute(
        f"""
        SELECT {', '.join(SCHEDULE_COLUMNS)}
        FROM schedule
        ORDER BY day_of_week, id
        """
    ).fetchall()
    entries_by_day: dict[int, list[ScheduleEntry]] = collections.defaultdict(list)
    for row in rows:
        entry = row_to_entry(row)
        entries_by_day[entry.day_of_week].append(entry)
    for day_entries in entries_by_day.values():
        day_entries.sort(key=start_order)
    return entries_by_day


def load_ordered_entries(conn: sqlite3.Connection) -> list[ScheduleEntry]:
    entries_by_day = load_entries_by_day(conn)
    return [entry for day in sorted(entries_by_day) for entry in entries_by_day[day]]


def export_schedule_json(conn: sqlite3.Connection, path: Path) -> int:
    entries = get_all_entries(conn)
    payload = [dataclasses.asdict(entry) for entry in entries]
    try:
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    except OSError as exc:
        raise StoreError(f"Failed to export schedule: {exc}") from exc
    log.info("schedule_exported", path=str(path), count=len(entries))
    return len(entries)


def import_schedule_json(conn: sqlite3.Connection, path: Path) -> int:
    if not path.exists():
        raise StoreError(f"Failed to import schedule: file not found: {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise StoreError(f"Failed to import schedule: {exc}") from exc
    if not isinstance(payload, list):
        raise StoreError("Failed to import schedule: expected a JSON list")

    fields = {item.name for item in dataclasses.fields(ScheduleEntry)}
    count = 0
    for item in payload:
        if not isinstance(item, dict):
            raise StoreError("Failed to import schedule: entries must be objects")
        values = {key: value for key, value in item.items() if key in fields}
        values["id"] = 0
        try:
            entry = ScheduleEntry(**values)
        except TypeError as exc:
            raise StoreError(f"Failed to import schedule: {exc}") from exc
        add_entry(conn, entry)
        count += 1
    log.info("schedule_imported", path=str(path), count=count)
    return count


def entry_hours(entry: ScheduleEntry) -> float:
    start = parse_time_to_minutes(entry.start_time)
    end = parse_time_to_minutes(entry.end_time)
    if start is None or end is None:
        return 0.0
    return (end - start) / 60


def schedule_summary(entries: list[ScheduleEntry]) -> dict:
    day_counts = collections.Counter(entry.day_of_week for entry in entries)
    busiest = "None"
    if day_counts:
        busiest = day_name(day_counts.most_common(1)[0][0])
    return {
        "total_classes": len(entries),
        "total_weekly_hours": sum(entry_hours(entry) for entry in entries),
        "unique_subjects": len({entry.subject_code for entry in entries}),
        "busiest_day": busiest,
    }
