"""SQLite storage for assignments (tasks with deadlines) and personal to-dos."""

from __future__ import annotations

import collections
import dataclasses
import datetime as dt
import json
import sqlite3
from pathlib import Path

from planner_logging import get_logger
from timetable_store import StoreError, init_db

log = get_logger(__name__)

PRIORITIES = ["High", "Medium", "Low"]
PRIORITY_RANK = {name: i for i, name in enumerate(PRIORITIES)}
DEFAULT_CATEGORY = "Personal"

TASK_COLUMNS = ["id", "title", "due_date", "priority", "is_completed", "subject", "description"]
TODO_COLUMNS = ["id", "title", "is_completed", "category", "created_date"]


@dataclasses.dataclass
class TaskItem:
    id: int
    title: str
    due_date: dt.date
    priority: str = "Medium"
    is_completed: bool = False
    subject: str | None = None
    description: str | None = None

    def is_overdue(self, today: dt.date) -> bool:
        return not self.is_completed and self.due_date < today

    def days_remaining(self, today: dt.date) -> int:
        return (self.due_date - today).days


@dataclasses.dataclass
class TodoItem:
    id: int
    title: str
    is_completed: bool = False
    category: str = DEFAULT_CATEGORY
    created_date: dt.datetime = dataclasses.field(default_factory=dt.datetime.now)


def init_task_tables(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS tasks (
            id INTEGER PRIMARY KEY,
            title TEXT NOT NULL,
            due_date TEXT NOT NULL,
            priority TEXT NOT NULL DEFAULT 'Medium',
            is_completed INTEGER NOT NULL DEFAULT 0,
            subject TEXT,
            description TEXT
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS todos (
            id INTEGER PRIMARY KEY,
            title TEXT NOT NULL,
            is_completed INTEGER NOT NULL DEFAULT 0,
            category TEXT DEFAULT 'Personal',
            created_date TEXT NOT NULL
        )
        """
    )
    conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_due_date ON tasks(due_date)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_todos_completed ON todos(is_completed)")
    conn.commit()


def init_planner_db(db_path: Path | str) -> sqlite3.Connection:
    conn = init_db(db_path)
    init_task_tables(conn)
    return conn


def normalize_priority(value: str | None) -> str:
    if not value:
        return "Medium"
    for name in PRIORITIES:
        if name.lower() == value.strip().lower():
            return name
    raise StoreError(f"Invalid priority: {value!r} (expected High, Medium or Low)")


def parse_due_date(value) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    try:
        return dt.date.fromisoformat(str(value).strip()[:10])
    except ValueError as exc:
        raise StoreError(f"Invalid due date: {value!r} (expected YYYY-MM-DD)") from exc


def row_to_task(row: tuple) -> TaskItem:
    return TaskItem(
        id=row[0],
        title=row[1],
        due_date=dt.date.fromisoformat(row[2]),
        priority=row[3],
        is_completed=bool(row[4]),
        subject=row[5],
        description=row[6],
    )


def row_to_todo(row: tuple) -> TodoItem:
    return TodoItem(
        id=row[0],
        title=row[1],
        is_completed=bool(row[2]),
        category=row[3] or DEFAULT_CATEGORY,
        created_date=dt.datetime.fromisoformat(row[4]),
    )


def _task_values(task: TaskItem) -> tuple:
    if not task.title or not task.title.strip():
        raise StoreError("Task title must not be blank")
    return (
        task.title.strip(),
        parse_due_date(task.due_date).isoformat(),
        normalize_priority(task.priority),
        int(bool(task.is_completed)),
        task.subject,
        task.description,
    )


def add_task(conn: sqlite3.Connection, task: TaskItem) -> int:
    cursor = conn.execute(
        """
        INSERT INTO tasks (title, due_date, priority, is_completed, subject, description)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        _task_values(task),
    )
    conn.commit()
    task.id = cursor.lastrowid
    return task.id


def update_task(conn: sqlite3.Connection, task: TaskItem) -> None:
    conn.execute(
        """
        UPDATE tasks
        SET title = ?, due_date = ?, priority = ?, is_completed = ?,
            subject = ?, description = ?
        WHERE id = ?
        """,
        (*_task_values(task), task.id),
    )
    conn.commit()


def delete_task(conn: sqlite3.Connection, task_id: int) -> bool:
    cursor = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
    conn.commit()
    return cursor.rowcount > 0


def mark_task_complete(conn: sqlite3.Connection, task_id: int) -> bool:
    cursor = conn.execute("UPDATE tasks SET is_completed = 1 WHERE id = ?", (task_id,))
    conn.commit()
    return cursor.rowcount > 0


def get_task(conn: sqlite3.Connection, task_id: int) -> TaskItem | None:
    row = conn.execute(
        f"SELECT {', '.join(TASK_COLUMNS)} FROM tasks WHERE id = ?", (task_id,)
    ).fetchone()
    return row_to_task(row) if row else None


def get_all_tasks(conn: sqlite3.Connection) -> list[TaskItem]:
    rows = conn.execute(
        f"SELECT {', '.join(TASK_COLUMNS)} FROM tasks ORDER BY due_date, id"
    ).fetchall()
    return [row_to_task(row) for row in rows]


def priority_rank(task: TaskItem) -> int:
    return PRIORITY_RANK.get(task.priority, len(PRIORITIES))


def tasks_due_on(tasks: list[TaskItem], day: dt.date) -> list[TaskItem]:
    due = [task for task in tasks if not task.is_completed and task.due_date == day]
    return sorted(due, key=priority_rank)


def upcoming_tasks(tasks: list[TaskItem], today: dt.date, days: int = 7) -> list[TaskItem]:
    end = today + dt.timedelta(days=days)
    upcoming = [
        task for task in tasks if not task.is_completed and today <= task.due_date <= end
    ]
    return sorted(upcoming, key=lambda task: (task.due_date, priority_rank(task)))


def overdue_tasks(tasks: list[TaskItem], today: dt.date) -> list[TaskItem]:
    return sorted(
        (task for task in tasks if task.is_overdue(today)),
        key=lambda task: task.due_date,
    )


def task_statistics(tasks: list[TaskItem], today: dt.date) -> dict:
    completed = sum(1 for task in tasks if task.is_completed)
    weeks = {task.due_date.isocalendar()[:2] for task in tasks}
    return {
        "total_tasks": len(tasks),
        "completed_tasks": completed,
        "pending_tasks": len(tasks) - completed,
        "overdue_tasks": sum(1 for task in tasks if task.is_overdue(today)),
        "completion_rate": completed / len(tasks) * 100 if tasks else 0.0,
        "by_priority": dict(collections.Counter(task.priority for task in tasks)),
        "average_tasks_per_week": len(tasks) / len(weeks) if weeks else 0.0,
    }


def export_tasks_json(conn: sqlite3.Connection, path: Path) -> int:
    tasks = get_all_tasks(conn)
    payload = []
    for task in tasks:
        item = dataclasses.asdict(task)
        item["due_date"] = task.due_date.isoformat()
        payload.append(item)
    try:
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    except OSError as exc:
        raise StoreError(f"Failed to export tasks: {exc}") from exc
    log.info("tasks_exported", path=str(path), count=len(tasks))
    return len(tasks)


def import_tasks_json(conn: sqlite3.Connection, path: Path) -> int:
    if not path.exists():
        raise StoreError(f"Failed to import tasks: file not found: {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise StoreError(f"Failed to import tasks: {exc}") from exc
    if not isinstance(payload, list):
        raise StoreError("Failed to import tasks: expected a JSON list")

    fields = {item.name for item in dataclasses.fields(TaskItem)}
    tasks = []
    for item in payload:
        if not isinstance(item, dict):
            raise StoreError("Failed to import tasks: entries must be objects")
        values = {key: value for key, value in item.items() if key in fields}
        values["id"] = 0
        try:
            task = TaskItem(**values)
        except TypeError as exc:
            raise StoreError(f"Failed to import tasks: {exc}") from exc
        _task_values(task)
        tasks.append(task)
    for task in tasks:
        add_task(conn, task)
    log.info("tasks_imported", path=str(path), count=len(tasks))
    return len(tasks)


def add_todo(conn: sqlite3.Connection, todo: TodoItem) -> int:
    if not todo.title or not todo.title.strip():
        raise StoreError("To-do title must not be blank")
    cursor = conn.execute(
        "INSERT INTO todos (title, is_completed, category, created_date) VALUES (?, ?, ?, ?)",
        (
            todo.title.strip(),
            int(bool(todo.is_completed)),
            todo.category or DEFAULT_CATEGORY,
            todo.created_date.isoformat(sep=" ", timespec="seconds"),
        ),
    )
    conn.commit()
    todo.id = cursor.lastrowid
    return todo.id


def update_todo(conn: sqlite3.Connection, todo: TodoItem) -> None:
    conn.execute(
        "UPDATE todos SET title = ?, is_completed = ?, category = ? WHERE id = ?",
        (todo.title, int(bool(todo.is_completed)), todo.category or DEFAULT_CATEGORY, todo.id),
    )
    conn.commit()


def delete_todo(conn: sqlite3.Connection, todo_id: int) -> bool:
    cursor = conn.execute("DELETE FROM todos WHERE id = ?", (todo_id,))
    conn.commit()
    return cursor.rowcount > 0


def toggle_todo(conn: sqlite3.Connection, todo_id: int) -> bool:
    cursor = conn.execute(
        "UPDATE todos SET is_completed = NOT is_completed WHERE id = ?", (todo_id,)
    )
    conn.commit()
    return cursor.rowcount > 0


def get_todo(conn: sqlite3.Connection, todo_id: int) -> TodoItem | None:
    row = conn.execute(
        f"SELECT {', '.join(TODO_COLUMNS)} FROM todos WHERE id = ?", (todo_id,)
    ).fetchone()
    return row_to_todo(row) if row else None


def get_all_todos(conn: sqlite3.Connection) -> list[TodoItem]:
    rows = conn.execute(
        f"""
        SELECT {', '.join(TODO_COLUMNS)}
        FROM todos
        ORDER BY is_completed, created_date DESC, id DESC
        """
    ).fetchall()
    return [row_to_todo(row) for row in rows]


def active_todos(conn: sqlite3.Connection, limit: int | None = None) -> list[TodoItem]:
    active = [todo for todo in get_all_todos(conn) if not todo.is_completed]
    return active[:limit] if limit is not None else active
