#!/usr/bin/env python3
"""Manage the weekly class schedule, assignments and to-dos in SQLite."""

from __future__ import annotations

import argparse
import datetime as dt
import json
from pathlib import Path

from planner_logging import get_logger, setup_logging
from render_timetable_pdf import render_pdf
from task_store import (
    PRIORITIES,
    TaskItem,
    TodoItem,
    active_todos,
    add_task,
    add_todo,
    delete_task,
    delete_todo,
    export_tasks_json,
    get_all_tasks,
    get_all_todos,
    import_tasks_json,
    init_planner_db,
    mark_task_complete,
    task_statistics,
    tasks_due_on,
    toggle_todo,
    upcoming_tasks,
)
from timetable_grid import DAY_NAMES, ScheduleEntry, TimetableError, day_name, find_conflicts
from timetable_store import (
    add_entry,
    delete_entry,
    export_schedule_json,
    get_all_entries,
    import_schedule_json,
    load_entries_by_day,
    load_ordered_entries,
    schedule_summary,
    update_subject,
)

log = get_logger(__name__)


def parse_day(value: str) -> int:
    if value.isdigit() and 0 <= int(value) <= 6:
        return int(value)
    for idx, name in enumerate(DAY_NAMES):
        if name.lower().startswith(value.lower()) and len(value) >= 2:
            return idx
    raise argparse.ArgumentTypeError(f"Unknown day: {value}")


def parse_date(value: str) -> dt.date:
    try:
        return dt.date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date: {value} (expected YYYY-MM-DD)")


def format_entry(entry: ScheduleEntry) -> str:
    name = entry.subject_display_name or entry.subject_code
    location = f" @ {entry.location}" if entry.location else ""
    return (
        f"[{entry.id}] {day_name(entry.day_of_week)} "
        f"{entry.start_time}-{entry.end_time}: {name}{location}"
    )


def format_task(task: TaskItem, today: dt.date) -> str:
    if task.is_completed:
        status = "done"
    elif task.is_overdue(today):
        status = "overdue"
    else:
        status = f"{task.days_remaining(today)}d left"
    subject = f" [{task.subject}]" if task.subject else ""
    return f"[{task.id}] {task.due_date.isoformat()} {task.priority}: {task.title}{subject} ({status})"


def format_todo(todo: TodoItem) -> str:
    mark = "x" if todo.is_completed else " "
    return f"[{todo.id}] [{mark}] {todo.title} ({todo.category})"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Manage a weekly class schedule, assignments and to-dos."
    )
    parser.add_argument("--db", type=Path, default=Path("planner.db"))
    parser.add_argument("--log-level", default="WARNING")
    parser.add_argument("--log-json", action="store_true", help="Emit JSON logs")
    parser.add_argument(
        "--today", type=parse_date, default=None, help="Reference date, YYYY-MM-DD"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    add_parser = subparsers.add_parser("add", help="Add a class to the schedule")
    add_parser.add_argument("day", type=parse_day, help="Day name or number (0=Sunday)")
    add_parser.add_argument("start", help="Start time HH:MM")
    add_parser.add_argument("end", help="End time HH:MM")
    add_parser.add_argument("subject", help="Subject code")
    add_parser.add_argument("--name", default="", help="Subject display name")
    add_parser.add_argument("--location")
    add_parser.add_argument("--instructor")

    subparsers.add_parser("list", help="List scheduled classes")

    delete_parser = subparsers.add_parser("delete", help="Delete a class by id")
    delete_parser.add_argument("id", type=int)

    subject_parser = subparsers.add_parser("subject", help="Set subject name or color")
    subject_parser.add_argument("code")
    subject_parser.add_argument("--name")
    subject_parser.add_argument("--color", help="Hex color, e.g. #3498db")

    import_parser = subparsers.add_parser("import", help="Import schedule or task JSON")
    import_parser.add_argument("path", type=Path)
    import_parser.add_argument("--tasks", action="store_true", help="File holds assignments")

    export_parser = subparsers.add_parser("export", help="Export schedule or task JSON")
    export_parser.add_argument("path", type=Path)
    export_parser.add_argument("--tasks", action="store_true", help="Export assignments")

    subparsers.add_parser("summary", help="Show schedule and assignment statistics")

    render_parser = subparsers.add_parser("render", help="Render timetable PDF")
    render_parser.add_argument("--out", type=Path, default=Path("output-pdf/timetable.pdf"))
    render_parser.add_argument("--config", type=Path, default=Path("grid.json"))
    render_parser.add_argument("--page-size", default="A4")

    task_parser = subparsers.add_parser("task", help="Manage assignments")
    task_commands = task_parser.add_subparsers(dest="task_command", required=True)
    task_add = task_commands.add_parser("add", help="Add an assignment")
    task_add.add_argument("title")
    task_add.add_argument("due", type=parse_date, help="Due date YYYY-MM-DD")
    task_add.add_argument("--priority", default="Medium", choices=PRIORITIES)
    task_add.add_argument("--subject")
    task_add.add_argument("--description")
    task_list = task_commands.add_parser("list", help="List assignments")
    task_list.add_argument(
        "--filter", choices=["all", "upcoming", "overdue", "completed"], default="all"
    )
    task_done = task_commands.add_parser("done", help="Mark an assignment complete")
    task_done.add_argument("id", type=int)
    task_delete = task_commands.add_parser("delete", help="Delete an assignment")
    task_delete.add_argument("id", type=int)

    todo_parser = subparsers.add_parser("todo", help="Manage to-dos")
    todo_commands = todo_parser.add_subparsers(dest="todo_command", required=True)
    todo_add = todo_commands.add_parser("add", help="Add a to-do")
    todo_add.add_argument("title")
    todo_add.add_argument("--category", default="Personal")
    todo_commands.add_parser("list", help="List to-dos, open ones first")
    todo_toggle = todo_commands.add_parser("toggle", help="Toggle a to-do done/open")
    todo_toggle.add_argument("id", type=int)
    todo_delete = todo_commands.add_parser("delete", help="Delete a to-do")
    todo_delete.add_argument("id", type=int)

    subparsers.add_parser("today", help="Show today's classes, due assignments and to-dos")
    return parser


def run_task(conn, args: argparse.Namespace, today: dt.date) -> None:
    if args.task_command == "add":
        task = TaskItem(
            id=0,
            title=args.title,
            due_date=args.due,
            priority=args.priority,
            subject=args.subject,
            description=args.description,
        )
        task_id = add_task(conn, task)
        log.info("task_added", task_id=task_id)
        print(f"Added assignment {task_id}")
    elif args.task_command == "list":
        tasks = get_all_tasks(conn)
        if args.filter == "upcoming":
            tasks = upcoming_tasks(tasks, today)
        elif args.filter == "overdue":
            tasks = [task for task in tasks if task.is_overdue(today)]
        elif args.filter == "completed":
            tasks = [task for task in tasks if task.is_completed]
        for task in tasks:
            print(format_task(task, today))
    elif args.task_command == "done":
        if not mark_task_complete(conn, args.id):
            raise SystemExit(f"No assignment with id {args.id}")
        print(f"Completed assignment {args.id}")
    elif args.task_command == "delete":
        if not delete_task(conn, args.id):
            raise SystemExit(f"No assignment with id {args.id}")
        print(f"Deleted assignment {args.id}")


def run_todo(conn, args: argparse.Namespace) -> None:
    if args.todo_command == "add":
        todo_id = add_todo(conn, TodoItem(id=0, title=args.title, category=args.category))
        print(f"Added to-do {todo_id}")
    elif args.todo_command == "list":
        for todo in get_all_todos(conn):
            print(format_todo(todo))
    elif args.todo_command == "toggle":
        if not toggle_todo(conn, args.id):
            raise SystemExit(f"No to-do with id {args.id}")
        print(f"Toggled to-do {args.id}")
    elif args.todo_command == "delete":
        if not delete_todo(conn, args.id):
            raise SystemExit(f"No to-do with id {args.id}")
        print(f"Deleted to-do {args.id}")


def print_today(conn, today: dt.date) -> None:
    weekday = (today.weekday() + 1) % 7
    print(f"{day_name(weekday)} {today.isoformat()}")
    print("Classes:")
    classes = load_entries_by_day(conn).get(weekday, [])
    for entry in classes:
        print(f"  {format_entry(entry)}")
    if not classes:
        print("  No classes today")
    print("Due today:")
    due = tasks_due_on(get_all_tasks(conn), today)
    for task in due:
        print(f"  {format_task(task, today)}")
    if not due:
        print("  No assignments due today")
    print("To-dos:")
    todos = active_todos(conn, limit=5)
    for todo in todos:
        print(f"  {format_todo(todo)}")
    if not todos:
        print("  No active to-dos")


def run(args: argparse.Namespace) -> None:
    if args.command == "render":
        output = render_pdf(args.db, args.out, args.config, args.page_size)
        print(f"Rendered timetable to {output}")
        return

    today = args.today or dt.date.today()
    conn = init_planner_db(args.db)
    try:
        if args.command == "add":
            entry = ScheduleEntry(
                id=0,
                day_of_week=args.day,
                subject_code=args.subject,
                subject_display_name=args.name,
                start_time=args.start,
                end_time=args.end,
                location=args.location,
                instructor=args.instructor,
            )
            entry_id = add_entry(conn, entry)
            log.info("entry_added", entry_id=entry_id)
            print(f"Added class {entry_id}")
        elif args.command == "list":
            for entry in load_ordered_entries(conn):
                print(format_entry(entry))
        elif args.command == "delete":
            if not delete_entry(conn, args.id):
                raise SystemExit(f"No class with id {args.id}")
            print(f"Deleted class {args.id}")
        elif args.command == "subject":
            subject = update_subject(conn, args.code, args.name, args.color)
            print(f"{subject.code}: {subject.name} ({subject.color})")
        elif args.command == "import":
            if args.tasks:
                count = import_tasks_json(conn, args.path)
                print(f"Imported {count} assignments from {args.path}")
            else:
                count = import_schedule_json(conn, args.path)
                print(f"Imported {count} classes from {args.path}")
        elif args.command == "export":
            if args.tasks:
                count = export_tasks_json(conn, args.path)
                print(f"Exported {count} assignments to {args.path}")
            else:
                count = export_schedule_json(conn, args.path)
                print(f"Exported {count} classes to {args.path}")
        elif args.command == "summary":
            entries = get_all_entries(conn)
            summary = schedule_summary(entries)
            summary["conflicts"] = len(find_conflicts(entries))
            summary["tasks"] = task_statistics(get_all_tasks(conn), today)
            print(json.dumps(summary, indent=2))
        elif args.command == "task":
            run_task(conn, args, today)
        elif args.command == "todo":
            run_todo(conn, args)
        elif args.command == "today":
            print_today(conn, today)
    finally:
        conn.close()


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(json_output=args.log_json, log_level=args.log_level)
    try:
        run(args)
    except TimetableError as exc:
        raise SystemExit(str(exc))


if __name__ == "__main__":
    main()
