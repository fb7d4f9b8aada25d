import datetime as dt
import json

import pytest

from task_store import (
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
    get_task,
    get_todo,
    import_tasks_json,
    init_planner_db,
    mark_task_complete,
    overdue_tasks,
    task_statistics,
    tasks_due_on,
    toggle_todo,
    update_task,
    upcoming_tasks,
)
from timetable_store import StoreError

TODAY = dt.date(2024, 3, 13)


@pytest.fixture
def conn(tmp_path):
    connection = init_planner_db(tmp_path / "planner.db")
    yield connection
    connection.close()


def make_task(title: str, due: dt.date, priority: str = "Medium", **kwargs) -> TaskItem:
    return TaskItem(id=0, title=title, due_date=due, priority=priority, **kwargs)


def days(n: int) -> dt.date:
    return TODAY + dt.timedelta(days=n)


def test_add_update_delete_task(conn) -> None:
    task_id = add_task(conn, make_task("Lab report", days(2), "high", subject="CHEM"))
    stored = get_task(conn, task_id)
    assert stored.priority == "High"
    assert stored.due_date == days(2)
    assert stored.subject == "CHEM"

    stored.title = "Lab report v2"
    stored.due_date = "2024-03-20"
    update_task(conn, stored)
    assert get_task(conn, task_id).title == "Lab report v2"
    assert get_task(conn, task_id).due_date == dt.date(2024, 3, 20)

    assert mark_task_complete(conn, task_id) is True
    assert get_task(conn, task_id).is_completed is True
    assert delete_task(conn, task_id) is True
    assert delete_task(conn, task_id) is False
    assert mark_task_complete(conn, task_id) is False
    assert get_task(conn, task_id) is None


def test_task_validation(conn) -> None:
    with pytest.raises(StoreError):
        add_task(conn, make_task("  ", days(1)))
    with pytest.raises(StoreError):
        add_task(conn, make_task("Essay", days(1), priority="Urgent"))
    with pytest.raises(StoreError):
        add_task(conn, make_task("Essay", "next week"))
    assert get_all_tasks(conn) == []


def test_overdue_and_days_remaining() -> None:
    late = make_task("Late", days(-1))
    done = make_task("Done", days(-1), is_completed=True)
    assert late.is_overdue(TODAY) is True
    assert done.is_overdue(TODAY) is False
    assert make_task("Soon", days(3)).days_remaining(TODAY) == 3


def test_due_today_ordered_by_priority() -> None:
    tasks = [
        make_task("Low", TODAY, "Low"),
        make_task("High", TODAY, "High"),
        make_task("Finished", TODAY, "High", is_completed=True),
        make_task("Tomorrow", days(1), "High"),
    ]
    assert [task.title for task in tasks_due_on(tasks, TODAY)] == ["High", "Low"]


def test_upcoming_and_overdue_views() -> None:
    tasks = [
        make_task("Later low", days(2), "Low"),
        make_task("Later high", days(2), "High"),
        make_task("Next", days(1)),
        make_task("Far", days(30)),
        make_task("Past", days(-2)),
    ]
    assert [task.title for task in upcoming_tasks(tasks, TODAY)] == ["Next", "Later high", "Later low"]
    assert [task.title for task in overdue_tasks(tasks, TODAY)] == ["Past"]


def test_task_statistics() -> None:
    tasks = [
        make_task("A", days(-3), "High", is_completed=True),
        make_task("B", days(-1), "High"),
        make_task("C", days(1), "Low"),
        make_task("D", days(2)),
    ]
    stats = task_statistics(tasks, TODAY)
    assert stats["total_tasks"] == 4
    assert stats["completed_tasks"] == 1
    assert stats["pending_tasks"] == 3
    assert stats["overdue_tasks"] == 1
    assert stats["completion_rate"] == pytest.approx(25.0)
    assert stats["by_priority"] == {"High": 2, "Low": 1, "Medium": 1}


def test_statistics_without_tasks() -> None:
    stats = task_statistics([], TODAY)
    assert stats["completion_rate"] == 0.0
    assert stats["by_priority"] == {}
    assert stats["average_tasks_per_week"] == 0.0


def test_export_import_resets_ids(conn, tmp_path, log_events) -> None:
    add_task(conn, make_task("Essay", days(4), "Low", description="2000 words"))
    add_task(conn, make_task("Quiz prep", days(1), "High", is_completed=True))
    path = tmp_path / "tasks.json"
    assert export_tasks_json(conn, path) == 2
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload[0]["title"] == "Quiz prep"
    assert payload[0]["due_date"] == days(1).isoformat()

    other = init_planner_db(tmp_path / "other.db")
    try:
        add_task(other, make_task("Existing", days(9)))
        assert import_tasks_json(other, path) == 2
        titles = {task.title: task for task in get_all_tasks(other)}
        assert set(titles) == {"Existing", "Essay", "Quiz prep"}
        assert titles["Quiz prep"].is_completed is True
        assert titles["Essay"].description == "2000 words"
    finally:
        other.close()
    assert {"event": "tasks_imported", "log_level": "info", "path": str(path), "count": 2} in log_events


def test_import_tasks_rejects_bad_files(conn, tmp_path) -> None:
    with pytest.raises(StoreError):
        import_tasks_json(conn, tmp_path / "missing.json")

    not_list = tmp_path / "object.json"
    not_list.write_text(json.dumps({"title": "x"}), encoding="utf-8")
    with pytest.raises(StoreError):
        import_tasks_json(conn, not_list)

    bad_priority = tmp_path / "priority.json"
    bad_priority.write_text(
        json.dumps([{"title": "ok", "due_date": "2024-03-14"}, {"title": "bad", "due_date": "2024-03-14", "priority": "Top"}]),
        encoding="utf-8",
    )
    with pytest.raises(StoreError):
        import_tasks_json(conn, bad_priority)
    assert get_all_tasks(conn) == []


def test_todos_open_first_newest_first(conn) -> None:
    older = add_todo(conn, TodoItem(id=0, title="Buy notebook", created_date=dt.datetime(2024, 3, 1, 9, 0)))
    newer = add_todo(conn, TodoItem(id=0, title="Call lab", category="Study", created_date=dt.datetime(2024, 3, 2, 9, 0)))
    finished = add_todo(conn, TodoItem(id=0, title="Pay fees", created_date=dt.datetime(2024, 3, 3, 9, 0)))
    assert toggle_todo(conn, finished) is True

    assert [todo.id for todo in get_all_todos(conn)] == [newer, older, finished]
    assert [todo.id for todo in active_todos(conn, limit=1)] == [newer]
    assert get_todo(conn, newer).category == "Study"
    assert get_todo(conn, older).category == "Personal"

    assert toggle_todo(conn, finished) is True
    assert get_todo(conn, finished).is_completed is False
    assert delete_todo(conn, older) is True
    assert toggle_todo(conn, older) is False
    assert len(active_todos(conn)) == 2


def test_blank_todo_rejected(conn) -> None:
    with pytest.raises(StoreError):
        add_todo(conn, TodoItem(id=0, title=" "))
