#!/usr/bin/env python3
"""List classes that overlap on the same day and would be hidden in the timetable."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from timetable_grid import day_name, find_conflicts
from timetable_store import get_entry, init_db, load_ordered_entries


def describe(entry) -> str:
    name = entry.subject_display_name or entry.subject_code or "(unnamed)"
    return f"{name} {entry.start_time}-{entry.end_time} (id {entry.id})"


def conflict_rows(conn) -> tuple[int, list[dict]]:
    entries = load_ordered_entries(conn)
    rows = []
    for first_id, second_id in find_conflicts(entries):
        first = get_entry(conn, first_id)
        second = get_entry(conn, second_id)
        rows.append(
            {
                "day": day_name(first.day_of_week),
                "first": describe(first),
                "second": describe(second),
            }
        )
    return len(entries), rows


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description=(
            "Report classes on the same day whose times overlap. Where they share an "
            "hour, only the earlier-listed class is drawn in the weekly grid."
        )
    )
    parser.add_argument("--db", type=Path, default=Path("planner.db"))
    parser.add_argument("--json", action="store_true", help="Print JSON instead of text")
    args = parser.parse_args(argv)

    if not args.db.exists():
        raise SystemExit(f"Input DB not found: {args.db}")

    conn = init_db(args.db)
    try:
        checked, rows = conflict_rows(conn)
    finally:
        conn.close()

    if args.json:
        print(json.dumps(rows, indent=2))
        return

    print(f"Classes checked: {checked}")
    print(f"Overlapping pairs: {len(rows)}")
    for row in rows:
        print(f"  {row['day']}: {row['first']} overlaps {row['second']}")


if __name__ == "__main__":
    main()
