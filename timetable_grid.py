"""Bucket weekly class schedules into an hourly (day, slot) grid."""

from __future__ import annotations

import collections
import re
from dataclasses import dataclass, field

from planner_logging import get_logger

log = get_logger(__name__)

DAY_NAMES = [
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
]
DISPLAY_DAYS = (1, 2, 3, 4, 5, 6)
START_HOUR = 8
END_HOUR = 18
SLOT_MINUTES = 60
DEFAULT_COLOR = (173, 216, 230)
TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")
HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6}|[0-9a-fA-F]{3})$")


class TimetableError(Exception):
    """Base exception for timetable errors."""


class ContractViolation(TimetableError):
    """Raised when a caller passes no data where a collection is required."""


@dataclass
class Subject:
    code: str
    name: str
    color: str | None = None
    instructor: str | None = None
    credits: int = 3


@dataclass
class ScheduleEntry:
    id: int
    day_of_week: int
    subject_code: str = ""
    subject_display_name: str = ""
    start_time: str = "09:00"
    end_time: str = "10:00"
    location: str | None = None
    instructor: str | None = None


@dataclass(frozen=True)
class CellOccupation:
    day: int
    slot: int
    entry: ScheduleEntry
    subject: Subject | None
    start_fraction: float
    end_fraction: float
    show_label: bool
    display_text: str
    color: tuple[int, int, int] = DEFAULT_COLOR
    hidden_entry_ids: tuple[int, ...] = field(default_factory=tuple)


@dataclass
class _TimedEntry:
    entry: ScheduleEntry
    start_min: float
    end_min: float


def parse_time_to_minutes(value: str | None) -> float | None:
    if not value:
        return None
    match = TIME_RE.match(str(value).strip())
    if not match:
        return None
    hour = int(match.group(1))
    minute = int(match.group(2))
    second = int(match.group(3) or 0)
    if hour > 23 or minute > 59 or second > 59:
        return None
    minutes: float = hour * 60 + minute
    if second:
        minutes += second / 60
    return minutes


def day_name(day: int) -> str:
    return DAY_NAMES[day] if 0 <= day < len(DAY_NAMES) else str(day)


def minutes_to_label(minutes: float) -> str:
    hour = int(minutes) // 60
    minute = int(minutes) % 60
    return f"{hour:02d}:{minute:02d}"


def parse_hex_color(value: str | None) -> tuple[int, int, int] | None:
    if not value:
        return None
    match = HEX_RE.match(str(value).strip())
    if not match:
        return None
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(char * 2 for char in digits)
    return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


def resolve_color(value: str | None) -> tuple[int, int, int]:
    return parse_hex_color(value) or DEFAULT_COLOR


def time_slots(
    start_hour: int = START_HOUR,
    end_hour: int = END_HOUR,
    slot_minutes: int = SLOT_MINUTES,
) -> list[int]:
    return list(range(start_hour * 60, end_hour * 60, slot_minutes))


def resolve_display_name(entry: ScheduleEntry, subject: Subject | None) -> str:
    if entry.subject_display_name and entry.subject_display_name.strip():
        return entry.subject_display_name
    if subject is not None and subject.name:
        return subject.name
    return entry.subject_code or ""


def build_display_text(name: str, location: str | None) -> str:
    if location and location.strip():
        return f"{name}\n{location}"
    return name


def group_by_day(entries: list[ScheduleEntry]) -> dict[int, list[_TimedEntry]]:
    """Parse entry times and group them by day, keeping caller order.

    Entries whose start or end time cannot be parsed are dropped.
    """
    grouped: dict[int, list[_TimedEntry]] = collections.defaultdict(list)
    for entry in entries:
        start_min = parse_time_to_minutes(entry.start_time)
        end_min = parse_time_to_minutes(entry.end_time)
        if start_min is None or end_min is None:
            log.debug(
                "skipping_unparseable_entry",
                entry_id=entry.id,
                start_time=entry.start_time,
                end_time=entry.end_time,
            )
            continue
        grouped[entry.day_of_week].append(_TimedEntry(entry, start_min, end_min))
    return grouped


def intervals_overlap(left: _TimedEntry, right: _TimedEntry) -> bool:
    return left.start_min < right.end_min and right.start_min < left.end_min


def find_conflicts(entries: list[ScheduleEntry]) -> list[tuple[int, int]]:
    if entries is None:
        raise ContractViolation("entries must not be None")
    grouped = group_by_day(entries)
    conflicts: list[tuple[int, int]] = []
    for day in sorted(grouped):
        day_entries = grouped[day]
        for idx, left in enumerate(day_entries):
            for right in day_entries[idx + 1 :]:
                if intervals_overlap(left, right):
                    conflicts.append((left.entry.id, right.entry.id))
    return conflicts


def bucketize(
    entries: list[ScheduleEntry],
    subjects: dict[str, Subject],
    *,
    start_hour: int = START_HOUR,
    end_hour: int = END_HOUR,
    slot_minutes: int = SLOT_MINUTES,
    days: tuple[int, ...] = DISPLAY_DAYS,
) -> dict[tuple[int, int], CellOccupation | None]:
    """Map schedule entries onto the (day, slot) grid.

    Every displayed day and slot gets exactly one key. A cell holds the
    first entry of its day (in the order given) whose interval intersects
    the slot, or None. Later entries that also intersect are listed in
    ``hidden_entry_ids`` but never drawn.
    """
    if entries is None:
        raise ContractViolation("entries must not be None")
    if subjects is None:
        raise ContractViolation("subjects must not be None")

    grouped = group_by_day(entries)
    grid: dict[tuple[int, int], CellOccupation | None] = {}
    hidden_cells = 0

    for slot in time_slots(start_hour, end_hour, slot_minutes):
        slot_end = slot + slot_minutes
        for day in days:
            matches = [
                timed
                for timed in grouped.get(day, [])
                if timed.start_min < slot_end and timed.end_min > slot
            ]
            if not matches:
                grid[(day, slot)] = None
                continue

            match = matches[0]
            entry = match.entry
            overlap_start = max(match.start_min, slot)
            overlap_end = min(match.end_min, slot_end)
            start_fraction = min(1.0, max(0.0, (overlap_start - slot) / slot_minutes))
            end_fraction = min(1.0, max(0.0, (overlap_end - slot) / slot_minutes))

            subject = None
            if entry.subject_code and entry.subject_code.strip():
                subject = subjects.get(entry.subject_code)
            name = resolve_display_name(entry, subject)
            hidden = tuple(other.entry.id for other in matches[1:])
            if hidden:
                hidden_cells += 1

            grid[(day, slot)] = CellOccupation(
                day=day,
                slot=slot,
                entry=entry,
                subject=subject,
                start_fraction=start_fraction,
                end_fraction=end_fraction,
                show_label=slot <= match.start_min < slot_end,
                display_text=build_display_text(name, entry.location),
                color=resolve_color(subject.color if subject else None),
                hidden_entry_ids=hidden,
            )

    if hidden_cells:
        log.info("overlapping_entries_hidden", cells=hidden_cells)
    return grid
