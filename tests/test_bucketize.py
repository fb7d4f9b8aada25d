import pytest

from timetable_grid import (
    DEFAULT_COLOR,
    ContractViolation,
    ScheduleEntry,
    Subject,
    bucketize,
    minutes_to_label,
    parse_hex_color,
    parse_time_to_minutes,
    resolve_color,
    time_slots,
)


def make_entry(entry_id: int = 1, start: str = "09:00", end: str = "10:30", **kwargs) -> ScheduleEntry:
    values = {
        "id": entry_id,
        "day_of_week": 2,
        "subject_code": "MATH101",
        "start_time": start,
        "end_time": end,
    }
    values.update(kwargs)
    return ScheduleEntry(**values)


def occupied(grid: dict) -> dict:
    return {key: cell for key, cell in grid.items() if cell is not None}


def test_every_day_and_slot_present() -> None:
    grid = bucketize([make_entry()], {})
    assert len(grid) == 60
    assert set(grid) == {(day, slot) for day in range(1, 7) for slot in time_slots()}


def test_empty_input_gives_empty_grid() -> None:
    grid = bucketize([], {})
    assert len(grid) == 60
    assert all(cell is None for cell in grid.values())


def test_partial_hour_fractions() -> None:
    grid = occupied(bucketize([make_entry()], {}))
    assert set(grid) == {(2, 9 * 60), (2, 10 * 60)}
    first = grid[(2, 9 * 60)]
    second = grid[(2, 10 * 60)]
    assert (first.start_fraction, first.end_fraction) == (0.0, 1.0)
    assert (second.start_fraction, second.end_fraction) == (0.0, 0.5)


def test_label_only_in_starting_slot() -> None:
    grid = occupied(bucketize([make_entry()], {}))
    assert grid[(2, 9 * 60)].show_label is True
    assert grid[(2, 10 * 60)].show_label is False


def test_mid_hour_start() -> None:
    grid = occupied(bucketize([make_entry(start="09:15", end="09:45")], {}))
    cell = grid[(2, 9 * 60)]
    assert cell.start_fraction == pytest.approx(0.25)
    assert cell.end_fraction == pytest.approx(0.75)
    assert cell.show_label is True


def test_entry_clipped_to_display_window() -> None:
    grid = occupied(bucketize([make_entry(start="07:00", end="08:30")], {}))
    assert set(grid) == {(2, 8 * 60)}
    cell = grid[(2, 8 * 60)]
    assert (cell.start_fraction, cell.end_fraction) == (0.0, 0.5)
    assert cell.show_label is False


def test_sunday_not_displayed() -> None:
    grid = bucketize([make_entry(day_of_week=0)], {})
    assert all(cell is None for cell in grid.values())


def test_malformed_time_is_skipped() -> None:
    grid = bucketize([make_entry(start="bad")], {})
    assert all(cell is None for cell in grid.values())


def test_reversed_interval_occupies_nothing() -> None:
    grid = bucketize([make_entry(start="11:00", end="09:00")], {})
    assert all(cell is None for cell in grid.values())


def test_display_name_fallbacks() -> None:
    subjects = {"MATH101": Subject(code="MATH101", name="Calculus", color="#ff0000")}
    own = bucketize([make_entry(subject_display_name="Linear Algebra")], subjects)
    from_subject = bucketize([make_entry()], subjects)
    from_code = bucketize([make_entry()], {})
    assert own[(2, 9 * 60)].display_text == "Linear Algebra"
    assert from_subject[(2, 9 * 60)].display_text == "Calculus"
    assert from_code[(2, 9 * 60)].display_text == "MATH101"


def test_display_text_includes_location() -> None:
    with_room = bucketize([make_entry(location="B204")], {})
    blank_room = bucketize([make_entry(location="   ")], {})
    assert with_room[(2, 9 * 60)].display_text == "MATH101\nB204"
    assert blank_room[(2, 9 * 60)].display_text == "MATH101"


def test_subject_color_and_default() -> None:
    subjects = {"MATH101": Subject(code="MATH101", name="Calculus", color="#3498db")}
    colored = bucketize([make_entry()], subjects)
    assert colored[(2, 9 * 60)].color == (0x34, 0x98, 0xDB)
    assert colored[(2, 9 * 60)].subject.name == "Calculus"

    subjects["MATH101"].color = "not-a-color"
    fallback = bucketize([make_entry()], subjects)
    assert fallback[(2, 9 * 60)].color == DEFAULT_COLOR

    unmatched = bucketize([make_entry()], {})
    assert unmatched[(2, 9 * 60)].subject is None
    assert unmatched[(2, 9 * 60)].color == DEFAULT_COLOR


def test_bucketize_is_repeatable() -> None:
    entries = [make_entry(), make_entry(2, "13:00", "15:00", day_of_week=4)]
    subjects = {"MATH101": Subject(code="MATH101", name="Calculus")}
    assert bucketize(entries, subjects) == bucketize(entries, subjects)


def test_none_inputs_raise() -> None:
    with pytest.raises(ContractViolation):
        bucketize(None, {})
    with pytest.raises(ContractViolation):
        bucketize([], None)


def test_custom_slot_window() -> None:
    grid = bucketize(
        [make_entry(start="09:00", end="09:45")],
        {},
        start_hour=9,
        end_hour=11,
        slot_minutes=30,
        days=(2,),
    )
    assert sorted(grid) == [(2, 540), (2, 570), (2, 600), (2, 630)]
    assert grid[(2, 570)].end_fraction == pytest.approx(0.5)
    assert grid[(2, 600)] is None


@pytest.mark.parametrize(
    "value, expected",
    [
        ("09:00", 540),
        ("9:05", 545),
        (" 17:30 ", 1050),
        ("10:00:30", 600.5),
        ("bad", None),
        ("25:00", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_time_to_minutes(value, expected) -> None:
    assert parse_time_to_minutes(value) == expected


def test_minutes_to_label() -> None:
    assert minutes_to_label(480) == "08:00"
    assert minutes_to_label(17 * 60) == "17:00"


def test_color_parsing() -> None:
    assert parse_hex_color("#FFFFFF") == (255, 255, 255)
    assert parse_hex_color("0f0") == (0, 255, 0)
    assert parse_hex_color("LightBlue") is None
    assert resolve_color(None) == DEFAULT_COLOR
