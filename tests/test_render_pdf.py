from fpdf import FPDF

from render_timetable_pdf import default_render_config, render_pdf, render_week, sanitize_text
from timetable_grid import ScheduleEntry, Subject
from timetable_store import add_entry, init_db, update_subject


def test_sanitize_text_keeps_line_breaks() -> None:
    assert sanitize_text("Café  Theory\nRoom – 5") == "Cafe Theory\nRoom - 5"
    assert sanitize_text(None) == ""


def test_render_week_paints_full_grid() -> None:
    entries = [
        ScheduleEntry(id=1, day_of_week=2, subject_code="CS", start_time="09:00", end_time="10:30", location="B2"),
        ScheduleEntry(id=2, day_of_week=2, subject_code="MA", start_time="09:00", end_time="10:00"),
    ]
    subjects = {"CS": Subject(code="CS", name="Computing", color="#222222")}
    pdf = FPDF(orientation="L", unit="mm", format="A4")
    painted = render_week(pdf, entries, subjects, default_render_config())
    assert len(painted) == 60
    assert painted[(2, 540)].hidden_count == 1
    assert painted[(2, 540)].text_color == (255, 255, 255)
    assert painted[(2, 540)].edges["bottom"].suppressed is True
    assert pdf.page_no() == 1


def test_render_pdf_writes_file(tmp_path) -> None:
    db_path = tmp_path / "planner.db"
    conn = init_db(db_path)
    add_entry(
        conn,
        ScheduleEntry(id=0, day_of_week=3, subject_code="BIO", subject_display_name="Biology", start_time="10:15", end_time="12:00"),
    )
    update_subject(conn, "BIO", color="#2ecc71")
    conn.close()

    output = render_pdf(db_path, tmp_path / "out" / "timetable.pdf", tmp_path / "grid.json")
    assert output.exists()
    assert output.read_bytes().startswith(b"%PDF")
