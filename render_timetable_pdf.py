#!/usr/bin/env python3
"""Render the weekly class timetable as a PDF grid from the SQLite database."""

from __future__ import annotations

import argparse
import unicodedata
from dataclasses import dataclass
from pathlib import Path

from fpdf import FPDF

import grid_config
from grid_painter import CellPaint, GridGeometry, Rect, paint_grid
from planner_logging import get_logger, setup_logging
from timetable_grid import DAY_NAMES, ScheduleEntry, Subject, bucketize, minutes_to_label
from timetable_store import get_subjects, init_db, load_ordered_entries

log = get_logger(__name__)


@dataclass
class RenderConfig:
    page_size: str
    orientation: str
    margin: float
    title_height: float
    header_height: float
    time_col_width: float
    header_font_size: float
    body_font_size: float


def sanitize_text(value: str | None) -> str:
    if not value:
        return ""
    text = str(value)
    replacements = {
        "\u2013": "-",
        "\u2014": "-",
        "\u2018": "'",
        "\u2019": "'",
        "\u201c": "\"",
        "\u201d": "\"",
        "\u2026": "...",
    }
    for src, dest in replacements.items():
        text = text.replace(src, dest)
    text = unicodedata.normalize("NFKD", text)
    text = text.encode("ascii", "ignore").decode("ascii")
    return "\n".join(" ".join(line.split()) for line in text.split("\n"))


def fill_rect(pdf: FPDF, rect: Rect, color: tuple[int, int, int]) -> None:
    if rect.width <= 0 or rect.height <= 0:
        return
    pdf.set_fill_color(*color)
    pdf.rect(rect.x, rect.y, rect.width, rect.height, style="F")


def draw_centered_text(
    pdf: FPDF,
    rect: Rect,
    text: str,
    color: tuple[int, int, int],
    font_size: float,
    bold: bool = False,
) -> None:
    lines = [line for line in sanitize_text(text).split("\n") if line]
    if not lines or rect.width <= 0:
        return
    pdf.set_font("Helvetica", style="B" if bold else "", size=font_size)
    pdf.set_text_color(*color)
    line_height = pdf.font_size * 1.2
    max_lines = max(1, int(rect.height / line_height))
    lines = lines[:max_lines]
    cursor_y = rect.y + (rect.height - line_height * len(lines)) / 2
    for line in lines:
        pdf.set_xy(rect.x, cursor_y)
        pdf.cell(rect.width, line_height, line, align="C")
        cursor_y += line_height
    pdf.set_text_color(0, 0, 0)


def draw_cell_paint(pdf: FPDF, paint: CellPaint, font_size: float) -> None:
    fill_rect(pdf, paint.bounds, paint.background)
    if paint.fill_rect is not None and paint.fill_color is not None:
        fill_rect(pdf, paint.fill_rect, paint.fill_color)
    if paint.text and paint.text_rect is not None and paint.text_color is not None:
        draw_centered_text(pdf, paint.text_rect, paint.text, paint.text_color, font_size)
    for edge in paint.edges.values():
        fill_rect(pdf, edge.rect, edge.color)
    if paint.hidden_count:
        marker = Rect(paint.bounds.right - 8, paint.bounds.y + 0.5, 7.5, 3)
        pdf.set_font("Helvetica", style="B", size=5)
        pdf.set_text_color(200, 40, 40)
        pdf.set_xy(marker.x, marker.y)
        pdf.cell(marker.width, marker.height, f"+{paint.hidden_count}", align="R")
        pdf.set_text_color(0, 0, 0)


def draw_header_cell(
    pdf: FPDF,
    rect: Rect,
    label: str,
    fill: tuple[int, int, int],
    grid_color: tuple[int, int, int],
    font_size: float,
    bold: bool = True,
) -> None:
    pdf.set_fill_color(*fill)
    pdf.set_draw_color(*grid_color)
    pdf.rect(rect.x, rect.y, rect.width, rect.height, style="DF")
    draw_centered_text(pdf, rect, label, (0, 0, 0), font_size, bold=bold)


def render_week(
    pdf: FPDF,
    entries: list[ScheduleEntry],
    subjects: dict[str, Subject],
    config: RenderConfig,
    grid_settings: dict | None = None,
    title: str = "Weekly timetable",
) -> dict:
    grid_settings = grid_settings or grid_config.normalize_grid_config(None)
    settings = grid_config.slot_settings(grid_settings)
    style = grid_config.style_from_config(grid_settings)
    grid = bucketize(entries, subjects, **settings)

    days = list(settings["days"])
    slots = sorted({slot for _, slot in grid})

    pdf.add_page()
    pdf.set_auto_page_break(auto=False, margin=0)
    pdf.set_font("Helvetica", style="B", size=14)
    pdf.set_xy(config.margin, config.margin)
    pdf.cell(0, 6, sanitize_text(title))

    table_x = config.margin
    table_y = config.margin + config.title_height
    table_width = pdf.w - 2 * config.margin
    table_height = pdf.h - config.margin - table_y
    body_height = max(1.0, table_height - config.header_height)

    geometry = GridGeometry(
        x=table_x,
        y=table_y,
        time_col_width=config.time_col_width,
        header_height=config.header_height,
        day_col_width=(table_width - config.time_col_width) / max(1, len(days)),
        row_height=body_height / max(1, len(slots)),
    )

    header_fill = grid_config.config_color(grid_settings, "header")
    time_fill = grid_config.config_color(grid_settings, "time")
    pdf.set_line_width(style.border_width)

    draw_header_cell(
        pdf,
        Rect(table_x, table_y, config.time_col_width, config.header_height),
        "Time",
        header_fill,
        style.grid_color,
        config.header_font_size,
    )
    for column, day in enumerate(days):
        bounds = geometry.cell_bounds(column, 0)
        draw_header_cell(
            pdf,
            Rect(bounds.x, table_y, bounds.width, config.header_height),
            DAY_NAMES[day],
            header_fill,
            style.grid_color,
            config.header_font_size,
        )
    for row, slot in enumerate(slots):
        bounds = geometry.cell_bounds(0, row)
        draw_header_cell(
            pdf,
            Rect(table_x, bounds.y, config.time_col_width, bounds.height),
            minutes_to_label(slot),
            time_fill,
            style.grid_color,
            config.body_font_size,
            bold=slot % 60 == 0,
        )

    painted = paint_grid(grid, geometry, style)
    font_size = grid_settings.get("font_size", config.body_font_size)
    for paint in painted.values():
        draw_cell_paint(pdf, paint, font_size)

    occupied = sum(1 for cell in grid.values() if cell is not None)
    log.debug("week_rendered", cells=len(grid), occupied=occupied)
    return painted


def default_render_config(page_size: str = "A4", orientation: str = "landscape") -> RenderConfig:
    return RenderConfig(
        page_size=page_size,
        orientation=orientation,
        margin=8.0,
        title_height=10.0,
        header_height=8.0,
        time_col_width=18.0,
        header_font_size=8.0,
        body_font_size=7.0,
    )


def render_pdf(
    db_path: Path,
    output_path: Path,
    config_path: Path | None = None,
    page_size: str = "A4",
    orientation: str = "landscape",
) -> Path:
    conn = init_db(db_path)
    try:
        entries = load_ordered_entries(conn)
        subjects = get_subjects(conn)
    finally:
        conn.close()
    grid_settings = grid_config.load_grid_config(config_path)
    config = default_render_config(page_size, orientation)

    pdf = FPDF(orientation=orientation[0].upper(), unit="mm", format=page_size)
    render_week(pdf, entries, subjects, config, grid_settings)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    pdf.output(str(output_path))
    log.info("timetable_pdf_written", path=str(output_path), entries=len(entries))
    return output_path


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Render the weekly class timetable PDF from planner.db."
    )
    parser.add_argument("--db", type=Path, default=Path("planner.db"))
    parser.add_argument("--out", type=Path, default=Path("output-pdf/timetable.pdf"))
    parser.add_argument("--page-size", default="A4")
    parser.add_argument(
        "--orientation", choices=["portrait", "landscape"], default="landscape"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("grid.json"),
        help="Grid configuration JSON",
    )
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    setup_logging(log_level=args.log_level)
    output = render_pdf(args.db, args.out, args.config, args.page_size, args.orientation)
    print(f"Rendered timetable to {output}")


if __name__ == "__main__":
    main()
