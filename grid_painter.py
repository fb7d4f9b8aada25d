"""Turn bucketed timetable cells into paint instructions.

Painting is a pure function of a cell and its vertical neighbors in the same
day column. The output is a list of filled rectangles plus an optional text
box, which any drawing backend can replay.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from timetable_grid import CellOccupation

RGB = tuple[int, int, int]

BLACK: RGB = (0, 0, 0)
WHITE: RGB = (255, 255, 255)
EDGES = ("top", "bottom", "left", "right")


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def right(self) -> float:
        return self.x + self.width

    def inset(self, amount: float) -> Rect:
        return Rect(
            self.x + amount,
            self.y + amount,
            max(0.0, self.width - 2 * amount),
            max(0.0, self.height - 2 * amount),
        )


@dataclass
class GridStyle:
    background: RGB = WHITE
    grid_color: RGB = (160, 160, 160)
    border_width: float = 1.0
    fill_inset: float = 2.0
    text_inset: float = 4.0


@dataclass
class GridGeometry:
    x: float
    y: float
    time_col_width: float
    header_height: float
    day_col_width: float
    row_height: float

    def cell_bounds(self, column: int, row: int) -> Rect:
        return Rect(
            self.x + self.time_col_width + column * self.day_col_width,
            self.y + self.header_height + row * self.row_height,
            self.day_col_width,
            self.row_height,
        )


@dataclass(frozen=True)
class EdgePaint:
    edge: str
    suppressed: bool
    color: RGB
    rect: Rect


@dataclass
class CellPaint:
    bounds: Rect
    background: RGB
    fill_rect: Rect | None = None
    fill_color: RGB | None = None
    text: str | None = None
    text_rect: Rect | None = None
    text_color: RGB | None = None
    hidden_count: int = 0
    edges: dict[str, EdgePaint] = field(default_factory=dict)


def luminance(color: RGB) -> float:
    red, green, blue = color
    return (0.299 * red + 0.587 * green + 0.114 * blue) / 255


def contrast_color(background: RGB) -> RGB:
    return BLACK if luminance(background) > 0.5 else WHITE


def continues(cell: CellOccupation, neighbor: CellOccupation | None) -> bool:
    return neighbor is not None and neighbor.entry.id == cell.entry.id


def grid_line(edge: str, bounds: Rect, style: GridStyle) -> EdgePaint:
    width = style.border_width
    if edge == "top":
        rect = Rect(bounds.x, bounds.y, bounds.width, width)
    elif edge == "bottom":
        rect = Rect(bounds.x, bounds.bottom - width, bounds.width, width)
    elif edge == "left":
        rect = Rect(bounds.x, bounds.y, width, bounds.height)
    else:
        rect = Rect(bounds.right - width, bounds.y, width, bounds.height)
    return EdgePaint(edge, False, style.grid_color, rect)


def blend_strip(edge: str, bounds: Rect, color: RGB, style: GridStyle) -> EdgePaint:
    # Covers the fill inset so the fill runs into the neighboring cell.
    thickness = max(style.border_width, style.fill_inset)
    x = bounds.x + style.fill_inset
    width = max(0.0, bounds.width - 2 * style.fill_inset)
    if edge == "top":
        rect = Rect(x, bounds.y, width, thickness)
    else:
        rect = Rect(x, bounds.bottom - thickness, width, thickness)
    return EdgePaint(edge, True, color, rect)


def paint_cell(
    cell: CellOccupation | None,
    prev: CellOccupation | None,
    next_: CellOccupation | None,
    bounds: Rect,
    style: GridStyle | None = None,
) -> CellPaint:
    style = style or GridStyle()
    if cell is None:
        return CellPaint(
            bounds=bounds,
            background=style.background,
            edges={edge: grid_line(edge, bounds, style) for edge in EDGES},
        )

    paint = CellPaint(bounds=bounds, background=style.background)
    color = cell.color

    inner = bounds.inset(style.fill_inset)
    start = max(0.0, cell.start_fraction)
    end = min(1.0, cell.end_fraction)
    fill_height = inner.height * (end - start)
    if fill_height > 0:
        paint.fill_rect = Rect(inner.x, inner.y + inner.height * start, inner.width, fill_height)
        paint.fill_color = color

    if cell.show_label and cell.display_text.strip():
        paint.text = cell.display_text
        paint.text_rect = bounds.inset(style.text_inset)
        paint.text_color = contrast_color(color)

    hide_top = continues(cell, prev) and cell.start_fraction == 0
    hide_bottom = continues(cell, next_) and cell.end_fraction == 1

    paint.edges["left"] = grid_line("left", bounds, style)
    paint.edges["right"] = grid_line("right", bounds, style)
    paint.edges["top"] = (
        blend_strip("top", bounds, color, style)
        if hide_top
        else grid_line("top", bounds, style)
    )
    paint.edges["bottom"] = (
        blend_strip("bottom", bounds, color, style)
        if hide_bottom
        else grid_line("bottom", bounds, style)
    )
    paint.hidden_count = len(cell.hidden_entry_ids)
    return paint


def paint_grid(
    grid: dict[tuple[int, int], CellOccupation | None],
    geometry: GridGeometry,
    style: GridStyle | None = None,
) -> dict[tuple[int, int], CellPaint]:
    days = sorted({day for day, _ in grid})
    slots = sorted({slot for _, slot in grid})
    painted: dict[tuple[int, int], CellPaint] = {}
    for column, day in enumerate(days):
        for row, slot in enumerate(slots):
            prev = grid.get((day, slots[row - 1])) if row > 0 else None
            next_ = grid.get((day, slots[row + 1])) if row + 1 < len(slots) else None
            painted[(day, slot)] = paint_cell(
                grid.get((day, slot)),
                prev,
                next_,
                geometry.cell_bounds(column, row),
                style,
            )
    return painted
