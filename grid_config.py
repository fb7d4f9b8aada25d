"""Helpers for reading and applying timetable grid configuration."""

from __future__ import annotations

import copy
import json
from pathlib import Path

from grid_painter import GridStyle
from timetable_grid import DISPLAY_DAYS, END_HOUR, SLOT_MINUTES, START_HOUR, parse_hex_color

DEFAULT_COLORS = {
    "background": "#ffffff",
    "grid": "#a0a0a0",
    "header": "#ece6db",
    "time": "#f4efe7",
}

DEFAULT_GRID_CONFIG = {
    "start_hour": START_HOUR,
    "end_hour": END_HOUR,
    "slot_minutes": SLOT_MINUTES,
    "days": list(DISPLAY_DAYS),
    "colors": DEFAULT_COLORS,
    "border_width": 0.2,
    "fill_inset": 0.6,
    "text_inset": 1.2,
    "font_size": 7.0,
}


def _positive_float(value) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if number >= 0 else None


def normalize_grid_config(data: dict | None) -> dict:
    config = copy.deepcopy(DEFAULT_GRID_CONFIG)
    if not isinstance(data, dict):
        return config

    try:
        start_hour = int(data.get("start_hour", config["start_hour"]))
        end_hour = int(data.get("end_hour", config["end_hour"]))
    except (TypeError, ValueError):
        start_hour, end_hour = config["start_hour"], config["end_hour"]
    if 0 <= start_hour < end_hour <= 24:
        config["start_hour"] = start_hour
        config["end_hour"] = end_hour

    slot_minutes = data.get("slot_minutes")
    if isinstance(slot_minutes, int) and not isinstance(slot_minutes, bool) and slot_minutes > 0:
        config["slot_minutes"] = slot_minutes

    days = data.get("days")
    if isinstance(days, list):
        normalized = []
        for item in days:
            try:
                day = int(item)
            except (TypeError, ValueError):
                continue
            if 0 <= day <= 6 and day not in normalized:
                normalized.append(day)
        if normalized:
            config["days"] = sorted(normalized)

    colors = data.get("colors")
    if isinstance(colors, dict):
        for key in DEFAULT_COLORS:
            value = colors.get(key)
            if isinstance(value, str) and parse_hex_color(value):
                config["colors"][key] = value

    for key in ("border_width", "fill_inset", "text_inset", "font_size"):
        if key in data:
            value = _positive_float(data[key])
            if value is not None:
                config[key] = value

    return config


def load_grid_config(path: Path | None) -> dict:
    if path is None or not path.exists():
        return copy.deepcopy(DEFAULT_GRID_CONFIG)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        return copy.deepcopy(DEFAULT_GRID_CONFIG)
    return normalize_grid_config(data)


def save_grid_config(path: Path, config: dict) -> None:
    normalized = normalize_grid_config(config)
    path.write_text(json.dumps(normalized, indent=2), encoding="utf-8")


def slot_settings(config: dict) -> dict:
    return {
        "start_hour": config["start_hour"],
        "end_hour": config["end_hour"],
        "slot_minutes": config["slot_minutes"],
        "days": tuple(config["days"]),
    }


def config_color(config: dict, key: str) -> tuple[int, int, int]:
    return parse_hex_color(config["colors"].get(key)) or parse_hex_color(DEFAULT_COLORS[key])


def style_from_config(config: dict) -> GridStyle:
    return GridStyle(
        background=config_color(config, "background"),
        grid_color=config_color(config, "grid"),
        border_width=config["border_width"],
        fill_inset=config["fill_inset"],
        text_inset=config["text_inset"],
    )
