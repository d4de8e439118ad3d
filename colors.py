"""Bar color resolution by color dimension."""

from __future__ import annotations

from typing import Dict, List, Optional

from datatypes import FlightRow

DEFAULT_COLOR = "#5B9BD5"

AIRLINE_COLORS: Dict[str, str] = {
    "UA": "#4A90E2",
    "AA": "#0078D2",
    "DL": "#C8102E",
    "WN": "#304CB2",
    "B6": "#002F6C",
    "NK": "#FFC600",
    "F9": "#00A859",
    "AS": "#01426A",
}

STATUS_COLORS: Dict[str, str] = {
    "on-time": "#5CB85C",
    "delayed": "#F0AD4E",
    "cancelled": "#D9534F",
    "estimated": "#5BC0DE",
}

TABLEAU10 = [
    "#4e79a7", "#f28e2c", "#e15759", "#76b7b2", "#59a14f",
    "#edc949", "#af7aa1", "#ff9da7", "#9c755f", "#bab0ab",
]

COLOR_DIMENSIONS = ["actualColor", "airline", "domesticIntl", "aircraftModel", "terminal", "status"]

_DIMENSION_ATTR = {
    "actualColor": "actual_color",
    "airline": "airline",
    "domesticIntl": "domestic_intl",
    "aircraftModel": "aircraft_model",
    "terminal": "terminal",
}

DELAY_THRESHOLD_S = 15 * 60


def dimension_value(row: FlightRow, dimension: str = "actualColor") -> Optional[str]:
    attr = _DIMENSION_ATTR.get(dimension, "actual_color")
    return getattr(row, attr)


def color_key(row: FlightRow, dimension: str = "actualColor") -> str:
    return dimension_value(row, dimension) or "default"


class ColorLookup:
    """Ordinal color lookup built once per render pass.

    Carrier-coded dimensions use the fixed airline palette; any other
    dimension cycles through Tableau10 in first-seen order.
    """

    def __init__(self, rows: List[FlightRow], dimension: str = "actualColor") -> None:
        self.dimension = dimension
        self.by_airline = dimension in ("actualColor", "airline")
        self.domain: List[str] = []
        for r in rows:
            v = dimension_value(r, dimension)
            if v and v not in self.domain:
                self.domain.append(v)

    def __call__(self, key: str) -> str:
        if self.by_airline:
            return AIRLINE_COLORS.get(key, DEFAULT_COLOR)
        if key not in self.domain:
            self.domain.append(key)
        return TABLEAU10[self.domain.index(key) % len(TABLEAU10)]

    def for_row(self, row: FlightRow) -> str:
        if self.dimension == "status":
            return status_color(row)
        return self(color_key(row, self.dimension))


def status_color(row: FlightRow) -> str:
    if row.scheduled_start and row.actual_start:
        delay = (row.actual_start - row.scheduled_start).total_seconds()
        if delay > DELAY_THRESHOLD_S:
            return STATUS_COLORS["delayed"]
        return STATUS_COLORS["on-time"]
    for status in (row.tow_on_status, row.tow_off_status):
        if status and "estimated" in status.lower():
            return STATUS_COLORS["estimated"]
    return DEFAULT_COLOR
