"""Data classes and types for the gate occupancy Gantt."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, List, Optional, Sequence, Tuple

# Ordered fallback tables: which timestamp represents a row for a given need.
ACTUAL_START_FIELDS = ("actual_start", "tow_on")
ACTUAL_END_FIELDS = ("actual_end", "tow_off")
FILTER_REFERENCE_FIELDS = (
    "actual_start",
    "tow_on",
    "scheduled_start",
    "ground_start",
    "actual_end",
    "tow_off",
    "scheduled_end",
    "ground_end",
)
DOMAIN_FIELDS = (
    "ground_start",
    "ground_end",
    "scheduled_start",
    "scheduled_end",
    "actual_start",
    "actual_end",
)
PARSED_DOMAIN_FIELDS = DOMAIN_FIELDS + ("tow_off", "tow_on")


@dataclass
class FlightRow:
    """One (flight, gate) pairing after wide-body expansion."""
    gate: str
    parent_gate: Optional[str] = None
    actual_color: Optional[str] = None

    ground_start: Optional[datetime] = None
    ground_end: Optional[datetime] = None
    landed_time: Optional[datetime] = None
    operation_time: Optional[datetime] = None

    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None

    actual_start: Optional[datetime] = None
    actual_end: Optional[datetime] = None

    tow_off: Optional[datetime] = None
    tow_off_status: Optional[str] = None
    tow_on: Optional[datetime] = None
    tow_on_status: Optional[str] = None

    actual_text: str = ""

    airline: Optional[str] = None
    flight_number: Optional[str] = None
    tail_number: Optional[str] = None
    aircraft_model: Optional[str] = None
    turn_id: Optional[str] = None
    turn_duration: Optional[str] = None
    terminal: Optional[str] = None
    domestic_intl: Optional[str] = None

    tooltip_fields: List[Tuple[str, Any]] = field(default_factory=list)
    identity: Optional[int] = None


def first_available(row: FlightRow, fields: Sequence[str]) -> Optional[datetime]:
    """Return the first non-null timestamp of ``row`` following ``fields``."""
    for name in fields:
        value = getattr(row, name)
        if value is not None:
            return value
    return None


def row_timestamps(row: FlightRow, fields: Sequence[str]) -> List[datetime]:
    return [v for v in (getattr(row, name) for name in fields) if v is not None]


@dataclass
class ParsedData:
    rows: List[FlightRow]
    gates: List[str]
    time_domain: Tuple[datetime, datetime]


@dataclass(frozen=True)
class FilterCriteria:
    """User filter values. ``time_min``/``time_max`` only move the viewport."""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    time_min: float = 0
    time_max: float = 24
    terminal: str = ""
    gate: str = ""
    airline: str = ""
    flight_number: str = ""
    tail: str = ""


# -------- Positioned shapes handed to the renderer --------

@dataclass
class RectShape:
    key: str
    kind: str  # actual | scheduled | ground-landed | ground-operation
    x: float
    y: float
    width: float
    height: float
    gate: str
    fill: Optional[str] = None
    clip_id: Optional[str] = None
    row: Optional[FlightRow] = field(default=None, compare=False, repr=False)


@dataclass
class LineShape:
    key: str
    kind: str  # ground | grid | now
    x1: float
    y1: float
    x2: float
    y2: float


@dataclass
class PolygonShape:
    key: str
    clip_id: str
    points: List[Tuple[float, float]]

    def svg_points(self) -> str:
        return " ".join(f"{x:g},{y:g}" for x, y in self.points)


@dataclass
class TextLabel:
    key: str
    kind: str  # actual | actual-time | scheduled-time | axis-x | axis-y | now
    x: float
    y: float
    text: str
    anchor: str = "middle"  # start | middle | end
