"""Pixel geometry for the Gantt elements.

Every function here is a pure computation over pre-built scales: the time
scale maps datetimes onto the plot width, the band scale maps gates onto row
bands. Coordinates are plot-area pixels, origin top-left, y growing down.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import List, NamedTuple, Optional, Sequence, Tuple

from colors import ColorLookup
from datatypes import (
    ACTUAL_END_FIELDS,
    ACTUAL_START_FIELDS,
    FlightRow,
    LineShape,
    PolygonShape,
    RectShape,
    TextLabel,
    first_available,
)
from widebody import WideBodyGrouping, group_wide_bodies

TimeWindow = Tuple[datetime, datetime]

BAND_PADDING_INNER = 0.25

MIN_BAR_HEIGHT = 8.0
ACTUAL_BAR_RATIO = 0.38
SCHEDULED_BAR_RATIO = 0.40
SCHEDULED_DROP = 8.0
WIDEBODY_SCHEDULED_DROP = 18.0
BAR_RADIUS = 16.0

GROUND_TICK_RATIO = 0.10
WIDEBODY_GROUND_RATIO = 0.15
GROUND_SEGMENT_HEIGHT = 4.0

LABEL_INSET = 3.0
SCHEDULED_LABEL_LIFT = 8.0

TOW_STEPS = 8
TOW_AMP_MIN = 6.0
TOW_AMP_MAX = 10.0
TOW_AMP_RATIO = 0.35

AXIS_TICK_SIZE = 6.0
AXIS_LABEL_OFFSET = 9.0
NOW_LINE_TOP = -30.0
NOW_LABEL_Y = -35.0


class TimeScale:
    """Linear datetime -> pixel scale."""

    def __init__(self, domain: TimeWindow, range_: Tuple[float, float]) -> None:
        self.domain = domain
        self.range = range_

    @property
    def range_max(self) -> float:
        return self.range[1]

    def __call__(self, t: datetime) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        span = (d1 - d0).total_seconds()
        if span == 0:
            return (r0 + r1) / 2
        return r0 + (t - d0).total_seconds() / span * (r1 - r0)


class BandScale:
    """Discrete gate -> band top scale with inner padding between bands."""

    def __init__(
        self,
        domain: Sequence[str],
        range_: Tuple[float, float],
        padding_inner: float = BAND_PADDING_INNER,
    ) -> None:
        self.domain = list(domain)
        r0, r1 = range_
        n = len(self.domain)
        self.step = (r1 - r0) / max(1.0, n - padding_inner)
        self.start = r0 + (r1 - r0 - self.step * (n - padding_inner)) * 0.5
        self.bandwidth = self.step * (1 - padding_inner)
        self._index = {g: i for i, g in enumerate(self.domain)}

    def position(self, gate: str) -> Optional[float]:
        i = self._index.get(gate)
        if i is None:
            return None
        return self.start + self.step * i


class Box(NamedTuple):
    x: float
    y: float
    width: float
    height: float


# -------- Shared helpers --------

def actual_start(row: FlightRow) -> Optional[datetime]:
    return first_available(row, ACTUAL_START_FIELDS)


def actual_end(row: FlightRow) -> Optional[datetime]:
    return first_available(row, ACTUAL_END_FIELDS)


def scheduled_start(row: FlightRow) -> Optional[datetime]:
    return row.scheduled_start


def ground_start(row: FlightRow) -> Optional[datetime]:
    return row.ground_start


def is_visible(start: Optional[datetime], end: Optional[datetime], window: TimeWindow) -> bool:
    """Overlap test of ``[start, end)`` against the visible window.

    With only one endpoint known the element is visible when that timestamp
    lies inside the window.
    """
    w0, w1 = window
    if start is not None and end is not None:
        return start < w1 and end > w0
    ts = start if start is not None else end
    if ts is None:
        return False
    return w0 <= ts <= w1


def clamp_extent(x_start: float, x_end: float, x: TimeScale, min_width: float = 1.0) -> Tuple[float, float]:
    """Clip ``[x_start, x_end]`` to the plot range; returns ``(x, width)``."""
    left = max(0.0, x_start)
    right = min(x.range_max, x_end)
    return left, max(min_width, right - left)


def hhmm(t: datetime) -> str:
    return f"{t.hour:02d}:{t.minute:02d}"


def _iso(t: Optional[datetime]) -> str:
    return t.isoformat() if t is not None else ""


def _vertical(
    row: FlightRow,
    grouping: WideBodyGrouping,
    y: BandScale,
    bar_h: float,
    offset: float,
    span_drop: float = 0.0,
) -> Optional[Tuple[float, float]]:
    """``(top, height)`` of a bar, spanning the wide-body group when it resolves."""
    span = grouping.span_for(row, y)
    if span is not None:
        top, bottom = span
        return top + offset + span_drop, (bottom - top) - 2 * offset
    band = y.position(row.gate)
    if band is None:
        return None
    return band + offset, bar_h


# -------- Actual bars --------

def actual_bar_geometry(row: FlightRow, grouping: WideBodyGrouping, x: TimeScale, y: BandScale) -> Optional[Box]:
    start, end = actual_start(row), actual_end(row)
    start = start or end
    end = end or start
    if start is None or end is None:
        return None
    bar_h = max(MIN_BAR_HEIGHT, y.bandwidth * ACTUAL_BAR_RATIO)
    offset = (y.bandwidth - bar_h) / 2
    vertical = _vertical(row, grouping, y, bar_h, offset)
    if vertical is None:
        return None
    bx, bw = clamp_extent(x(start), x(end), x)
    return Box(bx, vertical[0], bw, vertical[1])


def is_estimated(status: Optional[str]) -> bool:
    return status is not None and "estimated" in str(status).lower()


def tow_edges(row: FlightRow) -> Tuple[bool, bool]:
    """Which short edges of the actual bar are unconfirmed tow times."""
    jag_left = row.tow_on is not None and is_estimated(row.tow_on_status)
    jag_right = row.tow_off is not None and is_estimated(row.tow_off_status)
    return jag_left, jag_right


def _safe_id(s: str) -> str:
    return re.sub(r"[^a-zA-Z0-9\-_]", "_", s)


def tow_clip_id(row: FlightRow) -> str:
    s, e = actual_start(row), actual_end(row)
    s, e = s or e, e or s
    return f"towclip_{_safe_id(row.gate)}_{_safe_id(_iso(s))}_{_safe_id(_iso(e))}"


def actual_bars(
    rows: List[FlightRow],
    x: TimeScale,
    y: BandScale,
    color: Optional[ColorLookup] = None,
) -> List[RectShape]:
    """Actual (or tow-derived) occupancy bars, one per canonical row."""
    visible = [r for r in rows if is_visible(actual_start(r), actual_end(r), x.domain)]
    grouping = group_wide_bodies(visible, actual_start, actual_end)

    bars: List[RectShape] = []
    for row in grouping.canonical_rows:
        box = actual_bar_geometry(row, grouping, x, y)
        if box is None:
            continue
        s, e = actual_start(row), actual_end(row)
        s, e = s or e, e or s
        clip_id = tow_clip_id(row) if any(tow_edges(row)) else None
        bars.append(RectShape(
            key=f"{row.parent_gate or row.gate}|{_iso(s)}|{_iso(e)}",
            kind="actual",
            x=box.x,
            y=box.y,
            width=box.width,
            height=box.height,
            gate=row.gate,
            fill=color.for_row(row) if color is not None else None,
            clip_id=clip_id,
            row=row,
        ))
    return bars


# -------- Tow jagged edges --------

def tow_amplitude(bar_h: float) -> float:
    return min(TOW_AMP_MAX, max(TOW_AMP_MIN, bar_h * TOW_AMP_RATIO))


def tow_clip_polygon(
    x0: float,
    y0: float,
    w: float,
    h: float,
    amp: float,
    steps: int,
    jag_left: bool,
    jag_right: bool,
) -> List[Tuple[float, float]]:
    """Bar outline with zig-zag short edges, clockwise from the top-left.

    Jagged edges alternate between the flush edge and ``amp`` inset in
    ``steps`` equal increments of the bar height.
    """
    pts: List[Tuple[float, float]] = []
    dy = h / steps

    pts.append((x0 + amp, y0) if jag_left else (x0, y0))
    pts.append((x0 + w - amp, y0) if jag_right else (x0 + w, y0))

    if jag_right:
        for i in range(steps + 1):
            xx = x0 + w if i % 2 == 0 else x0 + w - amp
            pts.append((xx, y0 + i * dy))
    else:
        pts.append((x0 + w, y0 + h))

    pts.append((x0 + amp, y0 + h) if jag_left else (x0, y0 + h))

    if jag_left:
        for i in range(steps, -1, -1):
            xx = x0 if i % 2 == 0 else x0 + amp
            pts.append((xx, y0 + i * dy))
    else:
        pts.append((x0, y0))
    return pts


def tow_clip_shapes(bars: List[RectShape], steps: int = TOW_STEPS) -> List[PolygonShape]:
    """Clip polygons for bars carrying an estimated tow edge; others get none."""
    clips: List[PolygonShape] = []
    for bar in bars:
        if bar.clip_id is None or bar.row is None:
            continue
        jag_left, jag_right = tow_edges(bar.row)
        s, e = actual_start(bar.row), actual_end(bar.row)
        s, e = s or e, e or s
        points = tow_clip_polygon(
            bar.x, bar.y, bar.width, bar.height,
            tow_amplitude(bar.height), steps, jag_left, jag_right,
        )
        clips.append(PolygonShape(
            key=f"{bar.row.gate}|{_iso(s)}|{_iso(e)}|clip",
            clip_id=bar.clip_id,
            points=points,
        ))
    return clips


# -------- Scheduled bars --------

def scheduled_bar_geometry(row: FlightRow, grouping: WideBodyGrouping, x: TimeScale, y: BandScale) -> Optional[Box]:
    if row.scheduled_start is None or row.scheduled_end is None:
        return None
    bar_h = max(MIN_BAR_HEIGHT, y.bandwidth * SCHEDULED_BAR_RATIO)
    offset = (y.bandwidth - bar_h) / 2 + SCHEDULED_DROP
    vertical = _vertical(row, grouping, y, bar_h, offset, span_drop=WIDEBODY_SCHEDULED_DROP)
    if vertical is None:
        return None
    bx, bw = clamp_extent(x(row.scheduled_start), x(row.scheduled_end), x)
    return Box(bx, vertical[0], bw, vertical[1])


def scheduled_bars(rows: List[FlightRow], x: TimeScale, y: BandScale) -> List[RectShape]:
    visible = [
        r for r in rows
        if r.scheduled_start is not None and r.scheduled_end is not None
        and is_visible(r.scheduled_start, r.scheduled_end, x.domain)
    ]
    grouping = group_wide_bodies(visible, scheduled_start)

    bars: List[RectShape] = []
    for row in grouping.canonical_rows:
        box = scheduled_bar_geometry(row, grouping, x, y)
        if box is None:
            continue
        bars.append(RectShape(
            key=f"{row.parent_gate or row.gate}|{_iso(row.scheduled_start)}|{_iso(row.scheduled_end)}",
            kind="scheduled",
            x=box.x,
            y=box.y,
            width=box.width,
            height=box.height,
            gate=row.gate,
            row=row,
        ))
    return bars


# -------- Ground time --------

def ground_segments_for(row: FlightRow) -> List[Tuple[str, datetime, datetime]]:
    """Split a ground window into ``(type, start, end)`` stacked segments."""
    gs, ge = row.ground_start, row.ground_end
    if gs is None or ge is None:
        return []
    if row.landed_time is not None and row.operation_time is not None:
        return [("landed", gs, row.landed_time), ("operation", row.landed_time, row.operation_time)]
    if row.landed_time is not None:
        return [("landed", gs, row.landed_time)]
    return [("operation", gs, ge)]


def ground_geometry(
    rows: List[FlightRow],
    x: TimeScale,
    y: BandScale,
) -> Tuple[List[LineShape], List[RectShape]]:
    """Ground time as tick lines or stacked segments.

    The mode is chosen once for the whole pass: stacked segments as soon as
    any visible row carries a landed or operation timestamp.
    Segments clipped to zero width are dropped.
    """
    visible = [
        r for r in rows
        if r.ground_start is not None and r.ground_end is not None
        and is_visible(r.ground_start, r.ground_end, x.domain)
    ]
    grouping = group_wide_bodies(visible, ground_start)
    canonical = grouping.canonical_rows
    stacked = any(r.landed_time is not None or r.operation_time is not None for r in canonical)

    def line_y(row: FlightRow) -> Optional[float]:
        span = grouping.span_for(row, y)
        if span is not None:
            return span[0] + y.bandwidth * WIDEBODY_GROUND_RATIO
        band = y.position(row.gate)
        if band is None:
            return None
        return band + y.bandwidth * GROUND_TICK_RATIO

    r0, r1 = x.range
    lines: List[LineShape] = []
    segments: List[RectShape] = []
    for row in canonical:
        ly = line_y(row)
        if ly is None:
            continue
        if not stacked:
            lines.append(LineShape(
                key=f"{row.gate}|{_iso(row.ground_start)}|{_iso(row.ground_end)}",
                kind="ground",
                x1=max(r0, min(r1, x(row.ground_start))),
                y1=ly,
                x2=max(r0, min(r1, x(row.ground_end))),
                y2=ly,
            ))
            continue
        for seg_type, s, e in ground_segments_for(row):
            sx, sw = clamp_extent(x(s), x(e), x, min_width=0.0)
            if sw <= 0:
                continue
            segments.append(RectShape(
                key=f"{row.gate}|{_iso(s)}|{seg_type}",
                kind=f"ground-{seg_type}",
                x=sx,
                y=ly - GROUND_SEGMENT_HEIGHT / 2,
                width=sw,
                height=GROUND_SEGMENT_HEIGHT,
                gate=row.gate,
                row=row,
            ))
    return lines, segments


# -------- Labels --------

def bar_labels(
    bars: List[RectShape],
    x: TimeScale,
    min_label_width: float = 0.0,
) -> Tuple[List[TextLabel], List[TextLabel]]:
    """Center text and HH:MM edge labels for actual bars.

    Edge labels sit at the bar's own (unclamped) start/end. Bars narrower
    than ``min_label_width`` get no labels.
    """
    texts: List[TextLabel] = []
    times: List[TextLabel] = []
    for bar in bars:
        row = bar.row
        if row is None:
            continue
        s, e = actual_start(row), actual_end(row)
        if s is None or e is None:
            continue
        if bar.width < min_label_width:
            continue
        x1, x2 = x(s), x(e)
        y_mid = bar.y + bar.height / 2
        if row.actual_text:
            texts.append(TextLabel(
                key=f"{bar.key}|text",
                kind="actual",
                x=x1 + (x2 - x1) / 2,
                y=y_mid,
                text=row.actual_text,
                anchor="middle",
            ))
        times.append(TextLabel(f"{row.gate}|{_iso(s)}|start", "actual-time", x1 + LABEL_INSET, y_mid, hhmm(s), "start"))
        times.append(TextLabel(f"{row.gate}|{_iso(e)}|end", "actual-time", x2 - LABEL_INSET, y_mid, hhmm(e), "end"))
    return texts, times


def scheduled_time_labels(
    bars: List[RectShape],
    x: TimeScale,
    min_label_width: float = 0.0,
) -> List[TextLabel]:
    """HH:MM labels inside the bottom edge of scheduled bars."""
    labels: List[TextLabel] = []
    for bar in bars:
        row = bar.row
        if row is None or bar.width < min_label_width:
            continue
        s, e = row.scheduled_start, row.scheduled_end
        y_base = bar.y + bar.height - SCHEDULED_LABEL_LIFT
        labels.append(TextLabel(f"{row.gate}|{_iso(s)}|start", "scheduled-time", x(s) + LABEL_INSET, y_base, hhmm(s), "start"))
        labels.append(TextLabel(f"{row.gate}|{_iso(e)}|end", "scheduled-time", x(e) - LABEL_INSET, y_base, hhmm(e), "end"))
    return labels


# -------- Axes, grid, now line --------

def hour_ticks(x: TimeScale) -> Tuple[List[LineShape], List[TextLabel]]:
    """Hourly tick marks and ``HH:MM`` labels above the plot."""
    w0, w1 = x.domain
    t = w0.replace(minute=0, second=0, microsecond=0)
    if t < w0:
        t += timedelta(hours=1)
    lines: List[LineShape] = []
    labels: List[TextLabel] = []
    while t <= w1:
        px = x(t)
        key = t.isoformat()
        lines.append(LineShape(key, "tick", px, 0.0, px, -AXIS_TICK_SIZE))
        labels.append(TextLabel(key, "axis-x", px, -AXIS_LABEL_OFFSET, t.strftime("%H:%M"), "middle"))
        t += timedelta(hours=1)
    return lines, labels


def gate_axis(y: BandScale, plot_w: float) -> Tuple[List[LineShape], List[TextLabel]]:
    """Row grid lines through each band center and the gate names left of the plot."""
    grid: List[LineShape] = []
    labels: List[TextLabel] = []
    for gate in y.domain:
        yc = y.position(gate) + y.bandwidth / 2
        grid.append(LineShape(gate, "grid", 0.0, yc, plot_w, yc))
        labels.append(TextLabel(gate, "axis-y", -LABEL_INSET, yc, gate, "end"))
    return grid, labels


def now_marker(x: TimeScale, plot_h: float, now: datetime) -> Optional[Tuple[LineShape, TextLabel]]:
    """Vertical NOW line, only while ``now`` is inside the visible window."""
    w0, w1 = x.domain
    if now < w0 or now > w1:
        return None
    px = x(now)
    return (
        LineShape("now", "now", px, NOW_LINE_TOP, px, plot_h),
        TextLabel("now", "now", px, NOW_LABEL_Y, "NOW", "middle"),
    )
