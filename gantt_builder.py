"""One render pass: filtered rows -> visible window -> scales -> ordered layers."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from colors import ColorLookup
from datatypes import FilterCriteria, LineShape, ParsedData, PolygonShape, RectShape, TextLabel
from filters import build_filtered_data
from geometry import (
    BandScale,
    TimeScale,
    TimeWindow,
    actual_bars,
    bar_labels,
    gate_axis,
    ground_geometry,
    hour_ticks,
    now_marker,
    scheduled_bars,
    scheduled_time_labels,
    tow_clip_shapes,
)
from settings import DisplaySettings, Margin
from time_domain import apply_hour_window, resolve_time_domain

logger = logging.getLogger(__name__)


@dataclass
class GanttLayout:
    """Positioned shapes of one pass, in plot-area coordinates."""
    window: TimeWindow
    gates: List[str]
    width: float
    height: float
    plot_width: float
    plot_height: float
    margin: Margin
    ticks: List[LineShape] = field(default_factory=list)
    tick_labels: List[TextLabel] = field(default_factory=list)
    grid_lines: List[LineShape] = field(default_factory=list)
    gate_labels: List[TextLabel] = field(default_factory=list)
    ground_lines: List[LineShape] = field(default_factory=list)
    ground_segments: List[RectShape] = field(default_factory=list)
    scheduled_bars: List[RectShape] = field(default_factory=list)
    scheduled_labels: List[TextLabel] = field(default_factory=list)
    actual_bars: List[RectShape] = field(default_factory=list)
    tow_clips: List[PolygonShape] = field(default_factory=list)
    now_line: Optional[LineShape] = None
    now_label: Optional[TextLabel] = None
    bar_texts: List[TextLabel] = field(default_factory=list)
    time_labels: List[TextLabel] = field(default_factory=list)

    def layers(self) -> List[Tuple[str, list]]:
        """Layers back to front, the order a renderer must draw them in."""
        now = [s for s in (self.now_line, self.now_label) if s is not None]
        return [
            ("axes", self.grid_lines + self.ticks + self.tick_labels + self.gate_labels),
            ("ground", self.ground_lines + self.ground_segments),
            ("scheduled", self.scheduled_bars + self.scheduled_labels),
            ("bars", self.tow_clips + self.actual_bars),
            ("now", now),
            ("labels", self.bar_texts + self.time_labels),
        ]


def canvas_size(
    window: TimeWindow,
    gate_count: int,
    settings: DisplaySettings,
    viewport: Tuple[float, float],
) -> Tuple[float, float]:
    """Full canvas size: one px_per_hour column per hour, one row per gate."""
    m = settings.margin
    hours = math.ceil((window[1] - window[0]) / timedelta(hours=1))
    width = max(viewport[0], m.left + m.right + hours * settings.px_per_hour)
    height = max(viewport[1], m.top + m.bottom + gate_count * settings.row_height)
    return width, height


def build_gantt_layout(
    baseline: ParsedData,
    criteria: FilterCriteria,
    settings: Optional[DisplaySettings] = None,
    viewport: Tuple[float, float] = (0.0, 0.0),
    now: Optional[datetime] = None,
) -> Optional[GanttLayout]:
    """Compute every shape of the chart for ``criteria``.

    Returns None when no row survives filtering or no row carries a core
    timestamp; the caller draws an empty state.
    """
    settings = (settings or DisplaySettings()).clamped()
    data = build_filtered_data(baseline, criteria)
    if data is None:
        logger.info("No rows left after filtering")
        return None
    window = resolve_time_domain(data.rows)
    if window is None:
        logger.info("Filtered rows carry no core timestamps")
        return None
    window = apply_hour_window(window, criteria, data.time_domain[0])

    width, height = canvas_size(window, len(data.gates), settings, viewport)
    m = settings.margin
    plot_w = width - m.left - m.right
    plot_h = height - m.top - m.bottom

    x = TimeScale(window, (0.0, plot_w))
    y = BandScale(data.gates, (0.0, plot_h))
    color = ColorLookup(data.rows, settings.color_dimension)

    layout = GanttLayout(
        window=window,
        gates=data.gates,
        width=width,
        height=height,
        plot_width=plot_w,
        plot_height=plot_h,
        margin=m,
    )
    layout.ticks, layout.tick_labels = hour_ticks(x)
    layout.grid_lines, layout.gate_labels = gate_axis(y, plot_w)
    layout.ground_lines, layout.ground_segments = ground_geometry(data.rows, x, y)
    layout.scheduled_bars = scheduled_bars(data.rows, x, y)
    layout.scheduled_labels = scheduled_time_labels(layout.scheduled_bars, x, settings.min_label_width)
    layout.actual_bars = actual_bars(data.rows, x, y, color)
    layout.tow_clips = tow_clip_shapes(layout.actual_bars)
    marker = now_marker(x, plot_h, now or datetime.now())
    if marker is not None:
        layout.now_line, layout.now_label = marker
    layout.bar_texts, layout.time_labels = bar_labels(layout.actual_bars, x, settings.min_label_width)

    logger.debug(
        "Layout %s-%s: %d gates, %d actual, %d scheduled, %d clips",
        window[0], window[1], len(data.gates), len(layout.actual_bars),
        len(layout.scheduled_bars), len(layout.tow_clips),
    )
    return layout
