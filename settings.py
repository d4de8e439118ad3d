"""Display settings for the Gantt view."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from colors import COLOR_DIMENSIONS

logger = logging.getLogger(__name__)

ROW_HEIGHT_RANGE = (30, 100)
PX_PER_HOUR_RANGE = (60, 300)


@dataclass(frozen=True)
class Margin:
    top: float = 40
    right: float = 20
    bottom: float = 20
    left: float = 90


@dataclass(frozen=True)
class DisplaySettings:
    """Layout knobs of the chart; pixel values are per gate row / per hour."""
    row_height: int = 44
    px_per_hour: int = 120
    color_dimension: str = "actualColor"
    min_label_width: float = 0.0
    margin: Margin = field(default_factory=Margin)

    def clamped(self) -> "DisplaySettings":
        lo, hi = ROW_HEIGHT_RANGE
        row_height = max(lo, min(hi, int(self.row_height)))
        lo, hi = PX_PER_HOUR_RANGE
        px_per_hour = max(lo, min(hi, int(self.px_per_hour)))
        dimension = self.color_dimension if self.color_dimension in COLOR_DIMENSIONS else "actualColor"
        return DisplaySettings(
            row_height=row_height,
            px_per_hour=px_per_hour,
            color_dimension=dimension,
            min_label_width=max(0.0, float(self.min_label_width)),
            margin=self.margin,
        )


def load_display_settings(section: Optional[Mapping[str, Any]]) -> DisplaySettings:
    """Build settings from a mapping (e.g. the ``display`` table of secrets).

    Unknown keys are ignored and bad values fall back to defaults.
    """
    if not section:
        return DisplaySettings()
    defaults = DisplaySettings()
    try:
        settings = DisplaySettings(
            row_height=int(section.get("row_height", defaults.row_height)),
            px_per_hour=int(section.get("px_per_hour", defaults.px_per_hour)),
            color_dimension=str(section.get("color_dimension", defaults.color_dimension)),
            min_label_width=float(section.get("min_label_width", defaults.min_label_width)),
        )
    except (TypeError, ValueError) as e:
        logger.warning("Invalid display settings, using defaults: %s", e)
        return defaults
    return settings.clamped()
