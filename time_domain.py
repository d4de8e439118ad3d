"""Visible time window: auto-zoom / fixed 24h and the hour-of-day viewport."""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta
from typing import Iterable, Optional, Tuple

from datatypes import DOMAIN_FIELDS, FilterCriteria, FlightRow, row_timestamps

logger = logging.getLogger(__name__)

TimeWindow = Tuple[datetime, datetime]

AUTO_ZOOM_PADDING = timedelta(hours=1)
FIXED_WINDOW = timedelta(hours=24)


def resolve_time_domain(rows: Iterable[FlightRow]) -> Optional[TimeWindow]:
    """Compute the default visible window from the rows' core timestamps.

    Spans shorter than 24h are padded by one hour on each side; longer spans
    show the first 24h from the earliest event. Tow times do not size the
    window. Returns None when no row has a core timestamp.
    """
    stamps = [ts for r in rows for ts in row_timestamps(r, DOMAIN_FIELDS)]
    if not stamps:
        return None

    data_min, data_max = min(stamps), max(stamps)
    if data_max - data_min < FIXED_WINDOW:
        return data_min - AUTO_ZOOM_PADDING, data_max + AUTO_ZOOM_PADDING
    return data_min, data_min + FIXED_WINDOW


def _clamp_hour(h: float) -> float:
    return max(0.0, min(24.0, float(h)))


def apply_hour_window(
    window: TimeWindow,
    criteria: FilterCriteria,
    data_start: Optional[datetime] = None,
) -> TimeWindow:
    """Narrow ``window`` to the hour-of-day range of ``criteria``.

    The range is laid on the calendar day of ``data_start``, the earliest data
    timestamp before padding, or of the window start when not given (local time);
    ``time_max == 24`` is midnight of the following day. An empty or inverted
    range leaves the window unchanged.
    """
    lo, hi = _clamp_hour(criteria.time_min), _clamp_hour(criteria.time_max)
    if lo <= 0 and hi >= 24:
        return window
    if hi <= lo:
        logger.info("Ignoring empty hour window %s-%s", criteria.time_min, criteria.time_max)
        return window

    day = (data_start or window[0]).date()
    midnight = datetime.combine(day, time())
    return midnight + timedelta(hours=lo), midnight + timedelta(hours=hi)
