"""Row filtering by date bounds and case-insensitive text criteria."""

from __future__ import annotations

import logging
from datetime import datetime, time
from typing import List, Optional

from csv_parser import build_parsed_data
from datatypes import FILTER_REFERENCE_FIELDS, FilterCriteria, FlightRow, ParsedData, first_available

logger = logging.getLogger(__name__)

END_OF_DAY = time(23, 59, 59, 999000)


def _contains(needle: str, *haystacks: Optional[str]) -> bool:
    """True if any non-empty haystack contains ``needle`` ignoring case."""
    n = needle.lower()
    return any(h is not None and n in h.lower() for h in haystacks)


def _passes_date(row: FlightRow, start: Optional[datetime], end: Optional[datetime]) -> bool:
    if start is None and end is None:
        return True
    ref = first_available(row, FILTER_REFERENCE_FIELDS)
    if ref is None:
        return False
    if start is not None and ref < start:
        return False
    if end is not None and ref > end:
        return False
    return True


def row_matches(row: FlightRow, criteria: FilterCriteria) -> bool:
    start = datetime.combine(criteria.start_date, time()) if criteria.start_date else None
    end = datetime.combine(criteria.end_date, END_OF_DAY) if criteria.end_date else None
    if not _passes_date(row, start, end):
        return False

    terminal = criteria.terminal.strip()
    if terminal and not _contains(terminal, row.terminal):
        return False
    gate = criteria.gate.strip()
    if gate and not _contains(gate, row.gate, row.parent_gate):
        return False
    airline = criteria.airline.strip()
    if airline and not _contains(airline, row.airline or row.actual_color):
        return False
    flight = criteria.flight_number.strip()
    if flight and not _contains(flight, row.flight_number or row.actual_text):
        return False
    tail = criteria.tail.strip()
    if tail and not _contains(tail, row.tail_number):
        return False
    return True


def apply_filters(rows: List[FlightRow], criteria: FilterCriteria) -> List[FlightRow]:
    """Rows passing every criterion, in input order.

    ``time_min``/``time_max`` are ignored here; they only move the viewport.
    """
    return [r for r in rows if row_matches(r, criteria)]


def build_filtered_data(baseline: ParsedData, criteria: FilterCriteria) -> Optional[ParsedData]:
    """Derive a fresh ParsedData from ``baseline``; None when nothing survives."""
    rows = apply_filters(baseline.rows, criteria)
    logger.debug("Filters kept %d of %d rows", len(rows), len(baseline.rows))
    return build_parsed_data(rows)
