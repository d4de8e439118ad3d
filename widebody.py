"""Grouping of wide-body rows that span two gates into one visual element."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from datatypes import FlightRow

StartOf = Callable[[FlightRow], Optional[datetime]]


def group_key(row: FlightRow, start_of: StartOf, end_of: Optional[StartOf] = None) -> Optional[str]:
    """``parent|start`` key of a wide-body member; None for plain rows.

    Without a start the end timestamp (from ``end_of``) keys the group, so
    end-only flights on the same parent stay apart.
    """
    if not row.parent_gate:
        return None
    start = start_of(row)
    if start is None and end_of is not None:
        end = end_of(row)
        if end is not None:
            return f"{row.parent_gate}|end:{end.isoformat()}"
    return f"{row.parent_gate}|{start.isoformat() if start else ''}"


@dataclass
class WideBodyGrouping:
    start_of: StartOf
    end_of: Optional[StartOf] = None
    groups: Dict[str, List[FlightRow]] = field(default_factory=dict)
    canonical_rows: List[FlightRow] = field(default_factory=list)

    def members(self, row: FlightRow) -> List[FlightRow]:
        key = group_key(row, self.start_of, self.end_of)
        if key is None:
            return [row]
        return self.groups.get(key, [row])

    def span_for(self, row: FlightRow, band) -> Optional[Tuple[float, float]]:
        """Vertical ``(top, bottom)`` covering every member's gate band.

        None unless at least two member gates resolve on ``band``; the caller
        then falls back to the row's own band.
        """
        members = self.members(row)
        if len(members) < 2:
            return None
        positions = [p for p in (band.position(m.gate) for m in members) if p is not None]
        if len(positions) < 2:
            return None
        return min(positions), max(positions) + band.bandwidth


def group_wide_bodies(
    rows: List[FlightRow],
    start_of: StartOf,
    end_of: Optional[StartOf] = None,
) -> WideBodyGrouping:
    """Group rows per element type and keep the first member of each group.

    ``start_of`` is the reference start for the element type (e.g. actual
    start falling back to tow-on for actual bars); ``end_of`` keys rows that
    have no start. Non-wide-body rows are always canonical; input order is
    preserved.
    """
    grouping = WideBodyGrouping(start_of=start_of, end_of=end_of)
    for row in rows:
        key = group_key(row, start_of, end_of)
        if key is None:
            grouping.canonical_rows.append(row)
            continue
        members = grouping.groups.setdefault(key, [])
        if not members:
            grouping.canonical_rows.append(row)
        members.append(row)
    return grouping
