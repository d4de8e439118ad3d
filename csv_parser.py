"""Tabular flight data ingestion: role mapping, date parsing, wide-body expansion."""

from __future__ import annotations

import csv
import io
import logging
import numbers
import re
import unicodedata
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from datatypes import FlightRow, ParsedData, PARSED_DOMAIN_FIELDS, row_timestamps
from gates import resolve_widebody_gates

logger = logging.getLogger(__name__)

MAX_TOOLTIP_FIELDS = 10

# Semantic role name -> FlightRow attribute
ROLE_FIELDS: Dict[str, str] = {
    "gate": "gate",
    "parentGate": "parent_gate",
    "actualColor": "actual_color",
    "groundStart": "ground_start",
    "groundEnd": "ground_end",
    "landedTime": "landed_time",
    "operationTime": "operation_time",
    "scheduledStart": "scheduled_start",
    "scheduledEnd": "scheduled_end",
    "actualStart": "actual_start",
    "actualEnd": "actual_end",
    "towOff": "tow_off",
    "towOffStatus": "tow_off_status",
    "towOn": "tow_on",
    "towOnStatus": "tow_on_status",
    "actualText": "actual_text",
    "airline": "airline",
    "flightNumber": "flight_number",
    "tailNumber": "tail_number",
    "aircraftModel": "aircraft_model",
    "turnId": "turn_id",
    "turnDuration": "turn_duration",
    "terminal": "terminal",
    "domesticIntl": "domestic_intl",
}

DATE_ROLES = {
    "groundStart", "groundEnd", "landedTime", "operationTime",
    "scheduledStart", "scheduledEnd", "actualStart", "actualEnd",
    "towOff", "towOn",
}

_DDMMYYYY = re.compile(
    r"^(\d{1,2})/(\d{1,2})/(\d{4})(?:[ T](\d{1,2}):(\d{2})(?::(\d{2}))?)?$"
)


def _normalize(s: str) -> str:
    """Normalize a header for role matching (case, accents, separators)."""
    s = unicodedata.normalize("NFKD", s)
    s = "".join(c for c in s if not unicodedata.combining(c))
    s = s.lower().strip()
    return "".join(c for c in s if c not in " _-")


_ROLE_BY_HEADER = {_normalize(role): role for role in ROLE_FIELDS}


def _to_local_naive(d: datetime) -> datetime:
    if d.tzinfo is not None:
        return d.astimezone().replace(tzinfo=None)
    return d


def parse_date(value: Any) -> Optional[datetime]:
    """Parse a date/time cell into a naive local datetime.

    Tries, in order: datetime pass-through, numeric epoch milliseconds,
    ``DD/MM/YYYY[ HH:mm[:ss]]`` and generic pandas parsing. Returns None for
    empty or unparseable input.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        try:
            if pd.isna(value):
                return None
        except (TypeError, ValueError):
            pass

    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        return _to_local_naive(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        if not value:
            return None
        try:
            return datetime.fromtimestamp(float(value) / 1000.0)
        except (OverflowError, OSError, ValueError):
            return None

    s = str(value).strip()
    if not s:
        return None

    m = _DDMMYYYY.match(s)
    if m:
        dd, mm, yyyy, hh, mi, ss = m.groups()
        try:
            return datetime(int(yyyy), int(mm), int(dd), int(hh or 0), int(mi or 0), int(ss or 0))
        except ValueError:
            return None

    try:
        ts = pd.to_datetime(s, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if ts is None or pd.isna(ts):
        return None
    return _to_local_naive(ts.to_pydatetime())


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    s = str(value).strip()
    return s or None


def map_columns(fieldnames: Sequence[str]) -> Tuple[Dict[str, str], List[str]]:
    """Split headers into role columns and tooltip columns.

    Returns ``(role -> header, tooltip_headers)``. The first header matching a
    role wins; headers matching no role become tooltip fields (at most 10).
    """
    by_role: Dict[str, str] = {}
    tooltip: List[str] = []
    for f in fieldnames:
        role = _ROLE_BY_HEADER.get(_normalize(str(f)))
        if role is None:
            if len(tooltip) < MAX_TOOLTIP_FIELDS:
                tooltip.append(f)
            continue
        by_role.setdefault(role, f)
    return by_role, tooltip


def _row_from_record(
    rec: Mapping[str, Any],
    by_role: Dict[str, str],
    tooltip_cols: List[str],
    index: int,
) -> Optional[FlightRow]:
    values: Dict[str, Any] = {}
    for role, attr in ROLE_FIELDS.items():
        col = by_role.get(role)
        raw = rec.get(col) if col is not None else None
        if role in DATE_ROLES:
            values[attr] = parse_date(raw)
        else:
            values[attr] = _text(raw)

    gate = values.pop("gate")
    if not gate:
        return None
    values["actual_text"] = values["actual_text"] or ""
    tooltip_fields = [(col, rec.get(col)) for col in tooltip_cols]
    return FlightRow(gate=gate, tooltip_fields=tooltip_fields, identity=index, **values)


def expand_widebody(row: FlightRow, overrides: Optional[Dict[str, List[str]]] = None) -> List[FlightRow]:
    """Duplicate a wide-body row across the gates it occupies.

    The identifier is ``parent_gate`` when present, otherwise ``gate``. Rows
    whose identifier does not resolve are kept as a single plain row.
    """
    ident = row.parent_gate or row.gate
    members = resolve_widebody_gates(ident, overrides)
    if not members:
        if row.parent_gate:
            return [replace(row, parent_gate=None)]
        return [row]
    return [replace(row, gate=g, parent_gate=ident) for g in members]


def parse_records(
    records: Iterable[Mapping[str, Any]],
    fieldnames: Sequence[str],
    overrides: Optional[Dict[str, List[str]]] = None,
) -> List[FlightRow]:
    """Build flight rows from dict records keyed by column header."""
    by_role, tooltip_cols = map_columns(fieldnames)
    if "gate" not in by_role:
        logger.warning("No gate column among %d headers; nothing to draw", len(fieldnames))
        return []

    rows: List[FlightRow] = []
    skipped = 0
    for index, rec in enumerate(records):
        row = _row_from_record(rec, by_role, tooltip_cols, index)
        if row is None:
            skipped += 1
            continue
        rows.extend(expand_widebody(row, overrides))
    if skipped:
        logger.info("Skipped %d records without gate", skipped)
    return rows


def read_flight_rows_from_csv_bytes(
    data: bytes,
    overrides: Optional[Dict[str, List[str]]] = None,
) -> List[FlightRow]:
    """Parse a gate schedule CSV from bytes.

    Supports multiple encodings: utf-8-sig, cp1252, latin-1.
    """
    last_err: Exception | None = None
    for enc in ("utf-8-sig", "cp1252", "latin-1"):
        try:
            text = data.decode(enc)
            reader = csv.DictReader(io.StringIO(text))
            fieldnames = list(reader.fieldnames or [])
            rows = parse_records(reader, fieldnames, overrides)
            logger.info("Read %d flight rows from CSV (%s)", len(rows), enc)
            return rows
        except (UnicodeDecodeError, csv.Error) as e:
            last_err = e
            continue
    raise RuntimeError(f"No se pudo leer el CSV: {last_err}")


def rows_from_dataframe(
    df: pd.DataFrame,
    overrides: Optional[Dict[str, List[str]]] = None,
) -> List[FlightRow]:
    fieldnames = [str(c) for c in df.columns]
    records = df.rename(columns=str).to_dict("records")
    return parse_records(records, fieldnames, overrides)


def build_parsed_data(rows: List[FlightRow]) -> Optional[ParsedData]:
    """Assemble ParsedData; None when there is nothing to draw."""
    if not rows:
        return None

    gates = sorted({r.gate for r in rows} | {r.parent_gate for r in rows if r.parent_gate})
    stamps = [ts for r in rows for ts in row_timestamps(r, PARSED_DOMAIN_FIELDS)]
    if not stamps:
        logger.info("No timestamps in %d rows; no chart", len(rows))
        return None
    return ParsedData(rows=list(rows), gates=gates, time_domain=(min(stamps), max(stamps)))


def rows_to_dataframe(rows: List[FlightRow]) -> pd.DataFrame:
    """Tabular view of rows for display."""
    columns = [
        "Puerta", "Puerta padre", "Aerolínea", "Vuelo", "Matrícula", "Terminal",
        "Inicio prog.", "Fin prog.", "Inicio real", "Fin real",
    ]
    data = [
        [
            r.gate, r.parent_gate, r.airline, r.flight_number, r.tail_number, r.terminal,
            r.scheduled_start, r.scheduled_end, r.actual_start or r.tow_on, r.actual_end or r.tow_off,
        ]
        for r in rows
    ]
    return pd.DataFrame(data, columns=columns)
