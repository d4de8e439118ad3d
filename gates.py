"""Wide-body gate resolution and override table loading."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

WIDEBODY_SUFFIX = "W"
ADJACENT_GATE_OFFSET = 2

_GATE_PATTERN = re.compile(r"^([A-Za-z]*)(\d+)$")


def load_widebody_overrides(json_path: Path) -> Dict[str, List[str]]:
    """Load wide-body identifier to member gates mapping from JSON.

    File format: object of {"A17W": ["A17", "A15"], ...}. Entries that are not
    a list of at least two non-empty gate names are ignored.
    """
    if not json_path.exists():
        return {}
    try:
        try:
            data = json.loads(json_path.read_text(encoding="utf-8"))
        except UnicodeDecodeError:
            data = json.loads(json_path.read_text(encoding="utf-8-sig"))
    except Exception as e:
        logger.warning("Could not read wide-body overrides %s: %s", json_path, e)
        return {}

    if not isinstance(data, dict):
        return {}

    mapping: Dict[str, List[str]] = {}
    for ident, members in data.items():
        if not isinstance(members, list):
            continue
        gates = [str(m).strip() for m in members if str(m).strip()]
        if len(gates) < 2:
            continue
        mapping[str(ident).strip().upper()] = gates
    return mapping


def is_widebody_identifier(ident: Optional[str], suffix: str = WIDEBODY_SUFFIX) -> bool:
    if not ident:
        return False
    return ident.strip().upper().endswith(suffix.upper())


def adjacent_gate(base_gate: str, offset: int = ADJACENT_GATE_OFFSET) -> Optional[str]:
    """Gate next to ``base_gate`` (same alpha prefix, number + offset).

    Zero padding of the numeric part is preserved: ``A07`` -> ``A09``.
    """
    m = _GATE_PATTERN.match(base_gate.strip())
    if not m:
        return None
    prefix, digits = m.group(1), m.group(2)
    return f"{prefix}{int(digits) + offset:0{len(digits)}d}"


def resolve_widebody_gates(
    ident: str,
    overrides: Optional[Dict[str, List[str]]] = None,
    suffix: str = WIDEBODY_SUFFIX,
    offset: int = ADJACENT_GATE_OFFSET,
) -> Optional[List[str]]:
    """Return the physical gates a wide-body identifier occupies.

    The override table wins; otherwise ``<base><suffix>`` spans the base gate
    and its computed neighbour. ``None`` means the identifier renders singly.
    """
    key = ident.strip().upper()
    if overrides and key in overrides:
        return list(overrides[key])
    if not is_widebody_identifier(key, suffix):
        return None
    base = ident.strip()[: -len(suffix)]
    other = adjacent_gate(base, offset)
    if other is None:
        logger.debug("Wide-body identifier %s does not parse as prefix+number", ident)
        return None
    return [base, other]
