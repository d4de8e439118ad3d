"""Keyed store of last-rendered shapes, diffed on every pass."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Tuple

ShapeId = Tuple[str, str, str]


@dataclass
class ShapeOp:
    op: str  # create | update | remove
    key: str
    shape: Any


def shape_id(shape: Any) -> ShapeId:
    """Identity of a shape in the arena.

    Element keys are only unique per shape type and kind (a tick line and its
    label share the hour key), so both are part of the identity.
    """
    return type(shape).__name__, getattr(shape, "kind", ""), shape.key


class ShapeArena:
    """Remembers shapes by key so a renderer touches only what changed.

    Keys are stable per element (e.g. ``gate|startISO|endISO``), so a bar that
    moves keeps its identity and comes back as an update.
    """

    def __init__(self) -> None:
        self.shapes: Dict[ShapeId, Any] = {}

    def __len__(self) -> int:
        return len(self.shapes)

    def sync(self, shapes: Iterable[Any]) -> List[ShapeOp]:
        """Replace the arena content with ``shapes``; return the operations.

        Removals come first. Later shapes win over earlier ones sharing an
        identity.
        """
        incoming: Dict[ShapeId, Any] = {}
        for shape in shapes:
            incoming[shape_id(shape)] = shape

        ops: List[ShapeOp] = []
        for ident, shape in self.shapes.items():
            if ident not in incoming:
                ops.append(ShapeOp("remove", shape.key, shape))
        for ident, shape in incoming.items():
            previous = self.shapes.get(ident)
            if previous is None:
                ops.append(ShapeOp("create", shape.key, shape))
            elif previous != shape:
                ops.append(ShapeOp("update", shape.key, shape))
        self.shapes = incoming
        return ops

    def clear(self) -> List[ShapeOp]:
        return self.sync([])
