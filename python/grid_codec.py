"""
Persisted form of a TableGraph.

A grid is stored as its dimensions, its row-major boxes and its two
footprint pools. Edges are derived state and are rebuilt on load.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from grid_types import (
    Block,
    Box,
    Cross,
    Curved,
    Direction,
    Empty,
    Intersection,
    Linear,
    Orientation,
)
from pipegrid import BlockOverlapError, RuleSet, TableGraph

logger = logging.getLogger(__name__)

__all__ = [
    "DecodeError",
    "MissingPayloadError",
    "UnknownTagError",
    "encode_box",
    "decode_box",
    "encode_block",
    "decode_block",
    "encode_grid",
    "decode_grid",
    "dumps",
    "loads",
]

# Tag names in wire order; the index is the tag's integer raw value
TAGS = ("None", "Cross", "Linear", "Curved", "Intersection")

_ORIENTATIONS = tuple(Orientation)
_DIRECTIONS = tuple(Direction)


class DecodeError(ValueError):
    """The persisted form cannot be turned back into a grid."""


class MissingPayloadError(DecodeError):
    """A Linear box without orientation, or a Curved/Intersection box without direction."""


class UnknownTagError(DecodeError):
    """A tag, orientation or direction value outside the known set."""


# =============================================================================
# Boxes
# =============================================================================


def encode_box(box: Box) -> dict[str, str]:
    match box:
        case Empty():
            return {"tag": "None"}
        case Cross():
            return {"tag": "Cross"}
        case Linear(orientation=o):
            return {"tag": "Linear", "orientation": o.value}
        case Curved(direction=d):
            return {"tag": "Curved", "direction": d.value}
        case Intersection(direction=d):
            return {"tag": "Intersection", "direction": d.value}
    raise TypeError(f"Not a box: {box!r}")


def _enum_value(enum_cls: type, members: tuple, raw: Any, field: str) -> Any:
    """Accept either the member's name on the wire or its integer raw value."""
    if isinstance(raw, bool):
        raise UnknownTagError(f"Invalid {field}: {raw!r}")
    if isinstance(raw, int):
        if 0 <= raw < len(members):
            return members[raw]
        raise UnknownTagError(f"Invalid {field}: {raw} (expected 0..{len(members) - 1})")
    try:
        return enum_cls(raw)
    except ValueError:
        valid = ", ".join(m.value for m in members)
        raise UnknownTagError(f"Invalid {field}: {raw!r} (expected one of {valid})") from None


def decode_box(record: dict[str, Any]) -> Box:
    """
    Decode one box record.

    Raises:
        UnknownTagError: For a tag outside the five variants
        MissingPayloadError: When the variant's payload is absent
    """
    if not isinstance(record, dict):
        raise DecodeError(f"Box record must be an object, got {record!r}")
    if "tag" not in record:
        raise DecodeError(f"Box record has no tag: {record!r}")

    tag = record["tag"]
    if isinstance(tag, int) and not isinstance(tag, bool) and 0 <= tag < len(TAGS):
        tag = TAGS[tag]
    if tag not in TAGS:
        raise UnknownTagError(f"Unknown box tag: {tag!r} (expected one of {', '.join(TAGS)})")

    orientation = record.get("orientation")
    direction = record.get("direction")

    match tag:
        case "None":
            return Empty()
        case "Cross":
            return Cross()
        case "Linear":
            if orientation is None:
                raise MissingPayloadError(f"Linear box without orientation: {record!r}")
            return Linear(_enum_value(Orientation, _ORIENTATIONS, orientation, "orientation"))
        case "Curved":
            if direction is None:
                raise MissingPayloadError(f"Curved box without direction: {record!r}")
            return Curved(_enum_value(Direction, _DIRECTIONS, direction, "direction"))
        case _:
            if direction is None:
                raise MissingPayloadError(f"Intersection box without direction: {record!r}")
            return Intersection(_enum_value(Direction, _DIRECTIONS, direction, "direction"))


# =============================================================================
# Blocks
# =============================================================================


def encode_block(block: Block) -> dict[str, int]:
    return {"row": block.row, "col": block.col, "width": block.width, "height": block.height}


def _int_field(record: dict[str, Any], field: str, what: str) -> int:
    value = record[field]
    # bool is an int subclass; floats and numeric strings are not truncated
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"Invalid {what} field {field!r}: expected an integer, got {value!r}")
    return value


def decode_block(record: dict[str, Any]) -> Block:
    if not isinstance(record, dict):
        raise DecodeError(f"Block record must be an object, got {record!r}")
    try:
        fields = {
            name: _int_field(record, name, "block") for name in ("row", "col", "width", "height")
        }
    except KeyError as e:
        raise DecodeError(f"Block record missing field {e}: {record!r}") from e
    try:
        return Block(**fields)
    except ValueError as e:
        raise DecodeError(f"Invalid block record {record!r}: {e}") from e


def _record_list(data: dict[str, Any], field: str) -> list[Any]:
    records = data.get(field, [])
    if not isinstance(records, list):
        raise DecodeError(f"Grid field {field!r} must be a list, got {records!r}")
    return records


def _sorted_blocks(blocks: frozenset[Block]) -> list[Block]:
    return sorted(blocks, key=lambda b: (b.row, b.col, b.width, b.height))


# =============================================================================
# Grids
# =============================================================================


def encode_grid(grid: TableGraph) -> dict[str, Any]:
    """Persisted form of a grid. Edges are left out."""
    return {
        "rows": grid.rows,
        "columns": grid.columns,
        "boxes": [encode_box(box) for box in grid.boxes],
        "movableBlocks": [encode_block(b) for b in _sorted_blocks(grid.movable_blocks)],
        "nonMovableBlocks": [encode_block(b) for b in _sorted_blocks(grid.non_movable_blocks)],
    }


def decode_grid(data: dict[str, Any], rules: RuleSet | None = None) -> TableGraph:
    """
    Rebuild a grid (and its edges) from its persisted form.

    Raises:
        DecodeError: On missing fields, a box count that does not match the
            dimensions, or any invalid box or block record
    """
    if not isinstance(data, dict):
        raise DecodeError(f"Grid record must be an object, got {type(data).__name__}")
    missing = [key for key in ("rows", "columns", "boxes") if key not in data]
    if missing:
        raise DecodeError(f"Grid record missing field(s): {', '.join(missing)}")

    rows = _int_field(data, "rows", "grid")
    columns = _int_field(data, "columns", "grid")
    boxes = [decode_box(record) for record in _record_list(data, "boxes")]
    movable = [decode_block(record) for record in _record_list(data, "movableBlocks")]
    non_movable = [decode_block(record) for record in _record_list(data, "nonMovableBlocks")]

    try:
        grid = TableGraph.from_boxes(rows, columns, boxes, movable, non_movable, rules)
    except BlockOverlapError:
        raise
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Invalid grid record: {e}") from e

    logger.debug(
        "decode_grid: %dx%d grid, %d movable / %d non-movable blocks",
        rows,
        columns,
        len(grid.movable_blocks),
        len(grid.non_movable_blocks),
    )
    return grid


def dumps(grid: TableGraph, indent: int | None = None) -> str:
    return json.dumps(encode_grid(grid), indent=indent, ensure_ascii=False)


def loads(text: str, rules: RuleSet | None = None) -> TableGraph:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Invalid JSON: {e}") from e
    return decode_grid(data, rules)
