"""
Grid parsing utilities for pipegrid.

Builds a TableGraph from a concise text picture: one glyph per tile, one
line per row, plus optional footprint lines.
"""

from __future__ import annotations

from grid_types import Block, Box, Empty, glyph_box
from pipegrid import RuleSet, TableGraph

__all__ = ["parse_grid", "parse_boxes"]

GLYPH_HELP = "X (none), + (cross), - | (linear), ∨ ∧ > < (curved), ⊤ ⊣ ⊥ ⊢ (intersection)"

BLOCK_KEYWORDS = {"movable": True, "fixed": False}


def parse_boxes(row_str: str, row_idx: int = 0) -> list[Box]:
    """Parse one row of glyphs into tiles."""
    boxes: list[Box] = []
    for col_idx, char in enumerate(row_str):
        box = glyph_box(char)
        if box is None:
            raise ValueError(
                f"Invalid glyph '{char}'\n"
                f"  Row {row_idx}: \"{row_str}\"\n"
                f"  Position: column {col_idx}\n"
                f"  Valid glyphs: {GLYPH_HELP}"
            )
        boxes.append(box)
    return boxes


def _parse_block(line: str, line_idx: int) -> tuple[Block, bool]:
    keyword, _, numbers = line.partition(":")
    keyword = keyword.strip().lower()
    if keyword not in BLOCK_KEYWORDS:
        raise ValueError(
            f"Unknown block kind '{keyword}' on line {line_idx + 1}: '{line}'\n"
            f"  Expected 'movable: row col width height' or 'fixed: row col width height'"
        )
    fields = numbers.split()
    if len(fields) != 4 or not all(f.lstrip("-").isdigit() for f in fields):
        raise ValueError(
            f"Invalid block on line {line_idx + 1}: '{line}'\n"
            f"  Expected four integers: row col width height"
        )
    row, col, width, height = (int(f) for f in fields)
    return Block(row, col, width, height), BLOCK_KEYWORDS[keyword]


def parse_grid(definition: str, rules: RuleSet | None = None) -> TableGraph:
    """
    Parse a grid from a concise multi-line format.

    Format:
    - Each non-blank line without a colon is a row of glyphs (no separators)
    - Short rows are padded with X (none) tiles
    - `movable: row col width height` registers a movable footprint
    - `fixed: row col width height` registers a non-movable footprint

    Example:
        \"\"\"
        +-+
        |X|
        +-+
        fixed: 1 1 1 1
        \"\"\"

        Creates a 3x3 grid of crosses and pipes around an empty centre,
        with a non-movable footprint on the centre cell.

    Args:
        definition: Multi-line string
        rules: Optional RuleSet for the new grid

    Returns:
        TableGraph with edges built

    Raises:
        ValueError: On unknown glyphs, malformed block lines or no rows
    """
    lines = [line.strip() for line in definition.strip().split("\n") if line.strip()]

    rows: list[list[Box]] = []
    blocks: list[tuple[Block, bool]] = []
    for line_idx, line in enumerate(lines):
        if ":" in line:
            blocks.append(_parse_block(line, line_idx))
        else:
            rows.append(parse_boxes(line, len(rows)))

    if not rows:
        raise ValueError("Grid definition has no rows")

    # Pad rows to maximum length with Empty tiles
    columns = max(len(row) for row in rows)
    boxes: list[Box] = []
    for row in rows:
        boxes.extend(row + [Empty()] * (columns - len(row)))

    return TableGraph.from_boxes(
        len(rows),
        columns,
        boxes,
        movable_blocks=[block for block, movable in blocks if movable],
        non_movable_blocks=[block for block, movable in blocks if not movable],
        rules=rules,
    )
