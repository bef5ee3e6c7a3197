"""
Sliding pipe-tile grid with a derived connectivity graph.
Every mutation rebuilds the adjacency list; shortest paths read it.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Union

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
    Rotation,
    box_glyph,
)

logger = logging.getLogger(__name__)

__all__ = [
    "Axis",
    "Block",
    "BlockOverlapError",
    "Box",
    "Cell",
    "Cross",
    "Curved",
    "Direction",
    "Empty",
    "GridIndexError",
    "Intersection",
    "Linear",
    "MoveResult",
    "Orientation",
    "OverlapPolicy",
    "Rotation",
    "RuleSet",
    "TableGraph",
]


class OverlapPolicy(Enum):
    """What to do when a footprint overlaps one in the other pool."""

    REJECT = "reject"  # Raise BlockOverlapError at registration
    ALLOW = "allow"  # Accept; the non-movable footprint still blocks shifts


@dataclass(frozen=True)
class RuleSet:
    """Rules governing grid behavior."""

    overlap_policy: OverlapPolicy = OverlapPolicy.REJECT


class GridIndexError(IndexError):
    """A row, column or position outside the grid."""


class BlockOverlapError(ValueError):
    """A movable and a non-movable footprint would share a cell."""


class Axis(Enum):
    """Kind of grid line affected by a shift."""

    ROW = "row"
    COL = "col"


@dataclass(frozen=True)
class MoveResult:
    """
    Outcome of a shift.

    Truthy when the lines moved. A blocked shift carries the first
    non-movable footprint found across the candidate lines.
    """

    moved: bool
    axis: Axis
    lines: range
    blocked_by: Block | None = None

    def __bool__(self) -> bool:
        return self.moved


# A cell is addressed either by its row-major position or by (row, col)
Cell = Union[int, tuple[int, int]]


# =============================================================================
# Grid Engine
# =============================================================================


class TableGraph:
    """
    A rows x columns grid of tiles plus obstacle footprints.

    `edges[pos]` lists the positions reachable from `pos` in one hop: the
    neighbor in connector direction D, provided it exposes the opposite
    connector. Edges never wrap around the border even though shifts do.
    """

    def __init__(self, rows: int, columns: int, rules: RuleSet | None = None) -> None:
        if rows <= 0 or columns <= 0:
            raise ValueError(f"Grid must have positive size, got {rows}x{columns}")
        self.rows = rows
        self.columns = columns
        self.rules = rules if rules is not None else RuleSet()
        self._boxes: list[Box] = [Empty()] * (rows * columns)
        self._movable: set[Block] = set()
        self._non_movable: set[Block] = set()
        self._edges: list[list[int]] = []
        self.reload_edges()

    @classmethod
    def from_boxes(
        cls,
        rows: int,
        columns: int,
        boxes: Iterable[Box],
        movable_blocks: Iterable[Block] = (),
        non_movable_blocks: Iterable[Block] = (),
        rules: RuleSet | None = None,
    ) -> TableGraph:
        """Build a grid from a row-major tile sequence and footprints."""
        grid = cls(rows, columns, rules)
        boxes = list(boxes)
        if len(boxes) != rows * columns:
            raise ValueError(
                f"Expected {rows * columns} boxes for a {rows}x{columns} grid, got {len(boxes)}"
            )
        grid._boxes = boxes
        for block in non_movable_blocks:
            grid.add_block(block, movable=False)
        for block in movable_blocks:
            grid.add_block(block, movable=True)
        grid.reload_edges()
        return grid

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def boxes(self) -> tuple[Box, ...]:
        return tuple(self._boxes)

    @property
    def edges(self) -> tuple[tuple[int, ...], ...]:
        return tuple(tuple(targets) for targets in self._edges)

    @property
    def movable_blocks(self) -> frozenset[Block]:
        return frozenset(self._movable)

    @property
    def non_movable_blocks(self) -> frozenset[Block]:
        return frozenset(self._non_movable)

    def position(self, row: int, col: int) -> int:
        """Row-major position of (row, col)."""
        if not (0 <= row < self.rows and 0 <= col < self.columns):
            raise GridIndexError(
                f"Cell ({row}, {col}) is outside the {self.rows}x{self.columns} grid"
            )
        return row * self.columns + col

    def row_col(self, pos: int) -> tuple[int, int]:
        if not 0 <= pos < self.rows * self.columns:
            raise GridIndexError(
                f"Position {pos} is outside the {self.rows}x{self.columns} grid"
            )
        return divmod(pos, self.columns)

    def _resolve(self, cell: Cell) -> int:
        if isinstance(cell, tuple):
            return self.position(*cell)
        self.row_col(cell)
        return cell

    def neighbors(self, cell: Cell) -> tuple[int, ...]:
        return tuple(self._edges[self._resolve(cell)])

    def __getitem__(self, key: tuple[int, int]) -> Box:
        return self._boxes[self.position(*key)]

    def __setitem__(self, key: tuple[int, int], box: Box | None) -> None:
        pos = self.position(*key)
        if box is None:
            box = Empty()
        elif not isinstance(box, (Empty, Cross, Linear, Curved, Intersection)):
            raise TypeError(f"Not a box: {box!r}")
        self._boxes[pos] = box
        self.reload_edges()

    def __str__(self) -> str:
        lines = []
        for row in range(self.rows):
            start = row * self.columns
            lines.append("".join(box_glyph(b) for b in self._boxes[start : start + self.columns]))
        return "".join(line + "\n" for line in lines)

    def __repr__(self) -> str:
        return (
            f"TableGraph(rows={self.rows}, columns={self.columns}, "
            f"movable={len(self._movable)}, non_movable={len(self._non_movable)})"
        )

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def rotate(self, row: int, col: int, rotation: Rotation) -> Box:
        """Rotate the tile at (row, col) a quarter turn and return the new tile."""
        pos = self.position(row, col)
        self._boxes[pos] = self._boxes[pos].rotate(rotation)
        self.reload_edges()
        return self._boxes[pos]

    def add_block(self, block: Block, movable: bool = True) -> None:
        """
        Register an obstacle footprint. Registering the same block twice is a no-op.

        Raises:
            BlockOverlapError: If the block overlaps a footprint in the other
                pool and the rules say REJECT
        """
        others = self._non_movable if movable else self._movable
        clash = next((other for other in others if other.overlaps(block)), None)
        if clash is not None:
            if self.rules.overlap_policy is OverlapPolicy.REJECT:
                kind = "movable" if movable else "non-movable"
                raise BlockOverlapError(
                    f"Cannot register {kind} block {block}\n"
                    f"  It overlaps {clash} from the other pool"
                )
            logger.warning("add_block: %s overlaps %s (allowed by rules)", block, clash)
        (self._movable if movable else self._non_movable).add(block)

    # -------------------------------------------------------------------------
    # Adjacency
    # -------------------------------------------------------------------------

    def neighbor(self, pos: int, direction: Direction) -> int | None:
        """The grid cell next to `pos` in `direction`, or None at the border."""
        match direction:
            case Direction.N:
                nxt = pos - self.columns
                return nxt if nxt >= 0 else None
            case Direction.E:
                return pos + 1 if pos % self.columns < self.columns - 1 else None
            case Direction.S:
                nxt = pos + self.columns
                return nxt if nxt < self.rows * self.columns else None
            case Direction.W:
                return pos - 1 if pos % self.columns > 0 else None

    def reload_edges(self) -> None:
        """Recompute the whole adjacency list from the current tiles."""
        edges: list[list[int]] = []
        count = 0
        for pos, box in enumerate(self._boxes):
            targets: list[int] = []
            for direction in box.directions():
                nxt = self.neighbor(pos, direction)
                if nxt is None:
                    continue
                if direction.opposite() in self._boxes[nxt].directions():
                    targets.append(nxt)
            count += len(targets)
            edges.append(targets)
        self._edges = edges
        logger.debug("reload_edges: %d edges over %dx%d grid", count, self.rows, self.columns)

    # -------------------------------------------------------------------------
    # Shifting
    # -------------------------------------------------------------------------

    def _line(self, axis: Axis, index: int) -> list[int]:
        """Positions of a row (west to east) or column (north to south)."""
        if axis is Axis.ROW:
            return [index * self.columns + c for c in range(self.columns)]
        return [r * self.columns + index for r in range(self.rows)]

    def _line_touches(self, block: Block, axis: Axis, index: int) -> bool:
        return any(block.contains(*self.row_col(pos)) for pos in self._line(axis, index))

    def move(self, row: int, col: int, direction: Direction) -> MoveResult:
        """
        Cyclically shift the line through (row, col) one cell toward `direction`.

        North/South shift columns, East/West shift rows. Any movable block
        crossing that line drags every line it spans. If a non-movable block
        crosses any of those lines nothing moves.

        Returns:
            MoveResult, truthy if the lines were shifted
        """
        self.position(row, col)
        if direction in (Direction.N, Direction.S):
            axis, start, limit = Axis.COL, col, self.columns
        else:
            axis, start, limit = Axis.ROW, row, self.rows

        lo = hi = start
        for block in self._movable:
            if not self._line_touches(block, axis, start):
                continue
            if axis is Axis.COL:
                lo, hi = min(lo, block.col), max(hi, block.col + block.width - 1)
            else:
                lo, hi = min(lo, block.row), max(hi, block.row + block.height - 1)
        lines = range(max(lo, 0), min(hi, limit - 1) + 1)

        for index in lines:
            for block in self._non_movable:
                if self._line_touches(block, axis, index):
                    logger.info(
                        "move: %s %d blocked by %s (trigger %s toward %s)",
                        axis.value,
                        index,
                        block,
                        (row, col),
                        direction.value,
                    )
                    return MoveResult(False, axis, lines, blocked_by=block)

        for index in lines:
            self._shift_line(self._line(axis, index), direction)
        self.reload_edges()
        logger.debug("move: shifted %s %s toward %s", axis.value, list(lines), direction.value)
        return MoveResult(True, axis, lines)

    def _shift_line(self, line: list[int], direction: Direction) -> None:
        cells = [self._boxes[pos] for pos in line]
        # Lines run west->east / north->south, so E and S carry the last cell to the front
        if direction in (Direction.E, Direction.S):
            rotated = [cells[-1]] + cells[:-1]
        else:
            rotated = cells[1:] + [cells[0]]
        for pos, box in zip(line, rotated):
            self._boxes[pos] = box

    # -------------------------------------------------------------------------
    # Path finding
    # -------------------------------------------------------------------------

    def _step_direction(self, pos: int, nxt: int) -> Direction:
        for direction in Direction:
            if self.neighbor(pos, direction) == nxt:
                return direction
        raise ValueError(f"Positions {pos} and {nxt} are not adjacent")

    def shortest_path(self, source: Cell, target: Cell) -> list[Direction] | None:
        """
        Minimum-hop route between two cells as a list of directions.

        Breadth-first over the directed edges, marking cells when they are
        queued. Returns [] when source is target, None when unreachable.
        """
        start = self._resolve(source)
        goal = self._resolve(target)
        if start == goal:
            return []

        came_from: dict[int, int] = {start: start}
        queue = deque([start])
        while queue:
            pos = queue.popleft()
            for nxt in self._edges[pos]:
                if nxt in came_from:
                    continue
                came_from[nxt] = pos
                if nxt == goal:
                    return self._reconstruct(came_from, goal)
                queue.append(nxt)
        return None

    def _reconstruct(self, came_from: dict[int, int], goal: int) -> list[Direction]:
        steps: list[Direction] = []
        pos = goal
        while came_from[pos] != pos:
            prev = came_from[pos]
            steps.append(self._step_direction(prev, pos))
            pos = prev
        steps.reverse()
        return steps

    def follow_path(self, source: Cell, path: Iterable[Direction]) -> list[int]:
        """
        Positions visited walking `path` from `source`, source included.

        Raises:
            ValueError: If a step does not follow an edge
        """
        pos = self._resolve(source)
        visited = [pos]
        for direction in path:
            nxt = self.neighbor(pos, direction)
            if nxt is None or nxt not in self._edges[pos]:
                raise ValueError(f"No edge from position {pos} toward {direction.value}")
            pos = nxt
            visited.append(pos)
        return visited
