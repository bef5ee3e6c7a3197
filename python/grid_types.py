"""
Shared type definitions for the pipegrid system.

Tiles ("boxes") are immutable values: rotating one returns a new tile.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, TypeVar, runtime_checkable

__all__ = [
    "Rotation",
    "Rotatable",
    "Orientation",
    "Direction",
    "Empty",
    "Cross",
    "Linear",
    "Curved",
    "Intersection",
    "Box",
    "Block",
    "box_glyph",
    "glyph_box",
]


class Rotation(Enum):
    """Sense of a quarter turn."""

    RIGHT = "Right"  # Clockwise
    LEFT = "Left"  # Counter-clockwise


T = TypeVar("T", bound="Rotatable")


@runtime_checkable
class Rotatable(Protocol):
    """Anything that can be turned a quarter step."""

    def rotate(self: T, rotation: Rotation) -> T: ...


class Orientation(Enum):
    """Axis of a straight pipe. Any rotation toggles it."""

    HORIZONTAL = "Horizontal"
    VERTICAL = "Vertical"

    def rotate(self, rotation: Rotation) -> Orientation:
        if self is Orientation.HORIZONTAL:
            return Orientation.VERTICAL
        return Orientation.HORIZONTAL


class Direction(Enum):
    """Cardinal direction. Definition order is the clockwise cycle."""

    N = "North"  # Up (decreasing row)
    E = "East"  # Right (increasing col)
    S = "South"  # Down (increasing row)
    W = "West"  # Left (decreasing col)

    def rotate(self, rotation: Rotation) -> Direction:
        cycle = list(Direction)
        step = 1 if rotation is Rotation.RIGHT else -1
        # Python's % is floor-modulo, so N stepping left lands on W
        return cycle[(cycle.index(self) + step) % len(cycle)]

    def opposite(self) -> Direction:
        return self.rotate(Rotation.RIGHT).rotate(Rotation.RIGHT)


ALL_DIRECTIONS: tuple[Direction, ...] = tuple(Direction)


# =============================================================================
# Tile Variants
# =============================================================================


@dataclass(frozen=True)
class Empty:
    """A cell without a pipe ("None" on the wire)."""

    def rotate(self, rotation: Rotation) -> Empty:
        return self

    def directions(self) -> tuple[Direction, ...]:
        return ()


@dataclass(frozen=True)
class Cross:
    """A four-way pipe."""

    def rotate(self, rotation: Rotation) -> Cross:
        return self

    def directions(self) -> tuple[Direction, ...]:
        return ALL_DIRECTIONS


@dataclass(frozen=True)
class Linear:
    """A straight pipe along an axis."""

    orientation: Orientation

    def rotate(self, rotation: Rotation) -> Linear:
        return Linear(self.orientation.rotate(rotation))

    def directions(self) -> tuple[Direction, ...]:
        if self.orientation is Orientation.HORIZONTAL:
            return (Direction.E, Direction.W)
        return (Direction.N, Direction.S)


@dataclass(frozen=True)
class Curved:
    """An elbow joining `direction` and the direction clockwise from it."""

    direction: Direction

    def rotate(self, rotation: Rotation) -> Curved:
        return Curved(self.direction.rotate(rotation))

    def directions(self) -> tuple[Direction, ...]:
        exposed = {self.direction, self.direction.rotate(Rotation.RIGHT)}
        return tuple(d for d in ALL_DIRECTIONS if d in exposed)


@dataclass(frozen=True)
class Intersection:
    """A T-junction open everywhere except opposite `direction`."""

    direction: Direction

    def rotate(self, rotation: Rotation) -> Intersection:
        return Intersection(self.direction.rotate(rotation))

    def directions(self) -> tuple[Direction, ...]:
        closed = self.direction.opposite()
        return tuple(d for d in ALL_DIRECTIONS if d is not closed)


Box = Empty | Cross | Linear | Curved | Intersection


# =============================================================================
# Glyphs
# =============================================================================

_CURVED_GLYPHS = {Direction.N: "∨", Direction.E: "∧", Direction.S: ">", Direction.W: "<"}
_INTERSECTION_GLYPHS = {Direction.N: "⊤", Direction.E: "⊣", Direction.S: "⊥", Direction.W: "⊢"}


def box_glyph(box: Box) -> str:
    """Single-character picture of a tile."""
    match box:
        case Empty():
            return "X"
        case Cross():
            return "+"
        case Linear(orientation=Orientation.HORIZONTAL):
            return "-"
        case Linear():
            return "|"
        case Curved(direction=d):
            return _CURVED_GLYPHS[d]
        case Intersection(direction=d):
            return _INTERSECTION_GLYPHS[d]
    raise TypeError(f"Not a box: {box!r}")


def _glyph_table() -> dict[str, Box]:
    table: dict[str, Box] = {
        "X": Empty(),
        "+": Cross(),
        "-": Linear(Orientation.HORIZONTAL),
        "|": Linear(Orientation.VERTICAL),
    }
    for d in Direction:
        table[_CURVED_GLYPHS[d]] = Curved(d)
        table[_INTERSECTION_GLYPHS[d]] = Intersection(d)
    return table


_GLYPH_TO_BOX = _glyph_table()


def glyph_box(glyph: str) -> Box | None:
    """Inverse of box_glyph. Returns None for unknown characters."""
    return _GLYPH_TO_BOX.get(glyph)


# =============================================================================
# Footprints
# =============================================================================


@dataclass(frozen=True)
class Block:
    """A rectangular obstacle footprint. Equal fields mean the same block."""

    row: int
    col: int
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Block must have positive size, got width={self.width} height={self.height}"
            )

    def contains(self, row: int, col: int) -> bool:
        return self.row <= row < self.row + self.height and self.col <= col < self.col + self.width

    def overlaps(self, other: Block) -> bool:
        """True if the two footprints share at least one cell."""
        return (
            self.row < other.row + other.height
            and other.row < self.row + self.height
            and self.col < other.col + other.width
            and other.col < self.col + self.width
        )
