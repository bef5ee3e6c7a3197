"""
ASCII rendering for pipegrid tables.

Draws the tile glyphs inside a box border. Footprints and a path can be
colored in; str(grid) gives the same glyphs with no decoration.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from simple_chalk import chalk  # type: ignore[import-untyped]

from grid_types import Direction, box_glyph
from pipegrid import Cell, TableGraph

logger = logging.getLogger(__name__)

__all__ = ["render_grid_simple", "render", "render_path"]

Colorizer = Callable[[str], str]


def _plain(s: str) -> str:
    return s


def render_grid_simple(
    grid: TableGraph,
    title: str = "",
    cell_width: int = 1,
    highlight: Iterable[int] = (),
    movable_color: Colorizer = chalk.yellow,
    fixed_color: Colorizer = chalk.red,
    border_color: Colorizer = _plain,
) -> list[str]:
    """
    Render a grid as a bordered block of glyphs.

    Args:
        grid: The grid to render
        title: Optional title centred in the top border
        cell_width: Characters per cell (default 1)
        highlight: Positions drawn on a white background (e.g. a path)
        movable_color: Colorizer for cells under a movable footprint
        fixed_color: Colorizer for cells under a non-movable footprint
        border_color: Colorizer for the border

    Returns:
        List of strings representing the rendered grid lines
    """
    highlighted = set(highlight)
    grid_width = grid.columns * cell_width + 2

    lines: list[str] = []

    # Top border with title
    title_line = "┌" + "─" * (grid_width - 2) + "┐"
    label = f" {title} " if title else ""
    if label and len(label) <= grid_width - 2:
        title_start = (grid_width - len(label)) // 2
        title_line = (
            "┌"
            + "─" * (title_start - 1)
            + label
            + "─" * (grid_width - title_start - len(label) - 1)
            + "┐"
        )
    lines.append(border_color(title_line))

    for row in range(grid.rows):
        line_parts = [border_color("│")]
        for col in range(grid.columns):
            pos = grid.position(row, col)
            content = box_glyph(grid[row, col]).center(cell_width)

            # Non-movable wins if both pools cover the cell
            if pos in highlighted:
                content = chalk.bgWhite.black(content)
            elif any(b.contains(row, col) for b in grid.non_movable_blocks):
                content = fixed_color(content)
            elif any(b.contains(row, col) for b in grid.movable_blocks):
                content = movable_color(content)

            line_parts.append(content)
        line_parts.append(border_color("│"))
        lines.append("".join(line_parts))

    lines.append(border_color("└" + "─" * (grid_width - 2) + "┘"))
    return lines


def render(grid: TableGraph, title: str = "", cell_width: int = 1) -> str:
    return "\n".join(render_grid_simple(grid, title=title, cell_width=cell_width))


def render_path(grid: TableGraph, source: Cell, target: Cell, cell_width: int = 1) -> str:
    """Render the grid with the shortest path from source to target highlighted."""
    path = grid.shortest_path(source, target)
    if path is None:
        logger.info("render_path: no path from %s to %s", source, target)
        return render(grid, title="no path", cell_width=cell_width)
    visited = grid.follow_path(source, path)
    title = "".join(_ARROWS[d] for d in path) or "here"
    logger.debug("render_path: %d hops from %s to %s", len(path), source, target)
    return "\n".join(render_grid_simple(grid, title=title, cell_width=cell_width, highlight=visited))


_ARROWS = {Direction.N: "↑", Direction.E: "→", Direction.S: "↓", Direction.W: "←"}
