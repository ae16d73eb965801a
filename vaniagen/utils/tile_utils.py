"""
Tile grid utilities
Helper functions shared by the room filler and its repair passes.

Grids are row-major lists of rows: grid[y][x], 0 = empty, 1 = solid.
"""

import math
from collections import deque
from typing import Iterable, List, Set, Tuple

from vaniagen.config import APERTURE_DEPTH, TILE_EMPTY, TILE_SOLID

Grid = List[List[int]]
Cell = Tuple[int, int]


def clamp(value, lo, hi):
    return max(lo, min(hi, value))


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (Math.round semantics)."""
    return int(math.floor(value + 0.5))


def make_grid(width: int, height: int, fill: int = TILE_EMPTY) -> Grid:
    return [[fill for _ in range(width)] for _ in range(height)]


def copy_grid(grid: Grid) -> Grid:
    return [row[:] for row in grid]


def grid_size(grid: Grid) -> Tuple[int, int]:
    """Return (width, height)."""
    h = len(grid)
    w = len(grid[0]) if h > 0 else 0
    return w, h


def set_rect(grid: Grid, x0: int, y0: int, x1: int, y1: int, value: int) -> None:
    """Set every cell of the inclusive rectangle, clipped to the grid."""
    w, h = grid_size(grid)
    sx = max(0, min(x0, x1))
    ex = min(w - 1, max(x0, x1))
    sy = max(0, min(y0, y1))
    ey = min(h - 1, max(y0, y1))
    for y in range(sy, ey + 1):
        row = grid[y]
        for x in range(sx, ex + 1):
            row[x] = value


def fill_rect(grid: Grid, x0: int, y0: int, x1: int, y1: int) -> None:
    set_rect(grid, x0, y0, x1, y1, TILE_SOLID)


def carve_rect(grid: Grid, x0: int, y0: int, x1: int, y1: int) -> None:
    set_rect(grid, x0, y0, x1, y1, TILE_EMPTY)


def line_cells(x0: int, y0: int, x1: int, y1: int) -> List[Cell]:
    """
    Axis-stepped path from (x0, y0) to (x1, y1): along x first, then y.

    Consecutive cells always share an edge, so a 1-wide carve along the
    path stays 4-connected.
    """
    cells: List[Cell] = [(x0, y0)]
    x, y = x0, y0
    step_x = 1 if x1 > x0 else -1
    while x != x1:
        x += step_x
        cells.append((x, y))
    step_y = 1 if y1 > y0 else -1
    while y != y1:
        y += step_y
        cells.append((x, y))
    return cells


def carve_line(grid: Grid, x0: int, y0: int, x1: int, y1: int, half_width: int = 0) -> List[Cell]:
    """
    Carve an orthogonal tunnel of width 2*half_width + 1.

    Returns:
        The centre-line cells of the tunnel
    """
    cells = line_cells(x0, y0, x1, y1)
    for x, y in cells:
        carve_rect(grid, x - half_width, y - half_width, x + half_width, y + half_width)
    return cells


def count_solid(grid: Grid) -> int:
    return sum(1 for row in grid for v in row if v == TILE_SOLID)


def solid_density(grid: Grid) -> float:
    w, h = grid_size(grid)
    total = w * h
    return count_solid(grid) / total if total else 0.0


def count_solid_neighbors(grid: Grid, x: int, y: int) -> int:
    """Count solid cells among the 8 neighbours; out of bounds counts as solid."""
    w, h = grid_size(grid)
    count = 0
    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            if dx == 0 and dy == 0:
                continue
            nx, ny = x + dx, y + dy
            if nx < 0 or ny < 0 or nx >= w or ny >= h:
                count += 1
            elif grid[ny][nx] == TILE_SOLID:
                count += 1
    return count


def force_border(grid: Grid) -> None:
    w, h = grid_size(grid)
    if w == 0 or h == 0:
        return
    for x in range(w):
        grid[0][x] = TILE_SOLID
        grid[h - 1][x] = TILE_SOLID
    for y in range(h):
        grid[y][0] = TILE_SOLID
        grid[y][w - 1] = TILE_SOLID


def flood_fill(grid: Grid, seeds: Iterable[Cell]) -> Set[Cell]:
    """4-neighbour flood fill over empty cells from every empty seed."""
    w, h = grid_size(grid)
    visited: Set[Cell] = set()
    queue = deque()
    for x, y in seeds:
        if 0 <= x < w and 0 <= y < h and grid[y][x] == TILE_EMPTY and (x, y) not in visited:
            visited.add((x, y))
            queue.append((x, y))

    while queue:
        x, y = queue.popleft()
        for nx, ny in ((x + 1, y), (x - 1, y), (x, y + 1), (x, y - 1)):
            if 0 <= nx < w and 0 <= ny < h and (nx, ny) not in visited and grid[ny][nx] == TILE_EMPTY:
                visited.add((nx, ny))
                queue.append((nx, ny))
    return visited


def find_single_gaps(grid: Grid) -> List[Tuple[str, int, int]]:
    """
    Locate solid-empty-solid triples.

    Returns:
        ("h" | "v", x, y) for each empty cell pinched on that axis
    """
    w, h = grid_size(grid)
    gaps: List[Tuple[str, int, int]] = []
    for y in range(h):
        row = grid[y]
        for x in range(1, w - 1):
            if row[x - 1] == TILE_SOLID and row[x] == TILE_EMPTY and row[x + 1] == TILE_SOLID:
                gaps.append(("h", x, y))
    for x in range(w):
        for y in range(1, h - 1):
            if grid[y - 1][x] == TILE_SOLID and grid[y][x] == TILE_EMPTY and grid[y + 1][x] == TILE_SOLID:
                gaps.append(("v", x, y))
    return gaps


# ----- Exit helpers -----

def edge_length(edge: str, w: int, h: int) -> int:
    """Number of tiles along an edge."""
    return w if edge in ("top", "bottom") else h


def clamp_exit_range(edge: str, tile_start: int, tile_end: int, w: int, h: int) -> Tuple[int, int]:
    """Clamp an exit's tile span to the room, swapping inverted ranges."""
    limit = max(1, edge_length(edge, w, h)) - 1
    lo, hi = min(tile_start, tile_end), max(tile_start, tile_end)
    return clamp(lo, 0, limit), clamp(hi, 0, limit)


def exit_mid_cell(edge: str, tile_start: int, tile_end: int, w: int, h: int) -> Cell:
    """Border cell at the middle of an exit's span."""
    mid = round_half_up((tile_start + tile_end) / 2)
    if edge == "left":
        return 0, clamp(mid, 0, h - 1)
    if edge == "right":
        return w - 1, clamp(mid, 0, h - 1)
    if edge == "top":
        return clamp(mid, 0, w - 1), 0
    return clamp(mid, 0, w - 1), h - 1


def step_inward(edge: str, cell: Cell, steps: int, w: int, h: int) -> Cell:
    """Move `steps` tiles from a border cell toward the room interior."""
    x, y = cell
    if edge == "left":
        return clamp(x + steps, 0, w - 1), y
    if edge == "right":
        return clamp(x - steps, 0, w - 1), y
    if edge == "top":
        return x, clamp(y + steps, 0, h - 1)
    return x, clamp(y - steps, 0, h - 1)


def carve_aperture(grid: Grid, edge: str, tile_start: int, tile_end: int, depth: int = APERTURE_DEPTH) -> None:
    """Open the border at an exit's span, `depth` tiles deep."""
    w, h = grid_size(grid)
    if edge in ("top", "bottom"):
        y0 = 0 if edge == "top" else h - 1
        y1 = y0 + (depth - 1) if edge == "top" else y0 - (depth - 1)
        carve_rect(grid, tile_start, y0, tile_end, y1)
    else:
        x0 = 0 if edge == "left" else w - 1
        x1 = x0 + (depth - 1) if edge == "left" else x0 - (depth - 1)
        carve_rect(grid, x0, tile_start, x1, tile_end)


def grid_to_text(grid: Grid, solid: str = "#", empty: str = ".") -> str:
    """Render a grid as text rows for logs and the CLI."""
    return "\n".join("".join(solid if v == TILE_SOLID else empty for v in row) for row in grid)
