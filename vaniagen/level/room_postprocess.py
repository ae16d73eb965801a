"""Room postprocess - repair passes shared by every fill algorithm.

Three passes run on each generated grid:
 - Gap widening: a single empty tile pinched between two solids on a row or
   column is widened into its empty neighbourhood, or sealed.
 - Connectivity repair: exit apertures and a centre hub are re-opened, exits
   that cannot reach the hub get a tunnel, and unreachable pockets are filled.
 - Settling: sealing and pruning are repeated until a round changes nothing,
   so the final grid has no single-tile gaps and no isolated empties.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, NamedTuple

from vaniagen.config import EXIT_SPAN_TILES, GAP_WIDEN_PASSES, TILE_EMPTY, TILE_SOLID
from vaniagen.utils.tile_utils import (
    Cell,
    Grid,
    carve_aperture,
    carve_line,
    carve_rect,
    clamp_exit_range,
    copy_grid,
    edge_length,
    exit_mid_cell,
    find_single_gaps,
    flood_fill,
    grid_size,
    round_half_up,
    step_inward,
)

logger = logging.getLogger(__name__)


class ExitSpan(NamedTuple):
    """Exit opening in tile space, already clamped to the grid."""
    edge: str
    tile_start: int
    tile_end: int


def _widen_span(edge: str, ts: int, te: int, w: int, h: int) -> ExitSpan:
    """Grow a span narrower than EXIT_SPAN_TILES around its midpoint, staying on the edge."""
    limit = edge_length(edge, w, h) - 1
    width = min(EXIT_SPAN_TILES, limit + 1)
    if te - ts + 1 >= width:
        return ExitSpan(edge, ts, te)
    start = round_half_up((ts + te) / 2) - width // 2
    start = max(0, min(start, limit - width + 1))
    return ExitSpan(edge, start, start + width - 1)


def exit_spans(exits: Iterable, w: int, h: int) -> List[ExitSpan]:
    """
    Clamp ExitZone-like objects (edge, tile_start, tile_end) to a w x h grid.

    A one-tile aperture is itself a single-tile gap, so spans are at least
    EXIT_SPAN_TILES wide.
    """
    spans: List[ExitSpan] = []
    for e in exits:
        ts, te = clamp_exit_range(e.edge, int(e.tile_start), int(e.tile_end), w, h)
        spans.append(_widen_span(e.edge, ts, te, w, h))
    return spans


def hub_center(grid: Grid) -> Cell:
    w, h = grid_size(grid)
    return w // 2, h // 2


def _open_toward(grid: Grid, axis: str, x: int, y: int) -> bool:
    """Widen one gap: open the near solid on the side whose far cell is empty."""
    w, h = grid_size(grid)
    if axis == "h":
        if x + 2 < w and grid[y][x + 2] == TILE_EMPTY:
            grid[y][x + 1] = TILE_EMPTY
            return True
        if x - 2 >= 0 and grid[y][x - 2] == TILE_EMPTY:
            grid[y][x - 1] = TILE_EMPTY
            return True
    else:
        if y + 2 < h and grid[y + 2][x] == TILE_EMPTY:
            grid[y + 1][x] = TILE_EMPTY
            return True
        if y - 2 >= 0 and grid[y - 2][x] == TILE_EMPTY:
            grid[y - 1][x] = TILE_EMPTY
            return True
    return False


def _is_gap(grid: Grid, axis: str, x: int, y: int) -> bool:
    if grid[y][x] != TILE_EMPTY:
        return False
    if axis == "h":
        return grid[y][x - 1] == TILE_SOLID and grid[y][x + 1] == TILE_SOLID
    return grid[y - 1][x] == TILE_SOLID and grid[y + 1][x] == TILE_SOLID


def widen_single_gaps(grid: Grid, passes: int = GAP_WIDEN_PASSES) -> int:
    """
    Widen 1,0,1 patterns in place.

    Rows are scanned before columns. A gap whose far cells are both solid is
    sealed instead of widened.

    Returns:
        Number of gaps handled
    """
    handled = 0
    for _ in range(max(0, passes)):
        changed = False
        for axis, x, y in find_single_gaps(grid):
            # an earlier fix in this pass may have resolved it already
            if not _is_gap(grid, axis, x, y):
                continue
            if not _open_toward(grid, axis, x, y):
                grid[y][x] = TILE_SOLID
            handled += 1
            changed = True
        if not changed:
            break
    return handled


def seal_single_gaps(grid: Grid) -> int:
    """Turn every remaining single-tile gap solid. Returns the number sealed."""
    sealed = 0
    for axis, x, y in find_single_gaps(grid):
        if grid[y][x] == TILE_EMPTY:
            grid[y][x] = TILE_SOLID
            sealed += 1
    return sealed


def ensure_connectivity(grid: Grid, spans: List[ExitSpan]) -> bool:
    """
    Make every exit reach the centre hub and fill unreachable pockets.

    Returns:
        True if any cell changed
    """
    w, h = grid_size(grid)
    if w == 0 or h == 0:
        return False
    before = copy_grid(grid)
    cx, cy = hub_center(grid)

    for span in spans:
        carve_aperture(grid, span.edge, span.tile_start, span.tile_end)
    carve_rect(grid, cx - 1, cy - 1, cx + 1, cy + 1)

    reached = flood_fill(grid, [(cx, cy)])
    for span in spans:
        mid = exit_mid_cell(span.edge, span.tile_start, span.tile_end, w, h)
        if mid in reached:
            continue
        start = step_inward(span.edge, mid, 1, w, h)
        carve_line(grid, start[0], start[1], cx, cy, half_width=1)
        logger.debug("Tunnelled %s exit at %s to hub (%d, %d)", span.edge, mid, cx, cy)
        reached = flood_fill(grid, [(cx, cy)])

    seeds: List[Cell] = [(cx, cy)]
    for span in spans:
        mid = exit_mid_cell(span.edge, span.tile_start, span.tile_end, w, h)
        seeds.append(mid)
        seeds.append(step_inward(span.edge, mid, 1, w, h))
    reached = flood_fill(grid, seeds)

    for y in range(h):
        row = grid[y]
        for x in range(w):
            if row[x] == TILE_EMPTY and (x, y) not in reached:
                row[x] = TILE_SOLID

    return grid != before


def repair_room_grid(grid: Grid, spans: List[ExitSpan]) -> int:
    """
    Run the full repair pipeline in place.

    Cells inside the hub, the apertures and any tunnel always sit in a fully
    open 3x3 block, so they are never sealed. Every other change adds solids,
    which bounds the settling loop.

    Returns:
        Number of settling rounds that changed the grid
    """
    w, h = grid_size(grid)
    widen_single_gaps(grid)
    ensure_connectivity(grid, spans)

    rounds = 0
    for _ in range(max(1, w * h)):
        sealed = seal_single_gaps(grid)
        pruned = ensure_connectivity(grid, spans)
        if not sealed and not pruned:
            break
        rounds += 1
    else:
        logger.warning("Room repair did not settle within %d rounds", w * h)

    logger.debug("Room repair settled after %d rounds (%dx%d)", rounds, w, h)
    return rounds
