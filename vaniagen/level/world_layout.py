"""
World Layout System - packs a finished world onto a display grid.

Works on the exit graph of a WorldData rather than the abstract graph, so it
can lay out worlds that were edited or loaded from disk. Sizes and positions
are in grid units of GRID_UNIT_TILES x GRID_UNIT_TILES tiles.
"""

import copy
import logging
import math
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from vaniagen.config import GRID_UNIT_TILES, LAYOUT_SEARCH_RADIUS
from vaniagen.level.world_data import (
    EDGES,
    HORIZONTAL_EDGES,
    VERTICAL_EDGES,
    GridPosition,
    WorldData,
    WorldMapData,
)

logger = logging.getLogger(__name__)

Size = Tuple[int, int]
Pos = Tuple[int, int]


@dataclass
class LayoutState:
    """
    Occupancy for one layout run.

    Attributes:
        occupied: Grid cells covered by placed rooms
        column_bottom: Per column, the row just below the lowest placed room
    """
    occupied: Set[Pos] = field(default_factory=set)
    column_bottom: Dict[int, int] = field(default_factory=dict)

    def is_free(self, x: int, y: int, w: int, h: int) -> bool:
        for yy in range(y, y + h):
            for xx in range(x, x + w):
                if (xx, yy) in self.occupied:
                    return False
        return True

    def occupy(self, x: int, y: int, w: int, h: int) -> None:
        for yy in range(y, y + h):
            for xx in range(x, x + w):
                self.occupied.add((xx, yy))
        for xx in range(x, x + w):
            self.column_bottom[xx] = max(self.column_bottom.get(xx, y + h), y + h)

    def low_water(self, x: int, w: int, default: int) -> int:
        """Lowest free row under columns x..x+w-1, never above `default`."""
        return max([default] + [self.column_bottom[xx] for xx in range(x, x + w) if xx in self.column_bottom])

    def fresh_column(self) -> int:
        return max((xx for xx, _ in self.occupied), default=-1) + 1


@dataclass
class LayoutResult:
    positions: Dict[str, Pos]
    sizes: Dict[str, Size]
    total_width: int
    total_height: int

    def rect(self, map_id: str) -> Tuple[int, int, int, int]:
        x, y = self.positions[map_id]
        w, h = self.sizes[map_id]
        return x, y, w, h

    def to_dict(self) -> Dict:
        return {
            "mapPositions": {k: {"x": x, "y": y} for k, (x, y) in self.positions.items()},
            "mapSizes": {k: {"width": w, "height": h} for k, (w, h) in self.sizes.items()},
            "totalWidth": self.total_width,
            "totalHeight": self.total_height,
        }


def base_size(room: WorldMapData) -> Size:
    """Room footprint in grid units before neighbours are considered."""
    return (
        max(1, math.ceil(room.tiles_wide / GRID_UNIT_TILES)),
        max(1, math.ceil(room.tiles_high / GRID_UNIT_TILES)),
    )


def neighbors_by_edge(world: WorldData, map_id: str) -> Dict[str, List[str]]:
    """Distinct exit targets of a room per edge, ordered by position along the edge."""
    room = world.maps[map_id]
    grouped: Dict[str, List[str]] = {edge: [] for edge in EDGES}
    for exit_zone in sorted(room.exits, key=lambda e: e.edge_position):
        target = exit_zone.target_map_id
        if target == map_id or target not in world.maps:
            continue
        if target not in grouped[exit_zone.edge]:
            grouped[exit_zone.edge].append(target)
    return grouped


def compute_required_sizes(world: WorldData) -> Dict[str, Size]:
    """
    Minimal grid size of every room so its neighbours fit alongside it.

    Two or more neighbours on a side stack, so the room grows to their summed
    extent on that axis. A room with both vertical and horizontal neighbours
    gets one extra row to bridge over or under the vertical neighbour.

    Cycles are cut by treating a room already on the DFS stack as its base
    size, so results inside a cycle depend on which room is visited first.
    """
    memo: Dict[str, Size] = {}
    on_stack: Set[str] = set()

    def visit(map_id: str) -> Size:
        if map_id in memo:
            return memo[map_id]
        room = world.maps[map_id]
        if map_id in on_stack:
            return base_size(room)
        on_stack.add(map_id)

        w, h = base_size(room)
        grouped = neighbors_by_edge(world, map_id)
        for edge in HORIZONTAL_EDGES:
            if len(grouped[edge]) >= 2:
                h = max(h, sum(visit(t)[1] for t in grouped[edge]))
        for edge in VERTICAL_EDGES:
            if len(grouped[edge]) >= 2:
                w = max(w, sum(visit(t)[0] for t in grouped[edge]))

        has_vertical = any(grouped[e] for e in VERTICAL_EDGES)
        has_horizontal = any(grouped[e] for e in HORIZONTAL_EDGES)
        if has_vertical and has_horizontal:
            h += 1

        on_stack.discard(map_id)
        memo[map_id] = (w, h)
        return memo[map_id]

    for map_id in world.maps:
        visit(map_id)
    return memo


def _search_offsets(radius: int):
    yield 0
    for i in range(1, radius + 1):
        yield i
        yield -i


def sibling_offsets(world: WorldData, siblings: List[str]) -> Dict[str, int]:
    """
    Column offsets for right-hand siblings linked to each other.

    If sibling A has an exit to sibling B, B sits at least 2 columns after A
    when that exit is on A's left/right edge and 1 column otherwise.
    """
    offsets = {s: 0 for s in siblings}
    members = set(siblings)
    constraints = []
    for a in siblings:
        for exit_zone in world.maps[a].exits:
            b = exit_zone.target_map_id
            if b in members and b != a:
                gap = 2 if exit_zone.edge in HORIZONTAL_EDGES else 1
                constraints.append((a, b, gap))

    for _ in range(max(0, len(siblings) - 1)):
        for a, b, gap in constraints:
            offsets[b] = max(offsets[b], offsets[a] + gap)
    return offsets


def _place(state: LayoutState, positions: Dict[str, Pos], sizes: Dict[str, Size], map_id: str, pos: Pos) -> None:
    positions[map_id] = pos
    w, h = sizes[map_id]
    state.occupy(pos[0], pos[1], w, h)


def _place_right(
    world: WorldData,
    state: LayoutState,
    positions: Dict[str, Pos],
    sizes: Dict[str, Size],
    parent: str,
    siblings: List[str],
) -> None:
    px, py = positions[parent]
    pw, _ = sizes[parent]
    offsets = sibling_offsets(world, siblings)

    stacked = 0
    for sib in siblings:
        w, h = sizes[sib]
        x = px + pw + offsets[sib]
        y0 = py + stacked
        spot = None
        for off in _search_offsets(LAYOUT_SEARCH_RADIUS):
            if state.is_free(x, y0 + off, w, h):
                spot = (x, y0 + off)
                break
        if spot is None:
            spot = (state.fresh_column(), py)
            logger.debug("No room right of %s for %s; using column %d", parent, sib, spot[0])
        _place(state, positions, sizes, sib, spot)
        stacked += h


def _place_group(
    state: LayoutState,
    positions: Dict[str, Pos],
    sizes: Dict[str, Size],
    parent: str,
    edge: str,
    siblings: List[str],
) -> None:
    """Fit all siblings on one edge as a single block next to the parent."""
    px, py = positions[parent]
    pw, ph = sizes[parent]
    widths = [sizes[s][0] for s in siblings]
    heights = [sizes[s][1] for s in siblings]

    if edge == "left":
        gw, gh = max(widths), sum(heights)
    else:
        gw, gh = sum(widths), max(heights)

    spot = None
    for off in _search_offsets(LAYOUT_SEARCH_RADIUS):
        if edge == "left":
            gx, gy = px - gw, py + off
        elif edge == "top":
            gx, gy = px + off, py - gh
        else:
            gx = px + off
            gy = state.low_water(gx, gw, py + ph)
        if state.is_free(gx, gy, gw, gh):
            spot = (gx, gy)
            break
    if spot is None:
        spot = (state.fresh_column(), py)
        logger.debug("No room %s of %s for %d rooms; using column %d", edge, parent, len(siblings), spot[0])

    gx, gy = spot
    cursor = 0
    for sib, w, h in zip(siblings, widths, heights):
        if edge == "left":
            # stacked, right-aligned against the parent
            pos = (gx + gw - w, gy + cursor)
            cursor += h
        elif edge == "top":
            # side by side, resting on the parent
            pos = (gx + cursor, gy + gh - h)
            cursor += w
        else:
            pos = (gx + cursor, gy)
            cursor += w
        _place(state, positions, sizes, sib, pos)


def calculate_layout(world: WorldData, sizes: Optional[Dict[str, Size]] = None) -> LayoutResult:
    """
    Place every room on a non-overlapping grid.

    BFS from the starting map at (0, 0). Rooms that cannot be reached through
    exits are started in fresh columns to the right. Positions may be
    negative; totals are the extent of the placed rectangles.
    """
    if not world.maps:
        return LayoutResult(positions={}, sizes={}, total_width=0, total_height=0)

    sizes = dict(sizes) if sizes is not None else compute_required_sizes(world)
    for map_id, room in world.maps.items():
        sizes.setdefault(map_id, base_size(room))

    state = LayoutState()
    positions: Dict[str, Pos] = {}
    visited: Set[str] = set()

    start = world.starting_map if world.starting_map in world.maps else next(iter(world.maps))
    roots = [start] + [m for m in world.maps if m != start]

    for root in roots:
        if root in positions:
            continue
        if positions:
            logger.debug("Map %s unreachable from %s; starting a new column", root, start)
            _place(state, positions, sizes, root, (state.fresh_column(), 0))
        else:
            _place(state, positions, sizes, root, (0, 0))

        queue = deque([root])
        while queue:
            current = queue.popleft()
            if current in visited:
                continue
            visited.add(current)

            grouped = neighbors_by_edge(world, current)
            for edge in EDGES:
                siblings = [t for t in grouped[edge] if t not in positions]
                if not siblings:
                    continue
                if edge == "right":
                    _place_right(world, state, positions, sizes, current, siblings)
                else:
                    _place_group(state, positions, sizes, current, edge, siblings)
                queue.extend(siblings)

    min_x = min(x for x, _ in positions.values())
    min_y = min(y for _, y in positions.values())
    max_x = max(positions[m][0] + sizes[m][0] for m in positions)
    max_y = max(positions[m][1] + sizes[m][1] for m in positions)

    logger.debug("Laid out %d maps in %dx%d grid units", len(positions), max_x - min_x, max_y - min_y)
    return LayoutResult(
        positions=positions,
        sizes={m: sizes[m] for m in positions},
        total_width=max_x - min_x,
        total_height=max_y - min_y,
    )


def apply_layout(world: WorldData, layout: Optional[LayoutResult] = None) -> WorldData:
    """Return a copy of the world with gridPosition and gridHeight set."""
    layout = layout or calculate_layout(world)
    updated = copy.deepcopy(world)
    for map_id, (x, y) in layout.positions.items():
        room = updated.maps.get(map_id)
        if room is None:
            continue
        room.grid_position = GridPosition(x=x, y=y)
        room.grid_height = layout.sizes[map_id][1]
    return updated
