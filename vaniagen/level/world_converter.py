"""
Graph to world conversion.

Turns an abstract WorldGraph into WorldData: each node becomes a room with
an adaptive size, a grid position from a BFS layout, and exit zones toward
its neighbours.
"""

import json
import logging
from collections import deque
from typing import Dict, List, Optional, Set, Tuple

from vaniagen.config import (
    BASE_ROOM_HEIGHT,
    BASE_ROOM_WIDTH,
    DEFAULT_AUTHOR,
    DEFAULT_TILE_SIZE,
    EXIT_SPAN_TILES,
    ROOM_GROWTH_MAX,
    ROOM_GROWTH_MIN,
    SPIRAL_MAX_RADIUS,
    START_OFFSET_FROM_BOTTOM,
    START_OFFSET_X,
    WORLD_VERSION,
)
from vaniagen.level.seed_manager import SeedManager
from vaniagen.level.world_data import (
    ExitZone,
    GridPosition,
    WorldBounds,
    WorldData,
    WorldMapData,
)
from vaniagen.level.world_graph import WorldGraph
from vaniagen.utils.tile_utils import clamp, round_half_up

logger = logging.getLogger(__name__)

Pos = Tuple[int, int]

EXIT_EDGE_ORDER = ("top", "bottom", "left", "right")


def _spiral_search(occupied: Set[Pos], center: Pos, max_radius: int = SPIRAL_MAX_RADIUS) -> Optional[Pos]:
    """Nearest free cell on expanding square rings around `center`."""
    cx, cy = center
    for r in range(1, max_radius + 1):
        for dx in range(-r, r + 1):
            for dy in range(-r, r + 1):
                if max(abs(dx), abs(dy)) != r:
                    continue
                cell = (cx + dx, cy + dy)
                if cell not in occupied:
                    return cell
    return None


def _fresh_column(occupied: Set[Pos], y: int) -> Pos:
    max_x = max((x for x, _ in occupied), default=-1)
    return max_x + 1, y


def bfs_layout(graph: WorldGraph) -> Dict[str, Pos]:
    """
    Assign every node a unique grid cell.

    Walks the graph from the start node treating edges as undirected.
    Deeper neighbours go to the right, shallower ones to the left and
    equal-depth ones stack above/below. When all preferred cells are taken
    an expanding spiral around the preferred cell finds the nearest free one.
    """
    positions: Dict[str, Pos] = {}
    occupied: Set[Pos] = set()
    depth = {n.id: n.depth for n in graph.nodes}
    neighbors = {node_id: sorted(nbs) for node_id, nbs in graph.neighbors().items()}
    sibling_count: Dict[str, int] = {}
    visited: Set[str] = set()

    def place(node_id: str, cell: Pos) -> None:
        positions[node_id] = cell
        occupied.add(cell)

    roots = [graph.start] + [n.id for n in graph.nodes if n.id != graph.start]
    for root in roots:
        if root in positions:
            continue
        if not positions:
            place(root, (0, 0))
        else:
            logger.debug("Room %s is not connected to %s; placing in a fresh column", root, graph.start)
            place(root, _fresh_column(occupied, 0))

        queue = deque([root])
        while queue:
            current = queue.popleft()
            if current in visited:
                continue
            visited.add(current)

            cx, cy = positions[current]
            current_depth = depth.get(current, 0)
            horiz_index = 0

            for nb in neighbors.get(current, []):
                if nb in positions:
                    continue
                nb_depth = depth.get(nb, current_depth)

                if nb_depth != current_depth:
                    horiz_index += 1
                    dx = horiz_index if nb_depth > current_depth else -horiz_index
                    candidates = [(cx + dx, cy), (cx + dx, cy + 1), (cx + dx, cy - 1)]
                else:
                    k = sibling_count[current] = sibling_count.get(current, 0) + 1
                    candidates = [(cx, cy + k), (cx, cy - k)]

                chosen = next((c for c in candidates if c not in occupied), None)
                if chosen is None:
                    chosen = _spiral_search(occupied, candidates[0])
                if chosen is None:
                    chosen = _fresh_column(occupied, cy)
                    logger.warning("Spiral search exhausted for %s; using fresh column %s", nb, chosen)

                place(nb, chosen)
                queue.append(nb)

    return positions


def choose_edge(a: Pos, b: Pos) -> str:
    """Edge of room `a` facing room `b`; ties favour the horizontal axis."""
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    if abs(dx) >= abs(dy):
        return "right" if dx > 0 else "left"
    return "bottom" if dy > 0 else "top"


def room_size_tiles(seeds: SeedManager, room_id: str, edge_counts: Dict[str, int]) -> Tuple[int, int]:
    """
    Adaptive room size in tiles.

    Vertical exits widen the room and horizontal exits heighten it. This
    cross-axis coupling is kept as-is because every seeded world depends on
    it; see DESIGN.md before changing it.
    """
    rng = seeds.room_size_rng(room_id)
    width = BASE_ROOM_WIDTH
    height = BASE_ROOM_HEIGHT

    if edge_counts.get("top", 0) > 0 and edge_counts.get("bottom", 0) > 0:
        height += rng.randint(ROOM_GROWTH_MIN, ROOM_GROWTH_MAX)
    if edge_counts.get("left", 0) > 0 and edge_counts.get("right", 0) > 0:
        width += rng.randint(ROOM_GROWTH_MIN, ROOM_GROWTH_MAX)

    for _ in range(edge_counts.get("top", 0)):
        width += rng.randint(ROOM_GROWTH_MIN, ROOM_GROWTH_MAX)
    for _ in range(edge_counts.get("bottom", 0)):
        width += rng.randint(ROOM_GROWTH_MIN, ROOM_GROWTH_MAX)
    for _ in range(edge_counts.get("left", 0)):
        height += rng.randint(ROOM_GROWTH_MIN, ROOM_GROWTH_MAX)
    for _ in range(edge_counts.get("right", 0)):
        height += rng.randint(ROOM_GROWTH_MIN, ROOM_GROWTH_MAX)

    return width, height


def make_exit(
    room_id: str,
    edge: str,
    target: str,
    slot: int,
    slots: int,
    width_tiles: int,
    height_tiles: int,
    tile_size: int,
) -> ExitZone:
    """Build the exit for slot `slot` of `slots` on one edge."""
    edge_pos = (slot + 1) / (slots + 1)
    along = width_tiles if edge in ("top", "bottom") else height_tiles
    centre = clamp(round_half_up(edge_pos * along), 0, along - 1)
    half_span = EXIT_SPAN_TILES // 2
    tile_start = max(0, centre - half_span)
    tile_end = min(along - 1, centre + half_span)
    span_px = (tile_end - tile_start + 1) * tile_size

    if edge in ("top", "bottom"):
        y_tile = 0 if edge == "top" else height_tiles - 1
        x, y, w, h = tile_start * tile_size, y_tile * tile_size, span_px, tile_size
    else:
        x_tile = 0 if edge == "left" else width_tiles - 1
        x, y, w, h = x_tile * tile_size, tile_start * tile_size, tile_size, span_px

    return ExitZone(
        id=f"{room_id}_to_{target}_{edge}_{slot}",
        x=x,
        y=y,
        width=w,
        height=h,
        edge=edge,
        edge_position=edge_pos,
        edge_start=tile_start / along,
        edge_end=tile_end / along,
        tile_start=tile_start,
        tile_end=tile_end,
        target_map_id=target,
    )


def build_exits_for_room(
    room_id: str,
    neighbors: List[Tuple[str, str]],
    width_tiles: int,
    height_tiles: int,
    tile_size: int,
) -> List[ExitZone]:
    """
    Spread a room's exits along its edges.

    Args:
        neighbors: (target_id, edge) pairs

    Returns:
        Exits grouped top, bottom, left, right; k exits on an edge sit at
        (i+1)/(k+1) along it
    """
    by_edge: Dict[str, List[str]] = {edge: [] for edge in EXIT_EDGE_ORDER}
    for target, edge in neighbors:
        by_edge[edge].append(target)

    exits: List[ExitZone] = []
    for edge in EXIT_EDGE_ORDER:
        targets = by_edge[edge]
        for slot, target in enumerate(targets):
            exits.append(make_exit(room_id, edge, target, slot, len(targets), width_tiles, height_tiles, tile_size))
    return exits


def convert_to_world_data(
    graph: WorldGraph,
    tile_size: int = DEFAULT_TILE_SIZE,
    author: str = DEFAULT_AUTHOR,
) -> WorldData:
    """
    Convert an abstract graph into rooms with sizes, exits and positions.

    Tile grids are left empty; fill them with the room filler.
    """
    tile_size = max(1, int(tile_size))
    layout = bfs_layout(graph)
    neighbor_map = graph.neighbors()
    seeds = SeedManager(graph.seed)

    maps: Dict[str, WorldMapData] = {}
    for node in graph.nodes:
        pos = layout[node.id]
        neighbors = [(t, choose_edge(pos, layout[t])) for t in neighbor_map.get(node.id, [])]

        edge_counts = {"top": 0, "bottom": 0, "left": 0, "right": 0}
        for _, edge in neighbors:
            edge_counts[edge] += 1

        width_tiles, height_tiles = room_size_tiles(seeds, node.id, edge_counts)
        exits = build_exits_for_room(node.id, neighbors, width_tiles, height_tiles, tile_size)

        maps[node.id] = WorldMapData(
            id=node.id,
            world=WorldBounds(width=width_tiles * tile_size, height=height_tiles * tile_size, tile_size=tile_size),
            exits=exits,
            tiles=[],
            grid_position=GridPosition(x=pos[0], y=pos[1]),
            grid_height=1,
            metadata={
                "name": node.label or node.id,
                "description": f"Auto-generated from seed {graph.seed}",
                "author": author,
            },
        )
        logger.debug("Room %s: %dx%d tiles at %s, %d exits", node.id, width_tiles, height_tiles, pos, len(exits))

    start_map = maps.get(graph.start)
    start_height = start_map.world.height if start_map else BASE_ROOM_WIDTH * tile_size

    return WorldData(
        seed=str(graph.seed),
        starting_map=graph.start,
        starting_position={"x": START_OFFSET_X, "y": start_height - START_OFFSET_FROM_BOTTOM},
        maps=maps,
        version=WORLD_VERSION,
        metadata={
            "name": f"World {graph.seed}",
            "description": f"Generated {len(graph.nodes)} rooms",
            "author": author,
        },
        starting_spawn="default",
    )


def export_world_data(world: WorldData) -> str:
    """Serialize a world to indented JSON."""
    return json.dumps(world.to_dict(), indent=2)
