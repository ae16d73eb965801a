"""
Room Tile Filler - turns a sized room with exits into a solid/empty tile grid

Three algorithms are available:
 - cave: cellular automata caverns with tunnels from each exit to a hub
 - outside: random-walk ground with floating platforms
 - corridor: enclosed hall with a floor, a ceiling and a mid walkway

Every algorithm finishes with the shared repair passes in room_postprocess.
"""

import copy
import logging
from typing import Callable, Dict, List, Optional

from vaniagen.config import (
    CAVE_FILL_CHANCE,
    CAVE_MIN_DENSITY,
    CAVE_RIB_CHANCE,
    CAVE_RIB_SPACING,
    CAVE_SMOOTH_ITERATIONS,
    CORRIDOR_PLATFORMS,
    DEFAULT_FILL_ALGORITHM,
    FILL_ALGORITHMS,
    OUTSIDE_PLATFORMS,
    TILE_EMPTY,
    TILE_SOLID,
)
from vaniagen.level.room_postprocess import ExitSpan, exit_spans, repair_room_grid
from vaniagen.level.seed_manager import SeededRng, SeedManager, create_rng
from vaniagen.level.world_data import WorldData, WorldMapData
from vaniagen.utils.tile_utils import (
    Grid,
    carve_aperture,
    carve_line,
    carve_rect,
    clamp,
    copy_grid,
    count_solid_neighbors,
    exit_mid_cell,
    fill_rect,
    force_border,
    make_grid,
    solid_density,
    step_inward,
)

logger = logging.getLogger(__name__)


def room_dimensions(room: WorldMapData):
    """Grid size (w, h) in tiles for a room."""
    return room.world.tiles_wide, room.world.tiles_high


# ----- Cellular automata -----

def random_fill(grid: Grid, rng: SeededRng, fill_chance: float = CAVE_FILL_CHANCE) -> None:
    """Randomly fill the interior; borders are always solid."""
    h = len(grid)
    w = len(grid[0])
    for y in range(h):
        for x in range(w):
            border = x == 0 or y == 0 or x == w - 1 or y == h - 1
            grid[y][x] = TILE_SOLID if border or rng.random() < fill_chance else TILE_EMPTY


def smooth_cave(grid: Grid, iterations: int = CAVE_SMOOTH_ITERATIONS) -> None:
    """
    Apply the 4-5 rule: more than 4 solid neighbours turns a cell solid,
    fewer than 4 turns it empty, exactly 4 leaves it alone.
    """
    h = len(grid)
    w = len(grid[0])
    for _ in range(iterations):
        snapshot = copy_grid(grid)
        for y in range(h):
            for x in range(w):
                n = count_solid_neighbors(snapshot, x, y)
                if n > 4:
                    grid[y][x] = TILE_SOLID
                elif n < 4:
                    grid[y][x] = TILE_EMPTY
        force_border(grid)


# ----- Algorithms -----

def fill_cave(w: int, h: int, spans: List[ExitSpan], rng: SeededRng) -> Grid:
    grid = make_grid(w, h, TILE_SOLID)
    random_fill(grid, rng)
    smooth_cave(grid)

    # Solid floor band under the caverns
    floor_band = max(2, int(h * 0.05))
    fill_rect(grid, 0, h - floor_band, w - 1, h - 1)

    cx, cy = w // 2, h // 2
    for span in spans:
        carve_aperture(grid, span.edge, span.tile_start, span.tile_end)
    for span in spans:
        mid = exit_mid_cell(span.edge, span.tile_start, span.tile_end, w, h)
        sx, sy = step_inward(span.edge, mid, 2, w, h)
        carve_line(grid, sx, sy, cx, cy)
    carve_rect(grid, cx - 1, cy - 1, cx + 1, cy + 1)

    # Reinforce caves that came out too open
    if solid_density(grid) < CAVE_MIN_DENSITY:
        for y in range(3, h - 3, CAVE_RIB_SPACING):
            for x in range(2, w - 2):
                if rng.random() < CAVE_RIB_CHANCE:
                    grid[y][x] = TILE_SOLID

    smooth_cave(grid, 1)
    return grid


def fill_outside(w: int, h: int, spans: List[ExitSpan], rng: SeededRng) -> Grid:
    grid = make_grid(w, h, TILE_EMPTY)

    # Rolling ground line
    ground = int(h * 0.75)
    min_y = int(h * 0.55)
    max_y = int(h * 0.9)
    for x in range(w):
        ground = clamp(ground + rng.randint(-1, 1), min_y, max_y)
        for y in range(ground, h):
            grid[y][x] = TILE_SOLID

    for _ in range(OUTSIDE_PLATFORMS):
        length = rng.randint(3, 8)
        px = rng.randint(2, w - length - 2)
        py = clamp(rng.randint(int(h * 0.25), int(h * 0.65)), 2, h - 3)
        fill_rect(grid, px, py, px + length, py)

    for span in spans:
        carve_aperture(grid, span.edge, span.tile_start, span.tile_end)

    for span in spans:
        if span.edge == "bottom":
            # stair up from the floor opening
            for i in range(4):
                carve_rect(
                    grid,
                    clamp(span.tile_start - i, 0, w - 1), h - 1 - i,
                    clamp(span.tile_end + i, 0, w - 1), h - 1 - i,
                )
        elif span.edge == "top":
            carve_rect(grid, clamp(span.tile_start - 1, 0, w - 1), 0, clamp(span.tile_end + 1, 0, w - 1), 4)
    return grid


def fill_corridor(w: int, h: int, spans: List[ExitSpan], rng: SeededRng) -> Grid:
    grid = make_grid(w, h, TILE_EMPTY)
    force_border(grid)

    floor_y = h - 3
    fill_rect(grid, 1, floor_y, w - 2, floor_y)
    fill_rect(grid, 1, 2, w - 2, 2)

    for span in spans:
        carve_aperture(grid, span.edge, span.tile_start, span.tile_end)

    # Drop a passage from every exit to the walkway
    walkway_y = int(h * 0.6)
    for span in spans:
        mid = exit_mid_cell(span.edge, span.tile_start, span.tile_end, w, h)
        ix, iy = step_inward(span.edge, mid, 2, w, h)
        ix = clamp(ix, 1, w - 2)
        iy = clamp(iy, 1, h - 2)
        carve_line(grid, ix, iy, clamp(ix, 2, w - 3), walkway_y, half_width=1)

    for _ in range(CORRIDOR_PLATFORMS):
        length = rng.randint(4, 10)
        px = rng.randint(2, w - length - 2)
        py = clamp(rng.randint(int(h * 0.35), int(h * 0.55)), 3, h - 4)
        fill_rect(grid, px, py, px + length, py)
    return grid


ALGORITHMS: Dict[str, Callable[[int, int, List[ExitSpan], SeededRng], Grid]] = {
    "cave": fill_cave,
    "outside": fill_outside,
    "corridor": fill_corridor,
}


def fill_room(room: WorldMapData, algorithm: str = DEFAULT_FILL_ALGORITHM, seed: Optional[str] = None) -> Grid:
    """
    Generate a tile grid for a room without modifying it.

    Args:
        room: Room with pixel bounds and exits
        algorithm: One of FILL_ALGORITHMS; anything else falls back to corridor
        seed: RNG seed; defaults to "<room id>-seed"

    Returns:
        Row-major grid of TILE_EMPTY / TILE_SOLID values
    """
    if algorithm not in ALGORITHMS:
        logger.debug("Unknown fill algorithm %r for %s; using %s", algorithm, room.id, DEFAULT_FILL_ALGORITHM)
        algorithm = DEFAULT_FILL_ALGORITHM
    seed = seed or f"{room.id}-seed"

    w, h = room_dimensions(room)
    spans = exit_spans(room.exits, w, h)
    rng = create_rng(seed)

    grid = ALGORITHMS[algorithm](w, h, spans, rng)
    repair_room_grid(grid, spans)
    return grid


def fill_world(world: WorldData, algorithm: str = DEFAULT_FILL_ALGORITHM, counter: int = 0) -> WorldData:
    """Return a copy of the world with every room's tiles generated."""
    filled = copy.deepcopy(world)
    seeds = SeedManager(world.seed)
    for room_id, room in filled.maps.items():
        seed = seeds.room_fill_seed(room_id, algorithm, counter)
        room.tiles = fill_room(room, algorithm, seed)
    logger.debug("Filled %d rooms with %s (counter=%d)", len(filled.maps), algorithm, counter)
    return filled


__all__ = [
    "FILL_ALGORITHMS",
    "fill_room",
    "fill_world",
    "fill_cave",
    "fill_outside",
    "fill_corridor",
    "smooth_cave",
]
