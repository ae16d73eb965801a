"""
Tests for room tile filling and the shared repair passes.
"""

import pytest

from vaniagen.config import TILE_EMPTY, TILE_SOLID
from vaniagen.level.graph_generator import generate_world_graph
from vaniagen.level.room_filler import fill_room, fill_world
from vaniagen.level.room_postprocess import (
    ExitSpan,
    ensure_connectivity,
    exit_spans,
    repair_room_grid,
    seal_single_gaps,
    widen_single_gaps,
)
from vaniagen.level.seed_manager import create_rng
from vaniagen.level.world_converter import convert_to_world_data
from vaniagen.level.world_data import ExitZone, WorldBounds, WorldMapData
from vaniagen.level.world_graph import GatingOptions, GenerationOptions
from vaniagen.utils.tile_utils import exit_mid_cell, find_single_gaps, flood_fill, make_grid

ALGORITHMS = ["cave", "outside", "corridor"]


# --- Helpers ---

def assert_playable(grid, room):
    """No single-tile gaps, and every empty cell and exit reaches the centre."""
    h = len(grid)
    w = len(grid[0])
    assert (w, h) == (room.tiles_wide, room.tiles_high)
    assert find_single_gaps(grid) == []

    centre = (w // 2, h // 2)
    assert grid[centre[1]][centre[0]] == TILE_EMPTY
    reached = flood_fill(grid, [centre])
    empties = {(x, y) for y in range(h) for x in range(w) if grid[y][x] == TILE_EMPTY}
    assert empties == reached

    for span in exit_spans(room.exits, w, h):
        mid = exit_mid_cell(span.edge, span.tile_start, span.tile_end, w, h)
        assert mid in reached


def make_room(width_tiles, height_tiles, exits=(), room_id="r"):
    zones = []
    for i, (edge, start, end) in enumerate(exits):
        zones.append(ExitZone(
            id=f"{room_id}_{i}", x=0, y=0, width=32, height=32, edge=edge,
            edge_position=0.5, edge_start=0.0, edge_end=0.0,
            tile_start=start, tile_end=end, target_map_id=f"t{i}",
        ))
    return WorldMapData(
        id=room_id,
        world=WorldBounds(width=width_tiles * 32, height=height_tiles * 32, tile_size=32),
        exits=zones,
    )


# --- Fixtures ---

@pytest.fixture(scope="module")
def world():
    graph = generate_world_graph(GenerationOptions(
        room_count=10,
        seed="filler",
        loops_ratio=0.5,
        gating=GatingOptions(gate_frequency=0.3),
    ))
    return convert_to_world_data(graph)


class TestFillRoom:

    @pytest.mark.parametrize("algorithm", ALGORITHMS)
    def test_generated_rooms_are_playable(self, world, algorithm):
        for room in world.maps.values():
            grid = fill_room(room, algorithm, f"seed-{room.id}")
            assert_playable(grid, room)

    @pytest.mark.parametrize("algorithm", ALGORITHMS)
    def test_deterministic(self, world, algorithm):
        room = world.maps[world.starting_map]

        assert fill_room(room, algorithm, "same") == fill_room(room, algorithm, "same")

    def test_room_is_not_mutated(self, world):
        room = world.maps[world.starting_map]
        before = room.to_dict()
        fill_room(room, "cave", "x")

        assert room.to_dict() == before

    def test_unknown_algorithm_uses_corridor(self, world):
        room = world.maps[world.starting_map]

        assert fill_room(room, "lava", "s") == fill_room(room, "corridor", "s")

    def test_missing_seed_uses_room_id(self, world):
        room = world.maps[world.starting_map]

        assert fill_room(room, "cave") == fill_room(room, "cave", f"{room.id}-seed")

    def test_cave_seeds_differ(self, world):
        room = world.maps[world.starting_map]

        assert fill_room(room, "cave", "one") != fill_room(room, "cave", "two")

    def test_inverted_and_out_of_range_exits_are_clamped(self):
        room = make_room(30, 20, exits=[("left", 12, 10), ("top", 28, 40), ("bottom", -5, 1)])

        for algorithm in ALGORITHMS:
            assert_playable(fill_room(room, algorithm, "clamp"), room)

    @pytest.mark.parametrize("algorithm", ALGORITHMS)
    def test_one_tile_exits_are_playable(self, algorithm):
        room = make_room(30, 20, exits=[("left", 5, 5), ("top", 5, 5)])

        assert_playable(fill_room(room, algorithm, "narrow"), room)

    def test_room_without_exits(self):
        room = make_room(25, 10)

        for algorithm in ALGORITHMS:
            assert_playable(fill_room(room, algorithm, "closed"), room)

    def test_corridor_keeps_solid_border(self):
        room = make_room(30, 12, exits=[("right", 5, 7)])
        grid = fill_room(room, "corridor", "border")

        assert all(v == TILE_SOLID for v in grid[0])
        assert grid[6][29] == TILE_EMPTY
        assert grid[0][29] == TILE_SOLID


class TestFillWorld:

    def test_fills_a_copy(self, world):
        filled = fill_world(world, "outside")

        assert all(room.tiles == [] for room in world.maps.values())
        for room_id, room in filled.maps.items():
            assert_playable(room.tiles, room)
            assert room.tiles == fill_room(world.maps[room_id], "outside", f"{world.seed}-{room_id}-outside-0")

    def test_counter_changes_seed(self, world):
        first = fill_world(world, "cave", counter=0)
        again = fill_world(world, "cave", counter=0)
        other = fill_world(world, "cave", counter=1)

        assert first.to_dict() == again.to_dict()
        assert first.to_dict() != other.to_dict()


class TestGapWidening:

    def test_opens_toward_empty_right(self):
        grid = [[1, 0, 1, 0, 0]]

        assert widen_single_gaps(grid) == 1
        assert grid == [[1, 0, 0, 0, 0]]

    def test_opens_toward_empty_left(self):
        grid = [[0, 0, 1, 0, 1]]
        widen_single_gaps(grid)

        assert grid == [[0, 0, 0, 0, 1]]

    def test_seals_when_no_room_to_widen(self):
        grid = [[1, 0, 1, 1, 1]]
        widen_single_gaps(grid)

        assert grid == [[1, 1, 1, 1, 1]]

    def test_vertical_gap(self):
        grid = [[1], [0], [1], [0], [0]]
        widen_single_gaps(grid)

        assert grid == [[1], [0], [0], [0], [0]]

    def test_seal_single_gaps(self):
        grid = [
            [1, 1, 1, 1],
            [1, 0, 1, 1],
            [1, 1, 1, 1],
        ]

        assert seal_single_gaps(grid) == 1
        assert grid[1][1] == TILE_SOLID


class TestExitSpans:

    def test_narrow_span_widened_around_midpoint(self):
        room = make_room(30, 20, exits=[("left", 5, 5), ("top", 10, 11)])

        assert exit_spans(room.exits, 30, 20) == [ExitSpan("left", 4, 6), ExitSpan("top", 10, 12)]

    def test_widened_span_stays_on_edge(self):
        room = make_room(30, 20, exits=[("top", 0, 0), ("right", 19, 19)])

        assert exit_spans(room.exits, 30, 20) == [ExitSpan("top", 0, 2), ExitSpan("right", 17, 19)]

    def test_wide_span_unchanged(self):
        room = make_room(30, 20, exits=[("bottom", 3, 8)])

        assert exit_spans(room.exits, 30, 20) == [ExitSpan("bottom", 3, 8)]


class TestConnectivity:

    def test_prunes_isolated_pocket(self):
        grid = make_grid(9, 9, TILE_SOLID)
        grid[1][1] = TILE_EMPTY

        assert ensure_connectivity(grid, []) is True
        assert grid[1][1] == TILE_SOLID
        assert all(grid[y][x] == TILE_EMPTY for y in range(3, 6) for x in range(3, 6))

    def test_tunnels_exit_to_hub(self):
        grid = make_grid(15, 11, TILE_SOLID)
        spans = [ExitSpan("left", 4, 6), ExitSpan("top", 10, 12)]
        ensure_connectivity(grid, spans)

        reached = flood_fill(grid, [(7, 5)])
        assert (0, 5) in reached
        assert (11, 0) in reached

    def test_no_change_on_settled_grid(self):
        grid = make_grid(9, 9, TILE_SOLID)
        spans = [ExitSpan("right", 3, 5)]
        repair_room_grid(grid, spans)
        snapshot = [row[:] for row in grid]

        assert ensure_connectivity(grid, spans) is False
        assert grid == snapshot

    @pytest.mark.parametrize("seed", ["n1", "n2", "n3", "n4"])
    def test_repair_settles_random_noise(self, seed):
        rng = create_rng(seed)
        w, h = 31, 17
        grid = [[TILE_SOLID if rng.random() < 0.5 else TILE_EMPTY for _ in range(w)] for _ in range(h)]
        room = make_room(w, h, exits=[("left", 3, 5), ("right", 10, 12), ("bottom", 20, 22), ("top", 1, 3)])
        repair_room_grid(grid, exit_spans(room.exits, w, h))

        assert_playable(grid, room)
