"""
Tests for converting abstract graphs into concrete rooms with exits.
"""

import json

import pytest

from vaniagen.level.graph_generator import generate_world_graph
from vaniagen.level.world_converter import (
    bfs_layout,
    build_exits_for_room,
    choose_edge,
    convert_to_world_data,
    export_world_data,
    room_size_tiles,
)
from vaniagen.level.seed_manager import SeedManager
from vaniagen.level.world_data import OPPOSITE_EDGE
from vaniagen.level.world_graph import Connection, GatingOptions, GenerationOptions, RoomNode, WorldGraph


def chain_graph() -> WorldGraph:
    nodes = [RoomNode("room_1", 0), RoomNode("room_2", 1), RoomNode("room_3", 2)]
    edges = [Connection("room_1", "room_2"), Connection("room_2", "room_3")]
    return WorldGraph(nodes=nodes, edges=edges, start="room_1", goal="room_3", seed="chain")


@pytest.fixture
def generated_graph() -> WorldGraph:
    return generate_world_graph(GenerationOptions(
        room_count=20,
        seed="converter",
        loops_ratio=0.6,
        branch_factor=2,
        gating=GatingOptions(gate_frequency=0.3),
    ))


class TestBfsLayout:

    def test_chain_runs_left_to_right(self):
        layout = bfs_layout(chain_graph())

        assert layout == {"room_1": (0, 0), "room_2": (1, 0), "room_3": (2, 0)}

    def test_equal_depth_neighbours_stack_vertically(self):
        graph = WorldGraph(
            nodes=[RoomNode("a", 0), RoomNode("b", 0), RoomNode("c", 0)],
            edges=[Connection("a", "b"), Connection("a", "c")],
            start="a", goal="c", seed="s",
        )

        assert bfs_layout(graph) == {"a": (0, 0), "b": (0, 1), "c": (0, 2)}

    def test_deeper_siblings_spread_right(self):
        graph = WorldGraph(
            nodes=[RoomNode("a", 0), RoomNode("b", 1), RoomNode("c", 1)],
            edges=[Connection("a", "b"), Connection("a", "c")],
            start="a", goal="c", seed="s",
        )

        assert bfs_layout(graph) == {"a": (0, 0), "b": (1, 0), "c": (2, 0)}

    def test_disconnected_nodes_get_fresh_column(self):
        graph = WorldGraph(
            nodes=[RoomNode("a", 0), RoomNode("b", 1), RoomNode("island", 5)],
            edges=[Connection("a", "b")],
            start="a", goal="b", seed="s",
        )
        layout = bfs_layout(graph)

        assert layout["island"] == (2, 0)

    def test_positions_are_unique(self, generated_graph):
        layout = bfs_layout(generated_graph)

        assert set(layout) == {n.id for n in generated_graph.nodes}
        assert len(set(layout.values())) == len(layout)


@pytest.mark.parametrize("a, b, edge", [
    ((0, 0), (1, 0), "right"),
    ((0, 0), (-2, 1), "left"),
    ((0, 0), (0, 1), "bottom"),
    ((0, 0), (1, -3), "top"),
    ((0, 0), (1, 1), "right"),
    ((0, 0), (-1, -1), "left"),
])
def test_choose_edge(a, b, edge):
    assert choose_edge(a, b) == edge


class TestRoomSizing:

    def test_no_exits_keeps_base_size(self):
        assert room_size_tiles(SeedManager("s"), "room_1", {}) == (25, 10)

    def test_vertical_exits_widen_and_heighten(self):
        w, h = room_size_tiles(SeedManager("s"), "room_1", {"top": 1, "bottom": 1})

        assert 25 + 20 <= w <= 25 + 50
        assert 10 + 10 <= h <= 10 + 25

    def test_single_right_exit_only_heightens(self):
        w, h = room_size_tiles(SeedManager("s"), "room_1", {"right": 1})

        assert w == 25
        assert 20 <= h <= 35

    def test_size_is_seeded_per_room(self):
        counts = {"left": 2, "right": 1}

        assert room_size_tiles(SeedManager("s"), "room_4", counts) == room_size_tiles(SeedManager("s"), "room_4", counts)


class TestExits:

    def test_single_exit_is_centred(self):
        exits = build_exits_for_room("room_1", [("room_2", "right")], 25, 20, 32)

        assert len(exits) == 1
        ex = exits[0]
        assert ex.id == "room_1_to_room_2_right_0"
        assert ex.edge_position == 0.5
        assert (ex.tile_start, ex.tile_end) == (9, 11)
        assert (ex.x, ex.y, ex.width, ex.height) == (24 * 32, 9 * 32, 32, 96)
        assert ex.edge_start == pytest.approx(9 / 20)
        assert ex.edge_end == pytest.approx(11 / 20)

    def test_exits_are_spread_and_ordered(self):
        neighbors = [("r", "right"), ("b", "bottom"), ("t", "top"), ("b2", "bottom")]
        exits = build_exits_for_room("x", neighbors, 30, 30, 16)

        assert [e.edge for e in exits] == ["top", "bottom", "bottom", "right"]
        bottoms = [e for e in exits if e.edge == "bottom"]
        assert [e.edge_position for e in bottoms] == pytest.approx([1 / 3, 2 / 3])
        assert bottoms[0].id == "x_to_b_bottom_0"
        assert bottoms[1].id == "x_to_b2_bottom_1"
        assert all(e.y == 29 * 16 and e.height == 16 for e in bottoms)

    def test_exit_range_is_clamped_to_edge(self):
        neighbors = [(str(i), "left") for i in range(12)]
        exits = build_exits_for_room("x", neighbors, 25, 10, 32)

        for ex in exits:
            assert 0 <= ex.tile_start <= ex.tile_end <= 9


class TestConvert:

    def test_chain_world(self):
        world = convert_to_world_data(chain_graph())

        assert world.version == "2.0"
        assert world.starting_map == "room_1"
        assert world.starting_spawn == "default"
        start = world.maps["room_1"]
        assert world.starting_position == {"x": 100, "y": start.world.height - 112}
        assert [e.target_map_id for e in start.exits] == ["room_2"]
        assert start.world.width == 25 * 32
        for room in world.maps.values():
            assert room.tiles == []
            assert room.grid_height == 1

    def test_every_edge_has_matching_exits(self, generated_graph):
        world = convert_to_world_data(generated_graph, tile_size=16, author="tests")

        assert set(world.maps) == {n.id for n in generated_graph.nodes}
        for room in world.maps.values():
            assert room.world.tile_size == 16
            assert room.metadata["author"] == "tests"
            for ex in room.exits:
                back = [e for e in world.maps[ex.target_map_id].exits if e.target_map_id == room.id]
                assert len(back) == 1
                assert back[0].edge == OPPOSITE_EDGE[ex.edge]

    def test_grid_positions_follow_layout(self, generated_graph):
        world = convert_to_world_data(generated_graph)
        layout = bfs_layout(generated_graph)

        for room_id, room in world.maps.items():
            assert (room.grid_position.x, room.grid_position.y) == layout[room_id]

    def test_deterministic(self, generated_graph):
        first = export_world_data(convert_to_world_data(generated_graph))
        second = export_world_data(convert_to_world_data(generated_graph))

        assert first == second
        assert json.loads(first)["startingMap"] == generated_graph.start
