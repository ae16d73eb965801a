"""
Tests for world graph generation and solvability repair.
"""

import pytest

from vaniagen.level.graph_generator import generate_world_graph, repair_solvability, settle_solvability
from vaniagen.level.progression_solver import is_graph_solvable
from vaniagen.level.seed_manager import create_rng
from vaniagen.level.world_graph import (
    Connection,
    GateRequirement,
    GatingOptions,
    GenerationOptions,
    RoomNode,
    WorldGraph,
)


# --- Test Fixtures ---

@pytest.fixture
def locked_goal() -> WorldGraph:
    """Goal behind a gate whose key sits behind that same gate."""
    nodes = [RoomNode("room_1", 0), RoomNode("room_2", 1), RoomNode("room_3", 2, items=["key:key_1"])]
    edges = [
        Connection("room_1", "room_2"),
        Connection("room_2", "room_3", GateRequirement("key", "key_1")),
    ]
    return WorldGraph(nodes=nodes, edges=edges, start="room_1", goal="room_3", seed="locked")


@pytest.fixture
def plain_options() -> GenerationOptions:
    """Options whose output does not depend on the RNG."""
    return GenerationOptions(
        room_count=6,
        seed="plain",
        loops_ratio=0.0,
        branch_factor=1,
        gating=GatingOptions(mode="keys", gate_frequency=0.0),
    )


@pytest.fixture
def gated_options() -> GenerationOptions:
    return GenerationOptions(
        room_count=24,
        seed="gated",
        loops_ratio=0.5,
        branch_factor=1.5,
        gating=GatingOptions(mode="keys", gate_frequency=0.5),
    )


class TestGraphShape:

    def test_exact_counts(self, plain_options):
        graph = generate_world_graph(plain_options)

        assert len(graph.nodes) == 6
        assert len(graph.edges) == 5
        assert graph.start == "room_1"
        assert graph.goal == "room_3"
        assert graph.gated_edges() == []
        assert graph.solvable is True

    def test_critical_path_is_linear(self, plain_options):
        graph = generate_world_graph(plain_options)
        pairs = [(e.source, e.target) for e in graph.edges[:2]]

        assert pairs == [("room_1", "room_2"), ("room_2", "room_3")]
        assert [n.depth for n in graph.nodes[:3]] == [0, 1, 2]

    def test_branch_children_are_one_deeper(self, gated_options):
        graph = generate_world_graph(gated_options)
        depth = {n.id: n.depth for n in graph.nodes}
        path_len = max(3, 24 // 2)
        branch_edges = graph.edges[path_len - 1:path_len - 1 + (24 - path_len)]

        for edge in branch_edges:
            assert depth[edge.target] == depth[edge.source] + 1

    def test_room_count_is_floored_to_minimum(self):
        graph = generate_world_graph(GenerationOptions(room_count=1, seed="tiny"))

        assert len(graph.nodes) == 4
        assert graph.goal == "room_3"

    def test_room_ids_are_unique(self, gated_options):
        graph = generate_world_graph(gated_options)
        ids = [n.id for n in graph.nodes]

        assert len(ids) == len(set(ids)) == 24

    def test_options_are_not_mutated(self):
        options = GenerationOptions(room_count=8, seed="s", gating=GatingOptions(mode="bogus"))
        generate_world_graph(options)

        assert options.gating.mode == "bogus"


class TestDeterminism:

    def test_same_seed_same_graph(self, gated_options):
        first = generate_world_graph(gated_options)
        second = generate_world_graph(gated_options)

        assert first.to_dict() == second.to_dict()

    def test_none_seed_uses_default(self):
        a = generate_world_graph(GenerationOptions(room_count=10, seed=None))
        b = generate_world_graph(GenerationOptions(room_count=10, seed="metroidvania"))

        assert a.seed == "metroidvania"
        assert a.to_dict() == b.to_dict()


class TestGating:

    def test_start_edges_never_gated(self, gated_options):
        graph = generate_world_graph(gated_options)

        assert all(e.source != graph.start for e in graph.gated_edges())

    def test_gate_items_are_placed_no_deeper_than_source(self, gated_options):
        graph = generate_world_graph(gated_options)
        by_id = {n.id: n for n in graph.nodes}

        for edge in graph.gated_edges():
            holders = [n for n in graph.nodes if edge.gate.token in n.items]
            assert len(holders) == 1
            holder = holders[0]
            assert holder.id != edge.target
            assert holder.depth <= by_id[edge.source].depth or holder.id == graph.start

    def test_item_ids_are_numbered_from_one(self, gated_options):
        graph = generate_world_graph(gated_options)
        tokens = sorted(n for node in graph.nodes for n in node.items)

        assert graph.meta["gatesPlaced"] > 0
        assert len(tokens) == graph.meta["gatesPlaced"]
        assert "key:key_1" in tokens

    def test_abilities_mode(self, gated_options):
        gated_options.gating.mode = "abilities"
        graph = generate_world_graph(gated_options)

        assert graph.gated_edges()
        assert all(e.gate.kind == "ability" for e in graph.gated_edges())

    def test_mixed_mode_uses_callback(self, gated_options):
        gated_options.gating.mode = "mixed"
        gated_options.gating.mixed_kind = lambda index, edge: "ability" if index % 2 == 0 else "key"
        graph = generate_world_graph(gated_options)

        for node in graph.nodes:
            for token in node.items:
                kind, item_id = token.split(":")
                number = int(item_id.split("_")[1])
                assert kind == ("ability" if number % 2 == 0 else "key")

    def test_mixed_mode_defaults_to_keys(self, gated_options):
        gated_options.gating.mode = "mixed"
        graph = generate_world_graph(gated_options)

        assert all(e.gate.kind == "key" for e in graph.gated_edges())

    def test_gate_frequency_is_clamped(self):
        options = GenerationOptions(room_count=30, seed="clamp", gating=GatingOptions(gate_frequency=5.0))
        graph = generate_world_graph(options)

        assert graph.meta["gateFrequency"] == pytest.approx(0.9)

    def test_meta_records_generation_counts(self, gated_options):
        graph = generate_world_graph(gated_options)

        assert set(graph.meta) == {
            "loopsRatio", "branchFactor", "gatingMode", "gateFrequency",
            "roomCount", "loopsAdded", "gatesPlaced", "gatesRemoved",
        }
        assert graph.meta["gatesPlaced"] - graph.meta["gatesRemoved"] == len(graph.gated_edges())

    def test_unknown_mode_falls_back_to_keys(self, caplog):
        options = GenerationOptions(room_count=12, seed="x", gating=GatingOptions(mode="bogus", gate_frequency=0.4))
        with caplog.at_level("WARNING"):
            graph = generate_world_graph(options)

        assert graph.meta["gatingMode"] == "keys"
        assert "Unknown gating mode" in caplog.text


class TestSolvability:

    @pytest.mark.parametrize("seed", ["a", "b", "c", "metroidvania", "12345"])
    def test_flag_matches_solver(self, seed):
        options = GenerationOptions(
            room_count=20,
            seed=seed,
            gating=GatingOptions(mode="keys", gate_frequency=0.9),
        )
        graph = generate_world_graph(options)

        assert graph.solvable == is_graph_solvable(graph)

    def test_repair_strips_blocking_gate(self, locked_goal):
        assert not is_graph_solvable(locked_goal)

        removed = repair_solvability(create_rng("repair"), locked_goal, max_attempts=3)

        assert removed == 1
        assert locked_goal.gated_edges() == []
        assert is_graph_solvable(locked_goal)

    def test_settle_marks_repaired_graph_solvable(self, locked_goal):
        assert settle_solvability(create_rng("repair"), locked_goal) == 1
        assert locked_goal.solvable is True

    def test_no_attempts_leaves_graph_unsolvable(self, locked_goal, caplog):
        with caplog.at_level("WARNING"):
            removed = settle_solvability(create_rng("repair"), locked_goal, max_attempts=0)

        assert removed == 0
        assert locked_goal.solvable is False
        assert len(locked_goal.gated_edges()) == 1
        assert "not solvable after 0 repair attempts" in caplog.text

    def test_graph_round_trip(self, gated_options):
        graph = generate_world_graph(gated_options)
        restored = WorldGraph.from_dict(graph.to_dict())

        assert restored == graph

    def test_graph_from_dict_requires_keys(self):
        with pytest.raises(ValueError):
            WorldGraph.from_dict({"nodes": [], "edges": []})
