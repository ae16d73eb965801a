"""
World graph generation: critical path, branches, loops, gates and repair.
"""

import logging
import math
from typing import List, Tuple

from vaniagen.config import (
    BRANCH_ATTACH_FROM,
    CRITICAL_PATH_RATIO,
    LOOP_CANDIDATE_SCALE,
    MAX_GATE_FREQUENCY,
    MAX_REPAIR_ATTEMPTS,
    MIN_CRITICAL_PATH,
    MIN_ROOM_COUNT,
)
from vaniagen.level.progression_solver import is_graph_solvable
from vaniagen.level.seed_manager import SeededRng, create_rng, normalize_seed
from vaniagen.level.world_graph import (
    GATING_MODES,
    Connection,
    GateRequirement,
    GenerationOptions,
    RoomNode,
    WorldGraph,
)
from vaniagen.utils.tile_utils import clamp, round_half_up

logger = logging.getLogger(__name__)


def room_id_for(index: int) -> str:
    """Room ids are 1-based: index 0 -> room_1."""
    return f"room_{index + 1}"


def build_critical_path(length: int) -> Tuple[List[RoomNode], List[Connection]]:
    """
    Generate the linear critical path room_1 -> room_2 -> ... -> room_N.

    Args:
        length: Number of rooms on the path

    Returns:
        (nodes, edges) with depth equal to path index
    """
    nodes: List[RoomNode] = []
    edges: List[Connection] = []
    for i in range(length):
        nodes.append(RoomNode(id=room_id_for(i), depth=i))
        if i > 0:
            edges.append(Connection(source=room_id_for(i - 1), target=room_id_for(i)))
    return nodes, edges


def add_branches(
    rng: SeededRng,
    nodes: List[RoomNode],
    edges: List[Connection],
    total_rooms: int,
    branch_factor: float,
) -> None:
    """
    Grow side branches until the graph holds exactly `total_rooms` nodes.

    Attachment points are drawn from the back 70% of the node list so
    branches cluster toward mid-to-late rooms. The last batch is cut short
    so the room count is never exceeded.
    """
    per_batch = round_half_up(max(1.0, branch_factor))
    next_index = len(nodes)

    while len(nodes) < total_rooms:
        attach_idx = rng.randint(int(math.floor(len(nodes) * BRANCH_ATTACH_FROM)), len(nodes) - 1)
        parent = nodes[attach_idx]
        for _ in range(per_batch):
            if len(nodes) >= total_rooms:
                break
            child = RoomNode(id=room_id_for(next_index), depth=parent.depth + 1)
            next_index += 1
            nodes.append(child)
            edges.append(Connection(source=parent.id, target=child.id))


def add_loops(
    rng: SeededRng,
    nodes: List[RoomNode],
    edges: List[Connection],
    loops_ratio: float,
) -> int:
    """
    Add ungated shortcut edges between non-adjacent rooms.

    Returns:
        Number of loop edges added
    """
    ids = [n.id for n in nodes]
    candidates = [(ids[i], ids[j]) for i in range(len(ids)) for j in range(i + 2, len(ids))]
    shuffled = rng.shuffle(candidates)
    to_add = int(math.floor(len(shuffled) * clamp(loops_ratio, 0.0, 1.0) * LOOP_CANDIDATE_SCALE))
    for source, target in shuffled[:to_add]:
        edges.append(Connection(source=source, target=target))
    return to_add


def _gate_kind(mode: str, options: GenerationOptions, gate_index: int, edge: Connection) -> str:
    if mode == "abilities":
        return "ability"
    if mode == "mixed" and options.gating.mixed_kind is not None:
        kind = options.gating.mixed_kind(gate_index, edge)
        return "ability" if kind == "ability" else "key"
    return "key"


def place_gates_and_items(
    rng: SeededRng,
    nodes: List[RoomNode],
    edges: List[Connection],
    options: GenerationOptions,
    gating_mode: str,
    gate_frequency: float,
) -> int:
    """
    Gate a share of the eligible edges and hide the matching items.

    Edges leaving the start room are never gated. Each item goes into a
    room no deeper than the gated edge's source (and never its target),
    falling back to the start room.

    Returns:
        Number of gates placed
    """
    start_id = nodes[0].id
    by_id = {n.id: n for n in nodes}
    eligible = [e for e in edges if e.source != start_id]
    gate_count = int(math.floor(len(eligible) * gate_frequency))
    chosen_edges = rng.shuffle(eligible)[:gate_count]

    for counter, edge in enumerate(chosen_edges, start=1):
        kind = _gate_kind(gating_mode, options, counter, edge)
        edge.gate = GateRequirement(kind=kind, id=f"{kind}_{counter}")

        source = by_id[edge.source]
        candidates = [n for n in nodes if n.depth <= source.depth and n.id != edge.target]
        holder = rng.choice(candidates) if candidates else nodes[0]
        holder.items.append(edge.gate.token)
        logger.debug("Gated %s -> %s with %s (item in %s)", edge.source, edge.target, edge.gate.token, holder.id)

    return len(chosen_edges)


def repair_solvability(
    rng: SeededRng,
    graph: WorldGraph,
    max_attempts: int = MAX_REPAIR_ATTEMPTS,
) -> int:
    """
    Strip random gates until the goal is reachable or attempts run out.

    Returns:
        Number of gates removed
    """
    removed = 0
    for _ in range(max_attempts):
        if is_graph_solvable(graph):
            break
        gated = graph.gated_edges()
        if not gated:
            break
        victim = rng.choice(gated)
        logger.debug("Repair: removing gate %s on %s -> %s", victim.gate.token, victim.source, victim.target)
        victim.gate = None
        removed += 1
    return removed


def settle_solvability(rng: SeededRng, graph: WorldGraph, max_attempts: int = MAX_REPAIR_ATTEMPTS) -> int:
    """Run the repair loop and record the outcome in `graph.solvable`; returns gates removed."""
    removed = repair_solvability(rng, graph, max_attempts)
    graph.solvable = is_graph_solvable(graph)
    if not graph.solvable:
        logger.warning(
            "World graph for seed %r is not solvable after %d repair attempts",
            graph.seed, max_attempts,
        )
    return removed


def generate_world_graph(options: GenerationOptions) -> WorldGraph:
    """
    Generate an abstract world graph.

    Steps:
    1. Linear critical path (about half the rooms)
    2. Branches until the room count is met
    3. Optional loop edges
    4. Gates and their items
    5. Bounded repair loop; the result's `solvable` flag records whether
       the goal ended up reachable

    Args:
        options: Generation options (clamped, never rejected)

    Returns:
        WorldGraph, a pure function of seed and options
    """
    seed = normalize_seed(options.seed)
    rng = create_rng(seed)

    rooms = max(MIN_ROOM_COUNT, int(math.floor(options.room_count)))
    loops_ratio = clamp(options.loops_ratio, 0.0, 1.0)
    branch_factor = max(0.0, options.branch_factor)
    gating_mode = options.gating.mode if options.gating.mode in GATING_MODES else "keys"
    gate_frequency = clamp(options.gating.gate_frequency, 0.0, MAX_GATE_FREQUENCY)
    if gating_mode != options.gating.mode:
        logger.warning("Unknown gating mode %r, using 'keys'", options.gating.mode)

    path_len = max(MIN_CRITICAL_PATH, int(math.floor(rooms * CRITICAL_PATH_RATIO)))
    nodes, edges = build_critical_path(path_len)
    add_branches(rng, nodes, edges, rooms, branch_factor)
    loops = add_loops(rng, nodes, edges, loops_ratio)
    gates = place_gates_and_items(rng, nodes, edges, options, gating_mode, gate_frequency)

    graph = WorldGraph(
        nodes=nodes,
        edges=edges,
        start=nodes[0].id,
        goal=nodes[path_len - 1].id,
        seed=seed,
    )
    removed = settle_solvability(rng, graph)

    graph.meta = {
        "loopsRatio": loops_ratio,
        "branchFactor": branch_factor,
        "gatingMode": gating_mode,
        "gateFrequency": gate_frequency,
        "roomCount": rooms,
        "loopsAdded": loops,
        "gatesPlaced": gates,
        "gatesRemoved": removed,
    }
    logger.debug("Generated graph %r: %d nodes, %d edges, %d gates", seed, len(nodes), len(edges), gates - removed)
    return graph
