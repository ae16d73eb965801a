"""
Progression solver - fixpoint reachability over gated edges.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from vaniagen.level.world_graph import Connection, GateRequirement, WorldGraph


@dataclass
class ProgressionResult:
    """Outcome of a progression solve."""
    reachable_rooms: Set[str] = field(default_factory=set)
    obtained_items: Set[str] = field(default_factory=set)
    goal_reachable: bool = False
    passes: int = 0


def can_traverse(gate: Optional[GateRequirement], obtained: Set[str]) -> bool:
    """An edge is open when ungated or its item token has been obtained."""
    if gate is None:
        return True
    return gate.token in obtained


def solve_progression(graph: WorldGraph) -> ProgressionResult:
    """
    Compute which rooms and items a player can reach from the start room.

    Each pass runs one BFS seeded from the start room plus every room found
    so far. Items are collected the moment a room is visited, so an item
    picked up early in a pass can open an edge examined later in the same
    pass. Passes repeat until one adds no new item; since the item set only
    grows this takes at most |items| + 1 passes.

    Only directed adjacency (from -> to) is followed.
    """
    nodes = {n.id: n for n in graph.nodes}
    adjacency: Dict[str, List[Connection]] = {}
    for edge in graph.edges:
        adjacency.setdefault(edge.source, []).append(edge)

    result = ProgressionResult()
    start_node = nodes.get(graph.start)
    if start_node is not None:
        result.obtained_items.update(start_node.items)

    changed = True
    while changed:
        changed = False
        result.passes += 1

        frontier = [graph.start] + sorted(result.reachable_rooms - {graph.start})
        queue = deque(frontier)
        visited = set(frontier)

        while queue:
            room_id = queue.popleft()
            result.reachable_rooms.add(room_id)

            node = nodes.get(room_id)
            if node is not None:
                for item in node.items:
                    if item not in result.obtained_items:
                        result.obtained_items.add(item)
                        changed = True

            for edge in adjacency.get(room_id, []):
                if edge.target not in visited and can_traverse(edge.gate, result.obtained_items):
                    visited.add(edge.target)
                    queue.append(edge.target)

    result.goal_reachable = graph.goal in result.reachable_rooms
    return result


def is_graph_solvable(graph: WorldGraph) -> bool:
    return solve_progression(graph).goal_reachable
