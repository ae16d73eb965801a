"""
Abstract world graph data structures for Metroidvania-style generation.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from vaniagen.config import (
    DEFAULT_BRANCH_FACTOR,
    DEFAULT_GATE_FREQUENCY,
    DEFAULT_GATING_MODE,
    DEFAULT_LOOPS_RATIO,
    DEFAULT_ROOM_COUNT,
)

GATE_KINDS = ("key", "ability")
GATING_MODES = ("keys", "abilities", "mixed")


@dataclass
class GateRequirement:
    """An item or ability that must be held to traverse an edge."""
    kind: str  # "key" or "ability"
    id: str

    @property
    def token(self) -> str:
        """Item token as stored in RoomNode.items ("<kind>:<id>")."""
        return f"{self.kind}:{self.id}"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "id": self.id}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GateRequirement":
        kind = str(data.get("kind", data.get("type", "key")))
        if kind not in GATE_KINDS:
            raise ValueError(f"Unknown gate kind: {kind}")
        return cls(kind=kind, id=str(data["id"]))


@dataclass
class RoomNode:
    """
    A room in the abstract graph.

    Attributes:
        id: Room identifier ("room_<n>")
        depth: Distance from the start room along the path it was grown from
        label: Optional display label
        items: Item tokens available in this room ("key:key_1", ...)
    """
    id: str
    depth: int
    label: Optional[str] = None
    items: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "depth": self.depth, "items": list(self.items)}
        if self.label is not None:
            out["label"] = self.label
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoomNode":
        return cls(
            id=str(data["id"]),
            depth=int(data["depth"]),
            label=data.get("label"),
            items=[str(i) for i in data.get("items") or []],
        )


@dataclass
class Connection:
    """Directed edge between two rooms, optionally gated."""
    source: str
    target: str
    gate: Optional[GateRequirement] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"from": self.source, "to": self.target}
        if self.gate is not None:
            out["gate"] = self.gate.to_dict()
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Connection":
        gate = data.get("gate")
        return cls(
            source=str(data["from"]),
            target=str(data["to"]),
            gate=GateRequirement.from_dict(gate) if gate else None,
        )


@dataclass
class WorldGraph:
    """
    Complete abstract world graph.

    `solvable` records whether the goal was reachable from the start once
    the repair loop finished. Callers should regenerate with another seed
    rather than ship a graph where it is False.
    """
    nodes: List[RoomNode]
    edges: List[Connection]
    start: str
    goal: str
    seed: str
    meta: Dict[str, Any] = field(default_factory=dict)
    solvable: bool = True

    def get_node(self, node_id: str) -> Optional[RoomNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def gated_edges(self) -> List[Connection]:
        return [e for e in self.edges if e.gate is not None]

    def neighbors(self) -> Dict[str, List[str]]:
        """Undirected adjacency, neighbors in first-seen order."""
        out: Dict[str, List[str]] = {n.id: [] for n in self.nodes}
        for e in self.edges:
            a = out.setdefault(e.source, [])
            b = out.setdefault(e.target, [])
            if e.target not in a:
                a.append(e.target)
            if e.source not in b:
                b.append(e.source)
        return out

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "start": self.start,
            "goal": self.goal,
            "seed": self.seed,
            "meta": dict(self.meta),
            "solvable": self.solvable,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorldGraph":
        for key in ("nodes", "edges", "start", "goal"):
            if key not in data:
                raise ValueError(f"World graph is missing '{key}'")
        return cls(
            nodes=[RoomNode.from_dict(n) for n in data["nodes"]],
            edges=[Connection.from_dict(e) for e in data["edges"]],
            start=str(data["start"]),
            goal=str(data["goal"]),
            seed=str(data.get("seed", "")),
            meta=dict(data.get("meta") or {}),
            solvable=bool(data.get("solvable", True)),
        )


@dataclass
class GatingOptions:
    """
    Gate placement settings.

    Attributes:
        mode: "keys", "abilities" or "mixed"
        gate_frequency: Fraction of eligible edges to gate (clamped to 0..0.9)
        mixed_kind: In "mixed" mode, picks "key" or "ability" for each gated
            edge given (gate_index, edge). Defaults to "key" when unset.
    """
    mode: str = DEFAULT_GATING_MODE
    gate_frequency: float = DEFAULT_GATE_FREQUENCY
    mixed_kind: Optional[Callable[[int, Connection], str]] = None


@dataclass
class GenerationOptions:
    """
    Configuration for world graph generation.

    All numeric values are clamped by the generator, never rejected.
    """
    room_count: int = DEFAULT_ROOM_COUNT
    seed: Optional[Any] = None
    loops_ratio: float = DEFAULT_LOOPS_RATIO
    branch_factor: float = DEFAULT_BRANCH_FACTOR
    gating: GatingOptions = field(default_factory=GatingOptions)
