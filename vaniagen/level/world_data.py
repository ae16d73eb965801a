"""
Concrete world data: rooms with sizes, exits and tile grids.

These dataclasses mirror the persisted JSON document. Python attributes are
snake_case; `to_dict()` emits the camelCase keys of the document format and
`from_dict()` reads them back.
"""

import copy
import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

EDGES = ("left", "right", "top", "bottom")
HORIZONTAL_EDGES = ("left", "right")
VERTICAL_EDGES = ("top", "bottom")

OPPOSITE_EDGE = {"left": "right", "right": "left", "top": "bottom", "bottom": "top"}


def _require(data: Dict[str, Any], key: str, where: str) -> Any:
    if key not in data:
        raise ValueError(f"{where} is missing required field '{key}'")
    return data[key]


@dataclass
class ExitZone:
    """
    Opening on a room edge leading to another room.

    Pixel rectangle (x, y, width, height) is room-local. edge_position is the
    normalized slot centre; edge_start/edge_end and tile_start/tile_end give
    the covered span along the edge, normalized and in tiles respectively.
    """
    id: str
    x: int
    y: int
    width: int
    height: int
    edge: str
    edge_position: float
    edge_start: float
    edge_end: float
    tile_start: int
    tile_end: int
    target_map_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "edge": self.edge,
            "edgePosition": self.edge_position,
            "edgeStart": self.edge_start,
            "edgeEnd": self.edge_end,
            "tileStart": self.tile_start,
            "tileEnd": self.tile_end,
            "targetMapId": self.target_map_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExitZone":
        edge = str(_require(data, "edge", "Exit"))
        if edge not in EDGES:
            raise ValueError(f"Unknown exit edge: {edge}")
        return cls(
            id=str(_require(data, "id", "Exit")),
            x=int(data.get("x", 0)),
            y=int(data.get("y", 0)),
            width=int(data.get("width", 0)),
            height=int(data.get("height", 0)),
            edge=edge,
            edge_position=float(data.get("edgePosition", 0.5)),
            edge_start=float(data.get("edgeStart", 0.0)),
            edge_end=float(data.get("edgeEnd", 0.0)),
            tile_start=int(_require(data, "tileStart", "Exit")),
            tile_end=int(_require(data, "tileEnd", "Exit")),
            target_map_id=str(_require(data, "targetMapId", "Exit")),
        )


@dataclass
class WorldBounds:
    """Room size in pixels."""
    width: int
    height: int
    tile_size: int

    @property
    def tiles_wide(self) -> int:
        return max(1, self.width // max(1, self.tile_size))

    @property
    def tiles_high(self) -> int:
        return max(1, self.height // max(1, self.tile_size))

    def to_dict(self) -> Dict[str, Any]:
        return {"width": self.width, "height": self.height, "tileSize": self.tile_size}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorldBounds":
        return cls(
            width=int(_require(data, "width", "Room bounds")),
            height=int(_require(data, "height", "Room bounds")),
            tile_size=int(data.get("tileSize", 32)),
        )


@dataclass
class GridPosition:
    x: int
    y: int

    def to_dict(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GridPosition":
        return cls(x=int(data["x"]), y=int(data["y"]))


@dataclass
class WorldMapData:
    """
    A single room.

    Attributes:
        id: Room id (matches the graph node id)
        world: Pixel bounds and tile size
        exits: Exit zones leading to other rooms
        tiles: Row-major grid; 0 = empty, 1 = solid. Payloads loaded from
            disk may also be {type, spriteIndex} objects and are kept as-is.
        grid_position: Optional placement in packing units
        grid_height: Optional height in packing units
        metadata: Free-form name/description/author block
    """
    id: str
    world: WorldBounds
    exits: List[ExitZone] = field(default_factory=list)
    tiles: List[List[Any]] = field(default_factory=list)
    grid_position: Optional[GridPosition] = None
    grid_height: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def tiles_wide(self) -> int:
        return self.world.tiles_wide

    @property
    def tiles_high(self) -> int:
        return self.world.tiles_high

    def exits_on(self, edge: str) -> List[ExitZone]:
        return [e for e in self.exits if e.edge == edge]

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "world": self.world.to_dict(),
            "exits": [e.to_dict() for e in self.exits],
            "tiles": copy.deepcopy(self.tiles),
        }
        if self.grid_position is not None:
            out["gridPosition"] = self.grid_position.to_dict()
        if self.grid_height is not None:
            out["gridHeight"] = self.grid_height
        if self.metadata:
            out["metadata"] = dict(self.metadata)
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorldMapData":
        pos = data.get("gridPosition")
        grid_height = data.get("gridHeight")
        return cls(
            id=str(_require(data, "id", "Room")),
            world=WorldBounds.from_dict(_require(data, "world", "Room")),
            exits=[ExitZone.from_dict(e) for e in data.get("exits") or []],
            tiles=copy.deepcopy(data.get("tiles") or []),
            grid_position=GridPosition.from_dict(pos) if pos else None,
            grid_height=int(grid_height) if grid_height is not None else None,
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass
class WorldData:
    """
    A complete generated world.

    Invariants: `starting_map` is a key of `maps` and every exit target is
    a key of `maps`.
    """
    seed: str
    starting_map: str
    starting_position: Dict[str, int]
    maps: Dict[str, WorldMapData] = field(default_factory=dict)
    version: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    starting_spawn: Optional[str] = None

    def get_map(self, map_id: str) -> Optional[WorldMapData]:
        return self.maps.get(map_id)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.version is not None:
            out["version"] = self.version
        if self.metadata:
            out["metadata"] = dict(self.metadata)
        out["seed"] = self.seed
        out["startingMap"] = self.starting_map
        if self.starting_spawn is not None:
            out["startingSpawn"] = self.starting_spawn
        out["startingPosition"] = dict(self.starting_position)
        out["maps"] = {map_id: m.to_dict() for map_id, m in self.maps.items()}
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorldData":
        maps_raw = _require(data, "maps", "World")
        if not isinstance(maps_raw, dict):
            raise ValueError("World 'maps' must be an object keyed by room id")
        position = data.get("startingPosition") or {"x": 0, "y": 0}
        return cls(
            seed=str(data.get("seed", "")),
            starting_map=str(_require(data, "startingMap", "World")),
            starting_position={"x": int(position.get("x", 0)), "y": int(position.get("y", 0))},
            maps={str(k): WorldMapData.from_dict(v) for k, v in maps_raw.items()},
            version=data.get("version"),
            metadata=dict(data.get("metadata") or {}),
            starting_spawn=data.get("startingSpawn"),
        )


def world_to_json(world: WorldData, indent: Optional[int] = 2) -> str:
    return json.dumps(world.to_dict(), indent=indent)


def world_from_json(text: str) -> WorldData:
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("World document must be a JSON object")
    return WorldData.from_dict(data)


def save_world(world: WorldData, filepath: str) -> None:
    """Save a world document to JSON file."""
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(filepath, 'w') as f:
        f.write(world_to_json(world))


def load_world(filepath: str) -> WorldData:
    """Load a world document from JSON file."""
    with open(filepath, 'r') as f:
        return world_from_json(f.read())
