from enum import IntEnum
from typing import Any


class TileType(IntEnum):
    """Enumeration of tile values emitted by the room filler."""

    EMPTY = 0
    SOLID = 1

    @property
    def is_solid(self) -> bool:
        """Return True if tile blocks movement completely."""
        return self == TileType.SOLID

    @property
    def label(self) -> str:
        """Return human-readable name."""
        return {
            TileType.EMPTY: "Empty",
            TileType.SOLID: "Solid",
        }.get(self, f"Tile_{self.value}")


def tile_is_solid(cell: Any) -> bool:
    """
    Read solidity from a stored tile payload.

    Generated grids hold raw 0/1 ints. Documents saved by an editor may hold
    {type, spriteIndex} objects instead, where type is "solid"/"empty" or
    the numeric value; spriteIndex is cosmetic and ignored here.
    """
    if isinstance(cell, dict):
        kind = cell.get("type")
        if isinstance(kind, str):
            return kind.lower() == "solid"
        return kind == TileType.SOLID
    return cell == TileType.SOLID
