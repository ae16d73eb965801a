"""Consistency checks for world documents.

Checks:
- startingMap exists
- exit targets exist
- tile grids match the room's tile dimensions
- exit tile ranges lie on their edge
"""
from typing import List

from vaniagen.level.world_data import WorldData
from vaniagen.utils.tile_utils import edge_length


def validate_world_data(world: WorldData) -> List[str]:
    """Return human-readable problems; an empty list means the world is consistent."""
    errors: List[str] = []

    if world.starting_map not in world.maps:
        errors.append(f"startingMap '{world.starting_map}' is not a map in this world")

    for map_id, room in world.maps.items():
        if room.id != map_id:
            errors.append(f"{map_id}: map keyed as '{map_id}' has id '{room.id}'")

        w, h = room.tiles_wide, room.tiles_high
        for exit_zone in room.exits:
            if exit_zone.target_map_id not in world.maps:
                errors.append(f"{map_id}: exit {exit_zone.id} -> missing target '{exit_zone.target_map_id}'")
            limit = edge_length(exit_zone.edge, w, h)
            if not (0 <= exit_zone.tile_start <= exit_zone.tile_end < limit):
                errors.append(
                    f"{map_id}: exit {exit_zone.id} tile range "
                    f"[{exit_zone.tile_start}, {exit_zone.tile_end}] outside 0..{limit - 1} on {exit_zone.edge} edge"
                )

        # empty tiles means the room has not been filled yet
        if room.tiles:
            if len(room.tiles) != h or any(len(row) != w for row in room.tiles):
                errors.append(f"{map_id}: tile grid has {len(room.tiles)} rows, expected {h} rows of {w} tiles")

    return errors
