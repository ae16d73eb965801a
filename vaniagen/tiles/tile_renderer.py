import logging
from typing import List, Optional, Tuple

import pygame

from vaniagen.config import (
    PREVIEW_BG,
    PREVIEW_EMPTY,
    PREVIEW_EXIT,
    PREVIEW_LINK,
    PREVIEW_ROOM,
    PREVIEW_SOLID,
    PREVIEW_START_ROOM,
)
from .tile_types import tile_is_solid

logger = logging.getLogger(__name__)


class WorldPreviewRenderer:
    """Draws room grids and world layouts onto off-screen surfaces."""

    def __init__(self, cell_size: int = 4, box_size: int = 24, box_spacing: int = 6, margin: int = 16):
        self.cell_size = max(1, int(cell_size))
        self.box_size = max(1, int(box_size))
        self.box_spacing = max(0, int(box_spacing))
        self.margin = max(0, int(margin))

    def render_room(self, room, tiles: Optional[List[List[object]]] = None) -> pygame.Surface:
        """
        Render one room's tile grid, one cell_size square per tile.
        Exit spans are drawn over the border so openings are easy to spot.
        """
        grid = tiles if tiles is not None else room.tiles

        h = len(grid) if grid else room.tiles_high
        w = len(grid[0]) if grid else room.tiles_wide
        cs = self.cell_size
        surface = pygame.Surface((w * cs, h * cs))
        surface.fill(PREVIEW_EMPTY)

        for y, row in enumerate(grid or []):
            for x, cell in enumerate(row):
                if tile_is_solid(cell):
                    surface.fill(PREVIEW_SOLID, pygame.Rect(x * cs, y * cs, cs, cs))

        for exit_zone in room.exits:
            if exit_zone.edge in ("top", "bottom"):
                ty = 0 if exit_zone.edge == "top" else h - 1
                rect = pygame.Rect(exit_zone.tile_start * cs, ty * cs,
                                   (exit_zone.tile_end - exit_zone.tile_start + 1) * cs, cs)
            else:
                tx = 0 if exit_zone.edge == "left" else w - 1
                rect = pygame.Rect(tx * cs, exit_zone.tile_start * cs,
                                   cs, (exit_zone.tile_end - exit_zone.tile_start + 1) * cs)
            pygame.draw.rect(surface, PREVIEW_EXIT, rect, 1)

        return surface

    def _box_origin(self, layout) -> Tuple[int, int]:
        if not layout.positions:
            return self.margin, self.margin
        min_x = min(x for x, _ in layout.positions.values())
        min_y = min(y for _, y in layout.positions.values())
        step = self.box_size + self.box_spacing
        return self.margin - min_x * step, self.margin - min_y * step

    def layout_rect(self, layout, map_id: str) -> pygame.Rect:
        """Screen rectangle of a room box in a layout render."""
        ox, oy = self._box_origin(layout)
        step = self.box_size + self.box_spacing
        x, y, w, h = layout.rect(map_id)
        return pygame.Rect(ox + x * step, oy + y * step,
                           w * step - self.box_spacing, h * step - self.box_spacing)

    def render_layout(self, world, layout) -> pygame.Surface:
        """Render a layout as boxes in grid units with lines for exits."""
        step = self.box_size + self.box_spacing
        width = self.margin * 2 + max(1, layout.total_width) * step
        height = self.margin * 2 + max(1, layout.total_height) * step
        surface = pygame.Surface((width, height))
        surface.fill(PREVIEW_BG)

        # Links first so boxes draw over them
        drawn = set()
        for map_id, room in world.maps.items():
            if map_id not in layout.positions:
                continue
            for exit_zone in room.exits:
                target = exit_zone.target_map_id
                pair = tuple(sorted((map_id, target)))
                if target not in layout.positions or pair in drawn:
                    continue
                drawn.add(pair)
                pygame.draw.line(surface, PREVIEW_LINK,
                                 self.layout_rect(layout, map_id).center,
                                 self.layout_rect(layout, target).center, 1)

        for map_id in layout.positions:
            color = PREVIEW_START_ROOM if map_id == world.starting_map else PREVIEW_ROOM
            pygame.draw.rect(surface, color, self.layout_rect(layout, map_id))

        logger.debug("Rendered layout preview %dx%d for %d maps", width, height, len(layout.positions))
        return surface

    def save_png(self, surface: pygame.Surface, path: str) -> None:
        pygame.image.save(surface, path)
        logger.info("Saved preview to %s", path)

