from .tile_types import TileType, tile_is_solid
from .tile_renderer import WorldPreviewRenderer

__all__ = [
    'TileType',
    'tile_is_solid',
    'WorldPreviewRenderer',
]
