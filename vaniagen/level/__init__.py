from .seed_manager import SeededRng, SeedManager, create_rng
from .world_graph import (
    Connection,
    GateRequirement,
    GatingOptions,
    GenerationOptions,
    RoomNode,
    WorldGraph,
)
from .progression_solver import ProgressionResult, is_graph_solvable, solve_progression
from .graph_generator import generate_world_graph
from .world_data import ExitZone, WorldData, WorldMapData, load_world, save_world
from .world_converter import convert_to_world_data, export_world_data
from .room_filler import fill_room, fill_world
from .world_layout import LayoutResult, apply_layout, calculate_layout, compute_required_sizes
from .world_validate import validate_world_data

__all__ = [
    'SeededRng',
    'SeedManager',
    'create_rng',
    'Connection',
    'GateRequirement',
    'GatingOptions',
    'GenerationOptions',
    'RoomNode',
    'WorldGraph',
    'ProgressionResult',
    'is_graph_solvable',
    'solve_progression',
    'generate_world_graph',
    'ExitZone',
    'WorldData',
    'WorldMapData',
    'load_world',
    'save_world',
    'convert_to_world_data',
    'export_world_data',
    'fill_room',
    'fill_world',
    'LayoutResult',
    'apply_layout',
    'calculate_layout',
    'compute_required_sizes',
    'validate_world_data',
]
