"""
Command line entry point.

    vaniagen generate --seed S --rooms N --out world.json [--preview out.png]
    vaniagen validate world.json
"""

import argparse
import logging
import sys
from typing import List, Optional

from vaniagen.config import FILL_ALGORITHMS
from vaniagen.level.config_loader import DEFAULT_CONFIG_PATH, load_config
from vaniagen.level.graph_generator import generate_world_graph
from vaniagen.level.room_filler import fill_world
from vaniagen.level.world_converter import convert_to_world_data
from vaniagen.level.world_data import load_world, save_world
from vaniagen.level.world_graph import GATING_MODES
from vaniagen.level.world_layout import apply_layout, calculate_layout
from vaniagen.level.world_validate import validate_world_data
from vaniagen.utils.tile_utils import grid_to_text

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='vaniagen',
        description='Generate Metroidvania-style worlds of gated rooms',
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose output')
    sub = parser.add_subparsers(dest='command', required=True)

    gen = sub.add_parser('generate', help='Generate a world and save it as JSON')
    gen.add_argument('--config', type=str, default=DEFAULT_CONFIG_PATH, help='Settings file')
    gen.add_argument('--seed', type=str, default=None, help='World seed')
    gen.add_argument('--rooms', type=int, default=None, help='Number of rooms')
    gen.add_argument('--loops', type=float, default=None, help='Loop ratio (0..1)')
    gen.add_argument('--branches', type=float, default=None, help='Branch factor')
    gen.add_argument('--mode', type=str, default=None, choices=GATING_MODES, help='Gating mode')
    gen.add_argument('--gate-frequency', type=float, default=None, help='Fraction of edges to gate (0..0.9)')
    gen.add_argument('--fill', type=str, default=None, choices=FILL_ALGORITHMS, help='Room fill algorithm')
    gen.add_argument('--counter', type=int, default=0, help='Regeneration counter for room fills')
    gen.add_argument('--out', type=str, default='world.json', help='Output JSON path')
    gen.add_argument('--preview', type=str, default=None, help='Write a layout preview PNG')
    gen.add_argument('--print-room', type=str, default=None, metavar='ID', help='Print one room as text')

    val = sub.add_parser('validate', help='Check a saved world for consistency')
    val.add_argument('path', type=str, help='World JSON path')
    return parser


def cmd_generate(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    options = config.generation
    if args.seed is not None:
        options.seed = args.seed
    if args.rooms is not None:
        options.room_count = args.rooms
    if args.loops is not None:
        options.loops_ratio = args.loops
    if args.branches is not None:
        options.branch_factor = args.branches
    if args.mode is not None:
        options.gating.mode = args.mode
    if args.gate_frequency is not None:
        options.gating.gate_frequency = args.gate_frequency
    algorithm = args.fill or config.fill.algorithm

    graph = generate_world_graph(options)
    if not graph.solvable:
        logger.warning("Generated graph for seed %s is not solvable", graph.seed)

    world = convert_to_world_data(graph, tile_size=config.fill.tile_size, author=config.fill.author)
    world = fill_world(world, algorithm, counter=args.counter)
    layout = calculate_layout(world)
    world = apply_layout(world, layout)

    save_world(world, args.out)
    logger.info(
        "Generated %d rooms (%d edges, %d gated) for seed %s -> %s",
        len(graph.nodes), len(graph.edges), len(graph.gated_edges()), graph.seed, args.out,
    )

    if args.preview:
        from vaniagen.tiles.tile_renderer import WorldPreviewRenderer

        renderer = WorldPreviewRenderer()
        renderer.save_png(renderer.render_layout(world, layout), args.preview)

    if args.print_room:
        room = world.get_map(args.print_room)
        if room is None:
            logger.error("No room named %s", args.print_room)
            return 1
        print(f"{room.id}: {room.tiles_wide}x{room.tiles_high} tiles, {len(room.exits)} exits")
        print(grid_to_text(room.tiles))
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    try:
        world = load_world(args.path)
    except (OSError, ValueError) as e:
        logger.error("Could not load %s: %s", args.path, e)
        return 1

    errors = validate_world_data(world)
    if errors:
        logger.error('Validation FAILED:')
        for e in errors:
            logger.error(' - %s', e)
        return 2

    print(f'Validation OK: {len(world.maps)} maps, no problems found')
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s | %(levelname)s | %(name)s | %(message)s',
        datefmt='%H:%M:%S',
    )
    if args.command == 'generate':
        return cmd_generate(args)
    return cmd_validate(args)


if __name__ == '__main__':
    sys.exit(main())
