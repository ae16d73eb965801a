#!/usr/bin/env python3
"""Validate a saved world JSON document for consistency.

Checks:
- startingMap exists
- exit targets exist
- tile grids match room sizes
- exit tile ranges lie on their edge

Usage: python tools/world_validate.py world.json
"""
from pathlib import Path
import logging
import sys

from vaniagen.level.world_data import load_world
from vaniagen.level.world_validate import validate_world_data

logger = logging.getLogger(__name__)

if len(sys.argv) != 2:
    print('Usage: python tools/world_validate.py PATH')
    sys.exit(1)

WORLD_FILE = Path(sys.argv[1])

if not WORLD_FILE.exists():
    logger.error("World file not found: %s", WORLD_FILE)
    sys.exit(1)

try:
    world = load_world(str(WORLD_FILE))
except ValueError as e:
    logger.error("Malformed world document %s: %s", WORLD_FILE, e)
    sys.exit(1)

errors = validate_world_data(world)

if errors:
    logger.error('Validation FAILED:')
    for e in errors:
        logger.error(' - %s', e)
    sys.exit(2)

print(f'Validation OK: {len(world.maps)} maps, no problems found')
sys.exit(0)
