"""Load world generation settings from JSON.

The file is optional: missing keys keep their defaults and a missing file
yields the defaults outright.

Example config/worldgen_config.json:
    {
        "generation": {"roomCount": 20, "seed": "metroidvania", "loopsRatio": 0.3,
                       "branchFactor": 1.2,
                       "gating": {"mode": "keys", "gateFrequency": 0.25}},
        "fill": {"algorithm": "cave", "tileSize": 32, "author": "WorldGen"}
    }
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from vaniagen.config import (
    DEFAULT_AUTHOR,
    DEFAULT_FILL_ALGORITHM,
    DEFAULT_TILE_SIZE,
    FILL_ALGORITHMS,
    MAX_GATE_FREQUENCY,
    MIN_ROOM_COUNT,
)
from vaniagen.level.world_graph import GATING_MODES, GatingOptions, GenerationOptions
from vaniagen.utils.tile_utils import clamp

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.path.join("config", "worldgen_config.json")


@dataclass
class FillSettings:
    """How rooms are sized and filled after graph generation."""
    algorithm: str = DEFAULT_FILL_ALGORITHM
    tile_size: int = DEFAULT_TILE_SIZE
    author: str = DEFAULT_AUTHOR


@dataclass
class WorldGenConfig:
    generation: GenerationOptions = field(default_factory=GenerationOptions)
    fill: FillSettings = field(default_factory=FillSettings)


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be an object")
    return value


def parse_config(data: Any) -> WorldGenConfig:
    """Build settings from already-decoded JSON, clamping numeric values."""
    if not isinstance(data, dict):
        raise ValueError("World generation config must be a JSON object")

    gen = _section(data, "generation")
    gating = _section(gen, "gating")
    fill = _section(data, "fill")
    defaults = WorldGenConfig()

    mode = str(gating.get("mode", defaults.generation.gating.mode))
    if mode not in GATING_MODES:
        logger.warning("Unknown gating mode %r in config; using %s", mode, defaults.generation.gating.mode)
        mode = defaults.generation.gating.mode

    algorithm = str(fill.get("algorithm", defaults.fill.algorithm))
    if algorithm not in FILL_ALGORITHMS:
        logger.warning("Unknown fill algorithm %r in config; using %s", algorithm, defaults.fill.algorithm)
        algorithm = defaults.fill.algorithm

    seed: Optional[Any] = gen.get("seed", defaults.generation.seed)
    generation = GenerationOptions(
        room_count=max(MIN_ROOM_COUNT, int(gen.get("roomCount", defaults.generation.room_count))),
        seed=str(seed) if seed is not None else None,
        loops_ratio=clamp(float(gen.get("loopsRatio", defaults.generation.loops_ratio)), 0.0, 1.0),
        branch_factor=max(0.0, float(gen.get("branchFactor", defaults.generation.branch_factor))),
        gating=GatingOptions(
            mode=mode,
            gate_frequency=clamp(
                float(gating.get("gateFrequency", defaults.generation.gating.gate_frequency)),
                0.0,
                MAX_GATE_FREQUENCY,
            ),
        ),
    )
    settings = FillSettings(
        algorithm=algorithm,
        tile_size=max(1, int(fill.get("tileSize", defaults.fill.tile_size))),
        author=str(fill.get("author", defaults.fill.author)),
    )
    return WorldGenConfig(generation=generation, fill=settings)


def load_config(path: str = DEFAULT_CONFIG_PATH) -> WorldGenConfig:
    """Load settings from a JSON file, or the defaults if it does not exist."""
    if not os.path.exists(path):
        logger.info("Config file %s not found; using defaults", path)
        return WorldGenConfig()
    with open(path, 'r') as f:
        data = json.load(f)
    config = parse_config(data)
    logger.debug("Loaded world generation config from %s", path)
    return config
