# World generation constants

# Tile ids (grid cells emitted by the room filler)
TILE_EMPTY = 0
TILE_SOLID = 1

# Pixel size of one tile unless a caller overrides it
DEFAULT_TILE_SIZE = 32
DEFAULT_AUTHOR = "WorldGen"
DEFAULT_SEED = "metroidvania"
WORLD_VERSION = "2.0"

# Graph generation defaults
DEFAULT_ROOM_COUNT = 20
MIN_ROOM_COUNT = 4
DEFAULT_LOOPS_RATIO = 0.3
DEFAULT_BRANCH_FACTOR = 1.2
DEFAULT_GATING_MODE = "keys"
DEFAULT_GATE_FREQUENCY = 0.25
MAX_GATE_FREQUENCY = 0.9
CRITICAL_PATH_RATIO = 0.5
MIN_CRITICAL_PATH = 3
BRANCH_ATTACH_FROM = 0.3        # branches attach to the back 70% of the node list
LOOP_CANDIDATE_SCALE = 0.05
MAX_REPAIR_ATTEMPTS = 5

# Room sizing (tiles)
BASE_ROOM_WIDTH = 25
BASE_ROOM_HEIGHT = 10
ROOM_GROWTH_MIN = 10
ROOM_GROWTH_MAX = 25
EXIT_SPAN_TILES = 3
SPIRAL_MAX_RADIUS = 12

# Spawn offset inside the starting room (pixels)
START_OFFSET_X = 100
START_OFFSET_FROM_BOTTOM = 112

# Room tile filling
FILL_ALGORITHMS = ("cave", "outside", "corridor")
DEFAULT_FILL_ALGORITHM = "corridor"
APERTURE_DEPTH = 3
CAVE_FILL_CHANCE = 0.55
CAVE_SMOOTH_ITERATIONS = 5
CAVE_MIN_DENSITY = 0.35
CAVE_RIB_SPACING = 5
CAVE_RIB_CHANCE = 0.65
OUTSIDE_PLATFORMS = 8
CORRIDOR_PLATFORMS = 5
GAP_WIDEN_PASSES = 3

# Render-time layout
GRID_UNIT_TILES = 9
LAYOUT_SEARCH_RADIUS = 50

# Debug preview colours
PREVIEW_BG = (18, 18, 24)
PREVIEW_SOLID = (92, 96, 120)
PREVIEW_EMPTY = (30, 32, 42)
PREVIEW_EXIT = (240, 200, 80)
PREVIEW_ROOM = (70, 130, 180)
PREVIEW_START_ROOM = (90, 190, 110)
PREVIEW_LINK = (200, 200, 200)
