"""
Constants for chuk-mcp-relief server.

All magic strings, provider metadata, rendering tables and configuration
values live here.
"""


class ServerConfig:
    NAME = "chuk-mcp-relief"
    VERSION = "0.1.0"
    DESCRIPTION = "Stylized Terrain Relief Rendering MCP Server"


class StorageProvider:
    MEMORY = "memory"
    S3 = "s3"
    FILESYSTEM = "filesystem"


class SessionProvider:
    MEMORY = "memory"
    REDIS = "redis"


class EnvVar:
    ARTIFACTS_PROVIDER = "CHUK_ARTIFACTS_PROVIDER"
    BUCKET_NAME = "BUCKET_NAME"
    REDIS_URL = "REDIS_URL"
    ARTIFACTS_PATH = "CHUK_ARTIFACTS_PATH"
    AWS_ACCESS_KEY_ID = "AWS_ACCESS_KEY_ID"
    AWS_SECRET_ACCESS_KEY = "AWS_SECRET_ACCESS_KEY"
    AWS_ENDPOINT_URL_S3 = "AWS_ENDPOINT_URL_S3"
    MCP_STDIO = "MCP_STDIO"
    ELEVATION_PROVIDER = "ELEVATION_PROVIDER"
    ELEVATION_API_KEY = "ELEVATION_API_KEY"
    ELEVATION_BASE_URL = "ELEVATION_BASE_URL"
    OUTPUT_DIR = "RELIEF_OUTPUT_DIR"
    LOG_LEVEL = "RELIEF_LOG_LEVEL"
    STYLE = "RELIEF_STYLE"
    SEED = "RELIEF_SEED"


# ---------------------------------------------------------------------------
# Elevation providers
# ---------------------------------------------------------------------------


class ElevationProviderId:
    OPENTOPODATA = "opentopodata"
    MAPBOX = "mapbox"


DEFAULT_PROVIDER = ElevationProviderId.OPENTOPODATA

ELEVATION_PROVIDERS: dict[str, dict] = {
    ElevationProviderId.OPENTOPODATA: {
        "id": ElevationProviderId.OPENTOPODATA,
        "name": "OpenTopoData",
        "kind": "point",
        "base_url": "https://api.opentopodata.org/v1/",
        "dataset": "aster30m",
        "requires_api_key": False,
        "water_query": False,
    },
    ElevationProviderId.MAPBOX: {
        "id": ElevationProviderId.MAPBOX,
        "name": "Mapbox Terrain-DEM",
        "kind": "tile",
        "base_url": "https://api.mapbox.com/",
        "tileset": "mapbox.mapbox-terrain-dem-v1",
        "requires_api_key": True,
        "water_query": True,
    },
}

ALL_PROVIDER_IDS = list(ELEVATION_PROVIDERS.keys())

MAPBOX_TILEQUERY_URL = (
    "https://api.mapbox.com/v4/mapbox.mapbox-streets-v8/tilequery/{lon},{lat}.json"
)
TILEQUERY_RADIUS_M = 10
TILEQUERY_LAYER = "water"

# ---------------------------------------------------------------------------
# Tiles & caches
# ---------------------------------------------------------------------------

TILE_ZOOM = 14
TILE_SIZE = 512
TILE_CACHE_MAX_ENTRIES = 1000
WATER_CACHE_MAX_ENTRIES = 1000
WATER_CACHE_PRECISION = 4
DECODE_NEIGHBORHOOD_RADIUS = 1

# Terrain-RGB: elevation = -10000 + (R*65536 + G*256 + B) * 0.1
TERRAIN_RGB_OFFSET = -10000.0
TERRAIN_RGB_SCALE = 0.1

# ---------------------------------------------------------------------------
# Pacing, quota & retry
# ---------------------------------------------------------------------------

MIN_REQUEST_INTERVAL_MS = 1000
MAX_DAILY_REQUESTS = 1000
DEFAULT_RETRY_AFTER_MS = 5000
RATE_LIMIT_ATTEMPTS = 2  # one initial try + exactly one retry
GRID_FETCH_DELAY_MS = 1000
GRID_RETRY_DELAY_MS = 2000
REQUEST_TIMEOUT_MS = 10000

# ---------------------------------------------------------------------------
# Geography
# ---------------------------------------------------------------------------

KM_PER_DEGREE = 111.0
COORDINATE_PRECISION = 6

DEFAULT_MIN_LATITUDE = -85.0
DEFAULT_MAX_LATITUDE = 85.0
DEFAULT_MIN_LONGITUDE = -180.0
DEFAULT_MAX_LONGITUDE = 180.0
DEFAULT_AREA_SIZE_KM = 5.0
DEFAULT_GRID_RESOLUTION = 30
DEFAULT_MIN_ELEVATION_RANGE_M = 80.0

RANDOM_LAND_ATTEMPTS = 50
FOCUSED_REGION_ATTEMPTS = 20

# Focused fallback regions (min_lat, max_lat, min_lon, max_lon)
FOCUSED_REGIONS: list[tuple[str, tuple[float, float, float, float]]] = [
    ("Europe", (40.0, 65.0, -5.0, 30.0)),
    ("North America", (30.0, 60.0, -120.0, -70.0)),
    ("Asia", (20.0, 60.0, 60.0, 140.0)),
    ("Africa", (-20.0, 20.0, 10.0, 40.0)),
]
LAST_RESORT_REGION = (36.0, 70.0, -10.0, 40.0)

# Very rough continental boxes (min_lat, max_lat, min_lon, max_lon)
LAND_MASSES: dict[str, tuple[float, float, float, float]] = {
    "north_america": (15.0, 72.0, -170.0, -50.0),
    "central_america": (7.0, 33.0, -120.0, -60.0),
    "south_america": (-60.0, 15.0, -90.0, -30.0),
    "europe": (36.0, 70.0, -10.0, 40.0),
    "africa": (-40.0, 36.0, -20.0, 55.0),
    "asia": (0.0, 80.0, 40.0, 180.0),
    "australia": (-50.0, -10.0, 110.0, 155.0),
    "new_zealand": (-50.0, -30.0, 165.0, 180.0),
    "japan": (30.0, 46.0, 128.0, 146.0),
    "uk_ireland": (50.0, 60.0, -11.0, 2.0),
    "southeast_asia": (-11.0, 20.0, 95.0, 141.0),
    "philippines": (5.0, 20.0, 115.0, 127.0),
    "caribbean": (10.0, 25.0, -85.0, -60.0),
    "hawaii": (18.0, 23.0, -160.0, -154.0),
    "iceland": (63.0, 67.0, -24.0, -13.0),
    "madagascar": (-26.0, -12.0, 43.0, 51.0),
    "greenland": (60.0, 84.0, -74.0, -11.0),
    "sri_lanka": (5.0, 10.0, 79.0, 82.0),
    "taiwan": (22.0, 25.0, 120.0, 122.0),
}

# ---------------------------------------------------------------------------
# Water detection confidences
# ---------------------------------------------------------------------------


class WaterMethod:
    CACHE = "cache"
    LAND_BOUNDS = "land-bounds"
    TILEQUERY = "tilequery"
    DEFAULT_LAND = "default-land"


WATER_CONFIDENCE = {
    WaterMethod.CACHE: 0.95,
    WaterMethod.LAND_BOUNDS: 0.9,
    WaterMethod.TILEQUERY: 0.95,
    WaterMethod.DEFAULT_LAND: 0.7,
}

# ---------------------------------------------------------------------------
# Area validation
# ---------------------------------------------------------------------------

VALIDATION_GRID_SIZE = 4
VALIDATION_AREA_FACTOR = 0.5
MAX_WATER_PERCENTAGE = 85.0
MIN_VALID_SAMPLES = 3
MAX_GENERATION_ATTEMPTS = 10

# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class RenderStyle:
    DOTGRID = "dotgrid"
    GRAPH = "graph"
    PERSPECTIVE = "perspective"


ALL_STYLES = [RenderStyle.DOTGRID, RenderStyle.GRAPH, RenderStyle.PERSPECTIVE]
DEFAULT_STYLE = RenderStyle.PERSPECTIVE
FALLBACK_STYLE = RenderStyle.DOTGRID

BASE_RENDER_SIZE = 675
RENDER_SIZE = 2000
DEFAULT_SCALE_FACTOR = RENDER_SIZE / BASE_RENDER_SIZE
DEFAULT_BACKGROUND = "#000000"
DEFAULT_RENDER_PADDING = 25
DEFAULT_CONTOUR_LINES = 15
DEFAULT_CONTOUR_WIDTH = 1.5
DEFAULT_NOISE_SEED = 0

# DotGrid
DOTGRID_CELLS = 30
DOTGRID_DEFAULT_PADDING = 30
DOTGRID_COLOR = "#ffffff"

# Graph
GRAPH_DEFAULT_PADDING = 40
GRAPH_DEFAULT_LINES = 20
GRAPH_SEGMENTS = 12
GRAPH_COLOR_RAMP = [
    "#ffffff", "#f0f0f0", "#e0e0e0", "#d0d0d0", "#c0c0c0",
    "#b0b0b0", "#a0a0a0", "#909090", "#808080", "#707070",
]

# Terrain classification
TERRAIN_THRESHOLDS = {
    "flat": 30.0,
    "rolling": 150.0,
    "hilly": 800.0,
    "low_altitude": 200.0,
    "high_altitude": 1000.0,
}
TERRAIN_TYPES = ["flat", "rolling", "hilly", "mountainous"]
ALTITUDE_PREFIXES = ["low-", "high-"]

DEFAULT_RENDER_PARAMS = {
    "horizon_position": 0.75,
    "perspective_exponent": 0.65,
    "amplification": 650.0,
    "peak_emphasis": 0.65,
    "num_lines": 30,
}

TERRAIN_ADJUSTMENTS: dict[str, dict[str, float]] = {
    "flat": {
        "horizon_position": 0.5,
        "perspective_exponent": 0.7,
        "amplification_factor": 0.1,
        "peak_emphasis": 0.1,
        "line_multiplier": 1.0,
    },
    "rolling": {
        "horizon_position": 0.5,
        "perspective_exponent": 0.75,
        "amplification_factor": 0.3,
        "peak_emphasis": 0.15,
        "line_multiplier": 1.0,
    },
    "hilly": {
        "horizon_position": 0.5,
        "perspective_exponent": 0.75,
        "amplification_factor": 0.4,
        "peak_emphasis": 0.2,
        "line_multiplier": 1.0,
    },
    "mountainous": {
        "horizon_position": 0.6,
        "perspective_exponent": 0.85,
        "amplification_factor": 0.92,
        "peak_emphasis": 0.92,
        "line_multiplier": 1.1,
    },
}

BASE_AMPLIFICATION = 550.0
AMPLIFICATION_RANGE_NORM_M = 5000.0
MAX_NUM_LINES = 55
HIGH_VARIABILITY_M = 300.0
LOW_VARIABILITY_M = 50.0
SMALL_RANGE_M = 100.0
LARGE_RANGE_M = 3000.0

# Perspective renderer
PERSPECTIVE_CONFIG = {
    "default_padding": 20,
    "default_grid_resolution": 30,
    "default_line_color": "#ffffff",
    "empty_cell_value": 0.0,
    "num_segments": 100,
    "elevation_range": (0.0, 1.0),
    "neighbor_weight": 0.4,
    "flat_center_weight": 1.5,
    "amplification_damping": {"first_line": 0.5, "second_line": 0.7},
    "max_row_elevation": 0.8,
    "available_height_ratio": 0.9 / 0.8,
    "terrain_sampling": {
        "low_flat": (0.2, 0.6),
        "default": (0.1, 0.8),
    },
    "first_line_multiplier": 1.5,
    "x_compression": 0.005,
}

# Marker pen strokes
MARKER_PEN_CONFIG = {
    "stroke_count": (3, 9),
    "base_width": (2.5, 8.2),
    "opacity": (0.35, 0.95),
    "wobble_amount": 3.0,
    "stroke_overlap": 0.25,
    "control_point_randomness": 0.32,
    "color": (0, 133, 255),
    "path_variations": 3,
    "base_point_count": 70,
    "mask_color": "#000000",
    "end_cap_size": 10.0,
}

# Value noise
NOISE_HASH_MULTIPLIER = 43758.5453
NOISE_LATTICE_X = 12.9898
NOISE_LATTICE_Y = 78.233
NOISE_OCTAVES = ((1.0, 0.6), (2.0, 0.3), (4.0, 0.1))


class ErrorMessages:
    UNKNOWN_PROVIDER = "Unknown elevation provider '{}'. Available: {}"
    MISSING_API_KEY = "{} requires an API key (set ELEVATION_API_KEY)"
    RATE_LIMITED = "Rate limit exceeded (suggested wait {}ms)"
    QUOTA_EXCEEDED = "Daily request limit exceeded ({} calls per day)"
    PROVIDER_HTTP = "Provider returned HTTP {}"
    MALFORMED_RESPONSE = "Malformed {} response: {}"
    NO_RESULTS = "Provider returned no elevation for ({}, {})"
    WATER_INDICATED = "Provider indicates water at ({}, {})"
    TILE_DECODE = "Failed to decode tile {}: {}"
    NO_VALID_SAMPLES = "No valid elevation values found in tile neighbourhood"
    EMPTY_POINTS = "Cannot render relief from an empty point set"
    INVALID_COORDINATE = (
        "Invalid coordinate ({}, {}): latitude must be in [-90, 90], longitude in [-180, 180]"
    )
    INVALID_SIZE = "Area size must be > 0 km, got {}"
    INVALID_RESOLUTION = "Grid resolution must be >= 2, got {}"
    DEGENERATE_BBOX = "Bounding box has zero width or height"
    CENTER_ON_WATER = "Center coordinate is on water (method: {}, confidence: {:.1f}%)"
    WATER_DOMINANT = "Area is mostly water ({:.1f}% water coverage)"
    INSUFFICIENT_SAMPLES = "Insufficient elevation data points ({} valid, {} required)"
    INSUFFICIENT_RANGE = "Insufficient elevation range ({:.0f}m, minimum required: {:.0f}m)"
    NO_SUITABLE_LOCATION = "No suitable location found after {} attempts"
    INVALID_STYLE = "Invalid style '{}'. Available: {}"
    NO_ARTIFACT_STORE = (
        "No artifact store available. Configure CHUK_ARTIFACTS_PROVIDER "
        "environment variable (memory, filesystem, or s3)."
    )
    NO_ELEVATIONS = "At least one elevation value is required"
    PARTIAL_COORDINATE = "Provide both lat and lon, or neither for a random location"


class SuccessMessages:
    STATUS = "Relief MCP Server v{} (provider: {}, storage: {})"
    VALIDATION_PASSED = "{:.1f}% water, {:.0f}m elevation range"
    TERRAIN_CLASSIFIED = "Terrain classified as {} ({:.0f}m range)"
    GENERATED = "Rendered {} relief ({}) to {}"
