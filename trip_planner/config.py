"""Central configuration for the trip planner core.

All values are constants imported by the rest of the package. Adjust as needed
for your environment. Endpoints and tuning knobs are read from environment
variables (optionally via a local `.env`).
"""

from __future__ import annotations

import importlib
import os


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _env_optional_float(key: str) -> float | None:
    value = os.getenv(key)
    if value is None or not value.strip():
        return None
    try:
        parsed = float(value)
    except ValueError:
        return None
    return parsed if parsed > 0 else None


# Load .env variables when python-dotenv is available.
_load_dotenv = None
try:
    _dotenv_mod = importlib.import_module("dotenv")
    _load_dotenv = getattr(_dotenv_mod, "load_dotenv", None)
except Exception:
    _load_dotenv = None

if callable(_load_dotenv):
    # Load .env from the current directory or any parent folder.
    _load_dotenv()


# ---------------------------------------------------------------------------
# Local trip store
# ---------------------------------------------------------------------------
# JSON file holding the serialized trip collection. Relative paths resolve
# against the working directory.
TRIPS_STORE_PATH = os.getenv("TRIPS_STORE_PATH", "trips_store.json")

# Key under which the full trip collection is stored.
TRIPS_STORAGE_KEY = os.getenv("TRIPS_STORAGE_KEY", "harii-timor-trips")


# ---------------------------------------------------------------------------
# Remote trip authority
# ---------------------------------------------------------------------------
# Base URL of the trips API. Trips are published to ``{base}/trips``.
TRIPS_API_BASE_URL = os.getenv("TRIPS_API_BASE_URL", "http://localhost:3000/api")

# Worker threads used for fire-and-forget sync calls.
SYNC_MAX_WORKERS = _env_int("SYNC_MAX_WORKERS", 2)


# ---------------------------------------------------------------------------
# Routing provider
# ---------------------------------------------------------------------------
OSRM_BASE_URL = os.getenv("OSRM_BASE_URL", "https://router.project-osrm.org")

# Geometry encoding requested from OSRM: "geojson" or "polyline".
ROUTING_GEOMETRY_FORMAT = os.getenv("ROUTING_GEOMETRY_FORMAT", "geojson")

# Maximum waypoints per routing request. Consecutive chunks share one point.
ROUTING_CHUNK_SIZE = _env_int("ROUTING_CHUNK_SIZE", 10)

# Pause (seconds) between sequential chunk requests. Zero disables pacing.
ROUTING_CHUNK_DELAY_SECONDS = _env_float("ROUTING_CHUNK_DELAY_SECONDS", 0.0)

# Successful routes are cached in memory. Set the size to 0 to disable.
ROUTE_CACHE_SIZE = _env_int("ROUTE_CACHE_SIZE", 128)
ROUTE_CACHE_TTL_SECONDS = _env_int("ROUTE_CACHE_TTL_SECONDS", 15 * 60)


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------
# Request timeout in seconds. Unset means the HTTP client default (no timeout).
REQUEST_TIMEOUT = _env_optional_float("REQUEST_TIMEOUT")

HTTP_POOL_CONNECTIONS = 10
HTTP_POOL_MAXSIZE = 10

# Log outgoing request bodies at DEBUG level.
HTTP_DEBUG_PAYLOADS = _env_bool("HTTP_DEBUG_PAYLOADS", False)


# ---------------------------------------------------------------------------
# Trip planning defaults
# ---------------------------------------------------------------------------
DEFAULT_TRANSPORT_MODE = "car"
DEFAULT_ROAD_CONDITION = "mixed"

# Fixed start locations selectable per trip: key -> (label, lat, lng).
START_PRESETS = {
    "dili": ("Dili (default)", -8.5586, 125.5736),
}
DEFAULT_START_KEY = "dili"

# Id prefix marking user-drawn pins that are not catalog places.
CUSTOM_PLACE_PREFIX = "custom-"
