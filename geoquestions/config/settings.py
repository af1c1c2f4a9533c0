"""
Central configuration for question resolution settings.
"""
import os


# Overpass transport
OVERPASS_API_URL: str = os.getenv("OVERPASS_API_URL", "https://overpass-api.de/api/interpreter")
OVERPASS_REQUEST_TIMEOUT_SECONDS: int = int(os.getenv("OVERPASS_REQUEST_TIMEOUT_SECONDS", "200"))
OVERPASS_MAX_WORKERS: int = int(os.getenv("OVERPASS_MAX_WORKERS", "2"))

# Category-"full" safety gates
FULL_LOCATION_TIMEOUT_SECONDS: int = int(os.getenv("FULL_LOCATION_TIMEOUT_SECONDS", "60"))
FULL_LOCATION_ELEMENT_CAP: int = int(os.getenv("FULL_LOCATION_ELEMENT_CAP", "1000"))

# Geometry tuning (degrees unless noted). Letter-zone simplification trades
# accuracy at zone edges for a union that finishes at all.
LETTER_ZONE_SIMPLIFY_TOLERANCE: float = float(os.getenv("LETTER_ZONE_SIMPLIFY_TOLERANCE", "0.001"))
HIGHSPEED_SIMPLIFY_TOLERANCE: float = float(os.getenv("HIGHSPEED_SIMPLIFY_TOLERANCE", "0.001"))
HIGHSPEED_BUFFER_KM: float = float(os.getenv("HIGHSPEED_BUFFER_KM", "0.001"))
COASTLINE_BUFFER_STEPS: int = int(os.getenv("COASTLINE_BUFFER_STEPS", "64"))

# Data sources
COASTLINE_SOURCE: str = os.getenv(
    "COASTLINE_SOURCE",
    "https://raw.githubusercontent.com/martynafford/natural-earth-geojson/master/50m/physical/ne_50m_coastline.json",
)
NEAREST_SEARCH_RADIUS_METERS: int = int(os.getenv("NEAREST_SEARCH_RADIUS_METERS", "50000"))

# Logging
LOG_DIR: str = os.getenv("LOG_DIR", os.path.join(os.getcwd(), "logs"))
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
RING_BUFFER_SIZE: int = int(os.getenv("RING_BUFFER_SIZE", "2000"))
RING_BUFFER_MIN_LEVEL: str = os.getenv("RING_BUFFER_MIN_LEVEL", "INFO").upper()
