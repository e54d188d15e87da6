"""
Central configuration for backend settings.
"""
import os


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Township records the marker dataset must contain (validated at load)
DLS_EXPECTED_TOWNSHIPS: int = int(os.getenv("DLS_EXPECTED_TOWNSHIPS", "15583"))

# Fall back to grid arithmetic when a section has no surveyed corners
DLS_ALLOW_ESTIMATE: bool = _env_flag("DLS_ALLOW_ESTIMATE", "true")

# Inverse search (coordinate -> grid reference)
DLS_SEARCH_MAX_STEPS: int = int(os.getenv("DLS_SEARCH_MAX_STEPS", "250"))
DLS_SEARCH_EPSILON: float = float(os.getenv("DLS_SEARCH_EPSILON", "0.0"))
DLS_SEARCH_STEP_LSDS: int = int(os.getenv("DLS_SEARCH_STEP_LSDS", "4"))
DLS_SPIRAL_FALLBACK: bool = _env_flag("DLS_SPIRAL_FALLBACK", "false")
DLS_SPIRAL_RADIUS: int = int(os.getenv("DLS_SPIRAL_RADIUS", "3"))
DLS_REFINE_LSD: bool = _env_flag("DLS_REFINE_LSD", "false")

# "haversine" (fast, spherical) or "geodesic" (WGS84 ellipsoid)
DLS_DISTANCE_METHOD: str = os.getenv("DLS_DISTANCE_METHOD", "haversine").strip().lower()
