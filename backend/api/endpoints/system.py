"""
System Endpoints
================

Health and readiness of the DLS service.
"""

from fastapi import APIRouter
from pydantic import BaseModel
from typing import Dict, Any, List
import logging
import os
import time

import psutil

from config.paths import dls_dataset_path
from pipelines.mapping.dls.marker_store import get_marker_store

logger = logging.getLogger(__name__)
router = APIRouter()

_START_TIME = time.time()
_LAST_HEALTH_LOG_TS: float = 0.0


class HealthResponse(BaseModel):
    """Response model for health check endpoints"""
    status: str
    memory_usage_mb: float
    uptime_seconds: float
    dataset_path: str
    dataset_present: bool
    # True once the marker dataset has been decoded (first lookup)
    dataset_loaded: bool
    errors: List[str] = []


@router.get("/health", response_model=HealthResponse)
async def check_system_health():
    """Cheap health check; never triggers the dataset load."""
    global _LAST_HEALTH_LOG_TS

    process = psutil.Process(os.getpid())
    memory_mb = process.memory_info().rss / (1024 * 1024)

    path = dls_dataset_path()
    present = path.exists()
    errors: List[str] = []
    if not present:
        errors.append(f"DLS marker dataset not found at {path}")

    msg = f"🏥 HEALTH ► mem={memory_mb:.1f}MB dataset={'present' if present else 'missing'}"
    now = time.time()
    if now - _LAST_HEALTH_LOG_TS > 60:
        logger.info(msg)
        _LAST_HEALTH_LOG_TS = now
    else:
        logger.debug(msg)

    return HealthResponse(
        status="healthy" if present else "degraded",
        memory_usage_mb=round(memory_mb, 1),
        uptime_seconds=round(now - _START_TIME, 1),
        dataset_path=str(path),
        dataset_present=present,
        dataset_loaded=get_marker_store().is_loaded,
        errors=errors,
    )


@router.get("/")
async def api_root() -> Dict[str, Any]:
    """API root endpoint for discovery"""
    return {
        "message": "DLS Grid API",
        "documentation": "/docs",
        "endpoints": {
            "to_coordinate": "/api/dls/to-coordinate - DLS location to latitude/longitude",
            "from_coordinate": "/api/dls/from-coordinate - Latitude/longitude to nearest DLS location",
            "markers": "/api/dls/markers/{meridian}/{range}/{township}/{section} - Section corner markers",
            "township_boundary": "/api/dls/township-boundary/{meridian}/{range}/{township} - Township outline",
            "navigate": "/api/dls/navigate - Step a location across the grid",
            "cache": "/api/dls/cache - Township cache statistics (DELETE to clear)",
            "health": "/api/health - System health check",
            "logs": "/api/logs - Recent log records",
        },
    }
