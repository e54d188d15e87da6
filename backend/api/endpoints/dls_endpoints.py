"""
DLS Endpoints
Dominion Land Survey conversions: location -> coordinate, coordinate -> location,
marker lookups and grid navigation
"""
import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field, model_validator

from pipelines.mapping.dls.coordinate_service import DLSCoordinateService
from pipelines.mapping.dls.errors import DatasetIntegrityError
from pipelines.mapping.dls.grid_reference import GridReference
from services.cache.marker_cache import MarkerCache

logger = logging.getLogger(__name__)
router = APIRouter()

# Failures caused by the request itself rather than by the grid
_BAD_INPUT = {"CoordinateParseError", "ValueError"}


class ToCoordinateRequest(BaseModel):
    """Either a location string or the individual grid fields"""
    model_config = ConfigDict(populate_by_name=True)

    location: Optional[str] = None
    lsd: Optional[int] = Field(None, ge=1, le=16)
    section: Optional[int] = Field(None, ge=1, le=36)
    township: Optional[int] = Field(None, ge=1, le=127)
    range_number: Optional[int] = Field(None, alias="range", ge=1, le=34)
    meridian: Optional[int] = Field(None, ge=1, le=8)
    direction: str = Field("W", pattern="^[EWew]$")
    allow_quarters: bool = True

    @model_validator(mode="after")
    def check_location_or_fields(self):
        fields = (self.lsd, self.section, self.township, self.range_number, self.meridian)
        if self.location is None and any(value is None for value in fields):
            raise ValueError("Provide either 'location' or all of lsd, section, township, range and meridian")
        return self

    def to_reference(self) -> GridReference:
        return GridReference(
            self.lsd, self.section, self.township, self.range_number, self.meridian, self.direction.upper()
        )


class FromCoordinateRequest(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class NavigateRequest(BaseModel):
    location: str
    direction: str = Field(..., description="Compass direction: N, NE, E, SE, S, SW, W or NW")
    count: int = Field(1, ge=1, le=1000)


_service: Optional[DLSCoordinateService] = None


def get_dls_service() -> DLSCoordinateService:
    global _service
    if _service is None:
        _service = DLSCoordinateService(MarkerCache())
    return _service


async def _run(func, *args) -> Dict[str, Any]:
    """Run a blocking service call off the event loop"""
    try:
        return await asyncio.to_thread(func, *args)
    except DatasetIntegrityError as e:
        logger.error(f"❌ DLS marker dataset unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"DLS marker dataset unavailable: {e}"
        )


def _reject_bad_input(result: Dict[str, Any]) -> Dict[str, Any]:
    if not result["success"] and result.get("error_type") in _BAD_INPUT:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result["error"])
    return result


@router.post("/to-coordinate")
async def to_coordinate(
    request: ToCoordinateRequest,
    service: DLSCoordinateService = Depends(get_dls_service),
) -> Dict[str, Any]:
    """
    Convert a DLS location to the coordinate of its LSD centre

    Returns:
        dict: {"success", "coordinates": {"lat", "lon"}, "reference", "corners", "method"}
    """
    if request.location is not None:
        result = await _run(service.resolve_location, request.location, request.allow_quarters)
    else:
        try:
            ref = request.to_reference()
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        result = await _run(service.resolve_reference, ref)
    return _reject_bad_input(result)


@router.post("/from-coordinate")
async def from_coordinate(
    request: FromCoordinateRequest,
    service: DLSCoordinateService = Depends(get_dls_service),
) -> Dict[str, Any]:
    """
    Find the DLS location nearest a coordinate

    Returns:
        dict: {"success", "status", "reference", "distance", "steps", "coordinates",
               "offset": {"distance_meters", "bearing_degrees"}, ...}
    """
    logger.info(f"🔍 DLS inverse lookup for {request.latitude:.6f}, {request.longitude:.6f}")
    return await _run(service.locate_coordinate, request.latitude, request.longitude)


@router.get("/markers/{meridian}/{range_number}/{township}/{section}")
async def section_markers(
    meridian: int,
    range_number: int,
    township: int,
    section: int,
    service: DLSCoordinateService = Depends(get_dls_service),
) -> Dict[str, Any]:
    """Surveyed corners of one section"""
    result = await _run(service.section_markers, meridian, range_number, township, section)
    if not result["success"]:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result["error"])
    return result


@router.get("/township-boundary/{meridian}/{range_number}/{township}")
async def township_boundary(
    meridian: int,
    range_number: int,
    township: int,
    service: DLSCoordinateService = Depends(get_dls_service),
) -> Dict[str, Any]:
    """Outermost markers of a township"""
    result = await _run(service.township_boundary, meridian, range_number, township)
    if not result["success"]:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result["error"])
    return result


@router.post("/navigate")
async def navigate(
    request: NavigateRequest,
    service: DLSCoordinateService = Depends(get_dls_service),
) -> Dict[str, Any]:
    """Step a location across the grid without touching the marker data"""
    return _reject_bad_input(service.navigate(request.location, request.direction, request.count))


@router.get("/cache")
async def cache_info(service: DLSCoordinateService = Depends(get_dls_service)) -> Dict[str, Any]:
    """Township cache statistics"""
    source = service.source
    if not isinstance(source, MarkerCache):
        return {"success": False, "error": "DLS service is not using the township cache"}
    return source.get_cache_info()


@router.delete("/cache")
async def clear_cache(service: DLSCoordinateService = Depends(get_dls_service)) -> Dict[str, Any]:
    """Drop cached townships"""
    source = service.source
    if not isinstance(source, MarkerCache):
        return {"success": False, "error": "DLS service is not using the township cache"}
    return source.clear()
