"""
DLS Coordinate Service
Result-dict front end over the DLS engine for the HTTP API
"""
import logging
from typing import Dict, Any, Optional

from pipelines.mapping.calculators.geodesic_calculator import GeodesicCalculator

from .converter import GridConverter
from .errors import DatasetIntegrityError, DLSError
from .grid_reference import GridReference
from .locator import InverseLocator, SearchStatus
from .marker_store import MarkerSource
from .types import Compass, Coordinate

logger = logging.getLogger(__name__)

class DLSCoordinateService:
    """
    Forward/inverse DLS conversions and marker lookups

    Every method returns {"success": bool, ...}; engine failures come back as
    {"success": False, "error": ..., "error_type": <exception class name>}.
    A dataset that cannot be loaded raises DatasetIntegrityError instead
    """

    def __init__(self, source: Optional[MarkerSource] = None, locator: Optional[InverseLocator] = None):
        self.converter = GridConverter(source)
        self.locator = locator or InverseLocator(self.converter)
        self.geodesic = GeodesicCalculator()

    @property
    def source(self) -> MarkerSource:
        return self.converter.store

    def resolve_location(self, location: str, allow_quarters: bool = True) -> Dict[str, Any]:
        """
        Resolve a location string such as '04-11-082-04W6' to its LSD centre

        Returns:
            {
                "success": bool,
                "coordinates": {"lat": float, "lon": float},
                "reference": {...},
                "corners": {...},
                "method": "markers" | "estimate"
            }
        """
        try:
            ref = GridReference.parse(location, allow_quarters=allow_quarters)
        except DLSError as e:
            logger.warning(f"⚠️ Could not parse DLS location {location!r}: {e}")
            return self._failure(e)
        return self.resolve_reference(ref)

    def resolve_reference(self, ref: GridReference) -> Dict[str, Any]:
        try:
            corners = self.converter.section_corners(ref)
            coordinate = self.converter.to_coordinate(ref)
        except DatasetIntegrityError:
            raise
        except DLSError as e:
            logger.warning(f"⚠️ DLS conversion failed for {ref}: {e}")
            return self._failure(e)

        surveyed = corners is not None and corners.count > 0
        logger.info(f"✅ DLS lookup {ref}: {coordinate.latitude:.6f}, {coordinate.longitude:.6f}")
        return {
            "success": True,
            "coordinates": coordinate.to_dict(),
            "reference": ref.to_dict(),
            "corners": corners.to_dict() if surveyed else {},
            "method": "markers" if surveyed else "estimate",
        }

    def locate_coordinate(self, latitude: float, longitude: float) -> Dict[str, Any]:
        """
        Find the grid reference nearest a coordinate

        A search that hits its step bound still reports the best reference it
        found, under "reference", alongside success False.
        """
        result = self.locator.search(Coordinate(latitude, longitude))
        response: Dict[str, Any] = {
            "success": result.converged,
            **result.to_dict(),
        }
        if result.status is SearchStatus.OUT_OF_REGION:
            response["error"] = result.message
            response["error_type"] = "OutOfRegionError"
        elif result.status is SearchStatus.NO_CONVERGENCE:
            response["error"] = result.message
            response["error_type"] = "NoConvergenceError"
        else:
            centre = self.converter.to_coordinate(result.reference)
            response["coordinates"] = centre.to_dict()
            response["offset"] = self._offset(latitude, longitude, centre)
        return response

    def section_markers(self, meridian: int, range_number: int, township: int, section: int) -> Dict[str, Any]:
        corners = self.source.boundary_markers(section, township, range_number, meridian)
        if corners is None:
            return {
                "success": False,
                "error": f"No markers for section {section} of township {township} range {range_number} W{meridian}",
                "error_type": "NotFound",
            }
        return {
            "success": True,
            "corners": corners.to_dict(),
            "known_corners": [corner.value for corner in corners.known],
        }

    def township_boundary(self, meridian: int, range_number: int, township: int) -> Dict[str, Any]:
        boundary = self.source.township_boundary(township, range_number, meridian)
        if boundary is None:
            return {
                "success": False,
                "error": f"No markers for township {township} range {range_number} W{meridian}",
                "error_type": "NotFound",
            }
        return {"success": True, "boundary": boundary.to_dict()}

    def navigate(self, location: str, direction: str, count: int = 1) -> Dict[str, Any]:
        """Step a location count LSDs in a compass direction"""
        try:
            ref = GridReference.parse(location, allow_quarters=True)
            compass = Compass(direction.upper())
        except ValueError as e:
            return self._failure(e)

        moved = ref.step(compass, count)
        return {
            "success": True,
            "reference": moved.to_dict(),
            "in_bounds": moved.in_bounds,
        }

    def _offset(self, latitude: float, longitude: float, centre: Coordinate) -> Dict[str, Any]:
        """Ellipsoidal distance and bearing from the queried point to the LSD centre"""
        inverse = self.geodesic.calculate_inverse(latitude, longitude, centre.latitude, centre.longitude)
        if not inverse["success"]:
            return {}
        return {
            "distance_meters": inverse["distance_meters"],
            "bearing_degrees": inverse["initial_bearing_degrees"],
        }

    @staticmethod
    def _failure(error: Exception) -> Dict[str, Any]:
        return {"success": False, "error": str(error), "error_type": type(error).__name__}
