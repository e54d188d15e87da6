"""
DLS Inverse Locator
Coordinate -> grid reference by local search over the forward conversion.

The search starts from a grid arithmetic estimate and hill-climbs across
neighbouring sections, converting each candidate forward and keeping the one
closest to the target. It is greedy: irregular survey data (gaps, odd cells
along meridians) can leave it on a local minimum, which the optional spiral
probe tries to escape.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

from config import settings
from pipelines.mapping.calculators.geodesic_calculator import GeodesicCalculator
from pipelines.mapping.calculators.haversine_calculator import HaversineCalculator

from .composite_key import MAX_RANGE, MAX_TOWNSHIP, MIN_RANGE, MIN_TOWNSHIP
from .converter import GridConverter
from .errors import ConversionError, GeometryInconsistencyError, NoConvergenceError, OutOfRegionError
from .grid_reference import GridReference
from .marker_store import MarkerSource
from .navigation import step
from .survey_constants import (
    BASE_LATITUDE,
    MERIDIAN_LONGITUDES,
    SECTION_HEIGHT_DEG,
    SECTIONS_PER_SIDE,
    TOWNSHIP_HEIGHT_DEG,
    section_at,
    section_width_deg,
)
from .types import Compass, Coordinate, RangeDirection

logger = logging.getLogger(__name__)

DistanceFunction = Callable[[Coordinate, Coordinate], float]

# The estimate lands on the centre-ish LSD of its section
INITIAL_LSD = 7


def haversine_distance(a: Coordinate, b: Coordinate) -> float:
    return HaversineCalculator.relative_distance(a.latitude, a.longitude, b.latitude, b.longitude)


def distance_function(method: str) -> DistanceFunction:
    """
    Distance used to rank candidates.

    Args:
        method: "haversine" (relative spherical distance) or "geodesic" (WGS84 meters)
    """
    method = method.strip().lower()
    if method == "haversine":
        return haversine_distance
    if method == "geodesic":
        calculator = GeodesicCalculator()

        def geodesic_distance(a: Coordinate, b: Coordinate) -> float:
            return calculator.calculate_distance(a.latitude, a.longitude, b.latitude, b.longitude)

        return geodesic_distance
    raise ValueError(f"Unknown distance method: {method!r} (expected 'haversine' or 'geodesic')")


class SearchStatus(str, Enum):
    CONVERGED = "converged"
    NO_CONVERGENCE = "no_convergence"
    OUT_OF_REGION = "out_of_region"


@dataclass(frozen=True)
class SearchSettings:
    max_steps: int = 250
    epsilon: float = 0.0
    step_lsds: int = 4
    spiral_fallback: bool = False
    spiral_radius: int = 3
    refine_legal_subdivision: bool = False

    def __post_init__(self) -> None:
        if self.max_steps < 1:
            raise ValueError("max_steps must be at least 1")
        if self.epsilon < 0:
            raise ValueError("epsilon must not be negative")
        if self.step_lsds < 1:
            raise ValueError("step_lsds must be at least 1")

    @classmethod
    def from_settings(cls) -> "SearchSettings":
        return cls(
            max_steps=settings.DLS_SEARCH_MAX_STEPS,
            epsilon=settings.DLS_SEARCH_EPSILON,
            step_lsds=settings.DLS_SEARCH_STEP_LSDS,
            spiral_fallback=settings.DLS_SPIRAL_FALLBACK,
            spiral_radius=settings.DLS_SPIRAL_RADIUS,
            refine_legal_subdivision=settings.DLS_REFINE_LSD,
        )


@dataclass(frozen=True)
class LocateResult:
    """Outcome of an inverse search; reference is the best candidate seen, if any."""

    status: SearchStatus
    reference: Optional[GridReference] = None
    distance: Optional[float] = None
    steps: int = 0
    message: Optional[str] = None

    @property
    def converged(self) -> bool:
        return self.status is SearchStatus.CONVERGED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "reference": self.reference.to_dict() if self.reference is not None else None,
            "distance": self.distance,
            "steps": self.steps,
            "message": self.message,
        }


class _StepLimitReached(Exception):
    pass


class InverseLocator:
    """
    Finds the grid reference whose forward conversion is nearest a coordinate.

    Every candidate goes through the forward conversion, so the search sees
    exactly the positions to_coordinate would report.
    """

    def __init__(
        self,
        converter: Optional[GridConverter] = None,
        distance: Optional[DistanceFunction] = None,
        search_settings: Optional[SearchSettings] = None,
    ):
        self.converter = converter or GridConverter()
        self.distance = distance or distance_function(settings.DLS_DISTANCE_METHOD)
        self.search_settings = search_settings or SearchSettings.from_settings()

    def estimate(self, coordinate: Coordinate) -> GridReference:
        """
        Initial guess from grid arithmetic alone.

        Raises:
            OutOfRegionError: the coordinate is outside the meridians or the township/range band
        """
        latitude, longitude = coordinate.latitude, coordinate.longitude
        if not (math.isfinite(latitude) and math.isfinite(longitude)):
            raise OutOfRegionError(f"Coordinate ({latitude}, {longitude}) is not finite")

        meridian = _meridian_for(longitude)

        township_offset = latitude - float(BASE_LATITUDE)
        township = math.floor(township_offset / float(TOWNSHIP_HEIGHT_DEG)) + 1
        if not MIN_TOWNSHIP <= township <= MAX_TOWNSHIP:
            raise OutOfRegionError(f"Latitude {latitude} is outside the DLS township band")

        section_width = float(section_width_deg(township))
        township_width = SECTIONS_PER_SIDE * section_width
        range_offset = longitude - float(MERIDIAN_LONGITUDES[meridian - 1])
        range_number = math.floor(range_offset / township_width) + 1
        if not MIN_RANGE <= range_number <= MAX_RANGE:
            raise OutOfRegionError(f"Longitude {longitude} is beyond the last range of meridian W{meridian}")

        row = _clamp_cell((township_offset - (township - 1) * float(TOWNSHIP_HEIGHT_DEG)) / float(SECTION_HEIGHT_DEG))
        col = _clamp_cell((range_offset - (range_number - 1) * township_width) / section_width)

        return GridReference(INITIAL_LSD, section_at(row, col), township, range_number, meridian, RangeDirection.WEST)

    def search(self, coordinate: Coordinate) -> LocateResult:
        """Run the search; out-of-region and step-bound outcomes come back as a status."""
        try:
            start = self.estimate(coordinate)
        except OutOfRegionError as e:
            return LocateResult(SearchStatus.OUT_OF_REGION, message=str(e))

        search = _Search(self, coordinate)
        best, best_distance = start, search.distance_to(start)

        try:
            while True:
                best, best_distance = search.climb(best, best_distance)
                if not self.search_settings.spiral_fallback:
                    break
                probed = search.spiral_probe(best, best_distance)
                if probed is None:
                    break
                best, best_distance = probed
        except _StepLimitReached:
            best, best_distance = search.best
            message = f"Search stopped after {search.steps} steps without converging"
            logger.warning(f"⚠️ {message} for ({coordinate.latitude}, {coordinate.longitude})")
            return LocateResult(SearchStatus.NO_CONVERGENCE, best, _finite(best_distance), search.steps, message)

        if math.isinf(best_distance):
            message = f"No convertible grid reference near {start}"
            return LocateResult(SearchStatus.NO_CONVERGENCE, start, None, search.steps, message)

        if self.search_settings.refine_legal_subdivision:
            best, best_distance = search.refine_lsd(best, best_distance)

        logger.debug(f"Inverse search converged on {best} after {search.steps} steps")
        return LocateResult(SearchStatus.CONVERGED, best, best_distance, search.steps)

    def locate(self, coordinate: Coordinate) -> GridReference:
        """
        Grid reference nearest a coordinate.

        Raises:
            OutOfRegionError: the coordinate is outside the DLS
            NoConvergenceError: the search hit its step bound; carries the best reference found
        """
        result = self.search(coordinate)
        if result.status is SearchStatus.OUT_OF_REGION:
            raise OutOfRegionError(result.message)
        if result.status is SearchStatus.NO_CONVERGENCE:
            raise NoConvergenceError(result.message, best=result.reference, distance=result.distance, steps=result.steps)
        return result.reference


class _Search:
    """State of one search: the distance memo and the step count."""

    def __init__(self, locator: InverseLocator, target: Coordinate):
        self.locator = locator
        self.target = target
        self.config = locator.search_settings
        self.steps = 0
        self.best: Tuple[Optional[GridReference], float] = (None, math.inf)
        self._distances: Dict[GridReference, float] = {}

    def distance_to(self, ref: GridReference) -> float:
        """Distance from ref's LSD centre to the target; inf when ref cannot be converted"""
        if ref in self._distances:
            return self._distances[ref]

        distance = math.inf
        if ref.in_bounds:
            try:
                distance = self.locator.distance(self.locator.converter.to_coordinate(ref), self.target)
            except (ConversionError, GeometryInconsistencyError) as e:
                logger.debug(f"Skipping {ref}: {e}")

        self._distances[ref] = distance
        if distance < self.best[1] or self.best[0] is None:
            self.best = (ref, distance)
        return distance

    def _improves(self, candidate: float, current: float) -> bool:
        if math.isinf(current):
            return not math.isinf(candidate)
        return current - candidate > self.config.epsilon

    def _adopt(self) -> None:
        self.steps += 1
        if self.steps > self.config.max_steps:
            raise _StepLimitReached()

    def climb(self, current: GridReference, current_distance: float) -> Tuple[GridReference, float]:
        """Steepest descent over the 8 neighbours until none improves"""
        while True:
            best_neighbour, best_distance = None, current_distance
            for compass in Compass:
                neighbour = step(current, compass, self.config.step_lsds)
                distance = self.distance_to(neighbour)
                if self._improves(distance, best_distance):
                    best_neighbour, best_distance = neighbour, distance

            if best_neighbour is None:
                return current, current_distance

            self._adopt()
            current, current_distance = best_neighbour, best_distance

    def spiral_probe(self, current: GridReference, current_distance: float) -> Optional[Tuple[GridReference, float]]:
        """First improving cell on rings 2..spiral_radius around current, nearest ring first"""
        for ring in range(2, self.config.spiral_radius + 1):
            best_cell, best_distance = None, current_distance
            for north, east in _ring_offsets(ring):
                cell = _offset(current, north, east, self.config.step_lsds)
                distance = self.distance_to(cell)
                if self._improves(distance, best_distance):
                    best_cell, best_distance = cell, distance
            if best_cell is not None:
                self._adopt()
                logger.debug(f"Spiral probe escaped local minimum at {current} via {best_cell}")
                return best_cell, best_distance
        return None

    def refine_lsd(self, current: GridReference, current_distance: float) -> Tuple[GridReference, float]:
        """Best of the 16 LSDs in current's section"""
        best, best_distance = current, current_distance
        for lsd in range(1, 17):
            candidate = replace(current, legal_subdivision=lsd)
            distance = self.distance_to(candidate)
            if distance < best_distance:
                best, best_distance = candidate, distance
        return best, best_distance


def _meridian_for(longitude: float) -> int:
    """Meridian whose band (from its line west to the next) holds longitude"""
    meridians = [float(m) for m in MERIDIAN_LONGITUDES]
    if longitude > meridians[0] or longitude < meridians[-1]:
        raise OutOfRegionError(f"Longitude {longitude} is outside the DLS meridians")
    for number in range(1, len(meridians)):
        if meridians[number] < longitude <= meridians[number - 1]:
            return number
    # exactly on the westernmost line
    return len(meridians) - 1


def _clamp_cell(position: float) -> int:
    return min(max(math.floor(position), 0), SECTIONS_PER_SIDE - 1)


def _ring_offsets(ring: int) -> Iterator[Tuple[int, int]]:
    """(north, east) section offsets on the square ring at distance ring"""
    for north in range(-ring, ring + 1):
        for east in range(-ring, ring + 1):
            if max(abs(north), abs(east)) == ring:
                yield north, east


def _offset(ref: GridReference, north: int, east: int, step_lsds: int) -> GridReference:
    if north:
        ref = step(ref, Compass.NORTH if north > 0 else Compass.SOUTH, abs(north) * step_lsds)
    if east:
        ref = step(ref, Compass.EAST if east > 0 else Compass.WEST, abs(east) * step_lsds)
    return ref


def _finite(distance: float) -> Optional[float]:
    return None if math.isinf(distance) else distance


def coordinate_to_grid_reference(coordinate: Coordinate, store: Optional[MarkerSource] = None) -> GridReference:
    """Grid reference (west of meridian) nearest a coordinate."""
    return InverseLocator(GridConverter(store)).locate(coordinate)
