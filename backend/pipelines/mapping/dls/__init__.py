"""
DLS Mapping Module
Dominion Land Survey grid references to coordinates and back
"""
from .errors import (
    DLSError,
    OutOfRangeError,
    DatasetIntegrityError,
    GeometryInconsistencyError,
    OutOfRegionError,
    NoConvergenceError,
    ConversionError,
    CoordinateParseError,
)
from .types import Compass, Coordinate, Corner, RangeDirection, SectionCorners
from .grid_reference import GridReference
from .marker_store import MarkerStore, get_marker_store, set_marker_store, reset_marker_store
from .converter import GridConverter, grid_reference_to_coordinate
from .locator import InverseLocator, LocateResult, SearchSettings, SearchStatus, coordinate_to_grid_reference

__all__ = [
    "DLSError",
    "OutOfRangeError",
    "DatasetIntegrityError",
    "GeometryInconsistencyError",
    "OutOfRegionError",
    "NoConvergenceError",
    "ConversionError",
    "CoordinateParseError",
    "Compass",
    "Coordinate",
    "Corner",
    "RangeDirection",
    "SectionCorners",
    "GridReference",
    "MarkerStore",
    "get_marker_store",
    "set_marker_store",
    "reset_marker_store",
    "GridConverter",
    "grid_reference_to_coordinate",
    "InverseLocator",
    "LocateResult",
    "SearchSettings",
    "SearchStatus",
    "coordinate_to_grid_reference",
]
