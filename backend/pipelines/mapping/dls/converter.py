"""
DLS Forward Conversion
Grid reference -> coordinate: marker lookup, corner reconstruction, then
bilinear interpolation of the LSD centre.
"""
from __future__ import annotations

import logging
from typing import Optional

from config import settings

from .errors import ConversionError
from .grid_reference import GridReference
from .interpolation import interpolate_legal_subdivision
from .marker_store import MarkerSource, get_marker_store
from .reconstruction import reconstruct_corners
from .survey_constants import (
    BASE_LATITUDE,
    SECTION_HEIGHT_DEG,
    SECTIONS_PER_SIDE,
    TOWNSHIP_HEIGHT_DEG,
    f32,
    meridian_longitude,
    section_position,
    section_width_deg,
)
from .types import Coordinate, RangeDirection, SectionCorners

logger = logging.getLogger(__name__)


class GridConverter:
    """
    Converts grid references to coordinates against a marker source.

    Sections with no surveyed corners (or townships missing from the dataset)
    fall back to an estimated south-east corner computed from the survey grid
    arithmetic, unless allow_estimate is off.
    """

    def __init__(self, store: Optional[MarkerSource] = None, allow_estimate: Optional[bool] = None):
        self._store = store
        self.allow_estimate = settings.DLS_ALLOW_ESTIMATE if allow_estimate is None else allow_estimate

    @property
    def store(self) -> MarkerSource:
        if self._store is None:
            self._store = get_marker_store()
        return self._store

    def section_corners(self, ref: GridReference) -> Optional[SectionCorners]:
        """Surveyed corners of ref's section, or None when the township has no record"""
        return self.store.boundary_markers(ref.section, ref.township, ref.range_number, ref.meridian)

    def to_coordinate(self, ref: GridReference) -> Coordinate:
        """
        Centre of ref's legal subdivision.

        Raises:
            ConversionError: no markers and no estimate available
        """
        if ref.direction is not RangeDirection.WEST:
            raise ConversionError(f"{ref}: survey markers are only available west of a meridian")

        corners = self.section_corners(ref)
        if corners is None or corners.count == 0:
            corners = self._estimated_corners(ref, found=corners is not None)

        grid = reconstruct_corners(corners, ref.township)
        return interpolate_legal_subdivision(grid, ref.legal_subdivision)

    def _estimated_corners(self, ref: GridReference, found: bool) -> SectionCorners:
        reason = "has no surveyed corners" if found else "is not in the marker dataset"
        if not self.allow_estimate:
            raise ConversionError(f"Invalid dls location for conversion to lat long: {ref} {reason}")
        if not ref.in_bounds:
            raise ConversionError(f"{ref} is outside the survey grid and cannot be estimated")

        logger.debug(f"Section {ref} {reason}; using estimated corner")
        return SectionCorners(south_east=self.estimate_coordinate(ref))

    def estimate_coordinate(self, ref: GridReference) -> Coordinate:
        """
        South-east corner of ref's section from grid arithmetic alone.

        Townships stack north from the base latitude; ranges step west from
        the meridian by six latitude-adjusted section widths.
        """
        if ref.direction is not RangeDirection.WEST:
            raise ConversionError(f"{ref}: estimates are only defined west of a meridian")

        row, col = section_position(ref.section)
        width = section_width_deg(ref.township)

        latitude = BASE_LATITUDE + f32(ref.township - 1) * TOWNSHIP_HEIGHT_DEG + f32(row) * SECTION_HEIGHT_DEG
        longitude = (
            meridian_longitude(ref.meridian)
            + f32((ref.range_number - 1) * SECTIONS_PER_SIDE + col) * width
        )
        return Coordinate(float(latitude), float(longitude))


def grid_reference_to_coordinate(ref: GridReference, store: Optional[MarkerSource] = None) -> Coordinate:
    """Convert a grid reference to the coordinate of its LSD centre."""
    return GridConverter(store).to_coordinate(ref)
