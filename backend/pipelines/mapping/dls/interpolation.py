"""
Legal Subdivision Interpolation
Maps an LSD (1-16) to its centre inside a section and bilinearly interpolates
a coordinate from the section's four corners.

LSDs are numbered back and forth from the south-east corner:

    13 14 15 16
    12 11 10 09
    05 06 07 08
    04 03 02 01
"""
from __future__ import annotations

from typing import Dict, Tuple

import numpy as np

from .reconstruction import CornerGrid
from .survey_constants import f32, interpolate
from .types import Coordinate

# Fraction of the section west->east (x) and south->north (y) at each LSD centre
_LSD_X = (0.875, 0.625, 0.375, 0.125, 0.125, 0.375, 0.625, 0.875,
          0.875, 0.625, 0.375, 0.125, 0.125, 0.375, 0.625, 0.875)
_LSD_Y = (0.125, 0.125, 0.125, 0.125, 0.375, 0.375, 0.375, 0.375,
          0.625, 0.625, 0.625, 0.625, 0.875, 0.875, 0.875, 0.875)

LSD_FRACTIONS: Dict[int, Tuple[np.float32, np.float32]] = {
    lsd: (f32(x), f32(y)) for lsd, (x, y) in enumerate(zip(_LSD_X, _LSD_Y), start=1)
}


def lsd_fraction(legal_subdivision: int) -> Tuple[np.float32, np.float32]:
    """(x, y) position of an LSD centre within the unit section square"""
    try:
        return LSD_FRACTIONS[legal_subdivision]
    except KeyError:
        raise ValueError(f"Legal subdivision {legal_subdivision} is not in 1-16") from None


def bilinear_interpolate(grid: CornerGrid, x, y) -> Coordinate:
    """
    Interpolate a position inside a section.

    Args:
        grid: Complete corner matrix of the section
        x: Fraction west (0) to east (1)
        y: Fraction south (0) to north (1)

    Returns:
        Coordinate: Interpolated position; (0, 0) and (1, 1) give the SW and NE corners exactly
    """
    lat, lng = grid.lat, grid.lng
    x, y = f32(x), f32(y)

    west_lat = interpolate(0, lat[0, 0], 1, lat[1, 0], y)
    east_lat = interpolate(0, lat[0, 1], 1, lat[1, 1], y)
    latitude = interpolate(0, west_lat, 1, east_lat, x)

    south_lng = interpolate(0, lng[0, 0], 1, lng[0, 1], x)
    north_lng = interpolate(0, lng[1, 0], 1, lng[1, 1], x)
    longitude = interpolate(0, south_lng, 1, north_lng, y)

    return Coordinate(float(latitude), float(longitude))


def interpolate_legal_subdivision(grid: CornerGrid, legal_subdivision: int) -> Coordinate:
    """Centre of an LSD within the section described by grid."""
    x, y = lsd_fraction(legal_subdivision)
    return bilinear_interpolate(grid, x, y)
