"""
DLS Survey Geometry
Fixed geometry of the Dominion Land Survey grid and the single-precision
arithmetic helpers used on it.

The marker dataset is stored as float32, and the published reference
positions were computed in single precision, so every helper here stays in
np.float32 until a Coordinate is handed back to the caller.
"""
from __future__ import annotations

from typing import Dict, List, Tuple

import numpy as np

f32 = np.float32

# Geodetic height of one section in degrees of latitude
SECTION_HEIGHT_DEG = f32(0.014398614)

# Height of one township; not 6 sections because it includes road allowances
TOWNSHIP_HEIGHT_DEG = f32(0.087300101772)

# First baseline, roughly the Canada/USA border
BASE_LATITUDE = f32(48.99978996)

# Longitudes of the 8 base meridians, principal (W1) through coast (W8)
MERIDIAN_LONGITUDES: Tuple[np.float32, ...] = tuple(
    f32(v) for v in (
        -97.45788889,
        -102.0,
        -106.0,
        -110.00506248,
        -114.00191933,
        -118.00020192,
        -122.0,
        -122.761,
    )
)

# Known section widths (degrees of longitude, negative = westward) at two reference townships
_WIDTH_REFERENCE = ((f32(10), f32(-0.02255)), (f32(80), f32(-0.026093)))

SECTIONS_PER_SIDE = 6

# Section numbers per row, south row first; each row listed east to west
SECTION_LAYOUT: List[List[int]] = [
    [1, 2, 3, 4, 5, 6],
    [12, 11, 10, 9, 8, 7],
    [13, 14, 15, 16, 17, 18],
    [24, 23, 22, 21, 20, 19],
    [25, 26, 27, 28, 29, 30],
    [36, 35, 34, 33, 32, 31],
]

# section -> (row from south, column from east)
SECTION_POSITIONS: Dict[int, Tuple[int, int]] = {
    section: (row, col)
    for row, sections in enumerate(SECTION_LAYOUT)
    for col, section in enumerate(sections)
}


def interpolate(x0, y0, x1, y1, z) -> np.float32:
    """Linear interpolation/extrapolation of y at z through (x0, y0) and (x1, y1)."""
    x0, y0, x1, y1, z = f32(x0), f32(y0), f32(x1), f32(y1), f32(z)
    return (z - x1) * y0 / (x0 - x1) + (z - x0) * y1 / (x1 - x0)


def section_width_deg(township: int) -> np.float32:
    """
    Estimated east-west width of a section in degrees of longitude.

    Sections are a fixed mile wide, so they span more degrees further north.
    The width is interpolated from the known widths at townships 10 and 80.
    The value is negative because ranges are counted westward.
    """
    (t0, w0), (t1, w1) = _WIDTH_REFERENCE
    return interpolate(t0, w0, t1, w1, township)


def meridian_longitude(meridian: int) -> np.float32:
    if not 1 <= meridian <= len(MERIDIAN_LONGITUDES):
        raise ValueError(f"Meridian {meridian} is not a DLS meridian")
    return MERIDIAN_LONGITUDES[meridian - 1]


def section_position(section: int) -> Tuple[int, int]:
    """(row from south, column from east) of a section within its township"""
    try:
        return SECTION_POSITIONS[section]
    except KeyError:
        raise ValueError(f"Section {section} is not in 1-36") from None


def section_at(row: int, col: int) -> int:
    """Section number at a township cell, row from south and column from east"""
    return SECTION_LAYOUT[row][col]
