"""
Section Corner Reconstruction
Fills in the corners of a section that were never surveyed.

The result is a CornerGrid: two 2x2 float32 matrices (latitude, longitude)
laid out as

    NW NE   :  [1][0]  [1][1]
    SW SE   :  [0][0]  [0][1]

Known corners are copied as-is. Missing ones come from the parallelogram
law (3 known) or from the fixed section height and the township-dependent
section width (1-2 known).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Tuple

import numpy as np

from .errors import GeometryInconsistencyError
from .survey_constants import SECTION_HEIGHT_DEG, f32, section_width_deg
from .types import CORNER_CELLS, Coordinate, Corner, SectionCorners

SE, SW, NW, NE = Corner.SOUTH_EAST, Corner.SOUTH_WEST, Corner.NORTH_WEST, Corner.NORTH_EAST


@dataclass(frozen=True)
class CornerGrid:
    """Complete 2x2 corner matrix of a section, in single precision."""

    lat: np.ndarray
    lng: np.ndarray

    def corner(self, corner: Corner) -> Coordinate:
        row, col = CORNER_CELLS[corner]
        return Coordinate(float(self.lat[row, col]), float(self.lng[row, col]))

    def to_section_corners(self) -> SectionCorners:
        return SectionCorners.from_mapping({c: self.corner(c) for c in Corner})


class _Cells:
    """Mutable working copy of the grid, addressed by corner."""

    def __init__(self) -> None:
        self.lat = np.zeros((2, 2), dtype=np.float32)
        self.lng = np.zeros((2, 2), dtype=np.float32)

    def set(self, corner: Corner, lat, lng) -> None:
        row, col = CORNER_CELLS[corner]
        self.lat[row, col] = f32(lat)
        self.lng[row, col] = f32(lng)

    def get(self, corner: Corner) -> Tuple[np.float32, np.float32]:
        row, col = CORNER_CELLS[corner]
        return self.lat[row, col], self.lng[row, col]

    def freeze(self) -> CornerGrid:
        self.lat.setflags(write=False)
        self.lng.setflags(write=False)
        return CornerGrid(self.lat, self.lng)


def _opposite(corner: Corner) -> Corner:
    row, col = CORNER_CELLS[corner]
    return _corner_at(1 - row, 1 - col)


def _corner_at(row: int, col: int) -> Corner:
    for corner, cell in CORNER_CELLS.items():
        if cell == (row, col):
            return corner
    raise ValueError(f"No corner at cell {(row, col)}")


def _complete_missing(cells: _Cells, missing: Corner) -> None:
    """missing = adjacent_a + adjacent_b - opposite"""
    row, col = CORNER_CELLS[missing]
    adjacent_a = _corner_at(row, 1 - col)
    adjacent_b = _corner_at(1 - row, col)
    opposite = _opposite(missing)

    a_lat, a_lng = cells.get(adjacent_a)
    b_lat, b_lng = cells.get(adjacent_b)
    o_lat, o_lng = cells.get(opposite)
    cells.set(missing, a_lat + b_lat - o_lat, a_lng + b_lng - o_lng)


# --- two known corners -------------------------------------------------------
# height: section height (deg latitude); width: section width (deg longitude, negative = west)

def _north_edge(c: _Cells, height, width) -> None:
    ne_lat, ne_lng = c.get(NE)
    nw_lat, nw_lng = c.get(NW)
    c.set(SE, ne_lat - height, ne_lng)
    c.set(SW, nw_lat - height, nw_lng)


def _south_edge(c: _Cells, height, width) -> None:
    se_lat, se_lng = c.get(SE)
    sw_lat, sw_lng = c.get(SW)
    c.set(NE, se_lat + height, se_lng)
    c.set(NW, sw_lat + height, sw_lng)


def _east_edge(c: _Cells, height, width) -> None:
    ne_lat, ne_lng = c.get(NE)
    se_lat, se_lng = c.get(SE)
    c.set(NW, ne_lat, ne_lng + width)
    c.set(SW, se_lat, se_lng + width)


def _west_edge(c: _Cells, height, width) -> None:
    nw_lat, nw_lng = c.get(NW)
    sw_lat, sw_lng = c.get(SW)
    c.set(NE, nw_lat, nw_lng - width)
    c.set(SE, sw_lat, sw_lng - width)


def _rising_diagonal(c: _Cells, height, width) -> None:
    # SW and NE known
    ne_lat, ne_lng = c.get(NE)
    sw_lat, sw_lng = c.get(SW)
    c.set(NW, ne_lat, ne_lng + width)
    c.set(SE, sw_lat, sw_lng - width)


def _falling_diagonal(c: _Cells, height, width) -> None:
    # NW and SE known
    nw_lat, nw_lng = c.get(NW)
    se_lat, se_lng = c.get(SE)
    c.set(NE, se_lat + height, nw_lng - width)
    c.set(SW, nw_lat - height, se_lng + width)


_PAIR_RULES: Dict[FrozenSet[Corner], Callable[[_Cells, np.float32, np.float32], None]] = {
    frozenset({NE, NW}): _north_edge,
    frozenset({SE, SW}): _south_edge,
    frozenset({NE, SE}): _east_edge,
    frozenset({NW, SW}): _west_edge,
    frozenset({NE, SW}): _rising_diagonal,
    frozenset({NW, SE}): _falling_diagonal,
}


def _from_single(c: _Cells, known: Corner, height, width) -> None:
    row, col = CORNER_CELLS[known]
    lat, lng = c.get(known)
    other_lat = lat + height if row == 0 else lat - height
    other_lng = lng + width if col == 1 else lng - width

    c.set(_corner_at(row, 1 - col), lat, other_lng)
    c.set(_corner_at(1 - row, col), other_lat, lng)
    c.set(_corner_at(1 - row, 1 - col), other_lat, other_lng)


def complete_missing_corner(corners: SectionCorners, missing: Corner) -> Coordinate:
    """
    Parallelogram completion of a single missing corner.

    Raises:
        GeometryInconsistencyError: unless exactly the three other corners are known
    """
    expected = frozenset(Corner) - {missing}
    if frozenset(corners.known) != expected:
        raise GeometryInconsistencyError(
            f"Cannot complete {missing.value}: need {sorted(c.value for c in expected)}, "
            f"have {sorted(c.value for c in corners.known)}"
        )
    return reconstruct_corners(corners, township=1).corner(missing)


def reconstruct_corners(corners: SectionCorners, township: int) -> CornerGrid:
    """
    Complete all four corners of a section.

    Args:
        corners: Section corner markers, 1-4 of them known
        township: Township number, used for the latitude-dependent section width

    Returns:
        CornerGrid: Full 2x2 corner matrix

    Raises:
        GeometryInconsistencyError: no corner is known
    """
    known = frozenset(corners.known)
    if not known:
        raise GeometryInconsistencyError("Section has no known corners to reconstruct from")

    cells = _Cells()
    for corner in known:
        coord = corners.get(corner)
        cells.set(corner, coord.latitude, coord.longitude)

    if len(known) == 3:
        (missing,) = frozenset(Corner) - known
        _complete_missing(cells, missing)
    elif len(known) == 2:
        _PAIR_RULES[known](cells, SECTION_HEIGHT_DEG, section_width_deg(township))
    elif len(known) == 1:
        (single,) = known
        _from_single(cells, single, SECTION_HEIGHT_DEG, section_width_deg(township))

    return cells.freeze()


def complete_corners(corners: SectionCorners, township: int) -> SectionCorners:
    """SectionCorners with every corner populated (reconstructed where missing)."""
    return reconstruct_corners(corners, township).to_section_corners()
