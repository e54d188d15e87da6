"""
DLS Adjacency Navigation
Steps a grid reference one legal subdivision north, south, east or west.

Each move is table driven: the LSD moves to its neighbour and, at a section
edge, the section moves too. At a township edge the township (north/south)
or range (east/west) changes. Nothing here rejects the result, so stepping
off township 1 or range 1 gives township/range 0; callers check
GridReference.in_bounds.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Dict, Sequence, Tuple

from .grid_reference import GridReference
from .types import Compass, RangeDirection

Transition = Dict[int, Tuple[int, bool]]


def _table(targets: Sequence[int], crosses: Sequence[bool]) -> Transition:
    """number -> (neighbour number, whether the move crosses into the next cell)"""
    return {n: (target, cross) for n, (target, cross) in enumerate(zip(targets, crosses), start=1)}


_T, _F = True, False

# LSD -> neighbouring LSD, and whether that leaves the section
_LSD_NORTH = _table(
    (8, 7, 6, 5, 12, 11, 10, 9, 16, 15, 14, 13, 4, 3, 2, 1),
    (_F, _F, _F, _F, _F, _F, _F, _F, _F, _F, _F, _F, _T, _T, _T, _T),
)
_LSD_SOUTH = _table(
    (16, 15, 14, 13, 4, 3, 2, 1, 8, 7, 6, 5, 12, 11, 10, 9),
    (_T, _T, _T, _T, _F, _F, _F, _F, _F, _F, _F, _F, _F, _F, _F, _F),
)
_LSD_EAST = _table(
    (4, 1, 2, 3, 6, 7, 8, 5, 12, 9, 10, 11, 14, 15, 16, 13),
    (_T, _F, _F, _F, _F, _F, _F, _T, _T, _F, _F, _F, _F, _F, _F, _T),
)
_LSD_WEST = _table(
    (2, 3, 4, 1, 8, 5, 6, 7, 10, 11, 12, 9, 16, 13, 14, 15),
    (_F, _F, _F, _T, _T, _F, _F, _F, _F, _F, _F, _T, _T, _F, _F, _F),
)

# Section -> neighbouring section, and whether that leaves the township (N/S) or range (E/W)
_SECTION_NORTH = _table(
    (12, 11, 10, 9, 8, 7, 18, 17, 16, 15, 14, 13, 24, 23, 22, 21, 20, 19,
     30, 29, 28, 27, 26, 25, 36, 35, 34, 33, 32, 31, 6, 5, 4, 3, 2, 1),
    (_F,) * 30 + (_T,) * 6,
)
_SECTION_SOUTH = _table(
    (36, 35, 34, 33, 32, 31, 6, 5, 4, 3, 2, 1, 12, 11, 10, 9, 8, 7,
     18, 17, 16, 15, 14, 13, 24, 23, 22, 21, 20, 19, 30, 29, 28, 27, 26, 25),
    (_T,) * 6 + (_F,) * 30,
)
_SECTION_EAST = _table(
    (6, 1, 2, 3, 4, 5, 8, 9, 10, 11, 12, 7, 18, 13, 14, 15, 16, 17,
     20, 21, 22, 23, 24, 19, 30, 25, 26, 27, 28, 29, 32, 33, 34, 35, 36, 31),
    (_T, _F, _F, _F, _F, _F, _F, _F, _F, _F, _F, _T, _T, _F, _F, _F, _F, _F,
     _F, _F, _F, _F, _F, _T, _T, _F, _F, _F, _F, _F, _F, _F, _F, _F, _F, _T),
)
_SECTION_WEST = _table(
    (2, 3, 4, 5, 6, 1, 12, 7, 8, 9, 10, 11, 14, 15, 16, 17, 18, 13,
     24, 19, 20, 21, 22, 23, 26, 27, 28, 29, 30, 25, 36, 31, 32, 33, 34, 35),
    (_F, _F, _F, _F, _F, _T, _T, _F, _F, _F, _F, _F, _F, _F, _F, _F, _F, _T,
     _T, _F, _F, _F, _F, _F, _F, _F, _F, _F, _F, _T, _T, _F, _F, _F, _F, _F),
)


def _move(ref: GridReference, lsd_table: Transition, section_table: Transition) -> Tuple[int, int, bool]:
    """(new lsd, new section, whether the township/range boundary was crossed)"""
    lsd, leaves_section = lsd_table[ref.legal_subdivision]
    if not leaves_section:
        return lsd, ref.section, False
    section, leaves_township = section_table[ref.section]
    return lsd, section, leaves_township


def go_north(ref: GridReference) -> GridReference:
    """Reference immediately north of ref"""
    lsd, section, crossed = _move(ref, _LSD_NORTH, _SECTION_NORTH)
    township = ref.township + 1 if crossed else ref.township
    return replace(ref, legal_subdivision=lsd, section=section, township=township)


def go_south(ref: GridReference) -> GridReference:
    """Reference immediately south of ref"""
    lsd, section, crossed = _move(ref, _LSD_SOUTH, _SECTION_SOUTH)
    township = ref.township - 1 if crossed else ref.township
    return replace(ref, legal_subdivision=lsd, section=section, township=township)


def go_west(ref: GridReference) -> GridReference:
    """Reference immediately west of ref; west ranges count up going west"""
    lsd, section, crossed = _move(ref, _LSD_WEST, _SECTION_WEST)
    range_number = ref.range_number
    if crossed:
        range_number += 1 if ref.direction is RangeDirection.WEST else -1
    return replace(ref, legal_subdivision=lsd, section=section, range_number=range_number)


def go_east(ref: GridReference) -> GridReference:
    """Reference immediately east of ref; west ranges count down going east"""
    lsd, section, crossed = _move(ref, _LSD_EAST, _SECTION_EAST)
    range_number = ref.range_number
    if crossed:
        range_number += -1 if ref.direction is RangeDirection.WEST else 1
    return replace(ref, legal_subdivision=lsd, section=section, range_number=range_number)


_VERTICAL = {"N": go_north, "S": go_south}
_HORIZONTAL = {"E": go_east, "W": go_west}


def step(ref: GridReference, compass: Compass, count: int = 1) -> GridReference:
    """
    Move count LSDs in a compass direction.

    Diagonals move north/south first, then east/west. Four LSD steps cross
    a whole section and land on the same LSD of the neighbouring section.
    """
    vertical, horizontal = compass.components
    for _ in range(count):
        if vertical:
            ref = _VERTICAL[vertical](ref)
        if horizontal:
            ref = _HORIZONTAL[horizontal](ref)
    return ref
