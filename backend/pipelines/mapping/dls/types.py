"""
DLS Value Types
Coordinates, section corner sets and the small enumerations shared by the engine
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple


class Corner(str, Enum):
    """Corner identity, in on-disk winding order."""

    SOUTH_EAST = "SE"
    SOUTH_WEST = "SW"
    NORTH_WEST = "NW"
    NORTH_EAST = "NE"


# Position of each corner in the 2x2 corner grid: [row][col], row 0 = south, col 0 = west
CORNER_CELLS: Dict[Corner, Tuple[int, int]] = {
    Corner.SOUTH_WEST: (0, 0),
    Corner.SOUTH_EAST: (0, 1),
    Corner.NORTH_WEST: (1, 0),
    Corner.NORTH_EAST: (1, 1),
}


class RangeDirection(str, Enum):
    """Side of the meridian a range is counted on."""

    EAST = "E"
    WEST = "W"


class Compass(str, Enum):
    """The 8 neighbour directions explored by the inverse search."""

    NORTH = "N"
    NORTH_EAST = "NE"
    EAST = "E"
    SOUTH_EAST = "SE"
    SOUTH = "S"
    SOUTH_WEST = "SW"
    WEST = "W"
    NORTH_WEST = "NW"

    @property
    def components(self) -> Tuple[Optional[str], Optional[str]]:
        """(north/south part, east/west part) of the direction"""
        value = self.value
        vertical = value[0] if value[0] in ("N", "S") else None
        horizontal = value[-1] if value[-1] in ("E", "W") else None
        return vertical, horizontal


@dataclass(frozen=True)
class Coordinate:
    """Geographic position in decimal degrees; west longitudes are negative."""

    latitude: float
    longitude: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.latitude, "lon": self.longitude}

    def __iter__(self) -> Iterator[float]:
        yield self.latitude
        yield self.longitude


@dataclass(frozen=True)
class SectionCorners:
    """
    Up to four surveyed corner markers of one section.

    A missing corner is None. In the dataset it is stored as the (0, 0)
    sentinel, which is never a real position in western Canada.
    """

    south_east: Optional[Coordinate] = None
    south_west: Optional[Coordinate] = None
    north_west: Optional[Coordinate] = None
    north_east: Optional[Coordinate] = None

    def get(self, corner: Corner) -> Optional[Coordinate]:
        return {
            Corner.SOUTH_EAST: self.south_east,
            Corner.SOUTH_WEST: self.south_west,
            Corner.NORTH_WEST: self.north_west,
            Corner.NORTH_EAST: self.north_east,
        }[corner]

    @property
    def known(self) -> List[Corner]:
        return [corner for corner in Corner if self.get(corner) is not None]

    @property
    def count(self) -> int:
        return len(self.known)

    @property
    def is_complete(self) -> bool:
        return self.count == 4

    @classmethod
    def from_mapping(cls, corners: Dict[Corner, Optional[Coordinate]]) -> "SectionCorners":
        return cls(
            south_east=corners.get(Corner.SOUTH_EAST),
            south_west=corners.get(Corner.SOUTH_WEST),
            north_west=corners.get(Corner.NORTH_WEST),
            north_east=corners.get(Corner.NORTH_EAST),
        )

    def without(self, corner: Corner) -> "SectionCorners":
        """Copy of this set with one corner removed"""
        corners = {c: self.get(c) for c in Corner}
        corners[corner] = None
        return SectionCorners.from_mapping(corners)

    def to_dict(self) -> Dict[str, Optional[Dict[str, float]]]:
        result: Dict[str, Optional[Dict[str, float]]] = {}
        for corner in Corner:
            coord = self.get(corner)
            result[corner.value] = coord.to_dict() if coord is not None else None
        return result
