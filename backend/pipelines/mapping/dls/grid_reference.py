"""
DLS Grid Reference
Immutable LSD-SEC-TWP-RNG-MER location in the Dominion Land Survey.

Alberta, Saskatchewan and parts of Manitoba and British Columbia are divided
into townships of roughly 6 x 6 miles. Each township holds 36 sections of
1 x 1 mile, and each section 16 legal subdivisions (LSDs). Sections and LSDs
are numbered back and forth, so numbers increase to the left on some rows
and to the right on others. The grid follows real survey data, so coverage
has gaps.

Given the location 04-11-082-04W6:
    Legal subdivision   04
    Section             11
    Township            082
    Range               04
    Meridian            W6
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from .composite_key import MAX_RANGE, MAX_TOWNSHIP, MIN_RANGE, MIN_TOWNSHIP
from .errors import CoordinateParseError
from .types import Compass, RangeDirection

# Centre LSD of each quarter, used when a location names a quarter instead of an LSD
QUARTER_CENTRE_LSD = {"NW": 11, "NE": 10, "SW": 6, "SE": 7}

_QUARTER_BY_LSD = {
    1: "SE", 2: "SE", 7: "SE", 8: "SE",
    3: "SW", 4: "SW", 5: "SW", 6: "SW",
    9: "NE", 10: "NE", 15: "NE", 16: "NE",
    11: "NW", 12: "NW", 13: "NW", 14: "NW",
}

_TOKEN = re.compile(r"[0-9A-Z]+")

# Parsed locations are held to the ranges surveyors actually use
_PARSE_MAX_TOWNSHIP = 126
_PARSE_MAX_RANGE_W1 = 34
_PARSE_MAX_RANGE = 30


@dataclass(frozen=True)
class GridReference:
    """
    A DLS location.

    Township and range are not bounds-checked: navigation can step to
    township 0 or range 0 and callers check in_bounds before trusting them.
    """

    legal_subdivision: int
    section: int
    township: int
    range_number: int
    meridian: int
    direction: RangeDirection = RangeDirection.WEST

    def __post_init__(self) -> None:
        if not 1 <= self.legal_subdivision <= 16:
            raise ValueError(f"Legal subdivision {self.legal_subdivision} is not in 1-16")
        if not 1 <= self.section <= 36:
            raise ValueError(f"Section {self.section} is not in 1-36")
        if not 1 <= self.meridian <= 8:
            raise ValueError(f"Meridian {self.meridian} is not in 1-8")
        if not isinstance(self.direction, RangeDirection):
            try:
                object.__setattr__(self, "direction", RangeDirection(str(self.direction).upper()))
            except ValueError:
                raise ValueError(f"Direction {self.direction!r} must be 'E' or 'W'") from None

    @property
    def in_bounds(self) -> bool:
        return MIN_TOWNSHIP <= self.township <= MAX_TOWNSHIP and MIN_RANGE <= self.range_number <= MAX_RANGE

    @property
    def quarter(self) -> str:
        """Quarter section (SE/SW/NE/NW) containing this LSD"""
        return _QUARTER_BY_LSD[self.legal_subdivision]

    def __str__(self) -> str:
        return (
            f"{self.legal_subdivision:02d}-{self.section:02d}-{self.township:03d}-"
            f"{self.range_number:02d}{self.direction.value}{self.meridian:d}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "legal_subdivision": self.legal_subdivision,
            "section": self.section,
            "township": self.township,
            "range": self.range_number,
            "meridian": self.meridian,
            "direction": self.direction.value,
            "quarter": self.quarter,
            "location": str(self),
        }

    # --- navigation ----------------------------------------------------------

    def north(self) -> "GridReference":
        from .navigation import go_north
        return go_north(self)

    def south(self) -> "GridReference":
        from .navigation import go_south
        return go_south(self)

    def east(self) -> "GridReference":
        from .navigation import go_east
        return go_east(self)

    def west(self) -> "GridReference":
        from .navigation import go_west
        return go_west(self)

    def step(self, compass: Union[Compass, str], count: int = 1) -> "GridReference":
        from .navigation import step
        return step(self, Compass(compass), count)

    # --- parsing -------------------------------------------------------------

    @classmethod
    def parse(cls, location: Optional[str], allow_quarters: bool = False) -> "GridReference":
        """
        Parse a DLS location such as '04-11-082-04W6' or '100/04-11-082-04W6/0'.

        Fields are read right to left from the direction letter, which copes
        with prefixes such as well identifier headers.

        Args:
            location: Location text
            allow_quarters: Accept a quarter (e.g. 'SW-12-065-04W4') in place
                of the LSD and use the quarter's centre LSD

        Raises:
            CoordinateParseError: the text is not a valid DLS location
        """
        if location is None:
            raise CoordinateParseError("Can not parse a null location.")
        if not location.strip():
            raise CoordinateParseError("Can not parse an empty location.")

        text = location.upper().rstrip("M")

        direction_index = text.rfind("W")
        if direction_index == -1:
            direction_index = text.rfind("E")
            if direction_index == -1:
                raise CoordinateParseError("DLS location must contain a direction 'W' or 'E'.")
        direction = text[direction_index]

        meridian_char = next(
            (c for c in text[direction_index + 1:] if c.isdigit() or c == "P"), None
        )
        if meridian_char is None:
            raise CoordinateParseError(f"No meridian found after '{direction}' in {location!r}")
        meridian = 1 if meridian_char == "P" else int(meridian_char)

        if direction == "W" and not 1 <= meridian <= 8:
            raise CoordinateParseError("Meridian must be in the range 1 to 8.")
        if direction == "E" and meridian != 1:
            raise CoordinateParseError("Meridian must be 1 when direction is 'E'.")

        parts = _TOKEN.findall(text[:direction_index])[::-1]
        if len(parts) < 4:
            raise CoordinateParseError("DLS location must have range/twp/sec/lsd.")
        rng_text, twp_text, sec_text, lsd_text = parts[:4]

        max_range = _PARSE_MAX_RANGE_W1 if meridian == 1 else _PARSE_MAX_RANGE
        range_number = _parse_number(rng_text, "Range", 1, max_range)
        township = _parse_number(twp_text, "Township", 1, _PARSE_MAX_TOWNSHIP)
        section = _parse_number(sec_text, "Section", 1, 36)
        legal_subdivision = _parse_lsd(lsd_text, allow_quarters)

        return cls(legal_subdivision, section, township, range_number, meridian, RangeDirection(direction))


def _parse_number(text: str, label: str, low: int, high: int) -> int:
    if not text.isdigit():
        raise CoordinateParseError(f"{label} {text} is not valid.")
    value = int(text)
    if not low <= value <= high:
        raise CoordinateParseError(f"{label} must be in the range {low} to {high}.")
    return value


def _parse_lsd(text: str, allow_quarters: bool) -> int:
    if text.isdigit():
        lsd = int(text)
    elif allow_quarters and text in QUARTER_CENTRE_LSD:
        lsd = QUARTER_CENTRE_LSD[text]
    else:
        # Tease a number out of LSDs written like 'A06' or 'B2'
        lsd = next((n for n in range(16, 0, -1) if str(n) in text), 0)
        if lsd == 0:
            raise CoordinateParseError(f"Legal Subdivision {text} is not valid.")

    if not 1 <= lsd <= 16:
        raise CoordinateParseError("Legal Subdivision must be in the range 1 to 16.")
    return lsd
