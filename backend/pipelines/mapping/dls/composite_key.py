"""
Composite Key Codec
Packs (meridian, range, township) into the integer key used by the marker dataset.

Layout, high to low: meridian | range (6 bits) | township (7 bits).
Meridians 1-7 fit the 16-bit on-disk key; the coast meridian (8) spills into
bit 16, so it round-trips here but never appears in a dataset record.
"""
from __future__ import annotations

from typing import Tuple

from .errors import OutOfRangeError

TOWNSHIP_BITS = 7
RANGE_BITS = 6

TOWNSHIP_SHIFT = 0
RANGE_SHIFT = TOWNSHIP_BITS
MERIDIAN_SHIFT = TOWNSHIP_BITS + RANGE_BITS

TOWNSHIP_MASK = (1 << TOWNSHIP_BITS) - 1
RANGE_MASK = (1 << RANGE_BITS) - 1

MIN_MERIDIAN, MAX_MERIDIAN = 1, 8
MIN_RANGE, MAX_RANGE = 1, 34
MIN_TOWNSHIP, MAX_TOWNSHIP = 1, 127


def is_encodable(meridian: int, range_number: int, township: int) -> bool:
    """Return True when the triple lies inside the valid DLS ranges."""
    return (
        MIN_MERIDIAN <= meridian <= MAX_MERIDIAN
        and MIN_RANGE <= range_number <= MAX_RANGE
        and MIN_TOWNSHIP <= township <= MAX_TOWNSHIP
    )


def encode(meridian: int, range_number: int, township: int) -> int:
    """
    Pack a meridian/range/township triple into a composite key.

    Raises:
        OutOfRangeError: if any field is outside its valid range
    """
    if not MIN_MERIDIAN <= meridian <= MAX_MERIDIAN:
        raise OutOfRangeError(f"Meridian {meridian} outside {MIN_MERIDIAN}-{MAX_MERIDIAN}")
    if not MIN_RANGE <= range_number <= MAX_RANGE:
        raise OutOfRangeError(f"Range {range_number} outside {MIN_RANGE}-{MAX_RANGE}")
    if not MIN_TOWNSHIP <= township <= MAX_TOWNSHIP:
        raise OutOfRangeError(f"Township {township} outside {MIN_TOWNSHIP}-{MAX_TOWNSHIP}")

    return meridian << MERIDIAN_SHIFT | range_number << RANGE_SHIFT | township << TOWNSHIP_SHIFT


def decode(key: int) -> Tuple[int, int, int]:
    """Unpack a composite key into (meridian, range, township)."""
    return (
        key >> MERIDIAN_SHIFT,
        (key >> RANGE_SHIFT) & RANGE_MASK,
        (key >> TOWNSHIP_SHIFT) & TOWNSHIP_MASK,
    )
