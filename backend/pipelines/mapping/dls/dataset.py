"""
DLS Marker Dataset
Decoder (and writer) for the compressed section-corner marker resource.

Record layout, little-endian, 1154 bytes per township:
    uint16   composite key (meridian << 13 | range << 7 | township)
    float32  36 sections x 4 corners (SE, SW, NW, NE) x (lat, lon)

A (0, 0) pair marks a corner that was never surveyed. The resource is a raw
DEFLATE stream; a gzip-wrapped copy is accepted as well.
"""
from __future__ import annotations

import logging
import time
import zlib
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Union

import numpy as np

from .errors import DatasetIntegrityError, OutOfRangeError

logger = logging.getLogger(__name__)

SECTIONS_PER_TOWNSHIP = 36
CORNERS_PER_SECTION = 4
MARKER_SHAPE = (SECTIONS_PER_TOWNSHIP, CORNERS_PER_SECTION, 2)
TOWNSHIP_MARKER_COUNT = SECTIONS_PER_TOWNSHIP * CORNERS_PER_SECTION * 2

RECORD_DTYPE = np.dtype([("key", "<u2"), ("markers", "<f4", MARKER_SHAPE)])
RECORD_SIZE = RECORD_DTYPE.itemsize  # 1154

# Number of townships in the bundled resource
BUNDLED_TOWNSHIP_COUNT = 15583

_RAW_DEFLATE_WBITS = -zlib.MAX_WBITS
_GZIP_WBITS = zlib.MAX_WBITS | 16
_GZIP_MAGIC = b"\x1f\x8b"


class MarkerDataset(Mapping):
    """
    Immutable composite-key -> float32[36, 4, 2] marker table.

    The arrays are read-only views over the decompressed buffer.
    """

    def __init__(self, townships: Mapping[int, np.ndarray]) -> None:
        self._townships = MappingProxyType(dict(townships))

    def __getitem__(self, key: int) -> np.ndarray:
        return self._townships[key]

    def __iter__(self) -> Iterator[int]:
        return iter(self._townships)

    def __len__(self) -> int:
        return len(self._townships)

    def township(self, key: int) -> Optional[np.ndarray]:
        return self._townships.get(key)

    def __repr__(self) -> str:
        return f"MarkerDataset(townships={len(self)})"


def _inflate(blob: bytes) -> bytes:
    wbits = _GZIP_WBITS if blob[:2] == _GZIP_MAGIC else _RAW_DEFLATE_WBITS
    inflater = zlib.decompressobj(wbits)
    try:
        raw = inflater.decompress(blob) + inflater.flush()
    except zlib.error as e:
        raise DatasetIntegrityError(f"Marker dataset is not a valid deflate stream: {e}") from e

    if not inflater.eof:
        raise DatasetIntegrityError("Marker dataset compressed stream ended early")
    return raw


def decode_dataset(blob: bytes, expected_count: Optional[int] = BUNDLED_TOWNSHIP_COUNT) -> MarkerDataset:
    """
    Decompress and parse a marker resource.

    Args:
        blob: Compressed resource bytes
        expected_count: Number of township records the resource must hold,
            or None to accept any count

    Returns:
        MarkerDataset: Immutable key -> township marker table

    Raises:
        DatasetIntegrityError: corrupt stream, partial record, duplicate key
            or unexpected record count
    """
    raw = _inflate(blob)

    remainder = len(raw) % RECORD_SIZE
    if remainder:
        raise DatasetIntegrityError(
            f"Marker dataset ends mid-record: {len(raw)} bytes is not a multiple of {RECORD_SIZE}"
        )

    records = np.frombuffer(raw, dtype=RECORD_DTYPE)
    count = len(records)
    if expected_count is not None and count != expected_count:
        raise DatasetIntegrityError(
            f"Marker dataset holds {count} townships, expected {expected_count}"
        )

    keys = records["key"]
    if len(np.unique(keys)) != count:
        raise DatasetIntegrityError("Marker dataset contains duplicate township keys")

    markers = records["markers"]
    return MarkerDataset({int(key): markers[i] for i, key in enumerate(keys)})


def encode_dataset(townships: Mapping[int, Union[np.ndarray, list]], level: int = 9) -> bytes:
    """
    Write townships in the resource format, raw-deflate compressed.

    Args:
        townships: composite key -> 288 floats (any shape that reshapes to 36x4x2)
        level: zlib compression level

    Returns:
        bytes: Compressed resource, readable by decode_dataset
    """
    records = np.zeros(len(townships), dtype=RECORD_DTYPE)
    for i, key in enumerate(sorted(townships)):
        if not 0 <= key <= 0xFFFF:
            raise OutOfRangeError(f"Composite key {key} does not fit the 16-bit record key")
        records["key"][i] = key
        records["markers"][i] = np.asarray(townships[key], dtype="<f4").reshape(MARKER_SHAPE)

    compressor = zlib.compressobj(level, zlib.DEFLATED, _RAW_DEFLATE_WBITS)
    return compressor.compress(records.tobytes()) + compressor.flush()


def load_dataset_file(path: Union[str, Path], expected_count: Optional[int] = BUNDLED_TOWNSHIP_COUNT) -> MarkerDataset:
    """Read and decode a marker resource from disk."""
    path = Path(path)
    try:
        blob = path.read_bytes()
    except FileNotFoundError as e:
        raise DatasetIntegrityError(f"Marker dataset resource not found: {path}") from e

    start = time.perf_counter()
    dataset = decode_dataset(blob, expected_count)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(f"🗺️ Loaded {len(dataset)} DLS townships from {path.name} in {elapsed_ms:.0f}ms")
    return dataset
