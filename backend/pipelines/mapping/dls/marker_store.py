"""
DLS Marker Store
Lazily-loaded, thread-safe lookup of section corner markers by grid position.

The dataset is decoded once, on first use, under a lock (double-checked), and
read without locking afterwards. A process-wide store is available through
get_marker_store(); callers that need a different dataset build their own
MarkerStore and pass it in.
"""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Optional, Protocol, Tuple, Union

import numpy as np

from config import settings
from config.paths import dls_dataset_path

from .composite_key import encode, is_encodable
from .dataset import SECTIONS_PER_TOWNSHIP, MarkerDataset, load_dataset_file
from .errors import DatasetIntegrityError
from .types import Coordinate, SectionCorners

logger = logging.getLogger(__name__)

MarkerLoader = Callable[[], MarkerDataset]
TownshipMarkers = Tuple[SectionCorners, ...]


class MarkerSource(Protocol):
    """Anything that can answer section/township marker lookups."""

    def boundary_markers(self, section: int, township: int, range_number: int, meridian: int) -> Optional[SectionCorners]:
        ...

    def township_markers(self, township: int, range_number: int, meridian: int) -> Optional[TownshipMarkers]:
        ...

    def township_boundary(self, township: int, range_number: int, meridian: int) -> Optional[SectionCorners]:
        ...


def _marker(lat: np.float32, lon: np.float32) -> Optional[Coordinate]:
    if lat == 0 and lon == 0:
        return None
    return Coordinate(float(lat), float(lon))


def section_corners_from_block(block: np.ndarray) -> SectionCorners:
    """Build a SectionCorners from a float32[4, 2] block in SE, SW, NW, NE order."""
    return SectionCorners(
        south_east=_marker(block[0, 0], block[0, 1]),
        south_west=_marker(block[1, 0], block[1, 1]),
        north_west=_marker(block[2, 0], block[2, 1]),
        north_east=_marker(block[3, 0], block[3, 1]),
    )


class MarkerStore:
    """
    Section corner lookups over an immutable MarkerDataset.

    Lookups for keys that are absent, or outside the valid DLS ranges,
    return None.
    """

    def __init__(self, loader: MarkerLoader) -> None:
        self._loader = loader
        self._dataset: Optional[MarkerDataset] = None
        self._load_error: Optional[DatasetIntegrityError] = None
        self._load_lock = threading.Lock()

    @classmethod
    def from_file(cls, path: Union[str, Path], expected_count: Optional[int] = None) -> "MarkerStore":
        return cls(lambda: load_dataset_file(path, expected_count))

    @classmethod
    def from_dataset(cls, dataset: MarkerDataset) -> "MarkerStore":
        return cls(lambda: dataset)

    @property
    def is_loaded(self) -> bool:
        return self._dataset is not None

    @property
    def dataset(self) -> MarkerDataset:
        dataset = self._dataset
        if dataset is None:
            with self._load_lock:
                if self._load_error is not None:
                    # A broken dataset stays broken; do not decode it again
                    raise self._load_error
                if self._dataset is None:
                    try:
                        self._dataset = self._loader()
                    except DatasetIntegrityError as e:
                        logger.error(f"❌ DLS marker dataset failed to load: {e}")
                        self._load_error = e
                        raise
                dataset = self._dataset
        return dataset

    def _township_block(self, township: int, range_number: int, meridian: int) -> Optional[np.ndarray]:
        if not is_encodable(meridian, range_number, township):
            return None
        return self.dataset.township(encode(meridian, range_number, township))

    def boundary_markers(self, section: int, township: int, range_number: int, meridian: int) -> Optional[SectionCorners]:
        """
        Corner markers of one section.

        Returns:
            SectionCorners with 0-4 known corners, or None when the township is
            not in the dataset
        """
        if not 1 <= section <= SECTIONS_PER_TOWNSHIP:
            return None
        block = self._township_block(township, range_number, meridian)
        if block is None:
            return None
        return section_corners_from_block(block[section - 1])

    def township_markers(self, township: int, range_number: int, meridian: int) -> Optional[TownshipMarkers]:
        """Corner markers of all 36 sections, index section - 1."""
        block = self._township_block(township, range_number, meridian)
        if block is None:
            return None
        return tuple(section_corners_from_block(section) for section in block)

    def township_boundary(self, township: int, range_number: int, meridian: int) -> Optional[SectionCorners]:
        """
        Outermost corner markers of a whole township.

        Each corner is the marker furthest in that corner's diagonal
        direction, e.g. the south-east corner maximises longitude - latitude.
        Returns None when the township is missing or has no markers.
        """
        block = self._township_block(township, range_number, meridian)
        if block is None:
            return None

        points = block.reshape(-1, 2)
        points = points[(points[:, 0] != 0) | (points[:, 1] != 0)]
        if len(points) == 0:
            return None

        lat, lon = points[:, 0], points[:, 1]

        def extreme(score: np.ndarray) -> Coordinate:
            found = points[int(np.argmax(score))]
            return Coordinate(float(found[0]), float(found[1]))

        return SectionCorners(
            south_east=extreme(lon - lat),
            south_west=extreme(-lon - lat),
            north_west=extreme(lat - lon),
            north_east=extreme(lat + lon),
        )


_shared_store: Optional[MarkerStore] = None
_shared_lock = threading.Lock()


def get_marker_store() -> MarkerStore:
    """
    Process-wide store over the bundled dataset.
    Built on first call; the dataset itself loads on the first lookup.
    """
    global _shared_store
    store = _shared_store
    if store is None:
        with _shared_lock:
            if _shared_store is None:
                path = dls_dataset_path()
                logger.debug(f"Creating shared DLS marker store for {path}")
                _shared_store = MarkerStore.from_file(path, settings.DLS_EXPECTED_TOWNSHIPS)
            store = _shared_store
    return store


def set_marker_store(store: Optional[MarkerStore]) -> None:
    """Replace the process-wide store (None resets it to the bundled dataset)."""
    global _shared_store
    with _shared_lock:
        _shared_store = store


def reset_marker_store() -> None:
    set_marker_store(None)
