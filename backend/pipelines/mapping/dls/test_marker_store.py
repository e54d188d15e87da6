from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import (
    DAMAGED_TOWNSHIP,
    EMPTY_SECTION,
    MISSING_NORTH_EAST_SECTION,
    SYNTHETIC_MERIDIAN,
    ideal_section_corners,
)
from pipelines.mapping.dls.dataset import decode_dataset
from pipelines.mapping.dls.errors import DatasetIntegrityError
from pipelines.mapping.dls.marker_store import MarkerStore, get_marker_store, set_marker_store
from pipelines.mapping.dls.types import Corner


def test_boundary_markers_returns_surveyed_corners(synthetic_store) -> None:
    corners = synthetic_store.boundary_markers(11, 1, 1, SYNTHETIC_MERIDIAN)
    expected = ideal_section_corners(11, 1, 1, SYNTHETIC_MERIDIAN)

    assert corners.is_complete
    assert corners.south_east.latitude == pytest.approx(float(expected[0, 0]))
    assert corners.south_east.longitude == pytest.approx(float(expected[0, 1]))
    assert corners.north_west.latitude == pytest.approx(float(expected[2, 0]))
    assert corners.north_west.longitude == pytest.approx(float(expected[2, 1]))


def test_zero_pairs_are_absent_corners(synthetic_store) -> None:
    township, range_number, meridian = DAMAGED_TOWNSHIP

    empty = synthetic_store.boundary_markers(EMPTY_SECTION, township, range_number, meridian)
    assert empty is not None
    assert empty.count == 0

    partial = synthetic_store.boundary_markers(MISSING_NORTH_EAST_SECTION, township, range_number, meridian)
    assert partial.count == 3
    assert Corner.NORTH_EAST not in partial.known


@pytest.mark.parametrize(
    "section, township, range_number, meridian",
    [
        (1, 50, 1, SYNTHETIC_MERIDIAN),   # not in the dataset
        (0, 1, 1, SYNTHETIC_MERIDIAN),    # invalid section
        (37, 1, 1, SYNTHETIC_MERIDIAN),
        (1, 127, 127, 127),               # outside the key ranges
        (1, 1, 1, 8),                     # coast meridian never has records
    ],
)
def test_missing_lookups_return_none(synthetic_store, section, township, range_number, meridian) -> None:
    assert synthetic_store.boundary_markers(section, township, range_number, meridian) is None


def test_township_markers_in_section_order(synthetic_store) -> None:
    markers = synthetic_store.township_markers(1, 1, SYNTHETIC_MERIDIAN)
    assert len(markers) == 36
    for section in (1, 6, 7, 36):
        assert markers[section - 1] == synthetic_store.boundary_markers(section, 1, 1, SYNTHETIC_MERIDIAN)
    assert synthetic_store.township_markers(99, 1, SYNTHETIC_MERIDIAN) is None


def test_township_boundary_picks_outer_corners(synthetic_store) -> None:
    boundary = synthetic_store.township_boundary(1, 1, SYNTHETIC_MERIDIAN)

    south_east = ideal_section_corners(1, 1, 1, SYNTHETIC_MERIDIAN)[0]
    north_west = ideal_section_corners(31, 1, 1, SYNTHETIC_MERIDIAN)[2]
    assert boundary.south_east.latitude == pytest.approx(float(south_east[0]))
    assert boundary.south_east.longitude == pytest.approx(float(south_east[1]))
    assert boundary.north_west.latitude == pytest.approx(float(north_west[0]))
    assert boundary.north_west.longitude == pytest.approx(float(north_west[1]))
    assert boundary.south_west.longitude < boundary.south_east.longitude
    assert boundary.north_east.latitude > boundary.south_east.latitude


def test_dataset_loads_lazily_and_once(synthetic_blob) -> None:
    calls = []
    gate = threading.Event()

    def loader():
        calls.append(1)
        gate.wait(timeout=5)
        return decode_dataset(synthetic_blob, expected_count=None)

    store = MarkerStore(loader)
    assert not store.is_loaded

    with ThreadPoolExecutor(max_workers=8) as pool:
        futures = [pool.submit(store.boundary_markers, 1, 1, 1, SYNTHETIC_MERIDIAN) for _ in range(16)]
        gate.set()
        results = [f.result() for f in futures]

    assert len(calls) == 1
    assert store.is_loaded
    assert all(r == results[0] for r in results)


def test_missing_resource_surfaces_integrity_error(tmp_path) -> None:
    store = MarkerStore.from_file(tmp_path / "absent.gz")
    with pytest.raises(DatasetIntegrityError):
        store.boundary_markers(1, 1, 1, 1)


def test_failed_load_is_not_retried() -> None:
    calls = []

    def loader():
        calls.append(1)
        raise DatasetIntegrityError("truncated deflate stream")

    store = MarkerStore(loader)
    for _ in range(3):
        with pytest.raises(DatasetIntegrityError, match="truncated"):
            store.boundary_markers(1, 1, 1, 1)

    assert len(calls) == 1
    assert not store.is_loaded


def test_shared_store_can_be_replaced(shared_synthetic_store) -> None:
    assert get_marker_store() is shared_synthetic_store


def test_shared_store_is_created_once() -> None:
    set_marker_store(None)
    try:
        with ThreadPoolExecutor(max_workers=8) as pool:
            stores = list(pool.map(lambda _: get_marker_store(), range(16)))
        assert all(store is stores[0] for store in stores)
        assert not stores[0].is_loaded
    finally:
        set_marker_store(None)
