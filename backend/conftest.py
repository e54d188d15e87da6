"""
Shared pytest fixtures: a small synthetic DLS marker dataset laid out on the
ideal survey grid, so every surveyed corner agrees with the grid estimate.
"""
import numpy as np
import pytest

from pipelines.mapping.dls.composite_key import encode
from pipelines.mapping.dls.converter import GridConverter
from pipelines.mapping.dls.dataset import MARKER_SHAPE, decode_dataset, encode_dataset
from pipelines.mapping.dls.marker_store import MarkerStore, reset_marker_store, set_marker_store
from pipelines.mapping.dls.survey_constants import (
    BASE_LATITUDE,
    SECTION_HEIGHT_DEG,
    SECTIONS_PER_SIDE,
    TOWNSHIP_HEIGHT_DEG,
    f32,
    meridian_longitude,
    section_position,
    section_width_deg,
)

SYNTHETIC_MERIDIAN = 5
SYNTHETIC_RANGES = (1, 2, 3)
SYNTHETIC_TOWNSHIPS = (1, 2, 3)

# Township 2 range 2 carries damaged sections
DAMAGED_TOWNSHIP = (2, 2, SYNTHETIC_MERIDIAN)
EMPTY_SECTION = 20          # no corners surveyed
SOUTH_EAST_ONLY_SECTION = 21
MISSING_NORTH_EAST_SECTION = 22
EAST_EDGE_SECTION = 15      # SE + NE only


def ideal_section_corners(section, township, range_number, meridian):
    """float32[4, 2] of (lat, lon) in SE, SW, NW, NE order on the ideal grid"""
    row, col = section_position(section)
    width = section_width_deg(township)
    south = BASE_LATITUDE + f32(township - 1) * TOWNSHIP_HEIGHT_DEG + f32(row) * SECTION_HEIGHT_DEG
    east = meridian_longitude(meridian) + f32((range_number - 1) * SECTIONS_PER_SIDE + col) * width
    north = south + SECTION_HEIGHT_DEG
    west = east + width
    return np.array(
        [[south, east], [south, west], [north, west], [north, east]],
        dtype=np.float32,
    )


def ideal_township(township, range_number, meridian):
    block = np.zeros(MARKER_SHAPE, dtype=np.float32)
    for section in range(1, 37):
        block[section - 1] = ideal_section_corners(section, township, range_number, meridian)
    return block


def build_synthetic_townships():
    townships = {}
    for range_number in SYNTHETIC_RANGES:
        for township in SYNTHETIC_TOWNSHIPS:
            townships[encode(SYNTHETIC_MERIDIAN, range_number, township)] = ideal_township(
                township, range_number, SYNTHETIC_MERIDIAN
            )

    damaged = townships[encode(SYNTHETIC_MERIDIAN, DAMAGED_TOWNSHIP[1], DAMAGED_TOWNSHIP[0])]
    damaged[EMPTY_SECTION - 1] = 0
    damaged[SOUTH_EAST_ONLY_SECTION - 1, 1:] = 0
    damaged[MISSING_NORTH_EAST_SECTION - 1, 3] = 0
    damaged[EAST_EDGE_SECTION - 1, 1:3] = 0
    return townships


@pytest.fixture(scope="session")
def synthetic_townships():
    return build_synthetic_townships()


@pytest.fixture(scope="session")
def synthetic_blob(synthetic_townships):
    return encode_dataset(synthetic_townships)


@pytest.fixture
def synthetic_store(synthetic_blob):
    return MarkerStore.from_dataset(decode_dataset(synthetic_blob, expected_count=None))


@pytest.fixture
def synthetic_converter(synthetic_store):
    return GridConverter(synthetic_store, allow_estimate=True)


@pytest.fixture
def shared_synthetic_store(synthetic_store):
    """Install the synthetic store as the process-wide store for the test"""
    set_marker_store(synthetic_store)
    yield synthetic_store
    reset_marker_store()
