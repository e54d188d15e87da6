import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import DAMAGED_TOWNSHIP, EMPTY_SECTION, SYNTHETIC_MERIDIAN
from pipelines.mapping.dls.converter import GridConverter
from pipelines.mapping.dls.grid_reference import GridReference
from services.cache.marker_cache import MarkerCache


class CountingSource:
    """Wraps a store and counts township lookups"""

    def __init__(self, store):
        self.store = store
        self.calls = 0
        self._lock = threading.Lock()

    def township_markers(self, township, range_number, meridian):
        with self._lock:
            self.calls += 1
        return self.store.township_markers(township, range_number, meridian)

    def boundary_markers(self, section, township, range_number, meridian):
        return self.store.boundary_markers(section, township, range_number, meridian)

    def township_boundary(self, township, range_number, meridian):
        return self.store.township_boundary(township, range_number, meridian)


@pytest.fixture
def counting_source(synthetic_store):
    return CountingSource(synthetic_store)


def test_lookups_match_the_store(synthetic_store, counting_source) -> None:
    cache = MarkerCache(counting_source)
    for section in (1, 11, 36):
        assert cache.boundary_markers(section, 2, 1, SYNTHETIC_MERIDIAN) == synthetic_store.boundary_markers(
            section, 2, 1, SYNTHETIC_MERIDIAN
        )
    assert counting_source.calls == 1
    assert cache.cache_stats == {"hits": 2, "misses": 1}


def test_missing_townships_are_cached_too(counting_source) -> None:
    cache = MarkerCache(counting_source)
    assert cache.township_markers(60, 1, SYNTHETIC_MERIDIAN) is None
    assert cache.boundary_markers(11, 60, 1, SYNTHETIC_MERIDIAN) is None
    assert counting_source.calls == 1


def test_invalid_section_returns_none(counting_source) -> None:
    cache = MarkerCache(counting_source)
    assert cache.boundary_markers(0, 2, 1, SYNTHETIC_MERIDIAN) is None
    assert cache.boundary_markers(37, 2, 1, SYNTHETIC_MERIDIAN) is None
    assert counting_source.calls == 0


def test_damaged_section_passes_through(counting_source) -> None:
    township, range_number, meridian = DAMAGED_TOWNSHIP
    corners = MarkerCache(counting_source).boundary_markers(EMPTY_SECTION, township, range_number, meridian)
    assert corners is not None
    assert corners.count == 0


def test_concurrent_first_access_populates_once(counting_source) -> None:
    cache = MarkerCache(counting_source)
    barrier = threading.Barrier(8)

    def lookup(_):
        barrier.wait()
        return cache.township_markers(3, 3, SYNTHETIC_MERIDIAN)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lookup, range(8)))

    assert counting_source.calls == 1
    assert all(result is results[0] for result in results)
    assert cache.cache_stats["misses"] == 1
    assert cache.cache_stats["hits"] == 7


def test_preload_and_info(counting_source) -> None:
    cache = MarkerCache(counting_source)
    result = cache.preload_townships([(1, 1, SYNTHETIC_MERIDIAN), (2, 1, SYNTHETIC_MERIDIAN), (99, 1, SYNTHETIC_MERIDIAN)])
    assert result["success"]
    assert result["results"]["loaded"] == [[1, 1, SYNTHETIC_MERIDIAN], [2, 1, SYNTHETIC_MERIDIAN]]
    assert result["results"]["missing"] == [[99, 1, SYNTHETIC_MERIDIAN]]

    info = cache.get_cache_info()
    assert info["townships_cached"] == 3
    assert info["statistics"]["misses"] == 3


def test_clear_drops_townships_and_statistics(counting_source) -> None:
    cache = MarkerCache(counting_source)
    cache.township_markers(1, 1, SYNTHETIC_MERIDIAN)
    cache.township_markers(1, 1, SYNTHETIC_MERIDIAN)

    result = cache.clear()
    assert result["success"]
    assert cache.get_cache_info()["townships_cached"] == 0
    assert cache.cache_stats == {"hits": 0, "misses": 0}

    cache.township_markers(1, 1, SYNTHETIC_MERIDIAN)
    assert counting_source.calls == 2


def test_township_boundary_passes_through(synthetic_store, counting_source) -> None:
    cache = MarkerCache(counting_source)
    assert cache.township_boundary(1, 1, SYNTHETIC_MERIDIAN) == synthetic_store.township_boundary(1, 1, SYNTHETIC_MERIDIAN)


def test_converter_over_cache_matches_store(synthetic_store) -> None:
    ref = GridReference(7, 11, 2, 1, SYNTHETIC_MERIDIAN)
    cached = GridConverter(MarkerCache(synthetic_store))
    assert cached.to_coordinate(ref) == GridConverter(synthetic_store).to_coordinate(ref)


def test_defaults_to_shared_store(shared_synthetic_store) -> None:
    assert MarkerCache().source is shared_synthetic_store


def test_hit_counts_are_exact_under_concurrent_lookups(counting_source) -> None:
    cache = MarkerCache(counting_source)
    cache.township_markers(2, 2, SYNTHETIC_MERIDIAN)

    def lookups(_):
        for _ in range(500):
            cache.boundary_markers(11, 2, 2, SYNTHETIC_MERIDIAN)

    with ThreadPoolExecutor(max_workers=16) as pool:
        list(pool.map(lookups, range(16)))

    assert cache.get_cache_info()["statistics"] == {"hits": 16 * 500, "misses": 1}


def test_clear_resets_counters_in_place(counting_source) -> None:
    cache = MarkerCache(counting_source)
    stats = cache.cache_stats
    cache.township_markers(1, 1, SYNTHETIC_MERIDIAN)
    cache.clear()
    cache.township_markers(1, 1, SYNTHETIC_MERIDIAN)
    assert cache.cache_stats is stats
    assert stats == {"hits": 0, "misses": 1}
