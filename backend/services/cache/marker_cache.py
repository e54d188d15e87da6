"""
DLS Marker Cache Service
Memoizes decoded township records on top of a marker store
"""
import logging
import threading
from typing import Dict, Any, Iterable, Optional, Tuple

from pipelines.mapping.dls.marker_store import MarkerSource, TownshipMarkers
from pipelines.mapping.dls.types import SectionCorners

logger = logging.getLogger(__name__)

TownshipKey = Tuple[int, int, int]  # (township, range, meridian)

_MISSING = object()

class MarkerCache:
    """
    Caching layer over a MarkerSource
    The inverse search revisits the same townships many times; this keeps
    each township's decoded SectionCorners instead of rebuilding them per lookup
    """

    def __init__(self, source: Optional[MarkerSource] = None):
        """
        Args:
            source: Underlying store (defaults to the shared bundled store)
        """
        if source is None:
            # Import here to avoid loading the store when only the cache type is needed
            from pipelines.mapping.dls.marker_store import get_marker_store
            source = get_marker_store()

        self.source = source
        self._townships: Dict[TownshipKey, Any] = {}
        self._lock = threading.Lock()
        # Counters are bumped on the lock-free fast path, so they get their own lock
        self._stats_lock = threading.Lock()
        self.cache_stats = {
            "hits": 0,
            "misses": 0,
        }

    def township_markers(self, township: int, range_number: int, meridian: int) -> Optional[TownshipMarkers]:
        key = (township, range_number, meridian)
        cached = self._townships.get(key, _MISSING)
        if cached is not _MISSING:
            self._count("hits")
            return cached

        with self._lock:
            cached = self._townships.get(key, _MISSING)
            if cached is not _MISSING:
                self._count("hits")
                return cached

            self._count("misses")
            logger.debug(f"Marker cache miss for township {township} range {range_number} W{meridian}")
            markers = self.source.township_markers(township, range_number, meridian)
            self._townships[key] = markers
            return markers

    def _count(self, name: str) -> None:
        with self._stats_lock:
            self.cache_stats[name] += 1

    def boundary_markers(self, section: int, township: int, range_number: int, meridian: int) -> Optional[SectionCorners]:
        if not 1 <= section <= 36:
            return None
        markers = self.township_markers(township, range_number, meridian)
        if markers is None:
            return None
        return markers[section - 1]

    def township_boundary(self, township: int, range_number: int, meridian: int) -> Optional[SectionCorners]:
        return self.source.township_boundary(township, range_number, meridian)

    def preload_townships(self, townships: Iterable[TownshipKey]) -> dict:
        """
        Warm the cache for a batch of (township, range, meridian) keys

        Returns:
            dict: Which keys had data and which did not
        """
        results = {"loaded": [], "missing": []}
        for township, range_number, meridian in townships:
            markers = self.township_markers(township, range_number, meridian)
            bucket = "loaded" if markers is not None else "missing"
            results[bucket].append([township, range_number, meridian])

        logger.info(f"✅ Preload complete: {len(results['loaded'])} townships cached, {len(results['missing'])} missing")
        return {"success": True, "results": results}

    def _stats_snapshot(self) -> dict:
        with self._stats_lock:
            return dict(self.cache_stats)

    def get_cache_info(self) -> dict:
        """Get cache information and statistics"""
        return {
            "success": True,
            "townships_cached": len(self._townships),
            "statistics": self._stats_snapshot(),
        }

    def clear(self) -> dict:
        """Drop memoized townships (the underlying dataset stays loaded)"""
        with self._lock:
            count = len(self._townships)
            self._townships.clear()
            with self._stats_lock:
                for name in self.cache_stats:
                    self.cache_stats[name] = 0

        logger.info(f"🧹 Cleared {count} cached DLS townships")
        return {"success": True, "message": f"Cleared {count} cached townships"}
