"""
Cache Services Module
Caching services for DLS marker data
"""
from .marker_cache import MarkerCache

__all__ = ["MarkerCache"]
