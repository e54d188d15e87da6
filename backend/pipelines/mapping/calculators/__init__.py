"""
Calculators
Distance formulas used to rank candidate DLS locations
"""
from .haversine_calculator import HaversineCalculator
from .geodesic_calculator import GeodesicCalculator

__all__ = ["HaversineCalculator", "GeodesicCalculator"]
