"""
Haversine Calculator Module
Fast spherical distance calculations used to rank candidate DLS locations
"""
import math

class HaversineCalculator:
    """
    Spherical-earth distance formulas
    Good enough to compare nearby positions; use GeodesicCalculator for survey-grade distances
    """

    @staticmethod
    def relative_distance(
        lat1: float,
        lng1: float,
        lat2: float,
        lng2: float
    ) -> float:
        """
        Half the great-circle angle between two points, in radians

        Monotonic in true distance, so the DLS inverse search uses it to rank
        nearby candidates without committing to an earth radius.

        Args:
            lat1, lng1: First point coordinates
            lat2, lng2: Second point coordinates

        Returns:
            float: Half central angle in radians
        """
        lat1_rad, lat2_rad = math.radians(lat1), math.radians(lat2)
        dlat = math.radians(lat2 - lat1)
        dlng = math.radians(lng2 - lng1)

        s1 = math.sin(dlat / 2)
        s2 = math.sin(dlng / 2)
        a = s1 * s1 + math.cos(lat1_rad) * math.cos(lat2_rad) * s2 * s2
        return math.atan2(math.sqrt(a), math.sqrt(1 - a))

