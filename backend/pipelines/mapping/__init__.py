"""
Mapping Pipeline Module
Geographic mapping functionality for converting Dominion Land Survey locations to real-world coordinates
"""
from .dls.coordinate_service import DLSCoordinateService
from .dls.converter import GridConverter
from .dls.locator import InverseLocator

__all__ = ["DLSCoordinateService", "GridConverter", "InverseLocator"]
