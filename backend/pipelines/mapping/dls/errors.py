"""
DLS Errors
Exception taxonomy for the survey grid boundary engine.

"No data for this key" is never an error: lookups return None for it. The
classes below cover malformed input, a broken dataset and failed searches.
"""
from __future__ import annotations

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .grid_reference import GridReference


class DLSError(Exception):
    """Base class for all DLS engine failures."""


class OutOfRangeError(DLSError, ValueError):
    """A meridian/range/township value does not fit the composite key."""


class DatasetIntegrityError(DLSError):
    """The bundled marker dataset is missing, corrupt or truncated."""


class GeometryInconsistencyError(DLSError):
    """Corner reconstruction was given a combination it cannot complete."""


class OutOfRegionError(DLSError):
    """A coordinate lies outside the meridians/latitude band covered by DLS."""


class ConversionError(DLSError):
    """A grid reference could not be converted to a coordinate."""


class CoordinateParseError(DLSError, ValueError):
    """A DLS location string could not be parsed."""


class NoConvergenceError(DLSError):
    """
    The inverse search hit its step bound.

    The best reference found so far is kept on the exception so callers can
    still use it.
    """

    def __init__(
        self,
        message: str,
        best: Optional["GridReference"] = None,
        distance: Optional[float] = None,
        steps: int = 0,
    ) -> None:
        super().__init__(message)
        self.best = best
        self.distance = distance
        self.steps = steps
