"""Exceptions raised by the projection, analysis and risk engines."""


class ProjectionError(ValueError):
    """Base class for errors raised while evaluating a retirement plan."""


class PreconditionError(ProjectionError):
    """Raised before a projection when the scenario inputs are inconsistent."""


class HorizonExceededError(ProjectionError):
    """Raised when an analysis needs a year beyond the projection horizon."""


class HistoricalDataUnavailableError(ProjectionError):
    """Raised when historical sampling is requested but no series is loaded."""


class AllocationNotFoundError(KeyError):
    """Raised when a lifecycle fund has no glide path loaded."""
