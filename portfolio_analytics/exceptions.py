"""Exception hierarchy for the analytics engines."""


class AnalyticsError(Exception):
    """Base class for all analytics errors."""


class InvalidArgumentError(AnalyticsError, ValueError):
    """A caller violated an engine's input contract."""


class SimulationCancelledError(AnalyticsError):
    """A Monte Carlo run was cancelled between path batches."""
