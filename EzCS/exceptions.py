"""
Exceptions raised by the record selection toolbox
"""


class SelectionError(Exception):
    """Base class for all record selection errors."""


class ScenarioError(SelectionError, ValueError):
    """The rupture scenario or target amplitude is outside the valid domain of the ground motion model."""


class PoolExhaustedError(SelectionError):
    """Not enough usable, unused records remain in the candidate pool."""


class ConfigurationError(SelectionError, ValueError):
    """Selection options are inconsistent."""
