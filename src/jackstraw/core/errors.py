"""
Exception hierarchy for jackstraw significance testing.

All errors are fatal for the run that raises them: input errors signal caller
misuse and numerical errors signal malformed input, so nothing is retried.
"""

__all__ = [
    'JackStrawError',
    'ConfigMissingError',
    'ResultMissingError',
    'InsufficientDataError',
    'UnsupportedModeError',
    'DegeneratePCAError',
    'AxisRangeError',
    'SchemaError',
]


class JackStrawError(Exception):
    """Base class for all jackstraw errors."""
    pass


class ConfigMissingError(JackStrawError):
    """Raised when no prior PCA is stored on the dataset."""
    pass


class ResultMissingError(JackStrawError):
    """Raised when significance results are requested before run_jackstraw()."""
    pass


class InsufficientDataError(JackStrawError):
    """Raised when too few features are available to build a null distribution."""
    pass


class UnsupportedModeError(JackStrawError):
    """Raised for modes this package does not implement (e.g. use_full)."""
    pass


class DegeneratePCAError(JackStrawError):
    """Raised when a PCA cannot be computed on the given matrix."""
    pass


class AxisRangeError(JackStrawError, ValueError):
    """Raised when a requested principal component is outside the tested range."""
    pass


class SchemaError(JackStrawError):
    """Raised when a persisted jackstraw record cannot be upgraded."""
    pass
