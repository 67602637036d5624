"""
Custom exceptions for the gridcluster package.
"""


class GridClusterError(Exception):
    """Base exception for all gridcluster errors."""
    pass


class DataValidationError(GridClusterError):
    """Raised when feature data validation fails."""
    pass


class ConfigurationError(GridClusterError):
    """Raised when clustering options are invalid."""
    pass


class ClusteringError(GridClusterError):
    """Raised when clustering operations fail."""
    pass


class DataLoadError(GridClusterError):
    """Raised when data loading fails."""
    pass
