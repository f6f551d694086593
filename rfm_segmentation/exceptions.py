"""
Exceptions
==========

Error hierarchy for the segmentation pipeline. Configuration and data
errors also subclass ValueError so callers catching ValueError keep working.
"""


class SegmentationError(Exception):
    """Base class for all segmentation pipeline errors."""


class ConfigurationError(SegmentationError, ValueError):
    """Invalid run configuration or input that makes a step undefined."""


class DataValidationError(SegmentationError, ValueError):
    """Input table does not satisfy the RFM table contract."""


class NotFittedError(SegmentationError, ValueError):
    """A transform or predict was requested before fit."""


class ClusteringError(SegmentationError):
    """K-Means produced an unusable result."""
