"""
RFM Customer Segmentation
=========================

Recency-Frequency-Monetary customer segmentation for retail transactions:
- RFM aggregation from cleaned transactions
- Standard scaling and K-Means clustering
- Inertia/silhouette diagnostics for choosing K
- Analyst-configured cluster labels and flat-file export

Version: 1.0.0
"""

__version__ = "1.0.0"
__author__ = "Retail Analytics Team"

from .exceptions import (
    SegmentationError,
    ConfigurationError,
    DataValidationError,
    NotFittedError,
    ClusteringError,
)
from .common import load_config, DataLoader, FeatureScaler, Visualizer, Reporter
from .customer_segmentation import (
    RFMFeatureEngineer,
    KMeansSegmenter,
    ClusterLabeler,
    SegmentAnalyzer,
    SegmentationPipeline,
    SegmentationResult,
)

__all__ = [
    "SegmentationError",
    "ConfigurationError",
    "DataValidationError",
    "NotFittedError",
    "ClusteringError",
    "load_config",
    "DataLoader",
    "FeatureScaler",
    "Visualizer",
    "Reporter",
    "RFMFeatureEngineer",
    "KMeansSegmenter",
    "ClusterLabeler",
    "SegmentAnalyzer",
    "SegmentationPipeline",
    "SegmentationResult",
]
