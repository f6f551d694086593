"""
Customer Segmentation Module
============================

K-Means clustering of RFM features with analyst-supplied cluster labels.
"""

from .rfm_features import RFMFeatureEngineer
from .kmeans_clustering import KMeansSegmenter
from .labeling import ClusterLabeler
from .segment_analysis import SegmentAnalyzer
from .pipeline import SegmentationPipeline, SegmentationResult

__all__ = ["RFMFeatureEngineer", "KMeansSegmenter", "ClusterLabeler",
           "SegmentAnalyzer", "SegmentationPipeline", "SegmentationResult"]
