"""
Segmentation Pipeline Module
============================

Runs the batch: clean RFM table -> scale -> K-Means -> labels.

Usage:
    from rfm_segmentation.common import load_config
    from rfm_segmentation.customer_segmentation import SegmentationPipeline

    pipeline = SegmentationPipeline(load_config("config/settings.yaml"))
    result = pipeline.run(rfm)
    result.segments.to_csv("customer_segments.csv", index=False)
"""

from dataclasses import dataclass
from typing import Optional, List, Dict, Any
import pandas as pd
from loguru import logger

from ..common.config import load_config
from ..common.data_loader import DataLoader
from ..common.preprocessing import FeatureScaler
from .kmeans_clustering import KMeansSegmenter
from .labeling import ClusterLabeler


@dataclass
class SegmentationResult:
    """Output of a single segmentation run."""

    segments: pd.DataFrame
    cluster_means: pd.DataFrame
    centers_original: pd.DataFrame
    centers_scaled: pd.DataFrame
    inertia: float
    n_iter: int
    converged: bool
    n_clusters: int
    n_dropped: int
    scaler: FeatureScaler
    segmenter: KMeansSegmenter

    def to_summary(self) -> Dict[str, Any]:
        """JSON-friendly summary of the run."""
        return {
            'n_customers': len(self.segments),
            'n_dropped': self.n_dropped,
            'n_clusters': self.n_clusters,
            'inertia': self.inertia,
            'n_iter': self.n_iter,
            'converged': self.converged,
            'scaler': self.scaler.get_params(),
            'cluster_means': self.cluster_means.reset_index().to_dict(orient='records'),
            'centers_original': self.centers_original.reset_index().to_dict(orient='records')
        }


class SegmentationPipeline:
    """
    End-to-end RFM segmentation over one static batch.

    The scaler is fitted on exactly the rows being clustered and labeled,
    and output rows keep the input order.

    Example:
        >>> pipeline = SegmentationPipeline()
        >>> result = pipeline.run(rfm)
        >>> result.segments.columns.tolist()
        ['CustomerID', 'Recency', 'Frequency', 'Monetary', 'Cluster', 'ClusterLabel']
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize pipeline.

        Args:
            config: Run configuration (defaults if None)
        """
        self.config = config if config is not None else load_config()
        self.loader = DataLoader.from_config(self.config)
        self.feature_columns = self.loader.feature_columns
        logger.info("SegmentationPipeline initialized")

    @property
    def output_columns(self) -> List[str]:
        """Column order of the segments table: input columns, then Cluster and ClusterLabel."""
        return self.loader.required_columns + [ClusterLabeler.cluster_column, ClusterLabeler.label_column]

    def prepare(self, rfm: pd.DataFrame) -> pd.DataFrame:
        """Coerce types, drop incomplete rows and validate."""
        rfm = self.loader.coerce_types(rfm)
        rfm = self.loader.drop_incomplete_rows(rfm)
        self.loader.validate_rfm(rfm)
        return rfm

    def run(self, rfm: pd.DataFrame) -> SegmentationResult:
        """
        Scale, cluster and label an RFM table.

        Args:
            rfm: Table with CustomerID and the RFM feature columns

        Returns:
            SegmentationResult

        Raises:
            DataValidationError: On a malformed table
            ConfigurationError: On a zero-variance feature, K larger than
                the table, or a label mapping that misses a cluster
            ClusteringError: If fewer than K clusters are found
        """
        n_input = len(rfm)
        clean = self.prepare(rfm)
        n_dropped = n_input - len(clean)

        labeler = ClusterLabeler.from_config(self.config)
        segmenter = KMeansSegmenter.from_config(self.config)
        labeler.check_coverage(segmenter.n_clusters)

        scaler = FeatureScaler(self.feature_columns, method=segmenter.scaling_method)
        scaler.fit(clean)

        segmenter.fit(clean, self.feature_columns, scaler=scaler)

        segments = labeler.apply(clean, segmenter.labels_, n_clusters=segmenter.n_clusters)
        cluster_means = labeler.cluster_means(clean, segmenter.labels_)
        cluster_means[ClusterLabeler.label_column] = [
            labeler.label_for(c) for c in cluster_means.index
        ]

        logger.info(f"Segmented {len(segments)} customers into {segmenter.n_clusters} clusters")

        return SegmentationResult(
            segments=segments,
            cluster_means=cluster_means,
            centers_original=segmenter.get_cluster_centers_original(),
            centers_scaled=segmenter.get_cluster_centers_scaled(),
            inertia=segmenter.inertia_,
            n_iter=segmenter.n_iter_,
            converged=segmenter.converged_,
            n_clusters=segmenter.n_clusters,
            n_dropped=n_dropped,
            scaler=scaler,
            segmenter=segmenter
        )

    def select_k(self, rfm: pd.DataFrame) -> pd.DataFrame:
        """
        Inertia (and optionally silhouette) for each candidate K.

        Args:
            rfm: Table with CustomerID and the RFM feature columns

        Returns:
            DataFrame with columns k, inertia, silhouette, n_iter, converged
        """
        clean = self.prepare(rfm)
        selection = self.config.get('selection', {})

        segmenter = KMeansSegmenter.from_config(self.config)
        return segmenter.evaluate_k_range(
            clean,
            self.feature_columns,
            k_range=(selection.get('k_min', 1), selection.get('k_max', 10)),
            compute_silhouette=selection.get('compute_silhouette', True),
            silhouette_sample_size=selection.get('silhouette_sample_size')
        )
