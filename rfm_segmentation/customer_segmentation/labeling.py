"""
Cluster Labeling Module
=======================

Attaches business names to cluster IDs. The ID -> name table is supplied
by the analyst after reviewing per-cluster means; it is configuration and
is never derived from the data.

Usage:
    from rfm_segmentation.customer_segmentation import ClusterLabeler

    labeler = ClusterLabeler({0: 'Loyal Customers', 1: 'Occasional Shoppers'})
    means = labeler.cluster_means(rfm, labels)
    segments = labeler.apply(rfm, labels)
"""

import pandas as pd
import numpy as np
from typing import Optional, List, Dict, Any, Sequence
from loguru import logger

from ..common.config import normalize_labels
from ..exceptions import ConfigurationError


class ClusterLabeler:
    """
    Applies a fixed cluster ID -> label mapping.

    Example:
        >>> labeler = ClusterLabeler({0: 'Loyal Customers', 1: 'Super VIPs'})
        >>> labeler.label_for(1)
        'Super VIPs'
    """

    cluster_column = 'Cluster'
    label_column = 'ClusterLabel'

    def __init__(
        self,
        labels: Dict[Any, str],
        feature_columns: Optional[List[str]] = None
    ):
        """
        Initialize ClusterLabeler.

        Args:
            labels: Mapping of cluster ID to business label
            feature_columns: Unscaled RFM columns used for cluster means
        """
        self.labels = normalize_labels(labels)
        self.feature_columns = feature_columns or ['Recency', 'Frequency', 'Monetary']
        logger.info(f"ClusterLabeler initialized with {len(self.labels)} labels")

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'ClusterLabeler':
        return cls(
            config.get('labels', {}),
            feature_columns=config.get('data', {}).get('feature_columns')
        )

    def label_for(self, cluster_id: int) -> str:
        try:
            return self.labels[int(cluster_id)]
        except KeyError:
            raise ConfigurationError(f"No label configured for cluster {cluster_id}") from None

    def check_coverage(self, n_clusters: int) -> None:
        """
        Check that the mapping names every cluster ID in [0, n_clusters).

        Raises:
            ConfigurationError: If any cluster ID has no label
        """
        missing = [k for k in range(n_clusters) if k not in self.labels]
        if missing:
            raise ConfigurationError(
                f"Label mapping has no entry for cluster(s) {missing}; "
                f"configure a label for each of the {n_clusters} clusters"
            )

        extra = sorted(k for k in self.labels if not 0 <= k < n_clusters)
        if extra:
            logger.warning(f"Ignoring labels for cluster IDs outside [0, {n_clusters}): {extra}")

    def cluster_means(
        self,
        df: pd.DataFrame,
        cluster_ids: Sequence[int]
    ) -> pd.DataFrame:
        """
        Per-cluster mean of the unscaled RFM features.

        Args:
            df: Original RFM records
            cluster_ids: Cluster ID per row, positionally aligned with df

        Returns:
            DataFrame indexed by cluster ID with a mean per feature and a
            customer count
        """
        cluster_ids = np.asarray(cluster_ids)
        if len(cluster_ids) != len(df):
            raise ConfigurationError(
                f"Got {len(cluster_ids)} cluster IDs for {len(df)} records"
            )

        grouped = df[self.feature_columns].groupby(
            pd.Series(cluster_ids, index=df.index, name=self.cluster_column)
        )
        means = grouped.mean()
        means['Count'] = grouped.size()

        return means.sort_index()

    def apply(
        self,
        df: pd.DataFrame,
        cluster_ids: Sequence[int],
        n_clusters: Optional[int] = None
    ) -> pd.DataFrame:
        """
        Append Cluster and ClusterLabel columns.

        Args:
            df: Original RFM records
            cluster_ids: Cluster ID per row, positionally aligned with df
            n_clusters: K used for the fit (inferred from the IDs if None)

        Returns:
            Copy of df with Cluster (int) and ClusterLabel (str) appended

        Raises:
            ConfigurationError: If a cluster ID has no configured label
        """
        cluster_ids = np.asarray(cluster_ids, dtype=int)
        if len(cluster_ids) != len(df):
            raise ConfigurationError(
                f"Got {len(cluster_ids)} cluster IDs for {len(df)} records"
            )

        if n_clusters is None:
            n_clusters = int(cluster_ids.max()) + 1 if len(cluster_ids) else 0
        self.check_coverage(n_clusters)

        result = df.copy()
        result[self.cluster_column] = cluster_ids
        result[self.label_column] = [self.labels[c] for c in cluster_ids]

        counts = result[self.label_column].value_counts()
        logger.info(f"Applied cluster labels:\n{counts}")

        return result
