"""
K-Means Clustering Module
=========================

Lloyd's K-Means over standardized RFM features, plus the elbow/silhouette
diagnostics used by the analyst to choose K.

Usage:
    from rfm_segmentation.customer_segmentation import KMeansSegmenter

    segmenter = KMeansSegmenter(n_clusters=4, random_state=42)
    segmenter.fit(rfm, ['Recency', 'Frequency', 'Monetary'])
    labels = segmenter.labels_

    diagnostics = segmenter.evaluate_k_range(rfm, k_range=(1, 10))
"""

import warnings
import pandas as pd
import numpy as np
from typing import Optional, List, Dict, Any, Tuple
from sklearn.cluster import KMeans
from sklearn.exceptions import ConvergenceWarning
from sklearn.metrics import silhouette_score, calinski_harabasz_score, davies_bouldin_score
from loguru import logger

from ..common.preprocessing import FeatureScaler
from ..exceptions import ConfigurationError, ClusteringError, NotFittedError


class KMeansSegmenter:
    """
    K-Means clustering for customer segmentation.

    Features:
    - Standard scaling fitted once per input batch
    - Multiple initializations, keeping the lowest-inertia run
    - Explicit convergence flag instead of silent iteration caps
    - Inertia/silhouette per candidate K (K itself is never auto-selected)

    Example:
        >>> segmenter = KMeansSegmenter(n_clusters=4)
        >>> segmenter.fit(rfm, ['Recency', 'Frequency', 'Monetary'])
        >>> segmenter.converged_
        True
    """

    def __init__(
        self,
        n_clusters: int = 4,
        init: str = 'k-means++',
        n_init: int = 10,
        max_iter: int = 300,
        tol: float = 1e-4,
        random_state: Optional[int] = 42,
        scaling_method: str = 'standard'
    ):
        """
        Initialize K-Means Segmenter.

        Args:
            n_clusters: Number of clusters, chosen by the analyst
            init: Initialization method ('k-means++' or 'random')
            n_init: Number of independent initializations
            max_iter: Maximum Lloyd iterations per initialization
            tol: Centroid shift tolerance for convergence
            random_state: Random seed for reproducibility
            scaling_method: Feature scaling method
        """
        self.n_clusters = n_clusters
        self.init = init
        self.n_init = n_init
        self.max_iter = max_iter
        self.tol = tol
        self.random_state = random_state
        self.scaling_method = scaling_method

        self.model = None
        self.scaler = None
        self.feature_columns = None
        self.cluster_centers_ = None
        self.labels_ = None
        self.inertia_ = None
        self.n_iter_ = None
        self.converged_ = None

        # For cluster selection
        self.k_range = None
        self.selection_results_ = None

        logger.info("KMeansSegmenter initialized")

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'KMeansSegmenter':
        """Build a segmenter from the ``clustering`` section of a run configuration."""
        clustering = config.get('clustering', {})
        return cls(
            n_clusters=clustering.get('n_clusters', 4),
            init=clustering.get('init', 'k-means++'),
            n_init=clustering.get('n_init', 10),
            max_iter=clustering.get('max_iter', 300),
            tol=clustering.get('tol', 1e-4),
            random_state=clustering.get('random_state', 42),
            scaling_method=config.get('scaling', {}).get('method', 'standard')
        )

    def fit(
        self,
        df: pd.DataFrame,
        feature_columns: Optional[List[str]] = None,
        scaler: Optional[FeatureScaler] = None
    ) -> 'KMeansSegmenter':
        """
        Fit K-Means model to data.

        Row i of ``labels_`` belongs to row i of df.

        Args:
            df: DataFrame with customer features, no missing values
            feature_columns: List of feature column names
            scaler: Already-fitted scaler to reuse (fitted on df if None)

        Returns:
            Self for method chaining

        Raises:
            ConfigurationError: If K exceeds the number of rows or a feature
                has zero variance
            ClusteringError: If fewer than K distinct clusters are found

        Example:
            >>> segmenter.fit(rfm, ['Recency', 'Frequency', 'Monetary'])
        """
        self.feature_columns = feature_columns or ['Recency', 'Frequency', 'Monetary']

        if scaler is None:
            scaler = FeatureScaler(self.feature_columns, method=self.scaling_method)
            scaler.fit(df)
        self.scaler = scaler
        X_scaled = self.scaler.transform(df)

        if self.n_clusters > len(X_scaled):
            raise ConfigurationError(
                f"n_clusters={self.n_clusters} exceeds the number of customers ({len(X_scaled)})"
            )

        self.model = self._build_model(self.n_clusters)
        self.labels_ = self._fit_model(self.model, X_scaled)
        self.cluster_centers_ = self.model.cluster_centers_
        self.inertia_ = float(self.model.inertia_)
        self.n_iter_ = int(self.model.n_iter_)
        self.converged_ = self._has_converged(self.model, X_scaled, self.labels_)

        n_found = len(np.unique(self.labels_))
        if n_found != self.n_clusters:
            raise ClusteringError(
                f"K-Means found {n_found} distinct clusters, expected {self.n_clusters}"
            )

        if not self.converged_:
            logger.warning(
                f"K-Means did not converge within max_iter={self.max_iter}; "
                f"returning best assignment found"
            )

        logger.info(f"Fitted K-Means with {self.n_clusters} clusters")
        logger.info(f"Inertia: {self.inertia_:.2f} after {self.n_iter_} iterations")

        return self

    def predict(self, df: pd.DataFrame) -> np.ndarray:
        """
        Predict cluster assignments for new data using the fitted scaler.

        Args:
            df: DataFrame with features

        Returns:
            Array of cluster labels

        Example:
            >>> labels = segmenter.predict(new_customers)
        """
        self._check_fitted()
        X_scaled = self.scaler.transform(df)
        return self.model.predict(X_scaled)

    def fit_predict(
        self,
        df: pd.DataFrame,
        feature_columns: Optional[List[str]] = None
    ) -> np.ndarray:
        """
        Fit model and return cluster labels.

        Args:
            df: DataFrame with features
            feature_columns: Feature column names

        Returns:
            Array of cluster labels
        """
        self.fit(df, feature_columns)
        return self.labels_

    def _build_model(self, n_clusters: int) -> KMeans:
        return KMeans(
            n_clusters=n_clusters,
            init=self.init,
            n_init=self.n_init,
            max_iter=self.max_iter,
            tol=self.tol,
            random_state=self.random_state,
            algorithm='lloyd'
        )

    def _fit_model(self, model: KMeans, X: np.ndarray) -> np.ndarray:
        """Fit model on X, routing sklearn convergence warnings to the log."""
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter('always', ConvergenceWarning)
            labels = model.fit_predict(X)

        for warning in caught:
            if issubclass(warning.category, ConvergenceWarning):
                logger.warning(f"K-Means (k={model.n_clusters}): {warning.message}")
            else:
                warnings.warn_explicit(
                    warning.message, warning.category, warning.filename, warning.lineno
                )

        return labels

    @staticmethod
    def _has_converged(model: KMeans, X: np.ndarray, labels: np.ndarray) -> bool:
        """
        Whether the fitted centres are a fixed point of one more Lloyd step.

        sklearn reports n_iter_ == max_iter both when the cap stopped the
        run and when the run converged on its last allowed iteration, so a
        run at the cap is checked by recomputing the centroids from its
        labels and comparing the shift with sklearn's scaled tolerance.
        """
        if model.n_iter_ < model.max_iter:
            return True

        centers = model.cluster_centers_
        shift = 0.0
        for k in range(len(centers)):
            members = X[labels == k]
            if len(members):
                shift += float(np.sum((members.mean(axis=0) - centers[k]) ** 2))

        tolerance = model.tol * float(np.mean(np.var(X, axis=0)))
        return bool(shift <= tolerance or np.isclose(shift, 0.0))

    def evaluate_k_range(
        self,
        df: pd.DataFrame,
        feature_columns: Optional[List[str]] = None,
        k_range: Tuple[int, int] = (1, 10),
        compute_silhouette: bool = True,
        silhouette_sample_size: Optional[int] = None
    ) -> pd.DataFrame:
        """
        Fit K-Means for every K in a range and record the diagnostics.

        The analyst reads the elbow of the inertia curve; this method does
        not pick K.

        Args:
            df: DataFrame with customer features
            feature_columns: Feature column names
            k_range: Inclusive (min, max) range of K
            compute_silhouette: Also compute silhouette scores
            silhouette_sample_size: Rows sampled for silhouette (None for all)

        Returns:
            DataFrame with columns k, inertia, silhouette, n_iter, converged

        Example:
            >>> diag = segmenter.evaluate_k_range(rfm, k_range=(1, 10))
            >>> diag[['k', 'inertia']]
        """
        feature_columns = feature_columns or self.feature_columns or ['Recency', 'Frequency', 'Monetary']
        k_min, k_max = k_range
        if k_min < 1 or k_max < k_min:
            raise ConfigurationError(f"Invalid K range: {k_range}")

        scaler = FeatureScaler(feature_columns, method=self.scaling_method)
        X = scaler.fit_transform(df)
        n_samples = len(X)

        if k_max > n_samples:
            logger.warning(f"K range truncated to {n_samples}: only {n_samples} customers")
            k_max = n_samples
        if k_min > k_max:
            raise ConfigurationError(f"K range {k_range} has no K <= {n_samples} customers")

        self.k_range = range(k_min, k_max + 1)
        rows = []

        for k in self.k_range:
            kmeans = self._build_model(k)
            labels = self._fit_model(kmeans, X)

            silhouette = np.nan
            n_labels = len(np.unique(labels))
            if compute_silhouette and 2 <= n_labels <= n_samples - 1:
                sample_size = silhouette_sample_size
                if sample_size is not None and sample_size >= n_samples:
                    sample_size = None
                silhouette = float(silhouette_score(
                    X, labels, sample_size=sample_size, random_state=self.random_state
                ))

            rows.append({
                'k': k,
                'inertia': float(kmeans.inertia_),
                'silhouette': silhouette,
                'n_iter': int(kmeans.n_iter_),
                'converged': self._has_converged(kmeans, X, labels)
            })
            logger.debug(f"k={k}: inertia={kmeans.inertia_:.2f}, silhouette={silhouette:.3f}")

        self.selection_results_ = pd.DataFrame(rows, columns=['k', 'inertia', 'silhouette', 'n_iter', 'converged'])
        logger.info(f"Evaluated K from {k_min} to {k_max}")
        return self.selection_results_

    def get_cluster_metrics(self, df: pd.DataFrame) -> Dict[str, float]:
        """
        Calculate clustering quality metrics on the fitted data.

        Args:
            df: DataFrame the model was fitted on

        Returns:
            Dictionary of clustering metrics

        Example:
            >>> metrics = segmenter.get_cluster_metrics(rfm)
            >>> print(f"Silhouette: {metrics['silhouette_score']:.3f}")
        """
        self._check_fitted()

        X_scaled = self.scaler.transform(df)
        labels = self.model.predict(X_scaled)

        metrics = {
            'n_clusters': self.n_clusters,
            'inertia': self.inertia_,
            'n_iter': self.n_iter_,
            'converged': self.converged_
        }

        if 2 <= len(np.unique(labels)) <= len(X_scaled) - 1:
            metrics.update({
                'silhouette_score': float(silhouette_score(X_scaled, labels)),
                'calinski_harabasz': float(calinski_harabasz_score(X_scaled, labels)),
                'davies_bouldin': float(davies_bouldin_score(X_scaled, labels))
            })

        return metrics

    def get_cluster_centers_original(self) -> pd.DataFrame:
        """
        Get cluster centers in original (unscaled) feature space.

        Returns:
            DataFrame with cluster centers indexed by cluster ID
        """
        self._check_fitted()

        centers = self.scaler.inverse_transform(self.cluster_centers_)

        return pd.DataFrame(
            centers,
            columns=self.feature_columns,
            index=pd.Index(range(self.n_clusters), name='Cluster')
        )

    def get_cluster_centers_scaled(self) -> pd.DataFrame:
        self._check_fitted()
        return pd.DataFrame(
            self.cluster_centers_,
            columns=self.feature_columns,
            index=pd.Index(range(self.n_clusters), name='Cluster')
        )

    def _check_fitted(self):
        if self.model is None:
            raise NotFittedError("Model not fitted. Call fit() first.")
