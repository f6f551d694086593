"""
Data Preprocessing Module
=========================

Feature scaling for the RFM feature matrix.

Usage:
    from rfm_segmentation.common import FeatureScaler

    scaler = FeatureScaler(['Recency', 'Frequency', 'Monetary'])
    X_scaled = scaler.fit_transform(rfm)
    X_original = scaler.inverse_transform(X_scaled)
"""

import pandas as pd
import numpy as np
from typing import Optional, List, Dict, Union
from sklearn.preprocessing import StandardScaler
from loguru import logger

from ..exceptions import ConfigurationError, NotFittedError


ArrayLike = Union[pd.DataFrame, np.ndarray]


class FeatureScaler:
    """
    Standardizes feature columns to zero mean and unit variance.

    Statistics are computed once over the batch passed to ``fit`` and
    retained, so later customers can be scored on the same scale. The
    standard deviation is the population one (ddof=0).

    Example:
        >>> scaler = FeatureScaler(['Recency', 'Frequency', 'Monetary'])
        >>> X_scaled = scaler.fit_transform(rfm)
        >>> scaler.mean_
        array([ 91.6,   4.3, 2048.9])
    """

    def __init__(self, feature_columns: Optional[List[str]] = None, method: str = 'standard'):
        """
        Initialize FeatureScaler.

        Args:
            feature_columns: Columns to scale when given a DataFrame
            method: Scaling method (only 'standard' is supported)
        """
        if method != 'standard':
            raise ConfigurationError(f"Unknown scaling method: {method}")

        self.feature_columns = feature_columns or ['Recency', 'Frequency', 'Monetary']
        self.method = method
        self.scaler: Optional[StandardScaler] = None

    @property
    def is_fitted(self) -> bool:
        return self.scaler is not None

    @property
    def mean_(self) -> np.ndarray:
        self._check_fitted()
        return self.scaler.mean_

    @property
    def scale_(self) -> np.ndarray:
        self._check_fitted()
        return self.scaler.scale_

    def fit(self, data: ArrayLike) -> 'FeatureScaler':
        """
        Compute per-column mean and standard deviation.

        Args:
            data: DataFrame holding the feature columns, or a numeric matrix

        Returns:
            Self for method chaining

        Raises:
            ConfigurationError: If the input has missing or infinite values
                or a column has zero variance
        """
        X = self._to_matrix(data)

        if len(X) == 0:
            raise ConfigurationError("Cannot fit scaler on an empty feature matrix")

        if not np.isfinite(X).all():
            raise ConfigurationError("Feature matrix contains missing values or infinities; drop them before scaling")

        constant = np.ptp(X, axis=0) == 0
        if constant.any():
            names = [self.feature_columns[i] for i in np.flatnonzero(constant)]
            raise ConfigurationError(
                f"Zero-variance feature column(s) {names}: standardization is undefined"
            )

        self.scaler = StandardScaler()
        self.scaler.fit(X)

        logger.info(f"Fitted scaler on {len(X)} rows, {X.shape[1]} features")
        logger.debug(f"Means: {self.scaler.mean_}, std: {self.scaler.scale_}")
        return self

    def transform(self, data: ArrayLike) -> np.ndarray:
        """Apply (x - mean) / std with the fitted statistics."""
        self._check_fitted()
        return self.scaler.transform(self._to_matrix(data))

    def fit_transform(self, data: ArrayLike) -> np.ndarray:
        return self.fit(data).transform(data)

    def inverse_transform(self, X_scaled: np.ndarray) -> np.ndarray:
        """Map scaled values back with x * std + mean."""
        self._check_fitted()
        return self.scaler.inverse_transform(np.asarray(X_scaled, dtype=float))

    def scale_features(self, df: pd.DataFrame, fit: bool = True) -> pd.DataFrame:
        """
        Return a copy of df with the feature columns replaced by scaled values.

        Args:
            df: Input DataFrame
            fit: Fit on df first (False reuses the fitted statistics)

        Returns:
            DataFrame with scaled features
        """
        df = df.copy()
        df[self.feature_columns] = self.fit_transform(df) if fit else self.transform(df)
        return df

    def get_params(self) -> Dict[str, Dict[str, float]]:
        """Fitted statistics keyed by feature name."""
        self._check_fitted()
        return {
            col: {'mean': float(m), 'std': float(s)}
            for col, m, s in zip(self.feature_columns, self.scaler.mean_, self.scaler.scale_)
        }

    def _to_matrix(self, data: ArrayLike) -> np.ndarray:
        if isinstance(data, pd.DataFrame):
            missing = [c for c in self.feature_columns if c not in data.columns]
            if missing:
                raise ConfigurationError(f"Missing feature columns: {missing}")
            return data[self.feature_columns].to_numpy(dtype=float)
        X = np.asarray(data, dtype=float)
        if X.ndim != 2 or X.shape[1] != len(self.feature_columns):
            raise ConfigurationError(
                f"Expected a 2-D matrix with {len(self.feature_columns)} columns, got shape {X.shape}"
            )
        return X

    def _check_fitted(self):
        if self.scaler is None:
            raise NotFittedError("Scaler not fitted. Call fit() first.")
