"""
Data Loading and Validation Module
===================================

Loads the per-customer RFM table produced by the upstream aggregation
layer, drops incomplete rows and checks the table contract.

Usage:
    from rfm_segmentation.common import DataLoader

    loader = DataLoader()
    rfm = loader.load_rfm("data/rfm.csv")
"""

import pandas as pd
import numpy as np
from pathlib import Path
from typing import Optional, Union, List, Dict, Any
from loguru import logger

from ..exceptions import DataValidationError


class DataLoader:
    """
    Loader for delimited RFM tables.

    Attributes:
        customer_id_column (str): Name of the customer identifier column
        feature_columns (list): Names of the Recency, Frequency, Monetary columns
        delimiter (str): Field delimiter used when none is given per call

    Example:
        >>> loader = DataLoader()
        >>> rfm = loader.load_rfm("rfm.csv")
        >>> print(f"Loaded {len(rfm)} customers")
    """

    supported_formats = ['.csv', '.tsv', '.txt']

    def __init__(
        self,
        customer_id_column: str = 'CustomerID',
        feature_columns: Optional[List[str]] = None,
        delimiter: str = ','
    ):
        """
        Initialize DataLoader.

        Args:
            customer_id_column: Customer identifier column
            feature_columns: RFM feature columns, in matrix column order
            delimiter: Default field delimiter
        """
        self.customer_id_column = customer_id_column
        self.feature_columns = feature_columns or ['Recency', 'Frequency', 'Monetary']
        self.delimiter = delimiter
        logger.info("DataLoader initialized")

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'DataLoader':
        """Build a loader from the ``data`` section of a run configuration."""
        data = config.get('data', {})
        return cls(
            customer_id_column=data.get('customer_id_column', 'CustomerID'),
            feature_columns=data.get('feature_columns'),
            delimiter=data.get('delimiter', ',')
        )

    @property
    def required_columns(self) -> List[str]:
        return [self.customer_id_column] + list(self.feature_columns)

    def load_rfm(
        self,
        filepath: Union[str, Path],
        delimiter: Optional[str] = None
    ) -> pd.DataFrame:
        """
        Load, clean and validate an RFM table.

        Args:
            filepath: Path to the delimited RFM file
            delimiter: Field delimiter (loader default if None)

        Returns:
            DataFrame with complete rows only, original relative order kept

        Raises:
            FileNotFoundError: If the file doesn't exist
            DataValidationError: If columns are missing, IDs repeat or no rows remain
        """
        df = self.load_rfm_table(filepath, delimiter=delimiter)
        df = self.drop_incomplete_rows(df)
        self.validate_rfm(df)
        return df

    def load_rfm_table(
        self,
        filepath: Union[str, Path],
        delimiter: Optional[str] = None
    ) -> pd.DataFrame:
        """
        Read the raw RFM table without dropping anything.

        CustomerID is read as a string; feature columns are coerced to
        numeric, with unparseable and infinite values becoming missing.

        Args:
            filepath: Path to the delimited RFM file
            delimiter: Field delimiter (loader default if None)

        Returns:
            Raw DataFrame

        Example:
            >>> raw = loader.load_rfm_table("rfm.tsv", delimiter="\\t")
        """
        filepath = Path(filepath)

        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        if filepath.suffix.lower() not in self.supported_formats:
            raise ValueError(f"Unsupported format: {filepath.suffix}")

        logger.info(f"Loading RFM table from {filepath}")

        df = pd.read_csv(
            filepath,
            sep=delimiter or self.delimiter,
            dtype={self.customer_id_column: str},
            low_memory=False
        )

        df = self.coerce_types(df)
        logger.info(f"Loaded {len(df)} records with {len(df.columns)} columns")
        return df

    def coerce_types(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Check required columns and coerce their types.

        Args:
            df: Raw RFM DataFrame

        Returns:
            Copy restricted to the required columns, in required order
        """
        missing = [c for c in self.required_columns if c not in df.columns]
        if missing:
            raise DataValidationError(f"Missing required columns: {missing}")

        df = df[self.required_columns].copy()

        ids = df[self.customer_id_column]
        df[self.customer_id_column] = ids.where(ids.isna(), ids.astype(str).str.strip())
        df.loc[df[self.customer_id_column] == '', self.customer_id_column] = np.nan

        for col in self.feature_columns:
            df[col] = pd.to_numeric(df[col], errors='coerce')

        # Infinities count as missing and are dropped with the other incomplete rows
        df[self.feature_columns] = df[self.feature_columns].replace([np.inf, -np.inf], np.nan)

        return df

    def drop_incomplete_rows(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Drop rows with any missing required value.

        The relative order of the remaining rows is unchanged and the index
        is reset so that row positions line up with the feature matrix.

        Args:
            df: RFM DataFrame

        Returns:
            DataFrame of complete rows

        Raises:
            DataValidationError: If no rows remain
        """
        n_before = len(df)
        df = df.dropna(subset=self.required_columns).reset_index(drop=True)
        n_dropped = n_before - len(df)

        if n_dropped > 0:
            logger.warning(f"Dropped {n_dropped} rows with missing RFM values")

        if df.empty:
            raise DataValidationError("No complete RFM rows remain after dropping missing values")

        return df

    def validate_rfm(self, df: pd.DataFrame) -> Dict[str, Any]:
        """
        Validate the RFM table contract.

        Duplicate customer IDs are an error. Range checks that belong to the
        upstream aggregation are reported as warnings only.

        Args:
            df: Complete-row RFM DataFrame

        Returns:
            Validation report with 'warnings' and 'statistics'

        Raises:
            DataValidationError: If a customer ID appears more than once
        """
        report = {'warnings': [], 'statistics': {}}

        duplicated = df[self.customer_id_column].duplicated(keep=False)
        if duplicated.any():
            dupes = df.loc[duplicated, self.customer_id_column].unique().tolist()
            raise DataValidationError(f"Duplicate customer IDs: {dupes[:10]}")

        recency, frequency, monetary = self.feature_columns[:3]
        checks = [
            (recency, df[recency] < 0, "negative"),
            (frequency, df[frequency] <= 0, "non-positive"),
            (monetary, df[monetary] < 0, "negative"),
        ]
        for col, mask, description in checks:
            n_bad = int(mask.sum())
            if n_bad:
                message = f"{n_bad} rows have {description} '{col}'"
                report['warnings'].append(message)
                logger.warning(message)

        report['statistics'] = {
            'n_rows': len(df),
            'feature_means': df[self.feature_columns].mean().to_dict()
        }

        return report
