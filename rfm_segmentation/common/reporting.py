"""
Reporting Module
================

Writes the augmented segments table, the K-selection diagnostics and a
JSON run summary.

Usage:
    from rfm_segmentation.common import Reporter

    reporter = Reporter(output_dir="outputs")
    reporter.export_segments(result.segments, "customer_segments.csv")
    reporter.write_summary(result.to_summary(), "segmentation_summary.json")
"""

import pandas as pd
import numpy as np
from pathlib import Path
from typing import Dict, Any, List, Optional
from datetime import datetime
import json
from loguru import logger

from ..exceptions import DataValidationError


SEGMENT_COLUMNS = ['CustomerID', 'Recency', 'Frequency', 'Monetary', 'Cluster', 'ClusterLabel']


class Reporter:
    """
    Writes pipeline outputs as flat files.

    Example:
        >>> reporter = Reporter(output_dir="outputs")
        >>> path = reporter.export_segments(segments, "customer_segments.csv")
    """

    def __init__(self, output_dir: str = "outputs", delimiter: str = ","):
        """
        Initialize Reporter.

        Args:
            output_dir: Directory for output files
            delimiter: Field delimiter for delimited outputs
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.delimiter = delimiter
        logger.info(f"Reporter initialized. Output: {self.output_dir}")

    def export_segments(
        self,
        segments: pd.DataFrame,
        filename: str = "customer_segments.csv",
        columns: Optional[List[str]] = None
    ) -> Path:
        """
        Write the augmented RFM table with a header row.

        Args:
            segments: Table with RFM values, Cluster and ClusterLabel
            filename: Output file name inside output_dir
            columns: Column order (default: CustomerID, Recency, Frequency,
                Monetary, Cluster, ClusterLabel)

        Returns:
            Path to the written file
        """
        columns = columns or SEGMENT_COLUMNS
        missing = [c for c in columns if c not in segments.columns]
        if missing:
            raise DataValidationError(f"Segments table is missing columns: {missing}")

        path = self.output_dir / filename
        segments[columns].to_csv(path, sep=self.delimiter, index=False)

        logger.info(f"Exported {len(segments)} segmented customers to {path}")
        return path

    def export_diagnostics(
        self,
        diagnostics: pd.DataFrame,
        filename: str = "cluster_selection.csv"
    ) -> Path:
        """Write the per-K inertia/silhouette table."""
        path = self.output_dir / filename
        diagnostics.to_csv(path, sep=self.delimiter, index=False)
        logger.info(f"Exported K-selection diagnostics to {path}")
        return path

    def export_rfm(self, rfm: pd.DataFrame, filename: str = "rfm.csv") -> Path:
        path = self.output_dir / filename
        rfm.to_csv(path, sep=self.delimiter, index=False)
        logger.info(f"Exported RFM table for {len(rfm)} customers to {path}")
        return path

    def write_summary(
        self,
        summary: Dict[str, Any],
        filename: str = "segmentation_summary.json"
    ) -> Path:
        """
        Write a JSON run summary.

        Args:
            summary: Summary dictionary (numpy/pandas values allowed)
            filename: Output file name inside output_dir

        Returns:
            Path to the written file
        """
        path = self.output_dir / filename
        payload = {
            'generated_at': datetime.now().isoformat(timespec='seconds'),
            **to_serializable(summary)
        }

        with open(path, 'w') as f:
            json.dump(payload, f, indent=2)

        logger.info(f"Wrote run summary: {path}")
        return path


def to_serializable(obj: Any) -> Any:
    """Convert numpy/pandas types to JSON serializable."""
    if isinstance(obj, dict):
        return {str(k): to_serializable(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [to_serializable(v) for v in obj]
    elif isinstance(obj, (bool, np.bool_)):
        return bool(obj)
    elif isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return None if np.isnan(obj) else float(obj)
    elif isinstance(obj, np.ndarray):
        return to_serializable(obj.tolist())
    elif isinstance(obj, pd.DataFrame):
        return to_serializable(obj.to_dict('records'))
    elif isinstance(obj, pd.Series):
        return to_serializable(obj.to_dict())
    elif isinstance(obj, float) and np.isnan(obj):
        return None
    else:
        return obj
