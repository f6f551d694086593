"""
Segment Analysis Module
=======================

Per-cluster statistics that support the analyst's labeling decision.

Usage:
    from rfm_segmentation.customer_segmentation import SegmentAnalyzer

    analyzer = SegmentAnalyzer()
    insights = analyzer.analyze_segments(segments)
    print(insights['summary'])
"""

import pandas as pd
import numpy as np
from typing import Optional, List, Dict, Any
from scipy import stats
from loguru import logger


class SegmentAnalyzer:
    """
    Analysis toolkit for clustered customers.

    Example:
        >>> analyzer = SegmentAnalyzer()
        >>> insights = analyzer.analyze_segments(segments)
        >>> insights['statistical_tests']['Monetary']['significant']
        True
    """

    def __init__(
        self,
        segment_column: str = 'Cluster',
        value_columns: Optional[List[str]] = None,
        alpha: float = 0.05
    ):
        """
        Initialize SegmentAnalyzer.

        Args:
            segment_column: Column holding cluster IDs
            value_columns: Columns to analyze
            alpha: Significance level for the Kruskal-Wallis tests
        """
        self.segment_column = segment_column
        self.value_columns = value_columns or ['Recency', 'Frequency', 'Monetary']
        self.alpha = alpha
        logger.info("SegmentAnalyzer initialized")

    def analyze_segments(
        self,
        df: pd.DataFrame,
        labels: Optional[Dict[int, str]] = None
    ) -> Dict[str, Any]:
        """
        Perform segment analysis.

        Args:
            df: DataFrame with segment assignments
            labels: Cluster ID -> label, shown in the summary

        Returns:
            Dictionary with sizes, means, tests and a text summary
        """
        return {
            'segment_sizes': self.segment_sizes(df),
            'cluster_means': self.cluster_means(df),
            'statistical_tests': self.statistical_tests(df),
            'summary': self.summarize(df, labels=labels)
        }

    def segment_sizes(self, df: pd.DataFrame) -> pd.DataFrame:
        """Customer count and share per segment, ordered by segment ID."""
        sizes = df[self.segment_column].value_counts().sort_index()
        sizes = sizes.rename_axis(self.segment_column).reset_index(name='count')
        sizes['percentage'] = sizes['count'] / len(df) * 100
        return sizes

    def cluster_means(self, df: pd.DataFrame) -> pd.DataFrame:
        return df.groupby(self.segment_column)[self.value_columns].mean().sort_index()

    def statistical_tests(self, df: pd.DataFrame) -> Dict[str, Dict[str, Any]]:
        """Kruskal-Wallis H-test per feature across segments."""
        test_results = {}

        for col in self.value_columns:
            groups = [
                g[col].dropna().to_numpy()
                for _, g in df.groupby(self.segment_column)
            ]
            groups = [g for g in groups if len(g) > 0]

            if len(groups) < 2:
                continue

            # All-identical values make the H statistic undefined
            if len(np.unique(np.concatenate(groups))) < 2:
                logger.warning(f"Skipping Kruskal-Wallis for constant column '{col}'")
                continue

            h_stat, p_value = stats.kruskal(*groups)
            test_results[col] = {
                'kruskal_h_statistic': float(h_stat),
                'kruskal_p_value': float(p_value),
                'significant': bool(p_value < self.alpha)
            }

        return test_results

    def summarize(self, df: pd.DataFrame, labels: Optional[Dict[int, str]] = None) -> str:
        """Generate text summary of segment analysis."""
        n_customers = len(df)
        sizes = df[self.segment_column].value_counts().sort_index()
        means = self.cluster_means(df)

        summary_parts = [
            "Segment Analysis Summary",
            "=" * 40,
            f"Total customers: {n_customers:,}",
            f"Number of segments: {len(sizes)}",
            ""
        ]

        summary_parts.append("Segment Distribution:")
        for seg, count in sizes.items():
            pct = count / n_customers * 100
            name = f" ({labels[seg]})" if labels and seg in labels else ""
            summary_parts.append(f"  Segment {seg}{name}: {count:,} ({pct:.1f}%)")

        summary_parts.append("")
        summary_parts.append("Mean RFM by Segment:")
        for seg, row in means.iterrows():
            values = ", ".join(f"{col}={row[col]:,.1f}" for col in self.value_columns)
            summary_parts.append(f"  Segment {seg}: {values}")

        return "\n".join(summary_parts)
