"""
Visualization Module
====================

Diagnostic plot for choosing the number of clusters.

Usage:
    from rfm_segmentation.common import Visualizer

    viz = Visualizer(output_dir="outputs/plots")
    viz.plot_elbow(k_range, inertias, silhouettes, save_name='cluster_selection')
"""

from pathlib import Path
from typing import Optional, List, Tuple
import numpy as np
import pandas as pd
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import seaborn as sns
from loguru import logger


class Visualizer:
    """
    Static plots for segmentation diagnostics.

    Example:
        >>> viz = Visualizer(output_dir="outputs/plots")
        >>> viz.plot_elbow([1, 2, 3, 4], [900.0, 400.0, 150.0, 120.0])
    """

    def __init__(
        self,
        output_dir: str = "outputs/plots",
        style: str = "seaborn-v0_8-whitegrid",
        figsize: Tuple[int, int] = (12, 8),
        dpi: int = 100,
        palette: str = "husl"
    ):
        """
        Initialize Visualizer.

        Args:
            output_dir: Directory for saving plots
            style: Matplotlib style
            figsize: Default figure size
            dpi: Resolution for saved figures
            palette: Color palette
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.figsize = figsize
        self.dpi = dpi
        self.palette = palette

        # Set style
        try:
            plt.style.use(style)
        except OSError:
            plt.style.use('default')

        sns.set_palette(palette)
        logger.info(f"Visualizer initialized. Output: {self.output_dir}")

    def plot_elbow(
        self,
        k_range: List[int],
        inertias: List[float],
        silhouettes: Optional[List[float]] = None,
        title: str = "Inertia and Silhouette by K",
        save_name: Optional[str] = None
    ) -> Optional[Path]:
        """
        Plot elbow curve for K-means cluster selection.

        Args:
            k_range: Range of K values tested
            inertias: Inertia values for each K
            silhouettes: Silhouette scores for each K (NaN where undefined)
            title: Plot title
            save_name: Filename for saving (without extension)

        Returns:
            Path of the saved PNG, or None if not saved
        """
        if silhouettes is not None:
            fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(14, 5))
        else:
            fig, ax1 = plt.subplots(figsize=self.figsize)

        # Inertia plot
        ax1.plot(k_range, inertias, 'bo-', linewidth=2, markersize=8)
        ax1.set_xlabel('Number of Clusters (K)', fontsize=12)
        ax1.set_ylabel('Inertia', fontsize=12)
        ax1.set_title('Elbow Method', fontsize=14, fontweight='bold')
        ax1.set_xticks(list(k_range))
        ax1.grid(True, alpha=0.3)

        # Silhouette plot
        if silhouettes is not None:
            scores = np.asarray(silhouettes, dtype=float)
            defined = ~np.isnan(scores)
            ax2.plot(np.asarray(k_range)[defined], scores[defined], 'go-', linewidth=2, markersize=8)
            ax2.set_xlabel('Number of Clusters (K)', fontsize=12)
            ax2.set_ylabel('Silhouette Score', fontsize=12)
            ax2.set_title('Silhouette Analysis', fontsize=14, fontweight='bold')
            ax2.set_xticks(list(k_range))
            ax2.grid(True, alpha=0.3)

        fig.suptitle(title, fontsize=16, fontweight='bold', y=1.02)
        fig.tight_layout()

        save_path = None
        if save_name:
            save_path = self.output_dir / f"{save_name}.png"
            fig.savefig(save_path, dpi=self.dpi, bbox_inches='tight')
            logger.info(f"Saved elbow plot: {save_path}")

        plt.close(fig)
        return save_path

    def plot_selection(
        self,
        diagnostics: pd.DataFrame,
        save_name: Optional[str] = None
    ) -> Optional[Path]:
        """
        Plot a K-selection diagnostics table.

        Args:
            diagnostics: Table with k, inertia and silhouette columns
            save_name: Filename for saving (without extension)

        Returns:
            Path of the saved PNG, or None if not saved
        """
        silhouettes = diagnostics['silhouette'] if 'silhouette' in diagnostics else None
        if silhouettes is not None and silhouettes.isna().all():
            silhouettes = None

        return self.plot_elbow(
            diagnostics['k'].tolist(),
            diagnostics['inertia'].tolist(),
            silhouettes.tolist() if silhouettes is not None else None,
            save_name=save_name
        )
