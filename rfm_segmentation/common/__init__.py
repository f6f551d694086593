"""
Common utilities for the RFM segmentation pipeline.
"""

from .config import load_config, validate_config, DEFAULT_CONFIG
from .data_loader import DataLoader
from .preprocessing import FeatureScaler
from .visualization import Visualizer
from .reporting import Reporter

__all__ = ["load_config", "validate_config", "DEFAULT_CONFIG", "DataLoader",
           "FeatureScaler", "Visualizer", "Reporter"]
