"""
Configuration Module
====================

Loads the YAML run configuration and merges it over built-in defaults.

Usage:
    from rfm_segmentation.common import load_config

    config = load_config("config/settings.yaml")
    k = config['clustering']['n_clusters']
"""

import copy
from pathlib import Path
from typing import Optional, Dict, Any, Union
import yaml
from loguru import logger

from ..exceptions import ConfigurationError


DEFAULT_CONFIG: Dict[str, Any] = {
    'data': {
        'customer_id_column': 'CustomerID',
        'feature_columns': ['Recency', 'Frequency', 'Monetary'],
        'delimiter': ','
    },
    'scaling': {
        'method': 'standard'
    },
    'clustering': {
        'n_clusters': 4,
        'init': 'k-means++',
        'n_init': 10,
        'max_iter': 300,
        'tol': 1e-4,
        'random_state': 42
    },
    'selection': {
        'k_min': 1,
        'k_max': 10,
        'compute_silhouette': True,
        'silhouette_sample_size': 10000
    },
    # Assigned by the analyst after inspecting per-cluster means
    'labels': {
        0: 'Loyal Customers',
        1: 'Occasional Shoppers',
        2: 'Super VIPs',
        3: 'Churned/At-Risk Customers'
    },
    'output': {
        'dir': 'outputs',
        'segments_file': 'customer_segments.csv',
        'summary_file': 'segmentation_summary.json',
        'diagnostics_file': 'cluster_selection.csv',
        'plot_file': 'cluster_selection'
    }
}

SUPPORTED_INIT = ('k-means++', 'random')
SUPPORTED_SCALING = ('standard',)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override into a copy of base, recursing into nested dicts."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        # Label tables replace the default mapping rather than extend it
        if key != 'labels' and isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Load configuration from a YAML file merged over the defaults.

    Args:
        config_path: Path to YAML configuration file (defaults if missing)
        overrides: Nested dict applied after the file, e.g. from CLI flags

    Returns:
        Validated configuration dictionary

    Raises:
        ConfigurationError: If the merged configuration is invalid

    Example:
        >>> config = load_config("config/settings.yaml",
        ...                      overrides={'clustering': {'n_clusters': 5}})
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path and Path(config_path).exists():
        with open(config_path, 'r') as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")
        config = _deep_merge(config, file_config)
        logger.info(f"Loaded configuration from {config_path}")
    elif config_path:
        logger.warning(f"Config file not found: {config_path}. Using defaults.")

    if overrides:
        config = _deep_merge(config, overrides)

    return validate_config(config)


def validate_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a configuration dictionary and normalize the label table.

    Args:
        config: Configuration dictionary

    Returns:
        The same configuration with integer label keys

    Raises:
        ConfigurationError: On any invalid value
    """
    clustering = config.get('clustering', {})
    selection = config.get('selection', {})
    scaling = config.get('scaling', {})

    for key in ('n_clusters', 'n_init', 'max_iter'):
        value = clustering.get(key)
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ConfigurationError(f"clustering.{key} must be a positive integer, got {value!r}")

    if clustering.get('init') not in SUPPORTED_INIT:
        raise ConfigurationError(
            f"clustering.init must be one of {SUPPORTED_INIT}, got {clustering.get('init')!r}"
        )

    if scaling.get('method') not in SUPPORTED_SCALING:
        raise ConfigurationError(
            f"scaling.method must be one of {SUPPORTED_SCALING}, got {scaling.get('method')!r}"
        )

    k_min = selection.get('k_min')
    k_max = selection.get('k_max')
    if not isinstance(k_min, int) or not isinstance(k_max, int) or k_min < 1 or k_max < k_min:
        raise ConfigurationError(
            f"selection range must satisfy 1 <= k_min <= k_max, got ({k_min!r}, {k_max!r})"
        )

    config['labels'] = normalize_labels(config.get('labels') or {})
    return config


def normalize_labels(labels: Dict[Any, Any]) -> Dict[int, str]:
    """Coerce label table keys to int and values to str."""
    normalized = {}
    for key, value in labels.items():
        try:
            cluster_id = int(key)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Label keys must be cluster IDs, got {key!r}") from None
        if str(cluster_id) != str(key).strip():
            raise ConfigurationError(f"Label keys must be cluster IDs, got {key!r}")
        normalized[cluster_id] = str(value)
    return normalized
