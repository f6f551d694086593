"""Shared fixtures for the segmentation test suite."""

import pytest
import pandas as pd
from loguru import logger

from rfm_segmentation.common import load_config
from rfm_segmentation.synthetic import generate_rfm_groups, generate_transactions


@pytest.fixture(autouse=True)
def quiet_logger():
    """Keep loguru output out of the test report."""
    logger.remove()
    yield


@pytest.fixture
def rfm_groups():
    """Four tight, well-separated RFM groups, 25 customers each, interleaved."""
    return generate_rfm_groups(n_per_group=25, seed=42)


@pytest.fixture
def rfm_table(rfm_groups):
    """The synthetic groups without the ground-truth column."""
    return rfm_groups.drop(columns=['group'])


@pytest.fixture
def config():
    """Default configuration (no settings file)."""
    return load_config()


@pytest.fixture
def transactions():
    return generate_transactions(n_customers=40, n_invoices=300, seed=7)


@pytest.fixture
def rfm_csv(tmp_path, rfm_table):
    path = tmp_path / "rfm.csv"
    rfm_table.to_csv(path, index=False)
    return path


@pytest.fixture
def small_rfm():
    """Hand-written RFM table with a missing value in the middle."""
    return pd.DataFrame({
        'CustomerID': ['A', 'B', 'C', 'D', 'E', 'F'],
        'Recency': [10, 200, None, 5, 180, 12],
        'Frequency': [8, 1, 3, 9, 2, 7],
        'Monetary': [900.0, 40.0, 100.0, 1100.0, 60.0, 850.0],
    })
