"""
Sample Data Generator
=====================

Synthetic RFM tables and transaction logs for demos and tests.

Usage:
    from rfm_segmentation.synthetic import generate_rfm_groups, generate_transactions

    rfm = generate_rfm_groups(n_per_group=50)
    transactions = generate_transactions(n_customers=100)
"""

import pandas as pd
import numpy as np
from datetime import timedelta
from typing import List, Optional, Tuple


# (Recency, Frequency, Monetary) centres of four well-separated customer groups
DEFAULT_GROUP_CENTERS: List[Tuple[float, float, float]] = [
    (5, 20, 5000),
    (300, 1, 50),
    (2, 30, 10000),
    (200, 2, 100),
]


def generate_rfm_groups(
    centers: Optional[List[Tuple[float, float, float]]] = None,
    n_per_group: int = 25,
    spread: float = 0.02,
    seed: int = 42,
    shuffle: bool = True
) -> pd.DataFrame:
    """
    Generate tight RFM groups around fixed centres.

    Recency and Frequency are rounded to integers, Recency is kept
    non-negative and Frequency at least 1.

    Args:
        centers: (Recency, Frequency, Monetary) per group
        n_per_group: Customers per group
        spread: Noise standard deviation as a fraction of each centre value
        seed: Random seed
        shuffle: Interleave groups instead of emitting them in blocks

    Returns:
        DataFrame with CustomerID, Recency, Frequency, Monetary, group
    """
    centers = centers or DEFAULT_GROUP_CENTERS
    rng = np.random.RandomState(seed)

    records = []
    for group, (recency, frequency, monetary) in enumerate(centers):
        r = recency + rng.normal(0, max(1.0, recency * spread), n_per_group)
        f = frequency + rng.normal(0, max(0.3, frequency * spread), n_per_group)
        m = monetary + rng.normal(0, max(1.0, monetary * spread), n_per_group)

        for i in range(n_per_group):
            records.append({
                'Recency': max(0, int(round(r[i]))),
                'Frequency': max(1, int(round(f[i]))),
                'Monetary': round(max(0.0, m[i]), 2),
                'group': group
            })

    df = pd.DataFrame(records)
    if shuffle:
        df = df.sample(frac=1, random_state=seed).reset_index(drop=True)

    df.insert(0, 'CustomerID', [f"C{i:05d}" for i in range(1, len(df) + 1)])
    return df


def generate_transactions(
    n_customers: int = 100,
    n_invoices: int = 600,
    end_date: str = '2011-12-09',
    n_days: int = 365,
    cancel_rate: float = 0.03,
    missing_customer_rate: float = 0.02,
    seed: int = 42
) -> pd.DataFrame:
    """
    Generate a retail transaction log in the online-retail export layout.

    Includes cancelled invoices (``C`` prefix, negative quantity), lines
    without a customer ID and a handful of zero-quantity adjustments, so
    the RFM cleaning rules have something to remove.

    Args:
        n_customers: Number of distinct customers
        n_invoices: Number of invoices to generate
        end_date: Latest possible invoice date
        n_days: Length of the history window in days
        cancel_rate: Share of invoices that are cancellations
        missing_customer_rate: Share of lines with no customer ID
        seed: Random seed

    Returns:
        DataFrame with InvoiceNo, StockCode, Quantity, InvoiceDate,
        UnitPrice, CustomerID
    """
    rng = np.random.RandomState(seed)
    end = pd.Timestamp(end_date)

    customer_ids = np.arange(12346, 12346 + n_customers)
    # Frequent buyers are picked more often
    weights = rng.lognormal(0, 1, n_customers)
    weights = weights / weights.sum()

    records = []
    for invoice in range(536365, 536365 + n_invoices):
        customer = rng.choice(customer_ids, p=weights)
        invoice_date = end - timedelta(days=int(rng.randint(0, n_days)), minutes=int(rng.randint(0, 600)))
        cancelled = rng.uniform() < cancel_rate
        invoice_no = f"C{invoice}" if cancelled else str(invoice)

        for _ in range(rng.randint(1, 6)):
            quantity = int(rng.randint(1, 24))
            records.append({
                'InvoiceNo': invoice_no,
                'StockCode': f"{rng.randint(10000, 99999)}",
                'Quantity': -quantity if cancelled else quantity,
                'InvoiceDate': invoice_date,
                'UnitPrice': round(float(rng.lognormal(1, 0.6)), 2),
                'CustomerID': float(customer) if rng.uniform() >= missing_customer_rate else np.nan
            })

    df = pd.DataFrame(records)

    # Stock adjustments recorded with zero quantity
    adjustments = df.sample(n=min(5, len(df)), random_state=seed).index
    df.loc[adjustments, 'Quantity'] = 0

    return df.sort_values('InvoiceDate', kind='mergesort').reset_index(drop=True)
