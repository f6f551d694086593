"""
RFM Feature Engineering Module
==============================

Builds the per-customer Recency, Frequency, Monetary table from raw
transactions, applying the same cleaning rules as the reporting database.

Usage:
    from rfm_segmentation.customer_segmentation import RFMFeatureEngineer

    engineer = RFMFeatureEngineer()
    rfm = engineer.calculate_rfm(transactions)
"""

import pandas as pd
from typing import Optional
from datetime import datetime
from loguru import logger

from ..exceptions import DataValidationError


class RFMFeatureEngineer:
    """
    RFM aggregation over retail transactions.

    Cleaning rules, applied before aggregation:
    - rows without a customer ID are dropped
    - cancelled invoices (invoice number starting with ``C``) are dropped
    - rows with non-positive quantity are dropped

    Example:
        >>> engineer = RFMFeatureEngineer()
        >>> rfm = engineer.calculate_rfm(transactions)
        >>> list(rfm.columns)
        ['CustomerID', 'Recency', 'Frequency', 'Monetary']
    """

    def __init__(
        self,
        customer_id: str = 'CustomerID',
        invoice_column: str = 'InvoiceNo',
        date_column: str = 'InvoiceDate',
        quantity_column: str = 'Quantity',
        price_column: str = 'UnitPrice',
        cancelled_prefix: str = 'C'
    ):
        """
        Initialize RFM Feature Engineer.

        Args:
            customer_id: Column name for customer ID
            invoice_column: Column name for invoice number
            date_column: Column name for invoice timestamp
            quantity_column: Column name for item quantity
            price_column: Column name for unit price
            cancelled_prefix: Invoice number prefix marking cancellations
        """
        self.customer_id = customer_id
        self.invoice_column = invoice_column
        self.date_column = date_column
        self.quantity_column = quantity_column
        self.price_column = price_column
        self.cancelled_prefix = cancelled_prefix

        logger.info("RFMFeatureEngineer initialized")

    def clean_transactions(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Drop null-customer, cancelled and non-positive-quantity rows.

        Args:
            df: Transaction DataFrame

        Returns:
            Cleaned copy with a ``line_total`` column
        """
        required = [self.customer_id, self.invoice_column, self.date_column,
                    self.quantity_column, self.price_column]
        missing = [c for c in required if c not in df.columns]
        if missing:
            raise DataValidationError(f"Missing required columns: {missing}")

        df = df.copy()
        n_original = len(df)

        df[self.date_column] = pd.to_datetime(df[self.date_column])
        df[self.quantity_column] = pd.to_numeric(df[self.quantity_column], errors='coerce')
        df[self.price_column] = pd.to_numeric(df[self.price_column], errors='coerce')

        df = df[df[self.customer_id].notna()]
        invoices = df[self.invoice_column].astype(str)
        df = df[~invoices.str.startswith(self.cancelled_prefix)]
        df = df[df[self.quantity_column] > 0].copy()

        df['line_total'] = df[self.quantity_column] * df[self.price_column]

        logger.info(f"Cleaned transactions: {n_original} -> {len(df)} rows")
        return df

    def calculate_rfm(
        self,
        df: pd.DataFrame,
        reference_date: Optional[datetime] = None
    ) -> pd.DataFrame:
        """
        Calculate RFM metrics for each customer.

        Args:
            df: Transaction DataFrame
            reference_date: Reference date for recency (default: latest
                invoice date in the source transactions, before cleaning)

        Returns:
            DataFrame with CustomerID, Recency, Frequency, Monetary

        Example:
            >>> rfm = engineer.calculate_rfm(transactions)
        """
        # Reference date comes from the full source table, cancellations included
        if reference_date is None and self.date_column in df.columns:
            reference_date = pd.to_datetime(df[self.date_column]).max()

        df = self.clean_transactions(df)

        if df.empty:
            raise DataValidationError("No transactions remain after cleaning")

        # Identifiers exported as floats (e.g. 12346.0) keep a stable string form
        ids = df[self.customer_id]
        if pd.api.types.is_float_dtype(ids) and (ids % 1 == 0).all():
            ids = ids.astype('int64')
        df[self.customer_id] = ids.astype(str)

        reference_date = pd.Timestamp(reference_date)

        rfm = df.groupby(self.customer_id).agg(
            last_purchase=(self.date_column, 'max'),
            Frequency=(self.invoice_column, 'nunique'),
            Monetary=('line_total', 'sum')
        )

        rfm['Recency'] = (reference_date - rfm['last_purchase']).dt.days
        rfm = rfm.reset_index().rename(columns={self.customer_id: 'CustomerID'})
        rfm = rfm[['CustomerID', 'Recency', 'Frequency', 'Monetary']]

        logger.info(f"Calculated RFM for {len(rfm)} customers (reference date {reference_date.date()})")
        return rfm
