"""Tests for ClusterLabeler."""

import pytest
import numpy as np
import pandas as pd

from rfm_segmentation.customer_segmentation import ClusterLabeler
from rfm_segmentation.exceptions import ConfigurationError


LABELS = {
    0: 'Loyal Customers',
    1: 'Occasional Shoppers',
    2: 'Super VIPs',
    3: 'Churned/At-Risk Customers',
}


@pytest.fixture
def records():
    return pd.DataFrame({
        'CustomerID': ['A', 'B', 'C', 'D'],
        'Recency': [10, 300, 2, 30],
        'Frequency': [10, 1, 30, 6],
        'Monetary': [1000.0, 20.0, 9000.0, 600.0],
    })


class TestClusterLabeler:
    """Applying the analyst's ID -> label table."""

    def test_apply_appends_cluster_and_label(self, records):
        labeler = ClusterLabeler(LABELS)

        result = labeler.apply(records, [0, 3, 2, 0], n_clusters=4)

        assert list(result.columns) == ['CustomerID', 'Recency', 'Frequency', 'Monetary',
                                        'Cluster', 'ClusterLabel']
        assert result['ClusterLabel'].tolist() == [
            'Loyal Customers', 'Churned/At-Risk Customers', 'Super VIPs', 'Loyal Customers'
        ]
        assert result['Cluster'].dtype.kind == 'i'

    def test_apply_does_not_modify_input(self, records):
        ClusterLabeler(LABELS).apply(records, [0, 1, 2, 3])

        assert 'Cluster' not in records.columns

    def test_missing_label_raises(self, records):
        labeler = ClusterLabeler({0: 'Loyal Customers', 1: 'Occasional Shoppers'})

        with pytest.raises(ConfigurationError, match=r"cluster\(s\) \[2, 3\]"):
            labeler.apply(records, [0, 1, 2, 3], n_clusters=4)

    def test_extra_labels_are_ignored(self, records):
        labeler = ClusterLabeler({**LABELS, 7: 'Unused'})

        result = labeler.apply(records, [0, 1, 1, 0], n_clusters=2)

        assert set(result['ClusterLabel']) == {'Loyal Customers', 'Occasional Shoppers'}

    def test_string_keys_from_config_are_normalized(self):
        labeler = ClusterLabeler({'0': 'Loyal Customers', '1': 'Super VIPs'})

        assert labeler.label_for(1) == 'Super VIPs'

    def test_non_integer_key_raises(self):
        with pytest.raises(ConfigurationError):
            ClusterLabeler({'vip': 'Super VIPs'})

    def test_length_mismatch_raises(self, records):
        with pytest.raises(ConfigurationError, match="cluster IDs for 4 records"):
            ClusterLabeler(LABELS).apply(records, [0, 1])

    def test_cluster_means_use_unscaled_values(self, records):
        means = ClusterLabeler(LABELS).cluster_means(records, [0, 1, 2, 0])

        assert means.loc[0, 'Recency'] == pytest.approx(20.0)
        assert means.loc[0, 'Monetary'] == pytest.approx(800.0)
        assert means.loc[1, 'Frequency'] == pytest.approx(1.0)
        assert means['Count'].tolist() == [2, 1, 1]

    def test_label_mapping_is_not_inferred_from_means(self, records):
        """Swapping the table swaps the names, whatever the cluster means are."""
        swapped = {0: 'Super VIPs', 1: 'Loyal Customers'}

        result = ClusterLabeler(swapped).apply(records, np.array([0, 1, 0, 1]))

        assert result['ClusterLabel'].tolist() == ['Super VIPs', 'Loyal Customers',
                                                   'Super VIPs', 'Loyal Customers']
