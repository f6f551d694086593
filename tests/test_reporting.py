"""Tests for file outputs and plots."""

import json

import pytest
import numpy as np
import pandas as pd

from rfm_segmentation.common import Reporter, Visualizer
from rfm_segmentation.common.reporting import to_serializable
from rfm_segmentation.exceptions import DataValidationError


@pytest.fixture
def segments():
    return pd.DataFrame({
        'CustomerID': ['A', 'B'],
        'Recency': [3, 250],
        'Frequency': [12, 1],
        'Monetary': [1500.0, 20.5],
        'Cluster': [0, 1],
        'ClusterLabel': ['Loyal Customers', 'Occasional Shoppers'],
    })


class TestReporter:

    def test_export_segments_writes_header_and_rows(self, tmp_path, segments):
        path = Reporter(output_dir=tmp_path).export_segments(segments, "segments.csv")

        lines = path.read_text().splitlines()
        assert lines[0] == 'CustomerID,Recency,Frequency,Monetary,Cluster,ClusterLabel'
        assert lines[1] == 'A,3,12,1500.0,0,Loyal Customers'
        assert len(lines) == 3

    def test_export_segments_with_delimiter(self, tmp_path, segments):
        path = Reporter(output_dir=tmp_path, delimiter='\t').export_segments(segments, "segments.tsv")

        assert path.read_text().splitlines()[0].split('\t')[-1] == 'ClusterLabel'

    def test_export_segments_requires_label_columns(self, tmp_path, segments):
        with pytest.raises(DataValidationError, match="ClusterLabel"):
            Reporter(output_dir=tmp_path).export_segments(segments.drop(columns=['ClusterLabel']))

    def test_write_summary(self, tmp_path):
        summary = {
            'n_clusters': np.int64(4),
            'converged': np.bool_(True),
            'labels': {0: 'Loyal Customers'},
        }

        path = Reporter(output_dir=tmp_path).write_summary(summary, "summary.json")

        payload = json.loads(path.read_text())
        assert payload['n_clusters'] == 4
        assert payload['converged'] is True
        assert payload['labels'] == {'0': 'Loyal Customers'}
        assert 'generated_at' in payload


class TestToSerializable:

    def test_nan_becomes_none(self):
        assert to_serializable({'silhouette': np.float64('nan')}) == {'silhouette': None}

    def test_dataframe_records(self):
        frame = pd.DataFrame({'k': [1, 2], 'silhouette': [np.nan, 0.7]})

        assert to_serializable(frame) == [{'k': 1, 'silhouette': None}, {'k': 2, 'silhouette': 0.7}]

    def test_array(self):
        assert to_serializable(np.array([1, 2])) == [1, 2]


class TestVisualizer:

    def test_plot_selection_saves_png(self, tmp_path):
        diagnostics = pd.DataFrame({
            'k': [1, 2, 3],
            'inertia': [300.0, 120.0, 40.0],
            'silhouette': [np.nan, 0.6, 0.8],
        })

        path = Visualizer(output_dir=tmp_path).plot_selection(diagnostics, save_name='selection')

        assert path == tmp_path / 'selection.png'
        assert path.stat().st_size > 0

    def test_plot_without_silhouette(self, tmp_path):
        diagnostics = pd.DataFrame({
            'k': [1, 2],
            'inertia': [300.0, 120.0],
            'silhouette': [np.nan, np.nan],
        })

        path = Visualizer(output_dir=tmp_path).plot_selection(diagnostics, save_name='elbow')

        assert path.exists()

    def test_unsaved_plot_returns_none(self, tmp_path):
        assert Visualizer(output_dir=tmp_path).plot_elbow([1, 2], [10.0, 5.0]) is None
