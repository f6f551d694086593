"""End-to-end tests for the command-line runner."""

import json

import pandas as pd

from rfm_segmentation.cli import main, build_parser, build_overrides


def run(task, data, tmp_path, *extra):
    return main([
        '--task', task,
        '--data', str(data),
        '--config', str(tmp_path / 'no-settings.yaml'),
        '--output', str(tmp_path / 'out'),
        '--log-level', 'ERROR',
        *extra,
    ])


class TestBuildOverrides:

    def test_only_given_flags_override(self):
        args = build_parser().parse_args(['--task', 'segment', '--data', 'rfm.csv',
                                          '--n-clusters', '3', '--no-silhouette'])

        overrides = build_overrides(args)

        assert overrides['clustering'] == {'n_clusters': 3}
        assert overrides['selection'] == {'compute_silhouette': False}
        assert 'output' not in overrides


class TestMain:

    def test_segment(self, tmp_path, rfm_csv, rfm_table):
        assert run('segment', rfm_csv, tmp_path) == 0

        segments = pd.read_csv(tmp_path / 'out' / 'customer_segments.csv', dtype={'CustomerID': str})
        assert list(segments.columns) == ['CustomerID', 'Recency', 'Frequency', 'Monetary',
                                          'Cluster', 'ClusterLabel']
        assert segments['CustomerID'].tolist() == rfm_table['CustomerID'].tolist()

        summary = json.loads((tmp_path / 'out' / 'segmentation_summary.json').read_text())
        assert summary['n_clusters'] == 4
        assert summary['converged'] is True
        assert set(summary['labels']) == {'0', '1', '2', '3'}
        assert 'Monetary' in summary['statistical_tests']

    def test_select_k(self, tmp_path, rfm_csv):
        assert run('select-k', rfm_csv, tmp_path, '--k-min', '1', '--k-max', '5', '--n-init', '2') == 0

        diagnostics = pd.read_csv(tmp_path / 'out' / 'cluster_selection.csv')
        assert diagnostics['k'].tolist() == [1, 2, 3, 4, 5]
        assert (tmp_path / 'out' / 'cluster_selection.png').exists()
        assert not (tmp_path / 'out' / 'customer_segments.csv').exists()

    def test_rfm(self, tmp_path, transactions):
        data = tmp_path / 'transactions.csv'
        transactions.to_csv(data, index=False)

        assert run('rfm', data, tmp_path) == 0

        rfm = pd.read_csv(tmp_path / 'out' / 'rfm.csv')
        assert list(rfm.columns) == ['CustomerID', 'Recency', 'Frequency', 'Monetary']
        assert rfm['CustomerID'].is_unique

    def test_missing_input_file(self, tmp_path):
        assert run('segment', tmp_path / 'absent.csv', tmp_path) == 1

    def test_unlabeled_cluster_fails(self, tmp_path, rfm_csv):
        assert run('segment', rfm_csv, tmp_path, '--n-clusters', '5') == 1
        assert not (tmp_path / 'out' / 'customer_segments.csv').exists()

    def test_custom_customer_id_column(self, tmp_path, rfm_table):
        config = tmp_path / 'settings.yaml'
        config.write_text('data:\n  customer_id_column: "Customer ID"\n')
        data = tmp_path / 'rfm.csv'
        rfm_table.rename(columns={'CustomerID': 'Customer ID'}).to_csv(data, index=False)

        code = main(['--task', 'segment', '--data', str(data), '--config', str(config),
                     '--output', str(tmp_path / 'out'), '--log-level', 'ERROR'])

        assert code == 0
        segments = pd.read_csv(tmp_path / 'out' / 'customer_segments.csv')
        assert list(segments.columns) == ['Customer ID', 'Recency', 'Frequency', 'Monetary',
                                          'Cluster', 'ClusterLabel']
        assert len(segments) == len(rfm_table)

    def test_infinite_value_is_dropped(self, tmp_path, rfm_table):
        rfm = rfm_table.astype({'Monetary': object})
        rfm.loc[0, 'Monetary'] = 'inf'
        data = tmp_path / 'rfm.csv'
        rfm.to_csv(data, index=False)

        assert run('segment', data, tmp_path) == 0

        segments = pd.read_csv(tmp_path / 'out' / 'customer_segments.csv')
        assert len(segments) == len(rfm_table) - 1

    def test_unsupported_input_format(self, tmp_path, rfm_table):
        data = tmp_path / 'rfm.json'
        rfm_table.to_json(data)

        assert run('segment', data, tmp_path) == 1

    def test_unparseable_transaction_dates(self, tmp_path, transactions):
        data = tmp_path / 'transactions.csv'
        transactions.assign(InvoiceDate='not a date').to_csv(data, index=False)

        assert run('rfm', data, tmp_path) == 1
