"""Tests for RFM table loading and validation."""

import pytest
import pandas as pd

from rfm_segmentation.common import DataLoader
from rfm_segmentation.exceptions import DataValidationError


def write_csv(path, text):
    path.write_text(text)
    return path


class TestLoadRFMTable:
    """Reading the delimited RFM file."""

    def test_customer_id_read_as_string(self, tmp_path):
        """Leading zeros in IDs survive loading."""
        path = write_csv(tmp_path / "rfm.csv",
                         "CustomerID,Recency,Frequency,Monetary\n"
                         "00123,5,2,10.5\n"
                         "00456,7,1,3.0\n")

        df = DataLoader().load_rfm_table(path)

        assert df['CustomerID'].tolist() == ['00123', '00456']
        assert df['Monetary'].tolist() == [10.5, 3.0]

    def test_extra_columns_dropped_and_order_normalized(self, tmp_path):
        path = write_csv(tmp_path / "rfm.csv",
                         "Monetary,Country,CustomerID,Frequency,Recency\n"
                         "10.0,UK,A,2,5\n")

        df = DataLoader().load_rfm_table(path)

        assert list(df.columns) == ['CustomerID', 'Recency', 'Frequency', 'Monetary']

    def test_unparseable_values_become_missing(self, tmp_path):
        path = write_csv(tmp_path / "rfm.csv",
                         "CustomerID,Recency,Frequency,Monetary\n"
                         "A,n/a,2,10.0\n")

        df = DataLoader().load_rfm_table(path)

        assert df['Recency'].isna().all()

    def test_infinite_values_dropped_as_incomplete(self, tmp_path):
        path = write_csv(tmp_path / "rfm.csv",
                         "CustomerID,Recency,Frequency,Monetary\n"
                         "A,3,2,inf\n"
                         "B,-inf,1,5.0\n"
                         "C,10,4,120.0\n")
        loader = DataLoader()

        df = loader.drop_incomplete_rows(loader.load_rfm_table(path))

        assert df['CustomerID'].tolist() == ['C']

    def test_missing_required_column_raises(self, tmp_path):
        path = write_csv(tmp_path / "rfm.csv", "CustomerID,Recency,Frequency\nA,1,2\n")

        with pytest.raises(DataValidationError, match="Monetary"):
            DataLoader().load_rfm_table(path)

    def test_tab_delimited_file(self, tmp_path):
        path = write_csv(tmp_path / "rfm.tsv",
                         "CustomerID\tRecency\tFrequency\tMonetary\n"
                         "A\t1\t2\t3.5\n")

        df = DataLoader(delimiter="\t").load_rfm_table(path)

        assert df.iloc[0].tolist() == ['A', 1, 2, 3.5]

    def test_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            DataLoader().load_rfm_table(tmp_path / "missing.csv")

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "rfm.xlsx"
        path.write_bytes(b"")

        with pytest.raises(ValueError, match="Unsupported format"):
            DataLoader().load_rfm_table(path)


class TestDropIncompleteRows:
    """Null-row handling ahead of scaling."""

    def test_drop_preserves_relative_order(self, small_rfm):
        """Dropping rows never reorders the remaining ones."""
        df = DataLoader().drop_incomplete_rows(small_rfm)

        assert df['CustomerID'].tolist() == ['A', 'B', 'D', 'E', 'F']
        assert list(df.index) == list(range(5))

    def test_missing_customer_id_dropped(self):
        df = pd.DataFrame({
            'CustomerID': ['A', None, 'C'],
            'Recency': [1, 2, 3],
            'Frequency': [1, 2, 3],
            'Monetary': [1.0, 2.0, 3.0],
        })

        result = DataLoader().drop_incomplete_rows(df)

        assert result['CustomerID'].tolist() == ['A', 'C']

    def test_blank_customer_id_treated_as_missing(self, tmp_path):
        path = write_csv(tmp_path / "rfm.csv",
                         "CustomerID,Recency,Frequency,Monetary\n"
                         "A,1,1,1.0\n"
                         " ,2,2,2.0\n"
                         "C,3,3,3.0\n")

        df = DataLoader().load_rfm(path)

        assert df['CustomerID'].tolist() == ['A', 'C']

    def test_all_rows_incomplete_raises(self):
        df = pd.DataFrame({
            'CustomerID': ['A'],
            'Recency': [None],
            'Frequency': [1],
            'Monetary': [1.0],
        })

        with pytest.raises(DataValidationError, match="No complete RFM rows"):
            DataLoader().drop_incomplete_rows(df)


class TestValidateRFM:
    """Table contract checks."""

    def test_duplicate_customer_id_raises(self):
        df = pd.DataFrame({
            'CustomerID': ['A', 'B', 'A'],
            'Recency': [1, 2, 3],
            'Frequency': [1, 2, 3],
            'Monetary': [1.0, 2.0, 3.0],
        })

        with pytest.raises(DataValidationError, match="Duplicate customer IDs"):
            DataLoader().validate_rfm(df)

    def test_out_of_range_values_only_warn(self):
        df = pd.DataFrame({
            'CustomerID': ['A', 'B'],
            'Recency': [-1, 2],
            'Frequency': [0, 2],
            'Monetary': [1.0, -5.0],
        })

        report = DataLoader().validate_rfm(df)

        assert len(report['warnings']) == 3
        assert report['statistics']['n_rows'] == 2

    def test_load_rfm_end_to_end(self, rfm_csv, rfm_table):
        df = DataLoader().load_rfm(rfm_csv)

        assert len(df) == len(rfm_table)
        assert df['CustomerID'].tolist() == rfm_table['CustomerID'].tolist()
