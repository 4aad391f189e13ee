"""Tests for loading scaled matrices from CSV."""

import numpy as np
import pandas as pd
import pytest

from jackstraw.io.loaders import load_csv_matrix
from conftest import save_test_matrix_csv


class TestLoadCsvMatrix:
    """Tests for load_csv_matrix()."""

    def test_loads_matrix(self, scaled_matrix, tmp_path):
        path = tmp_path / "scaled.csv"
        save_test_matrix_csv(scaled_matrix, path)

        matrix = load_csv_matrix(path)

        assert matrix.shape == (200, 60)
        assert list(matrix.feature_ids) == list(scaled_matrix.feature_ids)
        np.testing.assert_allclose(matrix.data, scaled_matrix.data)

    def test_accepts_string_path(self, scaled_matrix, tmp_path):
        path = tmp_path / "scaled.csv"
        save_test_matrix_csv(scaled_matrix, path)
        assert load_csv_matrix(str(path)).n_samples == 60

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_csv_matrix(tmp_path / "nope.csv")

    def test_duplicate_features_warn(self, tmp_path):
        path = tmp_path / "dup.csv"
        pd.DataFrame({"c1": [1.0, 2.0, 3.0], "c2": [0.0, 1.0, 2.0]}, index=["a", "a", "b"]).to_csv(path)

        with pytest.warns(UserWarning, match="duplicate feature IDs"):
            matrix = load_csv_matrix(path)

        assert list(matrix.feature_ids) == ["a", "b"]
        assert matrix.data[0, 0] == 1.0

    def test_non_numeric(self, tmp_path):
        path = tmp_path / "bad.csv"
        pd.DataFrame({"c1": [1.0, "x"], "c2": [0.0, 1.0]}, index=["a", "b"]).to_csv(path)
        with pytest.raises(ValueError, match="non-numeric"):
            load_csv_matrix(path)

    def test_missing_values(self, tmp_path):
        path = tmp_path / "nan.csv"
        pd.DataFrame({"c1": [1.0, np.nan], "c2": [0.0, 1.0]}, index=["a", "b"]).to_csv(path)
        with pytest.raises(ValueError, match="missing"):
            load_csv_matrix(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("")
        with pytest.raises(ValueError, match="empty"):
            load_csv_matrix(path)
