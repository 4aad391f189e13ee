"""Tests for PCA formulations and stored reductions."""

import numpy as np
import pandas as pd
import pytest

from jackstraw.core.errors import DegeneratePCAError
from jackstraw.core.reduction import DimReduction, PCAConfig, pc_labels, run_pca


@pytest.fixture
def data():
    rng = np.random.default_rng(0)
    x = rng.standard_normal((30, 12))
    return x - x.mean(axis=1, keepdims=True)


class TestRunPCA:
    """Tests for run_pca()."""

    def test_standard_shapes(self, data):
        loadings, embeddings, sdev = run_pca(data, 5, PCAConfig())
        assert loadings.shape == (30, 5)
        assert embeddings.shape == (12, 5)
        assert sdev.shape == (5,)

    def test_standard_loadings_orthonormal(self, data):
        loadings, _, _ = run_pca(data, 5, PCAConfig(weight_by_var=True))
        np.testing.assert_allclose(loadings.T @ loadings, np.eye(5), atol=1e-10)

    def test_standard_weighted_embeddings(self, data):
        """Weighting scales embeddings by the singular values."""
        _, weighted, sdev = run_pca(data, 5, PCAConfig(weight_by_var=True))
        _, unweighted, _ = run_pca(data, 5, PCAConfig(weight_by_var=False))
        d = sdev * np.sqrt(data.shape[1] - 1)
        np.testing.assert_allclose(np.linalg.norm(weighted, axis=0), d)
        np.testing.assert_allclose(np.linalg.norm(unweighted, axis=0), np.ones(5))

    def test_reversed_weighted_loadings(self, data):
        loadings, embeddings, sdev = run_pca(data, 5, PCAConfig(rev_pca=True, weight_by_var=True))
        d = sdev * np.sqrt(data.shape[0] - 1)
        np.testing.assert_allclose(np.linalg.norm(loadings, axis=0), d)
        np.testing.assert_allclose(embeddings.T @ embeddings, np.eye(5), atol=1e-10)

    def test_formulations_agree_up_to_sign(self, data):
        """Unweighted loadings span the same axes in both formulations."""
        standard, _, _ = run_pca(data, 4, PCAConfig(rev_pca=False, weight_by_var=False))
        reversed_, _, _ = run_pca(data, 4, PCAConfig(rev_pca=True, weight_by_var=False))
        np.testing.assert_allclose(np.abs(standard), np.abs(reversed_), atol=1e-8)

    def test_sdev_descending(self, data):
        _, _, sdev = run_pca(data, 8, PCAConfig())
        assert np.all(np.diff(sdev) <= 0)

    def test_components_clamped(self, data):
        """Reversed PCA keeps at most n_samples - 1 components."""
        loadings, _, _ = run_pca(data, 50, PCAConfig(rev_pca=True))
        assert loadings.shape[1] == data.shape[1] - 1

    def test_non_finite_raises(self, data):
        data = data.copy()
        data[3, 3] = np.inf
        with pytest.raises(DegeneratePCAError):
            run_pca(data, 3, PCAConfig())

    def test_too_small_raises(self):
        with pytest.raises(DegeneratePCAError):
            run_pca(np.ones((1, 5)), 3, PCAConfig())


class TestDimReduction:
    """Tests for DimReduction.from_matrix()."""

    def test_labels(self, data):
        genes = pd.Index([f"g{i}" for i in range(30)])
        cells = pd.Index([f"c{j}" for j in range(12)])

        reduction = DimReduction.from_matrix(data, genes, cells, 3, PCAConfig())

        assert list(reduction.loadings.columns) == ["PC1", "PC2", "PC3"]
        assert reduction.loadings.index.equals(genes)
        assert reduction.embeddings.index.equals(cells)
        assert reduction.n_components == 3
        assert reduction.jackstraw is None

    def test_pc_labels(self):
        assert pc_labels(3) == ["PC1", "PC2", "PC3"]
        assert pc_labels(2, start=4) == ["PC4", "PC5"]
