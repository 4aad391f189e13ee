"""Tests for jackstraw null loadings (single replicate)."""

import numpy as np
import pytest

from jackstraw.core.errors import DegeneratePCAError, InsufficientDataError
from jackstraw.core.reduction import PCAConfig, run_pca
from jackstraw.stats.null_model import (
    jack_random,
    permuted_feature_count,
    select_permuted_features,
    shuffle_rows,
)


class TestPermutedFeatureCount:
    """Tests for permuted_feature_count()."""

    def test_proportional(self):
        assert permuted_feature_count(1000, 0.01) == 10
        assert permuted_feature_count(200, 0.05) == 10

    def test_rounds_half_up(self):
        assert permuted_feature_count(7, 0.5) == 4

    def test_minimum_of_three(self):
        """Small proportions still permute exactly 3 genes."""
        assert permuted_feature_count(100, 0.01) == 3
        assert permuted_feature_count(10, 0.001) == 3


class TestShuffleRows:
    """Tests for shuffle_rows()."""

    def test_preserves_row_values(self):
        rng = np.random.default_rng(42)
        data = np.arange(40, dtype=float).reshape(4, 10)

        shuffled = shuffle_rows(data, rng)

        for orig, perm in zip(data, shuffled):
            assert sorted(orig) == sorted(perm)

    def test_does_not_modify_input(self):
        rng = np.random.default_rng(42)
        data = np.arange(40, dtype=float).reshape(4, 10)
        original = data.copy()

        shuffle_rows(data, rng)

        np.testing.assert_array_equal(data, original)

    def test_rows_permuted_independently(self):
        """Identical rows receive different permutations."""
        rng = np.random.default_rng(42)
        data = np.tile(np.arange(20, dtype=float), (5, 1))

        shuffled = shuffle_rows(data, rng)

        assert len({tuple(row) for row in shuffled}) > 1


class TestSelectPermutedFeatures:
    """Tests for select_permuted_features()."""

    def test_without_replacement(self):
        rng = np.random.default_rng(1)
        idx = select_permuted_features(50, 10, rng)
        assert len(idx) == 10
        assert len(set(idx)) == 10
        assert all(0 <= i < 50 for i in idx)

    def test_too_many_raises(self):
        rng = np.random.default_rng(1)
        with pytest.raises(InsufficientDataError):
            select_permuted_features(2, 3, rng)


class TestJackRandom:
    """Tests for jack_random()."""

    def test_shape(self, scaled_matrix):
        fake = jack_random(scaled_matrix.data, 0.05, 1, 4, seed=1, config=PCAConfig())
        assert fake.shape == (10, 4)

    def test_minimum_three_genes(self, scaled_matrix):
        """Tiny prop_freq still yields exactly 3 null rows."""
        fake = jack_random(scaled_matrix.data, 0.001, 1, 3, seed=1, config=PCAConfig())
        assert fake.shape == (3, 3)

    def test_same_seed_reproducible(self, scaled_matrix):
        a = jack_random(scaled_matrix.data, 0.05, 1, 3, seed=7, config=PCAConfig())
        b = jack_random(scaled_matrix.data, 0.05, 1, 3, seed=7, config=PCAConfig())
        np.testing.assert_array_equal(a, b)

    def test_different_seeds_differ(self, scaled_matrix):
        a = jack_random(scaled_matrix.data, 0.05, 1, 3, seed=1, config=PCAConfig())
        b = jack_random(scaled_matrix.data, 0.05, 1, 3, seed=2, config=PCAConfig())
        assert not np.allclose(a, b)

    def test_does_not_modify_input(self, scaled_matrix):
        data = scaled_matrix.data.copy()
        jack_random(data, 0.05, 1, 3, seed=1, config=PCAConfig())
        np.testing.assert_array_equal(data, scaled_matrix.data)

    def test_pc_range_offset(self, scaled_matrix):
        """r1_use selects a column window of the same replicate."""
        full = jack_random(scaled_matrix.data, 0.05, 1, 3, seed=3, config=PCAConfig())
        window = jack_random(scaled_matrix.data, 0.05, 2, 3, seed=3, config=PCAConfig())
        np.testing.assert_allclose(window, full[:, 1:3])

    @pytest.mark.parametrize("rev_pca", [False, True])
    @pytest.mark.parametrize("weight_by_var", [False, True])
    def test_reuses_pca_settings(self, scaled_matrix, rev_pca, weight_by_var):
        """The replicate PCA is rerun with the original formulation and weighting."""
        config = PCAConfig(rev_pca=rev_pca, weight_by_var=weight_by_var)
        data = scaled_matrix.data

        rng = np.random.default_rng(5)
        rand_idx = rng.choice(data.shape[0], size=10, replace=False)
        data_mod = data.copy()
        data_mod[rand_idx, :] = rng.permuted(data_mod[rand_idx, :], axis=1)
        loadings, _, _ = run_pca(data_mod, 4, config)
        expected = loadings[rand_idx, 1:4]

        fake = jack_random(data, 0.05, 2, 4, seed=5, config=config)

        np.testing.assert_array_equal(fake, expected)

    def test_formulations_give_different_nulls(self, scaled_matrix):
        standard = jack_random(scaled_matrix.data, 0.05, 1, 3, seed=1, config=PCAConfig())
        reversed_ = jack_random(
            scaled_matrix.data, 0.05, 1, 3, seed=1, config=PCAConfig(rev_pca=True)
        )
        assert not np.allclose(np.abs(standard), np.abs(reversed_))

    def test_invalid_range(self, scaled_matrix):
        with pytest.raises(ValueError):
            jack_random(scaled_matrix.data, 0.05, 3, 2, seed=1, config=PCAConfig())

    def test_too_many_pcs_is_degenerate(self):
        rng = np.random.default_rng(0)
        data = rng.standard_normal((10, 4))
        with pytest.raises(DegeneratePCAError):
            jack_random(data, 0.5, 1, 6, seed=1, config=PCAConfig())

    def test_non_finite_is_degenerate(self, scaled_matrix):
        data = scaled_matrix.data.copy()
        data[0, 0] = np.nan
        with pytest.raises(DegeneratePCAError):
            jack_random(data, 0.05, 1, 3, seed=1, config=PCAConfig())

    def test_too_few_genes(self):
        data = np.random.default_rng(0).standard_normal((2, 10))
        with pytest.raises(InsufficientDataError):
            jack_random(data, 0.5, 1, 1, seed=1, config=PCAConfig())
