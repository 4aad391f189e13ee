"""
Null loadings for jackstraw resampling.

One replicate of the jackstraw procedure (Chung & Storey, Bioinformatics 2015):

    1. Draw a random subset of genes (without replacement)
    2. Shuffle each selected gene's values across samples independently,
       destroying its association with any sample structure while keeping
       its marginal distribution
    3. Re-run the same PCA on the modified matrix
    4. Keep the loadings of the shuffled genes only

Because only a small fraction of genes is shuffled, the PCA axes themselves
barely move, and the shuffled genes' loadings sample what a gene with no real
association to an axis would look like.
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray

from jackstraw.core.errors import DegeneratePCAError, InsufficientDataError
from jackstraw.core.reduction import PCAConfig, run_pca

__all__ = [
    'MIN_PERMUTED_FEATURES',
    'permuted_feature_count',
    'select_permuted_features',
    'shuffle_rows',
    'jack_random',
]

# a PCA on fewer shuffled rows gives too few null draws per replicate
MIN_PERMUTED_FEATURES = 3


def permuted_feature_count(n_features: int, prop_freq: float) -> int:
    """
    Number of genes shuffled per replicate.

    Rounds half up and never goes below MIN_PERMUTED_FEATURES.

    Examples:
        >>> permuted_feature_count(1000, 0.01)
        10
        >>> permuted_feature_count(100, 0.01)
        3
    """
    return max(MIN_PERMUTED_FEATURES, int(math.floor(prop_freq * n_features + 0.5)))


def select_permuted_features(
    n_features: int,
    n_permute: int,
    rng: np.random.Generator,
) -> NDArray[np.intp]:
    """Row indices of genes to shuffle, drawn uniformly without replacement."""
    if n_permute > n_features:
        raise InsufficientDataError(
            f"Cannot permute {n_permute} genes out of {n_features}"
        )
    return rng.choice(n_features, size=n_permute, replace=False)


def shuffle_rows(
    data: NDArray[np.float64],
    rng: np.random.Generator,
) -> NDArray[np.float64]:
    """
    Permute the values within each row independently.

    Each row receives its own permutation, so rows keep their value
    multisets but lose their alignment with the columns and with each other.
    The input is not modified.
    """
    return rng.permuted(data, axis=1)


def jack_random(
    scaled_data: NDArray[np.float64],
    prop_freq: float,
    r1_use: int,
    r2_use: int,
    seed: int,
    config: PCAConfig,
) -> NDArray[np.float64]:
    """
    Loadings of randomly shuffled genes for PCs r1_use..r2_use.

    Args:
        scaled_data: Scaled matrix (n_features, n_samples) restricted to the
            genes the original PCA used, in the PCA's row order. Not modified.
        prop_freq: Fraction of genes to shuffle.
        r1_use: First PC to return (1-based, inclusive).
        r2_use: Last PC to return (1-based, inclusive).
        seed: Seed for this replicate. Same seed and data, same output.
        config: Settings of the original PCA.

    Returns:
        Array (n_permuted, r2_use - r1_use + 1) of null loadings, rows in the
        order the genes were drawn.

    Raises:
        InsufficientDataError: If there are fewer genes than must be shuffled.
        DegeneratePCAError: If the replicate PCA fails or yields fewer than
            r2_use components.
    """
    if not 1 <= r1_use <= r2_use:
        raise ValueError(f"Invalid PC range: {r1_use}..{r2_use}")

    rng = np.random.default_rng(seed)
    n_features = scaled_data.shape[0]

    rand_idx = select_permuted_features(
        n_features, permuted_feature_count(n_features, prop_freq), rng
    )

    data_mod = np.array(scaled_data, dtype=np.float64, copy=True)
    data_mod[rand_idx, :] = shuffle_rows(data_mod[rand_idx, :], rng)

    loadings, _, _ = run_pca(data_mod, r2_use, config)
    if loadings.shape[1] < r2_use:
        raise DegeneratePCAError(
            f"Replicate (seed={seed}) produced {loadings.shape[1]} PCs, need {r2_use}"
        )

    return loadings[rand_idx, r1_use - 1:r2_use]
