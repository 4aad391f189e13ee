"""
Pytest configuration and shared fixtures.

Provides synthetic scaled expression matrices with known PCA structure:
two latent factors drive disjoint blocks of "signal" genes, every other gene
is pure noise.
"""

import numpy as np
import pandas as pd
import pytest

from jackstraw.core.biomatrix import BioMatrix
from jackstraw.core.dataset import ScaledDataset
from jackstraw.stats.jackstraw import run_jackstraw


def generate_scaled_matrix(
    n_genes: int = 200,
    n_samples: int = 60,
    n_signal: int = 40,
    effect: float = 3.0,
    seed: int = 42,
) -> BioMatrix:
    """
    Generate a row-scaled expression matrix with two latent factors.

    Args:
        n_genes: Number of genes (features)
        n_samples: Number of samples (cells)
        n_signal: Number of signal genes; the first half load on factor 1,
            the second half on factor 2
        effect: Factor strength relative to unit noise
        seed: Random seed for reproducibility

    Returns:
        BioMatrix with genes GENE_00000.. (signal genes first) and samples
        CELL_0000..; every row has mean 0 and unit variance.
    """
    rng = np.random.default_rng(seed)
    data = rng.standard_normal((n_genes, n_samples))

    factor1 = rng.standard_normal(n_samples)
    factor2 = rng.standard_normal(n_samples)
    half = n_signal // 2
    data[:half, :] += effect * factor1
    data[half:n_signal, :] += effect * factor2

    data = data - data.mean(axis=1, keepdims=True)
    data = data / data.std(axis=1, keepdims=True)

    return BioMatrix(
        data=data,
        feature_ids=pd.Index([f"GENE_{i:05d}" for i in range(n_genes)]),
        sample_ids=pd.Index([f"CELL_{j:04d}" for j in range(n_samples)]),
    )


def save_test_matrix_csv(matrix: BioMatrix, path):
    """Save BioMatrix to CSV file for testing file I/O."""
    matrix.to_frame().to_csv(path)


@pytest.fixture
def scaled_matrix():
    """Scaled matrix (200 genes x 60 samples), 40 signal genes."""
    return generate_scaled_matrix()


@pytest.fixture
def signal_genes(scaled_matrix):
    return list(scaled_matrix.feature_ids[:40])


@pytest.fixture
def pca_dataset(scaled_matrix):
    """Dataset with a 10-PC PCA computed."""
    dataset = ScaledDataset(scaled_matrix)
    dataset.run_pca(pcs_compute=10)
    return dataset


@pytest.fixture
def jackstraw_dataset(pca_dataset):
    """Dataset with a 5-PC jackstraw (20 replicates, 10 genes each)."""
    run_jackstraw(pca_dataset, num_pc=5, num_replicate=20, prop_freq=0.05)
    return pca_dataset
