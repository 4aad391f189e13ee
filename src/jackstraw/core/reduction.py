"""
Principal component analysis of scaled expression data.

Two formulations are supported, matching how single-cell toolkits run PCA on
a genes × cells scaled matrix:

    Standard (rev_pca=False):
        SVD of the cells × genes matrix. Gene loadings are the right singular
        vectors; cell embeddings are the left singular vectors, optionally
        scaled by the singular values (weight_by_var).

    Reversed (rev_pca=True):
        SVD of the genes × cells matrix. Gene loadings are the left singular
        vectors, optionally scaled by the singular values; cell embeddings are
        the right singular vectors.

The same function runs the original PCA and every jackstraw replicate, so a
replicate's null loadings live on exactly the scale of the real loadings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

import numpy as np
import pandas as pd
from scipy import linalg

from jackstraw.core.errors import DegeneratePCAError

if TYPE_CHECKING:
    from jackstraw.stats.jackstraw import JackStrawResult

__all__ = ['PCAConfig', 'DimReduction', 'run_pca', 'pc_labels']


@dataclass(frozen=True)
class PCAConfig:
    """Settings a PCA was computed with; replicates must reuse them."""
    rev_pca: bool = False
    weight_by_var: bool = True

    def to_dict(self) -> dict:
        return {"rev_pca": self.rev_pca, "weight_by_var": self.weight_by_var}


def pc_labels(n: int, start: int = 1) -> list[str]:
    """Column labels PC{start}..PC{start+n-1}."""
    return [f"PC{i}" for i in range(start, start + n)]


def run_pca(
    data: np.ndarray,
    n_components: int,
    config: PCAConfig,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Truncated PCA of a features × samples matrix.

    Args:
        data: Scaled matrix (n_features, n_samples). Rows are expected to be
            centered already; no centering is performed here.
        n_components: Number of components requested. Clamped to
            n_samples - 1 (reversed) or n_features - 1 (standard), and to the
            matrix rank bound.
        config: Formulation and variance weighting.

    Returns:
        (loadings, embeddings, sdev) with shapes (n_features, k),
        (n_samples, k) and (k,).

    Raises:
        DegeneratePCAError: If the matrix is non-finite, too small, or the SVD
            fails to converge.
    """
    data = np.asarray(data, dtype=np.float64)
    if data.ndim != 2:
        raise DegeneratePCAError(f"PCA input must be 2D, got shape {data.shape}")

    n_features, n_samples = data.shape
    if config.rev_pca:
        k = min(n_components, n_samples - 1)
    else:
        k = min(n_components, n_features - 1)
    k = min(k, n_features, n_samples)
    if k < 1:
        raise DegeneratePCAError(
            f"Cannot compute PCA on a {n_features} × {n_samples} matrix"
        )

    if not np.all(np.isfinite(data)):
        raise DegeneratePCAError("PCA input contains NaN or infinite values")

    target = data if config.rev_pca else data.T
    try:
        u, d, vt = linalg.svd(target, full_matrices=False, check_finite=False)
    except (linalg.LinAlgError, ValueError) as e:
        raise DegeneratePCAError(f"SVD failed: {e}") from e

    u = u[:, :k]
    d = d[:k]
    v = vt[:k, :].T

    if config.rev_pca:
        loadings = u * d if config.weight_by_var else u
        embeddings = v
        sdev = d / np.sqrt(max(1, n_features - 1))
    else:
        loadings = v
        embeddings = u * d if config.weight_by_var else u
        sdev = d / np.sqrt(max(1, n_samples - 1))

    return loadings, embeddings, sdev


@dataclass
class DimReduction:
    """
    Stored PCA: labelled loadings/embeddings plus the settings used.

    Attributes:
        loadings: Features × PCs (index = feature ids used by the PCA)
        embeddings: Samples × PCs
        sdev: Standard deviation per PC
        config: Formulation used, reused by jackstraw replicates
        jackstraw: Latest significance result, if any
    """
    loadings: pd.DataFrame
    embeddings: pd.DataFrame
    sdev: np.ndarray
    config: PCAConfig
    jackstraw: Optional["JackStrawResult"] = None

    @property
    def n_components(self) -> int:
        return self.loadings.shape[1]

    @classmethod
    def from_matrix(
        cls,
        data: np.ndarray,
        feature_ids: pd.Index,
        sample_ids: pd.Index,
        n_components: int,
        config: PCAConfig,
    ) -> DimReduction:
        """Run PCA and label the outputs with feature/sample ids."""
        loadings, embeddings, sdev = run_pca(data, n_components, config)
        columns = pc_labels(loadings.shape[1])
        return cls(
            loadings=pd.DataFrame(loadings, index=feature_ids, columns=columns),
            embeddings=pd.DataFrame(embeddings, index=sample_ids, columns=columns),
            sdev=sdev,
            config=config,
        )
