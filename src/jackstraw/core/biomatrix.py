"""
Core data structure for scaled expression matrices.

BioMatrix couples the numerical measurements a PCA runs on with the
identifiers that make row-wise comparisons meaningful: every loading, null
score and p-value downstream is keyed by the matrix's feature ids.

Biological Context:
    Expression matrices are the fundamental data structure in single-cell and
    bulk genomics:
    - Rows = features (genes, proteins, transcripts)
    - Columns = samples (cells, patients, time points)
    - Values = scaled measurements (centered, usually unit-variance per gene)

    Jackstraw resampling needs:
    - Subsetting to the genes the PCA used, in the PCA's exact row order
    - A read-only view shared by every replicate
    - Immutability so that a shuffled replicate never leaks into another

Engineering Design:
    - Immutable: Operations return new instances (functional style)
    - Type-safe: NumPy arrays for data, Pandas for identifiers
    - Validated: Constructor checks shape consistency

Examples:
    >>> import numpy as np
    >>> import pandas as pd
    >>> from jackstraw.core.biomatrix import BioMatrix
    >>>
    >>> data = np.array([[0.5, -0.5], [1.2, -1.2]])
    >>> matrix = BioMatrix(
    ...     data=data,
    ...     feature_ids=pd.Index(["CD3E", "MS4A1"]),
    ...     sample_ids=pd.Index(["cell_1", "cell_2"]),
    ... )
    >>> sub = matrix.subset_features(["MS4A1"])
"""

from __future__ import annotations

from typing import Iterable
import numpy as np
import pandas as pd

__all__ = ['BioMatrix']


class BioMatrix:
    """
    Immutable container for a scaled expression matrix and its identifiers.

    Attributes:
        data: Numerical expression matrix (features × samples)
        feature_ids: Row identifiers (e.g., gene symbols)
        sample_ids: Column identifiers (e.g., cell barcodes)

    Shape Invariants:
        - data.shape[0] == len(feature_ids)
        - data.shape[1] == len(sample_ids)
        - feature_ids are unique
    """

    def __init__(
        self,
        data: np.ndarray,
        feature_ids: pd.Index,
        sample_ids: pd.Index,
    ):
        """
        Initialize BioMatrix with validation.

        Args:
            data: Scaled expression matrix (features × samples)
            feature_ids: Row identifiers (genes, proteins, etc.)
            sample_ids: Column identifiers (cells, samples, etc.)

        Raises:
            ValueError: If shapes are inconsistent or feature ids are duplicated
            TypeError: If data types are incorrect
        """
        if not isinstance(data, np.ndarray):
            raise TypeError(f"data must be np.ndarray, got {type(data)}")
        if not isinstance(feature_ids, pd.Index):
            raise TypeError(f"feature_ids must be pd.Index, got {type(feature_ids)}")
        if not isinstance(sample_ids, pd.Index):
            raise TypeError(f"sample_ids must be pd.Index, got {type(sample_ids)}")

        if data.ndim != 2:
            raise ValueError(f"data must be 2D, got shape {data.shape}")

        n_features, n_samples = data.shape

        if len(feature_ids) != n_features:
            raise ValueError(
                f"feature_ids length ({len(feature_ids)}) must match data rows ({n_features})"
            )
        if len(sample_ids) != n_samples:
            raise ValueError(
                f"sample_ids length ({len(sample_ids)}) must match data columns ({n_samples})"
            )
        if feature_ids.has_duplicates:
            raise ValueError("feature_ids must be unique")

        self._data = data
        self._feature_ids = feature_ids
        self._sample_ids = sample_ids

    @property
    def data(self) -> np.ndarray:
        """Expression matrix (features × samples)."""
        return self._data

    @property
    def feature_ids(self) -> pd.Index:
        """Row identifiers (genes, proteins, etc.)."""
        return self._feature_ids

    @property
    def sample_ids(self) -> pd.Index:
        """Column identifiers (cells, samples, etc.)."""
        return self._sample_ids

    @property
    def shape(self) -> tuple[int, int]:
        """Matrix dimensions (n_features, n_samples)."""
        return self._data.shape

    @property
    def n_features(self) -> int:
        return self._data.shape[0]

    @property
    def n_samples(self) -> int:
        return self._data.shape[1]

    def select_features(self, mask: np.ndarray | pd.Series) -> BioMatrix:
        """
        Subset matrix by a boolean feature mask, keeping row order.

        Args:
            mask: Boolean array/Series indicating which features to keep.
                If Series, uses values and ignores index

        Raises:
            ValueError: If mask length doesn't match n_features

        Examples:
            >>> variances = np.var(matrix.data, axis=1)
            >>> variable = matrix.select_features(variances > np.percentile(variances, 90))
        """
        if isinstance(mask, pd.Series):
            mask = mask.values
        mask = np.asarray(mask, dtype=bool)

        if len(mask) != self.n_features:
            raise ValueError(
                f"mask length ({len(mask)}) must match n_features ({self.n_features})"
            )

        return BioMatrix(
            data=self._data[mask, :],
            feature_ids=self._feature_ids[mask],
            sample_ids=self._sample_ids,
        )

    def subset_features(self, feature_ids: Iterable[str]) -> BioMatrix:
        """
        Subset matrix to the given features, in exactly the given order.

        Row order matters downstream: loadings and measurements are compared
        row by row, so the result follows ``feature_ids``, not the matrix.

        Raises:
            KeyError: If any requested feature is missing from the matrix
        """
        requested = pd.Index(list(feature_ids))
        positions = self._feature_ids.get_indexer(requested)
        missing = requested[positions < 0]
        if len(missing) > 0:
            preview = ", ".join(map(str, missing[:5]))
            raise KeyError(
                f"{len(missing)} features not found in matrix: {preview}"
                + (" ..." if len(missing) > 5 else "")
            )

        return BioMatrix(
            data=self._data[positions, :],
            feature_ids=requested,
            sample_ids=self._sample_ids,
        )

    def to_frame(self) -> pd.DataFrame:
        """Return data as a DataFrame (features × samples)."""
        return pd.DataFrame(self._data, index=self._feature_ids, columns=self._sample_ids)

    def __repr__(self) -> str:
        return (
            f"BioMatrix({self.n_features} features × {self.n_samples} samples)\n"
            f"  Features: {self.feature_ids[0]}...{self.feature_ids[-1]}\n"
            f"  Samples: {self.sample_ids[0]}...{self.sample_ids[-1]}"
        )

