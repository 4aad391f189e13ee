"""
Host container for scaled data and its PCA.

Significance testing only needs a narrow view of the host: the stored PCA
(loadings, embeddings, settings), the scaled rows of the genes the PCA used,
and a slot to write results back into. ``ReductionHost`` names that contract;
``ScaledDataset`` is the in-memory implementation used by the CLI and tests.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Protocol, TYPE_CHECKING, runtime_checkable

import numpy as np
import pandas as pd

from jackstraw.core.biomatrix import BioMatrix
from jackstraw.core.errors import ConfigMissingError, ResultMissingError
from jackstraw.core.reduction import DimReduction, PCAConfig

if TYPE_CHECKING:
    from jackstraw.stats.jackstraw import JackStrawResult

logger = logging.getLogger(__name__)

__all__ = ['ReductionHost', 'ScaledDataset']


@runtime_checkable
class ReductionHost(Protocol):
    """Protocol for any object that stores a PCA jackstraw can test.

    Getters raise ConfigMissingError when no PCA has been computed.
    """

    def get_pca_embeddings(self) -> pd.DataFrame:
        """Samples × PCs embedding matrix."""
        ...

    def get_pca_loadings(self) -> pd.DataFrame:
        """Features × PCs loadings; index = features used by the PCA."""
        ...

    def get_pca_config(self) -> PCAConfig:
        """Settings the PCA was computed with."""
        ...

    def get_scaled_data(self, feature_ids: Iterable[str]) -> BioMatrix:
        """Scaled measurements restricted to (and ordered by) feature_ids."""
        ...

    def set_jackstraw(self, result: JackStrawResult) -> None:
        """Store a significance result, replacing any previous one."""
        ...

    def get_jackstraw(self) -> JackStrawResult:
        """Stored significance result; raises ResultMissingError if absent."""
        ...


class ScaledDataset:
    """
    Scaled expression matrix plus its (optional) PCA.

    Examples:
        >>> dataset = ScaledDataset(matrix)
        >>> dataset.run_pca(pcs_compute=20)
        >>> dataset.get_pca_loadings().shape
        (2000, 20)
    """

    def __init__(self, scaled: BioMatrix, pca: Optional[DimReduction] = None):
        if not isinstance(scaled, BioMatrix):
            raise TypeError(f"scaled must be BioMatrix, got {type(scaled)}")
        self._scaled = scaled
        self._pca = pca

    def run_pca(
        self,
        pc_genes: Optional[Iterable[str]] = None,
        pcs_compute: int = 20,
        rev_pca: bool = False,
        weight_by_var: bool = True,
    ) -> DimReduction:
        """
        Compute and store a PCA on the scaled data.

        Any previous PCA (and its jackstraw result) is replaced.

        Args:
            pc_genes: Genes to run the PCA on, in order. Defaults to all.
            pcs_compute: Number of PCs to compute.
            rev_pca: Use the reversed (genes × cells) formulation.
            weight_by_var: Scale by singular values (embeddings in the
                standard formulation, loadings in the reversed one).
        """
        matrix = self._scaled if pc_genes is None else self._scaled.subset_features(pc_genes)

        # constant rows carry no variance and make loadings meaningless
        keep = np.var(matrix.data, axis=1) > 0
        if not np.all(keep):
            logger.warning(f"Dropping {int(np.sum(~keep))} zero-variance genes before PCA")
            matrix = matrix.select_features(keep)

        config = PCAConfig(rev_pca=rev_pca, weight_by_var=weight_by_var)
        self._pca = DimReduction.from_matrix(
            matrix.data,
            matrix.feature_ids,
            matrix.sample_ids,
            n_components=pcs_compute,
            config=config,
        )
        sdev = ", ".join(f"{s:.3g}" for s in self._pca.sdev[:5])
        logger.info(
            f"PCA: {matrix.n_features} genes × {matrix.n_samples} samples, "
            f"{self._pca.n_components} PCs (rev_pca={rev_pca}, weight_by_var={weight_by_var}), "
            f"leading sdev: {sdev}"
        )
        return self._pca

    def _require_pca(self) -> DimReduction:
        if self._pca is None:
            raise ConfigMissingError("PCA has not been computed yet. Please run run_pca().")
        return self._pca

    def get_pca_embeddings(self) -> pd.DataFrame:
        return self._require_pca().embeddings

    def get_pca_loadings(self) -> pd.DataFrame:
        return self._require_pca().loadings

    def get_pca_config(self) -> PCAConfig:
        return self._require_pca().config

    def get_scaled_data(self, feature_ids: Iterable[str]) -> BioMatrix:
        return self._scaled.subset_features(feature_ids)

    def set_jackstraw(self, result: JackStrawResult) -> None:
        self._require_pca().jackstraw = result

    def get_jackstraw(self) -> JackStrawResult:
        result = self._pca.jackstraw if self._pca is not None else None
        if result is None:
            raise ResultMissingError(
                "Jackstraw has not been computed yet. Please run run_jackstraw()."
            )
        return result

    def __repr__(self) -> str:
        pca = f"{self._pca.n_components} PCs" if self._pca is not None else "no PCA"
        js = "jackstraw" if self._pca is not None and self._pca.jackstraw is not None else "no jackstraw"
        return (
            f"ScaledDataset({self._scaled.n_features} features × "
            f"{self._scaled.n_samples} samples, {pca}, {js})"
        )
