"""
Gene selection from jackstraw p-values.

A gene is selected if it is significant for at least one of the requested
PCs (its minimum p-value across them is below the cutoff). Optionally the
selection is capped per PC: only genes that also rank among the top
``max_per_pc`` loadings of some requested PC are kept, so that one PC with
thousands of significant genes cannot dominate the result.
"""

from __future__ import annotations

from typing import Iterable, Optional

import numpy as np
import pandas as pd

from jackstraw.core.dataset import ReductionHost
from jackstraw.core.errors import AxisRangeError, UnsupportedModeError

__all__ = [
    'validate_pcs',
    'pc_top_genes',
    'significant_genes',
    'pca_sig_genes',
]


def validate_pcs(pcs_use: int | Iterable[int], n_pcs: int) -> list[int]:
    """
    Normalize a PC selection to a duplicate-free list of 1-based indices.

    Raises:
        AxisRangeError: If the selection is empty or any PC is outside 1..n_pcs.
    """
    if isinstance(pcs_use, (int, np.integer)):
        pcs_use = [pcs_use]
    pcs = list(dict.fromkeys(int(pc) for pc in pcs_use))

    if not pcs:
        raise AxisRangeError("pcs_use must contain at least one PC")
    invalid = [pc for pc in pcs if not 1 <= pc <= n_pcs]
    if invalid:
        raise AxisRangeError(
            f"Requested PCs {invalid} outside the available range 1..{n_pcs}"
        )
    return pcs


def pc_top_genes(
    loadings: pd.DataFrame,
    pcs_use: int | Iterable[int],
    num_genes: int = 30,
    do_balanced: bool = False,
) -> list[str]:
    """
    Genes with the largest loadings on each requested PC, unioned.

    Ranking is by |loading| descending with a stable sort, so tied genes keep
    their row order. With ``do_balanced``, the quota is split between the
    most positive (num_genes - num_genes // 2) and the most negative
    (num_genes // 2) genes instead.

    Args:
        loadings: Genes × PCs loadings (columns in PC order).
        pcs_use: 1-based PC index or indices.
        num_genes: Genes per PC, clamped to the number of genes. 0 selects
            no genes.
        do_balanced: Split the quota between positive and negative loadings.

    Returns:
        Gene ids, PCs visited in the given order, first occurrence kept.
    """
    pcs = validate_pcs(pcs_use, loadings.shape[1])
    if num_genes < 0:
        raise ValueError(f"num_genes must be >= 0, got {num_genes}")
    num_genes = min(num_genes, loadings.shape[0])

    genes = loadings.index
    top: list[str] = []
    for pc in pcs:
        scores = loadings.iloc[:, pc - 1].to_numpy()
        if do_balanced:
            n_negative = num_genes // 2
            positive = np.argsort(-scores, kind="stable")[:num_genes - n_negative]
            negative = np.argsort(scores, kind="stable")[:n_negative]
            order = np.concatenate([positive, negative])
        else:
            order = np.argsort(-np.abs(scores), kind="stable")[:num_genes]
        top.extend(genes[order])

    return list(dict.fromkeys(top))


def significant_genes(
    empirical_p: pd.DataFrame,
    pcs_use: int | Iterable[int],
    pval_cut: float = 0.1,
    loadings: Optional[pd.DataFrame] = None,
    max_per_pc: Optional[int] = None,
) -> list[str]:
    """
    Genes whose minimum p-value across ``pcs_use`` is strictly below pval_cut.

    Args:
        empirical_p: Genes × PCs p-values.
        pcs_use: 1-based PC index or indices.
        pval_cut: P-value cutoff; genes exactly at the cutoff are excluded.
        loadings: Genes × PCs loadings, required when max_per_pc is set.
        max_per_pc: Keep only genes also in the top max_per_pc loadings of
            at least one requested PC. 0 selects no genes.

    Returns:
        Gene ids in p-value row order, or in top-gene order when capped.
    """
    pcs = validate_pcs(pcs_use, empirical_p.shape[1])

    pvals_min = empirical_p.iloc[:, [pc - 1 for pc in pcs]].min(axis=1)
    genes_use = list(empirical_p.index[(pvals_min < pval_cut).to_numpy()])

    if max_per_pc is not None:
        if loadings is None:
            raise ValueError("loadings are required when max_per_pc is set")
        significant = set(genes_use)
        top = pc_top_genes(loadings, pcs, num_genes=max_per_pc)
        genes_use = [gene for gene in top if gene in significant]

    return genes_use


def pca_sig_genes(
    dataset: ReductionHost,
    pcs_use: int | Iterable[int],
    pval_cut: float = 0.1,
    use_full: bool = False,
    max_per_pc: Optional[int] = None,
) -> list[str]:
    """
    Significant genes for a set of PCs, from a stored jackstraw result.

    Args:
        dataset: Host on which run_jackstraw() has been run.
        pcs_use: PCs to use (1-based).
        pval_cut: P-value cutoff.
        use_full: Use projected p-values for all genes. Not supported.
        max_per_pc: Maximum number of genes to return per PC (0 returns none).

    Returns:
        Genes significantly associated with at least one of the given PCs.

    Raises:
        UnsupportedModeError: If use_full is requested.
        ResultMissingError: If no jackstraw result is stored.
        AxisRangeError: If a PC was not tested.

    Example:
        >>> run_jackstraw(dataset, num_pc=10)
        >>> genes = pca_sig_genes(dataset, pcs_use=[1, 2, 3], pval_cut=0.05)
    """
    if use_full:
        raise UnsupportedModeError(
            "use_full requires projected p-values, which are not computed; "
            "use use_full=False"
        )

    result = dataset.get_jackstraw()
    loadings = dataset.get_pca_loadings() if max_per_pc is not None else None

    return significant_genes(
        result.empirical_p,
        pcs_use,
        pval_cut=pval_cut,
        loadings=loadings,
        max_per_pc=max_per_pc,
    )
