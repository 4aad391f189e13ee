"""
Statistical testing module for PCA loading significance.

Exports core functions for:
- Null loadings from shuffled genes (jackstraw replicates)
- Empirical p-values per gene and PC
- Per-PC significance scores
- Gene selection by p-value with optional per-PC caps
"""

from .null_model import (
    permuted_feature_count,
    shuffle_rows,
    jack_random,
)
from .jackstraw import (
    JackStrawResult,
    empirical_pvalues,
    run_null_replicates,
    run_jackstraw,
    score_jackstraw,
)
from .selection import (
    pc_top_genes,
    significant_genes,
    pca_sig_genes,
)

__all__ = [
    "permuted_feature_count",
    "shuffle_rows",
    "jack_random",
    "JackStrawResult",
    "empirical_pvalues",
    "run_null_replicates",
    "run_jackstraw",
    "score_jackstraw",
    "pc_top_genes",
    "significant_genes",
    "pca_sig_genes",
]
