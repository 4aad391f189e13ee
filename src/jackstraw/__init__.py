"""
jackstraw - Resampling significance for PCA gene loadings

Determines which genes contribute non-randomly to each principal component of
a scaled expression matrix by comparing observed loadings against loadings of
randomly shuffled genes.
"""

__version__ = "0.1.0"

from jackstraw.core.biomatrix import BioMatrix
from jackstraw.core.dataset import ScaledDataset
from jackstraw.stats.jackstraw import JackStrawResult, run_jackstraw, score_jackstraw
from jackstraw.stats.selection import pca_sig_genes, pc_top_genes

__all__ = [
    "BioMatrix",
    "ScaledDataset",
    "JackStrawResult",
    "run_jackstraw",
    "score_jackstraw",
    "pca_sig_genes",
    "pc_top_genes",
]
