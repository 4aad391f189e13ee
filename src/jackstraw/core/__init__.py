"""
Core data structures for PCA significance testing.

This module provides the types the statistics modules build upon:

1. BioMatrix: Scaled expression matrix with feature/sample identifiers
2. PCAConfig / DimReduction: A stored PCA and the settings it was run with
3. ScaledDataset: Host container implementing the ReductionHost protocol
4. Errors: The JackStrawError hierarchy

Examples:
    >>> from jackstraw.core import BioMatrix, ScaledDataset
    >>>
    >>> dataset = ScaledDataset(matrix)
    >>> dataset.run_pca(pcs_compute=20)
"""

from jackstraw.core.biomatrix import BioMatrix
from jackstraw.core.dataset import ReductionHost, ScaledDataset
from jackstraw.core.errors import (
    AxisRangeError,
    ConfigMissingError,
    DegeneratePCAError,
    InsufficientDataError,
    JackStrawError,
    ResultMissingError,
    SchemaError,
    UnsupportedModeError,
)
from jackstraw.core.reduction import DimReduction, PCAConfig, pc_labels, run_pca

__all__ = [
    'BioMatrix',
    'ReductionHost',
    'ScaledDataset',
    'DimReduction',
    'PCAConfig',
    'pc_labels',
    'run_pca',
    'JackStrawError',
    'ConfigMissingError',
    'ResultMissingError',
    'InsufficientDataError',
    'UnsupportedModeError',
    'DegeneratePCAError',
    'AxisRangeError',
    'SchemaError',
]
