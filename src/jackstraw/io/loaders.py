"""
CSV loader for scaled expression matrices.

Expected CSV format:
    - First column: feature IDs (genes)
    - Remaining columns: sample IDs (headers) with scaled numerical values

Example:
```
"","cell_0001","cell_0002"
"CD3E",1.52,-0.31
"MS4A1",-0.87,2.04
```

Examples:
    >>> from pathlib import Path
    >>> from jackstraw.io.loaders import load_csv_matrix
    >>>
    >>> matrix = load_csv_matrix(Path("scaled.csv"))
    >>> print(f"Loaded {matrix.n_features} genes × {matrix.n_samples} samples")
"""

from __future__ import annotations

from pathlib import Path
import warnings
import numpy as np
import pandas as pd

from jackstraw.core.biomatrix import BioMatrix

__all__ = ['load_csv_matrix']


def load_csv_matrix(path: Path) -> BioMatrix:
    """
    Load a scaled features × samples CSV into a BioMatrix.

    Args:
        path: Path to CSV file

    Returns:
        BioMatrix with data, feature_ids and sample_ids from the file

    Raises:
        FileNotFoundError: If path does not exist
        ValueError: If CSV is malformed (empty, non-numeric or infinite values)
    """
    if not isinstance(path, Path):
        path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {path}")

    if not path.is_file():
        raise ValueError(f"Path is not a file: {path}")

    try:
        df = pd.read_csv(path, index_col=0)
    except pd.errors.EmptyDataError as e:
        raise ValueError(f"CSV file is empty: {path}") from e
    except Exception as e:
        raise ValueError(f"Failed to read CSV file {path}: {e}") from e

    if df.shape[0] == 0:
        raise ValueError(f"CSV contains no features (rows): {path}")

    if df.shape[1] == 0:
        raise ValueError(f"CSV contains no samples (columns): {path}")

    if df.index.duplicated().any():
        n_duplicates = df.index.duplicated().sum()
        warnings.warn(
            f"Found {n_duplicates} duplicate feature IDs. "
            "Using first occurrence of each.",
            UserWarning,
            stacklevel=2,
        )
        df = df[~df.index.duplicated(keep='first')]

    if df.columns.duplicated().any():
        n_duplicates = df.columns.duplicated().sum()
        warnings.warn(
            f"Found {n_duplicates} duplicate sample IDs. "
            "Using first occurrence of each.",
            UserWarning,
            stacklevel=2,
        )
        df = df.loc[:, ~df.columns.duplicated(keep='first')]

    try:
        data = df.to_numpy(dtype=float)
    except ValueError as e:
        non_numeric = df.columns[
            df.apply(lambda col: pd.to_numeric(col, errors='coerce').isna() & col.notna()).any()
        ]
        raise ValueError(
            f"CSV contains non-numeric values in columns: {list(non_numeric[:5])}"
        ) from e

    if np.isnan(data).any():
        raise ValueError(
            f"CSV contains {int(np.isnan(data).sum())} missing values. "
            "Scaled data must be complete."
        )

    if np.isinf(data).any():
        raise ValueError(
            f"CSV contains {int(np.isinf(data).sum())} infinite values. "
            "Please clean data before loading."
        )

    return BioMatrix(
        data=data,
        feature_ids=pd.Index(df.index.astype(str)),
        sample_ids=pd.Index(df.columns.astype(str)),
    )
