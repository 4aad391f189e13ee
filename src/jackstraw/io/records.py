"""
Persistence of jackstraw results.

A saved result is a directory holding:
    empirical_p.csv     - genes × PCs p-values
    fake_pc_scores.csv  - pooled null loadings, one column per PC
    jackstraw.json      - metadata record (see jackstraw.io.schema)

The JSON record is written last and atomically (temp file + os.replace), so a
directory with a readable record always has complete tables next to it.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import pandas as pd

from jackstraw.core.reduction import PCAConfig
from jackstraw.io.schema import CURRENT_SCHEMA_VERSION, upgrade_record
from jackstraw.stats.jackstraw import JackStrawResult

logger = logging.getLogger(__name__)

__all__ = ['RECORD_NAME', 'atomic_write_json', 'save_jackstraw', 'load_jackstraw']

RECORD_NAME = "jackstraw.json"
EMPIRICAL_P_NAME = "empirical_p.csv"
FAKE_SCORES_NAME = "fake_pc_scores.csv"


def atomic_write_json(path: str | os.PathLike, data: Any, *, indent: int = 2) -> None:
    """Write *data* as JSON atomically via temp-file + rename.

    Readers see either the old file or the new one, never a partial write.
    """
    path = str(path)
    dir_path = os.path.dirname(path) or "."
    tmp_path: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w", dir=dir_path, suffix=".tmp", delete=False
        ) as tmp:
            tmp_path = tmp.name
            json.dump(data, tmp, indent=indent)
        os.replace(tmp_path, path)
    except BaseException:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def _build_record(result: JackStrawResult) -> dict:
    summary = result.to_dict()
    return {
        "schema_version": CURRENT_SCHEMA_VERSION,
        "files": {
            "empirical_p": EMPIRICAL_P_NAME,
            "fake_pc_scores": FAKE_SCORES_NAME,
            "empirical_p_full": None,
        },
        "parameters": {
            key: summary[key]
            for key in ("num_pc", "num_replicate", "prop_freq", "n_permuted")
        },
        "pca": summary["pca"],
        "axis_scores": summary.get("axis_scores"),
        "summary": {
            "n_genes": summary["n_genes"],
            "min_pvalue": summary["min_pvalue"],
        },
    }


def save_jackstraw(result: JackStrawResult, directory: Path) -> Path:
    """
    Write a jackstraw result to a directory, replacing any previous one.

    Returns:
        Path of the JSON record.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    result.empirical_p.to_csv(directory / EMPIRICAL_P_NAME)
    result.fake_pc_scores.to_csv(directory / FAKE_SCORES_NAME, index=False)

    record_path = directory / RECORD_NAME
    atomic_write_json(record_path, _build_record(result))
    logger.info(f"Wrote jackstraw result ({result.num_pc} PCs) to {directory}")
    return record_path


def load_jackstraw(directory: Path) -> JackStrawResult:
    """
    Read a jackstraw result written by save_jackstraw() or an older layout.

    Raises:
        FileNotFoundError: If the record or a referenced table is missing.
        SchemaError: If the record cannot be upgraded.
    """
    directory = Path(directory)
    record_path = directory / RECORD_NAME
    if not record_path.exists():
        raise FileNotFoundError(f"Jackstraw record not found: {record_path}")

    with open(record_path, "r") as f:
        record = upgrade_record(json.load(f))

    files = record["files"]
    params = record["parameters"]

    empirical_p = pd.read_csv(directory / files["empirical_p"], index_col=0)
    empirical_p.index = empirical_p.index.astype(str)
    fake_pc_scores = pd.read_csv(directory / files["fake_pc_scores"])

    n_permuted = params["n_permuted"]
    if n_permuted is None:
        n_permuted = len(fake_pc_scores) // max(1, params["num_replicate"])

    axis_scores = None
    if record["axis_scores"] is not None:
        axis_scores = pd.DataFrame(
            {"score": pd.Series(record["axis_scores"], dtype=float)}
        )
        axis_scores.index.name = "pc"

    return JackStrawResult(
        empirical_p=empirical_p,
        fake_pc_scores=fake_pc_scores,
        num_replicate=params["num_replicate"],
        prop_freq=params["prop_freq"],
        n_permuted=n_permuted,
        config=PCAConfig(**record["pca"]),
        axis_scores=axis_scores,
    )
