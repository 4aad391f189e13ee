"""
Versioned layout of persisted jackstraw records.

A record is the JSON metadata written next to the p-value and null-score
tables. Older layouts are upgraded with pure functions, one step per version,
so that ``upgrade_record`` always returns the current layout or raises.

Version 1 (legacy, flat dotted keys):
    {"jackStraw.empP": "<file>", "jackStraw.fakePC": "<file>",
     "jackStraw.empP.full": "<file>" | null,
     "num.pc": int, "num.replicate": int, "prop.freq": float,
     "rev.pca": bool, "weight.by.var": bool}

Version 2 (current):
    {"schema_version": 2,
     "files": {"empirical_p": str, "fake_pc_scores": str,
               "empirical_p_full": str | null},
     "parameters": {"num_pc": int, "num_replicate": int, "prop_freq": float,
                    "n_permuted": int | null},
     "pca": {"rev_pca": bool, "weight_by_var": bool},
     "axis_scores": {"PC1": float, ...} | null,
     "summary": {"n_genes": int, "min_pvalue": {"PC1": float, ...}}}  (optional)
"""

from __future__ import annotations

import copy
from typing import Any, Callable, Dict

from jackstraw.core.errors import SchemaError

__all__ = ['CURRENT_SCHEMA_VERSION', 'upgrade_record', 'validate_record']

CURRENT_SCHEMA_VERSION = 2

_V1_FIELDS = (
    "jackStraw.empP",
    "jackStraw.fakePC",
    "num.pc",
    "num.replicate",
    "prop.freq",
    "rev.pca",
    "weight.by.var",
)

_V2_SECTIONS = {
    "files": ("empirical_p", "fake_pc_scores", "empirical_p_full"),
    "parameters": ("num_pc", "num_replicate", "prop_freq", "n_permuted"),
    "pca": ("rev_pca", "weight_by_var"),
}


def _require(record: Dict[str, Any], fields, where: str) -> None:
    missing = [f for f in fields if f not in record]
    if missing:
        raise SchemaError(f"{where} record is missing fields: {missing}")


def _detect_version(record: Dict[str, Any]) -> int:
    if "schema_version" in record:
        version = record["schema_version"]
        if not isinstance(version, int):
            raise SchemaError(f"schema_version must be an integer, got {version!r}")
        return version
    if any(key.startswith("jackStraw.") for key in record):
        return 1
    raise SchemaError("Cannot determine record schema version")


def _upgrade_v1(record: Dict[str, Any]) -> Dict[str, Any]:
    _require(record, _V1_FIELDS, "Version 1")
    return {
        "schema_version": 2,
        "files": {
            "empirical_p": record["jackStraw.empP"],
            "fake_pc_scores": record["jackStraw.fakePC"],
            "empirical_p_full": record.get("jackStraw.empP.full"),
        },
        "parameters": {
            "num_pc": int(record["num.pc"]),
            "num_replicate": int(record["num.replicate"]),
            "prop_freq": float(record["prop.freq"]),
            "n_permuted": None,
        },
        "pca": {
            "rev_pca": bool(record["rev.pca"]),
            "weight_by_var": bool(record["weight.by.var"]),
        },
        "axis_scores": None,
    }


_UPGRADES: Dict[int, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    1: _upgrade_v1,
}


def validate_record(record: Dict[str, Any]) -> None:
    """
    Check that a record has every field of the current layout.

    Raises:
        SchemaError: If the version is not current or a field is missing.
    """
    if record.get("schema_version") != CURRENT_SCHEMA_VERSION:
        raise SchemaError(
            f"Expected schema_version {CURRENT_SCHEMA_VERSION}, "
            f"got {record.get('schema_version')!r}"
        )
    _require(record, list(_V2_SECTIONS) + ["axis_scores"], "Version 2")
    for section, fields in _V2_SECTIONS.items():
        if not isinstance(record[section], dict):
            raise SchemaError(f"Section '{section}' must be a mapping")
        _require(record[section], fields, f"Version 2 '{section}'")


def upgrade_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Upgrade a persisted record to the current layout.

    The input is not modified. Current records are validated and returned
    as a copy.

    Raises:
        SchemaError: On unknown versions, future versions or missing fields.

    Examples:
        >>> upgraded = upgrade_record(json.loads(path.read_text()))
        >>> upgraded["schema_version"]
        2
    """
    if not isinstance(record, dict):
        raise SchemaError(f"Record must be a mapping, got {type(record).__name__}")

    version = _detect_version(record)
    if version > CURRENT_SCHEMA_VERSION:
        raise SchemaError(
            f"Record schema_version {version} is newer than supported "
            f"({CURRENT_SCHEMA_VERSION})"
        )

    upgraded = copy.deepcopy(record)
    while version < CURRENT_SCHEMA_VERSION:
        step = _UPGRADES.get(version)
        if step is None:
            raise SchemaError(f"No upgrade path from schema_version {version}")
        upgraded = step(upgraded)
        version = upgraded["schema_version"]

    validate_record(upgraded)
    return upgraded
