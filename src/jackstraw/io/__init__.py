"""
Input/output for scaled matrices and jackstraw results.

- loaders: Scaled expression CSV -> BioMatrix
- records: Save/load jackstraw results (CSV tables + JSON record)
- schema: Versioned record layout and upgrades
"""

from jackstraw.io.loaders import load_csv_matrix
from jackstraw.io.records import load_jackstraw, save_jackstraw
from jackstraw.io.schema import CURRENT_SCHEMA_VERSION, upgrade_record

__all__ = [
    'load_csv_matrix',
    'save_jackstraw',
    'load_jackstraw',
    'upgrade_record',
    'CURRENT_SCHEMA_VERSION',
]
