"""
Configuration file support for the jackstraw CLI.

Supports YAML and JSON config files with CLI argument override.

Example (YAML):
    input: data/scaled.csv
    output: results/jackstraw
    pca:
      pcs_compute: 20
      rev_pca: false
      weight_by_var: true
    jackstraw:
      num_pc: 20
      num_replicate: 100
      prop_freq: 0.01
      n_jobs: 4
      do_print: true
      score_thresh: 0.00001
"""

import json
from argparse import Namespace
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


@dataclass
class PCASection:
    """PCA configuration."""
    pcs_compute: int = 20
    rev_pca: bool = False
    weight_by_var: bool = True


@dataclass
class JackStrawSection:
    """Jackstraw resampling configuration."""
    num_pc: int = 20
    num_replicate: int = 100
    prop_freq: float = 0.01
    n_jobs: int = 1
    do_print: bool = False
    score_thresh: float = 1e-5


@dataclass
class ConfigSchema:
    """
    Complete configuration schema for the jackstraw run command.

    Mirrors the CLI argument structure for consistency.
    """
    input: Optional[Path] = None
    output: Optional[Path] = None
    pca: PCASection = field(default_factory=PCASection)
    jackstraw: JackStrawSection = field(default_factory=JackStrawSection)


# config key -> argparse dest, per section
SECTION_MAPPINGS: Dict[str, Dict[str, str]] = {
    'pca': {
        'pcs_compute': 'pcs_compute',
        'rev_pca': 'rev_pca',
        'weight_by_var': 'weight_by_var',
    },
    'jackstraw': {
        'num_pc': 'num_pc',
        'num_replicate': 'num_replicate',
        'prop_freq': 'prop_freq',
        'n_jobs': 'n_jobs',
        'do_print': 'do_print',
        'score_thresh': 'score_thresh',
    },
}

# CLI flag spellings that set a differently named dest
FLAG_ALIASES = {
    'i': 'input',
    'o': 'output',
    'c': 'config',
    'no_weight_by_var': 'weight_by_var',
    'progress': 'do_print',
}


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Load configuration from YAML or JSON file.

    Parameters:
        config_path: Path to config file (.yaml, .yml, or .json)

    Returns:
        Dictionary with configuration values

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If file format is unsupported or invalid
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    suffix = config_path.suffix.lower()

    try:
        with open(config_path, 'r') as f:
            if suffix in ('.yaml', '.yml'):
                config = yaml.safe_load(f)
            elif suffix == '.json':
                config = json.load(f)
            else:
                raise ValueError(
                    f"Unsupported config format: {suffix}. "
                    f"Use .yaml, .yml, or .json"
                )
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}")

    if config is None:
        return {}

    if not isinstance(config, dict):
        raise ValueError("Config file must contain a dictionary/mapping at top level")

    return config


def explicit_arg_names(cli_args: Optional[List[str]]) -> set:
    """Argparse dests explicitly given on the command line."""
    explicit = set()
    for arg in cli_args or []:
        if arg.startswith('--'):
            name = arg[2:].split('=', 1)[0].replace('-', '_')
        elif arg.startswith('-') and len(arg) == 2:
            name = arg[1]
        else:
            continue
        explicit.add(FLAG_ALIASES.get(name, name))
    return explicit


def _merge_value(cli_value: Any, config_value: Any, was_explicitly_set: bool) -> Any:
    """
    Merge a single config value with CLI argument.

    Rules:
    - CLI args ALWAYS override config if explicitly set
    - If CLI arg not set, use config value
    - If neither set, keep CLI default
    """
    if was_explicitly_set:
        return cli_value
    if config_value is not None:
        return config_value
    return cli_value


def merge_config_with_args(config: Dict[str, Any], args: Namespace, cli_args: Optional[List[str]] = None) -> Namespace:
    """
    Merge config file values with CLI arguments.

    Priority (highest to lowest):
    1. Explicitly provided CLI arguments
    2. Config file values
    3. CLI argument defaults

    Parameters:
        config: Configuration dictionary from load_config()
        args: Parsed CLI arguments (argparse.Namespace)
        cli_args: Raw CLI arguments list (for detecting explicit values)
                  If None, assumes all args are defaults

    Returns:
        Updated Namespace with merged values
    """
    explicit_args = explicit_arg_names(cli_args)
    merged = Namespace(**vars(args))

    for key in ('input', 'output'):
        if key in config:
            value = config[key]
            if value is not None:
                value = Path(value)
            setattr(merged, key, _merge_value(getattr(merged, key, None), value, key in explicit_args))

    for section, mapping in SECTION_MAPPINGS.items():
        values = config.get(section) or {}
        for config_key, arg_name in mapping.items():
            if config_key in values:
                setattr(merged, arg_name, _merge_value(
                    getattr(merged, arg_name, None),
                    values[config_key],
                    arg_name in explicit_args,
                ))

    return merged


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate configuration structure and values.

    Raises:
        ValueError: If configuration is invalid
    """
    for section in SECTION_MAPPINGS:
        if section in config and not isinstance(config[section], dict):
            raise ValueError(f"Config section '{section}' must be a mapping")

    unknown = [
        f"{section}.{key}"
        for section, mapping in SECTION_MAPPINGS.items()
        for key in (config.get(section) or {})
        if key not in mapping
    ]
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")

    pca = config.get('pca') or {}
    js = config.get('jackstraw') or {}

    for section, values, key in (
        ('pca', pca, 'pcs_compute'),
        ('jackstraw', js, 'num_pc'),
        ('jackstraw', js, 'num_replicate'),
    ):
        if key in values:
            value = values[key]
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(f"{section}.{key} must be a positive integer, got: {value}")

    if 'n_jobs' in js:
        n_jobs = js['n_jobs']
        if isinstance(n_jobs, bool) or not isinstance(n_jobs, int) or n_jobs == 0:
            raise ValueError(f"jackstraw.n_jobs must be a non-zero integer, got: {n_jobs}")

    if 'prop_freq' in js:
        prop_freq = js['prop_freq']
        if not isinstance(prop_freq, (int, float)) or not 0 < prop_freq <= 1:
            raise ValueError(f"jackstraw.prop_freq must be in (0, 1], got: {prop_freq}")

    if 'score_thresh' in js:
        score_thresh = js['score_thresh']
        if not isinstance(score_thresh, (int, float)) or not 0 < score_thresh < 1:
            raise ValueError(f"jackstraw.score_thresh must be in (0, 1), got: {score_thresh}")

    for section, values, key in (
        ('pca', pca, 'rev_pca'),
        ('pca', pca, 'weight_by_var'),
        ('jackstraw', js, 'do_print'),
    ):
        if key in values and not isinstance(values[key], bool):
            raise ValueError(f"{section}.{key} must be true or false, got: {values[key]}")


def schema_from_args(args: Namespace) -> ConfigSchema:
    """Effective configuration of a (merged) run, for the run record."""
    return ConfigSchema(
        input=args.input,
        output=args.output,
        pca=PCASection(
            pcs_compute=args.pcs_compute,
            rev_pca=args.rev_pca,
            weight_by_var=args.weight_by_var,
        ),
        jackstraw=JackStrawSection(
            num_pc=args.num_pc,
            num_replicate=args.num_replicate,
            prop_freq=args.prop_freq,
            n_jobs=args.n_jobs,
            do_print=args.do_print,
            score_thresh=args.score_thresh,
        ),
    )
