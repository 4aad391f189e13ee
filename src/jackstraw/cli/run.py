"""
jackstraw run command - PCA plus jackstraw significance.

Loads a scaled expression matrix, computes the PCA, runs the jackstraw
resampling and scores each PC. Writes:

    {output}/pca_loadings.csv    - genes × PCs loadings
    {output}/empirical_p.csv     - genes × PCs p-values
    {output}/fake_pc_scores.csv  - pooled null loadings
    {output}/jackstraw.json      - result record
    {output}/run_config.json     - effective configuration

Usage:
    jackstraw run --input scaled.csv --output results/jackstraw --num-pc 20
"""

import argparse
import dataclasses
import sys
from pathlib import Path


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the run subcommand."""
    parser = subparsers.add_parser(
        "run",
        help="Compute PCA and jackstraw p-values",
        description=(
            "Compute a PCA on scaled data and determine, by resampling, which "
            "genes are significantly associated with each PC."
        )
    )

    parser.add_argument("--input", "-i", type=Path, default=None,
                        help="Scaled expression CSV (genes x samples)")
    parser.add_argument("--output", "-o", type=Path, default=None,
                        help="Output directory for results")
    parser.add_argument("--config", "-c", type=Path, default=None,
                        help="Path to YAML/JSON config file (optional, CLI args override config values)")

    # PCA
    parser.add_argument("--pcs-compute", type=int, default=20,
                        help="Number of PCs to compute (default: 20)")
    parser.add_argument("--rev-pca", action="store_true", default=False,
                        help="Run PCA on the genes x samples matrix (reversed formulation)")
    parser.add_argument("--no-weight-by-var", dest="weight_by_var", action="store_false", default=True,
                        help="Do not weight PCA outputs by singular values")

    # Jackstraw
    parser.add_argument("--num-pc", type=int, default=20,
                        help="Number of PCs to test (default: 20)")
    parser.add_argument("--num-replicate", type=int, default=100,
                        help="Number of replicate samplings (default: 100)")
    parser.add_argument("--prop-freq", type=float, default=0.01,
                        help="Proportion of genes permuted per replicate (default: 0.01)")
    parser.add_argument("--score-thresh", type=float, default=1e-5,
                        help="P-value threshold for per-PC scores (default: 1e-5)")
    parser.add_argument("--n-jobs", type=int, default=1,
                        help="Parallel workers for replicates, -1 for all CPUs (default: 1)")
    parser.add_argument("--progress", dest="do_print", action="store_true", default=False,
                        help="Log replicate progress")

    parser.set_defaults(func=run_jackstraw_command)


def run_jackstraw_command(args: argparse.Namespace) -> int:
    """Execute the run command."""
    import logging
    import warnings
    from jackstraw.core.dataset import ScaledDataset
    from jackstraw.core.errors import JackStrawError
    from jackstraw.io.loaders import load_csv_matrix
    from jackstraw.io.records import atomic_write_json, save_jackstraw
    from jackstraw.stats.jackstraw import run_jackstraw, score_jackstraw

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logging.captureWarnings(True)
    warnings.simplefilter("always", UserWarning)
    logger = logging.getLogger(__name__)

    if args.config:
        from jackstraw.cli.config import load_config, merge_config_with_args, validate_config

        print(f"Loading configuration from: {args.config}")
        try:
            config = load_config(args.config)
            validate_config(config)
            cli_args = getattr(args, "_raw_args", None)
            if cli_args is None:
                cli_args = sys.argv[2:]  # Skip 'jackstraw run'
            args = merge_config_with_args(config, args, cli_args)
        except (FileNotFoundError, ValueError) as e:
            print(f"ERROR: Config file error: {e}")
            return 1

    if not args.input:
        print("ERROR: --input is required (via CLI or config file)")
        return 1
    if not args.output:
        print("ERROR: --output is required (via CLI or config file)")
        return 1

    print(f"\n{'='*70}")
    print("  PCA Jackstraw")
    print(f"{'='*70}\n")

    try:
        logger.info(f"Loading: {args.input}")
        matrix = load_csv_matrix(args.input)
        logger.info(f"Matrix: {matrix.n_features} genes x {matrix.n_samples} samples")

        dataset = ScaledDataset(matrix)
        pca = dataset.run_pca(
            pcs_compute=args.pcs_compute,
            rev_pca=args.rev_pca,
            weight_by_var=args.weight_by_var,
        )

        result = run_jackstraw(
            dataset,
            num_pc=args.num_pc,
            num_replicate=args.num_replicate,
            prop_freq=args.prop_freq,
            do_print=args.do_print,
            n_jobs=args.n_jobs,
        )
        scores = score_jackstraw(result, score_thresh=args.score_thresh)
    except (JackStrawError, FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}")
        return 1

    output: Path = args.output
    output.mkdir(parents=True, exist_ok=True)
    pca.loadings.to_csv(output / "pca_loadings.csv")
    save_jackstraw(result, output)

    from jackstraw.cli.config import schema_from_args
    run_config = dataclasses.asdict(schema_from_args(args))
    run_config["input"] = str(run_config["input"])
    run_config["output"] = str(run_config["output"])
    atomic_write_json(output / "run_config.json", run_config)

    print(f"\n{'PC':<6}{'sig genes':>12}{'expected':>10}{'score':>14}")
    for pc, row in scores.iterrows():
        print(f"{pc:<6}{int(row['n_significant']):>12}{int(row['expected']):>10}{row['score']:>14.3g}")
    print(f"\nResults written to {output}")

    return 0
