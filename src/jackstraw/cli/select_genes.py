"""
jackstraw select command - significant genes for a set of PCs.

Reads a result directory written by ``jackstraw run`` and prints the genes
whose p-value is below the cutoff for at least one requested PC.

Usage:
    jackstraw select --results results/jackstraw --pcs 1 2 3 --pval-cut 0.05
    jackstraw select --results results/jackstraw --pcs 1 2 --max-per-pc 50 -o genes.txt
"""

import argparse
from pathlib import Path


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the select subcommand."""
    parser = subparsers.add_parser(
        "select",
        help="Select genes significant for a set of PCs",
        description=(
            "Select genes from a jackstraw result whose minimum p-value across "
            "the requested PCs is below a cutoff, optionally capped per PC."
        )
    )

    parser.add_argument("--results", "-r", type=Path, required=True,
                        help="Result directory written by 'jackstraw run'")
    parser.add_argument("--pcs", type=int, nargs="+", required=True,
                        help="PCs to use (1-based)")
    parser.add_argument("--pval-cut", type=float, default=0.1,
                        help="P-value cutoff (default: 0.1)")
    parser.add_argument("--max-per-pc", type=int, default=None,
                        help="Maximum genes per PC (requires pca_loadings.csv)")
    parser.add_argument("--output", "-o", type=Path, default=None,
                        help="Write genes to this file (default: stdout)")

    parser.set_defaults(func=run_select)


def run_select(args: argparse.Namespace) -> int:
    """Execute the select command."""
    import logging
    import pandas as pd
    from jackstraw.core.errors import JackStrawError
    from jackstraw.io.records import load_jackstraw
    from jackstraw.stats.selection import significant_genes

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger = logging.getLogger(__name__)

    try:
        result = load_jackstraw(args.results)

        loadings = None
        if args.max_per_pc is not None:
            loadings_path = args.results / "pca_loadings.csv"
            if not loadings_path.exists():
                raise FileNotFoundError(f"Loadings not found: {loadings_path}")
            loadings = pd.read_csv(loadings_path, index_col=0)
            loadings.index = loadings.index.astype(str)

        genes = significant_genes(
            result.empirical_p,
            args.pcs,
            pval_cut=args.pval_cut,
            loadings=loadings,
            max_per_pc=args.max_per_pc,
        )
    except (JackStrawError, FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}")
        return 1

    logger.info(
        f"{len(genes)} genes with p < {args.pval_cut} on PCs {args.pcs}"
        + (f" (max {args.max_per_pc} per PC)" if args.max_per_pc is not None else "")
    )

    text = "\n".join(genes) + ("\n" if genes else "")
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text)
        print(f"Wrote {len(genes)} genes to {args.output}")
    else:
        print(text, end="")

    return 0
