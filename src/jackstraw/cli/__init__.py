"""
jackstraw CLI - Command-line interface for PCA loading significance.

Commands:
    jackstraw run     - Compute PCA and jackstraw p-values
    jackstraw select  - Select genes significant for a set of PCs
"""

import argparse
import sys
from typing import Optional, List


def main(args: Optional[List[str]] = None) -> int:
    """Main CLI dispatcher for jackstraw."""
    parser = argparse.ArgumentParser(
        prog="jackstraw",
        description="Resampling significance for PCA gene loadings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  run       Compute PCA and jackstraw p-values
  select    Select genes significant for a set of PCs

Examples:
  jackstraw run --input scaled.csv --output results/js --num-pc 20 --n-jobs 4
  jackstraw run --config jackstraw.yaml --num-replicate 200
  jackstraw select --results results/js --pcs 1 2 3 --pval-cut 0.05
        """
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version="%(prog)s 0.1.0"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    from jackstraw.cli import run, select_genes
    run.register_parser(subparsers)
    select_genes.register_parser(subparsers)

    parsed_args = parser.parse_args(args)

    if parsed_args.command is None:
        parser.print_help()
        return 0

    # explicit flags, used to let CLI values override config files
    if args is not None:
        parsed_args._raw_args = list(args[1:])

    return parsed_args.func(parsed_args)


if __name__ == "__main__":
    sys.exit(main())
