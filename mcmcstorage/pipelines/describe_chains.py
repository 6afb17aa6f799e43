# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Prints the schema and ordering of sampler CSV files."""

from __future__ import annotations

import argparse

from typing import Optional, Sequence

from mcmcstorage.stan_csv.reader import read_chain


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Print the column schema and ordering of sampler CSV files."
    )
    parser.add_argument(
        "paths",
        type=str,
        nargs="+",
        help="Paths to the CSV files.",
    )
    parser.add_argument(
        "--warmup",
        type=int,
        default=0,
        help="Number of leading draws in each file that are warmup. Default = 0.",
    )
    parser.add_argument(
        "--thinning",
        type=int,
        default=1,
        help="Thinning of the draws in each file. Default = 1.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None):
    """Runs the script."""
    args = parse_args(argv)
    for path in args.paths:
        chain = read_chain(path, warmup=args.warmup, thinning=args.thinning)
        print(f"{path}: {chain}")


if __name__ == "__main__":
    main()
