# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Converts the sampler CSV files of a run into a single NetCDF file."""

from __future__ import annotations

import argparse

from typing import Optional, Sequence

from mcmcstorage.defaults import DEFAULT_PRECISION
from mcmcstorage.netcdf import csv_to_netcdf


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Convert sampler CSV output (<prefix><digits>.csv) to NetCDF."
    )

    # Required arguments
    parser.add_argument(
        "prefix",
        type=str,
        help="Path prefix of the CSV files, e.g. 'output/samples_'.",
    )

    # Now some optionals
    optional_group = parser.add_argument_group("optional arguments")
    optional_group.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output filename. Default = the prefix with '.nc' appended.",
    )
    optional_group.add_argument(
        "--precision",
        type=str,
        choices=["double", "single", "half"],
        default=DEFAULT_PRECISION,
        help=f"Precision of the stored arrays. Default = {DEFAULT_PRECISION}.",
    )
    optional_group.add_argument(
        "--mib_per_chunk",
        type=int,
        default=None,
        help="Target chunk size in MiB. Default = 128.",
    )
    optional_group.add_argument(
        "--warmup",
        type=int,
        default=0,
        help="Number of leading draws in each file that are warmup. Default = 0.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None):
    """Runs the script."""
    args = parse_args(argv)
    output = csv_to_netcdf(
        args.prefix,
        output_filename=args.output,
        precision=args.precision,
        mib_per_chunk=args.mib_per_chunk,
        warmup=args.warmup,
    )
    print(output)


if __name__ == "__main__":
    main()
