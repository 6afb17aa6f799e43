# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
mcmcstorage: Named, shaped, zero-copy access to MCMC sampler output.

mcmcstorage reads the posterior samples written by the ``cmdstan`` sampler in its
CSV dialect and exposes them as chains whose variables are addressed by name and
returned as correctly shaped views of a single sample matrix, without copying.

Key Features:
    - Column schemas mapping multi-dimensional variables onto column ranges
    - Streaming CSV parsing with strict header and row validation
    - Warmup, thinning, and ordering metadata with chain concatenation
    - Discovery of the numbered output files of a run
    - Export to xarray and NetCDF

Global Variables:
    __version__: Package version string

Example:
    >>> import mcmcstorage as mcs
    >>> chain = mcs.read_chain("output_1.csv", warmup=1000)
    >>> for draw in mcs.posterior(chain):
    ...     print(draw["theta"].shape)
"""

from typeguard import install_import_hook

# Define the version
__version__ = "0.1.0"

# Set up type checking
install_import_hook("mcmcstorage")

# Import objects that should be easily accessible from the package level
# pylint: disable=wrong-import-position
from mcmcstorage import utils
from mcmcstorage.chains import (
    Chain,
    ColumnSchema,
    Layout,
    build_schema,
    concat,
    posterior,
    view,
)
from mcmcstorage.stan_csv import (
    collapse_contiguous_dimensions,
    matching_files,
    parse_schema,
    parse_variable_name,
    read_chain,
    read_chains,
    write_chain,
)

# Lazy import as xarray is slow to load
netcdf = utils.lazy_import("mcmcstorage.netcdf")
