# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Export of chains to xarray Datasets and NetCDF files.

This module converts chains into labeled :py:class:`xarray.Dataset` objects and
writes sampler CSV output to NetCDF, which is far faster to load than CSV and
supports chunked, out-of-core access for large runs.

Every variable of the column schema becomes a data variable with dimensions
``("draw", "<name>_dim_0", ...)``, prefixed by ``"chain"`` when several chains are
stacked. Multi-dimensional variables are taken from the column-major layout views
of the chain, so the stored arrays are indexed exactly as in the original sampler
program.

Example:
    >>> dataset = chain_to_dataset(read_chain("output_1.csv", warmup=1000))
    >>> netcdf_path = csv_to_netcdf("output_", precision="single")
"""

from __future__ import annotations

import os
import warnings

from typing import Literal, Mapping, Optional, Sequence, TYPE_CHECKING, Union

import numpy as np
import xarray as xr

from mcmcstorage import utils
from mcmcstorage.chains.chain import Chain
from mcmcstorage.defaults import DEFAULT_DIM_NAME_TEMPLATE, DEFAULT_PRECISION
from mcmcstorage.exceptions import SchemaMismatch, ShapeMismatch
from mcmcstorage.stan_csv.reader import matching_files, read_chains

if TYPE_CHECKING:
    from mcmcstorage import custom_types
    from mcmcstorage.chains.layout import ColumnSchema

# Maps between the precision of the data and the numpy types
_NP_TYPE_MAP = {
    "double": np.float64,
    "single": np.float32,
    "half": np.float16,
}


def _dim_names(schema: ColumnSchema) -> dict[str, tuple[str, ...]]:
    """Names of the non-draw dimensions of every variable."""
    return {
        name: tuple(
            DEFAULT_DIM_NAME_TEMPLATE.format(name=name, dimind=dimind)
            for dimind in range(layout.ndim)
        )
        for name, layout in schema.items()
    }


def _chain_attrs(chains: Sequence[Chain], include_warmup: bool) -> dict[str, int]:
    """NetCDF-compatible attributes describing the ordering of stacked chains.

    ``warmup`` counts the warmup rows present in the dataset, so it is 0 when they
    were excluded. ``discarded_warmup`` counts the rows that were left out.
    ``thinning`` is only recorded when every chain is ordered with the same
    thinning.
    """
    first = chains[0]
    is_ordered = all(chain.is_ordered for chain in chains)
    attrs = {
        "warmup": first.warmup if include_warmup else 0,
        "discarded_warmup": 0 if include_warmup else first.warmup,
        "is_ordered": int(is_ordered),
    }
    thinnings = {chain.thinning for chain in chains}
    if is_ordered and len(thinnings) == 1:
        attrs["thinning"] = thinnings.pop()
    return attrs


def chain_to_dataset(chain: Chain, include_warmup: bool = False) -> xr.Dataset:
    """Convert a chain into an xarray Dataset.

    :param chain: The chain to convert
    :type chain: Chain
    :param include_warmup: Whether to include the warmup rows. Defaults to False.
    :type include_warmup: bool

    :returns: Dataset with one data variable per schema variable and a ``draw``
        coordinate counting rows from the first included row
    :rtype: xr.Dataset
    """
    dim_names = _dim_names(chain.schema)
    data_vars = {
        name: (("draw", *dim_names[name]), chain.variable(name, include_warmup))
        for name in chain.schema
    }
    n_draws = chain.n_rows if include_warmup else chain.n_draws
    return xr.Dataset(
        data_vars,
        coords={"draw": np.arange(n_draws)},
        attrs=_chain_attrs([chain], include_warmup),
    )


def chains_to_dataset(
    chains: Union[Mapping[int, Chain], Sequence[Chain]],
) -> xr.Dataset:
    """Stack the post-warmup draws of several chains into one xarray Dataset.

    :param chains: Mapping from chain id to chain (as returned by
        :py:func:`~mcmcstorage.stan_csv.reader.read_chains`) or a sequence of
        chains, which are then numbered from 1
    :type chains: Union[Mapping[int, Chain], Sequence[Chain]]

    :returns: Dataset with dimensions ``("chain", "draw", ...)``
    :rtype: xr.Dataset

    :raises ValueError: If no chains are given
    :raises SchemaMismatch: If the chains do not share one schema
    :raises ShapeMismatch: If the chains have different numbers of post-warmup
        draws
    """
    if not isinstance(chains, Mapping):
        chains = dict(enumerate(chains, start=1))
    if len(chains) == 0:
        raise ValueError("At least one chain is required.")

    # All chains must agree on the schema and the number of draws
    chain_ids = list(chains)
    first = chains[chain_ids[0]]
    for chain_id, chain in chains.items():
        if chain.schema != first.schema:
            raise SchemaMismatch(
                f"Schema of chain {chain_id} differs from the schema of chain "
                f"{chain_ids[0]}."
            )
        if chain.n_draws != first.n_draws:
            raise ShapeMismatch(
                f"Chain {chain_id} has {chain.n_draws} post-warmup draws, chain "
                f"{chain_ids[0]} has {first.n_draws}."
            )
        if not chain.is_ordered:
            warnings.warn(
                f"Chain {chain_id} is not ordered; its draws will be stored as if "
                "they were consecutive."
            )

    # Stack the variables of every chain along a new leading dimension
    dim_names = _dim_names(first.schema)
    data_vars = {
        name: (
            ("chain", "draw", *dim_names[name]),
            np.stack([chain.variable(name) for chain in chains.values()]),
        )
        for name in first.schema
    }
    return xr.Dataset(
        data_vars,
        coords={"chain": chain_ids, "draw": np.arange(first.n_draws)},
        attrs=_chain_attrs(list(chains.values()), include_warmup=False),
    )


def csv_to_netcdf(
    prefix: custom_types.PathType,
    output_filename: Optional[custom_types.PathType] = None,
    precision: Literal["double", "single", "half"] = DEFAULT_PRECISION,
    mib_per_chunk: Optional[custom_types.Integer] = None,
    *,
    warmup: custom_types.Integer = 0,
) -> str:
    """Convert the sampler CSV files of a run into one NetCDF file.

    :param prefix: Path prefix of the CSV files, see
        :py:func:`~mcmcstorage.stan_csv.reader.matching_files`
    :type prefix: custom_types.PathType
    :param output_filename: Output filename. Defaults to the prefix without any
        trailing underscore, plus ``.nc``.
    :type output_filename: Optional[custom_types.PathType]
    :param precision: Floating-point precision of the stored arrays. Defaults to
        "double".
    :type precision: Literal["double", "single", "half"]
    :param mib_per_chunk: Memory limit per chunk in MiB. Defaults to None, meaning
        :py:data:`~mcmcstorage.defaults.DEFAULT_MIB_PER_CHUNK`.
    :type mib_per_chunk: Optional[custom_types.Integer]
    :param warmup: Number of warmup rows in each file, which are not stored.
        Defaults to 0.
    :type warmup: custom_types.Integer

    :returns: Path to the created NetCDF file
    :rtype: str

    :raises FileNotFoundError: If no file matches the prefix

    The conversion process:
        1. Discovers the CSV files of the run and reads one chain per file
        2. Stacks the chains on a leading ``chain`` dimension
        3. Writes with the ``h5netcdf`` engine, chunking every variable with the
           chain and draw dimensions held whole
    """
    prefix = os.fspath(prefix)
    if len(matching_files(prefix)) == 0:
        raise FileNotFoundError(
            f"No CSV files match the prefix '{prefix}'. Expected files named "
            f"'{prefix}<digits>.csv'."
        )
    output_filename = os.fspath(output_filename or prefix.rstrip("_") + ".nc")

    # Read and stack the chains
    dataset = chains_to_dataset(read_chains(prefix, warmup=warmup))

    # Chunk each variable with the chain and draw dimensions frozen. Empty arrays
    # cannot be chunked and are stored contiguously.
    dtype = _NP_TYPE_MAP[precision]
    encoding = {}
    for name, variable in dataset.data_vars.items():
        encoding[name] = {"dtype": dtype}
        if variable.size > 0:
            encoding[name]["chunksizes"] = utils.get_chunk_shape(
                array_shape=variable.shape,
                array_precision=precision,
                mib_per_chunk=mib_per_chunk,
                frozen_dims=(0, 1),
            )

    dataset.to_netcdf(output_filename, engine="h5netcdf", encoding=encoding)
    return output_filename
