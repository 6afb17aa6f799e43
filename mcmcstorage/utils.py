# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Utility functions for the mcmcstorage package.

This module provides utilities that support the core functionality of mcmcstorage,
including:

    - A lazy importing mechanism so that heavy optional stacks (xarray, h5netcdf)
      are only loaded when the NetCDF export is actually used
    - Chunk-shape calculation for writing large sample arrays to NetCDF

Users will not typically need to interact with this module directly--it is designed
to be used internally by mcmcstorage.
"""

from __future__ import annotations

import importlib.util
import sys

from types import ModuleType
from typing import Collection, Literal, TYPE_CHECKING

import numpy as np

from mcmcstorage.defaults import DEFAULT_MIB_PER_CHUNK

if TYPE_CHECKING:
    from mcmcstorage import custom_types

# Bytes per array entry for each supported precision
_BYTES_PER_ENTRY = {"double": 8, "single": 4, "half": 2}


def lazy_import(name: str) -> ModuleType:
    """Import a module only when it is first needed.

    :param name: The fully qualified module name to import
    :type name: str

    :returns: The imported module
    :rtype: module

    :raises ImportError: If the specified module cannot be found

    Example:
        >>> netcdf = lazy_import("mcmcstorage.netcdf")
        >>> # xarray is imported on first attribute access
        >>> dataset = netcdf.chain_to_dataset(chain)

    .. note::
        If the module is already imported, returns the cached version
        from sys.modules.
    """
    # Check if the module is already imported
    if name in sys.modules:
        return sys.modules[name]

    # If not, import it lazily (modified from here:
    # https://docs.python.org/3/library/importlib.html#implementing-lazy-imports)
    spec = importlib.util.find_spec(name)
    if spec is None:
        raise ImportError(f"Module '{name}' not found.")

    # Create the module with a lazy loader
    spec.loader = importlib.util.LazyLoader(spec.loader)
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    spec.loader.exec_module(module)
    return module


def get_chunk_shape(
    array_shape: tuple[custom_types.Integer, ...],
    array_precision: Literal["double", "single", "half"],
    mib_per_chunk: custom_types.Integer | None = None,
    frozen_dims: Collection[custom_types.Integer] = (),
) -> tuple[int, ...]:
    """Calculate a chunk shape for storing an array under a memory budget.

    :param array_shape: Shape of the array to be chunked
    :type array_shape: tuple[custom_types.Integer, ...]
    :param array_precision: Numerical precision assumed in calculating memory usage.
    :type array_precision: Literal["double", "single", "half"]
    :param mib_per_chunk: Target chunk size in MiB. If None, uses
        :py:data:`~mcmcstorage.defaults.DEFAULT_MIB_PER_CHUNK`.
    :type mib_per_chunk: Union[custom_types.Integer, None]
    :param frozen_dims: Dimensions that should not be chunked
    :type frozen_dims: Collection[custom_types.Integer]

    :returns: Chunk shape for the array
    :rtype: tuple[int, ...]

    :raises ValueError: If mib_per_chunk is not positive
    :raises IndexError: If frozen_dims contains invalid dimension indices

    The algorithm:
        1. Calculates memory usage per array element based on precision
        2. Sets frozen dimensions to their full size
        3. Grows the remaining dimensions from last to first until the chunk
           reaches the memory limit (or as close to it as possible if frozen
           dimensions alone exceed the limit)

    Example:
        >>> # Chunk a (4, 1000, 300) array, keeping chain and draw dims intact
        >>> shape = get_chunk_shape(
        ...     (4, 1000, 300), "double", mib_per_chunk=1, frozen_dims=(0, 1)
        ... )
    """
    mib_per_chunk = DEFAULT_MIB_PER_CHUNK if mib_per_chunk is None else mib_per_chunk
    if mib_per_chunk <= 0:
        raise ValueError("`mib_per_chunk` must be a positive integer or `None`.")

    # Negative frozen dimensions to their positive equivalent
    frozen_dims = {
        len(array_shape) + dimind if dimind < 0 else dimind for dimind in frozen_dims
    }
    if len(frozen_dims) != 0 and (
        min(frozen_dims) < 0 or max(frozen_dims) >= len(array_shape)
    ):
        raise IndexError("Dimensions out of range for array shape.")

    # Get the MiB per entry
    mib_per_entry = _BYTES_PER_ENTRY[array_precision] / 1024**2

    # The base chunk shape is ones, except for the frozen dimensions, which are
    # set to the size of the dimension.
    chunk_shape = [
        int(dimsize) if dimind in frozen_dims else 1
        for dimind, dimsize in enumerate(array_shape)
    ]

    # If the frozen volume already meets the limit, we are done
    volume = float(np.prod(chunk_shape)) * mib_per_entry
    if volume >= mib_per_chunk:
        return tuple(chunk_shape)

    # Otherwise grow the dimensions from last to first
    for dimind in range(len(array_shape) - 1, -1, -1):
        if dimind in frozen_dims:
            continue
        dimsize = int(array_shape[dimind])

        # How many elements on this dimension fit?
        num_elements = int(mib_per_chunk // volume)
        assert num_elements > 0, "Chunk size is too small."

        # The whole dimension fits. Record and move on.
        if num_elements >= dimsize:
            chunk_shape[dimind] = dimsize
            volume *= dimsize
            continue

        # Otherwise this dimension is partially chunked and we are done
        chunk_shape[dimind] = num_elements
        return tuple(chunk_shape)

    # The whole array fits in one chunk
    return tuple(int(dimsize) for dimsize in array_shape)
