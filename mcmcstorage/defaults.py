# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Default configuration values for mcmcstorage.

This module centralizes the constants that define the supported CSV dialect along
with the defaults used when exporting chains to NetCDF.

The module is organized into logical groups covering:
    - The sampler CSV dialect (delimiters, comment marker, file naming)
    - NetCDF export settings

Default values cannot be programmatically altered. This documentation serves as a
reference for users and developers to understand the standard configuration used
by mcmcstorage.
"""

from typing import Literal

# CSV dialect
DEFAULT_DELIMITER: str = ","
"""Field delimiter of header and data lines.

:type: str
"""

DEFAULT_COMMENT_CHAR: str = "#"
"""Marker of a comment line. A line is a comment when this is its first
non-whitespace character.

:type: str
"""

DEFAULT_INDEX_SEPARATOR: str = "."
"""Separator between a variable name and its one-based indices in header fields,
as in ``theta.2.1``.

:type: str
"""

DEFAULT_FILE_EXTENSION: str = ".csv"
"""Extension of sampler output files discovered by
:py:func:`~mcmcstorage.stan_csv.reader.matching_files`.

:type: str
"""

# NetCDF export
DEFAULT_PRECISION: Literal["double", "single", "half"] = "double"
"""Default floating-point precision of arrays written to NetCDF.

:type: Literal["double", "single", "half"]
"""

DEFAULT_MIB_PER_CHUNK: int = 128
"""Default target size of a NetCDF chunk in MiB.

:type: int
"""

DEFAULT_DIM_NAME_TEMPLATE: str = "{name}_dim_{dimind}"
"""Template for naming the dimensions of a variable in an xarray Dataset. Formatted
with the variable ``name`` and the zero-based dimension index ``dimind``.

:type: str
"""
