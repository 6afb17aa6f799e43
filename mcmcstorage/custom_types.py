# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Custom type definitions for mcmcstorage.

This module provides type aliases used throughout the package for shapes, indices,
buffers, and the named records produced by column schemas.

All imports are conditional on TYPE_CHECKING to avoid circular imports while
maintaining proper type hints for development and documentation tools.
"""

import os

from typing import TYPE_CHECKING, Iterable, Mapping, Union

# Everything in this file is only imported if TYPE_CHECKING is True.
if TYPE_CHECKING:

    import numpy as np
    import numpy.typing as npt

# Scalar types
Integer = Union[int, "np.integer"]
"""Type alias for integer values.

Accepts both Python's built-in int and NumPy integer types.

:type: Union[int, np.integer]
"""

# Shapes and indices
Shape = tuple[Integer, ...]
"""Type alias for the shape of a variable. The empty tuple denotes a scalar.

:type: tuple[Integer, ...]
"""

MultiIndex = tuple[int, ...]
"""Type alias for a one-based multi-index parsed from a header field.

:type: tuple[int, ...]
"""

NamedShapes = Union[Mapping[str, Shape], Iterable[tuple[str, Shape]]]
"""Type alias for the ordered ``name -> shape`` description a column schema is
built from.

:type: Union[Mapping[str, Shape], Iterable[tuple[str, Shape]]]
"""

ParsedHeader = list[tuple[str, MultiIndex]]
"""Type alias for the parsed header intermediate: one ``(name, index)`` pair per
header field.

:type: list[tuple[str, MultiIndex]]
"""

# Views
ViewType = Union["npt.NDArray", "np.generic"]
"""Type alias for the value of a variable view. Scalars read from a single row are
NumPy scalars; everything else is a (read-only) array view.

:type: Union[npt.NDArray, np.generic]
"""

Record = dict[str, ViewType]
"""Type alias for a named record: variable name to view, in schema order.

:type: dict[str, ViewType]
"""

# Paths
PathType = Union[str, os.PathLike]
"""Type alias for filesystem paths.

:type: Union[str, os.PathLike]
"""
