# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Column layouts and column schemas.

A sample matrix stores every variable of a sampler run as a contiguous range of
columns. This module describes those ranges:

    - :py:class:`Layout` gives the offset, length, and shape of a single variable
    - :py:class:`ColumnSchema` is the ordered, gap-free collection of layouts that
      covers every column of a dataset

Views produced here never copy data. Multi-dimensional variables are stored in
column-major (Fortran) order, i.e. the first index varies fastest, so a view is
built by assigning column-major strides to the variable's column range.

Example:
    >>> schema = build_schema({"a": (), "b": (2,), "c": (2, 2)})
    >>> schema.n_columns
    7
    >>> record = schema.view(np.arange(7.0))
    >>> record["c"]
    array([[3., 5.],
           [4., 6.]])
"""

from __future__ import annotations

import itertools
import math

from types import MappingProxyType
from typing import Iterator, Mapping, TYPE_CHECKING

import numpy as np
import numpy.typing as npt

from numpy.lib.stride_tricks import as_strided

from mcmcstorage.defaults import DEFAULT_INDEX_SEPARATOR
from mcmcstorage.exceptions import ConstructionError, ShapeMismatch

if TYPE_CHECKING:
    from mcmcstorage import custom_types


def column_major_indices(
    shape: tuple[custom_types.Integer, ...],
) -> Iterator[tuple[int, ...]]:
    """Iterate over the one-based multi-indices of an array in column-major order.

    :param shape: Shape of the array. The empty tuple yields a single empty index.
    :type shape: tuple[custom_types.Integer, ...]

    :returns: Iterator over one-based index tuples, first index varying fastest
    :rtype: Iterator[tuple[int, ...]]

    Example:
        >>> list(column_major_indices((2, 2)))
        [(1, 1), (2, 1), (1, 2), (2, 2)]
    """
    # Itertools varies the last position fastest, so we work on the reversed shape
    # and flip every index back
    ranges = [range(1, int(dimsize) + 1) for dimsize in reversed(shape)]
    for reversed_index in itertools.product(*ranges):
        yield reversed_index[::-1]


def _column_major_strides(
    shape: tuple[int, ...], itemstride: int
) -> tuple[int, ...]:
    """Strides (in bytes) of a column-major array with the given element stride."""
    strides = []
    stride = itemstride
    for dimsize in shape:
        strides.append(stride)
        stride *= dimsize
    return tuple(strides)


def _readonly(array: npt.NDArray) -> npt.NDArray:
    """Return a non-writeable view of `array`."""
    array = array.view()
    array.flags.writeable = False
    return array


class Layout:
    """Placement of one named variable within a row of columns.

    :param offset: Zero-based first column of the variable
    :type offset: custom_types.Integer
    :param length: Number of columns the variable occupies
    :type length: custom_types.Integer
    :param shape: Shape of the variable. The empty tuple denotes a scalar.
    :type shape: tuple[custom_types.Integer, ...]

    :raises ConstructionError: If ``offset < 0``, ``length <= 0``, any dimension is
        negative, or ``length`` differs from the product of ``shape``

    Layouts are immutable and compare by value.

    Example:
        >>> layout = Layout(1, 6, (2, 3))
        >>> str(layout)
        '2:7 Array(2, 3)'
    """

    __slots__ = ("_offset", "_length", "_shape")

    def __init__(
        self,
        offset: custom_types.Integer,
        length: custom_types.Integer,
        shape: tuple[custom_types.Integer, ...],
    ):
        # Normalize to plain Python integers
        offset, length = int(offset), int(length)
        shape = tuple(int(dimsize) for dimsize in shape)

        # Check the invariants
        if offset < 0:
            raise ConstructionError(f"Layout offset must be non-negative, got {offset}.")
        if length <= 0:
            raise ConstructionError(f"Layout length must be positive, got {length}.")
        if any(dimsize < 0 for dimsize in shape):
            raise ConstructionError(
                f"Layout dimensions must be non-negative, got {shape}."
            )
        if math.prod(shape) != length:
            raise ConstructionError(
                f"Layout length {length} does not match the product of shape {shape}."
            )

        self._offset = offset
        self._length = length
        self._shape = shape

    @property
    def offset(self) -> int:
        """Zero-based first column of the variable."""
        return self._offset

    @property
    def length(self) -> int:
        """Number of columns occupied."""
        return self._length

    @property
    def shape(self) -> tuple[int, ...]:
        """Shape of the variable; ``()`` for scalars."""
        return self._shape

    @property
    def ndim(self) -> int:
        """Number of dimensions of the variable."""
        return len(self._shape)

    @property
    def is_scalar(self) -> bool:
        """Whether the variable is a scalar."""
        return self._shape == ()

    @property
    def columns(self) -> slice:
        """The variable's range of columns as a slice."""
        return slice(self._offset, self._offset + self._length)

    def view(self, buffer: npt.NDArray) -> custom_types.ViewType:
        """Build a zero-copy view of this variable into `buffer`.

        :param buffer: A row (1D) or a matrix of rows (2D) of the flat column space
        :type buffer: npt.NDArray

        :returns: For a 1D buffer, the scalar value or a read-only array of shape
            ``self.shape``. For a 2D buffer, a read-only array of shape
            ``(n_rows, *self.shape)``.
        :rtype: custom_types.ViewType

        :raises ShapeMismatch: If the buffer is not 1D or 2D or its last axis does
            not contain the variable's columns
        """
        # Check the buffer
        if buffer.ndim not in (1, 2):
            raise ShapeMismatch(
                f"Views require a 1D or 2D buffer, got {buffer.ndim} dimensions."
            )
        if buffer.shape[-1] < self._offset + self._length:
            raise ShapeMismatch(
                f"Buffer with {buffer.shape[-1]} columns cannot hold columns "
                f"{self._offset}:{self._offset + self._length}."
            )

        # Scalars are the element or the column
        if self.is_scalar:
            if buffer.ndim == 1:
                return buffer[self._offset]
            return _readonly(buffer[:, self._offset])

        # Otherwise assign column-major strides to the column range. Slicing first
        # keeps the strided view within the buffer.
        columns = buffer[..., self.columns]
        shape = columns.shape[:-1] + self._shape
        strides = columns.strides[:-1] + _column_major_strides(
            self._shape, columns.strides[-1]
        )
        return as_strided(columns, shape=shape, strides=strides, writeable=False)

    def __eq__(self, other):
        if not isinstance(other, Layout):
            return NotImplemented
        return (self._offset, self._length, self._shape) == (
            other._offset,
            other._length,
            other._shape,
        )

    def __hash__(self):
        return hash((self._offset, self._length, self._shape))

    def __repr__(self):
        return (
            f"Layout(offset={self._offset}, length={self._length}, "
            f"shape={self._shape})"
        )

    def __str__(self):
        # One-based, inclusive column range followed by the shape
        first, last = self._offset + 1, self._offset + self._length
        columns = str(first) if first == last else f"{first}:{last}"
        if self.is_scalar:
            dims = "scalar"
        elif self.ndim == 1:
            dims = f"Vector({self._shape[0]})"
        else:
            dims = f"Array{self._shape}"
        return f"{columns} {dims}"


class ColumnSchema:
    """Ordered, named collection of layouts covering a contiguous column range.

    The first layout starts at column 0 and every following layout starts where
    the previous one ends, so the schema is the authoritative description of what
    each column of a sample matrix means. Insertion order of ``named_shapes``
    defines the column order.

    :param named_shapes: Ordered mapping (or iterable of pairs) from variable name
        to shape
    :type named_shapes: custom_types.NamedShapes

    :raises ConstructionError: If the schema is empty, a name is blank or repeated,
        or a shape is invalid

    Variables are addressed with ``schema[name]``. Schemas are immutable and
    compare structurally, so independently parsed schemas of the same file
    layout are equal.

    Example:
        >>> schema = ColumnSchema({"lp__": (), "theta": (3,)})
        >>> schema["theta"]
        Layout(offset=1, length=3, shape=(3,))
        >>> schema.column_names()
        ['lp__', 'theta.1', 'theta.2', 'theta.3']
    """

    __slots__ = ("_layouts",)

    def __init__(self, named_shapes: custom_types.NamedShapes):
        if isinstance(named_shapes, Mapping):
            named_shapes = named_shapes.items()

        # Walk the shapes, accumulating the offset
        layouts: dict[str, Layout] = {}
        offset = 0
        for name, shape in named_shapes:
            if not isinstance(name, str) or name.strip() == "":
                raise ConstructionError(f"Invalid variable name {name!r}.")
            if name in layouts:
                raise ConstructionError(f"Duplicate variable name {name!r}.")

            # Negative dimensions would otherwise give a misleading product
            shape = tuple(int(dimsize) for dimsize in shape)
            if any(dimsize < 0 for dimsize in shape):
                raise ConstructionError(
                    f"Negative dimension in shape {shape} of {name!r}."
                )
            length = math.prod(shape)
            layouts[name] = Layout(offset, length, shape)
            offset += length

        if len(layouts) == 0:
            raise ConstructionError("A column schema needs at least one variable.")

        self._layouts = MappingProxyType(layouts)

    @property
    def layouts(self) -> Mapping[str, Layout]:
        """Read-only mapping from variable name to layout, in column order."""
        return self._layouts

    @property
    def names(self) -> tuple[str, ...]:
        """Variable names in column order."""
        return tuple(self._layouts)

    @property
    def shapes(self) -> dict[str, tuple[int, ...]]:
        """Mapping from variable name to shape, in column order."""
        return {name: layout.shape for name, layout in self._layouts.items()}

    @property
    def n_columns(self) -> int:
        """Total number of columns covered by the schema."""
        last_layout = next(reversed(self._layouts.values()))
        return last_layout.offset + last_layout.length

    def items(self):
        """``(name, layout)`` pairs in column order."""
        return self._layouts.items()

    def column_names(self) -> list[str]:
        """Regenerate the header fields of the schema.

        :returns: One field per column: ``name`` for scalars, otherwise
            ``name.i1.i2...`` with one-based indices in column-major order
        :rtype: list[str]
        """
        names = []
        for name, layout in self._layouts.items():
            if layout.is_scalar:
                names.append(name)
                continue
            names.extend(
                DEFAULT_INDEX_SEPARATOR.join((name, *map(str, index)))
                for index in column_major_indices(layout.shape)
            )
        return names

    def view(self, buffer: npt.NDArray) -> custom_types.Record:
        """Build a named record of views into `buffer`. See :py:func:`view`."""
        return view(buffer, self)

    def __getitem__(self, name: str) -> Layout:
        try:
            return self._layouts[name]
        except KeyError as e:
            raise KeyError(f"Unknown variable {name!r} in column schema.") from e

    def __contains__(self, name) -> bool:
        return name in self._layouts

    def __iter__(self) -> Iterator[str]:
        return iter(self._layouts)

    def __eq__(self, other):
        if not isinstance(other, ColumnSchema):
            return NotImplemented
        return list(self._layouts.items()) == list(other._layouts.items())

    def __hash__(self):
        return hash(tuple(self._layouts.items()))

    def __repr__(self):
        return f"ColumnSchema({self.shapes!r})"

    def __str__(self):
        lines = ["Column schema with layouts"]
        for name, layout in self._layouts.items():
            lines.append(f"    {name} {layout}")
        return "\n".join(lines)


def build_schema(named_shapes: custom_types.NamedShapes) -> ColumnSchema:
    """Build a column schema from an ordered ``name -> shape`` description.

    Offsets are accumulated from zero, each variable occupying the product of its
    shape in columns.

    :param named_shapes: Ordered mapping (or iterable of pairs) from variable name
        to shape
    :type named_shapes: custom_types.NamedShapes

    :returns: The column schema
    :rtype: ColumnSchema

    :raises ConstructionError: If a shape has negative or zero-size dimensions, or
        names are blank or repeated
    """
    return ColumnSchema(named_shapes)


def view(buffer: npt.NDArray, schema: ColumnSchema) -> custom_types.Record:
    """Expose a row (or a matrix of rows) as a named record of zero-copy views.

    :param buffer: 1D row or 2D matrix whose last axis is the flat column space
    :type buffer: npt.NDArray
    :param schema: Schema describing the columns
    :type schema: ColumnSchema

    :returns: Mapping from variable name to the view returned by
        :py:meth:`Layout.view`, in schema order
    :rtype: custom_types.Record

    :raises ShapeMismatch: If the buffer is not 1D or 2D, or its last axis length
        differs from ``schema.n_columns``
    """
    buffer = np.asarray(buffer)
    if buffer.ndim not in (1, 2):
        raise ShapeMismatch(
            f"Views require a 1D or 2D buffer, got {buffer.ndim} dimensions."
        )
    if buffer.shape[-1] != schema.n_columns:
        raise ShapeMismatch(
            f"Buffer has {buffer.shape[-1]} columns but the schema describes "
            f"{schema.n_columns}."
        )
    return {name: layout.view(buffer) for name, layout in schema.items()}
