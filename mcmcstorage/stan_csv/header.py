# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Parsing of sampler CSV header lines into column schemas.

Header fields name one column each, as ``name`` for scalars or ``name.i1.i2...``
with one-based indices for array elements. The columns of one variable must be
adjacent and appear in column-major order starting from the all-ones index, e.g.
``c.1.1, c.2.1, c.1.2, c.2.2`` for a 2x2 array. Parsing happens in three steps:

    1. :py:func:`parse_variable_name` splits each field into ``(name, index)``
    2. :py:func:`collapse_contiguous_dimensions` turns a run of fields of the same
       variable into its shape, validating contiguity
    3. :py:func:`parse_schema` repeats the collapse over the whole header and
       builds the :py:class:`~mcmcstorage.chains.layout.ColumnSchema`
"""

from __future__ import annotations

import itertools
import re

from typing import Optional, TYPE_CHECKING

from mcmcstorage.chains.layout import ColumnSchema, build_schema, column_major_indices
from mcmcstorage.defaults import DEFAULT_INDEX_SEPARATOR
from mcmcstorage.exceptions import (
    DuplicateName,
    EmptyName,
    MalformedIndex,
    NonContiguousIndex,
    NonContiguousStart,
)

if TYPE_CHECKING:
    from mcmcstorage import custom_types

# A decimal integer without sign or separators. Leading zeros are allowed.
_INDEX_RE = re.compile(r"[0-9]+")


def parse_variable_name(
    variable_name: str, position: Optional[int] = None
) -> tuple[str, custom_types.MultiIndex]:
    """Parse a header field into a variable name and its one-based index.

    :param variable_name: The header field, e.g. ``"kappa.1.3"``
    :type variable_name: str
    :param position: Zero-based position of the field in the header, reported in
        errors. Defaults to None.
    :type position: Optional[int]

    :returns: The stripped name and the index, ``()`` for scalars
    :rtype: tuple[str, custom_types.MultiIndex]

    :raises EmptyName: If the name part is blank
    :raises MalformedIndex: If an index segment is not a positive integer, which
        includes the empty segment left by a trailing separator

    Example:
        >>> parse_variable_name("kappa.1.3")
        ('kappa', (1, 3))
        >>> parse_variable_name("stepsize__")
        ('stepsize__', ())
        >>> parse_variable_name("b.01")
        ('b', (1,))
    """
    location = "" if position is None else f" at position {position}"
    name, *segments = variable_name.split(DEFAULT_INDEX_SEPARATOR)
    name = name.strip()
    if name == "":
        raise EmptyName(
            f"Empty variable name in header field {variable_name!r}{location}.",
            position=position,
        )

    # Every index segment must be a positive integer
    index = []
    for segment in segments:
        segment = segment.strip()
        if _INDEX_RE.fullmatch(segment) is None or int(segment) < 1:
            raise MalformedIndex(
                f"Invalid index {segment!r} in header field {variable_name!r}"
                f"{location}.",
                name=name,
                position=position,
            )
        index.append(int(segment))

    return name, tuple(index)


def collapse_contiguous_dimensions(
    names_indexes: custom_types.ParsedHeader,
    position: int,
) -> tuple[str, tuple[int, ...], int]:
    """Collapse the run of columns of one variable into its shape.

    The run starts at `position` and extends while the name is unchanged. The last
    index of the run gives the shape, and every index of the run must match the
    column-major enumeration of that shape exactly.

    :param names_indexes: Parsed header, one ``(name, index)`` pair per column
    :type names_indexes: custom_types.ParsedHeader
    :param position: Zero-based position of the first column of the variable
    :type position: int

    :returns: The variable name, its shape, and the position following the run
    :rtype: tuple[str, tuple[int, ...], int]

    :raises NonContiguousStart: If the index at `position` is not all ones
    :raises NonContiguousIndex: If an index of the run is missing, repeated, or
        out of order

    Example:
        >>> header = [("a", (1, 1)), ("a", (2, 1)), ("a", (1, 2)), ("a", (2, 2))]
        >>> collapse_contiguous_dimensions(header, 0)
        ('a', (2, 2), 4)
    """
    name, index = names_indexes[position]
    if any(i != 1 for i in index):
        raise NonContiguousStart(
            f"Indexes for {name!r} don't start with ones (got {index} at position "
            f"{position}).",
            name=name,
            position=position,
        )

    # Find the end of the run
    end = position + 1
    while end < len(names_indexes) and names_indexes[end][0] == name:
        end += 1

    # The last index is the shape. Compare the run with the column-major
    # enumeration of that shape.
    shape = names_indexes[end - 1][1]
    for offset, (found, expected) in enumerate(
        itertools.zip_longest(
            (ix for _, ix in names_indexes[position:end]),
            column_major_indices(shape),
        )
    ):
        if found != expected:
            raise NonContiguousIndex(
                f"Non-contiguous index {found} at position {position + offset} for "
                f"{name!r}; expected {expected}.",
                name=name,
                position=position + offset,
            )

    return name, shape, end


def parse_schema(
    names_indexes: custom_types.ParsedHeader,
) -> ColumnSchema:
    """Parse a header of ``(name, index)`` pairs into a column schema.

    :param names_indexes: Parsed header, one pair per column
    :type names_indexes: custom_types.ParsedHeader

    :returns: Schema with one layout per variable, in header order
    :rtype: ColumnSchema

    :raises DuplicateName: If the columns of a variable are split by another
        variable
    :raises HeaderParseError: For contiguity errors, see
        :py:func:`collapse_contiguous_dimensions`

    Example:
        >>> header = [parse_variable_name(f) for f in "a,b.1,b.2".split(",")]
        >>> parse_schema(header).shapes
        {'a': (), 'b': (2,)}
    """
    named_shapes: dict[str, custom_types.Shape] = {}
    position = 0
    while position < len(names_indexes):
        name, shape, next_position = collapse_contiguous_dimensions(
            names_indexes, position
        )
        if name in named_shapes:
            raise DuplicateName(
                f"Duplicate name {name!r} in column {position}.",
                name=name,
                position=position,
            )
        named_shapes[name] = shape
        position = next_position

    return build_schema(named_shapes)
