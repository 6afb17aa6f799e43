# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Reading and writing of sampler CSV output.

The supported dialect is the one written by ``cmdstan``:

    1. Lines whose first non-whitespace character is ``#`` are comments and are
       ignored wherever they occur. Fields are never quoted or escaped.
    2. The first non-comment line is the header, a comma-separated list of
       ``name`` or ``name.i1.i2...`` fields (see
       :py:mod:`mcmcstorage.stan_csv.header`).
    3. Every following non-comment line holds exactly as many comma-separated
       floating-point values as the header has fields. Whitespace around values
       is not significant.

Rows are decoded into a flat row-major buffer and reshaped into the sample matrix
of a :py:class:`~mcmcstorage.chains.chain.Chain` once the input is exhausted.

Example:
    >>> chain = read_chain("output_1.csv", warmup=1000)
    >>> chain.variable("theta").shape
    (1000, 8)
    >>> chains = read_chains("output_")  # output_1.csv, output_2.csv, ...
"""

from __future__ import annotations

import os
import os.path
import re
import warnings

from typing import Iterable, Iterator, Optional, TextIO, TYPE_CHECKING, Union

import numpy as np
import numpy.typing as npt

from tqdm import tqdm

from mcmcstorage.chains.chain import Chain
from mcmcstorage.chains.layout import ColumnSchema
from mcmcstorage.defaults import (
    DEFAULT_COMMENT_CHAR,
    DEFAULT_DELIMITER,
    DEFAULT_FILE_EXTENSION,
)
from mcmcstorage.exceptions import (
    DuplicateFileId,
    HeaderParseError,
    NonNumericField,
    StreamExhausted,
    TooFewFields,
    TooManyFields,
)
from mcmcstorage.stan_csv.header import parse_schema, parse_variable_name

if TYPE_CHECKING:
    from mcmcstorage import custom_types


def is_comment_line(line: str) -> bool:
    """Test whether `line` is a comment line.

    :param line: The line to test
    :type line: str

    :returns: True if the first non-whitespace character is the comment marker
    :rtype: bool
    """
    return line.lstrip().startswith(DEFAULT_COMMENT_CHAR)


def _numbered_lines(lines: Iterable[str]) -> Iterator[tuple[int, str]]:
    """Pair each line with its one-based line number, dropping line endings."""
    for line_number, line in enumerate(lines, start=1):
        yield line_number, line.rstrip("\r\n")


def read_schema(lines: Iterator[tuple[int, str]]) -> ColumnSchema:
    """Read the header line and parse it into a column schema.

    Leading comment lines are skipped. Lines are consumed up to and including the
    header, so the iterator is positioned at the first data line afterwards.

    :param lines: Iterator over ``(line_number, line)`` pairs
    :type lines: Iterator[tuple[int, str]]

    :returns: The column schema described by the header
    :rtype: ColumnSchema

    :raises StreamExhausted: If the input ends before a header line is found
    :raises HeaderParseError: If the header is malformed. The error carries the
        zero-based field position and the line number of the header.
    """
    for line_number, line in lines:
        if is_comment_line(line):
            continue
        try:
            return parse_schema(
                [
                    parse_variable_name(field, position=position)
                    for position, field in enumerate(line.split(DEFAULT_DELIMITER))
                ]
            )
        except HeaderParseError as e:
            raise type(e)(
                str(e), name=e.name, position=e.position, line_number=line_number
            ) from e
    raise StreamExhausted("No header line found before the end of the input.")


def read_csv_line(
    buffer: list[float],
    line: str,
    n_fields: int,
    line_number: Optional[int] = None,
    column_names: Optional[list[str]] = None,
) -> bool:
    """Decode one data line into `buffer`.

    :param buffer: Flat buffer the values are appended to, in field order
    :type buffer: list[float]
    :param line: The line, without its line ending
    :type line: str
    :param n_fields: Number of fields the line must have
    :type n_fields: int
    :param line_number: One-based line number used in error messages. Defaults to
        None.
    :type line_number: Optional[int]
    :param column_names: Header field names used in error messages. Defaults to
        None.
    :type column_names: Optional[list[str]]

    :returns: False if the line is a comment and nothing was decoded, else True
    :rtype: bool

    :raises TooFewFields: If the line has fewer than `n_fields` fields
    :raises TooManyFields: If the line has more than `n_fields` fields
    :raises NonNumericField: If a field is not a floating-point number
    """
    if is_comment_line(line):
        return False
    if line.strip() == "":
        raise TooFewFields(
            f"Expected {n_fields} fields, found an empty line.", line_number=line_number
        )

    # Split and check the field count
    fields = line.split(DEFAULT_DELIMITER)
    if len(fields) < n_fields:
        raise TooFewFields(
            f"Expected {n_fields} fields, found {len(fields)}.", line_number=line_number
        )
    if len(fields) > n_fields:
        raise TooManyFields(
            f"Expected {n_fields} fields, found {len(fields)}.", line_number=line_number
        )

    # Parse the values. The row is only appended once every field is valid.
    values = []
    for field_position, field in enumerate(fields):
        try:
            values.append(float(field))
        except ValueError as e:
            column_name = None if column_names is None else column_names[field_position]
            raise NonNumericField(
                f"Field {field_position} ({column_name or 'unnamed'}) is not a "
                f"number: {field!r}.",
                line_number=line_number,
                field_position=field_position,
                column_name=column_name,
            ) from e
    buffer.extend(values)

    return True


def read_csv_flat_data(
    buffer: list[float],
    lines: Iterator[tuple[int, str]],
    n_fields: int,
    column_names: Optional[list[str]] = None,
) -> int:
    """Decode every remaining data line into `buffer`.

    :param buffer: Flat buffer the values are appended to
    :type buffer: list[float]
    :param lines: Iterator over ``(line_number, line)`` pairs
    :type lines: Iterator[tuple[int, str]]
    :param n_fields: Number of fields per line
    :type n_fields: int
    :param column_names: Header field names used in error messages. Defaults to
        None.
    :type column_names: Optional[list[str]]

    :returns: Number of data rows decoded. Comment lines are not counted.
    :rtype: int
    """
    row_count = 0
    for line_number, line in lines:
        row_count += read_csv_line(
            buffer, line, n_fields, line_number=line_number, column_names=column_names
        )
    return row_count


def csv_buffer_to_array(
    buffer: list[float], row_count: int, n_fields: int
) -> npt.NDArray[np.float64]:
    """Reshape the flat row-major buffer into the sample matrix.

    Values of multi-dimensional variables stay in their column-major header order
    within each row. Layout views of the schema read them with column-major
    strides.

    :param buffer: Flat buffer of ``row_count * n_fields`` values
    :type buffer: list[float]
    :param row_count: Number of rows
    :type row_count: int
    :param n_fields: Number of fields per row
    :type n_fields: int

    :returns: Matrix of shape ``(row_count, n_fields)``
    :rtype: npt.NDArray[np.float64]
    """
    assert len(buffer) == row_count * n_fields
    return np.asarray(buffer, dtype=np.float64).reshape(row_count, n_fields)


def _read_chain_lines(
    lines: Iterable[str],
    thinning: custom_types.Integer,
    warmup: custom_types.Integer,
    is_ordered: bool,
) -> Chain:
    """Read a chain from an iterable of text lines."""
    numbered_lines = _numbered_lines(lines)

    # Parse the header, then the data
    schema = read_schema(numbered_lines)
    n_fields = schema.n_columns
    buffer: list[float] = []
    row_count = read_csv_flat_data(
        buffer, numbered_lines, n_fields, column_names=schema.column_names()
    )

    return Chain(
        schema,
        csv_buffer_to_array(buffer, row_count, n_fields),
        thinning=thinning,
        warmup=warmup,
        is_ordered=is_ordered,
    )


def read_chain(
    source: Union[custom_types.PathType, TextIO, Iterable[str]],
    *,
    thinning: custom_types.Integer = 1,
    warmup: custom_types.Integer = 0,
    is_ordered: bool = True,
) -> Chain:
    """Read a chain from sampler CSV output.

    :param source: Path of a CSV file, or an open text stream or any iterable of
        lines
    :type source: Union[custom_types.PathType, TextIO, Iterable[str]]
    :param thinning: Thinning of the draws. Defaults to 1.
    :type thinning: custom_types.Integer
    :param warmup: Number of leading rows that are warmup. Defaults to 0.
    :type warmup: custom_types.Integer
    :param is_ordered: Whether the rows are consecutive draws of one Markov chain.
        Defaults to True, as one file holds one sampler run.
    :type is_ordered: bool

    :returns: The chain
    :rtype: Chain

    :raises StreamExhausted: If there is no header line
    :raises HeaderParseError: If the header is malformed
    :raises RowParseError: If a data line is malformed
    :raises InvalidChainConfiguration: If `warmup` or `thinning` are invalid

    Example:
        >>> with open("output_1.csv", encoding="utf-8") as f:
        ...     chain = read_chain(f)
        >>> chain = read_chain(io.StringIO("a,b.1,b.2\\n1,2,3\\n"))
    """
    # Paths are opened here; everything else is iterated as lines
    if isinstance(source, (str, os.PathLike)):
        with open(source, "r", encoding="utf-8") as csv_file:
            return _read_chain_lines(csv_file, thinning, warmup, is_ordered)
    return _read_chain_lines(source, thinning, warmup, is_ordered)


def matching_files(prefix: custom_types.PathType) -> list[tuple[int, str]]:
    """Find the files ``<prefix><digits>.csv``, sorted by their integer id.

    :param prefix: Path prefix, e.g. ``"/tmp/samples_"``. Its directory part is
        searched (the current directory when there is none).
    :type prefix: custom_types.PathType

    :returns: ``(id, path)`` pairs sorted numerically by id, so ``samples_2.csv``
        precedes ``samples_10.csv``
    :rtype: list[tuple[int, str]]

    :raises DuplicateFileId: If two files map to the same id, e.g. ``samples_1.csv``
        and ``samples_01.csv``

    Example:
        >>> matching_files("/tmp/samples_")
        [(1, '/tmp/samples_1.csv'), (2, '/tmp/samples_2.csv')]
    """
    prefix = os.fspath(prefix)
    dirname, basename = os.path.split(prefix)
    pattern = re.compile(
        "^" + re.escape(basename) + r"([0-9]+)" + re.escape(DEFAULT_FILE_EXTENSION) + "$"
    )

    # Collect the regular files matching the pattern, keyed by id
    id_to_paths: dict[int, list[str]] = {}
    for filename in os.listdir(dirname or os.curdir):
        match_obj = pattern.match(filename)
        path = os.path.join(dirname, filename)
        if match_obj is not None and os.path.isfile(path):
            id_to_paths.setdefault(int(match_obj.group(1)), []).append(path)

    # Ids must be unique
    for file_id, paths in id_to_paths.items():
        if len(paths) > 1:
            raise DuplicateFileId(
                f"Non-unique file id {file_id} for {sorted(paths)}, perhaps because "
                "of 0-padding?",
                file_id=file_id,
                paths=sorted(paths),
            )

    return sorted((file_id, paths[0]) for file_id, paths in id_to_paths.items())


def read_chains(
    prefix: custom_types.PathType,
    *,
    thinning: custom_types.Integer = 1,
    warmup: custom_types.Integer = 0,
    is_ordered: bool = True,
) -> dict[int, Chain]:
    """Read every chain discovered by :py:func:`matching_files`.

    :param prefix: Path prefix of the files
    :type prefix: custom_types.PathType
    :param thinning: Thinning of the draws of each chain. Defaults to 1.
    :type thinning: custom_types.Integer
    :param warmup: Number of warmup rows of each chain. Defaults to 0.
    :type warmup: custom_types.Integer
    :param is_ordered: Whether each file is an ordered chain. Defaults to True.
    :type is_ordered: bool

    :returns: Mapping from file id to chain, in increasing id order
    :rtype: dict[int, Chain]
    """
    files = matching_files(prefix)
    if len(files) == 0:
        warnings.warn(
            f"No files matching '{os.fspath(prefix)}<digits>{DEFAULT_FILE_EXTENSION}' "
            "were found."
        )

    return {
        file_id: read_chain(
            path, thinning=thinning, warmup=warmup, is_ordered=is_ordered
        )
        for file_id, path in tqdm(files, desc="Reading chains")
    }


def write_chain(
    chain: Chain,
    destination: Union[custom_types.PathType, TextIO],
    *,
    include_warmup: bool = True,
) -> None:
    """Write a chain in the sampler CSV dialect.

    Values are written with the shortest representation that reads back to the
    same float, so :py:func:`read_chain` recovers the matrix exactly.

    :param chain: The chain to write
    :type chain: Chain
    :param destination: Path of the output file, or an open text stream
    :type destination: Union[custom_types.PathType, TextIO]
    :param include_warmup: Whether to write the warmup rows. Defaults to True.
    :type include_warmup: bool
    """
    if isinstance(destination, (str, os.PathLike)):
        with open(destination, "w", encoding="utf-8") as csv_file:
            write_chain(chain, csv_file, include_warmup=include_warmup)
        return

    destination.write(DEFAULT_DELIMITER.join(chain.schema.column_names()) + "\n")
    for row in chain.sample_matrix(include_warmup=include_warmup).tolist():
        destination.write(DEFAULT_DELIMITER.join(map(repr, row)) + "\n")
