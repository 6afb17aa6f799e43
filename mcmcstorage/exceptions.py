# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Custom exception classes for the mcmcstorage package.

This module defines the hierarchy of exceptions raised while building column
schemas and chains and while reading sampler CSV output. All custom exceptions
inherit from :py:class:`MCMCStorageError` so that every package-specific failure
can be caught with a single except clause. Where it makes sense, exceptions also
inherit from the matching builtin (``ValueError`` or ``EOFError``) so that code
written against the builtins keeps working.

Parsing exceptions carry the context needed to find the offending input: the
variable name and header position for header errors, the line number (and field
position) for row errors.
"""

from __future__ import annotations

from typing import Optional, Sequence


class MCMCStorageError(Exception):
    """Base class for all exceptions in the mcmcstorage package.

    Example:
        >>> try:
        ...     chain = read_chain("samples_1.csv")
        ... except MCMCStorageError as e:
        ...     print(f"Could not load chain: {e}")
    """


class ConstructionError(MCMCStorageError, ValueError):
    """Raised when a layout, column schema, or chain invariant is violated.

    Examples include a layout whose length is not the product of its shape, a
    negative offset, a duplicate variable name, or a sample matrix whose column
    count disagrees with its schema.
    """


class InvalidChainConfiguration(ConstructionError):
    """Raised when a :py:class:`~mcmcstorage.chains.chain.Chain` is built with an
    invalid sample matrix, thinning, or warmup."""


class ShapeMismatch(MCMCStorageError, ValueError):
    """Raised when a view is requested against a buffer whose shape disagrees with
    the schema or layout."""


class SchemaMismatch(MCMCStorageError, ValueError):
    """Raised when chains with structurally different schemas are combined."""


class HeaderParseError(MCMCStorageError, ValueError):
    """Base class for errors found while parsing a CSV header line.

    :param message: Error message describing the problem
    :type message: str
    :param name: Variable name involved, if known. Defaults to None.
    :type name: Optional[str]
    :param position: Zero-based position of the offending header field, if known.
        Defaults to None.
    :type position: Optional[int]
    :param line_number: One-based line number of the header line in its source, if
        known. Defaults to None.
    :type line_number: Optional[int]

    :ivar name: Variable name involved in the error
    :ivar position: Zero-based position of the offending header field
    :ivar line_number: One-based line number of the header line
    """

    def __init__(
        self,
        message: str,
        name: Optional[str] = None,
        position: Optional[int] = None,
        line_number: Optional[int] = None,
    ):
        if line_number is not None:
            message = f"Line {line_number}: {message}"
        super().__init__(message)
        self.name = name
        self.position = position
        self.line_number = line_number


class EmptyName(HeaderParseError):
    """Raised when a header field has a blank variable name."""


class MalformedIndex(HeaderParseError):
    """Raised when an index segment of a header field is not a positive integer."""


class NonContiguousStart(HeaderParseError):
    """Raised when the first column of a variable does not carry an all-ones index."""


class NonContiguousIndex(HeaderParseError):
    """Raised when the columns of a variable are missing, repeated, or out of
    column-major order."""


class DuplicateName(HeaderParseError):
    """Raised when a variable name reappears after columns of another variable."""


class RowParseError(MCMCStorageError, ValueError):
    """Base class for errors found while decoding a data row.

    :param message: Error message describing the problem
    :type message: str
    :param line_number: One-based line number of the offending row in its source,
        if known. Defaults to None.
    :type line_number: Optional[int]

    :ivar line_number: One-based line number of the offending row
    """

    def __init__(self, message: str, line_number: Optional[int] = None):
        if line_number is not None:
            message = f"Line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


class TooFewFields(RowParseError):
    """Raised when a data row has fewer fields than the header declares."""


class TooManyFields(RowParseError):
    """Raised when a data row has more fields than the header declares."""


class NonNumericField(RowParseError):
    """Raised when a data field cannot be parsed as a floating-point number.

    :ivar field_position: Zero-based position of the field within the row
    :ivar column_name: Header name of the column, if known
    """

    def __init__(
        self,
        message: str,
        line_number: Optional[int] = None,
        field_position: Optional[int] = None,
        column_name: Optional[str] = None,
    ):
        super().__init__(message, line_number=line_number)
        self.field_position = field_position
        self.column_name = column_name


class StreamExhausted(MCMCStorageError, EOFError):
    """Raised when the input ends before a header line is found."""


class DuplicateFileId(MCMCStorageError, ValueError):
    """Raised when two files discovered for a prefix map to the same integer id,
    typically because of differing zero-padding.

    :ivar file_id: The duplicated id
    :ivar paths: Paths of the files that share the id
    """

    def __init__(self, message: str, file_id: int, paths: Sequence[str] = ()):
        super().__init__(message)
        self.file_id = file_id
        self.paths = tuple(paths)
