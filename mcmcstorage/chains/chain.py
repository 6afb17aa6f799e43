# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Sampler chains: sample matrices paired with a column schema.

A :py:class:`Chain` holds the output of one sampler run (or a row-stacked
combination of several runs) as a 2D sample matrix whose rows are draws and whose
columns are described by a :py:class:`~mcmcstorage.chains.layout.ColumnSchema`.
Chains also record ordering metadata:

    - ``warmup``: leading rows considered burn-in, excluded by default
    - ``thinning``: stride between retained draws, meaningful only when ordered
    - ``is_ordered``: whether rows are consecutive draws from one Markov chain

Chains are read-only after construction. The sample matrix is stored as a
non-writeable view of the array passed in, and every accessor returns views.

Example:
    >>> schema = build_schema({"a": (), "b": (2,)})
    >>> chain = Chain(schema, matrix, warmup=3, thinning=2, is_ordered=True)
    >>> chain.sample_matrix().shape  # Post-warmup rows
    (7, 3)
    >>> for draw in posterior(chain):
    ...     print(draw["a"], draw["b"])
"""

from __future__ import annotations

from typing import Iterator, TYPE_CHECKING

import numpy as np
import numpy.typing as npt

from mcmcstorage.chains.layout import ColumnSchema, view
from mcmcstorage.exceptions import InvalidChainConfiguration, SchemaMismatch

if TYPE_CHECKING:
    from mcmcstorage import custom_types


class Chain:
    """One sampler run's draws together with their column schema.

    :param schema: Description of the matrix columns
    :type schema: ColumnSchema
    :param sample_matrix: Draws, one per row, with ``schema.n_columns`` columns
    :type sample_matrix: npt.NDArray
    :param thinning: Stride between retained draws. Defaults to 1.
    :type thinning: custom_types.Integer
    :param warmup: Number of leading rows considered warmup. Defaults to 0.
    :type warmup: custom_types.Integer
    :param is_ordered: Whether rows are consecutive draws from one Markov chain.
        Defaults to False.
    :type is_ordered: bool

    :raises InvalidChainConfiguration: If the matrix is not 2D, its column count
        differs from the schema, ``thinning < 1``, ``warmup < 0``, or ``warmup``
        exceeds the number of rows

    .. note::
        The matrix is not copied. The chain keeps a read-only view of it, so
        callers should not modify the original array afterwards.
    """

    def __init__(
        self,
        schema: ColumnSchema,
        sample_matrix: npt.NDArray,
        thinning: custom_types.Integer = 1,
        warmup: custom_types.Integer = 0,
        is_ordered: bool = False,
    ):
        # Check the matrix against the schema
        sample_matrix = np.asarray(sample_matrix)
        if sample_matrix.ndim != 2:
            raise InvalidChainConfiguration(
                f"The sample matrix must be 2D, got {sample_matrix.ndim} dimensions."
            )
        if sample_matrix.shape[1] != schema.n_columns:
            raise InvalidChainConfiguration(
                f"The sample matrix has {sample_matrix.shape[1]} columns but the "
                f"schema describes {schema.n_columns}."
            )

        # Check the ordering metadata
        if thinning < 1:
            raise InvalidChainConfiguration(
                f"Thinning must be at least 1, got {thinning}."
            )
        if warmup < 0:
            raise InvalidChainConfiguration(f"Warmup must be non-negative, got {warmup}.")
        if warmup > sample_matrix.shape[0]:
            raise InvalidChainConfiguration(
                f"Warmup of {warmup} exceeds the {sample_matrix.shape[0]} rows of the "
                "sample matrix."
            )

        # Store a read-only view of the matrix
        sample_matrix = sample_matrix.view()
        sample_matrix.flags.writeable = False

        self._schema = schema
        self._sample_matrix = sample_matrix
        self._thinning = int(thinning)
        self._warmup = int(warmup)
        self._is_ordered = bool(is_ordered)

    @property
    def schema(self) -> ColumnSchema:
        """The column schema of the sample matrix."""
        return self._schema

    @property
    def thinning(self) -> int | None:
        """The thinning of the draws, or None when the chain is not ordered."""
        return self._thinning if self._is_ordered else None

    @property
    def warmup(self) -> int:
        """Number of leading rows considered warmup."""
        return self._warmup

    @property
    def is_ordered(self) -> bool:
        """True iff the rows are consecutive draws from one Markov chain."""
        return self._is_ordered

    @property
    def n_rows(self) -> int:
        """Number of rows, warmup included."""
        return self._sample_matrix.shape[0]

    @property
    def n_draws(self) -> int:
        """Number of post-warmup rows."""
        return self._sample_matrix.shape[0] - self._warmup

    def sample_matrix(self, include_warmup: bool = False) -> npt.NDArray:
        """The sample matrix, with or without the warmup rows.

        :param include_warmup: Whether to include the warmup rows. Defaults to False.
        :type include_warmup: bool

        :returns: Read-only view of the matrix
        :rtype: npt.NDArray
        """
        if include_warmup:
            return self._sample_matrix
        return self._sample_matrix[self._warmup :]

    def variable(self, name: str, include_warmup: bool = False) -> npt.NDArray:
        """Draws of a single variable.

        :param name: Name of the variable
        :type name: str
        :param include_warmup: Whether to include the warmup rows. Defaults to False.
        :type include_warmup: bool

        :returns: Read-only view of shape ``(n_rows, *shape)``
        :rtype: npt.NDArray

        :raises KeyError: If the schema has no such variable
        """
        return self._schema[name].view(self.sample_matrix(include_warmup))

    def posterior(self) -> PosteriorDraws:
        """Post-warmup draws as named records. See :py:func:`posterior`."""
        return PosteriorDraws(self)

    @classmethod
    def concat(cls, chain: Chain, *chains: Chain) -> Chain:
        """Row-stack chains. See :py:func:`concat`."""
        return concat(chain, *chains)

    def __getitem__(self, key):
        # Indexing is `chain[rows, name]` or `chain[rows, :]` over post-warmup rows
        if not isinstance(key, tuple) or len(key) != 2:
            raise TypeError("Chains are indexed as chain[rows, name] or chain[rows, :].")
        row_index, column_index = key
        rows = self.sample_matrix()[row_index]
        if isinstance(column_index, slice) and column_index == slice(None):
            return view(rows, self._schema)
        return self._schema[column_index].view(rows)

    def __repr__(self):
        return (
            f"Chain({self._schema!r}, <{self.n_rows}x{self._schema.n_columns} matrix>, "
            f"thinning={self._thinning}, warmup={self._warmup}, "
            f"is_ordered={self._is_ordered})"
        )

    def __str__(self):
        description = (
            f"{'Ordered' if self._is_ordered else 'Unordered'} MCMC chain of "
            f"{self.n_rows} rows"
        )
        if self._is_ordered:
            description += (
                f" of which {self._warmup} are warmup, thinning {self._thinning}"
            )
        return f"{description} with schema\n{self._schema}"


class PosteriorDraws:
    """Restartable iterable over the post-warmup draws of a chain.

    Every iteration re-reads the chain's immutable sample matrix and yields one
    named record per draw, so the object can be iterated any number of times.

    :param chain: The chain to iterate over
    :type chain: Chain
    """

    def __init__(self, chain: Chain):
        self._chain = chain

    def __iter__(self) -> Iterator[custom_types.Record]:
        schema = self._chain.schema
        for row in self._chain.sample_matrix():
            yield view(row, schema)

    def __len__(self):
        return self._chain.n_draws

    def __repr__(self):
        return f"<PosteriorDraws of {self._chain.n_draws} draws>"


def posterior(chain: Chain) -> PosteriorDraws:
    """The post-warmup draws of a chain as named records.

    :param chain: The chain to read
    :type chain: Chain

    :returns: Lazy, restartable iterable yielding one ``name -> view`` record per
        post-warmup row
    :rtype: PosteriorDraws

    Example:
        >>> draws = posterior(chain)
        >>> first = next(iter(draws))
        >>> first["theta"].shape
        (2, 3)
    """
    return PosteriorDraws(chain)


def concat(chain: Chain, *chains: Chain) -> Chain:
    """Row-stack the post-warmup draws of several chains.

    :param chain: First chain. Its schema is the reference.
    :type chain: Chain
    :param chains: Further chains with structurally equal schemas
    :type chains: Chain

    :returns: A new unordered chain with ``warmup=0`` and ``thinning=1`` whose
        matrix is the row-wise concatenation of each input's post-warmup matrix
    :rtype: Chain

    :raises SchemaMismatch: If any schema differs from the first chain's

    .. note::
        Concatenation always yields an unordered chain, even when the inputs are
        ordered, as its rows are no longer consecutive draws of one Markov chain.
    """
    # All schemas must match the first
    schema = chain.schema
    for position, other in enumerate(chains, start=1):
        if other.schema != schema:
            raise SchemaMismatch(
                f"Schema of chain {position} differs from the schema of chain 0:\n"
                f"{other.schema}\nversus\n{schema}"
            )

    # Stack the post-warmup matrices
    sample_matrix = np.concatenate(
        [c.sample_matrix(include_warmup=False) for c in (chain, *chains)], axis=0
    )
    return Chain(schema, sample_matrix, thinning=1, warmup=0, is_ordered=False)
