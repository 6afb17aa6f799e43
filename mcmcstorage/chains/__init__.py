# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Column schemas and chains.

This submodule holds the in-memory representation of sampler output:

   1. :py:class:`~mcmcstorage.chains.layout.Layout` and
      :py:class:`~mcmcstorage.chains.layout.ColumnSchema`, which map named,
      possibly multi-dimensional variables onto contiguous ranges of columns and
      build zero-copy, correctly shaped views of them.
   2. :py:class:`~mcmcstorage.chains.chain.Chain`, which pairs a sample matrix with
      its schema and warmup, thinning, and ordering metadata.
"""

from mcmcstorage.chains.chain import Chain, PosteriorDraws, concat, posterior
from mcmcstorage.chains.layout import (
    ColumnSchema,
    Layout,
    build_schema,
    column_major_indices,
    view,
)
