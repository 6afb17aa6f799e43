# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Reading of the CSV dialect written by ``cmdstan``.

The submodule is split in two:

   1. :py:mod:`mcmcstorage.stan_csv.header` parses a header line into
      ``(name, index)`` pairs and collapses them into a column schema, validating
      that the columns of every variable are contiguous and column-major.
   2. :py:mod:`mcmcstorage.stan_csv.reader` streams data lines into a sample
      matrix, discovers the numbered files of a run, and writes chains back out.

    >>> from mcmcstorage.stan_csv import matching_files, read_chain
    >>>
    >>> for file_id, path in matching_files("output/samples_"):
    ...     print(file_id, read_chain(path, warmup=1000))
"""

from mcmcstorage.stan_csv.header import (
    collapse_contiguous_dimensions,
    parse_schema,
    parse_variable_name,
)
from mcmcstorage.stan_csv.reader import (
    is_comment_line,
    matching_files,
    read_chain,
    read_chains,
    write_chain,
)
