"""
Tests for header parsing.

This module tests:
  - Splitting header fields into names and one-based indices.
  - Collapsing runs of fields into shapes, with contiguity errors.
  - Parsing complete headers into column schemas, with duplicate detection.
"""

import pytest

from mcmcstorage.chains.layout import build_schema, column_major_indices
from mcmcstorage.exceptions import (
    DuplicateName,
    EmptyName,
    HeaderParseError,
    MalformedIndex,
    NonContiguousIndex,
    NonContiguousStart,
)
from mcmcstorage.stan_csv.header import (
    collapse_contiguous_dimensions,
    parse_schema,
    parse_variable_name,
)


def make_parsed_header(name_shape_pairs):
    """Parsed header with the columns of each variable in column-major order."""
    return [
        (name, index)
        for name, shape in name_shape_pairs
        for index in column_major_indices(shape)
    ]


# ============================================================================
# Variable names
# ============================================================================

def test_parse_variable_name():
    assert parse_variable_name("a") == ("a", ())
    assert parse_variable_name("kappa.1.3") == ("kappa", (1, 3))
    assert parse_variable_name("stepsize__") == ("stepsize__", ())
    assert parse_variable_name(" b.2 ") == ("b", (2,))

    # Leading zeros still spell positive integers
    assert parse_variable_name("b.01") == ("b", (1,))
    assert parse_variable_name("c.010.002") == ("c", (10, 2))


def test_parse_variable_name_error_position():
    with pytest.raises(EmptyName) as excinfo:
        parse_variable_name(".2", position=5)
    assert excinfo.value.position == 5

    with pytest.raises(MalformedIndex) as excinfo:
        parse_variable_name("b.00", position=3)
    assert excinfo.value.name == "b"
    assert excinfo.value.position == 3
    assert "position 3" in str(excinfo.value)


@pytest.mark.parametrize(
    "field, error",
    [
        ("", EmptyName),
        ("  ", EmptyName),
        (".1", EmptyName),
        ("b.", MalformedIndex),
        ("b.12.", MalformedIndex),
        ("b.0", MalformedIndex),
        ("b.000", MalformedIndex),
        ("b.+1", MalformedIndex),
        ("b.-1", MalformedIndex),
        ("b.x", MalformedIndex),
        ("b..1", MalformedIndex),
    ],
)
def test_parse_variable_name_errors(field, error):
    with pytest.raises(error):
        parse_variable_name(field)


# ============================================================================
# Collapsing runs
# ============================================================================

V = [("a", (1, 1)), ("a", (2, 1)), ("a", (1, 2)), ("a", (2, 2))]


def test_collapse():
    assert collapse_contiguous_dimensions(V, 0) == ("a", (2, 2), 4)
    assert collapse_contiguous_dimensions(V + [("b", ())], 0) == ("a", (2, 2), 4)
    assert collapse_contiguous_dimensions([("x", ()), ("a", (1,))], 0) == ("x", (), 1)


def test_collapse_requires_all_ones_start():
    with pytest.raises(NonContiguousStart) as excinfo:
        collapse_contiguous_dimensions(V, 1)
    assert excinfo.value.name == "a"
    assert excinfo.value.position == 1


@pytest.mark.parametrize(
    "run, position",
    [
        (V[:-1], 1),                              # missing (2, 2)
        ([V[0], V[1], V[3]], 2),                  # missing (1, 2)
        ([V[0], V[2], V[1], V[3]], 1),            # permuted
        ([("a", (1,)), ("a", (2,)), ("a", (1,)), ("a", (2,))], 2),  # repeated
        ([("a", ()), ("a", ())], 1),              # repeated scalar
        ([("a", (1,)), ("a", (2, 1))], 0),        # mixed dimensionality
    ],
)
def test_collapse_non_contiguous(run, position):
    with pytest.raises(NonContiguousIndex) as excinfo:
        collapse_contiguous_dimensions(run, 0)
    assert excinfo.value.position == position


# ============================================================================
# Schemas
# ============================================================================

def test_parse_schema():
    pairs = [("a", ()), ("b", (1, 2)), ("c", (3, 4, 7)), ("d", ())]
    schema = parse_schema(make_parsed_header(pairs))
    assert list(schema.shapes.items()) == pairs
    assert schema == build_schema(pairs)


def test_parse_schema_from_fields():
    fields = "a,b.1,b.2,c.1.1,c.2.1,c.1.2,c.2.2".split(",")
    schema = parse_schema([parse_variable_name(field) for field in fields])
    assert schema.shapes == {"a": (), "b": (2,), "c": (2, 2)}
    assert schema.n_columns == 7


def test_parse_schema_duplicate_name():
    with pytest.raises(DuplicateName) as excinfo:
        parse_schema([("a", ()), ("b", (1,)), ("b", (2,)), ("a", ())])
    assert excinfo.value.name == "a"
    assert excinfo.value.position == 3


def test_parse_schema_errors_are_header_errors():
    with pytest.raises(HeaderParseError):
        parse_schema([("a", (1,)), ("b", ()), ("a", (2,))])
    with pytest.raises(ValueError):
        parse_schema([("a", (2,))])
