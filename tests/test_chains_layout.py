"""
Tests for column layouts and column schemas.

This module tests:
  - Layout invariants enforced at construction.
  - Schema construction (offsets, total length, duplicate and invalid names).
  - Zero-copy, column-major views of vectors and matrices.
  - Structural equality, header regeneration and string formatting.
"""

import numpy as np
import pytest

from mcmcstorage.chains.layout import (
    ColumnSchema,
    Layout,
    build_schema,
    column_major_indices,
    view,
)
from mcmcstorage.exceptions import ConstructionError, ShapeMismatch


NAMED_SHAPES = {"a": (), "b": (1, 2), "c": (2, 3, 4)}
N_COLUMNS = 1 + 2 + 24


@pytest.fixture
def schema() -> ColumnSchema:
    return build_schema(NAMED_SHAPES)


# ============================================================================
# Layout
# ============================================================================

def test_layout_properties():
    layout = Layout(3, 6, (2, 3))
    assert layout.offset == 3
    assert layout.length == 6
    assert layout.shape == (2, 3)
    assert layout.ndim == 2
    assert not layout.is_scalar
    assert layout.columns == slice(3, 9)


@pytest.mark.parametrize(
    "offset, length, shape",
    [
        (-1, 1, ()),        # negative offset
        (0, 0, (0,)),       # empty
        (0, 3, (2, 2)),     # length differs from product
        (0, 2, (-1, -2)),   # negative dimensions with a positive product
        (0, 2, ()),         # scalar spanning two columns
    ],
)
def test_layout_rejects_invalid(offset, length, shape):
    with pytest.raises(ConstructionError):
        Layout(offset, length, shape)


def test_layout_equality_and_hash():
    assert Layout(0, 2, (2,)) == Layout(0, 2, (2,))
    assert Layout(0, 2, (2,)) != Layout(1, 2, (2,))
    assert hash(Layout(0, 4, (2, 2))) == hash(Layout(0, 4, (2, 2)))


def test_layout_str():
    assert str(Layout(1, 6, (2, 3))) == "2:7 Array(2, 3)"
    assert str(Layout(4, 1, ())) == "5 scalar"
    assert str(Layout(5, 3, (3,))) == "6:8 Vector(3)"


# ============================================================================
# Schema construction
# ============================================================================

def test_schema_offsets_are_contiguous(schema):
    assert schema.n_columns == N_COLUMNS
    assert schema.names == ("a", "b", "c")

    # Every layout starts where the previous one ends
    expected_offset = 0
    for name, layout in schema.items():
        assert layout.offset == expected_offset
        assert layout.length == int(np.prod(NAMED_SHAPES[name]))
        expected_offset += layout.length
    assert expected_offset == schema.n_columns


def test_schema_accepts_pairs_and_preserves_order():
    schema = build_schema([("z", (2,)), ("a", ())])
    assert list(schema) == ["z", "a"]
    assert schema["a"] == Layout(2, 1, ())
    assert schema.shapes == {"z": (2,), "a": ()}


@pytest.mark.parametrize(
    "named_shapes",
    [
        {},                                   # empty
        {"a": (2, -1)},                       # negative dimension
        {"a": (0,)},                          # zero-size variable
        {"": ()},                             # blank name
        [("a", ()), ("b", (2,)), ("a", ())],  # duplicate name
    ],
)
def test_schema_rejects_invalid(named_shapes):
    with pytest.raises(ConstructionError):
        build_schema(named_shapes)


def test_schema_accessor(schema):
    assert schema["b"] == Layout(1, 2, (1, 2))
    assert "c" in schema
    assert "d" not in schema
    with pytest.raises(KeyError):
        schema["d"]  # pylint: disable=pointless-statement


def test_schema_structural_equality(schema):
    other = build_schema(dict(NAMED_SHAPES))
    assert other == schema
    assert other is not schema
    assert hash(other) == hash(schema)
    assert build_schema({"a": (), "b": (2,)}) != build_schema({"b": (2,), "a": ()})


def test_schema_is_read_only(schema):
    with pytest.raises(TypeError):
        schema.layouts["d"] = Layout(0, 1, ())


def test_column_names():
    schema = build_schema({"a": (), "b": (2,), "c": (2, 2)})
    assert schema.column_names() == [
        "a", "b.1", "b.2", "c.1.1", "c.2.1", "c.1.2", "c.2.2"
    ]


def test_column_major_indices():
    assert list(column_major_indices(())) == [()]
    assert list(column_major_indices((3,))) == [(1,), (2,), (3,)]
    assert list(column_major_indices((2, 2))) == [(1, 1), (2, 1), (1, 2), (2, 2)]


def test_schema_str(schema):
    assert str(schema).splitlines() == [
        "Column schema with layouts",
        "    a 1 scalar",
        "    b 2:3 Array(1, 2)",
        "    c 4:27 Array(2, 3, 4)",
    ]


# ============================================================================
# Views
# ============================================================================

def test_vector_views(schema):
    v = np.arange(1, N_COLUMNS + 1, dtype=float)

    assert schema["a"].view(v) == 1
    np.testing.assert_array_equal(schema["b"].view(v), [[2, 3]])
    np.testing.assert_array_equal(
        schema["c"].view(v), np.arange(4, N_COLUMNS + 1).reshape((2, 3, 4), order="F")
    )

    # The whole record
    record = view(v, schema)
    assert list(record) == ["a", "b", "c"]
    assert record["a"] == 1
    np.testing.assert_array_equal(record["c"], schema["c"].view(v))


def test_matrix_views(schema):
    m = np.arange(1, N_COLUMNS + 1, dtype=float).reshape(1, -1)

    np.testing.assert_array_equal(schema["a"].view(m), [1])
    np.testing.assert_array_equal(
        schema["b"].view(m), np.arange(2, 4).reshape((1, 1, 2), order="F")
    )
    np.testing.assert_array_equal(
        schema["c"].view(m),
        np.arange(4, N_COLUMNS + 1).reshape((1, 2, 3, 4), order="F"),
    )


def test_matrix_views_apply_per_row(schema):
    m = np.arange(3 * N_COLUMNS, dtype=float).reshape(3, N_COLUMNS)
    c = schema["c"].view(m)
    assert c.shape == (3, 2, 3, 4)
    for row_ind in range(3):
        np.testing.assert_array_equal(
            c[row_ind], m[row_ind, 3:].reshape((2, 3, 4), order="F")
        )
    np.testing.assert_array_equal(schema["a"].view(m), m[:, 0])


def test_views_do_not_copy(schema):
    m = np.arange(2 * N_COLUMNS, dtype=float).reshape(2, N_COLUMNS)
    for name in schema:
        layout_view = schema[name].view(m)
        assert np.shares_memory(layout_view, m)
        assert not layout_view.flags.writeable
    assert np.shares_memory(schema["c"].view(m[1]), m)


def test_view_round_trip(schema):
    v = np.random.default_rng(0).normal(size=N_COLUMNS)
    record = view(v, schema)
    flat = np.concatenate([np.ravel(record[name], order="F") for name in schema])
    np.testing.assert_array_equal(flat, v)


@pytest.mark.parametrize(
    "buffer",
    [
        np.zeros(N_COLUMNS - 1),
        np.zeros((2, N_COLUMNS + 1)),
        np.zeros((2, 2, N_COLUMNS)),
        np.zeros(()),
    ],
)
def test_view_shape_mismatch(schema, buffer):
    with pytest.raises(ShapeMismatch):
        view(buffer, schema)


def test_layout_view_out_of_range():
    with pytest.raises(ShapeMismatch):
        Layout(2, 4, (2, 2)).view(np.zeros(5))
