"""
Pytest configuration file.

Ensures the repo root is on sys.path so that 'import mcmcstorage' works without an
install, and provides the sampler CSV fixtures shared by the test modules.
"""
import sys
from pathlib import Path

import numpy as np
import pytest

# Add the repo root to sys.path
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))


def make_csv_contents(n_rows: int = 10) -> str:
    """
    Build sampler CSV text with variables a (scalar), b (2,) and c (2, 2).

    Row i (1-based) holds a = i, b = (i + 1, i + 2) and c.1.1, c.2.1, c.1.2, c.2.2
    = i + 5, i + 6, i + 7, i + 8. Comments are placed before the header, between
    the header and the data, between rows, and at the end. Spaces are mixed in
    around some fields.
    """
    lines = ["# model = example", "  # indented comment"]
    lines.append("a, b.1, b.2, c.1.1, c.2.1, c.1.2, c.2.2")
    lines.append("# Adaptation terminated")
    for i in range(1, n_rows + 1):
        f = float(i)
        fields = [f"{f}", f" {f + 1} ", f"{f + 2}"]
        fields += [f"{i + j + 4.0}" for j in range(1, 5)]
        lines.append(",".join(fields))
        if i % 3 == 0:
            lines.append("# interspersed comment")
    lines.append("# Elapsed Time: 0.1 seconds")
    return "\n".join(lines) + "\n"


@pytest.fixture
def csv_contents() -> str:
    """Sampler CSV text with 10 rows, see make_csv_contents."""
    return make_csv_contents()


@pytest.fixture
def small_sample() -> np.ndarray:
    """10 x 3 matrix with columns i, 2i and 3i for i = 1..10."""
    i = np.arange(1, 11)
    return np.column_stack([i, 2 * i, 3 * i]).astype(float)
