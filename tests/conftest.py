"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np

from pydiffcor.correlation import ExpressionDesign


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


def two_condition_design(n_a: int, n_b: int) -> np.ndarray:
    """Samples x 2 indicator: first n_a samples in A, next n_b in B."""
    design = np.zeros((n_a + n_b, 2))
    design[:n_a, 0] = 1
    design[n_a:, 1] = 1
    return design


@pytest.fixture
def expression_data(rng):
    """
    6 variables x 30 samples, 15 per condition.

    G1 and G2 are strongly correlated in A and independent in B; the rest
    is noise.
    """
    n_a, n_b = 15, 15
    data = rng.standard_normal((6, n_a + n_b))
    data[1, :n_a] = data[0, :n_a] + 0.1 * rng.standard_normal(n_a)
    variables = [f"G{i + 1}" for i in range(6)]
    return data, two_condition_design(n_a, n_b), variables


@pytest.fixture
def expression_design(expression_data):
    data, design, variables = expression_data
    return ExpressionDesign.from_arrays(
        data, design, variables=variables, conditions=['A', 'B'],
    )


@pytest.fixture
def missing_data(rng):
    """5 variables x 24 samples with scattered NaN."""
    data = rng.standard_normal((5, 24))
    data[0, [1, 5, 17]] = np.nan
    data[2, [0, 12, 13, 20]] = np.nan
    data[4, 7] = np.nan
    return data, two_condition_design(12, 12)
