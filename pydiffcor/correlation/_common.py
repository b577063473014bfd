"""
Common data structures for per-condition correlation.

ConditionCorrelation is the per-condition result (r, n, p matrices);
CorrelationParams is the payload wrapped by Result[P].
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

# Smallest p-value ever reported. Anything below, including exact zeros
# from |r| = 1, is reported as this value.
P_VALUE_FLOOR = float(np.finfo(np.float64).eps)

# Fewest pairwise-complete observations giving a defined coefficient.
MIN_OVERLAP = 3


def floor_p_values(p: NDArray) -> NDArray:
    """Clamp p-values into [P_VALUE_FLOOR, 1]; NaN stays NaN."""
    return np.clip(p, P_VALUE_FLOOR, 1.0)


@dataclass(frozen=True)
class ConditionCorrelation:
    """
    Correlation, overlap and significance for one condition.

    Three parallel (rows x cols) matrices over the scope's variables. For
    an unrestricted or split x split scope rows and cols are the same
    variables and the matrices are square and symmetric, with a diagonal
    of 1 (NaN for rows with fewer than 3 values or zero variance).

    Attributes:
        condition: Condition name
        r: Correlation coefficients, NaN where undefined
        n: Pairwise-complete observation counts
        p: Two-sided p-values, floored at P_VALUE_FLOOR, NaN where undefined
        row_ids: Variable ids of the rows
        col_ids: Variable ids of the columns
        method: 'pearson' or 'spearman'
    """
    condition: str
    r: NDArray[np.floating[Any]]
    n: NDArray[np.integer[Any]]
    p: NDArray[np.floating[Any]]
    row_ids: tuple[str, ...]
    col_ids: tuple[str, ...]
    method: str

    def __post_init__(self):
        for arr in (self.r, self.n, self.p):
            arr.setflags(write=False)

    @property
    def shape(self) -> tuple[int, int]:
        return self.r.shape

    @property
    def is_square(self) -> bool:
        return self.row_ids == self.col_ids

    def lookup(self, first: str, second: str) -> tuple[float, int, float]:
        """(r, n, p) for one pair of variable ids."""
        i = self.row_ids.index(first)
        j = self.col_ids.index(second)
        return float(self.r[i, j]), int(self.n[i, j]), float(self.p[i, j])

    def __repr__(self) -> str:
        return (
            f"ConditionCorrelation(condition={self.condition!r}, "
            f"method={self.method!r}, shape={self.shape})"
        )


@dataclass(frozen=True)
class CorrelationParams:
    """
    Parameter payload for a two-condition correlation run.

    ``first`` and ``second`` follow the order of the ``compare`` argument.
    """
    first: ConditionCorrelation
    second: ConditionCorrelation
    n_undefined: int
