"""
Fisher-z difference between two conditions' correlations.

For each pair the correlation of each condition is clamped to the
ceiling (sign kept), Fisher-transformed and standardised by
1/sqrt(n - 3). The difference statistic is

    D = (z_A - z_B) / sqrt(se_A^2 + se_B^2)

with a two-sided standard normal p-value. Pairs with n <= 3 or an
undefined r in either condition get NaN for both.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import stats

from pydiffcor.core.validation import check_open_unit_interval
from pydiffcor.correlation._common import MIN_OVERLAP, floor_p_values

DEFAULT_CEILING = 0.99


def fisher_z(r: ArrayLike, ceiling: float = DEFAULT_CEILING) -> NDArray[np.floating[Any]]:
    """
    Fisher transform of r after clamping |r| to ``ceiling``.

    NaN inputs stay NaN.
    """
    r = np.asarray(r, dtype=np.float64)
    return np.arctanh(np.clip(r, -ceiling, ceiling))


def zscore_difference(
    r_a: ArrayLike,
    n_a: ArrayLike,
    r_b: ArrayLike,
    n_b: ArrayLike,
    ceiling: float = DEFAULT_CEILING,
) -> tuple[NDArray[np.floating[Any]], NDArray[np.floating[Any]]]:
    """
    Vectorised difference statistic and its two-sided p-value.

    Parameters
    ----------
    r_a, r_b : array-like
        Raw correlations of each condition.
    n_a, n_b : array-like
        Overlap counts of each condition.
    ceiling : float
        Clamp for |r| before the transform.

    Returns
    -------
    (z_diff, p_diff)
        NaN wherever either overlap is <= 3 or either r is NaN. p_diff is
        floored like the correlation p-values.
    """
    n_a = np.asarray(n_a, dtype=np.float64)
    n_b = np.asarray(n_b, dtype=np.float64)
    defined = (n_a > MIN_OVERLAP) & (n_b > MIN_OVERLAP)

    with np.errstate(divide='ignore', invalid='ignore'):
        var_a = np.where(defined, 1.0 / (n_a - 3.0), np.nan)
        var_b = np.where(defined, 1.0 / (n_b - 3.0), np.nan)
        z = (fisher_z(r_a, ceiling) - fisher_z(r_b, ceiling)) / np.sqrt(var_a + var_b)

    p = floor_p_values(2.0 * stats.norm.sf(np.abs(z)))
    return z, p


class ZScoreDifferencer:
    """
    Fisher-z differencer with a fixed correlation ceiling.

    Parameters
    ----------
    ceiling : float
        Must lie in (0, 1). Affects the statistic only, never the
        reported correlations.

    Raises
    ------
    ConfigurationError
        If ceiling is outside (0, 1).
    """

    def __init__(self, ceiling: float = DEFAULT_CEILING):
        check_open_unit_interval(ceiling, 'ceiling')
        self.ceiling = float(ceiling)

    def difference(
        self,
        r_a: ArrayLike,
        n_a: ArrayLike,
        r_b: ArrayLike,
        n_b: ArrayLike,
    ) -> tuple[NDArray[np.floating[Any]], NDArray[np.floating[Any]]]:
        return zscore_difference(r_a, n_a, r_b, n_b, self.ceiling)

    def statistic(
        self,
        r_a: ArrayLike,
        n_a: ArrayLike,
        r_b: ArrayLike,
        n_b: ArrayLike,
    ) -> NDArray[np.floating[Any]]:
        """z_diff only; used on the permutation path where p is not needed."""
        n_a = np.asarray(n_a, dtype=np.float64)
        n_b = np.asarray(n_b, dtype=np.float64)
        defined = (n_a > MIN_OVERLAP) & (n_b > MIN_OVERLAP)
        with np.errstate(divide='ignore', invalid='ignore'):
            se = np.sqrt(np.where(defined, 1.0 / (n_a - 3.0) + 1.0 / (n_b - 3.0), np.nan))
            return (fisher_z(r_a, self.ceiling) - fisher_z(r_b, self.ceiling)) / se

    def __repr__(self) -> str:
        return f"ZScoreDifferencer(ceiling={self.ceiling})"
