"""
Multiple-testing correction of differential p-values.

p_adjust() reproduces R's stats::p.adjust() for holm, hochberg, hommel,
bonferroni, BH, BY, fdr and none. NaN entries are carried through and do
not count towards the number of tests unless ``n`` says so.
"""

from __future__ import annotations

from typing import Callable

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pydiffcor.core.exceptions import ConfigurationError

P_ADJUST_METHODS = (
    "holm", "hochberg", "hommel", "bonferroni", "BH", "BY", "fdr", "none"
)


def _step_down(p: NDArray, n: int) -> NDArray:
    """Holm: ascending p scaled by (n - i + 1), cumulative max."""
    order = np.argsort(p, kind='stable')
    scale = np.arange(n, n - len(p), -1, dtype=np.float64)
    out = np.empty_like(p)
    out[order] = np.maximum.accumulate(p[order] * scale)
    return out


def _step_up(p: NDArray, scale: NDArray) -> NDArray:
    """
    Descending p times ``scale``, cumulative min.

    ``scale[k]`` multiplies the k-th largest p-value.
    """
    order = np.argsort(-p, kind='stable')
    out = np.empty_like(p)
    out[order] = np.minimum.accumulate(p[order] * scale)
    return out


def _hochberg(p: NDArray, n: int) -> NDArray:
    return _step_up(p, np.arange(n - len(p) + 1, n + 1, dtype=np.float64))


def _bh(p: NDArray, n: int) -> NDArray:
    return _step_up(p, n / np.arange(len(p), 0, -1, dtype=np.float64))


def _by(p: NDArray, n: int) -> NDArray:
    harmonic = np.sum(1.0 / np.arange(1, n + 1, dtype=np.float64))
    return _step_up(p, harmonic * n / np.arange(len(p), 0, -1, dtype=np.float64))


def _bonferroni(p: NDArray, n: int) -> NDArray:
    return p * n


def _hommel(p: NDArray, n: int) -> NDArray:
    """
    Hommel's closed-testing adjustment, after R's p.adjust loop.

    Missing tests (n > len(p)) enter as p = 1.
    """
    m = len(p)
    if n <= 1:
        return p.copy()
    work = np.ones(n, dtype=np.float64)
    work[:m] = p

    order = np.argsort(work, kind='stable')
    sp = work[order]
    start = np.min(n * sp / np.arange(1, n + 1, dtype=np.float64))
    adjusted = np.full(n, start)
    q = np.full(n, start)

    for j in range(n - 1, 1, -1):
        head = n - j + 1
        q1 = np.min(j * sp[head:] / np.arange(2, j + 1, dtype=np.float64))
        q[:head] = np.minimum(j * sp[:head], q1)
        q[head:] = q[head - 1]
        np.maximum(adjusted, q, out=adjusted)

    adjusted = np.maximum(adjusted, sp)
    out = np.empty(n, dtype=np.float64)
    out[order] = adjusted
    return out[:m]


_ADJUSTERS: dict[str, Callable[[NDArray, int], NDArray]] = {
    "holm": _step_down,
    "hochberg": _hochberg,
    "hommel": _hommel,
    "bonferroni": _bonferroni,
    "BH": _bh,
    "fdr": _bh,
    "BY": _by,
}


def p_adjust(
    p: ArrayLike,
    method: str = "holm",
    n: int | None = None,
) -> NDArray[np.floating]:
    """
    Adjust p-values for multiple comparisons, matching R p.adjust().

    Parameters
    ----------
    p : array-like
        P-values; NaN allowed.
    method : str
        One of P_ADJUST_METHODS. 'fdr' is an alias for 'BH'.
    n : int, optional
        Number of tests. Defaults to the number of non-NaN p-values and
        may not be smaller than it.

    Returns
    -------
    ndarray
        Adjusted p-values in input order, clipped to [0, 1]; NaN where the
        input was NaN.

    Raises
    ------
    ConfigurationError
        Unknown method or n smaller than the number of p-values.
    """
    if method not in P_ADJUST_METHODS:
        raise ConfigurationError(
            f"method must be one of {P_ADJUST_METHODS}, got {method!r}",
            option='method',
            value=method,
        )

    values = np.asarray(p, dtype=np.float64).ravel()
    result = values.copy()
    valid = ~np.isnan(values)
    m = int(valid.sum())

    n_tests = m if n is None else n
    if n_tests < m:
        raise ConfigurationError(
            f"n ({n}) must be >= number of p-values ({m})",
            option='n',
            value=n,
        )
    if method == "none" or m == 0:
        return result

    adjusted = _ADJUSTERS[method](values[valid], n_tests)
    result[valid] = np.clip(adjusted, 0.0, 1.0)
    return result
