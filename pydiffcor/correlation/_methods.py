"""
Correlation method strategies.

The public API takes a method name; it is resolved once, at the call
boundary, into a CorrelationStrategy. Backends only talk to strategies.

Both methods report the two-sided Student-t significance
    t = r * sqrt((n - 2) / (1 - r^2)),  df = n - 2
which is exact for Pearson under bivariate normality and the standard
large-sample approximation for Spearman (as in scipy.stats.spearmanr).
"""

from __future__ import annotations

from enum import Enum

import numpy as np
from numpy.typing import NDArray
from scipy import stats

from pydiffcor.core.exceptions import ConfigurationError
from pydiffcor.correlation._common import MIN_OVERLAP, floor_p_values


class CorrelationMethod(str, Enum):
    PEARSON = 'pearson'
    SPEARMAN = 'spearman'


def correlation_p_values(r: NDArray, n: NDArray) -> NDArray:
    """
    Two-sided t-test p-values for correlation coefficients.

    Parameters
    ----------
    r : ndarray
        Coefficients, NaN where undefined.
    n : ndarray
        Observation counts, same shape as r.

    Returns
    -------
    ndarray
        p-values floored at P_VALUE_FLOOR; NaN where r is NaN or n < 3.
    """
    r = np.asarray(r, dtype=np.float64)
    n = np.asarray(n)
    defined = np.isfinite(r) & (n >= MIN_OVERLAP)
    df = np.where(defined, n - 2, 1).astype(np.float64)
    rc = np.where(defined, np.clip(r, -1.0, 1.0), 0.0)

    with np.errstate(divide='ignore', invalid='ignore'):
        t = rc * np.sqrt(df / (1.0 - rc * rc))
    t = np.where(np.abs(rc) >= 1.0, np.inf, t)

    p = 2.0 * stats.t.sf(np.abs(t), df)
    p = floor_p_values(p)
    return np.where(defined, p, np.nan)


class CorrelationStrategy:
    """Uniform interface over correlation methods."""

    method: CorrelationMethod

    @property
    def name(self) -> str:
        return self.method.value

    def prepare(self, block: NDArray) -> NDArray:
        """Transform a (variables x samples) block before moment computation."""
        return block

    def refit_rows(self, block: NDArray) -> NDArray[np.bool_]:
        """Rows whose pairs need recomputing on each pair's own overlap."""
        return np.zeros(block.shape[0], dtype=bool)

    def coefficients(self, x: NDArray, block: NDArray) -> NDArray:
        """Coefficients of one row x with every row of block, on pairwise overlaps."""
        raise NotImplementedError

    def p_values(self, r: NDArray, n: NDArray) -> NDArray:
        return correlation_p_values(r, n)


def rowwise_pearson(x: NDArray, y: NDArray) -> NDArray:
    """
    Pearson coefficient of each row of x with the same row of y.

    x and y share their NaN positions; NaN marks samples outside the
    row's overlap. Rows with fewer than MIN_OVERLAP values or zero
    variance give NaN.
    """
    mask = ~np.isnan(x)
    n = mask.sum(axis=1)
    counts = np.maximum(n, 1)[:, None]
    xf = np.where(mask, x, 0.0)
    yf = np.where(mask, y, 0.0)
    xc = np.where(mask, xf - xf.sum(axis=1, keepdims=True) / counts, 0.0)
    yc = np.where(mask, yf - yf.sum(axis=1, keepdims=True) / counts, 0.0)

    sxx = np.sum(xc * xc, axis=1)
    syy = np.sum(yc * yc, axis=1)
    with np.errstate(divide='ignore', invalid='ignore'):
        r = np.sum(xc * yc, axis=1) / np.sqrt(sxx * syy)
    r[(sxx <= 0) | (syy <= 0) | (n < MIN_OVERLAP)] = np.nan
    return np.clip(r, -1.0, 1.0)


def _on_overlaps(x: NDArray, block: NDArray) -> tuple[NDArray, NDArray]:
    """x repeated per row of block, both NaN outside each pair's overlap."""
    observed = ~np.isnan(x)
    ys = block[:, observed]
    xs = np.where(np.isnan(ys), np.nan, x[observed])
    return xs, ys


class PearsonStrategy(CorrelationStrategy):
    """Product-moment correlation on pairwise-complete observations."""

    method = CorrelationMethod.PEARSON

    def coefficients(self, x: NDArray, block: NDArray) -> NDArray:
        return rowwise_pearson(*_on_overlaps(x, block))


class SpearmanStrategy(CorrelationStrategy):
    """
    Rank correlation with average ranks for ties.

    Rows without missing values are ranked once across all samples. A
    pair touching a row with missing values is re-ranked on its own
    overlap, matching R's cor(method='spearman', use='pairwise.complete.obs').
    The re-ranking is done one flagged row at a time against a whole
    block.
    """

    method = CorrelationMethod.SPEARMAN

    def prepare(self, block: NDArray) -> NDArray:
        ranked = np.full_like(block, np.nan)
        complete = ~np.isnan(block).any(axis=1)
        if np.any(complete):
            ranked[complete] = stats.rankdata(block[complete], method='average', axis=1)
        return ranked

    def refit_rows(self, block: NDArray) -> NDArray[np.bool_]:
        return np.isnan(block).any(axis=1)

    def coefficients(self, x: NDArray, block: NDArray) -> NDArray:
        xs, ys = _on_overlaps(x, block)
        if xs.shape[1] == 0:
            return np.full(block.shape[0], np.nan)
        rx = stats.rankdata(xs, method='average', axis=1, nan_policy='omit')
        ry = stats.rankdata(ys, method='average', axis=1, nan_policy='omit')
        return rowwise_pearson(rx, ry)


_STRATEGIES = {
    CorrelationMethod.PEARSON: PearsonStrategy,
    CorrelationMethod.SPEARMAN: SpearmanStrategy,
}


def resolve_method(method: str | CorrelationMethod) -> CorrelationStrategy:
    """
    Resolve a method name into its strategy.

    Raises:
        ConfigurationError: If the method is unknown
    """
    if isinstance(method, CorrelationStrategy):
        return method
    try:
        key = CorrelationMethod(method)
    except ValueError:
        raise ConfigurationError(
            f"Unknown correlation method: {method!r}. "
            f"Must be one of {[m.value for m in CorrelationMethod]}.",
            option='method',
            value=method,
        ) from None
    return _STRATEGIES[key]()
