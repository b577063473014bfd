"""
Storey q-values.

q-values are step-up adjusted p-values scaled by an estimate of pi0, the
proportion of true null hypotheses:

    q_(i) = min_{k >= i} pi0 * m * p_(k) / k

pi0 is estimated from the share of p-values above a cut-off lambda,
pi0(lambda) = #{p > lambda} / (m * (1 - lambda)). The 'smoother' method
fits a cubic smoothing spline with 3 effective degrees of freedom to
pi0(lambda) over the lambda grid and reads it off at the largest lambda.

References:
    Storey, J.D., & Tibshirani, R. (2003). Statistical significance for
    genomewide studies. PNAS, 100(16), 9440-9445.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import stats
from scipy.interpolate import make_smoothing_spline
from scipy.optimize import brentq

from pydiffcor.core.validation import check_choice

Pi0Method = Literal['none', 'lambda', 'smoother']

PI0_METHODS = ('none', 'lambda', 'smoother')
LAMBDA_GRID = np.round(np.arange(0.05, 0.96, 0.05), 2)
SMOOTH_DF = 3.0


def _pi0_at(p: NDArray, lam: float | NDArray) -> float | NDArray:
    lam = np.asarray(lam, dtype=np.float64)
    above = len(p) - np.searchsorted(np.sort(p), lam, side='right')
    out = above / (len(p) * (1.0 - lam))
    return out if lam.ndim else float(out)


def smoother_df(x: NDArray, lam: float) -> float:
    """Effective degrees of freedom (hat-matrix trace) of a smoothing spline."""
    unit = np.eye(len(x))
    return float(sum(
        make_smoothing_spline(x, unit[i], lam=lam)(x[i]) for i in range(len(x))
    ))


@lru_cache(maxsize=None)
def _smoothing_lam() -> float:
    # penalty giving SMOOTH_DF degrees of freedom on LAMBDA_GRID
    log_lam = brentq(
        lambda v: smoother_df(LAMBDA_GRID, 10.0 ** v) - SMOOTH_DF, -6.0, 2.0, xtol=1e-8,
    )
    return 10.0 ** log_lam


def estimate_pi0(
    p: ArrayLike,
    method: Pi0Method = 'smoother',
    lam: float = 0.5,
) -> float:
    """
    Proportion of true nulls among (non-NaN) p-values.

    Parameters
    ----------
    p : array-like
        P-values in [0, 1]. NaN entries are ignored.
    method : str
        'none' (pi0 = 1), 'lambda' (single cut-off ``lam``) or 'smoother'
        (cubic smoothing spline with 3 degrees of freedom over lambda
        in 0.05..0.95, read off at the largest lambda).
    lam : float
        Cut-off for the 'lambda' method.

    Returns
    -------
    float
        pi0 in [1/m, 1].
    """
    check_choice(method, PI0_METHODS, 'pi0_method')
    values = np.asarray(p, dtype=np.float64)
    values = values[~np.isnan(values)]
    m = len(values)
    if method == 'none' or m == 0:
        return 1.0

    if method == 'lambda':
        pi0 = _pi0_at(values, lam)
    else:
        pi0s = _pi0_at(values, LAMBDA_GRID)
        spline = make_smoothing_spline(LAMBDA_GRID, pi0s, lam=_smoothing_lam())
        pi0 = float(spline(LAMBDA_GRID[-1]))

    return float(np.clip(pi0, 1.0 / m, 1.0))


def qvalue(
    p: ArrayLike,
    pi0_method: Pi0Method = 'smoother',
    pi0: float | None = None,
) -> NDArray[np.floating]:
    """
    Storey q-values.

    Parameters
    ----------
    p : array-like
        P-values; NaN stays NaN and does not count towards m.
    pi0_method : str
        How to estimate pi0 when ``pi0`` is not given.
    pi0 : float, optional
        Use this pi0 instead of estimating it.

    Returns
    -------
    ndarray
        q-values in input order, capped at 1.
    """
    values = np.asarray(p, dtype=np.float64).ravel()
    out = np.full_like(values, np.nan)
    valid = ~np.isnan(values)
    pv = values[valid]
    m = len(pv)
    if m == 0:
        return out

    if pi0 is None:
        pi0 = estimate_pi0(pv, pi0_method)

    # tied p-values share the largest rank
    rank = stats.rankdata(pv, method='max')
    q = pi0 * m * pv / rank

    order = np.argsort(-pv, kind='stable')
    q[order] = np.minimum.accumulate(q[order])
    out[valid] = np.minimum(q, 1.0)
    return out
