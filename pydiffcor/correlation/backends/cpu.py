"""
CPU reference backend for pairwise-complete correlation.

Pearson coefficients on pairwise-complete data are computed from masked
moment matrices, so a whole block costs a handful of matrix products
instead of a Python loop over pairs:

    n_ij   = sum_s m_is m_js
    Sx_ij  = sum_s x_is m_js          Sy_ij  = sum_s m_is y_js
    Sxx_ij = sum_s x_is^2 m_js        Syy_ij = sum_s m_is y_js^2
    Sxy_ij = sum_s x_is y_js
    r_ij   = (Sxy - Sx Sy / n) / sqrt((Sxx - Sx^2 / n) (Syy - Sy^2 / n))

with m the non-missing mask and missing x set to 0. Rows are centred on
their own mean first to limit cancellation. Blocks without missing values
take a direct standardise-and-multiply path.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pydiffcor.correlation._common import MIN_OVERLAP
from pydiffcor.correlation._methods import CorrelationStrategy

# Relative variance below which an overlap is treated as constant.
_DEGENERATE_RTOL = 1e-12


def overlap_counts(rows: NDArray, cols: NDArray) -> NDArray[np.int64]:
    """Pairwise-complete observation counts, shape (len(rows), len(cols))."""
    mr = (~np.isnan(rows)).astype(np.float64)
    mc = mr if cols is rows else (~np.isnan(cols)).astype(np.float64)
    return np.rint(mr @ mc.T).astype(np.int64)


def _standardise(block: NDArray) -> NDArray:
    centred = block - block.mean(axis=1, keepdims=True)
    norm = np.sqrt(np.sum(centred * centred, axis=1, keepdims=True))
    with np.errstate(divide='ignore', invalid='ignore'):
        out = centred / norm
    out[(norm[:, 0] <= _DEGENERATE_RTOL * np.abs(block).max(axis=1, initial=0.0))] = np.nan
    return out


def complete_pearson(rows: NDArray, cols: NDArray) -> NDArray:
    """Pearson block for data without missing values."""
    zr = _standardise(rows)
    zc = zr if cols is rows else _standardise(cols)
    return np.clip(zr @ zc.T, -1.0, 1.0)


def masked_pearson(rows: NDArray, cols: NDArray) -> NDArray:
    """Pearson block on pairwise-complete observations (NaN = missing)."""
    same = cols is rows

    def centre(block):
        mask = ~np.isnan(block)
        filled = np.where(mask, block, 0.0)
        counts = np.maximum(mask.sum(axis=1, keepdims=True), 1)
        mu = filled.sum(axis=1, keepdims=True) / counts
        return np.where(mask, filled - mu, 0.0), mask.astype(np.float64)

    xr, mr = centre(rows)
    xc, mc = (xr, mr) if same else centre(cols)

    n = mr @ mc.T
    sx = xr @ mc.T
    sy = mr @ xc.T
    sxx = (xr * xr) @ mc.T
    syy = mr @ (xc * xc).T
    sxy = xr @ xc.T

    with np.errstate(divide='ignore', invalid='ignore'):
        cov = sxy - sx * sy / n
        vx = sxx - sx * sx / n
        vy = syy - sy * sy / n
        r = cov / np.sqrt(vx * vy)

    degenerate = (vx <= _DEGENERATE_RTOL * sxx) | (vy <= _DEGENERATE_RTOL * syy)
    r[degenerate | (n < MIN_OVERLAP)] = np.nan
    return np.clip(r, -1.0, 1.0)


class CPUCorrelationBackend:
    """CPU reference backend for per-condition correlation blocks."""

    @property
    def name(self) -> str:
        return 'cpu_correlation'

    def correlate(
        self,
        rows: NDArray,
        cols: NDArray,
        strategy: CorrelationStrategy,
    ) -> tuple[NDArray, NDArray, NDArray]:
        """
        Correlate every row of ``rows`` with every row of ``cols``.

        Pass the same array object for both arguments to compute a
        symmetric block; a flagged row is then refitted once and mirrored.
        """
        same = cols is rows
        n = overlap_counts(rows, cols)

        prepared_rows = strategy.prepare(rows)
        prepared_cols = prepared_rows if same else strategy.prepare(cols)

        if rows.shape[1] < MIN_OVERLAP:
            r = np.full(n.shape, np.nan)
        elif not (np.isnan(prepared_rows).any() or np.isnan(prepared_cols).any()):
            r = complete_pearson(prepared_rows, prepared_cols)
        else:
            r = masked_pearson(prepared_rows, prepared_cols)

        refit_r = strategy.refit_rows(rows)
        refit_c = refit_r if same else strategy.refit_rows(cols)
        if refit_r.any() or refit_c.any():
            self._refit(rows, cols, r, refit_r, refit_c, strategy, same)

        p = strategy.p_values(r, n)
        return r, n, p

    def _refit(self, rows, cols, r, refit_r, refit_c, strategy, same) -> None:
        """Recompute flagged rows (and columns) on each pair's own overlap."""
        for i in np.flatnonzero(refit_r):
            r[i, :] = strategy.coefficients(rows[i], cols)
            if same:
                r[:, i] = r[i, :]
        if same:
            return
        for j in np.flatnonzero(refit_c):
            r[:, j] = strategy.coefficients(cols[j], rows)
