"""
Streaming null pools.

Each pool reduces the permuted z_diff vectors of a run into what its
granularity needs, one permutation at a time:

    PairNullPool   : counts of pooled |z*| >= each observed |z|, O(pairs)
    GeneNullPool   : per-variable average z* per permutation, O(V * n_perm)
    GlobalNullPool : one average z* per permutation, O(n_perm)

Pools are worker-local. spawn() makes an empty pool with the same
observed reference; merge() combines two pools and is associative and
commutative, so the merged result does not depend on how permutations
were split across workers.
"""

from __future__ import annotations

from typing import Any, Literal

import numpy as np
from numpy.typing import NDArray

AverageMethod = Literal['median', 'mean']
Alternative = Literal['two.sided', 'greater', 'less']

ALTERNATIVES = ('two.sided', 'greater', 'less')
AVERAGE_METHODS = ('median', 'mean')


def variable_average(
    var_a: NDArray[np.intp],
    var_b: NDArray[np.intp],
    z: NDArray[np.floating[Any]],
    n_variables: int,
    how: AverageMethod = 'median',
) -> NDArray[np.floating[Any]]:
    """
    Median or mean of z over each variable's partners.

    Undefined z values are left out. Variables without any defined pair
    get NaN.
    """
    ok = ~np.isnan(z)
    var = np.concatenate([var_a[ok], var_b[ok]])
    val = np.concatenate([z[ok], z[ok]])
    counts = np.bincount(var, minlength=n_variables)
    out = np.full(n_variables, np.nan)
    has = counts > 0

    if how == 'mean':
        sums = np.bincount(var, weights=val, minlength=n_variables)
        out[has] = sums[has] / counts[has]
        return out

    order = np.lexsort((val, var))
    val = val[order]
    start = np.concatenate([[0], np.cumsum(counts)[:-1]])
    lo = start + (counts - 1) // 2
    hi = start + counts // 2
    out[has] = 0.5 * (val[lo[has]] + val[hi[has]])
    return out


def total_average(z: NDArray[np.floating[Any]], how: AverageMethod = 'median') -> float:
    """Median or mean of the defined z values; NaN if none is defined."""
    z = z[~np.isnan(z)]
    if len(z) == 0:
        return float('nan')
    return float(np.median(z) if how == 'median' else np.mean(z))


def oriented(values: NDArray, alternative: Alternative) -> NDArray:
    """Map values so that larger means more extreme under ``alternative``."""
    if alternative == 'two.sided':
        return np.abs(values)
    if alternative == 'less':
        return -values
    return values


def exceedance_counts(pool_sorted: NDArray, observed: NDArray) -> NDArray[np.int64]:
    """Number of pool values >= each observed value (pool sorted ascending)."""
    return len(pool_sorted) - np.searchsorted(pool_sorted, observed, side='left')


class PairNullPool:
    """
    Pooled pair-level null of |z_diff|.

    Keeps only the observed |z| values and one running count per
    observed pair.

    Parameters
    ----------
    observed : ndarray
        Observed z_diff per pair; NaN pairs get a NaN empirical p-value.
    """

    def __init__(self, observed: NDArray[np.floating[Any]]):
        self.observed = np.abs(np.asarray(observed, dtype=np.float64))
        self._defined = np.flatnonzero(~np.isnan(self.observed))
        self.counts = np.zeros(len(self._defined), dtype=np.int64)
        self.total = 0
        self.n_perm = 0

    def spawn(self) -> PairNullPool:
        pool = PairNullPool.__new__(PairNullPool)
        pool.observed = self.observed
        pool._defined = self._defined
        pool.counts = np.zeros_like(self.counts)
        pool.total = 0
        pool.n_perm = 0
        return pool

    def update(self, index: int, z: NDArray[np.floating[Any]]) -> None:
        permuted = np.abs(z[~np.isnan(z)])
        permuted.sort()
        self.counts += exceedance_counts(permuted, self.observed[self._defined])
        self.total += len(permuted)
        self.n_perm += 1

    def merge(self, other: PairNullPool) -> PairNullPool:
        if other.observed is not self.observed:
            raise ValueError("cannot merge pools built for different observed values")
        pool = self.spawn()
        pool.counts = self.counts + other.counts
        pool.total = self.total + other.total
        pool.n_perm = self.n_perm + other.n_perm
        return pool

    def empirical_p(self) -> NDArray[np.floating[Any]]:
        """(count + 1) / (total + 1) per pair, in observed order."""
        out = np.full(len(self.observed), np.nan)
        out[self._defined] = (self.counts + 1.0) / (self.total + 1.0)
        return out

    def __repr__(self) -> str:
        return f"PairNullPool(pairs={len(self.observed)}, n_perm={self.n_perm}, pooled={self.total})"


class GeneNullPool:
    """
    Per-variable average z_diff for every permutation.

    Parameters
    ----------
    var_a, var_b : ndarray of int
        Global variable indices of each pair.
    n_variables : int
        Number of variables in the expression matrix.
    how : str
        'median' or 'mean'.
    """

    def __init__(
        self,
        var_a: NDArray[np.intp],
        var_b: NDArray[np.intp],
        n_variables: int,
        how: AverageMethod = 'median',
    ):
        self.var_a = var_a
        self.var_b = var_b
        self.n_variables = n_variables
        self.how = how
        self.rows: dict[int, NDArray[np.floating[Any]]] = {}

    def spawn(self) -> GeneNullPool:
        return GeneNullPool(self.var_a, self.var_b, self.n_variables, self.how)

    def average(self, z: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]]:
        return variable_average(self.var_a, self.var_b, z, self.n_variables, self.how)

    def update(self, index: int, z: NDArray[np.floating[Any]]) -> None:
        self.rows[index] = self.average(z)

    def merge(self, other: GeneNullPool) -> GeneNullPool:
        pool = self.spawn()
        pool.rows = {**self.rows, **other.rows}
        return pool

    @property
    def n_perm(self) -> int:
        return len(self.rows)

    @property
    def values(self) -> NDArray[np.floating[Any]]:
        """(n_perm, n_variables) averages in permutation order."""
        if not self.rows:
            return np.empty((0, self.n_variables))
        return np.vstack([self.rows[i] for i in sorted(self.rows)])

    def empirical_p(
        self,
        observed: NDArray[np.floating[Any]],
        alternative: Alternative = 'two.sided',
    ) -> NDArray[np.floating[Any]]:
        """Per-variable p against the pool of all variables' permuted averages."""
        pool = oriented(self.values.ravel(), alternative)
        pool = np.sort(pool[~np.isnan(pool)])
        obs = oriented(observed, alternative)
        out = np.full(len(obs), np.nan)
        ok = ~np.isnan(obs)
        out[ok] = (exceedance_counts(pool, obs[ok]) + 1.0) / (len(pool) + 1.0)
        return out

    def empirical_fdr(
        self,
        observed: NDArray[np.floating[Any]],
        alternative: Alternative = 'two.sided',
    ) -> NDArray[np.floating[Any]]:
        """
        FDR(t) = (#pool >= t / n_perm) / #observed >= t at each observed t.

        Capped at 1 and made monotone: a more extreme average never gets a
        larger FDR than a less extreme one.
        """
        pool = oriented(self.values.ravel(), alternative)
        pool = np.sort(pool[~np.isnan(pool)])
        obs = oriented(observed, alternative)
        out = np.full(len(obs), np.nan)
        ok = np.flatnonzero(~np.isnan(obs))
        if len(ok) == 0 or self.n_perm == 0:
            return out

        t = obs[ok]
        obs_sorted = np.sort(t)
        expected = exceedance_counts(pool, t) / self.n_perm
        called = exceedance_counts(obs_sorted, t)
        fdr = np.minimum(expected / called, 1.0)

        order = np.argsort(t, kind='stable')
        fdr[order] = np.minimum.accumulate(fdr[order])
        out[ok] = fdr
        return out

    def __repr__(self) -> str:
        return f"GeneNullPool(variables={self.n_variables}, n_perm={self.n_perm}, how={self.how!r})"


class GlobalNullPool:
    """One average z_diff over all pairs per permutation."""

    def __init__(self, how: AverageMethod = 'median'):
        self.how = how
        self.scalars: dict[int, float] = {}

    def spawn(self) -> GlobalNullPool:
        return GlobalNullPool(self.how)

    def update(self, index: int, z: NDArray[np.floating[Any]]) -> None:
        self.scalars[index] = total_average(z, self.how)

    def merge(self, other: GlobalNullPool) -> GlobalNullPool:
        pool = self.spawn()
        pool.scalars = {**self.scalars, **other.scalars}
        return pool

    @property
    def n_perm(self) -> int:
        return len(self.scalars)

    @property
    def values(self) -> NDArray[np.floating[Any]]:
        return np.array([self.scalars[i] for i in sorted(self.scalars)], dtype=np.float64)

    def empirical_p(self, observed: float, alternative: Alternative = 'two.sided') -> float:
        """
        (count of permuted averages at least as extreme + 1) / (N + 1).

        N is the number of permutations with a defined average.
        """
        if np.isnan(observed):
            return float('nan')
        null = oriented(self.values, alternative)
        null = null[~np.isnan(null)]
        obs = oriented(np.asarray(observed), alternative)
        count = int(np.sum(null >= obs))
        return (count + 1.0) / (len(null) + 1.0)

    def __repr__(self) -> str:
        return f"GlobalNullPool(n_perm={self.n_perm}, how={self.how!r})"
