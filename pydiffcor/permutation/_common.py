"""
Common data structures for permutation results.

Also holds the small finishing steps shared by dcor_perm, dcor_avg and
the full-analysis engine: turning merged pools into empirical columns
and average records.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pydiffcor.adjust._qvalue import Pi0Method, estimate_pi0, qvalue
from pydiffcor.differential._common import PairTable
from pydiffcor.permutation._reduce import (
    Alternative,
    GeneNullPool,
    GlobalNullPool,
    PairNullPool,
    total_average,
)


@dataclass(frozen=True)
class GeneAverage:
    """
    Per-variable average differential correlation.

    Attributes:
        variables: Variable ids, one per entry
        average: Observed median/mean z_diff over each variable's partners
        emp_p: Empirical p-value against the pooled permuted averages
        fdr: Empirical false discovery rate
    """
    variables: tuple[str, ...]
    average: NDArray[np.floating[Any]]
    emp_p: NDArray[np.floating[Any]]
    fdr: NDArray[np.floating[Any]]

    def __len__(self) -> int:
        return len(self.variables)

    def order(self) -> NDArray[np.intp]:
        """Most significant first: FDR, then empirical p, ascending."""
        return np.lexsort((self.emp_p, self.fdr))

    def to_records(self) -> list[dict[str, Any]]:
        return [
            {'variable': v, 'avg_zscore': float(a), 'emp_pval': float(p), 'fdr': float(f)}
            for v, a, p, f in zip(self.variables, self.average, self.emp_p, self.fdr)
        ]


@dataclass(frozen=True)
class GlobalAverage:
    """
    Whole-dataset average differential correlation.

    Attributes:
        average: Observed median/mean z_diff over all pairs
        null: Permuted averages, one per permutation
        emp_p: Empirical p-value, reported as the global FDR
    """
    average: float
    null: NDArray[np.floating[Any]]
    emp_p: float


@dataclass(frozen=True)
class PairPermutationParams:
    """Payload of dcor_perm()."""
    table: PairTable
    n_perm: int
    seed: int
    pi0: float
    n_pooled: int


@dataclass(frozen=True)
class AverageParams:
    """Payload of dcor_avg(). Either average may be None if not requested."""
    gene: GeneAverage | None
    total: GlobalAverage | None
    avg_method: str
    alternative: str
    n_perm: int
    seed: int


def attach_empirical(
    table: PairTable,
    pool: PairNullPool,
    pi0_method: Pi0Method = 'smoother',
) -> tuple[PairTable, float]:
    """Table with emp_p and q_value columns filled, and the pi0 used."""
    emp_p = pool.empirical_p()
    pi0 = estimate_pi0(emp_p, pi0_method)
    return table.with_columns(emp_p=emp_p, q_value=qvalue(emp_p, pi0=pi0)), pi0


def finish_gene_average(
    table: PairTable,
    pool: GeneNullPool,
    alternative: Alternative = 'two.sided',
) -> GeneAverage:
    """Observed per-variable averages scored against the gene pool."""
    observed = pool.average(table.z_diff)
    present = np.unique(np.concatenate([table.idx_a, table.idx_b]))
    observed = observed[present]
    return GeneAverage(
        variables=tuple(table.variables[i] for i in present),
        average=observed,
        emp_p=pool.empirical_p(observed, alternative),
        fdr=pool.empirical_fdr(observed, alternative),
    )


def finish_global_average(
    table: PairTable,
    pool: GlobalNullPool,
    alternative: Alternative = 'two.sided',
) -> GlobalAverage:
    observed = total_average(table.z_diff, pool.how)
    return GlobalAverage(
        average=observed,
        null=pool.values,
        emp_p=pool.empirical_p(observed, alternative),
    )
