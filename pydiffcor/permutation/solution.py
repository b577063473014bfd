"""
Permutation solution types.

PairPermutationSolution: pair-level empirical p-values and q-values.
AverageDCorSolution: gene-level and global average differential
correlation with their empirical significance.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pydiffcor.core.result import Result
from pydiffcor.differential._common import PairTable
from pydiffcor.permutation._common import (
    AverageParams,
    GeneAverage,
    GlobalAverage,
    PairPermutationParams,
)


@dataclass
class PairPermutationSolution:
    """
    User-facing result of dcor_perm().

    ``table`` is the observed PairTable with emp_p and q_value filled.
    """
    _result: Result[PairPermutationParams]

    # --- Core fields ---

    @property
    def table(self) -> PairTable:
        return self._result.params.table

    @property
    def emp_p(self) -> NDArray[np.floating[Any]]:
        """Empirical p-value per pair, in pair order."""
        return self._result.params.table.emp_p

    @property
    def q_value(self) -> NDArray[np.floating[Any]]:
        return self._result.params.table.q_value

    @property
    def n_perm(self) -> int:
        return self._result.params.n_perm

    @property
    def seed(self) -> int:
        """Root seed actually used; pass it back to reproduce the run."""
        return self._result.params.seed

    @property
    def pi0(self) -> float:
        return self._result.params.pi0

    @property
    def n_pooled(self) -> int:
        """Number of defined permuted statistics in the pooled null."""
        return self._result.params.n_pooled

    # --- Metadata ---

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    # --- Display ---

    def summary(self) -> str:
        emp = self.emp_p[~np.isnan(self.emp_p)]
        q = self.q_value[~np.isnan(self.q_value)]
        lines = [
            "\nPAIR-LEVEL PERMUTATION",
            "",
            f"Number of permutations: {self.n_perm}",
            f"Pairs: {len(self.table)} (undefined: {self.table.n_undefined})",
            f"Pooled null size: {self.n_pooled}",
            f"Estimated pi0: {self.pi0:.4g}",
        ]
        if len(emp):
            lines.append(f"Smallest empirical p: {emp.min():.4g}")
            lines.append(f"Pairs with q < 0.05: {int((q < 0.05).sum())}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"PairPermutationSolution(n_perm={self.n_perm}, "
            f"pairs={len(self.table)}, seed={self.seed})"
        )


@dataclass
class AverageDCorSolution:
    """
    User-facing result of dcor_avg().
    """
    _result: Result[AverageParams]

    @property
    def gene(self) -> GeneAverage | None:
        """Per-variable averages, or None if not requested."""
        return self._result.params.gene

    @property
    def total(self) -> GlobalAverage | None:
        """Whole-dataset average, or None if not requested."""
        return self._result.params.total

    @property
    def avg_method(self) -> str:
        return self._result.params.avg_method

    @property
    def alternative(self) -> str:
        return self._result.params.alternative

    @property
    def n_perm(self) -> int:
        return self._result.params.n_perm

    @property
    def seed(self) -> int:
        return self._result.params.seed

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def summary(self, n_rows: int = 10) -> str:
        lines = [
            "\nAVERAGE DIFFERENTIAL CORRELATION",
            "",
            f"Average: {self.avg_method}, alternative: {self.alternative}",
            f"Number of permutations: {self.n_perm}",
        ]
        if self.total is not None:
            lines += [
                "",
                f"Global average z: {self.total.average:.4g}",
                f"Global empirical FDR: {self.total.emp_p:.4g}",
            ]
        if self.gene is not None:
            lines += ["", f"{'variable':<16s}{'avg_z':>10s}{'emp_p':>12s}{'fdr':>10s}"]
            for i in self.gene.order()[:n_rows]:
                lines.append(
                    f"{self.gene.variables[i]:<16.16s}{self.gene.average[i]:>10.4f}"
                    f"{self.gene.emp_p[i]:>12.4g}{self.gene.fdr[i]:>10.4g}"
                )
        return "\n".join(lines)

    def __repr__(self) -> str:
        kinds = [k for k, v in (('gene', self.gene), ('total', self.total)) if v is not None]
        return (
            f"AverageDCorSolution(avg_type={'+'.join(kinds)!r}, "
            f"n_perm={self.n_perm}, avg_method={self.avg_method!r})"
        )
