"""
Full-analysis solution type.

DCorSolution wraps Result[DCorParams]: the final DCorTable plus, when
requested, the gene-level and global average results of the same
permutation run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

from pydiffcor.adjust.solution import DCorTable
from pydiffcor.core.result import Result
from pydiffcor.differential._common import PairStatistic, PairTable
from pydiffcor.permutation._common import GeneAverage, GlobalAverage

if TYPE_CHECKING:
    from pydiffcor.ddcor.design import DCorConfig


@dataclass(frozen=True)
class DCorParams:
    """
    Parameter payload of ddcor_all().

    Attributes:
        table: Final output rows
        pairs: Every pair in scope, before selection, in pair order
        gene: Gene-level averages, if requested
        total: Global average, if requested
        seed: Root permutation seed actually used, or None without permutations
    """
    table: DCorTable
    pairs: PairTable
    gene: GeneAverage | None = None
    total: GlobalAverage | None = None
    seed: int | None = None


@dataclass
class DCorSolution:
    """
    User-facing result of ddcor_all().
    """
    _result: Result[DCorParams]
    _config: 'DCorConfig'

    # --- Core fields ---

    @property
    def table(self) -> DCorTable:
        return self._result.params.table

    @property
    def pairs(self) -> PairTable:
        return self._result.params.pairs

    @property
    def gene_average(self) -> GeneAverage | None:
        return self._result.params.gene

    @property
    def global_average(self) -> GlobalAverage | None:
        return self._result.params.total

    @property
    def seed(self) -> int | None:
        return self._result.params.seed

    @property
    def config(self) -> 'DCorConfig':
        return self._config

    def __len__(self) -> int:
        return len(self.table)

    def __getitem__(self, i: int) -> PairStatistic:
        return self.table[i]

    def to_dataframe(self):
        return self.table.to_dataframe()

    def to_records(self) -> list[dict[str, Any]]:
        return self.table.to_records()

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

    @property
    def provenance(self) -> dict[str, str]:
        return self._result.provenance

    # --- Display ---

    def summary(self) -> str:
        cfg = self._config
        lines = [
            self.table.summary(),
            "",
            f"Method: {cfg.method}, ceiling: {cfg.ceiling}, permutations: {cfg.n_perm}",
        ]
        if self.global_average is not None:
            g = self.global_average
            lines.append(f"Global {cfg.avg_method} z: {g.average:.4g} (empirical FDR {g.emp_p:.4g})")
        if self.gene_average is not None:
            n_sig = int((self.gene_average.fdr < 0.05).sum())
            lines.append(f"Variables with gene-level FDR < 0.05: {n_sig} of {len(self.gene_average)}")
        for w in self.warnings:
            lines.append(f"Warning: {w}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        a, b = self._config.compare
        return (
            f"DCorSolution(compare=({a!r}, {b!r}), rows={len(self.table)}, "
            f"n_perm={self._config.n_perm}, backend={self.backend_name!r})"
        )
