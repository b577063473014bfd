"""
Final output table of a differential correlation analysis.

DCorTable holds the selected, sorted and annotated PairTable and renders
it as the output schema:

    var_a, var_b, cor_<A>, pval_<A>, cor_<B>, pval_<B>,
    zscore_diff, pval_diff, [pval_diff_adj], [emp_pval, qvalue], [class]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

from pydiffcor.differential._classify import count_classes
from pydiffcor.differential._common import PairStatistic, PairTable


@dataclass(frozen=True)
class DCorTable:
    """
    Output rows of one analysis.

    Attributes:
        pairs: The retained pairs, in output order
        adjust: Adjustment method name
        classified: Whether a class column is reported
        n_total: Number of pairs before truncation
    """
    pairs: PairTable
    adjust: str = 'none'
    classified: bool = False
    n_total: int = 0

    def __len__(self) -> int:
        return len(self.pairs)

    def __iter__(self) -> Iterator[PairStatistic]:
        return iter(self.pairs)

    def __getitem__(self, i: int) -> PairStatistic:
        return self.pairs[i]

    @property
    def conditions(self) -> tuple[str, str]:
        return self.pairs.conditions

    @property
    def has_adjusted(self) -> bool:
        return self.pairs.p_adj is not None

    @property
    def has_permutation(self) -> bool:
        return self.pairs.emp_p is not None

    @property
    def columns(self) -> list[str]:
        a, b = self.conditions
        cols = ['var_a', 'var_b', f'cor_{a}', f'pval_{a}', f'cor_{b}', f'pval_{b}',
                'zscore_diff', 'pval_diff']
        if self.has_adjusted:
            cols.append('pval_diff_adj')
        if self.has_permutation:
            cols += ['emp_pval', 'qvalue']
        if self.classified:
            cols.append('class')
        return cols

    def to_columns(self) -> dict[str, Any]:
        """Column name -> list of values, in output order."""
        t = self.pairs
        names = self.columns
        values: list[Any] = [
            list(t.ids_a), list(t.ids_b),
            t.r_a.tolist(), t.p_a.tolist(), t.r_b.tolist(), t.p_b.tolist(),
            t.z_diff.tolist(), t.p_diff.tolist(),
        ]
        if self.has_adjusted:
            values.append(t.p_adj.tolist())
        if self.has_permutation:
            values += [t.emp_p.tolist(), t.q_value.tolist()]
        if self.classified:
            values.append([None if v is None else str(v) for v in t.label])
        return dict(zip(names, values))

    def to_records(self) -> list[dict[str, Any]]:
        """One dict per output row."""
        columns = self.to_columns()
        names = list(columns)
        return [dict(zip(names, row)) for row in zip(*columns.values())]

    def to_dataframe(self):
        """
        Output rows as a pandas DataFrame.

        Requires pandas (``pip install pydiffcor[pandas]``).
        """
        import pandas as pd

        return pd.DataFrame(self.to_columns(), columns=self.columns)

    def class_counts(self) -> dict[str, int]:
        if not self.classified:
            raise ValueError("table was built without classification")
        return count_classes(self.pairs.label)

    def summary(self, n_rows: int = 10) -> str:
        a, b = self.conditions
        lines = [
            f"\nDIFFERENTIAL CORRELATION: {a} vs {b}",
            "",
            f"Pairs: {len(self)} of {self.n_total} (adjust={self.adjust})",
            "",
            f"{'var_a':<14s}{'var_b':<14s}{'cor_' + a:>10s}{'cor_' + b:>10s}"
            f"{'zdiff':>10s}{'pdiff':>12s}",
        ]
        for rec in (self[i] for i in range(min(n_rows, len(self)))):
            lines.append(
                f"{rec.var_a:<14.14s}{rec.var_b:<14.14s}{rec.r_a:>10.4f}{rec.r_b:>10.4f}"
                f"{rec.z_diff:>10.4f}{rec.p_diff:>12.4g}"
            )
        if len(self) > n_rows:
            lines.append(f"... {len(self) - n_rows} more")
        if self.classified:
            counts = {k: v for k, v in self.class_counts().items() if v}
            lines.append("")
            lines.append(f"Classes: {counts}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"DCorTable(pairs={len(self)}, conditions={list(self.conditions)}, "
            f"adjust={self.adjust!r})"
        )
