"""
Per-pair differential correlation records.

PairStatistic is the immutable record for one pair. PairTable is the
columnar container holding many of them as parallel numpy arrays; it
yields PairStatistic records on iteration and indexing.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterator

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class PairStatistic:
    """
    Differential correlation statistics for one variable pair.

    Attributes:
        var_a, var_b: Variable identifiers
        r_a, p_a, n_a: Raw correlation, p-value and overlap in condition A
        r_b, p_b, n_b: Same for condition B
        z_diff: Fisher-z difference statistic (NaN if undefined)
        p_diff: Two-sided normal p-value of z_diff (NaN if undefined)
        label: Class label such as '+/0', or None if not classified
        p_adj: Adjusted differential p-value, if an adjustment ran
        emp_p: Permutation empirical p-value, if permutations ran
        q_value: q-value of emp_p, if permutations ran
    """
    var_a: str
    var_b: str
    r_a: float
    p_a: float
    n_a: int
    r_b: float
    p_b: float
    n_b: int
    z_diff: float
    p_diff: float
    label: str | None = None
    p_adj: float | None = None
    emp_p: float | None = None
    q_value: float | None = None

    @property
    def is_defined(self) -> bool:
        return bool(np.isfinite(self.z_diff))


_OPTIONAL = ('label', 'p_adj', 'emp_p', 'q_value')


@dataclass(frozen=True)
class PairTable:
    """
    Columnar collection of PairStatistics.

    Variable ids are stored once in ``variables``; ``idx_a`` / ``idx_b``
    index into it. Optional columns are None until the step that fills
    them has run.
    """
    variables: tuple[str, ...]
    conditions: tuple[str, str]
    idx_a: NDArray[np.intp]
    idx_b: NDArray[np.intp]
    r_a: NDArray[np.floating[Any]]
    p_a: NDArray[np.floating[Any]]
    n_a: NDArray[np.integer[Any]]
    r_b: NDArray[np.floating[Any]]
    p_b: NDArray[np.floating[Any]]
    n_b: NDArray[np.integer[Any]]
    z_diff: NDArray[np.floating[Any]]
    p_diff: NDArray[np.floating[Any]]
    label: NDArray[np.object_] | None = None
    p_adj: NDArray[np.floating[Any]] | None = None
    emp_p: NDArray[np.floating[Any]] | None = None
    q_value: NDArray[np.floating[Any]] | None = None
    method: str = field(default='pearson', compare=False)

    def __post_init__(self):
        n = len(self.idx_a)
        for name in ('idx_b', 'r_a', 'p_a', 'n_a', 'r_b', 'p_b', 'n_b',
                     'z_diff', 'p_diff') + _OPTIONAL:
            arr = getattr(self, name)
            if arr is None:
                continue
            if len(arr) != n:
                raise ValueError(f"PairTable column {name!r} has length {len(arr)}, expected {n}")
            arr.setflags(write=False)
        self.idx_a.setflags(write=False)

    def __len__(self) -> int:
        return len(self.idx_a)

    @property
    def ids_a(self) -> tuple[str, ...]:
        return tuple(self.variables[i] for i in self.idx_a)

    @property
    def ids_b(self) -> tuple[str, ...]:
        return tuple(self.variables[i] for i in self.idx_b)

    @property
    def n_undefined(self) -> int:
        """Pairs whose differential statistic is undefined."""
        return int(np.isnan(self.z_diff).sum())

    def __getitem__(self, i: int) -> PairStatistic:
        if not -len(self) <= i < len(self):
            raise IndexError(f"pair index {i} out of range for {len(self)} pairs")
        extras = {}
        for name in _OPTIONAL:
            col = getattr(self, name)
            if col is not None:
                value = col[i]
                extras[name] = value if name == 'label' else float(value)
        return PairStatistic(
            var_a=self.variables[self.idx_a[i]],
            var_b=self.variables[self.idx_b[i]],
            r_a=float(self.r_a[i]),
            p_a=float(self.p_a[i]),
            n_a=int(self.n_a[i]),
            r_b=float(self.r_b[i]),
            p_b=float(self.p_b[i]),
            n_b=int(self.n_b[i]),
            z_diff=float(self.z_diff[i]),
            p_diff=float(self.p_diff[i]),
            **extras,
        )

    def __iter__(self) -> Iterator[PairStatistic]:
        for i in range(len(self)):
            yield self[i]

    def take(self, order: NDArray[np.intp]) -> PairTable:
        """Subset / reorder rows."""
        order = np.asarray(order, dtype=np.intp)
        changes = {}
        for name in ('idx_a', 'idx_b', 'r_a', 'p_a', 'n_a', 'r_b', 'p_b', 'n_b',
                     'z_diff', 'p_diff') + _OPTIONAL:
            col = getattr(self, name)
            changes[name] = None if col is None else col[order]
        return replace(self, **changes)

    def with_columns(self, **columns: NDArray | None) -> PairTable:
        """Copy with optional columns (label, p_adj, emp_p, q_value) set."""
        unknown = set(columns) - set(_OPTIONAL)
        if unknown:
            raise ValueError(f"unknown PairTable columns {sorted(unknown)}")
        return replace(self, **columns)

    def find(self, first: str, second: str) -> PairStatistic:
        """Record of the pair (first, second), in either order."""
        a = self.variables.index(first)
        b = self.variables.index(second)
        hits = np.flatnonzero(
            ((self.idx_a == a) & (self.idx_b == b)) | ((self.idx_a == b) & (self.idx_b == a))
        )
        if len(hits) == 0:
            raise KeyError(f"pair ({first!r}, {second!r}) not in table")
        return self[int(hits[0])]

    def __repr__(self) -> str:
        return (
            f"PairTable(pairs={len(self)}, conditions={list(self.conditions)}, "
            f"undefined={self.n_undefined})"
        )
