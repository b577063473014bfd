"""
Variable scope and pair enumeration.

A PairScope fixes which block of the correlation matrix is computed
(rows x cols) and which cells of that block are reported as pairs, in a
stable first-encountered (row-major) order. Self-pairs never appear.

Modes:
    'all'    : every unordered pair of variables, upper triangle
    'rest'   : split variables x non-split variables
    'within' : unordered pairs among the split variables
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Sequence

import numpy as np
from numpy.typing import NDArray

from pydiffcor.core.exceptions import ConfigurationError
from pydiffcor.core.validation import check_choice

SplitMode = Literal['rest', 'within']


@dataclass(frozen=True)
class PairScope:
    """
    Row/column variable block and the ordered pair list inside it.

    Attributes:
        mode: 'all', 'rest' or 'within'
        rows: Global variable indices of the block rows
        cols: Global variable indices of the block columns
        pair_rows: Local row index (into ``rows``) of each pair
        pair_cols: Local column index (into ``cols``) of each pair
    """
    mode: str
    rows: NDArray[np.intp]
    cols: NDArray[np.intp]
    pair_rows: NDArray[np.intp]
    pair_cols: NDArray[np.intp]

    @classmethod
    def build(
        cls,
        n_variables: int,
        split: NDArray[np.intp] | Sequence[int] | None = None,
        split_mode: SplitMode = 'rest',
    ) -> PairScope:
        """
        Enumerate the pairs for ``n_variables`` variables.

        Parameters
        ----------
        n_variables : int
            Number of variables in the expression matrix.
        split : array of int, optional
            Global indices of the split variables. None means all pairs.
        split_mode : str
            'rest' (split x non-split) or 'within' (split x split).

        Raises
        ------
        ConfigurationError
            If the scope contains no pair at all.
        """
        if split is None:
            idx = np.arange(n_variables, dtype=np.intp)
            pr, pc = np.triu_indices(n_variables, k=1)
            scope = cls('all', idx, idx, pr.astype(np.intp), pc.astype(np.intp))
        else:
            check_choice(split_mode, ('rest', 'within'), 'split_mode')
            split = np.asarray(split, dtype=np.intp)
            # drop repeated ids, keep first occurrence
            _, first = np.unique(split, return_index=True)
            split = split[np.sort(first)]

            if split_mode == 'within':
                pr, pc = np.triu_indices(len(split), k=1)
                scope = cls('within', split, split, pr.astype(np.intp), pc.astype(np.intp))
            else:
                cols = np.arange(n_variables, dtype=np.intp)
                outside = np.flatnonzero(~np.isin(cols, split))
                pr = np.repeat(np.arange(len(split), dtype=np.intp), len(outside))
                pc = np.tile(outside, len(split)).astype(np.intp)
                scope = cls('rest', split, cols, pr, pc)

        if scope.n_pairs == 0:
            raise ConfigurationError(
                f"no variable pairs to analyse (mode={scope.mode!r}, "
                f"{n_variables} variables)",
                option='split_set',
            )
        return scope

    @property
    def n_pairs(self) -> int:
        return len(self.pair_rows)

    @property
    def is_square(self) -> bool:
        """True when rows and cols are the same variables (mode 'all'/'within')."""
        return self.mode != 'rest'

    @property
    def var_a(self) -> NDArray[np.intp]:
        """Global index of the first variable of every pair."""
        return self.rows[self.pair_rows]

    @property
    def var_b(self) -> NDArray[np.intp]:
        """Global index of the second variable of every pair."""
        return self.cols[self.pair_cols]

    def take(self, matrix: NDArray) -> NDArray:
        """Gather a (rows x cols) block's values at the scope's pairs."""
        return matrix[self.pair_rows, self.pair_cols]
