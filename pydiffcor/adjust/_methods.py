"""
Adjustment methods for differential p-values.

AdjustMethod is the closed set of accepted ``adjust`` values. Each
resolves once into a strategy exposing adjust(table), which returns the
table with its adjusted column filled, and significance(table), the
per-pair value that gates classification.
"""

from __future__ import annotations

from enum import Enum

import numpy as np
from numpy.typing import NDArray

from pydiffcor.adjust._p_adjust import p_adjust
from pydiffcor.adjust._qvalue import PI0_METHODS, Pi0Method, qvalue
from pydiffcor.core.exceptions import ConfigurationError
from pydiffcor.core.validation import check_choice
from pydiffcor.differential._common import PairTable


class AdjustMethod(str, Enum):
    NONE = 'none'
    HOLM = 'holm'
    HOCHBERG = 'hochberg'
    HOMMEL = 'hommel'
    BONFERRONI = 'bonferroni'
    BH = 'BH'
    BY = 'BY'
    FDR = 'fdr'
    QVALUE = 'qvalue'
    PERM = 'perm'


class AdjustStrategy:
    """Base strategy: no adjustment, gate on raw p_diff."""

    method = AdjustMethod.NONE
    adds_column = False
    needs_permutation = False

    def adjust(self, table: PairTable) -> PairTable:
        return table

    def significance(self, table: PairTable) -> NDArray:
        return table.p_diff

    def default_sort(self) -> str:
        return 'zscore'

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class PAdjustStrategy(AdjustStrategy):
    """R p.adjust-style correction of p_diff into p_adj."""

    adds_column = True

    def __init__(self, method: AdjustMethod):
        self.method = method

    def adjust(self, table: PairTable) -> PairTable:
        return table.with_columns(p_adj=p_adjust(table.p_diff, self.method.value))

    def significance(self, table: PairTable) -> NDArray:
        return table.p_adj

    def __repr__(self) -> str:
        return f"PAdjustStrategy({self.method.value!r})"


class QValueStrategy(AdjustStrategy):
    """Storey q-values of p_diff, reported as p_adj."""

    method = AdjustMethod.QVALUE
    adds_column = True

    def __init__(self, pi0_method: Pi0Method = 'smoother'):
        check_choice(pi0_method, PI0_METHODS, 'pi0_method')
        self.pi0_method = pi0_method

    def adjust(self, table: PairTable) -> PairTable:
        return table.with_columns(p_adj=qvalue(table.p_diff, self.pi0_method))

    def significance(self, table: PairTable) -> NDArray:
        return table.p_adj

    def __repr__(self) -> str:
        return f"QValueStrategy(pi0_method={self.pi0_method!r})"


class PermutationStrategy(AdjustStrategy):
    """Use the empirical p-values and q-values a permutation run attached."""

    method = AdjustMethod.PERM
    needs_permutation = True

    def adjust(self, table: PairTable) -> PairTable:
        if table.emp_p is None or table.q_value is None:
            raise ConfigurationError(
                "adjust='perm' needs permutation results; run with n_perm > 0",
                option='adjust',
                value='perm',
            )
        return table

    def significance(self, table: PairTable) -> NDArray:
        return table.q_value

    def default_sort(self) -> str:
        return 'qvalue'


_P_ADJUST = {
    AdjustMethod.HOLM, AdjustMethod.HOCHBERG, AdjustMethod.HOMMEL,
    AdjustMethod.BONFERRONI, AdjustMethod.BH, AdjustMethod.BY, AdjustMethod.FDR,
}


def resolve_adjust(
    adjust: str | AdjustMethod | AdjustStrategy = 'none',
    pi0_method: Pi0Method = 'smoother',
) -> AdjustStrategy:
    """
    Resolve an ``adjust`` option into its strategy.

    Raises:
        ConfigurationError: If adjust is not an AdjustMethod value
    """
    if isinstance(adjust, AdjustStrategy):
        return adjust
    try:
        method = AdjustMethod(adjust)
    except ValueError:
        raise ConfigurationError(
            f"adjust must be one of {[m.value for m in AdjustMethod]}, got {adjust!r}",
            option='adjust',
            value=adjust,
        ) from None

    if method is AdjustMethod.NONE:
        return AdjustStrategy()
    if method in _P_ADJUST:
        return PAdjustStrategy(method)
    if method is AdjustMethod.QVALUE:
        return QValueStrategy(pi0_method)
    return PermutationStrategy()
