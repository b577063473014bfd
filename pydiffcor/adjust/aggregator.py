"""
ResultAggregator: adjustment, classification, ordering and truncation.

Adjustment and classification run over the full pair set before the
table is cut to ``n_pairs``, so the number of tests never depends on the
selection count.

Ordering:
    'zscore' : |z_diff| descending (default)
    'pvalue' : adjusted p ascending, raw p_diff when not adjusted
    'qvalue' : permutation q-value ascending (default with adjust='perm')
Ties keep first-encountered pair order; undefined values sort last.
"""

from __future__ import annotations

from typing import Literal

import numpy as np
from numpy.typing import NDArray

from pydiffcor.adjust._methods import AdjustMethod, AdjustStrategy, resolve_adjust
from pydiffcor.adjust._qvalue import Pi0Method
from pydiffcor.adjust.solution import DCorTable
from pydiffcor.core.exceptions import ConfigurationError
from pydiffcor.core.validation import check_choice, check_positive_int
from pydiffcor.differential._classify import Classifier
from pydiffcor.differential._common import PairTable

SortBy = Literal['zscore', 'pvalue', 'qvalue']

SORT_KEYS = ('zscore', 'pvalue', 'qvalue')


def check_n_pairs(n_pairs: int | str) -> int | None:
    """
    Validate the selection count; returns None for 'all'.

    Raises:
        ConfigurationError: If n_pairs is neither 'all' nor a positive int
    """
    if isinstance(n_pairs, str):
        if n_pairs != 'all':
            raise ConfigurationError(
                f"n_pairs must be a positive integer or 'all', got {n_pairs!r}",
                option='n_pairs',
                value=n_pairs,
            )
        return None
    check_positive_int(n_pairs, 'n_pairs')
    return int(n_pairs)


class ResultAggregator:
    """
    Turns a PairTable into the final DCorTable.

    Parameters
    ----------
    n_pairs : int or 'all'
        Number of rows to keep.
    adjust : str
        An AdjustMethod value.
    sort_by : str, optional
        'zscore', 'pvalue' or 'qvalue'. Default depends on adjust.
    pi0_method : str
        pi0 estimator for adjust='qvalue'.
    classifier : Classifier, optional
        When given, a class column is added.
    """

    def __init__(
        self,
        n_pairs: int | str = 'all',
        adjust: str | AdjustMethod = 'none',
        sort_by: SortBy | None = None,
        pi0_method: Pi0Method = 'smoother',
        classifier: Classifier | None = None,
    ):
        self.limit = check_n_pairs(n_pairs)
        self.strategy: AdjustStrategy = resolve_adjust(adjust, pi0_method)
        if sort_by is None:
            sort_by = self.strategy.default_sort()
        check_choice(sort_by, SORT_KEYS, 'sort_by')
        self.sort_by = sort_by
        self.classifier = classifier

    def order(self, table: PairTable) -> NDArray[np.intp]:
        """Stable output order of the table's rows."""
        if self.sort_by == 'zscore':
            key = -np.abs(table.z_diff)
        elif self.sort_by == 'pvalue':
            key = table.p_diff if table.p_adj is None else table.p_adj
        else:
            if table.q_value is None:
                raise ConfigurationError(
                    "sort_by='qvalue' needs permutation q-values; run with n_perm > 0",
                    option='sort_by',
                    value='qvalue',
                )
            key = table.q_value
        # argsort places NaN last; stable keeps pair order among ties
        return np.argsort(key, kind='stable')

    def aggregate(self, table: PairTable) -> DCorTable:
        n_total = len(table)
        table = self.strategy.adjust(table)

        if self.classifier is not None:
            labels = self.classifier.classify(
                table.r_a, table.p_a, table.r_b, table.p_b,
                self.strategy.significance(table),
            )
            table = table.with_columns(label=labels)

        order = self.order(table)
        if self.limit is not None:
            order = order[:self.limit]

        return DCorTable(
            pairs=table.take(order),
            adjust=self.strategy.method.value,
            classified=self.classifier is not None,
            n_total=n_total,
        )

    def __repr__(self) -> str:
        limit = 'all' if self.limit is None else self.limit
        return (
            f"ResultAggregator(n_pairs={limit!r}, adjust={self.strategy.method.value!r}, "
            f"sort_by={self.sort_by!r})"
        )


def top_pairs(
    table: PairTable,
    n_pairs: int | str = 'all',
    adjust: str = 'none',
    *,
    sort_by: SortBy | None = None,
    pi0_method: Pi0Method = 'smoother',
    classify: bool = False,
    corr_threshold: float = 0.05,
    diff_threshold: float = 0.05,
) -> DCorTable:
    """
    Select, adjust, classify and order the pairs of a PairTable.

    Parameters
    ----------
    table : PairTable
        Output of pairwise_dcor() or dcor_perm().
    n_pairs : int or 'all'
        Rows to keep after sorting.
    adjust : str
        'none', 'holm', 'hochberg', 'hommel', 'bonferroni', 'BH', 'BY',
        'fdr', 'qvalue' or 'perm'.
    sort_by : str, optional
        'zscore', 'pvalue' or 'qvalue'.
    pi0_method : str
        'none', 'lambda' or 'smoother', for adjust='qvalue'.
    classify : bool
        Add the nine-way class column.
    corr_threshold, diff_threshold : float
        Classifier thresholds.

    Returns
    -------
    DCorTable
    """
    classifier = Classifier(corr_threshold, diff_threshold) if classify else None
    aggregator = ResultAggregator(n_pairs, adjust, sort_by, pi0_method, classifier)
    return aggregator.aggregate(table)
