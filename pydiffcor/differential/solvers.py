"""
Differential correlation solvers.

pairwise_dcor() turns a CorrelationSolution into a PairTable,
dcor_class() labels a PairTable, and dcor_test() runs the whole
parametric test for a single pair of raw vectors.
"""

from __future__ import annotations

from typing import Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pydiffcor.core.exceptions import InputShapeError, InsufficientSamplesError
from pydiffcor.core.validation import check_1d, check_array, check_choice, check_no_inf
from pydiffcor.correlation._common import MIN_OVERLAP
from pydiffcor.correlation._scope import PairScope
from pydiffcor.correlation.design import ExpressionDesign
from pydiffcor.correlation.engine import CorrelationEngine
from pydiffcor.correlation.solution import CorrelationSolution
from pydiffcor.differential._classify import Classifier
from pydiffcor.differential._common import PairStatistic, PairTable
from pydiffcor.differential._zscore import DEFAULT_CEILING, ZScoreDifferencer

SignificanceColumn = Literal['p_diff', 'p_adj', 'q_value']


def pairwise_dcor(
    cors: CorrelationSolution,
    ceiling: float = DEFAULT_CEILING,
) -> PairTable:
    """
    Per-pair Fisher-z differential statistics.

    Parameters
    ----------
    cors : CorrelationSolution
        Output of get_cors().
    ceiling : float
        Correlation ceiling in (0, 1).

    Returns
    -------
    PairTable
        One row per scope pair, in scope order.
    """
    differencer = ZScoreDifferencer(ceiling)
    scope = cors.scope
    first, second = cors.first, cors.second

    r_a, n_a, p_a = scope.take(first.r), scope.take(first.n), scope.take(first.p)
    r_b, n_b, p_b = scope.take(second.r), scope.take(second.n), scope.take(second.p)
    z, p = differencer.difference(r_a, n_a, r_b, n_b)

    return PairTable(
        variables=cors.design.variables,
        conditions=cors.conditions,
        idx_a=scope.var_a,
        idx_b=scope.var_b,
        r_a=r_a, p_a=p_a, n_a=n_a,
        r_b=r_b, p_b=p_b, n_b=n_b,
        z_diff=z, p_diff=p,
        method=cors.method,
    )


def observed_pairs(
    design: ExpressionDesign,
    labels: NDArray[np.int8],
    scope: PairScope,
    engine: CorrelationEngine,
    differencer: ZScoreDifferencer,
    conditions: tuple[str, str],
) -> PairTable:
    """
    PairTable straight from the data, without keeping the matrices.

    ``labels`` codes each sample 0 (first condition), 1 (second) or -1.
    """
    r_a, n_a, p_a = engine.correlate_pairs(design.data, np.flatnonzero(labels == 0), scope)
    r_b, n_b, p_b = engine.correlate_pairs(design.data, np.flatnonzero(labels == 1), scope)
    z, p = differencer.difference(r_a, n_a, r_b, n_b)
    return PairTable(
        variables=design.variables,
        conditions=conditions,
        idx_a=scope.var_a,
        idx_b=scope.var_b,
        r_a=r_a, p_a=p_a, n_a=n_a,
        r_b=r_b, p_b=p_b, n_b=n_b,
        z_diff=z, p_diff=p,
        method=engine.method,
    )


def dcor_class(
    table: PairTable,
    corr_threshold: float = 0.05,
    diff_threshold: float = 0.05,
    significance: SignificanceColumn = 'p_diff',
) -> NDArray[np.object_]:
    """
    Class labels for every pair of a PairTable.

    Parameters
    ----------
    table : PairTable
    corr_threshold, diff_threshold : float
        Classifier thresholds in (0, 1].
    significance : str
        Column gating the label: 'p_diff', 'p_adj' or 'q_value'.

    Returns
    -------
    ndarray of object
        Label string per pair, or None for pairs not significant.
    """
    check_choice(significance, ('p_diff', 'p_adj', 'q_value'), 'significance')
    values = getattr(table, significance)
    if values is None:
        raise ValueError(f"table has no {significance!r} column yet")
    classifier = Classifier(corr_threshold, diff_threshold)
    return classifier.classify(table.r_a, table.p_a, table.r_b, table.p_b, values)


def _pair_block(x: ArrayLike, y: ArrayLike, name: str) -> NDArray:
    x = check_array(x, f'x_{name}')
    y = check_array(y, f'y_{name}')
    check_1d(x, f'x_{name}')
    check_1d(y, f'y_{name}')
    if len(x) != len(y):
        raise InputShapeError(
            f"x_{name} and y_{name} must have the same length, got {len(x)} and {len(y)}",
            expected=len(x),
            actual=len(y),
        )
    block = np.vstack([x, y])
    check_no_inf(block, f'condition {name}')
    return block


def dcor_test(
    x_a: ArrayLike,
    y_a: ArrayLike,
    x_b: ArrayLike,
    y_b: ArrayLike,
    *,
    method: str = 'pearson',
    ceiling: float = DEFAULT_CEILING,
    names: tuple[str, str] = ('x', 'y'),
) -> PairStatistic:
    """
    Differential correlation test for one pair of variables.

    Parameters
    ----------
    x_a, y_a : array-like
        The two variables' values in condition A (NaN = missing).
    x_b, y_b : array-like
        Same for condition B.
    method : str
        'pearson' or 'spearman'.
    ceiling : float
        Correlation ceiling in (0, 1).
    names : (str, str)
        Identifiers reported as var_a / var_b.

    Returns
    -------
    PairStatistic

    Raises
    ------
    InsufficientSamplesError
        If either condition has 3 or fewer complete observations.
    """
    differencer = ZScoreDifferencer(ceiling)
    engine = CorrelationEngine(method, 'cpu')
    scope = PairScope.build(2)

    results = []
    for cond, (x, y) in (('A', (x_a, y_a)), ('B', (x_b, y_b))):
        block = _pair_block(x, y, cond)
        r, n, p = engine.correlate_pairs(block, np.arange(block.shape[1]), scope)
        if n[0] <= MIN_OVERLAP:
            raise InsufficientSamplesError(
                f"condition {cond}: {int(n[0])} complete observations, "
                f"need more than {MIN_OVERLAP}",
                n_observed=int(n[0]),
                n_required=MIN_OVERLAP + 1,
            )
        results.append((float(r[0]), int(n[0]), float(p[0])))

    (r_a, n_a, p_a), (r_b, n_b, p_b) = results
    z, p = differencer.difference(r_a, n_a, r_b, n_b)
    return PairStatistic(
        var_a=names[0], var_b=names[1],
        r_a=r_a, p_a=p_a, n_a=n_a,
        r_b=r_b, p_b=p_b, n_b=n_b,
        z_diff=float(z), p_diff=float(p),
    )
