"""
Solver dispatch for per-condition correlation.

Provides get_cors() plus the helpers shared with the downstream
subpackages for turning raw inputs into an ExpressionDesign and a
PairScope.
"""

from __future__ import annotations

import warnings
from typing import Literal, Sequence

import numpy as np
from numpy.typing import ArrayLike

from pydiffcor.core.compute.timing import Timer
from pydiffcor.core.exceptions import ConfigurationError
from pydiffcor.core.protocols import CorrelationBackend
from pydiffcor.core.result import Result
from pydiffcor.correlation._common import CorrelationParams
from pydiffcor.correlation._scope import PairScope, SplitMode
from pydiffcor.correlation.design import ExpressionDesign
from pydiffcor.correlation.engine import CorrelationEngine
from pydiffcor.correlation.solution import CorrelationSolution

CorMethod = Literal['pearson', 'spearman']
BackendChoice = Literal['auto', 'cpu', 'gpu']


def ensure_design(
    expression: ArrayLike | ExpressionDesign,
    design: ArrayLike | None = None,
) -> ExpressionDesign:
    """Convert raw inputs to ExpressionDesign if needed."""
    if isinstance(expression, ExpressionDesign):
        return expression
    if design is None:
        raise ConfigurationError(
            "design is required unless expression is an ExpressionDesign",
            option='design',
        )
    if hasattr(expression, 'columns') and hasattr(expression, 'index'):
        return ExpressionDesign.from_dataframes(expression, design)
    return ExpressionDesign.from_arrays(expression, design)


def check_compare(compare: Sequence[str]) -> tuple[str, str]:
    """
    Validate the pair of compared condition names.

    Raises:
        ConfigurationError: If compare is not exactly two names
    """
    if isinstance(compare, str) or len(compare) != 2:
        raise ConfigurationError(
            f"compare must name exactly two conditions, got {compare!r}",
            option='compare',
            value=compare,
        )
    return (str(compare[0]), str(compare[1]))


def build_scope(
    design: ExpressionDesign,
    split_set: Sequence[str] | None = None,
    split_mode: SplitMode = 'rest',
) -> PairScope:
    """PairScope over the design's variables, optionally split-restricted."""
    split = None if split_set is None else design.variable_indices(list(split_set))
    return PairScope.build(design.n_variables, split, split_mode)


def get_cors(
    expression: ArrayLike | ExpressionDesign,
    design: ArrayLike | None = None,
    compare: Sequence[str] = ('C1', 'C2'),
    *,
    method: CorMethod = 'pearson',
    split_set: Sequence[str] | None = None,
    split_mode: SplitMode = 'rest',
    backend: BackendChoice | CorrelationBackend = 'cpu',
) -> CorrelationSolution:
    """
    Correlation, overlap and p-value matrices for two conditions.

    Parameters
    ----------
    expression : array-like, DataFrame or ExpressionDesign
        Variables x samples; NaN marks missing values.
    design : array-like or DataFrame, optional
        Samples x conditions 0/1 indicator. Not needed when expression is
        already an ExpressionDesign.
    compare : (str, str)
        The two condition names to correlate.
    method : str
        'pearson' or 'spearman'.
    split_set : sequence of str, optional
        Restrict to pairs involving these variables.
    split_mode : str
        'rest' (split x non-split) or 'within' (split x split).
    backend : str
        'auto', 'cpu', 'gpu'.

    Returns
    -------
    CorrelationSolution
    """
    first, second = check_compare(compare)
    design_obj = ensure_design(expression, design)
    labels = design_obj.group_labels(first, second)
    scope = build_scope(design_obj, split_set, split_mode)
    engine = CorrelationEngine(method, backend)

    timer = Timer(sync_cuda=engine.on_gpu)
    timer.start()

    results = []
    for code, name in ((0, first), (1, second)):
        with timer.section(f'correlate_{name}'):
            results.append(engine.correlate(
                design_obj.data,
                np.flatnonzero(labels == code),
                scope,
                condition=name,
                variables=design_obj.variables,
            ))

    timer.stop()

    undefined = np.isnan(scope.take(results[0].r)) | np.isnan(scope.take(results[1].r))
    n_undefined = int(undefined.sum())
    warnings_list: list[str] = []
    if n_undefined:
        warnings_list.append(
            f"{n_undefined} of {scope.n_pairs} pairs have an undefined correlation "
            f"(fewer than 3 shared observations or constant values)"
        )
    if n_undefined == scope.n_pairs:
        warnings.warn(warnings_list[-1], RuntimeWarning, stacklevel=2)

    result = Result(
        params=CorrelationParams(
            first=results[0],
            second=results[1],
            n_undefined=n_undefined,
        ),
        info={
            'method': engine.method,
            'compare': (first, second),
            'scope': scope.mode,
            'n_pairs': scope.n_pairs,
            'n_samples': (int((labels == 0).sum()), int((labels == 1).sum())),
        },
        timing=timer.result(),
        backend_name=engine.backend.name,
        warnings=tuple(warnings_list),
    )
    return CorrelationSolution(_result=result, _design=design_obj, _scope=scope)
