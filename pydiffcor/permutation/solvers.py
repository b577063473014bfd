"""
Solver dispatch for permutation-based significance.

dcor_perm(): pair-level empirical p-values and q-values.
dcor_avg(): gene-level and/or global average differential correlation.
"""

from __future__ import annotations

from typing import Literal, Sequence

from numpy.typing import ArrayLike

from pydiffcor.adjust._qvalue import PI0_METHODS, Pi0Method
from pydiffcor.core.compute.timing import Timer
from pydiffcor.core.exceptions import ConfigurationError
from pydiffcor.core.protocols import CorrelationBackend
from pydiffcor.core.result import Result
from pydiffcor.core.validation import check_choice, check_non_negative_int
from pydiffcor.correlation._scope import SplitMode
from pydiffcor.correlation.design import ExpressionDesign
from pydiffcor.correlation.engine import CorrelationEngine
from pydiffcor.correlation.solvers import build_scope, check_compare, ensure_design
from pydiffcor.differential._zscore import DEFAULT_CEILING, ZScoreDifferencer
from pydiffcor.differential.solvers import observed_pairs
from pydiffcor.permutation._common import (
    AverageParams,
    PairPermutationParams,
    attach_empirical,
    finish_gene_average,
    finish_global_average,
)
from pydiffcor.permutation._reduce import (
    ALTERNATIVES,
    AVERAGE_METHODS,
    Alternative,
    AverageMethod,
    GeneNullPool,
    GlobalNullPool,
    PairNullPool,
)
from pydiffcor.permutation.engine import PermutationEngine
from pydiffcor.permutation.solution import AverageDCorSolution, PairPermutationSolution

AvgType = Literal['gene', 'total', 'both']


def require_permutations(n_perm: int, what: str) -> None:
    """
    Raises:
        ConfigurationError: If n_perm is not a positive integer
    """
    check_non_negative_int(n_perm, 'n_perm')
    if n_perm == 0:
        raise ConfigurationError(
            f"{what} needs permutations; set n_perm > 0",
            option='n_perm',
            value=n_perm,
        )


def dcor_perm(
    expression: ArrayLike | ExpressionDesign,
    design: ArrayLike | None = None,
    compare: Sequence[str] = ('C1', 'C2'),
    *,
    n_perm: int = 10,
    method: str = 'pearson',
    split_set: Sequence[str] | None = None,
    split_mode: SplitMode = 'rest',
    ceiling: float = DEFAULT_CEILING,
    pi0_method: Pi0Method = 'smoother',
    seed: int | None = None,
    n_jobs: int = 1,
    backend: str | CorrelationBackend = 'cpu',
) -> PairPermutationSolution:
    """
    Pair-level permutation significance of differential correlation.

    Every pair's observed |z_diff| is compared with the pooled permuted
    |z_diff| of all pairs over all permutations.

    Parameters
    ----------
    expression, design, compare, method, split_set, split_mode, backend
        As for get_cors().
    n_perm : int
        Number of permutations, >= 1.
    ceiling : float
        Correlation ceiling in (0, 1).
    pi0_method : str
        'none', 'lambda' or 'smoother', for the q-values.
    seed : int, optional
        Root seed. Same seed, same results, whatever n_jobs is.
    n_jobs : int
        Worker threads.

    Returns
    -------
    PairPermutationSolution
    """
    require_permutations(n_perm, 'pair-level permutation')
    check_choice(pi0_method, PI0_METHODS, 'pi0_method')
    conditions = check_compare(compare)
    differencer = ZScoreDifferencer(ceiling)
    engine = CorrelationEngine(method, backend)
    perm_engine = PermutationEngine(engine, differencer, n_perm, seed, n_jobs)

    design_obj = ensure_design(expression, design)
    labels = design_obj.group_labels(*conditions)
    scope = build_scope(design_obj, split_set, split_mode)

    timer = Timer(sync_cuda=engine.on_gpu)
    timer.start()

    with timer.section('observed'):
        table = observed_pairs(design_obj, labels, scope, engine, differencer, conditions)

    with timer.section('permutations'):
        (pool,) = perm_engine.run(design_obj.data, labels, scope, [PairNullPool(table.z_diff)])

    with timer.section('empirical'):
        table, pi0 = attach_empirical(table, pool, pi0_method)

    timer.stop()

    warnings_list = []
    if table.n_undefined:
        warnings_list.append(f"{table.n_undefined} pairs have an undefined z_diff")
    if pool.total < pool.n_perm * len(table):
        warnings_list.append(
            f"{pool.n_perm * len(table) - pool.total} permuted statistics were undefined "
            f"and left out of the pooled null"
        )

    result = Result(
        params=PairPermutationParams(
            table=table,
            n_perm=pool.n_perm,
            seed=perm_engine.seed,
            pi0=pi0,
            n_pooled=pool.total,
        ),
        info={
            'method': engine.method,
            'compare': conditions,
            'scope': scope.mode,
            'n_pairs': len(table),
            'n_undefined_pairs': table.n_undefined,
            'n_jobs': perm_engine.n_jobs,
            'pi0_method': pi0_method,
        },
        timing=timer.result(),
        backend_name=engine.backend.name,
        warnings=tuple(warnings_list),
    )
    return PairPermutationSolution(_result=result)


def dcor_avg(
    expression: ArrayLike | ExpressionDesign,
    design: ArrayLike | None = None,
    compare: Sequence[str] = ('C1', 'C2'),
    *,
    avg_type: AvgType = 'both',
    avg_method: AverageMethod = 'median',
    alternative: Alternative = 'two.sided',
    n_perm: int = 10,
    method: str = 'pearson',
    split_set: Sequence[str] | None = None,
    split_mode: SplitMode = 'rest',
    ceiling: float = DEFAULT_CEILING,
    seed: int | None = None,
    n_jobs: int = 1,
    backend: str | CorrelationBackend = 'cpu',
) -> AverageDCorSolution:
    """
    Average differential correlation per variable and over all pairs.

    Parameters
    ----------
    avg_type : str
        'gene', 'total' or 'both'.
    avg_method : str
        'median' or 'mean' of z_diff.
    alternative : str
        'two.sided', 'greater' or 'less'.
    n_perm : int
        Number of permutations. Must be > 0.

    Other parameters are as for dcor_perm().

    Returns
    -------
    AverageDCorSolution

    Raises
    ------
    ConfigurationError
        If n_perm is 0, before anything is computed.
    """
    check_choice(avg_type, ('gene', 'total', 'both'), 'avg_type')
    require_permutations(n_perm, f"avg_type={avg_type!r}")
    check_choice(avg_method, AVERAGE_METHODS, 'avg_method')
    check_choice(alternative, ALTERNATIVES, 'alternative')
    conditions = check_compare(compare)
    differencer = ZScoreDifferencer(ceiling)
    engine = CorrelationEngine(method, backend)
    perm_engine = PermutationEngine(engine, differencer, n_perm, seed, n_jobs)

    design_obj = ensure_design(expression, design)
    labels = design_obj.group_labels(*conditions)
    scope = build_scope(design_obj, split_set, split_mode)

    timer = Timer(sync_cuda=engine.on_gpu)
    timer.start()

    with timer.section('observed'):
        table = observed_pairs(design_obj, labels, scope, engine, differencer, conditions)

    templates = []
    if avg_type in ('gene', 'both'):
        templates.append(GeneNullPool(scope.var_a, scope.var_b, design_obj.n_variables, avg_method))
    if avg_type in ('total', 'both'):
        templates.append(GlobalNullPool(avg_method))

    with timer.section('permutations'):
        pools = perm_engine.run(design_obj.data, labels, scope, templates)

    gene = total = None
    for pool in pools:
        if isinstance(pool, GeneNullPool):
            gene = finish_gene_average(table, pool, alternative)
        else:
            total = finish_global_average(table, pool, alternative)

    timer.stop()

    warnings_list = []
    if table.n_undefined == len(table):
        warnings_list.append("every pair has an undefined z_diff; averages are NaN")

    result = Result(
        params=AverageParams(
            gene=gene,
            total=total,
            avg_method=avg_method,
            alternative=alternative,
            n_perm=n_perm,
            seed=perm_engine.seed,
        ),
        info={
            'method': engine.method,
            'compare': conditions,
            'scope': scope.mode,
            'avg_type': avg_type,
            'n_pairs': len(table),
            'n_undefined_pairs': table.n_undefined,
            'n_jobs': perm_engine.n_jobs,
        },
        timing=timer.result(),
        backend_name=engine.backend.name,
        warnings=tuple(warnings_list),
    )
    return AverageDCorSolution(_result=result)
