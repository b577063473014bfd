"""
Full differential correlation analysis.

DiffCorEngine wires the correlation engine, z differencer, permutation
engine and result aggregator together from one DCorConfig. ddcor_all()
is the one-call entry point.
"""

from __future__ import annotations

import warnings
from typing import Any, Sequence

import numpy as np
from numpy.typing import ArrayLike

from pydiffcor.adjust.aggregator import ResultAggregator
from pydiffcor.core.compute.timing import Timer
from pydiffcor.core.exceptions import InputShapeError
from pydiffcor.core.protocols import ExpressionFilter, Imputer
from pydiffcor.core.result import Result
from pydiffcor.correlation.design import ExpressionDesign
from pydiffcor.correlation.engine import CorrelationEngine
from pydiffcor.correlation.solvers import build_scope, ensure_design
from pydiffcor.ddcor.design import DCorConfig
from pydiffcor.ddcor.solution import DCorParams, DCorSolution
from pydiffcor.differential._classify import Classifier
from pydiffcor.differential._zscore import ZScoreDifferencer
from pydiffcor.differential.solvers import observed_pairs
from pydiffcor.permutation._common import (
    attach_empirical,
    finish_gene_average,
    finish_global_average,
)
from pydiffcor.permutation._reduce import GeneNullPool, GlobalNullPool, PairNullPool
from pydiffcor.permutation.engine import PermutationEngine


class DiffCorEngine:
    """
    One analysis run's engines, built from a validated config.

    Parameters
    ----------
    config : DCorConfig
    """

    def __init__(self, config: DCorConfig):
        self.config = config
        self.correlation = CorrelationEngine(config.method, config.backend)
        self.differencer = ZScoreDifferencer(config.ceiling)
        self.permutation = (
            PermutationEngine(
                self.correlation, self.differencer,
                config.n_perm, config.seed, config.n_jobs,
            )
            if config.uses_permutation else None
        )
        classifier = (
            Classifier(config.corr_threshold, config.diff_threshold)
            if config.classify else None
        )
        self.aggregator = ResultAggregator(
            config.n_pairs, config.adjust, config.sort_by, config.pi0_method, classifier,
        )

    def run(self, design: ExpressionDesign) -> DCorSolution:
        """Run the analysis on one ExpressionDesign."""
        cfg = self.config
        labels = design.group_labels(*cfg.compare)
        scope = build_scope(design, cfg.split_set, cfg.split_mode)

        timer = Timer(sync_cuda=self.correlation.on_gpu)
        timer.start()

        with timer.section('observed'):
            pairs = observed_pairs(
                design, labels, scope, self.correlation, self.differencer, cfg.compare,
            )

        warnings_list: list[str] = []
        info: dict[str, Any] = {
            'method': self.correlation.method,
            'compare': cfg.compare,
            'scope': scope.mode,
            'n_pairs': len(pairs),
            'n_undefined_pairs': pairs.n_undefined,
            'n_samples': (int((labels == 0).sum()), int((labels == 1).sum())),
            'n_perm': cfg.n_perm,
            'adjust': cfg.adjust,
        }
        if pairs.n_undefined:
            warnings_list.append(
                f"{pairs.n_undefined} of {len(pairs)} pairs have an undefined z_diff "
                f"(3 or fewer shared observations, or constant values)"
            )
        if pairs.n_undefined == len(pairs):
            warnings.warn(warnings_list[-1], RuntimeWarning, stacklevel=3)

        gene = total = None
        seed = None
        if self.permutation is not None:
            templates: list[Any] = [PairNullPool(pairs.z_diff)]
            if cfg.avg_type in ('gene', 'both'):
                templates.append(
                    GeneNullPool(scope.var_a, scope.var_b, design.n_variables, cfg.avg_method)
                )
            if cfg.avg_type in ('total', 'both'):
                templates.append(GlobalNullPool(cfg.avg_method))

            with timer.section('permutations'):
                pools = self.permutation.run(design.data, labels, scope, templates)

            with timer.section('empirical'):
                pair_pool = pools[0]
                pairs, pi0 = attach_empirical(pairs, pair_pool, cfg.pi0_method)
                for pool in pools[1:]:
                    if isinstance(pool, GeneNullPool):
                        gene = finish_gene_average(pairs, pool, cfg.alternative)
                    else:
                        total = finish_global_average(pairs, pool, cfg.alternative)

            seed = self.permutation.seed
            info.update(seed=seed, pi0=pi0, n_pooled=pair_pool.total, n_jobs=cfg.n_jobs)
            n_dropped = pair_pool.n_perm * len(pairs) - pair_pool.total
            if n_dropped:
                warnings_list.append(
                    f"{n_dropped} permuted statistics were undefined and left out of the pooled null"
                )

        with timer.section('aggregate'):
            table = self.aggregator.aggregate(pairs)

        timer.stop()

        result = Result(
            params=DCorParams(table=table, pairs=pairs, gene=gene, total=total, seed=seed),
            info=info,
            timing=timer.result(),
            backend_name=self.correlation.backend.name,
            warnings=tuple(warnings_list),
        )
        return DCorSolution(_result=result, _config=cfg)

    def __repr__(self) -> str:
        return (
            f"DiffCorEngine(method={self.correlation.method!r}, "
            f"n_perm={self.config.n_perm}, adjust={self.config.adjust!r})"
        )


def apply_collaborators(
    design: ExpressionDesign,
    filter_fn: ExpressionFilter | None = None,
    impute_fn: Imputer | None = None,
) -> ExpressionDesign:
    """
    Run the optional filter, then the optional imputer, on the expression data.

    Raises:
        InputShapeError: If the imputer changes the matrix shape
    """
    if filter_fn is not None:
        data, variables = filter_fn(design.data.copy(), design.variables)
        design = design.with_data(np.asarray(data), list(variables))
    if impute_fn is not None:
        filled = np.asarray(impute_fn(design.data.copy()))
        if filled.shape != design.data.shape:
            raise InputShapeError(
                f"imputer returned shape {filled.shape}, expected {design.data.shape}",
                expected=design.data.shape[0],
                actual=filled.shape[0] if filled.ndim else 0,
            )
        design = design.with_data(filled)
    return design


def ddcor_all(
    expression: ArrayLike | ExpressionDesign,
    design: ArrayLike | None = None,
    compare: Sequence[str] = ('C1', 'C2'),
    *,
    filter_fn: ExpressionFilter | None = None,
    impute_fn: Imputer | None = None,
    **options: Any,
) -> DCorSolution:
    """
    Differential correlation of all pairs (or split pairs) in one call.

    Parameters
    ----------
    expression : array-like, DataFrame or ExpressionDesign
        Variables x samples; NaN marks missing values.
    design : array-like or DataFrame, optional
        Samples x conditions 0/1 indicator.
    compare : (str, str)
        The two condition names, (A, B).
    filter_fn : callable, optional
        ExpressionFilter applied before the analysis.
    impute_fn : callable, optional
        Imputer applied after filtering.
    **options
        Any DCorConfig.build() option: method, split_set, split_mode,
        adjust, n_perm, n_pairs, classify, corr_threshold, diff_threshold,
        ceiling, avg_type, avg_method, alternative, pi0_method, seed,
        n_jobs, backend, sort_by.

    Returns
    -------
    DCorSolution

    Raises
    ------
    ConfigurationError
        Invalid or incompatible options, before any computation.
    InputShapeError, ValidationError
        Malformed expression or design input.

    Examples
    --------
    >>> res = ddcor_all(expr, design, compare=('ctrl', 'case'),
    ...                 adjust='perm', n_perm=100, classify=True, seed=1)
    >>> res.to_dataframe().head()
    """
    config = DCorConfig.build(compare, **options)
    engine = DiffCorEngine(config)
    design_obj = apply_collaborators(ensure_design(expression, design), filter_fn, impute_fn)
    return engine.run(design_obj)
