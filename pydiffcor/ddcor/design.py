"""
Configuration for a full differential correlation analysis.

DCorConfig carries every option of one run. It is immutable and only
built through DCorConfig.build(), which validates all options together
before any data is touched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from pydiffcor.adjust._methods import AdjustMethod, resolve_adjust
from pydiffcor.adjust._qvalue import PI0_METHODS
from pydiffcor.adjust.aggregator import SORT_KEYS, check_n_pairs
from pydiffcor.core.exceptions import ConfigurationError
from pydiffcor.core.protocols import CorrelationBackend
from pydiffcor.core.validation import (
    check_choice,
    check_non_negative_int,
    check_open_unit_interval,
    check_positive_int,
    check_threshold,
)
from pydiffcor.correlation._methods import resolve_method
from pydiffcor.correlation.solvers import check_compare
from pydiffcor.permutation._reduce import ALTERNATIVES, AVERAGE_METHODS

AVG_TYPES = ('gene', 'total', 'both')
BACKENDS = ('auto', 'cpu', 'gpu')


@dataclass(frozen=True)
class DCorConfig:
    """
    Validated options of one analysis run.

    Attributes:
        compare: The two condition names (A, B)
        method: 'pearson' or 'spearman'
        split_set: Split variable ids, or None for all pairs
        split_mode: 'rest' or 'within'
        adjust: AdjustMethod value
        n_perm: Number of permutations (0 = none)
        n_pairs: Rows to keep, int or 'all'
        classify: Add the class column
        corr_threshold: Per-condition significance threshold
        diff_threshold: Differential significance threshold
        ceiling: Correlation ceiling for the z transform
        avg_type: 'gene', 'total', 'both' or None
        avg_method: 'median' or 'mean'
        alternative: 'two.sided', 'greater' or 'less'
        pi0_method: 'none', 'lambda' or 'smoother'
        seed: Root permutation seed, or None
        n_jobs: Permutation worker threads
        backend: 'auto', 'cpu', 'gpu' or a CorrelationBackend
        sort_by: 'zscore', 'pvalue', 'qvalue' or None for the default
    """
    compare: tuple[str, str]
    method: str
    split_set: tuple[str, ...] | None
    split_mode: str
    adjust: str
    n_perm: int
    n_pairs: int | str
    classify: bool
    corr_threshold: float
    diff_threshold: float
    ceiling: float
    avg_type: str | None
    avg_method: str
    alternative: str
    pi0_method: str
    seed: int | None
    n_jobs: int
    backend: Any
    sort_by: str | None

    @classmethod
    def build(
        cls,
        compare: Sequence[str] = ('C1', 'C2'),
        *,
        method: str = 'pearson',
        split_set: Sequence[str] | None = None,
        split_mode: str = 'rest',
        adjust: str = 'none',
        n_perm: int = 0,
        n_pairs: int | str = 'all',
        classify: bool = False,
        corr_threshold: float = 0.05,
        diff_threshold: float = 0.05,
        ceiling: float = 0.99,
        avg_type: str | None = None,
        avg_method: str = 'median',
        alternative: str = 'two.sided',
        pi0_method: str = 'smoother',
        seed: int | None = None,
        n_jobs: int = 1,
        backend: str | CorrelationBackend = 'cpu',
        sort_by: str | None = None,
    ) -> DCorConfig:
        """
        Validate options and build a config.

        Raises:
            ConfigurationError: On any invalid option or incompatible
                combination (permutation-dependent options with n_perm=0)
        """
        compare = check_compare(compare)
        if compare[0] == compare[1]:
            raise ConfigurationError(
                f"compare must name two different conditions, got {compare[0]!r} twice",
                option='compare',
                value=compare,
            )
        method = resolve_method(method).name
        check_choice(split_mode, ('rest', 'within'), 'split_mode')
        if split_set is not None:
            if isinstance(split_set, str):
                split_set = [split_set]
            split_set = tuple(str(v) for v in split_set)

        adjust_method = resolve_adjust(adjust, 'none').method
        check_non_negative_int(n_perm, 'n_perm')
        check_n_pairs(n_pairs)
        if not isinstance(classify, bool):
            raise ConfigurationError(
                f"classify must be True or False, got {classify!r}",
                option='classify',
                value=classify,
            )
        check_threshold(corr_threshold, 'corr_threshold')
        check_threshold(diff_threshold, 'diff_threshold')
        check_open_unit_interval(ceiling, 'ceiling')

        if avg_type is not None:
            check_choice(avg_type, AVG_TYPES, 'avg_type')
        check_choice(avg_method, AVERAGE_METHODS, 'avg_method')
        check_choice(alternative, ALTERNATIVES, 'alternative')
        check_choice(pi0_method, PI0_METHODS, 'pi0_method')
        if seed is not None:
            check_non_negative_int(seed, 'seed')
        check_positive_int(n_jobs, 'n_jobs')
        if isinstance(backend, str):
            check_choice(backend, BACKENDS, 'backend')
        elif not isinstance(backend, CorrelationBackend):
            raise ConfigurationError(
                f"backend must be one of {BACKENDS} or a CorrelationBackend, got {backend!r}",
                option='backend',
                value=backend,
            )
        if sort_by is not None:
            check_choice(sort_by, SORT_KEYS, 'sort_by')

        if n_perm == 0:
            if avg_type is not None:
                raise ConfigurationError(
                    f"avg_type={avg_type!r} needs permutations; set n_perm > 0",
                    option='n_perm',
                    value=n_perm,
                )
            if adjust_method is AdjustMethod.PERM:
                raise ConfigurationError(
                    "adjust='perm' needs permutations; set n_perm > 0",
                    option='n_perm',
                    value=n_perm,
                )
            if sort_by == 'qvalue':
                raise ConfigurationError(
                    "sort_by='qvalue' needs permutations; set n_perm > 0",
                    option='n_perm',
                    value=n_perm,
                )

        return cls(
            compare=compare,
            method=method,
            split_set=split_set,
            split_mode=split_mode,
            adjust=adjust_method.value,
            n_perm=int(n_perm),
            n_pairs=n_pairs,
            classify=classify,
            corr_threshold=float(corr_threshold),
            diff_threshold=float(diff_threshold),
            ceiling=float(ceiling),
            avg_type=avg_type,
            avg_method=avg_method,
            alternative=alternative,
            pi0_method=pi0_method,
            seed=seed,
            n_jobs=int(n_jobs),
            backend=backend,
            sort_by=sort_by,
        )

    @property
    def uses_permutation(self) -> bool:
        return self.n_perm > 0
