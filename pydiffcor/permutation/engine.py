"""
PermutationEngine: relabel, recompute, reduce.

For each permutation the engine relabels the compared samples, reruns
the correlation engine and the z differencer over the scope's pairs and
feeds the permuted z_diff vector to every null pool. The permuted
matrices are dropped straight away; only the pools persist.

With n_jobs > 1 the permutation indices are split into contiguous
chunks, each chunk runs on a thread with its own spawned pools, and the
chunk pools are merged in chunk order at the end.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Protocol, Sequence, TypeVar

import numpy as np
from numpy.typing import NDArray

from pydiffcor.core.validation import check_non_negative_int, check_positive_int
from pydiffcor.correlation._scope import PairScope
from pydiffcor.correlation.engine import CorrelationEngine
from pydiffcor.differential._zscore import ZScoreDifferencer
from pydiffcor.permutation._relabel import PermutationSample, relabel, resolve_seed


class NullPool(Protocol):
    def spawn(self) -> Any: ...
    def update(self, index: int, z: NDArray) -> None: ...
    def merge(self, other: Any) -> Any: ...


PoolT = TypeVar('PoolT', bound=NullPool)


class PermutationEngine:
    """
    Runs the permutation loop for one analysis.

    Parameters
    ----------
    correlation_engine : CorrelationEngine
        Method and backend used for every permutation.
    differencer : ZScoreDifferencer
        Ceiling-aware z differencer.
    n_perm : int
        Number of permutations (>= 0).
    seed : int, optional
        Root seed. None draws fresh entropy once; ``seed`` then holds the
        value actually used.
    n_jobs : int
        Worker threads.
    """

    def __init__(
        self,
        correlation_engine: CorrelationEngine,
        differencer: ZScoreDifferencer,
        n_perm: int,
        seed: int | None = None,
        n_jobs: int = 1,
    ):
        check_non_negative_int(n_perm, 'n_perm')
        if seed is not None:
            check_non_negative_int(seed, 'seed')
        check_positive_int(n_jobs, 'n_jobs')
        self.correlation_engine = correlation_engine
        self.differencer = differencer
        self.n_perm = int(n_perm)
        self.seed = resolve_seed(seed)
        self.n_jobs = int(n_jobs)

    def sample(self, labels: NDArray[np.int8], index: int) -> PermutationSample:
        return relabel(labels, index, self.seed)

    def permuted_z(
        self,
        data: NDArray[np.floating[Any]],
        sample: PermutationSample,
        scope: PairScope,
    ) -> NDArray[np.floating[Any]]:
        """z_diff per scope pair under one relabeling."""
        r_a, n_a, _ = self.correlation_engine.correlate_pairs(data, sample.samples(0), scope)
        r_b, n_b, _ = self.correlation_engine.correlate_pairs(data, sample.samples(1), scope)
        return self.differencer.statistic(r_a, n_a, r_b, n_b)

    def _run_chunk(
        self,
        indices: range,
        data: NDArray[np.floating[Any]],
        labels: NDArray[np.int8],
        scope: PairScope,
        pools: Sequence[NullPool],
    ) -> list:
        local = [pool.spawn() for pool in pools]
        for i in indices:
            z = self.permuted_z(data, self.sample(labels, i), scope)
            for pool in local:
                pool.update(i, z)
        return local

    def chunks(self) -> list[range]:
        """Contiguous permutation index ranges, one per worker."""
        n_chunks = max(1, min(self.n_jobs, self.n_perm))
        bounds = np.linspace(0, self.n_perm, n_chunks + 1).astype(int)
        return [range(lo, hi) for lo, hi in zip(bounds[:-1], bounds[1:])]

    def run(
        self,
        data: NDArray[np.floating[Any]],
        labels: NDArray[np.int8],
        scope: PairScope,
        pools: Sequence[PoolT],
    ) -> list[PoolT]:
        """
        Reduce all permutations into the given pools.

        Parameters
        ----------
        data : ndarray
            Full expression matrix (variables x samples).
        labels : ndarray of int8
            Per-sample group code: 0, 1, or -1 for samples outside both
            compared conditions.
        scope : PairScope
            Pairs to recompute.
        pools : sequence of null pools
            Templates; they are not modified.

        Returns
        -------
        list
            Merged pools, in the order given.
        """
        chunks = self.chunks()
        if len(chunks) == 1:
            return self._run_chunk(chunks[0], data, labels, scope, pools)

        with ThreadPoolExecutor(max_workers=len(chunks)) as executor:
            parts = list(executor.map(
                lambda idx: self._run_chunk(idx, data, labels, scope, pools),
                chunks,
            ))

        merged = parts[0]
        for part in parts[1:]:
            merged = [a.merge(b) for a, b in zip(merged, part)]
        return merged

    def __repr__(self) -> str:
        return (
            f"PermutationEngine(n_perm={self.n_perm}, seed={self.seed}, "
            f"n_jobs={self.n_jobs})"
        )
