"""
CorrelationEngine: per-condition correlation over a PairScope.

The engine carries the resolved method strategy and backend for one
analysis run. It is stateless between calls, so one engine can serve the
observed data and every permutation, from any number of threads.
"""

from __future__ import annotations

import warnings
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pydiffcor.core.exceptions import ConfigurationError
from pydiffcor.core.compute.device import select_device
from pydiffcor.core.protocols import CorrelationBackend
from pydiffcor.correlation._common import (
    ConditionCorrelation,
    MIN_OVERLAP,
    P_VALUE_FLOOR,
)
from pydiffcor.correlation._methods import CorrelationMethod, resolve_method
from pydiffcor.correlation._scope import PairScope
from pydiffcor.correlation.backends.cpu import CPUCorrelationBackend


def get_backend(backend: str | CorrelationBackend = 'cpu') -> CorrelationBackend:
    """
    Select a correlation backend.

    'cpu' always works; 'auto' uses a GPU when torch and a device are
    available; 'gpu' requires one. A ready-made backend object is returned
    unchanged.

    Raises:
        ConfigurationError: Unknown backend name, or 'gpu' without a GPU
    """
    if not isinstance(backend, str):
        if isinstance(backend, CorrelationBackend):
            return backend
        raise ConfigurationError(
            f"backend must be 'auto', 'cpu', 'gpu' or a CorrelationBackend, got {backend!r}",
            option='backend',
            value=backend,
        )

    if backend == 'cpu':
        return CPUCorrelationBackend()

    if backend == 'auto':
        device = select_device('auto')
        if device.is_gpu:
            try:
                from pydiffcor.correlation.backends.gpu import GPUCorrelationBackend
                return GPUCorrelationBackend(device=device)
            except ImportError:
                return CPUCorrelationBackend()
        return CPUCorrelationBackend()

    if backend == 'gpu':
        device = select_device('gpu')
        from pydiffcor.correlation.backends.gpu import GPUCorrelationBackend
        return GPUCorrelationBackend(device=device)

    raise ConfigurationError(
        f"Unknown backend: {backend!r}. Use 'auto', 'cpu' or 'gpu'.",
        option='backend',
        value=backend,
    )


class CorrelationEngine:
    """
    Computes ConditionCorrelation blocks for one method and backend.

    Parameters
    ----------
    method : str
        'pearson' or 'spearman'.
    backend : str or CorrelationBackend
        'auto', 'cpu', 'gpu', or a backend instance.
    """

    def __init__(
        self,
        method: str | CorrelationMethod = 'pearson',
        backend: str | CorrelationBackend = 'cpu',
    ):
        self.strategy = resolve_method(method)
        self.backend = get_backend(backend)
        if (
            self.on_gpu
            and self.strategy.method is not CorrelationMethod.PEARSON
        ):
            warnings.warn(
                f"{self.strategy.name} correlation runs on the CPU; the GPU "
                f"backend only accelerates pearson",
                RuntimeWarning,
                stacklevel=2,
            )

    @property
    def method(self) -> str:
        return self.strategy.name

    @property
    def on_gpu(self) -> bool:
        """True when blocks are computed on a GPU device."""
        return self.backend.name.startswith('gpu')

    def correlate_block(
        self,
        data: NDArray[np.floating[Any]],
        samples: NDArray[np.intp],
        scope: PairScope,
    ) -> tuple[NDArray, NDArray, NDArray]:
        """
        (r, n, p) matrices over the scope's rows x cols for some samples.

        Square scopes come back exactly symmetric with the self-correlation
        diagonal set: r = 1 and p = P_VALUE_FLOOR for rows with at least 3
        values and non-zero variance, NaN otherwise.
        """
        block = data[:, samples]
        rows = block[scope.rows]
        cols = rows if scope.is_square else block[scope.cols]
        r, n, p = self.backend.correlate(rows, cols, self.strategy)

        if scope.is_square:
            lower = np.tril_indices(r.shape[0], -1)
            r[lower] = r.T[lower]
            p[lower] = p.T[lower]
            n[lower] = n.T[lower]

            diag = np.arange(r.shape[0])
            defined = (n[diag, diag] >= MIN_OVERLAP) & self._nondegenerate(rows)
            r[diag, diag] = np.where(defined, 1.0, np.nan)
            p[diag, diag] = np.where(defined, P_VALUE_FLOOR, np.nan)

        return r, n, p

    def correlate_pairs(
        self,
        data: NDArray[np.floating[Any]],
        samples: NDArray[np.intp],
        scope: PairScope,
    ) -> tuple[NDArray, NDArray, NDArray]:
        """(r, n, p) vectors, one entry per scope pair, in scope order."""
        r, n, p = self.correlate_block(data, samples, scope)
        return scope.take(r), scope.take(n), scope.take(p)

    def correlate(
        self,
        data: NDArray[np.floating[Any]],
        samples: NDArray[np.intp],
        scope: PairScope,
        *,
        condition: str,
        variables: tuple[str, ...],
    ) -> ConditionCorrelation:
        """ConditionCorrelation for one condition's samples."""
        r, n, p = self.correlate_block(data, samples, scope)
        return ConditionCorrelation(
            condition=condition,
            r=r,
            n=n,
            p=p,
            row_ids=tuple(variables[i] for i in scope.rows),
            col_ids=tuple(variables[i] for i in scope.cols),
            method=self.method,
        )

    @staticmethod
    def _nondegenerate(rows: NDArray) -> NDArray[np.bool_]:
        """Rows whose observed values are not all equal."""
        missing = np.isnan(rows)
        lo = np.where(missing, np.inf, rows).min(axis=1, initial=np.inf)
        hi = np.where(missing, -np.inf, rows).max(axis=1, initial=-np.inf)
        return hi > lo

    def __repr__(self) -> str:
        return f"CorrelationEngine(method={self.method!r}, backend={self.backend.name!r})"
