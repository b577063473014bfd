"""
Generic result container for all pydiffcor computations.

Every domain wraps its parameter payload in Result so that timing,
warnings and provenance are reported the same way everywhere.

Design decisions:
    - Generic over parameter payload P
    - info dict for flexible metadata (pair counts, permutation counts)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True) for reproducibility
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


def _default_provenance() -> dict[str, str]:
    """Library versions in effect when the result was produced."""
    import numpy
    import scipy

    from pydiffcor import __version__

    return {
        'pydiffcor_version': __version__,
        'numpy_version': numpy.__version__,
        'scipy_version': scipy.__version__,
    }


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope.

    Attributes:
        params: Domain-specific payload (correlation matrices, pair table, ...)
        info: Structured metadata (method, n_pairs, n_undefined_pairs, ...)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the backend that produced this result
        warnings: Non-fatal issues encountered during computation
        provenance: Library versions used

    Examples:
        >>> Result(
        ...     params=CorrelationParams(...),
        ...     info={'method': 'pearson', 'n_pairs': 45},
        ...     timing={'total_seconds': 0.01},
        ...     backend_name='cpu_correlation',
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)
    provenance: dict[str, str] = field(default_factory=_default_provenance)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
