"""
Core protocols for pydiffcor.

Structural interfaces (typing.Protocol) for the pieces that can be swapped:
correlation backends, and the external collaborators that sit around the
differential-correlation core (filtering, imputation, visualization,
enrichment). The core never depends on a concrete collaborator; it only
calls objects that satisfy these shapes.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence, runtime_checkable, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from pydiffcor.correlation._common import ConditionCorrelation
    from pydiffcor.correlation._methods import CorrelationStrategy


@runtime_checkable
class CorrelationBackend(Protocol):
    """
    Protocol for correlation backends.

    A backend turns one condition's data block into correlation, overlap
    and p-value matrices. Backends are stateless apart from the device they
    were constructed for.
    """

    @property
    def name(self) -> str:
        """
        Backend identifier.

        Convention: '{device}_correlation', e.g. 'cpu_correlation'.
        """
        ...

    def correlate(
        self,
        rows: NDArray[np.floating[Any]],
        cols: NDArray[np.floating[Any]],
        strategy: 'CorrelationStrategy',
    ) -> tuple[NDArray, NDArray, NDArray]:
        """
        Correlate every row of ``rows`` with every row of ``cols``.

        Both blocks are (variables x samples) for the same samples.

        Returns:
            (r, n, p): correlation, pairwise-complete overlap and floored
            two-sided p-value, each of shape (len(rows), len(cols)).
        """
        ...


@runtime_checkable
class ExpressionFilter(Protocol):
    """
    Reduce an expression matrix to a subset of its rows.

    Typically keeps variables above a percentile of central tendency or
    dispersion. Must return the kept rows' data and identifiers in the
    original row order.
    """

    def __call__(
        self,
        data: NDArray[np.floating[Any]],
        variables: Sequence[str],
    ) -> tuple[NDArray[np.floating[Any]], Sequence[str]]:
        ...


@runtime_checkable
class Imputer(Protocol):
    """
    Fill missing values of an expression matrix.

    Returns an array of the same shape. Rows the imputer does not touch are
    returned unchanged.
    """

    def __call__(
        self,
        data: NDArray[np.floating[Any]],
    ) -> NDArray[np.floating[Any]]:
        ...


@runtime_checkable
class Visualizer(Protocol):
    """
    Render a pair of condition correlations, or two variables' values.

    Nothing it returns feeds back into the core.
    """

    def __call__(
        self,
        first: 'ConditionCorrelation',
        second: 'ConditionCorrelation',
    ) -> Any:
        ...


@runtime_checkable
class EnrichmentProvider(Protocol):
    """
    Test classified variable lists for enrichment against a universe.
    """

    def __call__(
        self,
        gene_sets: Mapping[str, Sequence[str]],
        universe: Sequence[str],
    ) -> Any:
        ...
