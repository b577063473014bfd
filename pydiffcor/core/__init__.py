"""
Core infrastructure for pydiffcor.

Shared abstractions used by every subpackage:
    protocols: CorrelationBackend and external collaborator protocols
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Device detection, timing
"""

from pydiffcor.core.result import Result
from pydiffcor.core.protocols import (
    CorrelationBackend,
    ExpressionFilter,
    Imputer,
    Visualizer,
    EnrichmentProvider,
)
from pydiffcor.core.exceptions import (
    DiffCorError,
    ValidationError,
    ConfigurationError,
    DimensionError,
    InputShapeError,
    NumericalError,
    InsufficientSamplesError,
)

__all__ = [
    # Result
    "Result",
    # Protocols
    "CorrelationBackend",
    "ExpressionFilter",
    "Imputer",
    "Visualizer",
    "EnrichmentProvider",
    # Exceptions
    "DiffCorError",
    "ValidationError",
    "ConfigurationError",
    "DimensionError",
    "InputShapeError",
    "NumericalError",
    "InsufficientSamplesError",
]
