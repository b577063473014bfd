"""
Per-condition correlation.

Public API:
    get_cors(expression, design, compare)  - Both conditions' r / n / p blocks
    ExpressionDesign                       - Validated expression + design data
    CorrelationEngine                      - Reusable method + backend engine
    PairScope                              - Variable block and pair enumeration
"""

from pydiffcor.correlation._common import (
    ConditionCorrelation,
    CorrelationParams,
    P_VALUE_FLOOR,
)
from pydiffcor.correlation._methods import (
    CorrelationMethod,
    correlation_p_values,
    resolve_method,
)
from pydiffcor.correlation._scope import PairScope
from pydiffcor.correlation.design import ExpressionDesign
from pydiffcor.correlation.engine import CorrelationEngine, get_backend
from pydiffcor.correlation.solution import CorrelationSolution
from pydiffcor.correlation.solvers import get_cors

__all__ = [
    "get_cors",
    "ExpressionDesign",
    "CorrelationEngine",
    "CorrelationSolution",
    "ConditionCorrelation",
    "CorrelationParams",
    "CorrelationMethod",
    "PairScope",
    "P_VALUE_FLOOR",
    "correlation_p_values",
    "get_backend",
    "resolve_method",
]
