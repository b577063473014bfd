"""
Multiple-testing adjustment and result aggregation.

Public API:
    top_pairs(table, n_pairs, adjust)  - Final sorted / adjusted DCorTable
    p_adjust(p, method)                - R p.adjust() equivalent
    qvalue(p, pi0_method)              - Storey q-values
"""

from pydiffcor.adjust._methods import AdjustMethod, AdjustStrategy, resolve_adjust
from pydiffcor.adjust._p_adjust import P_ADJUST_METHODS, p_adjust
from pydiffcor.adjust._qvalue import PI0_METHODS, estimate_pi0, qvalue
from pydiffcor.adjust.aggregator import ResultAggregator, check_n_pairs, top_pairs
from pydiffcor.adjust.solution import DCorTable

__all__ = [
    "top_pairs",
    "p_adjust",
    "qvalue",
    "estimate_pi0",
    "ResultAggregator",
    "DCorTable",
    "AdjustMethod",
    "AdjustStrategy",
    "resolve_adjust",
    "check_n_pairs",
    "P_ADJUST_METHODS",
    "PI0_METHODS",
]
