"""
Permutation-based significance for differential correlation.

Public API:
    dcor_perm(expression, design, compare)  - Pair-level empirical p / q
    dcor_avg(expression, design, compare)   - Gene-level and global averages
    PermutationEngine                       - Relabel / recompute / reduce loop
"""

from pydiffcor.permutation._common import GeneAverage, GlobalAverage
from pydiffcor.permutation._reduce import (
    GeneNullPool,
    GlobalNullPool,
    PairNullPool,
    total_average,
    variable_average,
)
from pydiffcor.permutation._relabel import PermutationSample, relabel
from pydiffcor.permutation.engine import PermutationEngine
from pydiffcor.permutation.solution import AverageDCorSolution, PairPermutationSolution
from pydiffcor.permutation.solvers import dcor_avg, dcor_perm

__all__ = [
    "dcor_perm",
    "dcor_avg",
    "PermutationEngine",
    "PermutationSample",
    "PairPermutationSolution",
    "AverageDCorSolution",
    "GeneAverage",
    "GlobalAverage",
    "PairNullPool",
    "GeneNullPool",
    "GlobalNullPool",
    "relabel",
    "total_average",
    "variable_average",
]
