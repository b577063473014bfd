"""
Differential correlation statistics.

Public API:
    pairwise_dcor(cors)            - Fisher-z difference for every pair
    dcor_class(table)              - Nine-way sign classification
    dcor_test(x_a, y_a, x_b, y_b)  - Single-pair differential test
"""

from pydiffcor.differential._classify import CLASS_LABELS, Classifier, count_classes
from pydiffcor.differential._common import PairStatistic, PairTable
from pydiffcor.differential._zscore import (
    DEFAULT_CEILING,
    ZScoreDifferencer,
    fisher_z,
    zscore_difference,
)
from pydiffcor.differential.solvers import dcor_class, dcor_test, pairwise_dcor

__all__ = [
    "pairwise_dcor",
    "dcor_class",
    "dcor_test",
    "PairStatistic",
    "PairTable",
    "ZScoreDifferencer",
    "Classifier",
    "CLASS_LABELS",
    "DEFAULT_CEILING",
    "count_classes",
    "fisher_z",
    "zscore_difference",
]
