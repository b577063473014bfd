"""
pydiffcor: differential correlation analysis for Python.

Pairwise correlation in two conditions, the Fisher-z test of their
difference, nine-way sign classification and permutation-based
empirical significance, with optional GPU acceleration.

Submodules:
    correlation: Per-condition correlation, overlap and p-values
    differential: Fisher-z difference statistics and classification
    permutation: Relabeling, null pools, empirical p / q / FDR
    adjust: Multiple-testing adjustment and the output table
    ddcor: One-call full analysis
"""

__version__ = "0.1.0"

from pydiffcor import correlation
from pydiffcor import differential
from pydiffcor import adjust
from pydiffcor import permutation
from pydiffcor import ddcor

from pydiffcor.correlation import get_cors, ExpressionDesign
from pydiffcor.differential import pairwise_dcor, dcor_class, dcor_test
from pydiffcor.permutation import dcor_perm, dcor_avg
from pydiffcor.adjust import top_pairs, p_adjust, qvalue
from pydiffcor.ddcor import ddcor_all, DCorConfig, DiffCorEngine

__all__ = [
    "__version__",
    "correlation",
    "differential",
    "adjust",
    "permutation",
    "ddcor",
    "get_cors",
    "ExpressionDesign",
    "pairwise_dcor",
    "dcor_class",
    "dcor_test",
    "dcor_perm",
    "dcor_avg",
    "top_pairs",
    "p_adjust",
    "qvalue",
    "ddcor_all",
    "DCorConfig",
    "DiffCorEngine",
]
