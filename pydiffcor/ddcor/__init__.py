"""
End-to-end differential correlation analysis.

Public API:
    ddcor_all(expression, design, compare, **options)  - One-call analysis
    DCorConfig.build(**options)                        - Validated options
    DiffCorEngine(config)                              - Reusable per-run engine
"""

from pydiffcor.ddcor.design import DCorConfig
from pydiffcor.ddcor.solution import DCorParams, DCorSolution
from pydiffcor.ddcor.solvers import DiffCorEngine, apply_collaborators, ddcor_all

__all__ = [
    "ddcor_all",
    "DCorConfig",
    "DiffCorEngine",
    "DCorSolution",
    "DCorParams",
    "apply_collaborators",
]
