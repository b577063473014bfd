"""
Correlation solution types.

CorrelationSolution wraps Result[CorrelationParams] and exposes both
conditions' ConditionCorrelation blocks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

from pydiffcor.core.result import Result
from pydiffcor.correlation._common import ConditionCorrelation, CorrelationParams

if TYPE_CHECKING:
    from pydiffcor.correlation.design import ExpressionDesign
    from pydiffcor.correlation._scope import PairScope


@dataclass
class CorrelationSolution:
    """
    User-facing result of get_cors().

    ``first`` and ``second`` follow the order of ``compare``.
    """
    _result: Result[CorrelationParams]
    _design: 'ExpressionDesign'
    _scope: 'PairScope'

    @property
    def first(self) -> ConditionCorrelation:
        return self._result.params.first

    @property
    def second(self) -> ConditionCorrelation:
        return self._result.params.second

    @property
    def conditions(self) -> tuple[str, str]:
        return (self.first.condition, self.second.condition)

    def __getitem__(self, condition: str) -> ConditionCorrelation:
        for cc in (self.first, self.second):
            if cc.condition == condition:
                return cc
        raise KeyError(
            f"no correlation for condition {condition!r}; available: {list(self.conditions)}"
        )

    @property
    def method(self) -> str:
        return self.first.method

    @property
    def design(self) -> 'ExpressionDesign':
        return self._design

    @property
    def scope(self) -> 'PairScope':
        return self._scope

    @property
    def n_undefined(self) -> int:
        """Pairs in scope with an undefined coefficient in either condition."""
        return self._result.params.n_undefined

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def summary(self) -> str:
        lines = [
            f"\nPER-CONDITION CORRELATION ({self.method})",
            "",
            f"Scope: {self._scope.mode}, {self._scope.n_pairs} pairs",
        ]
        for cc in (self.first, self.second):
            lines.append(f"  {cc.condition}: block {cc.shape[0]} x {cc.shape[1]}")
        lines.append(f"Undefined pairs: {self.n_undefined}")
        for w in self.warnings:
            lines.append(f"Warning: {w}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"CorrelationSolution(conditions={list(self.conditions)}, "
            f"method={self.method!r}, pairs={self._scope.n_pairs})"
        )
