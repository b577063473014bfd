"""
ExpressionDesign: expression matrix plus sample design.

Wraps a variables x samples expression matrix (NaN = missing) and a
samples x conditions 0/1 design matrix, validated together. Immutable
after construction; both arrays are stored read-only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence
import numpy as np
from numpy.typing import NDArray

from pydiffcor.core.exceptions import (
    ConfigurationError,
    InputShapeError,
    ValidationError,
)
from pydiffcor.core.validation import (
    check_array,
    check_2d,
    check_binary,
    check_length,
    check_no_inf,
    check_unique_ids,
)


def _labels(obj, attr: str) -> tuple[str, ...] | None:
    """Pull row/column labels off a DataFrame-like object, if present."""
    labels = getattr(obj, attr, None)
    if labels is None:
        return None
    return tuple(str(x) for x in labels)


def _values(obj):
    return obj.values if hasattr(obj, 'values') and hasattr(obj, 'columns') else obj


@dataclass(frozen=True)
class ExpressionDesign:
    """
    Expression and design data for a differential correlation analysis.

    Construction:
        ExpressionDesign.from_arrays(expression, design, variables=..., ...)
        ExpressionDesign.from_dataframes(expression_df, design_df)

    Attributes are exposed through read-only properties. The expression
    matrix keeps the variables x samples orientation throughout.
    """
    _data: NDArray[np.floating[Any]]
    _design: NDArray[np.int8]
    _variables: tuple[str, ...]
    _samples: tuple[str, ...]
    _conditions: tuple[str, ...]

    @classmethod
    def from_arrays(
        cls,
        expression,
        design,
        *,
        variables: Sequence[str] | None = None,
        samples: Sequence[str] | None = None,
        conditions: Sequence[str] | None = None,
    ) -> ExpressionDesign:
        """
        Build ExpressionDesign from array-likes.

        Parameters
        ----------
        expression : array-like, shape (V, S)
            Variables in rows, samples in columns. NaN marks missing values.
        design : array-like, shape (S, C)
            0/1 indicator of condition membership per sample.
        variables : sequence of str, optional
            Row identifiers. Default 'V1', 'V2', ...
        samples : sequence of str, optional
            Sample identifiers. Default 'S1', 'S2', ...
        conditions : sequence of str, optional
            Condition names. Default 'C1', 'C2', ...
        """
        data = check_array(expression, 'expression')
        check_2d(data, 'expression')
        check_no_inf(data, 'expression')

        indicator = check_array(design, 'design')
        check_2d(indicator, 'design')
        check_binary(indicator, 'design')

        n_vars, n_samples = data.shape
        if indicator.shape[0] != n_samples:
            raise InputShapeError(
                f"design has {indicator.shape[0]} rows (samples) but expression "
                f"has {n_samples} columns",
                expected=n_samples,
                actual=indicator.shape[0],
            )

        if variables is None:
            variables = tuple(f"V{i + 1}" for i in range(n_vars))
        if samples is None:
            samples = tuple(f"S{i + 1}" for i in range(n_samples))
        if conditions is None:
            conditions = tuple(f"C{i + 1}" for i in range(indicator.shape[1]))

        variables = tuple(str(v) for v in variables)
        samples = tuple(str(s) for s in samples)
        conditions = tuple(str(c) for c in conditions)

        check_length(variables, n_vars, 'variables')
        check_length(samples, n_samples, 'samples')
        check_length(conditions, indicator.shape[1], 'conditions')
        check_unique_ids(variables, 'variables')
        check_unique_ids(conditions, 'conditions')

        data.setflags(write=False)
        indicator = indicator.astype(np.int8)
        indicator.setflags(write=False)

        return cls(
            _data=data,
            _design=indicator,
            _variables=variables,
            _samples=samples,
            _conditions=conditions,
        )

    @classmethod
    def from_dataframes(cls, expression, design) -> ExpressionDesign:
        """
        Build ExpressionDesign from pandas DataFrames.

        The expression frame's index gives variable ids and its columns the
        sample ids; the design frame's columns give condition names. When
        both frames carry sample labels the design is reordered to match
        the expression columns.
        """
        variables = _labels(expression, 'index')
        samples = _labels(expression, 'columns')
        conditions = _labels(design, 'columns')
        design_samples = _labels(design, 'index')

        design_values = np.asarray(_values(design))
        if (
            samples is not None
            and design_samples is not None
            and design_samples != samples
            and set(design_samples) == set(samples)
            and len(design_samples) == len(samples)
        ):
            position = {s: i for i, s in enumerate(design_samples)}
            design_values = design_values[[position[s] for s in samples]]

        return cls.from_arrays(
            _values(expression),
            design_values,
            variables=variables,
            samples=samples,
            conditions=conditions,
        )

    # --- Properties ---

    @property
    def data(self) -> NDArray[np.floating[Any]]:
        """Expression matrix (V x S), read-only, may contain NaN."""
        return self._data

    @property
    def design(self) -> NDArray[np.int8]:
        """Design indicator matrix (S x C), read-only."""
        return self._design

    @property
    def variables(self) -> tuple[str, ...]:
        return self._variables

    @property
    def samples(self) -> tuple[str, ...]:
        return self._samples

    @property
    def conditions(self) -> tuple[str, ...]:
        return self._conditions

    @property
    def n_variables(self) -> int:
        return self._data.shape[0]

    @property
    def n_samples(self) -> int:
        return self._data.shape[1]

    @property
    def has_missing(self) -> bool:
        return bool(np.isnan(self._data).any())

    # --- Lookups ---

    def condition_index(self, name: str) -> int:
        """
        Column index of a condition.

        Raises:
            ConfigurationError: If the condition is not in the design
        """
        try:
            return self._conditions.index(name)
        except ValueError:
            raise ConfigurationError(
                f"condition {name!r} not found in design; "
                f"available: {list(self._conditions)}",
                option='compare',
                value=name,
            ) from None

    def samples_in(self, name: str) -> NDArray[np.intp]:
        """Column indices (into the expression matrix) of one condition."""
        return np.flatnonzero(self._design[:, self.condition_index(name)] == 1)

    def group_labels(self, first: str, second: str) -> NDArray[np.int8]:
        """
        Sample labels for a two-condition comparison.

        Returns an int8 vector of length S: 0 for samples of ``first``,
        1 for ``second`` and -1 for samples outside both.

        Raises:
            ConfigurationError: If a condition is missing or both are the same
            ValidationError: If a sample is flagged in both conditions
        """
        if first == second:
            raise ConfigurationError(
                f"compare must name two different conditions, got {first!r} twice",
                option='compare',
                value=(first, second),
            )
        a = self._design[:, self.condition_index(first)] == 1
        b = self._design[:, self.condition_index(second)] == 1
        both = a & b
        if np.any(both):
            names = [self._samples[i] for i in np.flatnonzero(both)[:5]]
            raise ValidationError(
                f"samples {names} are assigned to both {first!r} and {second!r}"
            )
        labels = np.full(self.n_samples, -1, dtype=np.int8)
        labels[a] = 0
        labels[b] = 1
        return labels

    def variable_indices(self, ids: Sequence[str]) -> NDArray[np.intp]:
        """
        Row indices of the given variable ids, in the order given.

        Raises:
            ConfigurationError: If any id is unknown
        """
        position = {v: i for i, v in enumerate(self._variables)}
        missing = [v for v in ids if v not in position]
        if missing:
            raise ConfigurationError(
                f"unknown variable ids {missing[:5]}"
                + (f" (and {len(missing) - 5} more)" if len(missing) > 5 else ""),
                option='split_set',
                value=missing,
            )
        return np.array([position[v] for v in ids], dtype=np.intp)

    def with_data(self, data: NDArray, variables: Sequence[str] | None = None) -> ExpressionDesign:
        """
        New design with a replaced expression matrix (same samples).

        Used after filtering or imputation collaborators have run.
        """
        return ExpressionDesign.from_arrays(
            data,
            self._design,
            variables=self._variables if variables is None else variables,
            samples=self._samples,
            conditions=self._conditions,
        )

    def __repr__(self) -> str:
        missing = ", missing" if self.has_missing else ""
        return (
            f"ExpressionDesign(variables={self.n_variables}, samples={self.n_samples}, "
            f"conditions={list(self._conditions)}{missing})"
        )
