"""
Input validation utilities for pydiffcor.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion (except np.asarray on array-likes)
    - Each function validates ONE thing
    - Parameter names included in all error messages
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pydiffcor.core.exceptions import (
    ConfigurationError,
    DimensionError,
    InputShapeError,
    ValidationError,
)


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.floating[Any]]:
    """
    Validate and convert input to a float64 numpy array.

    Rejects inputs that convert to object or other non-numeric dtypes.
    NaN is allowed (missing values); use check_no_inf for infinities.

    Raises:
        ValidationError: If input cannot be converted to a numeric array
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e

    if result.dtype == object:
        try:
            result = result.astype(np.float64)
        except (ValueError, TypeError) as e:
            raise ValidationError(
                f"{name}: converted to object dtype, indicating mixed types "
                f"or non-numeric data"
            ) from e

    if result.dtype == np.bool_:
        result = result.astype(np.float64)

    if not np.issubdtype(result.dtype, np.number):
        raise ValidationError(
            f"{name}: non-numeric dtype {result.dtype}, expected numeric data"
        )

    return result.astype(np.float64, copy=True)


def check_2d(array: NDArray, name: str) -> None:
    """
    Verify array is 2-dimensional.

    Raises:
        DimensionError: If array is not 2D
    """
    if array.ndim != 2:
        raise DimensionError(
            f"{name}: expected 2D array, got {array.ndim}D with shape {array.shape}"
        )


def check_1d(array: NDArray, name: str) -> None:
    """
    Verify array is 1-dimensional.

    Raises:
        DimensionError: If array is not 1D
    """
    if array.ndim != 1:
        raise DimensionError(
            f"{name}: expected 1D array, got {array.ndim}D with shape {array.shape}"
        )


def check_no_inf(array: NDArray, name: str) -> None:
    """
    Verify array contains no +/-Inf. NaN is permitted (missing data).

    Raises:
        ValidationError: If any element is infinite
    """
    inf_mask = np.isinf(array)
    if np.any(inf_mask):
        loc = np.argwhere(inf_mask)[0]
        raise ValidationError(
            f"{name}: contains {int(inf_mask.sum())} infinite values "
            f"(first at {tuple(int(i) for i in loc)})"
        )


def check_binary(array: NDArray, name: str) -> None:
    """
    Verify every element is 0 or 1.

    Raises:
        ValidationError: If array contains other values (NaN included)
    """
    bad = ~np.isin(array, (0.0, 1.0))
    if np.any(bad):
        values = np.unique(array[bad])[:5].tolist()
        raise ValidationError(
            f"{name}: must be a 0/1 indicator matrix, found values {values}"
        )


def check_unique_ids(ids: Sequence[str], name: str) -> None:
    """
    Verify identifiers are unique.

    Raises:
        InputShapeError: If any identifier occurs more than once
    """
    seen: set[str] = set()
    dupes: list[str] = []
    for ident in ids:
        if ident in seen and ident not in dupes:
            dupes.append(ident)
        seen.add(ident)
    if dupes:
        raise InputShapeError(
            f"{name}: duplicate identifiers {dupes[:5]}"
            + (f" (and {len(dupes) - 5} more)" if len(dupes) > 5 else "")
        )


def check_length(ids: Sequence[Any], expected: int, name: str) -> None:
    """
    Verify an identifier list matches the corresponding array axis.

    Raises:
        InputShapeError: If lengths differ
    """
    if len(ids) != expected:
        raise InputShapeError(
            f"{name}: expected {expected} identifiers, got {len(ids)}",
            expected=expected,
            actual=len(ids),
        )


def check_choice(value: Any, choices: Iterable[Any], name: str) -> None:
    """
    Verify an option is one of a closed set of values.

    Raises:
        ConfigurationError: If value is not among choices
    """
    choices = tuple(choices)
    if value not in choices:
        raise ConfigurationError(
            f"{name} must be one of {choices}, got {value!r}",
            option=name,
            value=value,
        )


def check_open_unit_interval(value: float, name: str) -> None:
    """
    Verify 0 < value < 1.

    Raises:
        ConfigurationError: If value is outside the open interval
    """
    if not isinstance(value, (int, float, np.floating)) or not 0.0 < value < 1.0:
        raise ConfigurationError(
            f"{name} must be in (0, 1), got {value!r}",
            option=name,
            value=value,
        )


def check_threshold(value: float, name: str) -> None:
    """
    Verify a significance threshold lies in (0, 1].

    A threshold of exactly 1 is allowed: it makes every p-value below 1
    count as significant.

    Raises:
        ConfigurationError: If value is outside (0, 1]
    """
    if not isinstance(value, (int, float, np.floating)) or not 0.0 < value <= 1.0:
        raise ConfigurationError(
            f"{name} must be in (0, 1], got {value!r}",
            option=name,
            value=value,
        )


def check_non_negative_int(value: Any, name: str) -> None:
    """
    Verify value is an integer >= 0 (bools rejected).

    Raises:
        ConfigurationError: If value is not a non-negative integer
    """
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value < 0:
        raise ConfigurationError(
            f"{name} must be a non-negative integer, got {value!r}",
            option=name,
            value=value,
        )


def check_positive_int(value: Any, name: str) -> None:
    """
    Verify value is an integer >= 1 (bools rejected).

    Raises:
        ConfigurationError: If value is not a positive integer
    """
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value < 1:
        raise ConfigurationError(
            f"{name} must be a positive integer, got {value!r}",
            option=name,
            value=value,
        )
