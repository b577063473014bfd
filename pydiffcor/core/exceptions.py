"""
Exception hierarchy for pydiffcor.

All exceptions inherit from DiffCorError so callers can catch any
library-specific failure with a single clause.

Design principles:
    - Structural and configuration problems fail fast, before computation
    - Exceptions carry diagnostic information as attributes
    - Per-pair numeric degeneracy is NOT an exception; it becomes NaN
"""


class DiffCorError(Exception):
    """Base exception for all pydiffcor errors."""
    pass


class ValidationError(DiffCorError):
    """
    Input validation failed.

    Raised when user-provided data fails validation checks (non-numeric
    values, infinite values, non-binary design indicators).
    """
    pass


class ConfigurationError(ValidationError):
    """
    Incompatible or invalid analysis options.

    Raised before any computation when an option value is out of range or
    when two options cannot be combined (e.g. a gene-level average
    requested with zero permutations).

    Attributes:
        option: Name of the offending option, if a single one is to blame
        value: The rejected value
    """

    def __init__(
        self,
        message: str,
        option: str | None = None,
        value: object = None,
    ):
        super().__init__(message)
        self.option = option
        self.value = value


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.
    """
    pass


class InputShapeError(DimensionError):
    """
    Expression and design inputs do not line up.

    Raised when the design matrix has a different number of samples than
    the expression matrix has columns, when identifier lists have the
    wrong length, or when variable identifiers are duplicated.

    Attributes:
        expected: Expected size, if applicable
        actual: Observed size, if applicable
    """

    def __init__(
        self,
        message: str,
        expected: int | None = None,
        actual: int | None = None,
    ):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class NumericalError(DiffCorError):
    """
    Numerical computation failed.
    """
    pass


class InsufficientSamplesError(NumericalError):
    """
    Too few overlapping observations for a defined statistic.

    Only raised by single-pair entry points. Whole-matrix computations
    represent the same condition as NaN on the affected pair instead.

    Attributes:
        n_observed: Number of usable (pairwise-complete) observations
        n_required: Minimum number needed
    """

    def __init__(
        self,
        message: str,
        n_observed: int,
        n_required: int,
    ):
        super().__init__(message)
        self.n_observed = n_observed
        self.n_required = n_required
