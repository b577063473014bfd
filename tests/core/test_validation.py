"""
Tests for input validators.
"""

import numpy as np
import pytest

from pydiffcor.core.exceptions import (
    ConfigurationError,
    DimensionError,
    InputShapeError,
    ValidationError,
)
from pydiffcor.core.validation import (
    check_1d,
    check_2d,
    check_array,
    check_binary,
    check_choice,
    check_length,
    check_no_inf,
    check_non_negative_int,
    check_open_unit_interval,
    check_positive_int,
    check_threshold,
    check_unique_ids,
)


class TestCheckArray:

    def test_converts_to_float64_copy(self):
        src = np.array([[1, 2], [3, 4]])
        out = check_array(src, 'x')
        assert out.dtype == np.float64
        out[0, 0] = 99
        assert src[0, 0] == 1

    def test_bool_converted(self):
        assert check_array([True, False], 'x').tolist() == [1.0, 0.0]

    def test_numeric_object_array_accepted(self):
        out = check_array(np.array([1, 2.5, None], dtype=object), 'x')
        assert np.isnan(out[2])

    def test_strings_rejected(self):
        with pytest.raises(ValidationError, match="x"):
            check_array(np.array(['a', 'b'], dtype=object), 'x')

    def test_nan_allowed(self):
        out = check_array([1.0, np.nan], 'x')
        assert np.isnan(out[1])


class TestShapeChecks:

    def test_check_2d(self):
        with pytest.raises(DimensionError):
            check_2d(np.zeros(3), 'expression')
        check_2d(np.zeros((2, 3)), 'expression')

    def test_check_1d(self):
        with pytest.raises(DimensionError):
            check_1d(np.zeros((2, 2)), 'x')

    def test_check_length(self):
        with pytest.raises(InputShapeError) as exc_info:
            check_length(['a', 'b'], 3, 'variables')
        assert exc_info.value.expected == 3
        assert exc_info.value.actual == 2

    def test_unique_ids(self):
        with pytest.raises(InputShapeError, match="G1"):
            check_unique_ids(['G1', 'G2', 'G1'], 'variables')
        check_unique_ids(['G1', 'G2'], 'variables')


class TestValueChecks:

    def test_no_inf(self):
        with pytest.raises(ValidationError, match="infinite"):
            check_no_inf(np.array([1.0, np.inf]), 'expression')
        check_no_inf(np.array([1.0, np.nan]), 'expression')

    def test_binary(self):
        with pytest.raises(ValidationError):
            check_binary(np.array([[0.0, 2.0]]), 'design')
        with pytest.raises(ValidationError):
            check_binary(np.array([[0.0, np.nan]]), 'design')
        check_binary(np.array([[0.0, 1.0]]), 'design')


class TestOptionChecks:

    def test_choice(self):
        with pytest.raises(ConfigurationError) as exc_info:
            check_choice('kendall', ('pearson', 'spearman'), 'method')
        assert exc_info.value.option == 'method'
        assert exc_info.value.value == 'kendall'

    @pytest.mark.parametrize("value", [0.0, 1.0, -0.5, 1.5, 'x'])
    def test_open_unit_interval_rejects(self, value):
        with pytest.raises(ConfigurationError):
            check_open_unit_interval(value, 'ceiling')

    def test_threshold_accepts_one(self):
        check_threshold(1.0, 'corr_threshold')
        with pytest.raises(ConfigurationError):
            check_threshold(0.0, 'corr_threshold')

    def test_ints(self):
        check_non_negative_int(0, 'n_perm')
        with pytest.raises(ConfigurationError):
            check_non_negative_int(-1, 'n_perm')
        with pytest.raises(ConfigurationError):
            check_positive_int(0, 'n_jobs')
        with pytest.raises(ConfigurationError):
            check_positive_int(True, 'n_jobs')
        with pytest.raises(ConfigurationError):
            check_positive_int(2.0, 'n_jobs')
