"""
Tests for Storey q-values and pi0 estimation.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose
from scipy.interpolate import make_smoothing_spline

from pydiffcor import p_adjust, qvalue
from pydiffcor.adjust import estimate_pi0
from pydiffcor.adjust._qvalue import LAMBDA_GRID, SMOOTH_DF, _pi0_at, _smoothing_lam, smoother_df
from pydiffcor.core.exceptions import ConfigurationError


class TestEstimatePi0:

    def test_none_is_one(self, rng):
        assert estimate_pi0(rng.uniform(0, 1, 100), 'none') == 1.0

    def test_lambda_formula(self):
        p = np.array([0.01, 0.02, 0.03, 0.04, 0.1, 0.2, 0.6, 0.9])
        # 2 of 8 above 0.5
        assert_allclose(estimate_pi0(p, 'lambda', lam=0.5), 2 / (8 * 0.5))

    def test_pi0_at_unclipped(self):
        p = np.array([0.01, 0.02, 0.3, 0.6, 0.7, 0.8, 0.9, 0.95])
        assert_allclose(_pi0_at(p, 0.5), 5 / (8 * 0.5))
        assert_allclose(_pi0_at(p, np.array([0.25, 0.75])), [6 / 6, 3 / 2])

    def test_clipped_to_one(self):
        p = np.array([0.9, 0.95, 0.99, 0.6])
        assert estimate_pi0(p, 'lambda') == 1.0

    def test_lower_bound(self):
        p = np.full(10, 1e-6)
        assert estimate_pi0(p, 'lambda') == pytest.approx(0.1)

    def test_smoother_on_uniform_near_one(self, rng):
        pi0 = estimate_pi0(rng.uniform(0, 1, 5000), 'smoother')
        assert 0.75 <= pi0 <= 1.0

    def test_smoother_detects_signal(self, rng):
        p = np.concatenate([rng.uniform(0, 1, 2000), rng.uniform(0, 1e-4, 2000)])
        pi0 = estimate_pi0(p, 'smoother')
        assert 0.3 <= pi0 <= 0.7

    def test_nan_ignored(self):
        p = np.array([0.01, 0.02, 0.03, np.nan, 0.04, 0.1, 0.2, 0.6, 0.9])
        assert_allclose(estimate_pi0(p, 'lambda'), 2 / (8 * 0.5))

    def test_clipped_above_one(self):
        p = np.array([0.01, 0.02, 0.3, 0.6, 0.7, 0.8, 0.9, 0.95])
        assert estimate_pi0(p, 'lambda') == 1.0

    def test_smoother_has_three_degrees_of_freedom(self):
        assert smoother_df(LAMBDA_GRID, _smoothing_lam()) == pytest.approx(SMOOTH_DF, abs=1e-4)

    def test_smoother_keeps_linear_trend(self):
        # a linear pi0(lambda) curve lies in the spline's null space
        pi0s = 0.4 + 0.2 * LAMBDA_GRID
        fit = make_smoothing_spline(LAMBDA_GRID, pi0s, lam=_smoothing_lam())
        assert_allclose(fit(LAMBDA_GRID), pi0s, atol=1e-6)

    def test_unknown_method(self):
        with pytest.raises(ConfigurationError) as exc_info:
            estimate_pi0([0.1, 0.2], 'bootstrap')
        assert exc_info.value.option == 'pi0_method'


class TestQValue:

    def test_pi0_one_equals_bh(self, rng):
        p = rng.uniform(0, 1, 50)
        assert_allclose(qvalue(p, pi0=1.0), p_adjust(p, 'BH'), rtol=1e-12)

    def test_pi0_method_none_equals_bh(self, rng):
        p = rng.uniform(0, 0.2, 30)
        assert_allclose(qvalue(p, 'none'), p_adjust(p, 'BH'), rtol=1e-12)

    def test_scaled_by_pi0(self, rng):
        p = rng.uniform(0, 0.01, 20)
        assert_allclose(qvalue(p, pi0=0.5), 0.5 * p_adjust(p, 'BH'), rtol=1e-12)

    def test_ties_share_value(self):
        q = qvalue([0.01, 0.01, 0.04, 0.5], pi0=1.0)
        assert q[0] == q[1]

    def test_nan_preserved(self):
        q = qvalue([0.01, np.nan, 0.02], pi0=1.0)
        assert np.isnan(q[1])
        assert_allclose(q[[0, 2]], [0.02, 0.02])

    def test_capped_and_ordered(self, rng):
        p = rng.uniform(0, 1, 100)
        q = qvalue(p)
        assert np.all(q <= 1.0)
        order = np.argsort(p)
        assert np.all(np.diff(q[order]) >= -1e-15)

    def test_empty(self):
        assert len(qvalue([])) == 0
