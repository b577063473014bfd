"""
Tests for get_cors().
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose
from scipy import stats

from pydiffcor import get_cors
from pydiffcor.core.exceptions import ConfigurationError
from pydiffcor.correlation import CorrelationSolution


class TestGetCors:

    def test_returns_both_conditions(self, expression_design):
        sol = get_cors(expression_design, compare=('A', 'B'))
        assert isinstance(sol, CorrelationSolution)
        assert sol.conditions == ('A', 'B')
        assert sol['A'].shape == (6, 6)
        assert sol.method == 'pearson'
        assert sol.backend_name == 'cpu_correlation'
        assert sol.info['n_samples'] == (15, 15)
        assert sol.info['n_pairs'] == 15

    def test_values_per_condition(self, expression_data):
        data, design, variables = expression_data
        sol = get_cors(data, design, compare=('C1', 'C2'))
        r, n, p = sol.first.lookup('V1', 'V2')
        ref = stats.pearsonr(data[0, :15], data[1, :15])
        assert_allclose(r, ref[0], rtol=1e-10)
        assert_allclose(p, ref[1], rtol=1e-6)
        assert n == 15
        r_b, _, _ = sol.second.lookup('V1', 'V2')
        assert_allclose(r_b, stats.pearsonr(data[0, 15:], data[1, 15:])[0], rtol=1e-10)

    def test_compare_order_swaps(self, expression_design):
        sol = get_cors(expression_design, compare=('B', 'A'))
        assert sol.first.condition == 'B'
        assert_allclose(
            sol.second.r,
            get_cors(expression_design, compare=('A', 'B')).first.r,
        )

    def test_split_rest(self, expression_design):
        sol = get_cors(expression_design, compare=('A', 'B'), split_set=['G3'])
        assert sol['A'].shape == (1, 6)
        assert sol['A'].row_ids == ('G3',)
        assert sol.scope.n_pairs == 5

    def test_spearman(self, expression_design):
        sol = get_cors(expression_design, compare=('A', 'B'), method='spearman')
        data = expression_design.data
        r, _, _ = sol['B'].lookup('G4', 'G6')
        assert_allclose(r, stats.spearmanr(data[3, 15:], data[5, 15:])[0], rtol=1e-10)

    def test_matrices_read_only(self, expression_design):
        sol = get_cors(expression_design, compare=('A', 'B'))
        with pytest.raises(ValueError):
            sol['A'].r[0, 1] = 0.0

    def test_unknown_condition_key(self, expression_design):
        sol = get_cors(expression_design, compare=('A', 'B'))
        with pytest.raises(KeyError):
            sol['C']

    def test_undefined_pairs_reported(self):
        data = np.array([
            [1.0, 2.0, 3.0, 4.0, 1.0, 2.0, 3.0, 4.0],
            [5.0, 5.0, 5.0, 5.0, 2.0, 1.0, 4.0, 3.0],
            [2.0, 1.0, 4.0, 3.0, 1.0, 3.0, 2.0, 4.0],
        ])
        design = np.repeat(np.eye(2), 4, axis=0)
        sol = get_cors(data, design)
        assert sol.n_undefined == 2
        assert any("undefined" in w for w in sol.warnings)

    def test_all_undefined_warns(self):
        data = np.ones((2, 8))
        design = np.repeat(np.eye(2), 4, axis=0)
        with pytest.warns(RuntimeWarning, match="undefined"):
            sol = get_cors(data, design)
        assert sol.n_undefined == 1


class TestGetCorsErrors:

    def test_design_required(self, rng):
        with pytest.raises(ConfigurationError, match="design"):
            get_cors(rng.standard_normal((3, 8)))

    def test_compare_length(self, expression_design):
        with pytest.raises(ConfigurationError):
            get_cors(expression_design, compare=('A',))

    def test_compare_string(self, expression_design):
        with pytest.raises(ConfigurationError):
            get_cors(expression_design, compare='AB')

    def test_unknown_method(self, expression_design):
        with pytest.raises(ConfigurationError):
            get_cors(expression_design, compare=('A', 'B'), method='kendall')

    def test_unknown_split_variable(self, expression_design):
        with pytest.raises(ConfigurationError, match="unknown variable"):
            get_cors(expression_design, compare=('A', 'B'), split_set=['G99'])
