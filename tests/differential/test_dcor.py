"""
Tests for pairwise_dcor(), dcor_class() and dcor_test().
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from pydiffcor import dcor_class, dcor_test, get_cors, pairwise_dcor
from pydiffcor.core.exceptions import (
    ConfigurationError,
    DimensionError,
    InputShapeError,
    InsufficientSamplesError,
)
from pydiffcor.differential import Classifier, PairTable, zscore_difference


class TestPairwiseDcor:

    def test_one_row_per_pair(self, expression_design):
        table = pairwise_dcor(get_cors(expression_design, compare=('A', 'B')))
        assert isinstance(table, PairTable)
        assert len(table) == 15
        assert table.conditions == ('A', 'B')
        assert table.ids_a[:2] == ('G1', 'G1')
        assert table.ids_b[:2] == ('G2', 'G3')

    def test_values_match_correlations(self, expression_design):
        cors = get_cors(expression_design, compare=('A', 'B'))
        table = pairwise_dcor(cors)
        rec = table.find('G4', 'G2')
        r_a, n_a, p_a = cors['A'].lookup('G2', 'G4')
        r_b, n_b, _ = cors['B'].lookup('G2', 'G4')
        assert (rec.var_a, rec.var_b) == ('G2', 'G4')
        assert_allclose(rec.r_a, r_a)
        assert_allclose(rec.p_a, p_a)
        z, p = zscore_difference(r_a, n_a, r_b, n_b)
        assert_allclose(rec.z_diff, z)
        assert_allclose(rec.p_diff, p)

    def test_planted_pair_is_strongest(self, expression_design):
        table = pairwise_dcor(get_cors(expression_design, compare=('A', 'B')))
        top = int(np.nanargmax(np.abs(table.z_diff)))
        assert (table[top].var_a, table[top].var_b) == ('G1', 'G2')
        assert table[top].z_diff > 0

    def test_ceiling_leaves_correlations(self, expression_design):
        cors = get_cors(expression_design, compare=('A', 'B'))
        loose = pairwise_dcor(cors, ceiling=0.5)
        tight = pairwise_dcor(cors, ceiling=0.99)
        assert_allclose(loose.r_a, tight.r_a)
        assert not np.allclose(loose.z_diff, tight.z_diff)

    def test_invalid_ceiling(self, expression_design):
        with pytest.raises(ConfigurationError):
            pairwise_dcor(get_cors(expression_design, compare=('A', 'B')), ceiling=1.0)

    def test_columns_read_only(self, expression_design):
        table = pairwise_dcor(get_cors(expression_design, compare=('A', 'B')))
        with pytest.raises(ValueError):
            table.z_diff[0] = 0.0

    def test_undefined_pairs_kept(self, missing_data):
        data, design = missing_data
        data = data.copy()
        data[3, :10] = np.nan
        table = pairwise_dcor(get_cors(data, design))
        assert len(table) == 10
        assert table.n_undefined == 4
        rec = table.find('V4', 'V1')
        assert not rec.is_defined
        assert np.isnan(rec.p_diff)


class TestPairTable:

    @pytest.fixture
    def table(self, expression_design):
        return pairwise_dcor(get_cors(expression_design, compare=('A', 'B')))

    def test_take_reorders(self, table):
        sub = table.take([3, 0])
        assert len(sub) == 2
        assert sub[0] == table[3]
        assert sub[1] == table[0]

    def test_negative_index(self, table):
        assert table[-1] == table[len(table) - 1]

    def test_index_out_of_range(self, table):
        with pytest.raises(IndexError):
            table[len(table)]

    def test_iteration(self, table):
        records = list(table)
        assert len(records) == len(table)
        assert records[0].label is None
        assert records[0].p_adj is None

    def test_with_columns(self, table):
        labelled = table.with_columns(p_adj=np.ones(len(table)))
        assert labelled[0].p_adj == 1.0
        assert table.p_adj is None

    def test_with_unknown_column(self, table):
        with pytest.raises(ValueError):
            table.with_columns(z_diff=np.zeros(len(table)))

    def test_column_length_checked(self, table):
        with pytest.raises(ValueError, match="length"):
            table.with_columns(p_adj=np.ones(3))

    def test_missing_pair(self, table):
        with pytest.raises(KeyError):
            table.take([0]).find('G5', 'G6')


class TestDcorClass:

    def test_matches_classifier(self, expression_design):
        table = pairwise_dcor(get_cors(expression_design, compare=('A', 'B')))
        labels = dcor_class(table, 0.05, 0.05)
        expected = Classifier().classify(
            table.r_a, table.p_a, table.r_b, table.p_b, table.p_diff,
        )
        assert labels.tolist() == expected.tolist()
        assert labels[0].startswith("+/")

    def test_missing_significance_column(self, expression_design):
        table = pairwise_dcor(get_cors(expression_design, compare=('A', 'B')))
        with pytest.raises(ValueError, match="q_value"):
            dcor_class(table, significance='q_value')

    def test_unknown_significance_column(self, expression_design):
        table = pairwise_dcor(get_cors(expression_design, compare=('A', 'B')))
        with pytest.raises(ConfigurationError):
            dcor_class(table, significance='z_diff')


class TestDcorTest:

    X = [1.0, 2.0, 3.0, 4.0]

    def test_gain_of_correlation(self):
        res = dcor_test(self.X, [2.0, 4.0, 6.0, 8.0], self.X, [1.0, -1.0, -1.0, 1.0])
        assert_allclose(res.r_a, 1.0)
        assert_allclose(res.r_b, 0.0, atol=1e-12)
        assert res.n_a == res.n_b == 4
        z_expected = np.arctanh(0.99) / np.sqrt(2.0)
        assert_allclose(res.z_diff, z_expected, rtol=1e-10)
        assert res.z_diff > 0
        assert 0.05 < res.p_diff < 0.07

    def test_gain_of_correlation_class(self):
        res = dcor_test(self.X, [2.0, 4.0, 6.0, 8.0], self.X, [1.0, -1.0, -1.0, 1.0])
        cols = ([res.r_a], [res.p_a], [res.r_b], [res.p_b])
        classifier = Classifier()
        assert classifier.sign_labels(*cols).tolist() == ['+/0']
        gated = Classifier(diff_threshold=0.1).classify(*cols, [res.p_diff])
        assert gated.tolist() == ['+/0']
        assert classifier.classify(*cols, [res.p_diff]).tolist() == [None]

    def test_identical_conditions(self, rng):
        x = rng.standard_normal(20)
        y = x + rng.standard_normal(20)
        res = dcor_test(x, y, x, y)
        assert_allclose(res.z_diff, 0.0, atol=1e-12)
        assert_allclose(res.p_diff, 1.0)

    def test_names(self, rng):
        x = rng.standard_normal(10)
        res = dcor_test(x, x + 1, x, -x, names=('TP53', 'MDM2'))
        assert (res.var_a, res.var_b) == ('TP53', 'MDM2')

    def test_missing_values_use_overlap(self, rng):
        x = rng.standard_normal(12)
        y = x + 0.5 * rng.standard_normal(12)
        y_missing = y.copy()
        y_missing[[0, 4]] = np.nan
        res = dcor_test(x, y_missing, x, y)
        assert res.n_a == 10
        assert res.n_b == 12

    def test_spearman(self, rng):
        x = rng.standard_normal(15)
        res = dcor_test(x, np.exp(x), x, -np.exp(x), method='spearman')
        assert_allclose(res.r_a, 1.0)
        assert_allclose(res.r_b, -1.0)

    def test_too_few_observations(self):
        with pytest.raises(InsufficientSamplesError) as exc_info:
            dcor_test([1, 2, 3], [2, 1, 3], [1, 2, 3, 4, 5], [1, 3, 2, 5, 4])
        assert exc_info.value.n_observed == 3
        assert exc_info.value.n_required == 4

    def test_too_few_after_missing(self):
        with pytest.raises(InsufficientSamplesError):
            dcor_test([1, 2, 3, 4, 5], [1, 3, 2, 5, 4],
                      [1, 2, np.nan, 4, 5], [np.nan, 3, 2, 5, 4])

    def test_length_mismatch(self):
        with pytest.raises(InputShapeError):
            dcor_test([1, 2, 3, 4, 5], [1, 2, 3, 4], [1, 2, 3, 4, 5], [1, 2, 3, 4, 5])

    def test_two_dimensional_rejected(self):
        with pytest.raises(DimensionError):
            dcor_test(np.ones((2, 5)), np.ones(5), np.ones(5), np.ones(5))
