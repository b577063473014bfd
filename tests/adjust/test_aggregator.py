"""
Tests for ResultAggregator, top_pairs() and DCorTable output.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from pydiffcor import p_adjust, qvalue, top_pairs
from pydiffcor.adjust import DCorTable, ResultAggregator, check_n_pairs
from pydiffcor.core.exceptions import ConfigurationError
from pydiffcor.differential import PairTable


def make_table(z, p_diff=None, **optional):
    """PairTable over variables V0..V4 with the given statistics."""
    z = np.asarray(z, dtype=float)
    k = len(z)
    pairs = [(i, j) for i in range(5) for j in range(i + 1, 5)][:k]
    p_diff = np.linspace(0.001, 0.9, k) if p_diff is None else np.asarray(p_diff, dtype=float)
    return PairTable(
        variables=tuple(f"V{i}" for i in range(5)),
        conditions=('ctrl', 'case'),
        idx_a=np.array([a for a, _ in pairs], dtype=np.intp),
        idx_b=np.array([b for _, b in pairs], dtype=np.intp),
        r_a=np.full(k, 0.8),
        p_a=np.full(k, 0.001),
        n_a=np.full(k, 20),
        r_b=np.full(k, -0.1),
        p_b=np.full(k, 0.5),
        n_b=np.full(k, 20),
        z_diff=z,
        p_diff=p_diff,
        **optional,
    )


class TestCheckNPairs:

    def test_all(self):
        assert check_n_pairs('all') is None

    def test_positive(self):
        assert check_n_pairs(3) == 3

    @pytest.mark.parametrize("value", [0, -2, 'some', 2.5, True])
    def test_invalid(self, value):
        with pytest.raises(ConfigurationError) as exc_info:
            check_n_pairs(value)
        assert exc_info.value.option == 'n_pairs'


class TestOrdering:

    def test_abs_zscore_descending(self):
        out = top_pairs(make_table([0.5, -3.0, 2.0, np.nan, -0.1]))
        assert_allclose(out.pairs.z_diff[:4], [-3.0, 2.0, 0.5, -0.1])
        assert np.isnan(out.pairs.z_diff[4])

    def test_ties_keep_pair_order(self):
        out = top_pairs(make_table([1.0, -2.0, 2.0, 1.0]))
        assert [(r.var_a, r.var_b) for r in out] == [
            ('V0', 'V2'), ('V0', 'V3'), ('V0', 'V1'), ('V0', 'V4'),
        ]

    def test_pvalue_uses_raw_without_adjustment(self):
        out = top_pairs(make_table([1, 2, 3], p_diff=[0.3, 0.01, 0.2]), sort_by='pvalue')
        assert_allclose(out.pairs.p_diff, [0.01, 0.2, 0.3])

    def test_pvalue_uses_adjusted(self):
        out = top_pairs(make_table([1, 2, 3], p_diff=[0.3, 0.01, 0.2]),
                        adjust='bonferroni', sort_by='pvalue')
        assert_allclose(out.pairs.p_adj, [0.03, 0.6, 0.9])

    def test_qvalue_without_permutation(self):
        with pytest.raises(ConfigurationError):
            top_pairs(make_table([1, 2]), sort_by='qvalue')

    def test_unknown_sort(self):
        with pytest.raises(ConfigurationError):
            top_pairs(make_table([1, 2]), sort_by='name')


class TestTruncation:

    def test_first_n(self):
        out = top_pairs(make_table([0.1, 5.0, 3.0, 4.0]), n_pairs=2)
        assert len(out) == 2
        assert out.n_total == 4
        assert_allclose(out.pairs.z_diff, [5.0, 4.0])

    def test_more_than_available(self):
        assert len(top_pairs(make_table([1.0, 2.0]), n_pairs=10)) == 2

    def test_adjustment_uses_all_pairs(self):
        p = [0.001, 0.01, 0.02, 0.04, 0.5]
        out = top_pairs(make_table([5, 4, 3, 2, 1], p_diff=p), n_pairs=2, adjust='BH')
        assert_allclose(out.pairs.p_adj, p_adjust(p, 'BH')[:2])


class TestAdjust:

    @pytest.mark.parametrize("method", ['holm', 'hochberg', 'hommel', 'bonferroni', 'BH', 'BY', 'fdr'])
    def test_p_adjust_methods(self, method):
        p = np.array([0.01, 0.2, 0.03, 0.5])
        out = top_pairs(make_table([4, 3, 2, 1], p_diff=p), adjust=method)
        assert_allclose(out.pairs.p_adj, p_adjust(p, method))
        assert 'pval_diff_adj' in out.columns

    def test_qvalue(self):
        p = np.array([0.01, 0.2, 0.03, 0.5])
        out = top_pairs(make_table([4, 3, 2, 1], p_diff=p), adjust='qvalue', pi0_method='none')
        assert_allclose(out.pairs.p_adj, qvalue(p, 'none'))

    def test_none_has_no_column(self):
        out = top_pairs(make_table([1, 2]))
        assert out.pairs.p_adj is None
        assert 'pval_diff_adj' not in out.columns

    def test_unknown(self):
        with pytest.raises(ConfigurationError) as exc_info:
            top_pairs(make_table([1, 2]), adjust='sidak')
        assert exc_info.value.option == 'adjust'

    def test_perm_needs_permutation_columns(self):
        with pytest.raises(ConfigurationError, match="n_perm"):
            top_pairs(make_table([1, 2]), adjust='perm')

    def test_perm_sorts_by_qvalue(self):
        table = make_table(
            [3.0, 2.0, 1.0],
            emp_p=np.array([0.4, 0.01, 0.2]),
            q_value=np.array([0.5, 0.02, 0.3]),
        )
        out = top_pairs(table, adjust='perm')
        assert_allclose(out.pairs.q_value, [0.02, 0.3, 0.5])
        assert out.columns[-2:] == ['emp_pval', 'qvalue']


class TestClassification:

    def test_gated_by_adjusted(self):
        p = np.array([0.01, 0.02, 0.03])
        out = top_pairs(make_table([3, 2, 1], p_diff=p), adjust='bonferroni', classify=True)
        # bonferroni: 0.03, 0.06, 0.09
        assert [r.label for r in out] == ['+/0', None, None]
        assert out.columns[-1] == 'class'

    def test_class_counts(self):
        out = top_pairs(make_table([3, 2, 1], p_diff=[0.01, 0.02, 0.5]), classify=True)
        counts = out.class_counts()
        assert counts['+/0'] == 2
        assert sum(counts.values()) == 2

    def test_class_counts_requires_classification(self):
        with pytest.raises(ValueError):
            top_pairs(make_table([1, 2])).class_counts()


class TestOutput:

    def test_columns(self):
        out = top_pairs(make_table([1, 2]))
        assert out.columns == [
            'var_a', 'var_b', 'cor_ctrl', 'pval_ctrl', 'cor_case', 'pval_case',
            'zscore_diff', 'pval_diff',
        ]

    def test_records(self):
        out = top_pairs(make_table([1.0, 2.0]), classify=True, diff_threshold=0.01)
        records = out.to_records()
        assert len(records) == 2
        assert records[0]['var_a'] == 'V0'
        assert records[0]['var_b'] == 'V2'
        assert records[0]['zscore_diff'] == 2.0
        assert records[0]['class'] is None
        assert records[1]['class'] == '+/0'

    def test_dataframe(self):
        pd = pytest.importorskip("pandas")
        out = top_pairs(make_table([1.0, 2.0, 3.0]), adjust='BH')
        df = out.to_dataframe()
        assert isinstance(df, pd.DataFrame)
        assert list(df.columns) == out.columns
        assert df['var_b'].tolist() == ['V3', 'V2', 'V1']

    def test_summary(self):
        out = top_pairs(make_table([1.0, 2.0, 3.0]), classify=True)
        text = out.summary(n_rows=2)
        assert 'ctrl vs case' in text
        assert '1 more' in text
        assert 'Classes' in text

    def test_is_dcor_table(self):
        assert isinstance(top_pairs(make_table([1.0])), DCorTable)

    def test_repr(self):
        agg = ResultAggregator(5, 'BH')
        assert "BH" in repr(agg)
        assert agg.sort_by == 'zscore'
