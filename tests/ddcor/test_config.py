"""
Tests for DCorConfig.build() option validation.
"""

import pytest

from pydiffcor import DCorConfig
from pydiffcor.core.exceptions import ConfigurationError
from pydiffcor.correlation.backends.cpu import CPUCorrelationBackend


class TestDefaults:

    def test_defaults(self):
        cfg = DCorConfig.build()
        assert cfg.compare == ('C1', 'C2')
        assert cfg.method == 'pearson'
        assert cfg.adjust == 'none'
        assert cfg.n_perm == 0
        assert cfg.n_pairs == 'all'
        assert cfg.ceiling == 0.99
        assert cfg.corr_threshold == 0.05
        assert not cfg.uses_permutation

    def test_split_set_string(self):
        assert DCorConfig.build(split_set='G1').split_set == ('G1',)

    def test_backend_object(self):
        backend = CPUCorrelationBackend()
        assert DCorConfig.build(backend=backend).backend is backend

    def test_permutation_options(self):
        cfg = DCorConfig.build(n_perm=10, adjust='perm', avg_type='both', sort_by='qvalue')
        assert cfg.uses_permutation
        assert cfg.adjust == 'perm'


class TestInvalidOptions:

    @pytest.mark.parametrize("kwargs, option", [
        ({'method': 'kendall'}, 'method'),
        ({'split_mode': 'between'}, 'split_mode'),
        ({'adjust': 'sidak'}, 'adjust'),
        ({'n_perm': -1}, 'n_perm'),
        ({'n_pairs': 0}, 'n_pairs'),
        ({'n_pairs': 'top'}, 'n_pairs'),
        ({'classify': 'yes'}, 'classify'),
        ({'corr_threshold': 0.0}, 'corr_threshold'),
        ({'diff_threshold': 2.0}, 'diff_threshold'),
        ({'ceiling': 1.0}, 'ceiling'),
        ({'avg_type': 'pair', 'n_perm': 5}, 'avg_type'),
        ({'avg_method': 'mode'}, 'avg_method'),
        ({'alternative': 'both'}, 'alternative'),
        ({'pi0_method': 'bootstrap'}, 'pi0_method'),
        ({'seed': -1}, 'seed'),
        ({'n_jobs': 0}, 'n_jobs'),
        ({'backend': 'tpu'}, 'backend'),
        ({'backend': 3}, 'backend'),
        ({'sort_by': 'name'}, 'sort_by'),
    ])
    def test_rejected(self, kwargs, option):
        with pytest.raises(ConfigurationError) as exc_info:
            DCorConfig.build(**kwargs)
        assert exc_info.value.option == option

    @pytest.mark.parametrize("compare", [('A', 'A'), ('A',), 'AB', ('A', 'B', 'C')])
    def test_compare(self, compare):
        with pytest.raises(ConfigurationError) as exc_info:
            DCorConfig.build(compare)
        assert exc_info.value.option == 'compare'


class TestNeedsPermutations:

    @pytest.mark.parametrize("kwargs", [
        {'avg_type': 'total'},
        {'avg_type': 'gene'},
        {'adjust': 'perm'},
        {'sort_by': 'qvalue'},
    ])
    def test_zero_permutations_rejected(self, kwargs):
        with pytest.raises(ConfigurationError) as exc_info:
            DCorConfig.build(n_perm=0, **kwargs)
        assert exc_info.value.option == 'n_perm'
