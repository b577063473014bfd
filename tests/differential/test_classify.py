"""
Tests for the nine-way sign classifier.
"""

import numpy as np
import pytest

from pydiffcor.core.exceptions import ConfigurationError
from pydiffcor.differential import CLASS_LABELS, Classifier, count_classes


class TestSigns:

    def test_significant_signs(self):
        out = Classifier(corr_threshold=0.05).signs(
            [0.8, -0.6, 0.8, -0.1], [0.001, 0.01, 0.2, 0.049],
        )
        assert out.tolist() == ['+', '-', '0', '-']

    def test_nan_is_zero(self):
        out = Classifier().signs([np.nan, 0.5], [np.nan, np.nan])
        assert out.tolist() == ['0', '0']

    def test_zero_correlation_is_zero(self):
        assert Classifier(corr_threshold=1.0).signs([0.0], [0.5]).tolist() == ['0']

    def test_threshold_one_keeps_all_nonzero(self, rng):
        r = rng.uniform(-1, 1, 40)
        p = rng.uniform(0, 0.999, 40)
        out = Classifier(corr_threshold=1.0).signs(r, p)
        assert '0' not in out.tolist()


class TestClassify:

    def test_labels_and_gating(self):
        labels = Classifier().classify(
            r_a=[0.9, 0.9, -0.5],
            p_a=[0.001, 0.001, 0.01],
            r_b=[0.1, -0.8, -0.5],
            p_b=[0.6, 0.001, 0.01],
            significance=[0.01, 0.2, 0.001],
        )
        assert labels.tolist() == ['+/0', None, '-/-']

    def test_nan_significance_gated(self):
        labels = Classifier().classify([0.9], [0.001], [0.0], [0.9], [np.nan])
        assert labels[0] is None

    def test_ungated_labels(self):
        labels = Classifier().sign_labels([0.9], [0.001], [-0.9], [0.001])
        assert labels.tolist() == ['+/-']

    def test_deterministic(self, rng):
        args = [rng.uniform(-1, 1, 30), rng.uniform(0, 1, 30),
                rng.uniform(-1, 1, 30), rng.uniform(0, 1, 30), rng.uniform(0, 1, 30)]
        c = Classifier(0.3, 0.5)
        assert c.classify(*args).tolist() == c.classify(*args).tolist()

    def test_every_label_is_known(self, rng):
        labels = Classifier(0.5, 1.0).sign_labels(
            rng.uniform(-1, 1, 100), rng.uniform(0, 1, 100),
            rng.uniform(-1, 1, 100), rng.uniform(0, 1, 100),
        )
        assert set(labels.tolist()) <= set(CLASS_LABELS)

    @pytest.mark.parametrize("kwargs", [
        {'corr_threshold': 0.0}, {'diff_threshold': 1.5}, {'corr_threshold': -0.1},
    ])
    def test_invalid_thresholds(self, kwargs):
        with pytest.raises(ConfigurationError):
            Classifier(**kwargs)


class TestCountClasses:

    def test_nine_classes(self):
        assert len(CLASS_LABELS) == 9
        assert CLASS_LABELS[0] == '+/+'
        assert '0/0' in CLASS_LABELS

    def test_counts(self):
        counts = count_classes(['+/0', None, '+/0', '-/+'])
        assert counts['+/0'] == 2
        assert counts['-/+'] == 1
        assert sum(counts.values()) == 3
        assert list(counts) == list(CLASS_LABELS)
