"""
Nine-way sign classification of differential correlation.

Each condition contributes a sign: '+' or '-' when its correlation is
significant (p < corr_threshold), '0' otherwise. The class label is
'<sign A>/<sign B>'. Only pairs whose differential significance value
is below diff_threshold receive a label; the rest get None.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pydiffcor.core.validation import check_threshold

SIGNS = ('+', '0', '-')

CLASS_LABELS: tuple[str, ...] = tuple(f"{a}/{b}" for a in SIGNS for b in SIGNS)


class Classifier:
    """
    Deterministic sign classifier.

    Parameters
    ----------
    corr_threshold : float
        Per-condition correlation p-value threshold, in (0, 1].
    diff_threshold : float
        Differential significance threshold, in (0, 1].
    """

    def __init__(self, corr_threshold: float = 0.05, diff_threshold: float = 0.05):
        check_threshold(corr_threshold, 'corr_threshold')
        check_threshold(diff_threshold, 'diff_threshold')
        self.corr_threshold = float(corr_threshold)
        self.diff_threshold = float(diff_threshold)

    def signs(self, r: ArrayLike, p: ArrayLike) -> NDArray[np.str_]:
        """Per-pair sign characters for one condition."""
        r = np.asarray(r, dtype=np.float64)
        p = np.asarray(p, dtype=np.float64)
        # NaN p compares False, so undefined pairs fall through to '0'
        significant = p < self.corr_threshold
        out = np.full(r.shape, '0', dtype='<U1')
        out[significant & (r > 0)] = '+'
        out[significant & (r < 0)] = '-'
        return out

    def sign_labels(
        self,
        r_a: ArrayLike,
        p_a: ArrayLike,
        r_b: ArrayLike,
        p_b: ArrayLike,
    ) -> NDArray[np.object_]:
        """Ungated '<A>/<B>' label for every pair."""
        sa = self.signs(r_a, p_a)
        sb = self.signs(r_b, p_b)
        labels = np.empty(sa.shape, dtype=object)
        labels[...] = np.char.add(np.char.add(sa, '/'), sb)
        return labels

    def classify(
        self,
        r_a: ArrayLike,
        p_a: ArrayLike,
        r_b: ArrayLike,
        p_b: ArrayLike,
        significance: ArrayLike,
    ) -> NDArray[np.object_]:
        """
        Gated labels.

        ``significance`` is the per-pair differential value compared with
        diff_threshold: raw p_diff, an adjusted p-value or a q-value.
        Pairs at or above the threshold (or NaN) get None.
        """
        labels = self.sign_labels(r_a, p_a, r_b, p_b)
        keep = np.asarray(significance, dtype=np.float64) < self.diff_threshold
        labels[~keep] = None
        return labels

    def __repr__(self) -> str:
        return (
            f"Classifier(corr_threshold={self.corr_threshold}, "
            f"diff_threshold={self.diff_threshold})"
        )


def count_classes(labels: ArrayLike) -> dict[str, int]:
    """Number of pairs per class label, in CLASS_LABELS order."""
    values = [label for label in np.asarray(labels, dtype=object) if label is not None]
    return {label: values.count(label) for label in CLASS_LABELS}
