"""
Condition relabeling for permutation samples.

Permutation i draws from its own generator,
SeedSequence(seed, spawn_key=(i,)), so every permutation is reproducible
on its own and results do not depend on how permutations are spread
over workers.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class PermutationSample:
    """
    One relabeled design.

    Attributes:
        index: 0-based permutation index
        labels: Per-sample group code, 0 / 1 for the compared conditions
            and -1 for samples outside both; group sizes match the
            original labels
    """
    index: int
    labels: NDArray[np.int8]

    def __post_init__(self):
        self.labels.setflags(write=False)

    @property
    def number(self) -> int:
        """1-based permutation number, for display."""
        return self.index + 1

    def samples(self, group: int) -> NDArray[np.intp]:
        """Sample indices currently assigned to group 0 or 1."""
        return np.flatnonzero(self.labels == group)


def resolve_seed(seed: int | None) -> int:
    """Concrete root seed; fresh OS entropy when seed is None."""
    if seed is None:
        return int(np.random.SeedSequence().entropy)
    return int(seed)


def relabel(labels: NDArray[np.int8], index: int, seed: int) -> PermutationSample:
    """
    Shuffle the labels of the samples in the two compared conditions.

    Samples coded -1 keep their position and label.
    """
    rng = np.random.default_rng(np.random.SeedSequence(seed, spawn_key=(index,)))
    active = np.flatnonzero(labels >= 0)
    shuffled = labels.copy()
    shuffled[active] = rng.permutation(labels[active])
    return PermutationSample(index=index, labels=shuffled)
