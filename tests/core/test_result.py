"""
Tests for the Result[P] envelope.

Validates:
    - Arbitrary payload types
    - Frozen immutability
    - Default factories (warnings, provenance)
    - has_warning()
"""

from dataclasses import FrozenInstanceError, dataclass

import pytest

import pydiffcor
from pydiffcor.core.result import Result, _default_provenance


@dataclass(frozen=True)
class FakeParams:
    """Minimal payload for testing."""
    value: float


def _result(**kwargs):
    defaults = dict(params=FakeParams(1.0), info={}, timing=None, backend_name='cpu_correlation')
    defaults.update(kwargs)
    return Result(**defaults)


class TestResultConstruction:

    def test_fields(self):
        result = _result(
            info={'method': 'pearson'},
            timing={'total_seconds': 0.01},
        )
        assert result.params.value == 1.0
        assert result.info['method'] == 'pearson'
        assert result.timing['total_seconds'] == 0.01
        assert result.backend_name == 'cpu_correlation'

    def test_default_warnings_empty(self):
        assert _result().warnings == ()

    def test_frozen(self):
        result = _result()
        with pytest.raises(FrozenInstanceError):
            result.backend_name = 'gpu'


class TestWarnings:

    def test_has_warning_substring(self):
        result = _result(warnings=("3 of 10 pairs have an undefined correlation",))
        assert result.has_warning("undefined")
        assert not result.has_warning("GPU")


class TestProvenance:

    def test_version_keys(self):
        prov = _default_provenance()
        assert prov['pydiffcor_version'] == pydiffcor.__version__
        assert 'numpy_version' in prov
        assert 'scipy_version' in prov

    def test_attached_by_default(self):
        assert _result().provenance['pydiffcor_version'] == pydiffcor.__version__
