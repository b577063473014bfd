"""
Correlation backends.

cpu: NumPy/SciPy reference (always available)
gpu: PyTorch (Pearson on CUDA/MPS, imported lazily)
"""

from pydiffcor.correlation.backends.cpu import CPUCorrelationBackend

__all__ = ["CPUCorrelationBackend"]
