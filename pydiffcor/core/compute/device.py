"""
Hardware detection and device selection.

torch is imported lazily: CPU-only installs never touch it.
"""

from dataclasses import dataclass
from typing import Literal
import platform

from pydiffcor.core.exceptions import ConfigurationError


@dataclass(frozen=True)
class DeviceInfo:
    """
    Information about a compute device.

    Attributes:
        device_type: Type of device ('cpu', 'cuda', 'mps')
        device_index: Device index (None for CPU)
        name: Human-readable device name
        memory_bytes: Total device memory in bytes (None if unknown)
    """
    device_type: Literal['cpu', 'cuda', 'mps']
    device_index: int | None
    name: str
    memory_bytes: int | None

    def __str__(self) -> str:
        if self.device_type == 'cpu':
            return f"CPU ({self.name})"
        mem_str = ""
        if self.memory_bytes is not None:
            mem_str = f", {self.memory_bytes / (1024**3):.1f}GB"
        return f"{self.device_type.upper()}:{self.device_index} ({self.name}{mem_str})"

    @property
    def is_gpu(self) -> bool:
        """True if this is a GPU device."""
        return self.device_type in ('cuda', 'mps')


def detect_gpu() -> DeviceInfo | None:
    """
    Detect available GPU, if any. Priority: CUDA > MPS (Apple Silicon).

    Returns None when torch is missing or no device is usable.
    """
    try:
        import torch
    except ImportError:
        return None

    if torch.cuda.is_available():
        idx = torch.cuda.current_device()
        props = torch.cuda.get_device_properties(idx)
        return DeviceInfo(
            device_type='cuda',
            device_index=idx,
            name=props.name,
            memory_bytes=props.total_memory,
        )

    if hasattr(torch.backends, 'mps') and torch.backends.mps.is_available():
        return DeviceInfo(
            device_type='mps',
            device_index=0,
            name='Apple Silicon GPU',
            memory_bytes=None,
        )

    return None


def get_cpu_info() -> DeviceInfo:
    """DeviceInfo for the CPU."""
    processor = platform.processor() or platform.machine() or "Unknown CPU"
    return DeviceInfo(
        device_type='cpu',
        device_index=None,
        name=processor,
        memory_bytes=None,
    )


def select_device(prefer: Literal['cpu', 'gpu', 'auto'] = 'auto') -> DeviceInfo:
    """
    Select compute device based on preference and availability.

    Args:
        prefer: 'cpu' always uses the CPU; 'gpu' requires a GPU;
            'auto' uses a GPU when one is available.

    Raises:
        ConfigurationError: If 'gpu' requested but no GPU available
    """
    if prefer == 'cpu':
        return get_cpu_info()

    gpu = detect_gpu()

    if prefer == 'gpu':
        if gpu is None:
            raise ConfigurationError(
                "GPU requested but no GPU available. "
                "Install the 'gpu' extra (PyTorch with CUDA/MPS support).",
                option='backend',
                value=prefer,
            )
        return gpu

    return gpu if gpu is not None else get_cpu_info()
