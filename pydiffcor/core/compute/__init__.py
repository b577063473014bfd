"""
Shared compute infrastructure for pydiffcor.

Hardware detection and timing utilities shared by all backends. Domain
backends live in {domain}/backends/, not here.
"""

from pydiffcor.core.compute.device import (
    DeviceInfo,
    detect_gpu,
    get_cpu_info,
    select_device,
)
from pydiffcor.core.compute.timing import Timer

__all__ = [
    "DeviceInfo",
    "detect_gpu",
    "get_cpu_info",
    "select_device",
    "Timer",
]
