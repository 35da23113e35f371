"""
Style Transfer Runtime – Device Enumeration

DEVICE REGISTRY

This module lists the compute devices a style model may be compiled for.

CRITICAL RULES:
- Device list is re-enumerated on EVERY list_devices() call
- Enumeration order is the runtime's order (never sorted)
- Excluded device classes are NEVER offered
- Index access is bounds-checked (no silent out-of-range reads)

WHAT THIS IS:
- Thin filter over Core.available_devices
- Cache of the last enumeration for index lookups

WHAT THIS IS NOT:
- Device health monitoring
- Automatic device selection
"""

import logging
import operator
from typing import Any, List, Sequence

from .runtime_config import DEFAULT_EXCLUDED_DEVICES
from .schema import DeviceIndexError

logger = logging.getLogger(__name__)


class DeviceRegistry:
    """
    Filtered, index-addressable view of the runtime's devices.

    Descriptor lifetime: a descriptor returned by get_device() stays valid
    until the next list_devices() call replaces the cached list.
    """

    def __init__(self, core: Any, excluded_substrings: Sequence[str] = DEFAULT_EXCLUDED_DEVICES):
        """
        Args:
            core: openvino.Core (or any object exposing `available_devices`)
            excluded_substrings: Device descriptors containing any of these are dropped
        """
        self._core = core
        self._excluded = tuple(excluded_substrings)
        self._devices: List[str] = []

    def is_excluded(self, device: str) -> bool:
        return any(marker in device for marker in self._excluded)

    def list_devices(self) -> List[str]:
        """
        Re-enumerate devices, replacing the cached list.

        Returns:
            Copy of the filtered device list, in runtime order
        """
        devices = []
        for device in self._core.available_devices:
            if self.is_excluded(device):
                logger.debug(f"Skipping excluded device {device}")
                continue
            devices.append(device)

        self._devices = devices
        logger.debug(f"Enumerated devices: {devices}")
        return list(devices)

    def get_device(self, index: int) -> str:
        """
        Get a device descriptor from the last enumeration.

        Raises:
            DeviceIndexError: If index is outside [0, count)
        """
        count = len(self._devices)
        if isinstance(index, bool):
            raise DeviceIndexError(index, count)
        try:
            position = operator.index(index)
        except TypeError:
            raise DeviceIndexError(index, count) from None

        if not 0 <= position < count:
            raise DeviceIndexError(index, count)
        return self._devices[position]

    @property
    def count(self) -> int:
        return len(self._devices)

    def __len__(self) -> int:
        return len(self._devices)
