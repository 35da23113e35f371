"""
Style Transfer Runtime – Inference Session

INFERENCE SESSION MODULE

This module owns one compiled style model and its tensors.

CRITICAL CONSTRAINTS:
- Exactly ONE infer request per session
- Exactly ONE input tensor and ONE output tensor
- Input shape is [1, 3, H, W] (batch 1, RGB planes)
- Tensor memory is owned by the runtime, never by callers
- Tensor views MUST NOT be used after close()

WHAT THIS IS:
- Compiled model + infer request holder
- Bounds-checked numpy views over runtime tensor memory
- Blocking single forward pass

WHAT THIS IS NOT:
- Thread-safe (callers serialize access)
- Frame converter (see frame_codec.py)
- Error container (runtime exceptions propagate from infer())
"""

import logging
from typing import Any, Optional

import numpy as np

from .runtime_config import NUM_CHANNELS
from .schema import SessionClosedError

logger = logging.getLogger(__name__)


class InferenceSession:
    """
    Compiled model bound to a device, with reusable input/output tensors.

    LIFECYCLE:
    1. Created once per successful model load
    2. Input view filled by the caller before each infer()
    3. Output view read after each infer()
    4. Replaced wholesale on the next load, or torn down by close()
    """

    def __init__(self, compiled_model: Any, device: str):
        """
        Create the infer request and bind the input tensor.

        Args:
            compiled_model: openvino.CompiledModel
            device: Device descriptor (or priority list) the model was compiled for

        Raises:
            ValueError: If the compiled input is not a float32 [1, 3, H, W] tensor
        """
        self.device = device
        self._compiled_model = compiled_model
        self._infer_request = compiled_model.create_infer_request()

        input_tensor = self._infer_request.get_input_tensor(0)
        shape = [int(d) for d in input_tensor.shape]

        if len(shape) != 4 or shape[0] != 1 or shape[1] != NUM_CHANNELS:
            raise ValueError(f"Expected input shape [1, {NUM_CHANNELS}, H, W], got {shape}")

        self.height = shape[2]
        self.width = shape[3]
        self.pixel_count = self.width * self.height

        input_data = input_tensor.data
        if input_data.dtype != np.float32:
            raise ValueError(f"Expected float32 input tensor, got {input_data.dtype}")

        # Flat view of length 3 * N over runtime memory (no copy)
        self._input_data: Optional[np.ndarray] = input_data.reshape(-1)
        if not np.shares_memory(self._input_data, input_data):
            raise ValueError("Input tensor memory is not contiguous")

        logger.debug(f"Session ready on {device}: {self.width}x{self.height}")

    @property
    def closed(self) -> bool:
        return self._infer_request is None

    @property
    def input_data(self) -> np.ndarray:
        """Writable float32 view of length 3 * width * height."""
        self._check_open()
        return self._input_data

    @property
    def output_data(self) -> np.ndarray:
        """Flat float32 view of the (single) output tensor."""
        self._check_open()
        output = self._infer_request.get_output_tensor(0).data
        return np.asarray(output, dtype=np.float32).reshape(-1)

    def infer(self) -> None:
        """Run one blocking forward pass on the current input tensor."""
        self._check_open()
        self._infer_request.infer()

    def close(self) -> None:
        """Drop the infer request, compiled model and tensor views."""
        self._input_data = None
        self._infer_request = None
        self._compiled_model = None

    def _check_open(self) -> None:
        if self._infer_request is None:
            raise SessionClosedError("Inference session has been closed")

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"InferenceSession(device={self.device!r}, size={self.width}x{self.height}, {state})"
