"""
Style Transfer Runtime – Frame Conversion

FRAME CODEC MODULE

This module converts between interleaved 8-bit pixel buffers and the
planar float tensors consumed and produced by style networks.

TENSOR LAYOUT (CRITICAL):
- Planar, channel-major: all R values, then all G, then all B
- Pixel p (row-major, p = y * width + x), channel c → offset c * N + p
- N = width * height, tensor length = 3 * N

NUMERIC CONTRACT (CRITICAL):
- Encode: value = byte / 255.0 (NO mean/std on input)
- Decode: value = (tensor * std + mean) * 255.0, clamped to [0, 255], rounded
- The asymmetry is intentional: networks take plain [0, 1] input and emit
  ImageNet-normalized output
- All arithmetic is float32

WHAT THIS IS:
- RGBA → RGB → planar tensor encoder
- Planar tensor → RGB → RGBA decoder
- Frame size validation

WHAT THIS IS NOT:
- Image resizer (frames must already match the session dimensions)
- Color space converter (delegated to OpenCV)
- Frame owner (buffers are borrowed)
"""

from typing import Optional

import cv2
import numpy as np

from .runtime_config import NUM_CHANNELS, RuntimeConfig
from .schema import FrameSizeError

RGBA_CHANNELS = 4

_SCALE = np.float32(255.0)


class FrameCodec:
    """
    Bidirectional frame ↔ tensor converter for one session's dimensions.

    A codec is bound to a (width, height) pair. A new codec is built
    whenever a model reload changes the session dimensions.
    """

    def __init__(self, width: int, height: int, config: Optional[RuntimeConfig] = None):
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid dimensions: {width}x{height}")

        config = config or RuntimeConfig()

        self.width = width
        self.height = height
        self.pixel_count = width * height

        # Column vectors so they broadcast across the pixel axis of (3, N) planes
        self._mean = np.asarray(config.mean, dtype=np.float32).reshape(NUM_CHANNELS, 1)
        self._std = np.asarray(config.std, dtype=np.float32).reshape(NUM_CHANNELS, 1)

    @property
    def tensor_size(self) -> int:
        return NUM_CHANNELS * self.pixel_count

    @property
    def frame_size(self) -> int:
        """Expected RGBA buffer length in bytes."""
        return RGBA_CHANNELS * self.pixel_count

    def rgba_to_rgb(self, rgba) -> np.ndarray:
        """
        Drop the alpha channel of an RGBA frame.

        Args:
            rgba: Any uint8 buffer of exactly width * height * 4 bytes

        Returns:
            New (height, width, 3) uint8 array

        Raises:
            FrameSizeError: If the buffer length does not match
        """
        pixels = np.asarray(rgba, dtype=np.uint8)
        if pixels.size != self.frame_size:
            raise FrameSizeError(pixels.size, self.frame_size)

        image = np.ascontiguousarray(pixels.reshape(self.height, self.width, RGBA_CHANNELS))
        return cv2.cvtColor(image, cv2.COLOR_RGBA2RGB)

    def rgb_to_rgba(self, rgb: np.ndarray) -> np.ndarray:
        """Add an opaque alpha channel to an RGB frame."""
        image = np.ascontiguousarray(rgb, dtype=np.uint8).reshape(self.height, self.width, NUM_CHANNELS)
        return cv2.cvtColor(image, cv2.COLOR_RGB2RGBA)

    def encode_rgb(self, rgb, tensor: np.ndarray) -> None:
        """
        Write an interleaved RGB frame into a planar input tensor.

        Args:
            rgb: uint8 frame of width * height * 3 values (any shape)
            tensor: Contiguous float32 tensor of 3 * N values, e.g. [1, 3, H, W] (written in place)

        Raises:
            FrameSizeError: If frame or tensor length does not match
        """
        pixels = np.asarray(rgb, dtype=np.uint8).reshape(-1)
        if pixels.size != self.tensor_size:
            raise FrameSizeError(pixels.size, self.tensor_size)

        planes = self._planes(tensor)

        # (N, 3) interleaved → (3, N) planar; transpose is a view, divide writes in place
        np.divide(pixels.reshape(self.pixel_count, NUM_CHANNELS).T, _SCALE, out=planes, dtype=np.float32)

    def encode_frame(self, rgba, tensor: np.ndarray) -> None:
        """Drop alpha, then encode (RGBA buffer → planar input tensor)."""
        self.encode_rgb(self.rgba_to_rgb(rgba), tensor)

    def decode_frame(self, tensor: np.ndarray, out: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Convert a planar output tensor into an interleaved RGB frame.

        Args:
            tensor: Output tensor of 3 * N float values (any shape)
            out: Optional (height, width, 3) uint8 destination

        Returns:
            (height, width, 3) uint8 RGB frame

        Raises:
            FrameSizeError: If tensor or destination size does not match
        """
        values = np.asarray(tensor, dtype=np.float32).reshape(-1)
        if values.size != self.tensor_size:
            raise FrameSizeError(values.size, self.tensor_size)

        planes = values.reshape(NUM_CHANNELS, self.pixel_count) * self._std + self._mean
        planes *= _SCALE

        # Saturate, never wrap
        np.clip(planes, 0.0, 255.0, out=planes)
        np.rint(planes, out=planes)

        if out is None:
            out = np.empty((self.height, self.width, NUM_CHANNELS), dtype=np.uint8)
        elif out.size != self.tensor_size:
            raise FrameSizeError(out.size, self.tensor_size)
        elif out.dtype != np.uint8 or not out.flags.c_contiguous:
            raise ValueError("Output frame must be a contiguous uint8 array")

        out.reshape(self.pixel_count, NUM_CHANNELS)[...] = planes.T
        return out

    def _planes(self, tensor: np.ndarray) -> np.ndarray:
        """(3, N) view over a tensor; refuses anything that would need a copy."""
        if tensor.dtype != np.float32:
            raise TypeError(f"Input tensor must be float32, got {tensor.dtype}")
        if tensor.size != self.tensor_size:
            raise FrameSizeError(tensor.size, self.tensor_size)
        if not tensor.flags.c_contiguous or not tensor.flags.writeable:
            raise ValueError("Input tensor must be contiguous and writable")

        return tensor.reshape(NUM_CHANNELS, self.pixel_count)
