"""
Style Transfer Runtime – Host

STYLE TRANSFER HOST

This module provides the per-frame entry points an embedding application
(e.g. a game engine render loop) calls into.

BOUNDARY OPERATIONS:
- get_device_count()  → re-enumerate devices, return count
- get_device_name(i)  → descriptor from the last enumeration
- load_model(...)     → LoadStatus code, dims written back in place
- perform_inference() → stylize an RGBA buffer in place (all-or-nothing)

ERROR HANDLING:
- Load failures → status code, previous session kept
- Degraded load (reshape rejected) → RESHAPE_FAILED, dims corrected
- Frame failures → FrameResult(FAILED), buffer UNMODIFIED
- perform_inference() MUST NOT raise (a dropped frame is acceptable,
  a crashed render loop is not)
- No retries anywhere

CONCURRENCY:
- One session per host, replaced wholesale on every load
- load_model / perform_inference / unload_model are serialized by one lock
- Multiple independent hosts may coexist (no module-level state)

WHAT THIS IS NOT:
- Image resizer (buffers must match the reported dims)
- Frame owner (buffers are borrowed for the duration of a call)
"""

import logging
import threading
import time
from typing import Any, MutableSequence, Optional

import numpy as np
import openvino as ov

from .device_registry import DeviceRegistry
from .frame_codec import FrameCodec
from .inference_session import InferenceSession
from .model_preparer import ModelPreparer
from .runtime_config import RuntimeConfig
from .schema import DeviceIndexError, FrameResult, FrameStatus, LoadStatus

logger = logging.getLogger(__name__)


class StyleTransferHost:
    """
    Explicit owner of one style model session.

    LIFECYCLE:
    1. Host created (runtime core initialized, no model)
    2. get_device_count() enumerates devices
    3. load_model() prepares a session for a device index
    4. perform_inference() called once per frame, many times
    5. load_model() again replaces the session
    6. unload_model() releases it
    """

    def __init__(self, config: Optional[RuntimeConfig] = None, core: Optional[Any] = None):
        """
        Args:
            config: Runtime policy (defaults if omitted)
            core: openvino.Core to use (a new Core is created if omitted)
        """
        self.config = config or RuntimeConfig()
        self.core = core if core is not None else ov.Core()

        self.devices = DeviceRegistry(self.core, self.config.excluded_device_substrings)
        self.preparer = ModelPreparer(self.core, self.config)

        self._session: Optional[InferenceSession] = None
        self._codec: Optional[FrameCodec] = None

        # Serializes session swaps against in-flight frames
        self._session_lock = threading.Lock()

        # Best-effort frame metrics
        self._total_frames = 0
        self._total_errors = 0
        self._total_latency_ms = 0.0
        self._metrics_lock = threading.Lock()

    @property
    def session(self) -> Optional[InferenceSession]:
        return self._session

    @property
    def width(self) -> int:
        return self._session.width if self._session is not None else 0

    @property
    def height(self) -> int:
        return self._session.height if self._session is not None else 0

    def get_device_count(self) -> int:
        """Re-enumerate devices and return how many are usable."""
        return len(self.devices.list_devices())

    def get_device_name(self, index: int) -> str:
        """
        Get a device descriptor from the last enumeration.

        Raises:
            DeviceIndexError: If index is out of range
        """
        return self.devices.get_device(index)

    def load_model(
        self,
        model_path: str,
        device_index: int,
        input_dims: MutableSequence[int]
    ) -> LoadStatus:
        """
        Load a style model and make it the active session.

        Args:
            model_path: Path to the model file
            device_index: Index into the last device enumeration
            input_dims: Mutable [width, height]; overwritten with the ACTUAL
                        session dims on OK and RESHAPE_FAILED

        Returns:
            LoadStatus (0 OK, 1 MODEL_LOAD_FAILED, 2 RESHAPE_FAILED,
                        3 INVALID_DEVICE, 4 COMPILE_FAILED)

        On any status without a session, the previous session (if any)
        stays active and input_dims is left untouched.
        """
        width, height = int(input_dims[0]), int(input_dims[1])

        # Devices were never enumerated by the caller
        if self.devices.count == 0:
            self.devices.list_devices()

        try:
            device = self.devices.get_device(device_index)
        except DeviceIndexError as e:
            logger.error(f"Cannot load {model_path!r}: {e}")
            return LoadStatus.INVALID_DEVICE

        with self._session_lock:
            result = self.preparer.prepare_session(model_path, device, width, height)

            if not result.status.has_session:
                return result.status

            previous = self._session
            self._session = result.session
            self._codec = FrameCodec(result.width, result.height, self.config)

            if previous is not None:
                previous.close()

        input_dims[0] = result.width
        input_dims[1] = result.height

        return result.status

    def perform_inference(self, frame: Any) -> FrameResult:
        """
        Stylize one RGBA frame in place.

        SEQUENCE:
        1. RGBA → RGB (alpha dropped)
        2. RGB → planar input tensor (/255)
        3. Forward pass
        4. Output tensor → RGB (mean/std denormalized, clamped)
        5. RGB → RGBA (opaque alpha)
        6. Copy back into the caller's buffer

        Args:
            frame: Writable buffer of exactly width * height * 4 bytes
                   (bytearray, writable memoryview, uint8 numpy array)

        Returns:
            FrameResult; FAILED means the buffer was NOT modified

        NEVER raises.
        """
        start_time = time.perf_counter()
        is_error = False

        try:
            with self._session_lock:
                if self._session is None or self._codec is None:
                    raise RuntimeError("No model loaded")

                session, codec = self._session, self._codec
                target = _writable_frame_view(frame)

                codec.encode_frame(target, session.input_data)
                session.infer()
                rgba = codec.rgb_to_rgba(codec.decode_frame(session.output_data))

                # Only step that touches caller memory
                target[...] = rgba.reshape(-1)

            return FrameResult(
                status=FrameStatus.OK,
                inference_time_ms=(time.perf_counter() - start_time) * 1000
            )

        except Exception as e:
            # Contained: the render loop keeps running, this frame is dropped
            is_error = True
            logger.warning(f"Frame inference failed ({type(e).__name__}): {e}")
            return FrameResult(
                status=FrameStatus.FAILED,
                inference_time_ms=(time.perf_counter() - start_time) * 1000,
                error=f"{type(e).__name__}: {e}"
            )

        finally:
            self._update_metrics((time.perf_counter() - start_time) * 1000, is_error)

    def unload_model(self) -> None:
        """Release the active session (no-op if none)."""
        with self._session_lock:
            if self._session is not None:
                logger.info(f"Unloading session {self._session!r}")
                self._session.close()
            self._session = None
            self._codec = None

    def _update_metrics(self, latency_ms: float, is_error: bool) -> None:
        with self._metrics_lock:
            self._total_frames += 1
            if is_error:
                self._total_errors += 1
            self._total_latency_ms += latency_ms

    def get_metrics(self) -> dict:
        """
        Get read-only frame metrics for this host.

        Returns:
            Dictionary containing:
            - total_frames: Frames passed to perform_inference()
            - total_errors: Frames dropped
            - avg_latency_ms: Average call latency (milliseconds)
            - error_rate: Fraction of dropped frames (0.0-1.0)
        """
        with self._metrics_lock:
            total_frames = self._total_frames
            total_errors = self._total_errors
            total_latency_ms = self._total_latency_ms

        avg_latency_ms = (total_latency_ms / total_frames) if total_frames > 0 else 0.0
        error_rate = (total_errors / total_frames) if total_frames > 0 else 0.0

        return {
            "total_frames": total_frames,
            "total_errors": total_errors,
            "avg_latency_ms": round(avg_latency_ms, 2),
            "error_rate": round(error_rate, 4)
        }


def _writable_frame_view(frame: Any) -> np.ndarray:
    """Flat uint8 view over a caller buffer, without copying."""
    if isinstance(frame, np.ndarray):
        if frame.dtype != np.uint8:
            raise TypeError(f"Frame must be uint8, got {frame.dtype}")
        if not frame.flags.c_contiguous:
            raise ValueError("Frame array must be contiguous")
        view = frame.reshape(-1)
    else:
        view = np.frombuffer(frame, dtype=np.uint8)

    if not view.flags.writeable:
        raise ValueError("Frame buffer is read-only")

    return view
