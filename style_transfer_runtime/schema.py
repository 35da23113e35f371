"""
Style Transfer Runtime – Result & Status Contract

RESULT SCHEMA

This module defines the hard boundary contract between:
- The embedding application (caller, e.g. a per-frame render loop)
- The style transfer host (callee)

SCOPE:
- Status codes for model loading and frame inference
- Result types for every boundary operation
- Exception hierarchy for contract violations
- No execution logic
- No model loading

CRITICAL CONSTRAINTS:
- Status codes are STABLE (callers compare raw integers)
- Load failures surface as status codes, never as exceptions
- Frame failures surface as FrameResult, never as exceptions
- Success / degraded / failed is part of the return type
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Optional


class LoadStatus(IntEnum):
    """
    Status codes returned by model loading.

    OK: Model loaded, requested dimensions honored
    MODEL_LOAD_FAILED: Model file unreadable/invalid, no new session
    RESHAPE_FAILED: Model loaded at its native dimensions (degraded, usable)
    INVALID_DEVICE: Device index outside the enumerated device list
    COMPILE_FAILED: Model could not be compiled for the device, no new session

    Values 0-2 are the historical boundary codes and MUST NOT change.
    """
    OK = 0
    MODEL_LOAD_FAILED = 1
    RESHAPE_FAILED = 2
    INVALID_DEVICE = 3
    COMPILE_FAILED = 4

    @property
    def has_session(self) -> bool:
        """True if this status leaves a usable session behind."""
        return self in (LoadStatus.OK, LoadStatus.RESHAPE_FAILED)


class FrameStatus(Enum):
    """
    Outcome of a single frame inference.

    OK: Frame converted, buffer overwritten with the stylized image
    FAILED: Frame dropped, buffer left UNMODIFIED
    """
    OK = "ok"
    FAILED = "failed"


@dataclass
class PrepareResult:
    """
    Outcome of preparing an inference session.

    FAILURE SEMANTICS:
    - status OK or RESHAPE_FAILED → session is not None
    - any other status → session is None, width/height echo the request
    - width/height are the ACTUAL compiled dimensions when a session exists
    """

    status: LoadStatus
    session: Optional[Any]  # InferenceSession (kept untyped to avoid an import cycle)
    width: int
    height: int
    message: Optional[str] = None
    model: Optional[Any] = None  # openvino.Model as compiled (after any reshape)

    def __post_init__(self):
        """Validate result on construction."""
        if self.status.has_session and self.session is None:
            raise ValueError(f"status {self.status.name} requires a session")

        if not self.status.has_session and self.session is not None:
            raise ValueError(f"status {self.status.name} must not carry a session")


@dataclass
class FrameResult:
    """
    Outcome of a single perform_inference() call.

    FAILURE SEMANTICS:
    - FAILED means the caller's buffer was NOT touched
    - error holds a human-readable reason for FAILED results
    - No partial results (all-or-nothing)
    """

    status: FrameStatus
    inference_time_ms: float = 0.0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is FrameStatus.OK


class StyleTransferError(Exception):
    """Base class for all style transfer runtime errors."""


class DeviceIndexError(StyleTransferError, IndexError):
    """Device index outside the last enumerated device list."""

    def __init__(self, index: int, count: int):
        super().__init__(f"Device index {index} out of range (available devices: {count})")
        self.index = index
        self.count = count


class FrameSizeError(StyleTransferError, ValueError):
    """Frame buffer length does not match the session dimensions."""

    def __init__(self, actual: int, expected: int):
        super().__init__(f"Frame buffer size mismatch: {actual} != {expected}")
        self.actual = actual
        self.expected = expected


class SessionClosedError(StyleTransferError, RuntimeError):
    """Inference session used after teardown."""
