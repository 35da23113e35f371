"""
STYLE TRANSFER RUNTIME PACKAGE

This package hosts feed-forward style transfer networks for real-time use:
an embedding application hands over RGBA frames, the runtime stylizes them
in place.

DELIVERABLES:
- Result & status contract (schema.py)
- YAML runtime configuration (runtime_config.py)
- Filtered device enumeration (device_registry.py)
- Model read / reshape / compile (model_preparer.py)
- Compiled model + tensor ownership (inference_session.py)
- RGBA ↔ planar tensor conversion (frame_codec.py)
- Per-frame host with contained failures (style_transfer_host.py)
- Standalone benchmark driver (benchmark.py)

WHAT THIS IS:
- OpenVINO inference host for single-input, single-output RGB networks
- Exact numeric frame ↔ tensor contract (channel order, scaling, clamping)
- One explicit session object per host (no process-wide state)

WHAT THIS IS NOT:
- Training or fine-tuning
- Multi-input / multi-output or batched models
- Image resizing or file I/O (except in the benchmark driver)
"""

from .schema import (
    DeviceIndexError,
    FrameResult,
    FrameSizeError,
    FrameStatus,
    LoadStatus,
    PrepareResult,
    SessionClosedError,
    StyleTransferError,
)
from .runtime_config import RuntimeConfig
from .device_registry import DeviceRegistry
from .frame_codec import FrameCodec
from .inference_session import InferenceSession
from .model_preparer import ModelPreparer, describe_model
from .style_transfer_host import StyleTransferHost

__all__ = [
    "DeviceIndexError",
    "FrameResult",
    "FrameSizeError",
    "FrameStatus",
    "LoadStatus",
    "PrepareResult",
    "SessionClosedError",
    "StyleTransferError",
    "RuntimeConfig",
    "DeviceRegistry",
    "FrameCodec",
    "InferenceSession",
    "ModelPreparer",
    "describe_model",
    "StyleTransferHost",
]

__version__ = "0.1.0"
