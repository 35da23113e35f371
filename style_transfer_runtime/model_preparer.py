"""
Style Transfer Runtime – Model Preparation

MODEL PREPARER MODULE

This module turns a model file into a ready-to-run InferenceSession.

PREPARATION SEQUENCE:
1. Configure the compilation cache (best-effort, performance only)
2. Read the model (failure → MODEL_LOAD_FAILED, no session)
3. Reshape input to [1, 3, H, W] (failure → RESHAPE_FAILED, keep native shape)
4. Compile with fixed hints: LATENCY performance, f32 precision
   (failure → COMPILE_FAILED, no session)
5. Create the session and read back the ACTUAL compiled dimensions

CRITICAL RULES:
- This module NEVER raises for model problems (status codes only)
- Callers MUST size frames from the returned width/height, not the request
- No retries

WHAT THIS IS NOT:
- Device enumerator (see device_registry.py)
- Session owner (the caller keeps the returned session)
"""

import logging
import os
from typing import Any, List, Optional

import openvino as ov

from .inference_session import InferenceSession
from .runtime_config import NUM_CHANNELS, RuntimeConfig
from .schema import LoadStatus, PrepareResult

logger = logging.getLogger(__name__)


class ModelPreparer:
    """
    Reads, reshapes and compiles style models against a device.

    One preparer is shared by all loads of a host; it holds no
    per-model state.
    """

    def __init__(self, core: Optional[Any] = None, config: Optional[RuntimeConfig] = None):
        """
        Args:
            core: openvino.Core to use (a new Core is created if omitted)
            config: Compile/cache policy (defaults if omitted)
        """
        self.core = core if core is not None else ov.Core()
        self.config = config or RuntimeConfig()

    def configure_cache(self) -> bool:
        """
        Point the runtime's compilation cache at config.cache_dir.

        Returns:
            True if the cache was configured, False otherwise

        A cache failure never blocks loading; compilation simply
        happens from scratch every time.
        """
        cache_dir = self.config.cache_dir
        if not cache_dir:
            return False

        try:
            os.makedirs(cache_dir, exist_ok=True)
            self.core.set_property(self.config.cache_device, {"CACHE_DIR": cache_dir})
            return True
        except Exception as e:
            logger.warning(
                f"Compilation cache unavailable for {self.config.cache_device} at {cache_dir!r}: {e}"
            )
            return False

    def prepare_session(
        self,
        model_path: str,
        device: str,
        width: int,
        height: int
    ) -> PrepareResult:
        """
        Load, reshape and compile a model, then create its session.

        Args:
            model_path: Path to the model (OpenVINO IR .xml, .onnx, ...)
            device: Device descriptor or comma-separated priority list
            width: Requested input width
            height: Requested input height

        Returns:
            PrepareResult with status, session and ACTUAL dimensions
        """
        self.configure_cache()

        logger.info(f"Loading model {model_path!r}")
        try:
            model = self.core.read_model(model_path)
        except Exception as e:
            logger.error(f"Failed to read model {model_path!r}: {e}")
            return PrepareResult(
                status=LoadStatus.MODEL_LOAD_FAILED,
                session=None,
                width=width,
                height=height,
                message=f"Model load failed: {e}"
            )

        if len(model.inputs) != 1 or len(model.outputs) != 1:
            message = (
                f"Model must have exactly one input and one output "
                f"(got {len(model.inputs)} inputs, {len(model.outputs)} outputs)"
            )
            logger.error(f"{message}: {model_path!r}")
            return PrepareResult(
                status=LoadStatus.MODEL_LOAD_FAILED,
                session=None,
                width=width,
                height=height,
                message=message
            )

        status = LoadStatus.OK
        message = None

        try:
            model.reshape([1, NUM_CHANNELS, height, width])
        except Exception as e:
            # Degraded: keep the model's native input shape
            logger.warning(f"Reshape to {width}x{height} failed, using native input shape: {e}")
            status = LoadStatus.RESHAPE_FAILED
            message = f"Reshape failed: {e}"

        try:
            compiled_model = self.core.compile_model(
                model,
                self.config.virtual_device,
                self.config.compile_properties(device)
            )
            session = InferenceSession(compiled_model, device)
        except Exception as e:
            logger.error(f"Failed to compile {model_path!r} for {device!r}: {e}")
            return PrepareResult(
                status=LoadStatus.COMPILE_FAILED,
                session=None,
                width=width,
                height=height,
                message=f"Compile failed: {e}"
            )

        logger.info(
            f"Model {model_path!r} compiled for {device!r} at {session.width}x{session.height}"
        )

        return PrepareResult(
            status=status,
            session=session,
            width=session.width,
            height=session.height,
            message=message,
            model=model
        )


def describe_model(model: Any) -> List[str]:
    """
    Describe a model's inputs and outputs (name, element type, shape).

    Args:
        model: openvino.Model

    Returns:
        Report lines, ready to print
    """
    lines = [f"model name: {model.get_friendly_name()}"]

    for kind, ports in (("input", model.inputs), ("output", model.outputs)):
        for port in ports:
            name = port.get_any_name() if port.get_names() else "NONE"
            lines.append(f"    {kind}s")
            lines.append(f"        {kind} name: {name}")
            lines.append(f"        {kind} type: {port.get_element_type()}")
            lines.append(f"        {kind} shape: {port.get_partial_shape()}")

    return lines
