"""
Pytest configuration and fixtures.

The OpenVINO runtime is replaced by small in-memory fakes so tests need
neither model files nor accelerators. The fake network is the identity
function unless a test swaps it.
"""
from typing import Callable, Dict, List, Optional

import numpy as np
import pytest

from style_transfer_runtime import RuntimeConfig, StyleTransferHost


class FakeTensor:
    def __init__(self, shape: List[int], dtype=np.float32):
        self.shape = list(shape)
        self.data = np.zeros(shape, dtype=dtype)


class FakePort:
    def __init__(self, name: Optional[str], shape: List[int]):
        self._name = name
        self._shape = shape  # shared with the owning model, follows reshape()

    def get_names(self):
        return {self._name} if self._name else set()

    def get_any_name(self):
        return self._name

    def get_element_type(self):
        return "<Type: 'float32'>"

    def get_partial_shape(self):
        return "[" + ",".join(str(d) for d in self._shape) + "]"


class FakeModel:
    def __init__(
        self,
        shape: List[int],
        reshape_fails: bool = False,
        num_inputs: int = 1,
        num_outputs: int = 1,
    ):
        self.shape = list(shape)
        self.reshape_fails = reshape_fails
        self.reshape_calls: List[List[int]] = []
        self.inputs = [FakePort("input1", self.shape) for _ in range(num_inputs)]
        self.outputs = [FakePort(None, self.shape) for _ in range(num_outputs)]

    def get_friendly_name(self):
        return "fake_style_model"

    def reshape(self, shape):
        self.reshape_calls.append(list(shape))
        if self.reshape_fails:
            raise RuntimeError("Model does not support dynamic reshape")
        self.shape[:] = list(shape)


class FakeInferRequest:
    def __init__(self, shape: List[int], network: Callable[[np.ndarray], np.ndarray], input_dtype):
        self._input = FakeTensor(shape, dtype=input_dtype)
        self._output = FakeTensor(shape)
        self._network = network
        self.infer_count = 0

    def get_input_tensor(self, index=0):
        assert index == 0
        return self._input

    def get_output_tensor(self, index=0):
        assert index == 0
        return self._output

    def infer(self):
        self.infer_count += 1
        self._output.data[...] = self._network(self._input.data)


class FakeCompiledModel:
    def __init__(self, shape, network, input_dtype=np.float32):
        self.shape = list(shape)
        self.network = network
        self.input_dtype = input_dtype
        self.requests: List[FakeInferRequest] = []

    def create_infer_request(self):
        request = FakeInferRequest(self.shape, self.network, self.input_dtype)
        self.requests.append(request)
        return request


class FakeCore:
    """Stands in for openvino.Core."""

    def __init__(self, devices: Optional[List[str]] = None, native_shape=(1, 3, 4, 6)):
        self.available_devices = list(devices if devices is not None else ["CPU", "GPU.0", "GNA"])
        self.native_shape = list(native_shape)
        self.network: Callable[[np.ndarray], np.ndarray] = lambda x: x.copy()
        self.input_dtype = np.float32

        self.unreadable_paths = set()
        self.reshape_fails = False
        self.compile_fails = False
        self.cache_fails = False
        self.num_inputs = 1
        self.num_outputs = 1

        self.properties: Dict[str, dict] = {}
        self.compile_calls: List[tuple] = []
        self.models: List[FakeModel] = []
        self.compiled: List[FakeCompiledModel] = []

    def set_property(self, device, properties):
        if self.cache_fails:
            raise RuntimeError(f"Device with \"{device}\" name is not registered")
        self.properties.setdefault(device, {}).update(properties)

    def read_model(self, path):
        if path in self.unreadable_paths:
            raise RuntimeError(f"Unable to read the model: {path}")
        model = FakeModel(
            self.native_shape,
            reshape_fails=self.reshape_fails,
            num_inputs=self.num_inputs,
            num_outputs=self.num_outputs,
        )
        self.models.append(model)
        return model

    def compile_model(self, model, device_name, properties):
        self.compile_calls.append((model, device_name, dict(properties)))
        if self.compile_fails:
            raise RuntimeError(f"Failed to compile for {device_name}")
        compiled = FakeCompiledModel(model.shape, self.network, self.input_dtype)
        self.compiled.append(compiled)
        return compiled


@pytest.fixture
def fake_core() -> FakeCore:
    """Fake runtime with CPU, GPU.0 and an excluded GNA device."""
    return FakeCore()


@pytest.fixture
def config(tmp_path) -> RuntimeConfig:
    """Default runtime config with the compilation cache inside tmp_path."""
    return RuntimeConfig(cache_dir=str(tmp_path / "cache"))


@pytest.fixture
def host(fake_core, config) -> StyleTransferHost:
    """Host bound to the fake runtime, devices already enumerated."""
    host = StyleTransferHost(config=config, core=fake_core)
    host.get_device_count()
    return host


@pytest.fixture
def reference_decode():
    """Scalar reference implementation of the decode formula."""
    return _reference_decode


def _reference_decode(values, mean, std) -> np.ndarray:
    """Per-element decode: clamp(round((v * std + mean) * 255), 0, 255), float32 math."""
    out = np.empty(len(values), dtype=np.uint8)
    for i, v in enumerate(values):
        v = (np.float32(v) * np.float32(std) + np.float32(mean)) * np.float32(255.0)
        v = min(max(float(v), 0.0), 255.0)
        out[i] = int(np.rint(v))
    return out
