"""Tests for the per-frame style transfer host.

- Device boundary (count, names, bounds)
- load_model status codes and dimension write-back
- perform_inference all-or-nothing semantics
- Metrics and teardown
"""
import numpy as np
import pytest

from style_transfer_runtime import (
    DeviceIndexError,
    FrameStatus,
    LoadStatus,
    StyleTransferHost,
)

EXAMPLE_FRAME = [100, 150, 200, 255, 10, 20, 30, 255]
EXAMPLE_STYLIZED = [147, 150, 149, 255, 126, 121, 110, 255]


def _loaded(host, width=2, height=1):
    dims = [width, height]
    status = host.load_model("style.xml", 0, dims)
    assert status == LoadStatus.OK
    return dims


class TestDevices:

    def test_device_count_excludes_gna(self, host):
        assert host.get_device_count() == 2
        assert host.get_device_name(0) == "CPU"
        assert host.get_device_name(1) == "GPU.0"

    def test_device_name_out_of_range(self, host):
        with pytest.raises(DeviceIndexError):
            host.get_device_name(2)

    def test_independent_hosts(self, fake_core, config):
        """No state is shared between hosts."""
        a = StyleTransferHost(config=config, core=fake_core)
        b = StyleTransferHost(config=config, core=fake_core)
        a.load_model("style.xml", 0, [2, 1])

        assert a.session is not None
        assert b.session is None


class TestLoadModel:

    def test_success_keeps_requested_dims(self, host, fake_core):
        dims = [8, 5]

        status = host.load_model("style.xml", 1, dims)

        assert status == LoadStatus.OK
        assert status == 0
        assert dims == [8, 5]
        assert (host.width, host.height) == (8, 5)
        assert fake_core.compile_calls[0][2]["MULTI_DEVICE_PRIORITIES"] == "GPU.0"

    def test_degraded_reshape_reports_native_dims(self, host, fake_core):
        fake_core.reshape_fails = True
        dims = [640, 480]

        status = host.load_model("style.xml", 0, dims)

        assert status == LoadStatus.RESHAPE_FAILED
        assert status == 2
        assert dims == [6, 4]
        assert host.session is not None

    def test_unreadable_model_keeps_previous_session(self, host, fake_core):
        _loaded(host)
        previous = host.session
        fake_core.unreadable_paths.add("broken.xml")
        dims = [16, 16]

        status = host.load_model("broken.xml", 0, dims)

        assert status == LoadStatus.MODEL_LOAD_FAILED
        assert status == 1
        assert dims == [16, 16]
        assert host.session is previous
        assert not previous.closed

    def test_invalid_device_index(self, host, fake_core):
        dims = [2, 1]

        status = host.load_model("style.xml", 5, dims)

        assert status == LoadStatus.INVALID_DEVICE
        assert host.session is None
        assert fake_core.models == []

    def test_compile_failure(self, host, fake_core):
        fake_core.compile_fails = True

        assert host.load_model("style.xml", 0, [2, 1]) == LoadStatus.COMPILE_FAILED
        assert host.session is None

    def test_compile_failure_keeps_previous_session(self, host, fake_core):
        _loaded(host)
        previous = host.session
        fake_core.compile_fails = True
        dims = [16, 16]

        status = host.load_model("style.xml", 1, dims)

        assert status == LoadStatus.COMPILE_FAILED
        assert status == 4
        assert dims == [16, 16]
        assert host.session is previous
        assert not previous.closed
        assert (host.width, host.height) == (2, 1)
        assert host.perform_inference(bytearray(EXAMPLE_FRAME)).ok

    def test_reload_replaces_and_closes_session(self, host):
        _loaded(host)
        first = host.session

        _loaded(host, width=3, height=3)

        assert host.session is not first
        assert first.closed
        assert (host.width, host.height) == (3, 3)

    def test_enumerates_devices_when_caller_did_not(self, fake_core, config):
        host = StyleTransferHost(config=config, core=fake_core)

        assert host.load_model("style.xml", 0, [2, 1]) == LoadStatus.OK


class TestPerformInference:

    def test_example_frame_in_place(self, host):
        _loaded(host)
        frame = bytearray(EXAMPLE_FRAME)

        result = host.perform_inference(frame)

        assert result.ok
        assert result.status == FrameStatus.OK
        assert list(frame) == EXAMPLE_STYLIZED

    def test_numpy_frame(self, host):
        _loaded(host)
        frame = np.array(EXAMPLE_FRAME, dtype=np.uint8).reshape(1, 2, 4)

        assert host.perform_inference(frame).ok
        assert frame.reshape(-1).tolist() == EXAMPLE_STYLIZED

    def test_memoryview_frame(self, host):
        _loaded(host)
        backing = bytearray(EXAMPLE_FRAME)

        assert host.perform_inference(memoryview(backing)).ok
        assert list(backing) == EXAMPLE_STYLIZED

    def test_output_alpha_is_opaque(self, host):
        _loaded(host)
        frame = bytearray([100, 150, 200, 0, 10, 20, 30, 9])

        host.perform_inference(frame)

        assert frame[3] == 255
        assert frame[7] == 255

    @pytest.mark.parametrize("length", [4, 7, 9, 16])
    def test_wrong_length_is_contained(self, host, length):
        """Buffer untouched, no exception."""
        _loaded(host)
        frame = bytearray(range(length))
        before = bytes(frame)

        result = host.perform_inference(frame)

        assert result.status == FrameStatus.FAILED
        assert "FrameSizeError" in result.error
        assert bytes(frame) == before

    def test_no_model_loaded(self, host):
        frame = bytearray(EXAMPLE_FRAME)

        result = host.perform_inference(frame)

        assert result.status == FrameStatus.FAILED
        assert "No model loaded" in result.error
        assert list(frame) == EXAMPLE_FRAME

    def test_read_only_buffer(self, host):
        _loaded(host)

        result = host.perform_inference(bytes(EXAMPLE_FRAME))

        assert result.status == FrameStatus.FAILED

    def test_inference_exception_leaves_buffer_unmodified(self, host, fake_core):
        def broken_network(x):
            raise RuntimeError("device lost")

        fake_core.network = broken_network
        _loaded(host)
        frame = bytearray(EXAMPLE_FRAME)

        result = host.perform_inference(frame)

        assert result.status == FrameStatus.FAILED
        assert "device lost" in result.error
        assert list(frame) == EXAMPLE_FRAME

    def test_network_output_is_denormalized(self, host, fake_core):
        """A network emitting zeros yields the mean color."""
        fake_core.network = lambda x: np.zeros_like(x)
        _loaded(host)
        frame = bytearray(EXAMPLE_FRAME)

        host.perform_inference(frame)

        # round(0.485*255), round(0.456*255), round(0.406*255)
        assert list(frame) == [124, 116, 104, 255, 124, 116, 104, 255]

    def test_repeated_calls_reuse_session_tensors(self, host, fake_core):
        _loaded(host)
        for _ in range(3):
            assert host.perform_inference(bytearray(EXAMPLE_FRAME)).ok

        assert len(fake_core.compiled[0].requests) == 1
        assert fake_core.compiled[0].requests[0].infer_count == 3


class TestMetricsAndTeardown:

    def test_metrics_count_frames_and_errors(self, host):
        _loaded(host)
        host.perform_inference(bytearray(EXAMPLE_FRAME))
        host.perform_inference(bytearray(3))

        metrics = host.get_metrics()

        assert metrics["total_frames"] == 2
        assert metrics["total_errors"] == 1
        assert metrics["error_rate"] == 0.5
        assert metrics["avg_latency_ms"] >= 0.0

    def test_empty_metrics(self, host):
        assert host.get_metrics() == {
            "total_frames": 0,
            "total_errors": 0,
            "avg_latency_ms": 0.0,
            "error_rate": 0.0,
        }

    def test_unload_model(self, host):
        _loaded(host)
        session = host.session

        host.unload_model()

        assert host.session is None
        assert session.closed
        assert (host.width, host.height) == (0, 0)
        assert host.perform_inference(bytearray(EXAMPLE_FRAME)).status == FrameStatus.FAILED
