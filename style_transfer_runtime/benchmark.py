#!/usr/bin/env python3
"""
Style Transfer Runtime – Benchmark Driver

Standalone command-line driver: stylizes one image several times with the
same encode → infer → decode pipeline the host uses, and reports per-cycle
latency and throughput.

USAGE:
    style-transfer-benchmark MODEL IMAGE DEVICES [--output PATH]
                             [--iterations N] [--config runtime.yaml]

    DEVICES is a device priority list, e.g. "GPU,CPU".

This will:
1. Read IMAGE (BGR → RGB)
2. Reshape MODEL to the image size and compile it for DEVICES
3. Print model inputs/outputs and the available devices
4. Run N timed cycles, printing "Inference time: <ms>ms (<fps>fps)"
5. Write the stylized image to --output (default: output.png)
"""

import argparse
import logging
import sys
import time
from typing import List, Optional

import cv2
import numpy as np

from .frame_codec import FrameCodec
from .model_preparer import ModelPreparer, describe_model
from .runtime_config import RuntimeConfig
from .schema import LoadStatus


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        count = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if count < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {count}")
    return count


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="style-transfer-benchmark",
        description="Benchmark a feed-forward style transfer model on a single image."
    )
    p.add_argument("model", help="Path to the style model (OpenVINO IR .xml or .onnx)")
    p.add_argument("image", help="Path to the content image")
    p.add_argument("devices", help='Device priority list, e.g. "GPU,CPU"')
    p.add_argument("--output", default=None, help="Output image path (default: from config)")
    p.add_argument("--iterations", type=positive_int, default=None, help="Number of timed cycles")
    p.add_argument("--config", default=None, help="Path to runtime.yaml")
    return p


def run_cycles(
    session,
    codec: FrameCodec,
    rgb: np.ndarray,
    out: np.ndarray,
    iterations: int
) -> List[float]:
    """
    Run timed encode → infer → decode cycles.

    Args:
        session: InferenceSession sized like rgb
        codec: FrameCodec for the session dimensions
        rgb: (H, W, 3) uint8 content frame
        out: (H, W, 3) uint8 destination, holds the last stylized frame
        iterations: Number of cycles

    Returns:
        Cycle durations in milliseconds
    """
    durations = []
    for _ in range(iterations):
        start = time.perf_counter()

        codec.encode_rgb(rgb, session.input_data)
        session.infer()
        codec.decode_frame(session.output_data, out=out)

        duration_ms = (time.perf_counter() - start) * 1000
        durations.append(duration_ms)
        fps = 1000.0 / duration_ms if duration_ms > 0 else float("inf")
        print(f"Inference time: {duration_ms:.0f}ms ({fps:.2f}fps)")

    return durations


def run_benchmark(
    model_path: str,
    image_path: str,
    devices: str,
    config: RuntimeConfig,
    output_path: Optional[str] = None,
    iterations: Optional[int] = None,
    core=None
) -> int:
    """
    Benchmark a model on one image.

    Returns:
        Process exit code (0 on success, 1 if the image or model is unusable)
    """
    output_path = output_path or config.output_path
    if iterations is None:
        iterations = config.benchmark_iterations
    if iterations < 1:
        print(f"ERROR: iterations must be at least 1, got {iterations}", file=sys.stderr)
        return 1

    image = cv2.imread(image_path)
    if image is None:
        print(f"ERROR: Failed to read image: {image_path}", file=sys.stderr)
        return 1

    rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
    height, width = rgb.shape[:2]

    preparer = ModelPreparer(core=core, config=config)
    result = preparer.prepare_session(model_path, devices, width, height)

    if result.session is None:
        print(f"ERROR: {result.message}", file=sys.stderr)
        return 1

    if result.status == LoadStatus.RESHAPE_FAILED:
        # Native model size wins; resize the content image to match
        print(f"WARNING: {result.message}; resizing image to {result.width}x{result.height}")
        rgb = cv2.resize(rgb, (result.width, result.height), interpolation=cv2.INTER_LINEAR)

    session = result.session

    for line in describe_model(result.model):
        print(line)

    print("Available Devices:")
    for device in preparer.core.available_devices:
        print(device)

    print(f"Height: {session.height}")
    print(f"Width: {session.width}")

    codec = FrameCodec(session.width, session.height, config)
    out = np.empty((session.height, session.width, 3), dtype=np.uint8)

    durations = run_cycles(session, codec, rgb, out, iterations)

    mean_ms = float(np.mean(durations))
    if mean_ms > 0:
        print(f"Average: {mean_ms:.2f}ms ({1000.0 / mean_ms:.2f}fps)")

    cv2.imwrite(output_path, cv2.cvtColor(out, cv2.COLOR_RGB2BGR))
    print(f"Saved: {output_path}")

    session.close()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(message)s')
    args = build_parser().parse_args(argv)

    config = RuntimeConfig()
    if args.config:
        config = RuntimeConfig.from_yaml_file(args.config)
        if config is None:
            return 1

    return run_benchmark(
        model_path=args.model,
        image_path=args.image,
        devices=args.devices,
        config=config,
        output_path=args.output,
        iterations=args.iterations
    )


if __name__ == "__main__":
    sys.exit(main())
