"""
Style Transfer Runtime – Configuration

RUNTIME CONFIGURATION PARSER

This module handles runtime.yaml parsing and validation.

CRITICAL RULES:
- Normalization constants belong to the MODEL, not the codec
- Defaults reproduce the pretrained fast-neural-style models exactly
- Invalid config → None (caller decides: defaults or exit)
- Parsed config is IMMUTABLE

WHAT THIS IS:
- runtime.yaml parser and validator
- Home of every architectural constant (mean/std, excluded devices, hints)

WHAT THIS IS NOT:
- Model registry
- Runtime configuration updates (no hot-reload)
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

# Number of color channels the network consumes and produces (RGB)
NUM_CHANNELS = 3

# ImageNet statistics the style networks were trained against (R, G, B)
DEFAULT_MEAN = (0.485, 0.456, 0.406)
DEFAULT_STD = (0.229, 0.224, 0.225)

# Low-power neural accelerators are not suited to full-frame style transfer
DEFAULT_EXCLUDED_DEVICES = ("GNA",)


@dataclass(frozen=True)
class RuntimeConfig:
    """
    Parsed and validated runtime configuration.

    This represents the policy side of the runtime:
    - Normalization (mean, std per R/G/B channel)
    - Device policy (excluded device classes)
    - Compile policy (virtual device, hints, cache)
    - Benchmark driver defaults

    IMMUTABLE after parsing.
    """

    # Normalization
    mean: Tuple[float, float, float] = DEFAULT_MEAN
    std: Tuple[float, float, float] = DEFAULT_STD

    # Device policy
    excluded_device_substrings: Tuple[str, ...] = DEFAULT_EXCLUDED_DEVICES

    # Compile policy
    virtual_device: str = "MULTI"
    performance_hint: str = "LATENCY"
    inference_precision: str = "f32"
    cache_dir: Optional[str] = "cache"
    cache_device: str = "GPU"

    # Benchmark driver
    benchmark_iterations: int = 5
    output_path: str = "output.png"

    def __post_init__(self):
        """Validate config on construction."""
        if len(self.mean) != NUM_CHANNELS or len(self.std) != NUM_CHANNELS:
            raise ValueError(f"mean and std must have exactly {NUM_CHANNELS} values")

        if any(s == 0 for s in self.std):
            raise ValueError("std values must be non-zero")

        if self.benchmark_iterations < 1:
            raise ValueError("benchmark_iterations must be at least 1")

    def compile_properties(self, device_priorities: str) -> Dict[str, str]:
        """
        Build the property map passed to Core.compile_model().

        Args:
            device_priorities: Comma-separated device list (e.g. "GPU,CPU")

        Returns:
            Property dict for the virtual device
        """
        return {
            "MULTI_DEVICE_PRIORITIES": device_priorities,
            "PERFORMANCE_HINT": self.performance_hint,
            "INFERENCE_PRECISION_HINT": self.inference_precision,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RuntimeConfig":
        """
        Build a config from a parsed runtime.yaml mapping.

        Raises:
            ValueError: If a section or field has the wrong type
        """
        normalization = _section(data, "normalization")
        devices = _section(data, "devices")
        compile_ = _section(data, "compile")
        benchmark = _section(data, "benchmark")

        kwargs: Dict[str, Any] = {}

        if "mean" in normalization:
            kwargs["mean"] = _float_triplet(normalization["mean"], "normalization.mean")
        if "std" in normalization:
            kwargs["std"] = _float_triplet(normalization["std"], "normalization.std")

        if "excluded" in devices:
            excluded = devices["excluded"]
            if not isinstance(excluded, list) or not all(isinstance(e, str) for e in excluded):
                raise ValueError("devices.excluded must be a list of strings")
            kwargs["excluded_device_substrings"] = tuple(excluded)

        for key in ("virtual_device", "performance_hint", "inference_precision", "cache_device"):
            if key in compile_:
                if not isinstance(compile_[key], str) or not compile_[key]:
                    raise ValueError(f"compile.{key} must be a non-empty string")
                kwargs[key] = compile_[key]

        if "cache_dir" in compile_:
            cache_dir = compile_["cache_dir"]
            if cache_dir is not None and not isinstance(cache_dir, str):
                raise ValueError("compile.cache_dir must be a string or null")
            kwargs["cache_dir"] = cache_dir

        if "iterations" in benchmark:
            if not isinstance(benchmark["iterations"], int):
                raise ValueError("benchmark.iterations must be an integer")
            kwargs["benchmark_iterations"] = benchmark["iterations"]
        if "output_path" in benchmark:
            kwargs["output_path"] = str(benchmark["output_path"])

        return cls(**kwargs)

    @classmethod
    def from_yaml_file(cls, yaml_path: str) -> Optional["RuntimeConfig"]:
        """
        Parse and validate runtime.yaml file.

        Args:
            yaml_path: Path to runtime.yaml

        Returns:
            RuntimeConfig if valid, None if invalid

        FAILURE SEMANTICS:
        - Missing file → None
        - Invalid YAML → None
        - Invalid field types/values → None
        - Errors are logged, not raised
        """
        try:
            with open(yaml_path, 'r') as f:
                data = yaml.safe_load(f)

            # An empty file means "all defaults"
            if data is None:
                data = {}

            if not isinstance(data, dict):
                logger.error(f"runtime.yaml is not a valid YAML dict: {yaml_path}")
                return None

            config = cls.from_dict(data)
            logger.info(f"Loaded runtime config from {os.path.abspath(yaml_path)}")
            return config

        except FileNotFoundError:
            logger.error(f"runtime.yaml not found: {yaml_path}")
            return None
        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML in {yaml_path}: {e}")
            return None
        except (TypeError, ValueError) as e:
            logger.error(f"Invalid runtime config in {yaml_path}: {e}")
            return None

    def __repr__(self) -> str:
        return (
            f"RuntimeConfig(mean={self.mean!r}, "
            f"std={self.std!r}, "
            f"excluded={self.excluded_device_substrings!r}, "
            f"device={self.virtual_device!r}, "
            f"hint={self.performance_hint!r}, "
            f"precision={self.inference_precision!r})"
        )


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"{name} must be a mapping")
    return section


def _float_triplet(value: Any, name: str) -> Tuple[float, float, float]:
    if not isinstance(value, list) or len(value) != NUM_CHANNELS:
        raise ValueError(f"{name} must be a list of {NUM_CHANNELS} numbers")
    if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in value):
        raise ValueError(f"{name} must contain only numbers")
    return tuple(float(v) for v in value)


# EXAMPLE runtime.yaml:
#
# normalization:
#   mean: [0.485, 0.456, 0.406]
#   std: [0.229, 0.224, 0.225]
#
# devices:
#   excluded: [GNA]
#
# compile:
#   virtual_device: MULTI
#   performance_hint: LATENCY
#   inference_precision: f32
#   cache_dir: cache
#   cache_device: GPU
#
# benchmark:
#   iterations: 5
#   output_path: output.png
