"""
Style Transfer Runtime
Setup script for style_transfer_runtime package

This package provides the OpenVINO inference host and benchmark
driver for feed-forward neural style transfer models.
"""

from setuptools import setup, find_packages

setup(
    name="style_transfer_runtime",
    version="0.1.0",
    description="Real-time neural style transfer inference host",
    author="Style Transfer Runtime Developers",
    python_requires=">=3.9",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy>=1.20.0",
        "opencv-python-headless>=4.5.0",
        "PyYAML>=5.4.0",
        "openvino>=2023.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "style-transfer-benchmark=style_transfer_runtime.benchmark:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
