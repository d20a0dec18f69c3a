#!/usr/bin/env python3
"""
Setup script for the Dolphin movie transcoder
"""

from pathlib import Path

from setuptools import find_packages, setup


def read_version():
    """Read __version__ from the package without importing it."""
    init_path = Path(__file__).parent / "dtm_transcoder" / "__init__.py"
    for line in init_path.read_text().splitlines():
        if line.startswith("__version__"):
            return line.split("=")[1].strip().strip('"')
    raise RuntimeError("Unable to find __version__")


setup(
    name="dtm-transcoder",
    version=read_version(),
    description="Convert Dolphin TAS movies between binary .dtm and editable text",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "cdataclass",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-xdist>=3.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "dtm2txt=dtm_transcoder.cli:main",
        ],
    },
    zip_safe=False,
)
