"""
Pytest configuration for transcoder tests.
Provides shared movie fixtures.
"""

import sys
from pathlib import Path

# Add repository root and tests directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

import pytest  # noqa: E402
from movie_helpers import make_frames, make_header, make_movie  # noqa: E402


@pytest.fixture
def sample_header():
    return make_header()


@pytest.fixture
def sample_frames():
    return make_frames()


@pytest.fixture
def sample_movie():
    return make_movie()
