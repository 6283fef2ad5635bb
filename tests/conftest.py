"""Shared fixtures for the freespace test suite."""

import os
import sys

import pytest

# Ensure the src/ layout is importable without an install
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from freespace.core.geometry import Size  # noqa: E402
from freespace.runner.dataset import demo_sizes, generate_sizes  # noqa: E402


# Demo container from the reference load
BIN_W, BIN_H, BIN_D = 1500, 1500, 800


@pytest.fixture
def demo_container():
    return (BIN_W, BIN_H, BIN_D)


@pytest.fixture
def reference_sizes():
    """Twelve 510×290×210 cartons followed by ten 480×230×190."""
    return demo_sizes()


@pytest.fixture
def random_sizes():
    """Forty mid-sized boxes, reproducible."""
    return generate_sizes(count=40, seed=7, min_dim=100, max_dim=500)


@pytest.fixture
def carton():
    return Size(510, 290, 210)
