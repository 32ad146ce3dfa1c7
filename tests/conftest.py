"""Pytest configuration and shared fixtures for the formula test suite."""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import pytest  # noqa: E402
from utils import FixedMetrics, RecordingRenderer  # noqa: E402


@pytest.fixture
def renderer():
    """A fresh recording renderer with fixed metrics."""
    return RecordingRenderer()


@pytest.fixture
def metrics():
    return FixedMetrics()


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")
