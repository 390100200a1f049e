"""
pytest configuration and shared fixtures.
"""

import numpy as np
import pytest

from pystudydesign.core.compute.tolerances import CPU_FP64


@pytest.fixture
def tol():
    """Tolerance tier for comparing compiled matrices."""
    return CPU_FP64


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)
