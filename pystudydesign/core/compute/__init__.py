"""
Shared compute infrastructure for pystudydesign.

IMPORTANT: This is NOT where study-design logic lives. That goes in the
glmm package. This module contains shared NUMERIC infrastructure.

Submodules:
    timing: Execution timing utilities
    tolerances: Numerical tolerances and limits
    linalg: Linear algebra kernels (products, polynomials, QR)
"""

from pystudydesign.core.compute.timing import Timer, timed

__all__ = [
    # Timing
    "Timer",
    "timed",
]
