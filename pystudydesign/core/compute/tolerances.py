"""
Numerical tolerances and limits.

Single place for the constants the compiler and the test suite compare
against. Everything runs in CPU double precision.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ToleranceTier:
    """Tolerance specification for numerical comparison."""
    rtol: float
    atol: float
    name: str
    description: str


# CPU reference: exact linear algebra up to rounding
CPU_FP64 = ToleranceTier(
    rtol=1e-10,
    atol=1e-12,
    name='cpu_fp64',
    description='CPU double precision',
)

# Eigenvalues of a covariance block may dip below zero by this much
# (relative to the largest eigenvalue magnitude) and still count as PSD.
PSD_TOLERANCE = 1e-10

# Highest orthogonal polynomial degree generated for trend contrasts
MAX_POLYNOMIAL_DEGREE = 3
