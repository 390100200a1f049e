"""
Core infrastructure for pystudydesign.

This module provides shared abstractions, utilities, and numeric kernels
used by the study-design compiler.

Key components:
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Timing, tolerances, linear algebra primitives
"""

from pystudydesign.core.result import Result
from pystudydesign.core.exceptions import (
    PyStudyDesignError,
    ValidationError,
    DimensionError,
    ShapeMismatchError,
    InvalidStudyDesignError,
    NotPositiveSemidefiniteError,
    UnsupportedHypothesisError,
)

__all__ = [
    # Result
    "Result",
    # Exceptions
    "PyStudyDesignError",
    "ValidationError",
    "DimensionError",
    "ShapeMismatchError",
    "InvalidStudyDesignError",
    "NotPositiveSemidefiniteError",
    "UnsupportedHypothesisError",
]
