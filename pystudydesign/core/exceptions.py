"""
Exception hierarchy for pystudydesign.

All exceptions inherit from PyStudyDesignError to allow catching any
library-specific error. Domain-specific exceptions should inherit from
the appropriate base class here.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""


class PyStudyDesignError(Exception):
    """Base exception for all pystudydesign errors."""
    pass


class ValidationError(PyStudyDesignError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when array shapes don't match expected dimensions or
    when multiple arrays have inconsistent shapes.
    """
    pass


class ShapeMismatchError(DimensionError):
    """
    Compiled matrices do not conform to each other.

    Raised when a covariance descriptor's declared size disagrees with the
    dimension that owns it, or when the compiled X, B, C, U, Θ and Σ do not
    line up after all cluster expansions.

    Attributes:
        matrix_name: Name of the offending matrix
        expected: Expected shape (or dimension), if known
        actual: Actual shape (or dimension), if known
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        expected: tuple[int, ...] | int | None = None,
        actual: tuple[int, ...] | int | None = None,
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.expected = expected
        self.actual = actual


class InvalidStudyDesignError(ValidationError):
    """
    The study design is malformed or incomplete.

    Raised for empty category lists, missing covariance information for a
    declared dimension, non-square covariance data, hypothesis mappings that
    name unknown factors, and similar structural problems.
    """
    pass


class NotPositiveSemidefiniteError(InvalidStudyDesignError):
    """
    A covariance block does not describe a valid covariance structure.

    Attributes:
        matrix_name: Label of the dimension owning the covariance block
        min_eigenvalue: Minimum eigenvalue, if computed
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        min_eigenvalue: float | None = None
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.min_eigenvalue = min_eigenvalue


class UnsupportedHypothesisError(PyStudyDesignError):
    """
    No contrast rule exists for the requested hypothesis.

    Raised for hypothesis type / trend combinations without an implemented
    rule, or when the requested polynomial trend exceeds the degree the
    factor's levels can support.

    Attributes:
        hypothesis_type: The hypothesis type value, if known
        trend: The trend type value, if known
    """

    def __init__(
        self,
        message: str,
        hypothesis_type: str | None = None,
        trend: str | None = None,
    ):
        super().__init__(message)
        self.hypothesis_type = hypothesis_type
        self.trend = trend
