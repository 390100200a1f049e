"""
Generic result container for all pystudydesign computations.

The Result class provides a standardized envelope that domain-specific
results use. This enables shared tooling for timing, reproducibility,
and serialization while allowing domains to define their own parameter
structures.

Design decisions:
    - Generic over parameter payload P for type safety
    - info dict for flexible metadata (view mode, hypothesis, dimensions)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True) for reproducibility
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for compiled study designs.

    Type Parameters:
        P: The domain-specific parameter payload type

    Attributes:
        params: Domain-specific payload (the compiled matrices)
        info: Structured metadata (view mode, hypothesis type, dimensions)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the code path that produced this result
        warnings: Non-fatal issues encountered during computation

    Examples:
        >>> Result(
        ...     params=MatrixSetParams(...),
        ...     info={'view_mode': 'guided', 'hypothesis_type': 'main_effect'},
        ...     timing={'total_seconds': 0.001},
        ...     backend_name='cpu_guided'
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
