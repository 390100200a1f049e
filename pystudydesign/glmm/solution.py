"""
User-facing solution type for compiled study designs.

Wraps a Result[MatrixSetParams] and provides matrix accessors, the
ordered named-matrix list consumed by power solvers, and a formatted
summary.
"""

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pystudydesign.core.result import Result
from pystudydesign.glmm import names
from pystudydesign.glmm._common import MatrixSetParams, NamedMatrix


@dataclass
class MatrixSetSolution:
    """
    User-facing result for compile_design().

    Matrices are read-only float64 arrays.
    """
    _result: Result[MatrixSetParams]

    @property
    def design(self) -> NDArray[np.floating[Any]]:
        """Essence design matrix X."""
        return self._result.params.design

    @property
    def beta(self) -> NDArray[np.floating[Any]]:
        return self._result.params.beta

    @property
    def beta_random(self) -> NDArray[np.floating[Any]] | None:
        return self._result.params.beta_random

    @property
    def between_contrast(self) -> NDArray[np.floating[Any]]:
        """Between-participant contrast C."""
        return self._result.params.between_contrast

    @property
    def between_contrast_random(self) -> NDArray[np.floating[Any]] | None:
        return self._result.params.between_contrast_random

    @property
    def within_contrast(self) -> NDArray[np.floating[Any]]:
        """Within-participant contrast U."""
        return self._result.params.within_contrast

    @property
    def theta_null(self) -> NDArray[np.floating[Any]]:
        return self._result.params.theta_null

    @property
    def sigma_error(self) -> NDArray[np.floating[Any]] | None:
        return self._result.params.sigma_error

    @property
    def sigma_outcome(self) -> NDArray[np.floating[Any]] | None:
        return self._result.params.sigma_outcome

    @property
    def sigma_gaussian_random(self) -> NDArray[np.floating[Any]] | None:
        return self._result.params.sigma_gaussian_random

    @property
    def sigma_outcome_gaussian_random(self) -> NDArray[np.floating[Any]] | None:
        return self._result.params.sigma_outcome_gaussian_random

    @property
    def gaussian_covariate(self) -> bool:
        return self._result.params.gaussian_covariate

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def named_matrices(self) -> tuple[NamedMatrix, ...]:
        """
        Matrices under their canonical names, in solver order.

        design, beta, [betaRandom], betweenSubjectContrast,
        [betweenSubjectContrastRandom], withinSubjectContrast, thetaNull,
        then sigmaError, or sigmaOutcome, sigmaGaussianRandom and
        sigmaOutcomeGaussianRandom when a Gaussian covariate is modeled.
        """
        p = self._result.params
        covariate = p.gaussian_covariate

        entries: list[tuple[str, NDArray[np.floating[Any]] | None]] = [
            (names.DESIGN, p.design),
            (names.BETA, p.beta),
        ]
        if covariate:
            entries.append((names.BETA_RANDOM, p.beta_random))
        entries.append((names.BETWEEN_SUBJECT_CONTRAST, p.between_contrast))
        if covariate:
            entries.append((names.BETWEEN_SUBJECT_CONTRAST_RANDOM, p.between_contrast_random))
        entries.append((names.WITHIN_SUBJECT_CONTRAST, p.within_contrast))
        entries.append((names.THETA_NULL, p.theta_null))
        if covariate:
            entries.append((names.SIGMA_OUTCOME, p.sigma_outcome))
            entries.append((names.SIGMA_GAUSSIAN_RANDOM, p.sigma_gaussian_random))
            entries.append((names.SIGMA_OUTCOME_GAUSSIAN_RANDOM, p.sigma_outcome_gaussian_random))
        else:
            entries.append((names.SIGMA_ERROR, p.sigma_error))

        return tuple(NamedMatrix(name=name, data=data) for name, data in entries)

    def summary(self) -> str:
        """Generate a text summary of the compiled matrix set."""
        info = self.info
        lines = [
            "GLMM Matrix Set",
            "=" * 60,
            f"View mode: {info.get('view_mode')}",
            f"Hypothesis: {info.get('hypothesis_type') or 'grand mean'}",
            f"Gaussian covariate: {'yes' if self.gaussian_covariate else 'no'}",
        ]
        if info.get('view_mode') == 'guided':
            lines.append(f"Between-participant levels: {list(info.get('between_levels', ()))}")
            lines.append(f"Repeated-measures levels: {list(info.get('repeated_levels', ()))}")
            lines.append(f"Responses: {info.get('n_responses')}")
            lines.append(f"Total cluster size: {info.get('total_cluster_size')}")

        for named in self.named_matrices():
            lines.append("")
            lines.append(f"{named.name} ({named.rows} x {named.columns}):")
            text = np.array2string(
                np.asarray(named.data), precision=4, suppress_small=True, max_line_width=100
            )
            lines.extend("  " + row for row in text.splitlines())

        if self.warnings:
            lines.append("")
            lines.append("Warnings:")
            for w in self.warnings:
                lines.append(f"  {w}")

        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"MatrixSetSolution(view_mode={self.info.get('view_mode')!r}, "
            f"design={self.design.shape}, beta={self.beta.shape}, "
            f"within_contrast={self.within_contrast.shape})"
        )
