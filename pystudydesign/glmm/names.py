"""
Canonical matrix names and reserved labels.

These strings are the contract with downstream power solvers: matrix
tables passed to StudyDesign.for_matrix() are keyed by them, and
MatrixSetSolution.named_matrices() emits them.
"""

DESIGN = "design"
BETA = "beta"
BETA_RANDOM = "betaRandom"
BETWEEN_SUBJECT_CONTRAST = "betweenSubjectContrast"
BETWEEN_SUBJECT_CONTRAST_RANDOM = "betweenSubjectContrastRandom"
WITHIN_SUBJECT_CONTRAST = "withinSubjectContrast"
THETA_NULL = "thetaNull"
SIGMA_ERROR = "sigmaError"
SIGMA_GAUSSIAN_RANDOM = "sigmaGaussianRandom"
SIGMA_OUTCOME = "sigmaOutcome"
SIGMA_OUTCOME_GAUSSIAN_RANDOM = "sigmaOutcomeGaussianRandom"

MATRIX_NAMES = frozenset({
    DESIGN,
    BETA,
    BETA_RANDOM,
    BETWEEN_SUBJECT_CONTRAST,
    BETWEEN_SUBJECT_CONTRAST_RANDOM,
    WITHIN_SUBJECT_CONTRAST,
    THETA_NULL,
    SIGMA_ERROR,
    SIGMA_GAUSSIAN_RANDOM,
    SIGMA_OUTCOME,
    SIGMA_OUTCOME_GAUSSIAN_RANDOM,
})

# Covariance table key for the covariance among response variables
RESPONSES_COVARIANCE_LABEL = "__RESPONSES__"
