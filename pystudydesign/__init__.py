"""
PyStudyDesign: study-design to GLMM matrix compilation for Python.

Translates a factorial study design (between-participant factors,
repeated measures, clustering, covariance structure and a hypothesis)
into the matrix set a general linear multivariate model power solver
consumes: X, B, C, U, Theta and Sigma.

Submodules:
    glmm: Study design, contrast and covariance construction, compiler
    core: Shared validation, results and linear algebra kernels
"""

__version__ = "0.1.0"

from pystudydesign import glmm
from pystudydesign.glmm import (
    StudyDesign,
    MatrixSetSolution,
    compile_design,
)

__all__ = [
    "__version__",
    "glmm",
    "StudyDesign",
    "MatrixSetSolution",
    "compile_design",
]
