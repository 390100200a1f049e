"""
Linear algebra kernels for pystudydesign.

All functions follow these conventions:
    - NumPy/SciPy on the CPU, float64 throughout
    - Inputs are 2D arrays; vectors are explicit rows or columns
    - Errors are raised immediately with clear messages

Submodules:
    products: Kronecker / row-wise direct products, constant fills
    polynomials: Orthogonal polynomial contrast coefficients
    qr: QR decomposition with numerical rank
"""

from pystudydesign.core.compute.linalg.products import (
    direct_product,
    filled,
    horizontal_append,
    identity,
    kron,
    kron_all,
    ones_column,
    ones_row,
)
from pystudydesign.core.compute.linalg.polynomials import (
    orthogonal_polynomial_coefficients,
    polynomial_degree,
)
from pystudydesign.core.compute.linalg.qr import QRResult, qr_cpu

__all__ = [
    # Products
    "kron",
    "kron_all",
    "direct_product",
    "horizontal_append",
    "filled",
    "ones_row",
    "ones_column",
    "identity",
    # Polynomials
    "orthogonal_polynomial_coefficients",
    "polynomial_degree",
    # QR decomposition
    "QRResult",
    "qr_cpu",
]
