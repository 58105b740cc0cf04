"""
Polynomial reference curve: least-squares fit and evaluation.

Coefficients are ordered lowest degree first. The evaluation helpers use
only arithmetic operators, so they accept floats, numpy arrays and CasADi
symbols alike.
"""

import numpy as np

from .errors import FitError


def polyfit(xs, ys, degree: int) -> np.ndarray:
    """
    Fit a polynomial of the given degree to (xs, ys).

    Builds the Vandermonde matrix A (column j = x^j) and solves
    min ||A c - y|| through a Householder QR factorisation.

    Args:
        xs: Sample abscissae
        ys: Sample ordinates, same length as xs
        degree: Polynomial degree (>= 1)

    Returns:
        Coefficient vector of length degree + 1

    Raises:
        FitError: bad degree, too few/mismatched/non-finite points,
            or a rank-deficient design matrix
    """
    xs = np.asarray(xs, dtype=np.float64).ravel()
    ys = np.asarray(ys, dtype=np.float64).ravel()

    if degree < 1:
        raise FitError(f"Polynomial degree must be >= 1, got {degree}")
    if xs.shape != ys.shape:
        raise FitError(f"xs and ys differ in length ({xs.size} vs {ys.size})")
    if xs.size < degree + 1:
        raise FitError(
            f"Need at least {degree + 1} points for a degree {degree} fit, got {xs.size}")
    if not (np.all(np.isfinite(xs)) and np.all(np.isfinite(ys))):
        raise FitError("Waypoints contain non-finite values")

    A = np.ones((xs.size, degree + 1))
    for j in range(degree):
        A[:, j + 1] = A[:, j] * xs

    q, r = np.linalg.qr(A)
    diag = np.abs(np.diag(r))
    if diag.min() <= np.finfo(np.float64).eps * max(A.shape) * diag.max():
        raise FitError("Design matrix is singular; waypoints do not determine the polynomial")

    return np.linalg.solve(r, q.T @ ys)


def polyeval(coeffs, x):
    """Evaluate sum(coeffs[i] * x**i) with Horner's scheme."""
    coeffs = [float(c) for c in coeffs]
    result = coeffs[-1]
    for c in reversed(coeffs[:-1]):
        result = result * x + c
    return result


def polyeval_diff(coeffs, x):
    """Evaluate the derivative sum(i * coeffs[i] * x**(i-1))."""
    coeffs = [float(c) for c in coeffs]
    if len(coeffs) < 2:
        return 0.0
    deriv = [i * c for i, c in enumerate(coeffs)][1:]
    return polyeval(deriv, x)


def reference_heading(coeffs, x) -> float:
    """Tangent angle of the reference curve at x."""
    return float(np.arctan(polyeval_diff(coeffs, x)))
