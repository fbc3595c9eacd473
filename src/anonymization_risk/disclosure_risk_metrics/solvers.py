"""
Iterative root finding for fitting the statistical population models.

The Pitman and SNB estimators fit their parameters by solving a small system of
non-linear equations with a damped Newton-Raphson iteration. The iteration is
bounded by a maximum number of iterations, declares convergence once a full Newton
step changes the iterate by less than the requested accuracy, keeps iterates inside the
model's valid parameter domain by halving steps, and polls a cancellation token
at every iteration boundary.
"""

from typing import Callable, NamedTuple, Optional

import numpy as np

from anonymization_risk.utils import CancellationToken, is_cancelled

# Maximum number of times a Newton step is halved to stay inside the domain
_MAX_STEP_HALVINGS = 30


class NewtonResult(NamedTuple):
    """
    Outcome of a Newton-Raphson run.

    Attributes
    ----------
    solution : np.ndarray
        Last iterate; only meaningful when converged is True.
    converged : bool
        True if successive iterates differed by less than the accuracy.
    iterations : int
        Number of iterations performed.
    cancelled : bool
        True if the run was abandoned because cancellation was requested.
    """

    solution: np.ndarray
    converged: bool
    iterations: int
    cancelled: bool


def newton_raphson(
    equations: Callable[[np.ndarray], tuple[np.ndarray, np.ndarray]],
    initial_guess: np.ndarray,
    accuracy: float,
    max_iterations: int,
    in_domain: Callable[[np.ndarray], bool],
    cancellation: Optional[CancellationToken] = None,
) -> NewtonResult:
    """
    Solve ``F(x) = 0`` with a damped Newton-Raphson iteration.

    Parameters
    ----------
    equations : Callable[[np.ndarray], Tuple[np.ndarray, np.ndarray]]
        Maps a point x to ``(F(x), J(x))``: the residual vector and its Jacobian.
    initial_guess : np.ndarray
        Starting point, must satisfy in_domain.
    accuracy : float
        Convergence threshold on the max-norm of the difference between
        successive iterates. Steps shortened to stay inside the domain do not
        count as converged.
    max_iterations : int
        Maximum number of iterations.
    in_domain : Callable[[np.ndarray], bool]
        Predicate for the valid parameter domain. A step leaving the domain is
        halved until it stays inside; the run fails if that is impossible.
    cancellation : CancellationToken, optional
        Polled before every iteration.

    Returns
    -------
    NewtonResult
        converged is False if max_iterations was exhausted, the Jacobian was
        singular, a residual was not finite, the domain could not be kept, or
        cancellation was requested.
    """
    x = np.asarray(initial_guess, dtype=np.float64)
    if not in_domain(x):
        return NewtonResult(x, False, 0, False)
    for iteration in range(1, max_iterations + 1):
        if is_cancelled(cancellation):
            return NewtonResult(x, False, iteration - 1, True)
        residual, jacobian = equations(x)
        if not (np.all(np.isfinite(residual)) and np.all(np.isfinite(jacobian))):
            return NewtonResult(x, False, iteration, False)
        try:
            step = np.linalg.solve(jacobian, residual)
        except np.linalg.LinAlgError:
            return NewtonResult(x, False, iteration, False)
        candidate = x - step
        halvings = 0
        while not in_domain(candidate):
            if halvings == _MAX_STEP_HALVINGS:
                return NewtonResult(x, False, iteration, False)
            step = step / 2.0
            candidate = x - step
            halvings += 1
        # Only full Newton steps count towards convergence
        if halvings == 0 and np.max(np.abs(candidate - x)) < accuracy:
            return NewtonResult(candidate, True, iteration, False)
        x = candidate
    return NewtonResult(x, False, max_iterations, False)


def forward_difference_jacobian(
    func: Callable[[np.ndarray], np.ndarray],
    x: np.ndarray,
    fx: np.ndarray,
    in_domain: Optional[Callable[[np.ndarray], bool]] = None,
) -> np.ndarray:
    """
    Approximate the Jacobian of func at x with forward differences.

    Parameters
    ----------
    func : Callable[[np.ndarray], np.ndarray]
        Vector-valued function.
    x : np.ndarray
        Point of evaluation.
    fx : np.ndarray
        ``func(x)``, passed in to avoid re-evaluating it.
    in_domain : Callable[[np.ndarray], bool], optional
        Valid domain of func. Where a forward step would leave it, a backward
        step is taken instead.

    Returns
    -------
    np.ndarray
        Matrix with ``J[i, j] = dF_i / dx_j``.
    """
    jacobian = np.empty((len(fx), len(x)), dtype=np.float64)
    for j in range(len(x)):
        h = np.sqrt(np.finfo(np.float64).eps) * max(1.0, abs(x[j]))
        shifted = x.copy()
        shifted[j] += h
        if in_domain is not None and not in_domain(shifted):
            h = -h
            shifted[j] = x[j] + h
        jacobian[:, j] = (func(shifted) - fx) / h
    return jacobian
