"""
The shifted negative binomial (SNB) estimator of the number of population uniques.

Chen and Keller-McNulty model the population as K equivalence classes whose sizes
F satisfy F - 1 ~ NegativeBinomial(r, p), so that every class has at least one
member and P(F = 1) = p^r. Each record is sampled independently with probability
pi (the sampling fraction), hence the observed size f of a class is
Binomial(F, pi). With q = 1 - p, D = p + q * pi, beta = q * pi / D and
c = (p / D)^r, the probability generating function of f yields

    P(f=0) = (1 - pi) * c
    P(f=1) = c * (pi + (1 - pi) * r * beta)
    P(f=2) = c * (pi * r * beta + (1 - pi) * r * (r + 1) / 2 * beta^2)

Only classes with f >= 1 are observed, so (r, p) are fitted by matching the
observed shares of size-1 and size-2 classes among the u sample classes:

    P(f=1) / (1 - P(f=0)) = f_1 / u
    P(f=2) / (1 - P(f=0)) = f_2 / u

The number of population classes is then K = u / (1 - P(f=0)) and the estimated
number of population uniques is K * p^r.

References
----------
G. Chen and S. Keller-McNulty, "Estimation of identification disclosure risk in
microdata," Journal of Official Statistics, vol. 14, no. 1, pp. 79-95, 1998.
"""

from typing import Optional

import numpy as np

from anonymization_risk.constants import DEFAULT_ACCURACY, DEFAULT_MAX_ITERATIONS
from anonymization_risk.disclosure_risk_metrics.estimates import (
    UniquenessEstimate,
    validate_estimator_inputs,
)
from anonymization_risk.disclosure_risk_metrics.solvers import (
    NewtonResult,
    forward_difference_jacobian,
    newton_raphson,
)
from anonymization_risk.equivalence_classes import EquivalenceClassHistogram
from anonymization_risk.utils import CancellationToken

# Bounds for the starting value of p
_MIN_INITIAL_P = 1e-6
_MAX_INITIAL_P = 1.0 - 1e-6


def snb_class_size_probabilities(params: np.ndarray, sampling_fraction: float) -> np.ndarray:
    """
    Probabilities that a population class is observed with 0, 1 or 2 records.

    Parameters
    ----------
    params : np.ndarray
        The point ``(r, p)``.
    sampling_fraction : float
        Probability pi that a record is sampled.

    Returns
    -------
    np.ndarray
        ``[P(f=0), P(f=1), P(f=2)]``.
    """
    r, p = params
    q = 1.0 - p
    d = p + q * sampling_fraction
    beta = q * sampling_fraction / d
    c = np.exp(r * np.log(p / d))
    return np.array(
        [
            (1.0 - sampling_fraction) * c,
            c * (sampling_fraction + (1.0 - sampling_fraction) * r * beta),
            c
            * (
                sampling_fraction * r * beta
                + (1.0 - sampling_fraction) * r * (r + 1.0) / 2.0 * beta**2
            ),
        ]
    )


def snb_residuals(
    params: np.ndarray, sampling_fraction: float, share_size_1: float, share_size_2: float
) -> np.ndarray:
    p0, p1, p2 = snb_class_size_probabilities(params, sampling_fraction)
    observed = 1.0 - p0
    return np.array([p1 / observed - share_size_1, p2 / observed - share_size_2])


def snb_in_domain(params: np.ndarray) -> bool:
    r, p = params
    return bool(r > 0.0 and 0.0 < p < 1.0)


def snb_initial_guess(histogram: EquivalenceClassHistogram, sampling_fraction: float) -> np.ndarray:
    """
    Starting point for the fit.

    For r = 1 the share of size-1 classes reduces to p / (p + q * pi), which is
    solved for p.
    """
    share_size_1 = histogram.num_classes_of_size(1) / histogram.num_classes
    p = (share_size_1 * sampling_fraction) / (
        1.0 - share_size_1 + share_size_1 * sampling_fraction
    )
    return np.array([1.0, float(np.clip(p, _MIN_INITIAL_P, _MAX_INITIAL_P))])


def fit_snb(
    histogram: EquivalenceClassHistogram,
    sampling_fraction: float,
    accuracy: float,
    max_iterations: int,
    cancellation: Optional[CancellationToken] = None,
) -> NewtonResult:
    share_size_1 = histogram.num_classes_of_size(1) / histogram.num_classes
    share_size_2 = histogram.num_classes_of_size(2) / histogram.num_classes

    def residuals(params: np.ndarray) -> np.ndarray:
        return snb_residuals(params, sampling_fraction, share_size_1, share_size_2)

    def equations(params: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        value = residuals(params)
        return value, forward_difference_jacobian(residuals, params, value, snb_in_domain)

    return newton_raphson(
        equations,
        snb_initial_guess(histogram, sampling_fraction),
        accuracy,
        max_iterations,
        snb_in_domain,
        cancellation,
    )


def estimate_population_uniques_snb(
    histogram: EquivalenceClassHistogram,
    sampling_fraction: float,
    sample_size: Optional[int] = None,
    accuracy: float = DEFAULT_ACCURACY,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    cancellation: Optional[CancellationToken] = None,
) -> UniquenessEstimate:
    """
    Estimate the number of population uniques with the SNB model.

    Parameters
    ----------
    histogram : EquivalenceClassHistogram
        Equivalence class sizes observed in the sample. Not modified.
    sampling_fraction : float
        Sample size divided by population size, in (0, 1].
    sample_size : int, optional
        Number of records in the sample, defaults to ``histogram.num_records``.
    accuracy : float, default=DEFAULT_ACCURACY
        Convergence threshold of the fit.
    max_iterations : int, default=DEFAULT_MAX_ITERATIONS
        Iteration bound of the fit.
    cancellation : CancellationToken, optional
        Polled at every iteration of the fit.

    Returns
    -------
    UniquenessEstimate
        Exactly 0 if the sample has no unique records; INVALID if the fit did not
        converge inside the parameter domain or was cancelled; COMPUTED otherwise.

    Raises
    ------
    ValueError
        If an argument is outside its valid range.
    """
    validate_estimator_inputs(histogram, sampling_fraction, sample_size, accuracy, max_iterations)
    if histogram.num_classes_of_size(1) == 0:
        return UniquenessEstimate.computed(0.0)

    result = fit_snb(histogram, sampling_fraction, accuracy, max_iterations, cancellation)
    if not result.converged:
        return UniquenessEstimate.invalid()
    r, p = result.solution
    p0 = snb_class_size_probabilities(result.solution, sampling_fraction)[0]
    num_population_classes = histogram.num_classes / (1.0 - p0)
    return UniquenessEstimate.computed(num_population_classes * p**r)
