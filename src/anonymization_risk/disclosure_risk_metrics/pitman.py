"""
Pitman's estimator of the number of population uniques.

The sample's partition into equivalence classes is modelled by the Pitman sampling
formula (two-parameter Poisson-Dirichlet process) with parameters theta and alpha.
Following Hoshino, the parameters are fitted by maximum likelihood. For a sample
of n records in u classes, f_j of them of size j, the log-likelihood is

    L(theta, alpha) = sum_{i=1}^{u-1} log(theta + i * alpha)
                      - sum_{j=1}^{n-1} log(theta + j)
                      + sum_{k>=1} w_k * log(k - alpha)

where w_k is the number of classes larger than k. Its stationary point is found
with Newton-Raphson on the analytic gradient and Hessian. The expected number of
unique records in a population of size N is then

    N * Gamma(theta + 1) * Gamma(theta + alpha + N - 1)
      / (Gamma(theta + alpha) * Gamma(theta + N))

which approaches Gamma(theta + 1) / Gamma(theta + alpha) * N^alpha for large N.

References
----------
N. Hoshino, "Applying Pitman's sampling formula to microdata disclosure risk
assessment," Journal of Official Statistics, vol. 17, no. 4, pp. 499-520, 2001.
"""

from typing import NamedTuple, Optional

import numpy as np
from scipy.special import gammaln

from anonymization_risk.constants import DEFAULT_ACCURACY, DEFAULT_MAX_ITERATIONS
from anonymization_risk.disclosure_risk_metrics.estimates import (
    UniquenessEstimate,
    validate_estimator_inputs,
)
from anonymization_risk.disclosure_risk_metrics.solvers import NewtonResult, newton_raphson
from anonymization_risk.equivalence_classes import EquivalenceClassHistogram
from anonymization_risk.utils import CancellationToken


class PitmanStatistics(NamedTuple):
    """Sufficient statistics of a histogram for the Pitman log-likelihood."""

    i: np.ndarray  # 1 .. u-1
    j: np.ndarray  # 1 .. n-1
    k: np.ndarray  # 1 .. max class size - 1
    w: np.ndarray  # number of classes larger than k


def pitman_statistics(histogram: EquivalenceClassHistogram) -> PitmanStatistics:
    num_classes = histogram.num_classes
    num_records = histogram.num_records
    max_size = histogram.max_size
    dense_counts = np.zeros(max_size + 2, dtype=np.float64)
    dense_counts[histogram.sizes] = histogram.counts
    # classes_of_size_at_least[s] = number of classes with size >= s
    classes_of_size_at_least = np.cumsum(dense_counts[::-1])[::-1]
    k = np.arange(1, max_size, dtype=np.float64)
    return PitmanStatistics(
        i=np.arange(1, num_classes, dtype=np.float64),
        j=np.arange(1, num_records, dtype=np.float64),
        k=k,
        w=classes_of_size_at_least[2 : max_size + 1],
    )


def pitman_log_likelihood(params: np.ndarray, stats: PitmanStatistics) -> float:
    theta, alpha = params
    return float(
        np.sum(np.log(theta + stats.i * alpha))
        - np.sum(np.log(theta + stats.j))
        + np.sum(stats.w * np.log(stats.k - alpha))
    )


def pitman_gradient_and_hessian(
    params: np.ndarray, stats: PitmanStatistics
) -> tuple[np.ndarray, np.ndarray]:
    """
    Gradient and Hessian of the Pitman log-likelihood.

    Parameters
    ----------
    params : np.ndarray
        The point ``(theta, alpha)``.
    stats : PitmanStatistics
        Output of pitman_statistics.

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        The gradient (length 2) and the symmetric 2x2 Hessian.
    """
    theta, alpha = params
    a = 1.0 / (theta + stats.i * alpha)
    b = 1.0 / (theta + stats.j)
    c = 1.0 / (stats.k - alpha)
    gradient = np.array(
        [
            np.sum(a) - np.sum(b),
            np.sum(stats.i * a) - np.sum(stats.w * c),
        ]
    )
    d_theta_d_alpha = -np.sum(stats.i * a**2)
    hessian = np.array(
        [
            [-np.sum(a**2) + np.sum(b**2), d_theta_d_alpha],
            [d_theta_d_alpha, -np.sum(stats.i**2 * a**2) - np.sum(stats.w * c**2)],
        ]
    )
    return gradient, hessian


def pitman_in_domain(params: np.ndarray) -> bool:
    theta, alpha = params
    return bool(0.0 <= alpha < 1.0 and theta > -alpha)


def pitman_initial_guess(histogram: EquivalenceClassHistogram) -> np.ndarray:
    """
    Starting point for the maximum-likelihood fit.

    For large samples the share of singleton classes approaches alpha, and the
    number of classes approaches Gamma(theta + 1) / (alpha * Gamma(theta + alpha))
    * n^alpha, where the gamma ratio behaves like theta^(1 - alpha).
    """
    num_classes = histogram.num_classes
    alpha = float(np.clip(histogram.num_classes_of_size(1) / num_classes, 0.05, 0.95))
    theta = (num_classes * alpha / histogram.num_records**alpha) ** (1.0 / (1.0 - alpha))
    return np.array([max(theta, 0.1), alpha])


def fit_pitman(
    histogram: EquivalenceClassHistogram,
    accuracy: float,
    max_iterations: int,
    cancellation: Optional[CancellationToken] = None,
) -> NewtonResult:
    stats = pitman_statistics(histogram)
    return newton_raphson(
        lambda params: pitman_gradient_and_hessian(params, stats),
        pitman_initial_guess(histogram),
        accuracy,
        max_iterations,
        pitman_in_domain,
        cancellation,
    )


def estimate_population_uniques_pitman(
    histogram: EquivalenceClassHistogram,
    sampling_fraction: float,
    sample_size: Optional[int] = None,
    accuracy: float = DEFAULT_ACCURACY,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    cancellation: Optional[CancellationToken] = None,
) -> UniquenessEstimate:
    """
    Estimate the number of population uniques with Pitman's model.

    Parameters
    ----------
    histogram : EquivalenceClassHistogram
        Equivalence class sizes observed in the sample. Not modified.
    sampling_fraction : float
        Sample size divided by population size, in (0, 1].
    sample_size : int, optional
        Number of records in the sample, defaults to ``histogram.num_records``.
    accuracy : float, default=DEFAULT_ACCURACY
        Convergence threshold of the maximum-likelihood fit.
    max_iterations : int, default=DEFAULT_MAX_ITERATIONS
        Iteration bound of the maximum-likelihood fit.
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

    Notes
    -----
    The fit does not depend on the sampling fraction. For sparse histograms,
    with few classes larger than 1, the likelihood grows towards negative alpha
    and the iterates are pushed against the alpha = 0 boundary (the Ewens
    model). Steps shortened at the boundary never count as converged, so such
    histograms yield INVALID, and Dankar's rule falls back to Zayatz's model.
    """
    _, population_size = validate_estimator_inputs(
        histogram, sampling_fraction, sample_size, accuracy, max_iterations
    )
    if histogram.num_classes_of_size(1) == 0:
        return UniquenessEstimate.computed(0.0)

    result = fit_pitman(histogram, accuracy, max_iterations, cancellation)
    if not result.converged:
        return UniquenessEstimate.invalid()
    theta, alpha = result.solution
    log_uniques = (
        np.log(population_size)
        + gammaln(theta + 1.0)
        - gammaln(theta + alpha)
        + gammaln(theta + alpha + population_size - 1.0)
        - gammaln(theta + population_size)
    )
    return UniquenessEstimate.computed(float(np.exp(log_uniques)))
