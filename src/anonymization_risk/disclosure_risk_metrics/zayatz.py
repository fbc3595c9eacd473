"""
Zayatz's estimator of the number of population uniques.

Zayatz assumes that the distribution of equivalence class sizes in the population
resembles the one observed in the sample. Under simple random sampling without
replacement, a population class of size i is observed exactly once in the sample
with hypergeometric probability h(i). Bayes' rule then gives the probability that
a sample unique is also a population unique:

    P(F=1 | f=1) = (f_1 / u) * h(1) / sum_i (f_i / u) * h(i)

where f_i is the number of sample classes of size i and u the number of sample
classes. The estimated number of population uniques is f_1 * P(F=1 | f=1).

References
----------
L. V. Zayatz, "Estimation of the percent of unique population elements on a
microdata file using the sample," Statistical Research Division Report Number:
Census/SRD/RR-91/08, U.S. Bureau of the Census, 1991.
"""

from typing import Optional

from scipy.stats import hypergeom

from anonymization_risk.constants import DEFAULT_ACCURACY, DEFAULT_MAX_ITERATIONS
from anonymization_risk.disclosure_risk_metrics.estimates import (
    UniquenessEstimate,
    validate_estimator_inputs,
)
from anonymization_risk.equivalence_classes import EquivalenceClassHistogram
from anonymization_risk.utils import CancellationToken, is_cancelled


def estimate_population_uniques_zayatz(
    histogram: EquivalenceClassHistogram,
    sampling_fraction: float,
    sample_size: Optional[int] = None,
    accuracy: float = DEFAULT_ACCURACY,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    cancellation: Optional[CancellationToken] = None,
) -> UniquenessEstimate:
    """
    Estimate the number of population uniques with Zayatz's model.

    Parameters
    ----------
    histogram : EquivalenceClassHistogram
        Equivalence class sizes observed in the sample. Not modified.
    sampling_fraction : float
        Sample size divided by population size, in (0, 1].
    sample_size : int, optional
        Number of records in the sample, defaults to ``histogram.num_records``.
    accuracy : float, default=DEFAULT_ACCURACY
        Accepted for a uniform estimator signature; the estimate is closed form.
    max_iterations : int, default=DEFAULT_MAX_ITERATIONS
        Accepted for a uniform estimator signature; the estimate is closed form.
    cancellation : CancellationToken, optional
        Polled once per distinct class size.

    Returns
    -------
    UniquenessEstimate
        Exactly 0 if the sample has no unique records; INVALID if cancelled or
        if no class size can be observed exactly once; COMPUTED otherwise.

    Raises
    ------
    ValueError
        If an argument is outside its valid range.
    """
    sample_size, population_size = validate_estimator_inputs(
        histogram, sampling_fraction, sample_size, accuracy, max_iterations
    )
    num_sample_uniques = histogram.num_classes_of_size(1)
    if num_sample_uniques == 0:
        return UniquenessEstimate.computed(0.0)

    population = max(int(round(population_size)), sample_size)
    num_classes = histogram.num_classes
    denominator = 0.0
    for size, count in zip(histogram.sizes, histogram.counts):
        if is_cancelled(cancellation):
            return UniquenessEstimate.invalid()
        denominator += (count / num_classes) * hypergeom.pmf(1, population, size, sample_size)
    if denominator == 0.0:
        return UniquenessEstimate.invalid()

    numerator = (num_sample_uniques / num_classes) * hypergeom.pmf(
        1, population, 1, sample_size
    )
    return UniquenessEstimate.computed(num_sample_uniques * (numerator / denominator))
