"""
Result types shared by the population uniqueness estimators.

Every estimator produces a ``UniquenessEstimate``: a tagged value that is either
not computed yet, a computed non-negative number of population uniques, or
invalid because the model's assumptions were violated (failed or cancelled fit).
"""

import math
from enum import Enum
from typing import NamedTuple, Optional

from anonymization_risk.constants import NOT_DEFINED_NA
from anonymization_risk.equivalence_classes import EquivalenceClassHistogram

StatisticalPopulationModel = Enum(
    "StatisticalPopulationModel", ["PITMAN", "ZAYATZ", "SNB", "DANKAR"]
)

EstimateState = Enum("EstimateState", ["UNCOMPUTED", "COMPUTED", "INVALID"])


class UniquenessEstimate(NamedTuple):
    """
    Estimated number of records that are unique in the population.

    Attributes
    ----------
    state : EstimateState
        UNCOMPUTED, COMPUTED or INVALID.
    value : float
        The estimate when COMPUTED (always >= 0), NaN otherwise.
    """

    state: EstimateState
    value: float

    @classmethod
    def uncomputed(cls) -> "UniquenessEstimate":
        return cls(EstimateState.UNCOMPUTED, NOT_DEFINED_NA)

    @classmethod
    def invalid(cls) -> "UniquenessEstimate":
        return cls(EstimateState.INVALID, NOT_DEFINED_NA)

    @classmethod
    def computed(cls, value: float) -> "UniquenessEstimate":
        """
        Wrap a computed value, rejecting values outside the estimate's domain.

        Parameters
        ----------
        value : float
            Estimated number of population uniques.

        Returns
        -------
        UniquenessEstimate
            COMPUTED if value is finite and non-negative, INVALID otherwise.
        """
        value = float(value)
        if not math.isfinite(value) or value < 0.0:
            return cls.invalid()
        return cls(EstimateState.COMPUTED, value)

    @property
    def is_computed(self) -> bool:
        return self.state == EstimateState.COMPUTED

    @property
    def is_invalid(self) -> bool:
        return self.state == EstimateState.INVALID

    @property
    def is_acceptable(self) -> bool:
        """
        Whether the decision rule may select this estimate.

        A zero estimate is rejected as well as an invalid one: outside the
        degenerate no-sample-uniques case, zero indicates a mis-converged fit
        rather than provably zero risk.
        """
        return self.is_computed and self.value != 0.0


def validate_estimator_inputs(
    histogram: EquivalenceClassHistogram,
    sampling_fraction: float,
    sample_size: Optional[int],
    accuracy: float,
    max_iterations: int,
) -> tuple[int, float]:
    """
    Validate the arguments shared by all estimators.

    Parameters
    ----------
    histogram : EquivalenceClassHistogram
        Equivalence class sizes in the sample.
    sampling_fraction : float
        Sample size divided by population size, in (0, 1].
    sample_size : int or None
        Number of records in the sample; defaults to the records in histogram.
    accuracy : float
        Convergence threshold of the iterative fits, must be positive.
    max_iterations : int
        Iteration bound of the iterative fits, must be at least 1.

    Returns
    -------
    Tuple[int, float]
        The sample size and the population size it implies.

    Raises
    ------
    ValueError
        If any argument is outside its valid range.
    """
    if not 0.0 < sampling_fraction <= 1.0:
        raise ValueError(f"Sampling fraction must be in (0, 1], got {sampling_fraction}")
    if not accuracy > 0.0:
        raise ValueError(f"Accuracy must be positive, got {accuracy}")
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")
    if sample_size is None:
        sample_size = histogram.num_records
    if sample_size < histogram.num_records:
        raise ValueError(
            f"Sample size ({sample_size}) is smaller than the number of records in the "
            f"equivalence classes ({histogram.num_records})"
        )
    return int(sample_size), sample_size / sampling_fraction
