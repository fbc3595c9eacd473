"""
Population uniqueness risk: Dankar et al.'s decision rule and the risk facade.

No single statistical model estimates population uniqueness well across all
sampling fractions. Dankar et al. evaluated the Zayatz, Pitman and SNB models on
real datasets and derived a decision rule that picks the model to trust:

- For sampling fractions up to 10%, use Pitman's model, falling back to Zayatz's
  model if Pitman's fit is not usable.
- Above 10%, use the smaller of the Zayatz and SNB estimates, falling back to
  Zayatz's model if SNB's fit is not usable.

``PopulationUniquenessRisk`` exposes the estimate of every model and of the
decision rule, as absolute numbers of population uniques and as fractions of the
population, computing each estimate lazily and at most once.

References
----------
F. K. Dankar, K. El Emam, A. Neisa, and T. Roffey, "Estimating the
re-identification risk of clinical data sets," BMC Medical Informatics and
Decision Making, vol. 12, no. 1, p. 66, 2012. doi: 10.1186/1472-6947-12-66.
"""

import logging
from typing import Callable, Optional

from anonymization_risk.constants import (
    DANKAR_SAMPLING_FRACTION_THRESHOLD,
    DEFAULT_ACCURACY,
    DEFAULT_MAX_ITERATIONS,
)
from anonymization_risk.disclosure_risk_metrics.estimates import (
    EstimateState,
    StatisticalPopulationModel,
    UniquenessEstimate,
    validate_estimator_inputs,
)
from anonymization_risk.disclosure_risk_metrics.pitman import estimate_population_uniques_pitman
from anonymization_risk.disclosure_risk_metrics.snb import estimate_population_uniques_snb
from anonymization_risk.disclosure_risk_metrics.zayatz import estimate_population_uniques_zayatz
from anonymization_risk.equivalence_classes import EquivalenceClassHistogram
from anonymization_risk.population import PopulationModel
from anonymization_risk.utils import CancellationToken, RiskCallbacks

_MODEL_TO_ESTIMATOR = {
    StatisticalPopulationModel.ZAYATZ: estimate_population_uniques_zayatz,
    StatisticalPopulationModel.PITMAN: estimate_population_uniques_pitman,
    StatisticalPopulationModel.SNB: estimate_population_uniques_snb,
}


def apply_dankar_decision_rule(
    num_classes_of_size_1: int,
    sampling_fraction: float,
    get_estimate: Callable[[StatisticalPopulationModel], UniquenessEstimate],
) -> tuple[UniquenessEstimate, StatisticalPopulationModel]:
    """
    Select the estimate to trust according to Dankar et al.

    Parameters
    ----------
    num_classes_of_size_1 : int
        Number of records that are unique in the sample.
    sampling_fraction : float
        Sample size divided by population size.
    get_estimate : Callable[[StatisticalPopulationModel], UniquenessEstimate]
        Returns the estimate of ZAYATZ, PITMAN or SNB. Only the models the rule
        needs are requested.

    Returns
    -------
    Tuple[UniquenessEstimate, StatisticalPopulationModel]
        The selected estimate, exactly as returned by get_estimate, and the model
        it came from. If there are no sample uniques, the estimate is exactly 0
        and the model is DANKAR, without any model being requested.

    Notes
    -----
    A model's estimate is only selected if it is acceptable: computed and not
    zero. Zayatz's model is the fallback of last resort and is selected without
    this check. Above the sampling fraction threshold, Zayatz is preferred over
    SNB only if its estimate is strictly smaller.
    """
    if num_classes_of_size_1 == 0:
        return UniquenessEstimate.computed(0.0), StatisticalPopulationModel.DANKAR

    if sampling_fraction <= DANKAR_SAMPLING_FRACTION_THRESHOLD:
        pitman = get_estimate(StatisticalPopulationModel.PITMAN)
        if pitman.is_acceptable:
            return pitman, StatisticalPopulationModel.PITMAN
        return get_estimate(StatisticalPopulationModel.ZAYATZ), StatisticalPopulationModel.ZAYATZ

    snb = get_estimate(StatisticalPopulationModel.SNB)
    zayatz = get_estimate(StatisticalPopulationModel.ZAYATZ)
    if snb.is_acceptable:
        if zayatz.value < snb.value:
            return zayatz, StatisticalPopulationModel.ZAYATZ
        return snb, StatisticalPopulationModel.SNB
    return zayatz, StatisticalPopulationModel.ZAYATZ


def select_model(
    histogram: EquivalenceClassHistogram,
    sampling_fraction: float,
    sample_size: Optional[int] = None,
    accuracy: float = DEFAULT_ACCURACY,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    cancellation: Optional[CancellationToken] = None,
) -> tuple[UniquenessEstimate, StatisticalPopulationModel]:
    """
    Estimate population uniques with the model chosen by Dankar et al.'s rule.

    Parameters
    ----------
    histogram : EquivalenceClassHistogram
        Equivalence class sizes observed in the sample.
    sampling_fraction : float
        Sample size divided by population size, in (0, 1].
    sample_size : int, optional
        Number of records in the sample, defaults to ``histogram.num_records``.
    accuracy : float, default=DEFAULT_ACCURACY
        Convergence threshold of the iterative fits.
    max_iterations : int, default=DEFAULT_MAX_ITERATIONS
        Iteration bound of the iterative fits.
    cancellation : CancellationToken, optional
        Polled by the iterative fits.

    Returns
    -------
    Tuple[UniquenessEstimate, StatisticalPopulationModel]
        See apply_dankar_decision_rule.
    """
    validate_estimator_inputs(histogram, sampling_fraction, sample_size, accuracy, max_iterations)

    def get_estimate(model: StatisticalPopulationModel) -> UniquenessEstimate:
        return _MODEL_TO_ESTIMATOR[model](
            histogram,
            sampling_fraction,
            sample_size=sample_size,
            accuracy=accuracy,
            max_iterations=max_iterations,
            cancellation=cancellation,
        )

    return apply_dankar_decision_rule(
        histogram.num_classes_of_size(1), sampling_fraction, get_estimate
    )


class PopulationUniquenessRisk:
    """
    Population uniqueness estimates of a sample, per model and per decision rule.

    Each of the four estimates (Zayatz, Pitman, SNB and Dankar's decision rule) is
    computed at most once per instance, on first request. Requesting the decision
    rule's estimate computes only the models the rule needs.

    Parameters
    ----------
    logger : logging.Logger
        Logger for recording the estimation process.
    histogram : EquivalenceClassHistogram
        Equivalence class sizes observed in the sample. Not modified.
    population_model : PopulationModel
        The population the sample was drawn from.
    sample_size : int, optional
        Number of records in the sample, defaults to ``histogram.num_records``.
        Must be at least the number of records in the histogram.
    accuracy : float, default=DEFAULT_ACCURACY
        Convergence threshold of the iterative fits.
    max_iterations : int, default=DEFAULT_MAX_ITERATIONS
        Iteration bound of the iterative fits.
    cancellation : CancellationToken, optional
        Polled by the iterative fits; a cancelled fit yields an invalid estimate.
    callbacks : RiskCallbacks, optional
        Receives progress checkpoints and per-model timestamps.
    precompute : bool, default=False
        If True, compute all four estimates immediately (see precompute()).

    Raises
    ------
    ValueError
        If the sample does not fit the population or a tuning argument is
        outside its valid range. An empty sample (sample size 0) has no
        sampling fraction and is rejected; a positive sample_size with an
        empty histogram yields zero estimates.

    Notes
    -----
    Instances are not thread-safe: confine an instance to one thread or
    synchronize externally. The histogram may be shared between instances.

    Invalid estimates are reported as NaN by the count and fraction accessors.
    Fractions are not clamped to [0, 1]: values slightly above 1 are a modeling
    artifact of extreme extrapolation.
    """

    def __init__(
        self,
        logger: logging.Logger,
        histogram: EquivalenceClassHistogram,
        population_model: PopulationModel,
        sample_size: Optional[int] = None,
        accuracy: float = DEFAULT_ACCURACY,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        cancellation: Optional[CancellationToken] = None,
        callbacks: Optional[RiskCallbacks] = None,
        precompute: bool = False,
    ) -> None:
        self.logger = logger
        self.histogram = histogram
        self.population_model = population_model
        self.sample_size = histogram.num_records if sample_size is None else int(sample_size)
        self.sampling_fraction = population_model.get_sampling_fraction(self.sample_size)
        validate_estimator_inputs(
            histogram, self.sampling_fraction, self.sample_size, accuracy, max_iterations
        )
        self.accuracy = accuracy
        self.max_iterations = max_iterations
        self.cancellation = cancellation
        self.callbacks = callbacks
        self.num_classes_of_size_1 = histogram.num_classes_of_size(1)
        self._estimates = {model: UniquenessEstimate.uncomputed() for model in StatisticalPopulationModel}
        self._dankar_model: Optional[StatisticalPopulationModel] = None

        if self.num_classes_of_size_1 == 0:
            # No sample uniques: the risk is zero without fitting anything
            zero = UniquenessEstimate.computed(0.0)
            self._estimates = {model: zero for model in StatisticalPopulationModel}
            self._dankar_model = StatisticalPopulationModel.DANKAR
            self._report_progress(100)
            return

        if precompute:
            self.precompute()

    @property
    def population_size(self) -> float:
        return self.population_model.population_size

    def precompute(self) -> None:
        """
        Compute all four estimates, reporting progress checkpoints.

        The estimates are computed in the order Zayatz, Pitman, SNB, Dankar, with
        progress reported as 50 after Zayatz, 75 after Pitman and 100 at the end.
        """
        self.get_estimate(StatisticalPopulationModel.ZAYATZ)
        self._report_progress(50)
        self.get_estimate(StatisticalPopulationModel.PITMAN)
        self._report_progress(75)
        self.get_estimate(StatisticalPopulationModel.SNB)
        self.get_estimate(StatisticalPopulationModel.DANKAR)
        self._report_progress(100)

    def get_estimate(self, model: StatisticalPopulationModel) -> UniquenessEstimate:
        """
        The estimate of the given model, computing it if necessary.

        Parameters
        ----------
        model : StatisticalPopulationModel
            ZAYATZ, PITMAN, SNB, or DANKAR for the decision rule's pick.

        Returns
        -------
        UniquenessEstimate
            The memoized estimate, COMPUTED or INVALID.

        Raises
        ------
        ValueError
            If model is not a StatisticalPopulationModel.
        """
        if not isinstance(model, StatisticalPopulationModel):
            raise ValueError(f"Unsupported statistical population model: {model!r}")
        if self._estimates[model].state == EstimateState.UNCOMPUTED:
            if model == StatisticalPopulationModel.DANKAR:
                self._compute_dankar()
            else:
                self._compute_model(model)
        return self._estimates[model]

    def get_dankar_model(self) -> StatisticalPopulationModel:
        """The model selected by Dankar et al.'s decision rule."""
        self.get_estimate(StatisticalPopulationModel.DANKAR)
        assert self._dankar_model is not None
        return self._dankar_model

    def get_num_unique_tuples(self, model: StatisticalPopulationModel) -> float:
        """
        Estimated number of records that are unique in the population.

        Parameters
        ----------
        model : StatisticalPopulationModel
            The model, or DANKAR for the decision rule's pick.

        Returns
        -------
        float
            The estimate, NaN if the model's fit is invalid.
        """
        return self.get_estimate(model).value

    def get_fraction_of_unique_tuples(self, model: StatisticalPopulationModel) -> float:
        """
        Estimated fraction of the population that is unique.

        Parameters
        ----------
        model : StatisticalPopulationModel
            The model, or DANKAR for the decision rule's pick.

        Returns
        -------
        float
            The number of population uniques divided by the population size,
            NaN if the model's fit is invalid.
        """
        return self.get_num_unique_tuples(model) / self.population_size

    def get_num_unique_tuples_zayatz(self) -> float:
        return self.get_num_unique_tuples(StatisticalPopulationModel.ZAYATZ)

    def get_num_unique_tuples_pitman(self) -> float:
        return self.get_num_unique_tuples(StatisticalPopulationModel.PITMAN)

    def get_num_unique_tuples_snb(self) -> float:
        return self.get_num_unique_tuples(StatisticalPopulationModel.SNB)

    def get_num_unique_tuples_dankar(self) -> float:
        return self.get_num_unique_tuples(StatisticalPopulationModel.DANKAR)

    def get_fraction_of_unique_tuples_zayatz(self) -> float:
        return self.get_fraction_of_unique_tuples(StatisticalPopulationModel.ZAYATZ)

    def get_fraction_of_unique_tuples_pitman(self) -> float:
        return self.get_fraction_of_unique_tuples(StatisticalPopulationModel.PITMAN)

    def get_fraction_of_unique_tuples_snb(self) -> float:
        return self.get_fraction_of_unique_tuples(StatisticalPopulationModel.SNB)

    def get_fraction_of_unique_tuples_dankar(self) -> float:
        return self.get_fraction_of_unique_tuples(StatisticalPopulationModel.DANKAR)

    def _compute_model(self, model: StatisticalPopulationModel) -> None:
        model_name = model.name.lower()
        if self.callbacks is not None:
            self.callbacks.estimate_bm(model_name)
        estimate = _MODEL_TO_ESTIMATOR[model](
            self.histogram,
            self.sampling_fraction,
            sample_size=self.sample_size,
            accuracy=self.accuracy,
            max_iterations=self.max_iterations,
            cancellation=self.cancellation,
        )
        if self.callbacks is not None:
            self.callbacks.estimate_am(model_name)
        if estimate.is_invalid:
            self.logger.warning(
                "%s model did not produce a valid estimate (sampling fraction %s)",
                model.name,
                self.sampling_fraction,
            )
        elif self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(
                "%s model estimates %s population uniques", model.name, estimate.value
            )
        self._estimates[model] = estimate

    def _compute_dankar(self) -> None:
        estimate, model = apply_dankar_decision_rule(
            self.num_classes_of_size_1, self.sampling_fraction, self.get_estimate
        )
        self.logger.info(
            "Dankar decision rule selected %s (sampling fraction %s, estimate %s)",
            model.name,
            self.sampling_fraction,
            estimate.value,
        )
        self._estimates[StatisticalPopulationModel.DANKAR] = estimate
        self._dankar_model = model

    def _report_progress(self, value: int) -> None:
        if self.callbacks is not None:
            self.callbacks.progress(value)
