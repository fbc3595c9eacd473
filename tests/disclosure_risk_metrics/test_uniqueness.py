"""
Tests for Dankar et al.'s decision rule and the population uniqueness risk facade
"""

import logging
import math

import numpy as np
import pytest

from anonymization_risk.constants import EPSILON
from anonymization_risk.disclosure_risk_metrics import uniqueness
from anonymization_risk.disclosure_risk_metrics.estimates import (
    StatisticalPopulationModel,
    UniquenessEstimate,
)
from anonymization_risk.disclosure_risk_metrics.pitman import estimate_population_uniques_pitman
from anonymization_risk.disclosure_risk_metrics.uniqueness import (
    PopulationUniquenessRisk,
    apply_dankar_decision_rule,
    select_model,
)
from anonymization_risk.disclosure_risk_metrics.zayatz import estimate_population_uniques_zayatz
from anonymization_risk.equivalence_classes import EquivalenceClassHistogram
from anonymization_risk.population import PopulationModel
from anonymization_risk.utils import CancellationToken, RiskCallbacks

_LOGGER = logging.getLogger(__name__)

PITMAN = StatisticalPopulationModel.PITMAN
ZAYATZ = StatisticalPopulationModel.ZAYATZ
SNB = StatisticalPopulationModel.SNB
DANKAR = StatisticalPopulationModel.DANKAR

_HEAVY_TAILED_HISTOGRAM = EquivalenceClassHistogram({1: 300, 2: 100, 3: 50, 4: 20, 10: 5, 50: 1})


class _FakeEstimates:
    """Serves fixed estimates per model and records which models were requested"""

    def __init__(self, model_to_estimate):
        self.model_to_estimate = model_to_estimate
        self.requested = []

    def __call__(self, model):
        self.requested.append(model)
        return self.model_to_estimate[model]


class _RecordingCallbacks(RiskCallbacks):
    def __init__(self):
        super().__init__()
        self.values = []

    def progress(self, value):
        super().progress(value)
        self.values.append(value)


class TestDankarDecisionRule:
    """
    Tests for apply_dankar_decision_rule
    """

    def test_no_sample_uniques(self):
        get_estimate = _FakeEstimates({})
        estimate, model = apply_dankar_decision_rule(0, 0.05, get_estimate)
        assert model == DANKAR
        assert estimate.is_computed and estimate.value == 0.0
        assert get_estimate.requested == []

    @pytest.mark.parametrize("sampling_fraction", [0.01, 0.05, 0.1])
    def test_small_sampling_fraction_selects_pitman(self, sampling_fraction):
        pitman = UniquenessEstimate.computed(3.0)
        get_estimate = _FakeEstimates({PITMAN: pitman})
        estimate, model = apply_dankar_decision_rule(5, sampling_fraction, get_estimate)
        assert model == PITMAN
        assert estimate is pitman
        assert get_estimate.requested == [PITMAN]

    @pytest.mark.parametrize(
        "pitman", [UniquenessEstimate.invalid(), UniquenessEstimate.computed(0.0)]
    )
    def test_small_sampling_fraction_falls_back_to_zayatz(self, pitman):
        zayatz = UniquenessEstimate.computed(2.0)
        get_estimate = _FakeEstimates({PITMAN: pitman, ZAYATZ: zayatz})
        estimate, model = apply_dankar_decision_rule(5, 0.05, get_estimate)
        assert model == ZAYATZ
        assert estimate is zayatz

    def test_zayatz_fallback_is_unconditional(self):
        zayatz = UniquenessEstimate.invalid()
        get_estimate = _FakeEstimates({PITMAN: UniquenessEstimate.invalid(), ZAYATZ: zayatz})
        estimate, model = apply_dankar_decision_rule(5, 0.05, get_estimate)
        assert model == ZAYATZ
        assert estimate is zayatz

    @pytest.mark.parametrize(
        "zayatz_value, snb_value, expected_model",
        [
            (3.0, 4.0, ZAYATZ),
            (4.0, 4.0, SNB),
            (5.0, 4.0, SNB),
        ],
    )
    def test_large_sampling_fraction_selects_smaller(self, zayatz_value, snb_value, expected_model):
        zayatz = UniquenessEstimate.computed(zayatz_value)
        snb = UniquenessEstimate.computed(snb_value)
        get_estimate = _FakeEstimates({ZAYATZ: zayatz, SNB: snb})
        estimate, model = apply_dankar_decision_rule(5, 0.5, get_estimate)
        assert model == expected_model
        assert estimate is (zayatz if expected_model == ZAYATZ else snb)
        assert PITMAN not in get_estimate.requested

    @pytest.mark.parametrize("snb", [UniquenessEstimate.invalid(), UniquenessEstimate.computed(0.0)])
    def test_large_sampling_fraction_falls_back_to_zayatz(self, snb):
        zayatz = UniquenessEstimate.computed(4.5)
        get_estimate = _FakeEstimates({ZAYATZ: zayatz, SNB: snb})
        estimate, model = apply_dankar_decision_rule(5, 0.5, get_estimate)
        assert model == ZAYATZ
        assert estimate is zayatz


class TestSelectModel:
    """
    Tests for select_model
    """

    def test_small_sampling_fraction_selects_pitman(self):
        estimate, model = select_model(_HEAVY_TAILED_HISTOGRAM, 0.01)
        assert model == PITMAN
        expected = estimate_population_uniques_pitman(_HEAVY_TAILED_HISTOGRAM, 0.01)
        assert expected.is_computed
        assert estimate.value == expected.value

    def test_small_sampling_fraction_falls_back_to_zayatz(self):
        histogram = EquivalenceClassHistogram({1: 5, 2: 3})
        estimate, model = select_model(histogram, 0.05)
        assert model == ZAYATZ
        expected = estimate_population_uniques_zayatz(histogram, 0.05)
        np.testing.assert_allclose(estimate.value, expected.value, atol=EPSILON)

    def test_no_sample_uniques(self):
        histogram = EquivalenceClassHistogram({2: 5})
        estimate, model = select_model(histogram, 0.5)
        assert model == DANKAR
        assert estimate.value == 0.0

    def test_invalid_sampling_fraction(self):
        with pytest.raises(ValueError):
            select_model(EquivalenceClassHistogram({1: 5}), 1.5)


class TestPopulationUniquenessRisk:
    """
    Tests for PopulationUniquenessRisk
    """

    @pytest.fixture
    def fake_estimators(self, monkeypatch):
        """Replaces the statistical models by counting fakes"""
        calls = []
        values = {ZAYATZ: 3.0, PITMAN: 2.0, SNB: 4.0}

        def make_estimator(model):
            def estimator(histogram, sampling_fraction, **kwargs):
                calls.append(model)
                return UniquenessEstimate.computed(values[model])

            return estimator

        for model in values:
            monkeypatch.setitem(uniqueness._MODEL_TO_ESTIMATOR, model, make_estimator(model))
        return calls

    def test_degenerate_histogram(self, fake_estimators):
        callbacks = _RecordingCallbacks()
        histogram = EquivalenceClassHistogram({2: 4, 3: 1})
        risk = PopulationUniquenessRisk(
            _LOGGER, histogram, PopulationModel(1000), callbacks=callbacks
        )
        for model in StatisticalPopulationModel:
            assert risk.get_num_unique_tuples(model) == 0.0
            assert risk.get_fraction_of_unique_tuples(model) == 0.0
        assert risk.get_dankar_model() == DANKAR
        assert callbacks.values == [100]
        assert callbacks.timestamps == {}
        assert fake_estimators == []

    def test_properties(self):
        histogram = EquivalenceClassHistogram({1: 5, 2: 3})
        risk = PopulationUniquenessRisk(_LOGGER, histogram, PopulationModel(220))
        assert risk.sample_size == 11
        assert risk.population_size == 220.0
        assert risk.num_classes_of_size_1 == 5
        np.testing.assert_allclose(risk.sampling_fraction, 0.05, atol=EPSILON)

    def test_estimates_memoized(self, fake_estimators):
        histogram = EquivalenceClassHistogram({1: 5, 2: 3})
        risk = PopulationUniquenessRisk(_LOGGER, histogram, PopulationModel(22))
        assert risk.get_num_unique_tuples_zayatz() == 3.0
        assert risk.get_num_unique_tuples_zayatz() == 3.0
        assert fake_estimators == [ZAYATZ]
        # Sampling fraction 0.5: the decision rule needs SNB and the memoized Zayatz only
        assert risk.get_num_unique_tuples_dankar() == 3.0
        assert risk.get_dankar_model() == ZAYATZ
        assert fake_estimators == [ZAYATZ, SNB]
        assert risk.get_num_unique_tuples_snb() == 4.0
        assert fake_estimators == [ZAYATZ, SNB]

    def test_fractions(self, fake_estimators):
        histogram = EquivalenceClassHistogram({1: 5, 2: 3})
        risk = PopulationUniquenessRisk(_LOGGER, histogram, PopulationModel(220))
        np.testing.assert_allclose(risk.get_fraction_of_unique_tuples_zayatz(), 3.0 / 220, atol=EPSILON)
        np.testing.assert_allclose(risk.get_fraction_of_unique_tuples_pitman(), 2.0 / 220, atol=EPSILON)
        np.testing.assert_allclose(risk.get_fraction_of_unique_tuples_snb(), 4.0 / 220, atol=EPSILON)
        # Sampling fraction 0.05: the decision rule selects Pitman
        np.testing.assert_allclose(risk.get_fraction_of_unique_tuples_dankar(), 2.0 / 220, atol=EPSILON)
        assert risk.get_dankar_model() == PITMAN
        assert risk.get_num_unique_tuples_pitman() == 2.0

    def test_precompute_reports_progress(self, fake_estimators):
        callbacks = _RecordingCallbacks()
        histogram = EquivalenceClassHistogram({1: 5, 2: 3})
        risk = PopulationUniquenessRisk(
            _LOGGER, histogram, PopulationModel(220), callbacks=callbacks, precompute=True
        )
        assert callbacks.values == [50, 75, 100]
        assert fake_estimators == [ZAYATZ, PITMAN, SNB]
        for model_name in ("zayatz", "pitman", "snb"):
            assert callbacks.timestamps[f"{model_name}_am"] >= callbacks.timestamps[f"{model_name}_bm"]
        assert risk.get_dankar_model() == PITMAN
        assert fake_estimators == [ZAYATZ, PITMAN, SNB]

    def test_invalid_estimates_are_nan(self, monkeypatch, caplog):
        monkeypatch.setitem(
            uniqueness._MODEL_TO_ESTIMATOR, PITMAN, lambda *args, **kwargs: UniquenessEstimate.invalid()
        )
        histogram = EquivalenceClassHistogram({1: 5, 2: 3})
        risk = PopulationUniquenessRisk(_LOGGER, histogram, PopulationModel(220))
        with caplog.at_level(logging.WARNING):
            assert math.isnan(risk.get_num_unique_tuples_pitman())
        assert "PITMAN" in caplog.text
        assert math.isnan(risk.get_fraction_of_unique_tuples_pitman())
        assert risk.get_estimate(PITMAN).is_invalid

    def test_unsupported_model(self):
        histogram = EquivalenceClassHistogram({1: 5, 2: 3})
        risk = PopulationUniquenessRisk(_LOGGER, histogram, PopulationModel(220))
        with pytest.raises(ValueError):
            risk.get_estimate("PITMAN")
        with pytest.raises(ValueError):
            risk.get_num_unique_tuples(None)

    def test_invalid_sample(self):
        histogram = EquivalenceClassHistogram({1: 5, 2: 3})
        with pytest.raises(ValueError):
            PopulationUniquenessRisk(_LOGGER, histogram, PopulationModel(10))
        with pytest.raises(ValueError):
            PopulationUniquenessRisk(_LOGGER, histogram, PopulationModel(220), sample_size=5)
        with pytest.raises(ValueError):
            PopulationUniquenessRisk(_LOGGER, histogram, PopulationModel(220), accuracy=0.0)

    def test_empty_sample(self, fake_estimators):
        empty = EquivalenceClassHistogram({})
        with pytest.raises(ValueError):
            PopulationUniquenessRisk(_LOGGER, empty, PopulationModel(220))
        risk = PopulationUniquenessRisk(_LOGGER, empty, PopulationModel(220), sample_size=11)
        assert risk.get_num_unique_tuples_dankar() == 0.0
        assert risk.get_dankar_model() == DANKAR
        assert fake_estimators == []

    def test_small_sampling_fraction_selects_pitman(self):
        risk = PopulationUniquenessRisk(_LOGGER, _HEAVY_TAILED_HISTOGRAM, PopulationModel(83000))
        np.testing.assert_allclose(risk.sampling_fraction, 0.01, atol=EPSILON)
        assert risk.get_estimate(PITMAN).is_computed
        assert risk.get_dankar_model() == PITMAN
        assert risk.get_num_unique_tuples_dankar() == risk.get_num_unique_tuples_pitman()
        assert risk.get_fraction_of_unique_tuples_dankar() == risk.get_fraction_of_unique_tuples_pitman()
        np.testing.assert_allclose(risk.get_num_unique_tuples_dankar(), 1173.0, rtol=1e-2)

    def test_small_sampling_fraction_falls_back_to_zayatz(self):
        histogram = EquivalenceClassHistogram({1: 5, 2: 3})
        risk = PopulationUniquenessRisk(_LOGGER, histogram, PopulationModel(220))
        assert risk.get_dankar_model() == ZAYATZ
        assert risk.get_estimate(PITMAN).is_invalid
        assert risk.get_num_unique_tuples_dankar() == risk.get_num_unique_tuples_zayatz()

    def test_complete_population(self):
        """With the whole population sampled, population uniques are the sample uniques"""
        histogram = EquivalenceClassHistogram({1: 2, 2: 2, 3: 4})
        risk = PopulationUniquenessRisk(_LOGGER, histogram, PopulationModel(18), accuracy=1e-10)
        assert risk.sampling_fraction == 1.0
        np.testing.assert_allclose(risk.get_num_unique_tuples_zayatz(), 2.0, atol=EPSILON)
        np.testing.assert_allclose(risk.get_num_unique_tuples_snb(), 2.0, atol=1e-6)
        # Both estimates are the sample uniques, either may be the smaller one
        assert risk.get_dankar_model() in (ZAYATZ, SNB)
        np.testing.assert_allclose(risk.get_num_unique_tuples_dankar(), 2.0, atol=1e-6)
        np.testing.assert_allclose(risk.get_fraction_of_unique_tuples_dankar(), 2.0 / 18, atol=1e-6)

    def test_complete_population_without_snb_fit(self):
        histogram = EquivalenceClassHistogram({1: 3, 2: 2})
        risk = PopulationUniquenessRisk(_LOGGER, histogram, PopulationModel(7), accuracy=1e-10)
        assert risk.get_estimate(SNB).is_invalid
        assert risk.get_dankar_model() == ZAYATZ
        np.testing.assert_allclose(risk.get_num_unique_tuples_dankar(), 3.0, atol=EPSILON)
        np.testing.assert_allclose(risk.get_fraction_of_unique_tuples_dankar(), 3.0 / 7, atol=1e-4)

    def test_cancelled(self):
        token = CancellationToken()
        token.cancel()
        histogram = EquivalenceClassHistogram({1: 5, 2: 3})
        risk = PopulationUniquenessRisk(
            _LOGGER, histogram, PopulationModel(220), cancellation=token
        )
        assert math.isnan(risk.get_num_unique_tuples_dankar())
        assert risk.get_dankar_model() == ZAYATZ
        assert risk.get_estimate(ZAYATZ).is_invalid
