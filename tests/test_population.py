"""
Tests for population models
"""

import numpy as np
import pytest

from anonymization_risk.constants import EPSILON
from anonymization_risk.population import PopulationModel, Region


class TestPopulationModel:
    """
    Tests for PopulationModel
    """

    def test_sampling_fraction(self):
        model = PopulationModel(1000)
        np.testing.assert_allclose(model.get_sampling_fraction(50), 0.05, atol=EPSILON)
        np.testing.assert_allclose(model.get_sampling_fraction(1000), 1.0, atol=EPSILON)

    def test_sample_larger_than_population(self):
        model = PopulationModel(1000)
        with pytest.raises(ValueError):
            model.get_sampling_fraction(1001)
        with pytest.raises(ValueError):
            model.get_sampling_fraction(0)

    @pytest.mark.parametrize("population_size", [0, -10])
    def test_invalid_population_size(self, population_size):
        with pytest.raises(ValueError):
            PopulationModel(population_size)

    def test_from_region(self):
        for region in Region:
            model = PopulationModel.from_region(region)
            assert model.population_size > 1_000_000
        assert PopulationModel.from_region(Region.USA).population_size == 318_857_056

    def test_from_sampling_fraction(self):
        model = PopulationModel.from_sampling_fraction(100, 0.25)
        np.testing.assert_allclose(model.population_size, 400.0, atol=EPSILON)
        np.testing.assert_allclose(model.get_sampling_fraction(100), 0.25, atol=EPSILON)
        with pytest.raises(ValueError):
            PopulationModel.from_sampling_fraction(100, 0.0)
        with pytest.raises(ValueError):
            PopulationModel.from_sampling_fraction(100, 1.5)
