"""
Tests for information loss values
"""

import numpy as np
import pytest

from anonymization_risk.constants import EPSILON
from anonymization_risk.data_quality_metrics import AggregateFunction, InformationLoss


class TestInformationLoss:
    """
    Tests for InformationLoss
    """

    @pytest.mark.parametrize(
        "aggregate_function, expected",
        [
            (AggregateFunction.SUM, 4.0),
            (AggregateFunction.MAXIMUM, 3.0),
            (AggregateFunction.ARITHMETIC_MEAN, 2.0),
            (AggregateFunction.GEOMETRIC_MEAN, 2.0 * np.sqrt(2.0) - 1.0),
        ],
    )
    def test_aggregate(self, aggregate_function, expected):
        loss = InformationLoss([1.0, 3.0], aggregate_function)
        np.testing.assert_allclose(loss.aggregate, expected, atol=EPSILON)

    def test_geometric_mean_with_zeros(self):
        loss = InformationLoss([0.0, 0.0], AggregateFunction.GEOMETRIC_MEAN)
        assert loss.aggregate == 0.0

    def test_empty(self):
        assert InformationLoss([]).aggregate == 0.0

    def test_read_only(self):
        loss = InformationLoss([1.0, 3.0])
        with pytest.raises(ValueError):
            loss.values[0] = 2.0

    def test_ordering(self):
        assert InformationLoss([1.0, 2.0]) < InformationLoss([4.0])
        assert InformationLoss([4.0]) > InformationLoss([1.0, 2.0])
        assert max([InformationLoss([1.0]), InformationLoss([5.0]), InformationLoss([2.0])]).aggregate == 5.0

    def test_equality(self):
        assert InformationLoss([1.0, 2.0]) == InformationLoss([1.0, 2.0])
        assert hash(InformationLoss([1.0, 2.0])) == hash(InformationLoss([1.0, 2.0]))
        assert InformationLoss([1.0, 2.0]) != InformationLoss([2.0, 1.0])
        assert InformationLoss([1.0, 2.0]) != InformationLoss([1.0, 2.0], AggregateFunction.MAXIMUM)
