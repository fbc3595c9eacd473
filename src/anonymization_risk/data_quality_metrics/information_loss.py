"""
Information loss values of a transformation.

A data quality metric scores a transformation with one information loss value
per quasi-identifier column. The values are combined into a single aggregate,
which is what transformations are compared on.
"""

import functools
from collections.abc import Iterable
from enum import Enum
from typing import Any

import numpy as np

AggregateFunction = Enum(
    "AggregateFunction", ["SUM", "MAXIMUM", "ARITHMETIC_MEAN", "GEOMETRIC_MEAN"]
)


def aggregate(values: np.ndarray, aggregate_function: AggregateFunction) -> float:
    """
    Combine per-column information loss values.

    Parameters
    ----------
    values : np.ndarray
        Non-negative per-column values.
    aggregate_function : AggregateFunction
        How to combine them.

    Returns
    -------
    float
        The aggregate, 0.0 if values is empty.

    Notes
    -----
    The geometric mean is computed as ``exp(mean(log(v + 1))) - 1`` so that zero
    values are supported.
    """
    if len(values) == 0:
        return 0.0
    if aggregate_function == AggregateFunction.SUM:
        return float(np.sum(values))
    if aggregate_function == AggregateFunction.MAXIMUM:
        return float(np.max(values))
    if aggregate_function == AggregateFunction.ARITHMETIC_MEAN:
        return float(np.mean(values))
    if aggregate_function == AggregateFunction.GEOMETRIC_MEAN:
        return float(np.exp(np.mean(np.log(values + 1.0))) - 1.0)
    raise ValueError(f"Unsupported aggregate function: {aggregate_function!r}")


@functools.total_ordering
class InformationLoss:
    """
    Per-column information loss of a transformation and its aggregate.

    Parameters
    ----------
    values : Iterable[float]
        One value per quasi-identifier column.
    aggregate_function : AggregateFunction, default=AggregateFunction.SUM
        How the values are combined into ``aggregate``.

    Notes
    -----
    Instances are ordered by their aggregate and are equal when both the
    per-column values and the aggregate function are equal.
    """

    def __init__(
        self,
        values: Iterable[float],
        aggregate_function: AggregateFunction = AggregateFunction.SUM,
    ) -> None:
        self._values = np.array(list(values), dtype=np.float64)
        self._values.setflags(write=False)
        self.aggregate_function = aggregate_function
        self.aggregate = aggregate(self._values, aggregate_function)

    @property
    def values(self) -> np.ndarray:
        """Per-column values (read-only)."""
        return self._values

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, InformationLoss):
            return NotImplemented
        return self.aggregate_function == other.aggregate_function and np.array_equal(
            self._values, other._values
        )

    def __lt__(self, other: Any) -> bool:
        if not isinstance(other, InformationLoss):
            return NotImplemented
        return self.aggregate < other.aggregate

    def __hash__(self) -> int:
        return hash((self.aggregate_function, self._values.tobytes()))

    def __repr__(self) -> str:
        return f"InformationLoss({self._values.tolist()}, {self.aggregate_function.name})"
