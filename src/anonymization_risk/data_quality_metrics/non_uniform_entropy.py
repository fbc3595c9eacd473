"""
Non-uniform entropy information loss with precomputed cardinalities.

The non-uniform entropy of generalizing a column to some level measures how much
information about the original values is lost. For every original value with
frequency a whose generalization has frequency b, the loss contributed is
``-a * log2(a / b)``: generalizing a value shared by many other values' records
loses more than generalizing a value that stays distinct. The metric scores a
transformation (one generalization level per quasi-identifier) by these losses,
one per column.

Since the loss of a column only depends on the column and its level, each
(column, level) sum is computed once from a CardinalityTable and cached.

The gs_factor trades generalization against suppression: 0.5 weights both
equally, values towards 0 favor generalization and values towards 1 favor
suppression.

References
----------
A. Gionis and T. Tassa, "k-Anonymization with Minimal Loss of Information," IEEE
Transactions on Knowledge and Data Engineering, vol. 21, no. 2, pp. 206-219, 2009.
doi: 10.1109/TKDE.2008.129.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Optional

import numba
import numpy as np
import pandas as pd

from anonymization_risk.constants import MAXIMUM_PRECISION_DIGITS
from anonymization_risk.data_quality_metrics.cardinalities import CardinalityTable
from anonymization_risk.data_quality_metrics.information_loss import (
    AggregateFunction,
    InformationLoss,
)
from anonymization_risk.hierarchies import Hierarchy

DEFAULT_GS_FACTOR = 0.5


@numba.jit(nopython=True)
def entropy_sum(counts: np.ndarray, id_mapping: np.ndarray, level: int) -> float:
    """
    Sum of ``a * log2(a / b)`` over the level-0 values of a column.

    Parameters
    ----------
    counts : np.ndarray
        Cardinalities of the column, ``counts[id, level]``.
    id_mapping : np.ndarray
        Id of each level-0 value at each level.
    level : int
        Generalization level.

    Returns
    -------
    float
        The sum, where a is the frequency of a level-0 value and b the frequency
        of its generalization at level. Values with a = 0 are skipped.
    """
    result = 0.0
    for leaf in range(id_mapping.shape[0]):
        a = counts[id_mapping[leaf, 0], 0]
        if a != 0:
            b = counts[id_mapping[leaf, level], level]
            result += a * np.log2(a / b)
    return result


def _negate_and_round(value: float) -> float:
    if value == 0.0:
        return 0.0
    return round(-value, MAXIMUM_PRECISION_DIGITS)


class NonUniformEntropyMetric:
    """
    Non-uniform entropy information loss of transformations.

    Parameters
    ----------
    logger : logging.Logger
        Logger for recording the evaluation process.
    gs_factor : float, default=0.5
        Generalization/suppression trade-off in [0, 1].
    aggregate_function : AggregateFunction, default=AggregateFunction.SUM
        How per-column losses are combined.

    Raises
    ------
    ValueError
        If gs_factor is outside [0, 1].

    Notes
    -----
    ``initialize`` must be called before evaluating transformations. The cache
    is not thread-safe; use one instance per thread.
    """

    def __init__(
        self,
        logger: logging.Logger,
        gs_factor: float = DEFAULT_GS_FACTOR,
        aggregate_function: AggregateFunction = AggregateFunction.SUM,
    ) -> None:
        if not 0.0 <= gs_factor <= 1.0:
            raise ValueError(f"gs_factor must be in [0, 1], got {gs_factor}")
        self.logger = logger
        self.gs_factor = gs_factor
        self.aggregate_function = aggregate_function
        self._cardinalities: Optional[CardinalityTable] = None
        self._cache: Optional[np.ndarray] = None
        self._rows = 0
        self.min: Optional[InformationLoss] = None
        self.max: Optional[InformationLoss] = None

    @property
    def generalization_factor(self) -> float:
        return 1.0 if self.gs_factor <= 0.5 else 1.0 - 2.0 * (self.gs_factor - 0.5)

    @property
    def suppression_factor(self) -> float:
        return 2.0 * self.gs_factor if self.gs_factor <= 0.5 else 1.0

    @property
    def is_initialized(self) -> bool:
        return self._cardinalities is not None

    @property
    def num_cached_entries(self) -> int:
        """Number of (column, level) sums computed so far."""
        if self._cache is None:
            return 0
        return int(np.count_nonzero(~np.isnan(self._cache)))

    def initialize(
        self,
        input_df: pd.DataFrame,
        qids: list[str],
        hierarchies: Mapping[str, Hierarchy],
        subset: Optional[np.ndarray] = None,
    ) -> None:
        """
        Precompute cardinalities and reset the cache.

        Parameters
        ----------
        input_df : pd.DataFrame
            Records the transformations apply to.
        qids : List[str]
            Quasi-identifier columns, in the order of transformation levels.
        hierarchies : Mapping[str, Hierarchy]
            Generalization hierarchy of each QID.
        subset : np.ndarray, optional
            Boolean mask of the rows whose cardinalities are counted, defaults
            to all rows. The bounds always use the total number of rows.

        Raises
        ------
        ValueError
            See CardinalityTable.
        """
        self._cardinalities = CardinalityTable(input_df, qids, hierarchies, subset=subset)
        self._rows = len(input_df)
        max_height = max(self._cardinalities.heights, default=0)
        self._cache = np.full((len(qids), max_height), np.nan, dtype=np.float64)

        num_columns = len(qids)
        max_value = 0.0
        if self._rows > 1:
            max_value = (
                self._rows
                * np.log2(self._rows)
                * max(self.generalization_factor, self.suppression_factor)
            )
        self.min = InformationLoss(np.zeros(num_columns), self.aggregate_function)
        self.max = InformationLoss(np.full(num_columns, max_value), self.aggregate_function)

        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(
                "Initialized non-uniform entropy for %s QIDs, %s rows (%s counted), heights %s",
                num_columns,
                self._rows,
                self._cardinalities.num_rows,
                self._cardinalities.heights,
            )

    def get_information_loss(
        self, transformation: Sequence[int], groups: Optional[Any] = None
    ) -> InformationLoss:
        """
        Information loss of a transformation.

        Parameters
        ----------
        transformation : Sequence[int]
            Generalization level of each QID.
        groups : Any, optional
            Equivalence classes of the transformed data; ignored since the loss
            only depends on the levels.

        Returns
        -------
        InformationLoss
            Non-negative per-column losses, rounded to MAXIMUM_PRECISION_DIGITS
            decimals.

        Raises
        ------
        RuntimeError
            If called before initialize.
        ValueError
            If the transformation does not match the QIDs and their hierarchies.
        """
        cardinalities, cache = self._check_transformation(transformation)
        g_factor = self.generalization_factor
        values = np.empty(len(transformation), dtype=np.float64)
        for column, level in enumerate(transformation):
            value = cache[column, level]
            if np.isnan(value):
                value = entropy_sum(
                    cardinalities.counts[column], cardinalities.id_mappings[column], int(level)
                )
                cache[column, level] = value
            values[column] = _negate_and_round(value * g_factor)
        return InformationLoss(values, self.aggregate_function)

    def get_information_loss_for_group(
        self, transformation: Sequence[int], group_count: int
    ) -> InformationLoss:
        """
        Information loss attributed to a single equivalence class.

        Parameters
        ----------
        transformation : Sequence[int]
            Generalization level of each QID.
        group_count : int
            Number of records in the class.

        Returns
        -------
        InformationLoss
            group_count for every column.
        """
        self._check_transformation(transformation)
        return InformationLoss([float(group_count)] * len(transformation), self.aggregate_function)

    def get_lower_bound(self, transformation: Sequence[int]) -> InformationLoss:
        """Lower bound of the loss, equal to the loss itself."""
        return self.get_information_loss(transformation)

    def get_upper_bounds(self) -> InformationLoss:
        """
        Per-column loss of suppressing every value of the column.

        Returns
        -------
        InformationLoss
            ``-sum(a * log2(a / rows)) * generalization_factor`` per column,
            rounded to MAXIMUM_PRECISION_DIGITS decimals.

        Raises
        ------
        RuntimeError
            If called before initialize.
        """
        if self._cardinalities is None:
            raise RuntimeError("Metric must be initialized before computing bounds")
        g_factor = self.generalization_factor
        values = []
        for counts in self._cardinalities.counts:
            level_0 = counts[:, 0]
            a = level_0[level_0 != 0].astype(np.float64)
            value = float(np.sum(a * np.log2(a / self._rows))) * g_factor
            values.append(_negate_and_round(value))
        return InformationLoss(values, self.aggregate_function)

    def _check_transformation(
        self, transformation: Sequence[int]
    ) -> tuple[CardinalityTable, np.ndarray]:
        if self._cardinalities is None or self._cache is None:
            raise RuntimeError("Metric must be initialized before evaluating transformations")
        heights = self._cardinalities.heights
        if len(transformation) != len(heights):
            raise ValueError(
                f"Transformation has {len(transformation)} levels, expected {len(heights)}"
            )
        for column, level in enumerate(transformation):
            if not 0 <= level < heights[column]:
                raise ValueError(
                    f"Level {level} of QID col ({self._cardinalities.qids[column]}) is outside "
                    f"[0, {heights[column]})"
                )
        return self._cardinalities, self._cache
