"""
Equivalence class size histograms.

An equivalence class is a maximal set of records sharing identical
quasi-identifier values. The population uniqueness estimators only need the
distribution of class sizes in the sample: how many classes of size 1, of size 2,
and so on. This module provides that histogram, either from precomputed counts
or by grouping a pandas DataFrame on its quasi-identifiers.
"""

from collections.abc import Mapping
from typing import Any

import numpy as np
import pandas as pd


class EquivalenceClassHistogram:
    """
    Immutable mapping from equivalence class size to the number of classes of that size.

    Parameters
    ----------
    size_to_count : Mapping[int, int]
        Maps each class size (positive integer) to the number of classes of that
        size (non-negative integer). Sizes with a count of zero are dropped.

    Raises
    ------
    ValueError
        If a size is not a positive integer or a count is not a non-negative integer.

    Examples
    --------
    >>> histogram = EquivalenceClassHistogram({1: 5, 2: 3})
    >>> histogram.num_classes, histogram.num_records
    (8, 11)
    """

    def __init__(self, size_to_count: Mapping[int, int]) -> None:
        items = []
        for size, count in size_to_count.items():
            if not _is_integer(size) or size < 1:
                raise ValueError(f"Class sizes must be positive integers, got {size!r}")
            if not _is_integer(count) or count < 0:
                raise ValueError(
                    f"Class counts must be non-negative integers, got {count!r} for size {size}"
                )
            if count > 0:
                items.append((int(size), int(count)))
        items.sort()
        self._sizes = np.array([size for size, _ in items], dtype=np.int64)
        self._counts = np.array([count for _, count in items], dtype=np.int64)
        self._sizes.setflags(write=False)
        self._counts.setflags(write=False)

    @classmethod
    def from_dataframe(cls, input_df: pd.DataFrame, qids: list[str]) -> "EquivalenceClassHistogram":
        """
        Build the histogram by grouping a dataframe on its quasi-identifiers.

        Parameters
        ----------
        input_df : pd.DataFrame
            Records to group.
        qids : List[str]
            Quasi-identifier columns defining the equivalence classes. Missing
            values are treated as a value of their own. If empty, the whole
            dataframe is a single equivalence class.

        Returns
        -------
        EquivalenceClassHistogram
            Histogram of the class sizes; empty if input_df has no rows.

        Raises
        ------
        ValueError
            If a QID is not a column of input_df.
        """
        cols = [str(col_name) for col_name in input_df.columns]
        for qid in qids:
            if qid not in cols:
                raise ValueError(f"QID col ({qid}) is not a column in the input dataframe")
        if len(input_df) == 0:
            return cls({})
        if len(qids) == 0:
            return cls({len(input_df): 1})
        class_sizes = input_df.groupby(list(qids), dropna=False).size()
        size_to_count = class_sizes.value_counts().to_dict()
        return cls({int(size): int(count) for size, count in size_to_count.items()})

    @property
    def sizes(self) -> np.ndarray:
        """Distinct class sizes in increasing order (read-only)."""
        return self._sizes

    @property
    def counts(self) -> np.ndarray:
        """Number of classes for each entry of ``sizes`` (read-only)."""
        return self._counts

    @property
    def num_classes(self) -> int:
        return int(self._counts.sum())

    @property
    def num_records(self) -> int:
        return int((self._sizes * self._counts).sum())

    @property
    def max_size(self) -> int:
        return int(self._sizes[-1]) if len(self._sizes) > 0 else 0

    def num_classes_of_size(self, size: int) -> int:
        """
        Number of equivalence classes with exactly the given size.

        Parameters
        ----------
        size : int
            Class size to look up.

        Returns
        -------
        int
            Number of classes of that size, 0 if there are none.
        """
        idx = np.searchsorted(self._sizes, size)
        if idx < len(self._sizes) and self._sizes[idx] == size:
            return int(self._counts[idx])
        return 0

    def to_dict(self) -> dict[int, int]:
        return {int(size): int(count) for size, count in zip(self._sizes, self._counts)}

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, EquivalenceClassHistogram):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash(tuple(self.to_dict().items()))

    def __repr__(self) -> str:
        return f"EquivalenceClassHistogram({self.to_dict()})"


def _is_integer(value: Any) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)
