"""
Cardinalities of generalized values, the input of entropy-based quality metrics.

For every quasi-identifier column and every generalization level, the
cardinality table counts how many records would carry each generalized value if
the column were generalized to that level. Level 0 holds the plain frequencies
of the original values.
"""

from collections.abc import Mapping
from typing import Optional

import numba
import numpy as np
import pandas as pd
from first import first  # type: ignore[import-untyped]

from anonymization_risk.hierarchies import Hierarchy


@numba.jit(nopython=True)
def accumulate_cardinalities(leaf_indices: np.ndarray, id_mapping: np.ndarray, num_ids: int) -> np.ndarray:
    """
    Count records per generalized value id and level.

    Parameters
    ----------
    leaf_indices : np.ndarray
        Hierarchy row index of each record's value.
    id_mapping : np.ndarray
        Array of shape (number of level-0 values, height) with the id of each
        row's value at each level, as returned by Hierarchy.encode().
    num_ids : int
        Number of distinct ids.

    Returns
    -------
    np.ndarray
        Array of shape (num_ids, height) with ``counts[id, level]``.
    """
    height = id_mapping.shape[1]
    counts = np.zeros((num_ids, height), dtype=np.int64)
    for record in range(leaf_indices.shape[0]):
        leaf = leaf_indices[record]
        for level in range(height):
            counts[id_mapping[leaf, level], level] += 1
    return counts


class CardinalityTable:
    """
    Per-column counts of generalized values at every level.

    Parameters
    ----------
    input_df : pd.DataFrame
        Records to count.
    qids : List[str]
        Quasi-identifier columns.
    hierarchies : Mapping[str, Hierarchy]
        Generalization hierarchy of each QID.
    subset : np.ndarray, optional
        Boolean mask of the rows to count, defaults to all rows.

    Raises
    ------
    ValueError
        If a QID is missing from input_df or hierarchies, the subset mask does
        not match the number of rows, or a value of a column is not a level-0
        value of its hierarchy.

    Attributes
    ----------
    counts : List[np.ndarray]
        Per column, array of shape (number of ids, height) where
        ``counts[c][id, level]`` is the number of counted records whose value
        generalizes to the value with that id at that level.
    id_mappings : List[np.ndarray]
        Per column, the id mapping of Hierarchy.encode().
    num_rows : int
        Number of counted rows.
    """

    def __init__(
        self,
        input_df: pd.DataFrame,
        qids: list[str],
        hierarchies: Mapping[str, Hierarchy],
        subset: Optional[np.ndarray] = None,
    ) -> None:
        cols = [str(col_name) for col_name in input_df.columns]
        for qid in qids:
            if qid not in cols:
                raise ValueError(f"QID col ({qid}) is not a column in the input dataframe")
            if qid not in hierarchies:
                raise ValueError(f"QID col ({qid}) has no generalization hierarchy")
        if subset is not None:
            subset = np.asarray(subset, dtype=bool)
            if subset.shape != (len(input_df),):
                raise ValueError(
                    f"Subset mask has shape {subset.shape}, expected ({len(input_df)},)"
                )
            input_df = input_df.loc[subset]

        self.qids = list(qids)
        self.num_rows = len(input_df)
        self.heights = [hierarchies[qid].height for qid in qids]
        self.counts: list[np.ndarray] = []
        self.id_mappings: list[np.ndarray] = []
        for qid in qids:
            leaf_index, id_mapping, num_ids = hierarchies[qid].encode()
            leaf_indices = input_df[qid].map(leaf_index)
            if leaf_indices.isna().any():
                value = first(input_df[qid], key=lambda candidate: candidate not in leaf_index)
                raise ValueError(
                    f"Value {value!r} of QID col ({qid}) is not in its generalization hierarchy"
                )
            self.counts.append(
                accumulate_cardinalities(
                    leaf_indices.to_numpy(dtype=np.int64), id_mapping, num_ids
                )
            )
            self.id_mappings.append(id_mapping)

    def get(self, column: int, value_id: int, level: int) -> int:
        """Number of counted records whose value at level has the given id."""
        return int(self.counts[column][value_id, level])
