"""
Re-identification risk of quasi-identifier combinations.

Before choosing which attributes to treat as quasi-identifiers, it helps to know
how identifying each combination of candidate attributes is on its own. This
module scores every combination with two measures of Motwani and Xu:

- Distinction: the number of distinct value combinations divided by the number
  of records. 1.0 means every record is unique on the combination.
- Separation: the fraction of record pairs that differ on the combination.
  1.0 means no two records agree on it.

References
----------
R. Motwani and Y. Xu, "Efficient algorithms for masking and finding
quasi-identifiers," in Proceedings of the Conference on Very Large Data Bases
(VLDB), 2007, pp. 83-93.
"""

import itertools
from typing import NamedTuple, Optional

import numpy as np
import pandas as pd

from anonymization_risk.constants import NOT_DEFINED_NA


class QuasiIdentifierRisk(NamedTuple):
    """
    Risk of a single combination of quasi-identifiers.

    Attributes
    ----------
    qids : Tuple[str, ...]
        The combination, in the order the columns were given.
    distinction : float
        Distinct value combinations divided by records, in (0, 1].
    separation : float
        Fraction of record pairs that differ on the combination, in [0, 1].
        NaN if there is a single record.
    """

    qids: tuple[str, ...]
    distinction: float
    separation: float


def compute_distinction_and_separation(input_df: pd.DataFrame, qids: list[str]) -> tuple[float, float]:
    """
    Distinction and separation of a single combination of quasi-identifiers.

    Parameters
    ----------
    input_df : pd.DataFrame
        Records to score, must be non-empty.
    qids : List[str]
        The combination of columns; missing values are treated as a value.

    Returns
    -------
    Tuple[float, float]
        Distinction and separation, see QuasiIdentifierRisk.
    """
    num_records = len(input_df)
    class_sizes = input_df.groupby(list(qids), dropna=False).size().to_numpy(dtype=np.float64)
    distinction = len(class_sizes) / num_records
    if num_records < 2:
        return distinction, NOT_DEFINED_NA
    # Pairs of records that agree on the combination, over all pairs
    num_equal_pairs = float(np.sum(class_sizes * (class_sizes - 1.0)))
    separation = 1.0 - num_equal_pairs / (num_records * (num_records - 1.0))
    return distinction, separation


def compute_quasi_identifier_risks(
    input_df: pd.DataFrame,
    qids: list[str],
    max_combination_size: Optional[int] = None,
) -> list[QuasiIdentifierRisk]:
    """
    Score every non-empty combination of the given quasi-identifiers.

    Parameters
    ----------
    input_df : pd.DataFrame
        Records to score.
    qids : List[str]
        Candidate quasi-identifier columns.
    max_combination_size : int, optional
        Largest combination to score, defaults to all of qids. The number of
        combinations grows exponentially with this size.

    Returns
    -------
    List[QuasiIdentifierRisk]
        One entry per combination, sorted by increasing distinction, then
        separation, then combination size.

    Raises
    ------
    ValueError
        If input_df is empty, qids is empty or names a missing column, or
        max_combination_size is smaller than 1.
    """
    if len(input_df) == 0:
        raise ValueError("Cannot compute quasi-identifier risks of an empty dataframe")
    if len(qids) == 0:
        raise ValueError("At least one quasi-identifier is required")
    cols = [str(col_name) for col_name in input_df.columns]
    for qid in qids:
        if qid not in cols:
            raise ValueError(f"QID col ({qid}) is not a column in the input dataframe")
    if max_combination_size is None:
        max_combination_size = len(qids)
    if max_combination_size < 1:
        raise ValueError(f"max_combination_size must be at least 1, got {max_combination_size}")

    risks = []
    for size in range(1, min(max_combination_size, len(qids)) + 1):
        for combination in itertools.combinations(qids, size):
            distinction, separation = compute_distinction_and_separation(input_df, list(combination))
            risks.append(QuasiIdentifierRisk(tuple(combination), distinction, separation))
    risks.sort(key=lambda risk: (risk.distinction, risk.separation, len(risk.qids)))
    return risks
