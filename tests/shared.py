"""Minimal shared data for risk and information loss testing."""

import pandas as pd

from anonymization_risk.hierarchies import Hierarchy


def make_quasi_identifier_df() -> pd.DataFrame:
    """Five records over age, sex and state.

    Returns
    -------
    pd.DataFrame
        Records (20, F, CA), (30, F, CA), (40, F, TX), (20, M, NY), (40, M, CA)
    """
    return pd.DataFrame(
        {
            "age": [20, 30, 40, 20, 40],
            "sex": ["F", "F", "F", "M", "M"],
            "state": ["CA", "CA", "TX", "NY", "CA"],
        }
    )


def make_pairs_hierarchy() -> Hierarchy:
    """Three-level hierarchy a, b -> ab and c, d -> cd, then everything -> *."""
    return Hierarchy(
        [
            ["a", "ab", "*"],
            ["b", "ab", "*"],
            ["c", "cd", "*"],
            ["d", "cd", "*"],
        ]
    )


def make_pairs_df() -> pd.DataFrame:
    """Eight records where each of a, b, c, d appears twice in both columns."""
    return pd.DataFrame(
        {
            "qid1": ["a", "a", "b", "b", "c", "c", "d", "d"],
            "qid2": ["d", "c", "b", "a", "d", "c", "b", "a"],
        }
    )
