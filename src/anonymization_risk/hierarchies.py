"""
Generalization hierarchies for quasi-identifier columns.

A generalization hierarchy lists, for every original (level-0) value of a column,
the value it is replaced with at each generalization level. Level 0 is the value
itself and the last level is usually a single fully-suppressed value such as
"*". For example, ZIP codes might be generalized as::

    02139 -> 0213* -> 021** -> *
    02138 -> 0213* -> 021** -> *
    02144 -> 0214* -> 021** -> *

Hierarchies are built from a table (one row per level-0 value) or from a
treelib generalization tree whose leaves are the level-0 values.
"""

from collections.abc import Hashable, Iterable, Sequence
from typing import Any, Union

import numpy as np
import pandas as pd
from treelib import Tree  # type: ignore[reportPrivateImportUsage]  # Tree is publicly exported from treelib

from anonymization_risk.constants import HIERARCHY_ROOT_VALUE


class Hierarchy:
    """
    Generalization hierarchy of a single quasi-identifier column.

    Parameters
    ----------
    table : Sequence[Sequence[Hashable]] or pd.DataFrame
        One row per level-0 value: the value followed by its generalization at
        each level. If a DataFrame, its columns are the levels in order.

    Raises
    ------
    ValueError
        If the table is empty or not rectangular, a level-0 value appears twice,
        or a value at some level has more than one generalization at the next
        level.

    Examples
    --------
    >>> hierarchy = Hierarchy([["a", "ab", "*"], ["b", "ab", "*"], ["c", "c", "*"]])
    >>> hierarchy.height
    3
    >>> hierarchy.generalize("b", 1)
    'ab'
    """

    def __init__(self, table: Union[Sequence[Sequence[Hashable]], pd.DataFrame]) -> None:
        if isinstance(table, pd.DataFrame):
            rows = [tuple(row) for row in table.itertuples(index=False, name=None)]
        else:
            rows = [tuple(row) for row in table]
        if len(rows) == 0:
            raise ValueError("Hierarchy must have at least one row")
        height = len(rows[0])
        if height == 0:
            raise ValueError("Hierarchy rows must have at least one level")
        for row in rows:
            if len(row) != height:
                raise ValueError(
                    f"Hierarchy rows must all have {height} levels, got {len(row)} for {row[0]!r}"
                )

        leaf_index: dict[Any, int] = {}
        for idx, row in enumerate(rows):
            if row[0] in leaf_index:
                raise ValueError(f"Duplicate level-0 value in hierarchy: {row[0]!r}")
            leaf_index[row[0]] = idx
        for level in range(height - 1):
            value_to_generalization: dict[Any, Any] = {}
            for row in rows:
                generalization = value_to_generalization.setdefault(row[level], row[level + 1])
                if generalization != row[level + 1]:
                    raise ValueError(
                        f"Value {row[level]!r} at level {level} has more than one "
                        f"generalization: {generalization!r} and {row[level + 1]!r}"
                    )

        self._rows = rows
        self._leaf_index = leaf_index
        self._height = height

    @classmethod
    def from_tree(cls, tree: Tree) -> "Hierarchy":
        """
        Build a hierarchy from a generalization tree.

        Parameters
        ----------
        tree : treelib.Tree
            Tree whose node tags are values: leaves are level-0 values and each
            node generalizes its descendants.

        Returns
        -------
        Hierarchy
            One row per leaf, from the leaf up to the root. Leaves shallower than
            the deepest leaf are padded with the root value.

        Raises
        ------
        ValueError
            If the tree is empty.
        """
        if tree.root is None or len(tree) == 0:
            raise ValueError("Cannot build a hierarchy from an empty tree")
        root_value = tree[tree.root].tag
        paths = [[tree[nid].tag for nid in tree.rsearch(leaf.identifier)] for leaf in tree.leaves()]
        height = max(len(path) for path in paths)
        return cls([path[:-1] + [root_value] * (height - len(path) + 1) for path in paths])

    @classmethod
    def make_flat(cls, values: Iterable[Hashable]) -> "Hierarchy":
        """
        Build a two-level hierarchy generalizing every value to the root value.

        Parameters
        ----------
        values : Iterable[Hashable]
            Level-0 values; duplicates are ignored.

        Returns
        -------
        Hierarchy
            Rows ``[value, HIERARCHY_ROOT_VALUE]``.
        """
        return cls([[value, HIERARCHY_ROOT_VALUE] for value in dict.fromkeys(values)])

    @property
    def height(self) -> int:
        """Number of levels, including level 0."""
        return self._height

    @property
    def leaf_values(self) -> tuple[Hashable, ...]:
        return tuple(row[0] for row in self._rows)

    def generalize(self, value: Hashable, level: int) -> Hashable:
        """
        Generalization of a level-0 value at the given level.

        Parameters
        ----------
        value : Hashable
            A level-0 value of this hierarchy.
        level : int
            Generalization level, 0 <= level < height.

        Returns
        -------
        Hashable
            The value's generalization.

        Raises
        ------
        ValueError
            If value is not a level-0 value or level is out of range.
        """
        if value not in self._leaf_index:
            raise ValueError(f"Value {value!r} is not a level-0 value of the hierarchy")
        if not 0 <= level < self._height:
            raise ValueError(f"Level must be in [0, {self._height}), got {level}")
        return self._rows[self._leaf_index[value]][level]

    def encode(self) -> tuple[dict[Hashable, int], np.ndarray, int]:
        """
        Integer encoding of the hierarchy.

        Every distinct value of the hierarchy, at any level, gets an integer id.

        Returns
        -------
        Tuple[Dict[Hashable, int], np.ndarray, int]
            A tuple containing:
            - Mapping from each level-0 value to its row index
            - Array of shape (number of level-0 values, height) holding the id
              of the row's value at each level
            - Number of distinct ids
        """
        value_to_id: dict[Any, int] = {}
        id_mapping = np.empty((len(self._rows), self._height), dtype=np.int64)
        for idx, row in enumerate(self._rows):
            for level, value in enumerate(row):
                id_mapping[idx, level] = value_to_id.setdefault(value, len(value_to_id))
        return dict(self._leaf_index), id_mapping, len(value_to_id)

    def __len__(self) -> int:
        return len(self._rows)

    def __repr__(self) -> str:
        return f"Hierarchy(height={self._height}, num_values={len(self._rows)})"
