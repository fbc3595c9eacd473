"""
Data quality metrics for evaluating the information loss of generalization.

Modules:
- cardinalities: Counts of generalized values per column and level
- information_loss: Per-column information loss values and their aggregates
- non_uniform_entropy: Non-uniform entropy metric with cached (column, level) sums
"""

from .cardinalities import CardinalityTable
from .information_loss import AggregateFunction, InformationLoss
from .non_uniform_entropy import NonUniformEntropyMetric

__all__ = [
    "CardinalityTable",
    "AggregateFunction",
    "InformationLoss",
    "NonUniformEntropyMetric",
]
