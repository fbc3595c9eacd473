"""
Anonymization Risk - Re-identification risk and information loss for anonymized data.

This package estimates the fraction of records that are unique in the population
a sample was drawn from (Zayatz, Pitman and SNB models combined by Dankar et
al.'s decision rule), scores quasi-identifier combinations, and measures the
non-uniform entropy information loss of generalization-based transformations.
"""

from anonymization_risk._version import __version__
from anonymization_risk.data_quality_metrics import (
    AggregateFunction,
    CardinalityTable,
    InformationLoss,
    NonUniformEntropyMetric,
)
from anonymization_risk.disclosure_risk_metrics import (
    PopulationUniquenessRisk,
    QuasiIdentifierRisk,
    StatisticalPopulationModel,
    UniquenessEstimate,
    apply_dankar_decision_rule,
    compute_quasi_identifier_risks,
    select_model,
)
from anonymization_risk.equivalence_classes import EquivalenceClassHistogram
from anonymization_risk.hierarchies import Hierarchy
from anonymization_risk.population import PopulationModel, Region
from anonymization_risk.utils import CancellationToken, RiskCallbacks, cancel_after

__all__ = [
    "__version__",
    "EquivalenceClassHistogram",
    "PopulationModel",
    "Region",
    "Hierarchy",
    "CancellationToken",
    "RiskCallbacks",
    "cancel_after",
    "PopulationUniquenessRisk",
    "StatisticalPopulationModel",
    "UniquenessEstimate",
    "apply_dankar_decision_rule",
    "select_model",
    "QuasiIdentifierRisk",
    "compute_quasi_identifier_risks",
    "NonUniformEntropyMetric",
    "CardinalityTable",
    "InformationLoss",
    "AggregateFunction",
]
