"""
Disclosure risk metrics for evaluating re-identification risk of sample data.

The module is organized into two main categories:

1. **Population uniqueness risk**: Estimates how many records of a sample are
   unique in the underlying population, from the sample's equivalence class
   sizes and the sampling fraction. Three statistical models are available
   (Zayatz, Pitman, SNB) together with Dankar et al.'s rule for choosing
   between them.

2. **Quasi-identifier risk**: Scores how identifying each combination of
   candidate quasi-identifiers is, through its distinction and separation.

Functions
---------
estimate_population_uniques_zayatz : UniquenessEstimate
    Zayatz's estimate of population uniques.

estimate_population_uniques_pitman : UniquenessEstimate
    Pitman's estimate of population uniques.

estimate_population_uniques_snb : UniquenessEstimate
    Shifted negative binomial estimate of population uniques.

apply_dankar_decision_rule, select_model : Tuple[UniquenessEstimate, StatisticalPopulationModel]
    Choose the estimate to trust according to Dankar et al.

compute_quasi_identifier_risks : List[QuasiIdentifierRisk]
    Distinction and separation of every combination of quasi-identifiers.

Classes
-------
PopulationUniquenessRisk
    Lazily computed estimates of all models for one sample.
"""

from .estimates import EstimateState, StatisticalPopulationModel, UniquenessEstimate
from .pitman import estimate_population_uniques_pitman
from .quasi_identifiers import QuasiIdentifierRisk, compute_quasi_identifier_risks
from .snb import estimate_population_uniques_snb
from .uniqueness import PopulationUniquenessRisk, apply_dankar_decision_rule, select_model
from .zayatz import estimate_population_uniques_zayatz

__all__ = [
    # Estimates
    "EstimateState",
    "StatisticalPopulationModel",
    "UniquenessEstimate",
    # Statistical models
    "estimate_population_uniques_zayatz",
    "estimate_population_uniques_pitman",
    "estimate_population_uniques_snb",
    # Decision rule
    "apply_dankar_decision_rule",
    "select_model",
    "PopulationUniquenessRisk",
    # Quasi-identifiers
    "QuasiIdentifierRisk",
    "compute_quasi_identifier_risks",
]
