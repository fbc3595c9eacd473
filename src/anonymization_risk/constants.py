"""
Shared constants for re-identification risk and information loss computations.

This module defines the numeric defaults used across the risk estimators and the
information loss metric, so that tolerances and rounding are consistent.
"""

import math

import numpy as np

# Used to round information loss values and to determine equality of floats
MAXIMUM_PRECISION_DIGITS: int = 8
EPSILON: float = math.pow(10, -MAXIMUM_PRECISION_DIGITS)

NOT_DEFINED_NA: float = np.nan

# Tuning knobs for the iterative estimators
DEFAULT_ACCURACY: float = 1e-6
DEFAULT_MAX_ITERATIONS: int = 1000

# Dankar et al. use Pitman at or below this sampling fraction, Zayatz/SNB above it
DANKAR_SAMPLING_FRACTION_THRESHOLD: float = 0.1

HIERARCHY_ROOT_VALUE: str = "*"
