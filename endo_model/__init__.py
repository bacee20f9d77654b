"""
Endometriosis treatment cost-effectiveness model.

Cohort Markov engine with treatment-specific transition adjustments,
menstrual-phase utility adjustment, dynamic cost accumulation and ICER
comparison.
"""

from endo_model.errors import (
    ConfigurationError,
    DomainRangeError,
    EndoModelError,
    InvariantViolation,
)
from endo_model.simulation import OutcomeRecord, PatientCharacteristics, run_comparison, run_model
from endo_model.reporting.cea import compare_strategies

__all__ = [
    "EndoModelError",
    "ConfigurationError",
    "InvariantViolation",
    "DomainRangeError",
    "OutcomeRecord",
    "PatientCharacteristics",
    "run_model",
    "run_comparison",
    "compare_strategies",
]
