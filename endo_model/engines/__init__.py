"""
Engines package for the endometriosis model.

Each module implements one stage of a model run: matrix construction,
treatment adjustment, cohort propagation, QALY and cost accumulation.
"""

from .transition_matrix import build_transition_matrix, discover_states, validate_transition_matrix
from .treatment_effects import adjust_for_treatment, get_treatment_effect
from .markov import run_cohort
from .qaly import calculate_qalys, extrapolate_qalys
from .costs import calculate_costs

__all__ = [
    "build_transition_matrix",
    "discover_states",
    "validate_transition_matrix",
    "adjust_for_treatment",
    "get_treatment_effect",
    "run_cohort",
    "calculate_qalys",
    "extrapolate_qalys",
    "calculate_costs",
]
