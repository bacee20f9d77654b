# endo_model/states.py
"""Health-state labels shared across the model.

States are plain strings so they can be used directly as ``DataFrame``
row/column labels. The full state set of a run is always discovered from
the transition records; these constants only name the states the engine
rules refer to.
"""
from __future__ import annotations

from typing import FrozenSet

MILD = "Mild"
MODERATE = "Moderate"
SEVERE = "Severe"
SURGERY = "Surgery"
INFERTILITY = "Infertility"
REMISSION = "Remission"
DEATH = "Death"

# Process-control states used to encode transition structure
SYMPTOM_CONTROL = "Symptom Control"
NO_TREATMENT = "No Treatment"
RECURRENCE = "Recurrence"
TREATMENT_CHANGE = "Treatment Change"
POST_SURGERY = "Post-Surgery"

SYMPTOMATIC_STATES: FrozenSet[str] = frozenset({MILD, MODERATE, SEVERE})

# Trace/outcome column names
CYCLE = "cycle"
YEAR = "year"

__all__ = [
    "MILD",
    "MODERATE",
    "SEVERE",
    "SURGERY",
    "INFERTILITY",
    "REMISSION",
    "DEATH",
    "SYMPTOM_CONTROL",
    "NO_TREATMENT",
    "RECURRENCE",
    "TREATMENT_CHANGE",
    "POST_SURGERY",
    "SYMPTOMATIC_STATES",
    "CYCLE",
    "YEAR",
]
