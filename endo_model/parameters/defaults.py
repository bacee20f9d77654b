# endo_model/parameters/defaults.py
"""
Default parameter tables for the endometriosis model.

Per-cycle probabilities are monthly. The annual figures are the
equivalent one-year probabilities, ``1 - (1 - p) ** 12``.
"""
from __future__ import annotations

from typing import Dict, List

from endo_model.parameters.tables import ParameterTables, TransitionRecord, TreatmentCostSchedule
from endo_model.states import (
    DEATH,
    INFERTILITY,
    MILD,
    MODERATE,
    NO_TREATMENT,
    POST_SURGERY,
    RECURRENCE,
    REMISSION,
    SEVERE,
    SURGERY,
    SYMPTOM_CONTROL,
    TREATMENT_CHANGE,
)
from endo_model.treatments import GNRH, NEW, STANDARD
from endo_model.treatments import SURGERY as SURGERY_TX

CYCLES_PER_YEAR = 12


def _record(from_state: str, to_state: str, low: float, high: float, notes: str = "") -> TransitionRecord:
    return TransitionRecord(
        from_state=from_state,
        to_state=to_state,
        min_probability=low,
        max_probability=high,
        time_period="monthly",
        annual_min=1.0 - (1.0 - low) ** CYCLES_PER_YEAR,
        annual_max=1.0 - (1.0 - high) ** CYCLES_PER_YEAR,
        source="pooled cohort estimate",
        notes=notes,
    )


DEFAULT_TRANSITIONS: List[TransitionRecord] = [
    # Disease progression
    _record(MILD, MODERATE, 0.020, 0.040, "progression of lesions"),
    _record(MILD, SEVERE, 0.005, 0.010, "rapid progression"),
    _record(MODERATE, SEVERE, 0.015, 0.030, "progression of lesions"),
    # Improvement
    _record(MILD, REMISSION, 0.010, 0.020),
    _record(MODERATE, MILD, 0.020, 0.040),
    _record(MODERATE, REMISSION, 0.005, 0.010),
    _record(SEVERE, MODERATE, 0.010, 0.020),
    _record(SEVERE, MILD, 0.005, 0.010),
    _record(SEVERE, REMISSION, 0.002, 0.005),
    # Complications and referral
    _record(MODERATE, SURGERY, 0.010, 0.020, "referral for laparoscopy"),
    _record(SEVERE, SURGERY, 0.030, 0.050, "referral for laparoscopy"),
    _record(MODERATE, INFERTILITY, 0.002, 0.004),
    _record(SEVERE, INFERTILITY, 0.004, 0.008),
    # Process-control structure
    _record(MILD, SYMPTOM_CONTROL, 0.030, 0.050, "symptoms controlled on analgesia"),
    _record(SYMPTOM_CONTROL, MILD, 0.100, 0.150),
    _record(SYMPTOM_CONTROL, NO_TREATMENT, 0.010, 0.020, "treatment discontinuation"),
    _record(NO_TREATMENT, MODERATE, 0.050, 0.080),
    _record(SURGERY, POST_SURGERY, 0.800, 0.900, "recovery after procedure"),
    _record(POST_SURGERY, REMISSION, 0.100, 0.150),
    _record(POST_SURGERY, RECURRENCE, 0.020, 0.040),
    _record(REMISSION, RECURRENCE, 0.010, 0.020),
    _record(RECURRENCE, MODERATE, 0.300, 0.500),
    _record(RECURRENCE, TREATMENT_CHANGE, 0.100, 0.200),
    _record(TREATMENT_CHANGE, MILD, 0.200, 0.300),
    # Mortality
    _record(MILD, DEATH, 0.0001, 0.0002, "background mortality"),
    _record(MODERATE, DEATH, 0.0001, 0.0002, "background mortality"),
    _record(SEVERE, DEATH, 0.0001, 0.0002, "background mortality"),
    _record(SURGERY, DEATH, 0.001, 0.002, "perioperative mortality"),
    _record(REMISSION, DEATH, 0.0001, 0.0002, "background mortality"),
    _record(INFERTILITY, DEATH, 0.0001, 0.0002, "background mortality"),
]

DEFAULT_UTILITIES: Dict[str, float] = {
    MILD: 0.80,
    MODERATE: 0.65,
    SEVERE: 0.45,
    SURGERY: 0.55,
    POST_SURGERY: 0.70,
    INFERTILITY: 0.70,
    REMISSION: 0.90,
    SYMPTOM_CONTROL: 0.78,
    NO_TREATMENT: 0.60,
    RECURRENCE: 0.60,
    TREATMENT_CHANGE: 0.62,
    DEATH: 0.0,
}

# Annual costs per state
DEFAULT_STATE_COSTS: Dict[str, float] = {
    MILD: 1200.0,
    MODERATE: 3000.0,
    SEVERE: 6500.0,
    SURGERY: 12000.0,
    POST_SURGERY: 2500.0,
    INFERTILITY: 4000.0,
    REMISSION: 400.0,
    SYMPTOM_CONTROL: 900.0,
    NO_TREATMENT: 500.0,
    RECURRENCE: 3500.0,
    TREATMENT_CHANGE: 1500.0,
    DEATH: 0.0,
}

DEFAULT_TREATMENT_COSTS: Dict[str, TreatmentCostSchedule] = {
    STANDARD: TreatmentCostSchedule("Combined hormonal therapy", 150.0, 600.0, 200.0),
    GNRH: TreatmentCostSchedule("GnRH analogue", 500.0, 4800.0, 400.0),
    SURGERY_TX: TreatmentCostSchedule("Laparoscopic excision", 9000.0, 0.0, 300.0),
    NEW: TreatmentCostSchedule("Oral GnRH antagonist", 800.0, 7200.0, 400.0),
}


def default_parameter_tables() -> ParameterTables:
    """Build a fresh :class:`ParameterTables` from the module defaults."""
    return ParameterTables(
        transitions=tuple(DEFAULT_TRANSITIONS),
        utilities=dict(DEFAULT_UTILITIES),
        state_costs=dict(DEFAULT_STATE_COSTS),
        treatment_costs=dict(DEFAULT_TREATMENT_COSTS),
    )
