"""Parameter tables consumed by the engine and their literature defaults."""

from .tables import ParameterTables, TransitionRecord, TreatmentCostSchedule
from .defaults import default_parameter_tables

__all__ = [
    "ParameterTables",
    "TransitionRecord",
    "TreatmentCostSchedule",
    "default_parameter_tables",
]
