# endo_model/parameters/tables.py
"""
Immutable parameter-table structures.

The engine never loads or curates these itself; a loader (or
:mod:`endo_model.parameters.defaults`) builds them and hands them in.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Tuple

from endo_model.errors import ConfigurationError
from endo_model.states import DEATH

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionRecord:
    """One literature-derived transition between two health states.

    ``min_probability``/``max_probability`` are per-cycle (monthly)
    probabilities; ``annual_min``/``annual_max`` are the source's annual
    figures.
    """

    from_state: str
    to_state: str
    min_probability: float
    max_probability: float
    time_period: str = "monthly"
    annual_min: float = 0.0
    annual_max: float = 0.0
    source: str = ""
    notes: str = ""

    def __post_init__(self) -> None:
        for name in ("min_probability", "max_probability", "annual_min", "annual_max"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(
                    f"Transition {self.from_state}->{self.to_state}: {name}={value} is not a probability"
                )
        if self.min_probability > self.max_probability:
            raise ConfigurationError(
                f"Transition {self.from_state}->{self.to_state}: "
                f"min_probability {self.min_probability} exceeds max_probability {self.max_probability}"
            )

    def probability(self, use_max: bool = False) -> float:
        return self.max_probability if use_max else self.min_probability

    def annual_probability(self, use_max: bool = False) -> float:
        return self.annual_max if use_max else self.annual_min


@dataclass(frozen=True)
class TreatmentCostSchedule:
    """Cost schedule for one treatment strategy."""

    name: str
    initial_cost: float
    annual_cost: float
    annual_monitoring_cost: float = 0.0

    def __post_init__(self) -> None:
        for name in ("initial_cost", "annual_cost", "annual_monitoring_cost"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"Treatment '{self.name}': {name} must be non-negative")


@dataclass(frozen=True)
class ParameterTables:
    """Bundle of the tables one model run consumes."""

    transitions: Tuple[TransitionRecord, ...]
    utilities: Mapping[str, float]
    state_costs: Mapping[str, float]
    treatment_costs: Mapping[str, TreatmentCostSchedule] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Accept any iterable of records but store an immutable tuple
        object.__setattr__(self, "transitions", tuple(self.transitions))
        if not self.transitions:
            raise ConfigurationError("At least one transition record is required")
        for state, value in self.utilities.items():
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"Utility for '{state}' must lie in [0, 1], got {value}")
        if self.utilities.get(DEATH, 0.0) != 0.0:
            raise ConfigurationError(f"Utility for '{DEATH}' must be 0, got {self.utilities[DEATH]}")
        for state, value in self.state_costs.items():
            if value < 0:
                raise ConfigurationError(f"Annual cost for '{state}' must be non-negative, got {value}")

    def state_cost_vector(self, states: Iterable[str]) -> Dict[str, float]:
        """Return base annual costs for ``states``; every state must be covered."""
        return restrict_to_states(self.state_costs, states, "State cost")

    def treatment_schedule(self, treatment: str) -> TreatmentCostSchedule:
        """Look up a treatment's cost schedule, failing loudly if absent."""
        try:
            return self.treatment_costs[treatment]
        except KeyError:
            logger.error(f"No cost schedule for treatment '{treatment}'")
            raise ConfigurationError(
                f"Unknown treatment '{treatment}'. Known treatments: {sorted(self.treatment_costs)}"
            ) from None


def restrict_to_states(table: Mapping[str, float], states: Iterable[str], label: str) -> Dict[str, float]:
    """Return ``table`` restricted to ``states``, failing if any state is absent."""
    states = list(states)
    missing = [s for s in states if s not in table]
    if missing:
        logger.error(f"{label} table has no entry for states: {missing}")
        raise ConfigurationError(f"{label} table is missing states: {missing}")
    return {s: float(table[s]) for s in states}
