# endo_model/engines/costs.py
"""
Dynamic cost accumulation over a cohort trace.

Two streams are costed per cycle and summed before discounting:

* state costs - annual base cost per state, inflated, scaled for age
  over the aging threshold, and reduced by technology improvements
  (diagnostic/pain management for symptomatic states, procedural
  efficiency/length of stay for surgery);
* treatment costs - initial cost in the first cycle, then the annual
  drug and monitoring cost per cycle, inflated and adjusted for patent
  expiry (pharmacological), learning curve and surgeon volume
  (surgical) or monitoring efficiency (non-surgical).
"""
import logging
import math
from typing import Optional

import numpy as np
import pandas as pd

from endo_model.config.models import CostDynamicsConfig, TechnologyImprovementConfig
from endo_model.parameters.tables import ParameterTables, TreatmentCostSchedule
from endo_model.states import SYMPTOMATIC_STATES
from endo_model.treatments import SURGICAL
from endo_model.utils import discount_factors, growth_factors, require_positive

logger = logging.getLogger(__name__)


def aging_factor(age, config: CostDynamicsConfig):
    """``1 + slope * (age - threshold)`` above the threshold, else 1."""
    return 1.0 + config.aging_cost_slope * np.maximum(np.asarray(age, dtype=float) - config.aging_threshold_age, 0.0)


def technology_reduction(state: str, years: np.ndarray, config: TechnologyImprovementConfig) -> np.ndarray:
    """Fractional cost reduction for ``state`` after ``years`` of technology progress."""
    years = np.asarray(years, dtype=float)
    if state in SYMPTOMATIC_STATES:
        w_diag, w_pain = config.state_weights[state]
        diagnostic = np.minimum(config.diagnostic_cap, config.diagnostic_rate * years)
        pain = np.minimum(config.pain_management_cap, config.pain_management_rate * years)
        return w_diag * diagnostic + w_pain * pain
    if state == config.surgical_state:
        w_proc, w_los = config.surgical_weights
        procedural = np.minimum(config.procedural_efficiency_cap, config.procedural_efficiency_rate * years)
        stay = np.minimum(config.length_of_stay_cap, config.length_of_stay_rate * years)
        return w_proc * procedural + w_los * stay
    return np.zeros_like(years)


def state_costs_by_cycle(
    trace: pd.DataFrame,
    tables: ParameterTables,
    start_age: float,
    inflation_rate: float,
    cycle_length: float,
    config: CostDynamicsConfig,
) -> np.ndarray:
    """Proportion-weighted state cost for cycles 1..n."""
    states = list(trace.columns)
    base = tables.state_cost_vector(states)
    cycles = trace.index[1:].to_numpy()
    years = cycles * cycle_length

    common = growth_factors(inflation_rate, years) * aging_factor(start_age + years, config)
    unit_costs = np.column_stack(
        [
            base[s] * cycle_length * common * (1.0 - technology_reduction(s, years, config.technology))
            for s in states
        ]
    )
    proportions = trace.iloc[1:].to_numpy(dtype=float)
    return (proportions * unit_costs).sum(axis=1)


def treatment_cost_for_cycle(
    treatment: str,
    cycle: int,
    schedule: TreatmentCostSchedule,
    base_year: int,
    inflation_rate: float,
    cycle_length: float,
    config: CostDynamicsConfig,
) -> float:
    """Cost of ``treatment`` in Markov cycle ``cycle`` (1-based)."""
    years = cycle * cycle_length
    initial = cycle == 1
    if initial:
        cost = schedule.initial_cost
    else:
        cost = (schedule.annual_cost + schedule.annual_monitoring_cost) * cycle_length
    cost *= (1.0 + inflation_rate) ** years

    if treatment in config.patent_expiry_offsets:
        expiry_year = base_year + config.patent_expiry_offsets[treatment]
        simulated_year = base_year + years
        if simulated_year > expiry_year:
            extra = min(config.generic_extra_cap, config.generic_extra_growth * (simulated_year - expiry_year))
            cost *= 1.0 - (config.generic_discount + extra)

    if treatment in SURGICAL:
        years_since_introduction = config.technique_age_years + years
        efficiency = config.learning_curve_max * (1.0 - math.exp(-config.learning_curve_rate * years_since_introduction))
        cost *= 1.0 - efficiency
        if initial:
            cost *= 1.0 - config.high_volume_discount
    elif not initial:
        cost *= 1.0 - min(config.monitoring_efficiency_cap, config.monitoring_efficiency_growth * years)

    return cost


def costs_by_cycle(
    trace: pd.DataFrame,
    treatment: Optional[str],
    tables: ParameterTables,
    start_age: float,
    base_year: int,
    discount_rate: float,
    inflation_rate: float,
    cycle_length: float = 1.0 / 12.0,
    config: Optional[CostDynamicsConfig] = None,
) -> pd.DataFrame:
    """
    Per-cycle state, treatment and discounted total costs for cycles 1..n.

    ``treatment=None`` (no treatment) carries no treatment cost; any other
    name must have a cost schedule in ``tables``.

    Raises:
        ConfigurationError: If the treatment or a trace state has no cost entry.
        DomainRangeError: If a rate or the cycle length is not positive.
    """
    config = config or CostDynamicsConfig()
    require_positive("discount_rate", discount_rate)
    require_positive("inflation_rate", inflation_rate)
    require_positive("cycle_length", cycle_length)

    cycles = trace.index[1:].to_numpy()
    state_cost = state_costs_by_cycle(trace, tables, start_age, inflation_rate, cycle_length, config)

    if treatment is None:
        treatment_cost = np.zeros(len(cycles))
    else:
        schedule = tables.treatment_schedule(treatment)
        treatment_cost = np.array(
            [
                treatment_cost_for_cycle(
                    treatment, int(t), schedule, base_year, inflation_rate, cycle_length, config
                )
                for t in cycles
            ]
        )

    total = state_cost + treatment_cost
    discount = discount_factors(discount_rate, cycles * cycle_length)
    return pd.DataFrame(
        {
            "simulated_year": base_year + cycles * cycle_length,
            "state_cost": state_cost,
            "treatment_cost": treatment_cost,
            "total_cost": total,
            "discount_factor": discount,
            "discounted_cost": total * discount,
        },
        index=trace.index[1:],
    )


def calculate_costs(
    trace: pd.DataFrame,
    treatment: Optional[str],
    tables: ParameterTables,
    start_age: float,
    base_year: int,
    discount_rate: float,
    inflation_rate: float,
    cycle_length: float = 1.0 / 12.0,
    config: Optional[CostDynamicsConfig] = None,
) -> float:
    """Total discounted cost over the trace."""
    per_cycle = costs_by_cycle(
        trace, treatment, tables, start_age, base_year, discount_rate, inflation_rate, cycle_length, config
    )
    total = float(per_cycle["discounted_cost"].sum())
    logger.debug(f"Accumulated discounted cost {total:,.2f} for treatment '{treatment}'")
    return total
