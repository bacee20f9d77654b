# endo_model/engines/qaly.py
"""
QALY accumulation over a cohort trace.

Per-cycle utilities are adjusted for the menstrual phase of the cycle:
the phase day is ``((t - 1) mod phase_length) + 1`` with ``t`` the
Markov cycle index. With monthly cycles this treats each cycle as one
day of a 28-day menstrual cycle, which only matches calendar time when
``cycle_length`` is 1/28 year. The mapping is kept as is.
"""
import logging
from typing import Mapping, Optional

import numpy as np
import pandas as pd

from endo_model.config.models import ExtrapolationConfig, PhaseDisutilityConfig, QalyConfig
from endo_model.errors import DomainRangeError
from endo_model.parameters.tables import restrict_to_states
from endo_model.states import DEATH, SYMPTOMATIC_STATES, YEAR
from endo_model.utils import discount_factors, require_positive

logger = logging.getLogger(__name__)


def phase_day(cycle: int, phase_length: int = 28) -> int:
    return ((cycle - 1) % phase_length) + 1


def phase_disutility(day: int, phase: PhaseDisutilityConfig) -> float:
    """Disutility for a day of the menstrual cycle."""
    lo, hi = phase.menstruation_days
    if lo <= day <= hi:
        return phase.menstruation_disutility
    lo, hi = phase.ovulation_days
    if lo <= day <= hi:
        return phase.ovulation_disutility
    return phase.background_disutility


def qaly_by_cycle(
    trace: pd.DataFrame,
    utilities: Mapping[str, float],
    discount_rate: float,
    cycle_length: float,
    config: Optional[QalyConfig] = None,
) -> pd.DataFrame:
    """
    Per-cycle phase-adjusted utility, discount factor and discounted QALYs.

    Cycle 0 (the initial distribution) accrues nothing; rows cover cycles
    1..n.
    """
    config = config or QalyConfig()
    require_positive("discount_rate", discount_rate)
    require_positive("cycle_length", cycle_length)

    states = list(trace.columns)
    base = np.array(list(restrict_to_states(utilities, states, "Utility").values()))
    severity = np.array(
        [config.severity.weights[s] if s in SYMPTOMATIC_STATES else 0.0 for s in states]
    )

    cycles = trace.index[1:].to_numpy()
    days = np.array([phase_day(int(t), config.phase.phase_length) for t in cycles])
    disutility = np.array([phase_disutility(int(d), config.phase) for d in days])

    # Only symptomatic states carry a non-zero severity, so others keep the base utility
    adjusted = base[np.newaxis, :] + disutility[:, np.newaxis] * severity[np.newaxis, :]
    symptomatic = severity != 0.0
    adjusted[:, symptomatic] = np.clip(adjusted[:, symptomatic], 0.0, 1.0)

    proportions = trace.iloc[1:].to_numpy(dtype=float)
    cycle_utility = (proportions * adjusted).sum(axis=1)
    discount = discount_factors(discount_rate, cycles * cycle_length)

    return pd.DataFrame(
        {
            "phase_day": days,
            "disutility": disutility,
            "utility": cycle_utility,
            "discount_factor": discount,
            "qalys": cycle_utility * cycle_length * discount,
        },
        index=trace.index[1:],
    )


def calculate_qalys(
    trace: pd.DataFrame,
    utilities: Mapping[str, float],
    discount_rate: float,
    cycle_length: float,
    config: Optional[QalyConfig] = None,
) -> float:
    """Total discounted QALYs accrued over the trace."""
    per_cycle = qaly_by_cycle(trace, utilities, discount_rate, cycle_length, config)
    total = float(per_cycle["qalys"].sum())
    logger.debug(f"Accumulated {total:.4f} discounted QALYs over {len(per_cycle)} cycles")
    return total


def extrapolation_by_year(
    final_distribution: Mapping[str, float],
    utilities: Mapping[str, float],
    age_at_horizon: float,
    discount_rate: float,
    config: Optional[ExtrapolationConfig] = None,
    years: Optional[int] = None,
) -> pd.DataFrame:
    """
    Yearly projection beyond the simulated horizon.

    Expected utility of the final distribution (base utilities, no phase
    adjustment) is scaled each year by an age penalty and that year's survival
    probability, then discounted by the extrapolation year.
    """
    config = config or ExtrapolationConfig()
    require_positive("discount_rate", discount_rate)
    years = config.years if years is None else years
    if years < 0:
        raise DomainRangeError(f"Extrapolation years must be >= 0, got {years}")

    distribution = pd.Series(final_distribution, dtype=float)
    base = restrict_to_states(utilities, distribution.index, "Utility")
    expected_utility = float(sum(distribution[s] * base[s] for s in distribution.index))
    alive = 1.0 - float(distribution.get(DEATH, 0.0))

    year = np.arange(1, years + 1)
    age = age_at_horizon + year - 1
    age_penalty = np.clip(
        1.0 - config.age_penalty_per_year * np.maximum(age - config.age_penalty_threshold, 0.0),
        0.0,
        1.0,
    )
    mortality = np.minimum(
        config.mortality_cap,
        config.mortality_base
        * np.exp(config.mortality_growth * (age - config.mortality_reference_age) / config.mortality_age_scale),
    )
    survival = 1.0 - mortality
    discount = discount_factors(discount_rate, year)

    return pd.DataFrame(
        {
            "age": age,
            "age_penalty": age_penalty,
            "survival": survival,
            "discount_factor": discount,
            "life_years": alive * survival,
            "qalys": expected_utility * age_penalty * survival * discount,
        },
        index=pd.Index(year, name=YEAR),
    )


def extrapolate_qalys(
    final_distribution: Mapping[str, float],
    utilities: Mapping[str, float],
    age_at_horizon: float,
    discount_rate: float,
    config: Optional[ExtrapolationConfig] = None,
    years: Optional[int] = None,
) -> float:
    """Discounted QALYs accrued after the horizon (0.0 when ``years`` is 0)."""
    projection = extrapolation_by_year(
        final_distribution, utilities, age_at_horizon, discount_rate, config, years
    )
    return float(projection["qalys"].sum())
