# endo_model/simulation.py
"""
Model-run entry points.

``run_model`` evaluates one treatment for one parameter set and returns a
complete :class:`OutcomeRecord` or raises; ``run_comparison`` evaluates a
list of treatments and builds the cost-effectiveness table. Both are pure
functions of their arguments, so drivers may call them concurrently as
long as each call gets its own inputs.
"""

import time
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

import pandas as pd

from endo_model.config.models import EngineConfig, ModelSettings
from endo_model.engines.costs import costs_by_cycle
from endo_model.engines.markov import run_cohort
from endo_model.engines.qaly import extrapolation_by_year, qaly_by_cycle
from endo_model.engines.transition_matrix import build_transition_matrix
from endo_model.engines.treatment_effects import adjust_for_treatment
from endo_model.errors import DomainRangeError
from endo_model.parameters.defaults import default_parameter_tables
from endo_model.parameters.tables import ParameterTables
from endo_model.reporting.cea import compare_strategies
from endo_model.states import DEATH
from logging_config import PERFORMANCE_LOGGER, SIMULATION_LOGGER, get_logger

logger = get_logger(__name__)
sim_logger = get_logger(SIMULATION_LOGGER)
perf_logger = get_logger(PERFORMANCE_LOGGER)


@dataclass(frozen=True)
class PatientCharacteristics:
    start_age: float = 30.0

    def __post_init__(self) -> None:
        if self.start_age < 0:
            raise DomainRangeError(f"start_age must be non-negative, got {self.start_age}")


@dataclass(frozen=True)
class OutcomeRecord:
    """Result of one (treatment, parameter set) evaluation.

    ``trace``, ``qaly_detail`` and ``cost_detail`` are kept for read-only
    consumption by plotting code.
    """

    treatment: Optional[str]
    total_qalys: float
    total_costs: float
    life_years: float
    trace: pd.DataFrame = field(repr=False, compare=False)
    qaly_detail: pd.DataFrame = field(repr=False, compare=False)
    cost_detail: pd.DataFrame = field(repr=False, compare=False)
    extrapolated_qalys: float = 0.0

    def as_dict(self) -> Dict[str, object]:
        return {
            "treatment": self.treatment,
            "total_qalys": self.total_qalys,
            "total_costs": self.total_costs,
            "life_years": self.life_years,
            "extrapolated_qalys": self.extrapolated_qalys,
        }


def run_model(
    initial_distribution: Mapping[str, float],
    treatment: Optional[str],
    n_cycles: int,
    patient: PatientCharacteristics,
    discount_rate: float,
    inflation_rate: float,
    base_year: int,
    *,
    tables: Optional[ParameterTables] = None,
    config: Optional[EngineConfig] = None,
    cycle_length: float = 1.0 / 12.0,
    use_max: bool = False,
    extrapolation_years: Optional[int] = None,
) -> OutcomeRecord:
    """
    Run the cohort model for a single treatment.

    Args:
        initial_distribution: ``{state: share}`` at cycle 0; omitted states start empty.
        treatment: Treatment identifier, or ``None`` for no treatment.
        n_cycles: Number of Markov cycles (>= 1).
        patient: Patient characteristics (starting age).
        discount_rate: Annual discount rate for costs and QALYs.
        inflation_rate: Annual healthcare inflation rate.
        base_year: Calendar year of cycle 0.
        tables: Parameter tables; defaults to the packaged literature tables.
        config: Engine constants; defaults to :class:`EngineConfig` defaults.
        cycle_length: Cycle length in years.
        use_max: Build the matrix from the upper probability bounds.
        extrapolation_years: Years projected past the horizon; defaults to
            ``config.qaly.extrapolation.years``.

    Returns:
        OutcomeRecord with discounted QALYs and costs and undiscounted life-years.
    """
    started = time.perf_counter()
    tables = tables or default_parameter_tables()
    config = config or EngineConfig()

    base_matrix = build_transition_matrix(tables.transitions, use_max=use_max)
    matrix = adjust_for_treatment(base_matrix, treatment, config.effects)
    trace = run_cohort(initial_distribution, matrix, n_cycles)

    qaly_detail = qaly_by_cycle(trace, tables.utilities, discount_rate, cycle_length, config.qaly)
    cost_detail = costs_by_cycle(
        trace,
        treatment,
        tables,
        patient.start_age,
        base_year,
        discount_rate,
        inflation_rate,
        cycle_length,
        config.costs,
    )

    alive = 1.0 - trace[DEATH] if DEATH in trace.columns else pd.Series(1.0, index=trace.index)
    life_years = float(alive.iloc[1:].sum() * cycle_length)
    total_qalys = float(qaly_detail["qalys"].sum())

    horizon_years = n_cycles * cycle_length
    projection = extrapolation_by_year(
        trace.iloc[-1].to_dict(),
        tables.utilities,
        patient.start_age + horizon_years,
        discount_rate,
        config.qaly.extrapolation,
        extrapolation_years,
    )
    extrapolated = float(projection["qalys"].sum())
    life_years += float(projection["life_years"].sum())

    outcome = OutcomeRecord(
        treatment=treatment,
        total_qalys=total_qalys + extrapolated,
        total_costs=float(cost_detail["discounted_cost"].sum()),
        life_years=life_years,
        trace=trace,
        qaly_detail=qaly_detail,
        cost_detail=cost_detail,
        extrapolated_qalys=extrapolated,
    )

    sim_logger.info(
        f"Treatment '{treatment}': QALYs={outcome.total_qalys:.4f} "
        f"costs={outcome.total_costs:,.2f} life_years={outcome.life_years:.3f}"
    )
    perf_logger.info(
        f"run_model('{treatment}', n_cycles={n_cycles}) took {time.perf_counter() - started:.3f}s"
    )
    return outcome


def run_comparison(
    settings: Optional[ModelSettings] = None,
    tables: Optional[ParameterTables] = None,
    treatments: Optional[List[str]] = None,
) -> Tuple[Dict[str, OutcomeRecord], pd.DataFrame]:
    """Run every treatment in ``settings`` and compare them to the reference."""
    settings = settings or ModelSettings()
    tables = tables or default_parameter_tables()
    treatments = treatments or settings.treatments
    patient = PatientCharacteristics(start_age=settings.start_age)

    logger.info(f"Running comparison of {treatments} over {settings.n_cycles} cycles")
    outcomes: Dict[str, OutcomeRecord] = {}
    for treatment in treatments:
        outcomes[treatment] = run_model(
            settings.initial_distribution,
            treatment,
            settings.n_cycles,
            patient,
            settings.discount_rate,
            settings.inflation_rate,
            settings.base_year,
            tables=tables,
            config=settings.engine,
            cycle_length=settings.cycle_length,
            use_max=settings.use_max_probabilities,
        )

    table = compare_strategies(outcomes, settings.reference_treatment, settings.willingness_to_pay)
    return outcomes, table
