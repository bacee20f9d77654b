"""End-to-end tests of the model-run entry points."""
import math

import numpy as np
import pytest

from endo_model.config.models import EngineConfig, ExtrapolationConfig, QalyConfig
from endo_model.errors import ConfigurationError, DomainRangeError
from endo_model.simulation import OutcomeRecord, PatientCharacteristics, run_comparison, run_model
from endo_model.states import DEATH, MILD, MODERATE, SEVERE

INITIAL = {MILD: 0.5, MODERATE: 0.4, SEVERE: 0.1}
PATIENT = PatientCharacteristics(start_age=30)


def run(treatment="Standard", n_cycles=360, **kwargs):
    params = dict(discount_rate=0.035, inflation_rate=0.03, base_year=2024)
    params.update(kwargs)
    return run_model(INITIAL, treatment, n_cycles, PATIENT, **params)


@pytest.mark.integration
def test_base_case_standard_treatment():
    outcome = run()
    assert isinstance(outcome, OutcomeRecord)
    assert outcome.treatment == "Standard"
    assert math.isfinite(outcome.total_qalys) and 0 < outcome.total_qalys < 30
    assert math.isfinite(outcome.total_costs) and outcome.total_costs > 0
    assert 0 < outcome.life_years <= 30
    assert outcome.trace.shape[0] == 361
    assert np.allclose(outcome.trace.sum(axis=1), 1.0, rtol=0, atol=1e-9)


@pytest.mark.integration
def test_run_is_deterministic():
    first = run()
    second = run()
    assert first.total_qalys == second.total_qalys
    assert first.total_costs == second.total_costs
    assert first.life_years == second.life_years


@pytest.mark.parametrize("treatment", [None, "Standard", "GnRH", "Surgery", "New"])
def test_every_treatment_runs(treatment):
    outcome = run(treatment, n_cycles=60)
    assert outcome.total_qalys > 0
    assert outcome.total_costs > 0


def test_qalys_bounded_by_horizon():
    outcome = run("New", n_cycles=120)
    assert outcome.total_qalys <= 120 / 12


def test_doubling_inflation_never_lowers_total_cost():
    assert run("GnRH", inflation_rate=0.06).total_costs >= run("GnRH").total_costs


def test_extrapolation_adds_qalys():
    horizon_only = run(n_cycles=120)
    extended = run(n_cycles=120, extrapolation_years=20)
    assert extended.extrapolated_qalys > 0
    assert extended.total_qalys == pytest.approx(horizon_only.total_qalys + extended.extrapolated_qalys)
    assert extended.life_years > horizon_only.life_years
    assert extended.total_costs == horizon_only.total_costs


def test_extrapolation_years_from_config():
    config = EngineConfig(qaly=QalyConfig(extrapolation=ExtrapolationConfig(years=5)))
    outcome = run(n_cycles=12, config=config)
    assert outcome.extrapolated_qalys > 0


def test_life_years_exclude_dead_share():
    outcome = run(n_cycles=240)
    alive = 1.0 - outcome.trace[DEATH].iloc[1:]
    assert outcome.life_years == pytest.approx(alive.sum() / 12)


def test_unknown_treatment_fails_loudly():
    with pytest.raises(ConfigurationError):
        run("Homeopathy", n_cycles=12)


@pytest.mark.parametrize("n_cycles", [0, -12])
def test_invalid_cycle_count(n_cycles):
    with pytest.raises(DomainRangeError):
        run(n_cycles=n_cycles)


def test_non_positive_discount_rate():
    with pytest.raises(DomainRangeError):
        run(discount_rate=0.0, n_cycles=12)


def test_negative_age_rejected():
    with pytest.raises(DomainRangeError):
        PatientCharacteristics(start_age=-1)


def test_use_max_changes_results():
    assert run(n_cycles=60, use_max=True).total_qalys != run(n_cycles=60).total_qalys


@pytest.mark.integration
def test_run_comparison_default_settings(settings, tables):
    settings = settings.model_copy(update={"n_cycles": 120, "willingness_to_pay": 30000.0})
    outcomes, table = run_comparison(settings, tables)
    assert set(outcomes) == {"Standard", "GnRH", "Surgery", "New"}
    assert len(table) == 4
    assert table.set_index("treatment").loc["Standard", "icer"] == "Reference"
    assert table["cost"].is_monotonic_increasing
    assert "nmb" in table.columns


def test_outcome_as_dict():
    record = run(n_cycles=12).as_dict()
    assert set(record) == {"treatment", "total_qalys", "total_costs", "life_years", "extrapolated_qalys"}
