import pytest
from pydantic import ValidationError

from endo_model.config.models import (
    CostDynamicsConfig,
    EngineConfig,
    ModelSettings,
    PhaseDisutilityConfig,
    SeverityWeights,
    SurgicalOutcomeConfig,
    TechnologyImprovementConfig,
    TreatmentEffectsConfig,
)
from endo_model.engines.markov import run_cohort
from endo_model.engines.transition_matrix import build_transition_matrix
from endo_model.states import MILD, MODERATE, SEVERE, SURGERY


def test_defaults_construct():
    config = EngineConfig()
    assert config.qaly.phase.phase_length == 28
    assert config.qaly.severity.weights[SEVERE] == 1.5
    assert config.costs.patent_expiry_offsets == {"GnRH": 5.0, "New": 10.0}
    assert set(config.effects.scaled_edges) == {"Standard", "GnRH", "New"}
    assert set(config.effects.surgical_outcomes) == {"Surgery"}


def test_severity_weights_must_cover_symptomatic_states():
    with pytest.raises(ValidationError, match="missing \\['Severe'\\]"):
        SeverityWeights(weights={MILD: 0.5, MODERATE: 1.0})


def test_technology_weights_must_cover_symptomatic_states():
    with pytest.raises(ValidationError, match="Technology weights"):
        TechnologyImprovementConfig(state_weights={MILD: (0.7, 0.3)})


def test_technology_weights_non_negative():
    weights = {MILD: (0.7, 0.3), MODERATE: (0.5, 0.5), SEVERE: (-0.1, 1.1)}
    with pytest.raises(ValidationError, match="non-negative"):
        TechnologyImprovementConfig(state_weights=weights)


def test_surgical_distribution_must_sum_to_one():
    with pytest.raises(ValidationError, match="sum to 1.0"):
        SurgicalOutcomeConfig(distribution={MILD: 0.5, SURGERY: 0.3})


def test_treatment_cannot_have_two_effect_kinds():
    surgical = SurgicalOutcomeConfig(distribution={MILD: 1.0})
    with pytest.raises(ValidationError, match="two effect kinds"):
        TreatmentEffectsConfig(surgical_outcomes={"Standard": surgical})


def test_phase_band_outside_cycle():
    with pytest.raises(ValidationError, match="must lie within"):
        PhaseDisutilityConfig(ovulation_days=(27, 30))


def test_generic_discount_total_bounded():
    with pytest.raises(ValidationError, match="cannot exceed 100%"):
        CostDynamicsConfig(generic_discount=0.95, generic_extra_cap=0.10)


def test_settings_defaults():
    settings = ModelSettings()
    assert settings.n_cycles == 360
    assert settings.cycle_length == pytest.approx(1 / 12)
    assert settings.initial_distribution == {MILD: 0.5, MODERATE: 0.4, SEVERE: 0.1}
    assert settings.reference_treatment == "Standard"


@pytest.mark.parametrize(
    "overrides,match",
    [
        ({"initial_distribution": {MILD: 0.5}}, "sum to 1.0"),
        ({"initial_distribution": {MILD: 0.5, MODERATE: 0.4, SEVERE: 0.1000001}}, "sum to 1.0"),
        ({"reference_treatment": "Placebo"}, "not among"),
        ({"n_cycles": 0}, "greater than or equal"),
        ({"discount_rate": 0.0}, "greater than"),
        ({"inflation_rate": -0.01}, "greater than"),
    ],
)
def test_invalid_settings(overrides, match):
    with pytest.raises(ValidationError, match=match):
        ModelSettings(**overrides)


def test_accepted_initial_distribution_propagates(tables):
    settings = ModelSettings(
        n_cycles=12, treatments=["Standard"], initial_distribution={MILD: 0.5, MODERATE: 0.4, SEVERE: 0.1}
    )
    matrix = build_transition_matrix(tables.transitions)
    trace = run_cohort(settings.initial_distribution, matrix, settings.n_cycles)
    assert trace.sum(axis=1).to_numpy() == pytest.approx(1.0, abs=1e-9)
