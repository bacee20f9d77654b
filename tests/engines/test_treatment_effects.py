"""Tests for treatment-specific adjustment of transition matrices."""
import numpy as np
import pandas as pd
import pytest

from endo_model.config.models import EdgeRule, ScaledEdgeEffectConfig, TreatmentEffectsConfig
from endo_model.engines.treatment_effects import (
    ScaledEdgeEffect,
    SurgicalOutcomeEffect,
    TreatmentEffect,
    adjust_for_treatment,
    build_treatment_effects,
    get_treatment_effect,
    renormalize_diagonal,
)
from endo_model.errors import InvariantViolation
from endo_model.states import (
    DEATH,
    INFERTILITY,
    MILD,
    MODERATE,
    POST_SURGERY,
    REMISSION,
    SEVERE,
    SURGERY,
)

PROGRESSION = [(MILD, MODERATE), (MILD, SEVERE), (MODERATE, SEVERE)]


def assert_row_stochastic(matrix):
    values = matrix.to_numpy()
    assert (values >= 0).all() and (values <= 1).all()
    assert np.allclose(values.sum(axis=1), 1.0, rtol=0, atol=1e-9)


def off_diagonal_unchanged(base, adjusted, changed):
    for src in base.index:
        for dst in base.columns:
            if src == dst or (src, dst) in changed:
                continue
            assert adjusted.loc[src, dst] == base.loc[src, dst], (src, dst)


@pytest.mark.parametrize("treatment,multiplier", [("Standard", 0.7), ("GnRH", 0.5), ("New", 0.4)])
def test_progression_edges_scaled(base_matrix, treatment, multiplier):
    adjusted = adjust_for_treatment(base_matrix, treatment)
    assert_row_stochastic(adjusted)
    for src, dst in PROGRESSION:
        assert adjusted.loc[src, dst] == pytest.approx(base_matrix.loc[src, dst] * multiplier)


def test_standard_changes_only_progression(base_matrix):
    adjusted = adjust_for_treatment(base_matrix, "Standard")
    off_diagonal_unchanged(base_matrix, adjusted, set(PROGRESSION))
    # Residual goes to the diagonal
    removed = sum(base_matrix.loc[MILD, dst] * 0.3 for dst in (MODERATE, SEVERE))
    assert adjusted.loc[MILD, MILD] == pytest.approx(base_matrix.loc[MILD, MILD] + removed)


def test_gnrh_improvement_edges(small_matrix):
    adjusted = adjust_for_treatment(small_matrix, "GnRH")
    assert_row_stochastic(adjusted)
    # 0.40 * 1.5 = 0.60 is capped at 0.5
    assert adjusted.loc[MODERATE, MILD] == pytest.approx(0.5)
    assert adjusted.loc[MODERATE, REMISSION] == pytest.approx(0.21)
    assert adjusted.loc[SEVERE, MILD] == pytest.approx(0.15)
    assert adjusted.loc[SEVERE, REMISSION] == pytest.approx(0.27)
    assert adjusted.loc[MODERATE, MODERATE] == pytest.approx(0.23)
    assert adjusted.loc[SEVERE, SEVERE] == pytest.approx(0.34)
    assert adjusted.loc[MILD, MILD] == pytest.approx(0.875)
    # Severe->Moderate is not an improvement edge for this rule
    assert adjusted.loc[SEVERE, MODERATE] == pytest.approx(0.20)


def test_new_treatment_remission_cap(small_matrix):
    adjusted = adjust_for_treatment(small_matrix, "New")
    assert_row_stochastic(adjusted)
    assert adjusted.loc[MODERATE, REMISSION] == pytest.approx(0.2)
    assert adjusted.loc[SEVERE, REMISSION] == pytest.approx(0.2)
    assert adjusted.loc[MILD, MODERATE] == pytest.approx(0.04)
    assert adjusted.loc[MODERATE, MILD] == pytest.approx(0.40)


def test_new_treatment_uncapped_remission(base_matrix):
    adjusted = adjust_for_treatment(base_matrix, "New")
    assert adjusted.loc[MODERATE, REMISSION] == pytest.approx(base_matrix.loc[MODERATE, REMISSION] * 3)


def test_ratio_between_progression_edges_preserved(base_matrix):
    adjusted = adjust_for_treatment(base_matrix, "GnRH")
    base_ratio = base_matrix.loc[MILD, MODERATE] / base_matrix.loc[MILD, SEVERE]
    assert adjusted.loc[MILD, MODERATE] / adjusted.loc[MILD, SEVERE] == pytest.approx(base_ratio)


def test_zero_cells_are_not_created(small_matrix):
    small_matrix = small_matrix.copy()
    small_matrix.loc[MILD, SEVERE] = 0.0
    small_matrix.loc[MILD, MILD] = 0.85
    adjusted = adjust_for_treatment(small_matrix, "GnRH")
    assert adjusted.loc[MILD, SEVERE] == 0.0


def test_surgery_row_overwritten(base_matrix):
    adjusted = adjust_for_treatment(base_matrix, "Surgery")
    assert_row_stochastic(adjusted)
    row = adjusted.loc[SURGERY]
    expected = {
        MILD: 0.50,
        MODERATE: 0.20,
        SEVERE: 0.10,
        INFERTILITY: 0.10,
        REMISSION: 0.05,
        DEATH: 0.02,
        SURGERY: 0.03,
    }
    for state, p in expected.items():
        assert row[state] == pytest.approx(p)
    assert row[POST_SURGERY] == 0.0
    # Other rows untouched
    pd.testing.assert_frame_equal(adjusted.drop(index=SURGERY), base_matrix.drop(index=SURGERY))


def test_surgery_without_surgery_state_is_identity(small_matrix):
    adjusted = adjust_for_treatment(small_matrix, "Surgery")
    pd.testing.assert_frame_equal(adjusted, small_matrix)


def test_surgery_missing_outcome_states_go_to_diagonal():
    states = [MILD, SURGERY, DEATH]
    matrix = pd.DataFrame(
        [[0.9, 0.05, 0.05], [0.5, 0.4, 0.1], [0.0, 0.0, 1.0]], index=states, columns=states
    )
    adjusted = adjust_for_treatment(matrix, "Surgery")
    assert adjusted.loc[SURGERY, MILD] == pytest.approx(0.5)
    assert adjusted.loc[SURGERY, DEATH] == pytest.approx(0.02)
    assert adjusted.loc[SURGERY, SURGERY] == pytest.approx(0.48)


@pytest.mark.parametrize("treatment", [None, "Homeopathy"])
def test_identity_for_absent_or_unknown_treatment(base_matrix, treatment):
    adjusted = adjust_for_treatment(base_matrix, treatment)
    pd.testing.assert_frame_equal(adjusted, base_matrix)
    assert type(get_treatment_effect(treatment)) is TreatmentEffect


def test_base_matrix_not_mutated(base_matrix):
    before = base_matrix.copy()
    adjust_for_treatment(base_matrix, "GnRH")
    adjust_for_treatment(base_matrix, "Surgery")
    pd.testing.assert_frame_equal(base_matrix, before)


def test_effect_registry_types():
    effects = build_treatment_effects()
    assert isinstance(effects["Standard"], ScaledEdgeEffect)
    assert isinstance(effects["GnRH"], ScaledEdgeEffect)
    assert isinstance(effects["New"], ScaledEdgeEffect)
    assert isinstance(effects["Surgery"], SurgicalOutcomeEffect)


def test_custom_effect_config(small_matrix):
    config = TreatmentEffectsConfig(
        scaled_edges={
            "Standard": ScaledEdgeEffectConfig(
                rules=[EdgeRule(from_states=[MILD], to_states=[MODERATE], multiplier=2.0)]
            )
        },
        surgical_outcomes={},
    )
    adjusted = adjust_for_treatment(small_matrix, "Standard", config)
    assert adjusted.loc[MILD, MODERATE] == pytest.approx(0.2)
    assert adjusted.loc[MILD, MILD] == pytest.approx(0.7)
    # GnRH is not configured here and falls back to the identity
    pd.testing.assert_frame_equal(adjust_for_treatment(small_matrix, "GnRH", config), small_matrix)


def test_renormalize_diagonal_only():
    states = ["A", "B"]
    matrix = pd.DataFrame([[0.5, 0.3], [0.2, 0.8]], index=states, columns=states)
    fixed = renormalize_diagonal(matrix)
    assert fixed.loc["A", "A"] == pytest.approx(0.7)
    assert fixed.loc["A", "B"] == 0.3
    assert fixed.loc["B", "B"] == 0.8


def test_renormalize_negative_diagonal_raises():
    states = ["A", "B", "C"]
    matrix = pd.DataFrame(
        [[0.0, 0.7, 0.6], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]], index=states, columns=states
    )
    with pytest.raises(InvariantViolation, match="Cannot renormalize row 'A'"):
        renormalize_diagonal(matrix)


def test_multiplier_pushing_row_over_one_raises():
    states = [MILD, MODERATE]
    matrix = pd.DataFrame([[0.4, 0.6], [0.0, 1.0]], index=states, columns=states)
    config = TreatmentEffectsConfig(
        scaled_edges={
            "Boost": ScaledEdgeEffectConfig(
                rules=[EdgeRule(from_states=[MILD], to_states=[MODERATE], multiplier=2.0)]
            )
        },
        surgical_outcomes={},
    )
    with pytest.raises(InvariantViolation):
        adjust_for_treatment(matrix, "Boost", config)
