# endo_model/config/models.py
"""
Pydantic models for the constants the engine consumes.

Every multiplier, cap, weight and phase band used by the engines lives
here so that scenario and sensitivity drivers can override any of them
by constructing (or loading from YAML) a different model instance.
"""

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np
from pydantic import BaseModel, Field, model_validator

from endo_model.states import (
    DEATH,
    INFERTILITY,
    MILD,
    MODERATE,
    REMISSION,
    SEVERE,
    SURGERY,
    SYMPTOMATIC_STATES,
)
from endo_model.treatments import GNRH, NEW, STANDARD, TREATMENTS
from endo_model.treatments import SURGERY as SURGERY_TX
from endo_model.utils import MASS_TOLERANCE

logger = logging.getLogger(__name__)


def _check_covers_symptomatic(mapping: Dict[str, object], label: str) -> None:
    missing = sorted(SYMPTOMATIC_STATES - set(mapping))
    if missing:
        raise ValueError(f"{label} must cover every symptomatic state; missing {missing}")


# --- Treatment effects ---


class EdgeRule(BaseModel):
    """Multiply every existing, non-zero ``from -> to`` cell by ``multiplier``."""

    from_states: List[str]
    to_states: List[str]
    multiplier: float = Field(..., ge=0.0)
    cap: Optional[float] = Field(
        None, gt=0.0, le=1.0, description="Absolute ceiling on the adjusted probability"
    )


class ScaledEdgeEffectConfig(BaseModel):
    rules: List[EdgeRule] = Field(default_factory=list)


class SurgicalOutcomeConfig(BaseModel):
    """Authoritative outgoing distribution from the Surgery state."""

    state: str = SURGERY
    distribution: Dict[str, float]

    @model_validator(mode="after")
    def check_distribution_sums_to_one(self) -> "SurgicalOutcomeConfig":
        if any(p < 0 or p > 1 for p in self.distribution.values()):
            raise ValueError("Post-surgical probabilities must lie in [0, 1]")
        total = sum(self.distribution.values())
        if not np.isclose(total, 1.0):
            raise ValueError(f"Post-surgical distribution must sum to 1.0, got {total:.4f}")
        return self


def _progression_rule(multiplier: float) -> EdgeRule:
    return EdgeRule(from_states=[MILD, MODERATE], to_states=[MODERATE, SEVERE], multiplier=multiplier)


def _default_scaled_effects() -> Dict[str, ScaledEdgeEffectConfig]:
    # Mild->Moderate, Mild->Severe and Moderate->Severe; Moderate->Moderate is
    # a diagonal and is skipped by the adjuster.
    return {
        STANDARD: ScaledEdgeEffectConfig(rules=[_progression_rule(0.7)]),
        GNRH: ScaledEdgeEffectConfig(
            rules=[
                _progression_rule(0.5),
                EdgeRule(
                    from_states=[MODERATE, SEVERE],
                    to_states=[MILD, REMISSION],
                    multiplier=1.5,
                    cap=0.5,
                ),
            ]
        ),
        NEW: ScaledEdgeEffectConfig(
            rules=[
                _progression_rule(0.4),
                EdgeRule(
                    from_states=[MODERATE, SEVERE],
                    to_states=[REMISSION],
                    multiplier=3.0,
                    cap=0.2,
                ),
            ]
        ),
    }


def _default_surgical_outcomes() -> Dict[str, SurgicalOutcomeConfig]:
    return {
        SURGERY_TX: SurgicalOutcomeConfig(
            state=SURGERY,
            distribution={
                MILD: 0.50,
                MODERATE: 0.20,
                SEVERE: 0.10,
                INFERTILITY: 0.10,
                REMISSION: 0.05,
                DEATH: 0.02,
                SURGERY: 0.03,
            },
        )
    }


class TreatmentEffectsConfig(BaseModel):
    scaled_edges: Dict[str, ScaledEdgeEffectConfig] = Field(default_factory=_default_scaled_effects)
    surgical_outcomes: Dict[str, SurgicalOutcomeConfig] = Field(
        default_factory=_default_surgical_outcomes
    )

    @model_validator(mode="after")
    def check_no_overlap(self) -> "TreatmentEffectsConfig":
        overlap = set(self.scaled_edges) & set(self.surgical_outcomes)
        if overlap:
            raise ValueError(f"Treatments configured with two effect kinds: {sorted(overlap)}")
        return self


# --- Utility / QALY ---


class PhaseDisutilityConfig(BaseModel):
    """Menstrual-phase bands, as inclusive day ranges within the phase cycle."""

    phase_length: int = Field(28, ge=1)
    menstruation_days: Tuple[int, int] = (1, 5)
    menstruation_disutility: float = -0.15
    ovulation_days: Tuple[int, int] = (14, 16)
    ovulation_disutility: float = -0.08
    background_disutility: float = -0.02

    @model_validator(mode="after")
    def check_bands(self) -> "PhaseDisutilityConfig":
        for lo, hi in (self.menstruation_days, self.ovulation_days):
            if not 1 <= lo <= hi <= self.phase_length:
                raise ValueError(f"Phase band ({lo}, {hi}) must lie within 1..{self.phase_length}")
        return self


class SeverityWeights(BaseModel):
    weights: Dict[str, float] = Field(
        default_factory=lambda: {MILD: 0.5, MODERATE: 1.0, SEVERE: 1.5}
    )

    @model_validator(mode="after")
    def check_coverage(self) -> "SeverityWeights":
        _check_covers_symptomatic(self.weights, "Severity weights")
        return self


class ExtrapolationConfig(BaseModel):
    """Post-horizon projection settings. ``years == 0`` disables it."""

    years: int = Field(0, ge=0)
    age_penalty_threshold: float = 40.0
    age_penalty_per_year: float = Field(0.005, ge=0.0)
    mortality_base: float = Field(0.003, ge=0.0)
    mortality_growth: float = 0.08
    mortality_reference_age: float = 30.0
    mortality_age_scale: float = Field(10.0, gt=0.0)
    mortality_cap: float = Field(0.8, ge=0.0, le=1.0)


class QalyConfig(BaseModel):
    phase: PhaseDisutilityConfig = Field(default_factory=PhaseDisutilityConfig)
    severity: SeverityWeights = Field(default_factory=SeverityWeights)
    extrapolation: ExtrapolationConfig = Field(default_factory=ExtrapolationConfig)


# --- Costs ---


class TechnologyImprovementConfig(BaseModel):
    diagnostic_rate: float = Field(0.02, ge=0.0, description="Annual diagnostic improvement")
    diagnostic_cap: float = Field(0.25, ge=0.0, le=1.0)
    pain_management_rate: float = Field(0.015, ge=0.0)
    pain_management_cap: float = Field(0.20, ge=0.0, le=1.0)
    state_weights: Dict[str, Tuple[float, float]] = Field(
        default_factory=lambda: {
            MILD: (0.7, 0.3),
            MODERATE: (0.5, 0.5),
            SEVERE: (0.3, 0.7),
        },
        description="(diagnostic, pain management) weight per symptomatic state",
    )
    surgical_state: str = SURGERY
    procedural_efficiency_rate: float = Field(0.02, ge=0.0)
    procedural_efficiency_cap: float = Field(0.30, ge=0.0, le=1.0)
    length_of_stay_rate: float = Field(0.03, ge=0.0)
    length_of_stay_cap: float = Field(0.40, ge=0.0, le=1.0)
    surgical_weights: Tuple[float, float] = (0.4, 0.6)

    @model_validator(mode="after")
    def check_weights(self) -> "TechnologyImprovementConfig":
        _check_covers_symptomatic(self.state_weights, "Technology weights")
        for state, pair in self.state_weights.items():
            if min(pair) < 0:
                raise ValueError(f"Technology weights for '{state}' must be non-negative")
        return self


class CostDynamicsConfig(BaseModel):
    aging_threshold_age: float = 40.0
    aging_cost_slope: float = Field(0.01, ge=0.0)
    technology: TechnologyImprovementConfig = Field(default_factory=TechnologyImprovementConfig)
    patent_expiry_offsets: Dict[str, float] = Field(
        default_factory=lambda: {GNRH: 5.0, NEW: 10.0},
        description="Years after the base year at which each branded drug goes generic",
    )
    generic_discount: float = Field(0.70, ge=0.0, le=1.0)
    generic_extra_growth: float = Field(0.02, ge=0.0)
    generic_extra_cap: float = Field(0.10, ge=0.0, le=1.0)
    learning_curve_max: float = Field(0.3, ge=0.0, le=1.0)
    learning_curve_rate: float = Field(0.1, ge=0.0)
    technique_age_years: float = Field(20.0, ge=0.0)
    high_volume_discount: float = Field(0.10, ge=0.0, le=1.0)
    monitoring_efficiency_growth: float = Field(0.01, ge=0.0)
    monitoring_efficiency_cap: float = Field(0.20, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def check_generic_total(self) -> "CostDynamicsConfig":
        if self.generic_discount + self.generic_extra_cap > 1.0:
            raise ValueError("Generic discount plus its extra cap cannot exceed 100%")
        return self


# --- Bundles ---


class EngineConfig(BaseModel):
    effects: TreatmentEffectsConfig = Field(default_factory=TreatmentEffectsConfig)
    qaly: QalyConfig = Field(default_factory=QalyConfig)
    costs: CostDynamicsConfig = Field(default_factory=CostDynamicsConfig)


class ModelSettings(BaseModel):
    """Run-level settings for a comparison across treatments."""

    n_cycles: int = Field(360, ge=1)
    cycle_length: float = Field(1.0 / 12.0, gt=0.0, le=1.0)
    discount_rate: float = Field(0.035, gt=0.0)
    inflation_rate: float = Field(0.03, gt=0.0)
    base_year: int = 2024
    start_age: float = Field(30.0, ge=0.0)
    use_max_probabilities: bool = False
    initial_distribution: Dict[str, float] = Field(
        default_factory=lambda: {MILD: 0.5, MODERATE: 0.4, SEVERE: 0.1}
    )
    treatments: List[str] = Field(default_factory=lambda: list(TREATMENTS))
    reference_treatment: str = STANDARD
    willingness_to_pay: Optional[float] = Field(None, ge=0.0)
    engine: EngineConfig = Field(default_factory=EngineConfig)

    @model_validator(mode="after")
    def check_run(self) -> "ModelSettings":
        total = sum(self.initial_distribution.values())
        if abs(total - 1.0) > MASS_TOLERANCE:
            raise ValueError(f"Initial distribution must sum to 1.0, got {total:.12f}")
        if any(p < 0 for p in self.initial_distribution.values()):
            raise ValueError("Initial distribution entries must be non-negative")
        if self.reference_treatment not in self.treatments:
            raise ValueError(
                f"Reference treatment '{self.reference_treatment}' is not among {self.treatments}"
            )
        return self
