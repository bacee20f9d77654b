"""Configuration models and settings loaders."""

from .models import (
    CostDynamicsConfig,
    EdgeRule,
    EngineConfig,
    ExtrapolationConfig,
    ModelSettings,
    PhaseDisutilityConfig,
    QalyConfig,
    ScaledEdgeEffectConfig,
    SeverityWeights,
    SurgicalOutcomeConfig,
    TechnologyImprovementConfig,
    TreatmentEffectsConfig,
)
from .loaders import ConfigLoadError, load_settings, load_yaml_config

__all__ = [
    "CostDynamicsConfig",
    "EdgeRule",
    "EngineConfig",
    "ExtrapolationConfig",
    "ModelSettings",
    "PhaseDisutilityConfig",
    "QalyConfig",
    "ScaledEdgeEffectConfig",
    "SeverityWeights",
    "SurgicalOutcomeConfig",
    "TechnologyImprovementConfig",
    "TreatmentEffectsConfig",
    "ConfigLoadError",
    "load_settings",
    "load_yaml_config",
]
