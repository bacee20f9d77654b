# endo_model/engines/treatment_effects.py
"""
Treatment-specific perturbation of a base transition matrix.

Each treatment is a :class:`TreatmentEffect` holding its own constants;
all of them share :func:`renormalize_diagonal`, which restores
row-stochasticity by moving only the diagonal.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd

from endo_model.config.models import (
    EdgeRule,
    ScaledEdgeEffectConfig,
    SurgicalOutcomeConfig,
    TreatmentEffectsConfig,
)
from endo_model.engines.transition_matrix import ROW_SUM_TOLERANCE, validate_transition_matrix
from endo_model.errors import InvariantViolation

logger = logging.getLogger(__name__)


def renormalize_diagonal(matrix: pd.DataFrame, tolerance: float = ROW_SUM_TOLERANCE) -> pd.DataFrame:
    """
    Set each row's diagonal to ``1 - sum(off-diagonals)`` where the row
    no longer sums to 1. Off-diagonal entries are never rescaled.

    Raises:
        InvariantViolation: If the off-diagonal mass of a row exceeds 1.
    """
    values = matrix.to_numpy(dtype=float, copy=True)
    diagonal = np.diag(values).copy()
    off_diagonal = values.sum(axis=1) - diagonal
    row_sums = off_diagonal + diagonal

    for i in np.flatnonzero(np.abs(row_sums - 1.0) > tolerance):
        residual = 1.0 - off_diagonal[i]
        if residual < -tolerance:
            state = matrix.index[i]
            logger.error(f"Row '{state}' off-diagonal mass {off_diagonal[i]:.6f} leaves a negative diagonal")
            raise InvariantViolation(
                f"Cannot renormalize row '{state}': off-diagonal probabilities sum to {off_diagonal[i]:.6f}"
            )
        values[i, i] = max(residual, 0.0)

    return pd.DataFrame(values, index=matrix.index, columns=matrix.columns)


@dataclass(frozen=True)
class TreatmentEffect:
    """Identity effect; subclasses override :meth:`perturb`."""

    treatment: Optional[str] = None

    def perturb(self, matrix: pd.DataFrame) -> None:
        """Modify ``matrix`` (a private copy) in place."""

    def adjust(self, base_matrix: pd.DataFrame) -> pd.DataFrame:
        """Return a new, renormalized matrix; ``base_matrix`` is untouched."""
        matrix = base_matrix.astype(float).copy()
        self.perturb(matrix)
        adjusted = renormalize_diagonal(matrix)
        validate_transition_matrix(adjusted)
        return adjusted


@dataclass(frozen=True)
class ScaledEdgeEffect(TreatmentEffect):
    """Multiply selected off-diagonal transitions, optionally capping them."""

    rules: Tuple[EdgeRule, ...] = ()

    def perturb(self, matrix: pd.DataFrame) -> None:
        states = set(matrix.index)
        for rule in self.rules:
            for src in rule.from_states:
                for dst in rule.to_states:
                    if src == dst or src not in states or dst not in states:
                        continue
                    current = matrix.at[src, dst]
                    if current == 0.0:
                        continue
                    updated = current * rule.multiplier
                    if rule.cap is not None:
                        updated = min(updated, rule.cap)
                    matrix.at[src, dst] = updated
                    logger.debug(
                        f"[{self.treatment}] {src}->{dst}: {current:.6f} -> {updated:.6f}"
                    )


@dataclass(frozen=True)
class SurgicalOutcomeEffect(TreatmentEffect):
    """Overwrite the surgical state's row with a fixed outcome distribution."""

    state: str = ""
    distribution: Tuple[Tuple[str, float], ...] = ()

    def perturb(self, matrix: pd.DataFrame) -> None:
        if self.state not in matrix.index:
            logger.debug(f"[{self.treatment}] No '{self.state}' state; row left unchanged")
            return
        missing = [dst for dst, _ in self.distribution if dst not in matrix.columns]
        if missing:
            # The diagonal absorbs the mass of outcome states absent from this model
            logger.warning(
                f"[{self.treatment}] Post-surgical outcome states {missing} are not in the model"
            )
        matrix.loc[self.state, :] = 0.0
        for dst, p in self.distribution:
            if dst in matrix.columns:
                matrix.at[self.state, dst] = p


def build_treatment_effects(config: Optional[TreatmentEffectsConfig] = None) -> Dict[str, TreatmentEffect]:
    """Instantiate one effect per configured treatment."""
    config = config or TreatmentEffectsConfig()
    effects: Dict[str, TreatmentEffect] = {}
    for treatment, scaled in config.scaled_edges.items():
        effects[treatment] = _scaled_effect(treatment, scaled)
    for treatment, surgical in config.surgical_outcomes.items():
        effects[treatment] = _surgical_effect(treatment, surgical)
    return effects


def _scaled_effect(treatment: str, config: ScaledEdgeEffectConfig) -> ScaledEdgeEffect:
    return ScaledEdgeEffect(treatment=treatment, rules=tuple(config.rules))


def _surgical_effect(treatment: str, config: SurgicalOutcomeConfig) -> SurgicalOutcomeEffect:
    return SurgicalOutcomeEffect(
        treatment=treatment,
        state=config.state,
        distribution=tuple(config.distribution.items()),
    )


def get_treatment_effect(
    treatment: Optional[str], config: Optional[TreatmentEffectsConfig] = None
) -> TreatmentEffect:
    """Effect for ``treatment``; ``None`` or an unrecognised name gives the identity."""
    if treatment is None:
        return TreatmentEffect()
    effects = build_treatment_effects(config)
    if treatment not in effects:
        logger.warning(f"Unrecognised treatment '{treatment}'; transition matrix left unchanged")
        return TreatmentEffect(treatment=treatment)
    return effects[treatment]


def adjust_for_treatment(
    base_matrix: pd.DataFrame,
    treatment: Optional[str],
    config: Optional[TreatmentEffectsConfig] = None,
) -> pd.DataFrame:
    """Return the treatment-adjusted copy of ``base_matrix``."""
    effect = get_treatment_effect(treatment, config)
    adjusted = effect.adjust(base_matrix)
    logger.debug(f"Applied {type(effect).__name__} for treatment '{treatment}'")
    return adjusted
