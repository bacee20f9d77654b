# endo_model/engines/markov.py
"""Deterministic cohort propagation through a transition matrix."""
import logging
from typing import Mapping

import numpy as np
import pandas as pd

from endo_model.engines.transition_matrix import validate_transition_matrix
from endo_model.errors import ConfigurationError, DomainRangeError, InvariantViolation
from endo_model.states import CYCLE, YEAR
from endo_model.utils import MASS_TOLERANCE

logger = logging.getLogger(__name__)


def initial_vector(initial_distribution: Mapping[str, float], states) -> np.ndarray:
    """Expand a partial ``{state: share}`` mapping to a full state vector."""
    unknown = [s for s in initial_distribution if s not in set(states)]
    if unknown:
        logger.error(f"Initial distribution names states not in the model: {unknown}")
        raise ConfigurationError(f"Initial distribution names unknown states: {unknown}")
    vector = np.array([float(initial_distribution.get(s, 0.0)) for s in states])
    _check_distribution(vector, 0)
    return vector


def _check_distribution(vector: np.ndarray, cycle: int, tolerance: float = MASS_TOLERANCE) -> None:
    if (vector < -tolerance).any() or (vector > 1.0 + tolerance).any():
        raise InvariantViolation(f"Cycle {cycle}: cohort proportions outside [0, 1]: {vector}")
    total = vector.sum()
    if abs(total - 1.0) > tolerance:
        raise InvariantViolation(f"Cycle {cycle}: cohort mass {total:.12f} does not sum to 1")


def run_cohort(
    initial_distribution: Mapping[str, float],
    matrix: pd.DataFrame,
    n_cycles: int,
) -> pd.DataFrame:
    """
    Propagate a cohort for ``n_cycles`` cycles.

    ``trace[t + 1] = trace[t] @ matrix``. States missing from
    ``initial_distribution`` start empty.

    Returns:
        DataFrame of ``n_cycles + 1`` rows indexed by cycle (0 is the
        initial distribution), one column per state in matrix order.

    Raises:
        DomainRangeError: If ``n_cycles`` < 1.
        InvariantViolation: If cohort mass drifts away from 1.
    """
    if n_cycles < 1:
        logger.error(f"Invalid cycle count: {n_cycles}")
        raise DomainRangeError(f"n_cycles must be >= 1, got {n_cycles}")

    validate_transition_matrix(matrix)
    states = list(matrix.columns)
    transition = matrix.to_numpy(dtype=float)

    trace = np.empty((n_cycles + 1, len(states)), dtype=float)
    trace[0] = initial_vector(initial_distribution, states)
    for t in range(n_cycles):
        trace[t + 1] = trace[t] @ transition
        _check_distribution(trace[t + 1], t + 1)

    logger.debug(f"Propagated cohort over {n_cycles} cycles across {len(states)} states")
    return pd.DataFrame(trace, index=pd.RangeIndex(n_cycles + 1, name=CYCLE), columns=states)


def summarize_trace(trace: pd.DataFrame, cycles_per_year: int = 12) -> pd.DataFrame:
    """End-of-year state occupancy, indexed by year (0 = start)."""
    if cycles_per_year < 1:
        raise DomainRangeError(f"cycles_per_year must be >= 1, got {cycles_per_year}")
    yearly = trace.iloc[::cycles_per_year].copy()
    yearly.index = pd.Index(yearly.index // cycles_per_year, name=YEAR)
    return yearly
