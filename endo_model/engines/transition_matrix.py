# endo_model/engines/transition_matrix.py
"""Build row-stochastic transition matrices from transition records."""
import logging
from typing import Iterable, List, Sequence

import numpy as np
import pandas as pd

from endo_model.errors import InvariantViolation
from endo_model.parameters.tables import TransitionRecord

logger = logging.getLogger(__name__)

ROW_SUM_TOLERANCE = 1e-9


def annual_to_cycle_probability(annual_probability: float, cycle_length: float) -> float:
    """Convert an annual probability to a probability over ``cycle_length`` years."""
    return 1.0 - (1.0 - annual_probability) ** cycle_length


def discover_states(records: Iterable[TransitionRecord]) -> List[str]:
    """Union of all from/to labels, in order of first appearance."""
    states: List[str] = []
    seen = set()
    for record in records:
        for state in (record.from_state, record.to_state):
            if state not in seen:
                seen.add(state)
                states.append(state)
    return states


def validate_transition_matrix(matrix: pd.DataFrame, tolerance: float = ROW_SUM_TOLERANCE) -> None:
    """
    Validates that ``matrix`` is a square row-stochastic matrix.

    Raises:
        InvariantViolation: If the matrix is empty, not square, has
            mismatched labels, out-of-range entries, or rows not summing to 1.
    """
    if matrix is None or matrix.empty:
        raise InvariantViolation("Transition matrix is empty")

    if matrix.shape[0] != matrix.shape[1] or list(matrix.index) != list(matrix.columns):
        raise InvariantViolation(
            f"Transition matrix must be square with identical row/column states, "
            f"got rows={list(matrix.index)} columns={list(matrix.columns)}"
        )

    values = matrix.to_numpy(dtype=float)
    if (values < -tolerance).any() or (values > 1.0 + tolerance).any():
        rows, cols = np.where((values < -tolerance) | (values > 1.0 + tolerance))
        i, j = rows[0], cols[0]
        raise InvariantViolation(
            f"Invalid transition probability {values[i, j]:.6f} at "
            f"{matrix.index[i]}->{matrix.columns[j]}. All probabilities must be between 0 and 1."
        )

    row_sums = values.sum(axis=1)
    if not np.allclose(row_sums, 1.0, rtol=0.0, atol=tolerance):
        raise InvariantViolation(
            f"Invalid transition matrix: Rows must sum to 1.0. "
            f"Row sums: {dict(zip(matrix.index, row_sums))}"
        )


def build_transition_matrix(
    records: Sequence[TransitionRecord],
    use_max: bool = False,
    use_annual: bool = False,
    cycle_length: float = 1.0 / 12.0,
) -> pd.DataFrame:
    """
    Build a row-stochastic matrix over every state named in ``records``.

    Each record contributes its (minimum or maximum) probability to
    ``[from_state, to_state]``. The diagonal takes the residual of each
    row; states with no outgoing record are absorbing.

    Args:
        records: Transition records.
        use_max: Use the upper probability bound instead of the lower one.
        use_annual: Build from the annual bounds converted to ``cycle_length``.
        cycle_length: Cycle length in years, only used with ``use_annual``.

    Returns:
        Square DataFrame indexed by state on both axes.

    Raises:
        InvariantViolation: If a state's specified outgoing probabilities
            reach or exceed 1 before the diagonal is assigned.
    """
    states = discover_states(records)
    index = {state: i for i, state in enumerate(states)}
    values = np.zeros((len(states), len(states)), dtype=float)
    has_outgoing = np.zeros(len(states), dtype=bool)

    for record in records:
        if use_annual:
            p = annual_to_cycle_probability(record.annual_probability(use_max), cycle_length)
        else:
            p = record.probability(use_max)
        i, j = index[record.from_state], index[record.to_state]
        has_outgoing[i] = True
        if i == j:
            # Self-transitions are implied by the residual
            logger.debug(f"Ignoring explicit self-transition record for '{record.from_state}'")
            continue
        values[i, j] += p

    for i, state in enumerate(states):
        if not has_outgoing[i]:
            values[i, i] = 1.0
            continue
        outgoing = values[i].sum()
        if outgoing >= 1.0:
            logger.error(
                f"Outgoing probabilities for '{state}' sum to {outgoing:.6f}; no room for the diagonal"
            )
            raise InvariantViolation(
                f"Specified transition probabilities out of '{state}' sum to {outgoing:.6f} (>= 1)"
            )
        values[i, i] = 1.0 - outgoing

    matrix = pd.DataFrame(values, index=states, columns=states)
    logger.debug(
        f"Built {len(states)}x{len(states)} transition matrix "
        f"(use_max={use_max}, use_annual={use_annual}); absorbing states: "
        f"{[s for s, out in zip(states, has_outgoing) if not out]}"
    )
    validate_transition_matrix(matrix)
    return matrix
