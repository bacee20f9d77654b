# endo_model/reporting/cea.py
"""
Incremental cost-effectiveness comparison of treatment strategies.
"""
import logging
from typing import Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from endo_model.errors import ConfigurationError

logger = logging.getLogger(__name__)

REFERENCE = "Reference"
DOMINANT = "Dominant"
DOMINATED = "Dominated"
COST_SAVING_LESS_EFFECTIVE = "Cost-saving but less effective"

CEA_COLUMNS = [
    "treatment",
    "cost",
    "qalys",
    "incremental_cost",
    "incremental_qalys",
    "icer",
]


def classify_increment(incremental_cost: float, incremental_qalys: float) -> Union[float, str]:
    """ICER, or a dominance label when the ratio is not meaningful.

    A QALY gain must be strictly positive; equal QALYs at a higher or
    equal cost count as dominated.
    """
    if incremental_qalys > 0:
        if incremental_cost <= 0:
            return DOMINANT
        return incremental_cost / incremental_qalys
    if incremental_cost >= 0:
        return DOMINATED
    return COST_SAVING_LESS_EFFECTIVE


def _cost_and_qalys(outcome) -> Tuple[float, float]:
    if isinstance(outcome, tuple):
        cost, qalys = outcome
        return float(cost), float(qalys)
    return float(outcome.total_costs), float(outcome.total_qalys)


def compare_strategies(
    outcomes: Mapping[str, object],
    reference: str,
    wtp: Optional[float] = None,
) -> pd.DataFrame:
    """
    Compare every strategy against ``reference``.

    Args:
        outcomes: Treatment name -> outcome, either an ``OutcomeRecord``
            or a ``(cost, qalys)`` tuple.
        reference: Name of the comparator strategy; must be in ``outcomes``.
        wtp: Optional willingness-to-pay per QALY; adds a net monetary
            benefit column ``nmb = wtp * qalys - cost``.

    Returns:
        DataFrame sorted by ascending cost with columns
        ``treatment, cost, qalys, incremental_cost, incremental_qalys, icer``
        (plus ``nmb``). ``icer`` holds a float or a classification label;
        the reference row has NaN increments and ``icer == "Reference"``.

    Raises:
        ConfigurationError: If ``reference`` is not among the outcomes.
    """
    if reference not in outcomes:
        logger.error(f"Reference treatment '{reference}' not found in results: {sorted(outcomes)}")
        raise ConfigurationError(
            f"Reference treatment '{reference}' not found in results: {sorted(outcomes)}"
        )

    ref_cost, ref_qalys = _cost_and_qalys(outcomes[reference])
    rows = []
    for name, outcome in outcomes.items():
        cost, qalys = _cost_and_qalys(outcome)
        if name == reference:
            rows.append(
                {
                    "treatment": name,
                    "cost": cost,
                    "qalys": qalys,
                    "incremental_cost": np.nan,
                    "incremental_qalys": np.nan,
                    "icer": REFERENCE,
                }
            )
            continue
        d_cost = cost - ref_cost
        d_qalys = qalys - ref_qalys
        rows.append(
            {
                "treatment": name,
                "cost": cost,
                "qalys": qalys,
                "incremental_cost": d_cost,
                "incremental_qalys": d_qalys,
                "icer": classify_increment(d_cost, d_qalys),
            }
        )

    table = (
        pd.DataFrame(rows, columns=CEA_COLUMNS)
        .sort_values(by="cost", kind="mergesort")
        .reset_index(drop=True)
    )
    table["icer"] = table["icer"].astype(object)
    if wtp is not None:
        table["nmb"] = wtp * table["qalys"] - table["cost"]

    logger.info(f"Compared {len(table)} strategies against reference '{reference}'")
    return table
