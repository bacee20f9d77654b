# endo_model/utils.py
"""Small numeric helpers shared by the engines."""
from __future__ import annotations

import logging

import numpy as np

from endo_model.errors import DomainRangeError

logger = logging.getLogger(__name__)

# Tolerance on total cohort mass, shared by settings validation and propagation
MASS_TOLERANCE = 1e-9


def require_positive(name: str, value: float) -> float:
    """Return ``value`` or raise :class:`DomainRangeError` if it is not > 0."""
    if not value > 0:
        logger.error(f"{name} must be positive, got {value}")
        raise DomainRangeError(f"{name} must be positive, got {value}")
    return value


def discount_factors(rate: float, years: np.ndarray) -> np.ndarray:
    """``(1 + rate) ** -years`` for an array of elapsed years."""
    return np.power(1.0 + rate, -np.asarray(years, dtype=float))


def growth_factors(rate: float, years: np.ndarray) -> np.ndarray:
    """``(1 + rate) ** years``, e.g. for price inflation."""
    return np.power(1.0 + rate, np.asarray(years, dtype=float))
