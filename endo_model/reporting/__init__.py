"""Reporting helpers: cost-effectiveness comparison tables."""

from .cea import (
    COST_SAVING_LESS_EFFECTIVE,
    DOMINANT,
    DOMINATED,
    REFERENCE,
    classify_increment,
    compare_strategies,
)

__all__ = [
    "COST_SAVING_LESS_EFFECTIVE",
    "DOMINANT",
    "DOMINATED",
    "REFERENCE",
    "classify_increment",
    "compare_strategies",
]
