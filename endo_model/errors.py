# endo_model/errors.py
"""Exception hierarchy for the endometriosis model."""


class EndoModelError(Exception):
    """Base class for all model errors."""


class ConfigurationError(EndoModelError):
    """Raised when inputs or parameter tables are inconsistent or incomplete."""


class InvariantViolation(EndoModelError):
    """Raised when a stochastic-matrix or cohort-mass invariant is broken."""


class DomainRangeError(EndoModelError, ValueError):
    """Raised when a numeric input lies outside the range the formulas assume."""
