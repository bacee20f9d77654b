# endo_model/treatments.py
"""Treatment identifiers recognised by the engine."""
from __future__ import annotations

from typing import FrozenSet, Tuple

STANDARD = "Standard"
GNRH = "GnRH"
SURGERY = "Surgery"
NEW = "New"

TREATMENTS: Tuple[str, ...] = (STANDARD, GNRH, SURGERY, NEW)
SURGICAL: FrozenSet[str] = frozenset({SURGERY})
