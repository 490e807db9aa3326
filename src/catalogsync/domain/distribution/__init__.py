"""Distribution of catalog variants across sales channels."""

from __future__ import annotations

from .eligibility import find_ghosts, is_protected, merchant_candidates, valid_targets
from .engine import DistributionEngine
from .report import DistributionReport

__all__ = [
    "DistributionEngine",
    "DistributionReport",
    "find_ghosts",
    "is_protected",
    "merchant_candidates",
    "valid_targets",
]
