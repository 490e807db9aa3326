"""Counters describing the outcome of a distribution pass."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Self


@dataclass(slots=True)
class DistributionReport:
    processed: int = 0
    skipped: int = 0
    ghosts_removed: int = 0
    prices_repaired: int = 0
    assignments_created: int = 0
    prices_synced: int = 0
    stock_synced: int = 0
    failures: int = 0

    @property
    def writes(self) -> int:
        return (
            self.ghosts_removed
            + self.prices_repaired
            + self.assignments_created
            + self.prices_synced
            + self.stock_synced
        )

    def __iadd__(self, other: DistributionReport) -> Self:
        for counter in fields(self):
            setattr(self, counter.name, getattr(self, counter.name) + getattr(other, counter.name))
        return self
