"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import VARIANT_RELATIONS, CatalogStore, ChannelDirectory
from .unit_of_work import (
    DistributionRepositories,
    DistributionUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "VARIANT_RELATIONS",
    "CatalogStore",
    "ChannelDirectory",
    "DistributionRepositories",
    "DistributionUnitOfWork",
    "RepositoryCollection",
    "UnitOfWork",
]
