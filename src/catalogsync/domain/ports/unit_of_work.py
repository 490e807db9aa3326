"""Transaction boundary through which distribution work reaches storage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Self, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from catalogsync.domain.ports.persistence import CatalogStore, ChannelDirectory


@runtime_checkable
class RepositoryCollection(Protocol):
    """Whatever a unit of work hands out as its ``repositories``."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """A transaction scope used as a context manager.

    Changes made through ``repositories`` persist only once ``commit`` is
    called; leaving the block with an exception rolls them back.
    """

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> Self: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool | None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class DistributionRepositories(RepositoryCollection):
    catalog: CatalogStore
    channels: ChannelDirectory


type DistributionUnitOfWork = UnitOfWork[DistributionRepositories]
