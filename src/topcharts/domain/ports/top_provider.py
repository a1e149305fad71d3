"""Top Provider Port (Interface).

This module defines the interface every top-chart data source implements.
Following Hexagonal Architecture (Ports & Adapters), this is a PORT in the
domain layer. Implementations live in infrastructure/providers.

The orchestrator selects a provider by its name plus a supports() capability
check, never by isinstance(). Adding a new source = implement ITopProvider and
register it in the TopProviderRegistry.
"""

from abc import ABC, abstractmethod

from topcharts.domain.entities import GetTopParams, TopProviderResult


class ITopProvider(ABC):
    """Interface for top-chart providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable provider identifier, part of every cache key (e.g. 'local-plays')."""
        pass

    @abstractmethod
    def supports(self, params: GetTopParams) -> bool:
        """Check whether this provider can answer the (subject, item) combination.

        The orchestrator must never call get_top() when this returns False.
        """
        pass

    @abstractmethod
    async def get_top(self, params: GetTopParams) -> TopProviderResult:
        """Produce a ranked item list.

        "No data" is NOT an error - return TopProviderResult(items=[]).
        Raise only for transport or configuration problems; the orchestrator
        records those as failed cache records.
        """
        pass


class ITopProviderRegistry(ABC):
    """Interface for the provider registry."""

    @abstractmethod
    def register(self, provider: ITopProvider) -> None:
        pass

    @abstractmethod
    def get(self, name: str) -> ITopProvider | None:
        pass

    @abstractmethod
    def resolve(self, name: str, params: GetTopParams) -> ITopProvider:
        """Return the provider called `name` if it supports params.

        Raises:
            ProviderNotFoundError: If no such provider is registered or it
                does not support params
        """
        pass
