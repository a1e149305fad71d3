"""Top Provider Registry implementation.

Providers are registered once at startup; the orchestrator asks the registry for
"the provider called X that can answer these params".
"""

import logging

from topcharts.domain.entities import GetTopParams, ItemType, SubjectType
from topcharts.domain.exceptions import ProviderNotFoundError
from topcharts.domain.ports import ITopProvider, ITopProviderRegistry

logger = logging.getLogger(__name__)


class TopProviderRegistry(ITopProviderRegistry):
    """Registry for top provider implementations, keyed by provider name."""

    def __init__(self, providers: list[ITopProvider] | None = None) -> None:
        """Initialize registry, optionally with providers."""
        self._providers: dict[str, ITopProvider] = {}
        for provider in providers or []:
            self.register(provider)

    def register(self, provider: ITopProvider) -> None:
        """Register a provider. A provider with the same name is replaced."""
        if provider.name in self._providers:
            logger.warning(f"Replacing top provider: {provider.name}")
        self._providers[provider.name] = provider
        logger.info(f"Registered top provider: {provider.name}")

    def unregister(self, name: str) -> None:
        """Unregister a provider by name."""
        if self._providers.pop(name, None) is not None:
            logger.info(f"Unregistered top provider: {name}")

    def get(self, name: str) -> ITopProvider | None:
        """Get a provider by name."""
        return self._providers.get(name)

    def get_all_providers(self) -> list[ITopProvider]:
        """Get all registered providers."""
        return list(self._providers.values())

    def resolve(self, name: str, params: GetTopParams) -> ITopProvider:
        """Select the provider for a request.

        Args:
            name: Provider name from the request (part of the cache key)
            params: Provider call parameters

        Returns:
            The matching provider

        Raises:
            ProviderNotFoundError: Unknown name, or provider doesn't support params
        """
        provider = self._providers.get(name)
        if provider is None or not provider.supports(params):
            raise ProviderNotFoundError(
                name,
                SubjectType(params.subject_type).value,
                ItemType(params.item_type).value,
            )
        return provider
