"""Tests for TopProviderRegistry."""

from unittest.mock import MagicMock

import pytest

from topcharts.domain.entities import GetTopParams, ItemType, SubjectType
from topcharts.domain.exceptions import ProviderNotFoundError
from topcharts.domain.ports import ITopProvider
from topcharts.infrastructure.providers import TopProviderRegistry


def _provider(name: str, supports: bool = True) -> MagicMock:
    provider = MagicMock(spec=ITopProvider)
    provider.name = name
    provider.supports.return_value = supports
    return provider


PARAMS = GetTopParams(
    subject_type=SubjectType.USER, item_type=ItemType.TRACK, scope_key="all-time", subject_id=1
)


class TestTopProviderRegistry:
    def test_register_and_get(self) -> None:
        local = _provider("local-plays")
        registry = TopProviderRegistry([local])

        assert registry.get("local-plays") is local
        assert registry.get("lastfm") is None
        assert registry.get_all_providers() == [local]

    def test_register_replaces_same_name(self) -> None:
        registry = TopProviderRegistry()
        first, second = _provider("lastfm"), _provider("lastfm")
        registry.register(first)
        registry.register(second)

        assert registry.get("lastfm") is second
        assert len(registry.get_all_providers()) == 1

    def test_unregister(self) -> None:
        registry = TopProviderRegistry([_provider("lastfm")])
        registry.unregister("lastfm")
        registry.unregister("lastfm")

        assert registry.get_all_providers() == []

    def test_resolve_by_name_and_support(self) -> None:
        local = _provider("local-plays")
        registry = TopProviderRegistry([_provider("lastfm"), local])

        assert registry.resolve("local-plays", PARAMS) is local
        local.supports.assert_called_once_with(PARAMS)

    def test_resolve_unknown_name(self) -> None:
        registry = TopProviderRegistry([_provider("lastfm")])

        with pytest.raises(ProviderNotFoundError) as exc_info:
            registry.resolve("spotify", PARAMS)

        assert exc_info.value.provider == "spotify"
        assert exc_info.value.subject_type == "user"
        assert exc_info.value.item_type == "track"

    def test_resolve_unsupported_params(self) -> None:
        registry = TopProviderRegistry([_provider("lastfm", supports=False)])

        with pytest.raises(ProviderNotFoundError):
            registry.resolve("lastfm", PARAMS)
