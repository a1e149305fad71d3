"""Tests for runtime wiring."""

from pathlib import Path

import pytest

from topcharts.config import DatabaseSettings, LastfmSettings, Settings
from topcharts.domain.entities import ItemType, SubjectType, TopChartsRequest
from topcharts.infrastructure.lifecycle import build_runtime, top_charts_runtime


def _settings(tmp_path: Path, api_key: str = "") -> Settings:
    return Settings(
        database=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path}/nested/dir/app.db"),
        lastfm=LastfmSettings(api_key=api_key),
    )


class TestBuildRuntime:
    async def test_registers_both_providers(self, tmp_path: Path) -> None:
        runtime = build_runtime(_settings(tmp_path))
        try:
            names = sorted(p.name for p in runtime.registry.get_all_providers())
            assert names == ["lastfm", "local-plays"]
            assert runtime.lastfm_client is None
        finally:
            await runtime.close()

    async def test_creates_lastfm_client_when_configured(self, tmp_path: Path) -> None:
        runtime = build_runtime(_settings(tmp_path, api_key="key"))
        try:
            assert runtime.lastfm_client is not None
        finally:
            await runtime.close()

    async def test_creates_sqlite_directory(self, tmp_path: Path) -> None:
        runtime = build_runtime(_settings(tmp_path))
        await runtime.close()

        assert (tmp_path / "nested" / "dir").is_dir()


class TestTopChartsRuntime:
    async def test_serves_local_plays_end_to_end(self, tmp_path: Path) -> None:
        async with top_charts_runtime(_settings(tmp_path)) as runtime:
            await runtime.database.create_tables()

            result = await runtime.service.get_top_charts(
                TopChartsRequest(
                    subject_type=SubjectType.USER,
                    item_type=ItemType.TRACK,
                    provider="local-plays",
                    subject_id=1,
                )
            )

        assert result.items == []
        assert result.from_cache is False

    @pytest.mark.parametrize("url", ["sqlite+aiosqlite:///:memory:", "postgresql+asyncpg://u:p@h/db"])
    def test_non_file_urls_skip_path_validation(self, url: str) -> None:
        from topcharts.infrastructure.lifecycle import _sqlite_db_path

        assert _sqlite_db_path(url) is None
