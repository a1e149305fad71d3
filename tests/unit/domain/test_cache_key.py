"""Unit tests for CacheKey, CacheRecord and request helpers."""

from datetime import UTC, datetime, timedelta

from topcharts.domain.entities import (
    CacheKey,
    CacheRecord,
    CacheStatus,
    ItemType,
    MatchResult,
    SubjectType,
    TopChartsRequest,
)


def _key(**overrides: object) -> CacheKey:
    fields: dict[str, object] = {
        "subject_type": SubjectType.ARTIST,
        "item_type": ItemType.TRACK,
        "provider": "lastfm",
        "scope_key": "all-time",
    }
    fields.update(overrides)
    return CacheKey(**fields)  # type: ignore[arg-type]


class TestCacheKey:
    """Null-coalescing identity of cache keys."""

    def test_none_subject_id_equals_zero(self) -> None:
        assert _key(subject_id=None) == _key(subject_id=0)
        assert hash(_key(subject_id=None)) == hash(_key(subject_id=0))

    def test_none_subject_value_equals_empty_string(self) -> None:
        assert _key(subject_value=None) == _key(subject_value="")

    def test_different_subjects_differ(self) -> None:
        assert _key(subject_id=1) != _key(subject_id=2)
        assert _key(subject_value="Muse") != _key(subject_value="muse")

    def test_different_scope_or_provider_differ(self) -> None:
        assert _key(scope_key="30d") != _key()
        assert _key(provider="local-plays") != _key()

    def test_usable_as_dict_key(self) -> None:
        cache = {_key(subject_id=None): "hit"}
        assert cache[_key(subject_id=0)] == "hit"

    def test_normalized_tuple(self) -> None:
        assert _key(subject_id=7).normalized() == (
            "artist",
            7,
            "",
            "track",
            "lastfm",
            "all-time",
        )

    def test_as_string(self) -> None:
        assert _key(subject_value="Muse").as_string() == "artist|0|Muse|track|lastfm|all-time"

    def test_not_equal_to_other_types(self) -> None:
        assert _key() != ("artist", 0, "", "track", "lastfm", "all-time")


class TestCacheRecord:
    """Validity rule of cache records."""

    NOW = datetime(2024, 1, 1, tzinfo=UTC)

    def _record(self, status: CacheStatus, expires_in: timedelta) -> CacheRecord:
        return CacheRecord(
            id=1,
            key=_key(),
            scanned_at=self.NOW,
            expires_at=self.NOW + expires_in,
            status=status,
        )

    def test_success_not_expired_is_valid(self) -> None:
        assert self._record(CacheStatus.SUCCESS, timedelta(seconds=1)).is_valid(self.NOW)

    def test_expiry_boundary_is_invalid(self) -> None:
        assert not self._record(CacheStatus.SUCCESS, timedelta(0)).is_valid(self.NOW)

    def test_failed_is_never_valid(self) -> None:
        assert not self._record(CacheStatus.FAILED, timedelta(days=1)).is_valid(self.NOW)


class TestTopChartsRequest:
    def test_cache_key_and_params_carry_subject(self) -> None:
        request = TopChartsRequest(
            subject_type=SubjectType.USER,
            item_type=ItemType.ALBUM,
            provider="local-plays",
            scope_key="7d",
            subject_id=3,
            limit=10,
        )

        assert request.cache_key() == CacheKey(
            subject_type=SubjectType.USER,
            item_type=ItemType.ALBUM,
            provider="local-plays",
            scope_key="7d",
            subject_id=3,
        )
        params = request.provider_params()
        assert params.subject_id == 3
        assert params.scope_key == "7d"
        assert params.limit == 10

    def test_string_enums_are_coerced(self) -> None:
        request = TopChartsRequest(
            subject_type="artist",  # type: ignore[arg-type]
            item_type="track",  # type: ignore[arg-type]
            provider="lastfm",
        )
        assert request.cache_key().subject_type is SubjectType.ARTIST
        assert request.scope_key == "all-time"


class TestMatchResult:
    def test_no_match(self) -> None:
        result = MatchResult.no_match()
        assert result.song_id is None
        assert result.confidence == 0.0
        assert result.method == "no-match"
        assert not result.matched
