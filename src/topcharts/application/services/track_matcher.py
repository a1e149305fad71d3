"""Match externally-sourced track titles against the local catalog.

Hey future me - this is deliberately NOT fuzzy in the rapidfuzz sense. Two passes:

1. Exact: normalized titles equal. 0.90, bumped to 0.96 / 0.99 when both durations
   are known and within 5s / 2s.
2. Prefix: only if pass 1 found nothing. One normalized title starts with the other
   ("song" vs "song live at wembley"). 0.60, bumped to 0.70 / 0.80 on duration.

Anything else is no-match. An exact match ALWAYS beats a prefix match, even a prefix
match with a perfect duration, because the prefix pass never runs once pass 1 hits.
"""

import logging
from collections.abc import Iterable

from topcharts.domain.entities import MatchResult, NormalizedTopItem, TrackCandidate
from topcharts.domain.value_objects import normalize_title
from topcharts.infrastructure.persistence.database import SessionScope
from topcharts.infrastructure.persistence.repositories import CatalogRepository

logger = logging.getLogger(__name__)

# (max abs duration diff in seconds, confidence, method), tightest first
EXACT_TIERS: tuple[tuple[int, float, str], ...] = (
    (2, 0.99, "title-exact+duration-2s"),
    (5, 0.96, "title-exact+duration-5s"),
)
EXACT_BASE = (0.90, "title-exact")

PREFIX_TIERS: tuple[tuple[int, float, str], ...] = (
    (2, 0.80, "title-prefix+duration-2s"),
    (5, 0.70, "title-prefix+duration-5s"),
)
PREFIX_BASE = (0.60, "title-prefix")


def _score(
    base: tuple[float, str],
    tiers: tuple[tuple[int, float, str], ...],
    query_duration: int | None,
    candidate_duration: int | None,
) -> tuple[float, str]:
    # 0 is "unknown" for durations, same as None
    if query_duration and candidate_duration:
        diff = abs(query_duration - candidate_duration)
        for max_diff, confidence, method in tiers:
            if diff <= max_diff:
                return confidence, method
    return base


def _best(
    candidates: Iterable[tuple[TrackCandidate, str]],
    base: tuple[float, str],
    tiers: tuple[tuple[int, float, str], ...],
    duration_seconds: int | None,
) -> MatchResult | None:
    best: MatchResult | None = None
    for candidate, _normalized in candidates:
        confidence, method = _score(base, tiers, duration_seconds, candidate.duration_seconds)
        # Strictly greater - first encountered wins ties
        if best is None or confidence > best.confidence:
            best = MatchResult(song_id=candidate.id, confidence=confidence, method=method)
    return best


def score_candidates(
    candidates: list[TrackCandidate],
    title: str | None,
    duration_seconds: int | None = None,
) -> MatchResult:
    """Pick the best local candidate for an external title.

    Args:
        candidates: Local tracks of the artist, in a stable order
        title: External title (raw, normalized here)
        duration_seconds: External duration, None if unknown

    Returns:
        Best MatchResult, or MatchResult.no_match()
    """
    query = normalize_title(title)
    if not query:
        return MatchResult.no_match()

    normalized = [(c, normalize_title(c.title)) for c in candidates]

    exact = [(c, n) for c, n in normalized if n == query]
    if exact:
        result = _best(exact, EXACT_BASE, EXACT_TIERS, duration_seconds)
        if result is not None:
            return result

    prefix = [
        (c, n) for c, n in normalized if n and (query.startswith(n) or n.startswith(query))
    ]
    if prefix:
        result = _best(prefix, PREFIX_BASE, PREFIX_TIERS, duration_seconds)
        if result is not None:
            return result

    return MatchResult.no_match()


class TrackMatcher:
    """Catalog-backed matcher for one artist's tracks."""

    def __init__(self, session_scope: SessionScope) -> None:
        self._session_scope = session_scope

    async def _candidates(self, artist_id: int) -> list[TrackCandidate]:
        async with self._session_scope() as session:
            return await CatalogRepository(session).get_tracks_for_artist(artist_id)

    async def match(
        self, artist_id: int, title: str | None, duration_seconds: int | None = None
    ) -> MatchResult:
        """Match one external title against an artist's local tracks."""
        candidates = await self._candidates(artist_id)
        return score_candidates(candidates, title, duration_seconds)

    async def match_items(
        self, artist_id: int, items: list[NormalizedTopItem]
    ) -> list[NormalizedTopItem]:
        """Annotate items in place with match results.

        The candidate list is fetched once for the whole batch.

        Returns:
            The same list, for chaining
        """
        candidates = await self._candidates(artist_id)
        matched = 0
        for item in items:
            result = score_candidates(candidates, item.title, item.duration_seconds)
            item.matched_song_id = result.song_id
            item.match_confidence = result.confidence
            item.match_method = result.method
            if result.matched:
                matched += 1

        logger.debug(
            "Matched %d/%d items against %d local tracks of artist %s",
            matched,
            len(items),
            len(candidates),
            artist_id,
        )
        return items
