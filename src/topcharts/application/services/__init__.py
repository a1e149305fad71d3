"""Application services - top charts orchestration and catalog matching."""

from topcharts.application.services.top_charts_service import TopChartsService
from topcharts.application.services.track_matcher import TrackMatcher, score_candidates

__all__ = ["TopChartsService", "TrackMatcher", "score_candidates"]
