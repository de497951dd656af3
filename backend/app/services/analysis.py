"""Join, score, filter and rank search candidates.

Two five-tier signals are computed per video:
- performance: views relative to the channel's subscriber count
- contribution: views relative to the channel's same-type average views
"""

import math
from decimal import ROUND_HALF_UP, Decimal

from ..models import (
    ChannelDetail,
    ResultFilters,
    ResultRecord,
    ScoreInfo,
    SearchItem,
    VideoDetail,
)
from .video_type import iso8601_duration_to_seconds, matches_video_type

DEFAULT_RESULT_BUDGET = 30

SCORE_LABELS = {
    5: "Excellent",
    4: "Great",
    3: "Good",
    2: "Normal",
    1: "Bad",
}

# Badge text colours for a dark theme
SCORE_PALETTE = {
    5: "#f87171",
    4: "#4ade80",
    3: "#60a5fa",
    2: "#cbd5e1",
    1: "#64748b",
}

# (minimum ratio, score), highest tier first
PERFORMANCE_TIERS = ((5.0, 5), (3.0, 4), (1.0, 3), (0.5, 2))
CONTRIBUTION_TIERS = ((10.0, 5), (5.0, 4), (1.0, 3), (0.5, 2))


def round_half_up(value: float, places: int) -> float:
    return float(Decimal(value).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


def score_info(score: int) -> ScoreInfo:
    return ScoreInfo(score=score, label=SCORE_LABELS[score], color=SCORE_PALETTE[score])


def _tiered_score(ratio: float, tiers: tuple[tuple[float, int], ...]) -> ScoreInfo:
    for threshold, score in tiers:
        if ratio >= threshold:
            return score_info(score)
    return score_info(1)


def performance_score(view_to_subscriber_ratio: float) -> ScoreInfo:
    """
    5 Excellent: ratio >= 5
    4 Great:     ratio >= 3
    3 Good:      ratio >= 1
    2 Normal:    ratio >= 0.5
    1 Bad:       below that (including NaN)
    """
    return _tiered_score(view_to_subscriber_ratio, PERFORMANCE_TIERS)


def contribution_score(view_count: int, channel_average_views: float | None) -> ScoreInfo | None:
    """
    Same five tiers as performance_score at 10x / 5x / 1x / 0.5x of the channel average.
    None when the average is unknown or not positive.
    """
    if channel_average_views is None or not channel_average_views > 0:
        return None
    return _tiered_score(view_count / channel_average_views, CONTRIBUTION_TIERS)


def channel_average_views(samples: list[VideoDetail], video_type: str) -> int | None:
    """Mean views over samples of the requested type, half-up rounded; None if no sample matches."""
    matching = [v for v in samples if matches_video_type(v.duration, video_type)]
    if not matching:
        return None
    total_views = sum(v.view_count for v in matching)
    return int(math.floor(total_views / len(matching) + 0.5))


def _passes_filters(view_count: int, subscriber_count: int, filters: ResultFilters) -> bool:
    if subscriber_count <= 0:
        return False
    if filters.max_subscriber_count is not None and subscriber_count > filters.max_subscriber_count:
        return False
    # Core rule: a candidate must have out-viewed its own subscriber base.
    if view_count < subscriber_count:
        return False
    if filters.min_view_count is not None and view_count < filters.min_view_count:
        return False
    return True


def rank_key(record: ResultRecord) -> tuple:
    return (
        -record.performance_score.score,
        -record.view_to_subscriber_ratio,
        record.video_id,
    )


def build_ranked(
    search_items: list[SearchItem],
    video_details: list[VideoDetail],
    channel_details: list[ChannelDetail],
    video_type: str,
    channel_averages: dict[str, int],
    filters: ResultFilters | None = None,
    result_budget: int = DEFAULT_RESULT_BUDGET,
) -> list[ResultRecord]:
    filters = filters or ResultFilters()
    video_map = {v.video_id: v for v in video_details}
    channel_map = {c.channel_id: c for c in channel_details}

    results: list[ResultRecord] = []
    for item in search_items:
        if len(results) >= result_budget:
            break

        video = video_map.get(item.video_id)
        channel = channel_map.get(item.channel_id)
        if video is None or channel is None:
            continue

        # search.list buckets only approximate the type; re-check the real duration
        if not matches_video_type(video.duration, video_type):
            continue

        view_count = video.view_count
        subscriber_count = channel.subscriber_count
        if not _passes_filters(view_count, subscriber_count, filters):
            continue

        view_ratio = round_half_up(view_count / subscriber_count, 2)
        like_ratio = None
        if video.like_count is not None:
            like_ratio = round_half_up(video.like_count / subscriber_count, 4)

        average = channel_averages.get(item.channel_id)
        contribution = contribution_score(view_count, average)

        results.append(
            ResultRecord(
                video_id=item.video_id,
                title=item.title,
                thumbnail_url=item.thumbnail_url,
                channel_id=item.channel_id,
                channel_title=item.channel_title,
                published_at=item.published_at,
                view_count=view_count,
                like_count=video.like_count,
                comment_count=video.comment_count,
                subscriber_count=subscriber_count,
                total_video_count=channel.video_count,
                view_to_subscriber_ratio=view_ratio,
                like_to_subscriber_ratio=like_ratio,
                duration=video.duration,
                duration_seconds=iso8601_duration_to_seconds(video.duration),
                performance_score=performance_score(view_ratio),
                contribution_score=contribution,
                channel_average_views=average if contribution is not None else None,
            )
        )

    results.sort(key=rank_key)
    return results
