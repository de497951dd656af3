import math

from backend.app.models import ChannelDetail, ResultFilters, SearchItem, VideoDetail
from backend.app.services.analysis import (
    build_ranked,
    channel_average_views,
    contribution_score,
    performance_score,
    round_half_up,
)
from backend.app.services.video_type import LONGFORM, SHORTS


def make_item(video_id, channel_id="UC_A"):
    return SearchItem(
        video_id=video_id,
        channel_id=channel_id,
        title=f"Video {video_id}",
        channel_title=f"Channel {channel_id}",
        published_at="2025-01-01T00:00:00Z",
        thumbnail_url=f"https://img/{video_id}.jpg",
    )


def make_video(video_id, views, duration="PT10M", likes=None):
    return VideoDetail(video_id=video_id, duration=duration, view_count=views, like_count=likes)


def make_channel(channel_id="UC_A", subscribers=200_000, playlist="UU_A"):
    return ChannelDetail(
        channel_id=channel_id,
        subscriber_count=subscribers,
        video_count=120,
        uploads_playlist_id=playlist,
    )


def test_performance_score_tiers():
    assert performance_score(5.0).score == 5
    assert performance_score(5.0).label == "Excellent"
    assert performance_score(4.99).score == 4
    assert performance_score(3.0).label == "Great"
    assert performance_score(1.0).label == "Good"
    assert performance_score(0.5).label == "Normal"
    assert performance_score(0.49).label == "Bad"
    assert performance_score(float("nan")).score == 1


def test_contribution_score_tiers():
    assert contribution_score(1000, 100).score == 5
    assert contribution_score(999, 100).score == 4
    assert contribution_score(500, 100).label == "Great"
    assert contribution_score(100, 100).label == "Good"
    assert contribution_score(50, 100).label == "Normal"
    assert contribution_score(49, 100).label == "Bad"


def test_contribution_score_undefined_without_positive_average():
    assert contribution_score(1000, 0) is None
    assert contribution_score(1000, -5) is None
    assert contribution_score(1000, None) is None
    assert contribution_score(1000, float("nan")) is None


def test_scores_are_monotonic():
    ratios = [0, 0.1, 0.49, 0.5, 0.99, 1, 2.9, 3, 4.9, 5, 9.9, 10, 50]
    perf = [performance_score(r).score for r in ratios]
    contrib = [contribution_score(r * 100, 100).score for r in ratios]
    assert perf == sorted(perf)
    assert contrib == sorted(contrib)


def test_channel_average_views_filters_by_type():
    samples = [
        make_video("s1", 1000, "PT30S"),
        make_video("s2", 2001, "PT2M"),
        make_video("l1", 999_999, "PT12M"),
        make_video("live", 5_000_000, "P0D"),
    ]
    assert channel_average_views(samples, SHORTS) == 1501
    assert channel_average_views(samples, LONGFORM) == 999_999


def test_channel_average_views_unknown_without_matching_samples():
    assert channel_average_views([], SHORTS) is None
    assert channel_average_views([make_video("l1", 100, "PT12M")], SHORTS) is None


def test_excellent_scenario():
    records = build_ranked(
        [make_item("v1")],
        [make_video("v1", 1_000_000)],
        [make_channel(subscribers=200_000)],
        LONGFORM,
        {},
    )
    assert len(records) == 1
    record = records[0]
    assert record.view_to_subscriber_ratio == 5.0
    assert record.performance_score.score == 5
    assert record.performance_score.label == "Excellent"
    assert record.contribution_score is None
    assert record.channel_average_views is None


def test_views_below_subscribers_are_dropped():
    records = build_ranked(
        [make_item("v1")],
        [make_video("v1", 150_000)],
        [make_channel(subscribers=200_000)],
        LONGFORM,
        {},
    )
    assert records == []


def test_missing_details_zero_subscribers_and_wrong_type_are_skipped():
    items = [make_item("no_video"), make_item("no_channel", "UC_MISSING"), make_item("zero", "UC_ZERO"), make_item("short")]
    videos = [make_video("no_channel", 10), make_video("zero", 10), make_video("short", 10_000_000, "PT40S")]
    channels = [make_channel(), make_channel("UC_ZERO", subscribers=0)]
    assert build_ranked(items, videos, channels, LONGFORM, {}) == []


def test_filters_apply_ceiling_and_minimum_views():
    items = [make_item("big", "UC_BIG"), make_item("small_views"), make_item("ok")]
    videos = [make_video("big", 5_000_000), make_video("small_views", 210_000), make_video("ok", 900_000)]
    channels = [make_channel(), make_channel("UC_BIG", subscribers=1_000_000)]
    filters = ResultFilters(min_view_count=300_000, max_subscriber_count=500_000)
    records = build_ranked(items, videos, channels, LONGFORM, {}, filters=filters)
    assert [r.video_id for r in records] == ["ok"]


def test_filters_accept_fractional_thresholds():
    items = [make_item("edge"), make_item("ok")]
    videos = [make_video("edge", 210_000), make_video("ok", 900_000)]
    filters = ResultFilters(min_view_count=210_000.5, max_subscriber_count=200_000.5)
    records = build_ranked(items, videos, [make_channel()], LONGFORM, {}, filters=filters)
    assert [r.video_id for r in records] == ["ok"]


def test_ratios_are_rounded():
    records = build_ranked(
        [make_item("v1")],
        [make_video("v1", 333_333, likes=12_345)],
        [make_channel(subscribers=111_111)],
        LONGFORM,
        {},
    )
    assert records[0].view_to_subscriber_ratio == 3.0
    assert records[0].like_to_subscriber_ratio == 0.1111


def test_ratios_round_half_up_on_exact_ties():
    # 1.125 and 0.03125 are exact binary ties; half-even would give 1.12 and 0.0312
    records = build_ranked(
        [make_item("v1")],
        [make_video("v1", 112_500, likes=3_125)],
        [make_channel(subscribers=100_000)],
        LONGFORM,
        {},
    )
    assert records[0].view_to_subscriber_ratio == 1.13
    assert records[0].like_to_subscriber_ratio == 0.0313
    assert records[0].performance_score.score == 3


def test_round_half_up():
    assert round_half_up(1125 / 1000, 2) == 1.13
    assert round_half_up(2.5, 0) == 3.0
    assert round_half_up(0.045, 4) == 0.045
    # 1.005 is stored just below the tie, as toFixed sees it
    assert round_half_up(1.005, 2) == 1.0


def test_contribution_present_only_with_known_average():
    items = [make_item("a1", "UC_A"), make_item("b1", "UC_B")]
    videos = [make_video("a1", 500_000), make_video("b1", 500_000)]
    channels = [make_channel("UC_A", 100_000), make_channel("UC_B", 100_000)]
    records = {r.video_id: r for r in build_ranked(items, videos, channels, LONGFORM, {"UC_A": 50_000})}
    assert records["a1"].contribution_score.score == 5
    assert records["a1"].channel_average_views == 50_000
    assert records["b1"].contribution_score is None
    assert records["b1"].channel_average_views is None


def test_ordering_by_score_then_ratio_and_independent_of_input_order():
    items = [make_item(f"v{i}", f"UC_{i}") for i in range(5)]
    views = [150_000, 600_000, 320_000, 350_000, 1_100_000]
    videos = [make_video(f"v{i}", v) for i, v in enumerate(views)]
    channels = [make_channel(f"UC_{i}", 100_000) for i in range(5)]

    forward = build_ranked(items, videos, channels, LONGFORM, {})
    backward = build_ranked(list(reversed(items)), videos, channels, LONGFORM, {})

    assert [r.video_id for r in forward] == ["v4", "v1", "v3", "v2", "v0"]
    assert forward == backward
    for a, b in zip(forward, forward[1:]):
        assert (a.performance_score.score, a.view_to_subscriber_ratio) >= (
            b.performance_score.score,
            b.view_to_subscriber_ratio,
        )


def test_equal_keys_sort_deterministically():
    items = [make_item("b", "UC_B"), make_item("a", "UC_A")]
    videos = [make_video("a", 200_000), make_video("b", 200_000)]
    channels = [make_channel("UC_A", 100_000), make_channel("UC_B", 100_000)]
    forward = build_ranked(items, videos, channels, LONGFORM, {})
    backward = build_ranked(list(reversed(items)), videos, channels, LONGFORM, {})
    assert [r.video_id for r in forward] == [r.video_id for r in backward] == ["a", "b"]


def test_result_budget_stops_accumulating():
    items = [make_item(f"v{i}", f"UC_{i}") for i in range(40)]
    videos = [make_video(f"v{i}", 100_000 * (i + 1)) for i in range(40)]
    channels = [make_channel(f"UC_{i}", 100_000) for i in range(40)]
    records = build_ranked(items, videos, channels, LONGFORM, {})
    assert len(records) == 30
    # budget is filled in input order, then ranked
    assert {r.video_id for r in records} == {f"v{i}" for i in range(30)}
    assert len(build_ranked(items, videos, channels, LONGFORM, {}, result_budget=5)) == 5


def test_build_ranked_is_idempotent_and_invariants_hold():
    items = [make_item(f"v{i}", f"UC_{i % 3}") for i in range(12)]
    videos = [make_video(f"v{i}", 40_000 * (i + 1), "PT2M" if i % 4 == 0 else "PT8M") for i in range(12)]
    channels = [make_channel(f"UC_{i}", 50_000 * (i + 1)) for i in range(3)]
    averages = {"UC_0": 120_000}

    first = build_ranked(items, videos, channels, LONGFORM, averages)
    second = build_ranked(items, videos, channels, LONGFORM, averages)
    assert [r.to_dict() for r in first] == [r.to_dict() for r in second]
    assert first
    for record in first:
        assert record.view_count >= record.subscriber_count >= 1
        if record.contribution_score is not None:
            assert record.channel_average_views is not None and record.channel_average_views > 0
        assert not math.isnan(record.view_to_subscriber_ratio)


def test_to_dict_shape():
    record = build_ranked(
        [make_item("v1")],
        [make_video("v1", 400_000, likes=9_000)],
        [make_channel(subscribers=200_000)],
        LONGFORM,
        {"UC_A": 100_000},
    )[0]
    payload = record.to_dict()
    assert payload["videoId"] == "v1"
    assert payload["url"] == "https://www.youtube.com/watch?v=v1"
    assert payload["durationSeconds"] == 600
    assert payload["performanceScore"] == {"score": 3, "label": "Good", "color": "#60a5fa"}
    assert payload["contributionScore"]["label"] == "Good"
    assert payload["channelAverageViews"] == 100_000
    assert payload["likeToSubscriberRatio"] == 0.045
