"""Typed shapes decoded from YouTube Data API payloads.

The API returns every statistic as an optional string. Payloads are decoded
once at the client boundary into these records so the ranking code never has
to walk raw dictionaries or guess whether a field was present.
"""

from dataclasses import dataclass
from typing import Any


def _to_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def best_thumbnail_url(thumbnails: dict) -> str:
    for key in ("high", "medium", "default"):
        t = thumbnails.get(key)
        if t and t.get("url"):
            return t["url"]
    return ""


@dataclass(frozen=True)
class SearchItem:
    video_id: str
    channel_id: str
    title: str
    channel_title: str
    published_at: str
    thumbnail_url: str

    @classmethod
    def from_api(cls, item: dict) -> "SearchItem | None":
        raw_id = item.get("id")
        video_id = raw_id.get("videoId") if isinstance(raw_id, dict) else None
        snip = item.get("snippet") or {}
        channel_id = snip.get("channelId")
        if not video_id or not channel_id:
            return None
        return cls(
            video_id=video_id,
            channel_id=channel_id,
            title=snip.get("title") or "",
            channel_title=snip.get("channelTitle") or "",
            published_at=snip.get("publishedAt") or "",
            thumbnail_url=best_thumbnail_url(snip.get("thumbnails") or {}),
        )


@dataclass(frozen=True)
class SearchPage:
    items: list[SearchItem]
    next_page_token: str | None = None


@dataclass(frozen=True)
class VideoDetail:
    video_id: str
    duration: str
    view_count: int
    like_count: int | None = None
    comment_count: int | None = None

    @classmethod
    def from_api(cls, item: dict) -> "VideoDetail | None":
        video_id = item.get("id")
        if not video_id:
            return None
        stats = item.get("statistics") or {}
        details = item.get("contentDetails") or {}
        return cls(
            video_id=video_id,
            duration=details.get("duration") or "",
            view_count=_to_int(stats.get("viewCount")) or 0,
            like_count=_to_int(stats.get("likeCount")),
            comment_count=_to_int(stats.get("commentCount")),
        )


@dataclass(frozen=True)
class ChannelDetail:
    channel_id: str
    subscriber_count: int
    video_count: int
    uploads_playlist_id: str | None = None

    @classmethod
    def from_api(cls, item: dict) -> "ChannelDetail | None":
        channel_id = item.get("id")
        if not channel_id:
            return None
        stats = item.get("statistics") or {}
        playlists = (item.get("contentDetails") or {}).get("relatedPlaylists") or {}
        return cls(
            channel_id=channel_id,
            subscriber_count=_to_int(stats.get("subscriberCount")) or 0,
            video_count=_to_int(stats.get("videoCount")) or 0,
            uploads_playlist_id=playlists.get("uploads") or None,
        )


@dataclass(frozen=True)
class ScoreInfo:
    score: int
    label: str
    color: str

    def to_dict(self) -> dict[str, Any]:
        return {"score": self.score, "label": self.label, "color": self.color}


@dataclass(frozen=True)
class ResultFilters:
    min_view_count: float | None = None
    max_subscriber_count: float | None = None


@dataclass(frozen=True)
class ResultRecord:
    video_id: str
    title: str
    thumbnail_url: str
    channel_id: str
    channel_title: str
    published_at: str
    view_count: int
    like_count: int | None
    comment_count: int | None
    subscriber_count: int
    total_video_count: int
    view_to_subscriber_ratio: float
    like_to_subscriber_ratio: float | None
    duration: str
    duration_seconds: int
    performance_score: ScoreInfo
    contribution_score: ScoreInfo | None = None
    channel_average_views: int | None = None

    @property
    def url(self) -> str:
        return f"https://www.youtube.com/watch?v={self.video_id}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "videoId": self.video_id,
            "url": self.url,
            "title": self.title,
            "thumbnailUrl": self.thumbnail_url,
            "channelId": self.channel_id,
            "channelTitle": self.channel_title,
            "publishedAt": self.published_at,
            "viewCount": self.view_count,
            "likeCount": self.like_count,
            "commentCount": self.comment_count,
            "subscriberCount": self.subscriber_count,
            "totalVideoCount": self.total_video_count,
            "viewToSubscriberRatio": self.view_to_subscriber_ratio,
            "likeToSubscriberRatio": self.like_to_subscriber_ratio,
            "duration": self.duration,
            "durationSeconds": self.duration_seconds,
            "performanceScore": self.performance_score.to_dict(),
            "contributionScore": (
                self.contribution_score.to_dict() if self.contribution_score else None
            ),
            "channelAverageViews": self.channel_average_views,
        }
