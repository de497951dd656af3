"""Thin typed wrapper around the YouTube Data API v3.

Every call takes the caller's API key explicitly. The key travels in the
``X-Goog-Api-Key`` header so it never ends up in a URL, and any upstream text
is scrubbed of it before being surfaced.
"""

import logging
from typing import Any

import requests

from ..errors import (
    FORBIDDEN,
    INVALID_API_KEY,
    NETWORK_ERROR,
    NOT_FOUND,
    QUOTA_EXCEEDED,
    UNKNOWN,
    YouTubeAPIError,
)
from ..models import ChannelDetail, SearchItem, SearchPage, VideoDetail
from ..settings import (
    YOUTUBE_REQUEST_TIMEOUT_SECONDS,
    YOUTUBE_SEARCH_LANGUAGE,
    YOUTUBE_SEARCH_REGION,
)

logger = logging.getLogger(__name__)

YOUTUBE_API_BASE = "https://www.googleapis.com/youtube/v3"
YOUTUBE_SEARCH_LIST = f"{YOUTUBE_API_BASE}/search"
YOUTUBE_VIDEOS_LIST = f"{YOUTUBE_API_BASE}/videos"
YOUTUBE_CHANNELS_LIST = f"{YOUTUBE_API_BASE}/channels"
YOUTUBE_PLAYLIST_ITEMS_LIST = f"{YOUTUBE_API_BASE}/playlistItems"

# videos.list / channels.list accept at most 50 ids per call. Callers chunk.
MAX_IDS_PER_CALL = 50

INVALID_KEY_REASONS = {"keyInvalid", "badRequest"}
QUOTA_REASONS = {"quotaExceeded", "dailyLimitExceeded"}


def _redact(text: str, api_key: str) -> str:
    if api_key and api_key in text:
        return text.replace(api_key, "***")
    return text


def _error_reason_and_message(response: requests.Response) -> tuple[str, str]:
    reason = ""
    message = ""
    try:
        payload = response.json()
    except ValueError:
        return reason, message
    if not isinstance(payload, dict):
        return reason, message
    error = payload.get("error") or {}
    if not isinstance(error, dict):
        return reason, message
    errors = error.get("errors") or []
    if errors and isinstance(errors[0], dict):
        reason = str(errors[0].get("reason") or "")
    message = str(error.get("message") or "")
    return reason, message


def raise_for_youtube_error(response: requests.Response, api_key: str) -> None:
    status = response.status_code
    reason, message = _error_reason_and_message(response)
    message = _redact(message, api_key)

    if status == 400 or reason in INVALID_KEY_REASONS:
        raise YouTubeAPIError(
            "The API key is not valid. Please check it and try again.",
            INVALID_API_KEY,
            status,
        )
    if status == 403:
        if reason in QUOTA_REASONS:
            raise YouTubeAPIError(
                "The daily YouTube API quota is exhausted. Try again tomorrow or use another API key.",
                QUOTA_EXCEEDED,
                status,
            )
        raise YouTubeAPIError(
            f"Access denied: {message or 'forbidden'}",
            FORBIDDEN,
            status,
        )
    if status == 404:
        raise YouTubeAPIError("The requested resource was not found.", NOT_FOUND, status)

    raise YouTubeAPIError(
        message or "The YouTube API returned an unexpected error.",
        UNKNOWN,
        status,
    )


def youtube_api_get(url: str, params: dict[str, Any], api_key: str, timeout: int | None = None) -> dict[str, Any]:
    try:
        response = requests.get(
            url,
            params=params,
            headers={"X-Goog-Api-Key": api_key},
            timeout=timeout or YOUTUBE_REQUEST_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        logger.warning("YouTube request to %s failed: %s", url, type(exc).__name__)
        raise YouTubeAPIError(
            "Could not reach the YouTube API. Please try again.",
            NETWORK_ERROR,
        ) from exc

    if response.status_code != 200:
        raise_for_youtube_error(response, api_key)

    try:
        payload = response.json()
    except ValueError:
        raise YouTubeAPIError("The YouTube API returned an unreadable response.", UNKNOWN, 200)
    if not isinstance(payload, dict):
        raise YouTubeAPIError("The YouTube API returned an unreadable response.", UNKNOWN, 200)
    return payload


def search_videos(
    api_key: str,
    keyword: str,
    video_duration: str,
    max_results: int = 50,
    published_after: str | None = None,
    page_token: str | None = None,
) -> SearchPage:
    """search.list pinned to the configured market, embeddable videos only."""
    params: dict[str, Any] = {
        "part": "snippet",
        "q": keyword,
        "type": "video",
        "regionCode": YOUTUBE_SEARCH_REGION,
        "relevanceLanguage": YOUTUBE_SEARCH_LANGUAGE,
        "videoDuration": video_duration,
        "videoEmbeddable": "true",
        "maxResults": max(1, min(max_results, 50)),
    }
    if published_after:
        params["publishedAfter"] = published_after
    if page_token:
        params["pageToken"] = page_token

    payload = youtube_api_get(YOUTUBE_SEARCH_LIST, params, api_key)
    items = []
    for raw in payload.get("items") or []:
        item = SearchItem.from_api(raw)
        if item is not None:
            items.append(item)
    return SearchPage(items=items, next_page_token=payload.get("nextPageToken") or None)


def get_video_details(api_key: str, video_ids: list[str]) -> list[VideoDetail]:
    if not video_ids:
        return []
    if len(video_ids) > MAX_IDS_PER_CALL:
        raise ValueError(f"videos.list accepts at most {MAX_IDS_PER_CALL} ids per call")

    payload = youtube_api_get(
        YOUTUBE_VIDEOS_LIST,
        {
            "part": "contentDetails,statistics",
            "id": ",".join(video_ids),
            "maxResults": MAX_IDS_PER_CALL,
        },
        api_key,
    )
    details = []
    for raw in payload.get("items") or []:
        detail = VideoDetail.from_api(raw)
        if detail is not None:
            details.append(detail)
    return details


def get_channel_details(api_key: str, channel_ids: list[str]) -> list[ChannelDetail]:
    unique_ids = list(dict.fromkeys(cid for cid in channel_ids if cid))
    if not unique_ids:
        return []
    if len(unique_ids) > MAX_IDS_PER_CALL:
        raise ValueError(f"channels.list accepts at most {MAX_IDS_PER_CALL} ids per call")

    payload = youtube_api_get(
        YOUTUBE_CHANNELS_LIST,
        {
            # contentDetails carries the uploads playlist used for channel averages
            "part": "statistics,contentDetails",
            "id": ",".join(unique_ids),
            "maxResults": MAX_IDS_PER_CALL,
        },
        api_key,
    )
    details = []
    for raw in payload.get("items") or []:
        detail = ChannelDetail.from_api(raw)
        if detail is not None:
            details.append(detail)
    return details


def get_playlist_video_ids(api_key: str, playlist_id: str, max_results: int = 50) -> list[str]:
    """Video ids from one playlistItems.list page, in upstream (most recent first) order."""
    payload = youtube_api_get(
        YOUTUBE_PLAYLIST_ITEMS_LIST,
        {
            "part": "contentDetails",
            "playlistId": playlist_id,
            "maxResults": max(1, min(max_results, 50)),
        },
        api_key,
    )
    ids = []
    for it in payload.get("items") or []:
        vid = (it.get("contentDetails") or {}).get("videoId")
        if vid:
            ids.append(vid)
    return ids
