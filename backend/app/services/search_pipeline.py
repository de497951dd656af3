"""Keyword search -> hydrate -> channel averages -> ranked results.

Each run owns its own thread pool and holds every fetched record in memory
only for the duration of the call.
"""

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from dateutil.relativedelta import relativedelta

from ..models import ResultFilters, ResultRecord, SearchItem
from ..settings import SEARCH_MAX_PAGES, SEARCH_RESULT_BUDGET, YOUTUBE_FETCH_WORKERS
from .analysis import build_ranked
from .channel_average import estimate_channel_averages
from .video_type import search_durations_for
from .youtube_client import (
    MAX_IDS_PER_CALL,
    get_channel_details,
    get_video_details,
    search_videos,
)

logger = logging.getLogger(__name__)

UPLOAD_PERIOD_OFFSETS = {
    "1month": relativedelta(months=1),
    "3months": relativedelta(months=3),
    "6months": relativedelta(months=6),
    "1year": relativedelta(years=1),
}
UPLOAD_PERIODS = ("all", *UPLOAD_PERIOD_OFFSETS)


@dataclass(frozen=True)
class SearchQuery:
    api_key: str = field(repr=False)
    keyword: str
    video_type: str
    upload_period: str = "all"
    min_view_count: float | None = None
    max_subscriber_count: float | None = None


def published_after_for(upload_period: str | None, now: datetime | None = None) -> str | None:
    offset = UPLOAD_PERIOD_OFFSETS.get(upload_period or "all")
    if offset is None:
        return None
    now = now or datetime.now(timezone.utc)
    cutoff = (now - offset).astimezone(timezone.utc).replace(microsecond=0)
    return cutoff.isoformat().replace("+00:00", "Z")


def chunked(lst, n):
    for i in range(0, len(lst), n):
        yield lst[i:i + n]


def submit_in_chunks(executor: Executor, ids: list[str], fetcher: Callable[[list[str]], list]) -> list[Future]:
    return [executor.submit(fetcher, chunk) for chunk in chunked(ids, MAX_IDS_PER_CALL)]


def gather(futures: list[Future]) -> list:
    collected = []
    for future in futures:
        collected.extend(future.result())
    return collected


def search_duration_bucket(
    api_key: str,
    keyword: str,
    video_duration: str,
    published_after: str | None,
    max_pages: int = SEARCH_MAX_PAGES,
) -> list[SearchItem]:
    collected: list[SearchItem] = []
    page_token = None
    for _ in range(max_pages):
        page = search_videos(
            api_key,
            keyword,
            video_duration,
            max_results=50,
            published_after=published_after,
            page_token=page_token,
        )
        collected.extend(page.items)
        page_token = page.next_page_token
        if not page_token:
            break
    return collected


def dedupe_search_items(batches: list[list[SearchItem]]) -> list[SearchItem]:
    merged: dict[str, SearchItem] = {}
    for batch in batches:
        for item in batch:
            merged.setdefault(item.video_id, item)
    return list(merged.values())


def build_filters(query: SearchQuery) -> ResultFilters:
    min_views = query.min_view_count if query.min_view_count and query.min_view_count > 0 else None
    return ResultFilters(
        min_view_count=min_views,
        max_subscriber_count=query.max_subscriber_count,
    )


def run_search(query: SearchQuery, result_budget: int = SEARCH_RESULT_BUDGET) -> list[ResultRecord]:
    logger.info(
        "search keyword=%r type=%s period=%s",
        query.keyword,
        query.video_type,
        query.upload_period or "all",
    )
    api_key = query.api_key
    published_after = published_after_for(query.upload_period)

    with ThreadPoolExecutor(max_workers=YOUTUBE_FETCH_WORKERS) as executor:
        bucket_futures = [
            executor.submit(search_duration_bucket, api_key, query.keyword, duration, published_after)
            for duration in search_durations_for(query.video_type)
        ]
        search_items = dedupe_search_items([f.result() for f in bucket_futures])
        if not search_items:
            logger.info("search found=0 filtered=0 channelsWithAvg=0")
            return []

        video_ids = [item.video_id for item in search_items]
        channel_ids = list(dict.fromkeys(item.channel_id for item in search_items))

        video_futures = submit_in_chunks(executor, video_ids, lambda ids: get_video_details(api_key, ids))
        channel_futures = submit_in_chunks(executor, channel_ids, lambda ids: get_channel_details(api_key, ids))
        video_details = gather(video_futures)
        channel_details = gather(channel_futures)

        channel_averages = estimate_channel_averages(api_key, channel_details, query.video_type, executor)

    results = build_ranked(
        search_items,
        video_details,
        channel_details,
        query.video_type,
        channel_averages,
        filters=build_filters(query),
        result_budget=result_budget,
    )
    logger.info(
        "search found=%d filtered=%d channelsWithAvg=%d",
        len(search_items),
        len(results),
        len(channel_averages),
    )
    return results
