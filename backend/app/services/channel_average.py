import logging
from concurrent.futures import Executor

from ..errors import YouTubeAPIError
from ..models import ChannelDetail
from ..settings import CHANNEL_SAMPLE_SIZE
from .analysis import channel_average_views
from .youtube_client import get_playlist_video_ids, get_video_details

logger = logging.getLogger(__name__)


def estimate_channel_average(
    api_key: str,
    uploads_playlist_id: str,
    video_type: str,
    sample_size: int = CHANNEL_SAMPLE_SIZE,
) -> int | None:
    """
    Average views over the channel's most recent uploads of the same type.
    Costs one playlistItems.list and one videos.list call.
    """
    sample_ids = get_playlist_video_ids(api_key, uploads_playlist_id, sample_size)
    if not sample_ids:
        return None
    samples = get_video_details(api_key, sample_ids)
    average = channel_average_views(samples, video_type)
    if average is None or average <= 0:
        return None
    return average


def _estimate_isolated(api_key: str, channel: ChannelDetail, video_type: str) -> int | None:
    try:
        return estimate_channel_average(api_key, channel.uploads_playlist_id, video_type)
    except YouTubeAPIError as exc:
        logger.warning("Channel average unavailable for %s: %s", channel.channel_id, exc.code)
    except Exception:
        logger.exception("Channel average failed unexpectedly for %s", channel.channel_id)
    return None


def estimate_channel_averages(
    api_key: str,
    channels: list[ChannelDetail],
    video_type: str,
    executor: Executor,
) -> dict[str, int]:
    """
    Best-effort, one task per channel with an uploads playlist.
    A failing channel is simply left out of the result.
    """
    futures = {
        channel.channel_id: executor.submit(_estimate_isolated, api_key, channel, video_type)
        for channel in channels
        if channel.uploads_playlist_id
    }
    averages: dict[str, int] = {}
    for channel_id, future in futures.items():
        average = future.result()
        if average is not None:
            averages[channel_id] = average
    return averages
