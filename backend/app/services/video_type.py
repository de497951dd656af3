import re

SHORTS = "shorts"
LONGFORM = "longform"
VIDEO_TYPES = (SHORTS, LONGFORM)

# YouTube raised the Shorts ceiling from 60s to 180s in October 2024.
SHORTS_MAX_SECONDS = 180

ISO8601_DURATION_RE = re.compile(
    r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?$"
)


def iso8601_duration_to_seconds(duration: str) -> int:
    match = ISO8601_DURATION_RE.match((duration or "").strip())
    if not match:
        return 0
    days = int(match.group(1) or 0)
    hours = int(match.group(2) or 0)
    minutes = int(match.group(3) or 0)
    seconds = int(match.group(4) or 0)
    return days * 86400 + hours * 3600 + minutes * 60 + seconds


def classify_seconds(seconds: int) -> str:
    if 0 < seconds <= SHORTS_MAX_SECONDS:
        return SHORTS
    return LONGFORM


def matches_video_type(duration: str, video_type: str) -> bool:
    """
    Exact, post-enrichment category check.
    A duration that decodes to 0 (unparseable, live, empty) matches neither type.
    """
    total_seconds = iso8601_duration_to_seconds(duration)
    return total_seconds > 0 and classify_seconds(total_seconds) == video_type


def search_durations_for(video_type: str) -> tuple[str, ...]:
    """
    search.list videoDuration buckets that approximate a video type.
    - shorts: "short" (< 4 min), over-inclusive, re-checked after hydration
    - longform: "medium" (4-20 min) + "long" (> 20 min), fetched separately and merged
    """
    if video_type == SHORTS:
        return ("short",)
    return ("medium", "long")
