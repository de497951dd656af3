"""Runtime configuration for the search backend.

Values come from the process environment (optionally seeded from a local
``.env`` file). The YouTube API key is deliberately absent: callers supply
it with every request and it is never stored here.
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()

# Target market for search.list
YOUTUBE_SEARCH_REGION = (os.getenv("YOUTUBE_SEARCH_REGION") or "KR").strip().upper()
YOUTUBE_SEARCH_LANGUAGE = (os.getenv("YOUTUBE_SEARCH_LANGUAGE") or "ko").strip().lower()

SEARCH_RESULT_BUDGET = max(1, _env_int("SEARCH_RESULT_BUDGET", 30))
SEARCH_MAX_PAGES = max(1, min(_env_int("SEARCH_MAX_PAGES", 2), 5))
CHANNEL_SAMPLE_SIZE = max(1, min(_env_int("CHANNEL_SAMPLE_SIZE", 50), 50))

YOUTUBE_FETCH_WORKERS = max(1, _env_int("YOUTUBE_FETCH_WORKERS", 8))
YOUTUBE_REQUEST_TIMEOUT_SECONDS = max(1, _env_int("YOUTUBE_REQUEST_TIMEOUT_SECONDS", 15))

CORS_ALLOWED_ORIGINS = (os.getenv("CORS_ALLOWED_ORIGINS") or "").strip()
