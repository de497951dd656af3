import logging
import time
from collections import deque
from typing import Literal

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

try:
    from backend.app import settings
    from backend.app.errors import INPUT_MISSING, REQUEST_MALFORMED, ApiError, SearchRequestError
    from backend.app.services.search_pipeline import SearchQuery, run_search
    from backend.app.services.video_type import VIDEO_TYPES
except ModuleNotFoundError:
    from app import settings
    from app.errors import INPUT_MISSING, REQUEST_MALFORMED, ApiError, SearchRequestError
    from app.services.search_pipeline import SearchQuery, run_search
    from app.services.video_type import VIDEO_TYPES


logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------
# Request models
# ---------------------------

class SearchRequest(BaseModel):
    credential: str | None = Field(
        default=None,
        repr=False,
        validation_alias=AliasChoices("credential", "apiKey"),
    )
    keyword: str | None = None
    category: str | None = Field(
        default=None,
        validation_alias=AliasChoices("category", "videoType"),
    )
    upload_period: Literal["all", "1month", "3months", "6months", "1year"] | None = Field(
        default=None,
        validation_alias=AliasChoices("uploadPeriod", "upload_period"),
    )
    min_view_count: int | float | None = Field(
        default=None,
        validation_alias=AliasChoices("minViewCount", "min_view_count"),
    )
    max_subscriber_count: int | float | None = Field(
        default=None,
        validation_alias=AliasChoices("maxSubscriberCount", "max_subscriber_count"),
    )


def to_search_query(payload: SearchRequest) -> SearchQuery:
    credential = (payload.credential or "").strip()
    if not credential:
        raise SearchRequestError("An API key is required.", INPUT_MISSING)
    keyword = (payload.keyword or "").strip()
    if not keyword:
        raise SearchRequestError("A search keyword is required.", INPUT_MISSING)
    category = (payload.category or "").strip()
    if not category:
        raise SearchRequestError("category is required.", INPUT_MISSING)
    if category not in VIDEO_TYPES:
        raise SearchRequestError("category must be 'shorts' or 'longform'.", REQUEST_MALFORMED)
    return SearchQuery(
        api_key=credential,
        keyword=keyword,
        video_type=category,
        upload_period=payload.upload_period or "all",
        min_view_count=payload.min_view_count,
        max_subscriber_count=payload.max_subscriber_count,
    )


# ---------------------------
# Rate limiting
# ---------------------------

API_RATE_LIMIT_WINDOW_SECONDS = 60
API_RATE_LIMIT_MAX_REQUESTS = 30
API_RATE_LIMIT_BUCKETS: dict[str, deque[float]] = {}


def get_client_ip(request: Request) -> str:
    forwarded = (request.headers.get("x-forwarded-for") or "").strip()
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def prune_idle_rate_limit_buckets(cutoff: float) -> None:
    idle_keys = [
        key for key, bucket in API_RATE_LIMIT_BUCKETS.items()
        if not bucket or bucket[-1] < cutoff
    ]
    for key in idle_keys:
        API_RATE_LIMIT_BUCKETS.pop(key, None)


def enforce_api_rate_limit(request: Request, scope: str = "youtube") -> None:
    now_ts = time.time()
    cutoff = now_ts - API_RATE_LIMIT_WINDOW_SECONDS
    prune_idle_rate_limit_buckets(cutoff)

    key = f"{scope}:{get_client_ip(request)}"
    bucket = API_RATE_LIMIT_BUCKETS.get(key)
    if bucket is None:
        bucket = deque()
        API_RATE_LIMIT_BUCKETS[key] = bucket

    while bucket and bucket[0] < cutoff:
        bucket.popleft()

    if len(bucket) >= API_RATE_LIMIT_MAX_REQUESTS:
        raise HTTPException(
            status_code=429,
            detail="Too many requests. Please wait a minute and try again.",
        )

    bucket.append(now_ts)


# ---------------------------
# App setup
# ---------------------------

def parse_cors_origins(raw: str | None = None) -> tuple[list[str], bool]:
    raw = (settings.CORS_ALLOWED_ORIGINS if raw is None else raw).strip()
    if not raw:
        return ["http://localhost:3000"], True
    if raw == "*":
        return ["*"], False
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    if not origins:
        return ["http://localhost:3000"], True
    return origins, True


app = FastAPI()

cors_origins, cors_credentials = parse_cors_origins()

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=cors_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ApiError)
async def api_error_handler(_request: Request, exc: ApiError):
    return JSONResponse(
        status_code=exc.http_status,
        content={"error": exc.message, "code": exc.code},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_request: Request, _exc: RequestValidationError):
    # Validation details echo raw input, which may include the API key.
    return JSONResponse(
        status_code=400,
        content={"error": "The request body is malformed.", "code": REQUEST_MALFORMED},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "Something went wrong on our side. Please try again shortly."},
    )


@app.get("/health")
def health():
    return {"ok": True}


@app.post("/youtube/search")
def search(payload: SearchRequest, request: Request):
    """
    Keyword search ranked by performance (views / subscribers):
    - only videos that out-viewed their channel's subscriber count
    - contribution score when the channel's same-type average is known
    - credential is used for this request only and never logged
    """
    query = to_search_query(payload)
    enforce_api_rate_limit(request, scope="search")
    videos = run_search(query)
    return {"videos": [v.to_dict() for v in videos], "total": len(videos)}
