INVALID_API_KEY = "INVALID_API_KEY"
QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
FORBIDDEN = "FORBIDDEN"
NOT_FOUND = "NOT_FOUND"
NETWORK_ERROR = "NETWORK_ERROR"
UNKNOWN = "UNKNOWN"
REQUEST_MALFORMED = "REQUEST_MALFORMED"
INPUT_MISSING = "INPUT_MISSING"

ERROR_STATUS = {
    INVALID_API_KEY: 401,
    QUOTA_EXCEEDED: 429,
    FORBIDDEN: 403,
    NOT_FOUND: 404,
    NETWORK_ERROR: 503,
    UNKNOWN: 500,
    REQUEST_MALFORMED: 400,
    INPUT_MISSING: 400,
}


class ApiError(Exception):
    """Failure that is safe to show to the caller as-is."""

    def __init__(self, message: str, code: str):
        super().__init__(message)
        self.message = message
        self.code = code

    @property
    def http_status(self) -> int:
        return ERROR_STATUS.get(self.code, 500)


class YouTubeAPIError(ApiError):
    def __init__(self, message: str, code: str, status: int | None = None):
        super().__init__(message, code)
        self.status = status


class SearchRequestError(ApiError):
    pass
