from .api_client import ApiClient, ApiError, ApiResponse, NetworkError, SessionExpired
from .formatting import utc_now
from .logger import setup_logger, get_logger

__all__ = [
    "ApiClient",
    "ApiError",
    "ApiResponse",
    "NetworkError",
    "SessionExpired",
    "setup_logger",
    "get_logger",
    "utc_now",
]
