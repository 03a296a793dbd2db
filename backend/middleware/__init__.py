"""
Middleware package for the MomCare API.
"""

from .logging_middleware import (
    RequestLoggingMiddleware,
    RequestStatsMiddleware,
    get_stats_middleware,
    set_stats_middleware,
)

__all__ = [
    "RequestLoggingMiddleware",
    "RequestStatsMiddleware",
    "get_stats_middleware",
    "set_stats_middleware",
]
