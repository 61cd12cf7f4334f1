"""Handler layer for HTTP endpoints.

Handlers translate DTOs into service calls and map failures to HTTP
responses. A store outage during lookup becomes a miss, not an error.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)
"""

from .cache_handler import CacheHandler

__all__ = [
    "CacheHandler",
]
