"""HTTP handlers.

CacheHandler maps request DTOs onto SemanticCacheService calls and cache or
generation errors onto HTTP status codes (502 for the upstream model, 500
for the rest).
"""

from .cache_handler import CacheHandler

__all__ = ["CacheHandler"]
