# cache/__init__.py
from autotranslate.cache.store import (
    CacheStore, CacheError, CacheReadError, CacheWriteError, make_cache_key,
)
from autotranslate.cache.models import CacheEntry, CacheStats, format_bytes
from autotranslate.cache.sweeper import CacheSweeper

__all__ = [
    "CacheStore", "CacheError", "CacheReadError", "CacheWriteError", "make_cache_key",
    "CacheEntry", "CacheStats", "format_bytes",
    "CacheSweeper",
]
