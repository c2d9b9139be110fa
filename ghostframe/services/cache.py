"""
Redis caching service with an in-memory fallback
"""
import fnmatch
import json
import time
from typing import Optional, Any, Dict, Tuple

import redis
import structlog

from ghostframe import config

logger = structlog.get_logger()

# TTL presets in seconds
TTL_SHORT = 60
TTL_MEDIUM = 300
TTL_LONG = 3600
TTL_DAY = 86400

MEMORY_MAX_ENTRIES = 10_000
MEMORY_SWEEP_INTERVAL = 60


class CacheService:
    def __init__(self, redis_url: Optional[str] = config.REDIS_URL, max_entries: int = MEMORY_MAX_ENTRIES):
        self._memory_cache: Dict[str, Tuple[Any, float]] = {}
        self.max_entries = max_entries
        self._next_sweep = 0.0
        self.redis_client = None
        if not redis_url:
            logger.info("cache_backend_selected", backend="memory", reason="no redis url")
            return
        try:
            self.redis_client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=1,
            )
            self.redis_client.ping()
            logger.info("cache_backend_selected", backend="redis")
        except redis.RedisError as e:
            logger.warning("cache_backend_selected", backend="memory", reason=str(e))
            self.redis_client = None

    @property
    def backend(self) -> str:
        return "redis" if self.redis_client is not None else "memory"

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        try:
            if self.redis_client:
                value = self.redis_client.get(key)
                return json.loads(value) if value else None
            entry = self._memory_cache.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if time.time() > expires_at:
                self._memory_cache.pop(key, None)
                return None
            return value
        except (redis.RedisError, ValueError) as e:
            logger.error("cache_get_failed", key=key, error=str(e))
            return None

    def set(self, key: str, value: Any, expire: int = TTL_LONG) -> bool:
        """Set value in cache with expiration"""
        try:
            if self.redis_client:
                return bool(self.redis_client.setex(key, expire, json.dumps(value)))
            self._store_in_memory(key, value, expire)
            return True
        except (redis.RedisError, TypeError, ValueError) as e:
            logger.error("cache_set_failed", key=key, error=str(e))
            return False

    def delete(self, key: str) -> bool:
        """Delete value from cache"""
        try:
            if self.redis_client:
                return bool(self.redis_client.delete(key))
            return self._memory_cache.pop(key, None) is not None
        except redis.RedisError as e:
            logger.error("cache_delete_failed", key=key, error=str(e))
            return False

    def clear_pattern(self, pattern: str) -> int:
        """Clear all keys matching a glob pattern"""
        try:
            if self.redis_client:
                keys = list(self.redis_client.scan_iter(match=pattern))
                return self.redis_client.delete(*keys) if keys else 0
            keys_to_delete = [k for k in self._memory_cache if fnmatch.fnmatch(k, pattern)]
            for key in keys_to_delete:
                del self._memory_cache[key]
            return len(keys_to_delete)
        except redis.RedisError as e:
            logger.error("cache_clear_failed", pattern=pattern, error=str(e))
            return 0

    def _store_in_memory(self, key: str, value: Any, expire: int) -> None:
        now = time.time()
        if now >= self._next_sweep or len(self._memory_cache) >= self.max_entries:
            self.cleanup()
            self._next_sweep = now + MEMORY_SWEEP_INTERVAL
        if key not in self._memory_cache and len(self._memory_cache) >= self.max_entries:
            # still full of live entries: evict the one closest to expiry
            soonest = min(self._memory_cache, key=lambda k: self._memory_cache[k][1])
            del self._memory_cache[soonest]
        self._memory_cache[key] = (value, now + expire)

    def cleanup(self) -> int:
        """Drop expired in-memory entries"""
        now = time.time()
        expired = [k for k, (_, expires_at) in self._memory_cache.items() if now > expires_at]
        for key in expired:
            del self._memory_cache[key]
        return len(expired)


def module_list_key(query: str) -> str:
    return f"modules:list:{query or '*all*'}"


def module_key(module_id: str) -> str:
    return f"module:{module_id}"


# Global cache instance
cache = CacheService()
