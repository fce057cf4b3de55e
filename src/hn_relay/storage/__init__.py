"""캐시 저장소 모듈."""

from hn_relay.storage.redis_cache import DEFAULT_CACHE_TTL, CacheStore

__all__ = ["DEFAULT_CACHE_TTL", "CacheStore"]
