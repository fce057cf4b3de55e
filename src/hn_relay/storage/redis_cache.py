"""Redis 캐시 저장소 모듈."""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 60  # 1분

# 백엔드 장애로 취급하는 예외
_BACKEND_ERRORS = (RedisError, OSError)

# single-flight 선행 요청이 결과 없이 끝났음을 알리는 표식
_ABANDONED = object()


class CacheStore:
    """TTL 기반 get-or-populate 캐시.

    캐시 백엔드 장애는 캐시 미스로 취급한다 (fail-open).

    같은 키에 대한 동시 미스는 원자적으로 처리되지 않는다. 두 요청이 모두
    getter를 호출하고 모두 기록할 수 있으며 마지막 기록이 남는다. 업스트림
    읽기는 멱등이므로 이 완화된 일관성을 그대로 허용한다. single_flight를
    켜면 같은 프로세스 안의 동시 미스만 하나의 getter 호출로 합친다.
    getter를 실행하던 요청이 취소되면 기다리던 요청은 각자 getter를 호출한다.
    """

    def __init__(
        self,
        client: redis.Redis,
        *,
        default_ttl: int = DEFAULT_CACHE_TTL,
        single_flight: bool = False,
    ) -> None:
        """
        Args:
            client: decode_responses=True로 만든 Redis 클라이언트
            default_ttl: 기본 TTL (초)
            single_flight: 프로세스 내 동시 미스를 합칠지 여부
        """
        self.client = client
        self.default_ttl = default_ttl
        self.single_flight = single_flight
        self._inflight: dict[str, asyncio.Future[Any]] = {}

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> "CacheStore":
        """Redis URL로 캐시 저장소를 만든다."""
        client = redis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            health_check_interval=30,
        )
        return cls(client, **kwargs)

    async def close(self) -> None:
        """Redis 연결을 닫는다."""
        await self.client.aclose()

    async def get_from_cache(self, key: str) -> Any | None:
        """캐시된 값을 조회한다. 없거나 읽을 수 없으면 None."""
        try:
            cached = await self.client.get(key)
        except _BACKEND_ERRORS as e:
            logger.warning(f"Cache read failed for {key}: {e!r}")
            return None

        if cached is None:
            return None

        try:
            return json.loads(cached)
        except ValueError:
            logger.warning(f"Discarding undecodable cache entry for {key}")
            return None

    async def set_to_cache(
        self, key: str, value: Any, ttl: int | None = None
    ) -> bool:
        """값을 직렬화해 TTL과 함께 저장한다. 저장 여부를 반환한다."""
        if value is None:
            return False

        ttl = ttl or self.default_ttl
        try:
            await self.client.setex(key, ttl, json.dumps(value))
        except _BACKEND_ERRORS as e:
            logger.warning(f"Cache write failed for {key}: {e!r}")
            return False
        return True

    async def get_or_set_to_cache(
        self,
        key: str,
        getter: Callable[[], Awaitable[Any]],
        ttl: int | None = None,
    ) -> Any | None:
        """캐시에 있으면 반환하고, 없으면 getter 결과를 저장해 반환한다.

        Args:
            key: 캐시 키
            getter: 미스일 때 한 번 호출할 비동기 함수
            ttl: TTL (초). None이면 기본값.

        Returns:
            캐시 값 또는 getter 결과. getter가 None을 반환하거나 예외를
            던지면 저장하지 않고 None을 반환한다.
        """
        cached = await self.get_from_cache(key)
        if cached is not None:
            logger.debug(f"Cache hit: {key}")
            return cached

        if not self.single_flight:
            return await self._populate(key, getter, ttl)

        pending = self._inflight.get(key)
        if pending is not None:
            logger.debug(f"Joining in-flight population: {key}")
            value = await asyncio.shield(pending)
            if value is not _ABANDONED:
                return value
            # 선행 요청이 취소되었으므로 직접 채운다
            logger.debug(f"In-flight population abandoned: {key}")
            return await self._populate(key, getter, ttl)

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            value = await self._populate(key, getter, ttl)
        except BaseException:
            # 대기 중인 요청에 취소를 전파하지 않는다
            future.set_result(_ABANDONED)
            raise
        else:
            future.set_result(value)
            return value
        finally:
            self._inflight.pop(key, None)

    async def _populate(
        self,
        key: str,
        getter: Callable[[], Awaitable[Any]],
        ttl: int | None,
    ) -> Any | None:
        logger.debug(f"Cache miss: {key}")
        try:
            value = await getter()
        except Exception:
            logger.exception(f"Error calling getter for key: {key}")
            return None

        if value is None:
            return None

        await self.set_to_cache(key, value, ttl)
        return value
