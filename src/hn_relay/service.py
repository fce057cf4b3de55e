"""UI 계층이 사용하는 서비스 파사드."""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from hn_relay.assemblers import CommentTreeAssembler
from hn_relay.clients import FetchClient
from hn_relay.config import Settings
from hn_relay.enrichers import OgImageResolver
from hn_relay.models import Item
from hn_relay.sources import ItemRepository, TopStoriesRepository
from hn_relay.storage import CacheStore

logger = logging.getLogger(__name__)


class HNService:
    """캐시, HTTP 클라이언트, 저장소를 묶어 세 가지 조회 연산을 제공한다."""

    def __init__(
        self,
        cache: CacheStore,
        fetcher: FetchClient,
        settings: Settings,
    ) -> None:
        """
        Args:
            cache: 캐시 저장소
            fetcher: HTTP 클라이언트
            settings: 애플리케이션 설정
        """
        self.cache = cache
        self.fetcher = fetcher
        self.settings = settings

        self.items = ItemRepository(
            cache,
            fetcher,
            api_base=settings.hn_api_base,
            ttl=settings.item_ttl,
            reader_base_url=settings.reader_base_url,
        )
        self.top = TopStoriesRepository(
            cache,
            fetcher,
            self.items,
            api_base=settings.hn_api_base,
            ttl=settings.top_stories_ttl,
            max_concurrency=settings.fanout_concurrency,
        )
        self.trees = CommentTreeAssembler(
            self.items,
            max_concurrency=settings.fanout_concurrency,
        )
        self.og_images = OgImageResolver(
            fetcher,
            cache,
            timeout=settings.og_fetch_timeout,
            retry=settings.og_fetch_retry,
            max_bytes=settings.og_max_bytes,
            ttl=settings.og_image_ttl,
        )

    @classmethod
    @asynccontextmanager
    async def create(cls, settings: Settings) -> AsyncIterator["HNService"]:
        """설정으로 서비스를 만들고, 종료 시 연결을 정리한다."""
        cache = CacheStore.from_url(
            settings.redis_url,
            default_ttl=settings.item_ttl,
            single_flight=settings.cache_single_flight,
        )
        fetcher = FetchClient(
            timeout=settings.fetch_timeout,
            retry=settings.fetch_retry,
            retry_delay=settings.fetch_retry_delay,
            slow_response_ms=settings.slow_response_ms,
            max_concurrency=settings.upstream_concurrency,
        )
        try:
            yield cls(cache, fetcher, settings)
        finally:
            await fetcher.aclose()
            await cache.close()

    async def top_stories(self, limit: int | None = None) -> list[Item]:
        """상위 스토리를 순위순으로 반환한다. 실패한 자리는 제외한다."""
        limit = limit or self.settings.top_stories_limit
        started = time.perf_counter()

        stories = await self.top.get_top_stories(limit) or []
        result = [story for story in stories if story is not None]

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"topstories took {elapsed_ms:.1f}ms ({len(result)} stories)")
        return result

    async def story(self, item_id: int) -> Item | None:
        """스토리와 전체 댓글 트리를 반환한다."""
        started = time.perf_counter()

        story = await self.trees.fetch_all_kids(item_id)

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"item:{item_id} took {elapsed_ms:.1f}ms")
        return story

    async def og_image_url(self, url: str) -> str | None:
        """URL의 프리뷰 이미지 URL을 반환한다."""
        return await self.og_images.get_og_image_url(url)

    async def cached_og_image_url(self, url: str) -> str | None:
        """이미 계산된 프리뷰 이미지 URL만 반환한다. 페이지를 가져오지 않는다."""
        return await self.og_images.get_cached_og_image_url(url)
