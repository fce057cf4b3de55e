"""Hacker News Top Stories 저장소 모듈."""

import asyncio
import logging
from typing import Any

from pydantic import ValidationError

from hn_relay.clients.fetch import FetchClient
from hn_relay.models import Item
from hn_relay.sources.base import ItemSource
from hn_relay.sources.items import HN_API_BASE
from hn_relay.storage.redis_cache import CacheStore

logger = logging.getLogger(__name__)


def top_stories_cache_key(limit: int) -> str:
    """Top Stories 캐시 키를 만든다. limit마다 별도 키를 쓴다."""
    return f"topstories:{limit}"


class TopStoriesRepository:
    """순위가 매겨진 스토리 목록을 아이템으로 해석해 가져온다."""

    def __init__(
        self,
        cache: CacheStore,
        fetcher: FetchClient,
        items: ItemSource,
        *,
        api_base: str = HN_API_BASE,
        ttl: int = 60,
        max_concurrency: int = 16,
    ) -> None:
        """
        Args:
            cache: 캐시 저장소
            fetcher: HTTP 클라이언트
            items: 아이템 단건 조회 저장소
            api_base: Hacker News API 기본 URL
            ttl: 목록 캐시 TTL (초)
            max_concurrency: 동시에 해석할 아이템 수 상한
        """
        self.cache = cache
        self.fetcher = fetcher
        self.items = items
        self.api_base = api_base.rstrip("/")
        self.ttl = ttl
        self.max_concurrency = max_concurrency

    async def _fetch_story_ids(self) -> list[int] | None:
        """순위순 스토리 ID 목록을 가져온다."""
        data = await self.fetcher.get_json(f"{self.api_base}/topstories.json")
        if not isinstance(data, list):
            logger.error("Failed to fetch top stories")
            return None
        return [sid for sid in data if isinstance(sid, int)]

    async def _fetch_top_stories(self, limit: int) -> list[dict[str, Any] | None] | None:
        story_ids = await self._fetch_story_ids()
        if story_ids is None:
            return None

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def resolve(story_id: int) -> Item | None:
            async with semaphore:
                return await self.items.get_item(story_id)

        # gather는 완료 순서와 무관하게 입력 순서를 유지한다
        stories = await asyncio.gather(*(resolve(sid) for sid in story_ids[:limit]))
        resolved = sum(1 for story in stories if story is not None)
        logger.info(f"Resolved {resolved}/{len(stories)} top stories")

        return [
            story.model_dump(mode="json") if story is not None else None
            for story in stories
        ]

    async def get_top_stories(self, limit: int) -> list[Item | None] | None:
        """상위 스토리를 순위순으로 가져온다.

        Args:
            limit: 가져올 스토리 수

        Returns:
            Item 리스트 (해석 실패한 자리는 None) 또는 None (목록 조회 실패)
        """
        data = await self.cache.get_or_set_to_cache(
            top_stories_cache_key(limit),
            lambda: self._fetch_top_stories(limit),
            self.ttl,
        )
        if not isinstance(data, list):
            return None

        stories: list[Item | None] = []
        for entry in data:
            if entry is None:
                stories.append(None)
                continue
            try:
                stories.append(Item.model_validate(entry))
            except ValidationError as e:
                logger.warning(f"Discarding malformed cached story: {e}")
                stories.append(None)
        return stories
