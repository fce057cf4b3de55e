"""Hacker News 아이템 저장소 모듈."""

import logging
import time
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from hn_relay.clients.fetch import FetchClient
from hn_relay.links import replace_hn_links
from hn_relay.models import Item
from hn_relay.storage.redis_cache import CacheStore
from hn_relay.timefmt import relative_time_string

logger = logging.getLogger(__name__)

HN_API_BASE = "https://hacker-news.firebaseio.com/v0"


def item_cache_key(item_id: int) -> str:
    """아이템 캐시 키를 만든다."""
    return f"item:{item_id}"


class ItemRepository:
    """캐시를 거쳐 Hacker News 아이템을 가져온다."""

    def __init__(
        self,
        cache: CacheStore,
        fetcher: FetchClient,
        *,
        api_base: str = HN_API_BASE,
        ttl: int = 60,
        reader_base_url: str | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Args:
            cache: 캐시 저장소
            fetcher: HTTP 클라이언트
            api_base: Hacker News API 기본 URL
            ttl: 아이템 캐시 TTL (초)
            reader_base_url: 본문 HN 링크를 치환할 리더 URL
            clock: 상대 시간 계산에 쓸 현재 시각 함수
        """
        self.cache = cache
        self.fetcher = fetcher
        self.api_base = api_base.rstrip("/")
        self.ttl = ttl
        self.reader_base_url = reader_base_url
        self.clock = clock

    async def _fetch_item(self, item_id: int) -> dict[str, Any] | None:
        """업스트림에서 아이템을 가져와 캐시할 형태로 만든다."""
        data = await self.fetcher.get_json(f"{self.api_base}/item/{item_id}.json")
        if data is None:
            logger.info(f"Item {item_id} not available upstream")
            return None

        try:
            item = Item.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Malformed item {item_id}: {e}")
            return None

        # 상대 시간은 캐시 수명 동안 한 번만 계산한다
        update: dict[str, Any] = {}
        if item.time is not None:
            update["relative_time"] = relative_time_string(item.time, now=self.clock())
        if self.reader_base_url and item.text:
            update["text"] = replace_hn_links(item.text, self.reader_base_url)

        return item.model_copy(update=update).model_dump(mode="json")

    async def get_item(self, item_id: int) -> Item | None:
        """아이템을 가져온다.

        Args:
            item_id: Hacker News 아이템 ID

        Returns:
            Item 또는 None (업스트림 실패, 존재하지 않는 ID 등)
        """
        data = await self.cache.get_or_set_to_cache(
            item_cache_key(item_id),
            lambda: self._fetch_item(item_id),
            self.ttl,
        )
        if data is None:
            return None

        try:
            return Item.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Discarding malformed cached item {item_id}: {e}")
            return None
