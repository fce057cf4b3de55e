"""데이터 소스 모듈."""

from hn_relay.sources.base import ItemSource
from hn_relay.sources.items import ItemRepository
from hn_relay.sources.top_stories import TopStoriesRepository

__all__ = ["ItemRepository", "ItemSource", "TopStoriesRepository"]
