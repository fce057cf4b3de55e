"""공용 테스트 픽스처."""

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from hn_relay.clients.fetch import FetchClient
from hn_relay.storage.redis_cache import CacheStore

API_BASE = "https://hn.test/v0"

Handler = Callable[[httpx.Request], httpx.Response]


class FakeRedis:
    """get/setex만 지원하는 메모리 Redis 대역."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.get_calls: list[str] = []
        self.setex_calls: list[str] = []
        self.fail = False

    async def get(self, key: str) -> str | None:
        self.get_calls.append(key)
        if self.fail:
            raise RedisConnectionError("redis unavailable")
        return self.data.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self.setex_calls.append(key)
        if self.fail:
            raise RedisConnectionError("redis unavailable")
        self.data[key] = value
        self.ttls[key] = ttl
        return True

    async def aclose(self) -> None:
        return None


class HNApi:
    """아이템 dict로 Hacker News API를 흉내 내는 MockTransport 핸들러."""

    def __init__(self, items: dict[int, dict[str, Any]], top: list[int] | None = None) -> None:
        self.items = items
        self.top = top or []
        self.failing: set[int] = set()
        self.requests: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append(path)

        if path == "/v0/topstories.json":
            return httpx.Response(200, json=self.top)

        if path.startswith("/v0/item/") and path.endswith(".json"):
            item_id = int(path.removeprefix("/v0/item/").removesuffix(".json"))
            if item_id in self.failing:
                return httpx.Response(404, text="not found")
            # 존재하지 않는 ID는 업스트림처럼 JSON null
            return httpx.Response(200, content=json.dumps(self.items.get(item_id)))

        return httpx.Response(404)

    def item_requests(self, item_id: int) -> int:
        return self.requests.count(f"/v0/item/{item_id}.json")


async def _no_sleep(_: float) -> None:
    return None


@pytest.fixture
def fake_redis() -> FakeRedis:
    """FakeRedis 인스턴스를 반환한다."""
    return FakeRedis()


@pytest.fixture
def cache(fake_redis: FakeRedis) -> CacheStore:
    """FakeRedis를 쓰는 CacheStore를 반환한다."""
    return CacheStore(fake_redis)  # type: ignore[arg-type]


@pytest.fixture
def make_fetcher() -> Callable[..., FetchClient]:
    """MockTransport 핸들러로 FetchClient를 만드는 팩토리를 반환한다."""

    def factory(handler: Handler, **kwargs: Any) -> FetchClient:
        kwargs.setdefault("retry_delay", 0)
        kwargs.setdefault("sleep", _no_sleep)
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return FetchClient(client, **kwargs)

    return factory


@pytest.fixture
def comment_graph() -> dict[int, dict[str, Any]]:
    """깊이 3, 분기 2의 합성 아이템 그래프 (노드 7개)를 반환한다.

    1 -> (2, 3), 2 -> (4, 5), 3 -> (6, 7)
    """
    now = 1_700_000_000
    items: dict[int, dict[str, Any]] = {
        1: {
            "id": 1,
            "type": "story",
            "by": "alice",
            "time": now,
            "title": "Root story",
            "score": 100,
            "descendants": 6,
            "kids": [2, 3],
        },
    }
    children = {2: [4, 5], 3: [6, 7], 4: [], 5: [], 6: [], 7: []}
    parents = {2: 1, 3: 1, 4: 2, 5: 2, 6: 3, 7: 3}
    for item_id, kids in children.items():
        items[item_id] = {
            "id": item_id,
            "type": "comment",
            "by": f"user{item_id}",
            "time": now + item_id,
            "text": f"comment {item_id}",
            "parent": parents[item_id],
            "kids": kids,
        }
    return items
