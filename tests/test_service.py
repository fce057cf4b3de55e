"""서비스 파사드 테스트."""

from collections.abc import Callable
from typing import Any

import httpx
import pytest
from conftest import API_BASE, HNApi

from hn_relay.clients.fetch import FetchClient
from hn_relay.config import Settings
from hn_relay.models import ResolvedKid
from hn_relay.service import HNService
from hn_relay.storage.redis_cache import CacheStore

ARTICLE_URL = "https://blog.test/a"


class Upstream(HNApi):
    """HN API와 외부 기사 페이지를 함께 흉내 낸다."""

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "blog.test":
            self.requests.append(str(request.url))
            return httpx.Response(
                200, html='<meta property="og:image" content="/cover.png">'
            )
        return super().__call__(request)


@pytest.fixture
def upstream(comment_graph: dict[int, dict[str, Any]]) -> Upstream:
    """스토리 1과 존재하지 않는 스토리 8을 순위에 둔 업스트림을 반환한다."""
    comment_graph[1]["url"] = ARTICLE_URL
    return Upstream(comment_graph, top=[1, 8])


@pytest.fixture
def service(
    upstream: Upstream, cache: CacheStore, make_fetcher: Callable[..., FetchClient]
) -> HNService:
    """HNService 인스턴스를 반환한다."""
    settings = Settings(hn_api_base=API_BASE, fanout_concurrency=4)
    return HNService(cache, make_fetcher(upstream), settings)


class TestHNService:
    """HNService 테스트."""

    @pytest.mark.asyncio
    async def test_top_stories_filters_missing(self, service: HNService) -> None:
        """해석에 실패한 스토리는 결과에서 빠진다."""
        stories = await service.top_stories(2)

        assert [s.id for s in stories] == [1]

    @pytest.mark.asyncio
    async def test_top_stories_never_none(
        self, cache: CacheStore, make_fetcher: Callable[..., FetchClient]
    ) -> None:
        """목록 조회가 실패해도 빈 목록을 반환한다."""
        fetcher = make_fetcher(lambda request: httpx.Response(503), retry=0)
        service = HNService(cache, fetcher, Settings(hn_api_base=API_BASE))

        assert await service.top_stories(5) == []

    @pytest.mark.asyncio
    async def test_story_returns_full_tree(self, service: HNService) -> None:
        """스토리는 전체 댓글 트리와 함께 반환된다."""
        story = await service.story(1)

        assert story is not None
        assert all(isinstance(kid, ResolvedKid) for kid in story.kids)
        assert [k.id for k in story.resolved_kids()] == [2, 3]

    @pytest.mark.asyncio
    async def test_og_image_url(self, service: HNService) -> None:
        """기사 URL의 프리뷰 이미지를 절대 URL로 반환한다."""
        assert await service.og_image_url(ARTICLE_URL) == "https://blog.test/cover.png"

    @pytest.mark.asyncio
    async def test_cached_og_image_url_does_not_fetch(
        self, service: HNService, upstream: Upstream
    ) -> None:
        """캐시 조회는 페이지를 가져오지 않고, 계산된 뒤에만 값을 돌려준다."""
        assert await service.cached_og_image_url(ARTICLE_URL) is None
        assert ARTICLE_URL not in upstream.requests

        await service.og_image_url(ARTICLE_URL)

        assert (
            await service.cached_og_image_url(ARTICLE_URL)
            == "https://blog.test/cover.png"
        )
        assert upstream.requests.count(ARTICLE_URL) == 1

    def test_og_resolver_uses_scraping_budget(self, service: HNService) -> None:
        """프리뷰 이미지 요청은 일반 요청보다 좁은 재시도 설정을 쓴다."""
        assert service.og_images.retry == 0
        assert service.og_images.timeout == 5.0
