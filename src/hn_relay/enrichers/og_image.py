"""프리뷰 이미지(og:image) 추출 모듈."""

import asyncio
import logging
from urllib.parse import urljoin

import httpx
from selectolax.parser import HTMLParser

from hn_relay.clients.fetch import FetchClient
from hn_relay.storage.redis_cache import CacheStore

logger = logging.getLogger(__name__)

# 우선순위 순서
IMAGE_PROPERTIES = (
    "og:image",
    "og:image:url",
    "twitter:image",
    "twitter:image:src",
)

USER_AGENT = "HN-Preview-Bot/1.0"

DEFAULT_MAX_BYTES = 512 * 1024

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")

_HEAD_END = b"</head>"


def og_image_cache_key(url: str) -> str:
    """프리뷰 이미지 캐시 키를 만든다."""
    return f"ogimage:{url}"


def _is_html(content_type: str) -> bool:
    mime = content_type.split(";", 1)[0].strip().lower()
    return mime in HTML_CONTENT_TYPES


async def _read_head(response: httpx.Response, max_bytes: int) -> bytes:
    """</head>가 나오거나 max_bytes에 닿을 때까지 본문을 읽는다."""
    buf = bytearray()
    async for chunk in response.aiter_bytes():
        # 청크 경계에 걸친 </head>도 찾는다
        start = max(len(buf) - len(_HEAD_END), 0)
        buf.extend(chunk)
        if _HEAD_END in buf[start:].lower() or len(buf) >= max_bytes:
            break
    return bytes(buf[:max_bytes])


def _decode(body: bytes, charset: str | None) -> str:
    try:
        return body.decode(charset or "utf-8", errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")


def extract_og_image_url(html: str, base_url: str) -> str | None:
    """HTML 메타 태그에서 우선순위가 가장 높은 이미지 URL을 찾는다.

    Args:
        html: 페이지 HTML
        base_url: 상대 경로를 해석할 페이지 URL

    Returns:
        절대 이미지 URL 또는 None
    """
    found: dict[str, str] = {}
    for meta in HTMLParser(html).css("meta"):
        prop = meta.attributes.get("property") or meta.attributes.get("name")
        content = (meta.attributes.get("content") or "").strip()
        if prop in IMAGE_PROPERTIES and content and prop not in found:
            found[prop] = content

    for prop in IMAGE_PROPERTIES:
        if prop in found:
            return urljoin(base_url, found[prop])
    return None


class OgImageResolver:
    """임의의 URL에서 프리뷰 이미지 URL을 찾는다."""

    def __init__(
        self,
        fetcher: FetchClient,
        cache: CacheStore,
        *,
        timeout: float = 5.0,
        retry: int = 0,
        max_bytes: int = DEFAULT_MAX_BYTES,
        ttl: int = 60 * 60 * 24,
    ) -> None:
        """
        Args:
            fetcher: HTTP 클라이언트
            cache: 캐시 저장소
            timeout: 페이지 요청과 본문 읽기 각각의 타임아웃 (초)
            retry: 추가 재시도 횟수
            max_bytes: 읽을 최대 본문 크기 (바이트)
            ttl: 결과 캐시 TTL (초)
        """
        self.fetcher = fetcher
        self.cache = cache
        self.timeout = timeout
        self.retry = retry
        self.max_bytes = max_bytes
        self.ttl = ttl

    async def resolve(self, url: str) -> str | None:
        """페이지를 가져와 프리뷰 이미지 URL을 추출한다 (캐시 없음).

        HTML이 아닌 응답은 본문을 읽지 않는다. HTML은 </head>까지,
        최대 max_bytes만 읽는다.
        """
        try:
            response = await self.fetcher.fetch_with_retry(
                url,
                retry=self.retry,
                timeout=self.timeout,
                headers={"User-Agent": USER_AGENT},
                stream=True,
            )
        except (httpx.TransportError, httpx.InvalidURL) as e:
            logger.warning(f"Failed to fetch og:image from {url}: {e!r}")
            return None

        try:
            if not response.is_success:
                logger.info(f"No og:image for {url}: status {response.status_code}")
                return None

            content_type = response.headers.get("content-type", "")
            if content_type and not _is_html(content_type):
                logger.info(f"No og:image for {url}: content type {content_type}")
                return None

            try:
                async with asyncio.timeout(self.timeout):
                    head = await _read_head(response, self.max_bytes)
            except (TimeoutError, httpx.TransportError) as e:
                logger.warning(f"Failed to read og:image page {url}: {e!r}")
                return None
        finally:
            await response.aclose()

        html = _decode(head, response.charset_encoding)
        return extract_og_image_url(html, str(response.url))

    async def get_og_image_url(self, url: str) -> str | None:
        """프리뷰 이미지 URL을 캐시를 거쳐 가져온다."""
        return await self.cache.get_or_set_to_cache(
            og_image_cache_key(url),
            lambda: self.resolve(url),
            self.ttl,
        )

    async def get_cached_og_image_url(self, url: str) -> str | None:
        """이미 계산된 프리뷰 이미지 URL만 조회한다."""
        return await self.cache.get_from_cache(og_image_cache_key(url))
