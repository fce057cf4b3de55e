"""링크 처리 모듈."""

import re
from urllib.parse import urlsplit

FAVICON_SERVICE = "https://icons.duckduckgo.com/ip3"

_HN_ITEM_LINK = re.compile(
    r"https?://news\.ycombinator\.com/item\?id=(\d+)(?:[&?#][^\"\s<>]*)?"
)


def replace_hn_links(html: str | None, reader_base_url: str) -> str | None:
    """본문의 HN 아이템 링크를 리더 링크로 치환한다.

    예: https://news.ycombinator.com/item?id=123#c -> {reader_base_url}/item/123
    """
    if not html:
        return html

    base = reader_base_url.rstrip("/")
    return _HN_ITEM_LINK.sub(lambda m: f"{base}/item/{m.group(1)}", html)


def favicon_url(url: str) -> str | None:
    """URL 호스트의 파비콘 주소를 반환한다."""
    host = urlsplit(url).hostname
    if not host:
        return None
    return f"{FAVICON_SERVICE}/{host}.ico"
