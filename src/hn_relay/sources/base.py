"""소스 프로토콜 정의."""

from typing import Protocol

from hn_relay.models import Item


class ItemSource(Protocol):
    """아이템 단건 조회 프로토콜."""

    async def get_item(self, item_id: int) -> Item | None:
        """아이템을 가져온다."""
        ...
