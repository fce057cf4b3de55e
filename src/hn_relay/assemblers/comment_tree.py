"""댓글 트리 조립 모듈."""

import asyncio
import logging

from hn_relay.models import Item, ResolvedKid
from hn_relay.sources.base import ItemSource

logger = logging.getLogger(__name__)


class CommentTreeAssembler:
    """아이템의 전체 하위 댓글 트리를 재귀적으로 해석한다.

    ID 관계는 비순환이므로 순환 검사는 하지 않는다. 호출 간 메모이제이션도
    없으며, 반복 조회는 아이템 캐시가 흡수한다.
    """

    def __init__(self, items: ItemSource, max_concurrency: int = 16) -> None:
        """
        Args:
            items: 아이템 단건 조회 저장소
            max_concurrency: 트리 하나를 조립하는 동안 동시에 해석할 아이템 수 상한
        """
        self.items = items
        self.max_concurrency = max_concurrency

    async def fetch_all_kids(self, item_id: int) -> Item | None:
        """item_id와 모든 하위 아이템을 해석한 트리를 반환한다.

        해석에 실패한 서브트리는 부모의 kids에서 빠진다.
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)
        return await self._assemble(item_id, semaphore)

    async def _assemble(self, item_id: int, semaphore: asyncio.Semaphore) -> Item | None:
        # 세마포어는 단건 조회에만 잡고 재귀 중에는 놓는다
        async with semaphore:
            item = await self.items.get_item(item_id)

        if item is None:
            logger.debug(f"Dropping unresolved subtree {item_id}")
            return None
        if not item.kids:
            return item

        children = await asyncio.gather(
            *(self._assemble(kid_id, semaphore) for kid_id in item.kid_ids())
        )
        kids = [ResolvedKid(item=child) for child in children if child is not None]
        return item.model_copy(update={"kids": kids})
