"""데이터 모델 정의."""

from typing import Annotated, Any, Literal, assert_never

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UnresolvedKid(BaseModel):
    """아직 해석되지 않은 자식 참조 (ID만 있음)."""

    kind: Literal["unresolved"] = "unresolved"
    id: int = Field(description="자식 아이템 ID")


class ResolvedKid(BaseModel):
    """서브트리까지 해석된 자식 참조."""

    kind: Literal["resolved"] = "resolved"
    item: "Item" = Field(description="해석된 자식 아이템")


KidRef = Annotated[UnresolvedKid | ResolvedKid, Field(discriminator="kind")]


class Item(BaseModel):
    """Hacker News 아이템 (스토리 또는 댓글)."""

    model_config = ConfigDict(extra="ignore")

    id: int = Field(description="아이템 ID")
    type: str | None = Field(default=None, description="아이템 종류 (story, comment 등)")
    by: str | None = Field(default=None, description="작성자")
    time: int | None = Field(default=None, description="작성 시각 (epoch 초)")
    title: str | None = Field(default=None, description="제목 (스토리만)")
    text: str | None = Field(default=None, description="본문 (HTML 포함 가능)")
    url: str | None = Field(default=None, description="외부 링크 URL")
    score: int | None = Field(default=None, description="점수")
    descendants: int | None = Field(default=None, description="전체 댓글 수")
    parent: int | None = Field(default=None, description="부모 아이템 ID")
    kids: list[KidRef] = Field(default_factory=list, description="자식 참조 목록")
    dead: bool = Field(default=False, description="dead 처리 여부")
    deleted: bool = Field(default=False, description="삭제 여부")
    relative_time: str | None = Field(
        default=None,
        description="가져온 시점에 계산한 상대 시간 문자열",
    )

    @field_validator("kids", mode="before")
    @classmethod
    def normalize_kids(cls, value: Any) -> Any:
        """업스트림의 숫자 ID와 중첩 아이템 dict를 태그된 참조로 바꾼다."""
        if value is None:
            return []
        if not isinstance(value, list):
            return value

        normalized: list[Any] = []
        for kid in value:
            if isinstance(kid, int):
                normalized.append({"kind": "unresolved", "id": kid})
            elif isinstance(kid, Item):
                normalized.append({"kind": "resolved", "item": kid})
            elif isinstance(kid, dict) and "kind" not in kid:
                normalized.append({"kind": "resolved", "item": kid})
            else:
                normalized.append(kid)
        return normalized

    @property
    def is_visible(self) -> bool:
        """dead 또는 삭제된 아이템은 자리만 유지하고 숨긴다."""
        return not (self.dead or self.deleted)

    def kid_ids(self) -> list[int]:
        """자식 참조를 ID 목록으로 정규화한다."""
        ids: list[int] = []
        for kid in self.kids:
            if isinstance(kid, UnresolvedKid):
                ids.append(kid.id)
            elif isinstance(kid, ResolvedKid):
                ids.append(kid.item.id)
            else:
                assert_never(kid)
        return ids

    def resolved_kids(self) -> list["Item"]:
        """해석된 자식 아이템만 반환한다."""
        return [kid.item for kid in self.kids if isinstance(kid, ResolvedKid)]


ResolvedKid.model_rebuild()
Item.model_rebuild()
