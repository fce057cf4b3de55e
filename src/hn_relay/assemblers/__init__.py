"""트리 조립 모듈."""

from hn_relay.assemblers.comment_tree import CommentTreeAssembler

__all__ = ["CommentTreeAssembler"]
