"""Hacker News API 읽기 캐시 및 댓글 트리 조립 계층."""

__version__ = "0.1.0"
