"""HTTP 클라이언트 모듈."""

from hn_relay.clients.fetch import RETRYABLE_STATUSES, FetchClient

__all__ = ["RETRYABLE_STATUSES", "FetchClient"]
