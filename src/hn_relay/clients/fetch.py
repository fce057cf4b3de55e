"""재시도/타임아웃을 갖춘 HTTP 클라이언트 모듈."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from types import TracebackType
from typing import Any

import httpx

logger = logging.getLogger(__name__)

# 재시도할 HTTP 상태 코드
RETRYABLE_STATUSES = frozenset({408, 413, 429, 500, 502, 503, 504})

# 다시 보내도 결과가 같은 클라이언트 측 오류
_PERMANENT_ERRORS = (httpx.UnsupportedProtocol, httpx.LocalProtocolError)


class FetchClient:
    """업스트림 요청을 타임아웃, 재시도, 연결 재사용과 함께 수행한다.

    프로세스 시작 시 한 번 만들어 저장소들에 주입한다.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float = 10.0,
        retry: int = 3,
        retry_delay: float = 0.5,
        slow_response_ms: float = 1000.0,
        max_concurrency: int = 32,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """
        Args:
            client: 사용할 httpx 클라이언트. None이면 새로 만든다.
            timeout: 시도당 타임아웃 기본값 (초)
            retry: 추가 재시도 횟수 기본값
            retry_delay: 재시도 기본 지연 (초)
            slow_response_ms: 느린 응답 로그 기준 (ms)
            max_concurrency: 동시에 진행 중인 요청 상한
            sleep: 백오프 대기 함수
        """
        self._owns_client = client is None
        if client is None:
            client = httpx.AsyncClient(
                follow_redirects=True,
                limits=httpx.Limits(
                    max_connections=max_concurrency,
                    max_keepalive_connections=max_concurrency,
                ),
            )
        self.client = client
        self.timeout = timeout
        self.retry = retry
        self.retry_delay = retry_delay
        self.slow_response_ms = slow_response_ms
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._sleep = sleep

    async def __aenter__(self) -> "FetchClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """직접 만든 httpx 클라이언트를 닫는다."""
        if self._owns_client:
            await self.client.aclose()

    def backoff_delay(self, attempt: int, retry_delay: float) -> float:
        """attempt(0부터) 실패 후 대기할 시간을 계산한다."""
        return retry_delay * min(attempt + 1, 3)

    async def _send_once(
        self,
        url: str,
        timeout: float,
        headers: dict[str, str] | None,
        stream: bool,
    ) -> httpx.Response:
        """요청을 한 번 보낸다. 시도 전체에 timeout을 적용한다.

        stream이면 헤더까지만 받고 본문은 호출자가 읽는다.
        """
        request = self.client.build_request(
            "GET", url, headers=headers, timeout=timeout
        )
        async with self._semaphore:
            started = time.perf_counter()
            try:
                async with asyncio.timeout(timeout):
                    response = await self.client.send(request, stream=stream)
            except TimeoutError as e:
                raise httpx.TimeoutException(
                    f"Request to {url} exceeded {timeout}s", request=request
                ) from e
            elapsed_ms = (time.perf_counter() - started) * 1000

        if elapsed_ms > self.slow_response_ms:
            logger.warning(
                f"Slow response from {url}: {elapsed_ms:.0f}ms "
                f"(status {response.status_code})"
            )
        return response

    async def fetch_with_retry(
        self,
        url: str,
        *,
        retry: int | None = None,
        retry_delay: float | None = None,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
        stream: bool = False,
    ) -> httpx.Response:
        """URL을 GET 요청하고, 일시적 실패는 재시도한다.

        Args:
            url: 요청 URL
            retry: 추가 재시도 횟수. None이면 기본값.
            retry_delay: 재시도 기본 지연 (초). None이면 기본값.
            timeout: 시도당 타임아웃 (초). None이면 기본값.
            headers: 추가 요청 헤더
            stream: True면 본문을 읽지 않은 응답을 반환한다. 호출자가
                aclose()로 닫아야 한다.

        Returns:
            마지막 응답. 2xx가 아닐 수도 있으므로 호출자가 상태를 해석한다.

        Raises:
            httpx.TransportError: 마지막 시도까지 네트워크 오류가 난 경우.
                UnsupportedProtocol, LocalProtocolError는 재시도 없이 바로 던진다.
        """
        retry = self.retry if retry is None else retry
        retry_delay = self.retry_delay if retry_delay is None else retry_delay
        timeout = self.timeout if timeout is None else timeout

        attempt = 0
        while True:
            is_last = attempt >= retry
            try:
                response = await self._send_once(url, timeout, headers, stream)
            except _PERMANENT_ERRORS as e:
                logger.error(f"Request to {url} cannot be retried: {e!r}")
                raise
            except httpx.TransportError as e:
                if is_last:
                    logger.error(
                        f"Request to {url} failed after {attempt + 1} attempts: {e!r}"
                    )
                    raise
                delay = self.backoff_delay(attempt, retry_delay)
                logger.warning(
                    f"Request to {url} failed ({e!r}), retrying in {delay:.2f}s"
                )
            else:
                if response.status_code not in RETRYABLE_STATUSES or is_last:
                    return response
                if stream:
                    await response.aclose()
                delay = self.backoff_delay(attempt, retry_delay)
                logger.warning(
                    f"Request to {url} returned {response.status_code}, "
                    f"retrying in {delay:.2f}s"
                )

            await self._sleep(delay)
            attempt += 1

    async def get_json(
        self,
        url: str,
        **kwargs: Any,
    ) -> Any | None:
        """JSON 응답을 가져온다. 실패하면 None을 반환한다.

        업스트림이 JSON null을 돌려준 경우에도 None이다.
        """
        try:
            response = await self.fetch_with_retry(url, **kwargs)
        except httpx.TransportError as e:
            logger.warning(f"Failed to fetch {url}: {e!r}")
            return None

        if not response.is_success:
            logger.warning(f"Unexpected status {response.status_code} from {url}")
            return None

        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"Invalid JSON from {url}: {e}")
            return None
