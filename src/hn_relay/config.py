"""설정 관리 모듈."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """애플리케이션 설정."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Redis
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="캐시 저장소 Redis 연결 URL",
    )
    cache_single_flight: bool = Field(
        default=False,
        description="동일 키 동시 미스를 프로세스 내에서 하나의 getter 호출로 합칠지 여부",
    )

    # Hacker News API
    hn_api_base: str = Field(
        default="https://hacker-news.firebaseio.com/v0",
        description="Hacker News API 기본 URL",
    )

    # TTL (초)
    item_ttl: int = Field(default=60, ge=1, description="아이템 캐시 TTL")
    top_stories_ttl: int = Field(default=60, ge=1, description="Top Stories 캐시 TTL")
    og_image_ttl: int = Field(
        default=60 * 60 * 24,
        ge=1,
        description="프리뷰 이미지 URL 캐시 TTL",
    )

    # HTTP
    fetch_timeout: float = Field(default=10.0, gt=0, description="일반 요청 타임아웃 (초)")
    og_fetch_timeout: float = Field(
        default=5.0,
        gt=0,
        description="메타데이터 스크래핑 요청 타임아웃 (초)",
    )
    og_fetch_retry: int = Field(
        default=0,
        ge=0,
        le=1,
        description="메타데이터 스크래핑 추가 재시도 횟수",
    )
    og_max_bytes: int = Field(
        default=512 * 1024,
        ge=1024,
        description="메타데이터 스크래핑 시 읽을 최대 본문 크기 (바이트)",
    )
    fetch_retry: int = Field(default=3, ge=0, description="추가 재시도 횟수")
    fetch_retry_delay: float = Field(default=0.5, ge=0, description="재시도 기본 지연 (초)")
    slow_response_ms: float = Field(
        default=1000.0,
        ge=0,
        description="느린 응답으로 로그를 남길 기준 (ms)",
    )

    # 동시성
    upstream_concurrency: int = Field(
        default=32,
        ge=1,
        description="클라이언트당 동시에 진행 중인 업스트림 요청 상한",
    )
    fanout_concurrency: int = Field(
        default=16,
        ge=1,
        description="요청 하나가 동시에 해석하는 아이템 수 상한",
    )

    top_stories_limit: int = Field(default=30, ge=1, description="Top Stories 기본 개수")
    reader_base_url: str | None = Field(
        default=None,
        description="본문의 HN 아이템 링크를 치환할 리더 URL. None이면 치환하지 않음.",
    )


settings = Settings()
