"""상대 시간 포맷 모듈."""

import time

# (기준 초, 단위, 단위 길이)
_CUTOFFS: list[tuple[float, str, int]] = [
    (60, "second", 1),
    (3600, "minute", 60),
    (86400, "hour", 3600),
    (86400 * 7, "day", 86400),
    (86400 * 30, "week", 86400 * 7),
    (86400 * 365, "month", 86400 * 30),
    (float("inf"), "year", 86400 * 365),
]

# 1 단위 차이일 때 쓰는 자연어 표현
_PREVIOUS = {
    "day": "yesterday",
    "week": "last week",
    "month": "last month",
    "year": "last year",
}
_NEXT = {
    "day": "tomorrow",
    "week": "next week",
    "month": "next month",
    "year": "next year",
}


def _format(value: int, unit: str) -> str:
    if value == 0:
        return "now"
    if value == -1 and unit in _PREVIOUS:
        return _PREVIOUS[unit]
    if value == 1 and unit in _NEXT:
        return _NEXT[unit]

    count = abs(value)
    label = unit if count == 1 else f"{unit}s"
    if value < 0:
        return f"{count} {label} ago"
    return f"in {count} {label}"


def relative_time_string(timestamp: float, now: float | None = None) -> str:
    """epoch 초를 "3 hours ago" 형태의 문자열로 변환한다.

    Args:
        timestamp: 대상 시각 (epoch 초)
        now: 기준 시각. None이면 현재 시각.

    Returns:
        영어 상대 시간 문자열
    """
    if now is None:
        now = time.time()

    delta = round(timestamp - now)
    for cutoff, unit, divider in _CUTOFFS:
        if abs(delta) < cutoff:
            return _format(int(delta / divider), unit)

    # inf 기준이 있으므로 도달하지 않는다
    raise AssertionError(f"unreachable delta: {delta}")
