"""
타임존 유틸리티

내부 저장: UTC ISO-8601 문자열 원칙 준수를 위한 헬퍼 함수
"""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)

    datetime.now(timezone.utc)의 축약형.

    Returns:
        현재 UTC 시간 (tzinfo=timezone.utc)
    """
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """datetime을 UTC로 변환

    Args:
        dt: datetime 객체 (naive면 UTC로 간주)

    Returns:
        UTC 타임존의 datetime
    """
    if dt.tzinfo is None:
        # naive datetime은 UTC로 간주
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_db_ts(dt: datetime) -> str:
    """DB 저장용 ISO 문자열로 변환

    항상 UTC로 정규화하므로 문자열 비교가 시간 순서와 일치한다.

    Example:
        >>> to_db_ts(datetime(2026, 1, 31, tzinfo=timezone.utc))
        '2026-01-31T00:00:00+00:00'
    """
    return to_utc(dt).isoformat()


def from_db_ts(value: str | None) -> datetime | None:
    """DB에 저장된 ISO 문자열을 UTC datetime으로 변환"""
    if value is None:
        return None
    return to_utc(datetime.fromisoformat(value))
