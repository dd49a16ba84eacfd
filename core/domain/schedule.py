"""
반복 규칙 스케줄 계산

schedule_type/schedule_value로부터 다음 실행 시각 계산.
결과는 항상 대상 일자의 00:00 (입력과 같은 tzinfo).
"""

from calendar import monthrange
from datetime import datetime, timedelta

from core.errors import ValidationError
from core.types import ScheduleType

# 요일 번호 (일요일=0)
DAY_MAP: dict[str, int] = {
    "SUN": 0,
    "MON": 1,
    "TUE": 2,
    "WED": 3,
    "THU": 4,
    "FRI": 5,
    "SAT": 6,
}


def _sunday_based_weekday(dt: datetime) -> int:
    # datetime.weekday()는 월요일=0
    return (dt.weekday() + 1) % 7


def _parse_day(value: str) -> int:
    try:
        day = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid day of month: {value}") from None
    if day < 1 or day > 31:
        raise ValidationError(f"Invalid day of month: {value}")
    return day


def _parse_month_day(value: str, default_month: int) -> tuple[int, int]:
    """YEARLY 값 파싱 ("MM-DD" 또는 "DD")"""
    if "-" in value:
        parts = value.split("-")
        if len(parts) != 2:
            raise ValidationError(f"Invalid date value: {value}")
        try:
            month = int(parts[0])
            day = int(parts[1])
        except ValueError:
            raise ValidationError(f"Invalid date value: {value}") from None
    else:
        month = default_month
        try:
            day = int(value)
        except ValueError:
            raise ValidationError(f"Invalid date value: {value}") from None

    if month < 1 or month > 12 or day < 1 or day > 31:
        raise ValidationError(f"Invalid date value: {value}")

    return month, day


def _clamped(year: int, month: int, day: int, like: datetime) -> datetime:
    """해당 월의 마지막 날로 보정한 00:00 datetime"""
    last_day = monthrange(year, month)[1]
    return like.replace(
        year=year,
        month=month,
        day=min(day, last_day),
        hour=0,
        minute=0,
        second=0,
        microsecond=0,
    )


def calculate_next_run_at(
    schedule_type: ScheduleType | str,
    schedule_value: str,
    from_dt: datetime,
) -> datetime:
    """다음 실행 시각 계산

    Args:
        schedule_type: DAILY/WEEKLY/MONTHLY/YEARLY
        schedule_value: 주기별 값 (ScheduleType 문서 참고)
        from_dt: 기준 시각 (직전 실행 예정 시각)

    Returns:
        다음 실행 시각 (00:00)

    Raises:
        ValidationError: 지원하지 않는 주기 또는 잘못된 값

    Example:
        >>> calculate_next_run_at("MONTHLY", "31", datetime(2026, 1, 31))
        datetime.datetime(2026, 2, 28, 0, 0)
    """
    try:
        schedule_type = ScheduleType(schedule_type)
    except ValueError:
        raise ValidationError(f"Unsupported schedule type: {schedule_type}") from None

    if schedule_type == ScheduleType.DAILY:
        next_dt = from_dt + timedelta(days=1)
        return next_dt.replace(hour=0, minute=0, second=0, microsecond=0)

    if schedule_type == ScheduleType.WEEKLY:
        target_day = DAY_MAP.get((schedule_value or "").upper())
        if target_day is None:
            raise ValidationError(f"Invalid day value: {schedule_value}")

        days_to_add = target_day - _sunday_based_weekday(from_dt)
        if days_to_add <= 0:
            days_to_add += 7  # 다음 주
        next_dt = from_dt + timedelta(days=days_to_add)
        return next_dt.replace(hour=0, minute=0, second=0, microsecond=0)

    if schedule_type == ScheduleType.MONTHLY:
        day = _parse_day(schedule_value)
        year = from_dt.year + from_dt.month // 12
        month = from_dt.month % 12 + 1
        return _clamped(year, month, day, from_dt)

    # YEARLY
    month, day = _parse_month_day(schedule_value, default_month=from_dt.month)
    return _clamped(from_dt.year + 1, month, day, from_dt)


def validate_schedule_value(
    schedule_type: ScheduleType | str,
    schedule_value: str | None,
) -> bool:
    """schedule_value 형식 검증

    Returns:
        유효하면 True
    """
    try:
        schedule_type = ScheduleType(schedule_type)
    except ValueError:
        return False

    if schedule_type == ScheduleType.DAILY:
        return True

    if schedule_value is None:
        return False

    try:
        if schedule_type == ScheduleType.WEEKLY:
            return schedule_value.upper() in DAY_MAP
        if schedule_type == ScheduleType.MONTHLY:
            _parse_day(schedule_value)
            return True
        _parse_month_day(schedule_value, default_month=1)
        return True
    except ValidationError:
        return False
