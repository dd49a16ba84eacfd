"""
Decimal 변환 유틸리티

금액/수량/단가는 float를 거치지 않고 Decimal로만 다룬다.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from core.errors import ValidationError

ZERO = Decimal("0")


def to_decimal(value: Any, field: str) -> Decimal:
    """값을 Decimal로 변환

    float는 str()을 거쳐 변환하여 이진 표현 오차를 남기지 않는다.

    Args:
        value: 변환할 값 (Decimal, int, str, float)
        field: 오류 메시지에 쓸 필드 이름

    Raises:
        ValidationError: 숫자가 아니거나 유한하지 않은 경우
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")

    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as e:
        raise ValidationError(f"{field} must be a number") from e

    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number")

    return result


def to_optional_decimal(value: Any, field: str) -> Decimal | None:
    """None을 허용하는 to_decimal"""
    if value is None:
        return None
    return to_decimal(value, field)


def require_positive(value: Any, field: str) -> Decimal:
    """0보다 큰 Decimal 반환

    Raises:
        ValidationError: 0 이하인 경우
    """
    result = to_decimal(value, field)
    if result <= ZERO:
        raise ValidationError(f"{field} must be greater than 0")
    return result


def require_non_negative(value: Any, field: str) -> Decimal:
    """0 이상인 Decimal 반환"""
    result = to_decimal(value, field)
    if result < ZERO:
        raise ValidationError(f"{field} must not be negative")
    return result


def db_decimal(value: str | None) -> Decimal | None:
    """DB TEXT 컬럼 값을 Decimal로 변환"""
    if value is None:
        return None
    return Decimal(value)
