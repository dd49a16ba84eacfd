"""
Decimal / 타임존 유틸리티 테스트
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from core.errors import ValidationError
from core.utils.money import (
    db_decimal,
    require_non_negative,
    require_positive,
    to_decimal,
    to_optional_decimal,
)
from core.utils.timezone import from_db_ts, to_db_ts, to_utc


class TestToDecimal:
    """to_decimal 테스트"""

    def test_string(self) -> None:
        assert to_decimal("12000.50", "amount") == Decimal("12000.50")

    def test_float_goes_through_str(self) -> None:
        """0.1이 이진 오차 없이 변환"""
        assert to_decimal(0.1, "amount") == Decimal("0.1")

    def test_rejects_text(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            to_decimal("abc", "amount")
        assert "amount" in exc_info.value.message

    def test_rejects_bool(self) -> None:
        with pytest.raises(ValidationError):
            to_decimal(True, "amount")

    def test_rejects_infinity(self) -> None:
        with pytest.raises(ValidationError):
            to_decimal("Infinity", "amount")

    def test_optional(self) -> None:
        assert to_optional_decimal(None, "units") is None
        assert to_optional_decimal("1", "units") == Decimal("1")

    def test_db_decimal(self) -> None:
        assert db_decimal(None) is None
        assert db_decimal("3.5") == Decimal("3.5")


class TestRequire:
    """부호 검증 테스트"""

    def test_positive(self) -> None:
        assert require_positive("1", "amount") == Decimal("1")
        with pytest.raises(ValidationError):
            require_positive("0", "amount")

    def test_non_negative(self) -> None:
        assert require_non_negative("0", "fee") == Decimal("0")
        with pytest.raises(ValidationError):
            require_non_negative("-1", "fee")


class TestTimestamps:
    """DB 타임스탬프 변환 테스트"""

    def test_naive_is_utc(self) -> None:
        result = to_utc(datetime(2026, 1, 1, 9, 0))
        assert result.tzinfo == timezone.utc
        assert result.hour == 9

    def test_offset_normalized(self) -> None:
        """+09:00 → UTC"""
        kst = timezone(timedelta(hours=9))
        value = to_db_ts(datetime(2026, 3, 1, 12, 30, tzinfo=kst))

        assert value == "2026-03-01T03:30:00+00:00"

    def test_round_trip(self) -> None:
        value = datetime(2026, 3, 1, 3, 30, tzinfo=timezone.utc)
        assert from_db_ts(to_db_ts(value)) == value
        assert from_db_ts(None) is None
