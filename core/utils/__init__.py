"""
유틸리티 패키지

타임존 처리, Decimal 변환, ID 생성 등 공통 유틸리티
"""

from core.utils.ids import new_id
from core.utils.money import (
    ZERO,
    db_decimal,
    require_non_negative,
    require_positive,
    to_decimal,
    to_optional_decimal,
)
from core.utils.timezone import (
    from_db_ts,
    now_utc,
    to_db_ts,
    to_utc,
)

__all__ = [
    "new_id",
    "ZERO",
    "db_decimal",
    "require_non_negative",
    "require_positive",
    "to_decimal",
    "to_optional_decimal",
    "from_db_ts",
    "now_utc",
    "to_db_ts",
    "to_utc",
]
