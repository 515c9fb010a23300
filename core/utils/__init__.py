"""
유틸리티 패키지

타임존 처리 등 공통 유틸리티
"""

from core.utils.timezone import (
    from_db_timestamp,
    now_utc,
    to_db_date,
    to_db_timestamp,
)

__all__ = [
    "now_utc",
    "to_db_timestamp",
    "from_db_timestamp",
    "to_db_date",
]
