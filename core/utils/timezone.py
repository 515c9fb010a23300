"""
타임존 유틸리티

내부 저장: UTC ISO 8601 문자열 원칙 준수를 위한 헬퍼 함수
"""

from datetime import date, datetime, timezone


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)

    datetime.now(timezone.utc)의 축약형.

    Returns:
        현재 UTC 시간 (tzinfo=timezone.utc)
    """
    return datetime.now(timezone.utc)


def to_db_timestamp(dt: datetime) -> str:
    """DB 저장용 ISO 문자열 (naive면 UTC로 간주)

    Example:
        >>> to_db_timestamp(datetime(2026, 2, 20, 16, 0, 0, tzinfo=timezone.utc))
        '2026-02-20T16:00:00+00:00'
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def from_db_timestamp(raw: str | None) -> datetime | None:
    """DB ISO 문자열 → UTC datetime

    SQLite datetime('now') 형식("YYYY-MM-DD HH:MM:SS")도 허용.
    """
    if not raw:
        return None
    dt = datetime.fromisoformat(raw)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_db_date(value: date | datetime | str) -> str:
    """전표 일자 → 'YYYY-MM-DD'"""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return date.fromisoformat(value).isoformat()
