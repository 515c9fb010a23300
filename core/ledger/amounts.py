"""
금액 유틸리티

모든 금액은 고정 소수점 Decimal (기본 소수 2자리).
float는 어떤 경로로도 허용하지 않음 (균형 검증은 정확한 일치만 인정).
DB에는 str(Decimal) 문자열로 저장.
"""

from decimal import Decimal, InvalidOperation

from core.constants import Defaults


def quantum(scale: int = Defaults.AMOUNT_SCALE) -> Decimal:
    """소수 자릿수에 해당하는 최소 단위

    Example:
        >>> quantum(2)
        Decimal('0.01')
    """
    return Decimal(1).scaleb(-scale)


def to_amount(value: Decimal | int | str | None, scale: int = Defaults.AMOUNT_SCALE) -> Decimal:
    """입력값을 ledger 금액으로 변환

    Args:
        value: Decimal, int 또는 숫자 문자열 (None은 0)
        scale: 소수 자릿수

    Returns:
        scale 자리로 정규화된 Decimal

    Raises:
        TypeError: float/bool 등 허용되지 않는 타입
        ValueError: 숫자가 아니거나 scale보다 정밀한 값 (반올림하지 않음)

    Example:
        >>> to_amount("150")
        Decimal('150.00')
    """
    if value is None:
        return Decimal(0).quantize(quantum(scale))

    if isinstance(value, bool) or not isinstance(value, (Decimal, int, str)):
        raise TypeError(f"Amount must be Decimal, int or str, got {type(value).__name__}")

    try:
        amount = Decimal(value.strip()) if isinstance(value, str) else Decimal(value)
    except InvalidOperation as e:
        raise ValueError(f"Not a number: {value!r}") from e

    if not amount.is_finite():
        raise ValueError(f"Amount must be finite: {value!r}")

    q = quantum(scale)
    try:
        quantized = amount.quantize(q)
    except InvalidOperation as e:
        # 정규화 결과가 decimal 컨텍스트 정밀도를 넘는 경우 (예: 1E+30)
        raise ValueError(f"Amount {value!r} is out of range for scale {scale}") from e
    if quantized != amount:
        raise ValueError(f"Amount {value!r} has more than {scale} decimal places")

    return quantized


def amount_to_db(amount: Decimal) -> str:
    """DB 저장용 문자열"""
    return str(amount)


def amount_from_db(raw: str | None, scale: int = Defaults.AMOUNT_SCALE) -> Decimal:
    """DB 문자열 → Decimal

    저장 당시보다 작은 scale로 읽으면 반올림하지 않고 ValueError.
    """
    if raw is None:
        return Decimal(0).quantize(quantum(scale))
    return to_amount(raw, scale)
