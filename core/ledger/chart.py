"""
계정과목표 로더

YAML 계정과목표를 읽어 AccountDirectory에 등록.
상위 계정이 먼저 등록되도록 순서를 정렬하며, 이미 존재하는 계정은 건너뜀.

YAML 형식:
```yaml
accounts:
  - code: "1000"
    name: Assets
    type: ASSET
  - code: "1100"
    name: Cash
    type: ASSET
    parent: "1000"
    opening_balance: "1000.00"
    cash_flow: true
```
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from core.ledger.errors import InvalidAccountDefinition
from core.ledger.models import Account

if TYPE_CHECKING:
    from core.ledger.directory import AccountDirectory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChartAccount:
    """계정과목표 항목 (등록 전 정의)"""

    code: str
    name: str
    account_type: str
    normal_side: str | None = None
    parent_code: str | None = None
    opening_balance: Decimal = Decimal("0")
    description: str | None = None
    is_cash_flow: bool = False


def parse_chart(data: Any) -> list[ChartAccount]:
    """YAML 데이터 → ChartAccount 목록

    Raises:
        InvalidAccountDefinition: 형식 오류
    """
    if not isinstance(data, dict) or not isinstance(data.get("accounts"), list):
        raise InvalidAccountDefinition("Chart must contain an 'accounts' list")

    accounts: list[ChartAccount] = []
    for index, item in enumerate(data["accounts"]):
        if not isinstance(item, dict):
            raise InvalidAccountDefinition(f"Chart item #{index} must be a mapping")

        missing = [key for key in ("code", "name", "type") if not item.get(key)]
        if missing:
            raise InvalidAccountDefinition(f"Chart item #{index} is missing {missing}")

        opening = _parse_opening(index, item.get("opening_balance", "0"))
        accounts.append(
            ChartAccount(
                code=str(item["code"]),
                name=str(item["name"]),
                account_type=str(item["type"]),
                normal_side=item.get("normal_side"),
                parent_code=str(item["parent"]) if item.get("parent") is not None else None,
                opening_balance=opening,
                description=item.get("description"),
                is_cash_flow=bool(item.get("cash_flow", False)),
            )
        )
    return accounts


def _parse_opening(index: int, value: Any) -> Decimal:
    """기초 잔액 파싱 (따옴표 문자열 또는 정수만 허용, YAML float 거부)"""
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise InvalidAccountDefinition(
            f"Chart item #{index}: opening_balance must be a quoted string or integer, "
            f"got {type(value).__name__} {value!r}"
        )
    try:
        opening = Decimal(value.strip() if isinstance(value, str) else value)
    except InvalidOperation as e:
        raise InvalidAccountDefinition(
            f"Chart item #{index}: opening_balance is not a number: {value!r}"
        ) from e
    if not opening.is_finite():
        raise InvalidAccountDefinition(f"Chart item #{index}: opening_balance must be finite")
    return opening


def load_chart(path: Path) -> list[ChartAccount]:
    """YAML 파일에서 계정과목표 로드

    Raises:
        FileNotFoundError: 파일 없음
        InvalidAccountDefinition: 형식 오류
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise InvalidAccountDefinition(f"Cannot parse chart {path}: {e}") from e
    return parse_chart(data)


def order_parents_first(accounts: list[ChartAccount]) -> list[ChartAccount]:
    """상위 계정이 먼저 오도록 정렬

    목록 밖의 parent_code는 이미 등록된 계정으로 간주.

    Raises:
        InvalidAccountDefinition: 코드 중복 또는 순환 참조
    """
    by_code: dict[str, ChartAccount] = {}
    for account in accounts:
        if account.code in by_code:
            raise InvalidAccountDefinition(f"Duplicate code in chart: {account.code}")
        by_code[account.code] = account

    ordered: list[ChartAccount] = []
    placed: set[str] = set()
    pending = list(accounts)

    while pending:
        remaining = []
        for account in pending:
            parent = account.parent_code
            if parent is None or parent not in by_code or parent in placed:
                ordered.append(account)
                placed.add(account.code)
            else:
                remaining.append(account)

        if len(remaining) == len(pending):
            codes = [account.code for account in remaining]
            raise InvalidAccountDefinition(f"Cyclic parent references in chart: {codes}")
        pending = remaining

    return ordered


async def seed_chart(
    directory: AccountDirectory,
    tenant_id: str,
    accounts: list[ChartAccount],
) -> list[Account]:
    """계정과목표 등록

    이미 존재하는 코드는 건너뜀 (재실행 안전).

    Returns:
        새로 등록된 계정 목록
    """
    created: list[Account] = []
    for item in order_parents_first(accounts):
        if await directory.find(tenant_id, item.code) is not None:
            logger.debug(f"이미 존재하는 계정 건너뜀: {tenant_id}/{item.code}")
            continue

        created.append(
            await directory.register(
                tenant_id,
                item.code,
                item.name,
                item.account_type,
                normal_side=item.normal_side,
                parent_code=item.parent_code,
                opening_balance=item.opening_balance,
                description=item.description,
                is_cash_flow=item.is_cash_flow,
            )
        )

    logger.info(f"계정과목표 등록 완료: {tenant_id} ({len(created)}/{len(accounts)})")
    return created
