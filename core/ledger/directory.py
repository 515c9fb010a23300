"""
계정 디렉토리 (Chart of Accounts)

계정 등록/수정/조회/비활성화.
계정 계층은 parent_code 문자열로만 연결하며,
순환 검사는 상위 계정 코드를 따라 올라가는 방식으로 수행.

잔액(account_balance)은 이 모듈에서 절대 변경하지 않음 (BalanceLedger 전담).
"""

from __future__ import annotations

import logging
import sqlite3
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from core.constants import Defaults
from core.ledger.amounts import amount_from_db, amount_to_db, to_amount
from core.ledger.errors import (
    AccountNotFound,
    CrossTenantAccess,
    CyclicHierarchy,
    DuplicateAccountCode,
    InvalidAccountDefinition,
    ParentNotFound,
)
from core.ledger.models import Account
from core.ledger.types import DEFAULT_NORMAL_SIDES, AccountType, NormalSide
from core.utils.timezone import from_db_timestamp, now_utc, to_db_timestamp

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


# 수정 가능한 필드 (유형, 방향, 기초 잔액, 코드는 변경 불가)
MUTABLE_FIELDS = frozenset({"name", "description", "parent_code", "is_active", "is_cash_flow"})

# 현재 잔액은 account_balance가 없으면 기초 잔액
ACCOUNT_SELECT = """
    SELECT
        a.account_id, a.tenant_id, a.code, a.name, a.description,
        a.account_type, a.normal_side, a.parent_code, a.level,
        a.is_active, a.is_cash_flow, a.opening_balance,
        COALESCE(ab.balance, a.opening_balance) as current_balance,
        a.created_at, a.updated_at
    FROM account a
    LEFT JOIN account_balance ab
        ON ab.tenant_id = a.tenant_id AND ab.account_code = a.code
"""


def parse_account_type(value: AccountType | str) -> AccountType:
    """계정 유형 파싱 (알 수 없는 값은 거부)"""
    try:
        return AccountType(value.upper() if isinstance(value, str) else value)
    except ValueError as e:
        valid = [t.value for t in AccountType]
        raise InvalidAccountDefinition(
            f"Unknown account type: {value!r}. Valid: {valid}"
        ) from e


def parse_normal_side(value: NormalSide | str) -> NormalSide:
    """정상 잔액 방향 파싱

    DEBIT/CREDIT 외의 값은 등록 시점에 거부 (대변으로 간주하지 않음).
    """
    try:
        return NormalSide(value.upper() if isinstance(value, str) else value)
    except ValueError as e:
        valid = [s.value for s in NormalSide]
        raise InvalidAccountDefinition(
            f"Unknown normal side: {value!r}. Valid: {valid}"
        ) from e


class AccountDirectory:
    """계정 디렉토리

    모든 연산은 tenant_id 범위 안에서 수행.

    Args:
        db: SQLiteAdapter
        scale: 금액 소수 자릿수

    사용 예시:
    ```python
    directory = AccountDirectory(db)
    cash = await directory.register(
        "acme", "A-CASH", "Cash", AccountType.ASSET,
        opening_balance=Decimal("1000.00"),
    )
    ```
    """

    def __init__(self, db: SQLiteAdapter, scale: int = Defaults.AMOUNT_SCALE):
        self.db = db
        self.scale = scale

    # -------------------------------------------------------------------------
    # 등록 / 수정
    # -------------------------------------------------------------------------

    async def register(
        self,
        tenant_id: str,
        code: str,
        name: str,
        account_type: AccountType | str,
        normal_side: NormalSide | str | None = None,
        parent_code: str | None = None,
        opening_balance: Decimal | int | str = Decimal("0"),
        description: str | None = None,
        is_cash_flow: bool = False,
        is_active: bool = True,
    ) -> Account:
        """계정 등록

        Args:
            tenant_id: 테넌트 ID
            code: 계정 코드 (테넌트 내 고유)
            name: 계정명
            account_type: 계정 유형
            normal_side: 정상 잔액 방향 (None이면 유형 기본값)
            parent_code: 상위 계정 코드
            opening_balance: 기초 잔액 (현재 잔액의 시작값)

        Returns:
            등록된 Account

        Raises:
            DuplicateAccountCode: 이미 존재하는 코드
            ParentNotFound: 상위 계정 없음
            InvalidAccountDefinition: 유형/방향/금액 오류
        """
        if not code or not code.strip():
            raise InvalidAccountDefinition("Account code must not be empty")
        if not name or not name.strip():
            raise InvalidAccountDefinition(f"Account name must not be empty: {code}")

        acc_type = parse_account_type(account_type)
        side = (
            parse_normal_side(normal_side)
            if normal_side is not None
            else DEFAULT_NORMAL_SIDES[acc_type]
        )

        try:
            opening = to_amount(opening_balance, self.scale)
        except (TypeError, ValueError) as e:
            raise InvalidAccountDefinition(f"Invalid opening balance for {code}: {e}") from e

        account_id = uuid4().hex
        now = to_db_timestamp(now_utc())

        async with self.db.transaction():
            if await self._fetch(tenant_id, code) is not None:
                raise DuplicateAccountCode(tenant_id, code)

            level = 0
            if parent_code is not None:
                parent = await self._fetch(tenant_id, parent_code)
                if parent is None:
                    raise ParentNotFound(tenant_id, parent_code)
                level = parent.level + 1

            try:
                await self.db.execute(
                    """
                    INSERT INTO account (
                        account_id, tenant_id, code, name, description,
                        account_type, normal_side, parent_code, level,
                        is_active, is_cash_flow, opening_balance,
                        created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        account_id,
                        tenant_id,
                        code,
                        name,
                        description,
                        acc_type.value,
                        side.value,
                        parent_code,
                        level,
                        int(is_active),
                        int(is_cash_flow),
                        amount_to_db(opening),
                        now,
                        now,
                    ),
                )
            except sqlite3.IntegrityError as e:
                raise DuplicateAccountCode(tenant_id, code) from e

            account = await self._fetch(tenant_id, code)

        logger.info(
            f"계정 등록: {tenant_id}/{code}",
            extra={"account_type": acc_type.value, "normal_side": side.value, "level": level},
        )
        assert account is not None
        return account

    async def update(self, tenant_id: str, code: str, **changes: Any) -> Account:
        """계정 메타데이터 수정

        수정 가능: name, description, parent_code, is_active, is_cash_flow
        parent_code 변경 시 하위 계정 전체의 level 재계산.

        Raises:
            AccountNotFound: 계정 없음
            ParentNotFound: 새 상위 계정 없음
            CyclicHierarchy: 새 상위 계정이 자기 자신 또는 하위 계정
            InvalidAccountDefinition: 수정 불가 필드
        """
        unknown = set(changes) - MUTABLE_FIELDS
        if unknown:
            raise InvalidAccountDefinition(f"Fields cannot be changed: {sorted(unknown)}")
        if "name" in changes and not (changes["name"] or "").strip():
            raise InvalidAccountDefinition(f"Account name must not be empty: {code}")

        async with self.db.transaction():
            account = await self._fetch(tenant_id, code)
            if account is None:
                raise AccountNotFound(tenant_id, code)

            if "parent_code" in changes and changes["parent_code"] != account.parent_code:
                await self._move(account, changes["parent_code"])

            assignments = []
            params: list[Any] = []
            for field_name in ("name", "description", "is_active", "is_cash_flow"):
                if field_name in changes:
                    value = changes[field_name]
                    if field_name in ("is_active", "is_cash_flow"):
                        value = int(bool(value))
                    assignments.append(f"{field_name} = ?")
                    params.append(value)

            assignments.append("updated_at = ?")
            params.append(to_db_timestamp(now_utc()))

            await self.db.execute(
                f"UPDATE account SET {', '.join(assignments)} WHERE tenant_id = ? AND code = ?",
                (*params, tenant_id, code),
            )

            updated = await self._fetch(tenant_id, code)

        logger.info(f"계정 수정: {tenant_id}/{code}", extra={"fields": sorted(changes)})
        assert updated is not None
        return updated

    async def update_by_id(self, tenant_id: str, account_id: str, **changes: Any) -> Account:
        """대리 키로 계정 수정 (테넌트 불일치 시 CrossTenantAccess)"""
        account = await self.get_by_id(tenant_id, account_id)
        return await self.update(tenant_id, account.code, **changes)

    async def deactivate(self, tenant_id: str, code: str) -> Account:
        """계정 비활성화

        하위 계정에 전파하지 않음. 이후 이 계정으로의 전기는 AccountInactive.
        """
        account = await self.update(tenant_id, code, is_active=False)
        logger.info(f"계정 비활성화: {tenant_id}/{code}")
        return account

    async def activate(self, tenant_id: str, code: str) -> Account:
        """계정 재활성화"""
        return await self.update(tenant_id, code, is_active=True)

    async def _move(self, account: Account, new_parent_code: str | None) -> None:
        """계정 이동 (상위 계정 변경 + 하위 트리 level 재계산)"""
        tenant_id = account.tenant_id

        if new_parent_code is None:
            new_level = 0
        else:
            if new_parent_code == account.code:
                raise CyclicHierarchy(tenant_id, account.code, new_parent_code)

            parent = await self._fetch(tenant_id, new_parent_code)
            if parent is None:
                raise ParentNotFound(tenant_id, new_parent_code)

            # 새 상위 계정의 조상 중에 자기 자신이 있으면 순환
            if account.code in await self._ancestor_codes(tenant_id, new_parent_code):
                raise CyclicHierarchy(tenant_id, account.code, new_parent_code)

            new_level = parent.level + 1

        level_shift = new_level - account.level

        await self.db.execute(
            "UPDATE account SET parent_code = ?, level = ? WHERE tenant_id = ? AND code = ?",
            (new_parent_code, new_level, tenant_id, account.code),
        )

        if level_shift:
            for descendant in await self._descendant_codes(tenant_id, account.code):
                await self.db.execute(
                    "UPDATE account SET level = level + ? WHERE tenant_id = ? AND code = ?",
                    (level_shift, tenant_id, descendant),
                )

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def lookup(self, tenant_id: str, code: str) -> Account:
        """계정 조회

        Raises:
            AccountNotFound: 계정 없음
        """
        account = await self._fetch(tenant_id, code)
        if account is None:
            raise AccountNotFound(tenant_id, code)
        return account

    async def find(self, tenant_id: str, code: str) -> Account | None:
        """계정 조회 (없으면 None)"""
        return await self._fetch(tenant_id, code)

    async def get_by_id(self, tenant_id: str, account_id: str) -> Account:
        """대리 키로 계정 조회

        Raises:
            AccountNotFound: 계정 없음
            CrossTenantAccess: 다른 테넌트의 계정
        """
        row = await self.db.fetchone(
            ACCOUNT_SELECT + " WHERE a.account_id = ?",
            (account_id,),
        )
        if row is None:
            raise AccountNotFound(tenant_id, account_id)

        account = self._row_to_account(row)
        if account.tenant_id != tenant_id:
            logger.warning(
                f"다른 테넌트 계정 접근 거부: {tenant_id} → {account.tenant_id}/{account.code}"
            )
            raise CrossTenantAccess(tenant_id, account.tenant_id, f"account {account_id}")
        return account

    async def list_all(self, tenant_id: str) -> list[Account]:
        """테넌트의 전체 계정 (코드 순)"""
        rows = await self.db.fetchall(
            ACCOUNT_SELECT + " WHERE a.tenant_id = ? ORDER BY a.code",
            (tenant_id,),
        )
        return [self._row_to_account(row) for row in rows]

    async def list_by_type(self, tenant_id: str, account_type: AccountType | str) -> list[Account]:
        """유형별 계정"""
        acc_type = parse_account_type(account_type)
        rows = await self.db.fetchall(
            ACCOUNT_SELECT + " WHERE a.tenant_id = ? AND a.account_type = ? ORDER BY a.code",
            (tenant_id, acc_type.value),
        )
        return [self._row_to_account(row) for row in rows]

    async def list_active(self, tenant_id: str) -> list[Account]:
        """활성 계정"""
        rows = await self.db.fetchall(
            ACCOUNT_SELECT + " WHERE a.tenant_id = ? AND a.is_active = 1 ORDER BY a.code",
            (tenant_id,),
        )
        return [self._row_to_account(row) for row in rows]

    async def children_of(self, tenant_id: str, code: str) -> list[Account]:
        """직계 하위 계정

        Raises:
            AccountNotFound: 상위 계정 없음
        """
        await self.lookup(tenant_id, code)
        rows = await self.db.fetchall(
            ACCOUNT_SELECT + " WHERE a.tenant_id = ? AND a.parent_code = ? ORDER BY a.code",
            (tenant_id, code),
        )
        return [self._row_to_account(row) for row in rows]

    async def _fetch(self, tenant_id: str, code: str) -> Account | None:
        row = await self.db.fetchone(
            ACCOUNT_SELECT + " WHERE a.tenant_id = ? AND a.code = ?",
            (tenant_id, code),
        )
        return self._row_to_account(row) if row else None

    async def _ancestor_codes(self, tenant_id: str, code: str) -> set[str]:
        """code 자신을 포함한 조상 코드 집합"""
        ancestors: set[str] = set()
        current: str | None = code
        while current is not None and current not in ancestors:
            ancestors.add(current)
            row = await self.db.fetchone(
                "SELECT parent_code FROM account WHERE tenant_id = ? AND code = ?",
                (tenant_id, current),
            )
            current = row[0] if row else None
        return ancestors

    async def _descendant_codes(self, tenant_id: str, code: str) -> list[str]:
        """모든 하위 계정 코드 (너비 우선)"""
        descendants: list[str] = []
        frontier = [code]
        seen = {code}
        while frontier:
            placeholders = ", ".join("?" for _ in frontier)
            rows = await self.db.fetchall(
                f"SELECT code FROM account WHERE tenant_id = ? AND parent_code IN ({placeholders})",
                (tenant_id, *frontier),
            )
            frontier = [row[0] for row in rows if row[0] not in seen]
            seen.update(frontier)
            descendants.extend(frontier)
        return descendants

    def _row_to_account(self, row: tuple[Any, ...]) -> Account:
        return Account(
            account_id=row[0],
            tenant_id=row[1],
            code=row[2],
            name=row[3],
            description=row[4],
            account_type=AccountType(row[5]),
            normal_side=NormalSide(row[6]),
            parent_code=row[7],
            level=row[8],
            is_active=bool(row[9]),
            is_cash_flow=bool(row[10]),
            opening_balance=amount_from_db(row[11], self.scale),
            current_balance=amount_from_db(row[12], self.scale),
            created_at=from_db_timestamp(row[13]),
            updated_at=from_db_timestamp(row[14]),
        )
