"""
전표 엔진 (Journal Entry Engine)

전표 생명주기 관리:
- 초안 생성/수정/삭제 (DRAFT)
- 전기 (DRAFT → POSTED): 모든 분개 항목을 하나의 트랜잭션으로 잔액에 반영
- 역분개 (POSTED → REVERSED): 차변/대변을 바꾼 보정 전표를 전기하고 원 전표를 REVERSED로 표시

원자성:
- 전표가 참조하는 모든 계정 잠금을 코드 오름차순으로 획득한 뒤
  하나의 DB 트랜잭션 안에서 항목 순서대로 apply_in_transaction 호출.
- 중간에 실패하면 트랜잭션 롤백 → 어떤 잔액도 변경되지 않음.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Iterable, Mapping
from uuid import uuid4

from core.constants import Defaults
from core.domain.state_machines import (
    DISCARDED,
    JournalEntryStateMachine,
    StateMachineError,
)
from core.ledger.amounts import amount_from_db, amount_to_db, to_amount
from core.ledger.balance import BalanceLedger
from core.ledger.directory import AccountDirectory
from core.ledger.errors import (
    AccountInactive,
    AccountNotFound,
    AlreadyReversed,
    CrossTenantAccess,
    EmptyEntry,
    EntryNotFound,
    InvalidJournalLine,
    InvalidStateTransition,
    NotPosted,
    UnbalancedEntry,
)
from core.ledger.models import JournalEntry, JournalEntryLine
from core.ledger.sequence import EntrySequence
from core.ledger.types import EntryStatus, VoucherType
from core.utils.timezone import from_db_timestamp, now_utc, to_db_date, to_db_timestamp

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


# update_draft에서 "변경 안 함"과 None(값 삭제)을 구분하기 위한 표식
_UNSET: Any = object()

ENTRY_SELECT = """
    SELECT
        entry_id, tenant_id, entry_number, entry_date, voucher_type,
        description, reference_number, status, total_debit, total_credit,
        posted_by, posted_at, reversal_of, reversed_by, created_at
    FROM journal_entry
"""


class JournalEntryEngine:
    """전표 엔진

    Args:
        db: SQLiteAdapter
        directory: 계정 조회용 AccountDirectory
        balances: 잔액 갱신용 BalanceLedger
        sequence: 전표 번호 발급기 (None이면 기본 설정으로 생성)
        scale: 금액 소수 자릿수

    사용 예시:
    ```python
    entry = await engine.create_draft(
        "acme", date.today(), VoucherType.SALES, "Cash sale", "INV-1",
        [
            JournalEntryLine.debit("A-CASH", "150.00"),
            JournalEntryLine.credit("A-SALES", "150.00"),
        ],
    )
    posted = await engine.post("acme", entry.entry_number, posted_by="u-1")
    ```
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        directory: AccountDirectory,
        balances: BalanceLedger,
        sequence: EntrySequence | None = None,
        scale: int = Defaults.AMOUNT_SCALE,
    ):
        self.db = db
        self.directory = directory
        self.balances = balances
        self.sequence = sequence or EntrySequence(db)
        self.scale = scale

    # -------------------------------------------------------------------------
    # 검증
    # -------------------------------------------------------------------------

    def validate_lines(
        self,
        lines: Iterable[JournalEntryLine | Mapping[str, Any]],
    ) -> tuple[list[JournalEntryLine], Decimal, Decimal]:
        """분개 항목 검증 및 정규화

        Returns:
            (정규화된 항목, 차변 합계, 대변 합계)

        Raises:
            EmptyEntry: 항목 2개 미만
            InvalidJournalLine: 차변/대변 중 정확히 하나만 양수가 아님
            UnbalancedEntry: 차변 합계 ≠ 대변 합계 (허용 오차 없음)
        """
        raw_lines = list(lines)
        if len(raw_lines) < 2:
            raise EmptyEntry(f"A journal entry needs at least two lines, got {len(raw_lines)}")

        normalized: list[JournalEntryLine] = []
        for line_no, raw in enumerate(raw_lines):
            line = self._coerce_line(line_no, raw)

            if not line.account_code or not line.account_code.strip():
                raise InvalidJournalLine(line_no, "account code is empty")

            try:
                debit = to_amount(line.debit_amount, self.scale)
                credit = to_amount(line.credit_amount, self.scale)
            except (TypeError, ValueError) as e:
                raise InvalidJournalLine(line_no, str(e)) from e

            if debit < 0 or credit < 0:
                raise InvalidJournalLine(line_no, "amounts must not be negative")
            if (debit > 0) == (credit > 0):
                raise InvalidJournalLine(
                    line_no, "exactly one of debit or credit must be non-zero"
                )

            normalized.append(
                replace(line, debit_amount=debit, credit_amount=credit, line_no=line_no)
            )

        zero = to_amount(0, self.scale)
        total_debit = sum((line.debit_amount for line in normalized), zero)
        total_credit = sum((line.credit_amount for line in normalized), zero)

        if total_debit != total_credit:
            raise UnbalancedEntry(total_debit, total_credit)

        return normalized, total_debit, total_credit

    @staticmethod
    def _coerce_line(line_no: int, raw: JournalEntryLine | Mapping[str, Any]) -> JournalEntryLine:
        if isinstance(raw, JournalEntryLine):
            return raw
        if isinstance(raw, Mapping):
            try:
                return JournalEntryLine(**raw)
            except TypeError as e:
                raise InvalidJournalLine(line_no, str(e)) from e
        raise InvalidJournalLine(line_no, f"unsupported line type {type(raw).__name__}")

    # -------------------------------------------------------------------------
    # 초안 (DRAFT)
    # -------------------------------------------------------------------------

    async def create_draft(
        self,
        tenant_id: str,
        entry_date: date | datetime | str,
        voucher_type: VoucherType | str,
        description: str | None,
        reference_number: str | None,
        lines: Iterable[JournalEntryLine | Mapping[str, Any]],
    ) -> JournalEntry:
        """전표 초안 생성

        검증 실패 시 어떤 데이터도 저장되지 않음 (번호도 발급되지 않음).

        Returns:
            DRAFT 상태의 JournalEntry

        Raises:
            EmptyEntry, InvalidJournalLine, UnbalancedEntry
        """
        normalized, total_debit, total_credit = self.validate_lines(lines)
        voucher = voucher_type.value if isinstance(voucher_type, VoucherType) else str(voucher_type)
        if not voucher.strip():
            raise ValueError("voucher_type must not be empty")

        async with self.db.transaction():
            entry_number = await self.sequence.next_entry_number(tenant_id, voucher)
            entry_id = await self._insert_entry(
                tenant_id=tenant_id,
                entry_number=entry_number,
                entry_date=entry_date,
                voucher_type=voucher.upper(),
                description=description,
                reference_number=reference_number,
                total_debit=total_debit,
                total_credit=total_credit,
                lines=normalized,
            )
            entry = await self._load_by_id(entry_id)

        logger.info(
            f"전표 초안 생성: {tenant_id}/{entry_number}",
            extra={"total": str(total_debit), "line_count": len(normalized)},
        )
        assert entry is not None
        return entry

    async def update_draft(
        self,
        tenant_id: str,
        entry_number: str,
        *,
        lines: Iterable[JournalEntryLine | Mapping[str, Any]] | None = None,
        entry_date: date | datetime | str | None = None,
        description: str | None = _UNSET,
        reference_number: str | None = _UNSET,
    ) -> JournalEntry:
        """초안 수정 (DRAFT에서만 가능)

        lines를 주면 항목 전체를 교체하고 다시 검증.

        Raises:
            EntryNotFound: 전표 없음
            InvalidStateTransition: DRAFT가 아님
        """
        validated = self.validate_lines(lines) if lines is not None else None

        async with self.db.transaction():
            entry = await self._require(tenant_id, entry_number)
            if entry.status != EntryStatus.DRAFT:
                raise InvalidStateTransition(entry_number, entry.status.value, EntryStatus.DRAFT.value)

            assignments = ["updated_at = ?"]
            params: list[Any] = [to_db_timestamp(now_utc())]

            if entry_date is not None:
                assignments.append("entry_date = ?")
                params.append(to_db_date(entry_date))
            if description is not _UNSET:
                assignments.append("description = ?")
                params.append(description)
            if reference_number is not _UNSET:
                assignments.append("reference_number = ?")
                params.append(reference_number)

            if validated is not None:
                normalized, total_debit, total_credit = validated
                assignments.extend(["total_debit = ?", "total_credit = ?"])
                params.extend([amount_to_db(total_debit), amount_to_db(total_credit)])
                await self.db.execute(
                    "DELETE FROM journal_line WHERE entry_id = ?",
                    (entry.entry_id,),
                )
                await self._insert_lines(entry.entry_id, normalized)

            await self.db.execute(
                f"UPDATE journal_entry SET {', '.join(assignments)} WHERE entry_id = ?",
                (*params, entry.entry_id),
            )
            updated = await self._load_by_id(entry.entry_id)

        logger.info(f"전표 초안 수정: {tenant_id}/{entry_number}")
        assert updated is not None
        return updated

    async def discard(self, tenant_id: str, entry_number: str) -> None:
        """초안 삭제 (DRAFT에서만 가능)

        Raises:
            EntryNotFound: 전표 없음
            InvalidStateTransition: DRAFT가 아님
        """
        async with self.db.transaction():
            entry = await self._require(tenant_id, entry_number)
            self._transition(entry, DISCARDED)
            await self.db.execute("DELETE FROM journal_line WHERE entry_id = ?", (entry.entry_id,))
            await self.db.execute("DELETE FROM journal_entry WHERE entry_id = ?", (entry.entry_id,))

        logger.info(f"전표 초안 삭제: {tenant_id}/{entry_number}")

    # -------------------------------------------------------------------------
    # 전기 / 역분개
    # -------------------------------------------------------------------------

    async def post(self, tenant_id: str, entry_number: str, posted_by: str) -> JournalEntry:
        """전표 전기 (DRAFT → POSTED)

        모든 항목이 반영되거나, 하나도 반영되지 않음.

        Returns:
            POSTED 상태의 JournalEntry

        Raises:
            EntryNotFound: 전표 없음
            InvalidStateTransition: DRAFT가 아님 (재전기 포함)
            AccountNotFound / AccountInactive: 참조 계정 오류
            UnbalancedEntry: 차변 ≠ 대변
        """
        while True:
            entry = await self._require(tenant_id, entry_number)
            codes = entry.account_codes

            async with self.balances.locked(tenant_id, codes):
                async with self.db.transaction():
                    current = await self._require(tenant_id, entry_number)
                    # 잠금 전에 항목이 바뀌었다면 새 계정 목록으로 다시 잠금
                    if set(current.account_codes) <= set(codes):
                        posted = await self._post_locked(current, posted_by)
                        break

        logger.info(
            f"전표 전기: {tenant_id}/{entry_number}",
            extra={"posted_by": posted_by, "total": str(posted.total_debit)},
        )
        return posted

    async def reverse(
        self,
        tenant_id: str,
        entry_number: str,
        reversed_by: str | None = None,
        entry_date: date | datetime | str | None = None,
    ) -> JournalEntry:
        """역분개 (POSTED → REVERSED)

        원 전표의 차변/대변을 바꾼 보정 전표를 생성하여 같은 전기 경로로 전기하고,
        같은 트랜잭션 안에서 원 전표를 REVERSED로 표시.
        보정 전표 전기가 실패하면 원 전표는 POSTED 그대로 유지.

        Args:
            reversed_by: 보정 전표 전기자 (None이면 원 전표 전기자)
            entry_date: 보정 전표 일자 (None이면 오늘)

        Returns:
            새로 생성되어 POSTED된 보정 전표

        Raises:
            EntryNotFound: 전표 없음
            AlreadyReversed: 이미 역분개됨
            NotPosted: POSTED가 아님
        """
        source = await self._require(tenant_id, entry_number)

        async with self.balances.locked(tenant_id, source.account_codes):
            async with self.db.transaction():
                source = await self._require(tenant_id, entry_number)

                if source.reversed_by is not None or source.status == EntryStatus.REVERSED:
                    raise AlreadyReversed(entry_number, source.reversed_by)
                if source.status != EntryStatus.POSTED:
                    raise NotPosted(entry_number, source.status.value)

                reversal_number = await self.sequence.next_entry_number(
                    tenant_id, source.voucher_type
                )
                reversal_id = await self._insert_entry(
                    tenant_id=tenant_id,
                    entry_number=reversal_number,
                    entry_date=entry_date or now_utc().date(),
                    voucher_type=source.voucher_type,
                    description=f"Reversal of {entry_number}",
                    reference_number=entry_number,
                    total_debit=source.total_credit,
                    total_credit=source.total_debit,
                    lines=[line.swapped() for line in source.lines],
                    reversal_of=entry_number,
                )
                reversal = await self._load_by_id(reversal_id)
                assert reversal is not None

                posted = await self._post_locked(reversal, reversed_by or source.posted_by or "")

                self._transition(source, EntryStatus.REVERSED)
                await self.db.execute(
                    """
                    UPDATE journal_entry
                    SET status = ?, reversed_by = ?, updated_at = ?
                    WHERE entry_id = ?
                    """,
                    (
                        EntryStatus.REVERSED.value,
                        reversal_number,
                        to_db_timestamp(now_utc()),
                        source.entry_id,
                    ),
                )

        logger.info(f"전표 역분개: {tenant_id}/{entry_number} → {reversal_number}")
        return posted

    async def _post_locked(self, entry: JournalEntry, posted_by: str) -> JournalEntry:
        """전기 본체 (계정 잠금 + 트랜잭션 보유 상태)"""
        self._transition(entry, EntryStatus.POSTED)

        # 저장된 항목으로 균형 재검증
        self.validate_lines(entry.lines)
        if entry.total_debit != entry.total_credit:
            raise UnbalancedEntry(entry.total_debit, entry.total_credit)

        # 모든 계정을 먼저 확인 (하나라도 잘못되면 아무것도 반영하지 않음)
        for code in entry.account_codes:
            account = await self.directory.find(entry.tenant_id, code)
            if account is None:
                logger.warning(f"전기 거부 (계정 없음): {entry.entry_number} → {code}")
                raise AccountNotFound(entry.tenant_id, code)
            if not account.is_active:
                logger.warning(f"전기 거부 (비활성 계정): {entry.entry_number} → {code}")
                raise AccountInactive(entry.tenant_id, code)

        for line in sorted(entry.lines, key=lambda item: item.line_no):
            await self.balances.apply_in_transaction(
                entry.tenant_id,
                line.account_code,
                line.debit_amount,
                line.credit_amount,
                entry_number=entry.entry_number,
            )

        await self.db.execute(
            """
            UPDATE journal_entry
            SET status = ?, posted_by = ?, posted_at = ?, updated_at = ?
            WHERE entry_id = ?
            """,
            (
                EntryStatus.POSTED.value,
                posted_by,
                to_db_timestamp(now_utc()),
                to_db_timestamp(now_utc()),
                entry.entry_id,
            ),
        )

        posted = await self._load_by_id(entry.entry_id)
        assert posted is not None
        return posted

    @staticmethod
    def _transition(entry: JournalEntry, to_state: EntryStatus | str) -> None:
        machine = JournalEntryStateMachine(entry.status, entry.entry_number)
        try:
            machine.transition(to_state)
        except StateMachineError as e:
            logger.warning(str(e))
            raise InvalidStateTransition(entry.entry_number, e.from_state, e.to_state) from e

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def get_entry(self, tenant_id: str, entry_number: str) -> JournalEntry:
        """전표 조회

        Raises:
            EntryNotFound: 전표 없음
        """
        return await self._require(tenant_id, entry_number)

    async def get_by_id(self, tenant_id: str, entry_id: str) -> JournalEntry:
        """대리 키로 전표 조회

        Raises:
            EntryNotFound: 전표 없음
            CrossTenantAccess: 다른 테넌트의 전표
        """
        entry = await self._load_by_id(entry_id)
        if entry is None:
            raise EntryNotFound(tenant_id, entry_id)
        if entry.tenant_id != tenant_id:
            logger.warning(f"다른 테넌트 전표 접근 거부: {tenant_id} → {entry.tenant_id}")
            raise CrossTenantAccess(tenant_id, entry.tenant_id, f"journal entry {entry_id}")
        return entry

    async def list_entries(
        self,
        tenant_id: str,
        status: EntryStatus | str | None = None,
        limit: int = Defaults.LIST_LIMIT,
        offset: int = 0,
    ) -> list[JournalEntry]:
        """전표 목록 (최신 번호 먼저)

        Args:
            status: 상태 필터 (None이면 전체)
            limit: 조회 개수 제한
            offset: 시작 위치
        """
        if status is None:
            rows = await self.db.fetchall(
                ENTRY_SELECT + """
                WHERE tenant_id = ?
                ORDER BY created_at DESC, entry_number DESC
                LIMIT ? OFFSET ?
                """,
                (tenant_id, limit, offset),
            )
        else:
            status_value = EntryStatus(status).value
            rows = await self.db.fetchall(
                ENTRY_SELECT + """
                WHERE tenant_id = ? AND status = ?
                ORDER BY created_at DESC, entry_number DESC
                LIMIT ? OFFSET ?
                """,
                (tenant_id, status_value, limit, offset),
            )

        return [await self._row_to_entry(row) for row in rows]

    async def _require(self, tenant_id: str, entry_number: str) -> JournalEntry:
        row = await self.db.fetchone(
            ENTRY_SELECT + " WHERE tenant_id = ? AND entry_number = ?",
            (tenant_id, entry_number),
        )
        if row is None:
            raise EntryNotFound(tenant_id, entry_number)
        return await self._row_to_entry(row)

    async def _load_by_id(self, entry_id: str) -> JournalEntry | None:
        row = await self.db.fetchone(ENTRY_SELECT + " WHERE entry_id = ?", (entry_id,))
        return await self._row_to_entry(row) if row else None

    async def _row_to_entry(self, row: tuple[Any, ...]) -> JournalEntry:
        line_rows = await self.db.fetchall(
            """
            SELECT
                line_order, account_code, debit_amount, credit_amount,
                description, cost_center, project_code, related_reference_id
            FROM journal_line
            WHERE entry_id = ?
            ORDER BY line_order
            """,
            (row[0],),
        )
        lines = tuple(
            JournalEntryLine(
                line_no=line[0],
                account_code=line[1],
                debit_amount=amount_from_db(line[2], self.scale),
                credit_amount=amount_from_db(line[3], self.scale),
                description=line[4],
                cost_center=line[5],
                project_code=line[6],
                related_reference_id=line[7],
            )
            for line in line_rows
        )

        return JournalEntry(
            entry_id=row[0],
            tenant_id=row[1],
            entry_number=row[2],
            entry_date=date.fromisoformat(row[3]),
            voucher_type=row[4],
            description=row[5],
            reference_number=row[6],
            status=EntryStatus(row[7]),
            total_debit=amount_from_db(row[8], self.scale),
            total_credit=amount_from_db(row[9], self.scale),
            posted_by=row[10],
            posted_at=from_db_timestamp(row[11]),
            reversal_of=row[12],
            reversed_by=row[13],
            created_at=from_db_timestamp(row[14]),
            lines=lines,
        )

    # -------------------------------------------------------------------------
    # 저장
    # -------------------------------------------------------------------------

    async def _insert_entry(
        self,
        *,
        tenant_id: str,
        entry_number: str,
        entry_date: date | datetime | str,
        voucher_type: str,
        description: str | None,
        reference_number: str | None,
        total_debit: Decimal,
        total_credit: Decimal,
        lines: list[JournalEntryLine],
        reversal_of: str | None = None,
    ) -> str:
        entry_id = uuid4().hex
        now = to_db_timestamp(now_utc())

        await self.db.execute(
            """
            INSERT INTO journal_entry (
                entry_id, tenant_id, entry_number, entry_date, voucher_type,
                description, reference_number, status, total_debit, total_credit,
                reversal_of, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry_id,
                tenant_id,
                entry_number,
                to_db_date(entry_date),
                voucher_type,
                description,
                reference_number,
                EntryStatus.DRAFT.value,
                amount_to_db(total_debit),
                amount_to_db(total_credit),
                reversal_of,
                now,
                now,
            ),
        )
        await self._insert_lines(entry_id, lines)
        return entry_id

    async def _insert_lines(self, entry_id: str, lines: list[JournalEntryLine]) -> None:
        for line in lines:
            await self.db.execute(
                """
                INSERT INTO journal_line (
                    entry_id, line_order, account_code, debit_amount, credit_amount,
                    description, cost_center, project_code, related_reference_id
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry_id,
                    line.line_no,
                    line.account_code,
                    amount_to_db(line.debit_amount),
                    amount_to_db(line.credit_amount),
                    line.description,
                    line.cost_center,
                    line.project_code,
                    line.related_reference_id,
                ),
            )
