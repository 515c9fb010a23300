"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
하나의 aiosqlite 연결을 여러 코루틴이 공유하므로,
트랜잭션은 asyncio.Lock으로 직렬화하고 BEGIN IMMEDIATE로 시작.

주의: SQLite alias로 time, count 사용 금지 (예약어)
"""

import asyncio
import logging
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

from core.constants import Defaults
from core.ledger.errors import StorageUnavailable

logger = logging.getLogger(__name__)


# 일시적 오류로 판단하는 SQLite 메시지 (재시도 가능)
TRANSIENT_ERROR_MARKERS = (
    "database is locked",
    "database table is locked",
    "database is busy",
    "disk i/o error",
    "unable to open database file",
)


def _is_transient(error: sqlite3.OperationalError) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in TRANSIENT_ERROR_MARKERS)


async def create_connection(
    db_path: Path | str,
    readonly: bool = False,
    busy_timeout_ms: int = Defaults.BUSY_TIMEOUT_MS,
) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)

    Args:
        db_path: DB 파일 경로 (":memory:" 허용)
        readonly: 읽기 전용 여부
        busy_timeout_ms: 잠금 대기 시간 (밀리초)

    Returns:
        aiosqlite 연결 객체
    """
    db_path_str = str(db_path)

    if db_path_str != ":memory:":
        # 디렉토리가 없으면 생성
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    if readonly:
        conn = await aiosqlite.connect(f"file:{db_path_str}?mode=ro", uri=True)
    else:
        conn = await aiosqlite.connect(db_path_str)

    # WAL 모드 설정
    await conn.execute("PRAGMA journal_mode=WAL")

    # 동시 접근 설정
    await conn.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")

    # 외래 키 제약 활성화
    await conn.execute("PRAGMA foreign_keys=ON")

    logger.info(
        "SQLite 연결 생성",
        extra={"db_path": db_path_str, "readonly": readonly},
    )

    return conn


class SQLiteAdapter:
    """SQLite 어댑터

    트랜잭션 컨텍스트 매니저 제공.
    트랜잭션 밖의 단일 쿼리도 같은 잠금을 거치므로,
    다른 코루틴의 진행 중인(미커밋) 변경은 보이지 않음.

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부
        busy_timeout_ms: SQLite busy_timeout

    사용 예시:
    ```python
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()

    async with adapter.transaction():
        await adapter.execute("INSERT INTO ...")

    await adapter.close()
    ```
    """

    def __init__(
        self,
        db_path: Path | str,
        readonly: bool = False,
        busy_timeout_ms: int = Defaults.BUSY_TIMEOUT_MS,
    ):
        self.db_path = db_path if str(db_path) == ":memory:" else Path(db_path)
        self.readonly = readonly
        self.busy_timeout_ms = busy_timeout_ms
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()
        self._tx_owner: asyncio.Task | None = None

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        """현재 Task가 트랜잭션을 보유 중인지"""
        return self._tx_owner is not None and self._tx_owner is asyncio.current_task()

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        try:
            self._conn = await create_connection(
                self.db_path, self.readonly, self.busy_timeout_ms
            )
        except sqlite3.OperationalError as e:
            raise StorageUnavailable(f"Cannot open database {self.db_path}: {e}") from e

    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite 연결 종료")

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Not connected to database")
        return self._conn

    async def _execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        conn = self._require_conn()
        try:
            if parameters:
                return await conn.execute(sql, parameters)
            return await conn.execute(sql)
        except sqlite3.OperationalError as e:
            if _is_transient(e):
                raise StorageUnavailable(str(e)) from e
            raise

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행

        트랜잭션 밖에서 호출하면 단일 문장을 잠금 아래에서 실행하고 커밋.
        """
        if self.in_transaction:
            return await self._execute(sql, parameters)

        async with self.transaction():
            return await self._execute(sql, parameters)

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회"""
        if self.in_transaction:
            cursor = await self._execute(sql, parameters)
            return await cursor.fetchone()

        async with self._lock:
            cursor = await self._execute(sql, parameters)
            return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회"""
        if self.in_transaction:
            cursor = await self._execute(sql, parameters)
            return list(await cursor.fetchall())

        async with self._lock:
            cursor = await self._execute(sql, parameters)
            return list(await cursor.fetchall())

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """트랜잭션 컨텍스트 매니저

        성공 시 자동 커밋, 예외 시 자동 롤백.
        같은 Task 안에서 중첩 호출하면 바깥 트랜잭션에 합류.

        사용 예시:
        ```python
        async with adapter.transaction():
            await adapter.execute("INSERT INTO ...")
            # 성공 시 자동 커밋
        ```
        """
        conn = self._require_conn()

        if self.in_transaction:
            yield conn
            return

        async with self._lock:
            self._tx_owner = asyncio.current_task()
            try:
                if not conn.in_transaction:
                    await self._execute("BEGIN" if self.readonly else "BEGIN IMMEDIATE")
                yield conn
                try:
                    await conn.commit()
                except sqlite3.OperationalError as e:
                    if _is_transient(e):
                        raise StorageUnavailable(str(e)) from e
                    raise
            except BaseException:
                await conn.rollback()
                raise
            finally:
                self._tx_owner = None

    async def table_exists(self, table_name: str) -> bool:
        """테이블 존재 여부 확인"""
        result = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return result is not None

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
