"""
장부 스키마 초기화

엔진 시작 시 자동으로 장부 테이블 생성 및 group_pool 시드.
CREATE IF NOT EXISTS / INSERT OR IGNORE 패턴으로 안전하게 동작.

금액은 TEXT(Decimal 문자열)로 저장하여 부동소수점 오차 방지.
"""

import logging
from typing import TYPE_CHECKING

from core.types import PoolType

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


# 모든 장부 테이블 (생성 순서)
LEDGER_TABLES: tuple[str, ...] = (
    "person",
    "personal_balance",
    "group_pool",
    "borrowing",
    "payment",
    "daily_summary",
    "transaction_log",
)


async def init_club_schema(db: "SQLiteAdapter") -> None:
    """장부 스키마 초기화 (테이블 + 인덱스 + group_pool 시드)

    이미 존재하는 경우 안전하게 건너뜀 (IF NOT EXISTS).

    Args:
        db: 연결된 SQLiteAdapter
    """
    await _create_tables(db)
    await _create_indexes(db)
    await _seed_group_pools(db)
    await db.commit()
    logger.info("장부 스키마 초기화 완료")


async def _create_tables(db: "SQLiteAdapter") -> None:
    """장부 테이블 생성"""

    await db.execute("""
        CREATE TABLE IF NOT EXISTS person (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            name             TEXT NOT NULL,
            created_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    await db.execute("""
        CREATE TABLE IF NOT EXISTS personal_balance (
            id                        INTEGER PRIMARY KEY AUTOINCREMENT,
            person_id                 INTEGER NOT NULL UNIQUE,
            main_savings_balance      TEXT NOT NULL DEFAULT '0.00',
            validity_savings_balance  TEXT NOT NULL DEFAULT '0.00',
            updated_at                TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (person_id) REFERENCES person(id)
        )
    """)

    await db.execute("""
        CREATE TABLE IF NOT EXISTS group_pool (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            pool_type        TEXT NOT NULL UNIQUE,
            balance          TEXT NOT NULL DEFAULT '0.00',
            updated_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    await db.execute("""
        CREATE TABLE IF NOT EXISTS borrowing (
            id                       INTEGER PRIMARY KEY AUTOINCREMENT,
            person_id                INTEGER NOT NULL,
            pool_type                TEXT NOT NULL,
            principal                TEXT NOT NULL,
            initial_profit_amount    TEXT NOT NULL,
            outstanding_amount       TEXT NOT NULL,
            status                   TEXT NOT NULL DEFAULT 'OPEN',
            due_date                 TEXT NOT NULL,
            created_at               TEXT NOT NULL,
            last_payment_at          TEXT,
            last_penalty_applied_at  TEXT,
            FOREIGN KEY (person_id) REFERENCES person(id)
        )
    """)

    await db.execute("""
        CREATE TABLE IF NOT EXISTS payment (
            id                       INTEGER PRIMARY KEY AUTOINCREMENT,
            person_id                INTEGER NOT NULL,
            type                     TEXT NOT NULL,
            amount                   TEXT NOT NULL,
            effective_date           TEXT,
            applied_to_borrowing_id  INTEGER,
            created_at               TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (person_id) REFERENCES person(id),
            FOREIGN KEY (applied_to_borrowing_id) REFERENCES borrowing(id)
        )
    """)

    await db.execute("""
        CREATE TABLE IF NOT EXISTS daily_summary (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            person_id        INTEGER NOT NULL,
            date             TEXT NOT NULL,
            validity_paid    INTEGER NOT NULL DEFAULT 0,
            units_count      INTEGER NOT NULL DEFAULT 0 CHECK (units_count >= 0),
            fine_amount      TEXT NOT NULL DEFAULT '0.00',
            UNIQUE(person_id, date),
            FOREIGN KEY (person_id) REFERENCES person(id)
        )
    """)

    # transaction_log: person_id NULL = 시스템 이벤트
    await db.execute("""
        CREATE TABLE IF NOT EXISTS transaction_log (
            id                                 INTEGER PRIMARY KEY AUTOINCREMENT,
            person_id                          INTEGER,
            transaction_type                   TEXT NOT NULL,
            details                            TEXT,
            amount                             TEXT NOT NULL DEFAULT '0.00',
            resulting_person_main_balance      TEXT,
            resulting_person_validity_balance  TEXT,
            resulting_group_main_balance       TEXT,
            resulting_group_validity_balance   TEXT,
            created_at                         TEXT NOT NULL,
            FOREIGN KEY (person_id) REFERENCES person(id)
        )
    """)


async def _create_indexes(db: "SQLiteAdapter") -> None:
    """인덱스 생성"""
    await db.execute("CREATE INDEX IF NOT EXISTS idx_borrowing_person_pool ON borrowing(person_id, pool_type, status)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_borrowing_status ON borrowing(status)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_payment_person_type ON payment(person_id, type)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_transaction_log_person ON transaction_log(person_id, created_at)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_transaction_log_type ON transaction_log(transaction_type)")


async def _seed_group_pools(db: "SQLiteAdapter") -> None:
    """group_pool 시드 (MAIN, VALIDITY 두 행)"""
    for pool_type in PoolType:
        await db.execute(
            "INSERT OR IGNORE INTO group_pool (pool_type, balance) VALUES (?, '0.00')",
            (pool_type.value,),
        )
