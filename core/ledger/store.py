"""
Balance Store

장부 테이블 CRUD 및 잠금 조회.
모든 메서드는 호출자가 연 트랜잭션 안에서 실행되며 스스로 커밋하지 않음.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from adapters.db.locks import LockRank
from core.constants import Defaults
from core.ledger.types import (
    BalanceSnapshot,
    Borrowing,
    DailySummary,
    Person,
    PersonalBalance,
    TransactionType,
)
from core.types import BorrowingStatus, PaymentType, PoolType, to_money

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


def _money_text(value: Decimal | None) -> str | None:
    """Decimal → 저장용 문자열 (2자리)"""
    if value is None:
        return None
    return str(to_money(value))


class BalanceStore:
    """Balance Store

    person, personal_balance, group_pool, borrowing, payment,
    daily_summary, transaction_log 테이블 접근.

    잠금 조회(lock_*)는 SQLiteAdapter.select_for_update를 거쳐
    잠금 순서 계약을 강제함.

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    # =========================================================================
    # person
    # =========================================================================

    async def get_person(self, person_id: int) -> Person | None:
        """회원 조회"""
        row = await self.db.fetchone_dict(
            "SELECT id, name FROM person WHERE id = ?",
            (person_id,),
        )
        return Person.from_row(row) if row else None

    async def lock_person(self, person_id: int) -> Person | None:
        """회원 행 잠금 조회"""
        row = await self.db.select_for_update(
            LockRank.PERSON,
            person_id,
            "SELECT id, name FROM person WHERE id = ?",
            (person_id,),
        )
        return Person.from_row(row) if row else None

    async def insert_person(self, name: str) -> int:
        """회원 생성

        Returns:
            생성된 person_id
        """
        cursor = await self.db.execute(
            "INSERT INTO person (name) VALUES (?)",
            (name,),
        )
        return int(cursor.lastrowid)

    async def list_people(self) -> list[Person]:
        """회원 목록 (이름순)"""
        rows = await self.db.fetchall_dict("SELECT id, name FROM person ORDER BY name, id")
        return [Person.from_row(row) for row in rows]

    # =========================================================================
    # personal_balance
    # =========================================================================

    async def get_personal_balance(self, person_id: int) -> PersonalBalance | None:
        """개인 잔고 조회 (잠금 없음)"""
        row = await self.db.fetchone_dict(
            "SELECT * FROM personal_balance WHERE person_id = ?",
            (person_id,),
        )
        return PersonalBalance.from_row(row) if row else None

    async def lock_personal_balance(self, person_id: int) -> PersonalBalance | None:
        """개인 잔고 잠금 조회"""
        row = await self.db.select_for_update(
            LockRank.PERSONAL_BALANCE,
            person_id,
            "SELECT * FROM personal_balance WHERE person_id = ?",
            (person_id,),
        )
        return PersonalBalance.from_row(row) if row else None

    async def insert_personal_balance(self, person_id: int) -> PersonalBalance:
        """0 잔고 행 생성"""
        await self.db.execute(
            """
            INSERT INTO personal_balance (person_id, main_savings_balance, validity_savings_balance)
            VALUES (?, '0.00', '0.00')
            """,
            (person_id,),
        )
        return PersonalBalance.zero(person_id)

    async def ensure_personal_balance(self, person_id: int) -> PersonalBalance:
        """개인 잔고 잠금 조회, 없으면 0으로 생성"""
        balance = await self.lock_personal_balance(person_id)
        if balance is None:
            balance = await self.insert_personal_balance(person_id)
            logger.debug(f"personal_balance created: person={person_id}")
        return balance

    async def credit_personal_balance(
        self,
        person_id: int,
        main_delta: Decimal = Decimal("0"),
        validity_delta: Decimal = Decimal("0"),
    ) -> PersonalBalance:
        """개인 잔고 증감

        호출자가 lock_personal_balance로 먼저 잠가야 함.

        Returns:
            갱신된 잔고
        """
        balance = await self.get_personal_balance(person_id)
        if balance is None:
            raise LookupError(f"personal_balance not found: person={person_id}")

        new_main = to_money(balance.main_savings_balance + main_delta)
        new_validity = to_money(balance.validity_savings_balance + validity_delta)

        await self.db.execute(
            """
            UPDATE personal_balance
            SET main_savings_balance = ?, validity_savings_balance = ?, updated_at = datetime('now')
            WHERE person_id = ?
            """,
            (str(new_main), str(new_validity), person_id),
        )

        return PersonalBalance(
            person_id=person_id,
            main_savings_balance=new_main,
            validity_savings_balance=new_validity,
        )

    # =========================================================================
    # daily_summary
    # =========================================================================

    async def lock_daily_summary(self, person_id: int, day: date) -> DailySummary | None:
        """일일 요약 잠금 조회"""
        row = await self.db.select_for_update(
            LockRank.DAILY_SUMMARY,
            (person_id, day.isoformat()),
            "SELECT * FROM daily_summary WHERE person_id = ? AND date = ?",
            (person_id, day.isoformat()),
        )
        return DailySummary.from_row(row) if row else None

    async def insert_daily_summary(self, person_id: int, day: date) -> DailySummary:
        """빈 일일 요약 생성"""
        cursor = await self.db.execute(
            """
            INSERT INTO daily_summary (person_id, date, validity_paid, units_count, fine_amount)
            VALUES (?, ?, 0, 0, '0.00')
            """,
            (person_id, day.isoformat()),
        )
        return DailySummary(
            id=int(cursor.lastrowid),
            person_id=person_id,
            date=day,
            validity_paid=False,
            units_count=0,
            fine_amount=Decimal("0.00"),
        )

    async def save_daily_summary(self, summary: DailySummary) -> None:
        """일일 요약 갱신"""
        await self.db.execute(
            """
            UPDATE daily_summary
            SET validity_paid = ?, units_count = ?, fine_amount = ?
            WHERE id = ?
            """,
            (
                1 if summary.validity_paid else 0,
                summary.units_count,
                _money_text(summary.fine_amount),
                summary.id,
            ),
        )

    async def total_units(self) -> int:
        """전체 일일 요약의 유닛 합계"""
        row = await self.db.fetchone("SELECT COALESCE(SUM(units_count), 0) FROM daily_summary")
        return int(row[0]) if row else 0

    # =========================================================================
    # group_pool
    # =========================================================================

    async def lock_group_pool(self, pool_type: PoolType) -> Decimal:
        """그룹 풀 잠금 조회

        Raises:
            LookupError: 풀이 시드되지 않은 경우
        """
        row = await self.db.select_for_update(
            LockRank.GROUP_POOL,
            pool_type.value,
            "SELECT balance FROM group_pool WHERE pool_type = ?",
            (pool_type.value,),
        )
        if row is None:
            raise LookupError(f"group_pool not initialized: {pool_type.value}")
        return Decimal(str(row["balance"]))

    async def credit_group_pool(self, pool_type: PoolType, delta: Decimal) -> Decimal:
        """그룹 풀 증감 (음수 = 차감)

        Returns:
            갱신된 풀 잔액
        """
        current = await self.lock_group_pool(pool_type)
        new_balance = to_money(current + delta)

        await self.db.execute(
            "UPDATE group_pool SET balance = ?, updated_at = datetime('now') WHERE pool_type = ?",
            (str(new_balance), pool_type.value),
        )
        return new_balance

    async def get_group_pools(self) -> dict[PoolType, Decimal]:
        """그룹 풀 잔액 전체 조회"""
        rows = await self.db.fetchall("SELECT pool_type, balance FROM group_pool")
        return {PoolType(row[0]): Decimal(str(row[1])) for row in rows}

    # =========================================================================
    # payment
    # =========================================================================

    async def insert_payment(
        self,
        person_id: int,
        payment_type: PaymentType,
        amount: Decimal,
        effective_date: date | None = None,
        borrowing_id: int | None = None,
    ) -> int:
        """납입 기록 추가 (append-only)"""
        cursor = await self.db.execute(
            """
            INSERT INTO payment (person_id, type, amount, effective_date, applied_to_borrowing_id)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                person_id,
                payment_type.value,
                _money_text(amount),
                effective_date.isoformat() if effective_date else None,
                borrowing_id,
            ),
        )
        return int(cursor.lastrowid)

    async def count_payments(self, person_id: int, payment_type: PaymentType) -> int:
        """유형별 납입 횟수"""
        row = await self.db.fetchone(
            "SELECT COUNT(*) FROM payment WHERE person_id = ? AND type = ?",
            (person_id, payment_type.value),
        )
        return int(row[0]) if row else 0

    # =========================================================================
    # borrowing
    # =========================================================================

    async def get_borrowing(self, borrowing_id: int) -> Borrowing | None:
        """대출 조회 (잠금 없음)"""
        row = await self.db.fetchone_dict(
            "SELECT * FROM borrowing WHERE id = ?",
            (borrowing_id,),
        )
        return Borrowing.from_row(row) if row else None

    async def lock_borrowing(self, borrowing_id: int) -> Borrowing | None:
        """대출 잠금 조회"""
        row = await self.db.select_for_update(
            LockRank.BORROWING,
            borrowing_id,
            "SELECT * FROM borrowing WHERE id = ?",
            (borrowing_id,),
        )
        return Borrowing.from_row(row) if row else None

    async def find_open_borrowing(self, person_id: int, pool_type: PoolType) -> Borrowing | None:
        """회원의 풀별 OPEN 대출 조회 (잠금 없음)"""
        row = await self.db.fetchone_dict(
            """
            SELECT * FROM borrowing
            WHERE person_id = ? AND pool_type = ? AND status = ?
            ORDER BY id
            LIMIT 1
            """,
            (person_id, pool_type.value, BorrowingStatus.OPEN.value),
        )
        return Borrowing.from_row(row) if row else None

    async def count_open_borrowings(self, person_id: int, pool_type: PoolType) -> int:
        """회원의 풀별 OPEN 대출 수"""
        row = await self.db.fetchone(
            "SELECT COUNT(*) FROM borrowing WHERE person_id = ? AND pool_type = ? AND status = ?",
            (person_id, pool_type.value, BorrowingStatus.OPEN.value),
        )
        return int(row[0]) if row else 0

    async def list_open_borrowings(self, person_id: int | None = None) -> list[Borrowing]:
        """OPEN 대출 목록 (잠금 없음, person_id 없으면 전체)"""
        if person_id is None:
            rows = await self.db.fetchall_dict(
                "SELECT * FROM borrowing WHERE status = ? ORDER BY id",
                (BorrowingStatus.OPEN.value,),
            )
        else:
            rows = await self.db.fetchall_dict(
                "SELECT * FROM borrowing WHERE person_id = ? AND status = ? ORDER BY id",
                (person_id, BorrowingStatus.OPEN.value),
            )
        return [Borrowing.from_row(row) for row in rows]

    async def lock_open_borrowings(self) -> list[Borrowing]:
        """모든 OPEN 대출 잠금 조회 (id 순)"""
        borrowings = []
        for candidate in await self.list_open_borrowings():
            locked = await self.lock_borrowing(candidate.id)
            if locked is not None and locked.status == BorrowingStatus.OPEN:
                borrowings.append(locked)
        return borrowings

    async def insert_borrowing(
        self,
        person_id: int,
        pool_type: PoolType,
        principal: Decimal,
        profit: Decimal,
        outstanding: Decimal,
        due_date: date,
        created_at: datetime,
    ) -> int:
        """OPEN 대출 생성

        Returns:
            생성된 borrowing_id
        """
        cursor = await self.db.execute(
            """
            INSERT INTO borrowing (
                person_id, pool_type, principal, initial_profit_amount,
                outstanding_amount, status, due_date, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                person_id,
                pool_type.value,
                _money_text(principal),
                _money_text(profit),
                _money_text(outstanding),
                BorrowingStatus.OPEN.value,
                due_date.isoformat(),
                created_at.isoformat(),
            ),
        )
        return int(cursor.lastrowid)

    async def record_borrowing_payment(
        self,
        borrowing_id: int,
        outstanding: Decimal,
        status: BorrowingStatus,
        paid_at: datetime,
    ) -> None:
        """상환 반영 (미상환액, 상태, 마지막 상환 시각)"""
        await self.db.execute(
            """
            UPDATE borrowing
            SET outstanding_amount = ?, status = ?, last_payment_at = ?
            WHERE id = ?
            """,
            (_money_text(outstanding), status.value, paid_at.isoformat(), borrowing_id),
        )

    async def record_borrowing_penalty(
        self,
        borrowing_id: int,
        outstanding: Decimal,
        applied_at: datetime,
    ) -> None:
        """연체 이자 반영"""
        await self.db.execute(
            """
            UPDATE borrowing
            SET outstanding_amount = ?, last_penalty_applied_at = ?
            WHERE id = ?
            """,
            (_money_text(outstanding), applied_at.isoformat(), borrowing_id),
        )

    # =========================================================================
    # transaction_log
    # =========================================================================

    async def append_log(
        self,
        person_id: int | None,
        transaction_type: TransactionType,
        details: dict[str, Any],
        amount: Decimal,
        created_at: datetime,
        snapshot: BalanceSnapshot | None = None,
    ) -> int:
        """거래 로그 추가 (append-only)

        Args:
            person_id: 회원 ID (None = 시스템 이벤트)
            transaction_type: 로그 유형
            details: 구조화된 상세 (JSON 저장)
            amount: 금액
            created_at: 기록 시각
            snapshot: 커밋 시점 잔고 스냅샷

        Returns:
            로그 ID
        """
        snapshot = snapshot or BalanceSnapshot()
        cursor = await self.db.execute(
            """
            INSERT INTO transaction_log (
                person_id, transaction_type, details, amount,
                resulting_person_main_balance, resulting_person_validity_balance,
                resulting_group_main_balance, resulting_group_validity_balance,
                created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                person_id,
                transaction_type.value,
                json.dumps(details, default=str),
                _money_text(amount),
                _money_text(snapshot.person_main),
                _money_text(snapshot.person_validity),
                _money_text(snapshot.group_main),
                _money_text(snapshot.group_validity),
                created_at.isoformat(),
            ),
        )
        return int(cursor.lastrowid)

    async def get_transactions(
        self,
        person_id: int,
        limit: int = Defaults.TRANSACTIONS_LIMIT,
    ) -> list[dict[str, Any]]:
        """회원 거래 로그 조회 (최신순)"""
        rows = await self.db.fetchall_dict(
            """
            SELECT
                id, transaction_type, details, amount,
                resulting_person_main_balance, resulting_person_validity_balance,
                resulting_group_main_balance, resulting_group_validity_balance,
                created_at
            FROM transaction_log
            WHERE person_id = ?
            ORDER BY created_at DESC, id DESC
            LIMIT ?
            """,
            (person_id, limit),
        )
        for row in rows:
            row["details"] = json.loads(row["details"]) if row["details"] else None
        return rows

    async def get_system_logs(self) -> list[dict[str, Any]]:
        """시스템 로그 (person_id NULL) 조회"""
        rows = await self.db.fetchall_dict(
            """
            SELECT id, transaction_type, details, amount, created_at
            FROM transaction_log
            WHERE person_id IS NULL
            ORDER BY id
            """
        )
        for row in rows:
            row["details"] = json.loads(row["details"]) if row["details"] else None
        return rows

    # =========================================================================
    # 관리자 정리
    # =========================================================================

    async def delete_person_rows(self, table: str, person_id: int) -> int:
        """회원 종속 행 삭제

        Returns:
            삭제된 행 수
        """
        cursor = await self.db.execute(
            f"DELETE FROM {table} WHERE person_id = ?",
            (person_id,),
        )
        return cursor.rowcount

    async def delete_person(self, person_id: int) -> None:
        """회원 행 삭제"""
        await self.db.execute("DELETE FROM person WHERE id = ?", (person_id,))

    async def clear_table(self, table: str) -> None:
        """테이블 전체 삭제"""
        await self.db.execute(f"DELETE FROM {table}")

    async def zero_all_balances(self) -> None:
        """모든 개인 잔고와 그룹 풀을 0으로"""
        await self.db.execute(
            """
            UPDATE personal_balance
            SET main_savings_balance = '0.00', validity_savings_balance = '0.00',
                updated_at = datetime('now')
            """
        )
        await self.db.execute(
            "UPDATE group_pool SET balance = '0.00', updated_at = datetime('now')"
        )
