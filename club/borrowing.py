"""
Borrowing Operations

대출 실행, 부분 상환, 전액 상환.

잠금 순서:
- borrow: personal_balance → group_pool
- repay / pay_full: group_pool → borrowing
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any

from club.authority import AdminAuthority
from core.domain.results import LedgerErrorKind, Outcome
from core.domain.state_machines import BorrowingStateMachine
from core.ledger.store import BalanceStore
from core.ledger.types import BalanceSnapshot, Borrowing, TransactionType
from core.types import BorrowingStatus, LedgerRules, PaymentType, PoolType, to_money
from core.utils.timezone import Clock, now_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BorrowResult:
    """대출 실행 결과"""

    borrowing_id: int
    pool_type: PoolType
    principal: Decimal
    profit: Decimal
    outstanding: Decimal
    due_date: date
    admin_override: bool
    group_balance: Decimal


@dataclass(frozen=True)
class RepayResult:
    """부분 상환 결과"""

    borrowing_id: int
    new_outstanding: Decimal
    status: BorrowingStatus
    group_balance: Decimal


@dataclass(frozen=True)
class PayFullResult:
    """전액 상환 결과"""

    borrowing_id: int
    paid_amount: Decimal
    group_balance: Decimal


def parse_pool_type(value: Any) -> PoolType | None:
    """풀 종류 파싱 (잘못된 값이면 None)"""
    try:
        return PoolType(value)
    except ValueError:
        return None


def parse_amount(value: Any) -> Decimal | None:
    """양수 금액 파싱 (2자리 반올림, 0 이하/숫자 아님이면 None)"""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = to_money(value)
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    return amount


def _pool_snapshot(pool_type: PoolType, balance: Decimal) -> BalanceSnapshot:
    """해당 풀의 스냅샷만 기록"""
    if pool_type == PoolType.MAIN:
        return BalanceSnapshot(group_main=balance)
    return BalanceSnapshot(group_validity=balance)


class BorrowingOperations:
    """Borrowing Operations

    Args:
        store: Balance Store
        rules: 장부 규칙
        authority: 관리자 override 자격 증명 검사기
        clock: UTC 시계
    """

    def __init__(
        self,
        store: BalanceStore,
        rules: LedgerRules,
        authority: AdminAuthority,
        clock: Clock = now_utc,
    ):
        self.store = store
        self.rules = rules
        self.authority = authority
        self.clock = clock

    async def borrow(
        self,
        person_id: int,
        pool_type: PoolType | str,
        amount: Decimal | int | str,
        admin_override: bool = False,
        credential: str | None = None,
    ) -> Outcome[BorrowResult]:
        """대출 실행

        override는 자격 요건 3가지(적립 횟수, 미결 대출, 한도)를 건너뛰지만
        그룹 풀 잔액 검사는 항상 적용.
        """
        pool = parse_pool_type(pool_type)
        if pool is None:
            return Outcome.fail(
                LedgerErrorKind.INVALID_POOL_TYPE,
                "pool_type must be MAIN or VALIDITY",
                pool_type=pool_type,
            )

        principal = parse_amount(amount)
        if principal is None:
            return Outcome.fail(LedgerErrorKind.INVALID_AMOUNT, "amount must be > 0", amount=amount)

        balance = await self.store.lock_personal_balance(person_id)
        if balance is None:
            return Outcome.fail(
                LedgerErrorKind.NO_PERSONAL_BALANCE,
                f"personal balance not found for person {person_id}",
            )

        group_balance = await self.store.lock_group_pool(pool)

        if admin_override and not self.authority.verify(credential):
            return Outcome.fail(
                LedgerErrorKind.BAD_CREDENTIAL,
                "admin credential required/invalid for override",
            )

        if not admin_override:
            failure = await self._check_eligibility(person_id, pool, principal, balance.balance_for(pool))
            if failure is not None:
                return failure

        if principal > group_balance:
            return Outcome.fail(
                LedgerErrorKind.INSUFFICIENT_GROUP_FUNDS,
                f"insufficient funds in group pool: available {group_balance}",
                available=group_balance,
            )

        now = self.clock()
        profit = to_money(principal * self.rules.borrow_interest_rate)
        outstanding = to_money(principal + profit)
        due_date = now.date() + timedelta(days=self.rules.period_days(pool))

        borrowing_id = await self.store.insert_borrowing(
            person_id=person_id,
            pool_type=pool,
            principal=principal,
            profit=profit,
            outstanding=outstanding,
            due_date=due_date,
            created_at=now,
        )

        # 원금만 차감 (이자는 채권으로 남음)
        new_group_balance = await self.store.credit_group_pool(pool, -principal)

        await self.store.append_log(
            person_id=person_id,
            transaction_type=TransactionType.BORROW,
            details={
                "poolType": pool.value,
                "principal": str(principal),
                "profit": str(profit),
                "borrowingId": borrowing_id,
                "adminOverride": admin_override,
            },
            amount=principal,
            created_at=now,
            snapshot=_pool_snapshot(pool, new_group_balance),
        )

        logger.info(
            "대출 실행",
            extra={
                "person_id": person_id,
                "borrowing_id": borrowing_id,
                "pool_type": pool.value,
                "principal": str(principal),
                "admin_override": admin_override,
            },
        )

        return Outcome.ok(
            BorrowResult(
                borrowing_id=borrowing_id,
                pool_type=pool,
                principal=principal,
                profit=profit,
                outstanding=outstanding,
                due_date=due_date,
                admin_override=admin_override,
                group_balance=new_group_balance,
            )
        )

    async def _check_eligibility(
        self,
        person_id: int,
        pool: PoolType,
        principal: Decimal,
        personal_balance: Decimal,
    ) -> Outcome[BorrowResult] | None:
        """대출 자격 검사 (통과하면 None)"""
        saved_count = await self.store.count_payments(person_id, PaymentType.UNIT)
        if saved_count < self.rules.min_unit_payments_to_borrow:
            return Outcome.fail(
                LedgerErrorKind.INSUFFICIENT_SAVED_COUNT,
                f"borrow denied: must have saved at least {self.rules.min_unit_payments_to_borrow} times",
                saved_count=saved_count,
            )

        if await self.store.count_open_borrowings(person_id, pool) > 0:
            return Outcome.fail(
                LedgerErrorKind.OPEN_DEBT_EXISTS,
                f"cannot borrow from {pool.value} while an open {pool.value} debt exists",
            )

        allowed_limit = to_money(personal_balance * self.rules.borrow_limit_ratio)
        if principal > allowed_limit:
            return Outcome.fail(
                LedgerErrorKind.LIMIT_EXCEEDED,
                "requested amount exceeds allowed limit",
                allowed_limit=allowed_limit,
            )

        return None

    async def repay(
        self,
        person_id: int,
        borrowing_id: int,
        amount: Decimal | int | str,
    ) -> Outcome[RepayResult]:
        """부분 상환

        미상환액을 넘는 상환은 OVERPAYMENT (실제 미상환액을 details에 포함).
        """
        paid = parse_amount(amount)
        if paid is None:
            return Outcome.fail(LedgerErrorKind.INVALID_AMOUNT, "amount must be > 0", amount=amount)

        # 풀 종류 확인용 선조회 후 group_pool → borrowing 순서로 잠금
        candidate = await self.store.get_borrowing(borrowing_id)
        if candidate is None:
            return Outcome.fail(LedgerErrorKind.NOT_FOUND, f"borrowing not found: {borrowing_id}")

        await self.store.lock_group_pool(candidate.pool_type)
        borrowing = await self.store.lock_borrowing(borrowing_id)
        if borrowing is None:
            return Outcome.fail(LedgerErrorKind.NOT_FOUND, f"borrowing not found: {borrowing_id}")

        if borrowing.person_id != person_id:
            return Outcome.fail(
                LedgerErrorKind.NOT_OWNER,
                "borrowing does not belong to this person",
            )

        if borrowing.status != BorrowingStatus.OPEN:
            return Outcome.fail(LedgerErrorKind.NOT_OPEN, "borrowing is not open")

        if paid > borrowing.outstanding_amount:
            return Outcome.fail(
                LedgerErrorKind.OVERPAYMENT,
                f"payment exceeds outstanding amount. outstanding is {borrowing.outstanding_amount}",
                outstanding=borrowing.outstanding_amount,
            )

        new_outstanding = to_money(borrowing.outstanding_amount - paid)
        new_status = BorrowingStatus.PAID if new_outstanding == 0 else BorrowingStatus.OPEN

        group_balance = await self._settle(
            borrowing=borrowing,
            paid=paid,
            new_outstanding=new_outstanding,
            new_status=new_status,
            details={"borrowingId": borrowing.id, "partialPayment": str(paid)},
        )

        return Outcome.ok(
            RepayResult(
                borrowing_id=borrowing.id,
                new_outstanding=new_outstanding,
                status=new_status,
                group_balance=group_balance,
            )
        )

    async def pay_full(
        self,
        person_id: int,
        pool_type: PoolType | str,
    ) -> Outcome[PayFullResult]:
        """해당 풀의 OPEN 대출 전액 상환"""
        pool = parse_pool_type(pool_type)
        if pool is None:
            return Outcome.fail(
                LedgerErrorKind.INVALID_POOL_TYPE,
                "pool_type must be MAIN or VALIDITY",
                pool_type=pool_type,
            )

        await self.store.lock_group_pool(pool)

        candidate = await self.store.find_open_borrowing(person_id, pool)
        borrowing = await self.store.lock_borrowing(candidate.id) if candidate else None
        if borrowing is None or borrowing.status != BorrowingStatus.OPEN:
            return Outcome.fail(
                LedgerErrorKind.NOT_FOUND,
                f"no open borrowing found for pool {pool.value}",
            )

        paid = borrowing.outstanding_amount
        group_balance = await self._settle(
            borrowing=borrowing,
            paid=paid,
            new_outstanding=Decimal("0.00"),
            new_status=BorrowingStatus.PAID,
            details={"borrowingId": borrowing.id, "fullPay": True},
        )

        return Outcome.ok(
            PayFullResult(
                borrowing_id=borrowing.id,
                paid_amount=paid,
                group_balance=group_balance,
            )
        )

    async def _settle(
        self,
        borrowing: Borrowing,
        paid: Decimal,
        new_outstanding: Decimal,
        new_status: BorrowingStatus,
        details: dict[str, Any],
    ) -> Decimal:
        """상환 반영 (대출, 풀, 납입, 로그)

        Returns:
            갱신된 그룹 풀 잔액
        """
        BorrowingStateMachine(borrowing.status).transition(new_status)

        now = self.clock()
        await self.store.record_borrowing_payment(
            borrowing.id,
            outstanding=new_outstanding,
            status=new_status,
            paid_at=now,
        )

        group_balance = await self.store.credit_group_pool(borrowing.pool_type, paid)

        await self.store.insert_payment(
            borrowing.person_id,
            PaymentType.DEBT_PAYMENT,
            paid,
            borrowing_id=borrowing.id,
        )
        await self.store.append_log(
            person_id=borrowing.person_id,
            transaction_type=TransactionType.REPAYMENT,
            details=details,
            amount=paid,
            created_at=now,
            snapshot=_pool_snapshot(borrowing.pool_type, group_balance),
        )

        logger.info(
            "상환 반영",
            extra={
                "borrowing_id": borrowing.id,
                "paid": str(paid),
                "outstanding": str(new_outstanding),
                "status": new_status.value,
            },
        )
        return group_balance
