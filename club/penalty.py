"""
Penalty Sweep

연체된 OPEN 대출에 기간 단위 복리 연체 이자 적용.

- 만기일 00:00 UTC 이전이면 건너뜀
- 기준 시각 = max(만기일, 마지막 적용 시각)
- 완료된 기간 수만큼 (1 + rate)^n 복리, 반올림은 마지막에 한 번
- 같은 기간 안에서 재실행해도 추가 이자 없음
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal

from core.domain.results import Outcome
from core.domain.state_machines import BorrowingStateMachine
from core.ledger.store import BalanceStore
from core.ledger.types import Borrowing, TransactionType
from core.types import BorrowingStatus, LedgerRules, to_money
from core.utils.timezone import Clock, ensure_utc, now_utc, start_of_day_utc

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def full_periods_elapsed(
    now: datetime,
    due_date: date,
    last_applied_at: datetime | None,
    period_days: int,
) -> int:
    """연체 이자를 적용할 완료 기간 수

    Args:
        now: 현재 시각 (UTC)
        due_date: 만기일
        last_applied_at: 마지막 연체 이자 적용 시각
        period_days: 풀별 기간 (일)

    Returns:
        완료 기간 수 (만기 전이거나 기간 미달이면 0)

    Example:
        >>> full_periods_elapsed(datetime(2026, 3, 3, tzinfo=timezone.utc), date(2026, 1, 1), None, 30)
        2
    """
    now = ensure_utc(now)
    due = start_of_day_utc(due_date)
    if now <= due:
        return 0

    base = due
    if last_applied_at is not None:
        base = max(due, ensure_utc(last_applied_at))

    days_since = (now - base) // ONE_DAY
    if days_since <= 0 or period_days <= 0:
        return 0
    return days_since // period_days


def compound_outstanding(outstanding: Decimal, rate: Decimal, periods: int) -> Decimal:
    """기간 복리 적용 (반올림 1회)

    Example:
        >>> compound_outstanding(Decimal("1100.00"), Decimal("0.10"), 2)
        Decimal('1331.00')
    """
    if periods <= 0:
        return to_money(outstanding)
    return to_money(outstanding * (Decimal("1") + rate) ** periods)


@dataclass(frozen=True)
class PenaltyRunResult:
    """연체 스윕 결과"""

    penalized: int
    person_ids: list[int] = field(default_factory=list)
    borrowing_ids: list[int] = field(default_factory=list)


class PenaltySweep:
    """Penalty Sweep

    Args:
        store: Balance Store
        rules: 장부 규칙
        clock: UTC 시계 (단일 시계로 만기/적용 시각 모두 계산)
    """

    def __init__(
        self,
        store: BalanceStore,
        rules: LedgerRules,
        clock: Clock = now_utc,
    ):
        self.store = store
        self.rules = rules
        self.clock = clock

    async def run(self) -> Outcome[PenaltyRunResult]:
        """모든 OPEN 대출 잠금 후 연체 이자 적용"""
        now = self.clock()
        person_ids: list[int] = []
        borrowing_ids: list[int] = []

        for borrowing in await self.store.lock_open_borrowings():
            periods = full_periods_elapsed(
                now,
                borrowing.due_date,
                borrowing.last_penalty_applied_at,
                self.rules.period_days(borrowing.pool_type),
            )
            if periods <= 0:
                continue

            await self._apply(borrowing, periods, now)
            borrowing_ids.append(borrowing.id)
            if borrowing.person_id not in person_ids:
                person_ids.append(borrowing.person_id)

        if borrowing_ids:
            logger.info(
                "연체 이자 스윕 완료",
                extra={"penalized": len(borrowing_ids)},
            )
        else:
            logger.debug("연체 이자 스윕: 적용 대상 없음")

        return Outcome.ok(
            PenaltyRunResult(
                penalized=len(borrowing_ids),
                person_ids=person_ids,
                borrowing_ids=borrowing_ids,
            )
        )

    async def _apply(self, borrowing: Borrowing, periods: int, now: datetime) -> None:
        BorrowingStateMachine(borrowing.status).transition(BorrowingStatus.OPEN)

        original = borrowing.outstanding_amount
        new_outstanding = compound_outstanding(original, self.rules.penalty_rate, periods)
        delta = to_money(new_outstanding - original)

        await self.store.record_borrowing_penalty(
            borrowing.id,
            outstanding=new_outstanding,
            applied_at=now,
        )
        await self.store.append_log(
            person_id=borrowing.person_id,
            transaction_type=TransactionType.PENALTY,
            details={"borrowingId": borrowing.id, "periods": periods},
            amount=delta,
            created_at=now,
        )

        logger.info(
            f"연체 이자 적용: borrowing={borrowing.id}",
            extra={
                "borrowing_id": borrowing.id,
                "periods": periods,
                "outstanding_before": str(original),
                "outstanding_after": str(new_outstanding),
            },
        )
