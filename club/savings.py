"""
Savings Operations

유닛 적립, 유효성 회비, 소급 입력(벌금 포함).

잠금 순서: person → personal_balance → daily_summary → group_pool
모든 메서드는 LedgerEngine이 연 트랜잭션 안에서 실행됨.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from core.domain.results import LedgerErrorKind, Outcome
from core.ledger.store import BalanceStore
from core.ledger.types import BalanceSnapshot, DailySummary, TransactionType
from core.types import LedgerRules, PaymentType, PoolType, to_money
from core.utils.timezone import Clock, now_utc

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class SavingResult:
    """적립 결과

    Attributes:
        date: 적용된 날짜
        applied_units: 실제 적용된 유닛 수
        units_amount: 유닛 금액
        validity_amount: 유효성 회비 (0 또는 VALIDITY_FEE)
        fine_amount: 소급 입력 벌금 (save_units는 항상 0)
        person_main: 적용 후 개인 MAIN 잔고
        person_validity: 적용 후 개인 VALIDITY 잔고
        group_pools: 적용 후 그룹 풀 잔액
    """

    date: date
    applied_units: int
    units_amount: Decimal
    validity_amount: Decimal
    fine_amount: Decimal
    person_main: Decimal
    person_validity: Decimal
    group_pools: dict[PoolType, Decimal] = field(default_factory=dict)

    @property
    def total_amount(self) -> Decimal:
        """적용된 총액"""
        return to_money(self.units_amount + self.validity_amount + self.fine_amount)

    @property
    def applied_anything(self) -> bool:
        return self.total_amount > 0


class SavingsOperations:
    """Savings Operations

    Args:
        store: Balance Store
        rules: 장부 규칙
        clock: UTC 시계 (테스트에서 고정 시각 주입)
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

    def _units_in_range(self, units: int) -> bool:
        return isinstance(units, int) and not isinstance(units, bool) and 0 <= units <= self.rules.daily_unit_cap

    async def save_units(
        self,
        person_id: int,
        units: int,
        pay_validity: bool,
        effective_date: date | None = None,
    ) -> Outcome[SavingResult]:
        """유닛 적립 및 유효성 회비 납부

        - 유효성 회비는 일일 요약당 1회. 이미 납부했으면 조용히 건너뜀.
        - 유닛 합계가 일일 상한을 넘으면 DAILY_CAP_EXCEEDED (아무것도 적용 안 됨).
        - 적용된 것이 있을 때만 SAVING 로그 1건.
        """
        if not self._units_in_range(units):
            return Outcome.fail(
                LedgerErrorKind.INVALID_UNITS,
                f"units must be between 0 and {self.rules.daily_unit_cap}",
                units=units,
            )

        if await self.store.lock_person(person_id) is None:
            return Outcome.fail(LedgerErrorKind.PERSON_NOT_FOUND, f"person not found: {person_id}")

        now = self.clock()
        day = effective_date or now.date()

        await self.store.ensure_personal_balance(person_id)
        summary = await self._lock_or_create_summary(person_id, day)

        if summary.units_count + units > self.rules.daily_unit_cap:
            return Outcome.fail(
                LedgerErrorKind.DAILY_CAP_EXCEEDED,
                f"daily unit cap exceeded (max {self.rules.daily_unit_cap} units per day)",
                units_count=summary.units_count,
                requested=units,
            )

        result = await self._apply(
            person_id=person_id,
            summary=summary,
            units=units,
            pay_validity=pay_validity,
            fine=ZERO,
        )

        if result.applied_anything:
            await self.store.append_log(
                person_id=person_id,
                transaction_type=TransactionType.SAVING,
                details={
                    "date": day.isoformat(),
                    "appliedUnits": result.applied_units,
                    "appliedValidity": str(result.validity_amount),
                },
                amount=result.total_amount,
                created_at=now,
                snapshot=_snapshot(result),
            )
            logger.info(
                "적립 완료",
                extra={
                    "person_id": person_id,
                    "date": day.isoformat(),
                    "units": result.applied_units,
                    "validity": str(result.validity_amount),
                },
            )
        else:
            logger.debug(f"적립 변경 없음: person={person_id}, date={day}")

        return Outcome.ok(result)

    async def retroactive_fill(
        self,
        person_id: int,
        target_date: date,
        add_units: int,
        pay_validity_if_missing: bool,
    ) -> Outcome[SavingResult]:
        """과거 날짜 소급 입력

        유닛을 추가하는 경우 고정 벌금을 MAIN 풀에 적립하고
        FINE 납입/로그를 별도로 남김.
        """
        now = self.clock()

        if target_date >= now.date():
            return Outcome.fail(
                LedgerErrorKind.DATE_NOT_PAST,
                "date must be in the past for retroactive fill",
                date=target_date.isoformat(),
            )

        if not self._units_in_range(add_units):
            return Outcome.fail(
                LedgerErrorKind.INVALID_UNITS,
                f"add_units must be between 0 and {self.rules.daily_unit_cap}",
                add_units=add_units,
            )

        if add_units == 0 and not pay_validity_if_missing:
            return Outcome.fail(LedgerErrorKind.NO_CHANGE_REQUESTED, "no changes requested")

        if await self.store.lock_person(person_id) is None:
            return Outcome.fail(LedgerErrorKind.PERSON_NOT_FOUND, f"person not found: {person_id}")

        await self.store.ensure_personal_balance(person_id)
        summary = await self._lock_or_create_summary(person_id, target_date)

        if summary.units_count + add_units > self.rules.daily_unit_cap:
            return Outcome.fail(
                LedgerErrorKind.UNITS_CAP_EXCEEDED,
                f"resulting units would exceed daily cap ({self.rules.daily_unit_cap})",
                units_count=summary.units_count,
                requested=add_units,
            )

        fine = self.rules.fine_amount if add_units > 0 else ZERO

        result = await self._apply(
            person_id=person_id,
            summary=summary,
            units=add_units,
            pay_validity=pay_validity_if_missing,
            fine=fine,
        )

        if fine > 0:
            await self.store.insert_payment(person_id, PaymentType.FINE, fine, effective_date=target_date)
            await self.store.append_log(
                person_id=person_id,
                transaction_type=TransactionType.FINE,
                details={"date": target_date.isoformat()},
                amount=fine,
                created_at=now,
                snapshot=BalanceSnapshot(group_main=result.group_pools[PoolType.MAIN]),
            )

        if result.applied_anything:
            await self.store.append_log(
                person_id=person_id,
                transaction_type=TransactionType.SAVING,
                details={
                    "date": target_date.isoformat(),
                    "appliedUnits": result.applied_units,
                    "appliedUnitsAmount": str(result.units_amount),
                    "appliedValidityAmount": str(result.validity_amount),
                    "fineToCharge": str(result.fine_amount),
                },
                amount=result.total_amount,
                created_at=now,
                snapshot=_snapshot(result),
            )

        logger.info(
            "소급 입력 완료",
            extra={
                "person_id": person_id,
                "date": target_date.isoformat(),
                "units": result.applied_units,
                "fine": str(fine),
            },
        )
        return Outcome.ok(result)

    # =========================================================================
    # 내부
    # =========================================================================

    async def _lock_or_create_summary(self, person_id: int, day: date) -> DailySummary:
        summary = await self.store.lock_daily_summary(person_id, day)
        if summary is None:
            summary = await self.store.insert_daily_summary(person_id, day)
        return summary

    async def _apply(
        self,
        person_id: int,
        summary: DailySummary,
        units: int,
        pay_validity: bool,
        fine: Decimal,
    ) -> SavingResult:
        """검증을 통과한 적립을 일일 요약/잔고/풀/납입에 반영"""
        validity_amount = (
            to_money(self.rules.validity_fee)
            if pay_validity and not summary.validity_paid
            else ZERO
        )
        units_amount = self.rules.units_amount(units) if units > 0 else ZERO

        summary.units_count += units
        summary.fine_amount = to_money(summary.fine_amount + fine)
        if validity_amount > 0:
            summary.validity_paid = True
        await self.store.save_daily_summary(summary)

        balance = await self.store.credit_personal_balance(
            person_id,
            main_delta=units_amount,
            validity_delta=validity_amount,
        )

        pools = await self.store.get_group_pools()

        if validity_amount > 0:
            pools[PoolType.VALIDITY] = await self.store.credit_group_pool(PoolType.VALIDITY, validity_amount)
            await self.store.insert_payment(
                person_id, PaymentType.VALIDITY, validity_amount, effective_date=summary.date
            )

        if units_amount > 0:
            pools[PoolType.MAIN] = await self.store.credit_group_pool(PoolType.MAIN, units_amount)
            await self.store.insert_payment(
                person_id, PaymentType.UNIT, units_amount, effective_date=summary.date
            )

        if fine > 0:
            pools[PoolType.MAIN] = await self.store.credit_group_pool(PoolType.MAIN, fine)

        return SavingResult(
            date=summary.date,
            applied_units=units,
            units_amount=units_amount,
            validity_amount=validity_amount,
            fine_amount=fine,
            person_main=balance.main_savings_balance,
            person_validity=balance.validity_savings_balance,
            group_pools=pools,
        )


def _snapshot(result: SavingResult) -> BalanceSnapshot:
    return BalanceSnapshot(
        person_main=result.person_main,
        person_validity=result.person_validity,
        group_main=result.group_pools.get(PoolType.MAIN),
        group_validity=result.group_pools.get(PoolType.VALIDITY),
    )
