"""
Penalty Sweep 통합 테스트
"""

from decimal import Decimal

import pytest

from adapters.mock.notifier import MockNotifier
from club.engine import LedgerEngine
from core.types import ChangeType


class TestPenaltySweep:
    """run_penalties"""

    @pytest.mark.asyncio
    async def test_two_periods_compound(
        self, engine: LedgerEngine, member: int, seed, clock, notifier: MockNotifier
    ) -> None:
        """만기 후 61일 → 2기간 복리: 1100 → 1331.00"""
        await seed.make_eligible(member)
        borrowing_id = (await engine.borrow(member, "MAIN", "1000")).unwrap().borrowing_id
        notifier.clear()

        clock.advance(days=91)
        outcome = await engine.run_penalties()

        assert outcome.is_ok
        result = outcome.unwrap()
        assert result.penalized == 1
        assert result.borrowing_ids == [borrowing_id]
        assert result.person_ids == [member]

        borrowing = await engine.store.get_borrowing(borrowing_id)
        assert borrowing.outstanding_amount == Decimal("1331.00")
        assert borrowing.last_penalty_applied_at == clock()

        logs = [log for log in await engine.get_transactions(member) if log["transaction_type"] == "PENALTY"]
        assert logs[0]["amount"] == "231.00"
        assert logs[0]["details"]["periods"] == 2

        assert notifier.changes_for(member) == [ChangeType.PENALTY]

    @pytest.mark.asyncio
    async def test_rerun_same_period_is_noop(self, engine: LedgerEngine, member: int, seed, clock) -> None:
        """같은 기간 안에서 재실행하면 변화 없음"""
        await seed.make_eligible(member)
        borrowing_id = (await engine.borrow(member, "MAIN", "1000")).unwrap().borrowing_id
        clock.advance(days=91)
        await engine.run_penalties()

        clock.advance(days=29)
        second = await engine.run_penalties()

        assert second.unwrap().penalized == 0
        assert (await engine.store.get_borrowing(borrowing_id)).outstanding_amount == Decimal("1331.00")

        clock.advance(days=1)
        third = await engine.run_penalties()

        assert third.unwrap().penalized == 1
        assert (await engine.store.get_borrowing(borrowing_id)).outstanding_amount == Decimal("1464.10")

    @pytest.mark.asyncio
    async def test_not_yet_due(self, engine: LedgerEngine, member: int, seed, clock) -> None:
        """만기 전 / 기간 미달"""
        await seed.make_eligible(member)
        borrowing_id = (await engine.borrow(member, "MAIN", "1000")).unwrap().borrowing_id

        clock.advance(days=59)
        outcome = await engine.run_penalties()

        assert outcome.unwrap().penalized == 0
        assert (await engine.store.get_borrowing(borrowing_id)).outstanding_amount == Decimal("1100.00")

    @pytest.mark.asyncio
    async def test_paid_borrowing_ignored(self, engine: LedgerEngine, member: int, seed, clock) -> None:
        """PAID 대출은 대상 아님"""
        await seed.make_eligible(member)
        await engine.borrow(member, "MAIN", "1000")
        await engine.pay_full(member, "MAIN")

        clock.advance(days=200)
        outcome = await engine.run_penalties()

        assert outcome.unwrap().penalized == 0

    @pytest.mark.asyncio
    async def test_validity_weekly_period(self, engine: LedgerEngine, member: int, seed, clock) -> None:
        """VALIDITY 풀은 7일 기간"""
        await seed.make_eligible(member, validity="1000.00")
        borrowing_id = (await engine.borrow(member, "VALIDITY", "100")).unwrap().borrowing_id

        # 만기 03-22, 03-29 09:00 → 7일 경과 → 1기간
        clock.advance(days=14)
        await engine.run_penalties()

        assert (await engine.store.get_borrowing(borrowing_id)).outstanding_amount == Decimal("121.00")
