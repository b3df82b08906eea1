"""
조회 통합 테스트
"""

from decimal import Decimal

import pytest

from club.engine import LedgerEngine
from core.types import PoolType


class TestQueries:
    """LedgerQueries (엔진 경유)"""

    @pytest.mark.asyncio
    async def test_list_people_sorted_by_name(self, engine: LedgerEngine, admin_secret: str) -> None:
        for name in ("Zoe", "Adam", "Mia"):
            await engine.create_member(name, admin_secret)

        people = await engine.list_people()

        assert [p.name for p in people] == ["Adam", "Mia", "Zoe"]

    @pytest.mark.asyncio
    async def test_person_meta_counts_unit_payments(self, engine: LedgerEngine, member: int, clock) -> None:
        """유효성 회비는 적립 횟수에 포함 안 됨"""
        await engine.save_units(member, 1, pay_validity=True)
        clock.advance(days=1)
        await engine.save_units(member, 2, pay_validity=False)
        clock.advance(days=1)
        await engine.save_units(member, 0, pay_validity=True)

        meta = await engine.get_person_meta(member)

        assert meta.person_id == member
        assert meta.saved_count == 2

    @pytest.mark.asyncio
    async def test_person_balance_with_open_borrowings(self, engine: LedgerEngine, member: int, seed) -> None:
        await seed.make_eligible(member)
        await engine.borrow(member, "MAIN", "300")

        view = await engine.get_person_balance(member)

        assert view.balance.main_savings_balance == Decimal("1000.00")
        assert len(view.open_borrowings) == 1
        assert view.open_borrowings[0].outstanding_amount == Decimal("330.00")
        assert view.group_pools[PoolType.MAIN] == Decimal("4700.00")

    @pytest.mark.asyncio
    async def test_person_balance_missing_row_is_zero(self, engine: LedgerEngine) -> None:
        """잔고 행이 없으면 0"""
        view = await engine.get_person_balance(424242)

        assert view.balance.main_savings_balance == Decimal("0")
        assert view.balance.validity_savings_balance == Decimal("0")
        assert view.open_borrowings == []

    @pytest.mark.asyncio
    async def test_transactions_newest_first_with_limit(self, engine: LedgerEngine, member: int, clock) -> None:
        for _ in range(3):
            clock.advance(days=1)
            await engine.save_units(member, 1, pay_validity=False)

        logs = await engine.get_transactions(member, limit=2)

        assert len(logs) == 2
        assert logs[0]["created_at"] > logs[1]["created_at"]
        assert logs[0]["details"]["date"] == "2026-03-18"
