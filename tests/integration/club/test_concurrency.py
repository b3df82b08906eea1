"""
동시 실행 통합 테스트

쓰기 직렬화, 진행 중 트랜잭션과 조회 격리
"""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from club.engine import LedgerEngine
from core.domain.results import LedgerErrorKind
from core.types import PoolType


class TestReadIsolation:
    """조회는 커밋된 상태만 읽음"""

    @pytest.mark.asyncio
    async def test_reads_wait_for_stalled_write(self, engine: LedgerEngine, member: int) -> None:
        """쓰기 도중 조회 → 대기 후 롤백된 상태를 읽음"""
        started = asyncio.Event()
        release = asyncio.Event()

        async def stalled(*args, **kwargs):
            started.set()
            await release.wait()
            raise RuntimeError("disk full")

        with patch.object(engine.store, "append_log", AsyncMock(side_effect=stalled)):
            writer = asyncio.create_task(engine.save_units(member, 2, pay_validity=True))
            await started.wait()

            pools_reader = asyncio.create_task(engine.get_group_pools())
            share_reader = asyncio.create_task(engine.get_share())
            balance_reader = asyncio.create_task(engine.get_person_balance(member))
            await asyncio.sleep(0.05)

            assert not pools_reader.done()
            assert not share_reader.done()
            assert not balance_reader.done()

            release.set()
            outcome = await writer

        assert outcome.kind == LedgerErrorKind.INTERNAL_ERROR

        pools = await pools_reader
        assert pools[PoolType.MAIN] == Decimal("0.00")
        assert pools[PoolType.VALIDITY] == Decimal("0.00")

        share = await share_reader
        assert share.total_savings == Decimal("0.00")
        assert share.total_units == 0

        view = await balance_reader
        assert view.balance.main_savings_balance == Decimal("0.00")
        assert view.group_pools[PoolType.MAIN] == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_reads_after_commit_see_new_state(self, engine: LedgerEngine, member: int) -> None:
        """커밋 직후 조회 → 반영된 잔액"""
        writer = asyncio.create_task(engine.save_units(member, 2))
        reader = asyncio.create_task(engine.get_group_pools())

        outcome = await writer
        pools = await reader

        assert outcome.is_ok
        assert pools[PoolType.MAIN] == Decimal("1000.00")


class TestConcurrentWrites:
    """동시 쓰기 직렬화"""

    @pytest.mark.asyncio
    async def test_concurrent_saves_respect_daily_cap(self, engine: LedgerEngine, member: int) -> None:
        """같은 날 2유닛 x 3 동시 → 2건 성공, 1건 일일 한도 초과"""
        outcomes = await asyncio.gather(*(engine.save_units(member, 2) for _ in range(3)))

        succeeded = [o for o in outcomes if o.is_ok]
        rejected = [o for o in outcomes if not o.is_ok]
        assert len(succeeded) == 2
        assert len(rejected) == 1
        assert rejected[0].kind == LedgerErrorKind.DAILY_CAP_EXCEEDED

        assert await engine.store.total_units() == 4
        assert (await engine.get_group_pools())[PoolType.MAIN] == Decimal("2000.00")
        balance = await engine.store.get_personal_balance(member)
        assert balance.main_savings_balance == Decimal("2000.00")

    @pytest.mark.asyncio
    async def test_concurrent_borrows_never_overdraw_pool(
        self, engine: LedgerEngine, seed, admin_secret: str
    ) -> None:
        """풀 1000에 600 x 3 동시 대출 → 1건만 성공"""
        people = []
        for name in ("Bob", "Carol", "Dave"):
            created = await engine.create_member(name, admin_secret)
            people.append(created.unwrap().person_id)
        for person_id in people:
            await seed.make_eligible(person_id)
        await seed.set_group_pool(PoolType.MAIN, "1000.00")

        outcomes = await asyncio.gather(
            *(engine.borrow(person_id, PoolType.MAIN, "600") for person_id in people)
        )

        succeeded = [o for o in outcomes if o.is_ok]
        rejected = [o for o in outcomes if not o.is_ok]
        assert len(succeeded) == 1
        assert len(rejected) == 2
        assert all(o.kind == LedgerErrorKind.INSUFFICIENT_GROUP_FUNDS for o in rejected)

        pools = await engine.get_group_pools()
        assert pools[PoolType.MAIN] == Decimal("400.00")
        assert succeeded[0].unwrap().group_balance == Decimal("400.00")
