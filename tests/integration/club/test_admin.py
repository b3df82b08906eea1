"""
Admin 통합 테스트

회원 생성/삭제, 전체 초기화, 유닛당 지분
"""

from decimal import Decimal

import pytest

from adapters.mock.notifier import MockNotifier
from club.engine import LedgerEngine
from core.domain.results import LedgerErrorKind
from core.types import ChangeType, PoolType


class TestCreateMember:
    """create_member"""

    @pytest.mark.asyncio
    async def test_create(self, engine: LedgerEngine, admin_secret: str, notifier: MockNotifier) -> None:
        """이름 공백 제거, 0 잔고 행 생성"""
        outcome = await engine.create_member("  Carol  ", admin_secret)

        assert outcome.is_ok
        result = outcome.unwrap()
        assert result.name == "Carol"

        balance = await engine.store.get_personal_balance(result.person_id)
        assert balance.main_savings_balance == Decimal("0.00")
        assert balance.validity_savings_balance == Decimal("0.00")

        assert notifier.changes_for(result.person_id) == [ChangeType.NEW_MEMBER]
        assert notifier.changes_for(None) == [ChangeType.GROUP]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("credential", [None, "", "nope"])
    async def test_bad_credential(self, engine: LedgerEngine, credential: str | None) -> None:
        outcome = await engine.create_member("Dave", credential)

        assert outcome.kind == LedgerErrorKind.BAD_CREDENTIAL
        assert await engine.list_people() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["", "   "])
    async def test_invalid_name(self, engine: LedgerEngine, admin_secret: str, name: str) -> None:
        outcome = await engine.create_member(name, admin_secret)
        assert outcome.kind == LedgerErrorKind.INVALID_NAME


class TestDeleteMember:
    """delete_member"""

    @pytest.mark.asyncio
    async def test_delete_with_dependents(
        self, engine: LedgerEngine, member: int, seed, admin_secret: str, notifier: MockNotifier
    ) -> None:
        """종속 행 모두 삭제 후 시스템 로그 1건"""
        await engine.save_units(member, 2, pay_validity=True)
        await seed.make_eligible(member)
        await engine.borrow(member, "MAIN", "500")
        notifier.clear()

        outcome = await engine.delete_member(member, admin_secret)

        assert outcome.is_ok
        result = outcome.unwrap()
        assert result.name == "Alice"
        assert result.warnings == []
        assert result.deleted_rows["borrowing"] == 1
        assert result.deleted_rows["personal_balance"] == 1
        assert result.deleted_rows["payment"] >= 2

        assert await engine.store.get_person(member) is None
        assert await engine.get_transactions(member) == []

        system_logs = await engine.store.get_system_logs()
        assert system_logs[-1]["transaction_type"] == "ADMIN_DELETE_MEMBER"
        assert system_logs[-1]["details"]["deletedPersonId"] == member

        assert notifier.changes_for(member) == [ChangeType.MEMBER_DELETED]

    @pytest.mark.asyncio
    async def test_table_failure_becomes_warning(
        self, engine: LedgerEngine, member: int, admin_secret: str
    ) -> None:
        """종속 테이블 하나가 실패해도 삭제는 계속"""
        await engine.db.execute("DROP TABLE daily_summary")

        outcome = await engine.delete_member(member, admin_secret)

        assert outcome.is_ok
        warnings = outcome.unwrap().warnings
        assert len(warnings) == 1
        assert warnings[0].startswith("daily_summary")
        assert "daily_summary" not in outcome.unwrap().deleted_rows
        assert await engine.store.get_person(member) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("person_id", [None, 0])
    async def test_missing_id(self, engine: LedgerEngine, admin_secret: str, person_id: int | None) -> None:
        outcome = await engine.delete_member(person_id, admin_secret)
        assert outcome.kind == LedgerErrorKind.MISSING_ID

    @pytest.mark.asyncio
    async def test_not_found(self, engine: LedgerEngine, admin_secret: str) -> None:
        outcome = await engine.delete_member(999, admin_secret)
        assert outcome.kind == LedgerErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_bad_credential(self, engine: LedgerEngine, member: int) -> None:
        outcome = await engine.delete_member(member, "nope")

        assert outcome.kind == LedgerErrorKind.BAD_CREDENTIAL
        assert await engine.store.get_person(member) is not None


class TestResetAll:
    """reset_all"""

    @pytest.mark.asyncio
    async def test_reset(
        self, engine: LedgerEngine, member: int, seed, admin_secret: str, notifier: MockNotifier
    ) -> None:
        """로그/대출/납입/요약 삭제, 잔고 0, 회원 유지"""
        await engine.save_units(member, 2, pay_validity=True)
        await seed.make_eligible(member)
        await engine.borrow(member, "MAIN", "500")
        notifier.clear()

        outcome = await engine.reset_all(admin_secret)

        assert outcome.is_ok
        pools = await engine.get_group_pools()
        assert pools == {PoolType.MAIN: Decimal("0.00"), PoolType.VALIDITY: Decimal("0.00")}

        view = await engine.get_person_balance(member)
        assert view.balance.main_savings_balance == Decimal("0.00")
        assert view.open_borrowings == []
        assert (await engine.get_person_meta(member)).saved_count == 0
        assert await engine.store.total_units() == 0
        assert [p.id for p in await engine.list_people()] == [member]

        system_logs = await engine.store.get_system_logs()
        assert [log["transaction_type"] for log in system_logs] == ["ADMIN_RESET"]
        assert await engine.get_transactions(member) == []

        assert notifier.changes_for(None) == [ChangeType.RESET, ChangeType.GROUP]

    @pytest.mark.asyncio
    async def test_bad_credential(self, engine: LedgerEngine, member: int) -> None:
        await engine.save_units(member, 1, pay_validity=False)

        outcome = await engine.reset_all(None)

        assert outcome.kind == LedgerErrorKind.BAD_CREDENTIAL
        assert (await engine.get_group_pools())[PoolType.MAIN] == Decimal("500.00")


class TestGetShare:
    """get_share"""

    @pytest.mark.asyncio
    async def test_share_per_unit(self, engine: LedgerEngine, member: int, seed) -> None:
        """(MAIN + VALIDITY) / 전체 유닛"""
        await seed.set_group_pool(PoolType.MAIN, "3000.00")
        await seed.set_group_pool(PoolType.VALIDITY, "700.00")
        await engine.db.execute(
            "INSERT INTO daily_summary (person_id, date, units_count) VALUES (?, ?, ?)",
            (member, "2026-03-01", 40),
        )

        share = await engine.get_share()

        assert share.total_savings == Decimal("3700.00")
        assert share.total_units == 40
        assert share.share_per_unit == Decimal("92.50")

    @pytest.mark.asyncio
    async def test_zero_units(self, engine: LedgerEngine, seed) -> None:
        """유닛이 없으면 0"""
        await seed.set_group_pool(PoolType.VALIDITY, "100.00")

        share = await engine.get_share()

        assert share.total_savings == Decimal("100.00")
        assert share.total_units == 0
        assert share.share_per_unit == Decimal("0.00")
