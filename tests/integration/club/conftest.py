"""
Club 통합 테스트 fixture

임시 SQLite DB + 고정 시계 + MockNotifier로 LedgerEngine 구성
"""

from collections.abc import AsyncIterator
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.mock.notifier import MockNotifier
from club.engine import LedgerEngine
from core.types import LedgerRules, PaymentType, PoolType

ADMIN_SECRET = "club_admin_pw"


class FrozenClock:
    """고정 UTC 시계 (advance로 이동)"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 3, 15, 9, 0, tzinfo=timezone.utc))


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> AsyncIterator[SQLiteAdapter]:
    """테스트용 임시 DB"""
    adapter = SQLiteAdapter(tmp_path / "club_test.db")
    await adapter.connect()
    yield adapter
    await adapter.close()


@pytest.fixture
def notifier() -> MockNotifier:
    return MockNotifier()


@pytest_asyncio.fixture
async def engine(db: SQLiteAdapter, notifier: MockNotifier, clock: FrozenClock) -> LedgerEngine:
    """기본 규칙 LedgerEngine (스키마 초기화 완료)"""
    ledger = LedgerEngine(
        db,
        rules=LedgerRules(),
        admin_secret=ADMIN_SECRET,
        notifier=notifier,
        clock=clock,
    )
    await ledger.initialize()
    return ledger


@pytest_asyncio.fixture
async def member(engine: LedgerEngine, notifier: MockNotifier) -> int:
    """회원 1명 생성 (알림 기록은 비움)"""
    outcome = await engine.create_member("Alice", ADMIN_SECRET)
    notifier.clear()
    return outcome.unwrap().person_id


@pytest.fixture
def admin_secret() -> str:
    return ADMIN_SECRET


class LedgerSeeder:
    """테스트 데이터 직접 구성 (엔진 연산을 거치지 않음)"""

    def __init__(self, engine: LedgerEngine):
        self.engine = engine
        self.db = engine.db

    async def set_group_pool(self, pool_type: PoolType, balance: str) -> None:
        """그룹 풀 잔액 설정"""
        await self.db.execute(
            "UPDATE group_pool SET balance = ? WHERE pool_type = ?",
            (balance, pool_type.value),
        )

    async def set_personal_balance(self, person_id: int, main: str = "0.00", validity: str = "0.00") -> None:
        """개인 잔고 설정"""
        await self.db.execute(
            """
            UPDATE personal_balance
            SET main_savings_balance = ?, validity_savings_balance = ?
            WHERE person_id = ?
            """,
            (main, validity, person_id),
        )

    async def add_unit_payments(self, person_id: int, count: int) -> None:
        """UNIT 납입 기록만 추가 (적립 횟수용)"""
        for _ in range(count):
            await self.engine.store.insert_payment(person_id, PaymentType.UNIT, Decimal("500.00"))

    async def make_eligible(
        self,
        person_id: int,
        main: str = "1000.00",
        validity: str = "0.00",
        group_main: str = "5000.00",
        group_validity: str = "5000.00",
    ) -> None:
        """대출 가능한 상태 구성"""
        await self.set_personal_balance(person_id, main=main, validity=validity)
        await self.add_unit_payments(person_id, self.engine.rules.min_unit_payments_to_borrow)
        await self.set_group_pool(PoolType.MAIN, group_main)
        await self.set_group_pool(PoolType.VALIDITY, group_validity)


@pytest.fixture
def seed(engine: LedgerEngine) -> LedgerSeeder:
    return LedgerSeeder(engine)
