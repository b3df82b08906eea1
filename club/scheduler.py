"""
Penalty Scheduler

주기적으로 연체 이자 스윕 실행.
"""

import asyncio
import logging
from datetime import datetime

from club.engine import LedgerEngine
from core.constants import Defaults
from core.utils.timezone import now_utc

logger = logging.getLogger(__name__)


class PenaltyScheduler:
    """연체 이자 스윕 스케줄러

    Args:
        engine: Ledger Engine
        interval_seconds: 실행 간격 (초)

    사용 예시:
    ```python
    scheduler = PenaltyScheduler(engine, interval_seconds=3600)
    await scheduler.start()
    ...
    await scheduler.stop()
    ```
    """

    def __init__(
        self,
        engine: LedgerEngine,
        interval_seconds: float = Defaults.PENALTY_INTERVAL_SEC,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds는 0보다 커야 합니다")

        self.engine = engine
        self.interval_seconds = interval_seconds

        self._task: asyncio.Task[None] | None = None
        self._running = False
        self._last_run_at: datetime | None = None
        self._run_count = 0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def last_run_at(self) -> datetime | None:
        """마지막 스윕 시각"""
        return self._last_run_at

    @property
    def run_count(self) -> int:
        return self._run_count

    async def start(self) -> None:
        """스케줄러 시작"""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info(
            "PenaltyScheduler started",
            extra={"interval_seconds": self.interval_seconds},
        )

    async def stop(self) -> None:
        """스케줄러 중지"""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("PenaltyScheduler stopped")

    async def run_once(self) -> int:
        """스윕 1회 실행

        Returns:
            연체 이자가 적용된 대출 수 (실패 시 0)
        """
        outcome = await self.engine.run_penalties()
        self._last_run_at = now_utc()
        self._run_count += 1

        if not outcome.is_ok:
            logger.error(
                "연체 이자 스윕 실패",
                extra={"reason": outcome.error.message if outcome.error else None},
            )
            return 0

        return outcome.unwrap().penalized

    async def _loop(self) -> None:
        """스윕 루프"""
        while self._running:
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Penalty loop error: {e}", exc_info=True)

            await asyncio.sleep(self.interval_seconds)
