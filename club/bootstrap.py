"""
Club Bootstrap

설정 로드, 의존성 주입, 연체 이자 스케줄러 생명주기 관리.
"""

import asyncio
import logging
import signal
import sys

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.interfaces import INotifier
from adapters.webhook.notifier import WebhookNotifier
from club.engine import LedgerEngine
from club.scheduler import PenaltyScheduler
from core.config.loader import Settings, get_settings
from core.logging import setup_logging

logger = logging.getLogger("club")


class ClubService:
    """저축 클럽 서비스

    Ledger Engine과 Penalty Scheduler를 묶어 시작/종료 관리.

    Args:
        settings: 설정 객체
        db: SQLite 어댑터
    """

    def __init__(self, settings: Settings, db: SQLiteAdapter):
        self.settings = settings
        self.db = db

        self.notifier = self._create_notifier()
        self.engine = LedgerEngine(
            db,
            rules=settings.rules,
            admin_secret=settings.admin_password,
            notifier=self.notifier,
        )
        self.scheduler = PenaltyScheduler(
            self.engine,
            interval_seconds=settings.penalty_interval_sec,
        )

    def _create_notifier(self) -> INotifier | None:
        """Webhook Notifier 생성 (설정이 있는 경우에만)"""
        webhook_url = self.settings.webhook_url
        if not webhook_url:
            logger.info("notifier.webhook_url이 설정되지 않아 변경 알림 비활성화")
            return None

        logger.info("WebhookNotifier 생성 완료")
        return WebhookNotifier(webhook_url=webhook_url)

    async def start(self) -> None:
        """스키마 초기화 후 스케줄러 시작"""
        await self.engine.initialize()
        await self.scheduler.start()
        logger.info("Club service RUNNING")

    async def stop(self) -> None:
        """스케줄러 중지 및 리소스 정리"""
        logger.info("Club service 종료 중...")
        await self.scheduler.stop()
        if self.notifier is not None:
            await self.notifier.close()


def _install_signal_handlers(shutdown_event: asyncio.Event) -> None:
    """SIGINT/SIGTERM → 종료 이벤트 (지원하지 않는 플랫폼은 건너뜀)"""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown_event.set)
        except (NotImplementedError, RuntimeError):
            logger.debug(f"signal handler 미지원: {sig}")


async def main() -> None:
    """Club 메인 함수"""
    setup_logging("club")

    logger.info("=" * 60)
    logger.info("Savings Club Ledger 시작")
    logger.info("=" * 60)

    # 1. 설정 로드
    try:
        settings = get_settings()
    except Exception as e:
        logger.error(f"설정 로드 실패: {e}")
        sys.exit(1)

    logger.info(f"DB: {settings.db_path}")
    logger.info(f"Penalty interval: {settings.penalty_interval_sec}s")

    # 2. DB 연결 및 서비스 시작
    async with SQLiteAdapter(settings.db_path) as db:
        service = ClubService(settings, db)

        shutdown_event = asyncio.Event()
        _install_signal_handlers(shutdown_event)

        try:
            await service.start()
            logger.info("서비스 대기 중 (종료: Ctrl+C)")
            await shutdown_event.wait()
        except asyncio.CancelledError:
            logger.info("메인 루프 취소됨")
        finally:
            await service.stop()

    logger.info("=" * 60)
    logger.info("Savings Club Ledger 정상 종료")
    logger.info("=" * 60)
