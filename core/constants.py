"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from decimal import Decimal
from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → 프로젝트 루트)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    LOG_LEVEL: str = "INFO"
    PENALTY_INTERVAL_SEC: int = 3600
    TRANSACTIONS_LIMIT: int = 200
    NOTIFIER_USERNAME: str = "SavingsClub"


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    CLUB_DB: Path = DATA_DIR / "savings_club.db"


class LedgerDefaults:
    """장부 규칙 기본값

    settings.yaml의 ledger 섹션에서 덮어쓸 수 있음.
    """

    UNIT_PRICE: Decimal = Decimal("500.00")
    VALIDITY_FEE: Decimal = Decimal("100.00")
    FINE_AMOUNT: Decimal = Decimal("500.00")

    DAILY_UNIT_CAP: int = 4
    MIN_UNIT_PAYMENTS_TO_BORROW: int = 3

    BORROW_INTEREST_RATE: Decimal = Decimal("0.10")  # 대출 이자 10%
    BORROW_LIMIT_RATIO: Decimal = Decimal("1.30")  # 개인 잔고의 130%
    PENALTY_RATE: Decimal = Decimal("0.10")  # 연체 기간당 10% 복리

    MAIN_PERIOD_DAYS: int = 30
    VALIDITY_PERIOD_DAYS: int = 7


# 금액 소수점 자리 (2자리)
CENTS: Decimal = Decimal("0.01")
