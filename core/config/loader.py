"""
설정 로더

settings.yaml 로드 및 장부 규칙 생성
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from core.constants import Defaults, Paths
from core.types import LedgerRules


@dataclass(frozen=True)
class ClubSecrets:
    """클럽 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    admin_password: str
    rules: LedgerRules = field(default_factory=LedgerRules)
    db_path: Path = Paths.CLUB_DB
    webhook_url: str | None = None
    penalty_interval_sec: int = Defaults.PENALTY_INTERVAL_SEC


class SettingsLoadError(Exception):
    """Settings 로드 실패 예외"""

    pass


# ledger 섹션 키 → (LedgerRules 필드, 변환 타입)
_RULE_FIELDS: dict[str, tuple[str, type]] = {
    "unit_price": ("unit_price", Decimal),
    "validity_fee": ("validity_fee", Decimal),
    "fine_amount": ("fine_amount", Decimal),
    "daily_unit_cap": ("daily_unit_cap", int),
    "min_unit_payments_to_borrow": ("min_unit_payments_to_borrow", int),
    "borrow_interest_rate": ("borrow_interest_rate", Decimal),
    "borrow_limit_ratio": ("borrow_limit_ratio", Decimal),
    "penalty_rate": ("penalty_rate", Decimal),
    "main_period_days": ("main_period_days", int),
    "validity_period_days": ("validity_period_days", int),
}


def _parse_rules(section: dict[str, Any]) -> LedgerRules:
    """ledger 섹션 → LedgerRules

    Raises:
        ValueError: 숫자로 변환할 수 없거나 음수인 값
    """
    kwargs: dict[str, Any] = {}

    for key, raw in section.items():
        if key not in _RULE_FIELDS:
            raise ValueError(f"알 수 없는 ledger 설정입니다: '{key}'")

        field_name, caster = _RULE_FIELDS[key]
        try:
            value = caster(str(raw))
            if isinstance(value, Decimal) and not value.is_finite():
                raise ValueError(f"non-finite value: {raw}")
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"ledger.{key} 값이 숫자가 아닙니다: '{raw}'") from e

        if value < 0:
            raise ValueError(f"ledger.{key} 값은 음수일 수 없습니다: '{raw}'")

        kwargs[field_name] = value

    return LedgerRules(**kwargs)


def load_settings(path: Path | None = None) -> ClubSecrets:
    """settings.yaml 파일 로드

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        ClubSecrets 인스턴스

    Raises:
        SettingsLoadError: 파일이 없거나 형식이 잘못된 경우
        ValueError: ledger 규칙 값이 잘못된 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        raise SettingsLoadError(f"settings.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        raise SettingsLoadError("settings.yaml이 비어 있습니다")

    # 관리자 비밀번호 (필수)
    admin_config = data.get("admin") or {}
    admin_password = admin_config.get("password")
    if not admin_password:
        raise SettingsLoadError("settings.yaml의 admin 섹션에 'password'가 없습니다")

    rules = _parse_rules(data.get("ledger") or {})

    database_config = data.get("database") or {}
    db_path_str = database_config.get("path")
    db_path = Path(db_path_str) if db_path_str else Paths.CLUB_DB

    notifier_config = data.get("notifier") or {}
    webhook_url = notifier_config.get("webhook_url") or None

    penalty_config = data.get("penalty") or {}
    interval = penalty_config.get("interval_seconds", Defaults.PENALTY_INTERVAL_SEC)
    try:
        penalty_interval_sec = int(interval)
    except (TypeError, ValueError) as e:
        raise ValueError(f"penalty.interval_seconds 값이 정수가 아닙니다: '{interval}'") from e

    if penalty_interval_sec <= 0:
        raise ValueError("penalty.interval_seconds 값은 0보다 커야 합니다")

    return ClubSecrets(
        admin_password=str(admin_password),
        rules=rules,
        db_path=db_path,
        webhook_url=webhook_url,
        penalty_interval_sec=penalty_interval_sec,
    )


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _secrets: ClubSecrets | None = None

    def __new__(cls, settings_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, settings_path: Path | None = None) -> None:
        if self._secrets is None:
            self._secrets = load_settings(settings_path)

    @property
    def admin_password(self) -> str:
        """관리자 비밀번호"""
        assert self._secrets is not None
        return self._secrets.admin_password

    @property
    def rules(self) -> LedgerRules:
        """장부 규칙"""
        assert self._secrets is not None
        return self._secrets.rules

    @property
    def db_path(self) -> Path:
        """DB 경로"""
        assert self._secrets is not None
        return self._secrets.db_path

    @property
    def webhook_url(self) -> str | None:
        """변경 알림 Webhook URL"""
        assert self._secrets is not None
        return self._secrets.webhook_url

    @property
    def penalty_interval_sec(self) -> int:
        """연체 이자 스윕 주기 (초)"""
        assert self._secrets is not None
        return self._secrets.penalty_interval_sec

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._secrets = None


def get_settings(settings_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        settings_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(settings_path)
