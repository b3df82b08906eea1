"""
core/config/loader.py 테스트

settings.yaml 로드, 검증, 장부 규칙 생성 테스트
"""

from decimal import Decimal
from pathlib import Path

import pytest

from core.config.loader import (
    ClubSecrets,
    Settings,
    SettingsLoadError,
    get_settings,
    load_settings,
)
from core.constants import Defaults, Paths
from core.types import LedgerRules


class TestClubSecrets:
    """ClubSecrets 데이터클래스 테스트"""

    def test_creation_defaults(self) -> None:
        """기본 생성"""
        secrets = ClubSecrets(admin_password="pw")

        assert secrets.admin_password == "pw"
        assert secrets.rules == LedgerRules()
        assert secrets.db_path == Paths.CLUB_DB
        assert secrets.webhook_url is None
        assert secrets.penalty_interval_sec == Defaults.PENALTY_INTERVAL_SEC

    def test_frozen(self) -> None:
        """불변성 확인"""
        secrets = ClubSecrets(admin_password="pw")

        with pytest.raises(AttributeError):
            secrets.admin_password = "other"  # type: ignore


class TestLoadSettings:
    """load_settings 테스트"""

    def test_load_full(self, temp_settings_file: Path) -> None:
        """전체 설정 로드"""
        secrets = load_settings(temp_settings_file)

        assert secrets.admin_password == "test_admin_pw"
        assert secrets.rules.unit_price == Decimal("250.00")
        assert secrets.rules.daily_unit_cap == 6
        # 지정하지 않은 규칙은 기본값
        assert secrets.rules.validity_fee == Decimal("100.00")
        assert secrets.db_path == Path("/tmp/club_test.db")
        assert secrets.webhook_url == "https://example.com/hooks/ledger"
        assert secrets.penalty_interval_sec == 60

    def test_load_minimal(self, temp_settings_file_minimal: Path) -> None:
        """admin.password만 있는 경우"""
        secrets = load_settings(temp_settings_file_minimal)

        assert secrets.admin_password == "only_pw"
        assert secrets.rules == LedgerRules()
        assert secrets.db_path == Paths.CLUB_DB
        assert secrets.webhook_url is None

    def test_missing_file(self, temp_dir: Path) -> None:
        """파일 없음"""
        with pytest.raises(SettingsLoadError, match="찾을 수 없습니다"):
            load_settings(temp_dir / "nope.yaml")

    def test_empty_file(self, temp_dir: Path) -> None:
        """빈 파일"""
        path = temp_dir / "empty.yaml"
        path.write_text("", encoding="utf-8")

        with pytest.raises(SettingsLoadError, match="비어 있습니다"):
            load_settings(path)

    def test_invalid_yaml(self, temp_dir: Path) -> None:
        """YAML 파싱 실패"""
        path = temp_dir / "broken.yaml"
        path.write_text("admin: [unclosed", encoding="utf-8")

        with pytest.raises(SettingsLoadError, match="파싱 실패"):
            load_settings(path)

    def test_missing_admin_password(self, temp_dir: Path) -> None:
        """admin.password 누락"""
        path = temp_dir / "no_admin.yaml"
        path.write_text("ledger:\n  unit_price: 100\n", encoding="utf-8")

        with pytest.raises(SettingsLoadError, match="password"):
            load_settings(path)

    def test_unknown_ledger_key(self, temp_dir: Path) -> None:
        """알 수 없는 ledger 키"""
        path = temp_dir / "unknown.yaml"
        path.write_text('admin:\n  password: "pw"\nledger:\n  unit_prise: 100\n', encoding="utf-8")

        with pytest.raises(ValueError, match="unit_prise"):
            load_settings(path)

    def test_non_numeric_rule(self, temp_dir: Path) -> None:
        """숫자가 아닌 규칙 값"""
        path = temp_dir / "nan.yaml"
        path.write_text('admin:\n  password: "pw"\nledger:\n  fine_amount: "lots"\n', encoding="utf-8")

        with pytest.raises(ValueError, match="숫자가 아닙니다"):
            load_settings(path)

    @pytest.mark.parametrize("raw", ['"NaN"', ".nan", '"Infinity"', '"-inf"'])
    def test_non_finite_rule(self, temp_dir: Path, raw: str) -> None:
        """NaN / 무한대 규칙 값"""
        path = temp_dir / "non_finite.yaml"
        path.write_text(f'admin:\n  password: "pw"\nledger:\n  unit_price: {raw}\n', encoding="utf-8")

        with pytest.raises(ValueError, match="숫자가 아닙니다"):
            load_settings(path)

    def test_negative_rule(self, temp_dir: Path) -> None:
        """음수 규칙 값"""
        path = temp_dir / "neg.yaml"
        path.write_text('admin:\n  password: "pw"\nledger:\n  validity_fee: -1\n', encoding="utf-8")

        with pytest.raises(ValueError, match="음수"):
            load_settings(path)

    def test_invalid_interval(self, temp_dir: Path) -> None:
        """0 이하 스윕 주기"""
        path = temp_dir / "interval.yaml"
        path.write_text('admin:\n  password: "pw"\npenalty:\n  interval_seconds: 0\n', encoding="utf-8")

        with pytest.raises(ValueError, match="interval_seconds"):
            load_settings(path)


class TestSettings:
    """Settings 싱글턴 테스트"""

    def test_singleton(self, temp_settings_file: Path) -> None:
        """같은 인스턴스 반환"""
        first = get_settings(temp_settings_file)
        second = get_settings()

        assert first is second
        assert second.admin_password == "test_admin_pw"

    def test_properties(self, temp_settings_file: Path) -> None:
        """속성 접근"""
        settings = Settings(temp_settings_file)

        assert settings.rules.unit_price == Decimal("250.00")
        assert settings.penalty_interval_sec == 60
        assert settings.webhook_url == "https://example.com/hooks/ledger"

    def test_reset(self, temp_settings_file: Path, temp_settings_file_minimal: Path) -> None:
        """reset 후 다시 로드"""
        get_settings(temp_settings_file)
        Settings.reset()

        settings = get_settings(temp_settings_file_minimal)
        assert settings.admin_password == "only_pw"
