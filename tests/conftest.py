"""
pytest 공통 fixture 정의

설정 파일, 임시 디렉토리 등 공용 fixture
"""

import tempfile
from pathlib import Path

import pytest

from core.config.loader import Settings


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_settings_file(temp_dir: Path) -> Path:
    """테스트용 settings.yaml 파일 생성"""
    settings_content = """# 테스트용 settings.yaml
admin:
  password: "test_admin_pw"

ledger:
  unit_price: "250.00"
  daily_unit_cap: 6

database:
  path: "/tmp/club_test.db"

notifier:
  webhook_url: "https://example.com/hooks/ledger"

penalty:
  interval_seconds: 60
"""
    settings_path = temp_dir / "settings.yaml"
    settings_path.write_text(settings_content, encoding="utf-8")
    return settings_path


@pytest.fixture
def temp_settings_file_minimal(temp_dir: Path) -> Path:
    """admin.password만 있는 settings.yaml"""
    settings_path = temp_dir / "settings_minimal.yaml"
    settings_path.write_text('admin:\n  password: "only_pw"\n', encoding="utf-8")
    return settings_path


@pytest.fixture(autouse=True)
def reset_settings_singleton():
    """테스트 간 Settings 싱글턴 격리"""
    Settings.reset()
    yield
    Settings.reset()
